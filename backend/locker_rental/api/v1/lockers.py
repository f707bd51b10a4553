"""Public locker listing with availability for a date range."""

from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from locker_rental.api import deps
from locker_rental.core.exceptions import DomainError
from locker_rental.schemas.locker import LockerAvailabilityRead
from locker_rental.services import availability_service

router = APIRouter(prefix="/lockers", tags=["lockers"])


@router.get("", response_model=list[LockerAvailabilityRead])
async def list_lockers(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
) -> list[LockerAvailabilityRead]:
    try:
        rows = await availability_service.list_lockers_with_availability(
            session, start_date=start_date, end_date=end_date
        )
    except DomainError as exc:
        raise exc.to_http_exception() from exc
    return [
        LockerAvailabilityRead(
            id=row.locker.id,
            number=row.locker.number,
            price_per_month=row.locker.price_per_month,
            status="available" if row.available else "occupied",
        )
        for row in rows
    ]


@router.get("/{locker_id}", response_model=LockerAvailabilityRead)
async def get_locker(
    locker_id: str,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
) -> LockerAvailabilityRead:
    try:
        locker = await availability_service.get_locker(session, locker_id)
        available = True
        if start_date is not None:
            available = await availability_service.is_locker_available(
                session,
                locker_id=locker.id,
                start_date=start_date,
                end_date=end_date or start_date,
            )
    except DomainError as exc:
        raise exc.to_http_exception() from exc
    return LockerAvailabilityRead(
        id=locker.id,
        number=locker.number,
        price_per_month=locker.price_per_month,
        status="available" if available else "occupied",
    )
