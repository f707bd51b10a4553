"""Admin waitlist management endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from locker_rental.api import deps
from locker_rental.core.exceptions import DomainError
from locker_rental.schemas.waitlist import (
    WaitlistEntryCreate,
    WaitlistEntryRead,
    WaitlistEntryUpdate,
)
from locker_rental.services import waitlist_service

router = APIRouter(prefix="/waitlist", tags=["waitlist"])


@router.get("", response_model=list[WaitlistEntryRead])
async def list_waitlist(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _admin: Annotated[str, Depends(deps.get_current_admin)],
) -> list[WaitlistEntryRead]:
    entries = await waitlist_service.list_entries(session)
    return [WaitlistEntryRead.model_validate(entry) for entry in entries]


@router.post(
    "", response_model=WaitlistEntryRead, status_code=status.HTTP_201_CREATED
)
async def add_waitlist_entry(
    payload: WaitlistEntryCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _admin: Annotated[str, Depends(deps.get_current_admin)],
) -> WaitlistEntryRead:
    try:
        entry = await waitlist_service.add_entry(
            session,
            full_name=payload.full_name,
            email=str(payload.email),
            student_number=payload.student_number,
            potential_start_date=payload.potential_start_date,
            potential_end_date=payload.potential_end_date,
            status=payload.status,
        )
    except DomainError as exc:
        raise exc.to_http_exception() from exc
    return WaitlistEntryRead.model_validate(entry)


@router.get("/{entry_id}", response_model=WaitlistEntryRead)
async def get_waitlist_entry(
    entry_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _admin: Annotated[str, Depends(deps.get_current_admin)],
) -> WaitlistEntryRead:
    try:
        entry = await waitlist_service.get_entry(session, entry_id)
    except DomainError as exc:
        raise exc.to_http_exception() from exc
    return WaitlistEntryRead.model_validate(entry)


@router.put(
    "/{entry_id}",
    response_model=WaitlistEntryRead | None,
    responses={204: {"description": "Entry marked paid and removed"}},
)
async def update_waitlist_entry(
    entry_id: uuid.UUID,
    payload: WaitlistEntryUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _admin: Annotated[str, Depends(deps.get_current_admin)],
) -> WaitlistEntryRead | Response:
    changes = payload.model_dump(exclude_unset=True)
    if "email" in changes and changes["email"] is not None:
        changes["email"] = str(changes["email"])
    try:
        entry = await waitlist_service.update_entry(session, entry_id, **changes)
    except DomainError as exc:
        raise exc.to_http_exception() from exc
    if entry is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return WaitlistEntryRead.model_validate(entry)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_waitlist_entry(
    entry_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _admin: Annotated[str, Depends(deps.get_current_admin)],
) -> Response:
    try:
        await waitlist_service.delete_entry(session, entry_id)
    except DomainError as exc:
        raise exc.to_http_exception() from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
