"""Admin authentication and dashboard endpoints."""

from __future__ import annotations

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from locker_rental.api import deps
from locker_rental.core.config import get_settings
from locker_rental.core.exceptions import AuthenticationError
from locker_rental.core.security import authenticate_admin, create_access_token
from locker_rental.core.settings import PaymentSettings
from locker_rental.models import ReservationStatus
from locker_rental.schemas.rental import (
    AdminLoginRequest,
    AnalyticsRead,
    RefundRequestResponse,
    RentalRead,
    Token,
)
from locker_rental.services import rental_service
from locker_rental.services.notification_service import Notifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/login", response_model=Token)
async def login(payload: AdminLoginRequest) -> Token:
    stored = get_settings().admin_password
    if not stored:
        logger.error("ADMIN_PASSWORD is not configured; admin login disabled")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin login is not configured",
        )
    try:
        subject = authenticate_admin(payload.password, stored)
    except AuthenticationError as exc:
        raise exc.to_http_exception() from exc
    return Token(access_token=create_access_token(subject))


@router.get("/verify")
async def verify(
    admin: Annotated[str, Depends(deps.get_current_admin)],
) -> dict[str, bool | str]:
    return {"authenticated": True, "subject": admin}


@router.get("/rentals", response_model=list[RentalRead])
async def list_rentals(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _admin: Annotated[str, Depends(deps.get_current_admin)],
    status_filter: Annotated[ReservationStatus | None, Query(alias="status")] = None,
) -> list[RentalRead]:
    records = await rental_service.list_rentals(session, status=status_filter)
    return [RentalRead.model_validate(record) for record in records]


@router.get("/analytics", response_model=AnalyticsRead)
async def analytics(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    _admin: Annotated[str, Depends(deps.get_current_admin)],
) -> AnalyticsRead:
    data = await rental_service.get_analytics(session)
    return AnalyticsRead.model_validate(data)


@router.post(
    "/rentals/{rental_id}/refund-request", response_model=RefundRequestResponse
)
async def request_deposit_refund(
    rental_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    notifier: Annotated[Notifier, Depends(deps.get_notifier)],
    payment_settings: Annotated[PaymentSettings, Depends(deps.get_payment_config)],
    _admin: Annotated[str, Depends(deps.get_current_admin)],
) -> RefundRequestResponse:
    rental = await rental_service.get_rental(session, rental_id)
    if rental is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Rental not found"
        )
    if rental.status != ReservationStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only active rentals can request a deposit refund",
        )
    record = rental_service.RentalRecord.from_reservation(rental)
    sent = await notifier.send_key_deposit_refund_request(
        student_name=record.student_name or record.student_email or "Student",
        student_email=record.student_email or "",
        locker_number=record.locker_number,
        start_date=record.start_date.isoformat(),
        end_date=record.end_date.isoformat(),
        deposit_amount=payment_settings.key_deposit_cents,
    )
    return RefundRequestResponse(
        sent=sent, deposit_amount=payment_settings.key_deposit_cents
    )
