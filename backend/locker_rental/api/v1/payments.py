"""Payments API: hosted checkout for new rentals and extensions."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from locker_rental.api import deps
from locker_rental.core.exceptions import DomainError
from locker_rental.core.settings import PaymentSettings
from locker_rental.integrations import StripeClient, StripeClientError
from locker_rental.schemas.payments import (
    CheckoutRequest,
    CheckoutResponse,
    ExtensionCheckoutRequest,
    PortalRequest,
    PortalResponse,
)
from locker_rental.services import checkout_service
from locker_rental.services.notification_service import Notifier

router = APIRouter(prefix="/payments", tags=["payments"])


def _to_response(
    result: checkout_service.CheckoutResult, *, message: str
) -> CheckoutResponse:
    email = result.reservation.customer_email or ""
    return CheckoutResponse(
        message=message.format(email=email),
        reservation_id=result.reservation.id,
        session_id=result.session_id,
        payment_url=result.payment_url,
        email=email,
        total_amount=result.reservation.total_amount,
    )


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(
    payload: CheckoutRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    stripe_client: Annotated[StripeClient, Depends(deps.get_payment_client)],
    notifier: Annotated[Notifier, Depends(deps.get_notifier)],
    payment_settings: Annotated[PaymentSettings, Depends(deps.get_payment_config)],
) -> CheckoutResponse:
    try:
        result = await checkout_service.create_checkout(
            session,
            payments=stripe_client,
            notifier=notifier,
            settings=payment_settings,
            locker_id=payload.locker_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            total_months=payload.total_months,
            customer=checkout_service.Customer(
                email=str(payload.student_email),
                name=payload.student_name,
                student_ref=payload.student_ref,
            ),
        )
    except DomainError as exc:
        raise exc.to_http_exception() from exc
    return _to_response(result, message="Payment link sent to {email}")


@router.post("/extension-checkout", response_model=CheckoutResponse)
async def create_extension_checkout(
    payload: ExtensionCheckoutRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    stripe_client: Annotated[StripeClient, Depends(deps.get_payment_client)],
    notifier: Annotated[Notifier, Depends(deps.get_notifier)],
    payment_settings: Annotated[PaymentSettings, Depends(deps.get_payment_config)],
    _admin: Annotated[str, Depends(deps.get_current_admin)],
) -> CheckoutResponse:
    try:
        result = await checkout_service.create_extension(
            session,
            payments=stripe_client,
            notifier=notifier,
            settings=payment_settings,
            reservation_id=payload.rental_id,
            new_end_date=payload.new_end_date,
            extension_months=payload.extension_months,
        )
    except DomainError as exc:
        raise exc.to_http_exception() from exc
    return _to_response(result, message="Extension payment link sent to {email}")


@router.post("/portal", response_model=PortalResponse)
async def create_portal_session(
    payload: PortalRequest,
    stripe_client: Annotated[StripeClient, Depends(deps.get_payment_client)],
    payment_settings: Annotated[PaymentSettings, Depends(deps.get_payment_config)],
) -> PortalResponse:
    try:
        url = stripe_client.create_portal_session(
            payload.customer_id, return_url=f"{payment_settings.frontend_url}/lockers"
        )
    except StripeClientError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    return PortalResponse(url=url)
