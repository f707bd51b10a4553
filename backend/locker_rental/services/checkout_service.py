"""Checkout and extension orchestration.

Both flows create the hosted payment session first and only then persist the
``pending`` reservation, so a provider failure leaves no local row behind.
The session metadata repeats everything the webhook needs to understand the
payment without reading the reservation back.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from locker_rental.core.exceptions import (
    LockerUnavailableError,
    NotFoundError,
    ValidationError,
)
from locker_rental.core.settings import PaymentSettings
from locker_rental.integrations.stripe_client import LineItem, StripeClient
from locker_rental.models.reservation import Reservation, ReservationStatus
from locker_rental.services import availability_service, reservation_service
from locker_rental.services.notification_service import Notifier
from locker_rental.services.pricing_service import billable_months, quote

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Customer:
    """Who is paying for a checkout."""

    email: str
    name: str
    student_ref: str | None = None


@dataclass(slots=True)
class CheckoutResult:
    reservation: Reservation
    session_id: str
    payment_url: str


def _plural_months(months: int) -> str:
    return f"{months} month{'s' if months != 1 else ''}"


def _success_url(settings: PaymentSettings) -> str:
    return f"{settings.frontend_url}/success?session_id={{CHECKOUT_SESSION_ID}}"


def _cancel_url(settings: PaymentSettings) -> str:
    return f"{settings.frontend_url}/lockers"


def _session_expiry(settings: PaymentSettings) -> datetime:
    return datetime.now(UTC) + timedelta(hours=settings.session_ttl_hours)


async def _send_payment_link(
    notifier: Notifier,
    *,
    to: str,
    student_name: str,
    locker_number: str,
    start_date: date,
    end_date: date,
    total_amount: int,
    payment_url: str,
) -> None:
    sent = await notifier.send_payment_link(
        to=to,
        student_name=student_name,
        locker_number=locker_number,
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
        total_amount=total_amount,
        payment_url=payment_url,
    )
    if not sent:
        logger.warning("Payment link e-mail to %s not sent; session still open", to)


async def create_checkout(
    session: AsyncSession,
    *,
    payments: StripeClient,
    notifier: Notifier,
    settings: PaymentSettings,
    locker_id: str,
    start_date: date,
    end_date: date,
    customer: Customer,
    total_months: int | None = None,
) -> CheckoutResult:
    """Open a payment session for a new rental and hold it as ``pending``.

    Raises ``ValidationError`` for a bad range, ``NotFoundError`` for an
    unknown locker, ``LockerUnavailableError`` when an active rental overlaps
    and ``PaymentProviderError`` when the session cannot be created.
    """

    if end_date <= start_date:
        raise ValidationError("End date must be after start date")
    if not customer.email:
        raise ValidationError("A customer e-mail is required")
    months = total_months if total_months is not None else billable_months(start_date, end_date)

    locker = await availability_service.get_locker(session, locker_id)
    available = await availability_service.is_locker_available(
        session, locker_id=locker_id, start_date=start_date, end_date=end_date
    )
    if not available:
        raise LockerUnavailableError(
            locker_id, start_date.isoformat(), end_date.isoformat()
        )

    pricing = quote(
        monthly_price=locker.price_per_month,
        months=months,
        include_deposit=True,
        deposit=settings.key_deposit_cents,
    )
    line_items = [
        LineItem(
            name=f"Locker #{locker.number} Rental - {_plural_months(months)}",
            description=f"Locker reservation from {start_date} to {end_date}",
            unit_amount=pricing.rental_amount,
        )
    ]
    if pricing.deposit_amount:
        line_items.append(
            LineItem(
                name="Key Deposit",
                description="Refundable key deposit",
                unit_amount=pricing.deposit_amount,
            )
        )
    metadata = {
        "locker_id": locker.id,
        "locker_number": locker.number,
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "total_months": str(months),
        "rental_amount": str(pricing.rental_amount),
        "key_deposit": str(pricing.deposit_amount),
        "total_amount": str(pricing.total_amount),
        "student_ref": customer.student_ref or "",
        "student_email": customer.email,
        "student_name": customer.name,
        "is_extension": "false",
    }

    checkout = await asyncio.to_thread(
        payments.create_checkout_session,
        line_items=line_items,
        metadata=metadata,
        success_url=_success_url(settings),
        cancel_url=_cancel_url(settings),
        customer_email=customer.email,
        expires_at=_session_expiry(settings),
    )

    reservation = await reservation_service.create_reservation(
        session,
        locker_id=locker.id,
        start_date=start_date,
        end_date=end_date,
        total_months=months,
        total_amount=pricing.total_amount,
        payment_session_id=checkout.id,
        customer_email=customer.email,
    )
    await _send_payment_link(
        notifier,
        to=customer.email,
        student_name=customer.name,
        locker_number=locker.number,
        start_date=start_date,
        end_date=end_date,
        total_amount=pricing.total_amount,
        payment_url=checkout.url,
    )
    return CheckoutResult(
        reservation=reservation, session_id=checkout.id, payment_url=checkout.url
    )


def extension_start_for(reservation: Reservation) -> date:
    """Extensions always begin the day after the current end date."""
    return reservation.end_date + timedelta(days=1)


async def create_extension(
    session: AsyncSession,
    *,
    payments: StripeClient,
    notifier: Notifier,
    settings: PaymentSettings,
    reservation_id: uuid.UUID,
    new_end_date: date,
    extension_months: int | None = None,
) -> CheckoutResult:
    """Open a payment session extending an active rental up to ``new_end_date``.

    No key deposit is charged. Availability is checked against active and
    pending reservations other than the one being extended.
    """

    original = await reservation_service.get_reservation(session, reservation_id)
    if original is None:
        raise NotFoundError("Rental not found")
    if original.status != ReservationStatus.ACTIVE:
        raise ValidationError("Only active rentals can be extended")
    if original.is_extension:
        raise ValidationError("Extend the original rental, not an extension")

    extension_start = extension_start_for(original)
    if new_end_date <= extension_start:
        raise ValidationError(
            f"New end date must be after {extension_start.isoformat()}"
        )
    customer_email = original.customer_email or (
        original.student.student_email if original.student else None
    )
    if not customer_email:
        raise ValidationError("No email on file for this rental")
    customer_name = original.student.student_name if original.student else customer_email
    months = (
        extension_months
        if extension_months is not None
        else billable_months(extension_start, new_end_date)
    )

    available = await availability_service.is_locker_available(
        session,
        locker_id=original.locker_id,
        start_date=extension_start,
        end_date=new_end_date,
        exclude_reservation_id=original.id,
    )
    if not available:
        raise LockerUnavailableError(
            original.locker_id, extension_start.isoformat(), new_end_date.isoformat()
        )

    locker = original.locker
    pricing = quote(
        monthly_price=locker.price_per_month,
        months=months,
        include_deposit=False,
        deposit=settings.key_deposit_cents,
    )
    metadata = {
        "locker_id": locker.id,
        "locker_number": locker.number,
        "start_date": extension_start.isoformat(),
        "end_date": new_end_date.isoformat(),
        "total_months": str(months),
        "rental_amount": str(pricing.rental_amount),
        "key_deposit": "0",
        "total_amount": str(pricing.total_amount),
        "student_ref": str(original.student_id) if original.student_id else "",
        "student_email": customer_email,
        "student_name": customer_name,
        "is_extension": "true",
        "original_reservation_id": str(original.id),
    }

    checkout = await asyncio.to_thread(
        payments.create_checkout_session,
        line_items=[
            LineItem(
                name=f"Locker #{locker.number} Extension - {_plural_months(months)}",
                description=f"Extension from {extension_start} to {new_end_date}",
                unit_amount=pricing.rental_amount,
            )
        ],
        metadata=metadata,
        success_url=_success_url(settings),
        cancel_url=_cancel_url(settings),
        customer_email=customer_email,
        expires_at=_session_expiry(settings),
    )

    extension = await reservation_service.create_reservation(
        session,
        locker_id=locker.id,
        start_date=extension_start,
        end_date=new_end_date,
        total_months=months,
        total_amount=pricing.total_amount,
        payment_session_id=checkout.id,
        customer_email=customer_email,
        is_extension=True,
        original_reservation_id=original.id,
    )
    await _send_payment_link(
        notifier,
        to=customer_email,
        student_name=customer_name,
        locker_number=locker.number,
        start_date=extension_start,
        end_date=new_end_date,
        total_amount=pricing.total_amount,
        payment_url=checkout.url,
    )
    return CheckoutResult(
        reservation=extension, session_id=checkout.id, payment_url=checkout.url
    )


__all__ = [
    "CheckoutResult",
    "Customer",
    "create_checkout",
    "create_extension",
    "extension_start_for",
]
