"""Reconcile reservations with checkout session lifecycle events.

Events are delivered at least once and possibly out of order across sessions.
Every handler looks the reservation up by payment session id, tolerates a
missing row and applies side effects only on the call that actually moved the
reservation, so redelivery converges on the same state.
"""

from __future__ import annotations

import logging
import uuid
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from locker_rental.core.exceptions import InvalidTransitionError
from locker_rental.integrations.stripe_client import (
    SESSION_COMPLETED,
    SESSION_EXPIRED,
    SessionEvent,
)
from locker_rental.models.reservation import Reservation, ReservationStatus
from locker_rental.services import reservation_service, student_service, waitlist_service
from locker_rental.services.notification_service import Notifier

logger = logging.getLogger(__name__)


class WebhookOutcome(str, Enum):
    PROCESSED = "processed"
    IGNORED = "ignored"


def _metadata_flag(value: str | None) -> bool:
    return (value or "").strip().lower() == "true"


def _metadata_uuid(value: str | None) -> uuid.UUID | None:
    if not value:
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        logger.warning("Ignoring malformed reservation id %r in session metadata", value)
        return None


async def _link_student(
    session: AsyncSession, reservation: Reservation, student_ref: str | None
) -> None:
    student = await student_service.resolve_student_ref(session, student_ref)
    if student is None:
        if student_ref:
            logger.info(
                "Student %s not found; reservation %s left unlinked",
                student_ref,
                reservation.id,
            )
        return
    if reservation.student_id != student.id:
        await reservation_service.link_to_student(session, reservation.id, student.id)


async def _detach_extension(
    session: AsyncSession, extension: Reservation, reason: str
) -> None:
    logger.warning(
        "Extension %s kept as a standalone rental: %s", extension.id, reason
    )
    await reservation_service.update_reservation(
        session, extension.id, {"is_extension": False}
    )


async def _merge_extension(
    session: AsyncSession, extension: Reservation, original_id: uuid.UUID | None
) -> None:
    """Fold a paid extension into the rental it extends.

    The merge only applies while the original is still ``active``. When the
    original has been completed or canceled in the meantime, the extension
    stays on its own as a regular rental.
    """
    original_id = original_id or extension.original_reservation_id
    if original_id is None:
        await _detach_extension(session, extension, "no original reservation")
        return
    original = await reservation_service.get_reservation(session, original_id)
    if original is None:
        await _detach_extension(session, extension, f"original {original_id} not found")
        return
    if original.status != ReservationStatus.ACTIVE:
        await _detach_extension(
            session, extension, f"original {original.id} is {original.status.value}"
        )
        return

    merged = await reservation_service.update_reservation(
        session,
        original.id,
        {
            "end_date": max(original.end_date, extension.end_date),
            "total_amount": original.total_amount + extension.total_amount,
            "total_months": original.total_months + extension.total_months,
        },
        expected_status=ReservationStatus.ACTIVE,
    )
    if merged is None:
        await _detach_extension(
            session, extension, f"original {original.id} changed concurrently"
        )
        return
    logger.info("Extended reservation %s end date to %s", merged.id, merged.end_date)


async def _welcome_and_dequeue(
    session: AsyncSession,
    notifier: Notifier,
    reservation: Reservation,
    event: SessionEvent,
) -> None:
    metadata = event.metadata
    student_email = metadata.get("student_email") or reservation.customer_email
    student_name = metadata.get("student_name")
    if student_email and student_name:
        await notifier.send_welcome(
            to=student_email,
            student_name=student_name,
            locker_number=metadata.get("locker_number") or reservation.locker.number,
            start_date=reservation.start_date.isoformat(),
            end_date=reservation.end_date.isoformat(),
        )

    waitlist_email = event.customer_email or metadata.get("student_email")
    if not waitlist_email:
        return
    try:
        await waitlist_service.remove_by_email(session, waitlist_email)
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("Failed to remove %s from the waitlist", waitlist_email)


async def handle_session_completed(
    session: AsyncSession, notifier: Notifier, event: SessionEvent
) -> WebhookOutcome:
    reservation = await reservation_service.get_by_payment_session_id(
        session, event.session_id
    )
    if reservation is None:
        logger.info("No reservation for completed session %s", event.session_id)
        return WebhookOutcome.IGNORED

    changes: dict[str, str] = {}
    if event.payment_intent_id:
        changes["payment_intent_id"] = event.payment_intent_id
    if event.payer_account_id:
        changes["payer_account_id"] = event.payer_account_id
    if event.customer_email and not reservation.customer_email:
        changes["customer_email"] = event.customer_email

    try:
        activated = await reservation_service.transition_status(
            session, reservation, ReservationStatus.ACTIVE, **changes
        )
    except InvalidTransitionError:
        logger.warning(
            "Completed session %s for %s reservation %s; skipping",
            event.session_id,
            reservation.status.value,
            reservation.id,
        )
        return WebhookOutcome.IGNORED

    await _link_student(session, reservation, event.metadata.get("student_ref"))

    if not activated:
        logger.info("Session %s already reconciled", event.session_id)
        return WebhookOutcome.PROCESSED

    is_extension = reservation.is_extension or _metadata_flag(
        event.metadata.get("is_extension")
    )
    if is_extension:
        await _merge_extension(
            session,
            reservation,
            _metadata_uuid(event.metadata.get("original_reservation_id")),
        )
    else:
        await _welcome_and_dequeue(session, notifier, reservation, event)
    return WebhookOutcome.PROCESSED


async def handle_session_expired(
    session: AsyncSession, notifier: Notifier, event: SessionEvent
) -> WebhookOutcome:
    reservation = await reservation_service.get_by_payment_session_id(
        session, event.session_id
    )
    if reservation is None:
        logger.info("No reservation for expired session %s", event.session_id)
        return WebhookOutcome.IGNORED

    try:
        expired = await reservation_service.transition_status(
            session, reservation, ReservationStatus.EXPIRED
        )
    except InvalidTransitionError:
        logger.warning(
            "Expired session %s for %s reservation %s; skipping",
            event.session_id,
            reservation.status.value,
            reservation.id,
        )
        return WebhookOutcome.IGNORED
    if not expired:
        return WebhookOutcome.PROCESSED

    locker_number = event.metadata.get("locker_number")
    if locker_number:
        waitlist_count = await waitlist_service.count_entries(session)
        await notifier.send_admin_locker_available(
            locker_number=locker_number,
            previous_renter_name=event.metadata.get("student_name") or None,
            previous_renter_email=event.metadata.get("student_email") or None,
            waitlist_count=waitlist_count,
        )
    return WebhookOutcome.PROCESSED


async def dispatch_event(
    session: AsyncSession, notifier: Notifier, event: SessionEvent
) -> WebhookOutcome:
    if event.type == SESSION_COMPLETED:
        return await handle_session_completed(session, notifier, event)
    if event.type == SESSION_EXPIRED:
        return await handle_session_expired(session, notifier, event)
    return WebhookOutcome.IGNORED


__all__ = [
    "WebhookOutcome",
    "dispatch_event",
    "handle_session_completed",
    "handle_session_expired",
]
