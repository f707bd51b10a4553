"""Reservation persistence helpers.

Writes are single ``UPDATE`` statements so that a status patch and every
column changed with it land atomically, together with ``updated_at``.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from locker_rental.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    ValidationError,
)
from locker_rental.models.mixins import utcnow
from locker_rental.models.reservation import Reservation, ReservationStatus

logger = logging.getLogger(__name__)

_ALLOWED_STATUS_TRANSITIONS: dict[ReservationStatus, set[ReservationStatus]] = {
    ReservationStatus.PENDING: {
        ReservationStatus.ACTIVE,
        ReservationStatus.EXPIRED,
        ReservationStatus.CANCELED,
        ReservationStatus.INCOMPLETE,
    },
    ReservationStatus.INCOMPLETE: {
        ReservationStatus.ACTIVE,
        ReservationStatus.EXPIRED,
        ReservationStatus.CANCELED,
    },
    ReservationStatus.ACTIVE: {
        ReservationStatus.COMPLETED,
        ReservationStatus.CANCELED,
        ReservationStatus.PAST_DUE,
    },
    ReservationStatus.PAST_DUE: {ReservationStatus.ACTIVE, ReservationStatus.CANCELED},
    ReservationStatus.EXPIRED: set(),
    ReservationStatus.CANCELED: set(),
    ReservationStatus.COMPLETED: set(),
}

_PATCHABLE_FIELDS = frozenset(
    {
        "payment_session_id",
        "payment_intent_id",
        "payer_account_id",
        "customer_email",
        "status",
        "start_date",
        "end_date",
        "total_months",
        "total_amount",
        "student_id",
        "is_extension",
    }
)


def _base_query():
    return (
        select(Reservation)
        .options(selectinload(Reservation.locker), selectinload(Reservation.student))
        .execution_options(populate_existing=True)
    )


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return target in _ALLOWED_STATUS_TRANSITIONS.get(current, set())


def _validate_status_transition(
    current: ReservationStatus, target: ReservationStatus
) -> None:
    if target == current:
        return
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)


def _validate_fields(
    *, start_date: date, end_date: date, total_months: int, total_amount: int
) -> None:
    if end_date <= start_date:
        raise ValidationError("End date must be after start date")
    if total_months < 1:
        raise ValidationError("Rental must be at least 1 month")
    if total_amount < 0:
        raise ValidationError("Amount must not be negative")


async def get_reservation(
    session: AsyncSession, reservation_id: uuid.UUID
) -> Reservation | None:
    result = await session.execute(_base_query().where(Reservation.id == reservation_id))
    return result.scalars().one_or_none()


async def get_by_payment_session_id(
    session: AsyncSession, payment_session_id: str
) -> Reservation | None:
    result = await session.execute(
        _base_query().where(Reservation.payment_session_id == payment_session_id)
    )
    return result.scalars().one_or_none()


async def list_for_locker(
    session: AsyncSession,
    locker_id: str,
    *,
    statuses: Iterable[ReservationStatus] | None = None,
) -> Sequence[Reservation]:
    stmt = (
        _base_query()
        .where(Reservation.locker_id == locker_id)
        .order_by(Reservation.start_date)
    )
    if statuses is not None:
        stmt = stmt.where(Reservation.status.in_(list(statuses)))
    result = await session.execute(stmt)
    return result.scalars().all()


async def create_reservation(
    session: AsyncSession,
    *,
    locker_id: str,
    start_date: date,
    end_date: date,
    total_months: int,
    total_amount: int,
    payment_session_id: str | None = None,
    customer_email: str | None = None,
    status: ReservationStatus = ReservationStatus.PENDING,
    is_extension: bool = False,
    original_reservation_id: uuid.UUID | None = None,
    student_id: uuid.UUID | None = None,
) -> Reservation:
    """Persist a new reservation.

    Raises ``ConflictError`` when ``payment_session_id`` is already used.
    """

    _validate_fields(
        start_date=start_date,
        end_date=end_date,
        total_months=total_months,
        total_amount=total_amount,
    )
    if payment_session_id is not None:
        existing = await get_by_payment_session_id(session, payment_session_id)
        if existing is not None:
            raise ConflictError(
                "A reservation already exists for this payment session",
                code="DUPLICATE_PAYMENT_SESSION",
                details={"payment_session_id": payment_session_id},
            )

    reservation = Reservation(
        locker_id=locker_id,
        start_date=start_date,
        end_date=end_date,
        total_months=total_months,
        total_amount=total_amount,
        payment_session_id=payment_session_id,
        customer_email=customer_email,
        status=status,
        is_extension=is_extension,
        original_reservation_id=original_reservation_id,
        student_id=student_id,
    )
    session.add(reservation)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError(
            "A reservation already exists for this payment session",
            code="DUPLICATE_PAYMENT_SESSION",
            details={"payment_session_id": payment_session_id},
        ) from exc
    await session.refresh(reservation)
    logger.info(
        "Created %s reservation %s for locker %s (%s to %s)",
        reservation.status.value,
        reservation.id,
        locker_id,
        start_date,
        end_date,
    )
    return reservation


async def update_reservation(
    session: AsyncSession,
    reservation_id: uuid.UUID,
    changes: Mapping[str, Any],
    *,
    expected_status: ReservationStatus | None = None,
) -> Reservation | None:
    """Apply a partial patch in one statement and return the fresh row.

    Returns ``None`` when no row matched, either because the id is unknown
    or because the row no longer has ``expected_status``.
    """

    unknown = set(changes) - _PATCHABLE_FIELDS
    if unknown:
        raise ValueError(f"Unsupported reservation fields: {sorted(unknown)}")

    stmt = (
        update(Reservation)
        .where(Reservation.id == reservation_id)
        .values(**changes, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if expected_status is not None:
        stmt = stmt.where(Reservation.status == expected_status)
    try:
        result = await session.execute(stmt)
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Reservation update violates a constraint") from exc
    if result.rowcount == 0:
        return None
    return await get_reservation(session, reservation_id)


async def update_by_payment_session_id(
    session: AsyncSession,
    payment_session_id: str,
    changes: Mapping[str, Any],
) -> Reservation | None:
    reservation = await get_by_payment_session_id(session, payment_session_id)
    if reservation is None:
        return None
    return await update_reservation(session, reservation.id, changes)


async def transition_status(
    session: AsyncSession,
    reservation: Reservation,
    target: ReservationStatus,
    **changes: Any,
) -> bool:
    """Move ``reservation`` to ``target`` along with ``changes``.

    The update is conditional on the status read beforehand, so of two
    concurrent callers only one observes ``True``. Returns ``False`` when the
    reservation already has the target status or was changed by someone else.
    Raises ``InvalidTransitionError`` for transitions outside the lifecycle.
    """

    current = reservation.status
    _validate_status_transition(current, target)
    if current == target:
        return False
    updated = await update_reservation(
        session,
        reservation.id,
        {**changes, "status": target},
        expected_status=current,
    )
    if updated is None:
        logger.info(
            "Reservation %s changed concurrently; %s transition skipped",
            reservation.id,
            target.value,
        )
        return False
    logger.info(
        "Reservation %s moved from %s to %s",
        reservation.id,
        current.value,
        target.value,
    )
    return True


async def link_to_student(
    session: AsyncSession, reservation_id: uuid.UUID, student_id: uuid.UUID
) -> Reservation | None:
    return await update_reservation(session, reservation_id, {"student_id": student_id})


__all__ = [
    "can_transition",
    "create_reservation",
    "get_by_payment_session_id",
    "get_reservation",
    "link_to_student",
    "list_for_locker",
    "transition_status",
    "update_by_payment_session_id",
    "update_reservation",
]
