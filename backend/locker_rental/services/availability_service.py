"""Locker lookup and date-range availability checks."""
from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from sqlalchemy import Integer, cast, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from locker_rental.core.exceptions import NotFoundError, ValidationError
from locker_rental.models.locker import LOCKER_PRICE_CENTS, Locker
from locker_rental.models.reservation import Reservation, ReservationStatus

LOCKER_COUNT = 42

# Statuses that make a locker occupied for the plain availability check.
_OCCUPYING_STATUSES = (ReservationStatus.ACTIVE,)
# The exclusion-aware variant also treats unpaid holds as occupying.
_OCCUPYING_STATUSES_WITH_PENDING = (
    ReservationStatus.ACTIVE,
    ReservationStatus.PENDING,
)


@dataclass(slots=True)
class LockerAvailability:
    locker: Locker
    available: bool


def ranges_overlap(
    a_start: date, a_end: date, b_start: date, b_end: date
) -> bool:
    """Return True when the inclusive ranges share at least one calendar day."""
    return a_start <= b_end and a_end >= b_start


def validate_range(start_date: date, end_date: date) -> None:
    if start_date > end_date:
        raise ValidationError("End date must not be before start date")


def _overlap_query(
    locker_id: str,
    start_date: date,
    end_date: date,
    *,
    exclude_reservation_id: uuid.UUID | None,
):
    statuses = (
        _OCCUPYING_STATUSES
        if exclude_reservation_id is None
        else _OCCUPYING_STATUSES_WITH_PENDING
    )
    stmt = (
        select(Reservation.id)
        .where(Reservation.locker_id == locker_id)
        .where(Reservation.status.in_(statuses))
        .where(Reservation.start_date <= end_date)
        .where(Reservation.end_date >= start_date)
    )
    if exclude_reservation_id is not None:
        stmt = stmt.where(Reservation.id != exclude_reservation_id)
    return stmt


async def is_locker_available(
    session: AsyncSession,
    *,
    locker_id: str,
    start_date: date,
    end_date: date,
    exclude_reservation_id: uuid.UUID | None = None,
) -> bool:
    """Check whether ``locker_id`` is free for ``[start_date, end_date]``.

    Without ``exclude_reservation_id`` only ``active`` reservations occupy a
    locker. With it, ``pending`` reservations occupy the locker too and the
    excluded reservation is ignored; extensions use this variant so that a
    second unpaid extension over the same days is refused.
    """

    validate_range(start_date, end_date)
    stmt = _overlap_query(
        locker_id,
        start_date,
        end_date,
        exclude_reservation_id=exclude_reservation_id,
    ).limit(1)
    result = await session.execute(stmt)
    return result.scalar_one_or_none() is None


def _numeric_order():
    return cast(Locker.number, Integer)


async def get_locker(session: AsyncSession, locker_id: str) -> Locker:
    locker = await session.get(Locker, locker_id)
    if locker is None:
        raise NotFoundError(f"Locker {locker_id} not found")
    return locker


async def list_lockers(session: AsyncSession) -> Sequence[Locker]:
    result = await session.execute(select(Locker).order_by(_numeric_order()))
    return result.scalars().all()


async def count_lockers(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(Locker))
    return int(result.scalar_one())


async def list_lockers_with_availability(
    session: AsyncSession,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[LockerAvailability]:
    """Return every locker flagged free or occupied for the requested range.

    A lone ``start_date`` is treated as a single-day range. Without dates all
    lockers are reported as available.
    """

    lockers = await list_lockers(session)
    if start_date is None:
        return [LockerAvailability(locker=locker, available=True) for locker in lockers]

    end = end_date or start_date
    validate_range(start_date, end)
    stmt = (
        select(Reservation.locker_id)
        .where(Reservation.status.in_(_OCCUPYING_STATUSES))
        .where(Reservation.start_date <= end)
        .where(Reservation.end_date >= start_date)
        .distinct()
    )
    result = await session.execute(stmt)
    occupied = set(result.scalars().all())
    return [
        LockerAvailability(locker=locker, available=locker.id not in occupied)
        for locker in lockers
    ]


async def seed_lockers(
    session: AsyncSession, *, count: int = LOCKER_COUNT
) -> int:
    """Insert lockers ``01``..``count`` when the table is empty."""

    if await count_lockers(session):
        return 0
    width = max(2, len(str(count)))
    for index in range(1, count + 1):
        session.add(
            Locker(
                id=f"locker_{index}",
                number=str(index).zfill(width),
                price_per_month=LOCKER_PRICE_CENTS,
            )
        )
    await session.commit()
    return count


__all__ = [
    "LOCKER_COUNT",
    "LockerAvailability",
    "count_lockers",
    "get_locker",
    "is_locker_available",
    "list_lockers",
    "list_lockers_with_availability",
    "ranges_overlap",
    "seed_lockers",
    "validate_range",
]
