"""Scheduled maintenance sweeps over active rentals.

Both sweeps are triggered from outside the process (see ``api.v1.cron``) and
are safe to run repeatedly.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from locker_rental.models.mixins import utcnow
from locker_rental.models.reservation import Reservation, ReservationStatus
from locker_rental.services.rental_service import RentalRecord, rental_query, to_records

logger = logging.getLogger(__name__)


async def expire_ended_reservations(
    session: AsyncSession, *, today: date | None = None
) -> list[RentalRecord]:
    """Complete every active rental whose end date is on or before ``today``.

    Returns only the rows this call flipped, extension history rows included. A
    second run without new data returns an empty list.
    """

    today = today or date.today()
    result = await session.execute(
        update(Reservation)
        .where(Reservation.status == ReservationStatus.ACTIVE)
        .where(Reservation.end_date <= today)
        .values(status=ReservationStatus.COMPLETED, updated_at=utcnow())
        .returning(Reservation.id)
        .execution_options(synchronize_session=False)
    )
    flipped = list(result.scalars().all())
    await session.commit()
    if not flipped:
        return []

    result = await session.execute(
        rental_query()
        .where(Reservation.id.in_(flipped))
        .order_by(Reservation.end_date)
    )
    records = to_records(result.scalars().all())
    logger.info("Completed %d ended rentals", len(records))
    return records


async def find_reservations_expiring_tomorrow(
    session: AsyncSession, *, today: date | None = None
) -> list[RentalRecord]:
    """Active rentals whose last day is tomorrow; read-only."""

    tomorrow = (today or date.today()) + timedelta(days=1)
    result = await session.execute(
        rental_query()
        .where(Reservation.status == ReservationStatus.ACTIVE)
        .where(Reservation.is_extension.is_(False))
        .where(Reservation.end_date == tomorrow)
        .order_by(Reservation.locker_id)
    )
    return to_records(result.scalars().all())


__all__ = ["expire_ended_reservations", "find_reservations_expiring_tomorrow"]
