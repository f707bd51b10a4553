"""Admin-facing rental listings and dashboard analytics.

Extension rows are left out of every figure here: once paid, their range
and amount are already folded into the rental they extend.
"""
from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from locker_rental.models.reservation import Reservation, ReservationStatus
from locker_rental.services.availability_service import count_lockers

_REVENUE_STATUSES = (ReservationStatus.ACTIVE, ReservationStatus.COMPLETED)


@dataclass(slots=True)
class RentalRecord:
    id: uuid.UUID
    locker_id: str
    locker_number: str
    student_name: str | None
    student_email: str | None
    start_date: date
    end_date: date
    status: ReservationStatus
    total_amount: int

    @classmethod
    def from_reservation(cls, reservation: Reservation) -> "RentalRecord":
        student = reservation.student
        return cls(
            id=reservation.id,
            locker_id=reservation.locker_id,
            locker_number=reservation.locker.number,
            student_name=student.student_name if student else None,
            student_email=(
                student.student_email if student else None
            ) or reservation.customer_email,
            start_date=reservation.start_date,
            end_date=reservation.end_date,
            status=reservation.status,
            total_amount=reservation.total_amount,
        )


@dataclass(slots=True)
class Analytics:
    total_revenue: int
    unique_students: int
    total_rentals: int
    active_rentals: int
    occupancy_rate: float


def rental_query():
    return (
        select(Reservation)
        .options(selectinload(Reservation.locker), selectinload(Reservation.student))
        .execution_options(populate_existing=True)
    )


def to_records(reservations: Iterable[Reservation]) -> list[RentalRecord]:
    return [RentalRecord.from_reservation(reservation) for reservation in reservations]


async def list_rentals(
    session: AsyncSession,
    *,
    status: ReservationStatus | None = None,
    include_extensions: bool = False,
) -> list[RentalRecord]:
    stmt = rental_query()
    if not include_extensions:
        stmt = stmt.where(Reservation.is_extension.is_(False))
    if status is None:
        stmt = stmt.order_by(Reservation.created_at.desc())
    else:
        stmt = stmt.where(Reservation.status == status).order_by(
            Reservation.start_date.asc()
        )
    result = await session.execute(stmt)
    return to_records(result.scalars().all())


async def get_rental(
    session: AsyncSession, reservation_id: uuid.UUID
) -> Reservation | None:
    result = await session.execute(
        rental_query().where(Reservation.id == reservation_id)
    )
    return result.scalars().one_or_none()


async def _scalar(session: AsyncSession, stmt) -> int:
    result = await session.execute(stmt)
    return int(result.scalar_one() or 0)


async def get_analytics(session: AsyncSession) -> Analytics:
    rentals = Reservation.is_extension.is_(False)
    total_revenue = await _scalar(
        session,
        select(func.coalesce(func.sum(Reservation.total_amount), 0)).where(
            rentals, Reservation.status.in_(_REVENUE_STATUSES)
        ),
    )
    unique_students = await _scalar(
        session,
        select(func.count(func.distinct(Reservation.student_id))).where(
            Reservation.student_id.is_not(None)
        ),
    )
    total_rentals = await _scalar(
        session,
        select(func.count())
        .select_from(Reservation)
        .where(rentals, Reservation.status != ReservationStatus.EXPIRED),
    )
    active_rentals = await _scalar(
        session,
        select(func.count())
        .select_from(Reservation)
        .where(rentals, Reservation.status == ReservationStatus.ACTIVE),
    )
    lockers = await count_lockers(session)
    occupancy = (active_rentals / lockers) * 100 if lockers else 0.0
    return Analytics(
        total_revenue=total_revenue,
        unique_students=unique_students,
        total_rentals=total_rentals,
        active_rentals=active_rentals,
        occupancy_rate=round(occupancy, 1),
    )


__all__ = [
    "Analytics",
    "RentalRecord",
    "get_analytics",
    "get_rental",
    "list_rentals",
    "rental_query",
    "to_records",
]
