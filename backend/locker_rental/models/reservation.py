"""Reservation models."""
from __future__ import annotations

import enum
import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from locker_rental.db.base import Base
from locker_rental.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover
    from locker_rental.models.locker import Locker
    from locker_rental.models.student import Student


class ReservationStatus(str, enum.Enum):
    """Lifecycle states for reservations.

    ``past_due`` and ``incomplete`` are reserved for richer billing flows and
    are never entered by checkout, webhook or sweep handling.
    """

    PENDING = "pending"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    EXPIRED = "expired"
    COMPLETED = "completed"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Reservation(TimestampMixin, Base):
    """A booking of one locker for an inclusive date range."""

    __tablename__ = "reservations"
    __table_args__ = (
        Index("ix_reservations_locker_status", "locker_id", "status"),
        Index("ix_reservations_dates", "start_date", "end_date"),
        Index("ix_reservations_student", "student_id"),
        CheckConstraint("end_date > start_date", name="ck_reservations_date_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    payment_session_id: Mapped[str | None] = mapped_column(
        String(255), unique=True, nullable=True
    )
    payment_intent_id: Mapped[str | None] = mapped_column(String(255))
    payer_account_id: Mapped[str | None] = mapped_column(String(255))
    customer_email: Mapped[str | None] = mapped_column(String(320))
    locker_id: Mapped[str] = mapped_column(
        ForeignKey("lockers.id"), nullable=False
    )
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(
            ReservationStatus,
            name="reservation_status",
            values_callable=_enum_values,
        ),
        default=ReservationStatus.PENDING,
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_months: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    is_extension: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    original_reservation_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("reservations.id", ondelete="SET NULL"), nullable=True
    )
    student_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("students.id", ondelete="SET NULL"), nullable=True
    )

    locker: Mapped["Locker"] = relationship("Locker", back_populates="reservations")
    student: Mapped["Student | None"] = relationship("Student")
    original_reservation: Mapped["Reservation | None"] = relationship(
        "Reservation", remote_side=[id]
    )
