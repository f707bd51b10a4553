"""Locker models."""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from locker_rental.db.base import Base

if TYPE_CHECKING:  # pragma: no cover
    from locker_rental.models.reservation import Reservation

LOCKER_PRICE_CENTS = 5000


class Locker(Base):
    """A physical locker; seeded once and read-only afterwards."""

    __tablename__ = "lockers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    number: Mapped[str] = mapped_column(String(16), nullable=False, unique=True)
    price_per_month: Mapped[int] = mapped_column(
        Integer, nullable=False, default=LOCKER_PRICE_CENTS
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    reservations: Mapped[list["Reservation"]] = relationship(
        "Reservation", back_populates="locker"
    )
