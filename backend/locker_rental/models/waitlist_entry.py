"""Waitlist models for students waiting on a free locker."""

from __future__ import annotations

import enum
import uuid
from datetime import date

from sqlalchemy import CheckConstraint, Date, Enum, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from locker_rental.db.base import Base
from locker_rental.models.mixins import TimestampMixin


class WaitlistStatus(str, enum.Enum):
    """Follow-up state tracked by the admin for each entry."""

    NONE = "none"
    CONTACTED = "contacted"
    LINK_SENT = "link_sent"
    NOT_NEEDED = "not_needed"
    PAID = "paid"


class WaitlistEntry(TimestampMixin, Base):
    """A student waiting for a locker to become available."""

    __tablename__ = "waitlist_entries"
    __table_args__ = (
        Index("ix_waitlist_created_at", "created_at"),
        CheckConstraint(
            "potential_start_date <= potential_end_date",
            name="ck_waitlist_date_order",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    student_number: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True
    )
    potential_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    potential_end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[WaitlistStatus] = mapped_column(
        Enum(
            WaitlistStatus,
            name="waitlist_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=WaitlistStatus.NONE,
    )
