"""Student records linked to paid reservations."""
from __future__ import annotations

import uuid

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from locker_rental.db.base import Base
from locker_rental.models.mixins import TimestampMixin


class Student(TimestampMixin, Base):
    """A renter identified by their school-issued student number."""

    __tablename__ = "students"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    student_name: Mapped[str] = mapped_column(String(255), nullable=False)
    student_number: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True
    )
    student_email: Mapped[str] = mapped_column(String(320), nullable=False)
