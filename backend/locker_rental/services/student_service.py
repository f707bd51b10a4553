"""Student record helpers."""
from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from locker_rental.core.exceptions import ValidationError
from locker_rental.models.student import Student

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_student(session: AsyncSession, student_id: uuid.UUID) -> Student | None:
    return await session.get(Student, student_id)


async def get_by_student_number(
    session: AsyncSession, student_number: str
) -> Student | None:
    result = await session.execute(
        select(Student).where(Student.student_number == student_number.strip())
    )
    return result.scalars().one_or_none()


async def get_by_email(session: AsyncSession, email: str) -> Student | None:
    result = await session.execute(
        select(Student)
        .where(func.lower(Student.student_email) == _normalize_email(email))
        .order_by(Student.updated_at.desc())
        .limit(1)
    )
    return result.scalars().first()


async def upsert_student(
    session: AsyncSession,
    *,
    student_name: str,
    student_number: str,
    student_email: str,
) -> Student:
    """Create a student, or refresh name and e-mail for a known number."""
    name = student_name.strip()
    number = student_number.strip()
    if not name or not number:
        raise ValidationError("Student name and number are required")

    student = await get_by_student_number(session, number)
    if student is None:
        student = Student(
            student_name=name,
            student_number=number,
            student_email=_normalize_email(student_email),
        )
        session.add(student)
        logger.info("Registered student %s", number)
    else:
        student.student_name = name
        student.student_email = _normalize_email(student_email)
    await session.commit()
    await session.refresh(student)
    return student


async def resolve_student_ref(
    session: AsyncSession, student_ref: str | None
) -> Student | None:
    """Find a student by UUID or by student number; ``None`` if unknown."""
    if not student_ref:
        return None
    try:
        student = await get_student(session, uuid.UUID(student_ref))
    except ValueError:
        student = None
    if student is None:
        student = await get_by_student_number(session, student_ref)
    return student


__all__ = [
    "get_by_email",
    "get_by_student_number",
    "get_student",
    "resolve_student_ref",
    "upsert_student",
]
