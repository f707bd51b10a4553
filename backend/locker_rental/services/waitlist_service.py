"""Waitlist management services."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import date

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from locker_rental.core.exceptions import ConflictError, NotFoundError, ValidationError
from locker_rental.models.waitlist_entry import WaitlistEntry, WaitlistStatus

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = (
    "full_name",
    "email",
    "student_number",
    "potential_start_date",
    "potential_end_date",
    "status",
)


async def _ensure_unique(
    session: AsyncSession,
    *,
    email: str | None,
    student_number: str | None,
    exclude_id: uuid.UUID | None = None,
) -> None:
    clauses = []
    if email is not None:
        clauses.append(WaitlistEntry.email == email)
    if student_number is not None:
        clauses.append(WaitlistEntry.student_number == student_number)
    if not clauses:
        return
    stmt = select(WaitlistEntry).where(or_(*clauses))
    if exclude_id is not None:
        stmt = stmt.where(WaitlistEntry.id != exclude_id)
    result = await session.execute(stmt.limit(1))
    duplicate = result.scalars().first()
    if duplicate is None:
        return
    field = "email" if email is not None and duplicate.email == email else "student number"
    raise ConflictError(
        f"A waitlist entry with this {field} already exists",
        code="DUPLICATE_WAITLIST_ENTRY",
        details={"field": field},
    )


def _validate_dates(start: date, end: date) -> None:
    if start > end:
        raise ValidationError("Potential end date must not be before start date")


async def add_entry(
    session: AsyncSession,
    *,
    full_name: str,
    email: str,
    student_number: str,
    potential_start_date: date,
    potential_end_date: date,
    status: WaitlistStatus = WaitlistStatus.NONE,
) -> WaitlistEntry:
    email = email.strip().lower()
    student_number = student_number.strip()
    _validate_dates(potential_start_date, potential_end_date)
    await _ensure_unique(session, email=email, student_number=student_number)

    entry = WaitlistEntry(
        full_name=full_name.strip(),
        email=email,
        student_number=student_number,
        potential_start_date=potential_start_date,
        potential_end_date=potential_end_date,
        status=status,
    )
    session.add(entry)
    await session.commit()
    await session.refresh(entry)
    logger.info("Added %s to the waitlist", email)
    return entry


async def list_entries(session: AsyncSession) -> Sequence[WaitlistEntry]:
    result = await session.execute(
        select(WaitlistEntry).order_by(WaitlistEntry.created_at.asc())
    )
    return result.scalars().all()


async def get_entry(session: AsyncSession, entry_id: uuid.UUID) -> WaitlistEntry:
    entry = await session.get(WaitlistEntry, entry_id)
    if entry is None:
        raise NotFoundError("Waitlist entry not found")
    return entry


async def update_entry(
    session: AsyncSession, entry_id: uuid.UUID, **changes: object
) -> WaitlistEntry | None:
    """Patch an entry; marking it ``paid`` removes it and returns ``None``."""

    entry = await get_entry(session, entry_id)
    changes = {key: value for key, value in changes.items() if value is not None}
    unknown = set(changes) - set(_UPDATABLE_FIELDS)
    if unknown:
        raise ValueError(f"Unsupported waitlist fields: {sorted(unknown)}")

    if changes.get("status") == WaitlistStatus.PAID:
        await session.delete(entry)
        await session.commit()
        logger.info("Waitlist entry %s paid; removed", entry_id)
        return None

    if "email" in changes:
        changes["email"] = str(changes["email"]).strip().lower()
    await _ensure_unique(
        session,
        email=changes.get("email"),  # type: ignore[arg-type]
        student_number=changes.get("student_number"),  # type: ignore[arg-type]
        exclude_id=entry.id,
    )
    _validate_dates(
        changes.get("potential_start_date", entry.potential_start_date),  # type: ignore[arg-type]
        changes.get("potential_end_date", entry.potential_end_date),  # type: ignore[arg-type]
    )
    for field, value in changes.items():
        setattr(entry, field, value)
    await session.commit()
    await session.refresh(entry)
    return entry


async def delete_entry(session: AsyncSession, entry_id: uuid.UUID) -> None:
    entry = await get_entry(session, entry_id)
    await session.delete(entry)
    await session.commit()


async def remove_by_email(session: AsyncSession, email: str) -> bool:
    result = await session.execute(
        delete(WaitlistEntry).where(WaitlistEntry.email == email.strip().lower())
    )
    await session.commit()
    removed = bool(result.rowcount)
    if removed:
        logger.info("Removed %s from the waitlist after payment", email)
    return removed


async def count_entries(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(WaitlistEntry))
    return int(result.scalar_one())


__all__ = [
    "add_entry",
    "count_entries",
    "delete_entry",
    "get_entry",
    "list_entries",
    "remove_by_email",
    "update_entry",
]
