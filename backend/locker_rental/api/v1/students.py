"""Student registration endpoints used by the booking flow."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from locker_rental.api import deps
from locker_rental.core.exceptions import DomainError
from locker_rental.schemas.student import (
    StudentCreate,
    StudentRead,
    StudentValidateRequest,
)
from locker_rental.services import student_service

router = APIRouter(prefix="/students", tags=["students"])


@router.post("", response_model=StudentRead)
async def create_student(
    payload: StudentCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> StudentRead:
    try:
        student = await student_service.upsert_student(
            session,
            student_name=payload.student_name,
            student_number=payload.student_number,
            student_email=str(payload.student_email),
        )
    except DomainError as exc:
        raise exc.to_http_exception() from exc
    return StudentRead.model_validate(student)


@router.post("/validate", response_model=StudentRead | None)
async def validate_student(
    payload: StudentValidateRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> StudentRead | None:
    student = await student_service.get_by_student_number(
        session, payload.student_number
    )
    if student is None:
        return None
    return StudentRead.model_validate(student)
