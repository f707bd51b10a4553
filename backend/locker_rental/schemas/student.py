"""Schemas for student records."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class StudentCreate(BaseModel):
    student_name: str = Field(min_length=1, max_length=255)
    student_number: str = Field(min_length=1, max_length=64)
    student_email: EmailStr


class StudentValidateRequest(BaseModel):
    student_number: str = Field(min_length=1, max_length=64)


class StudentRead(BaseModel):
    id: uuid.UUID
    student_name: str
    student_number: str
    student_email: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
