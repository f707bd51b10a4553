"""Schemas for waitlist entries."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from locker_rental.models.waitlist_entry import WaitlistStatus


class WaitlistEntryCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    student_number: str = Field(min_length=1, max_length=64)
    potential_start_date: date
    potential_end_date: date
    status: WaitlistStatus = WaitlistStatus.NONE

    @model_validator(mode="after")
    def _check_dates(self) -> "WaitlistEntryCreate":
        if self.potential_start_date > self.potential_end_date:
            raise ValueError("potential_start_date must be on or before potential_end_date")
        return self


class WaitlistEntryUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    student_number: str | None = Field(default=None, min_length=1, max_length=64)
    potential_start_date: date | None = None
    potential_end_date: date | None = None
    status: WaitlistStatus | None = None


class WaitlistEntryRead(BaseModel):
    id: uuid.UUID
    full_name: str
    email: str
    student_number: str
    potential_start_date: date
    potential_end_date: date
    status: WaitlistStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
