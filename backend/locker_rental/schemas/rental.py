"""Schemas for the admin dashboard."""

from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, ConfigDict

from locker_rental.models.reservation import ReservationStatus


class RentalRead(BaseModel):
    id: uuid.UUID
    locker_id: str
    locker_number: str
    student_name: str | None = None
    student_email: str | None = None
    start_date: date
    end_date: date
    status: ReservationStatus
    total_amount: int

    model_config = ConfigDict(from_attributes=True)


class AnalyticsRead(BaseModel):
    total_revenue: int
    unique_students: int
    total_rentals: int
    active_rentals: int
    occupancy_rate: float

    model_config = ConfigDict(from_attributes=True)


class AdminLoginRequest(BaseModel):
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class RefundRequestResponse(BaseModel):
    sent: bool
    deposit_amount: int


class ExpiryReminderResult(BaseModel):
    sent: int


class ExpireRentalsResult(BaseModel):
    expired: int
    notified: int
