"""Schemas for checkout, extension and portal requests."""

from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, EmailStr, Field


class CheckoutRequest(BaseModel):
    locker_id: str = Field(min_length=1)
    start_date: date
    end_date: date
    total_months: int | None = Field(default=None, ge=1)
    student_ref: str | None = None
    student_email: EmailStr
    student_name: str = Field(min_length=1, max_length=255)


class ExtensionCheckoutRequest(BaseModel):
    rental_id: uuid.UUID
    new_end_date: date
    extension_months: int | None = Field(default=None, ge=1)


class CheckoutResponse(BaseModel):
    message: str
    reservation_id: uuid.UUID
    session_id: str
    payment_url: str
    email: str
    total_amount: int


class PortalRequest(BaseModel):
    customer_id: str = Field(min_length=1)


class PortalResponse(BaseModel):
    url: str


class WebhookAck(BaseModel):
    received: bool = True
    status: str
