"""Schemas for lockers and their availability."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class LockerRead(BaseModel):
    id: str
    number: str
    price_per_month: int

    model_config = ConfigDict(from_attributes=True)


class LockerAvailabilityRead(LockerRead):
    status: str
