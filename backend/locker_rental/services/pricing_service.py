"""Locker rental pricing helpers.

All amounts are integer cents.
"""

from __future__ import annotations

import calendar
import datetime
from dataclasses import dataclass
from typing import Any

from locker_rental.core.exceptions import ValidationError


@dataclass(slots=True)
class PricingLine:
    """Individual component contributing to a rental quote."""

    description: str
    amount: int


@dataclass(slots=True)
class RentalQuote:
    """Aggregate pricing output for a checkout or extension."""

    months: int
    monthly_price: int
    rental_amount: int
    deposit_amount: int
    total_amount: int

    @property
    def lines(self) -> list[PricingLine]:
        items = [PricingLine("Locker rental", self.rental_amount)]
        if self.deposit_amount:
            items.append(PricingLine("Key deposit", self.deposit_amount))
        return items

    def to_dict(self) -> dict[str, Any]:
        return {
            "months": self.months,
            "monthly_price": self.monthly_price,
            "rental_amount": self.rental_amount,
            "deposit_amount": self.deposit_amount,
            "total_amount": self.total_amount,
        }


def whole_months_between(start: datetime.date, end: datetime.date) -> int:
    """Count complete calendar months from ``start`` up to ``end``.

    A month is complete once the same day-of-month is reached, clamped to the
    last day of shorter months (Jan 31 -> Feb 28 counts as one month).
    """
    if end < start:
        return -whole_months_between(end, start)
    months = (end.year - start.year) * 12 + (end.month - start.month)
    last_day = calendar.monthrange(end.year, end.month)[1]
    anchor_day = min(start.day, last_day)
    if end.day < anchor_day:
        months -= 1
    return months


def billable_months(start: datetime.date, end: datetime.date) -> int:
    """Return the number of months charged for ``[start, end]``; at least one."""
    return max(1, whole_months_between(start, end))


def quote(
    *, monthly_price: int, months: int, include_deposit: bool, deposit: int
) -> RentalQuote:
    """Price ``months`` of rental, optionally adding the key deposit."""
    if months < 1:
        raise ValidationError("Rental must be at least 1 month")
    if monthly_price < 0 or deposit < 0:
        raise ValidationError("Prices must not be negative")
    rental_amount = monthly_price * months
    deposit_amount = deposit if include_deposit else 0
    return RentalQuote(
        months=months,
        monthly_price=monthly_price,
        rental_amount=rental_amount,
        deposit_amount=deposit_amount,
        total_amount=rental_amount + deposit_amount,
    )
