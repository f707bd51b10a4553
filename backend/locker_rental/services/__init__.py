"""Service layer exports."""
from locker_rental.services import (
    availability_service,
    pricing_service,
    reservation_service,
    student_service,
    waitlist_service,
    notification_service,
    rental_service,
    sweep_service,
    checkout_service,
    webhook_service,
)

__all__ = [
    "availability_service",
    "checkout_service",
    "notification_service",
    "pricing_service",
    "rental_service",
    "reservation_service",
    "student_service",
    "sweep_service",
    "waitlist_service",
    "webhook_service",
]
