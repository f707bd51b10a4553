"""ORM models package export."""

from locker_rental.models.locker import LOCKER_PRICE_CENTS, Locker
from locker_rental.models.payment import PaymentEvent
from locker_rental.models.reservation import Reservation, ReservationStatus
from locker_rental.models.student import Student
from locker_rental.models.waitlist_entry import WaitlistEntry, WaitlistStatus

__all__ = [
    "LOCKER_PRICE_CENTS",
    "Locker",
    "PaymentEvent",
    "Reservation",
    "ReservationStatus",
    "Student",
    "WaitlistEntry",
    "WaitlistStatus",
]
