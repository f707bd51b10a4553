"""Schema exports."""

from locker_rental.schemas.locker import LockerAvailabilityRead, LockerRead
from locker_rental.schemas.payments import (
    CheckoutRequest,
    CheckoutResponse,
    ExtensionCheckoutRequest,
    PortalRequest,
    PortalResponse,
    WebhookAck,
)
from locker_rental.schemas.rental import (
    AdminLoginRequest,
    AnalyticsRead,
    ExpireRentalsResult,
    ExpiryReminderResult,
    RefundRequestResponse,
    RentalRead,
    Token,
)
from locker_rental.schemas.student import (
    StudentCreate,
    StudentRead,
    StudentValidateRequest,
)
from locker_rental.schemas.waitlist import (
    WaitlistEntryCreate,
    WaitlistEntryRead,
    WaitlistEntryUpdate,
)

__all__ = [
    "AdminLoginRequest",
    "AnalyticsRead",
    "CheckoutRequest",
    "CheckoutResponse",
    "ExpireRentalsResult",
    "ExpiryReminderResult",
    "ExtensionCheckoutRequest",
    "LockerAvailabilityRead",
    "LockerRead",
    "PortalRequest",
    "PortalResponse",
    "RefundRequestResponse",
    "RentalRead",
    "StudentCreate",
    "StudentRead",
    "StudentValidateRequest",
    "Token",
    "WaitlistEntryCreate",
    "WaitlistEntryRead",
    "WaitlistEntryUpdate",
    "WebhookAck",
]
