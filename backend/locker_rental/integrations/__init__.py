"""Integration shortcuts."""

from .stripe_client import (
    CheckoutSession,
    LineItem,
    SessionEvent,
    StripeClient,
    StripeClientError,
    parse_session_event,
)

__all__ = [
    "CheckoutSession",
    "LineItem",
    "SessionEvent",
    "StripeClient",
    "StripeClientError",
    "parse_session_event",
]
