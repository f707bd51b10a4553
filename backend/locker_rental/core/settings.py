"""Specialized settings adapters for integrations."""

from __future__ import annotations

from pydantic import BaseModel

from locker_rental.core.config import get_settings


class PaymentSettings(BaseModel):
    """Slim view of payment-related configuration."""

    stripe_secret_key: str | None = None
    stripe_publishable_key: str | None = None
    stripe_webhook_secret: str | None = None
    payments_webhook_verify: bool = True
    timeout_seconds: float = 10.0
    currency: str = "usd"
    key_deposit_cents: int = 5000
    session_ttl_hours: int = 24
    frontend_url: str = "http://localhost:4173"


def get_payment_settings() -> PaymentSettings:
    """Return payment-specific configuration."""

    settings = get_settings()
    return PaymentSettings(
        stripe_secret_key=settings.stripe_secret_key or None,
        stripe_publishable_key=settings.stripe_publishable_key or None,
        stripe_webhook_secret=settings.stripe_webhook_secret or None,
        payments_webhook_verify=settings.payments_webhook_verify,
        timeout_seconds=settings.stripe_timeout_seconds,
        currency=settings.currency,
        key_deposit_cents=settings.key_deposit_cents,
        session_ttl_hours=settings.checkout_session_ttl_hours,
        frontend_url=settings.frontend_url.rstrip("/"),
    )
