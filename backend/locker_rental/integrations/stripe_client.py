"""Stripe SDK wrapper for hosted checkout sessions and webhooks."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

import stripe

from locker_rental.core.exceptions import PaymentProviderError
from locker_rental.core.settings import PaymentSettings

logger = logging.getLogger(__name__)

SESSION_COMPLETED = "checkout.session.completed"
SESSION_EXPIRED = "checkout.session.expired"


@dataclass(slots=True)
class LineItem:
    """One priced line on a hosted checkout page."""

    name: str
    unit_amount: int
    description: str | None = None
    quantity: int = 1


@dataclass(slots=True)
class CheckoutSession:
    """Simplified checkout session payload."""

    id: str
    url: str


@dataclass(slots=True)
class SessionEvent:
    """Checkout session lifecycle event extracted from a webhook payload."""

    event_id: str
    type: str
    session_id: str
    metadata: dict[str, str] = field(default_factory=dict)
    payment_intent_id: str | None = None
    payer_account_id: str | None = None
    customer_email: str | None = None


class StripeClientError(PaymentProviderError):
    """Raised when Stripe interaction fails."""


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, Mapping):
        value = value.get("id")
    return str(value) if value else None


def parse_session_event(payload: Mapping[str, Any]) -> SessionEvent | None:
    """Return a ``SessionEvent`` for checkout-session events, else ``None``."""

    event_type = str(payload.get("type") or "")
    if event_type not in {SESSION_COMPLETED, SESSION_EXPIRED}:
        return None
    data_object = (payload.get("data") or {}).get("object") or {}
    session_id = data_object.get("id")
    if not session_id:
        return None
    metadata = {
        str(key): str(value)
        for key, value in (data_object.get("metadata") or {}).items()
        if value is not None
    }
    customer_details = data_object.get("customer_details") or {}
    return SessionEvent(
        event_id=str(payload.get("id") or ""),
        type=event_type,
        session_id=str(session_id),
        metadata=metadata,
        payment_intent_id=_optional_str(data_object.get("payment_intent")),
        payer_account_id=_optional_str(data_object.get("customer")),
        customer_email=_optional_str(
            customer_details.get("email") or data_object.get("customer_email")
        ),
    )


class StripeClient:
    """Wrapper around an explicitly constructed Stripe SDK client."""

    def __init__(
        self,
        secret_key: str | None,
        *,
        webhook_secret: str | None = None,
        currency: str = "usd",
        timeout_seconds: float = 10.0,
        sdk: stripe.StripeClient | None = None,
    ) -> None:
        self._webhook_secret = webhook_secret
        self._currency = currency
        self._sdk = sdk
        if self._sdk is None and secret_key:
            self._sdk = stripe.StripeClient(
                secret_key,
                http_client=stripe.RequestsClient(timeout=timeout_seconds),
                max_network_retries=2,
            )

    @classmethod
    def from_settings(cls, settings: PaymentSettings) -> "StripeClient":
        return cls(
            settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
            currency=settings.currency,
            timeout_seconds=settings.timeout_seconds,
        )

    @property
    def webhook_secret(self) -> str | None:
        return self._webhook_secret

    def _require_sdk(self) -> stripe.StripeClient:
        if self._sdk is None:
            raise StripeClientError("Stripe secret key is not configured")
        return self._sdk

    def _line_item(self, item: LineItem) -> dict[str, Any]:
        product_data: dict[str, Any] = {"name": item.name}
        if item.description:
            product_data["description"] = item.description
        return {
            "price_data": {
                "currency": self._currency,
                "product_data": product_data,
                "unit_amount": item.unit_amount,
            },
            "quantity": item.quantity,
        }

    def create_checkout_session(
        self,
        *,
        line_items: list[LineItem],
        metadata: Mapping[str, str],
        success_url: str,
        cancel_url: str,
        customer_email: str | None = None,
        expires_at: datetime | None = None,
    ) -> CheckoutSession:
        """Create a one-off hosted payment page for the given line items."""

        sdk = self._require_sdk()
        params: dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [self._line_item(item) for item in line_items],
            "metadata": dict(metadata),
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        if customer_email:
            params["customer_email"] = customer_email
        if expires_at is not None:
            params["expires_at"] = int(expires_at.timestamp())

        try:
            session = sdk.v1.checkout.sessions.create(params=params)  # type: ignore[arg-type]
        except stripe.StripeError as exc:
            logger.exception("Stripe checkout session creation failed")
            raise StripeClientError("Failed to create checkout session") from exc

        session_id = getattr(session, "id", None)
        session_url = getattr(session, "url", None)
        if not session_id or not session_url:
            raise StripeClientError("Stripe did not return a checkout URL")
        return CheckoutSession(id=str(session_id), url=str(session_url))

    def create_portal_session(self, customer_id: str, *, return_url: str) -> str:
        """Return a billing-portal URL for an existing Stripe customer."""

        sdk = self._require_sdk()
        try:
            session = sdk.v1.billing_portal.sessions.create(
                params={"customer": customer_id, "return_url": return_url}
            )
        except stripe.StripeError as exc:
            logger.exception("Stripe portal session creation failed")
            raise StripeClientError("Failed to create portal session") from exc
        return str(session.url)

    def construct_event(self, payload: bytes, signature: str) -> dict[str, Any]:
        """Verify the signature header and return the decoded event payload."""

        if not self._webhook_secret:
            raise StripeClientError("Webhook secret is not configured")
        try:
            stripe.Webhook.construct_event(
                payload=payload,
                sig_header=signature,
                secret=self._webhook_secret,
            )
        except (stripe.SignatureVerificationError, ValueError) as exc:
            raise StripeClientError("Invalid webhook signature") from exc
        return json.loads(payload)


__all__ = [
    "CheckoutSession",
    "LineItem",
    "SESSION_COMPLETED",
    "SESSION_EXPIRED",
    "SessionEvent",
    "StripeClient",
    "StripeClientError",
    "parse_session_event",
]
