"""Tests for checkout, extension and webhook endpoints."""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from typing import Any

import pytest
import pytest_asyncio
from httpx import AsyncClient

from factories import WEBHOOK_SECRET
from locker_rental.api import deps
from locker_rental.core.config import get_settings
from locker_rental.integrations import StripeClient
from locker_rental.main import app
from locker_rental.models import ReservationStatus
from locker_rental.services import reservation_service

pytestmark = pytest.mark.asyncio

CHECKOUT = {
    "locker_id": "locker_7",
    "start_date": "2025-01-01",
    "end_date": "2025-03-01",
    "student_ref": "S1001",
    "student_email": "alice@example.com",
    "student_name": "Alice Student",
}


def _session_event(
    event_type: str, checkout: dict[str, Any], *, event_id: str
) -> dict[str, Any]:
    return {
        "id": event_id,
        "type": event_type,
        "data": {
            "object": {
                "id": checkout["id"],
                "object": "checkout.session",
                "metadata": checkout["metadata"],
                "payment_intent": "pi_api_1",
                "customer": "cus_api_1",
                "customer_details": {"email": checkout["customer_email"]},
            }
        },
    }


def _signature(payload: str, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    digest = hmac.new(
        secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={digest}"


async def test_checkout_returns_payment_link(client: AsyncClient, payments, notifier) -> None:
    response = await client.post("/api/v1/payments/checkout", json=CHECKOUT)

    assert response.status_code == 200
    body = response.json()
    assert body["session_id"] == "cs_test_1"
    assert body["payment_url"] == "https://checkout.stripe.test/pay/cs_test_1"
    assert body["email"] == "alice@example.com"
    assert body["total_amount"] == 15000
    assert body["message"] == "Payment link sent to alice@example.com"
    assert len(notifier.sent("payment_link")) == 1
    assert payments.sessions[0]["success_url"].startswith("http://frontend.test/success")


@pytest.mark.parametrize(
    ("overrides", "expected"),
    [
        ({"locker_id": "locker_99"}, 404),
        ({"end_date": "2025-01-01"}, 400),
        ({"student_email": "nope"}, 422),
        ({"total_months": 0}, 422),
    ],
)
async def test_checkout_rejects_bad_requests(
    client: AsyncClient, overrides: dict[str, Any], expected: int
) -> None:
    response = await client.post(
        "/api/v1/payments/checkout", json={**CHECKOUT, **overrides}
    )

    assert response.status_code == expected


async def test_checkout_provider_failure_is_bad_gateway(client: AsyncClient, payments) -> None:
    payments.fail = True

    response = await client.post("/api/v1/payments/checkout", json=CHECKOUT)

    assert response.status_code == 502


async def test_paid_locker_conflicts_with_new_checkout(
    client: AsyncClient, payments
) -> None:
    await client.post("/api/v1/payments/checkout", json=CHECKOUT)
    event = _session_event(
        "checkout.session.completed", payments.sessions[0], event_id="evt_paid"
    )
    ack = await client.post("/api/v1/payments/webhook", json=event)
    assert ack.json() == {"received": True, "status": "processed"}

    response = await client.post(
        "/api/v1/payments/checkout",
        json={**CHECKOUT, "student_email": "bob@example.com", "start_date": "2025-02-15"},
    )

    assert response.status_code == 409


async def test_webhook_redelivery_is_ignored(
    client: AsyncClient, payments, notifier, db_session
) -> None:
    await client.post("/api/v1/payments/checkout", json=CHECKOUT)
    event = _session_event(
        "checkout.session.completed", payments.sessions[0], event_id="evt_dup"
    )

    first = await client.post("/api/v1/payments/webhook", json=event)
    second = await client.post("/api/v1/payments/webhook", json=event)

    assert first.json()["status"] == "processed"
    assert second.json()["status"] == "ignored"
    assert len(notifier.sent("welcome")) == 1
    reservation = await reservation_service.get_by_payment_session_id(db_session, "cs_test_1")
    assert reservation.status == ReservationStatus.ACTIVE
    assert reservation.payment_intent_id == "pi_api_1"


async def test_webhook_expiry_releases_hold(
    client: AsyncClient, payments, notifier, db_session
) -> None:
    await client.post("/api/v1/payments/checkout", json=CHECKOUT)
    event = _session_event(
        "checkout.session.expired", payments.sessions[0], event_id="evt_expired"
    )

    response = await client.post("/api/v1/payments/webhook", json=event)

    assert response.json()["status"] == "processed"
    reservation = await reservation_service.get_by_payment_session_id(db_session, "cs_test_1")
    assert reservation.status == ReservationStatus.EXPIRED
    assert notifier.sent("admin_locker_available")[0]["locker_number"] == "07"


async def test_webhook_ignores_unrelated_events(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/payments/webhook",
        json={"id": "evt_other", "type": "invoice.paid", "data": {"object": {}}},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "ignored"


async def test_webhook_rejects_malformed_body(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/payments/webhook",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400


@pytest_asyncio.fixture()
async def verifying_client(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PAYMENTS_WEBHOOK_VERIFY", "true")
    get_settings.cache_clear()
    app.dependency_overrides[deps.get_payment_client] = lambda: StripeClient(
        None, webhook_secret=WEBHOOK_SECRET
    )
    yield client
    get_settings.cache_clear()


async def test_signed_webhook_is_accepted(verifying_client: AsyncClient) -> None:
    payload = json.dumps(
        {"id": "evt_signed", "type": "invoice.paid", "data": {"object": {}}}
    )

    response = await verifying_client.post(
        "/api/v1/payments/webhook",
        content=payload,
        headers={"Content-Type": "application/json", "Stripe-Signature": _signature(payload)},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "ignored"


@pytest.mark.parametrize("signature", [None, "t=1,v1=deadbeef"])
async def test_unsigned_or_forged_webhook_is_rejected(
    verifying_client: AsyncClient, signature: str | None
) -> None:
    headers = {"Content-Type": "application/json"}
    if signature is not None:
        headers["Stripe-Signature"] = signature

    response = await verifying_client.post(
        "/api/v1/payments/webhook", content='{"id": "evt_x"}', headers=headers
    )

    assert response.status_code == 400


async def test_simulated_webhook_in_local_env(client: AsyncClient, payments) -> None:
    await client.post("/api/v1/payments/checkout", json=CHECKOUT)
    event = _session_event(
        "checkout.session.completed", payments.sessions[0], event_id="evt_sim"
    )
    event.pop("id")

    response = await client.post("/api/v1/payments/dev/simulate-webhook", json=event)

    assert response.status_code == 200
    assert response.json()["status"] == "processed"


async def test_simulated_webhook_outside_local_env(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("APP_ENV", "production")
    get_settings.cache_clear()
    try:
        response = await client.post(
            "/api/v1/payments/dev/simulate-webhook", json={"type": "invoice.paid"}
        )
    finally:
        monkeypatch.setenv("APP_ENV", "local")
        get_settings.cache_clear()

    assert response.status_code == 403


async def test_extension_checkout_requires_admin(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/payments/extension-checkout",
        json={
            "rental_id": "00000000-0000-0000-0000-000000000000",
            "new_end_date": "2025-04-30",
        },
    )

    assert response.status_code == 401


async def test_extension_checkout_flow(
    client: AsyncClient, payments, admin_headers: dict[str, str], db_session
) -> None:
    created = await client.post("/api/v1/payments/checkout", json=CHECKOUT)
    await client.post(
        "/api/v1/payments/webhook",
        json=_session_event(
            "checkout.session.completed", payments.sessions[0], event_id="evt_orig"
        ),
    )

    response = await client.post(
        "/api/v1/payments/extension-checkout",
        json={
            "rental_id": created.json()["reservation_id"],
            "new_end_date": "2025-04-30",
            "extension_months": 2,
        },
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["total_amount"] == 10000
    assert response.json()["message"] == "Extension payment link sent to alice@example.com"

    await client.post(
        "/api/v1/payments/webhook",
        json=_session_event(
            "checkout.session.completed", payments.sessions[1], event_id="evt_ext"
        ),
    )
    original = await reservation_service.get_by_payment_session_id(db_session, "cs_test_1")
    assert original.end_date.isoformat() == "2025-04-30"
    assert original.total_amount == 25000


async def test_extension_of_missing_rental_is_not_found(
    client: AsyncClient, admin_headers: dict[str, str]
) -> None:
    response = await client.post(
        "/api/v1/payments/extension-checkout",
        json={
            "rental_id": "00000000-0000-0000-0000-000000000000",
            "new_end_date": "2025-04-30",
        },
        headers=admin_headers,
    )

    assert response.status_code == 404


async def test_portal_session(client: AsyncClient) -> None:
    response = await client.post("/api/v1/payments/portal", json={"customer_id": "cus_1"})

    assert response.status_code == 200
    assert response.json()["url"].startswith("https://billing.stripe.test/cus_1")
