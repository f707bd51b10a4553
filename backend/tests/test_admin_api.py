"""Tests for admin authentication and dashboard endpoints."""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from factories import ADMIN_PASSWORD, make_reservation
from locker_rental.core.config import get_settings
from locker_rental.core.security import create_access_token
from locker_rental.models import ReservationStatus

pytestmark = pytest.mark.asyncio


async def test_login_and_verify(client: AsyncClient) -> None:
    login = await client.post("/api/v1/admin/login", json={"password": ADMIN_PASSWORD})
    assert login.status_code == 200
    token = login.json()["access_token"]
    assert login.json()["token_type"] == "bearer"

    verify = await client.get(
        "/api/v1/admin/verify", headers={"Authorization": f"Bearer {token}"}
    )

    assert verify.status_code == 200
    assert verify.json() == {"authenticated": True, "subject": "admin"}


async def test_login_with_wrong_password(client: AsyncClient) -> None:
    response = await client.post("/api/v1/admin/login", json={"password": "guess"})

    assert response.status_code == 401


async def test_login_accepts_plain_text_password(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("ADMIN_PASSWORD", "plain-secret")
    get_settings.cache_clear()

    response = await client.post("/api/v1/admin/login", json={"password": "plain-secret"})

    assert response.status_code == 200


async def test_login_unconfigured(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ADMIN_PASSWORD", "")
    get_settings.cache_clear()

    response = await client.post("/api/v1/admin/login", json={"password": "anything"})

    assert response.status_code == 503


@pytest.mark.parametrize(
    "path", ["/api/v1/admin/verify", "/api/v1/admin/rentals", "/api/v1/admin/analytics"]
)
async def test_admin_routes_require_token(client: AsyncClient, path: str) -> None:
    missing = await client.get(path)
    wrong_subject = await client.get(
        path, headers={"Authorization": f"Bearer {create_access_token('student')}"}
    )
    garbage = await client.get(path, headers={"Authorization": "Bearer not-a-jwt"})

    assert missing.status_code == 401
    assert wrong_subject.status_code == 401
    assert garbage.status_code == 401


async def test_list_rentals_with_status_filter(
    client: AsyncClient, admin_headers: dict[str, str], db_session
) -> None:
    await make_reservation(db_session, start=date(2025, 1, 1), end=date(2025, 3, 1))
    await make_reservation(
        db_session,
        locker_id="locker_2",
        start=date(2025, 1, 1),
        end=date(2025, 3, 1),
        status=ReservationStatus.PENDING,
    )
    await make_reservation(
        db_session, start=date(2025, 3, 2), end=date(2025, 4, 1), is_extension=True
    )

    everything = await client.get("/api/v1/admin/rentals", headers=admin_headers)
    active = await client.get(
        "/api/v1/admin/rentals", params={"status": "active"}, headers=admin_headers
    )

    assert everything.status_code == 200
    assert len(everything.json()) == 2
    assert [row["locker_number"] for row in active.json()] == ["01"]
    assert active.json()[0]["student_email"] == "renter@example.com"


async def test_analytics(
    client: AsyncClient, admin_headers: dict[str, str], db_session
) -> None:
    await make_reservation(
        db_session, start=date(2025, 1, 1), end=date(2025, 3, 1), total_amount=15000
    )

    response = await client.get("/api/v1/admin/analytics", headers=admin_headers)

    assert response.json() == {
        "total_revenue": 15000,
        "unique_students": 0,
        "total_rentals": 1,
        "active_rentals": 1,
        "occupancy_rate": 2.4,
    }


async def test_refund_request_for_active_rental(
    client: AsyncClient, admin_headers: dict[str, str], db_session, notifier
) -> None:
    rental = await make_reservation(db_session, start=date(2025, 1, 1), end=date(2025, 3, 1))

    response = await client.post(
        f"/api/v1/admin/rentals/{rental.id}/refund-request", headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json() == {"sent": True, "deposit_amount": 5000}
    request = notifier.sent("key_deposit_refund")[0]
    assert request["student_email"] == "renter@example.com"
    assert request["locker_number"] == "01"


async def test_refund_request_rejects_inactive_or_missing(
    client: AsyncClient, admin_headers: dict[str, str], db_session
) -> None:
    today = date.today()
    pending = await make_reservation(
        db_session,
        start=today,
        end=today + timedelta(days=30),
        status=ReservationStatus.PENDING,
    )

    inactive = await client.post(
        f"/api/v1/admin/rentals/{pending.id}/refund-request", headers=admin_headers
    )
    missing = await client.post(
        "/api/v1/admin/rentals/00000000-0000-0000-0000-000000000000/refund-request",
        headers=admin_headers,
    )

    assert inactive.status_code == 400
    assert missing.status_code == 404
