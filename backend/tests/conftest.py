"""Test fixtures for the locker rental backend."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator

import bcrypt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from factories import (
    ADMIN_PASSWORD,
    CRON_SECRET,
    WEBHOOK_SECRET,
    FakePaymentClient,
    RecordingNotifier,
)

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("APP_ENV", "local")
os.environ.setdefault("PAYMENTS_WEBHOOK_VERIFY", "false")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
os.environ.setdefault("CRON_SECRET", CRON_SECRET)
os.environ.setdefault("FRONTEND_URL", "http://frontend.test")
os.environ.setdefault(
    "ADMIN_PASSWORD",
    bcrypt.hashpw(ADMIN_PASSWORD.encode(), bcrypt.gensalt()).decode(),
)

from locker_rental.api import deps
from locker_rental.core.config import get_settings
from locker_rental.core.security import ADMIN_SUBJECT, create_access_token
from locker_rental.core.settings import PaymentSettings
from locker_rental.db.base import Base
from locker_rental.db.session import dispose_engine, get_sessionmaker
from locker_rental.main import app
from locker_rental.services import availability_service


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema, then seed the lockers."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()

    async with get_sessionmaker(db_url)() as session:
        await availability_service.seed_lockers(session)
    yield
    await dispose_engine(db_url)


@pytest_asyncio.fixture()
async def db_session(
    reset_database: None, db_url: str
) -> AsyncIterator[AsyncSession]:
    async with get_sessionmaker(db_url)() as session:
        yield session


@pytest.fixture()
def payments() -> FakePaymentClient:
    return FakePaymentClient()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def payment_settings() -> PaymentSettings:
    return PaymentSettings(
        stripe_webhook_secret=WEBHOOK_SECRET,
        payments_webhook_verify=False,
        key_deposit_cents=5000,
        session_ttl_hours=24,
        frontend_url="http://frontend.test",
    )


@pytest_asyncio.fixture()
async def client(
    reset_database: None,
    payments: FakePaymentClient,
    notifier: RecordingNotifier,
) -> AsyncIterator[AsyncClient]:
    """Yield an HTTP client with fake payment and notification clients."""
    app.dependency_overrides[deps.get_payment_client] = lambda: payments
    app.dependency_overrides[deps.get_notifier] = lambda: notifier
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as http:
            yield http
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def admin_headers(reset_database: None) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(ADMIN_SUBJECT)}"}


@pytest.fixture()
def cron_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {CRON_SECRET}"}
