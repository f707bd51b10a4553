"""Common API dependencies."""

from __future__ import annotations

import secrets
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from locker_rental.core.config import get_settings
from locker_rental.core.security import ADMIN_SUBJECT, decode_access_token
from locker_rental.core.settings import PaymentSettings, get_payment_settings
from locker_rental.db.session import get_session
from locker_rental.integrations.stripe_client import StripeClient
from locker_rental.services.notification_service import Notifier

settings = get_settings()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_v1_prefix}/admin/login")


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


def get_payment_config() -> PaymentSettings:
    return get_payment_settings()


def get_payment_client(request: Request) -> StripeClient:
    """Return the Stripe client constructed at application startup."""
    return request.app.state.payment_client


def get_notifier(request: Request) -> Notifier:
    """Return the notifier constructed at application startup."""
    return request.app.state.notifier


async def get_current_admin(
    token: Annotated[str, Depends(oauth2_scheme)],
) -> str:
    """Authenticate the admin via bearer token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
    except JWTError as exc:
        raise credentials_exception from exc

    if payload.get("sub") != ADMIN_SUBJECT:
        raise credentials_exception
    return ADMIN_SUBJECT


async def require_cron_secret(
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Reject scheduled-job calls that do not carry the configured secret."""
    cron_secret = get_settings().cron_secret
    if not cron_secret:
        return
    expected = f"Bearer {cron_secret}"
    if authorization is None or not secrets.compare_digest(
        authorization.encode(), expected.encode()
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized"
        )
