"""Security utilities for admin password checks and JWT handling."""

import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import jwt

from locker_rental.core.config import get_settings
from locker_rental.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

ADMIN_SUBJECT = "admin"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against its hash using bcrypt."""
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except (ValueError, TypeError):  # guard against malformed hashes
        return False


def get_password_hash(password: str) -> str:
    """Hash a password for storage using bcrypt."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_admin_password(password: str, stored: str) -> bool:
    """Compare against a bcrypt hash, tolerating a legacy plain-text value."""
    if stored.startswith("$2"):
        return verify_password(password, stored)
    logger.warning("ADMIN_PASSWORD is stored in plain text; hash it with bcrypt")
    return secrets.compare_digest(password.encode(), stored.encode())


def authenticate_admin(password: str, stored: str) -> str:
    """Return the admin subject or raise ``AuthenticationError``."""
    if not verify_admin_password(password, stored):
        raise AuthenticationError("Invalid password")
    return ADMIN_SUBJECT


def create_access_token(
    subject: str, expires_delta: timedelta | None = None, **extra: Any
) -> str:
    """Create a JWT access token."""
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    expire = datetime.now(UTC) + expires_delta
    claims: dict[str, Any] = {"sub": subject, "exp": expire}
    claims.update(extra)
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode a JWT token, raising JWTError on failure."""
    settings = get_settings()
    return jwt.decode(
        token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
    )
