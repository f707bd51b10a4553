"""Domain exceptions raised by the reservation services.

Services raise these; routers translate them into HTTP responses with
``to_http_exception``.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status


class DomainError(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.message)


class ValidationError(DomainError):
    """Malformed input such as reversed dates or a missing required field."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(DomainError):
    """A referenced reservation, locker or student does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DomainError):
    """The request collides with existing state."""

    status_code = status.HTTP_409_CONFLICT


class LockerUnavailableError(ConflictError):
    """The locker is already occupied for part of the requested range."""

    def __init__(self, locker_id: str, start_date: str, end_date: str) -> None:
        super().__init__(
            "This locker is no longer available for the selected dates",
            code="LOCKER_UNAVAILABLE",
            details={
                "locker_id": locker_id,
                "start_date": start_date,
                "end_date": end_date,
            },
        )


class InvalidTransitionError(ConflictError):
    """A reservation status change is not permitted from its current state."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            f"Invalid status transition from {current} to {target}",
            code="INVALID_TRANSITION",
            details={"current": current, "target": target},
        )


class PaymentProviderError(DomainError):
    """The payment provider call failed or a webhook signature was invalid."""

    status_code = status.HTTP_502_BAD_GATEWAY


class AuthenticationError(DomainError):
    """Credentials were missing or rejected."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail=self.message,
            headers={"WWW-Authenticate": "Bearer"},
        )


__all__ = [
    "AuthenticationError",
    "ConflictError",
    "DomainError",
    "InvalidTransitionError",
    "LockerUnavailableError",
    "NotFoundError",
    "PaymentProviderError",
    "ValidationError",
]
