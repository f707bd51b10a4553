"""FastAPI application entrypoint."""

import logging

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from secure import Secure

from locker_rental.api import api_router
from locker_rental.core.config import get_settings
from locker_rental.core.settings import get_payment_settings
from locker_rental.integrations import StripeClient
from locker_rental.security.logging_filters import install_sensitive_filter
from locker_rental.services.notification_service import EmailNotifier

logger = logging.getLogger(__name__)

settings = get_settings()

_ALLOWED_ORIGINS = [origin for origin in settings.cors_allow_origins if origin]
if settings.frontend_url and settings.frontend_url not in _ALLOWED_ORIGINS:
    _ALLOWED_ORIGINS.append(settings.frontend_url.rstrip("/"))


app = FastAPI(title=settings.app_name)

# Clients live for the whole process; handlers reach them via api.deps.
app.state.payment_client = StripeClient.from_settings(get_payment_settings())
app.state.notifier = EmailNotifier.from_settings(settings)
if settings.stripe_secret_key is None:
    logger.warning("STRIPE_SECRET_KEY is not set; checkout requests will fail")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_ALLOWED_ORIGINS,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID", "Stripe-Signature"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(CorrelationIdMiddleware, header_name="X-Request-ID")

_secure_headers = Secure.with_default_headers()


@app.middleware("http")
async def _apply_security_headers(request, call_next):
    response = await call_next(request)
    _secure_headers.set_headers(response)
    correlation_id = getattr(request.state, "correlation_id", None)
    if correlation_id:
        response.headers.setdefault("X-Request-ID", str(correlation_id))
    return response


install_sensitive_filter()

app.include_router(api_router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Return a simple welcome message."""
    return {"message": settings.app_name}
