"""Stripe webhook receiver for checkout session events and local simulators."""

from __future__ import annotations

import json
import logging
from typing import Annotated, Any
from uuid import uuid4

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from locker_rental.api import deps
from locker_rental.core.config import get_settings
from locker_rental.core.settings import get_payment_settings
from locker_rental.integrations import StripeClient, StripeClientError, parse_session_event
from locker_rental.models import PaymentEvent
from locker_rental.schemas.payments import WebhookAck
from locker_rental.services import webhook_service
from locker_rental.services.notification_service import Notifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments-webhook"])


async def _already_recorded(session: AsyncSession, event_id: str) -> bool:
    stmt = select(PaymentEvent.id).where(PaymentEvent.provider_event_id == event_id)
    return (await session.execute(stmt)).scalar_one_or_none() is not None


async def _record_event(
    session: AsyncSession, event_id: str, payload: dict[str, Any]
) -> None:
    if not event_id:
        return
    session.add(
        PaymentEvent(
            provider_event_id=event_id,
            event_type=str(payload.get("type") or ""),
            raw=payload,
        )
    )
    try:
        await session.commit()
    except IntegrityError:  # duplicate events are ignored
        await session.rollback()


async def _process_event(
    session: AsyncSession,
    notifier: Notifier,
    payload: dict[str, Any],
) -> WebhookAck:
    event_id = str(payload.get("id") or "")
    if event_id and await _already_recorded(session, event_id):
        logger.info("Webhook event %s already handled", event_id)
        return WebhookAck(status=webhook_service.WebhookOutcome.IGNORED.value)

    outcome = webhook_service.WebhookOutcome.IGNORED
    event = parse_session_event(payload)
    if event is not None:
        outcome = await webhook_service.dispatch_event(session, notifier, event)
    else:
        logger.debug("Ignoring webhook event type %r", payload.get("type"))

    await _record_event(session, event_id, payload)
    return WebhookAck(status=outcome.value)


@router.post("/webhook", status_code=status.HTTP_200_OK, response_model=WebhookAck)
async def handle_webhook(
    request: Request,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    stripe_client: Annotated[StripeClient, Depends(deps.get_payment_client)],
    notifier: Annotated[Notifier, Depends(deps.get_notifier)],
) -> WebhookAck:
    settings = get_payment_settings()
    payload_bytes = await request.body()
    payload: dict[str, Any]

    if settings.payments_webhook_verify:
        signature = request.headers.get("Stripe-Signature")
        if not signature:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Missing signature header",
            )
        try:
            payload = stripe_client.construct_event(payload_bytes, signature)
        except StripeClientError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
    else:
        try:
            payload = json.loads(payload_bytes)
        except json.JSONDecodeError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload"
            ) from exc
        if not isinstance(payload, dict):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload"
            )

    return await _process_event(session, notifier, payload)


@router.post(
    "/dev/simulate-webhook", status_code=status.HTTP_200_OK, response_model=WebhookAck
)
async def simulate_webhook(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    notifier: Annotated[Notifier, Depends(deps.get_notifier)],
    payload: Annotated[dict[str, Any], Body(...)],
) -> WebhookAck:
    settings = get_settings()
    if settings.app_env.lower() != "local":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Simulation route available in local environment only",
        )

    enriched_payload = dict(payload)
    enriched_payload.setdefault("id", f"simulated_{uuid4().hex}")
    return await _process_event(session, notifier, enriched_payload)
