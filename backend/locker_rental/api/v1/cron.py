"""HTTP triggers for the scheduled rental sweeps."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from locker_rental.api import deps
from locker_rental.schemas.rental import ExpireRentalsResult, ExpiryReminderResult
from locker_rental.services import sweep_service, waitlist_service
from locker_rental.services.notification_service import Notifier

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/cron",
    tags=["cron"],
    dependencies=[Depends(deps.require_cron_secret)],
)


@router.post("/expiry-reminders", response_model=ExpiryReminderResult)
async def send_expiry_reminders(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    notifier: Annotated[Notifier, Depends(deps.get_notifier)],
) -> ExpiryReminderResult:
    rentals = await sweep_service.find_reservations_expiring_tomorrow(session)
    sent = 0
    for rental in rentals:
        if not rental.student_email:
            continue
        delivered = await notifier.send_expiry_reminder(
            to=rental.student_email,
            student_name=rental.student_name or "Student",
            locker_number=rental.locker_number,
            end_date=rental.end_date.isoformat(),
        )
        if delivered:
            sent += 1
    logger.info("Sent %d of %d expiry reminders", sent, len(rentals))
    return ExpiryReminderResult(sent=sent)


@router.post("/expire-rentals", response_model=ExpireRentalsResult)
async def expire_rentals(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    notifier: Annotated[Notifier, Depends(deps.get_notifier)],
) -> ExpireRentalsResult:
    expired = await sweep_service.expire_ended_reservations(session)
    if not expired:
        return ExpireRentalsResult(expired=0, notified=0)

    waitlist_count = await waitlist_service.count_entries(session)
    notified = 0
    seen_lockers: set[str] = set()
    for rental in expired:
        # extension history rows share the locker of the rental they extend
        if rental.locker_id in seen_lockers:
            continue
        seen_lockers.add(rental.locker_id)
        if await notifier.send_admin_locker_available(
            locker_number=rental.locker_number,
            previous_renter_name=rental.student_name,
            previous_renter_email=rental.student_email,
            waitlist_count=waitlist_count,
        ):
            notified += 1
    return ExpireRentalsResult(expired=len(expired), notified=notified)
