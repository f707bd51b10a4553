"""Versioned API router."""

from fastapi import APIRouter

from . import (
    admin,
    cron,
    health,
    lockers,
    payments,
    payments_webhook,
    students,
    waitlist,
)

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(lockers.router)
router.include_router(students.router)
router.include_router(payments.router)
router.include_router(payments_webhook.router)
router.include_router(admin.router)
router.include_router(waitlist.router)
router.include_router(cron.router)

__all__ = ["router"]
