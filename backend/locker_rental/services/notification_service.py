"""E-mail notification helpers.

Every public ``send_*`` coroutine returns ``True`` when a message was handed
to the SMTP server and ``False`` otherwise; delivery problems are logged and
never raised, so reservation state never depends on mail delivery.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol

from locker_rental.core.config import Settings

logger = logging.getLogger(__name__)


def format_cents(amount: int) -> str:
    return f"${amount / 100:,.2f}"


def build_payment_link_email(
    *,
    student_name: str,
    locker_number: str,
    start_date: str,
    end_date: str,
    total_amount: int,
    payment_url: str,
) -> tuple[str, str]:
    subject = f"Complete your payment for Locker #{locker_number}"
    body = (
        f"Hi {student_name},\n\n"
        f"Locker #{locker_number} is being held for you from {start_date} to {end_date}.\n"
        f"Amount due: {format_cents(total_amount)}\n\n"
        f"Pay securely here within 24 hours:\n{payment_url}\n\n"
        "If the link expires the locker is released to the next person on the waitlist.\n"
    )
    return subject, body


def build_welcome_email(
    *, student_name: str, locker_number: str, start_date: str, end_date: str
) -> tuple[str, str]:
    subject = f"Locker #{locker_number} is yours"
    body = (
        f"Hi {student_name},\n\n"
        f"Your payment was received. Locker #{locker_number} is reserved "
        f"from {start_date} to {end_date}.\n\n"
        "Please collect your key from the front desk.\n"
    )
    return subject, body


def build_expiry_reminder_email(
    *, student_name: str, locker_number: str, end_date: str
) -> tuple[str, str]:
    subject = f"Locker #{locker_number} rental ends tomorrow"
    body = (
        f"Hi {student_name},\n\n"
        f"Your rental of Locker #{locker_number} ends on {end_date}. "
        "Please empty the locker and return your key to receive your deposit back.\n"
    )
    return subject, body


def build_admin_locker_available_email(
    *,
    locker_number: str,
    previous_renter_name: str | None,
    previous_renter_email: str | None,
    waitlist_count: int,
) -> tuple[str, str]:
    subject = f"Locker #{locker_number} is available"
    renter = previous_renter_name or previous_renter_email or "unknown"
    body = (
        f"Locker #{locker_number} is available again.\n"
        f"Previous renter: {renter}"
        + (f" <{previous_renter_email}>" if previous_renter_email else "")
        + f"\nStudents on the waitlist: {waitlist_count}\n"
    )
    return subject, body


def build_key_deposit_refund_email(
    *,
    student_name: str,
    student_email: str,
    locker_number: str,
    start_date: str,
    end_date: str,
    deposit_amount: int,
) -> tuple[str, str]:
    subject = f"Key deposit refund request: Locker #{locker_number}"
    body = (
        "A key deposit refund has been requested.\n\n"
        f"Student: {student_name} <{student_email}>\n"
        f"Locker: #{locker_number}\n"
        f"Rental: {start_date} to {end_date}\n"
        f"Deposit: {format_cents(deposit_amount)}\n"
    )
    return subject, body


class Notifier(Protocol):
    """Notification boundary used by the reservation services."""

    async def send_payment_link(
        self,
        *,
        to: str,
        student_name: str,
        locker_number: str,
        start_date: str,
        end_date: str,
        total_amount: int,
        payment_url: str,
    ) -> bool: ...

    async def send_welcome(
        self,
        *,
        to: str,
        student_name: str,
        locker_number: str,
        start_date: str,
        end_date: str,
    ) -> bool: ...

    async def send_expiry_reminder(
        self, *, to: str, student_name: str, locker_number: str, end_date: str
    ) -> bool: ...

    async def send_admin_locker_available(
        self,
        *,
        locker_number: str,
        previous_renter_name: str | None,
        previous_renter_email: str | None,
        waitlist_count: int,
    ) -> bool: ...

    async def send_key_deposit_refund_request(
        self,
        *,
        student_name: str,
        student_email: str,
        locker_number: str,
        start_date: str,
        end_date: str,
        deposit_amount: int,
    ) -> bool: ...


@dataclass(slots=True)
class SmtpConfig:
    host: str | None
    port: int | None
    username: str | None = None
    password: str | None = None
    sender: str | None = None

    @property
    def enabled(self) -> bool:
        return bool(self.host and self.port)


class EmailNotifier:
    """SMTP-backed notifier constructed once at application startup."""

    def __init__(
        self,
        smtp: SmtpConfig,
        *,
        admin_email: str | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._smtp = smtp
        self._admin_email = admin_email
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailNotifier":
        return cls(
            SmtpConfig(
                host=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username,
                password=settings.smtp_password,
                sender=settings.smtp_from,
            ),
            admin_email=settings.admin_email,
            timeout_seconds=settings.notification_timeout_seconds,
        )

    def _deliver(self, to_email: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["Subject"] = subject
        message["To"] = to_email
        message["From"] = (
            self._smtp.sender or self._smtp.username or "no-reply@lockers.local"
        )
        message.set_content(body)

        with smtplib.SMTP(
            str(self._smtp.host), int(self._smtp.port or 0), timeout=self._timeout_seconds
        ) as server:
            if self._smtp.username and self._smtp.password:
                try:
                    server.starttls()
                except smtplib.SMTPException:
                    logger.debug("SMTP server does not support STARTTLS")
                server.login(self._smtp.username, self._smtp.password)
            server.send_message(message)

    async def _send(self, to_email: str | None, subject: str, body: str) -> bool:
        if not to_email:
            logger.debug("No recipient for %r; skipping", subject)
            return False
        if not self._smtp.enabled:
            logger.info("SMTP configuration missing; skipping email to %s", to_email)
            return False
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._deliver, to_email, subject, body),
                timeout=self._timeout_seconds,
            )
        except Exception:  # pragma: no cover - network dependent
            logger.exception("Failed to send email %r to %s", subject, to_email)
            return False
        logger.info("Email %r sent to %s", subject, to_email)
        return True

    async def send_payment_link(
        self,
        *,
        to: str,
        student_name: str,
        locker_number: str,
        start_date: str,
        end_date: str,
        total_amount: int,
        payment_url: str,
    ) -> bool:
        subject, body = build_payment_link_email(
            student_name=student_name,
            locker_number=locker_number,
            start_date=start_date,
            end_date=end_date,
            total_amount=total_amount,
            payment_url=payment_url,
        )
        return await self._send(to, subject, body)

    async def send_welcome(
        self,
        *,
        to: str,
        student_name: str,
        locker_number: str,
        start_date: str,
        end_date: str,
    ) -> bool:
        subject, body = build_welcome_email(
            student_name=student_name,
            locker_number=locker_number,
            start_date=start_date,
            end_date=end_date,
        )
        return await self._send(to, subject, body)

    async def send_expiry_reminder(
        self, *, to: str, student_name: str, locker_number: str, end_date: str
    ) -> bool:
        subject, body = build_expiry_reminder_email(
            student_name=student_name, locker_number=locker_number, end_date=end_date
        )
        return await self._send(to, subject, body)

    async def send_admin_locker_available(
        self,
        *,
        locker_number: str,
        previous_renter_name: str | None,
        previous_renter_email: str | None,
        waitlist_count: int,
    ) -> bool:
        subject, body = build_admin_locker_available_email(
            locker_number=locker_number,
            previous_renter_name=previous_renter_name,
            previous_renter_email=previous_renter_email,
            waitlist_count=waitlist_count,
        )
        return await self._send(self._admin_email, subject, body)

    async def send_key_deposit_refund_request(
        self,
        *,
        student_name: str,
        student_email: str,
        locker_number: str,
        start_date: str,
        end_date: str,
        deposit_amount: int,
    ) -> bool:
        subject, body = build_key_deposit_refund_email(
            student_name=student_name,
            student_email=student_email,
            locker_number=locker_number,
            start_date=start_date,
            end_date=end_date,
            deposit_amount=deposit_amount,
        )
        return await self._send(self._admin_email, subject, body)
