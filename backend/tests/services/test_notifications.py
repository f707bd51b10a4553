"""Tests for notification message builders and the SMTP notifier."""

from __future__ import annotations

import pytest

from locker_rental.services.notification_service import (
    EmailNotifier,
    SmtpConfig,
    build_admin_locker_available_email,
    build_key_deposit_refund_email,
    build_payment_link_email,
    format_cents,
)


def test_format_cents() -> None:
    assert format_cents(15000) == "$150.00"
    assert format_cents(123456) == "$1,234.56"


def test_payment_link_email_mentions_amount_and_link() -> None:
    subject, body = build_payment_link_email(
        student_name="Alice",
        locker_number="07",
        start_date="2025-01-01",
        end_date="2025-03-01",
        total_amount=15000,
        payment_url="https://checkout.stripe.test/pay/cs_1",
    )

    assert subject == "Complete your payment for Locker #07"
    assert "$150.00" in body
    assert "https://checkout.stripe.test/pay/cs_1" in body


def test_admin_notice_falls_back_to_unknown_renter() -> None:
    _, body = build_admin_locker_available_email(
        locker_number="12",
        previous_renter_name=None,
        previous_renter_email=None,
        waitlist_count=3,
    )

    assert "Previous renter: unknown\n" in body
    assert "Students on the waitlist: 3" in body


def test_refund_email_lists_deposit() -> None:
    subject, body = build_key_deposit_refund_email(
        student_name="Alice",
        student_email="alice@example.com",
        locker_number="07",
        start_date="2025-01-01",
        end_date="2025-03-01",
        deposit_amount=5000,
    )

    assert subject == "Key deposit refund request: Locker #07"
    assert "Alice <alice@example.com>" in body
    assert "$50.00" in body


@pytest.mark.asyncio
async def test_notifier_without_smtp_reports_not_sent() -> None:
    notifier = EmailNotifier(SmtpConfig(host=None, port=None), admin_email="admin@example.com")

    assert not await notifier.send_welcome(
        to="alice@example.com",
        student_name="Alice",
        locker_number="07",
        start_date="2025-01-01",
        end_date="2025-03-01",
    )


@pytest.mark.asyncio
async def test_admin_notice_needs_admin_address() -> None:
    notifier = EmailNotifier(SmtpConfig(host="smtp.test", port=25))

    assert not await notifier.send_admin_locker_available(
        locker_number="07",
        previous_renter_name="Alice",
        previous_renter_email="alice@example.com",
        waitlist_count=0,
    )
