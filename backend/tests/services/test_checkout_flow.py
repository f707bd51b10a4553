"""Tests for the checkout, extension and payment reconciliation flow."""

from __future__ import annotations

import datetime
import uuid

import pytest

from factories import completed_event, make_reservation
from locker_rental.core.exceptions import (
    LockerUnavailableError,
    NotFoundError,
    PaymentProviderError,
    ValidationError,
)
from locker_rental.models import ReservationStatus
from locker_rental.services import (
    checkout_service,
    rental_service,
    reservation_service,
    sweep_service,
    webhook_service,
)
from locker_rental.services.webhook_service import WebhookOutcome

pytestmark = pytest.mark.asyncio

D = datetime.date

ALICE = checkout_service.Customer(
    email="alice@example.com", name="Alice Student", student_ref="S1001"
)
BOB = checkout_service.Customer(email="bob@example.com", name="Bob Student")


async def _checkout(db_session, payments, notifier, payment_settings, **overrides):
    params = {
        "locker_id": "locker_7",
        "start_date": D(2025, 1, 1),
        "end_date": D(2025, 3, 1),
        "customer": ALICE,
    }
    params.update(overrides)
    return await checkout_service.create_checkout(
        db_session,
        payments=payments,
        notifier=notifier,
        settings=payment_settings,
        **params,
    )


async def _extend(db_session, payments, notifier, payment_settings, reservation_id, **kwargs):
    return await checkout_service.create_extension(
        db_session,
        payments=payments,
        notifier=notifier,
        settings=payment_settings,
        reservation_id=reservation_id,
        **kwargs,
    )


async def test_checkout_creates_pending_reservation(
    db_session, payments, notifier, payment_settings
) -> None:
    result = await _checkout(db_session, payments, notifier, payment_settings)

    assert result.session_id == "cs_test_1"
    assert result.payment_url.endswith("cs_test_1")
    reservation = await reservation_service.get_reservation(db_session, result.reservation.id)
    assert reservation.status == ReservationStatus.PENDING
    assert reservation.total_months == 2
    assert reservation.total_amount == 15000
    assert reservation.customer_email == "alice@example.com"
    assert reservation.payment_session_id == "cs_test_1"

    checkout = payments.sessions[0]
    assert [item.name for item in checkout["line_items"]] == [
        "Locker #07 Rental - 2 months",
        "Key Deposit",
    ]
    assert [item.unit_amount for item in checkout["line_items"]] == [10000, 5000]
    assert checkout["metadata"]["locker_number"] == "07"
    assert checkout["metadata"]["total_amount"] == "15000"
    assert checkout["metadata"]["is_extension"] == "false"
    assert checkout["success_url"] == (
        "http://frontend.test/success?session_id={CHECKOUT_SESSION_ID}"
    )
    assert checkout["cancel_url"] == "http://frontend.test/lockers"
    assert notifier.sent("payment_link")[0]["payment_url"] == result.payment_url


async def test_explicit_months_override_computed_count(
    db_session, payments, notifier, payment_settings
) -> None:
    result = await _checkout(
        db_session, payments, notifier, payment_settings, total_months=3
    )

    assert result.reservation.total_amount == 20000
    assert payments.sessions[0]["line_items"][0].name == "Locker #07 Rental - 3 months"


async def test_short_range_charges_one_month(
    db_session, payments, notifier, payment_settings
) -> None:
    result = await _checkout(
        db_session,
        payments,
        notifier,
        payment_settings,
        start_date=D(2025, 1, 15),
        end_date=D(2025, 1, 20),
    )

    assert result.reservation.total_months == 1
    assert payments.sessions[0]["line_items"][0].name == "Locker #07 Rental - 1 month"


async def test_checkout_validates_input(
    db_session, payments, notifier, payment_settings
) -> None:
    with pytest.raises(ValidationError):
        await _checkout(
            db_session,
            payments,
            notifier,
            payment_settings,
            start_date=D(2025, 3, 1),
            end_date=D(2025, 3, 1),
        )
    with pytest.raises(NotFoundError):
        await _checkout(
            db_session, payments, notifier, payment_settings, locker_id="locker_99"
        )
    assert payments.sessions == []


async def test_pending_checkout_does_not_block_another(
    db_session, payments, notifier, payment_settings
) -> None:
    await _checkout(db_session, payments, notifier, payment_settings)
    second = await _checkout(
        db_session, payments, notifier, payment_settings, customer=BOB
    )

    assert second.session_id == "cs_test_2"


async def test_paid_checkout_blocks_overlapping_checkout(
    db_session, payments, notifier, payment_settings
) -> None:
    result = await _checkout(db_session, payments, notifier, payment_settings)
    outcome = await webhook_service.dispatch_event(
        db_session, notifier, completed_event(payments.sessions[0])
    )
    assert outcome == WebhookOutcome.PROCESSED

    with pytest.raises(LockerUnavailableError):
        await _checkout(
            db_session,
            payments,
            notifier,
            payment_settings,
            customer=BOB,
            start_date=D(2025, 2, 15),
            end_date=D(2025, 4, 15),
        )
    reservation = await reservation_service.get_reservation(db_session, result.reservation.id)
    assert reservation.status == ReservationStatus.ACTIVE
    assert reservation.payment_intent_id == "pi_test_1"
    assert reservation.payer_account_id == "cus_test_1"


async def test_provider_failure_leaves_no_reservation(
    db_session, payments, notifier, payment_settings
) -> None:
    payments.fail = True

    with pytest.raises(PaymentProviderError):
        await _checkout(db_session, payments, notifier, payment_settings)

    assert await reservation_service.list_for_locker(db_session, "locker_7") == []
    assert notifier.calls == []


async def test_failed_payment_link_email_still_returns_session(
    db_session, payments, notifier, payment_settings
) -> None:
    notifier.succeed = False

    result = await _checkout(db_session, payments, notifier, payment_settings)

    assert result.session_id == "cs_test_1"
    assert len(notifier.sent("payment_link")) == 1


@pytest.mark.parametrize(
    ("new_start", "new_end", "available"),
    [
        (D(2025, 4, 1), D(2025, 4, 30), True),
        (D(2025, 3, 31), D(2025, 4, 30), False),
    ],
)
async def test_adjacent_rentals_do_not_conflict(
    db_session, payments, notifier, payment_settings, new_start, new_end, available
) -> None:
    await make_reservation(
        db_session, locker_id="locker_7", start=D(2025, 3, 1), end=D(2025, 3, 31)
    )

    if available:
        result = await _checkout(
            db_session,
            payments,
            notifier,
            payment_settings,
            start_date=new_start,
            end_date=new_end,
        )
        assert result.reservation.status == ReservationStatus.PENDING
    else:
        with pytest.raises(LockerUnavailableError):
            await _checkout(
                db_session,
                payments,
                notifier,
                payment_settings,
                start_date=new_start,
                end_date=new_end,
            )


async def _paid_rental(db_session, payments, notifier, payment_settings):
    result = await _checkout(db_session, payments, notifier, payment_settings)
    await webhook_service.dispatch_event(
        db_session, notifier, completed_event(payments.sessions[0])
    )
    return result.reservation.id


async def test_extension_is_priced_without_deposit(
    db_session, payments, notifier, payment_settings
) -> None:
    original_id = await _paid_rental(db_session, payments, notifier, payment_settings)

    result = await _extend(
        db_session,
        payments,
        notifier,
        payment_settings,
        original_id,
        new_end_date=D(2025, 4, 30),
        extension_months=2,
    )

    extension = await reservation_service.get_reservation(db_session, result.reservation.id)
    assert extension.is_extension
    assert extension.original_reservation_id == original_id
    assert extension.start_date == D(2025, 3, 2)
    assert extension.end_date == D(2025, 4, 30)
    assert extension.total_amount == 10000
    assert extension.status == ReservationStatus.PENDING

    checkout = payments.sessions[1]
    assert [item.name for item in checkout["line_items"]] == [
        "Locker #07 Extension - 2 months"
    ]
    assert checkout["metadata"]["is_extension"] == "true"
    assert checkout["metadata"]["key_deposit"] == "0"
    assert checkout["metadata"]["original_reservation_id"] == str(original_id)
    assert checkout["customer_email"] == "alice@example.com"


async def test_paid_extension_merges_into_original(
    db_session, payments, notifier, payment_settings
) -> None:
    original_id = await _paid_rental(db_session, payments, notifier, payment_settings)
    welcomes_before = len(notifier.sent("welcome"))
    await _extend(
        db_session,
        payments,
        notifier,
        payment_settings,
        original_id,
        new_end_date=D(2025, 4, 30),
        extension_months=2,
    )
    event = completed_event(payments.sessions[1], event_id="evt_ext")

    for _ in range(2):
        await webhook_service.dispatch_event(db_session, notifier, event)

    original = await reservation_service.get_reservation(db_session, original_id)
    assert original.status == ReservationStatus.ACTIVE
    assert original.start_date == D(2025, 1, 1)
    assert original.end_date == D(2025, 4, 30)
    assert original.total_amount == 25000
    assert original.total_months == 4
    extension = await reservation_service.get_by_payment_session_id(db_session, "cs_test_2")
    assert extension.status == ReservationStatus.ACTIVE
    assert len(notifier.sent("welcome")) == welcomes_before


async def test_extension_paid_after_original_ended_stands_alone(
    db_session, payments, notifier, payment_settings
) -> None:
    original_id = await _paid_rental(db_session, payments, notifier, payment_settings)
    await _extend(
        db_session,
        payments,
        notifier,
        payment_settings,
        original_id,
        new_end_date=D(2025, 4, 30),
    )
    await sweep_service.expire_ended_reservations(db_session, today=D(2025, 3, 1))

    await webhook_service.dispatch_event(
        db_session, notifier, completed_event(payments.sessions[1], event_id="evt_late")
    )

    original = await reservation_service.get_reservation(db_session, original_id)
    assert original.status == ReservationStatus.COMPLETED
    assert original.end_date == D(2025, 3, 1)
    assert original.total_amount == 15000
    extension = await reservation_service.get_by_payment_session_id(db_session, "cs_test_2")
    assert extension.status == ReservationStatus.ACTIVE
    assert not extension.is_extension
    assert extension.original_reservation_id == original_id

    active = await rental_service.list_rentals(db_session, status=ReservationStatus.ACTIVE)
    assert [record.id for record in active] == [extension.id]
    due = await sweep_service.find_reservations_expiring_tomorrow(
        db_session, today=D(2025, 4, 29)
    )
    assert [record.id for record in due] == [extension.id]


async def test_second_pending_extension_is_refused(
    db_session, payments, notifier, payment_settings
) -> None:
    original_id = await _paid_rental(db_session, payments, notifier, payment_settings)
    await _extend(
        db_session,
        payments,
        notifier,
        payment_settings,
        original_id,
        new_end_date=D(2025, 4, 30),
    )

    with pytest.raises(LockerUnavailableError):
        await _extend(
            db_session,
            payments,
            notifier,
            payment_settings,
            original_id,
            new_end_date=D(2025, 5, 31),
        )


async def test_extension_requires_active_original(
    db_session, payments, notifier, payment_settings
) -> None:
    result = await _checkout(db_session, payments, notifier, payment_settings)

    with pytest.raises(ValidationError):
        await _extend(
            db_session,
            payments,
            notifier,
            payment_settings,
            result.reservation.id,
            new_end_date=D(2025, 4, 30),
        )


async def test_extension_end_must_follow_current_end(
    db_session, payments, notifier, payment_settings
) -> None:
    original_id = await _paid_rental(db_session, payments, notifier, payment_settings)

    with pytest.raises(ValidationError):
        await _extend(
            db_session,
            payments,
            notifier,
            payment_settings,
            original_id,
            new_end_date=D(2025, 3, 2),
        )


async def test_extension_of_unknown_rental(
    db_session, payments, notifier, payment_settings
) -> None:
    with pytest.raises(NotFoundError):
        await _extend(
            db_session,
            payments,
            notifier,
            payment_settings,
            uuid.uuid4(),
            new_end_date=D(2025, 4, 30),
        )
