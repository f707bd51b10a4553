"""Initial locker rental schema.

Revision ID: 0001
Revises:
Create Date: 2025-01-06
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

RESERVATION_STATUSES = (
    "pending",
    "active",
    "past_due",
    "canceled",
    "incomplete",
    "expired",
    "completed",
)
WAITLIST_STATUSES = ("none", "contacted", "link_sent", "not_needed", "paid")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "lockers",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("number", sa.String(length=16), nullable=False, unique=True),
        sa.Column("price_per_month", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )

    op.create_table(
        "students",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("student_name", sa.String(length=255), nullable=False),
        sa.Column("student_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("student_email", sa.String(length=320), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "reservations",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("payment_session_id", sa.String(length=255), nullable=True),
        sa.Column("payment_intent_id", sa.String(length=255), nullable=True),
        sa.Column("payer_account_id", sa.String(length=255), nullable=True),
        sa.Column("customer_email", sa.String(length=320), nullable=True),
        sa.Column(
            "locker_id",
            sa.String(length=64),
            sa.ForeignKey("lockers.id"),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum(*RESERVATION_STATUSES, name="reservation_status"),
            nullable=False,
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("total_months", sa.Integer(), nullable=False),
        sa.Column("total_amount", sa.Integer(), nullable=False),
        sa.Column(
            "is_extension", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "original_reservation_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("reservations.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "student_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("students.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
        sa.CheckConstraint("end_date > start_date", name="ck_reservations_date_order"),
    )
    op.create_index(
        "uq_reservations_payment_session_id",
        "reservations",
        ["payment_session_id"],
        unique=True,
    )
    op.create_index(
        "ix_reservations_locker_status", "reservations", ["locker_id", "status"]
    )
    op.create_index(
        "ix_reservations_dates", "reservations", ["start_date", "end_date"]
    )
    op.create_index("ix_reservations_student", "reservations", ["student_id"])

    op.create_table(
        "waitlist_entries",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("student_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("potential_start_date", sa.Date(), nullable=False),
        sa.Column("potential_end_date", sa.Date(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(*WAITLIST_STATUSES, name="waitlist_status"),
            nullable=False,
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "potential_start_date <= potential_end_date",
            name="ck_waitlist_date_order",
        ),
    )
    op.create_index("ix_waitlist_created_at", "waitlist_entries", ["created_at"])

    op.create_table(
        "payment_events",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "provider_event_id", sa.String(length=255), nullable=False, unique=True
        ),
        sa.Column("event_type", sa.String(length=128), nullable=False),
        sa.Column(
            "received_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "raw",
            postgresql.JSONB(astext_type=sa.Text()).with_variant(sa.JSON(), "sqlite"),
            nullable=False,
        ),
    )


def downgrade() -> None:
    op.drop_table("payment_events")
    op.drop_index("ix_waitlist_created_at", table_name="waitlist_entries")
    op.drop_table("waitlist_entries")
    op.drop_index("ix_reservations_student", table_name="reservations")
    op.drop_index("ix_reservations_dates", table_name="reservations")
    op.drop_index("ix_reservations_locker_status", table_name="reservations")
    op.drop_index("uq_reservations_payment_session_id", table_name="reservations")
    op.drop_table("reservations")
    op.drop_table("students")
    op.drop_table("lockers")
    sa.Enum(name="waitlist_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="reservation_status").drop(op.get_bind(), checkfirst=True)
