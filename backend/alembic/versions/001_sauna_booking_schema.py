# backend/alembic/versions/001_sauna_booking_schema.py
"""Sauna booking schema - users, time slots, waivers, bookings, memberships

Revision ID: 001_sauna_booking_schema
Revises:
Create Date: 2024-06-15 00:00:00.000000

Creates the complete schema for the booking platform. Capacity integrity is
enforced in the database as well as in the service layer: the slot counter
is constrained to 0..max_capacity and (date, start, kind) is unique.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_sauna_booking_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    ]


def upgrade() -> None:
    """Create all booking platform tables."""
    print("Creating sauna booking tables...")

    op.create_table(
        "users",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=True),
        sa.Column("phone", sa.String(40), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "time_slots",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("slot_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("slot_kind", sa.String(20), nullable=False),
        sa.Column("max_capacity", sa.Integer(), nullable=False),
        sa.Column("current_bookings", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "slot_date", "start_time", "slot_kind", name="uq_time_slots_date_start_kind"
        ),
        sa.CheckConstraint("max_capacity >= 1", name="ck_time_slots_capacity_positive"),
        sa.CheckConstraint(
            "current_bookings >= 0 AND current_bookings <= max_capacity",
            name="ck_time_slots_bookings_within_capacity",
        ),
        sa.CheckConstraint("start_time < end_time", name="ck_time_slots_window_order"),
    )
    op.create_index("ix_time_slots_id", "time_slots", ["id"])
    op.create_index("ix_time_slots_slot_date", "time_slots", ["slot_date"])
    op.create_index("ix_time_slots_date_kind", "time_slots", ["slot_date", "slot_kind"])

    op.create_table(
        "liability_waivers",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("signer_name", sa.String(200), nullable=False),
        sa.Column("signer_email", sa.String(320), nullable=False),
        sa.Column("signer_phone", sa.String(40), nullable=True),
        sa.Column("emergency_contact_name", sa.String(200), nullable=False),
        sa.Column("emergency_contact_phone", sa.String(40), nullable=False),
        sa.Column("waiver_version", sa.String(20), nullable=False),
        sa.Column("waiver_text", sa.Text(), nullable=False),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("signed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_liability_waivers_id", "liability_waivers", ["id"])
    op.create_index("ix_liability_waivers_user_id", "liability_waivers", ["user_id"])
    op.create_index("ix_liability_waivers_signer_email", "liability_waivers", ["signer_email"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("time_slot_id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("waiver_id", sa.String(26), nullable=True),
        sa.Column("customer_name", sa.String(200), nullable=False),
        sa.Column("customer_email", sa.String(320), nullable=False),
        sa.Column("customer_phone", sa.String(40), nullable=True),
        sa.Column("session_kind", sa.String(20), nullable=False),
        sa.Column("party_size", sa.Integer(), nullable=False),
        sa.Column("total_amount_cents", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("payment_status", sa.String(20), nullable=False),
        sa.Column("checkout_session_id", sa.String(255), nullable=True),
        sa.Column("payment_intent_id", sa.String(255), nullable=True, comment="Stripe payment intent"),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["time_slot_id"], ["time_slots.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["waiver_id"], ["liability_waivers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("checkout_session_id"),
        sa.CheckConstraint("party_size >= 1 AND party_size <= 8", name="ck_bookings_party_size"),
        sa.CheckConstraint("total_amount_cents >= 0", name="ck_bookings_amount_non_negative"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_time_slot_id", "bookings", ["time_slot_id"])
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_customer_email", "bookings", ["customer_email"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_created_at", "bookings", ["created_at"])
    op.create_index("ix_bookings_status_created", "bookings", ["status", "created_at"])

    op.create_table(
        "memberships",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("membership_kind", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("stripe_customer_id", sa.String(255), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )
    op.create_index("ix_memberships_id", "memberships", ["id"])
    op.create_index("ix_memberships_stripe_customer_id", "memberships", ["stripe_customer_id"])
    op.create_index("ix_memberships_stripe_subscription_id", "memberships", ["stripe_subscription_id"])

    op.create_table(
        "membership_purchases",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("membership_kind", sa.String(20), nullable=False),
        sa.Column("amount_paid_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "stripe_subscription_id", "start_date", name="uq_membership_purchases_period"
        ),
    )
    op.create_index("ix_membership_purchases_id", "membership_purchases", ["id"])
    op.create_index("ix_membership_purchases_user_id", "membership_purchases", ["user_id"])

    print("Sauna booking tables created")


def downgrade() -> None:
    """Drop all booking platform tables."""
    op.drop_table("membership_purchases")
    op.drop_table("memberships")
    op.drop_table("bookings")
    op.drop_table("liability_waivers")
    op.drop_table("time_slots")
    op.drop_table("users")
