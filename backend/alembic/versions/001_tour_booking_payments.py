# backend/alembic/versions/001_tour_booking_payments.py
"""Tour booking foundation - users, tours, plans, bookings, payments, activity log

Revision ID: 001_tour_booking_payments
Revises:
Create Date: 2026-10-18 00:00:00.000000

This migration creates the schema for the booking and payment workflow.
Payments reference their payable through (payable_type, payable_id) with no
foreign key on payable_id.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_tour_booking_payments"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create booking and payment tables."""
    print("Creating tour booking schema...")

    op.create_table(
        "users",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="tourist"),
        *_timestamps(),
        sa.CheckConstraint("role IN ('tourist', 'guide', 'admin')", name="ck_users_role"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "tours",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column(
            "guide_id",
            sa.String(26),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("price >= 0", name="check_tour_price_non_negative"),
    )
    op.create_index("ix_tours_id", "tours", ["id"])
    op.create_index("ix_tours_guide_id", "tours", ["guide_id"])

    op.create_table(
        "plans",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(26),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_plans_id", "plans", ["id"])
    op.create_index("ix_plans_user_id", "plans", ["user_id"])

    op.create_table(
        "tour_bookings",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column(
            "tour_id",
            sa.String(26),
            sa.ForeignKey("tours.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "tourist_id",
            sa.String(26),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("participants_count", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')", name="ck_tour_bookings_status"
        ),
        sa.CheckConstraint("participants_count > 0", name="check_participants_positive"),
        sa.CheckConstraint("amount >= 0", name="check_booking_amount_non_negative"),
    )
    op.create_index("ix_tour_bookings_id", "tour_bookings", ["id"])
    op.create_index("ix_tour_bookings_status", "tour_bookings", ["status"])
    op.create_index("ix_tour_bookings_tour_tourist", "tour_bookings", ["tour_id", "tourist_id"])

    op.create_table(
        "payments",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column(
            "payer_id",
            sa.String(26),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payable_type", sa.String(32), nullable=False),
        sa.Column("payable_id", sa.String(26), nullable=False),
        sa.Column("receipt_image", sa.String(500), nullable=True),
        sa.Column("transaction_id", sa.String(100), nullable=True),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'failed')", name="ck_payments_status"
        ),
        sa.CheckConstraint(
            "payable_type IN ('tour_bookings', 'plans')", name="ck_payments_payable_type"
        ),
        sa.CheckConstraint("amount > 0", name="check_payment_amount_positive"),
    )
    op.create_index("ix_payments_id", "payments", ["id"])
    op.create_index("ix_payments_payer_id", "payments", ["payer_id"])
    op.create_index("ix_payments_status", "payments", ["status"])
    op.create_index("ix_payments_payable", "payments", ["payable_type", "payable_id"])

    op.create_table(
        "user_activities",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(26),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("activity_type", sa.String(32), nullable=False),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "activity_type IN ('search', 'visit', 'like', 'comment', 'plan_creation', "
            "'booking', 'payment')",
            name="ck_user_activities_type",
        ),
    )
    op.create_index("ix_user_activities_id", "user_activities", ["id"])
    op.create_index("ix_user_activities_user_id", "user_activities", ["user_id"])

    print("Tour booking schema created")


def downgrade() -> None:
    """Drop booking and payment tables."""
    print("Dropping tour booking schema...")

    op.drop_table("user_activities")
    op.drop_table("payments")
    op.drop_table("tour_bookings")
    op.drop_table("plans")
    op.drop_table("tours")
    op.drop_table("users")
