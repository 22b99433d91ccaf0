# backend/alembic/versions/001_booking_core.py
"""Booking core - users, mentor profiles, weekly availability and bookings

Revision ID: 001_booking_core
Revises:
Create Date: 2026-10-18 00:00:00.000000

Bookings are self-contained: they snapshot price, currency and duration and
store ``[scheduled_time, end_time)`` as UTC instants. On PostgreSQL an
exclusion constraint forbids overlapping non-cancelled bookings per mentor.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_booking_core"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _is_postgres() -> bool:
    bind = op.get_bind()
    return bind is not None and bind.dialect.name == "postgresql"


def upgrade() -> None:
    """Create booking core tables."""
    print("Creating booking core tables...")

    op.create_table(
        "users",
        sa.Column("id", sa.String(24), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("role", sa.String(20), nullable=False, server_default="student"),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("role IN ('student', 'mentor')", name="ck_users_role"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "mentor_profiles",
        sa.Column("id", sa.String(24), nullable=False),
        sa.Column("user_id", sa.String(24), nullable=False),
        sa.Column("display_name", sa.String(200), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="INR"),
        sa.Column("session_durations", sa.JSON(), nullable=False),
        sa.Column("is_accepting_bookings", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("calcom_username", sa.String(255), nullable=True),
        sa.Column("calcom_event_type_id", sa.Integer(), nullable=True),
        sa.Column("booking_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.UniqueConstraint("user_id"),
        sa.CheckConstraint("hourly_rate > 0", name="ck_mentor_profiles_rate_positive"),
    )

    op.create_table(
        "weekly_availability_days",
        sa.Column("id", sa.String(24), nullable=False),
        sa.Column("mentor_profile_id", sa.String(24), nullable=False),
        sa.Column("weekday", sa.Integer(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["mentor_profile_id"], ["mentor_profiles.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("mentor_profile_id", "weekday", name="uq_weekly_availability_day"),
        sa.CheckConstraint("weekday BETWEEN 0 AND 6", name="ck_weekly_availability_weekday"),
    )

    op.create_table(
        "availability_time_slots",
        sa.Column("id", sa.String(24), nullable=False),
        sa.Column("day_id", sa.String(24), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["day_id"], ["weekly_availability_days.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(24), nullable=False),
        sa.Column("mentor_id", sa.String(24), nullable=False),
        sa.Column("student_id", sa.String(24), nullable=False),
        sa.Column("scheduled_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("subject", sa.String(200), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("session_type", sa.String(20), nullable=False, server_default="video"),
        sa.Column(
            "status", sa.String(32), nullable=False, server_default="pending_mentor_acceptance"
        ),
        # Payment snapshot
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="INR"),
        sa.Column("payment_id", sa.String(255), nullable=True),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("refund_id", sa.String(255), nullable=True),
        sa.Column("refund_status", sa.String(20), nullable=True),
        # Meeting
        sa.Column("meeting_url", sa.String(500), nullable=True),
        sa.Column("meeting_provider", sa.String(32), nullable=True),
        sa.Column("external_booking_id", sa.String(255), nullable=True),
        # Acceptance flow
        sa.Column("auto_decline_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("mentor_accepted_at", sa.DateTime(timezone=True), nullable=True),
        # Cancellation tracking
        sa.Column("cancellation_reason", sa.String(500), nullable=True),
        sa.Column("cancelled_by", sa.String(20), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        # Feedback
        sa.Column("student_rating", sa.Integer(), nullable=True),
        sa.Column("student_review", sa.Text(), nullable=True),
        sa.Column("mentor_rating", sa.Integer(), nullable=True),
        sa.Column("mentor_review", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["mentor_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"]),
        sa.CheckConstraint(
            "status IN ('pending_mentor_acceptance', 'confirmed', 'cancelled', 'completed')",
            name="ck_bookings_status",
        ),
        sa.CheckConstraint(
            "meeting_provider IS NULL OR meeting_provider IN ('external-calendar', 'manual', 'fallback')",
            name="ck_bookings_meeting_provider",
        ),
        sa.CheckConstraint(
            "cancelled_by IS NULL OR cancelled_by IN ('student', 'mentor', 'system')",
            name="ck_bookings_cancelled_by",
        ),
        sa.CheckConstraint("duration BETWEEN 15 AND 180", name="check_duration_range"),
        sa.CheckConstraint("price >= 0", name="check_price_non_negative"),
        sa.CheckConstraint("scheduled_time < end_time", name="check_time_order"),
        sa.CheckConstraint(
            "student_rating IS NULL OR student_rating BETWEEN 1 AND 5",
            name="ck_bookings_student_rating",
        ),
        sa.CheckConstraint(
            "mentor_rating IS NULL OR mentor_rating BETWEEN 1 AND 5",
            name="ck_bookings_mentor_rating",
        ),
    )
    op.create_index("ix_bookings_student_id", "bookings", ["student_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_mentor_schedule", "bookings", ["mentor_id", "scheduled_time"])

    if _is_postgres():
        print("Adding per-mentor no-overlap exclusion constraint...")
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE bookings
            ADD CONSTRAINT bookings_no_overlap_per_mentor
            EXCLUDE USING gist (
                mentor_id WITH =,
                tstzrange(scheduled_time, end_time, '[)') WITH &&
            )
            WHERE (status <> 'cancelled')
            """
        )

    print("Booking core tables created")


def downgrade() -> None:
    """Drop booking core tables."""
    if _is_postgres():
        op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS bookings_no_overlap_per_mentor")

    op.drop_index("ix_bookings_mentor_schedule", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_student_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("availability_time_slots")
    op.drop_table("weekly_availability_days")
    op.drop_table("mentor_profiles")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
