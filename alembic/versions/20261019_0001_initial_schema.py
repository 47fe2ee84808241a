"""initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


user_role = postgresql.ENUM("admin", "user", name="user_role", create_type=False)
employment_status = postgresql.ENUM(
    "official", "contractual", "temporary", name="employment_status", create_type=False
)
productivity_status = postgresql.ENUM("productive", "non_productive", name="productivity_status", create_type=False)
driver_status = postgresql.ENUM("driver", "non_driver", name="driver_status", create_type=False)
base_type = postgresql.ENUM("urban", "road", name="base_type", create_type=False)
log_status = postgresql.ENUM("draft", "finalized", name="log_status", create_type=False)
entry_type = postgresql.ENUM("cell", "batch", "summary", name="entry_type", create_type=False)

ENUM_TYPES = (user_role, employment_status, productivity_status, driver_status, base_type, log_status, entry_type)


def upgrade() -> None:
    for enum_type in ENUM_TYPES:
        enum_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("username", sa.String(length=150), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=256), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "user_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("token", sa.String(length=128), nullable=False, unique=True),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])

    op.create_table(
        "personnel",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("first_name", sa.String(length=150), nullable=False),
        sa.Column("last_name", sa.String(length=150), nullable=False),
        sa.Column("national_id", sa.String(length=64), nullable=False, unique=True),
        sa.Column("employment_status", employment_status, nullable=False),
        sa.Column("productivity_status", productivity_status, nullable=False),
        sa.Column("driver_status", driver_status, nullable=False),
    )

    op.create_table(
        "work_shifts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=150), nullable=False),
        sa.Column("equivalent_hours", sa.Integer(), nullable=False),
        sa.Column("shift_code", sa.String(length=32), nullable=False, unique=True),
        sa.CheckConstraint("equivalent_hours >= 0", name="ck_work_shifts_hours_non_negative"),
    )

    op.create_table(
        "bases",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("number", sa.String(length=32), nullable=False, unique=True),
        sa.Column("type", base_type, nullable=False),
    )

    op.create_table(
        "base_profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False, unique=True),
        sa.Column("supervisor_name", sa.String(length=255), nullable=False),
        sa.Column("supervisor_national_id", sa.String(length=64), nullable=False),
        sa.Column("base_name", sa.String(length=255), nullable=False),
        sa.Column("base_number", sa.String(length=32), nullable=False),
        sa.Column("base_type", base_type, nullable=False),
        sa.Column("digital_signature", sa.Text(), nullable=True),
        sa.Column("is_complete", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "base_members",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("personnel_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("personnel.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "personnel_id", name="uq_base_members_user_personnel"),
    )
    op.create_index("ix_base_members_user_id", "base_members", ["user_id"])

    op.create_table(
        "performance_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("base_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bases.id"), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("status", log_status, nullable=False, server_default="draft"),
        sa.Column("notes", sa.String(length=2000), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "year", "month", name="uq_performance_logs_user_period"),
        sa.CheckConstraint("month >= 1 AND month <= 12", name="ck_performance_logs_month_range"),
    )
    op.create_index("ix_performance_logs_period", "performance_logs", ["year", "month"])

    op.create_table(
        "performance_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "log_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("performance_logs.id"), nullable=False
        ),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("personnel_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("personnel.id"), nullable=False),
        sa.Column("shift_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("work_shifts.id"), nullable=True),
        sa.Column("date", sa.String(length=10), nullable=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("day", sa.Integer(), nullable=True),
        sa.Column("entry_type", entry_type, nullable=False, server_default="cell"),
        sa.Column("missions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("meals", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_modified_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("is_finalized", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("finalized_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("missions >= 0", name="ck_performance_entries_missions_non_negative"),
        sa.CheckConstraint("meals >= 0", name="ck_performance_entries_meals_non_negative"),
        sa.UniqueConstraint("log_id", "personnel_id", "date", name="uq_performance_entries_log_personnel_date"),
    )
    op.create_index(
        "uq_performance_entries_log_personnel_undated",
        "performance_entries",
        ["log_id", "personnel_id"],
        unique=True,
        postgresql_where=sa.text("date IS NULL"),
    )
    op.create_index("ix_performance_entries_log_id", "performance_entries", ["log_id"])
    op.create_index("ix_performance_entries_user_period", "performance_entries", ["user_id", "year", "month"])

    op.create_table(
        "performance_assignments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("log_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("performance_logs.id"), nullable=True),
        sa.Column("personnel_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("personnel.id"), nullable=False),
        sa.Column("shift_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("work_shifts.id"), nullable=False),
        sa.Column("base_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bases.id"), nullable=False),
        sa.Column("date", sa.String(length=10), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("day", sa.Integer(), nullable=False),
        sa.UniqueConstraint(
            "log_id", "personnel_id", "date", name="uq_performance_assignments_log_personnel_date"
        ),
    )
    op.create_index("ix_performance_assignments_period", "performance_assignments", ["year", "month"])
    op.create_index(
        "ix_performance_assignments_personnel_date", "performance_assignments", ["personnel_id", "date"]
    )

    op.create_table(
        "iran_holidays",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("date", sa.String(length=10), nullable=False, unique=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("day", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
    )
    op.create_index("ix_iran_holidays_period", "iran_holidays", ["year", "month"])


def downgrade() -> None:
    op.drop_index("ix_iran_holidays_period", table_name="iran_holidays")
    op.drop_table("iran_holidays")

    op.drop_index("ix_performance_assignments_personnel_date", table_name="performance_assignments")
    op.drop_index("ix_performance_assignments_period", table_name="performance_assignments")
    op.drop_table("performance_assignments")

    op.drop_index("ix_performance_entries_user_period", table_name="performance_entries")
    op.drop_index("ix_performance_entries_log_id", table_name="performance_entries")
    op.drop_index("uq_performance_entries_log_personnel_undated", table_name="performance_entries")
    op.drop_table("performance_entries")

    op.drop_index("ix_performance_logs_period", table_name="performance_logs")
    op.drop_table("performance_logs")

    op.drop_index("ix_base_members_user_id", table_name="base_members")
    op.drop_table("base_members")
    op.drop_table("base_profiles")
    op.drop_table("bases")
    op.drop_table("work_shifts")
    op.drop_table("personnel")

    op.drop_index("ix_user_sessions_user_id", table_name="user_sessions")
    op.drop_table("user_sessions")
    op.drop_table("users")

    for enum_type in reversed(ENUM_TYPES):
        enum_type.drop(op.get_bind(), checkfirst=True)
