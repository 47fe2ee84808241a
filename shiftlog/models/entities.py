"""ORM entities for shift scheduling and performance logging."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from shiftlog.db.base import Base


def utcnow() -> datetime:
    return datetime.utcnow()


def _enum_column(enum_cls: type[enum.Enum], name: str) -> SQLEnum:
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


class EmploymentStatus(str, enum.Enum):
    OFFICIAL = "official"
    CONTRACTUAL = "contractual"
    TEMPORARY = "temporary"


class ProductivityStatus(str, enum.Enum):
    PRODUCTIVE = "productive"
    NON_PRODUCTIVE = "non_productive"


class DriverStatus(str, enum.Enum):
    DRIVER = "driver"
    NON_DRIVER = "non_driver"


class BaseType(str, enum.Enum):
    URBAN = "urban"
    ROAD = "road"


class LogStatus(str, enum.Enum):
    DRAFT = "draft"
    FINALIZED = "finalized"


class EntryType(str, enum.Enum):
    CELL = "cell"
    BATCH = "batch"
    SUMMARY = "summary"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    role: Mapped[UserRole] = mapped_column(_enum_column(UserRole, "user_role"), nullable=False, default=UserRole.USER)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class UserSession(Base):
    __tablename__ = "user_sessions"
    __table_args__ = (Index("ix_user_sessions_user_id", "user_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Personnel(Base):
    __tablename__ = "personnel"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name: Mapped[str] = mapped_column(String(150), nullable=False)
    last_name: Mapped[str] = mapped_column(String(150), nullable=False)
    national_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    employment_status: Mapped[EmploymentStatus] = mapped_column(
        _enum_column(EmploymentStatus, "employment_status"), nullable=False
    )
    productivity_status: Mapped[ProductivityStatus] = mapped_column(
        _enum_column(ProductivityStatus, "productivity_status"), nullable=False
    )
    driver_status: Mapped[DriverStatus] = mapped_column(_enum_column(DriverStatus, "driver_status"), nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class WorkShift(Base):
    __tablename__ = "work_shifts"
    __table_args__ = (CheckConstraint("equivalent_hours >= 0", name="ck_work_shifts_hours_non_negative"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(150), nullable=False)
    equivalent_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    shift_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)


class StationBase(Base):
    """Emergency-service station (``Base`` is taken by the declarative base)."""

    __tablename__ = "bases"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    type: Mapped[BaseType] = mapped_column(_enum_column(BaseType, "base_type"), nullable=False)


class BaseProfile(Base):
    __tablename__ = "base_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), unique=True, nullable=False)
    supervisor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    supervisor_national_id: Mapped[str] = mapped_column(String(64), nullable=False)
    base_name: Mapped[str] = mapped_column(String(255), nullable=False)
    base_number: Mapped[str] = mapped_column(String(32), nullable=False)
    base_type: Mapped[BaseType] = mapped_column(_enum_column(BaseType, "base_type"), nullable=False)
    digital_signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class BaseMember(Base):
    __tablename__ = "base_members"
    __table_args__ = (
        UniqueConstraint("user_id", "personnel_id", name="uq_base_members_user_personnel"),
        Index("ix_base_members_user_id", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    personnel_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("personnel.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class PerformanceLog(Base):
    __tablename__ = "performance_logs"
    __table_args__ = (
        UniqueConstraint("user_id", "year", "month", name="uq_performance_logs_user_period"),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_performance_logs_month_range"),
        Index("ix_performance_logs_period", "year", "month"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    base_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("bases.id"), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[LogStatus] = mapped_column(
        _enum_column(LogStatus, "log_status"), nullable=False, default=LogStatus.DRAFT
    )
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def is_finalized(self) -> bool:
        return self.status is LogStatus.FINALIZED


class PerformanceEntry(Base):
    __tablename__ = "performance_entries"
    __table_args__ = (
        CheckConstraint("missions >= 0", name="ck_performance_entries_missions_non_negative"),
        CheckConstraint("meals >= 0", name="ck_performance_entries_meals_non_negative"),
        UniqueConstraint("log_id", "personnel_id", "date", name="uq_performance_entries_log_personnel_date"),
        Index(
            "uq_performance_entries_log_personnel_undated",
            "log_id",
            "personnel_id",
            unique=True,
            postgresql_where=text("date IS NULL"),
            sqlite_where=text("date IS NULL"),
        ),
        Index("ix_performance_entries_log_id", "log_id"),
        Index("ix_performance_entries_user_period", "user_id", "year", "month"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    log_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("performance_logs.id"), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    personnel_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("personnel.id"), nullable=False)
    shift_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("work_shifts.id"), nullable=True)
    date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    entry_type: Mapped[EntryType] = mapped_column(
        _enum_column(EntryType, "entry_type"), nullable=False, default=EntryType.CELL
    )
    missions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    meals: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_modified_by: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    is_finalized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    finalized_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class PerformanceAssignment(Base):
    __tablename__ = "performance_assignments"
    __table_args__ = (
        UniqueConstraint("log_id", "personnel_id", "date", name="uq_performance_assignments_log_personnel_date"),
        Index("ix_performance_assignments_period", "year", "month"),
        Index("ix_performance_assignments_personnel_date", "personnel_id", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    log_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("performance_logs.id"), nullable=True)
    personnel_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("personnel.id"), nullable=False)
    shift_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("work_shifts.id"), nullable=False)
    base_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("bases.id"), nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    day: Mapped[int] = mapped_column(Integer, nullable=False)


class IranHoliday(Base):
    __tablename__ = "iran_holidays"
    __table_args__ = (Index("ix_iran_holidays_period", "year", "month"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    date: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    day: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
