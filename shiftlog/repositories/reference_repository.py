"""Repository helpers for reference data, base rosters and user accounts."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from shiftlog.models.entities import (
    BaseMember,
    BaseProfile,
    EmploymentStatus,
    IranHoliday,
    PerformanceAssignment,
    PerformanceEntry,
    PerformanceLog,
    Personnel,
    ProductivityStatus,
    StationBase,
    User,
    UserSession,
    WorkShift,
)


class ReferenceRepository:
    """Persistence operations for personnel, shifts, bases, profiles and users."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def add(self, row: object) -> object:
        self.db.add(row)
        self.db.flush()
        return row

    def delete(self, row: object) -> None:
        self.db.delete(row)
        self.db.flush()

    # ---------- Users and sessions ----------
    def list_users(self) -> list[User]:
        return self.db.scalars(select(User).order_by(User.username.asc())).all()

    def get_user(self, user_id: UUID) -> User | None:
        return self.db.scalar(select(User).where(User.id == user_id))

    def get_user_by_username(self, username: str) -> User | None:
        return self.db.scalar(select(User).where(User.username == username))

    def get_session(self, session_id: UUID) -> UserSession | None:
        return self.db.scalar(select(UserSession).where(UserSession.id == session_id))

    def delete_sessions_for_user(self, user_id: UUID) -> None:
        for row in self.db.scalars(select(UserSession).where(UserSession.user_id == user_id)).all():
            self.db.delete(row)
        self.db.flush()

    def user_reference_count(self, user_id: UUID) -> int:
        logs = self.db.scalar(
            select(func.count()).select_from(PerformanceLog).where(PerformanceLog.user_id == user_id)
        )
        return logs or 0

    # ---------- Personnel ----------
    def list_personnel(
        self,
        *,
        employment_status: EmploymentStatus | None = None,
        productivity_status: ProductivityStatus | None = None,
    ) -> list[Personnel]:
        conditions = []
        if employment_status is not None:
            conditions.append(Personnel.employment_status == employment_status)
        if productivity_status is not None:
            conditions.append(Personnel.productivity_status == productivity_status)

        query = select(Personnel)
        if conditions:
            query = query.where(and_(*conditions))
        return self.db.scalars(query.order_by(Personnel.last_name.asc(), Personnel.first_name.asc())).all()

    def list_personnel_by_ids(self, personnel_ids: set[UUID]) -> list[Personnel]:
        if not personnel_ids:
            return []
        return self.db.scalars(
            select(Personnel)
            .where(Personnel.id.in_(personnel_ids))
            .order_by(Personnel.last_name.asc(), Personnel.first_name.asc())
        ).all()

    def get_personnel(self, personnel_id: UUID) -> Personnel | None:
        return self.db.scalar(select(Personnel).where(Personnel.id == personnel_id))

    def get_personnel_by_national_id(self, national_id: str) -> Personnel | None:
        return self.db.scalar(select(Personnel).where(Personnel.national_id == national_id))

    def personnel_reference_count(self, personnel_id: UUID) -> int:
        entries = self.db.scalar(
            select(func.count()).select_from(PerformanceEntry).where(PerformanceEntry.personnel_id == personnel_id)
        )
        assignments = self.db.scalar(
            select(func.count())
            .select_from(PerformanceAssignment)
            .where(PerformanceAssignment.personnel_id == personnel_id)
        )
        return (entries or 0) + (assignments or 0)

    # ---------- Work shifts ----------
    def list_work_shifts(self) -> list[WorkShift]:
        return self.db.scalars(select(WorkShift).order_by(WorkShift.shift_code.asc())).all()

    def get_work_shift(self, shift_id: UUID) -> WorkShift | None:
        return self.db.scalar(select(WorkShift).where(WorkShift.id == shift_id))

    def get_work_shift_by_code(self, shift_code: str) -> WorkShift | None:
        return self.db.scalar(select(WorkShift).where(WorkShift.shift_code == shift_code))

    def work_shift_reference_count(self, shift_id: UUID) -> int:
        entries = self.db.scalar(
            select(func.count()).select_from(PerformanceEntry).where(PerformanceEntry.shift_id == shift_id)
        )
        assignments = self.db.scalar(
            select(func.count()).select_from(PerformanceAssignment).where(PerformanceAssignment.shift_id == shift_id)
        )
        return (entries or 0) + (assignments or 0)

    # ---------- Bases ----------
    def list_bases(self) -> list[StationBase]:
        return self.db.scalars(select(StationBase).order_by(StationBase.number.asc())).all()

    def get_base(self, base_id: UUID) -> StationBase | None:
        return self.db.scalar(select(StationBase).where(StationBase.id == base_id))

    def get_base_by_number(self, number: str) -> StationBase | None:
        return self.db.scalar(select(StationBase).where(StationBase.number == number))

    def base_reference_count(self, base_id: UUID) -> int:
        return (
            self.db.scalar(
                select(func.count())
                .select_from(PerformanceLog)
                .where(PerformanceLog.base_id == base_id)
            )
            or 0
        ) + (
            self.db.scalar(
                select(func.count())
                .select_from(PerformanceAssignment)
                .where(PerformanceAssignment.base_id == base_id)
            )
            or 0
        )

    # ---------- Base profiles ----------
    def get_base_profile(self, user_id: UUID) -> BaseProfile | None:
        return self.db.scalar(select(BaseProfile).where(BaseProfile.user_id == user_id))

    # ---------- Base members ----------
    def list_base_members(self, user_id: UUID) -> list[BaseMember]:
        return self.db.scalars(
            select(BaseMember).where(BaseMember.user_id == user_id).order_by(BaseMember.created_at.asc())
        ).all()

    def list_member_personnel(self, user_id: UUID) -> list[Personnel]:
        return self.db.scalars(
            select(Personnel)
            .join(BaseMember, BaseMember.personnel_id == Personnel.id)
            .where(BaseMember.user_id == user_id)
            .order_by(Personnel.last_name.asc(), Personnel.first_name.asc())
        ).all()

    def get_base_member(self, user_id: UUID, personnel_id: UUID) -> BaseMember | None:
        return self.db.scalar(
            select(BaseMember).where(
                and_(
                    BaseMember.user_id == user_id,
                    BaseMember.personnel_id == personnel_id,
                )
            )
        )

    def member_personnel_ids(self, user_id: UUID) -> set[UUID]:
        return set(self.db.scalars(select(BaseMember.personnel_id).where(BaseMember.user_id == user_id)).all())

    def delete_memberships_for_personnel(self, personnel_id: UUID) -> None:
        for row in self.db.scalars(select(BaseMember).where(BaseMember.personnel_id == personnel_id)).all():
            self.db.delete(row)
        self.db.flush()

    # ---------- Holidays ----------
    def list_holidays(self, *, year: int | None = None, month: int | None = None) -> list[IranHoliday]:
        conditions = []
        if year is not None:
            conditions.append(IranHoliday.year == year)
        if month is not None:
            conditions.append(IranHoliday.month == month)

        query = select(IranHoliday)
        if conditions:
            query = query.where(and_(*conditions))
        return self.db.scalars(query.order_by(IranHoliday.date.asc())).all()

    def get_holiday(self, holiday_id: UUID) -> IranHoliday | None:
        return self.db.scalar(select(IranHoliday).where(IranHoliday.id == holiday_id))

    def search_personnel(self, term: str) -> list[Personnel]:
        pattern = f"%{term.strip()}%"
        return self.db.scalars(
            select(Personnel)
            .where(
                or_(
                    Personnel.first_name.ilike(pattern),
                    Personnel.last_name.ilike(pattern),
                    Personnel.national_id.ilike(pattern),
                )
            )
            .order_by(Personnel.last_name.asc(), Personnel.first_name.asc())
        ).all()
