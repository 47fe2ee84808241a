"""Repository helpers for performance logs, entries and admin assignments."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, select, update
from sqlalchemy.orm import Session

from shiftlog.models.entities import (
    LogStatus,
    PerformanceAssignment,
    PerformanceEntry,
    PerformanceLog,
)


class PerformanceRepository:
    """Persistence operations used by the logging workflow and admin grid."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Logs ----------
    def list_logs(
        self,
        *,
        user_id: UUID | None = None,
        year: int | None = None,
        month: int | None = None,
        status: LogStatus | None = None,
    ) -> list[PerformanceLog]:
        conditions = []
        if user_id is not None:
            conditions.append(PerformanceLog.user_id == user_id)
        if year is not None:
            conditions.append(PerformanceLog.year == year)
        if month is not None:
            conditions.append(PerformanceLog.month == month)
        if status is not None:
            conditions.append(PerformanceLog.status == status)

        query = select(PerformanceLog)
        if conditions:
            query = query.where(and_(*conditions))
        return self.db.scalars(
            query.order_by(PerformanceLog.year.desc(), PerformanceLog.month.desc(), PerformanceLog.created_at.asc())
        ).all()

    def get_log(self, log_id: UUID) -> PerformanceLog | None:
        return self.db.scalar(select(PerformanceLog).where(PerformanceLog.id == log_id))

    def get_log_for_update(self, log_id: UUID) -> PerformanceLog | None:
        """Load the log holding a row lock until the transaction ends.

        ``populate_existing`` makes sure a stale identity-map copy does not
        hide a status change committed by a concurrent request.
        """

        return self.db.scalar(
            select(PerformanceLog)
            .where(PerformanceLog.id == log_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )

    def get_log_for_period(self, user_id: UUID, year: int, month: int) -> PerformanceLog | None:
        return self.db.scalar(
            select(PerformanceLog).where(
                and_(
                    PerformanceLog.user_id == user_id,
                    PerformanceLog.year == year,
                    PerformanceLog.month == month,
                )
            )
        )

    def add_log(self, log: PerformanceLog) -> PerformanceLog:
        self.db.add(log)
        self.db.flush()
        return log

    def mark_log_finalized(self, log_id: UUID, *, submitted_at: datetime) -> bool:
        """Compare-and-swap ``draft -> finalized``; returns whether this call won."""

        result = self.db.execute(
            update(PerformanceLog)
            .where(
                and_(
                    PerformanceLog.id == log_id,
                    PerformanceLog.status == LogStatus.DRAFT,
                )
            )
            .values(status=LogStatus.FINALIZED, submitted_at=submitted_at, updated_at=submitted_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def mark_entries_finalized(self, log_id: UUID, *, finalized_at: datetime) -> int:
        result = self.db.execute(
            update(PerformanceEntry)
            .where(PerformanceEntry.log_id == log_id)
            .values(is_finalized=True, finalized_at=finalized_at, updated_at=finalized_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # ---------- Entries ----------
    def list_entries_for_log(self, log_id: UUID) -> list[PerformanceEntry]:
        return self.db.scalars(
            select(PerformanceEntry)
            .where(PerformanceEntry.log_id == log_id)
            .order_by(
                PerformanceEntry.personnel_id.asc(),
                PerformanceEntry.date.asc(),
                PerformanceEntry.created_at.asc(),
            )
        ).all()

    def list_entries_for_user(
        self,
        user_id: UUID,
        *,
        year: int | None = None,
        month: int | None = None,
    ) -> list[PerformanceEntry]:
        conditions = [PerformanceEntry.user_id == user_id]
        if year is not None:
            conditions.append(PerformanceEntry.year == year)
        if month is not None:
            conditions.append(PerformanceEntry.month == month)

        return self.db.scalars(
            select(PerformanceEntry)
            .where(and_(*conditions))
            .order_by(
                PerformanceEntry.year.asc(),
                PerformanceEntry.month.asc(),
                PerformanceEntry.date.asc(),
                PerformanceEntry.personnel_id.asc(),
            )
        ).all()

    def get_entry(self, entry_id: UUID) -> PerformanceEntry | None:
        return self.db.scalar(select(PerformanceEntry).where(PerformanceEntry.id == entry_id))

    def get_entry_by_key(
        self,
        *,
        log_id: UUID,
        personnel_id: UUID,
        date: str | None,
    ) -> PerformanceEntry | None:
        date_condition = PerformanceEntry.date.is_(None) if date is None else PerformanceEntry.date == date
        return self.db.scalar(
            select(PerformanceEntry).where(
                and_(
                    PerformanceEntry.log_id == log_id,
                    PerformanceEntry.personnel_id == personnel_id,
                    date_condition,
                )
            )
        )

    def add_entry(self, entry: PerformanceEntry) -> PerformanceEntry:
        self.db.add(entry)
        self.db.flush()
        return entry

    def delete_entry(self, entry: PerformanceEntry) -> None:
        self.db.delete(entry)
        self.db.flush()

    # ---------- Admin assignments ----------
    def list_assignments(self, *, year: int | None = None, month: int | None = None) -> list[PerformanceAssignment]:
        conditions = []
        if year is not None:
            conditions.append(PerformanceAssignment.year == year)
        if month is not None:
            conditions.append(PerformanceAssignment.month == month)

        query = select(PerformanceAssignment)
        if conditions:
            query = query.where(and_(*conditions))
        return self.db.scalars(
            query.order_by(PerformanceAssignment.date.asc(), PerformanceAssignment.personnel_id.asc())
        ).all()

    def get_assignment(self, assignment_id: UUID) -> PerformanceAssignment | None:
        return self.db.scalar(select(PerformanceAssignment).where(PerformanceAssignment.id == assignment_id))

    def get_assignment_for_personnel_date(self, personnel_id: UUID, date: str) -> PerformanceAssignment | None:
        return self.db.scalar(
            select(PerformanceAssignment).where(
                and_(
                    PerformanceAssignment.personnel_id == personnel_id,
                    PerformanceAssignment.date == date,
                )
            )
        )

    def add_assignment(self, assignment: PerformanceAssignment) -> PerformanceAssignment:
        self.db.add(assignment)
        self.db.flush()
        return assignment

    def delete_assignment(self, assignment: PerformanceAssignment) -> None:
        self.db.delete(assignment)
        self.db.flush()
