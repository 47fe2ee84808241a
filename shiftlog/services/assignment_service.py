"""Admin-side shift assignments and the aggregate performance grid."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import structlog

from shiftlog.core.auth import RequestUserContext, ensure_admin
from shiftlog.core.errors import DuplicateAssignmentError, ImmutableLogError, InvalidInputError, NotFoundError
from shiftlog.core.jalali import (
    days_in_jalali_month,
    format_date_key,
    generate_month_days,
    parse_date_string,
    serialize_calendar_day,
)
from shiftlog.models.entities import EmploymentStatus, PerformanceAssignment, PerformanceLog, ProductivityStatus
from shiftlog.repositories.performance_repository import PerformanceRepository
from shiftlog.repositories.reference_repository import ReferenceRepository
from shiftlog.services.grid import (
    build_admin_grid,
    build_admin_stats,
    filter_personnel,
    serialize_admin_grid_row,
    serialize_admin_stats,
)

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class AssignmentCreateData:
    personnel_id: UUID
    shift_id: UUID
    base_id: UUID
    date: str
    log_id: UUID | None = None


@dataclass(slots=True)
class AssignmentUpdateData:
    shift_id: UUID | None = None
    base_id: UUID | None = None
    date: str | None = None


class AssignmentService:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = PerformanceRepository(db)
        self.reference = ReferenceRepository(db)

    @staticmethod
    def serialize_assignment(assignment: PerformanceAssignment) -> dict[str, object]:
        return {
            "id": str(assignment.id),
            "log_id": str(assignment.log_id) if assignment.log_id else None,
            "personnel_id": str(assignment.personnel_id),
            "shift_id": str(assignment.shift_id),
            "base_id": str(assignment.base_id),
            "date": assignment.date,
            "year": assignment.year,
            "month": assignment.month,
            "day": assignment.day,
        }

    def _get_assignment_or_404(self, assignment_id: UUID) -> PerformanceAssignment:
        assignment = self.repo.get_assignment(assignment_id)
        if assignment is None:
            raise NotFoundError("Performance assignment not found.")
        return assignment

    def _ensure_log_mutable(self, log_id: UUID | None) -> PerformanceLog | None:
        if log_id is None:
            return None
        log = self.repo.get_log(log_id)
        if log is None:
            raise InvalidInputError("log_id must reference an existing performance log.")
        if log.is_finalized:
            raise ImmutableLogError()
        return log

    @staticmethod
    def _ensure_in_log_period(log: PerformanceLog | None, year: int, month: int) -> None:
        if log is not None and (year, month) != (log.year, log.month):
            raise InvalidInputError("Assignment date must fall inside the linked log's year and month.")

    @staticmethod
    def _parse_date(value: str) -> tuple[str, int, int, int]:
        try:
            parsed = parse_date_string(value.strip())
            valid = 1 <= parsed.day <= days_in_jalali_month(parsed.year, parsed.month)
        except ValueError as exc:
            raise InvalidInputError("date must be a Jalali YYYY-MM-DD string.") from exc
        if not valid:
            raise InvalidInputError("date day is outside the Jalali month.")
        return format_date_key(parsed.year, parsed.month, parsed.day), parsed.year, parsed.month, parsed.day

    def _validate_refs(self, *, personnel_id: UUID | None, shift_id: UUID | None, base_id: UUID | None) -> None:
        if personnel_id is not None and self.reference.get_personnel(personnel_id) is None:
            raise InvalidInputError("personnel_id must reference existing personnel.")
        if shift_id is not None and self.reference.get_work_shift(shift_id) is None:
            raise InvalidInputError("shift_id must reference an existing work shift.")
        if base_id is not None and self.reference.get_base(base_id) is None:
            raise InvalidInputError("base_id must reference an existing base.")

    def _persist(self, *rows: PerformanceAssignment) -> None:
        try:
            for row in rows:
                self.repo.add_assignment(row)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateAssignmentError() from exc

    def list_assignments(
        self,
        *,
        context: RequestUserContext,
        year: int | None = None,
        month: int | None = None,
    ) -> list[PerformanceAssignment]:
        ensure_admin(context)
        return self.repo.list_assignments(year=year, month=month)

    def create_assignment(self, *, context: RequestUserContext, data: AssignmentCreateData) -> PerformanceAssignment:
        ensure_admin(context)
        date_key, year, month, day = self._parse_date(data.date)
        self._validate_refs(personnel_id=data.personnel_id, shift_id=data.shift_id, base_id=data.base_id)
        log = self._ensure_log_mutable(data.log_id)
        self._ensure_in_log_period(log, year, month)

        if self.repo.get_assignment_for_personnel_date(data.personnel_id, date_key) is not None:
            raise DuplicateAssignmentError()

        assignment = PerformanceAssignment(
            log_id=data.log_id,
            personnel_id=data.personnel_id,
            shift_id=data.shift_id,
            base_id=data.base_id,
            date=date_key,
            year=year,
            month=month,
            day=day,
        )
        self._persist(assignment)
        self.db.refresh(assignment)
        logger.info("assignment_created", assignment_id=str(assignment.id), date=date_key, username=context.username)
        return assignment

    def update_assignment(
        self,
        *,
        context: RequestUserContext,
        assignment_id: UUID,
        data: AssignmentUpdateData,
    ) -> PerformanceAssignment:
        ensure_admin(context)
        assignment = self._get_assignment_or_404(assignment_id)
        log = self._ensure_log_mutable(assignment.log_id)
        self._validate_refs(personnel_id=None, shift_id=data.shift_id, base_id=data.base_id)

        if data.date is not None:
            date_key, year, month, day = self._parse_date(data.date)
            self._ensure_in_log_period(log, year, month)
            existing = self.repo.get_assignment_for_personnel_date(assignment.personnel_id, date_key)
            if existing is not None and existing.id != assignment.id:
                raise DuplicateAssignmentError()
            assignment.date = date_key
            assignment.year = year
            assignment.month = month
            assignment.day = day
        if data.shift_id is not None:
            assignment.shift_id = data.shift_id
        if data.base_id is not None:
            assignment.base_id = data.base_id

        self._persist()
        self.db.refresh(assignment)
        return assignment

    def delete_assignment(self, *, context: RequestUserContext, assignment_id: UUID) -> None:
        ensure_admin(context)
        assignment = self._get_assignment_or_404(assignment_id)
        self._ensure_log_mutable(assignment.log_id)
        self.repo.delete_assignment(assignment)
        self.db.commit()

    def delete_assignment_by_date(self, *, context: RequestUserContext, personnel_id: UUID, date: str) -> None:
        ensure_admin(context)
        date_key, *_ = self._parse_date(date)
        assignment = self.repo.get_assignment_for_personnel_date(personnel_id, date_key)
        if assignment is None:
            raise NotFoundError("No assignment for this personnel on that date.")
        self._ensure_log_mutable(assignment.log_id)
        self.repo.delete_assignment(assignment)
        self.db.commit()

    def read_admin_grid(
        self,
        *,
        context: RequestUserContext,
        year: int,
        month: int,
        employment_status: EmploymentStatus | None = None,
        productivity_status: ProductivityStatus | None = None,
    ) -> dict[str, object]:
        ensure_admin(context)
        try:
            calendar_days = generate_month_days(year, month, self.reference.list_holidays(year=year, month=month))
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from exc

        personnel = filter_personnel(
            self.reference.list_personnel(),
            employment_status=employment_status,
            productivity_status=productivity_status,
        )
        personnel_ids = {person.id for person in personnel}
        assignments = [
            item for item in self.repo.list_assignments(year=year, month=month) if item.personnel_id in personnel_ids
        ]
        bases = self.reference.list_bases()
        work_shifts = self.reference.list_work_shifts()

        rows = build_admin_grid(personnel, assignments, bases, work_shifts)
        stats = build_admin_stats(personnel, assignments, bases, work_shifts)
        return {
            "year": year,
            "month": month,
            "days": [serialize_calendar_day(day) for day in calendar_days],
            "rows": [serialize_admin_grid_row(row) for row in rows],
            "stats": serialize_admin_stats(stats),
        }
