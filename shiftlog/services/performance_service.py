"""Application service for the monthly performance log workflow."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import structlog

from shiftlog.core.auth import RequestUserContext, ensure_self_or_admin
from shiftlog.core.errors import (
    AlreadyFinalizedError,
    ConflictError,
    DuplicatePeriodError,
    ForbiddenError,
    ImmutableEntryError,
    ImmutableLogError,
    InvalidInputError,
    NotFoundError,
    ShiftLogError,
)
from shiftlog.core.jalali import (
    days_in_jalali_month,
    format_date_key,
    generate_month_days,
    parse_date_string,
    serialize_calendar_day,
)
from shiftlog.models.entities import EntryType, LogStatus, PerformanceEntry, PerformanceLog
from shiftlog.repositories.performance_repository import PerformanceRepository
from shiftlog.services.grid import build_grid, build_grid_stats, serialize_grid_row, serialize_grid_stats
from shiftlog.services.reference_service import ReferenceService

logger = structlog.get_logger(__name__)

DATED_ENTRY_TYPES = frozenset({EntryType.CELL, EntryType.BATCH})


@dataclass(slots=True)
class LogUpdateData:
    notes: str | None = None


@dataclass(slots=True)
class EntryInput:
    personnel_id: UUID
    shift_id: UUID | None = None
    date: str | None = None
    entry_type: EntryType = EntryType.CELL
    missions: int = 0
    meals: int = 0


@dataclass(slots=True)
class EntryUpdateData:
    shift_id: UUID | None = None
    missions: int | None = None
    meals: int | None = None


@dataclass(slots=True)
class _NormalizedEntry:
    personnel_id: UUID
    shift_id: UUID | None
    date: str | None
    day: int | None
    entry_type: EntryType
    missions: int
    meals: int


class PerformanceService:
    """Service implementing performance log lifecycle, entries and grid reads."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = PerformanceRepository(db)
        self.reference = ReferenceService(db)

    # ---------- Serialization ----------
    @staticmethod
    def serialize_log(log: PerformanceLog) -> dict[str, object]:
        return {
            "id": str(log.id),
            "user_id": str(log.user_id),
            "base_id": str(log.base_id),
            "year": log.year,
            "month": log.month,
            "status": log.status.value,
            "notes": log.notes,
            "submitted_at": log.submitted_at.isoformat() if log.submitted_at else None,
            "created_at": log.created_at.isoformat(),
            "updated_at": log.updated_at.isoformat(),
        }

    @staticmethod
    def serialize_entry(entry: PerformanceEntry) -> dict[str, object]:
        return {
            "id": str(entry.id),
            "log_id": str(entry.log_id),
            "user_id": str(entry.user_id),
            "personnel_id": str(entry.personnel_id),
            "shift_id": str(entry.shift_id) if entry.shift_id else None,
            "date": entry.date,
            "year": entry.year,
            "month": entry.month,
            "day": entry.day,
            "entry_type": entry.entry_type.value,
            "missions": entry.missions,
            "meals": entry.meals,
            "last_modified_by": str(entry.last_modified_by),
            "is_finalized": entry.is_finalized,
            "finalized_at": entry.finalized_at.isoformat() if entry.finalized_at else None,
            "created_at": entry.created_at.isoformat(),
            "updated_at": entry.updated_at.isoformat(),
        }

    # ---------- Access helpers ----------
    def _get_log_or_404(self, log_id: UUID, *, for_update: bool = False) -> PerformanceLog:
        log = self.repo.get_log_for_update(log_id) if for_update else self.repo.get_log(log_id)
        if log is None:
            raise NotFoundError("Performance log not found.")
        return log

    @staticmethod
    def _ensure_can_view(context: RequestUserContext, log: PerformanceLog) -> None:
        if log.user_id != context.user_id and not context.is_admin:
            raise ForbiddenError("Performance log belongs to another user.")

    @staticmethod
    def _ensure_owner(context: RequestUserContext, log: PerformanceLog) -> None:
        if log.user_id != context.user_id:
            logger.warning(
                "log_mutation_forbidden",
                username=context.username,
                log_id=str(log.id),
                owner_id=str(log.user_id),
            )
            raise ForbiddenError("Only the log owner can modify this performance log.")

    # ---------- Logs ----------
    def list_logs(
        self,
        *,
        context: RequestUserContext,
        year: int | None = None,
        month: int | None = None,
        status: LogStatus | None = None,
        user_id: UUID | None = None,
    ) -> list[PerformanceLog]:
        if not context.is_admin:
            if user_id is not None and user_id != context.user_id:
                raise ForbiddenError("Access to another user's logs requires administrator role.")
            user_id = context.user_id
        return self.repo.list_logs(user_id=user_id, year=year, month=month, status=status)

    def get_log(self, *, context: RequestUserContext, log_id: UUID) -> PerformanceLog:
        log = self._get_log_or_404(log_id)
        self._ensure_can_view(context, log)
        return log

    def get_log_for_period(self, user_id: UUID, year: int, month: int) -> PerformanceLog | None:
        return self.repo.get_log_for_period(user_id, year, month)

    def create_log(
        self,
        *,
        context: RequestUserContext,
        year: int,
        month: int,
        base_id: UUID | None = None,
    ) -> PerformanceLog:
        if not 1 <= month <= 12:
            raise InvalidInputError("month must be between 1 and 12.")
        if self.repo.get_log_for_period(context.user_id, year, month) is not None:
            raise DuplicatePeriodError()

        if base_id is None:
            base = self.reference.resolve_profile_base(context.user_id)
        else:
            base = self.reference.repo.get_base(base_id)
            if base is None:
                raise InvalidInputError("base_id must reference an existing base.")

        now = datetime.utcnow()
        log = PerformanceLog(
            user_id=context.user_id,
            base_id=base.id,
            year=year,
            month=month,
            status=LogStatus.DRAFT,
            submitted_at=None,
            created_at=now,
            updated_at=now,
        )
        try:
            self.repo.add_log(log)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicatePeriodError() from exc

        self.db.refresh(log)
        logger.info("performance_log_created", log_id=str(log.id), username=context.username, year=year, month=month)
        return log

    def get_or_create_log_for_period(self, *, context: RequestUserContext, year: int, month: int) -> PerformanceLog:
        log = self.repo.get_log_for_period(context.user_id, year, month)
        if log is not None:
            return log
        try:
            return self.create_log(context=context, year=year, month=month)
        except DuplicatePeriodError:
            # A concurrent request created the log between lookup and insert.
            log = self.repo.get_log_for_period(context.user_id, year, month)
            if log is None:
                raise
            return log

    def update_log(self, *, context: RequestUserContext, log_id: UUID, data: LogUpdateData) -> PerformanceLog:
        log = self._get_log_or_404(log_id, for_update=True)
        self._ensure_owner(context, log)
        if log.is_finalized:
            self.db.rollback()
            raise ImmutableLogError()

        log.notes = data.notes.strip() if data.notes and data.notes.strip() else None
        log.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(log)
        return log

    def finalize_log(self, *, context: RequestUserContext, log_id: UUID) -> PerformanceLog:
        """Move a draft log to ``finalized`` and freeze every entry it owns."""

        log = self._get_log_or_404(log_id)
        self._ensure_owner(context, log)
        if log.is_finalized:
            raise AlreadyFinalizedError()

        now = datetime.utcnow()
        if not self.repo.mark_log_finalized(log.id, submitted_at=now):
            self.db.rollback()
            logger.warning("finalize_race_lost", log_id=str(log.id))
            raise AlreadyFinalizedError()
        stamped = self.repo.mark_entries_finalized(log.id, finalized_at=now)
        self.db.commit()

        self.db.refresh(log)
        logger.info("performance_log_finalized", log_id=str(log.id), username=context.username, entries_frozen=stamped)
        return log

    # ---------- Entry validation ----------
    def _normalize_entry(
        self,
        log: PerformanceLog,
        payload: EntryInput,
        *,
        shift_ids: set[UUID],
        member_ids: set[UUID],
    ) -> _NormalizedEntry:
        if payload.missions < 0 or payload.meals < 0:
            raise InvalidInputError("missions and meals must be greater or equal zero.")

        if payload.entry_type is EntryType.SUMMARY:
            if payload.date is not None:
                raise InvalidInputError("summary entries must not carry a date.")
        elif payload.date is None or payload.shift_id is None:
            raise InvalidInputError("cell and batch entries require both date and shift_id.")

        date_key: str | None = None
        day: int | None = None
        if payload.date is not None:
            try:
                parsed = parse_date_string(payload.date.strip())
            except ValueError as exc:
                raise InvalidInputError("date must be a Jalali YYYY-MM-DD string.") from exc
            if (parsed.year, parsed.month) != (log.year, log.month):
                raise InvalidInputError("date must fall inside the log's month.")
            if not 1 <= parsed.day <= days_in_jalali_month(parsed.year, parsed.month):
                raise InvalidInputError("date day is outside the Jalali month.")
            date_key = format_date_key(parsed.year, parsed.month, parsed.day)
            day = parsed.day

        if payload.shift_id is not None and payload.shift_id not in shift_ids:
            raise InvalidInputError("shift_id must reference an existing work shift.")

        if payload.personnel_id not in member_ids:
            if self.reference.repo.get_personnel(payload.personnel_id) is None:
                raise InvalidInputError("personnel_id must reference existing personnel.")
            raise ForbiddenError("Personnel is not a member of the log owner's base.")

        return _NormalizedEntry(
            personnel_id=payload.personnel_id,
            shift_id=payload.shift_id,
            date=date_key,
            day=day,
            entry_type=payload.entry_type,
            missions=payload.missions,
            meals=payload.meals,
        )

    def _validation_sets(self, log: PerformanceLog) -> tuple[set[UUID], set[UUID]]:
        shift_ids = {shift.id for shift in self.reference.repo.list_work_shifts()}
        member_ids = self.reference.repo.member_personnel_ids(log.user_id)
        return shift_ids, member_ids

    def _new_entry(
        self,
        context: RequestUserContext,
        log: PerformanceLog,
        item: _NormalizedEntry,
        now: datetime,
    ) -> PerformanceEntry:
        return PerformanceEntry(
            log_id=log.id,
            user_id=log.user_id,
            personnel_id=item.personnel_id,
            shift_id=item.shift_id,
            date=item.date,
            year=log.year,
            month=log.month,
            day=item.day,
            entry_type=item.entry_type,
            missions=item.missions,
            meals=item.meals,
            last_modified_by=context.user_id,
            is_finalized=False,
            finalized_at=None,
            created_at=now,
            updated_at=now,
        )

    # ---------- Entries ----------
    def list_entries_by_log(self, *, context: RequestUserContext, log_id: UUID) -> list[PerformanceEntry]:
        log = self._get_log_or_404(log_id)
        self._ensure_can_view(context, log)
        return self.repo.list_entries_for_log(log.id)

    def list_entries_by_user(
        self,
        *,
        context: RequestUserContext,
        user_id: UUID,
        year: int | None = None,
        month: int | None = None,
    ) -> list[PerformanceEntry]:
        ensure_self_or_admin(context, user_id)
        return self.repo.list_entries_for_user(user_id, year=year, month=month)

    def create_entry(self, *, context: RequestUserContext, log_id: UUID, data: EntryInput) -> PerformanceEntry:
        log = self._get_log_or_404(log_id, for_update=True)
        try:
            self._ensure_owner(context, log)
            if log.is_finalized:
                raise ImmutableLogError()

            shift_ids, member_ids = self._validation_sets(log)
            item = self._normalize_entry(log, data, shift_ids=shift_ids, member_ids=member_ids)
            if self.repo.get_entry_by_key(log_id=log.id, personnel_id=item.personnel_id, date=item.date) is not None:
                raise ConflictError("An entry already exists for this personnel and date.")

            entry = self.repo.add_entry(self._new_entry(context, log, item, datetime.utcnow()))
            self.db.commit()
        except ShiftLogError:
            self.db.rollback()
            raise
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("An entry already exists for this personnel and date.") from exc

        self.db.refresh(entry)
        return entry

    def update_entry(
        self,
        *,
        context: RequestUserContext,
        entry_id: UUID,
        data: EntryUpdateData,
    ) -> PerformanceEntry:
        entry = self.repo.get_entry(entry_id)
        if entry is None:
            raise NotFoundError("Performance entry not found.")
        log = self._get_log_or_404(entry.log_id, for_update=True)
        try:
            self._ensure_owner(context, log)
            if entry.is_finalized or log.is_finalized:
                raise ImmutableEntryError()

            if (data.missions is not None and data.missions < 0) or (data.meals is not None and data.meals < 0):
                raise InvalidInputError("missions and meals must be greater or equal zero.")
            if data.shift_id is not None and self.reference.repo.get_work_shift(data.shift_id) is None:
                raise InvalidInputError("shift_id must reference an existing work shift.")

            if data.shift_id is not None:
                entry.shift_id = data.shift_id
            if data.missions is not None:
                entry.missions = data.missions
            if data.meals is not None:
                entry.meals = data.meals
            entry.last_modified_by = context.user_id
            entry.updated_at = datetime.utcnow()
            self.db.commit()
        except ShiftLogError:
            self.db.rollback()
            raise

        self.db.refresh(entry)
        return entry

    def delete_entry(self, *, context: RequestUserContext, entry_id: UUID) -> bool:
        entry = self.repo.get_entry(entry_id)
        if entry is None:
            return False
        log = self._get_log_or_404(entry.log_id, for_update=True)
        try:
            self._ensure_owner(context, log)
            if entry.is_finalized or log.is_finalized:
                raise ImmutableEntryError()
            self.repo.delete_entry(entry)
            self.db.commit()
        except ShiftLogError:
            self.db.rollback()
            raise
        return True

    def batch_upsert_entries(
        self,
        *,
        context: RequestUserContext,
        log_id: UUID,
        entries: list[EntryInput],
    ) -> list[PerformanceEntry]:
        """Insert or overwrite entries keyed by ``(personnel_id, date)``.

        The whole payload is validated before the first write; results are
        returned in input order.
        """

        log = self._get_log_or_404(log_id, for_update=True)
        try:
            self._ensure_owner(context, log)
            if log.is_finalized:
                raise ImmutableLogError()

            shift_ids, member_ids = self._validation_sets(log)
            normalized: list[_NormalizedEntry] = []
            seen_keys: set[tuple[UUID, str | None]] = set()
            for payload in entries:
                item = self._normalize_entry(log, payload, shift_ids=shift_ids, member_ids=member_ids)
                dedup_key = (item.personnel_id, item.date)
                if dedup_key in seen_keys:
                    raise InvalidInputError("Duplicate personnel/date key in batch payload.")
                seen_keys.add(dedup_key)
                normalized.append(item)

            now = datetime.utcnow()
            results: list[PerformanceEntry] = []
            inserted = 0
            with self.db.begin_nested():
                for item in normalized:
                    row = self.repo.get_entry_by_key(log_id=log.id, personnel_id=item.personnel_id, date=item.date)
                    if row is None:
                        row = self.repo.add_entry(self._new_entry(context, log, item, now))
                        inserted += 1
                    else:
                        row.shift_id = item.shift_id
                        row.entry_type = item.entry_type
                        row.missions = item.missions
                        row.meals = item.meals
                        row.last_modified_by = context.user_id
                        row.updated_at = now
                    results.append(row)

            self.db.commit()
        except ShiftLogError:
            self.db.rollback()
            raise
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("Batch save violated entry uniqueness constraints.") from exc

        for row in results:
            self.db.refresh(row)
        logger.info(
            "performance_entries_upserted",
            log_id=str(log_id),
            username=context.username,
            inserted=inserted,
            updated=len(results) - inserted,
        )
        return results

    # ---------- Grid ----------
    def read_grid(self, *, context: RequestUserContext, log_id: UUID) -> dict[str, object]:
        log = self._get_log_or_404(log_id)
        self._ensure_can_view(context, log)

        holidays = self.reference.repo.list_holidays(year=log.year, month=log.month)
        calendar_days = generate_month_days(log.year, log.month, holidays)
        entries = self.repo.list_entries_for_log(log.id)

        personnel = list(self.reference.repo.list_member_personnel(log.user_id))
        rostered = {person.id for person in personnel}
        # Entries may outlive a roster change; keep their personnel visible.
        personnel.extend(
            self.reference.repo.list_personnel_by_ids({entry.personnel_id for entry in entries} - rostered)
        )

        shift_hours = {shift.id: shift.equivalent_hours for shift in self.reference.repo.list_work_shifts()}
        rows = build_grid(personnel, entries, calendar_days, shift_hours)
        stats = build_grid_stats(rows, calendar_days)

        return {
            "log": self.serialize_log(log),
            "days": [serialize_calendar_day(day) for day in calendar_days],
            "rows": [serialize_grid_row(row, self.serialize_entry) for row in rows],
            "stats": serialize_grid_stats(stats),
        }
