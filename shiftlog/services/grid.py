"""Read-only grid projections for the supervisor and admin performance views.

Everything here is recomputed from its inputs on every call; callers fetch
fresh personnel, entries and assignments before projecting.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from uuid import UUID

from shiftlog.core.jalali import CalendarDay
from shiftlog.models.entities import (
    BaseType,
    EmploymentStatus,
    EntryType,
    PerformanceAssignment,
    PerformanceEntry,
    Personnel,
    ProductivityStatus,
    StationBase,
    WorkShift,
)


@dataclass(slots=True)
class GridCell:
    date: str
    day: int
    entry: PerformanceEntry | None


@dataclass(slots=True)
class GridRow:
    personnel_id: UUID
    personnel_name: str
    entries_by_date: dict[str, PerformanceEntry]
    cells: list[GridCell]
    total_missions: int = 0
    total_meals: int = 0
    total_hours: int = 0

    @property
    def assigned_shifts(self) -> int:
        return sum(1 for entry in self.entries_by_date.values() if entry.shift_id is not None)


@dataclass(frozen=True, slots=True)
class GridStats:
    total_personnel: int
    total_days: int
    total_assigned_shifts: int
    total_missions: int
    total_meals: int


@dataclass(slots=True)
class AdminGridCell:
    assignment_id: UUID
    date: str
    shift_id: UUID
    shift_title: str | None
    shift_code: str | None
    base_id: UUID
    base_name: str | None
    base_number: str | None


@dataclass(slots=True)
class AdminGridRow:
    personnel_id: UUID
    personnel_name: str
    assignments_count: int
    cells: dict[str, AdminGridCell] = field(default_factory=dict)
    total_hours: int = 0


@dataclass(frozen=True, slots=True)
class AdminStats:
    total_personnel: int
    urban_missions: int
    road_missions: int
    total_hours: int


def personnel_display_name(person: Personnel) -> str:
    return f"{person.first_name} {person.last_name}"


def build_grid(
    personnel: Sequence[Personnel],
    entries: Iterable[PerformanceEntry],
    calendar_days: Sequence[CalendarDay],
    shift_hours: Mapping[UUID, int] | None = None,
) -> list[GridRow]:
    """Project entries onto a personnel x day matrix.

    Mission and meal totals come from ``summary`` entries only; dated
    (cell/batch) entries describe shift assignment.
    """

    hours = shift_hours or {}
    entries_by_personnel: dict[UUID, list[PerformanceEntry]] = {}
    for entry in entries:
        entries_by_personnel.setdefault(entry.personnel_id, []).append(entry)

    rows: list[GridRow] = []
    for person in personnel:
        by_date: dict[str, PerformanceEntry] = {}
        total_missions = 0
        total_meals = 0
        total_hours = 0
        for entry in entries_by_personnel.get(person.id, []):
            if entry.entry_type is EntryType.SUMMARY:
                total_missions += entry.missions or 0
                total_meals += entry.meals or 0
            if entry.date is None:
                continue
            by_date[entry.date] = entry
            if entry.shift_id is not None:
                total_hours += hours.get(entry.shift_id, 0)

        rows.append(
            GridRow(
                personnel_id=person.id,
                personnel_name=personnel_display_name(person),
                entries_by_date=by_date,
                cells=[GridCell(date=day.date, day=day.day, entry=by_date.get(day.date)) for day in calendar_days],
                total_missions=total_missions,
                total_meals=total_meals,
                total_hours=total_hours,
            )
        )
    return rows


def build_grid_stats(rows: Sequence[GridRow], calendar_days: Sequence[CalendarDay]) -> GridStats:
    return GridStats(
        total_personnel=len(rows),
        total_days=len(calendar_days),
        total_assigned_shifts=sum(row.assigned_shifts for row in rows),
        total_missions=sum(row.total_missions for row in rows),
        total_meals=sum(row.total_meals for row in rows),
    )


def build_admin_grid(
    personnel: Sequence[Personnel],
    assignments: Iterable[PerformanceAssignment],
    bases: Iterable[StationBase],
    work_shifts: Iterable[WorkShift],
) -> list[AdminGridRow]:
    base_by_id = {base.id: base for base in bases}
    shift_by_id = {shift.id: shift for shift in work_shifts}

    assignment_map: dict[tuple[UUID, str], PerformanceAssignment] = {}
    for assignment in assignments:
        assignment_map[(assignment.personnel_id, assignment.date)] = assignment

    rows = {
        person.id: AdminGridRow(
            personnel_id=person.id,
            personnel_name=personnel_display_name(person),
            assignments_count=0,
        )
        for person in personnel
    }
    for (personnel_id, date), assignment in assignment_map.items():
        row = rows.get(personnel_id)
        if row is None:
            continue
        shift = shift_by_id.get(assignment.shift_id)
        base = base_by_id.get(assignment.base_id)
        row.cells[date] = AdminGridCell(
            assignment_id=assignment.id,
            date=date,
            shift_id=assignment.shift_id,
            shift_title=shift.title if shift else None,
            shift_code=shift.shift_code if shift else None,
            base_id=assignment.base_id,
            base_name=base.name if base else None,
            base_number=base.number if base else None,
        )
        row.assignments_count += 1
        row.total_hours += shift.equivalent_hours if shift else 0

    return [rows[person.id] for person in personnel]


def build_admin_stats(
    personnel: Sequence[Personnel],
    assignments: Sequence[PerformanceAssignment],
    bases: Iterable[StationBase],
    work_shifts: Iterable[WorkShift],
) -> AdminStats:
    base_type = {base.id: base.type for base in bases}
    hours = {shift.id: shift.equivalent_hours for shift in work_shifts}

    return AdminStats(
        total_personnel=len(personnel),
        urban_missions=sum(1 for item in assignments if base_type.get(item.base_id) is BaseType.URBAN),
        road_missions=sum(1 for item in assignments if base_type.get(item.base_id) is BaseType.ROAD),
        total_hours=sum(hours.get(item.shift_id, 0) for item in assignments),
    )


def filter_personnel(
    personnel: Iterable[Personnel],
    *,
    employment_status: EmploymentStatus | None = None,
    productivity_status: ProductivityStatus | None = None,
) -> list[Personnel]:
    return [
        person
        for person in personnel
        if (employment_status is None or person.employment_status is employment_status)
        and (productivity_status is None or person.productivity_status is productivity_status)
    ]


# ---------- Serialization ----------
def serialize_grid_row(
    row: GridRow, serialize_entry: Callable[[PerformanceEntry], dict[str, object]]
) -> dict[str, object]:
    return {
        "personnel_id": str(row.personnel_id),
        "personnel_name": row.personnel_name,
        "entries_by_date": {date: serialize_entry(entry) for date, entry in row.entries_by_date.items()},
        "cells": [
            {
                "date": cell.date,
                "day": cell.day,
                "entry_id": str(cell.entry.id) if cell.entry else None,
                "shift_id": str(cell.entry.shift_id) if cell.entry and cell.entry.shift_id else None,
            }
            for cell in row.cells
        ],
        "total_missions": row.total_missions,
        "total_meals": row.total_meals,
        "total_hours": row.total_hours,
        "assigned_shifts": row.assigned_shifts,
    }


def serialize_grid_stats(stats: GridStats) -> dict[str, int]:
    return {
        "total_personnel": stats.total_personnel,
        "total_days": stats.total_days,
        "total_assigned_shifts": stats.total_assigned_shifts,
        "total_missions": stats.total_missions,
        "total_meals": stats.total_meals,
    }


def serialize_admin_grid_row(row: AdminGridRow) -> dict[str, object]:
    return {
        "personnel_id": str(row.personnel_id),
        "personnel_name": row.personnel_name,
        "assignments_count": row.assignments_count,
        "total_hours": row.total_hours,
        "cells": {
            date: {
                "assignment_id": str(cell.assignment_id),
                "shift_id": str(cell.shift_id),
                "shift_title": cell.shift_title,
                "shift_code": cell.shift_code,
                "base_id": str(cell.base_id),
                "base_name": cell.base_name,
                "base_number": cell.base_number,
            }
            for date, cell in sorted(row.cells.items())
        },
    }


def serialize_admin_stats(stats: AdminStats) -> dict[str, int]:
    return {
        "total_personnel": stats.total_personnel,
        "urban_missions": stats.urban_missions,
        "road_missions": stats.road_missions,
        "total_hours": stats.total_hours,
    }
