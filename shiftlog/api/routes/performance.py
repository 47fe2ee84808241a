"""Performance log, entry and supervisor grid endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from shiftlog.core.auth import RequestUserContext, get_current_user_context
from shiftlog.core.errors import NotFoundError
from shiftlog.db.dependencies import get_db_session
from shiftlog.models.entities import EntryType, LogStatus
from shiftlog.services.performance_service import (
    EntryInput,
    EntryUpdateData,
    LogUpdateData,
    PerformanceService,
)

router = APIRouter(tags=["performance"])


class LogCreatePayload(BaseModel):
    year: int = Field(ge=1)
    month: int = Field(ge=1, le=12)
    base_id: UUID | None = None


class LogUpdatePayload(BaseModel):
    notes: str | None = Field(default=None, max_length=2000)


class EntryPayload(BaseModel):
    personnel_id: UUID
    shift_id: UUID | None = None
    date: str | None = Field(default=None, max_length=10)
    entry_type: EntryType = EntryType.CELL
    missions: int = 0
    meals: int = 0

    def to_input(self) -> EntryInput:
        return EntryInput(
            personnel_id=self.personnel_id,
            shift_id=self.shift_id,
            date=self.date,
            entry_type=self.entry_type,
            missions=self.missions,
            meals=self.meals,
        )


class EntryBatchPayload(BaseModel):
    entries: list[EntryPayload]


class EntryUpdatePayload(BaseModel):
    shift_id: UUID | None = None
    missions: int | None = None
    meals: int | None = None


def _performance_service(db: Session) -> PerformanceService:
    return PerformanceService(db)


@router.get("/performance-logs")
def list_performance_logs(
    year: int | None = None,
    month: int | None = Query(default=None, ge=1, le=12),
    status_filter: LogStatus | None = Query(default=None, alias="status"),
    user_id: UUID | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _performance_service(db)
    rows = service.list_logs(context=context, year=year, month=month, status=status_filter, user_id=user_id)
    return {"items": [service.serialize_log(log) for log in rows]}


@router.post("/performance-logs", status_code=status.HTTP_201_CREATED)
def create_performance_log(
    payload: LogCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _performance_service(db)
    log = service.create_log(context=context, year=payload.year, month=payload.month, base_id=payload.base_id)
    return service.serialize_log(log)


@router.get("/performance-logs/period/{year}/{month}")
def get_performance_log_for_period(
    year: int = Path(ge=1),
    month: int = Path(ge=1, le=12),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _performance_service(db)
    log = service.get_or_create_log_for_period(context=context, year=year, month=month)
    return service.serialize_log(log)


@router.get("/performance-logs/{log_id}")
def get_performance_log(
    log_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _performance_service(db)
    return service.serialize_log(service.get_log(context=context, log_id=log_id))


@router.patch("/performance-logs/{log_id}")
def update_performance_log(
    log_id: UUID,
    payload: LogUpdatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _performance_service(db)
    log = service.update_log(context=context, log_id=log_id, data=LogUpdateData(notes=payload.notes))
    return service.serialize_log(log)


@router.post("/performance-logs/{log_id}/finalize")
def finalize_performance_log(
    log_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _performance_service(db)
    return service.serialize_log(service.finalize_log(context=context, log_id=log_id))


@router.get("/performance-logs/{log_id}/entries")
def list_log_entries(
    log_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _performance_service(db)
    rows = service.list_entries_by_log(context=context, log_id=log_id)
    return {"items": [service.serialize_entry(entry) for entry in rows]}


@router.post("/performance-logs/{log_id}/entries", status_code=status.HTTP_201_CREATED)
def create_log_entry(
    log_id: UUID,
    payload: EntryPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _performance_service(db)
    entry = service.create_entry(context=context, log_id=log_id, data=payload.to_input())
    return service.serialize_entry(entry)


@router.post("/performance-logs/{log_id}/entries/batch")
def batch_upsert_log_entries(
    log_id: UUID,
    payload: EntryBatchPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _performance_service(db)
    rows = service.batch_upsert_entries(
        context=context,
        log_id=log_id,
        entries=[entry.to_input() for entry in payload.entries],
    )
    return {
        "saved_entries": len(rows),
        "items": [service.serialize_entry(entry) for entry in rows],
    }


@router.get("/performance-logs/{log_id}/grid")
def get_log_grid(
    log_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _performance_service(db).read_grid(context=context, log_id=log_id)


@router.get("/performance-entries")
def list_user_entries(
    user_id: UUID | None = None,
    year: int | None = None,
    month: int | None = Query(default=None, ge=1, le=12),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _performance_service(db)
    rows = service.list_entries_by_user(
        context=context,
        user_id=user_id or context.user_id,
        year=year,
        month=month,
    )
    return {"items": [service.serialize_entry(entry) for entry in rows]}


@router.patch("/performance-entries/{entry_id}")
def update_entry(
    entry_id: UUID,
    payload: EntryUpdatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _performance_service(db)
    entry = service.update_entry(
        context=context,
        entry_id=entry_id,
        data=EntryUpdateData(shift_id=payload.shift_id, missions=payload.missions, meals=payload.meals),
    )
    return service.serialize_entry(entry)


@router.delete("/performance-entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(
    entry_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    if not _performance_service(db).delete_entry(context=context, entry_id=entry_id):
        raise NotFoundError("Performance entry not found.")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
