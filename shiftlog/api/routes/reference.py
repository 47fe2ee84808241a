"""Work shift, base and holiday reference data endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from shiftlog.core.auth import RequestUserContext, get_current_user_context
from shiftlog.db.dependencies import get_db_session
from shiftlog.models.entities import BaseType
from shiftlog.services.reference_service import (
    BaseCreateData,
    BaseUpdateData,
    HolidayCreateData,
    ReferenceService,
    WorkShiftCreateData,
    WorkShiftUpdateData,
)

router = APIRouter(tags=["reference"])


class WorkShiftCreatePayload(BaseModel):
    title: str = Field(min_length=1, max_length=150)
    equivalent_hours: int = Field(ge=0)
    shift_code: str = Field(min_length=1, max_length=32)


class WorkShiftUpdatePayload(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=150)
    equivalent_hours: int | None = Field(default=None, ge=0)
    shift_code: str | None = Field(default=None, min_length=1, max_length=32)


class BaseCreatePayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    number: str = Field(min_length=1, max_length=32)
    type: BaseType


class BaseUpdatePayload(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    number: str | None = Field(default=None, min_length=1, max_length=32)
    type: BaseType | None = None


class HolidayCreatePayload(BaseModel):
    date: str = Field(min_length=8, max_length=10)
    title: str = Field(min_length=1, max_length=255)


def _reference_service(db: Session) -> ReferenceService:
    return ReferenceService(db)


@router.get("/work-shifts")
def list_work_shifts(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _reference_service(db)
    return {"items": [service.serialize_work_shift(shift) for shift in service.list_work_shifts()]}


@router.post("/work-shifts", status_code=status.HTTP_201_CREATED)
def create_work_shift(
    payload: WorkShiftCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _reference_service(db)
    shift = service.create_work_shift(
        context=context,
        data=WorkShiftCreateData(
            title=payload.title,
            equivalent_hours=payload.equivalent_hours,
            shift_code=payload.shift_code,
        ),
    )
    return service.serialize_work_shift(shift)


@router.get("/work-shifts/{shift_id}")
def get_work_shift(
    shift_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _reference_service(db)
    return service.serialize_work_shift(service.get_work_shift(shift_id))


@router.patch("/work-shifts/{shift_id}")
def update_work_shift(
    shift_id: UUID,
    payload: WorkShiftUpdatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _reference_service(db)
    shift = service.update_work_shift(
        context=context,
        shift_id=shift_id,
        data=WorkShiftUpdateData(**payload.model_dump(exclude_unset=True)),
    )
    return service.serialize_work_shift(shift)


@router.delete("/work-shifts/{shift_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_work_shift(
    shift_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _reference_service(db).delete_work_shift(context=context, shift_id=shift_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/bases")
def list_bases(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _reference_service(db)
    return {"items": [service.serialize_base(base) for base in service.list_bases()]}


@router.post("/bases", status_code=status.HTTP_201_CREATED)
def create_base(
    payload: BaseCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _reference_service(db)
    base = service.create_base(
        context=context,
        data=BaseCreateData(name=payload.name, number=payload.number, type=payload.type),
    )
    return service.serialize_base(base)


@router.get("/bases/{base_id}")
def get_base(
    base_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _reference_service(db)
    return service.serialize_base(service.get_base(base_id))


@router.patch("/bases/{base_id}")
def update_base(
    base_id: UUID,
    payload: BaseUpdatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _reference_service(db)
    base = service.update_base(
        context=context,
        base_id=base_id,
        data=BaseUpdateData(**payload.model_dump(exclude_unset=True)),
    )
    return service.serialize_base(base)


@router.delete("/bases/{base_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_base(
    base_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _reference_service(db).delete_base(context=context, base_id=base_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/holidays")
def list_holidays(
    year: int | None = None,
    month: int | None = Query(default=None, ge=1, le=12),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _reference_service(db)
    rows = service.list_holidays(year=year, month=month)
    return {"items": [service.serialize_holiday(holiday) for holiday in rows]}


@router.post("/holidays", status_code=status.HTTP_201_CREATED)
def create_holiday(
    payload: HolidayCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _reference_service(db)
    holiday = service.create_holiday(context=context, data=HolidayCreateData(date=payload.date, title=payload.title))
    return service.serialize_holiday(holiday)


@router.delete("/holidays/{holiday_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_holiday(
    holiday_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _reference_service(db).delete_holiday(context=context, holiday_id=holiday_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
