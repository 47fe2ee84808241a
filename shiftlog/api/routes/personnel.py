"""Personnel directory endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from shiftlog.core.auth import RequestUserContext, get_current_user_context
from shiftlog.db.dependencies import get_db_session
from shiftlog.models.entities import DriverStatus, EmploymentStatus, ProductivityStatus
from shiftlog.services.reference_service import (
    GuestPersonnelData,
    PersonnelCreateData,
    PersonnelUpdateData,
    ReferenceService,
)

router = APIRouter(prefix="/personnel", tags=["personnel"])


class PersonnelCreatePayload(BaseModel):
    first_name: str = Field(min_length=1, max_length=150)
    last_name: str = Field(min_length=1, max_length=150)
    national_id: str = Field(min_length=1, max_length=64)
    employment_status: EmploymentStatus
    productivity_status: ProductivityStatus
    driver_status: DriverStatus


class PersonnelUpdatePayload(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=150)
    last_name: str | None = Field(default=None, min_length=1, max_length=150)
    national_id: str | None = Field(default=None, min_length=1, max_length=64)
    employment_status: EmploymentStatus | None = None
    productivity_status: ProductivityStatus | None = None
    driver_status: DriverStatus | None = None


class GuestPersonnelPayload(BaseModel):
    first_name: str = Field(min_length=1, max_length=150)
    last_name: str = Field(min_length=1, max_length=150)
    productivity_status: ProductivityStatus = ProductivityStatus.PRODUCTIVE
    driver_status: DriverStatus = DriverStatus.NON_DRIVER


def _reference_service(db: Session) -> ReferenceService:
    return ReferenceService(db)


@router.get("")
def list_personnel(
    employment_status: EmploymentStatus | None = None,
    productivity_status: ProductivityStatus | None = None,
    search: str | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _reference_service(db)
    rows = service.list_personnel(
        context=context,
        employment_status=employment_status,
        productivity_status=productivity_status,
        search=search,
    )
    return {"items": [service.serialize_personnel(person) for person in rows]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_personnel(
    payload: PersonnelCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _reference_service(db)
    person = service.create_personnel(
        context=context,
        data=PersonnelCreateData(
            first_name=payload.first_name,
            last_name=payload.last_name,
            national_id=payload.national_id,
            employment_status=payload.employment_status,
            productivity_status=payload.productivity_status,
            driver_status=payload.driver_status,
        ),
    )
    return service.serialize_personnel(person)


@router.post("/guest", status_code=status.HTTP_201_CREATED)
def create_guest_personnel(
    payload: GuestPersonnelPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _reference_service(db)
    person = service.create_guest_personnel(
        context=context,
        data=GuestPersonnelData(
            first_name=payload.first_name,
            last_name=payload.last_name,
            productivity_status=payload.productivity_status,
            driver_status=payload.driver_status,
        ),
    )
    return service.serialize_personnel(person)


@router.get("/{personnel_id}")
def get_personnel(
    personnel_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _reference_service(db)
    return service.serialize_personnel(service.get_personnel(personnel_id))


@router.patch("/{personnel_id}")
def update_personnel(
    personnel_id: UUID,
    payload: PersonnelUpdatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _reference_service(db)
    person = service.update_personnel(
        context=context,
        personnel_id=personnel_id,
        data=PersonnelUpdateData(**payload.model_dump(exclude_unset=True)),
    )
    return service.serialize_personnel(person)


@router.delete("/{personnel_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_personnel(
    personnel_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _reference_service(db).delete_personnel(context=context, personnel_id=personnel_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
