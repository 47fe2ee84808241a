"""Supervisor base profile and base roster endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from shiftlog.core.auth import RequestUserContext, get_current_user_context
from shiftlog.db.dependencies import get_db_session
from shiftlog.models.entities import BaseType
from shiftlog.services.reference_service import BaseProfileData, ReferenceService

router = APIRouter(tags=["base"])


class BaseProfilePayload(BaseModel):
    supervisor_name: str = Field(max_length=255)
    supervisor_national_id: str = Field(max_length=64)
    base_name: str = Field(max_length=255)
    base_number: str = Field(max_length=32)
    base_type: BaseType
    digital_signature: str | None = None


class BaseMemberPayload(BaseModel):
    personnel_id: UUID


def _reference_service(db: Session) -> ReferenceService:
    return ReferenceService(db)


@router.get("/base-profile")
def get_base_profile(
    user_id: UUID | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _reference_service(db)
    return service.serialize_base_profile(service.get_base_profile(context=context, user_id=user_id))


@router.put("/base-profile")
def save_base_profile(
    payload: BaseProfilePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _reference_service(db)
    profile = service.save_base_profile(
        context=context,
        data=BaseProfileData(
            supervisor_name=payload.supervisor_name,
            supervisor_national_id=payload.supervisor_national_id,
            base_name=payload.base_name,
            base_number=payload.base_number,
            base_type=payload.base_type,
            digital_signature=payload.digital_signature,
        ),
    )
    return service.serialize_base_profile(profile)


@router.get("/base-members")
def list_base_members(
    user_id: UUID | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _reference_service(db)
    rows = service.list_base_members(context=context, user_id=user_id)
    return {"items": [service.serialize_personnel(person) for person in rows]}


@router.post("/base-members", status_code=status.HTTP_201_CREATED)
def add_base_member(
    payload: BaseMemberPayload,
    user_id: UUID | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _reference_service(db)
    person = service.add_base_member(context=context, personnel_id=payload.personnel_id, user_id=user_id)
    return service.serialize_personnel(person)


@router.delete("/base-members/{personnel_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_base_member(
    personnel_id: UUID,
    user_id: UUID | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _reference_service(db).remove_base_member(context=context, personnel_id=personnel_id, user_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
