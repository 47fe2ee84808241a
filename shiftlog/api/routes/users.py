"""User account administration endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from shiftlog.core.auth import RequestUserContext, require_roles
from shiftlog.db.dependencies import get_db_session
from shiftlog.models.entities import UserRole
from shiftlog.services.reference_service import ReferenceService, UserCreateData, UserUpdateData

router = APIRouter(prefix="/users", tags=["users"])

admin_only = require_roles(UserRole.ADMIN)


class UserCreatePayload(BaseModel):
    username: str = Field(min_length=1, max_length=150)
    password: str = Field(min_length=6, max_length=256)
    role: UserRole = UserRole.USER
    is_active: bool = True
    full_name: str | None = Field(default=None, max_length=255)


class UserUpdatePayload(BaseModel):
    username: str | None = Field(default=None, min_length=1, max_length=150)
    password: str | None = Field(default=None, min_length=6, max_length=256)
    role: UserRole | None = None
    is_active: bool | None = None
    full_name: str | None = Field(default=None, max_length=255)


def _reference_service(db: Session) -> ReferenceService:
    return ReferenceService(db)


@router.get("")
def list_users(
    context: RequestUserContext = Depends(admin_only),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _reference_service(db)
    return {"items": [service.serialize_user(user) for user in service.list_users(context=context)]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreatePayload,
    context: RequestUserContext = Depends(admin_only),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _reference_service(db)
    user = service.create_user(
        context=context,
        data=UserCreateData(
            username=payload.username,
            password=payload.password,
            role=payload.role,
            is_active=payload.is_active,
            full_name=payload.full_name,
        ),
    )
    return service.serialize_user(user)


@router.patch("/{user_id}")
def update_user(
    user_id: UUID,
    payload: UserUpdatePayload,
    context: RequestUserContext = Depends(admin_only),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _reference_service(db)
    user = service.update_user(
        context=context,
        user_id=user_id,
        data=UserUpdateData(**payload.model_dump(exclude_unset=True)),
    )
    return service.serialize_user(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: UUID,
    context: RequestUserContext = Depends(admin_only),
    db: Session = Depends(get_db_session),
) -> Response:
    _reference_service(db).delete_user(context=context, user_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
