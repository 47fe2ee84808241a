"""Login and logout endpoints issuing server-side session tokens."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from shiftlog.core.auth import RequestUserContext, get_current_user_context
from shiftlog.db.dependencies import get_db_session
from shiftlog.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginPayload(BaseModel):
    username: str = Field(min_length=1, max_length=150)
    password: str = Field(min_length=1, max_length=256)


@router.post("/login")
def login(payload: LoginPayload, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = AuthService(db)
    session_row, user = service.login(username=payload.username, password=payload.password)
    return service.serialize_session(session_row, user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    AuthService(db).logout(context=context)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
