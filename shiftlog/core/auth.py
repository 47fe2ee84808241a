"""Authentication context extraction and role guard utilities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftlog.core.config import get_settings
from shiftlog.core.errors import ForbiddenError, UnauthenticatedError
from shiftlog.db.dependencies import get_db_session
from shiftlog.models.entities import User, UserRole, UserSession


@dataclass(frozen=True)
class RequestUserContext:
    """Authenticated request actor resolved from the session token."""

    user_id: UUID
    username: str
    full_name: str | None
    role: UserRole
    session_id: UUID | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    @property
    def display_name(self) -> str:
        return self.full_name or self.username


def context_for_user(user: User, *, session_id: UUID | None = None) -> RequestUserContext:
    return RequestUserContext(
        user_id=user.id,
        username=user.username,
        full_name=user.full_name,
        role=user.role,
        session_id=session_id,
    )


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _resolve_session(db: Session, token: str) -> tuple[UserSession, User]:
    row = db.execute(
        select(UserSession, User)
        .join(User, User.id == UserSession.user_id)
        .where(UserSession.token == token)
    ).first()
    if row is None:
        raise UnauthenticatedError("Unknown session token.")

    session_row, user = row
    if session_row.revoked_at is not None:
        raise UnauthenticatedError("Session has been logged out.")
    if session_row.expires_at.replace(tzinfo=None) <= datetime.utcnow():
        raise UnauthenticatedError("Session has expired.")
    if not user.is_active:
        raise UnauthenticatedError("User account is disabled.")
    return session_row, user


def _resolve_dev_principal(db: Session, username: str) -> User:
    user = db.scalar(select(User).where(User.username == username.strip()))
    if user is None or not user.is_active:
        raise UnauthenticatedError("Unknown development principal.")
    return user


def get_current_user_context(
    authorization: str | None = Header(default=None),
    x_dev_user: str | None = Header(default=None, alias="X-Dev-User"),
    db: Session = Depends(get_db_session),
) -> RequestUserContext:
    """Resolve current request user from ``Authorization: Bearer <token>``.

    The ``X-Dev-User`` header is honoured only when the development
    principal is enabled in settings.
    """

    token = _bearer_token(authorization)
    if token is not None:
        session_row, user = _resolve_session(db, token)
        return context_for_user(user, session_id=session_row.id)

    if x_dev_user and get_settings().auth_allow_dev_principal:
        return context_for_user(_resolve_dev_principal(db, x_dev_user))

    raise UnauthenticatedError("Missing bearer token.")


def has_role(context: RequestUserContext, allowed_roles: set[UserRole]) -> bool:
    """Check whether user has any of the allowed roles."""

    return context.role in allowed_roles


def require_roles(*roles: UserRole):
    """Dependency factory requiring at least one provided role."""

    allowed = set(roles)

    def dependency(context: RequestUserContext = Depends(get_current_user_context)) -> RequestUserContext:
        if not has_role(context, allowed):
            raise ForbiddenError("Insufficient role permissions for this operation.")
        return context

    return dependency


def ensure_admin(context: RequestUserContext) -> None:
    if not context.is_admin:
        raise ForbiddenError("Administrator role required for this operation.")


def ensure_self_or_admin(context: RequestUserContext, user_id: UUID) -> None:
    if context.user_id != user_id and not context.is_admin:
        raise ForbiddenError("Access to another user's data requires administrator role.")
