"""Login/logout backed by server-side session rows."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta

from sqlalchemy.orm import Session
import structlog
from werkzeug.security import check_password_hash

from shiftlog.core.auth import RequestUserContext
from shiftlog.core.config import get_settings
from shiftlog.core.errors import UnauthenticatedError
from shiftlog.models.entities import User, UserSession
from shiftlog.repositories.reference_repository import ReferenceRepository

logger = structlog.get_logger(__name__)


class AuthService:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = ReferenceRepository(db)

    @staticmethod
    def serialize_session(session_row: UserSession, user: User) -> dict[str, object]:
        return {
            "token": session_row.token,
            "expires_at": session_row.expires_at.isoformat(),
            "user": {
                "id": str(user.id),
                "username": user.username,
                "role": user.role.value,
                "full_name": user.full_name,
            },
        }

    def login(self, *, username: str, password: str) -> tuple[UserSession, User]:
        user = self.repo.get_user_by_username(username.strip())
        if user is None or not check_password_hash(user.password_hash, password):
            logger.warning("login_rejected", username=username, reason="bad_credentials")
            raise UnauthenticatedError("Invalid username or password.")
        if not user.is_active:
            logger.warning("login_rejected", username=user.username, reason="inactive")
            raise UnauthenticatedError("User account is disabled.")

        now = datetime.utcnow()
        session_row = UserSession(
            user_id=user.id,
            token=secrets.token_urlsafe(32),
            issued_at=now,
            expires_at=now + timedelta(hours=get_settings().session_ttl_hours),
        )
        self.repo.add(session_row)
        self.db.commit()
        self.db.refresh(session_row)
        logger.info("session_issued", session_id=str(session_row.id), username=user.username)
        return session_row, user

    def logout(self, *, context: RequestUserContext) -> None:
        if context.session_id is None:
            return
        session_row = self.repo.get_session(context.session_id)
        if session_row is None or session_row.revoked_at is not None:
            return
        session_row.revoked_at = datetime.utcnow()
        self.db.commit()
        logger.info("session_revoked", session_id=str(session_row.id), username=context.username)
