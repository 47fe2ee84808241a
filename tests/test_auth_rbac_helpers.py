from __future__ import annotations

import uuid

import pytest

from shiftlog.core.auth import RequestUserContext, ensure_admin, ensure_self_or_admin, has_role
from shiftlog.core.errors import ForbiddenError
from shiftlog.models.entities import UserRole


def _context(role: UserRole, *, full_name: str | None = None) -> RequestUserContext:
    return RequestUserContext(user_id=uuid.uuid4(), username="user", full_name=full_name, role=role)


def test_has_role_matches_expected_roles() -> None:
    context = _context(UserRole.USER)

    assert has_role(context, {UserRole.USER}) is True
    assert has_role(context, {UserRole.ADMIN}) is False


def test_ensure_admin_rejects_supervisors() -> None:
    ensure_admin(_context(UserRole.ADMIN))

    with pytest.raises(ForbiddenError):
        ensure_admin(_context(UserRole.USER))


def test_ensure_self_or_admin() -> None:
    supervisor = _context(UserRole.USER)
    admin = _context(UserRole.ADMIN)

    ensure_self_or_admin(supervisor, supervisor.user_id)
    ensure_self_or_admin(admin, supervisor.user_id)
    with pytest.raises(ForbiddenError):
        ensure_self_or_admin(supervisor, admin.user_id)


def test_display_name_falls_back_to_username() -> None:
    assert _context(UserRole.USER).display_name == "user"
    assert _context(UserRole.USER, full_name="Sara Karimi").display_name == "Sara Karimi"
