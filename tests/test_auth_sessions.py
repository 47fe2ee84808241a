from __future__ import annotations

from datetime import datetime, timedelta

from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftlog.core.config import get_settings
from shiftlog.models.entities import UserRole, UserSession

from conftest import TEST_PASSWORD


def test_login_issues_token_usable_as_bearer(client: TestClient, make_user) -> None:
    make_user("supervisor")

    response = client.post("/api/v1/auth/login", json={"username": "supervisor", "password": TEST_PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["username"] == "supervisor"
    assert body["user"]["role"] == "user"

    me = client.get("/api/v1/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["username"] == "supervisor"
    assert me.json()["is_admin"] is False


def test_login_rejects_bad_credentials_and_disabled_users(client: TestClient, make_user) -> None:
    make_user("supervisor")
    make_user("retired", is_active=False)

    wrong = client.post("/api/v1/auth/login", json={"username": "supervisor", "password": "nope"})
    unknown = client.post("/api/v1/auth/login", json={"username": "ghost", "password": TEST_PASSWORD})
    disabled = client.post("/api/v1/auth/login", json={"username": "retired", "password": TEST_PASSWORD})

    for response in (wrong, unknown, disabled):
        assert response.status_code == 401
        assert response.json()["code"] == "unauthenticated"


def test_logout_revokes_session(client: TestClient, make_user, auth_headers) -> None:
    headers = auth_headers(make_user("supervisor"))

    assert client.post("/api/v1/auth/logout", headers=headers).status_code == 204

    response = client.get("/api/v1/me", headers=headers)
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_expired_and_unknown_tokens_are_rejected(
    client: TestClient, db_session: Session, make_user, auth_headers
) -> None:
    user = make_user("supervisor")
    headers = auth_headers(user)
    row = db_session.scalar(select(UserSession).where(UserSession.user_id == user.id))
    row.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db_session.commit()

    assert client.get("/api/v1/me", headers=headers).status_code == 401
    assert client.get("/api/v1/me", headers={"Authorization": "Bearer missing"}).status_code == 401
    assert client.get("/api/v1/me").status_code == 401


def test_dev_principal_requires_setting(client: TestClient, make_user, monkeypatch) -> None:
    make_user("root", role=UserRole.ADMIN)

    assert client.get("/api/v1/me", headers={"X-Dev-User": "root"}).status_code == 401

    monkeypatch.setenv("SHIFTLOG_AUTH_ALLOW_DEV_PRINCIPAL", "true")
    get_settings.cache_clear()
    try:
        response = client.get("/api/v1/me", headers={"X-Dev-User": "root"})
    finally:
        monkeypatch.delenv("SHIFTLOG_AUTH_ALLOW_DEV_PRINCIPAL")
        get_settings.cache_clear()

    assert response.status_code == 200
    assert response.json()["role"] == "admin"
