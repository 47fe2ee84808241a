from __future__ import annotations

import secrets
from collections.abc import Callable, Generator
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from werkzeug.security import generate_password_hash

from shiftlog.core.auth import RequestUserContext, context_for_user
from shiftlog.db.base import Base
from shiftlog.db.dependencies import get_db_session
import shiftlog.models.entities  # noqa: F401
from shiftlog.main import create_app
from shiftlog.models.entities import (
    BaseMember,
    BaseProfile,
    BaseType,
    DriverStatus,
    EmploymentStatus,
    IranHoliday,
    PerformanceAssignment,
    PerformanceEntry,
    PerformanceLog,
    Personnel,
    ProductivityStatus,
    StationBase,
    User,
    UserRole,
    UserSession,
    WorkShift,
)

TEST_TABLES = [
    User.__table__,
    UserSession.__table__,
    Personnel.__table__,
    WorkShift.__table__,
    StationBase.__table__,
    BaseProfile.__table__,
    BaseMember.__table__,
    PerformanceLog.__table__,
    PerformanceEntry.__table__,
    PerformanceAssignment.__table__,
    IranHoliday.__table__,
]

TEST_PASSWORD = "secret-pass"


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine, tables=TEST_TABLES)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=TEST_TABLES)


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    def factory(username: str, *, role: UserRole = UserRole.USER, is_active: bool = True) -> User:
        now = datetime.utcnow()
        user = User(
            username=username,
            password_hash=generate_password_hash(TEST_PASSWORD),
            role=role,
            is_active=is_active,
            full_name=username.title(),
            created_at=now,
            updated_at=now,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return factory


@pytest.fixture()
def auth_headers(db_session: Session) -> Callable[[User], dict[str, str]]:
    def factory(user: User) -> dict[str, str]:
        now = datetime.utcnow()
        row = UserSession(
            user_id=user.id,
            token=secrets.token_urlsafe(24),
            issued_at=now,
            expires_at=now + timedelta(hours=1),
        )
        db_session.add(row)
        db_session.commit()
        return {"Authorization": f"Bearer {row.token}"}

    return factory


@pytest.fixture()
def make_context() -> Callable[[User], RequestUserContext]:
    return context_for_user


@pytest.fixture()
def make_personnel(db_session: Session) -> Callable[..., Personnel]:
    def factory(
        first_name: str,
        last_name: str,
        *,
        national_id: str | None = None,
        employment_status: EmploymentStatus = EmploymentStatus.OFFICIAL,
        productivity_status: ProductivityStatus = ProductivityStatus.PRODUCTIVE,
        member_of: User | None = None,
    ) -> Personnel:
        person = Personnel(
            first_name=first_name,
            last_name=last_name,
            national_id=national_id or secrets.token_hex(5),
            employment_status=employment_status,
            productivity_status=productivity_status,
            driver_status=DriverStatus.DRIVER,
        )
        db_session.add(person)
        db_session.flush()
        if member_of is not None:
            db_session.add(BaseMember(user_id=member_of.id, personnel_id=person.id))
        db_session.commit()
        db_session.refresh(person)
        return person

    return factory


@pytest.fixture()
def work_shifts(db_session: Session) -> dict[str, WorkShift]:
    rows = {
        "273": WorkShift(title="24h", equivalent_hours=24, shift_code="273"),
        "345": WorkShift(title="long", equivalent_hours=12, shift_code="345"),
        "121": WorkShift(title="night", equivalent_hours=8, shift_code="121"),
    }
    db_session.add_all(rows.values())
    db_session.commit()
    for row in rows.values():
        db_session.refresh(row)
    return rows


@pytest.fixture()
def make_profile(db_session: Session) -> Callable[..., BaseProfile]:
    def factory(user: User, *, base_number: str = "101", base_type: BaseType = BaseType.URBAN) -> BaseProfile:
        profile = BaseProfile(
            user_id=user.id,
            supervisor_name=user.full_name or user.username,
            supervisor_national_id="0012345678",
            base_name=f"Base {base_number}",
            base_number=base_number,
            base_type=base_type,
            is_complete=True,
        )
        db_session.add(profile)
        db_session.commit()
        db_session.refresh(profile)
        return profile

    return factory
