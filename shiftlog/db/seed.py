"""Idempotent bootstrap of the admin account and default reference data.

Run with ``python -m shiftlog.db.seed`` after ``alembic upgrade head``.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session
import structlog
from werkzeug.security import generate_password_hash

from shiftlog.core.config import get_settings
from shiftlog.core.logging import configure_logging
from shiftlog.models.entities import BaseType, StationBase, User, UserRole, WorkShift

logger = structlog.get_logger(__name__)

DEFAULT_WORK_SHIFTS = (
    ("۲۴ ساعته", 24, "273"),
    ("طولانی", 12, "345"),
    ("شب", 8, "121"),
    ("۲۴ ساعته تعطیل", 24, "274"),
)

DEFAULT_BASES = (
    ("پایگاه ۱۰۱", "101", BaseType.URBAN),
    ("پایگاه ۱۰۲", "102", BaseType.ROAD),
    ("پایگاه ۱۰۳", "103", BaseType.URBAN),
)


def seed_reference_data(session: Session) -> dict[str, int]:
    """Insert whatever defaults are missing; returns how many rows were created."""

    settings = get_settings()
    created = {"users": 0, "work_shifts": 0, "bases": 0}

    if session.scalar(select(User).where(User.username == settings.bootstrap_admin_username)) is None:
        session.add(
            User(
                username=settings.bootstrap_admin_username,
                password_hash=generate_password_hash(settings.bootstrap_admin_password),
                role=UserRole.ADMIN,
                is_active=True,
                full_name="System Administrator",
            )
        )
        created["users"] += 1

    existing_codes = set(session.scalars(select(WorkShift.shift_code)).all())
    for title, hours, code in DEFAULT_WORK_SHIFTS:
        if code not in existing_codes:
            session.add(WorkShift(title=title, equivalent_hours=hours, shift_code=code))
            created["work_shifts"] += 1

    existing_numbers = set(session.scalars(select(StationBase.number)).all())
    for name, number, base_type in DEFAULT_BASES:
        if number not in existing_numbers:
            session.add(StationBase(name=name, number=number, type=base_type))
            created["bases"] += 1

    session.commit()
    logger.info("reference_data_seeded", **created)
    return created


def main() -> None:
    from shiftlog.db.session import SessionLocal

    configure_logging()
    with SessionLocal() as session:
        seed_reference_data(session)


if __name__ == "__main__":
    main()
