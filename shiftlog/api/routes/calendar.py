"""Jalali calendar endpoints backing the month grids."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from shiftlog.core.auth import RequestUserContext, get_current_user_context
from shiftlog.core.jalali import (
    current_jalali_date,
    days_in_jalali_month,
    format_jalali_date,
    format_long_date,
    format_persian_digits,
    generate_month_days,
    serialize_calendar_day,
)
from shiftlog.db.dependencies import get_db_session
from shiftlog.repositories.reference_repository import ReferenceRepository

router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get("/today")
def get_today(context: RequestUserContext = Depends(get_current_user_context)) -> dict[str, object]:
    today = current_jalali_date()
    return {
        "year": today.year,
        "month": today.month,
        "day": today.day,
        "formatted": format_jalali_date(today),
        "long": format_long_date(today, include_weekday=True),
        "long_persian": format_persian_digits(format_long_date(today, include_weekday=True)),
    }


@router.get("/{year}/{month}")
def get_month(
    year: int = Path(ge=1),
    month: int = Path(ge=1, le=12),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    holidays = ReferenceRepository(db).list_holidays(year=year, month=month)
    return {
        "year": year,
        "month": month,
        "days_in_month": days_in_jalali_month(year, month),
        "days": [serialize_calendar_day(day) for day in generate_month_days(year, month, holidays)],
    }
