"""Approximate Jalali calendar helpers.

The conversions here are the simplified formulas the rest of the system keys
on (date strings, weekday columns, month lengths). They are not calendrically
exact and must stay bit-for-bit stable: stored entry dates and grid columns
are derived from them.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

JALALI_MONTHS: tuple[str, ...] = (
    "فروردین",
    "اردیبهشت",
    "خرداد",
    "تیر",
    "مرداد",
    "شهریور",
    "مهر",
    "آبان",
    "آذر",
    "دی",
    "بهمن",
    "اسفند",
)

JALALI_WEEKDAYS: tuple[str, ...] = (
    "شنبه",
    "یکشنبه",
    "دوشنبه",
    "سه‌شنبه",
    "چهارشنبه",
    "پنج‌شنبه",
    "جمعه",
)

JALALI_WEEKDAYS_SHORT: tuple[str, ...] = ("ش", "ی", "د", "س", "چ", "پ", "ج")

FRIDAY_INDEX = 6

_PERSIAN_DIGITS = str.maketrans("0123456789", "۰۱۲۳۴۵۶۷۸۹")


@dataclass(frozen=True, slots=True)
class JalaliDate:
    year: int
    month: int
    day: int


@dataclass(frozen=True, slots=True)
class CalendarDay:
    day: int
    date: str
    weekday: str
    is_holiday: bool
    is_official_holiday: bool = False
    holiday_title: str | None = None


class HolidayLike(Protocol):
    date: str
    title: str


def _ensure_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"Jalali month must be within 1..12, got {month}.")


def weekday_index(day: int, month: int) -> int:
    """Approximate weekday index (0 = Saturday) used across the grid."""

    return (day + month) % 7


def current_jalali_date(now: datetime | None = None) -> JalaliDate:
    """Derive the approximate Jalali date for ``now`` (defaults to local now)."""

    moment = now or datetime.now()
    month = moment.month - 3 if moment.month > 3 else moment.month + 9
    return JalaliDate(year=moment.year - 621, month=month, day=moment.day)


def is_leap_year(year: int) -> bool:
    return ((year - 979) % 33) % 4 == 1


def days_in_jalali_month(year: int, month: int) -> int:
    _ensure_month(month)
    if month <= 6:
        return 31
    if month <= 11:
        return 30
    return 30 if is_leap_year(year) else 29


def format_date_key(year: int, month: int, day: int) -> str:
    """Zero-padded ``YYYY-MM-DD`` key used for entries and grid columns."""

    return f"{year}-{month:02d}-{day:02d}"


def generate_month_days(
    year: int,
    month: int,
    holidays: Iterable[HolidayLike] = (),
) -> list[CalendarDay]:
    holiday_titles = {holiday.date: holiday.title for holiday in holidays}

    days: list[CalendarDay] = []
    for day in range(1, days_in_jalali_month(year, month) + 1):
        index = weekday_index(day, month)
        date_key = format_date_key(year, month, day)
        days.append(
            CalendarDay(
                day=day,
                date=date_key,
                weekday=JALALI_WEEKDAYS[index],
                is_holiday=index == FRIDAY_INDEX,
                is_official_holiday=date_key in holiday_titles,
                holiday_title=holiday_titles.get(date_key),
            )
        )
    return days


def parse_date_string(value: str) -> JalaliDate:
    """Split ``YYYY-MM-DD`` into integers without checking calendar validity."""

    parts = value.split("-")
    if len(parts) != 3:
        raise ValueError(f"Expected YYYY-MM-DD date string, got {value!r}.")
    year, month, day = (int(part) for part in parts)
    return JalaliDate(year=year, month=month, day=day)


def format_persian_digits(value: int | str) -> str:
    return str(value).translate(_PERSIAN_DIGITS)


def format_jalali_date(date: JalaliDate) -> str:
    return f"{date.year}/{date.month:02d}/{date.day:02d}"


def format_long_date(date: JalaliDate, include_weekday: bool = False) -> str:
    month_name = JALALI_MONTHS[date.month - 1]
    text = f"{date.day} {month_name} {date.year}"
    if include_weekday:
        return f"{JALALI_WEEKDAYS[weekday_index(date.day, date.month)]} {text}"
    return text


def serialize_calendar_day(day: CalendarDay) -> dict[str, object]:
    return {
        "day": day.day,
        "date": day.date,
        "weekday": day.weekday,
        "is_holiday": day.is_holiday,
        "is_official_holiday": day.is_official_holiday,
        "holiday_title": day.holiday_title,
    }
