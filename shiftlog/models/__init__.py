"""ORM model package."""

from shiftlog.models.entities import (
    BaseMember,
    BaseProfile,
    IranHoliday,
    PerformanceAssignment,
    PerformanceEntry,
    PerformanceLog,
    Personnel,
    StationBase,
    User,
    UserSession,
    WorkShift,
)

__all__ = [
    "BaseMember",
    "BaseProfile",
    "IranHoliday",
    "PerformanceAssignment",
    "PerformanceEntry",
    "PerformanceLog",
    "Personnel",
    "StationBase",
    "User",
    "UserSession",
    "WorkShift",
]
