"""Top-level API router."""

from fastapi import APIRouter

from shiftlog.api.routes.assignments import router as assignments_router
from shiftlog.api.routes.auth import router as auth_router
from shiftlog.api.routes.base import router as base_router
from shiftlog.api.routes.calendar import router as calendar_router
from shiftlog.api.routes.health import router as health_router
from shiftlog.api.routes.me import router as me_router
from shiftlog.api.routes.performance import router as performance_router
from shiftlog.api.routes.personnel import router as personnel_router
from shiftlog.api.routes.reference import router as reference_router
from shiftlog.api.routes.users import router as users_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router)
api_router.include_router(me_router)
api_router.include_router(calendar_router)
api_router.include_router(performance_router)
api_router.include_router(assignments_router)
api_router.include_router(personnel_router)
api_router.include_router(reference_router)
api_router.include_router(base_router)
api_router.include_router(users_router)
