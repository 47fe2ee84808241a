"""Admin shift assignment endpoints and the aggregate performance grid."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from shiftlog.core.auth import RequestUserContext, get_current_user_context
from shiftlog.db.dependencies import get_db_session
from shiftlog.models.entities import EmploymentStatus, ProductivityStatus
from shiftlog.services.assignment_service import (
    AssignmentCreateData,
    AssignmentService,
    AssignmentUpdateData,
)

router = APIRouter(tags=["assignments"])


class AssignmentCreatePayload(BaseModel):
    personnel_id: UUID
    shift_id: UUID
    base_id: UUID
    date: str = Field(min_length=8, max_length=10)
    log_id: UUID | None = None


class AssignmentUpdatePayload(BaseModel):
    shift_id: UUID | None = None
    base_id: UUID | None = None
    date: str | None = Field(default=None, min_length=8, max_length=10)


def _assignment_service(db: Session) -> AssignmentService:
    return AssignmentService(db)


@router.get("/performance-assignments")
def list_assignments(
    year: int | None = None,
    month: int | None = Query(default=None, ge=1, le=12),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _assignment_service(db)
    rows = service.list_assignments(context=context, year=year, month=month)
    return {"items": [service.serialize_assignment(row) for row in rows]}


@router.post("/performance-assignments", status_code=status.HTTP_201_CREATED)
def create_assignment(
    payload: AssignmentCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _assignment_service(db)
    assignment = service.create_assignment(
        context=context,
        data=AssignmentCreateData(
            personnel_id=payload.personnel_id,
            shift_id=payload.shift_id,
            base_id=payload.base_id,
            date=payload.date,
            log_id=payload.log_id,
        ),
    )
    return service.serialize_assignment(assignment)


@router.delete("/performance-assignments/by-date", status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment_by_date(
    personnel_id: UUID,
    date: str = Query(min_length=8, max_length=10),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _assignment_service(db).delete_assignment_by_date(context=context, personnel_id=personnel_id, date=date)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/performance-assignments/{assignment_id}")
def update_assignment(
    assignment_id: UUID,
    payload: AssignmentUpdatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _assignment_service(db)
    assignment = service.update_assignment(
        context=context,
        assignment_id=assignment_id,
        data=AssignmentUpdateData(shift_id=payload.shift_id, base_id=payload.base_id, date=payload.date),
    )
    return service.serialize_assignment(assignment)


@router.delete("/performance-assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment(
    assignment_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _assignment_service(db).delete_assignment(context=context, assignment_id=assignment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/admin/performance-grid")
def get_admin_performance_grid(
    year: int = Query(ge=1),
    month: int = Query(ge=1, le=12),
    employment_status: EmploymentStatus | None = None,
    productivity_status: ProductivityStatus | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _assignment_service(db).read_admin_grid(
        context=context,
        year=year,
        month=month,
        employment_status=employment_status,
        productivity_status=productivity_status,
    )
