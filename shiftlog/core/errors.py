"""Domain errors raised by services and rendered by FastAPI.

Every error is an ``HTTPException`` so services can raise them exactly where
they would raise an HTTP error, while callers outside the web layer (tests,
scripts) can still catch the specific kind.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse


class ShiftLogError(HTTPException):
    """Base class for domain failures surfaced to API clients."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "error"
    default_detail: str = "Request could not be processed."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class UnauthenticatedError(ShiftLogError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    default_detail = "Authentication required."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail)
        self.headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenError(ShiftLogError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_detail = "Insufficient permissions for this operation."


class NotFoundError(ShiftLogError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Resource not found."


class ConflictError(ShiftLogError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_detail = "Resource already exists."


class DuplicatePeriodError(ConflictError):
    code = "duplicate_period"
    default_detail = "A performance log already exists for this period."


class IncompleteProfileError(ConflictError):
    code = "incomplete_profile"
    default_detail = "Base profile must be completed before logging performance."


class ImmutableLogError(ConflictError):
    code = "immutable_log"
    default_detail = "Performance log is finalized and can no longer be changed."


class AlreadyFinalizedError(ImmutableLogError):
    code = "already_finalized"
    default_detail = "Performance log has already been finalized."


class ImmutableEntryError(ConflictError):
    code = "immutable_entry"
    default_detail = "Performance entry is finalized and can no longer be changed."


class DuplicateAssignmentError(ConflictError):
    code = "duplicate_assignment"
    default_detail = "Personnel already has an assignment on this date."


class InvalidInputError(ShiftLogError):
    status_code = 422
    code = "invalid_input"
    default_detail = "Invalid input."


async def shiftlog_error_handler(request: Request, exc: ShiftLogError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
        headers=getattr(exc, "headers", None),
    )
