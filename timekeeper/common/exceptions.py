"""Custom exceptions and RFC 7807 Problem Detail error handlers."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

BASE_ERROR_URI = "https://timekeeper.local/errors"


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → RFC 7807 JSON."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class NotFoundException(AppException):
    """404 — entity not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class ConflictError(AppException):
    """409 — unique-constraint / duplicate."""

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(
            status_code=409,
            error_type="conflict",
            title="Conflict",
            detail=f"An entry with {field}='{value}' already exists.",
            errors={field: [f"'{value}' is already in use."]},
        )


class ForbiddenException(AppException):
    """403 — insufficient permissions."""

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(
            status_code=403,
            error_type="forbidden",
            title="Forbidden",
            detail=detail,
        )


class ValidationException(AppException):
    """422 — business-logic validation failures."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        super().__init__(
            status_code=422,
            error_type="validation-error",
            title="Validation Error",
            detail="One or more fields failed validation.",
            errors=errors,
        )


# ── Attendance lifecycle failures ───────────────────────────────────

class DuplicatePunch(AppException):
    """409 — an attendance record already exists for (employee, date)."""

    def __init__(self, employee_id: Any, on_date: Any) -> None:
        super().__init__(
            status_code=409,
            error_type="duplicate-punch",
            title="Duplicate Punch",
            detail=f"Employee '{employee_id}' already punched in on {on_date}.",
        )


class NoArrival(AppException):
    """422 — punch-out without a recorded arrival."""

    def __init__(self, employee_id: Any, on_date: Any) -> None:
        super().__init__(
            status_code=422,
            error_type="no-arrival",
            title="No Arrival",
            detail=f"Employee '{employee_id}' has no arrival recorded on {on_date}.",
        )


class AlreadyDeparted(AppException):
    """409 — departure already recorded for the day."""

    def __init__(self, attendance_id: Any) -> None:
        super().__init__(
            status_code=409,
            error_type="already-departed",
            title="Already Departed",
            detail=f"Attendance '{attendance_id}' already has a departure time.",
        )


class RecordNotFound(NotFoundException):
    """404 — attendance record id does not exist."""

    def __init__(self, attendance_id: Any) -> None:
        super().__init__("Attendance record", attendance_id)


class NoArrivalToValidate(AppException):
    """422 — validation requested on a record without an arrival."""

    def __init__(self, attendance_id: Any) -> None:
        super().__init__(
            status_code=422,
            error_type="no-arrival-to-validate",
            title="No Arrival To Validate",
            detail=f"Attendance '{attendance_id}' has no arrival time to validate.",
        )


# ── Report binding failures ─────────────────────────────────────────

class NoAttendanceRecord(AppException):
    """422 — a daily report needs an arrival on the same day."""

    def __init__(self, employee_id: Any, on_date: Any) -> None:
        super().__init__(
            status_code=422,
            error_type="no-attendance-record",
            title="No Attendance Record",
            detail=(
                f"Employee '{employee_id}' must punch in on {on_date} "
                "before submitting a daily report."
            ),
        )


class EmptyTaskList(AppException):
    """422 — every submitted task was blank."""

    def __init__(self) -> None:
        super().__init__(
            status_code=422,
            error_type="empty-task-list",
            title="Empty Task List",
            detail="At least one non-blank task is required.",
            errors={"tasks": ["At least one non-blank task is required."]},
        )


# ── Clock / policy failures ─────────────────────────────────────────

class InvalidTimeFormat(AppException):
    """422 — malformed wall-clock time or calendar date."""

    def __init__(self, value: Any, expected: str = "HH:MM") -> None:
        super().__init__(
            status_code=422,
            error_type="invalid-time-format",
            title="Invalid Time Format",
            detail=f"'{value}' is not a valid {expected} value.",
            errors={"time": [f"Expected {expected}, got '{value}'."]},
        )


class PolicyNotFound(AppException):
    """Company has no stored penalty policy.

    Raised by the policy lookup and always replaced by the default policy
    in ``PolicyService.get_effective_policy``; never reaches a client.
    """

    def __init__(self, company_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="policy-not-found",
            title="Penalty Policy Not Found",
            detail=f"Company '{company_id}' has no penalty policy.",
        )


# ── RFC 7807 builder ────────────────────────────────────────────────

def _build_problem_detail(exc: AppException, request: Request) -> dict[str, Any]:
    body: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{exc.error_type}",
        "title": exc.title,
        "status": exc.status_code,
        "detail": exc.detail,
        "instance": str(request.url.path),
    }
    if exc.errors:
        body["errors"] = exc.errors
    return body


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_build_problem_detail(exc, request),
        media_type="application/problem+json",
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    return JSONResponse(
        status_code=422,
        content={
            "type": f"{BASE_ERROR_URI}/validation-error",
            "title": "Validation Error",
            "status": 422,
            "detail": "Request validation failed.",
            "instance": str(request.url.path),
            "errors": field_errors,
        },
        media_type="application/problem+json",
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
