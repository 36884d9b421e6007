"""Common module — shared utilities for Timekeeper."""

from timekeeper.common.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    AttendanceStatus,
    ExportKind,
    PenaltyUnit,
    TrendDirection,
    UserRole,
)
from timekeeper.common.exceptions import (
    AlreadyDeparted,
    AppException,
    ConflictError,
    DuplicatePunch,
    EmptyTaskList,
    ForbiddenException,
    InvalidTimeFormat,
    NoArrival,
    NoArrivalToValidate,
    NoAttendanceRecord,
    NotFoundException,
    PolicyNotFound,
    RecordNotFound,
    ValidationException,
    register_exception_handlers,
)
from timekeeper.common.filters import apply_attendance_status, apply_date_range, apply_search
from timekeeper.common.pagination import PaginationMeta, PaginationParams, fetch_page

__all__ = [
    # Constants / Enums
    "AttendanceStatus",
    "ExportKind",
    "PenaltyUnit",
    "TrendDirection",
    "UserRole",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "NotFoundException",
    "ValidationException",
    "AlreadyDeparted",
    "DuplicatePunch",
    "EmptyTaskList",
    "InvalidTimeFormat",
    "NoArrival",
    "NoArrivalToValidate",
    "NoAttendanceRecord",
    "PolicyNotFound",
    "RecordNotFound",
    "register_exception_handlers",
    # Filters
    "apply_attendance_status",
    "apply_date_range",
    "apply_search",
    # Pagination
    "PaginationMeta",
    "PaginationParams",
    "fetch_page",
]
