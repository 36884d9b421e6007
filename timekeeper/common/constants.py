"""Enums and constants for Timekeeper — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    admin = "admin"
    employee = "employee"


# ── Penalty policy ──────────────────────────────────────────────────

class PenaltyUnit(str, enum.Enum):
    minute = "minute"
    hour = "hour"
    day = "day"


# ── Attendance ──────────────────────────────────────────────────────

class AttendanceStatus(str, enum.Enum):
    """Derived label of an attendance row, also used as a list filter."""

    absent = "absent"
    pending = "pending"
    validated = "validated"
    late = "late"
    on_time = "on_time"


# ── Statistics ──────────────────────────────────────────────────────

class TrendDirection(str, enum.Enum):
    up = "up"
    down = "down"
    flat = "flat"


# ── Exports ─────────────────────────────────────────────────────────

class ExportKind(str, enum.Enum):
    attendance = "attendance"
    reports = "reports"
    penalties = "penalties"
    employees = "employees"
    statistics = "statistics"


# ── Email delivery ──────────────────────────────────────────────────

class EmailService(str, enum.Enum):
    demo = "demo"
    resend = "resend"


# ── Misc constants ──────────────────────────────────────────────────

WALL_CLOCK_FORMAT = "%H:%M"
WALL_CLOCK_SECONDS_FORMAT = "%H:%M:%S"
ISO_DATE_FORMAT = "%Y-%m-%d"
MONTH_LABEL_FORMAT = "%b %Y"
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50

# Productivity score weights
TASK_POINTS = 20
MAX_TASK_SCORE = 80
MAX_PUNCTUALITY_SCORE = 20
MAX_PRODUCTIVITY_SCORE = 100
