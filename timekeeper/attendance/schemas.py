"""Attendance Pydantic v2 schemas — punches, validation, listings."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from timekeeper.common.constants import AttendanceStatus
from timekeeper.common.pagination import PaginationMeta
from timekeeper.organization.schemas import EmployeeBrief


# ── Requests ────────────────────────────────────────────────────────

class ValidationRequest(BaseModel):
    """Admin toggle of the arrival-validated flag."""

    validated: bool = Field(..., description="True to accept the arrival, False to revoke")


# ── Responses ───────────────────────────────────────────────────────

class AttendanceRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    company_id: uuid.UUID
    date: date
    arrival_time: Optional[time] = None
    departure_time: Optional[time] = None
    arrival_validated: bool = False
    late_minutes: int = 0
    penalty_amount: int = 0
    status: AttendanceStatus
    created_at: Optional[datetime] = None


class AttendanceListItem(AttendanceRecordResponse):
    """Admin listing row with the employee embedded."""

    employee: Optional[EmployeeBrief] = None


class AttendanceListResponse(BaseModel):
    data: List[AttendanceListItem]
    meta: PaginationMeta


class MyAttendanceSummary(BaseModel):
    days_present: int = 0
    days_late: int = 0
    total_late_minutes: int = 0
    total_penalties: int = 0


class MyAttendanceResponse(BaseModel):
    data: List[AttendanceRecordResponse]
    summary: MyAttendanceSummary


class TodayAttendanceResponse(BaseModel):
    """The caller's record for today; ``record`` is null before punch-in."""

    date: date
    record: Optional[AttendanceRecordResponse] = None
