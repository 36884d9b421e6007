"""Daily report Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from timekeeper.organization.schemas import EmployeeBrief


class ReportSubmit(BaseModel):
    tasks: List[str] = Field(..., min_length=1, max_length=50)


class DailyReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    attendance_id: uuid.UUID
    date: date
    tasks: List[str]
    task_count: int
    submitted_at: datetime
    productivity_score: int = 0


class DailyReportListItem(DailyReportResponse):
    employee: Optional[EmployeeBrief] = None
    late_minutes: int = 0


class TodayReportResponse(BaseModel):
    date: date
    report: Optional[DailyReportResponse] = None
