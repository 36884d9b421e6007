"""Statistics Pydantic v2 schemas — range aggregation and daily dashboard."""

from __future__ import annotations

import uuid
from datetime import date
from typing import List

from pydantic import BaseModel

from timekeeper.common.constants import TrendDirection


# ── Trend series (dense, one point per day) ─────────────────────────

class AttendanceTrendPoint(BaseModel):
    date: date
    present: int = 0
    total: int = 0


class PunctualityTrendPoint(BaseModel):
    date: date
    on_time: int = 0
    late: int = 0


# ── Rankings ────────────────────────────────────────────────────────

class PenaltyRankingEntry(BaseModel):
    employee_id: uuid.UUID
    name: str
    total_penalty: int


class TaskRankingEntry(BaseModel):
    employee_id: uuid.UUID
    name: str
    total_tasks: int


# ── Month over month ────────────────────────────────────────────────

class MonthlyComparisonEntry(BaseModel):
    month: str
    label: str
    attendance_rate: float = 0.0
    average_tasks: float = 0.0
    attendance_direction: TrendDirection = TrendDirection.flat
    productivity_direction: TrendDirection = TrendDirection.flat


# ── Aggregate ───────────────────────────────────────────────────────

class StatisticsResponse(BaseModel):
    """Range statistics; recomputed on every request, never stored."""

    start_date: date
    end_date: date
    total_employees: int = 0
    attendance_rate: float = 0.0
    punctuality_rate: float = 0.0
    total_penalties: int = 0
    total_late_minutes: int = 0
    total_reports: int = 0
    average_productivity: float = 0.0
    attendance_trend: List[AttendanceTrendPoint] = []
    punctuality_trend: List[PunctualityTrendPoint] = []
    penalty_ranking: List[PenaltyRankingEntry] = []
    task_ranking: List[TaskRankingEntry] = []
    monthly_comparison: List[MonthlyComparisonEntry] = []


class DashboardSummaryResponse(BaseModel):
    """Today's KPIs for the admin home page."""

    date: date
    total_employees: int = 0
    present_today: int = 0
    late_today: int = 0
    penalties_this_month: int = 0
    average_late_minutes: int = 0
    pending_validations: int = 0
    pending_reports: int = 0
    attendance_rate_today: float = 0.0
    punctuality_rate_today: float = 0.0
