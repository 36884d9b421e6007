"""Statistics router — admin range statistics and the daily dashboard."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.auth.dependencies import require_role
from timekeeper.common.constants import UserRole
from timekeeper.database import get_db
from timekeeper.organization.models import Employee
from timekeeper.statistics.schemas import DashboardSummaryResponse, StatisticsResponse
from timekeeper.statistics.service import StatisticsService

router = APIRouter()


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=StatisticsResponse)
async def get_statistics(
    from_date: date = Query(..., description="Start date (inclusive)"),
    to_date: date = Query(..., description="End date (inclusive)"),
    employee: Employee = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Rates, dense trends, rankings and the monthly comparison."""
    return await StatisticsService.get_statistics(db, employee.company_id, from_date, to_date)


# ── GET /dashboard ──────────────────────────────────────────────────

@router.get("/dashboard", response_model=DashboardSummaryResponse)
async def dashboard(
    employee: Employee = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Today's KPIs: presence, lateness, month penalties, pending work."""
    return await StatisticsService.dashboard_summary(db, employee.company_id)
