"""Reports router — submit today's tasks, read own report, admin listing."""


import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.auth.dependencies import get_current_user, require_role
from timekeeper.common.constants import UserRole
from timekeeper.database import get_db
from timekeeper.organization.models import Employee
from timekeeper.reports.schemas import (
    DailyReportListItem,
    DailyReportResponse,
    ReportSubmit,
    TodayReportResponse,
)
from timekeeper.reports.service import ReportService

router = APIRouter()


# ── POST / ──────────────────────────────────────────────────────────

@router.post("", response_model=DailyReportResponse)
async def submit_report(
    body: ReportSubmit,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Submit (or overwrite) today's task list."""
    return await ReportService.submit_report(db, employee, body.tasks)


# ── GET /today ──────────────────────────────────────────────────────

@router.get("/today", response_model=TodayReportResponse)
async def today_report(
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ReportService.get_today_report(db, employee)


# ── GET / (admin) ───────────────────────────────────────────────────

@router.get("", response_model=List[DailyReportListItem])
async def list_reports(
    on_date: Optional[date] = Query(None, alias="date"),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    employee_id: Optional[uuid.UUID] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    employee: Employee = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await ReportService.list_reports(
        db,
        employee.company_id,
        on_date=on_date,
        from_date=from_date,
        to_date=to_date,
        employee_id=employee_id,
        search=search,
    )
