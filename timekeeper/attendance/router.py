"""Attendance router — punches, today's record, own history, admin listing
and validation.

All endpoints require authentication; listing and validation are admin-only.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.attendance.schemas import (
    AttendanceListResponse,
    AttendanceRecordResponse,
    MyAttendanceResponse,
    TodayAttendanceResponse,
    ValidationRequest,
)
from timekeeper.attendance.service import AttendanceService
from timekeeper.auth.dependencies import get_current_user, require_role
from timekeeper.common.constants import AttendanceStatus, UserRole
from timekeeper.common.pagination import PaginationParams
from timekeeper.common.rate_limit import PUNCH_RATE_LIMIT, limiter
from timekeeper.database import get_db
from timekeeper.organization.models import Employee

router = APIRouter()


# ── POST /punch-in ──────────────────────────────────────────────────

@router.post("/punch-in", response_model=AttendanceRecordResponse, status_code=201)
@limiter.limit(PUNCH_RATE_LIMIT)
async def punch_in(
    request: Request,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record the caller's arrival for today."""
    return await AttendanceService.punch_in(db, employee)


# ── POST /punch-out ─────────────────────────────────────────────────

@router.post("/punch-out", response_model=AttendanceRecordResponse)
@limiter.limit(PUNCH_RATE_LIMIT)
async def punch_out(
    request: Request,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record the caller's departure for today."""
    return await AttendanceService.punch_out(db, employee)


# ── GET /today ──────────────────────────────────────────────────────

@router.get("/today", response_model=TodayAttendanceResponse)
async def today_attendance(
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.get_today(db, employee)


# ── GET /my-attendance ──────────────────────────────────────────────

@router.get("/my-attendance", response_model=MyAttendanceResponse)
async def my_attendance(
    from_date: date = Query(..., description="Start date (inclusive)"),
    to_date: date = Query(..., description="End date (inclusive)"),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's records in range, newest first."""
    return await AttendanceService.get_my_attendance(db, employee, from_date, to_date)


# ── GET / (admin) ───────────────────────────────────────────────────

@router.get("", response_model=AttendanceListResponse)
async def list_attendance(
    on_date: Optional[date] = Query(None, alias="date"),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    employee_id: Optional[uuid.UUID] = Query(None),
    status: Optional[AttendanceStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(),
    employee: Employee = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Company attendance with date, employee, status and text filters."""
    return await AttendanceService.list_attendance(
        db,
        employee.company_id,
        on_date=on_date,
        from_date=from_date,
        to_date=to_date,
        employee_id=employee_id,
        status=status,
        search=search,
        page=pagination.page,
        page_size=pagination.page_size,
    )


# ── PUT /{attendance_id}/validation (admin) ─────────────────────────

@router.put("/{attendance_id}/validation", response_model=AttendanceRecordResponse)
async def set_validation(
    attendance_id: uuid.UUID,
    body: ValidationRequest,
    employee: Employee = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Accept or revoke an arrival; repeating the same value is a no-op."""
    return await AttendanceService.set_validation(
        db, employee.company_id, attendance_id, body.validated,
    )
