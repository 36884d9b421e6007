"""Report binding — daily task lists attached to attended days, plus the
per-report productivity score.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from timekeeper.attendance.models import AttendanceRecord
from timekeeper.common.clock import local_now
from timekeeper.common.constants import (
    MAX_PRODUCTIVITY_SCORE,
    MAX_PUNCTUALITY_SCORE,
    MAX_TASK_SCORE,
    TASK_POINTS,
)
from timekeeper.common.exceptions import EmptyTaskList, ForbiddenException, NoAttendanceRecord
from timekeeper.common.filters import apply_date_range, apply_search
from timekeeper.organization.models import Employee
from timekeeper.reports.models import DailyReport
from timekeeper.reports.schemas import (
    DailyReportListItem,
    DailyReportResponse,
    TodayReportResponse,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return local_now()


# ── Scoring ─────────────────────────────────────────────────────────

def productivity_score(report: Any, attendance: Any) -> int:
    """Score in [0, 100] for one report.

    Up to 80 points for task volume (20 per task) and up to 20 for
    punctuality, losing one point per late minute.
    """
    task_score = min(len(report.tasks or []) * TASK_POINTS, MAX_TASK_SCORE)
    late = attendance.late_minutes or 0
    punctuality_score = MAX_PUNCTUALITY_SCORE if late == 0 else max(0, MAX_PUNCTUALITY_SCORE - late)
    return min(task_score + punctuality_score, MAX_PRODUCTIVITY_SCORE)


def clean_tasks(tasks: Sequence[str]) -> list[str]:
    """Strip every task and drop the blank ones, keeping order."""
    return [task.strip() for task in tasks if task and task.strip()]


def _to_response(report: DailyReport, attendance: AttendanceRecord) -> DailyReportResponse:
    response = DailyReportResponse.model_validate(report)
    response.productivity_score = productivity_score(report, attendance)
    return response


# ═════════════════════════════════════════════════════════════════════
# ReportService
# ═════════════════════════════════════════════════════════════════════


class ReportService:
    """Submit and read daily reports."""

    @staticmethod
    async def _get_report(db: AsyncSession, attendance_id: uuid.UUID) -> Optional[DailyReport]:
        result = await db.execute(
            select(DailyReport).where(DailyReport.attendance_id == attendance_id)
        )
        return result.scalars().first()

    @staticmethod
    async def submit_report(
        db: AsyncSession,
        employee: Employee,
        tasks: Sequence[str],
        *,
        on_date: Optional[date] = None,
    ) -> DailyReportResponse:
        """Create the day's report, or overwrite its tasks on resubmission.

        Raises:
            NoAttendanceRecord: no arrival recorded for (employee, date).
            EmptyTaskList: every task is blank.
        """
        if not employee.is_active:
            raise ForbiddenException(detail="Deactivated employees cannot submit reports.")
        employee_id = employee.id
        on_date = on_date or _now().date()

        result = await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.date == on_date,
                AttendanceRecord.arrival_time.isnot(None),
            )
        )
        attendance = result.scalars().first()
        if attendance is None:
            raise NoAttendanceRecord(employee_id, on_date)

        cleaned = clean_tasks(tasks)
        if not cleaned:
            raise EmptyTaskList()

        attendance_id = attendance.id
        report = await ReportService._get_report(db, attendance_id)
        if report is None:
            report = DailyReport(
                employee_id=employee_id,
                company_id=employee.company_id,
                attendance_id=attendance_id,
                date=attendance.date,
                tasks=cleaned,
                submitted_at=_now(),
            )
            db.add(report)
            try:
                await db.flush()
            except IntegrityError:
                # Concurrent first submission won uq_daily_report_attendance;
                # last write wins, so overwrite the stored row.
                await db.rollback()
                report = (
                    await db.execute(
                        select(DailyReport).where(DailyReport.attendance_id == attendance_id)
                    )
                ).scalars().one()
                attendance = await db.get(AttendanceRecord, attendance_id)
                report.tasks = cleaned
                report.submitted_at = _now()
                await db.flush()
        else:
            report.tasks = cleaned
            report.submitted_at = _now()
            await db.flush()

        logger.info("Report for %s on %s: %d tasks", employee_id, on_date, len(cleaned))
        return _to_response(report, attendance)

    @staticmethod
    async def get_today_report(
        db: AsyncSession,
        employee: Employee,
        *,
        today: Optional[date] = None,
    ) -> TodayReportResponse:
        today = today or _now().date()
        result = await db.execute(
            select(DailyReport)
            .where(DailyReport.employee_id == employee.id, DailyReport.date == today)
            .options(selectinload(DailyReport.attendance))
        )
        report = result.scalars().first()
        return TodayReportResponse(
            date=today,
            report=_to_response(report, report.attendance) if report else None,
        )

    @staticmethod
    async def list_reports(
        db: AsyncSession,
        company_id: uuid.UUID,
        *,
        on_date: Optional[date] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        employee_id: Optional[uuid.UUID] = None,
        search: Optional[str] = None,
    ) -> list[DailyReportListItem]:
        """Company reports, newest first, each with its productivity score."""
        query = select(DailyReport).where(DailyReport.company_id == company_id)
        if on_date is not None:
            query = query.where(DailyReport.date == on_date)
        query = apply_date_range(query, DailyReport.date, from_date, to_date)
        if employee_id is not None:
            query = query.where(DailyReport.employee_id == employee_id)
        if search and search.strip():
            matching = apply_search(
                select(Employee.id).where(Employee.company_id == company_id),
                search,
                [Employee.name, Employee.email],
            )
            query = query.where(DailyReport.employee_id.in_(matching))

        query = query.options(
            selectinload(DailyReport.attendance),
            selectinload(DailyReport.employee),
        ).order_by(DailyReport.date.desc(), DailyReport.submitted_at.desc())

        reports = (await db.execute(query)).scalars().all()
        items = []
        for report in reports:
            item = DailyReportListItem.model_validate(report)
            item.productivity_score = productivity_score(report, report.attendance)
            item.late_minutes = report.attendance.late_minutes
            items.append(item)
        return items
