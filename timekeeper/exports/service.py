"""Export adapter — turns attendance, report, roster and statistics data
into flat tables with stable column names.

Values are strings, integers, ISO ``YYYY-MM-DD`` dates and ``HH:MM``
times. Rendering to CSV / PDF / spreadsheets is left to the consumer.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import date, time
from typing import Any, Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from timekeeper.attendance.models import AttendanceRecord
from timekeeper.common.clock import check_date_range, format_date, format_wall_clock
from timekeeper.common.constants import ExportKind
from timekeeper.common.exceptions import ValidationException
from timekeeper.exports.schemas import ExportTable
from timekeeper.organization.models import Employee
from timekeeper.reports.models import DailyReport
from timekeeper.statistics.service import StatisticsService

ATTENDANCE_COLUMNS = [
    "date", "employee_name", "employee_email",
    "expected_arrival", "arrival_time", "expected_departure", "departure_time",
    "late_minutes", "penalty_amount", "validated",
]
EMPLOYEE_COLUMNS = [
    "name", "email", "role", "work_start_time", "work_end_time", "email_verified", "created_at",
]
REPORT_COLUMNS = [
    "date", "employee_name", "employee_email", "task_count", "tasks", "submitted_at",
]
PENALTY_COLUMNS = ["date", "employee_name", "employee_email", "late_minutes", "penalty_amount"]
STATISTICS_COLUMNS = [
    "employee_name", "employee_email", "days_present", "days_late",
    "total_late_minutes", "total_penalties", "total_tasks",
]

TASK_SEPARATOR = "; "


def _clock(value: Optional[time]) -> Optional[str]:
    return format_wall_clock(value) if value is not None else None


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


# ═════════════════════════════════════════════════════════════════════
# ExportService
# ═════════════════════════════════════════════════════════════════════


class ExportService:
    """Build export tables for one company."""

    @staticmethod
    async def _attendance(
        db: AsyncSession,
        company_id: uuid.UUID,
        start: date,
        end: date,
    ) -> list[AttendanceRecord]:
        result = await db.execute(
            select(AttendanceRecord)
            .where(
                AttendanceRecord.company_id == company_id,
                AttendanceRecord.date >= start,
                AttendanceRecord.date <= end,
            )
            .options(selectinload(AttendanceRecord.employee))
            .order_by(AttendanceRecord.date.desc(), AttendanceRecord.arrival_time)
        )
        return list(result.scalars().all())

    # ── Per-kind builders ───────────────────────────────────────────

    @staticmethod
    async def attendance_rows(db, company_id, start, end) -> list[dict[str, Any]]:
        return [
            {
                "date": format_date(r.date),
                "employee_name": r.employee.name,
                "employee_email": r.employee.email,
                "expected_arrival": _clock(r.employee.work_start_time),
                "arrival_time": _clock(r.arrival_time),
                "expected_departure": _clock(r.employee.work_end_time),
                "departure_time": _clock(r.departure_time),
                "late_minutes": r.late_minutes,
                "penalty_amount": r.penalty_amount,
                "validated": _yes_no(r.arrival_validated),
            }
            for r in await ExportService._attendance(db, company_id, start, end)
        ]

    @staticmethod
    async def penalty_rows(db, company_id, start, end) -> list[dict[str, Any]]:
        return [
            {
                "date": format_date(r.date),
                "employee_name": r.employee.name,
                "employee_email": r.employee.email,
                "late_minutes": r.late_minutes,
                "penalty_amount": r.penalty_amount,
            }
            for r in await ExportService._attendance(db, company_id, start, end)
            if r.penalty_amount > 0
        ]

    @staticmethod
    async def employee_rows(db, company_id, start=None, end=None) -> list[dict[str, Any]]:
        result = await db.execute(
            select(Employee)
            .where(Employee.company_id == company_id)
            .order_by(Employee.created_at, Employee.id)
        )
        return [
            {
                "name": emp.name,
                "email": emp.email,
                "role": emp.role.value,
                "work_start_time": _clock(emp.work_start_time),
                "work_end_time": _clock(emp.work_end_time),
                "email_verified": _yes_no(emp.email_verified),
                "created_at": format_date(emp.created_at.date()),
            }
            for emp in result.scalars().all()
        ]

    @staticmethod
    async def report_rows(db, company_id, start, end) -> list[dict[str, Any]]:
        result = await db.execute(
            select(DailyReport)
            .where(
                DailyReport.company_id == company_id,
                DailyReport.date >= start,
                DailyReport.date <= end,
            )
            .options(selectinload(DailyReport.employee))
            .order_by(DailyReport.date.desc(), DailyReport.submitted_at)
        )
        return [
            {
                "date": format_date(report.date),
                "employee_name": report.employee.name,
                "employee_email": report.employee.email,
                "task_count": report.task_count,
                "tasks": TASK_SEPARATOR.join(report.tasks or []),
                "submitted_at": format_wall_clock(report.submitted_at.time()),
            }
            for report in result.scalars().all()
        ]

    @staticmethod
    async def statistics_rows(db, company_id, start, end) -> list[dict[str, Any]]:
        """One summary row per roster employee, in roster order."""
        roster = await StatisticsService.get_roster(db, company_id, start, end)
        records = await StatisticsService.get_records(db, company_id, start, end)
        reports = await StatisticsService.get_reports(db, company_id, start, end)

        tasks: dict[uuid.UUID, int] = defaultdict(int)
        for report in reports:
            tasks[report.employee_id] += report.task_count
        by_employee: dict[uuid.UUID, list[AttendanceRecord]] = defaultdict(list)
        for r in records:
            by_employee[r.employee_id].append(r)

        rows = []
        for emp in roster:
            arrived = [r for r in by_employee[emp.id] if r.arrival_time is not None]
            rows.append({
                "employee_name": emp.name,
                "employee_email": emp.email,
                "days_present": len(arrived),
                "days_late": sum(1 for r in arrived if r.late_minutes > 0),
                "total_late_minutes": sum(r.late_minutes for r in arrived),
                "total_penalties": sum(r.penalty_amount for r in by_employee[emp.id]),
                "total_tasks": tasks[emp.id],
            })
        return rows

    # ── Entry point ─────────────────────────────────────────────────

    @staticmethod
    async def export_rows(
        db: AsyncSession,
        kind: ExportKind,
        company_id: uuid.UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> ExportTable:
        """Rows for *kind*; every kind except ``employees`` needs a range."""
        kind = ExportKind(kind)
        builders: dict[ExportKind, tuple[list[str], Callable]] = {
            ExportKind.attendance: (ATTENDANCE_COLUMNS, ExportService.attendance_rows),
            ExportKind.penalties: (PENALTY_COLUMNS, ExportService.penalty_rows),
            ExportKind.reports: (REPORT_COLUMNS, ExportService.report_rows),
            ExportKind.employees: (EMPLOYEE_COLUMNS, ExportService.employee_rows),
            ExportKind.statistics: (STATISTICS_COLUMNS, ExportService.statistics_rows),
        }
        columns, build = builders[kind]

        if kind != ExportKind.employees:
            if start is None or end is None:
                raise ValidationException(
                    {"date_range": [f"from_date and to_date are required for '{kind.value}' exports."]}
                )
            check_date_range(start, end)

        rows = await build(db, company_id, start, end)
        return ExportTable(kind=kind, columns=columns, rows=rows, start_date=start, end_date=end)
