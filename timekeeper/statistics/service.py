"""Statistics service — fetches company snapshots and hands them to the engine."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional, Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.attendance.models import AttendanceRecord
from timekeeper.common.clock import check_date_range, local_now, month_bounds, months_back
from timekeeper.common.constants import UserRole
from timekeeper.config import settings
from timekeeper.organization.models import Employee
from timekeeper.reports.models import DailyReport
from timekeeper.statistics import engine
from timekeeper.statistics.schemas import DashboardSummaryResponse, StatisticsResponse


def _today() -> date:
    return local_now().date()


class StatisticsService:
    """Read-only aggregation over a company's attendance and reports."""

    # ── Fetching ────────────────────────────────────────────────────

    @staticmethod
    async def get_roster(
        db: AsyncSession,
        company_id: uuid.UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[Employee]:
        """Employees with role ``employee``, in insertion order.

        Without a range only active employees are returned. With one,
        deactivated employees who have attendance in [start, end] are kept
        so past statistics do not change when someone leaves.
        """
        present = Employee.is_active.is_(True)
        if start is not None and end is not None:
            with_history = (
                select(AttendanceRecord.employee_id)
                .where(
                    AttendanceRecord.company_id == company_id,
                    AttendanceRecord.date >= start,
                    AttendanceRecord.date <= end,
                )
            )
            present = or_(present, Employee.id.in_(with_history))

        result = await db.execute(
            select(Employee)
            .where(
                Employee.company_id == company_id,
                Employee.role == UserRole.employee,
                present,
            )
            .order_by(Employee.created_at, Employee.id)
        )
        return result.scalars().all()

    @staticmethod
    async def get_records(
        db: AsyncSession,
        company_id: uuid.UUID,
        start: date,
        end: date,
    ) -> Sequence[AttendanceRecord]:
        result = await db.execute(
            select(AttendanceRecord)
            .where(
                AttendanceRecord.company_id == company_id,
                AttendanceRecord.date >= start,
                AttendanceRecord.date <= end,
            )
            .order_by(AttendanceRecord.date, AttendanceRecord.created_at)
        )
        return result.scalars().all()

    @staticmethod
    async def get_reports(
        db: AsyncSession,
        company_id: uuid.UUID,
        start: date,
        end: date,
    ) -> Sequence[DailyReport]:
        result = await db.execute(
            select(DailyReport)
            .where(
                DailyReport.company_id == company_id,
                DailyReport.date >= start,
                DailyReport.date <= end,
            )
            .order_by(DailyReport.date, DailyReport.submitted_at)
        )
        return result.scalars().all()

    # ── Range statistics ────────────────────────────────────────────

    @staticmethod
    async def get_statistics(
        db: AsyncSession,
        company_id: uuid.UUID,
        start: date,
        end: date,
        *,
        today: Optional[date] = None,
    ) -> StatisticsResponse:
        """Statistics for [start, end] plus the trailing monthly comparison.

        Reads are not isolated from concurrent punches; a punch landing
        mid-query simply shows up on the next call.
        """
        check_date_range(start, end)
        today = today or _today()
        months = settings.MONTHLY_COMPARISON_MONTHS

        fetch_start = min(start, months_back(today, months - 1))
        fetch_end = max(end, today)

        roster = await StatisticsService.get_roster(db, company_id, start, end)
        records = await StatisticsService.get_records(db, company_id, fetch_start, fetch_end)
        reports = await StatisticsService.get_reports(db, company_id, fetch_start, fetch_end)

        return engine.build_statistics(
            start, end, roster, records, reports, today=today, months=months,
        )

    # ── Daily dashboard ─────────────────────────────────────────────

    @staticmethod
    async def dashboard_summary(
        db: AsyncSession,
        company_id: uuid.UUID,
        *,
        today: Optional[date] = None,
    ) -> DashboardSummaryResponse:
        today = today or _today()
        month_start, _ = month_bounds(today)

        roster = await StatisticsService.get_roster(db, company_id)
        roster_ids = {emp.id for emp in roster}
        month_records = [
            r for r in await StatisticsService.get_records(db, company_id, month_start, today)
            if r.employee_id in roster_ids
        ]
        today_records = [r for r in month_records if r.date == today]
        arrived_today = [r for r in today_records if r.arrival_time is not None]

        reported = {
            r.attendance_id
            for r in await StatisticsService.get_reports(db, company_id, today, today)
        }
        average_late = (
            round(sum(r.late_minutes for r in today_records) / len(today_records))
            if today_records
            else 0
        )

        return DashboardSummaryResponse(
            date=today,
            total_employees=len(roster),
            present_today=len(arrived_today),
            late_today=sum(1 for r in arrived_today if r.late_minutes > 0),
            penalties_this_month=sum(r.penalty_amount for r in month_records),
            average_late_minutes=average_late,
            pending_validations=sum(1 for r in arrived_today if not r.arrival_validated),
            pending_reports=sum(1 for r in arrived_today if r.id not in reported),
            attendance_rate_today=engine.attendance_rate(today_records, len(roster), 1),
            punctuality_rate_today=engine.punctuality_rate(today_records),
        )
