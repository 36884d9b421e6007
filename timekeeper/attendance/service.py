"""Attendance service layer — punch in/out, lateness and penalty, validation.

Business logic:
  - One record per (employee, date); the store's unique constraint is the
    final authority, with a pre-check so the common case never hits it
  - Lateness and penalty computed once at punch-in from the policy in force
  - Punch-out requires an arrival; validation requires an arrival
  - Read operations for self and admin views
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from timekeeper.attendance.models import AttendanceRecord
from timekeeper.attendance.schemas import (
    AttendanceListItem,
    AttendanceListResponse,
    AttendanceRecordResponse,
    MyAttendanceResponse,
    MyAttendanceSummary,
    TodayAttendanceResponse,
)
from timekeeper.common.clock import check_date_range, compute_penalty, late_minutes, local_now
from timekeeper.common.constants import AttendanceStatus, DEFAULT_PAGE_SIZE
from timekeeper.common.exceptions import (
    AlreadyDeparted,
    DuplicatePunch,
    ForbiddenException,
    NoArrival,
    NoArrivalToValidate,
    RecordNotFound,
)
from timekeeper.common.filters import apply_attendance_status, apply_date_range, apply_search
from timekeeper.common.pagination import fetch_page
from timekeeper.organization.models import Employee
from timekeeper.organization.service import PolicyService

logger = logging.getLogger(__name__)


def _now() -> datetime:
    """Local wall-clock now; patched in tests."""
    return local_now()


# ═════════════════════════════════════════════════════════════════════
# AttendanceService
# ═════════════════════════════════════════════════════════════════════


class AttendanceService:
    """Async attendance operations: punch, validate, read."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    async def _get_record(
        db: AsyncSession,
        employee_id: uuid.UUID,
        on_date: date,
    ) -> Optional[AttendanceRecord]:
        result = await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.date == on_date,
            )
        )
        return result.scalars().first()

    @staticmethod
    def _ensure_active(employee: Employee) -> None:
        if not employee.is_active:
            raise ForbiddenException(detail="Deactivated employees cannot record attendance.")

    # ── Punch in ────────────────────────────────────────────────────

    @staticmethod
    async def punch_in(
        db: AsyncSession,
        employee: Employee,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        """Create today's record with lateness and penalty fixed at this moment.

        Raises:
            DuplicatePunch: a record already exists for (employee, date).
        """
        AttendanceService._ensure_active(employee)
        employee_id = employee.id
        now = now or _now()
        on_date = now.date()
        arrival = now.time().replace(microsecond=0)

        if await AttendanceService._get_record(db, employee_id, on_date) is not None:
            raise DuplicatePunch(employee_id, on_date)

        policy = await PolicyService.get_effective_policy(db, employee.company_id)
        late = late_minutes(employee.work_start_time, arrival)
        amount = compute_penalty(late, policy.penalty_rate, policy.penalty_unit)

        record = AttendanceRecord(
            employee_id=employee_id,
            company_id=employee.company_id,
            date=on_date,
            arrival_time=arrival,
            arrival_validated=False,
            late_minutes=late,
            penalty_amount=amount,
        )
        db.add(record)
        try:
            await db.flush()
        except IntegrityError:
            # Concurrent punch won the race on uq_attendance_emp_date
            await db.rollback()
            raise DuplicatePunch(employee_id, on_date)

        logger.info(
            "Punch-in %s on %s at %s: late=%d min, penalty=%d",
            employee_id, on_date, arrival, late, amount,
        )
        return record

    # ── Punch out ───────────────────────────────────────────────────

    @staticmethod
    async def punch_out(
        db: AsyncSession,
        employee: Employee,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        """Record today's departure. Validation is not required.

        Raises:
            NoArrival: no record, or no arrival time, for today.
            AlreadyDeparted: departure already recorded.
        """
        AttendanceService._ensure_active(employee)
        now = now or _now()
        on_date = now.date()

        record = await AttendanceService._get_record(db, employee.id, on_date)
        if record is None or record.arrival_time is None:
            raise NoArrival(employee.id, on_date)
        if record.departure_time is not None:
            raise AlreadyDeparted(record.id)

        record.departure_time = now.time().replace(microsecond=0)
        await db.flush()

        logger.info("Punch-out %s on %s at %s", employee.id, on_date, record.departure_time)
        return record

    # ── Validation ──────────────────────────────────────────────────

    @staticmethod
    async def set_validation(
        db: AsyncSession,
        company_id: uuid.UUID,
        attendance_id: uuid.UUID,
        validated: bool,
    ) -> AttendanceRecord:
        """Accept or revoke an arrival. Setting the current value is a no-op.

        Raises:
            RecordNotFound: no such record in the company.
            NoArrivalToValidate: the record has no arrival time.
        """
        result = await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.id == attendance_id,
                AttendanceRecord.company_id == company_id,
            )
        )
        record = result.scalars().first()
        if record is None:
            raise RecordNotFound(attendance_id)
        if record.arrival_time is None:
            raise NoArrivalToValidate(attendance_id)

        if record.arrival_validated != validated:
            record.arrival_validated = validated
            await db.flush()
            logger.info(
                "Attendance %s %s", attendance_id, "validated" if validated else "unvalidated",
            )
        return record

    # ── Today (self) ────────────────────────────────────────────────

    @staticmethod
    async def get_today(
        db: AsyncSession,
        employee: Employee,
        *,
        today: Optional[date] = None,
    ) -> TodayAttendanceResponse:
        today = today or _now().date()
        record = await AttendanceService._get_record(db, employee.id, today)
        return TodayAttendanceResponse(
            date=today,
            record=AttendanceRecordResponse.model_validate(record) if record else None,
        )

    # ── My attendance (self, date range) ────────────────────────────

    @staticmethod
    async def get_my_attendance(
        db: AsyncSession,
        employee: Employee,
        from_date: date,
        to_date: date,
    ) -> MyAttendanceResponse:
        """Own records in range, newest first, with a small summary."""
        check_date_range(from_date, to_date)

        query = select(AttendanceRecord).where(AttendanceRecord.employee_id == employee.id)
        query = apply_date_range(query, AttendanceRecord.date, from_date, to_date)
        query = query.order_by(AttendanceRecord.date.desc())
        records: Sequence[AttendanceRecord] = (await db.execute(query)).scalars().all()

        arrived = [r for r in records if r.arrival_time is not None]
        summary = MyAttendanceSummary(
            days_present=len(arrived),
            days_late=sum(1 for r in arrived if r.late_minutes > 0),
            total_late_minutes=sum(r.late_minutes for r in arrived),
            total_penalties=sum(r.penalty_amount for r in records),
        )
        return MyAttendanceResponse(
            data=[AttendanceRecordResponse.model_validate(r) for r in records],
            summary=summary,
        )

    # ── Admin listing ───────────────────────────────────────────────

    @staticmethod
    async def list_attendance(
        db: AsyncSession,
        company_id: uuid.UUID,
        *,
        on_date: Optional[date] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        employee_id: Optional[uuid.UUID] = None,
        status: Optional[AttendanceStatus] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> AttendanceListResponse:
        """Company attendance rows, newest first, filtered and paginated."""
        query = select(AttendanceRecord).where(AttendanceRecord.company_id == company_id)

        if on_date is not None:
            query = query.where(AttendanceRecord.date == on_date)
        query = apply_date_range(query, AttendanceRecord.date, from_date, to_date)
        if employee_id is not None:
            query = query.where(AttendanceRecord.employee_id == employee_id)
        query = apply_attendance_status(query, AttendanceRecord, status)
        if search and search.strip():
            matching = apply_search(
                select(Employee.id).where(Employee.company_id == company_id),
                search,
                [Employee.name, Employee.email],
            )
            query = query.where(AttendanceRecord.employee_id.in_(matching))

        query = query.options(selectinload(AttendanceRecord.employee)).order_by(
            AttendanceRecord.date.desc(), AttendanceRecord.arrival_time.asc(),
        )
        rows, meta = await fetch_page(db, query, page, page_size)
        return AttendanceListResponse(
            data=[AttendanceListItem.model_validate(r) for r in rows],
            meta=meta,
        )
