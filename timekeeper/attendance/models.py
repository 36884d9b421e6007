"""Attendance ORM model: one AttendanceRecord per employee per calendar day."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timekeeper.common.constants import AttendanceStatus
from timekeeper.database import Base

if TYPE_CHECKING:
    from timekeeper.organization.models import Employee


class AttendanceRecord(Base):
    """Arrival/departure wall-clock times for one (employee, date).

    ``late_minutes`` and ``penalty_amount`` are fixed when the arrival is
    punched and are never recomputed.
    """

    __tablename__ = "attendance_records"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "date", name="uq_attendance_emp_date"),
        sa.CheckConstraint("late_minutes >= 0", name="ck_attendance_late_non_negative"),
        sa.CheckConstraint("penalty_amount >= 0", name="ck_attendance_penalty_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("companies.id"), nullable=False
    )
    date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    arrival_time: Mapped[Optional[time]] = mapped_column(sa.Time)
    departure_time: Mapped[Optional[time]] = mapped_column(sa.Time)
    arrival_validated: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=False
    )
    late_minutes: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0
    )
    penalty_amount: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime, default=datetime.now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime, default=datetime.now, onupdate=datetime.now
    )

    # Relationships
    employee: Mapped[Employee] = relationship()

    @property
    def status(self) -> AttendanceStatus:
        """Derived label: absent, pending (unvalidated), late or on_time.

        Narrower than the list filters, which match ``late``/``on_time`` on
        lateness alone (see ``apply_attendance_status``).
        """
        if self.arrival_time is None:
            return AttendanceStatus.absent
        if not self.arrival_validated:
            return AttendanceStatus.pending
        if self.late_minutes > 0:
            return AttendanceStatus.late
        return AttendanceStatus.on_time

    def __repr__(self) -> str:
        return f"<AttendanceRecord {self.employee_id} {self.date}>"
