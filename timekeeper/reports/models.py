"""Daily report ORM model — a task list bound 1:1 to an attendance record."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timekeeper.database import Base

if TYPE_CHECKING:
    from timekeeper.attendance.models import AttendanceRecord
    from timekeeper.organization.models import Employee


class DailyReport(Base):
    """Tasks an employee worked on for one attended day.

    ``date`` always equals the bound attendance record's date; repeat
    submissions overwrite ``tasks`` and ``submitted_at``.
    """

    __tablename__ = "daily_reports"
    __table_args__ = (
        sa.UniqueConstraint("attendance_id", name="uq_daily_report_attendance"),
        sa.UniqueConstraint("employee_id", "date", name="uq_daily_report_emp_date"),
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
    attendance_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("attendance_records.id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    tasks: Mapped[list] = mapped_column(
        sa.JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        sa.DateTime, nullable=False, default=datetime.now
    )

    # Relationships
    employee: Mapped[Employee] = relationship()
    attendance: Mapped[AttendanceRecord] = relationship()

    @property
    def task_count(self) -> int:
        return len(self.tasks or [])

    def __repr__(self) -> str:
        return f"<DailyReport {self.employee_id} {self.date} ({self.task_count} tasks)>"
