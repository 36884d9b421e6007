"""Organization ORM models: Company, PenaltyPolicy, Employee.

Employees are never hard-deleted while attendance history references them;
``is_active`` carries the soft delete.
"""

from __future__ import annotations

import uuid
from datetime import datetime, time
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timekeeper.common.constants import PenaltyUnit, UserRole
from timekeeper.database import Base


# ═════════════════════════════════════════════════════════════════════
# Company
# ═════════════════════════════════════════════════════════════════════


class Company(Base):
    """Tenant scope: every employee, record and report belongs to one company."""

    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    code: Mapped[str] = mapped_column(sa.String(50), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime, default=datetime.now,
    )

    # ── Relationships ───────────────────────────────────────────────
    policy: Mapped[Optional[PenaltyPolicy]] = relationship(
        back_populates="company", uselist=False,
    )

    def __repr__(self) -> str:
        return f"<Company {self.code!r}>"


# ═════════════════════════════════════════════════════════════════════
# PenaltyPolicy
# ═════════════════════════════════════════════════════════════════════


class PenaltyPolicy(Base):
    """Per-company schedule defaults and lateness penalty rate."""

    __tablename__ = "penalty_policies"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("companies.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    penalty_rate: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    penalty_unit: Mapped[PenaltyUnit] = mapped_column(
        sa.Enum(PenaltyUnit, name="penalty_unit"),
        nullable=False,
        default=PenaltyUnit.hour,
    )
    work_start_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    work_end_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime, default=datetime.now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime, default=datetime.now, onupdate=datetime.now,
    )

    # ── Relationships ───────────────────────────────────────────────
    company: Mapped[Company] = relationship(back_populates="policy")

    def __repr__(self) -> str:
        return f"<PenaltyPolicy {self.penalty_rate}/{self.penalty_unit}>"


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class Employee(Base):
    """A worker or administrator within a company scope."""

    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("companies.id"), nullable=False,
    )
    name: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    role: Mapped[UserRole] = mapped_column(
        sa.Enum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.employee,
    )
    work_start_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    work_end_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    email_verified: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime, default=datetime.now,
    )

    # ── Relationships ───────────────────────────────────────────────
    company: Mapped[Company] = relationship()

    def __repr__(self) -> str:
        return f"<Employee {self.name!r} ({self.role})>"
