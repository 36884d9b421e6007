"""Organization service layer — onboarding, penalty policy, employee roster.

Business logic:
  - Company onboarding creates the company, its first admin and a policy row
  - Effective policy lookup falls back to the configured default
  - Employee CRUD with soft delete (``is_active``)
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.common.clock import parse_wall_clock
from timekeeper.common.constants import PenaltyUnit, UserRole
from timekeeper.common.exceptions import ConflictError, NotFoundException, PolicyNotFound
from timekeeper.common.filters import apply_search
from timekeeper.config import settings
from timekeeper.organization.models import Company, Employee, PenaltyPolicy
from timekeeper.organization.schemas import (
    CompanyCreate,
    EmployeeCreate,
    EmployeeUpdate,
    PenaltyPolicyResponse,
    PenaltyPolicyUpdate,
)

logger = logging.getLogger(__name__)


def default_policy(company_id: uuid.UUID) -> PenaltyPolicyResponse:
    """Policy applied when a company has none stored."""
    return PenaltyPolicyResponse(
        company_id=company_id,
        penalty_rate=settings.DEFAULT_PENALTY_RATE,
        penalty_unit=PenaltyUnit(settings.DEFAULT_PENALTY_UNIT),
        work_start_time=parse_wall_clock(settings.DEFAULT_WORK_START),
        work_end_time=parse_wall_clock(settings.DEFAULT_WORK_END),
        is_default=True,
    )


# ═════════════════════════════════════════════════════════════════════
# PolicyService
# ═════════════════════════════════════════════════════════════════════


class PolicyService:
    """Company penalty policy lookups and admin updates."""

    @staticmethod
    async def get_stored_policy(
        db: AsyncSession,
        company_id: uuid.UUID,
    ) -> PenaltyPolicy:
        result = await db.execute(
            select(PenaltyPolicy).where(PenaltyPolicy.company_id == company_id)
        )
        policy = result.scalars().first()
        if policy is None:
            raise PolicyNotFound(company_id)
        return policy

    @staticmethod
    async def get_effective_policy(
        db: AsyncSession,
        company_id: uuid.UUID,
    ) -> PenaltyPolicyResponse:
        """Stored policy, or the configured default. Never fails."""
        try:
            policy = await PolicyService.get_stored_policy(db, company_id)
        except PolicyNotFound:
            logger.info("No penalty policy for company %s, using default", company_id)
            return default_policy(company_id)
        return PenaltyPolicyResponse.model_validate(policy)

    @staticmethod
    async def update_policy(
        db: AsyncSession,
        company_id: uuid.UUID,
        data: PenaltyPolicyUpdate,
    ) -> PenaltyPolicyResponse:
        """Partial update; creates the row from defaults when absent.

        Existing attendance records keep the penalty computed at punch-in.
        """
        try:
            policy = await PolicyService.get_stored_policy(db, company_id)
        except PolicyNotFound:
            base = default_policy(company_id)
            policy = PenaltyPolicy(
                company_id=company_id,
                penalty_rate=base.penalty_rate,
                penalty_unit=base.penalty_unit,
                work_start_time=base.work_start_time,
                work_end_time=base.work_end_time,
            )
            db.add(policy)

        if data.penalty_rate is not None:
            policy.penalty_rate = data.penalty_rate
        if data.penalty_unit is not None:
            policy.penalty_unit = data.penalty_unit
        if data.work_start_time is not None:
            policy.work_start_time = parse_wall_clock(data.work_start_time)
        if data.work_end_time is not None:
            policy.work_end_time = parse_wall_clock(data.work_end_time)

        await db.flush()
        logger.info(
            "Penalty policy for company %s set to %s per %s (%s-%s)",
            company_id,
            policy.penalty_rate,
            policy.penalty_unit.value,
            policy.work_start_time,
            policy.work_end_time,
        )
        return PenaltyPolicyResponse.model_validate(policy)


# ═════════════════════════════════════════════════════════════════════
# CompanyService
# ═════════════════════════════════════════════════════════════════════


class CompanyService:
    """Company onboarding and lookup."""

    @staticmethod
    async def create_company(
        db: AsyncSession,
        data: CompanyCreate,
    ) -> tuple[Company, Employee, PenaltyPolicy]:
        """Create company, admin employee and default policy in one unit."""
        code = data.code.strip()

        existing = await db.execute(select(Company.id).where(Company.code == code))
        if existing.scalars().first() is not None:
            raise ConflictError("code", code)
        await EmployeeService._ensure_email_free(db, str(data.admin_email))

        company = Company(name=data.name.strip(), code=code)
        db.add(company)
        await db.flush()

        base = default_policy(company.id)

        policy = PenaltyPolicy(
            company_id=company.id,
            penalty_rate=base.penalty_rate,
            penalty_unit=base.penalty_unit,
            work_start_time=base.work_start_time,
            work_end_time=base.work_end_time,
        )
        admin = Employee(
            company_id=company.id,
            name=data.admin_name.strip(),
            email=str(data.admin_email).lower(),
            role=UserRole.admin,
            work_start_time=base.work_start_time,
            work_end_time=base.work_end_time,
        )
        db.add_all([policy, admin])
        await db.flush()

        logger.info("Onboarded company %s (%s) with admin %s", company.code, company.id, admin.email)
        return company, admin, policy

    @staticmethod
    async def get_company(db: AsyncSession, company_id: uuid.UUID) -> Company:
        company = await db.get(Company, company_id)
        if company is None:
            raise NotFoundException("Company", company_id)
        return company


# ═════════════════════════════════════════════════════════════════════
# EmployeeService
# ═════════════════════════════════════════════════════════════════════


class EmployeeService:
    """Async CRUD operations for the company roster."""

    @staticmethod
    async def _ensure_email_free(
        db: AsyncSession,
        email: str,
        *,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(Employee.id).where(Employee.email == email.lower())
        if exclude_id is not None:
            query = query.where(Employee.id != exclude_id)
        if (await db.execute(query)).scalars().first() is not None:
            raise ConflictError("email", email)

    # ── List ────────────────────────────────────────────────────────

    @staticmethod
    async def list_employees(
        db: AsyncSession,
        company_id: uuid.UUID,
        *,
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
        include_inactive: bool = False,
    ) -> Sequence[Employee]:
        """Roster in insertion order."""
        query = select(Employee).where(Employee.company_id == company_id)
        if not include_inactive:
            query = query.where(Employee.is_active.is_(True))
        if role is not None:
            query = query.where(Employee.role == role)
        query = apply_search(query, search, [Employee.name, Employee.email])
        query = query.order_by(Employee.created_at, Employee.id)
        return (await db.execute(query)).scalars().all()

    # ── Get single ──────────────────────────────────────────────────

    @staticmethod
    async def get_employee(
        db: AsyncSession,
        company_id: uuid.UUID,
        employee_id: uuid.UUID,
    ) -> Employee:
        result = await db.execute(
            select(Employee).where(
                Employee.id == employee_id,
                Employee.company_id == company_id,
            )
        )
        employee = result.scalars().first()
        if employee is None:
            raise NotFoundException("Employee", employee_id)
        return employee

    # ── Create ──────────────────────────────────────────────────────

    @staticmethod
    async def create_employee(
        db: AsyncSession,
        company_id: uuid.UUID,
        data: EmployeeCreate,
    ) -> Employee:
        """Add an employee; schedule defaults to the company policy."""
        await EmployeeService._ensure_email_free(db, str(data.email))
        policy = await PolicyService.get_effective_policy(db, company_id)

        employee = Employee(
            company_id=company_id,
            name=data.name.strip(),
            email=str(data.email).lower(),
            role=data.role,
            work_start_time=(
                parse_wall_clock(data.work_start_time)
                if data.work_start_time is not None
                else policy.work_start_time
            ),
            work_end_time=(
                parse_wall_clock(data.work_end_time)
                if data.work_end_time is not None
                else policy.work_end_time
            ),
        )
        db.add(employee)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("email", data.email)

        logger.info("Created employee %s (%s) in company %s", employee.email, employee.role.value, company_id)
        return employee

    # ── Update ──────────────────────────────────────────────────────

    @staticmethod
    async def update_employee(
        db: AsyncSession,
        company_id: uuid.UUID,
        employee_id: uuid.UUID,
        data: EmployeeUpdate,
    ) -> Employee:
        employee = await EmployeeService.get_employee(db, company_id, employee_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("email") is not None:
            await EmployeeService._ensure_email_free(db, str(changes["email"]), exclude_id=employee.id)
            employee.email = str(changes["email"]).lower()
        if changes.get("name") is not None:
            employee.name = changes["name"].strip()
        if changes.get("role") is not None:
            employee.role = changes["role"]
        if changes.get("work_start_time") is not None:
            employee.work_start_time = parse_wall_clock(changes["work_start_time"])
        if changes.get("work_end_time") is not None:
            employee.work_end_time = parse_wall_clock(changes["work_end_time"])

        await db.flush()
        return employee

    # ── Soft delete ─────────────────────────────────────────────────

    @staticmethod
    async def deactivate_employee(
        db: AsyncSession,
        company_id: uuid.UUID,
        employee_id: uuid.UUID,
    ) -> Employee:
        """Mark inactive; attendance history keeps its referent."""
        employee = await EmployeeService.get_employee(db, company_id, employee_id)
        employee.is_active = False
        await db.flush()
        logger.info("Deactivated employee %s", employee.id)
        return employee
