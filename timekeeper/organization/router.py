"""Organization routers — company onboarding, penalty policy, employee roster.

Onboarding is public; everything else acts inside the caller's company.
Roster and policy writes are admin-only.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.auth.dependencies import get_current_user, require_role
from timekeeper.auth.service import create_access_token
from timekeeper.common.constants import UserRole
from timekeeper.database import get_db
from timekeeper.organization.models import Employee
from timekeeper.organization.schemas import (
    CompanyCreate,
    CompanyOnboardingResponse,
    CompanyResponse,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
    PenaltyPolicyResponse,
    PenaltyPolicyUpdate,
)
from timekeeper.organization.service import CompanyService, EmployeeService, PolicyService

companies_router = APIRouter()
employees_router = APIRouter()


# ═════════════════════════════════════════════════════════════════════
# Companies
# ═════════════════════════════════════════════════════════════════════


@companies_router.post("", response_model=CompanyOnboardingResponse, status_code=201)
async def create_company(
    body: CompanyCreate,
    db: AsyncSession = Depends(get_db),
):
    """Register a company and its first administrator."""
    company, admin, policy = await CompanyService.create_company(db, body)
    token, expires_in = create_access_token(admin)
    return CompanyOnboardingResponse(
        company=CompanyResponse.model_validate(company),
        admin=EmployeeResponse.model_validate(admin),
        policy=PenaltyPolicyResponse.model_validate(policy),
        access_token=token,
        expires_in=expires_in,
    )


@companies_router.get("/me", response_model=CompanyResponse)
async def get_my_company(
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CompanyService.get_company(db, employee.company_id)


@companies_router.get("/me/policy", response_model=PenaltyPolicyResponse)
async def get_policy(
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Effective penalty policy (stored or default)."""
    return await PolicyService.get_effective_policy(db, employee.company_id)


@companies_router.put("/me/policy", response_model=PenaltyPolicyResponse)
async def update_policy(
    body: PenaltyPolicyUpdate,
    employee: Employee = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Change rate, unit or default schedule. Not retroactive."""
    return await PolicyService.update_policy(db, employee.company_id, body)


# ═════════════════════════════════════════════════════════════════════
# Employees
# ═════════════════════════════════════════════════════════════════════


@employees_router.get("", response_model=list[EmployeeResponse])
async def list_employees(
    role: Optional[UserRole] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    include_inactive: bool = Query(False),
    employee: Employee = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.list_employees(
        db,
        employee.company_id,
        role=role,
        search=search,
        include_inactive=include_inactive,
    )


@employees_router.post("", response_model=EmployeeResponse, status_code=201)
async def create_employee(
    body: EmployeeCreate,
    employee: Employee = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.create_employee(db, employee.company_id, body)


@employees_router.patch("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: uuid.UUID,
    body: EmployeeUpdate,
    employee: Employee = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.update_employee(db, employee.company_id, employee_id, body)


@employees_router.delete("/{employee_id}", response_model=EmployeeResponse)
async def deactivate_employee(
    employee_id: uuid.UUID,
    employee: Employee = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete: the employee keeps their attendance history."""
    return await EmployeeService.deactivate_employee(db, employee.company_id, employee_id)
