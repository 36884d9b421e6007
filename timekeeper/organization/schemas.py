"""Organization Pydantic v2 schemas — companies, penalty policy, employees.

Wall-clock fields arrive as ``HH:MM`` strings and are parsed by the service
layer so malformed values surface as ``invalid-time-format`` problems.
"""


import uuid
from datetime import datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from timekeeper.common.constants import PenaltyUnit, UserRole


# ═════════════════════════════════════════════════════════════════════
# Company
# ═════════════════════════════════════════════════════════════════════


class CompanyCreate(BaseModel):
    """Onboarding payload: company plus its first administrator."""

    name: str = Field(..., min_length=1, max_length=150)
    code: str = Field(..., min_length=2, max_length=50, description="Public company identifier")
    admin_name: str = Field(..., min_length=1, max_length=150)
    admin_email: EmailStr


class CompanyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    code: str
    created_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Penalty policy
# ═════════════════════════════════════════════════════════════════════


class PenaltyPolicyResponse(BaseModel):
    """Effective policy for a company; ``is_default`` when none is stored."""

    model_config = ConfigDict(from_attributes=True)

    company_id: uuid.UUID
    penalty_rate: int
    penalty_unit: PenaltyUnit
    work_start_time: time
    work_end_time: time
    is_default: bool = False


class PenaltyPolicyUpdate(BaseModel):
    penalty_rate: Optional[int] = Field(None, ge=0)
    penalty_unit: Optional[PenaltyUnit] = None
    work_start_time: Optional[str] = Field(None, description="HH:MM")
    work_end_time: Optional[str] = Field(None, description="HH:MM")


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class EmployeeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    role: UserRole = UserRole.employee
    work_start_time: Optional[str] = Field(None, description="HH:MM; company default when omitted")
    work_end_time: Optional[str] = Field(None, description="HH:MM; company default when omitted")


class EmployeeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    work_start_time: Optional[str] = None
    work_end_time: Optional[str] = None


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    email: str
    role: UserRole
    work_start_time: time
    work_end_time: time
    email_verified: bool = False
    is_active: bool = True
    created_at: datetime


class EmployeeBrief(BaseModel):
    """Minimal employee info embedded in attendance / report rows."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    work_start_time: time
    work_end_time: time


class CompanyOnboardingResponse(BaseModel):
    """Created company, its admin and an access token for that admin."""

    company: CompanyResponse
    admin: EmployeeResponse
    policy: PenaltyPolicyResponse
    access_token: str
    token_type: str = "bearer"
    expires_in: int
