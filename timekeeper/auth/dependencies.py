"""Auth dependencies — JWT validation, RBAC enforcement."""

from __future__ import annotations

import uuid
from typing import Callable

from fastapi import Depends, Request
from fastapi.exceptions import HTTPException
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.common.constants import UserRole
from timekeeper.common.exceptions import ForbiddenException
from timekeeper.config import settings
from timekeeper.database import get_db
from timekeeper.organization.models import Employee

# Role hierarchy: each role implicitly includes lower roles
_ROLE_HIERARCHY: dict[UserRole, set[UserRole]] = {
    UserRole.admin: {UserRole.admin, UserRole.employee},
    UserRole.employee: {UserRole.employee},
}


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header.")
    return auth_header[7:]


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Employee:
    """Validate JWT and return the authenticated, active Employee."""
    token = _extract_bearer(request)

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired.")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token.")

    if payload.get("type") != "access":
        raise HTTPException(status_code=401, detail="Invalid token type.")

    try:
        employee_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token subject.")

    result = await db.execute(
        select(Employee).where(Employee.id == employee_id, Employee.is_active.is_(True)),
    )
    employee = result.scalars().first()
    if employee is None:
        raise HTTPException(status_code=401, detail="User account is inactive or not found.")

    # Role comes from the roster, so demotions apply to outstanding tokens
    request.state.user_role = UserRole(employee.role)
    request.state.company_id = employee.company_id

    return employee


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: UserRole) -> Callable:
    """Return a FastAPI dependency that enforces role membership.

    Respects hierarchy — admin can access employee endpoints.
    """

    async def _check(
        request: Request,
        employee: Employee = Depends(get_current_user),
    ) -> Employee:
        user_role: UserRole = request.state.user_role
        effective_roles = _ROLE_HIERARCHY.get(user_role, {user_role})
        if not effective_roles.intersection(set(allowed_roles)):
            raise ForbiddenException(
                detail=f"Role '{user_role.value}' is not permitted. Required: {[r.value for r in allowed_roles]}.",
            )
        return employee

    return _check
