"""Auth service — access token minting for onboarding and API clients."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import jwt

from timekeeper.config import settings
from timekeeper.organization.models import Employee


def create_access_token(employee: Employee, *, expires_hours: int | None = None) -> tuple[str, int]:
    """Sign a JWT access token for *employee*.

    Returns ``(token, expires_in_seconds)``.
    """
    hours = settings.JWT_EXPIRY_HOURS if expires_hours is None else expires_hours
    expires_at = datetime.now(timezone.utc) + timedelta(hours=hours)
    payload = {
        "sub": str(employee.id),
        "company": str(employee.company_id),
        "role": employee.role.value if hasattr(employee.role, "value") else str(employee.role),
        "type": "access",
        "exp": expires_at,
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, hours * 3600
