"""Exports router — tabular data for file writers (admin-only)."""


from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.auth.dependencies import require_role
from timekeeper.common.constants import ExportKind, UserRole
from timekeeper.database import get_db
from timekeeper.exports.schemas import ExportTable
from timekeeper.exports.service import ExportService
from timekeeper.organization.models import Employee

router = APIRouter()


@router.get("/{kind}", response_model=ExportTable)
async def export_rows(
    kind: ExportKind,
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    employee: Employee = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Rows for attendance, reports, penalties, employees or statistics."""
    return await ExportService.export_rows(db, kind, employee.company_id, from_date, to_date)
