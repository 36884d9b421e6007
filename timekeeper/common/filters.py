"""Predicate composition over attendance / report queries.

Status, date, employee and free-text filters used by the admin listings
are expressed as SQLAlchemy conditions so the store does the filtering.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from sqlalchemy import Select, or_

from timekeeper.common.constants import AttendanceStatus


def apply_date_range(
    query: Select,
    column: Any,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> Select:
    """Restrict *column* to the closed interval; ``None`` bounds are open."""
    if from_date is not None:
        query = query.where(column >= from_date)
    if to_date is not None:
        query = query.where(column <= to_date)
    return query


def apply_attendance_status(
    query: Select,
    model: Any,
    status: Optional[AttendanceStatus],
) -> Select:
    """Filter attendance rows by a status name.

    ============  =======================================
    Status        Condition
    ============  =======================================
    pending       arrived and not yet validated
    validated     arrival validated
    late          late_minutes > 0
    on_time       arrived and late_minutes == 0
    absent        no arrival recorded
    ============  =======================================

    These are filters on the stored fields, not on the single derived
    ``AttendanceRecord.status`` label: an unvalidated arrival is labelled
    ``pending`` yet still matches ``late`` or ``on_time`` by its lateness.
    """
    if status is None:
        return query

    arrived = model.arrival_time.isnot(None)
    conditions = {
        AttendanceStatus.pending: (arrived, model.arrival_validated.is_(False)),
        AttendanceStatus.validated: (model.arrival_validated.is_(True),),
        AttendanceStatus.late: (model.late_minutes > 0,),
        AttendanceStatus.on_time: (arrived, model.late_minutes == 0),
        AttendanceStatus.absent: (model.arrival_time.is_(None),),
    }
    return query.where(*conditions[AttendanceStatus(status)])


def apply_search(
    query: Select,
    search: Optional[str],
    columns: Sequence[Any],
) -> Select:
    """Case-insensitive substring match across *columns* (OR-ed)."""
    if not search or not search.strip():
        return query

    pattern = f"%{search.strip()}%"
    return query.where(or_(*(col.ilike(pattern) for col in columns)))
