"""Clock utilities — wall-clock parsing, lateness and penalty arithmetic.

All times are local wall-clock values; only the time of day matters, so
lateness is measured against a fixed reference calendar day.
"""

from __future__ import annotations

import calendar
import math
from datetime import date, datetime, time, timedelta
from fractions import Fraction
from typing import Union
from zoneinfo import ZoneInfo

from timekeeper.common.constants import (
    ISO_DATE_FORMAT,
    WALL_CLOCK_FORMAT,
    WALL_CLOCK_SECONDS_FORMAT,
    PenaltyUnit,
)
from timekeeper.common.exceptions import InvalidTimeFormat, ValidationException
from timekeeper.config import settings

REFERENCE_DAY = date(2024, 1, 1)

WallClock = Union[str, time]


# ── Now ─────────────────────────────────────────────────────────────

def local_now() -> datetime:
    """Current local wall-clock datetime (naive) in the configured timezone."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)


# ── Parsing / formatting ────────────────────────────────────────────

def parse_wall_clock(value: WallClock) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into a ``time``.

    Raises:
        InvalidTimeFormat: on anything else.
    """
    if isinstance(value, time):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidTimeFormat(value)

    text = value.strip()
    for fmt in (WALL_CLOCK_FORMAT, WALL_CLOCK_SECONDS_FORMAT):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise InvalidTimeFormat(value)


def format_wall_clock(value: time, *, seconds: bool = False) -> str:
    return value.strftime(WALL_CLOCK_SECONDS_FORMAT if seconds else WALL_CLOCK_FORMAT)


def parse_date(value: Union[str, date]) -> date:
    """Parse an ISO ``YYYY-MM-DD`` calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), ISO_DATE_FORMAT).date()
    except ValueError:
        raise InvalidTimeFormat(value, expected="YYYY-MM-DD")


def format_date(value: date) -> str:
    return value.strftime(ISO_DATE_FORMAT)


# ── Lateness / penalty ──────────────────────────────────────────────

def late_minutes(expected: WallClock, actual: WallClock) -> int:
    """Whole minutes *actual* is past *expected*; early arrivals clamp to 0."""
    expected_at = datetime.combine(REFERENCE_DAY, parse_wall_clock(expected))
    actual_at = datetime.combine(REFERENCE_DAY, parse_wall_clock(actual))
    diff_seconds = (actual_at - expected_at).total_seconds()
    if diff_seconds <= 0:
        return 0
    return int(diff_seconds // 60)


def compute_penalty(late: int, rate: int, unit: PenaltyUnit) -> int:
    """Penalty in whole currency units for *late* minutes.

    *rate* is the company's configured amount: per hour for ``hour`` and
    ``minute`` (the per-minute rate is rate / 60), a flat amount for ``day``.
    Fractions always round up.
    """
    if late <= 0 or rate <= 0:
        return 0

    unit = PenaltyUnit(unit)
    if unit == PenaltyUnit.day:
        return int(rate)
    if unit == PenaltyUnit.minute:
        per_minute = Fraction(rate, 60)
        return math.ceil(late * per_minute)
    return math.ceil(Fraction(late, 60) * rate)


# ── Calendar helpers ────────────────────────────────────────────────

def days_in_range(start: date, end: date) -> list[date]:
    """Every calendar day of the closed interval [start, end]."""
    if start > end:
        return []
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def month_bounds(day: date) -> tuple[date, date]:
    """First and last day of the month containing *day*."""
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def months_back(day: date, count: int) -> date:
    """First day of the month *count* months before the month of *day*."""
    index = day.year * 12 + (day.month - 1) - count
    return date(index // 12, index % 12 + 1, 1)


def check_date_range(start: date, end: date, max_days: int | None = None) -> None:
    """Ensure ``start <= end`` and the range is within *max_days* days.

    Raises:
        ValidationException: on an inverted or oversized range.
    """
    limit = settings.MAX_DATE_RANGE_DAYS if max_days is None else max_days
    if start > end:
        raise ValidationException(
            {"date_range": ["from_date must be before or equal to to_date."]}
        )
    if (end - start).days + 1 > limit:
        raise ValidationException(
            {"date_range": [f"Date range cannot exceed {limit} days."]}
        )
