"""Aggregation engine — pure folds over attendance and report snapshots.

Every function takes already-fetched records (ORM rows or any object with
the same attributes) and returns fresh values. Nothing here touches the
database, and every function returns its documented fallback on empty
input rather than raising.

Attributes read:
  - roster entries: ``id``, ``name``
  - attendance records: ``id``, ``employee_id``, ``date``, ``arrival_time``,
    ``late_minutes``, ``penalty_amount``
  - reports: ``employee_id``, ``attendance_id``, ``date``, ``tasks``
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any, Iterable, Optional, Sequence

from timekeeper.common.clock import days_in_range, month_bounds, months_back
from timekeeper.common.constants import MONTH_LABEL_FORMAT, TrendDirection
from timekeeper.reports.service import productivity_score
from timekeeper.statistics.schemas import (
    AttendanceTrendPoint,
    MonthlyComparisonEntry,
    PenaltyRankingEntry,
    PunctualityTrendPoint,
    StatisticsResponse,
    TaskRankingEntry,
)


# ── Helpers ─────────────────────────────────────────────────────────

def _percentage(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return round(numerator / denominator * 100, 2)


def _in_range(items: Iterable[Any], start: date, end: date) -> list[Any]:
    return [item for item in items if start <= item.date <= end]


def _arrived(records: Iterable[Any]) -> list[Any]:
    return [r for r in records if r.arrival_time is not None]


def _direction(current: float, previous: Optional[float]) -> TrendDirection:
    if previous is None or current == previous:
        return TrendDirection.flat
    return TrendDirection.up if current > previous else TrendDirection.down


# ── Rates ───────────────────────────────────────────────────────────

def attendance_rate(records: Sequence[Any], employee_count: int, day_count: int) -> float:
    """Arrivals / (employees x days) as a percentage; 0 on an empty grid."""
    return _percentage(len(_arrived(records)), employee_count * day_count)


def punctuality_rate(records: Sequence[Any]) -> float:
    """On-time arrivals / arrivals as a percentage; 0 without arrivals."""
    arrived = _arrived(records)
    on_time = sum(1 for r in arrived if r.late_minutes == 0)
    return _percentage(on_time, len(arrived))


def average_productivity(reports: Sequence[Any], records: Sequence[Any]) -> float:
    """Mean productivity score of reports whose attendance record is known."""
    by_id = {r.id: r for r in records}
    scores = [
        productivity_score(report, by_id[report.attendance_id])
        for report in reports
        if report.attendance_id in by_id
    ]
    if not scores:
        return 0.0
    return round(sum(scores) / len(scores), 2)


# ── Dense day series ────────────────────────────────────────────────

def attendance_trend(
    records: Sequence[Any],
    start: date,
    end: date,
    employee_count: int,
) -> list[AttendanceTrendPoint]:
    """One ``{date, present, total}`` point per day of [start, end]."""
    present: dict[date, int] = defaultdict(int)
    for r in _arrived(records):
        present[r.date] += 1
    return [
        AttendanceTrendPoint(date=day, present=present[day], total=employee_count)
        for day in days_in_range(start, end)
    ]


def punctuality_trend(
    records: Sequence[Any],
    start: date,
    end: date,
) -> list[PunctualityTrendPoint]:
    """One ``{date, on_time, late}`` point per day; empty days are 0/0."""
    on_time: dict[date, int] = defaultdict(int)
    late: dict[date, int] = defaultdict(int)
    for r in _arrived(records):
        if r.late_minutes > 0:
            late[r.date] += 1
        else:
            on_time[r.date] += 1
    return [
        PunctualityTrendPoint(date=day, on_time=on_time[day], late=late[day])
        for day in days_in_range(start, end)
    ]


# ── Rankings ────────────────────────────────────────────────────────

def penalty_ranking(roster: Sequence[Any], records: Sequence[Any]) -> list[PenaltyRankingEntry]:
    """Per-employee penalty totals, descending; zero totals are left out.

    ``sorted`` is stable, so ties keep roster order.
    """
    totals: dict[Any, int] = defaultdict(int)
    for r in records:
        totals[r.employee_id] += r.penalty_amount or 0

    entries = [
        PenaltyRankingEntry(employee_id=emp.id, name=emp.name, total_penalty=totals[emp.id])
        for emp in roster
        if totals[emp.id] > 0
    ]
    return sorted(entries, key=lambda e: e.total_penalty, reverse=True)


def task_ranking(roster: Sequence[Any], reports: Sequence[Any]) -> list[TaskRankingEntry]:
    """Per-employee task totals, descending; employees with zero stay in."""
    totals: dict[Any, int] = defaultdict(int)
    for report in reports:
        totals[report.employee_id] += len(report.tasks or [])

    entries = [
        TaskRankingEntry(employee_id=emp.id, name=emp.name, total_tasks=totals[emp.id])
        for emp in roster
    ]
    return sorted(entries, key=lambda e: e.total_tasks, reverse=True)


# ── Month over month ────────────────────────────────────────────────

def monthly_comparison(
    employee_count: int,
    records: Sequence[Any],
    reports: Sequence[Any],
    today: date,
    months: int,
) -> list[MonthlyComparisonEntry]:
    """Trailing *months* calendar months ending with the month of *today*.

    The current month is clipped to *today*. Directions compare each
    entry with the one before it; the oldest entry is always ``flat``.
    """
    entries: list[MonthlyComparisonEntry] = []
    previous: Optional[MonthlyComparisonEntry] = None

    for offset in range(months - 1, -1, -1):
        first = months_back(today, offset)
        last = min(month_bounds(first)[1], today)
        month_records = _in_range(records, first, last)
        month_reports = _in_range(reports, first, last)

        rate = attendance_rate(month_records, employee_count, len(days_in_range(first, last)))
        task_counts = [len(r.tasks or []) for r in month_reports]
        average_tasks = round(sum(task_counts) / len(task_counts), 2) if task_counts else 0.0

        entry = MonthlyComparisonEntry(
            month=first.strftime("%Y-%m"),
            label=first.strftime(MONTH_LABEL_FORMAT),
            attendance_rate=rate,
            average_tasks=average_tasks,
            attendance_direction=_direction(rate, previous.attendance_rate if previous else None),
            productivity_direction=_direction(
                average_tasks, previous.average_tasks if previous else None,
            ),
        )
        entries.append(entry)
        previous = entry

    return entries


# ── Full aggregate ──────────────────────────────────────────────────

def build_statistics(
    start: date,
    end: date,
    roster: Sequence[Any],
    records: Sequence[Any],
    reports: Sequence[Any],
    *,
    today: date,
    months: int = 6,
) -> StatisticsResponse:
    """Fold a snapshot into the full statistics view for [start, end].

    *records* and *reports* may extend beyond the range (the monthly
    comparison is anchored to *today*); entries for employees outside
    *roster* are ignored.
    """
    roster_ids = {emp.id for emp in roster}
    records = [r for r in records if r.employee_id in roster_ids]
    reports = [r for r in reports if r.employee_id in roster_ids]

    range_records = _in_range(records, start, end)
    range_reports = _in_range(reports, start, end)
    employee_count = len(roster)
    day_count = len(days_in_range(start, end))

    return StatisticsResponse(
        start_date=start,
        end_date=end,
        total_employees=employee_count,
        attendance_rate=attendance_rate(range_records, employee_count, day_count),
        punctuality_rate=punctuality_rate(range_records),
        total_penalties=sum(r.penalty_amount or 0 for r in range_records),
        total_late_minutes=sum(r.late_minutes or 0 for r in range_records),
        total_reports=len(range_reports),
        average_productivity=average_productivity(range_reports, range_records),
        attendance_trend=attendance_trend(range_records, start, end, employee_count),
        punctuality_trend=punctuality_trend(range_records, start, end),
        penalty_ranking=penalty_ranking(roster, range_records),
        task_ranking=task_ranking(roster, range_reports),
        monthly_comparison=monthly_comparison(employee_count, records, reports, today, months),
    )
