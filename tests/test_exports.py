"""Export adapter tests — stable columns, flat value types, kind-specific rows."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from timekeeper.attendance.service import AttendanceService
from timekeeper.common.constants import ExportKind
from timekeeper.common.exceptions import ValidationException
from timekeeper.exports.service import ExportService
from timekeeper.reports.service import ReportService

MONDAY = date(2025, 3, 10)
TUESDAY = date(2025, 3, 11)


async def _seed(db, worker):
    await AttendanceService.punch_in(db, worker, now=datetime(2025, 3, 10, 8, 45))
    await AttendanceService.punch_out(db, worker, now=datetime(2025, 3, 10, 17, 2))
    await AttendanceService.punch_in(db, worker, now=datetime(2025, 3, 11, 7, 59))
    await ReportService.submit_report(db, worker, ["sort mail", "ship orders"], on_date=MONDAY)
    await db.commit()


@pytest.mark.parametrize("kind", list(ExportKind))
async def test_rows_match_columns_and_use_flat_values(db, company, admin, worker, kind):
    await _seed(db, worker)

    table = await ExportService.export_rows(db, kind, company.id, MONDAY, TUESDAY)

    assert table.kind == kind
    assert table.rows, f"no rows for {kind}"
    for row in table.rows:
        assert list(row) == table.columns
        assert all(value is None or isinstance(value, (str, int)) for value in row.values())
    assert table.as_matrix()[0] == table.columns


async def test_attendance_export_rows(db, company, worker):
    await _seed(db, worker)

    table = await ExportService.export_rows(db, ExportKind.attendance, company.id, MONDAY, TUESDAY)

    assert [r["date"] for r in table.rows] == ["2025-03-11", "2025-03-10"]
    monday = table.rows[1]
    assert monday["arrival_time"] == "08:45"
    assert monday["departure_time"] == "17:02"
    assert monday["expected_arrival"] == "08:00"
    assert monday["late_minutes"] == 45
    assert monday["penalty_amount"] == 1125
    assert monday["validated"] == "no"
    assert table.rows[0]["departure_time"] is None


async def test_penalty_export_only_lists_penalized_days(db, company, worker):
    await _seed(db, worker)

    table = await ExportService.export_rows(db, ExportKind.penalties, company.id, MONDAY, TUESDAY)

    assert [(r["date"], r["penalty_amount"]) for r in table.rows] == [("2025-03-10", 1125)]


async def test_report_and_statistics_exports(db, company, worker):
    await _seed(db, worker)

    reports = await ExportService.export_rows(db, ExportKind.reports, company.id, MONDAY, TUESDAY)
    stats = await ExportService.export_rows(db, ExportKind.statistics, company.id, MONDAY, TUESDAY)

    assert reports.rows[0]["tasks"] == "sort mail; ship orders"
    assert reports.rows[0]["task_count"] == 2
    assert stats.rows == [{
        "employee_name": "Ada Mbarga",
        "employee_email": "ada@acme.io",
        "days_present": 2,
        "days_late": 1,
        "total_late_minutes": 45,
        "total_penalties": 1125,
        "total_tasks": 2,
    }]


async def test_employee_export_needs_no_range(db, company, admin, worker):
    table = await ExportService.export_rows(db, ExportKind.employees, company.id)

    assert [r["email"] for r in table.rows] == ["grace@acme.io", "ada@acme.io"]
    assert table.rows[0]["role"] == "admin"
    assert table.rows[1]["work_start_time"] == "08:00"


async def test_ranged_export_requires_dates(db, company):
    with pytest.raises(ValidationException):
        await ExportService.export_rows(db, ExportKind.attendance, company.id)


async def test_api_export(client, worker_headers, admin_headers):
    denied = await client.get("/api/v1/exports/employees", headers=worker_headers)
    ok = await client.get("/api/v1/exports/employees", headers=admin_headers)
    unknown = await client.get("/api/v1/exports/payroll", headers=admin_headers)

    assert denied.status_code == 403
    assert ok.status_code == 200
    assert ok.json()["columns"][0] == "name"
    assert unknown.status_code == 422
