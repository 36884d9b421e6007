"""Tests for common utilities: filters, pagination, problem-detail rendering.

Exercises apply_date_range, apply_attendance_status, apply_search, fetch_page
and the RFC 7807 exception handlers.
"""

from __future__ import annotations

from datetime import date, time

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.attendance.models import AttendanceRecord
from timekeeper.common.constants import AttendanceStatus
from timekeeper.common.exceptions import (
    DuplicatePunch,
    EmptyTaskList,
    PolicyNotFound,
    register_exception_handlers,
)
from timekeeper.common.filters import apply_attendance_status, apply_date_range, apply_search
from timekeeper.common.pagination import fetch_page
from timekeeper.database import engine_options
from timekeeper.organization.models import Employee
from tests.conftest import make_employee


# ── Helpers ─────────────────────────────────────────────────────────


async def _seed_records(db: AsyncSession, company) -> dict[str, AttendanceRecord]:
    """One record per derived status on consecutive days."""
    ada = await make_employee(db, company, name="Ada Mbarga", email="ada@acme.io")
    rows = {
        "absent": AttendanceRecord(date=date(2025, 3, 10)),
        "pending": AttendanceRecord(
            date=date(2025, 3, 11), arrival_time=time(8, 5), late_minutes=5, arrival_validated=False,
        ),
        "late": AttendanceRecord(
            date=date(2025, 3, 12), arrival_time=time(8, 30), late_minutes=30, arrival_validated=True,
        ),
        "on_time": AttendanceRecord(
            date=date(2025, 3, 13), arrival_time=time(7, 55), arrival_validated=True,
        ),
    }
    for record in rows.values():
        record.employee_id = ada.id
        record.company_id = company.id
        db.add(record)
    await db.commit()
    return rows


# ═════════════════════════════════════════════════════════════════════
# FILTER TESTS
# ═════════════════════════════════════════════════════════════════════


class TestAttendanceFilters:
    """Status, date and search predicates."""

    async def test_derived_status_labels(self, db: AsyncSession, company):
        rows = await _seed_records(db, company)
        assert {name: r.status.value for name, r in rows.items()} == {
            "absent": "absent", "pending": "pending", "late": "late", "on_time": "on_time",
        }

    @pytest.mark.parametrize(
        "status, expected",
        [
            (AttendanceStatus.absent, {"absent"}),
            (AttendanceStatus.pending, {"pending"}),
            (AttendanceStatus.validated, {"late", "on_time"}),
            (AttendanceStatus.late, {"pending", "late"}),
            (AttendanceStatus.on_time, {"on_time"}),
        ],
    )
    async def test_status_filter(self, db: AsyncSession, company, status, expected):
        rows = await _seed_records(db, company)
        by_id = {r.id: name for name, r in rows.items()}

        query = apply_attendance_status(select(AttendanceRecord), AttendanceRecord, status)
        found = (await db.execute(query)).scalars().all()

        assert {by_id[r.id] for r in found} == expected

    async def test_pending_label_overlaps_lateness_filters(self, db: AsyncSession, company):
        rows = await _seed_records(db, company)
        pending = rows["pending"]

        def matches(status):
            return apply_attendance_status(
                select(AttendanceRecord.id), AttendanceRecord, status,
            ).where(AttendanceRecord.id == pending.id)

        assert pending.status == AttendanceStatus.pending
        assert (await db.execute(matches(AttendanceStatus.pending))).scalar() == pending.id
        assert (await db.execute(matches(AttendanceStatus.late))).scalar() == pending.id
        assert (await db.execute(matches(AttendanceStatus.on_time))).scalar() is None
        assert (await db.execute(matches(AttendanceStatus.validated))).scalar() is None

    async def test_none_status_is_no_filter(self, db: AsyncSession, company):
        await _seed_records(db, company)
        query = apply_attendance_status(select(AttendanceRecord), AttendanceRecord, None)
        assert len((await db.execute(query)).scalars().all()) == 4

    async def test_date_range_open_bounds(self, db: AsyncSession, company):
        await _seed_records(db, company)

        from_only = apply_date_range(select(AttendanceRecord), AttendanceRecord.date, date(2025, 3, 12))
        both = apply_date_range(
            select(AttendanceRecord), AttendanceRecord.date, date(2025, 3, 11), date(2025, 3, 12),
        )

        assert len((await db.execute(from_only)).scalars().all()) == 2
        assert len((await db.execute(both)).scalars().all()) == 2

    async def test_search_is_case_insensitive_or(self, db: AsyncSession, company):
        await make_employee(db, company, name="Ada Mbarga", email="ada@acme.io")
        await make_employee(db, company, name="Bruno Kamga", email="bk@acme.io", order=1)

        query = apply_search(select(Employee), "KAMGA", [Employee.name, Employee.email])
        blank = apply_search(select(Employee), "   ", [Employee.name])

        assert [e.name for e in (await db.execute(query)).scalars().all()] == ["Bruno Kamga"]
        assert len((await db.execute(blank)).scalars().all()) == 2


# ═════════════════════════════════════════════════════════════════════
# PAGINATION TESTS
# ═════════════════════════════════════════════════════════════════════


class TestFetchPage:
    async def test_pages_and_meta(self, db: AsyncSession, company):
        for i in range(5):
            await make_employee(db, company, name=f"Worker {i}", order=i)
        query = select(Employee).order_by(Employee.created_at)

        rows, meta = await fetch_page(db, query, page=2, page_size=2)

        assert [e.name for e in rows] == ["Worker 2", "Worker 3"]
        assert meta.total == 5
        assert meta.total_pages == 3
        assert meta.has_next is True
        assert meta.has_prev is True

    async def test_empty(self, db: AsyncSession):
        rows, meta = await fetch_page(db, select(Employee).order_by(Employee.id), 1, 10)
        assert rows == []
        assert meta.total == 0
        assert meta.total_pages == 0
        assert meta.has_next is False


# ═════════════════════════════════════════════════════════════════════
# PROBLEM DETAIL TESTS
# ═════════════════════════════════════════════════════════════════════


class TestProblemDetails:
    @pytest.fixture
    async def problem_client(self):
        stub = FastAPI()
        register_exception_handlers(stub)

        @stub.get("/duplicate")
        async def duplicate():
            raise DuplicatePunch("emp-1", "2025-03-10")

        @stub.get("/empty")
        async def empty():
            raise EmptyTaskList()

        @stub.get("/items/{item_id}")
        async def item(item_id: int):
            return {"item_id": item_id}

        async with AsyncClient(transport=ASGITransport(app=stub), base_url="http://test") as ac:
            yield ac

    async def test_domain_error_rendered_as_problem_json(self, problem_client):
        resp = await problem_client.get("/duplicate")

        assert resp.status_code == 409
        assert resp.headers["content-type"].startswith("application/problem+json")
        body = resp.json()
        assert body["type"] == "https://timekeeper.local/errors/duplicate-punch"
        assert body["title"] == "Duplicate Punch"
        assert body["instance"] == "/duplicate"

    async def test_field_errors_included(self, problem_client):
        body = (await problem_client.get("/empty")).json()
        assert body["status"] == 422
        assert "tasks" in body["errors"]

    async def test_request_validation_rendered(self, problem_client):
        resp = await problem_client.get("/items/not-a-number")
        assert resp.status_code == 422
        assert resp.json()["type"].endswith("/validation-error")
        assert "item_id" in resp.json()["errors"]

    def test_policy_not_found_is_internal_404(self):
        exc = PolicyNotFound("c-1")
        assert exc.status_code == 404
        assert exc.error_type == "policy-not-found"


# ═════════════════════════════════════════════════════════════════════
# ENGINE OPTIONS
# ═════════════════════════════════════════════════════════════════════


class TestEngineOptions:
    def test_postgres_gets_pool_sizing(self):
        options = engine_options("postgresql+asyncpg://u:p@db:5432/timekeeper")
        assert options["pool_size"] == 5
        assert options["max_overflow"] == 10
        assert options["pool_pre_ping"] is True

    def test_sqlite_has_no_pool_sizing(self):
        options = engine_options("sqlite+aiosqlite:///./timekeeper.db")
        assert options == {"echo": False}
