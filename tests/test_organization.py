"""Organization tests — onboarding, policy fallback/update, roster CRUD, auth guards."""

from __future__ import annotations

from datetime import time

import pytest

from timekeeper.common.constants import PenaltyUnit, UserRole
from timekeeper.common.exceptions import ConflictError, InvalidTimeFormat, PolicyNotFound
from timekeeper.organization.schemas import (
    CompanyCreate,
    EmployeeCreate,
    EmployeeUpdate,
    PenaltyPolicyUpdate,
)
from timekeeper.organization.service import CompanyService, EmployeeService, PolicyService
from tests.conftest import auth_headers_for, expired_token_for, make_company, make_employee


# ═════════════════════════════════════════════════════════════════════
# 1. PENALTY POLICY — Service Layer
# ═════════════════════════════════════════════════════════════════════


async def test_missing_policy_falls_back_to_default(db):
    company = await make_company(db, code="BARE", penalty_rate=None)

    with pytest.raises(PolicyNotFound):
        await PolicyService.get_stored_policy(db, company.id)
    policy = await PolicyService.get_effective_policy(db, company.id)

    assert policy.is_default is True
    assert policy.work_start_time == time(8, 0)
    assert policy.work_end_time == time(17, 0)
    assert policy.penalty_unit == PenaltyUnit.hour
    assert policy.penalty_rate == 0


async def test_update_policy_creates_row_when_absent(db):
    company = await make_company(db, code="BARE", penalty_rate=None)

    updated = await PolicyService.update_policy(
        db, company.id, PenaltyPolicyUpdate(penalty_rate=900, work_start_time="09:00"),
    )
    stored = await PolicyService.get_stored_policy(db, company.id)

    assert updated.is_default is False
    assert stored.penalty_rate == 900
    assert stored.work_start_time == time(9, 0)
    assert stored.work_end_time == time(17, 0)


async def test_update_policy_rejects_bad_time(db, company):
    with pytest.raises(InvalidTimeFormat):
        await PolicyService.update_policy(db, company.id, PenaltyPolicyUpdate(work_end_time="5pm"))


# ═════════════════════════════════════════════════════════════════════
# 2. ONBOARDING & ROSTER — Service Layer
# ═════════════════════════════════════════════════════════════════════


async def test_create_company_with_admin_and_policy(db):
    company, admin, policy = await CompanyService.create_company(
        db,
        CompanyCreate(name="Acme", code="ACME2", admin_name="Grace", admin_email="Grace@Acme.io"),
    )

    assert admin.role == UserRole.admin
    assert admin.company_id == company.id
    assert admin.email == "grace@acme.io"
    assert policy.company_id == company.id
    assert policy.work_start_time == time(8, 0)


async def test_create_company_duplicate_code(db, company):
    with pytest.raises(ConflictError):
        await CompanyService.create_company(
            db,
            CompanyCreate(name="Copy", code="ACME", admin_name="X", admin_email="x@acme.io"),
        )


async def test_create_employee_defaults_schedule_to_policy(db):
    company = await make_company(db, code="LATE", work_start=time(9, 30), work_end=time(18, 0))

    employee = await EmployeeService.create_employee(
        db, company.id, EmployeeCreate(name="Ada", email="ada@acme.io"),
    )

    assert employee.work_start_time == time(9, 30)
    assert employee.work_end_time == time(18, 0)
    assert employee.role == UserRole.employee


async def test_create_employee_duplicate_email(db, company, worker):
    with pytest.raises(ConflictError):
        await EmployeeService.create_employee(
            db, company.id, EmployeeCreate(name="Other Ada", email="ADA@acme.io"),
        )


async def test_deactivate_is_soft_and_hides_from_roster(db, company, worker):
    await EmployeeService.deactivate_employee(db, company.id, worker.id)

    active = await EmployeeService.list_employees(db, company.id)
    everyone = await EmployeeService.list_employees(db, company.id, include_inactive=True)

    assert worker.id not in {e.id for e in active}
    assert worker.id in {e.id for e in everyone}


async def test_update_employee_schedule(db, company, worker):
    updated = await EmployeeService.update_employee(
        db, company.id, worker.id, EmployeeUpdate(work_start_time="07:30", name="Ada M."),
    )

    assert updated.work_start_time == time(7, 30)
    assert updated.name == "Ada M."


async def test_list_employees_search_and_role(db, company, admin, worker):
    admins = await EmployeeService.list_employees(db, company.id, role=UserRole.admin)
    found = await EmployeeService.list_employees(db, company.id, search="mbarga")

    assert [e.id for e in admins] == [admin.id]
    assert [e.id for e in found] == [worker.id]


# ═════════════════════════════════════════════════════════════════════
# 3. HTTP API
# ═════════════════════════════════════════════════════════════════════


async def test_api_onboarding_returns_usable_token(client):
    resp = await client.post(
        "/api/v1/companies",
        json={"name": "Kribi Fisheries", "code": "KRIBI", "admin_name": "Grace", "admin_email": "grace@kribi.io"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["admin"]["role"] == "admin"
    assert body["policy"]["penalty_unit"] == "hour"

    headers = {"Authorization": f"Bearer {body['access_token']}"}
    me = await client.get("/api/v1/companies/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["code"] == "KRIBI"


async def test_api_policy_update_is_admin_only(client, worker_headers, admin_headers):
    payload = {"penalty_rate": 3000, "penalty_unit": "minute"}

    denied = await client.put("/api/v1/companies/me/policy", json=payload, headers=worker_headers)
    ok = await client.put("/api/v1/companies/me/policy", json=payload, headers=admin_headers)
    read = await client.get("/api/v1/companies/me/policy", headers=worker_headers)

    assert denied.status_code == 403
    assert ok.status_code == 200
    assert read.json()["penalty_rate"] == 3000
    assert read.json()["penalty_unit"] == "minute"


async def test_api_create_employee_bad_time(client, admin_headers):
    resp = await client.post(
        "/api/v1/employees",
        json={"name": "Ada", "email": "ada2@acme.io", "work_start_time": "8 o'clock"},
        headers=admin_headers,
    )

    assert resp.status_code == 422
    assert resp.json()["type"].endswith("/invalid-time-format")


async def test_api_employee_crud(client, admin_headers):
    created = await client.post(
        "/api/v1/employees",
        json={"name": "Bruno", "email": "bruno@acme.io", "work_start_time": "09:00"},
        headers=admin_headers,
    )
    employee_id = created.json()["id"]

    patched = await client.patch(
        f"/api/v1/employees/{employee_id}", json={"work_end_time": "18:00"}, headers=admin_headers,
    )
    deleted = await client.delete(f"/api/v1/employees/{employee_id}", headers=admin_headers)
    listing = await client.get("/api/v1/employees", headers=admin_headers)

    assert created.status_code == 201
    assert created.json()["work_start_time"] == "09:00:00"
    assert patched.json()["work_end_time"] == "18:00:00"
    assert deleted.json()["is_active"] is False
    assert employee_id not in [e["id"] for e in listing.json()]


async def test_api_rejects_expired_token(client, worker):
    headers = {"Authorization": f"Bearer {expired_token_for(worker)}"}
    resp = await client.get("/api/v1/attendance/today", headers=headers)
    assert resp.status_code == 401


async def test_api_rejects_deactivated_employee(client, db, company):
    gone = await make_employee(db, company, name="Gone", is_active=False)
    resp = await client.get("/api/v1/attendance/today", headers=auth_headers_for(gone))
    assert resp.status_code == 401


async def test_health(client):
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
