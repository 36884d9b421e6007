"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test settings before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("EMAIL_SERVICE", "demo")

import uuid
from datetime import datetime, time, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from timekeeper.auth.service import create_access_token
from timekeeper.common.constants import PenaltyUnit, UserRole
from timekeeper.config import settings
from timekeeper.database import Base, get_db
from timekeeper.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import timekeeper.organization.models  # noqa: F401
import timekeeper.attendance.models  # noqa: F401
import timekeeper.reports.models  # noqa: F401
import timekeeper.notifications.models  # noqa: F401

from timekeeper.organization.models import Company, Employee, PenaltyPolicy

# ── SQLite compat: compile PG-specific types ────────────────────────

from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from timekeeper.common.rate_limit import limiter
    try:
        if hasattr(limiter, "_storage"):
            limiter._storage.reset()
    except Exception:
        pass
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

_BASE_CREATED_AT = datetime(2025, 1, 1, 9, 0)


async def make_company(
    db: AsyncSession,
    *,
    name: str = "Acme Logistics",
    code: str = "ACME",
    penalty_rate: Optional[int] = 1500,
    penalty_unit: PenaltyUnit = PenaltyUnit.hour,
    work_start: time = time(8, 0),
    work_end: time = time(17, 0),
) -> Company:
    """Insert a company; ``penalty_rate=None`` leaves it without a policy."""
    company = Company(name=name, code=code, created_at=_BASE_CREATED_AT)
    db.add(company)
    await db.flush()
    if penalty_rate is not None:
        db.add(PenaltyPolicy(
            company_id=company.id,
            penalty_rate=penalty_rate,
            penalty_unit=penalty_unit,
            work_start_time=work_start,
            work_end_time=work_end,
        ))
    await db.commit()
    return company


async def make_employee(
    db: AsyncSession,
    company: Company,
    *,
    name: str = "Ada Mbarga",
    email: Optional[str] = None,
    role: UserRole = UserRole.employee,
    work_start: time = time(8, 0),
    work_end: time = time(17, 0),
    order: int = 0,
    is_active: bool = True,
) -> Employee:
    """Insert an employee; *order* spaces ``created_at`` to fix roster order."""
    employee = Employee(
        company_id=company.id,
        name=name,
        email=email or f"{name.split()[0].lower()}.{uuid.uuid4().hex[:6]}@acme.io",
        role=role,
        work_start_time=work_start,
        work_end_time=work_end,
        is_active=is_active,
        created_at=_BASE_CREATED_AT + timedelta(minutes=order),
    )
    db.add(employee)
    await db.commit()
    return employee


@pytest.fixture
async def company(db) -> Company:
    """Company with an ``hour`` / 1500 policy and an 08:00-17:00 day."""
    return await make_company(db)


@pytest.fixture
async def admin(db, company) -> Employee:
    return await make_employee(
        db, company, name="Grace Admin", email="grace@acme.io", role=UserRole.admin, order=0,
    )


@pytest.fixture
async def worker(db, company) -> Employee:
    return await make_employee(db, company, name="Ada Mbarga", email="ada@acme.io", order=1)


# ── Auth helpers ────────────────────────────────────────────────────

def auth_headers_for(employee: Employee) -> dict[str, str]:
    token, _ = create_access_token(employee)
    return {"Authorization": f"Bearer {token}"}


def expired_token_for(employee: Employee) -> str:
    payload = {
        "sub": str(employee.id),
        "company": str(employee.company_id),
        "role": employee.role.value,
        "type": "access",
        "exp": datetime.now(timezone.utc) - timedelta(hours=1),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
def admin_headers(admin) -> dict[str, str]:
    return auth_headers_for(admin)


@pytest.fixture
def worker_headers(worker) -> dict[str, str]:
    return auth_headers_for(worker)
