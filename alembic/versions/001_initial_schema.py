"""001 – Initial schema: companies, policies, employees, attendance, reports,
email verifications.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000+01:00
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ENUM_TYPES: list[tuple[str, list[str]]] = [
    ("user_role", ["admin", "employee"]),
    ("penalty_unit", ["minute", "hour", "day"]),
]


def _create_enum(name: str, values: list[str]) -> None:
    vals = ", ".join(f"'{v}'" for v in values)
    op.execute(f"CREATE TYPE {name} AS ENUM ({vals})")


def _drop_enum(name: str) -> None:
    op.execute(f"DROP TYPE IF EXISTS {name}")


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── Enum types ────────────────────────────────────────────────────────
    for name, values in ENUM_TYPES:
        _create_enum(name, values)

    # ── 1. companies ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE companies (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name        VARCHAR(150) NOT NULL,
            code        VARCHAR(50) NOT NULL UNIQUE,
            created_at  TIMESTAMP NOT NULL DEFAULT LOCALTIMESTAMP
        )
    """)

    # ── 2. penalty_policies ───────────────────────────────────────────────
    op.execute("""
        CREATE TABLE penalty_policies (
            id               UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            company_id       UUID NOT NULL UNIQUE REFERENCES companies(id) ON DELETE CASCADE,
            penalty_rate     INTEGER NOT NULL DEFAULT 0 CHECK (penalty_rate >= 0),
            penalty_unit     penalty_unit NOT NULL DEFAULT 'hour',
            work_start_time  TIME NOT NULL DEFAULT '08:00',
            work_end_time    TIME NOT NULL DEFAULT '17:00',
            created_at       TIMESTAMP NOT NULL DEFAULT LOCALTIMESTAMP,
            updated_at       TIMESTAMP NOT NULL DEFAULT LOCALTIMESTAMP
        )
    """)

    # ── 3. employees ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE employees (
            id               UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            company_id       UUID NOT NULL REFERENCES companies(id),
            name             VARCHAR(150) NOT NULL,
            email            VARCHAR(255) NOT NULL UNIQUE,
            role             user_role NOT NULL DEFAULT 'employee',
            work_start_time  TIME NOT NULL,
            work_end_time    TIME NOT NULL,
            email_verified   BOOLEAN NOT NULL DEFAULT FALSE,
            is_active        BOOLEAN NOT NULL DEFAULT TRUE,
            created_at       TIMESTAMP NOT NULL DEFAULT LOCALTIMESTAMP
        )
    """)
    op.execute("CREATE INDEX idx_employees_company ON employees(company_id, created_at)")

    # ── 4. attendance_records ─────────────────────────────────────────────
    op.execute("""
        CREATE TABLE attendance_records (
            id                 UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id        UUID NOT NULL REFERENCES employees(id),
            company_id         UUID NOT NULL REFERENCES companies(id),
            date               DATE NOT NULL,
            arrival_time       TIME,
            departure_time     TIME,
            arrival_validated  BOOLEAN NOT NULL DEFAULT FALSE,
            late_minutes       INTEGER NOT NULL DEFAULT 0,
            penalty_amount     INTEGER NOT NULL DEFAULT 0,
            created_at         TIMESTAMP NOT NULL DEFAULT LOCALTIMESTAMP,
            updated_at         TIMESTAMP NOT NULL DEFAULT LOCALTIMESTAMP,
            CONSTRAINT uq_attendance_emp_date UNIQUE (employee_id, date),
            CONSTRAINT ck_attendance_late_non_negative CHECK (late_minutes >= 0),
            CONSTRAINT ck_attendance_penalty_non_negative CHECK (penalty_amount >= 0)
        )
    """)
    op.execute("CREATE INDEX idx_attendance_company_date ON attendance_records(company_id, date)")

    # ── 5. daily_reports ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE daily_reports (
            id             UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id    UUID NOT NULL REFERENCES employees(id),
            company_id     UUID NOT NULL REFERENCES companies(id),
            attendance_id  UUID NOT NULL REFERENCES attendance_records(id) ON DELETE CASCADE,
            date           DATE NOT NULL,
            tasks          JSONB NOT NULL DEFAULT '[]'::jsonb,
            submitted_at   TIMESTAMP NOT NULL DEFAULT LOCALTIMESTAMP,
            CONSTRAINT uq_daily_report_attendance UNIQUE (attendance_id),
            CONSTRAINT uq_daily_report_emp_date UNIQUE (employee_id, date)
        )
    """)
    op.execute("CREATE INDEX idx_daily_reports_company_date ON daily_reports(company_id, date)")

    # ── 6. email_verifications ────────────────────────────────────────────
    op.execute("""
        CREATE TABLE email_verifications (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            email        VARCHAR(255) NOT NULL UNIQUE,
            code         VARCHAR(6) NOT NULL,
            expires_at   TIMESTAMP NOT NULL,
            verified     BOOLEAN NOT NULL DEFAULT FALSE,
            verified_at  TIMESTAMP,
            created_at   TIMESTAMP NOT NULL DEFAULT LOCALTIMESTAMP
        )
    """)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "email_verifications",
        "daily_reports",
        "attendance_records",
        "employees",
        "penalty_policies",
        "companies",
    ]
    for table in tables:
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")

    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)
