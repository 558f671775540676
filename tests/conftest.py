"""Shared test fixtures: async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
Factories commit their rows so a rolled-back request cannot take the
fixture data with it (the in-memory engine shares one connection).
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("STATE_REFRESH_SECONDS", "0")

import uuid
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
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

from hrdesk.common.constants import UserRole
from hrdesk.config import settings
from hrdesk.database import Base, get_db
from hrdesk.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
# (e.g. Employee -> BankAccount)
import hrdesk.core_hr.models  # noqa: F401
import hrdesk.attendance.models  # noqa: F401
import hrdesk.payroll.models  # noqa: F401
import hrdesk.requests.models  # noqa: F401
import hrdesk.feeds.models  # noqa: F401
import hrdesk.integrity.models  # noqa: F401
import hrdesk.tasks.models  # noqa: F401

# ── SQLite compat: compile PG-specific types ────────────────────────

from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "JSON"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

# EG + 2 check digits + 29 alphanumerics
VALID_IBAN = "EG380019000500000000263180002XY12"

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
def _disable_rate_limiter():
    """The import endpoint is rate limited; tests call it freely."""
    from hrdesk.common.rate_limit import limiter

    limiter.enabled = False
    yield
    limiter.enabled = True


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

@pytest.fixture
def make_department(db):
    from hrdesk.core_hr.models import Department

    async def _make(name: str = "Engineering", budget: Optional[Decimal] = None) -> Department:
        dept = Department(id=uuid.uuid4(), name=name, budget=budget)
        db.add(dept)
        await db.commit()
        return dept

    return _make


@pytest.fixture
def make_branch(db):
    from hrdesk.core_hr.models import Branch

    async def _make(name: str = "Cairo HQ", wifi_ssid: str = "HQ-Office") -> Branch:
        branch = Branch(id=uuid.uuid4(), name=name, wifi_ssid=wifi_ssid)
        db.add(branch)
        await db.commit()
        return branch

    return _make


@pytest.fixture
def make_shift(db):
    from hrdesk.core_hr.models import Shift

    async def _make(
        name: str = "Morning", start: time = time(8, 0), end: time = time(16, 0),
    ) -> Shift:
        shift = Shift(id=uuid.uuid4(), name=name, start_time=start, end_time=end)
        db.add(shift)
        await db.commit()
        return shift

    return _make


@pytest.fixture
def make_employee(db):
    from hrdesk.core_hr.models import Employee

    async def _make(
        first_name: str = "Test",
        last_name: str = "User",
        *,
        email: Optional[str] = None,
        salary: Decimal | int = 1000,
        status: Optional[str] = "ACTIVE",
        role: UserRole = UserRole.employee,
        **extra,
    ) -> Employee:
        emp = Employee(
            id=uuid.uuid4(),
            auth_id=f"auth-{uuid.uuid4().hex[:12]}",
            first_name=first_name,
            last_name=last_name,
            email=email or f"{first_name.lower()}.{uuid.uuid4().hex[:6]}@hrdesk.test",
            basic_salary=Decimal(salary),
            status=status,
            role=role.value,
            created_at=datetime.now(timezone.utc),
            updated_at=datetime.now(timezone.utc),
            **extra,
        )
        db.add(emp)
        await db.commit()
        return emp

    return _make


@pytest.fixture
def make_bank_account(db):
    from hrdesk.payroll.models import BankAccount

    async def _make(employee, iban: str = VALID_IBAN, **extra) -> BankAccount:
        account = BankAccount(
            id=uuid.uuid4(),
            employee_id=employee.id,
            iban=iban,
            bank_name=extra.pop("bank_name", "National Bank"),
            account_number=extra.pop("account_number", "0001234567"),
            account_holder=extra.pop("account_holder", employee.display_name),
            **extra,
        )
        db.add(account)
        await db.commit()
        return account

    return _make


@pytest.fixture
def make_alert(db):
    from hrdesk.feeds.models import SecurityAlert

    async def _make(employee=None, *, employee_name: Optional[str] = None, **extra) -> SecurityAlert:
        alert = SecurityAlert(
            id=uuid.uuid4(),
            employee_id=employee.id if employee is not None else None,
            employee_name=employee_name or (employee.display_name if employee is not None else None),
            type=extra.pop("type", "MOCK_LOCATION"),
            description=extra.pop("description", "Mock location detected"),
            created_at=extra.pop("created_at", datetime.now(timezone.utc)),
            **extra,
        )
        db.add(alert)
        await db.commit()
        return alert

    return _make


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    auth_id: str,
    role: Optional[UserRole] = None,
    expired: bool = False,
) -> str:
    """Generate a JWT like the identity provider issues."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
    payload = {"sub": auth_id, "exp": exp}
    if role is not None:
        payload["role"] = role.value
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def headers_for(employee, role: Optional[UserRole] = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(employee.auth_id, role)}"}


@pytest.fixture
async def admin(make_employee):
    return await make_employee("Admin", "Root", role=UserRole.admin, salary=5000)


@pytest.fixture
async def admin_headers(admin) -> dict[str, str]:
    return headers_for(admin)


@pytest.fixture
async def staff(make_employee):
    return await make_employee("Sara", "Ali", role=UserRole.employee)


@pytest.fixture
async def staff_headers(staff) -> dict[str, str]:
    return headers_for(staff)
