"""Pytest fixtures for monthly payroll tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from monthly_payroll.api.app import create_app
from monthly_payroll.config import Settings, StatutoryConfig
from monthly_payroll.database import Database
from monthly_payroll.identity import CurrentUser
from monthly_payroll.models import Employee

# In-memory SQLite shared by every session of one test (single pooled connection)
TEST_DATABASE_URL = "sqlite+aiosqlite://"

ADMIN_EMAIL = "admin@example.com"
ALICE_EMAIL = "alice@example.com"
BOB_EMAIL = "bob@example.com"


def make_employees() -> list[Employee]:
    """Baseline staff: two payroll employees and an admin outside payroll."""
    return [
        Employee(
            email=ADMIN_EMAIL,
            name="Admin",
            base_wage=None,
            is_admin=True,
            skip_payroll=True,
        ),
        Employee(email=ALICE_EMAIL, name="Alice Tan", base_wage=Decimal("3000.00")),
        Employee(email=BOB_EMAIL, name="Bob Lee", base_wage=Decimal("2500.00")),
    ]


@pytest.fixture
def admin() -> CurrentUser:
    return CurrentUser(email=ADMIN_EMAIL, is_admin=True)


@pytest.fixture
def staff_user() -> CurrentUser:
    return CurrentUser(email=ALICE_EMAIL, is_admin=False)


@pytest.fixture
def statutory() -> StatutoryConfig:
    return StatutoryConfig()


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def database(engine: AsyncEngine) -> Database:
    """Schema plus baseline employees, committed."""
    database = Database(engine)
    await database.create_all()
    async with database.transaction() as session:
        session.add_all(make_employees())
    return database


@pytest_asyncio.fixture
async def session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """A session for service-level tests; rolled back afterwards."""
    async with database.session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(database: Database) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against an app wired to the test database."""
    settings = Settings(
        database_url=TEST_DATABASE_URL,
        host="127.0.0.1",
        port=8000,
        debug=False,
    )
    app = create_app(settings=settings, database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
