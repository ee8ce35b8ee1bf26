"""Integration test fixtures with a real (SQLite) database."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from payroll_ledger.api.app import create_app
from payroll_ledger.api.dependencies import get_db_session
from payroll_ledger.config import Settings, get_settings
from payroll_ledger.core.periods import Weekday
from payroll_ledger.models import Base, EmployeeRecord

# In-memory SQLite shared by every connection of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ROSTER = [
    ("E-1", "Ana Ruiz", Decimal("1000.00"), None),
    ("E-2", "Ben Okafor", Decimal("900.00"), None),
    ("E-3", "Chen Wei", Decimal("800.00"), date(2024, 1, 21)),
]


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh database per test."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def seeded_db(session_factory) -> async_sessionmaker[AsyncSession]:
    """Insert the three-person roster."""
    async with session_factory() as session:
        for employee_id, name, rate, start in ROSTER:
            session.add(
                EmployeeRecord(
                    employee_id=employee_id,
                    name=name,
                    weekly_rate=rate,
                    payment_status="active",
                    payment_start_date=start,
                )
            )
        session.add(
            EmployeeRecord(
                employee_id="E-9",
                name="Dana Paused",
                weekly_rate=Decimal("700.00"),
                payment_status="paused",
            )
        )
        await session.commit()
    return session_factory


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url=TEST_DATABASE_URL,
        check_start_number=1001,
        period_anchor_weekday=Weekday.SUNDAY,
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="INFO",
    )


@pytest_asyncio.fixture
async def client(session_factory, test_settings) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against an app wired to the test database."""
    app = create_app(test_settings)

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_settings] = lambda: test_settings

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
