"""Pytest fixtures for timesheet payroll tests."""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from timesheet_payroll.api.app import create_app
from timesheet_payroll.api.dependencies import get_db_session
from timesheet_payroll.database import create_schema, get_engine, make_session_factory
from timesheet_payroll.models import Employee, Punch, Tenant

# Use in-memory SQLite for tests (with async support)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test."""
    engine = get_engine(TEST_DATABASE_URL)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with make_session_factory(engine)() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def tenant(session: AsyncSession) -> Tenant:
    tenant = Tenant(name="Test Company")
    session.add(tenant)
    await session.flush()
    return tenant


@pytest.fixture
async def other_tenant(session: AsyncSession) -> Tenant:
    tenant = Tenant(name="Other Company")
    session.add(tenant)
    await session.flush()
    return tenant


@pytest.fixture
async def employee(session: AsyncSession, tenant: Tenant) -> Employee:
    """$20/hr employee."""
    employee = Employee(
        tenant_id=tenant.id,
        first_name="Jane",
        last_name="Doe",
        rate=Decimal("20.00"),
        active=True,
    )
    session.add(employee)
    await session.flush()
    return employee


@pytest.fixture
async def second_employee(session: AsyncSession, tenant: Tenant) -> Employee:
    """$25/hr employee."""
    employee = Employee(
        tenant_id=tenant.id,
        first_name="John",
        last_name="Smith",
        rate=Decimal("25.00"),
        active=True,
    )
    session.add(employee)
    await session.flush()
    return employee


@pytest.fixture
async def punch(session: AsyncSession, employee: Employee) -> Punch:
    """08:00-18:00 with a 30 minute lunch on a Wednesday."""
    punch = Punch(
        tenant_id=employee.tenant_id,
        employee_id=employee.id,
        work_date=date(2024, 1, 10),
        time_in=time(8, 0),
        time_out=time(18, 0),
        lunch_minutes=30,
        miles=Decimal("0"),
        pto_hours=Decimal("0"),
        holiday_worked_hours=Decimal("0"),
        holiday_non_worked_hours=Decimal("0"),
        misc_hours=Decimal("0"),
        misc_reimbursement=Decimal("0"),
    )
    session.add(punch)
    await session.flush()
    return punch


# API fixtures


@pytest.fixture
async def api_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = get_engine(TEST_DATABASE_URL)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def api_tenant_id(api_engine: AsyncEngine) -> int:
    """A committed tenant the API can see."""
    async with make_session_factory(api_engine)() as session:
        tenant = Tenant(name="API Company")
        session.add(tenant)
        await session.commit()
        return tenant.id


@pytest.fixture
async def client(api_engine: AsyncEngine) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    factory = make_session_factory(api_engine)

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db_session] = override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
