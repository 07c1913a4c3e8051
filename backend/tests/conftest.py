from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from leave_engine.config import reset_settings
from leave_engine.db import get_session
from leave_engine.main import app
from leave_engine.models import SQLModel
from leave_engine.services.catalog import set_catalog
from leave_engine.services.department import DepartmentInfo, InMemoryDepartmentService, set_department_service
from leave_engine.services.employee import EmployeeInfo, InMemoryEmployeeService, set_employee_service
from leave_engine.services.locks import balance_locks, request_locks

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine

TEST_DATABASE_URL = "sqlite+aiosqlite://"

ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-00000000a001")
EMPLOYEE_ID = uuid.UUID("00000000-0000-0000-0000-00000000e001")
OTHER_EMPLOYEE_ID = uuid.UUID("00000000-0000-0000-0000-00000000e002")
FINANCE_ID = uuid.UUID("00000000-0000-0000-0000-00000000d001")

ADMIN_HEADERS = {"X-User-Id": str(ADMIN_ID), "X-Role": "admin"}
EMPLOYEE_HEADERS = {"X-User-Id": str(EMPLOYEE_ID), "X-Role": "employee"}


@pytest.fixture(autouse=True)
def _reset_global_state() -> Iterator[None]:
    """Fresh settings, catalog, collaborators and locks for every test."""
    reset_settings()
    set_catalog(None)
    balance_locks.clear()
    request_locks.clear()
    yield
    reset_settings()
    set_catalog(None)
    set_employee_service(InMemoryEmployeeService())
    set_department_service(InMemoryDepartmentService())


@pytest.fixture
def directory() -> InMemoryEmployeeService:
    """Employee directory seeded with two Finance employees."""
    svc = InMemoryEmployeeService()
    svc.seed(
        EmployeeInfo(
            id=EMPLOYEE_ID,
            first_name="Maria",
            last_name="Soares",
            email="maria.soares@example.tl",
            department="Finance",
            hire_date=date(2026, 1, 12),
        )
    )
    svc.seed(
        EmployeeInfo(
            id=OTHER_EMPLOYEE_ID,
            first_name="Joao",
            last_name="Belo",
            email="joao.belo@example.tl",
            department="Finance",
            hire_date=date(2026, 1, 12),
        )
    )
    set_employee_service(svc)
    return svc


@pytest.fixture
def departments() -> InMemoryDepartmentService:
    svc = InMemoryDepartmentService()
    svc.seed(DepartmentInfo(id=FINANCE_ID, name="Finance"))
    set_department_service(svc)
    return svc


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """A private in-memory SQLite database per test."""
    _engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
