from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from vacation_engine.db import get_session
from vacation_engine.main import app
from vacation_engine.models import SQLModel
from vacation_engine.models.enums import Role
from vacation_engine.schemas.auth import AuthContext
from vacation_engine.services.clock import FixedClock, SystemClock, set_clock
from vacation_engine.services.company import CompanyInfo, InMemoryCompanyService, set_company_service
from vacation_engine.services.employee import EmployeeInfo, InMemoryEmployeeService, set_employee_service
from vacation_engine.services.notification import (
    InMemoryNotificationSink,
    LoggingNotificationSink,
    set_notification_sink,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine

COMPANY_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")
OTHER_COMPANY_ID = uuid.UUID("00000000-0000-4000-8000-000000000002")
EMPLOYEE_ID = uuid.UUID("00000000-0000-4000-8000-0000000000e1")
SECOND_EMPLOYEE_ID = uuid.UUID("00000000-0000-4000-8000-0000000000e2")
LEADER_ID = uuid.UUID("00000000-0000-4000-8000-0000000000a1")
HR_ID = uuid.UUID("00000000-0000-4000-8000-0000000000b1")
ADMIN_ID = uuid.UUID("00000000-0000-4000-8000-0000000000c1")

DEFAULT_TODAY = date(2025, 1, 15)


def auth_for(user_id: uuid.UUID, role: Role, company_id: uuid.UUID = COMPANY_ID) -> AuthContext:
    return AuthContext(company_id=company_id, user_id=user_id, role=role)


def headers_for(user_id: uuid.UUID, role: Role | str, company_id: uuid.UUID = COMPANY_ID) -> dict[str, str]:
    return {
        "X-Company-Id": str(company_id),
        "X-User-Id": str(user_id),
        "X-Role": role.value if isinstance(role, Role) else role,
    }


EMPLOYEE_AUTH = auth_for(EMPLOYEE_ID, Role.EMPLOYEE)
LEADER_AUTH = auth_for(LEADER_ID, Role.LEADER)
HR_AUTH = auth_for(HR_ID, Role.HR)
ADMIN_AUTH = auth_for(ADMIN_ID, Role.ADMIN)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Fresh in-memory database with every table created."""
    _engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
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


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def clock() -> Iterator[FixedClock]:
    """Pin "today" for every test; tests move it with ``clock.set``/``clock.advance``."""
    fixed = FixedClock(DEFAULT_TODAY)
    set_clock(fixed)
    yield fixed
    set_clock(SystemClock())


@pytest.fixture(autouse=True)
def employee_directory() -> Iterator[InMemoryEmployeeService]:
    """Seed the in-memory employee directory for every test."""
    svc = InMemoryEmployeeService()
    svc.seed(
        EmployeeInfo(
            id=EMPLOYEE_ID,
            company_id=COMPANY_ID,
            first_name="Laura",
            last_name="Gomez",
            email="laura.gomez@example.com",
            hire_date=date(2024, 1, 1),
            leader_id=LEADER_ID,
        )
    )
    svc.seed(
        EmployeeInfo(
            id=SECOND_EMPLOYEE_ID,
            company_id=COMPANY_ID,
            first_name="Andres",
            last_name="Rojas",
            email="andres.rojas@example.com",
            hire_date=date(2023, 7, 1),
            leader_id=LEADER_ID,
            work_time_factor=0.5,
        )
    )
    set_employee_service(svc)
    yield svc
    set_employee_service(InMemoryEmployeeService())


@pytest.fixture(autouse=True)
def company_directory() -> Iterator[InMemoryCompanyService]:
    svc = InMemoryCompanyService()
    svc.seed(CompanyInfo(id=COMPANY_ID, name="Acme Colombia SAS"))
    set_company_service(svc)
    yield svc
    set_company_service(InMemoryCompanyService())


@pytest.fixture(autouse=True)
def notifications() -> Iterator[InMemoryNotificationSink]:
    sink = InMemoryNotificationSink()
    set_notification_sink(sink)
    yield sink
    set_notification_sink(LoggingNotificationSink())
