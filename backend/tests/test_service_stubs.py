"""Tests for the clock, directory and notification collaborators."""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime

import pytest

from vacation_engine.services.clock import Clock, FixedClock, SystemClock
from vacation_engine.services.company import CompanyInfo, CompanyService, InMemoryCompanyService
from vacation_engine.services.employee import EmployeeInfo, EmployeeService, InMemoryEmployeeService
from vacation_engine.services.notification import (
    InMemoryNotificationSink,
    LoggingNotificationSink,
    NotificationSink,
)

COMPANY_A = uuid.uuid4()
COMPANY_B = uuid.uuid4()


def _make_employee(company_id: uuid.UUID, name: str = "Camila") -> EmployeeInfo:
    return EmployeeInfo(
        id=uuid.uuid4(),
        company_id=company_id,
        first_name=name,
        last_name="Diaz",
        email=f"{name.lower()}@example.com",
        hire_date=date(2022, 5, 2),
    )


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


def test_fixed_clock_pins_date_at_noon_utc() -> None:
    clock = FixedClock(date(2025, 1, 15))
    assert clock.now() == datetime(2025, 1, 15, 12, tzinfo=UTC)
    assert clock.today() == date(2025, 1, 15)


def test_fixed_clock_advance_and_set() -> None:
    clock = FixedClock(datetime(2025, 1, 15, 23))
    assert clock.now().tzinfo is UTC
    clock.advance(hours=2)
    assert clock.today() == date(2025, 1, 16)
    clock.set(date(2025, 3, 1))
    assert clock.now() == datetime(2025, 3, 1, 12, tzinfo=UTC)


def test_system_clock_is_timezone_aware() -> None:
    clock = SystemClock()
    assert clock.now().tzinfo is not None
    assert isinstance(clock, Clock)


# ---------------------------------------------------------------------------
# InMemoryEmployeeService tests
# ---------------------------------------------------------------------------


async def test_employee_service_get_not_found() -> None:
    svc = InMemoryEmployeeService()
    result = await svc.get_employee(COMPANY_A, uuid.uuid4())
    assert result is None


async def test_employee_service_seed_and_get() -> None:
    svc = InMemoryEmployeeService()
    emp = _make_employee(COMPANY_A)
    svc.seed(emp)
    result = await svc.get_employee(COMPANY_A, emp.id)
    assert result is not None
    assert result.hire_date == date(2022, 5, 2)
    assert result.work_time_factor == 1.0
    assert await svc.get_employee(COMPANY_B, emp.id) is None


async def test_employee_service_list_filters_by_company_and_active() -> None:
    svc = InMemoryEmployeeService()
    emp_a = _make_employee(COMPANY_A, "Valentina")
    gone = _make_employee(COMPANY_A, "Mateo").model_copy(update={"active": False})
    emp_b = _make_employee(COMPANY_B, "Santiago")
    for emp in (emp_a, gone, emp_b):
        svc.seed(emp)

    assert [e.id for e in await svc.list_employees(COMPANY_A)] == [emp_a.id]
    assert [e.id for e in await svc.list_employees(COMPANY_B)] == [emp_b.id]


def test_employee_service_satisfies_protocol() -> None:
    assert isinstance(InMemoryEmployeeService(), EmployeeService)


# ---------------------------------------------------------------------------
# InMemoryCompanyService tests
# ---------------------------------------------------------------------------


async def test_company_service_get_not_found() -> None:
    svc = InMemoryCompanyService()
    assert await svc.get_company(uuid.uuid4()) is None


async def test_company_service_lists_active_companies() -> None:
    svc = InMemoryCompanyService()
    svc.seed(CompanyInfo(id=COMPANY_A, name="Andes Logistics"))
    svc.seed(CompanyInfo(id=COMPANY_B, name="Closed Corp", active=False))

    companies = await svc.list_companies()
    assert [c.id for c in companies] == [COMPANY_A]
    assert companies[0].default_calculation_base == 365
    assert isinstance(svc, CompanyService)


# ---------------------------------------------------------------------------
# Notification sinks
# ---------------------------------------------------------------------------


async def test_in_memory_sink_records_alerts() -> None:
    sink = InMemoryNotificationSink()
    await sink.notify(COMPANY_A, "CRITICAL", {"summary": {"critical_errors": 1}})
    assert len(sink.sent) == 1
    assert sink.sent[0].company_id == COMPANY_A
    assert isinstance(sink, NotificationSink)


async def test_in_memory_sink_can_fail() -> None:
    sink = InMemoryNotificationSink(fail_with=ConnectionError("webhook down"))
    with pytest.raises(ConnectionError):
        await sink.notify(COMPANY_A, "CRITICAL", {})
    assert sink.sent == []


async def test_logging_sink_writes_warning(caplog: pytest.LogCaptureFixture) -> None:
    await LoggingNotificationSink().notify(
        COMPANY_A, "CRITICAL", {"summary": {"total_errors": 2, "critical_errors": 1}}
    )
    assert "Vacation audit alert" in caplog.text
    assert str(COMPANY_A) in caplog.text
