"""Tests for the daily accrual sweep and the worker pass that drives it."""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel import col

from tests.conftest import COMPANY_ID, EMPLOYEE_ID, HR_AUTH, OTHER_COMPANY_ID, SECOND_EMPLOYEE_ID
from vacation_engine.exceptions import FutureDate
from vacation_engine.models.audit import AuditReport, VacationAuditLog
from vacation_engine.models.balance import VacationBalance
from vacation_engine.models.enums import AuditAction
from vacation_engine.schemas.adjustment import RegisterSuspensionPayload
from vacation_engine.schemas.balance import InitializeBalancePayload
from vacation_engine.services import accrual as accrual_service
from vacation_engine.services import adjustment as adjustment_service
from vacation_engine.services import balance as balance_service
from vacation_engine.services.accrual import run_daily_accrual, run_daily_accrual_all_companies
from vacation_engine.services.audit import SYSTEM_ACTOR_ID
from vacation_engine.services.company import CompanyInfo
from vacation_engine.worker import run_daily_jobs

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

    from vacation_engine.services.accrual import AccrualRunResult
    from vacation_engine.services.clock import FixedClock
    from vacation_engine.services.company import InMemoryCompanyService


@pytest.fixture(autouse=True)
async def opened(db_session: AsyncSession) -> None:
    for employee_id in (EMPLOYEE_ID, SECOND_EMPLOYEE_ID):
        await balance_service.initialize_balance(
            db_session, HR_AUTH, InitializeBalancePayload(employee_id=employee_id)
        )


async def _accrue_events(session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(VacationAuditLog)
        .where(col(VacationAuditLog.action) == AuditAction.ACCRUE.value)
    )
    return result.scalar_one()


async def test_sweep_brings_balances_up_to_date(db_session: AsyncSession, clock: FixedClock) -> None:
    clock.advance(days=5)
    result = await run_daily_accrual(db_session, COMPANY_ID)

    assert result.run_date == date(2025, 1, 20)
    assert result.processed == 2
    assert result.updated == 2
    assert result.errors == 0

    balance = await balance_service.get_balance(db_session, HR_AUTH, EMPLOYEE_ID)
    # 15 days for 2024 plus 19 days of 2025 at 15/365
    assert balance.accrued_days == 15.7808
    assert balance.available_days == 15.7808
    assert balance.last_accrual_date == date(2025, 1, 20)


async def test_sweep_is_idempotent(db_session: AsyncSession, clock: FixedClock) -> None:
    clock.advance(days=5)
    await run_daily_accrual(db_session, COMPANY_ID)
    events_after_first = await _accrue_events(db_session)

    again = await run_daily_accrual(db_session, COMPANY_ID)

    assert again.updated == 0
    assert again.unchanged == 2
    assert await _accrue_events(db_session) == events_after_first == 2


async def test_sweep_writes_system_accrue_events(db_session: AsyncSession, clock: FixedClock) -> None:
    clock.advance(days=1)
    await run_daily_accrual(db_session, COMPANY_ID)

    result = await db_session.execute(
        select(VacationAuditLog).where(
            col(VacationAuditLog.action) == AuditAction.ACCRUE.value,
            col(VacationAuditLog.employee_id) == EMPLOYEE_ID,
        )
    )
    event = result.scalar_one()
    assert event.performed_by == SYSTEM_ACTOR_ID
    assert event.quantity == 0.0411
    assert event.previous_state is not None
    assert event.previous_state["accrued_days"] == 15.5753


async def test_sweep_never_moves_accrual_backwards(db_session: AsyncSession) -> None:
    result = await run_daily_accrual(db_session, COMPANY_ID, date(2024, 6, 1))

    assert result.updated == 0
    assert result.unchanged == 2
    assert result.errors == 0

    balance = await balance_service.get_balance(db_session, HR_AUTH, EMPLOYEE_ID)
    assert balance.accrued_days == 15.5753
    assert balance.last_accrual_date == date(2025, 1, 15)
    assert await _accrue_events(db_session) == 0


async def test_sweep_logs_date_advance_without_accrual(db_session: AsyncSession, clock: FixedClock) -> None:
    await adjustment_service.register_suspension(
        db_session,
        HR_AUTH,
        EMPLOYEE_ID,
        RegisterSuspensionPayload(start_date=date(2025, 1, 10), end_date=date(2025, 1, 31)),
    )
    clock.advance(days=3)

    result = await run_daily_accrual(db_session, COMPANY_ID)

    assert result.updated == 1
    assert result.unchanged == 1

    suspended = await balance_service.get_balance(db_session, HR_AUTH, EMPLOYEE_ID)
    assert suspended.last_accrual_date == date(2025, 1, 18)

    events = await db_session.execute(
        select(VacationAuditLog).where(
            col(VacationAuditLog.action) == AuditAction.ACCRUE.value,
            col(VacationAuditLog.employee_id) == EMPLOYEE_ID,
        )
    )
    event = events.scalar_one()
    assert event.quantity == 0.0
    assert event.new_state is not None
    assert event.new_state["last_accrual_date"] == "2025-01-18"


async def test_sweep_rejects_future_run_date(db_session: AsyncSession, clock: FixedClock) -> None:
    with pytest.raises(FutureDate):
        await run_daily_accrual(db_session, COMPANY_ID, clock.today() + timedelta(days=1))


async def test_sweep_skips_employees_not_yet_hired(db_session: AsyncSession) -> None:
    await balance_service.initialize_balance(
        db_session, HR_AUTH, InitializeBalancePayload(employee_id=uuid.uuid4(), hire_date=date(2025, 3, 1))
    )
    result = await run_daily_accrual(db_session, COMPANY_ID)

    assert result.processed == 3
    assert result.skipped == 1
    assert result.unchanged == 2


async def test_sweep_collects_failures_and_continues(db_session: AsyncSession, clock: FixedClock) -> None:
    # Corrupt one balance behind the enforcer's back.
    await db_session.execute(
        update(VacationBalance).where(col(VacationBalance.employee_id) == EMPLOYEE_ID).values(enjoyed_days=30.0)
    )
    await db_session.commit()

    clock.advance(days=5)
    result = await run_daily_accrual(db_session, COMPANY_ID)

    assert result.errors == 1
    assert result.updated == 1
    assert len(result.failures) == 1
    assert result.failures[0].employee_id == EMPLOYEE_ID
    assert result.failures[0].error == "DataIntegrityError"

    healthy = await balance_service.get_balance(db_session, HR_AUTH, SECOND_EMPLOYEE_ID)
    corrupted = await balance_service.get_balance(db_session, HR_AUTH, EMPLOYEE_ID)
    assert healthy.last_accrual_date == date(2025, 1, 20)
    assert corrupted.last_accrual_date == date(2025, 1, 15)
    assert corrupted.accrued_days == 15.5753


async def test_sweep_all_companies_uses_directory(db_session: AsyncSession) -> None:
    results = await run_daily_accrual_all_companies(db_session)
    assert [r.company_id for r in results] == [COMPANY_ID]


async def test_sweep_all_companies_isolates_failing_company(
    db_session: AsyncSession,
    monkeypatch: pytest.MonkeyPatch,
    company_directory: InMemoryCompanyService,
    caplog: pytest.LogCaptureFixture,
) -> None:
    company_directory.seed(CompanyInfo(id=OTHER_COMPANY_ID, name="Globex Andina SAS"))
    original = accrual_service.run_daily_accrual

    async def _flaky(session: AsyncSession, company_id: uuid.UUID, run_date: date | None = None) -> AccrualRunResult:
        if company_id == COMPANY_ID:
            msg = "balance table locked"
            raise RuntimeError(msg)
        return await original(session, company_id, run_date)

    monkeypatch.setattr(accrual_service, "run_daily_accrual", _flaky)

    results = await run_daily_accrual_all_companies(db_session)

    assert [r.company_id for r in results] == [OTHER_COMPANY_ID]
    assert f"Accrual sweep failed for company={COMPANY_ID}" in caplog.text


async def test_sweep_all_companies_rejects_future_run_date(db_session: AsyncSession, clock: FixedClock) -> None:
    with pytest.raises(FutureDate):
        await run_daily_accrual_all_companies(db_session, clock.today() + timedelta(days=1))


async def test_worker_pass_accrues_then_audits(engine: AsyncEngine, clock: FixedClock) -> None:
    clock.advance(days=1)
    factory = async_sessionmaker(engine, expire_on_commit=False)

    await run_daily_jobs(factory)

    async with factory() as session:
        reports = (await session.execute(select(AuditReport))).scalars().all()
        balance = await balance_service.get_balance(session, HR_AUTH, EMPLOYEE_ID)

    assert len(reports) == 1
    assert reports[0].company_id == COMPANY_ID
    assert balance.last_accrual_date == date(2025, 1, 16)
