"""Accrual orchestration: the daily sweep and the calculator-backed queries."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from vacation_engine.exceptions import AppError, FutureDate
from vacation_engine.models.balance import VacationBalance
from vacation_engine.models.enums import AuditAction
from vacation_engine.schemas.accrual import (
    AccrualFailureResponse,
    AccrualResultResponse,
    AccrualRunResponse,
    MonthlyAccrualResponse,
    MonthlyAccrualTableResponse,
    YearSegmentResponse,
)
from vacation_engine.services.audit import SYSTEM_ACTOR_ID, balance_snapshot, write_audit_event
from vacation_engine.services.balance import (
    apply_counters,
    ensure_can_view,
    get_balance_for_update,
    list_active_suspensions,
    load_balance,
    recompute_accrued,
)
from vacation_engine.services.calculator import (
    AccrualResult,
    Suspension,
    build_monthly_accrual_table,
    calculate_accrual,
    project_accrual,
    round_days,
)
from vacation_engine.services.clock import get_clock
from vacation_engine.services.company import get_company_service

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vacation_engine.schemas.accrual import CalculateAccrualPayload, ProjectAccrualPayload
    from vacation_engine.schemas.auth import AuthContext

logger = logging.getLogger(__name__)

# Changes below this are rounding noise and do not get an audit event.
_ACCRUAL_EPSILON = 0.0001

# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------


@dataclass
class AccrualFailure:
    employee_id: uuid.UUID
    error: str
    message: str


@dataclass
class AccrualRunResult:
    """Summary of a daily accrual sweep for one company."""

    company_id: uuid.UUID
    run_date: date
    processed: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    errors: int = 0
    failures: list[AccrualFailure] = field(default_factory=list)

    def to_response(self) -> AccrualRunResponse:
        return AccrualRunResponse(
            company_id=self.company_id,
            run_date=self.run_date,
            processed=self.processed,
            updated=self.updated,
            unchanged=self.unchanged,
            skipped=self.skipped,
            errors=self.errors,
            failures=[
                AccrualFailureResponse(employee_id=f.employee_id, error=f.error, message=f.message)
                for f in self.failures
            ],
        )


def build_accrual_result_response(result: AccrualResult) -> AccrualResultResponse:
    return AccrualResultResponse(
        hire_date=result.hire_date,
        as_of=result.as_of,
        base=result.base,
        work_time_factor=result.work_time_factor,
        accrued_days=result.accrued_days,
        display_days=result.display_days,
        calendar_days=result.calendar_days,
        suspension_days=result.suspension_days,
        days_worked=result.days_worked,
        years_of_service=result.years_of_service,
        segments=[
            YearSegmentResponse(
                year=s.year,
                start=s.start,
                end=s.end,
                calendar_days=s.calendar_days,
                suspension_days=s.suspension_days,
                days_worked=s.days_worked,
                daily_rate=float(s.daily_rate),
                accrued_days=s.accrued_days,
            )
            for s in result.segments
        ],
    )


# ---------------------------------------------------------------------------
# Calculator-backed queries
# ---------------------------------------------------------------------------


def calculate(payload: CalculateAccrualPayload) -> AccrualResultResponse:
    """Live accrual for arbitrary inputs; ``as_of`` defaults to today."""
    today = get_clock().today()
    result = calculate_accrual(
        payload.hire_date,
        payload.as_of or today,
        base=payload.base,
        work_time_factor=payload.work_time_factor,
        suspensions=[Suspension(s.start_date, s.end_date) for s in payload.suspensions],
        today=today,
    )
    return build_accrual_result_response(result)


def project(payload: ProjectAccrualPayload) -> AccrualResultResponse:
    result = project_accrual(
        payload.hire_date,
        payload.target_date,
        base=payload.base,
        work_time_factor=payload.work_time_factor,
        suspensions=[Suspension(s.start_date, s.end_date) for s in payload.suspensions],
    )
    return build_accrual_result_response(result)


async def project_employee_accrual(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    target_date: date,
) -> AccrualResultResponse:
    """Accrual an employee will have reached on ``target_date`` (past or future)."""
    balance = await load_balance(session, auth.company_id, employee_id)
    ensure_can_view(auth, balance)
    suspensions = await list_active_suspensions(session, auth.company_id, employee_id)
    result = project_accrual(
        balance.hire_date,
        target_date,
        base=balance.calculation_base,
        work_time_factor=balance.work_time_factor,
        suspensions=suspensions,
    )
    return build_accrual_result_response(result)


async def get_monthly_accrual_table(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    year: int,
) -> MonthlyAccrualTableResponse:
    balance = await load_balance(session, auth.company_id, employee_id)
    ensure_can_view(auth, balance)
    suspensions = await list_active_suspensions(session, auth.company_id, employee_id)
    rows = build_monthly_accrual_table(
        balance.hire_date,
        year,
        base=balance.calculation_base,
        work_time_factor=balance.work_time_factor,
        suspensions=suspensions,
    )
    return MonthlyAccrualTableResponse(
        employee_id=employee_id,
        year=year,
        rows=[
            MonthlyAccrualResponse(
                year=r.year,
                month=r.month,
                days_worked=r.days_worked,
                accrued_days=r.accrued_days,
                cumulative_days=r.cumulative_days,
            )
            for r in rows
        ],
        total_days=rows[-1].cumulative_days,
    )


# ---------------------------------------------------------------------------
# Daily sweep
# ---------------------------------------------------------------------------


def _resolve_run_date(run_date: date | None) -> date:
    today = get_clock().today()
    if run_date is None:
        return today
    if run_date > today:
        msg = f"Cannot accrue for {run_date}, today is {today}"
        raise FutureDate(msg)
    return run_date


async def _accrue_employee(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    run_date: date,
) -> bool | None:
    """Bring one balance up to ``run_date``.

    Returns True when accrued days changed, False when they did not and None
    when the employee has not been hired yet. A balance already accrued to
    ``run_date`` or later is left untouched, so accrued days never move back.
    Every write, including one that only advances ``last_accrual_date``, is
    recorded as an ACCRUE event.
    """
    balance = await get_balance_for_update(session, company_id, employee_id)
    if balance.hire_date > run_date:
        return None
    if balance.last_accrual_date is not None and balance.last_accrual_date >= run_date:
        return False

    before = balance_snapshot(balance)
    previous = balance.accrued_days
    accrued = await recompute_accrued(session, balance, run_date)
    apply_counters(balance, accrued_days=accrued)
    balance.last_accrual_date = run_date

    delta = round_days(accrued - previous)
    if abs(delta) < _ACCRUAL_EPSILON:
        delta = 0.0

    await write_audit_event(
        session,
        company_id=company_id,
        employee_id=employee_id,
        action=AuditAction.ACCRUE,
        performed_by=SYSTEM_ACTOR_ID,
        previous_state=before,
        new_state=balance_snapshot(balance),
        quantity=delta,
        description=f"Daily accrual as of {run_date}",
    )
    return delta != 0.0


async def run_daily_accrual(
    session: AsyncSession,
    company_id: uuid.UUID,
    run_date: date | None = None,
) -> AccrualRunResult:
    """Recompute every balance of a company up to ``run_date`` (default today).

    Each employee is committed on its own. A failing employee is rolled back,
    logged and collected in ``failures``; the sweep continues with the rest.
    Re-running for the same date changes nothing, and a date at or before a
    balance's last accrual leaves that balance untouched.
    """
    run_date = _resolve_run_date(run_date)
    result = AccrualRunResult(company_id=company_id, run_date=run_date)

    keys = await session.execute(
        select(col(VacationBalance.employee_id))
        .where(col(VacationBalance.company_id) == company_id)
        .order_by(col(VacationBalance.employee_id))
    )
    employee_ids = list(keys.scalars().all())

    for employee_id in employee_ids:
        result.processed += 1
        try:
            changed = await _accrue_employee(session, company_id, employee_id, run_date)
            await session.commit()
        except Exception as exc:
            await session.rollback()
            logger.exception("Error accruing vacation for company=%s employee=%s", company_id, employee_id)
            result.errors += 1
            result.failures.append(
                AccrualFailure(
                    employee_id=employee_id,
                    error=type(exc).__name__,
                    message=exc.message if isinstance(exc, AppError) else str(exc),
                )
            )
            continue

        if changed is None:
            result.skipped += 1
        elif changed:
            result.updated += 1
        else:
            result.unchanged += 1

    logger.info(
        "Accrual sweep company=%s date=%s processed=%d updated=%d unchanged=%d skipped=%d errors=%d",
        company_id,
        run_date,
        result.processed,
        result.updated,
        result.unchanged,
        result.skipped,
        result.errors,
    )
    return result


async def run_daily_accrual_all_companies(
    session: AsyncSession,
    run_date: date | None = None,
) -> list[AccrualRunResult]:
    """Run the sweep for every company known to the company directory.

    A company whose sweep fails outright is rolled back, logged and left out of
    the results; the remaining companies still run.
    """
    run_date = _resolve_run_date(run_date)
    results: list[AccrualRunResult] = []
    for company in await get_company_service().list_companies():
        try:
            results.append(await run_daily_accrual(session, company.id, run_date))
        except Exception:
            await session.rollback()
            logger.exception("Accrual sweep failed for company=%s", company.id)
    return results
