# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from vacation_engine.config import get_settings
from vacation_engine.exceptions import (
    AppError,
    DataIntegrityError,
    InsufficientBalance,
    NotAuthorized,
    NotFound,
    ValidationError,
)
from vacation_engine.models.adjustment import SuspensionPeriod
from vacation_engine.models.balance import VacationBalance
from vacation_engine.models.enums import AuditAction
from vacation_engine.schemas.balance import (
    BalanceListResponse,
    BalanceResponse,
    BalanceSummaryResponse,
    DisplayBalance,
)
from vacation_engine.services.audit import balance_snapshot, write_audit_event
from vacation_engine.services.calculator import calculate_accrual, round_days, round_display
from vacation_engine.services.calendar import business_to_calendar_days
from vacation_engine.services.clock import get_clock
from vacation_engine.services.employee import get_employee_service

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from vacation_engine.schemas.auth import AuthContext
    from vacation_engine.schemas.balance import InitializeBalancePayload
    from vacation_engine.services.calculator import DateInterval


# ---------------------------------------------------------------------------
# Invariant enforcement
# ---------------------------------------------------------------------------


def derive_available(accrued_days: float, enjoyed_days: float, approved_pending_days: float) -> float:
    return round_days(accrued_days - enjoyed_days - approved_pending_days)


def apply_counters(
    balance: VacationBalance,
    *,
    accrued_days: float | None = None,
    enjoyed_days: float | None = None,
    approved_pending_days: float | None = None,
    historical_enjoyed_days: float | None = None,
) -> VacationBalance:
    """The single write path for balance counters.

    Computes the candidate counters, derives ``available_days`` from them and
    refuses (before touching ``balance``) any result with a negative counter
    or an available balance below the tolerance. Values are never clamped.

    Raises:
        DataIntegrityError: with code ``NEGATIVE_BALANCE``.
    """
    tolerance = get_settings().balance_tolerance

    accrued = round_days(balance.accrued_days if accrued_days is None else accrued_days)
    enjoyed = round_days(balance.enjoyed_days if enjoyed_days is None else enjoyed_days)
    pending = round_days(balance.approved_pending_days if approved_pending_days is None else approved_pending_days)
    historical = round_days(
        balance.historical_enjoyed_days if historical_enjoyed_days is None else historical_enjoyed_days
    )
    available = derive_available(accrued, enjoyed, pending)

    counters = {
        "accrued_days": accrued,
        "enjoyed_days": enjoyed,
        "approved_pending_days": pending,
        "historical_enjoyed_days": historical,
    }
    negative = {name: value for name, value in counters.items() if value < 0}
    if negative:
        msg = f"Negative counter for employee {balance.employee_id}: {negative}"
        raise DataIntegrityError(msg, code="NEGATIVE_BALANCE")
    if available < -tolerance:
        msg = (
            f"Available balance for employee {balance.employee_id} would be {available} "
            f"(accrued={accrued}, enjoyed={enjoyed}, approved_pending={pending})"
        )
        raise DataIntegrityError(msg, code="NEGATIVE_BALANCE")

    balance.accrued_days = accrued
    balance.enjoyed_days = enjoyed
    balance.approved_pending_days = pending
    balance.historical_enjoyed_days = historical
    balance.available_days = available
    balance.updated_at = get_clock().now()
    balance.version += 1
    return balance


def ensure_available(balance: VacationBalance, requested_days: float) -> None:
    """Raise InsufficientBalance unless ``available_days >= requested_days``."""
    if round_days(balance.available_days - requested_days) < 0:
        msg = f"Insufficient balance: {balance.available_days} days available, {requested_days} requested"
        raise InsufficientBalance(msg)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def build_balance_response(balance: VacationBalance) -> BalanceResponse:
    """Map a balance model to its response schema."""
    return BalanceResponse(
        company_id=balance.company_id,
        employee_id=balance.employee_id,
        hire_date=balance.hire_date,
        calculation_base=balance.calculation_base,
        work_time_factor=balance.work_time_factor,
        accrued_days=balance.accrued_days,
        enjoyed_days=balance.enjoyed_days,
        historical_enjoyed_days=balance.historical_enjoyed_days,
        approved_pending_days=balance.approved_pending_days,
        available_days=balance.available_days,
        last_accrual_date=balance.last_accrual_date,
        leader_id=balance.leader_id,
        version=balance.version,
        updated_at=balance.updated_at,
    )


async def load_balance(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> VacationBalance:
    query = select(VacationBalance).where(
        col(VacationBalance.company_id) == company_id,
        col(VacationBalance.employee_id) == employee_id,
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    balance = result.scalar_one_or_none()
    if balance is None:
        msg = f"No vacation balance for employee {employee_id}"
        raise NotFound(msg)
    return balance


async def get_balance_for_update(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
) -> VacationBalance:
    """Lock and return a balance for a read-modify-write. Raises 404."""
    return await load_balance(session, company_id, employee_id, for_update=True)


async def list_active_suspensions(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
) -> list[SuspensionPeriod]:
    result = await session.execute(
        select(SuspensionPeriod)
        .where(
            col(SuspensionPeriod.company_id) == company_id,
            col(SuspensionPeriod.employee_id) == employee_id,
            col(SuspensionPeriod.removed_at).is_(None),
        )
        .order_by(col(SuspensionPeriod.start_date))
    )
    return list(result.scalars().all())


async def recompute_accrued(
    session: AsyncSession,
    balance: VacationBalance,
    as_of: date,
    *,
    base: int | None = None,
    hire_date: date | None = None,
    suspensions: Sequence[DateInterval] | None = None,
) -> float:
    """Accrued days from scratch, replaying every active suspension.

    ``base``, ``hire_date`` and ``suspensions`` override the stored values so
    callers can validate a change before writing it. A balance whose hire
    date lies after ``as_of`` has accrued nothing yet.
    """
    hire_date = hire_date or balance.hire_date
    if as_of < hire_date:
        return 0.0
    if suspensions is None:
        suspensions = await list_active_suspensions(session, balance.company_id, balance.employee_id)
    result = calculate_accrual(
        hire_date,
        as_of,
        base=base or balance.calculation_base,
        work_time_factor=balance.work_time_factor,
        suspensions=suspensions,
    )
    return result.accrued_days


def ensure_can_view(auth: AuthContext, balance: VacationBalance) -> None:
    """Employees see their own balance, leaders their reports', HR/admin all."""
    if auth.is_hr_or_admin or auth.user_id in (balance.employee_id, balance.leader_id):
        return
    raise NotAuthorized("Not authorized to view this balance")


def ensure_hr_or_admin(auth: AuthContext, action: str) -> None:
    if not auth.is_hr_or_admin:
        msg = f"Only HR or an admin may {action}"
        raise NotAuthorized(msg)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def initialize_balance(
    session: AsyncSession,
    auth: AuthContext,
    payload: InitializeBalancePayload,
) -> BalanceResponse:
    """Open a balance, accruing everything earned since the hire date.

    Missing hire date, leader and work-time factor are taken from the employee
    directory.
    """
    ensure_hr_or_admin(auth, "open vacation balances")

    existing = await session.execute(
        select(VacationBalance).where(
            col(VacationBalance.company_id) == auth.company_id,
            col(VacationBalance.employee_id) == payload.employee_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise AppError("Vacation balance already exists for this employee", status_code=409)

    employee = await get_employee_service().get_employee(auth.company_id, payload.employee_id)
    hire_date = payload.hire_date or (employee.hire_date if employee else None)
    if hire_date is None:
        raise ValidationError("A hire date is required when the employee directory has none")
    leader_id = payload.leader_id or (employee.leader_id if employee else None)
    work_time_factor = payload.work_time_factor
    if "work_time_factor" not in payload.model_fields_set and employee is not None:
        work_time_factor = employee.work_time_factor

    today = get_clock().today()
    balance = VacationBalance(
        company_id=auth.company_id,
        employee_id=payload.employee_id,
        hire_date=hire_date,
        calculation_base=payload.calculation_base,
        work_time_factor=work_time_factor,
        leader_id=leader_id,
        version=0,
    )
    accrued = await recompute_accrued(session, balance, today)
    apply_counters(balance, accrued_days=accrued)
    if hire_date <= today:
        balance.last_accrual_date = today
    session.add(balance)

    await write_audit_event(
        session,
        company_id=auth.company_id,
        employee_id=payload.employee_id,
        action=AuditAction.UPDATE,
        performed_by=auth.user_id,
        new_state=balance_snapshot(balance),
        quantity=balance.accrued_days,
        description="Vacation balance opened",
    )

    await session.commit()
    await session.refresh(balance)
    return build_balance_response(balance)


async def get_balance(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
) -> BalanceResponse:
    balance = await load_balance(session, auth.company_id, employee_id)
    ensure_can_view(auth, balance)
    return build_balance_response(balance)


async def list_balances(
    session: AsyncSession,
    company_id: uuid.UUID,
    *,
    leader_id: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 50,
) -> BalanceListResponse:
    """List balances of a company, optionally only one leader's team."""
    filters = [col(VacationBalance.company_id) == company_id]
    if leader_id is not None:
        filters.append(col(VacationBalance.leader_id) == leader_id)

    count_result = await session.execute(select(func.count()).select_from(VacationBalance).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(VacationBalance)
        .where(*filters)
        .order_by(col(VacationBalance.employee_id))
        .offset(offset)
        .limit(limit)
    )
    return BalanceListResponse(
        items=[build_balance_response(b) for b in result.scalars().all()],
        total=total,
    )


async def get_balance_summary(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
) -> BalanceSummaryResponse:
    """Balance with service time, 2-decimal display values and a consistency flag."""
    balance = await load_balance(session, auth.company_id, employee_id)
    ensure_can_view(auth, balance)

    today = get_clock().today()
    days_worked = suspension_days = 0
    years_of_service = 0.0
    if balance.hire_date <= today:
        suspensions = await list_active_suspensions(session, auth.company_id, employee_id)
        accrual = calculate_accrual(
            balance.hire_date,
            today,
            base=balance.calculation_base,
            work_time_factor=balance.work_time_factor,
            suspensions=suspensions,
        )
        days_worked = accrual.days_worked
        suspension_days = accrual.suspension_days
        years_of_service = accrual.years_of_service

    expected = derive_available(balance.accrued_days, balance.enjoyed_days, balance.approved_pending_days)
    return BalanceSummaryResponse(
        employee_id=balance.employee_id,
        hire_date=balance.hire_date,
        as_of=today,
        calculation_base=balance.calculation_base,
        work_time_factor=balance.work_time_factor,
        days_worked=days_worked,
        suspension_days=suspension_days,
        years_of_service=years_of_service,
        accrued_days=balance.accrued_days,
        enjoyed_days=balance.enjoyed_days,
        historical_enjoyed_days=balance.historical_enjoyed_days,
        approved_pending_days=balance.approved_pending_days,
        available_days=balance.available_days,
        display=DisplayBalance(
            accrued_days=round_display(balance.accrued_days),
            enjoyed_days=round_display(balance.enjoyed_days),
            approved_pending_days=round_display(balance.approved_pending_days),
            available_days=round_display(balance.available_days),
        ),
        available_calendar_days=business_to_calendar_days(max(balance.available_days, 0.0)),
        last_accrual_date=balance.last_accrual_date,
        is_consistent=abs(expected - balance.available_days) <= get_settings().balance_tolerance,
    )
