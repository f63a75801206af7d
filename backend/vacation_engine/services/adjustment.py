"""Suspension, calculation-base and hire-date ledgers.

Each operation appends a ledger row and recomputes ``accrued_days`` from the
hire date, so corrections never compound rounding drift.
"""

# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from vacation_engine.exceptions import BusinessRuleViolation, FutureDate, NotFound, ValidationError
from vacation_engine.models.adjustment import BaseChangeRecord, HireDateChangeRecord, SuspensionPeriod
from vacation_engine.models.enums import AuditAction, SuspensionReason
from vacation_engine.schemas.adjustment import (
    BaseChangeListResponse,
    BaseChangeResponse,
    BaseChangeResultResponse,
    SuspensionListResponse,
    SuspensionResponse,
    SuspensionResultResponse,
)
from vacation_engine.schemas.balance import HireDateChangeResponse, HireDateUpdateResponse
from vacation_engine.services.audit import balance_snapshot, write_audit_event
from vacation_engine.services.balance import (
    apply_counters,
    build_balance_response,
    ensure_hr_or_admin,
    get_balance_for_update,
    list_active_suspensions,
    recompute_accrued,
)
from vacation_engine.services.calculator import round_days
from vacation_engine.services.clock import get_clock

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from vacation_engine.models.balance import VacationBalance
    from vacation_engine.schemas.adjustment import BaseChangePayload, RegisterSuspensionPayload
    from vacation_engine.schemas.auth import AuthContext
    from vacation_engine.schemas.balance import UpdateHireDatePayload


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_suspension_response(suspension: SuspensionPeriod) -> SuspensionResponse:
    return SuspensionResponse(
        id=suspension.id,
        employee_id=suspension.employee_id,
        start_date=suspension.start_date,
        end_date=suspension.end_date,
        reason=SuspensionReason(suspension.reason),
        days_count=suspension.days_count,
        notes=suspension.notes,
        created_by=suspension.created_by,
        created_at=suspension.created_at,
        removed_at=suspension.removed_at,
        removed_by=suspension.removed_by,
        removal_reason=suspension.removal_reason,
    )


def _build_base_change_response(record: BaseChangeRecord) -> BaseChangeResponse:
    return BaseChangeResponse(
        id=record.id,
        employee_id=record.employee_id,
        from_base=record.from_base,
        to_base=record.to_base,
        change_date=record.change_date,
        accrued_at_change=record.accrued_at_change,
        adjustment_applied=record.adjustment_applied,
        reason=record.reason,
        is_reversal=record.is_reversal,
        changed_by=record.changed_by,
        created_at=record.created_at,
    )


async def _reaccrue(
    session: AsyncSession,
    balance: VacationBalance,
    auth: AuthContext,
    description: str,
    *,
    hire_date: date | None = None,
    suspensions: Sequence[SuspensionPeriod] | None = None,
) -> None:
    """Recompute accrued days as of today from candidate inputs, then log.

    Nothing on ``balance`` changes unless the enforcer accepts the result.
    """
    today = get_clock().today()
    hire_date = hire_date or balance.hire_date
    before = balance_snapshot(balance)
    previous = balance.accrued_days
    accrued = await recompute_accrued(session, balance, today, hire_date=hire_date, suspensions=suspensions)
    apply_counters(balance, accrued_days=accrued)
    balance.hire_date = hire_date
    if hire_date <= today:
        balance.last_accrual_date = today

    await write_audit_event(
        session,
        company_id=balance.company_id,
        employee_id=balance.employee_id,
        action=AuditAction.UPDATE,
        performed_by=auth.user_id,
        previous_state=before,
        new_state=balance_snapshot(balance),
        quantity=round_days(accrued - previous),
        description=description,
    )


# ---------------------------------------------------------------------------
# Suspensions
# ---------------------------------------------------------------------------


async def register_suspension(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    payload: RegisterSuspensionPayload,
) -> SuspensionResultResponse:
    """Exclude an interval from accrual and recompute the balance from scratch."""
    ensure_hr_or_admin(auth, "register suspensions")
    if payload.end_date < payload.start_date:
        raise ValidationError("end_date must not be before start_date")

    balance = await get_balance_for_update(session, auth.company_id, employee_id)
    if payload.end_date < balance.hire_date:
        raise BusinessRuleViolation("Suspension ends before the hire date")

    active = await list_active_suspensions(session, auth.company_id, employee_id)
    for existing in active:
        if existing.start_date <= payload.end_date and existing.end_date >= payload.start_date:
            msg = f"Suspension overlaps an existing one ({existing.start_date} .. {existing.end_date})"
            raise BusinessRuleViolation(msg, status_code=409)

    suspension = SuspensionPeriod(
        company_id=auth.company_id,
        employee_id=employee_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason.value,
        days_count=(payload.end_date - payload.start_date).days + 1,
        notes=payload.notes,
        created_by=auth.user_id,
        created_at=get_clock().now(),
    )

    await _reaccrue(
        session,
        balance,
        auth,
        f"Suspension {payload.start_date}..{payload.end_date} registered ({suspension.days_count} days)",
        suspensions=[*active, suspension],
    )
    session.add(suspension)

    await session.commit()
    await session.refresh(suspension)
    return SuspensionResultResponse(
        balance=build_balance_response(balance),
        suspension=_build_suspension_response(suspension),
    )


async def remove_suspension(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    suspension_id: uuid.UUID,
    reason: str,
) -> SuspensionResultResponse:
    """Stop excluding a suspension (kept in the ledger) and recompute."""
    ensure_hr_or_admin(auth, "remove suspensions")
    if not reason.strip():
        raise ValidationError("A reason is required to remove a suspension")

    balance = await get_balance_for_update(session, auth.company_id, employee_id)
    result = await session.execute(
        select(SuspensionPeriod).where(
            col(SuspensionPeriod.id) == suspension_id,
            col(SuspensionPeriod.company_id) == auth.company_id,
            col(SuspensionPeriod.employee_id) == employee_id,
        )
    )
    suspension = result.scalar_one_or_none()
    if suspension is None:
        raise NotFound("Suspension not found")
    if suspension.removed_at is not None:
        raise BusinessRuleViolation("Suspension was already removed", status_code=409)

    remaining = [
        s for s in await list_active_suspensions(session, auth.company_id, employee_id) if s.id != suspension.id
    ]
    await _reaccrue(
        session,
        balance,
        auth,
        f"Suspension {suspension.start_date}..{suspension.end_date} removed: {reason}",
        suspensions=remaining,
    )
    suspension.removed_at = get_clock().now()
    suspension.removed_by = auth.user_id
    suspension.removal_reason = reason

    await session.commit()
    await session.refresh(suspension)
    return SuspensionResultResponse(
        balance=build_balance_response(balance),
        suspension=_build_suspension_response(suspension),
    )


async def list_suspensions(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    *,
    include_removed: bool = False,
) -> SuspensionListResponse:
    filters = [
        col(SuspensionPeriod.company_id) == company_id,
        col(SuspensionPeriod.employee_id) == employee_id,
    ]
    if not include_removed:
        filters.append(col(SuspensionPeriod.removed_at).is_(None))

    result = await session.execute(
        select(SuspensionPeriod).where(*filters).order_by(col(SuspensionPeriod.start_date))
    )
    suspensions = list(result.scalars().all())
    return SuspensionListResponse(
        items=[_build_suspension_response(s) for s in suspensions],
        total=len(suspensions),
    )


# ---------------------------------------------------------------------------
# Calculation base
# ---------------------------------------------------------------------------


async def change_calculation_base(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    payload: BaseChangePayload,
) -> BaseChangeResultResponse:
    """Switch between the 360 and 365 bases with a one-time adjustment.

    ``adjustment = accrual under the new base (hire date .. today) - stored
    accrued days``. Switching to the current base is refused, so every second
    switch is a reversal of the first and must carry a reason.
    """
    ensure_hr_or_admin(auth, "change the calculation base")
    new_base = int(payload.new_base)

    balance = await get_balance_for_update(session, auth.company_id, employee_id)
    if balance.calculation_base == new_base:
        msg = f"Calculation base is already {new_base}"
        raise BusinessRuleViolation(msg, status_code=409)

    last_change = await session.execute(
        select(BaseChangeRecord)
        .where(
            col(BaseChangeRecord.company_id) == auth.company_id,
            col(BaseChangeRecord.employee_id) == employee_id,
        )
        .order_by(col(BaseChangeRecord.created_at).desc())
        .limit(1)
    )
    previous_change = last_change.scalar_one_or_none()
    is_reversal = previous_change is not None and previous_change.from_base == new_base
    reason = (payload.reason or "").strip()
    if is_reversal and not reason:
        raise ValidationError("Reverting a calculation base change requires a reason")

    today = get_clock().today()
    before = balance_snapshot(balance)
    accrued_at_change = balance.accrued_days
    new_total = await recompute_accrued(session, balance, today, base=new_base)
    adjustment = round_days(new_total - accrued_at_change)

    record = BaseChangeRecord(
        company_id=auth.company_id,
        employee_id=employee_id,
        from_base=balance.calculation_base,
        to_base=new_base,
        change_date=today,
        accrued_at_change=accrued_at_change,
        adjustment_applied=adjustment,
        reason=reason or f"Calculation base changed to {new_base}",
        is_reversal=is_reversal,
        changed_by=auth.user_id,
        created_at=get_clock().now(),
    )

    apply_counters(balance, accrued_days=new_total)
    session.add(record)
    balance.calculation_base = new_base
    if balance.hire_date <= today:
        balance.last_accrual_date = today

    await write_audit_event(
        session,
        company_id=auth.company_id,
        employee_id=employee_id,
        action=AuditAction.UPDATE,
        performed_by=auth.user_id,
        previous_state=before,
        new_state=balance_snapshot(balance),
        quantity=adjustment,
        description=f"Calculation base {record.from_base} -> {new_base}",
    )

    await session.commit()
    await session.refresh(record)
    return BaseChangeResultResponse(
        balance=build_balance_response(balance),
        adjustment=_build_base_change_response(record),
    )


async def list_base_changes(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
) -> BaseChangeListResponse:
    filters = [
        col(BaseChangeRecord.company_id) == company_id,
        col(BaseChangeRecord.employee_id) == employee_id,
    ]
    count_result = await session.execute(select(func.count()).select_from(BaseChangeRecord).where(*filters))
    result = await session.execute(
        select(BaseChangeRecord).where(*filters).order_by(col(BaseChangeRecord.created_at))
    )
    return BaseChangeListResponse(
        items=[_build_base_change_response(r) for r in result.scalars().all()],
        total=count_result.scalar_one(),
    )


# ---------------------------------------------------------------------------
# Hire date
# ---------------------------------------------------------------------------


async def update_hire_date(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    payload: UpdateHireDatePayload,
) -> HireDateUpdateResponse:
    """Correct the hire date and recompute accrual from the new date."""
    ensure_hr_or_admin(auth, "change hire dates")
    if not payload.reason.strip():
        raise ValidationError("A reason is required to change the hire date")

    today = get_clock().today()
    if payload.hire_date > today:
        msg = f"Hire date {payload.hire_date} is in the future"
        raise FutureDate(msg)

    balance = await get_balance_for_update(session, auth.company_id, employee_id)
    if balance.hire_date == payload.hire_date:
        raise BusinessRuleViolation("Hire date is unchanged")

    previous_hire_date = balance.hire_date
    accrued_before = balance.accrued_days

    await _reaccrue(
        session,
        balance,
        auth,
        f"Hire date {previous_hire_date} -> {payload.hire_date}: {payload.reason}",
        hire_date=payload.hire_date,
    )

    change = HireDateChangeRecord(
        company_id=auth.company_id,
        employee_id=employee_id,
        previous_hire_date=previous_hire_date,
        new_hire_date=payload.hire_date,
        accrued_before=accrued_before,
        accrued_after=balance.accrued_days,
        reason=payload.reason,
        changed_by=auth.user_id,
        created_at=get_clock().now(),
    )
    session.add(change)

    await session.commit()
    await session.refresh(change)
    return HireDateUpdateResponse(
        balance=build_balance_response(balance),
        change=HireDateChangeResponse(
            id=change.id,
            employee_id=change.employee_id,
            previous_hire_date=change.previous_hire_date,
            new_hire_date=change.new_hire_date,
            accrued_before=change.accrued_before,
            accrued_after=change.accrued_after,
            reason=change.reason,
            changed_by=change.changed_by,
            created_at=change.created_at,
        ),
    )
