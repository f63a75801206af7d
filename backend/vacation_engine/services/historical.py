"""Vacation taken before the engine existed.

Registration bypasses the request workflow but still goes through the
balance enforcer: both ``enjoyed_days`` and its ``historical_enjoyed_days``
breakdown grow by the registered amount.
"""

# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from vacation_engine.exceptions import BusinessRuleViolation, NotFound, ValidationError
from vacation_engine.models.enums import AuditAction, HistoricalVacationType
from vacation_engine.models.historical import HistoricalVacationRecord
from vacation_engine.schemas.historical import HistoricalRecordListResponse, HistoricalRecordResponse
from vacation_engine.services.audit import balance_snapshot, write_audit_event
from vacation_engine.services.balance import (
    apply_counters,
    ensure_available,
    ensure_can_view,
    ensure_hr_or_admin,
    get_balance_for_update,
    load_balance,
)
from vacation_engine.services.calculator import round_days
from vacation_engine.services.clock import get_clock

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vacation_engine.schemas.auth import AuthContext
    from vacation_engine.schemas.historical import RegisterHistoricalPayload


def _build_historical_response(record: HistoricalVacationRecord) -> HistoricalRecordResponse:
    return HistoricalRecordResponse(
        id=record.id,
        company_id=record.company_id,
        employee_id=record.employee_id,
        service_period_start=record.service_period_start,
        service_period_end=record.service_period_end,
        days_enjoyed=record.days_enjoyed,
        enjoyed_start_date=record.enjoyed_start_date,
        enjoyed_end_date=record.enjoyed_end_date,
        type=HistoricalVacationType(record.type),
        notes=record.notes,
        registered_by=record.registered_by,
        is_verified=record.is_verified,
        verified_by=record.verified_by,
        verified_at=record.verified_at,
        created_at=record.created_at,
    )


async def register_historical_vacation(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    payload: RegisterHistoricalPayload,
) -> HistoricalRecordResponse:
    """Append a historical record and count its days as enjoyed."""
    ensure_hr_or_admin(auth, "register historical vacation")
    if payload.days_enjoyed <= 0:
        raise ValidationError("days_enjoyed must be positive")

    today = get_clock().today()
    if payload.enjoyed_start_date > today:
        raise ValidationError("Historical vacation cannot start in the future")

    balance = await get_balance_for_update(session, auth.company_id, employee_id)
    ensure_available(balance, payload.days_enjoyed)
    before = balance_snapshot(balance)
    apply_counters(
        balance,
        enjoyed_days=balance.enjoyed_days + payload.days_enjoyed,
        historical_enjoyed_days=balance.historical_enjoyed_days + payload.days_enjoyed,
    )

    record = HistoricalVacationRecord(
        company_id=auth.company_id,
        employee_id=employee_id,
        service_period_start=payload.service_period_start,
        service_period_end=payload.service_period_end,
        days_enjoyed=round_days(payload.days_enjoyed),
        enjoyed_start_date=payload.enjoyed_start_date,
        enjoyed_end_date=payload.enjoyed_end_date,
        type=payload.type.value,
        notes=payload.notes,
        registered_by=auth.user_id,
        created_at=get_clock().now(),
    )
    session.add(record)

    await write_audit_event(
        session,
        company_id=auth.company_id,
        employee_id=employee_id,
        action=AuditAction.UPDATE,
        performed_by=auth.user_id,
        previous_state=before,
        new_state=balance_snapshot(balance),
        quantity=record.days_enjoyed,
        description=(
            f"Historical vacation {payload.enjoyed_start_date}..{payload.enjoyed_end_date} "
            f"for service period {payload.service_period_start}..{payload.service_period_end}"
        ),
    )

    await session.commit()
    await session.refresh(record)
    return _build_historical_response(record)


async def verify_historical_record(
    session: AsyncSession,
    auth: AuthContext,
    record_id: uuid.UUID,
) -> HistoricalRecordResponse:
    """Flip ``is_verified``. One-way: a verified record cannot be re-verified or unverified."""
    ensure_hr_or_admin(auth, "verify historical vacation")

    result = await session.execute(
        select(HistoricalVacationRecord)
        .where(
            col(HistoricalVacationRecord.id) == record_id,
            col(HistoricalVacationRecord.company_id) == auth.company_id,
        )
        .with_for_update()
    )
    record = result.scalar_one_or_none()
    if record is None:
        raise NotFound("Historical record not found")
    if record.is_verified:
        raise BusinessRuleViolation("Historical record is already verified", status_code=409)

    record.is_verified = True
    record.verified_by = auth.user_id
    record.verified_at = get_clock().now()

    await write_audit_event(
        session,
        company_id=auth.company_id,
        employee_id=record.employee_id,
        action=AuditAction.UPDATE,
        performed_by=auth.user_id,
        previous_state={"historical_record_id": record.id, "is_verified": False},
        new_state={"historical_record_id": record.id, "is_verified": True},
        quantity=record.days_enjoyed,
        description="Historical vacation verified",
    )

    await session.commit()
    await session.refresh(record)
    return _build_historical_response(record)


async def list_historical_records(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
) -> HistoricalRecordListResponse:
    balance = await load_balance(session, auth.company_id, employee_id)
    ensure_can_view(auth, balance)

    result = await session.execute(
        select(HistoricalVacationRecord)
        .where(
            col(HistoricalVacationRecord.company_id) == auth.company_id,
            col(HistoricalVacationRecord.employee_id) == employee_id,
        )
        .order_by(col(HistoricalVacationRecord.enjoyed_start_date))
    )
    records = list(result.scalars().all())
    return HistoricalRecordListResponse(
        items=[_build_historical_response(r) for r in records],
        total=len(records),
        total_days=round_days(sum(r.days_enjoyed for r in records)),
    )
