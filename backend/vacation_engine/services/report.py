"""Reporting service: audit trail queries."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from vacation_engine.exceptions import ValidationError
from vacation_engine.models.audit import VacationAuditLog
from vacation_engine.schemas.audit import AuditLogEntryResponse, AuditLogListResponse

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from vacation_engine.models.enums import AuditAction


def _build_entry_response(entry: VacationAuditLog) -> AuditLogEntryResponse:
    return AuditLogEntryResponse(
        id=entry.id,
        company_id=entry.company_id,
        employee_id=entry.employee_id,
        action=entry.action,
        request_id=entry.request_id,
        performed_by=entry.performed_by,
        previous_state=entry.previous_state,
        new_state=entry.new_state,
        quantity=entry.quantity,
        description=entry.description,
        timestamp=entry.timestamp,
    )


async def query_audit_log(
    session: AsyncSession,
    company_id: uuid.UUID,
    *,
    employee_id: uuid.UUID | None = None,
    action: AuditAction | None = None,
    request_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> AuditLogListResponse:
    """Query audit trail entries with optional filters, newest first.

    ``start_date`` and ``end_date`` are inclusive calendar days.
    """
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ValidationError("end_date must not precede start_date")

    filters = [col(VacationAuditLog.company_id) == company_id]

    if employee_id is not None:
        filters.append(col(VacationAuditLog.employee_id) == employee_id)
    if action is not None:
        filters.append(col(VacationAuditLog.action) == action.value)
    if request_id is not None:
        filters.append(col(VacationAuditLog.request_id) == request_id)
    if start_date is not None:
        filters.append(col(VacationAuditLog.timestamp) >= datetime.combine(start_date, time.min, tzinfo=UTC))
    if end_date is not None:
        until = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=UTC)
        filters.append(col(VacationAuditLog.timestamp) < until)

    count_result = await session.execute(select(func.count()).select_from(VacationAuditLog).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(VacationAuditLog)
        .where(*filters)
        .order_by(col(VacationAuditLog.timestamp).desc())
        .offset(offset)
        .limit(limit)
    )
    entries = list(result.scalars().all())

    return AuditLogListResponse(
        items=[_build_entry_response(e) for e in entries],
        total=total,
    )
