"""Vacation audit trail: append-only events with identifier-only snapshots."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from vacation_engine.exceptions import DataIntegrityError
from vacation_engine.models.audit import VacationAuditLog
from vacation_engine.services.clock import get_clock

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vacation_engine.models.balance import VacationBalance
    from vacation_engine.models.enums import AuditAction
    from vacation_engine.models.request import VacationRequest

# Actor recorded for unattended jobs (daily sweep).
SYSTEM_ACTOR_ID = uuid.UUID(int=0)

PII_KEYS = frozenset({"name", "email", "firstName", "lastName", "first_name", "last_name"})


def find_pii_keys(value: Any) -> set[str]:
    """Return every personally-identifying key found anywhere in ``value``."""
    found: set[str] = set()
    if isinstance(value, Mapping):
        for key, item in value.items():
            if key in PII_KEYS:
                found.add(key)
            found |= find_pii_keys(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            found |= find_pii_keys(item)
    return found


def _json_safe(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def balance_snapshot(balance: VacationBalance) -> dict[str, Any]:
    """Counters and settings of a balance, safe for the audit trail."""
    return {
        "accrued_days": balance.accrued_days,
        "enjoyed_days": balance.enjoyed_days,
        "historical_enjoyed_days": balance.historical_enjoyed_days,
        "approved_pending_days": balance.approved_pending_days,
        "available_days": balance.available_days,
        "calculation_base": balance.calculation_base,
        "work_time_factor": balance.work_time_factor,
        "hire_date": _json_safe(balance.hire_date),
        "last_accrual_date": _json_safe(balance.last_accrual_date),
    }


def request_snapshot(request: VacationRequest) -> dict[str, Any]:
    """Workflow state of a request, safe for the audit trail."""
    return {
        "status": request.status,
        "requested_days": request.requested_days,
        "start_date": _json_safe(request.start_date),
        "end_date": _json_safe(request.end_date),
        "leader_id": _json_safe(request.leader_id),
        "hr_approver_id": _json_safe(request.hr_approver_id),
        "rejected_by": request.rejected_by,
    }


async def write_audit_event(
    session: AsyncSession,
    *,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    action: AuditAction,
    performed_by: uuid.UUID,
    request_id: uuid.UUID | None = None,
    previous_state: dict[str, Any] | None = None,
    new_state: dict[str, Any] | None = None,
    quantity: float | None = None,
    description: str | None = None,
) -> VacationAuditLog:
    """Append an immutable audit event within the caller's transaction.

    Raises:
        DataIntegrityError: a snapshot carries a personally-identifying key.
    """
    leaked = find_pii_keys(previous_state) | find_pii_keys(new_state)
    if leaked:
        msg = f"Audit snapshots may not contain personal fields: {sorted(leaked)}"
        raise DataIntegrityError(msg, code="PII_IN_LOGS")

    entry = VacationAuditLog(
        company_id=company_id,
        employee_id=employee_id,
        action=action.value,
        request_id=request_id,
        performed_by=performed_by,
        previous_state={k: _json_safe(v) for k, v in previous_state.items()} if previous_state else None,
        new_state={k: _json_safe(v) for k, v in new_state.items()} if new_state else None,
        quantity=quantity,
        description=description,
        timestamp=get_clock().now(),
    )
    session.add(entry)
    return entry
