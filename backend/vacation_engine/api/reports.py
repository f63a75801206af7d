# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query

from vacation_engine.api.deps import HRDep, validate_company_scope
from vacation_engine.db import SessionDep
from vacation_engine.models.enums import AuditAction
from vacation_engine.schemas.audit import AuditLogListResponse
from vacation_engine.services import report as report_service

reports_router = APIRouter(
    prefix="/companies/{company_id}/reports",
    tags=["reports"],
    dependencies=[Depends(validate_company_scope)],
)


@reports_router.get(
    "/audit-log",
    response_model=AuditLogListResponse,
)
async def query_audit_log(
    company_id: uuid.UUID,
    session: SessionDep,
    auth: HRDep,
    employee_id: uuid.UUID | None = Query(default=None),
    action: AuditAction | None = Query(default=None),
    request_id: uuid.UUID | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogListResponse:
    """Query the vacation audit trail with optional filters (HR/admin only)."""
    return await report_service.query_audit_log(
        session,
        company_id,
        employee_id=employee_id,
        action=action,
        request_id=request_id,
        start_date=start_date,
        end_date=end_date,
        offset=offset,
        limit=limit,
    )
