# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from vacation_engine.api.deps import HRDep, validate_company_scope
from vacation_engine.db import SessionDep
from vacation_engine.models.enums import AuditStatus
from vacation_engine.schemas.audit import AuditMetricsResponse, AuditReportListResponse, AuditReportResponse
from vacation_engine.services import auditor as auditor_service

audits_router = APIRouter(
    prefix="/companies/{company_id}/audits",
    tags=["audits"],
    dependencies=[Depends(validate_company_scope)],
)


@audits_router.post("/run", response_model=AuditReportResponse)
async def run_audit(
    session: SessionDep,
    auth: HRDep,
) -> AuditReportResponse:
    """Run every integrity check for the company and store the report (HR/admin only)."""
    return await auditor_service.run_audit(session, auth.company_id)


@audits_router.get("", response_model=AuditReportListResponse)
async def get_audit_history(
    session: SessionDep,
    auth: HRDep,
    days_back: int = Query(default=30, ge=1, le=365),
    status_filter: AuditStatus | None = Query(default=None, alias="status"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditReportListResponse:
    """Audit reports of the trailing window, newest first."""
    return await auditor_service.get_audit_history(
        session,
        auth.company_id,
        days_back=days_back,
        status_filter=status_filter,
        offset=offset,
        limit=limit,
    )


@audits_router.get("/last", response_model=AuditReportResponse)
async def get_last_audit(
    session: SessionDep,
    auth: HRDep,
) -> AuditReportResponse:
    return await auditor_service.get_last_audit(session, auth.company_id)


@audits_router.get("/metrics", response_model=AuditMetricsResponse)
async def get_audit_metrics(
    session: SessionDep,
    auth: HRDep,
    days_back: int = Query(default=30, ge=1, le=365),
) -> AuditMetricsResponse:
    """Run counts per status and the most frequent finding types."""
    return await auditor_service.get_audit_metrics(session, auth.company_id, days_back)


@audits_router.get("/{report_id}", response_model=AuditReportResponse)
async def get_audit_report(
    report_id: uuid.UUID,
    session: SessionDep,
    auth: HRDep,
) -> AuditReportResponse:
    return await auditor_service.get_audit_report(session, auth.company_id, report_id)
