# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from vacation_engine.models.enums import AuditStatus, Severity

# ---------------------------------------------------------------------------
# Audit engine findings
# ---------------------------------------------------------------------------


class AuditFinding(BaseModel):
    """One error or warning produced by an audit check."""

    type: str
    severity: Severity
    message: str
    count: int | None = None
    employee_id: uuid.UUID | None = None
    request_id: uuid.UUID | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class AuditSummary(BaseModel):
    total_checks: int = 0
    total_errors: int = 0
    total_warnings: int = 0
    critical_errors: int = 0
    high_errors: int = 0
    employees_audited: int = 0
    requests_audited: int = 0
    execution_time_ms: float = 0.0


class AuditFindings(BaseModel):
    checks: list[str] = Field(default_factory=list)
    errors: list[AuditFinding] = Field(default_factory=list)
    warnings: list[AuditFinding] = Field(default_factory=list)
    summary: AuditSummary = Field(default_factory=AuditSummary)


class AuditReportResponse(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    timestamp: datetime
    status: AuditStatus
    findings: AuditFindings
    notification_sent: bool
    notification_error: str | None


class AuditReportListResponse(BaseModel):
    items: list[AuditReportResponse]
    total: int


class FindingFrequency(BaseModel):
    type: str
    occurrences: int


class AuditMetricsResponse(BaseModel):
    """Aggregates over the audit runs of a trailing window."""

    company_id: uuid.UUID
    days_back: int
    total_runs: int
    passed: int
    warning: int
    failed: int
    average_errors: float
    average_warnings: float
    last_run_at: datetime | None
    last_status: AuditStatus | None
    most_frequent_findings: list[FindingFrequency]


class ScheduledAuditResponse(BaseModel):
    audited: int
    failed_runs: int
    reports: list[AuditReportResponse]


# ---------------------------------------------------------------------------
# Audit trail queries
# ---------------------------------------------------------------------------


class AuditLogEntryResponse(BaseModel):
    """Response schema for a single audit trail entry."""

    id: uuid.UUID
    company_id: uuid.UUID
    employee_id: uuid.UUID
    action: str
    request_id: uuid.UUID | None
    performed_by: uuid.UUID
    previous_state: dict[str, Any] | None
    new_state: dict[str, Any] | None
    quantity: float | None
    description: str | None
    timestamp: datetime


class AuditLogListResponse(BaseModel):
    """Paginated list of audit trail entries."""

    items: list[AuditLogEntryResponse]
    total: int
