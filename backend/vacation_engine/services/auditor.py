"""Audit engine: cross-checks persisted balances, requests and the audit trail.

Each check appends to a shared findings structure and runs inside its own
savepoint. A check that raises is rolled back to that savepoint, recorded as
a CRITICAL ``<NAME>_CHECK_ERROR`` finding, and the remaining checks still
run. The engine only writes its own report.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections import Counter, defaultdict
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from vacation_engine.config import get_settings
from vacation_engine.exceptions import AuditCheckError, NotFound
from vacation_engine.models.audit import AuditReport, VacationAuditLog
from vacation_engine.models.balance import VacationBalance
from vacation_engine.models.enums import AuditAction, AuditStatus, RequestStatus, Severity
from vacation_engine.models.request import VacationRequest
from vacation_engine.schemas.audit import (
    AuditFinding,
    AuditFindings,
    AuditMetricsResponse,
    AuditReportListResponse,
    AuditReportResponse,
    FindingFrequency,
    ScheduledAuditResponse,
)
from vacation_engine.services.audit import find_pii_keys
from vacation_engine.services.balance import derive_available, list_active_suspensions
from vacation_engine.services.calculator import project_accrual, round_days
from vacation_engine.services.clock import get_clock
from vacation_engine.services.company import get_company_service
from vacation_engine.services.notification import get_notification_sink

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_PII_DETAIL_LIMIT = 5


class AuditContext:
    """Data loaded once per run and shared by every check."""

    def __init__(
        self,
        session: AsyncSession,
        company_id: uuid.UUID,
        balances: Sequence[VacationBalance],
        requests: Sequence[VacationRequest],
    ) -> None:
        self.session = session
        self.company_id = company_id
        self.balances = balances
        self.requests = requests
        self.findings = AuditFindings()
        self.settings = get_settings()
        self.today = get_clock().today()

    def error(self, finding_type: str, severity: Severity, message: str, **extra: object) -> None:
        self.findings.errors.append(AuditFinding(type=finding_type, severity=severity, message=message, **extra))

    def warning(self, finding_type: str, severity: Severity, message: str, **extra: object) -> None:
        self.findings.warnings.append(AuditFinding(type=finding_type, severity=severity, message=message, **extra))


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


async def check_balance_integrity(ctx: AuditContext) -> None:
    """Stored available days must equal accrued - enjoyed - approved pending."""
    tolerance = ctx.settings.balance_tolerance
    drifted = []
    for balance in ctx.balances:
        expected = derive_available(balance.accrued_days, balance.enjoyed_days, balance.approved_pending_days)
        difference = abs(expected - balance.available_days)
        if difference > tolerance:
            drifted.append(
                {
                    "employee_id": str(balance.employee_id),
                    "stored": balance.available_days,
                    "expected": expected,
                    "difference": round_days(difference),
                }
            )
    if drifted:
        ctx.error(
            "BALANCE_INTEGRITY",
            Severity.HIGH,
            f"{len(drifted)} balance(s) have available days that do not match their counters",
            count=len(drifted),
            details={"balances": drifted},
        )


async def check_negative_balances(ctx: AuditContext) -> None:
    """Any negative counter, stored or derived, is corruption."""
    tolerance = ctx.settings.balance_tolerance
    negatives = []
    for balance in ctx.balances:
        derived = derive_available(balance.accrued_days, balance.enjoyed_days, balance.approved_pending_days)
        counters = {
            "accrued_days": balance.accrued_days,
            "enjoyed_days": balance.enjoyed_days,
            "approved_pending_days": balance.approved_pending_days,
        }
        offending = {name: value for name, value in counters.items() if value < 0}
        if balance.available_days < -tolerance:
            offending["available_days"] = balance.available_days
        if derived < -tolerance:
            offending["derived_available_days"] = derived
        if offending:
            negatives.append((balance, offending))

    if not negatives:
        return

    ctx.error(
        "NEGATIVE_BALANCE",
        Severity.CRITICAL,
        f"{len(negatives)} balance(s) have negative counters",
        count=len(negatives),
        details={"employees": [str(b.employee_id) for b, _ in negatives]},
    )
    for balance, offending in negatives:
        ctx.warning(
            "NEGATIVE_BALANCE_DETAIL",
            Severity.HIGH,
            f"Employee {balance.employee_id} has negative values",
            employee_id=balance.employee_id,
            details=offending,
        )


async def check_request_states(ctx: AuditContext) -> None:
    """Every stored status must belong to the state machine."""
    valid = {s.value for s in RequestStatus}
    invalid = [r for r in ctx.requests if r.status not in valid]
    if not invalid:
        return

    ctx.error(
        "INVALID_STATE",
        Severity.HIGH,
        f"{len(invalid)} request(s) have an unknown status",
        count=len(invalid),
    )
    for request in invalid:
        ctx.warning(
            "INVALID_STATE_DETAIL",
            Severity.MEDIUM,
            f"Request {request.id} has unknown status '{request.status}'",
            employee_id=request.employee_id,
            request_id=request.id,
            details={"status": request.status},
        )


async def check_approved_pending(ctx: AuditContext) -> None:
    """Stored approved-pending days must equal the HR-approved and scheduled requests."""
    tolerance = ctx.settings.balance_tolerance
    reserved = {RequestStatus.HR_APPROVED.value, RequestStatus.SCHEDULED.value}
    sums: dict[uuid.UUID, float] = defaultdict(float)
    for request in ctx.requests:
        if request.status in reserved:
            sums[request.employee_id] += request.requested_days

    for balance in ctx.balances:
        expected = round_days(sums.get(balance.employee_id, 0.0))
        if abs(expected - balance.approved_pending_days) > tolerance:
            ctx.warning(
                "APPROVED_PENDING_MISMATCH",
                Severity.MEDIUM,
                f"Employee {balance.employee_id}: approved pending {balance.approved_pending_days} "
                f"but reserved requests total {expected}",
                employee_id=balance.employee_id,
                details={"stored": balance.approved_pending_days, "expected": expected},
            )


async def check_enjoyment_logs(ctx: AuditContext) -> None:
    """Every enjoyed request needs an ``enjoy`` event in the audit trail."""
    enjoyed = [r for r in ctx.requests if r.status == RequestStatus.ENJOYED.value]
    if not enjoyed:
        return

    result = await ctx.session.execute(
        select(col(VacationAuditLog.request_id)).where(
            col(VacationAuditLog.company_id) == ctx.company_id,
            col(VacationAuditLog.action) == AuditAction.ENJOY.value,
            col(VacationAuditLog.request_id).in_([r.id for r in enjoyed]),
        )
    )
    logged = set(result.scalars().all())
    missing = [r for r in enjoyed if r.id not in logged]
    for request in missing:
        ctx.warning(
            "MISSING_ENJOYMENT_LOG",
            Severity.MEDIUM,
            f"Enjoyed request {request.id} has no enjoyment event",
            employee_id=request.employee_id,
            request_id=request.id,
        )
    if missing:
        ctx.warning(
            "MISSING_ENJOYMENT_LOG_SUMMARY",
            Severity.LOW,
            f"{len(missing)} of {len(enjoyed)} enjoyed request(s) lack an enjoyment event",
            count=len(missing),
        )


async def check_audit_log_privacy(ctx: AuditContext) -> None:
    """Audit snapshots must never carry names or emails."""
    result = await ctx.session.execute(
        select(VacationAuditLog).where(col(VacationAuditLog.company_id) == ctx.company_id)
    )
    leaking = []
    for entry in result.scalars().all():
        keys = find_pii_keys(entry.previous_state) | find_pii_keys(entry.new_state)
        if keys:
            leaking.append((entry, sorted(keys)))

    if not leaking:
        return

    ctx.error(
        "PII_IN_LOGS",
        Severity.CRITICAL,
        f"{len(leaking)} audit entr(ies) contain personal data",
        count=len(leaking),
    )
    for entry, keys in leaking[:_PII_DETAIL_LIMIT]:
        ctx.warning(
            "PII_IN_LOGS_DETAIL",
            Severity.HIGH,
            f"Audit entry {entry.id} contains {', '.join(keys)}",
            employee_id=entry.employee_id,
            request_id=entry.request_id,
            details={"audit_log_id": str(entry.id), "fields": keys},
        )


async def check_accrual_staleness(ctx: AuditContext) -> None:
    """Balances the daily sweep has not touched recently."""
    stale_after = ctx.settings.stale_accrual_days
    severe_after = ctx.settings.severely_stale_accrual_days
    for balance in ctx.balances:
        if balance.hire_date > ctx.today:
            continue
        if balance.last_accrual_date is None:
            ctx.warning(
                "OUTDATED_ACCRUAL",
                Severity.LOW,
                f"Employee {balance.employee_id} has never been accrued",
                employee_id=balance.employee_id,
                details={"days_since_accrual": None},
            )
            continue
        days = (ctx.today - balance.last_accrual_date).days
        if days > severe_after:
            ctx.warning(
                "SEVERELY_OUTDATED_ACCRUAL",
                Severity.MEDIUM,
                f"Employee {balance.employee_id} last accrued {days} days ago",
                employee_id=balance.employee_id,
                details={"days_since_accrual": days},
            )
        elif days > stale_after:
            ctx.warning(
                "OUTDATED_ACCRUAL",
                Severity.LOW,
                f"Employee {balance.employee_id} last accrued {days} days ago",
                employee_id=balance.employee_id,
                details={"days_since_accrual": days},
            )


async def check_accrual_drift(ctx: AuditContext) -> None:
    """Stored accrued days must match a recompute as of the last accrual date."""
    tolerance = ctx.settings.balance_tolerance
    error_threshold = ctx.settings.audit_drift_error_days
    for balance in ctx.balances:
        as_of = balance.last_accrual_date
        if as_of is None or as_of < balance.hire_date:
            continue
        suspensions = await list_active_suspensions(ctx.session, ctx.company_id, balance.employee_id)
        expected = project_accrual(
            balance.hire_date,
            as_of,
            base=balance.calculation_base,
            work_time_factor=balance.work_time_factor,
            suspensions=suspensions,
        ).accrued_days
        difference = round_days(abs(expected - balance.accrued_days))
        if difference <= tolerance:
            continue
        extra = {
            "employee_id": balance.employee_id,
            "details": {"stored": balance.accrued_days, "expected": expected, "as_of": as_of.isoformat()},
        }
        message = f"Employee {balance.employee_id}: accrued {balance.accrued_days}, recomputed {expected}"
        if difference > error_threshold:
            ctx.error("ACCRUAL_DRIFT", Severity.HIGH, message, **extra)
        else:
            ctx.warning("ACCRUAL_DRIFT", Severity.LOW, message, **extra)


CHECKS: dict[str, Callable[[AuditContext], Awaitable[None]]] = {
    "balance_integrity": check_balance_integrity,
    "negative_balances": check_negative_balances,
    "request_states": check_request_states,
    "approved_pending": check_approved_pending,
    "enjoyment_logs": check_enjoyment_logs,
    "audit_log_privacy": check_audit_log_privacy,
    "accrual_staleness": check_accrual_staleness,
    "accrual_drift": check_accrual_drift,
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def roll_up_status(findings: AuditFindings) -> AuditStatus:
    if findings.errors:
        return AuditStatus.FAILED
    if findings.warnings:
        return AuditStatus.WARNING
    return AuditStatus.PASSED


def _build_report_response(report: AuditReport) -> AuditReportResponse:
    return AuditReportResponse(
        id=report.id,
        company_id=report.company_id,
        timestamp=report.timestamp,
        status=AuditStatus(report.status),
        findings=AuditFindings.model_validate(report.findings),
        notification_sent=report.notification_sent,
        notification_error=report.notification_error,
    )


async def _run_check(ctx: AuditContext, name: str, check: Callable[[AuditContext], Awaitable[None]]) -> None:
    try:
        async with ctx.session.begin_nested():
            await check(ctx)
    except Exception as exc:
        failure = AuditCheckError(name, exc)
        logger.exception("Audit check %s failed for company=%s", name, ctx.company_id)
        ctx.error(
            f"{name.upper()}_CHECK_ERROR",
            Severity.CRITICAL,
            failure.message,
            details={"exception": type(exc).__name__},
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def run_audit(session: AsyncSession, company_id: uuid.UUID) -> AuditReportResponse:
    """Run every check for one company, persist the report and alert on CRITICAL errors."""
    started = time.perf_counter()

    balances = (
        await session.execute(select(VacationBalance).where(col(VacationBalance.company_id) == company_id))
    ).scalars().all()
    requests = (
        await session.execute(select(VacationRequest).where(col(VacationRequest.company_id) == company_id))
    ).scalars().all()

    ctx = AuditContext(session, company_id, list(balances), list(requests))
    for name, check in CHECKS.items():
        ctx.findings.checks.append(name)
        await _run_check(ctx, name, check)

    findings = ctx.findings
    summary = findings.summary
    summary.total_checks = len(findings.checks)
    summary.total_errors = len(findings.errors)
    summary.total_warnings = len(findings.warnings)
    summary.critical_errors = sum(1 for f in findings.errors if f.severity == Severity.CRITICAL)
    summary.high_errors = sum(1 for f in findings.errors if f.severity == Severity.HIGH)
    summary.employees_audited = len(ctx.balances)
    summary.requests_audited = len(ctx.requests)
    summary.execution_time_ms = round((time.perf_counter() - started) * 1000, 2)

    report = AuditReport(
        company_id=company_id,
        timestamp=get_clock().now(),
        status=roll_up_status(findings).value,
        findings=findings.model_dump(mode="json"),
    )

    if summary.critical_errors:
        logger.warning("Vacation audit for company=%s found %d critical error(s)", company_id, summary.critical_errors)
        try:
            await get_notification_sink().notify(company_id, Severity.CRITICAL.value, report.findings)
            report.notification_sent = True
        except Exception as exc:
            logger.exception("Audit notification failed for company=%s", company_id)
            report.notification_error = f"{type(exc).__name__}: {exc}"

    session.add(report)
    await session.commit()
    await session.refresh(report)

    logger.info(
        "Vacation audit company=%s status=%s errors=%d warnings=%d",
        company_id,
        report.status,
        summary.total_errors,
        summary.total_warnings,
    )
    return _build_report_response(report)


async def run_scheduled_audit(session: AsyncSession) -> ScheduledAuditResponse:
    """Audit every company in the company directory; one failure does not stop the rest."""
    reports: list[AuditReportResponse] = []
    failed_runs = 0
    for company in await get_company_service().list_companies():
        try:
            reports.append(await run_audit(session, company.id))
        except Exception:
            await session.rollback()
            logger.exception("Scheduled audit failed for company=%s", company.id)
            failed_runs += 1
    return ScheduledAuditResponse(audited=len(reports), failed_runs=failed_runs, reports=reports)


async def get_audit_report(
    session: AsyncSession,
    company_id: uuid.UUID,
    report_id: uuid.UUID,
) -> AuditReportResponse:
    result = await session.execute(
        select(AuditReport).where(
            col(AuditReport.id) == report_id,
            col(AuditReport.company_id) == company_id,
        )
    )
    report = result.scalar_one_or_none()
    if report is None:
        raise NotFound("Audit report not found")
    return _build_report_response(report)


async def get_audit_history(
    session: AsyncSession,
    company_id: uuid.UUID,
    *,
    days_back: int = 30,
    status_filter: AuditStatus | None = None,
    offset: int = 0,
    limit: int = 50,
) -> AuditReportListResponse:
    """Reports of the trailing ``days_back`` days, newest first."""
    since = get_clock().now() - timedelta(days=days_back)
    filters = [col(AuditReport.company_id) == company_id, col(AuditReport.timestamp) >= since]
    if status_filter is not None:
        filters.append(col(AuditReport.status) == status_filter.value)

    count_result = await session.execute(select(func.count()).select_from(AuditReport).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(AuditReport)
        .where(*filters)
        .order_by(col(AuditReport.timestamp).desc())
        .offset(offset)
        .limit(limit)
    )
    return AuditReportListResponse(
        items=[_build_report_response(r) for r in result.scalars().all()],
        total=total,
    )


async def get_last_audit(session: AsyncSession, company_id: uuid.UUID) -> AuditReportResponse:
    result = await session.execute(
        select(AuditReport)
        .where(col(AuditReport.company_id) == company_id)
        .order_by(col(AuditReport.timestamp).desc())
        .limit(1)
    )
    report = result.scalar_one_or_none()
    if report is None:
        raise NotFound("No audit has run for this company")
    return _build_report_response(report)


async def get_audit_metrics(
    session: AsyncSession,
    company_id: uuid.UUID,
    days_back: int = 30,
) -> AuditMetricsResponse:
    """Status counts, average findings and the most frequent finding types."""
    since = get_clock().now() - timedelta(days=days_back)
    result = await session.execute(
        select(AuditReport)
        .where(col(AuditReport.company_id) == company_id, col(AuditReport.timestamp) >= since)
        .order_by(col(AuditReport.timestamp).desc())
    )
    reports = [_build_report_response(r) for r in result.scalars().all()]

    statuses = Counter(r.status for r in reports)
    finding_types: Counter[str] = Counter()
    for report in reports:
        finding_types.update(f.type for f in report.findings.errors)
        finding_types.update(f.type for f in report.findings.warnings)

    total = len(reports)
    return AuditMetricsResponse(
        company_id=company_id,
        days_back=days_back,
        total_runs=total,
        passed=statuses[AuditStatus.PASSED],
        warning=statuses[AuditStatus.WARNING],
        failed=statuses[AuditStatus.FAILED],
        average_errors=round(sum(r.findings.summary.total_errors for r in reports) / total, 2) if total else 0.0,
        average_warnings=round(sum(r.findings.summary.total_warnings for r in reports) / total, 2) if total else 0.0,
        last_run_at=reports[0].timestamp if reports else None,
        last_status=reports[0].status if reports else None,
        most_frequent_findings=[
            FindingFrequency(type=name, occurrences=count) for name, count in finding_types.most_common(5)
        ],
    )
