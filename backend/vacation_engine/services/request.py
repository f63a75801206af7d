# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlmodel import col

from vacation_engine.config import get_settings
from vacation_engine.exceptions import (
    BusinessRuleViolation,
    DataIntegrityError,
    IllegalTransition,
    InvalidDates,
    NotAuthorized,
    NotFound,
    OverlappingRequest,
    ValidationError,
)
from vacation_engine.models.audit import VacationAuditLog
from vacation_engine.models.base import as_utc
from vacation_engine.models.enums import AuditAction, RejectionStage, RequestAction, RequestStatus, Role
from vacation_engine.models.request import VacationRequest
from vacation_engine.schemas.request import (
    EnjoyedResponse,
    OverdueRequestListResponse,
    OverdueRequestResponse,
    RequestEventResponse,
    RequestHistoryResponse,
    RequestListResponse,
    RequestResponse,
)
from vacation_engine.services.audit import balance_snapshot, request_snapshot, write_audit_event
from vacation_engine.services.balance import (
    apply_counters,
    build_balance_response,
    ensure_available,
    ensure_hr_or_admin,
    get_balance_for_update,
)
from vacation_engine.services.clock import get_clock

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vacation_engine.models.balance import VacationBalance
    from vacation_engine.schemas.auth import AuthContext
    from vacation_engine.schemas.request import (
        CancelPayload,
        CreateRequestPayload,
        DecisionPayload,
        SchedulePayload,
    )

# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

TRANSITIONS: dict[tuple[RequestStatus, RequestAction], RequestStatus] = {
    (RequestStatus.REQUESTED, RequestAction.LEADER_APPROVE): RequestStatus.LEADER_APPROVED,
    (RequestStatus.REQUESTED, RequestAction.LEADER_REJECT): RequestStatus.LEADER_REJECTED,
    (RequestStatus.REQUESTED, RequestAction.CANCEL): RequestStatus.CANCELLED,
    (RequestStatus.LEADER_APPROVED, RequestAction.HR_APPROVE): RequestStatus.HR_APPROVED,
    (RequestStatus.LEADER_APPROVED, RequestAction.HR_REJECT): RequestStatus.HR_REJECTED,
    (RequestStatus.LEADER_APPROVED, RequestAction.CANCEL): RequestStatus.CANCELLED,
    (RequestStatus.HR_APPROVED, RequestAction.SCHEDULE): RequestStatus.SCHEDULED,
    (RequestStatus.HR_APPROVED, RequestAction.CANCEL): RequestStatus.CANCELLED,
    (RequestStatus.SCHEDULED, RequestAction.ENJOY): RequestStatus.ENJOYED,
    (RequestStatus.SCHEDULED, RequestAction.CANCEL): RequestStatus.CANCELLED,
}

# Requests that block overlapping date ranges.
ACTIVE_STATUSES = frozenset(
    {
        RequestStatus.REQUESTED,
        RequestStatus.LEADER_APPROVED,
        RequestStatus.HR_APPROVED,
        RequestStatus.SCHEDULED,
    }
)

# Requests whose days sit in approved_pending_days.
RESERVED_STATUSES = frozenset({RequestStatus.HR_APPROVED, RequestStatus.SCHEDULED})

TERMINAL_STATUSES = frozenset(
    {
        RequestStatus.LEADER_REJECTED,
        RequestStatus.HR_REJECTED,
        RequestStatus.ENJOYED,
        RequestStatus.CANCELLED,
    }
)


def parse_status(value: str) -> RequestStatus:
    try:
        return RequestStatus(value)
    except ValueError:
        msg = f"Request has an unknown status '{value}'"
        raise DataIntegrityError(msg, code="INVALID_STATE") from None


def next_status(current: str, action: RequestAction) -> RequestStatus:
    """Target status for ``action`` or IllegalTransition when there is no edge."""
    status = parse_status(current)
    target = TRANSITIONS.get((status, action))
    if target is None:
        msg = f"Cannot {action.value} a request in status '{status.value}'"
        raise IllegalTransition(msg)
    return target


def allowed_actions(current: str) -> list[RequestAction]:
    status = parse_status(current)
    return [action for (source, action) in TRANSITIONS if source == status]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_request_response(request: VacationRequest) -> RequestResponse:
    """Map a request model to its response schema."""
    return RequestResponse(
        id=request.id,
        company_id=request.company_id,
        employee_id=request.employee_id,
        requested_days=request.requested_days,
        start_date=request.start_date,
        end_date=request.end_date,
        status=RequestStatus(request.status),
        employee_notes=request.employee_notes,
        leader_id=request.leader_id,
        leader_approval_date=request.leader_approval_date,
        leader_comments=request.leader_comments,
        hr_approver_id=request.hr_approver_id,
        hr_approval_date=request.hr_approval_date,
        hr_comments=request.hr_comments,
        rejection_reason=request.rejection_reason,
        rejected_by=request.rejected_by,
        scheduled_at=request.scheduled_at,
        enjoyed_date=request.enjoyed_date,
        cancelled_at=request.cancelled_at,
        cancelled_by=request.cancelled_by,
        cancellation_reason=request.cancellation_reason,
        version=request.version,
        created_at=request.created_at,
    )


async def _get_request_or_404(
    session: AsyncSession,
    company_id: uuid.UUID,
    request_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> VacationRequest:
    """Fetch a request by ID scoped to company. Raises 404 if not found."""
    query = select(VacationRequest).where(
        col(VacationRequest.id) == request_id,
        col(VacationRequest.company_id) == company_id,
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFound("Request not found")
    return request


async def _check_request_overlap(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    start_date: date,
    end_date: date,
    exclude_request_id: uuid.UUID | None = None,
) -> None:
    """Raise 409 if an active request of the employee shares any day with the range.

    Both ranges are inclusive, so they overlap when
    existing.start_date <= new.end_date AND existing.end_date >= new.start_date.
    """
    query = select(VacationRequest).where(
        col(VacationRequest.company_id) == company_id,
        col(VacationRequest.employee_id) == employee_id,
        col(VacationRequest.status).in_([s.value for s in ACTIVE_STATUSES]),
        col(VacationRequest.start_date) <= end_date,
        col(VacationRequest.end_date) >= start_date,
    )
    if exclude_request_id is not None:
        query = query.where(col(VacationRequest.id) != exclude_request_id)

    result = await session.execute(query.limit(1))
    existing = result.scalar_one_or_none()
    if existing is not None:
        msg = (
            f"Dates overlap active request {existing.id} "
            f"({existing.start_date} .. {existing.end_date}, {existing.status})"
        )
        raise OverlappingRequest(msg)


def _ensure_can_decide_as_leader(auth: AuthContext, request: VacationRequest, balance: VacationBalance) -> None:
    """The assigned leader decides; HR and admins may override."""
    if auth.user_id == request.employee_id and not auth.is_admin:
        raise NotAuthorized("Employees cannot decide on their own requests")
    if auth.is_hr_or_admin:
        return
    if balance.leader_id is not None:
        if auth.user_id == balance.leader_id:
            return
    elif auth.role == Role.LEADER:
        return
    raise NotAuthorized("Only the employee's leader, HR or an admin may decide at the leader stage")


def _ensure_owner_or_admin(auth: AuthContext, request: VacationRequest, action: str) -> None:
    if auth.user_id != request.employee_id and not auth.is_admin:
        msg = f"Only the requesting employee or an admin may {action} this request"
        raise NotAuthorized(msg)


def _ensure_can_view(auth: AuthContext, request: VacationRequest) -> None:
    if auth.is_hr_or_admin or auth.user_id in (request.employee_id, request.leader_id):
        return
    raise NotAuthorized("Not authorized to view this request")


def _require_reason(comments: str | None) -> str:
    reason = (comments or "").strip()
    if not reason:
        raise ValidationError("A rejection reason is required")
    return reason


def _state(request: VacationRequest, balance: VacationBalance | None = None) -> dict[str, Any]:
    state = request_snapshot(request)
    if balance is not None:
        state["balance"] = balance_snapshot(balance)
    return state


async def _record_transition(
    session: AsyncSession,
    auth: AuthContext,
    request: VacationRequest,
    action: AuditAction,
    before: dict[str, Any],
    *,
    balance: VacationBalance | None = None,
    description: str | None = None,
) -> None:
    request.version += 1
    await write_audit_event(
        session,
        company_id=request.company_id,
        employee_id=request.employee_id,
        action=action,
        performed_by=auth.user_id,
        request_id=request.id,
        previous_state=before,
        new_state=_state(request, balance),
        quantity=request.requested_days,
        description=description,
    )


# ---------------------------------------------------------------------------
# Public API: transitions
# ---------------------------------------------------------------------------


async def create_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateRequestPayload,
) -> RequestResponse:
    """Create a request in ``requested`` status.

    Flow:
    1. Validate day count and date order
    2. Lock the employee's balance
    3. Reject overlaps with the employee's active requests
    4. Check available days (nothing is reserved yet)
    5. Insert the request and its audit event, commit
    """
    if auth.user_id != payload.employee_id and not auth.is_hr_or_admin:
        raise NotAuthorized("Employees may only request vacation for themselves")

    # 1. Input validation.
    if payload.requested_days <= 0:
        raise ValidationError("requested_days must be positive")
    if payload.end_date < payload.start_date:
        msg = f"end_date {payload.end_date} is before start_date {payload.start_date}"
        raise InvalidDates(msg)

    # 2. Lock balance.
    balance = await get_balance_for_update(session, auth.company_id, payload.employee_id)

    # 3. Overlap guard.
    await _check_request_overlap(
        session, auth.company_id, payload.employee_id, payload.start_date, payload.end_date
    )

    # 4. Balance check.
    ensure_available(balance, payload.requested_days)

    # 5. Insert.
    vacation_request = VacationRequest(
        company_id=auth.company_id,
        employee_id=payload.employee_id,
        requested_days=payload.requested_days,
        start_date=payload.start_date,
        end_date=payload.end_date,
        status=RequestStatus.REQUESTED.value,
        employee_notes=payload.notes,
        leader_id=balance.leader_id,
        created_at=get_clock().now(),
    )
    session.add(vacation_request)
    await session.flush()

    await write_audit_event(
        session,
        company_id=auth.company_id,
        employee_id=payload.employee_id,
        action=AuditAction.REQUEST,
        performed_by=auth.user_id,
        request_id=vacation_request.id,
        new_state=request_snapshot(vacation_request),
        quantity=payload.requested_days,
    )

    await session.commit()
    await session.refresh(vacation_request)
    return _build_request_response(vacation_request)


async def leader_decision(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: DecisionPayload,
) -> RequestResponse:
    """Approve or reject at the leader stage.

    Approval re-checks that available days still cover the request; nothing is
    reserved. Rejection needs a reason and is terminal.
    """
    vacation_request = await _get_request_or_404(session, auth.company_id, request_id, for_update=True)
    action = RequestAction.LEADER_APPROVE if payload.approve else RequestAction.LEADER_REJECT
    target = next_status(vacation_request.status, action)

    balance = await get_balance_for_update(session, auth.company_id, vacation_request.employee_id)
    _ensure_can_decide_as_leader(auth, vacation_request, balance)

    now = get_clock().now()
    before = _state(vacation_request)

    if payload.approve:
        ensure_available(balance, vacation_request.requested_days)
        vacation_request.leader_approval_date = now
    else:
        vacation_request.rejection_reason = _require_reason(payload.comments)
        vacation_request.rejected_by = RejectionStage.LEADER.value

    vacation_request.leader_id = auth.user_id
    vacation_request.leader_comments = payload.comments
    vacation_request.status = target.value

    await _record_transition(
        session,
        auth,
        vacation_request,
        AuditAction.APPROVE if payload.approve else AuditAction.REJECT,
        before,
        description=f"Leader {'approved' if payload.approve else 'rejected'}",
    )

    await session.commit()
    await session.refresh(vacation_request)
    return _build_request_response(vacation_request)


async def hr_decision(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: DecisionPayload,
) -> RequestResponse:
    """Approve or reject at the HR stage.

    Approval re-checks the balance and reserves the days in
    ``approved_pending_days``; it is the only transition that reserves.
    """
    vacation_request = await _get_request_or_404(session, auth.company_id, request_id, for_update=True)
    action = RequestAction.HR_APPROVE if payload.approve else RequestAction.HR_REJECT
    target = next_status(vacation_request.status, action)
    ensure_hr_or_admin(auth, "decide at the HR stage")

    now = get_clock().now()
    before = _state(vacation_request)
    balance: VacationBalance | None = None

    if payload.approve:
        balance = await get_balance_for_update(session, auth.company_id, vacation_request.employee_id)
        ensure_available(balance, vacation_request.requested_days)
        before = _state(vacation_request, balance)
        apply_counters(
            balance,
            approved_pending_days=balance.approved_pending_days + vacation_request.requested_days,
        )
        vacation_request.hr_approval_date = now
    else:
        vacation_request.rejection_reason = _require_reason(payload.comments)
        vacation_request.rejected_by = RejectionStage.HR.value

    vacation_request.hr_approver_id = auth.user_id
    vacation_request.hr_comments = payload.comments
    vacation_request.status = target.value

    await _record_transition(
        session,
        auth,
        vacation_request,
        AuditAction.APPROVE if payload.approve else AuditAction.REJECT,
        before,
        balance=balance,
        description=f"HR {'approved' if payload.approve else 'rejected'}",
    )

    await session.commit()
    await session.refresh(vacation_request)
    return _build_request_response(vacation_request)


async def schedule_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: SchedulePayload,
) -> RequestResponse:
    """Fix the concrete dates of an HR-approved request. Counters are untouched."""
    vacation_request = await _get_request_or_404(session, auth.company_id, request_id, for_update=True)
    target = next_status(vacation_request.status, RequestAction.SCHEDULE)
    if auth.user_id != vacation_request.employee_id and not auth.is_hr_or_admin:
        raise NotAuthorized("Only the employee, HR or an admin may schedule this request")
    if payload.end_date < payload.start_date:
        msg = f"end_date {payload.end_date} is before start_date {payload.start_date}"
        raise InvalidDates(msg)

    await _check_request_overlap(
        session,
        auth.company_id,
        vacation_request.employee_id,
        payload.start_date,
        payload.end_date,
        exclude_request_id=vacation_request.id,
    )

    before = _state(vacation_request)
    vacation_request.start_date = payload.start_date
    vacation_request.end_date = payload.end_date
    vacation_request.scheduled_at = get_clock().now()
    vacation_request.status = target.value

    await _record_transition(
        session,
        auth,
        vacation_request,
        AuditAction.SCHEDULE,
        before,
        description=f"Scheduled {payload.start_date}..{payload.end_date}",
    )

    await session.commit()
    await session.refresh(vacation_request)
    return _build_request_response(vacation_request)


async def mark_enjoyed(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> EnjoyedResponse:
    """Consume the reservation: approved_pending -= n, enjoyed += n.

    Only legal once today's date has reached the scheduled start date.
    """
    vacation_request = await _get_request_or_404(session, auth.company_id, request_id, for_update=True)
    target = next_status(vacation_request.status, RequestAction.ENJOY)
    ensure_hr_or_admin(auth, "mark vacation as enjoyed")

    today = get_clock().today()
    if today < vacation_request.start_date:
        msg = f"Vacation starting {vacation_request.start_date} cannot be marked enjoyed on {today}"
        raise BusinessRuleViolation(msg)

    balance = await get_balance_for_update(session, auth.company_id, vacation_request.employee_id)
    before = _state(vacation_request, balance)
    apply_counters(
        balance,
        enjoyed_days=balance.enjoyed_days + vacation_request.requested_days,
        approved_pending_days=balance.approved_pending_days - vacation_request.requested_days,
    )
    vacation_request.enjoyed_date = today
    vacation_request.status = target.value

    await _record_transition(session, auth, vacation_request, AuditAction.ENJOY, before, balance=balance)

    await session.commit()
    await session.refresh(vacation_request)
    return EnjoyedResponse(
        request=_build_request_response(vacation_request),
        balance=build_balance_response(balance),
    )


async def cancel_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: CancelPayload | None = None,
) -> RequestResponse:
    """Cancel a non-terminal request, releasing any reservation.

    The employee who made the request or an admin can cancel.
    """
    vacation_request = await _get_request_or_404(session, auth.company_id, request_id, for_update=True)
    current = parse_status(vacation_request.status)
    target = next_status(vacation_request.status, RequestAction.CANCEL)
    _ensure_owner_or_admin(auth, vacation_request, "cancel")

    before = _state(vacation_request)
    balance: VacationBalance | None = None
    if current in RESERVED_STATUSES:
        balance = await get_balance_for_update(session, auth.company_id, vacation_request.employee_id)
        before = _state(vacation_request, balance)
        apply_counters(
            balance,
            approved_pending_days=balance.approved_pending_days - vacation_request.requested_days,
        )

    vacation_request.cancelled_at = get_clock().now()
    vacation_request.cancelled_by = auth.user_id
    vacation_request.cancellation_reason = payload.reason if payload else None
    vacation_request.status = target.value

    await _record_transition(session, auth, vacation_request, AuditAction.CANCEL, before, balance=balance)

    await session.commit()
    await session.refresh(vacation_request)
    return _build_request_response(vacation_request)


# ---------------------------------------------------------------------------
# Public API: queries
# ---------------------------------------------------------------------------


async def get_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> RequestResponse:
    """Get a single request by ID."""
    vacation_request = await _get_request_or_404(session, auth.company_id, request_id)
    _ensure_can_view(auth, vacation_request)
    return _build_request_response(vacation_request)


async def list_requests(
    session: AsyncSession,
    company_id: uuid.UUID,
    *,
    status_filter: RequestStatus | None = None,
    employee_id: uuid.UUID | None = None,
    leader_id: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """List requests with optional filters, newest first."""
    filters = [col(VacationRequest.company_id) == company_id]

    if status_filter is not None:
        filters.append(col(VacationRequest.status) == status_filter.value)
    if employee_id is not None:
        filters.append(col(VacationRequest.employee_id) == employee_id)
    if leader_id is not None:
        filters.append(col(VacationRequest.leader_id) == leader_id)

    count_result = await session.execute(select(func.count()).select_from(VacationRequest).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(VacationRequest)
        .where(*filters)
        .order_by(col(VacationRequest.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    return RequestListResponse(
        items=[_build_request_response(r) for r in result.scalars().all()],
        total=total,
    )


async def list_pending_for_leader(
    session: AsyncSession,
    auth: AuthContext,
) -> RequestListResponse:
    """Requests awaiting the caller's leader decision (all of them for HR/admin)."""
    leader_id = None if auth.is_hr_or_admin else auth.user_id
    return await list_requests(
        session, auth.company_id, status_filter=RequestStatus.REQUESTED, leader_id=leader_id, limit=100
    )


async def list_pending_for_hr(
    session: AsyncSession,
    auth: AuthContext,
) -> RequestListResponse:
    ensure_hr_or_admin(auth, "list requests awaiting HR")
    return await list_requests(session, auth.company_id, status_filter=RequestStatus.LEADER_APPROVED, limit=100)


async def list_overdue_pending(
    session: AsyncSession,
    auth: AuthContext,
) -> OverdueRequestListResponse:
    """Requests waiting on a leader or HR decision longer than the approval SLA."""
    ensure_hr_or_admin(auth, "list overdue requests")
    sla_hours = get_settings().approval_sla_hours
    now = get_clock().now()
    cutoff = timedelta(hours=sla_hours)

    result = await session.execute(
        select(VacationRequest)
        .where(
            col(VacationRequest.company_id) == auth.company_id,
            col(VacationRequest.status).in_(
                [RequestStatus.REQUESTED.value, RequestStatus.LEADER_APPROVED.value]
            ),
        )
        .order_by(col(VacationRequest.created_at))
    )

    items: list[OverdueRequestResponse] = []
    for vacation_request in result.scalars().all():
        if vacation_request.status == RequestStatus.REQUESTED:
            awaiting, waiting_since = "leader", vacation_request.created_at
        else:
            awaiting = "hr"
            waiting_since = vacation_request.leader_approval_date or vacation_request.created_at
        waited = now - as_utc(waiting_since)
        if waited > cutoff:
            items.append(
                OverdueRequestResponse(
                    request=_build_request_response(vacation_request),
                    awaiting=awaiting,
                    hours_pending=round(waited.total_seconds() / 3600, 1),
                )
            )

    return OverdueRequestListResponse(items=items, total=len(items), sla_hours=sla_hours)


async def get_request_history(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> RequestHistoryResponse:
    """Every audit trail event of a request, oldest first."""
    vacation_request = await _get_request_or_404(session, auth.company_id, request_id)
    _ensure_can_view(auth, vacation_request)

    result = await session.execute(
        select(VacationAuditLog)
        .where(
            col(VacationAuditLog.company_id) == auth.company_id,
            col(VacationAuditLog.request_id) == request_id,
        )
        .order_by(col(VacationAuditLog.timestamp))
    )
    return RequestHistoryResponse(
        request_id=vacation_request.id,
        status=RequestStatus(vacation_request.status),
        events=[
            RequestEventResponse(
                id=entry.id,
                action=entry.action,
                performed_by=entry.performed_by,
                previous_state=entry.previous_state,
                new_state=entry.new_state,
                quantity=entry.quantity,
                description=entry.description,
                timestamp=entry.timestamp,
            )
            for entry in result.scalars().all()
        ],
    )
