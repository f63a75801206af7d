# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from vacation_engine.api.deps import AuthDep, HRDep, validate_company_scope
from vacation_engine.db import SessionDep
from vacation_engine.models.enums import RequestStatus, Role
from vacation_engine.schemas.request import (
    CancelPayload,
    CreateRequestPayload,
    DecisionPayload,
    EnjoyedResponse,
    OverdueRequestListResponse,
    RequestHistoryResponse,
    RequestListResponse,
    RequestResponse,
    SchedulePayload,
)
from vacation_engine.services import request as request_service

requests_router = APIRouter(
    prefix="/companies/{company_id}/requests",
    tags=["requests"],
    dependencies=[Depends(validate_company_scope)],
)


@requests_router.post("", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    payload: CreateRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Submit a vacation request; it waits for the leader's decision."""
    return await request_service.create_request(session, auth, payload)


@requests_router.get("", response_model=RequestListResponse)
async def list_requests(
    session: SessionDep,
    auth: AuthDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    employee_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> RequestListResponse:
    """List requests. Employees see their own, leaders their team's, HR and admins everything."""
    leader_id = None
    if auth.role == Role.EMPLOYEE:
        employee_id = auth.user_id
    elif auth.role == Role.LEADER and employee_id != auth.user_id:
        leader_id = auth.user_id
    return await request_service.list_requests(
        session,
        auth.company_id,
        status_filter=status_filter,
        employee_id=employee_id,
        leader_id=leader_id,
        offset=offset,
        limit=limit,
    )


@requests_router.get("/pending/leader", response_model=RequestListResponse)
async def list_pending_for_leader(
    session: SessionDep,
    auth: AuthDep,
) -> RequestListResponse:
    """Requests awaiting the caller's leader decision."""
    return await request_service.list_pending_for_leader(session, auth)


@requests_router.get("/pending/hr", response_model=RequestListResponse)
async def list_pending_for_hr(
    session: SessionDep,
    auth: HRDep,
) -> RequestListResponse:
    """Leader-approved requests awaiting HR (HR/admin only)."""
    return await request_service.list_pending_for_hr(session, auth)


@requests_router.get("/pending/overdue", response_model=OverdueRequestListResponse)
async def list_overdue_pending(
    session: SessionDep,
    auth: HRDep,
) -> OverdueRequestListResponse:
    """Requests waiting longer than the approval SLA (HR/admin only)."""
    return await request_service.list_overdue_pending(session, auth)


@requests_router.get("/{request_id}", response_model=RequestResponse)
async def get_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    return await request_service.get_request(session, auth, request_id)


@requests_router.get("/{request_id}/history", response_model=RequestHistoryResponse)
async def get_request_history(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> RequestHistoryResponse:
    """Audit trail of a single request, oldest first."""
    return await request_service.get_request_history(session, auth, request_id)


@requests_router.post("/{request_id}/leader-decision", response_model=RequestResponse)
async def leader_decision(
    request_id: uuid.UUID,
    payload: DecisionPayload,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Approve or reject as the employee's leader. Rejection requires comments."""
    return await request_service.leader_decision(session, auth, request_id, payload)


@requests_router.post("/{request_id}/hr-decision", response_model=RequestResponse)
async def hr_decision(
    request_id: uuid.UUID,
    payload: DecisionPayload,
    session: SessionDep,
    auth: HRDep,
) -> RequestResponse:
    """Approve (reserving the days) or reject a leader-approved request."""
    return await request_service.hr_decision(session, auth, request_id, payload)


@requests_router.post("/{request_id}/schedule", response_model=RequestResponse)
async def schedule_request(
    request_id: uuid.UUID,
    payload: SchedulePayload,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Fix the dates of an HR-approved request."""
    return await request_service.schedule_request(session, auth, request_id, payload)


@requests_router.post("/{request_id}/enjoy", response_model=EnjoyedResponse)
async def mark_enjoyed(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: HRDep,
) -> EnjoyedResponse:
    """Record that a scheduled vacation was taken (HR/admin only)."""
    return await request_service.mark_enjoyed(session, auth, request_id)


@requests_router.post("/{request_id}/cancel", response_model=RequestResponse)
async def cancel_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: CancelPayload | None = None,
) -> RequestResponse:
    """Cancel a request before it is enjoyed. Releases any reservation."""
    return await request_service.cancel_request(session, auth, request_id, payload)
