# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status

from vacation_engine.api.deps import AuthDep, HRDep, validate_company_scope
from vacation_engine.db import SessionDep
from vacation_engine.schemas.accrual import AccrualResultResponse
from vacation_engine.schemas.adjustment import (
    BaseChangeListResponse,
    BaseChangePayload,
    BaseChangeResultResponse,
    RegisterSuspensionPayload,
    SuspensionListResponse,
    SuspensionResultResponse,
)
from vacation_engine.schemas.balance import (
    BalanceListResponse,
    BalanceResponse,
    BalanceSummaryResponse,
    HireDateUpdateResponse,
    InitializeBalancePayload,
    UpdateHireDatePayload,
)
from vacation_engine.services import accrual as accrual_service
from vacation_engine.services import adjustment as adjustment_service
from vacation_engine.services import balance as balance_service

balances_router = APIRouter(
    prefix="/companies/{company_id}/balances",
    tags=["balances"],
    dependencies=[Depends(validate_company_scope)],
)

employee_balance_router = APIRouter(
    prefix="/companies/{company_id}/employees/{employee_id}",
    tags=["balances"],
    dependencies=[Depends(validate_company_scope)],
)


# ---------------------------------------------------------------------------
# Company balances
# ---------------------------------------------------------------------------


@balances_router.post("", response_model=BalanceResponse, status_code=status.HTTP_201_CREATED)
async def initialize_balance(
    payload: InitializeBalancePayload,
    session: SessionDep,
    auth: HRDep,
) -> BalanceResponse:
    """Open a vacation balance for an employee (HR/admin only)."""
    return await balance_service.initialize_balance(session, auth, payload)


@balances_router.get("", response_model=BalanceListResponse)
async def list_balances(
    session: SessionDep,
    auth: HRDep,
    leader_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> BalanceListResponse:
    """List the company's balances, optionally for one leader's team."""
    return await balance_service.list_balances(
        session, auth.company_id, leader_id=leader_id, offset=offset, limit=limit
    )


# ---------------------------------------------------------------------------
# Employee balance
# ---------------------------------------------------------------------------


@employee_balance_router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> BalanceResponse:
    return await balance_service.get_balance(session, auth, employee_id)


@employee_balance_router.get("/balance/summary", response_model=BalanceSummaryResponse)
async def get_balance_summary(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> BalanceSummaryResponse:
    """Balance with service time, display values and calendar-day equivalent."""
    return await balance_service.get_balance_summary(session, auth, employee_id)


@employee_balance_router.get("/balance/projection", response_model=AccrualResultResponse)
async def project_balance(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    target_date: date = Query(),
) -> AccrualResultResponse:
    """Accrued days the employee will have reached on ``target_date``."""
    return await accrual_service.project_employee_accrual(session, auth, employee_id, target_date)


@employee_balance_router.put("/hire-date", response_model=HireDateUpdateResponse)
async def update_hire_date(
    employee_id: uuid.UUID,
    payload: UpdateHireDatePayload,
    session: SessionDep,
    auth: HRDep,
) -> HireDateUpdateResponse:
    """Correct the hire date and re-accrue (HR/admin only)."""
    return await adjustment_service.update_hire_date(session, auth, employee_id, payload)


# ---------------------------------------------------------------------------
# Suspensions
# ---------------------------------------------------------------------------


@employee_balance_router.post(
    "/suspensions",
    response_model=SuspensionResultResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_suspension(
    employee_id: uuid.UUID,
    payload: RegisterSuspensionPayload,
    session: SessionDep,
    auth: HRDep,
) -> SuspensionResultResponse:
    """Exclude a period from accrual (HR/admin only)."""
    return await adjustment_service.register_suspension(session, auth, employee_id, payload)


@employee_balance_router.get("/suspensions", response_model=SuspensionListResponse)
async def list_suspensions(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: HRDep,
    include_removed: bool = Query(default=False),
) -> SuspensionListResponse:
    return await adjustment_service.list_suspensions(
        session, auth.company_id, employee_id, include_removed=include_removed
    )


@employee_balance_router.delete("/suspensions/{suspension_id}", response_model=SuspensionResultResponse)
async def remove_suspension(
    employee_id: uuid.UUID,
    suspension_id: uuid.UUID,
    session: SessionDep,
    auth: HRDep,
    reason: str = Query(min_length=1, max_length=1000),
) -> SuspensionResultResponse:
    """Withdraw a suspension and restore the accrual it excluded (HR/admin only)."""
    return await adjustment_service.remove_suspension(session, auth, employee_id, suspension_id, reason)


# ---------------------------------------------------------------------------
# Calculation base changes
# ---------------------------------------------------------------------------


@employee_balance_router.post(
    "/base-changes",
    response_model=BaseChangeResultResponse,
    status_code=status.HTTP_201_CREATED,
)
async def change_calculation_base(
    employee_id: uuid.UUID,
    payload: BaseChangePayload,
    session: SessionDep,
    auth: HRDep,
) -> BaseChangeResultResponse:
    """Switch between the 360 and 365 day bases (HR/admin only)."""
    return await adjustment_service.change_calculation_base(session, auth, employee_id, payload)


@employee_balance_router.get("/base-changes", response_model=BaseChangeListResponse)
async def list_base_changes(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: HRDep,
) -> BaseChangeListResponse:
    return await adjustment_service.list_base_changes(session, auth.company_id, employee_id)
