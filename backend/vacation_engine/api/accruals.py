# ruff: noqa: B008, TC001, TC003
"""API endpoints for accrual computation and the daily sweep."""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query

from vacation_engine.api.deps import AuthDep, HRDep, validate_company_scope
from vacation_engine.db import SessionDep
from vacation_engine.schemas.accrual import (
    AccrualResultResponse,
    AccrualRunResponse,
    CalculateAccrualPayload,
    MonthlyAccrualTableResponse,
    ProjectAccrualPayload,
)
from vacation_engine.services import accrual as accrual_service

# ---------------------------------------------------------------------------
# Stateless calculator: POST /accruals/calculate, POST /accruals/project
# ---------------------------------------------------------------------------

calculator_router = APIRouter(
    prefix="/accruals",
    tags=["accruals"],
)


@calculator_router.post("/calculate", response_model=AccrualResultResponse)
async def calculate_accrual(payload: CalculateAccrualPayload) -> AccrualResultResponse:
    """Accrued days from hire date to ``as_of`` (today when omitted). Future dates are rejected."""
    return accrual_service.calculate(payload)


@calculator_router.post("/project", response_model=AccrualResultResponse)
async def project_accrual(payload: ProjectAccrualPayload) -> AccrualResultResponse:
    """Accrued days on any target date, including future ones."""
    return accrual_service.project(payload)


# ---------------------------------------------------------------------------
# Company sweep: /companies/{company_id}/accruals
# ---------------------------------------------------------------------------

company_accrual_router = APIRouter(
    prefix="/companies/{company_id}/accruals",
    tags=["accruals"],
    dependencies=[Depends(validate_company_scope)],
)


@company_accrual_router.post("/run", response_model=AccrualRunResponse)
async def run_accruals(
    session: SessionDep,
    auth: HRDep,
    run_date: date | None = Query(default=None),
) -> AccrualRunResponse:
    """Manually trigger the daily accrual sweep (HR/admin only).

    Useful for catching up after an outage. Balances already accrued to
    ``run_date`` or later are left untouched.
    """
    result = await accrual_service.run_daily_accrual(session, auth.company_id, run_date)
    return result.to_response()


@company_accrual_router.get("/monthly-table", response_model=MonthlyAccrualTableResponse)
async def get_monthly_table(
    session: SessionDep,
    auth: AuthDep,
    employee_id: uuid.UUID = Query(),
    year: int = Query(ge=1900, le=2200),
) -> MonthlyAccrualTableResponse:
    """Month-by-month accrual of an employee for one calendar year."""
    return await accrual_service.get_monthly_accrual_table(session, auth, employee_id, year)
