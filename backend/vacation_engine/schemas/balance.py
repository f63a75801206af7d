# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field


class InitializeBalancePayload(BaseModel):
    """Open a vacation balance for an employee.

    ``hire_date`` and ``leader_id`` default to the employee directory values.
    """

    employee_id: uuid.UUID
    hire_date: date | None = None
    calculation_base: Literal[360, 365] = 365
    work_time_factor: float = Field(default=1.0, gt=0, le=1)
    leader_id: uuid.UUID | None = None


class UpdateHireDatePayload(BaseModel):
    hire_date: date
    reason: str = Field(min_length=1, max_length=1000)


class BalanceResponse(BaseModel):
    """Stored counters of one employee's balance."""

    company_id: uuid.UUID
    employee_id: uuid.UUID
    hire_date: date
    calculation_base: int
    work_time_factor: float
    accrued_days: float
    enjoyed_days: float
    historical_enjoyed_days: float
    approved_pending_days: float
    available_days: float
    last_accrual_date: date | None
    leader_id: uuid.UUID | None
    version: int
    updated_at: datetime


class BalanceListResponse(BaseModel):
    items: list[BalanceResponse]
    total: int


class DisplayBalance(BaseModel):
    """Counters rounded to two decimals for people."""

    accrued_days: float
    enjoyed_days: float
    approved_pending_days: float
    available_days: float


class BalanceSummaryResponse(BaseModel):
    """Balance with service time, display values and working-day equivalents."""

    employee_id: uuid.UUID
    hire_date: date
    as_of: date
    calculation_base: int
    work_time_factor: float
    days_worked: int
    suspension_days: int
    years_of_service: float
    accrued_days: float
    enjoyed_days: float
    historical_enjoyed_days: float
    approved_pending_days: float
    available_days: float
    display: DisplayBalance
    available_calendar_days: int
    last_accrual_date: date | None
    is_consistent: bool


class HireDateChangeResponse(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    previous_hire_date: date
    new_hire_date: date
    accrued_before: float
    accrued_after: float
    reason: str
    changed_by: uuid.UUID
    created_at: datetime


class HireDateUpdateResponse(BaseModel):
    balance: BalanceResponse
    change: HireDateChangeResponse
