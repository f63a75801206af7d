# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import Literal, Self

from pydantic import BaseModel, Field, model_validator


class SuspensionInput(BaseModel):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_date < self.start_date:
            msg = "end_date must not be before start_date"
            raise ValueError(msg)
        return self


class CalculateAccrualPayload(BaseModel):
    """Ad-hoc accrual computation; ``as_of`` defaults to today."""

    hire_date: date
    as_of: date | None = None
    base: Literal[360, 365] = 365
    work_time_factor: float = Field(default=1.0, gt=0, le=1)
    suspensions: list[SuspensionInput] = Field(default_factory=list)


class ProjectAccrualPayload(BaseModel):
    hire_date: date
    target_date: date
    base: Literal[360, 365] = 365
    work_time_factor: float = Field(default=1.0, gt=0, le=1)
    suspensions: list[SuspensionInput] = Field(default_factory=list)


class YearSegmentResponse(BaseModel):
    year: int
    start: date
    end: date
    calendar_days: int
    suspension_days: int
    days_worked: int
    daily_rate: float
    accrued_days: float


class AccrualResultResponse(BaseModel):
    hire_date: date
    as_of: date
    base: int
    work_time_factor: float
    accrued_days: float
    display_days: float
    calendar_days: int
    suspension_days: int
    days_worked: int
    years_of_service: float
    segments: list[YearSegmentResponse]


class MonthlyAccrualResponse(BaseModel):
    year: int
    month: int
    days_worked: int
    accrued_days: float
    cumulative_days: float


class MonthlyAccrualTableResponse(BaseModel):
    employee_id: uuid.UUID
    year: int
    rows: list[MonthlyAccrualResponse]
    total_days: float


class AccrualFailureResponse(BaseModel):
    employee_id: uuid.UUID
    error: str
    message: str


class AccrualRunResponse(BaseModel):
    """Outcome of one daily accrual sweep for one company."""

    company_id: uuid.UUID
    run_date: date
    processed: int
    updated: int
    unchanged: int
    skipped: int
    errors: int
    failures: list[AccrualFailureResponse]
