# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from vacation_engine.models.enums import HistoricalVacationType


class RegisterHistoricalPayload(BaseModel):
    """Vacation taken before the engine went live."""

    service_period_start: date
    service_period_end: date
    days_enjoyed: float = Field(gt=0)
    enjoyed_start_date: date
    enjoyed_end_date: date
    type: HistoricalVacationType = HistoricalVacationType.ENJOYED
    notes: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.service_period_end < self.service_period_start:
            msg = "service_period_end must not be before service_period_start"
            raise ValueError(msg)
        if self.enjoyed_end_date < self.enjoyed_start_date:
            msg = "enjoyed_end_date must not be before enjoyed_start_date"
            raise ValueError(msg)
        return self


class HistoricalRecordResponse(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    employee_id: uuid.UUID
    service_period_start: date
    service_period_end: date
    days_enjoyed: float
    enjoyed_start_date: date
    enjoyed_end_date: date
    type: HistoricalVacationType
    notes: str | None
    registered_by: uuid.UUID
    is_verified: bool
    verified_by: uuid.UUID | None
    verified_at: datetime | None
    created_at: datetime


class HistoricalRecordListResponse(BaseModel):
    items: list[HistoricalRecordResponse]
    total: int
    total_days: float
