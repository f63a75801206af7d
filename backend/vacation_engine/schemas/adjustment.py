# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Literal, Self

from pydantic import BaseModel, Field, model_validator

from vacation_engine.models.enums import SuspensionReason
from vacation_engine.schemas.balance import BalanceResponse


class RegisterSuspensionPayload(BaseModel):
    """Exclude an inclusive date range from accrual."""

    start_date: date
    end_date: date
    reason: SuspensionReason = SuspensionReason.UNPAID_LEAVE
    notes: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_date < self.start_date:
            msg = "end_date must not be before start_date"
            raise ValueError(msg)
        return self


class SuspensionResponse(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    start_date: date
    end_date: date
    reason: SuspensionReason
    days_count: int
    notes: str | None
    created_by: uuid.UUID
    created_at: datetime
    removed_at: datetime | None
    removed_by: uuid.UUID | None
    removal_reason: str | None


class SuspensionListResponse(BaseModel):
    items: list[SuspensionResponse]
    total: int


class SuspensionResultResponse(BaseModel):
    balance: BalanceResponse
    suspension: SuspensionResponse


class BaseChangePayload(BaseModel):
    new_base: Literal[360, 365]
    reason: str | None = Field(default=None, max_length=1000)


class BaseChangeResponse(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    from_base: int
    to_base: int
    change_date: date
    accrued_at_change: float
    adjustment_applied: float
    reason: str
    is_reversal: bool
    changed_by: uuid.UUID
    created_at: datetime


class BaseChangeListResponse(BaseModel):
    items: list[BaseChangeResponse]
    total: int


class BaseChangeResultResponse(BaseModel):
    balance: BalanceResponse
    adjustment: BaseChangeResponse
