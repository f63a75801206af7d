# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Self

from pydantic import BaseModel, Field, model_validator

from vacation_engine.models.enums import RequestStatus
from vacation_engine.schemas.balance import BalanceResponse

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateRequestPayload(BaseModel):
    """Request body for a new vacation request."""

    employee_id: uuid.UUID
    requested_days: float
    start_date: date
    end_date: date
    notes: str | None = Field(default=None, max_length=1000)


class DecisionPayload(BaseModel):
    """Leader or HR decision. A rejection needs ``comments`` as its reason."""

    approve: bool
    comments: str | None = Field(default=None, max_length=1000)


class SchedulePayload(BaseModel):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_date < self.start_date:
            msg = "end_date must not be before start_date"
            raise ValueError(msg)
        return self


class CancelPayload(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class RequestResponse(BaseModel):
    """Response schema for a single vacation request."""

    id: uuid.UUID
    company_id: uuid.UUID
    employee_id: uuid.UUID
    requested_days: float
    start_date: date
    end_date: date
    status: RequestStatus
    employee_notes: str | None
    leader_id: uuid.UUID | None
    leader_approval_date: datetime | None
    leader_comments: str | None
    hr_approver_id: uuid.UUID | None
    hr_approval_date: datetime | None
    hr_comments: str | None
    rejection_reason: str | None
    rejected_by: str | None
    scheduled_at: datetime | None
    enjoyed_date: date | None
    cancelled_at: datetime | None
    cancelled_by: uuid.UUID | None
    cancellation_reason: str | None
    version: int
    created_at: datetime


class RequestListResponse(BaseModel):
    """Paginated list of vacation requests."""

    items: list[RequestResponse]
    total: int


class EnjoyedResponse(BaseModel):
    request: RequestResponse
    balance: BalanceResponse


class OverdueRequestResponse(BaseModel):
    """A request waiting on a decision longer than the approval SLA."""

    request: RequestResponse
    awaiting: str  # "leader" or "hr"
    hours_pending: float


class OverdueRequestListResponse(BaseModel):
    items: list[OverdueRequestResponse]
    total: int
    sla_hours: int


class RequestEventResponse(BaseModel):
    """One audit trail event of a request."""

    id: uuid.UUID
    action: str
    performed_by: uuid.UUID
    previous_state: dict[str, Any] | None
    new_state: dict[str, Any] | None
    quantity: float | None
    description: str | None
    timestamp: datetime


class RequestHistoryResponse(BaseModel):
    request_id: uuid.UUID
    status: RequestStatus
    events: list[RequestEventResponse]
