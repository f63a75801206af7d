# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from vacation_engine.models.base import TenantMixin, TimestampMixin, UUIDBase
from vacation_engine.models.enums import RequestStatus


class VacationRequest(UUIDBase, TenantMixin, TimestampMixin, table=True):
    """An employee's vacation request moving through leader and HR approval."""

    __tablename__ = "vacation_request"
    __table_args__ = (
        sa.Index("ix_request_company_status", "company_id", "status"),
        sa.Index("ix_request_employee_dates", "company_id", "employee_id", "start_date", "end_date"),
    )

    employee_id: uuid.UUID = Field(index=True, sa_type=sa.Uuid)
    requested_days: float
    start_date: date
    end_date: date
    status: str = Field(
        default=RequestStatus.REQUESTED, max_length=50, sa_column_kwargs={"server_default": "requested"}
    )
    employee_notes: str | None = None

    leader_id: uuid.UUID | None = Field(default=None, sa_type=sa.Uuid)
    leader_approval_date: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    leader_comments: str | None = None

    hr_approver_id: uuid.UUID | None = Field(default=None, sa_type=sa.Uuid)
    hr_approval_date: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    hr_comments: str | None = None

    rejection_reason: str | None = None
    rejected_by: str | None = Field(default=None, max_length=20)

    scheduled_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    enjoyed_date: date | None = None

    cancelled_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    cancelled_by: uuid.UUID | None = Field(default=None, sa_type=sa.Uuid)
    cancellation_reason: str | None = None

    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
