# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from vacation_engine.models.base import TenantMixin, TimestampMixin, UUIDBase
from vacation_engine.models.enums import HistoricalVacationType


class HistoricalVacationRecord(UUIDBase, TenantMixin, TimestampMixin, table=True):
    """Vacation taken before the engine existed, entered without the workflow."""

    __tablename__ = "historical_vacation"
    __table_args__ = (sa.Index("ix_historical_employee", "company_id", "employee_id"),)

    employee_id: uuid.UUID = Field(sa_type=sa.Uuid)
    service_period_start: date
    service_period_end: date
    days_enjoyed: float
    enjoyed_start_date: date
    enjoyed_end_date: date
    type: str = Field(default=HistoricalVacationType.ENJOYED, max_length=20)
    notes: str | None = None
    registered_by: uuid.UUID = Field(sa_type=sa.Uuid)
    is_verified: bool = False
    verified_by: uuid.UUID | None = Field(default=None, sa_type=sa.Uuid)
    verified_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
