# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from vacation_engine.models.base import TenantMixin, TimestampMixin, UUIDBase


class SuspensionPeriod(UUIDBase, TenantMixin, TimestampMixin, table=True):
    """Closed, inclusive interval excluded from accrual (e.g. unpaid leave).

    Rows are never deleted; removal stamps ``removed_at`` so the calculator
    stops replaying the interval while the history stays intact.
    """

    __tablename__ = "vacation_suspension_period"
    __table_args__ = (sa.Index("ix_suspension_employee", "company_id", "employee_id"),)

    employee_id: uuid.UUID = Field(sa_type=sa.Uuid)
    start_date: date
    end_date: date
    reason: str = Field(max_length=50)
    days_count: int
    notes: str | None = None
    created_by: uuid.UUID = Field(sa_type=sa.Uuid)
    removed_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    removed_by: uuid.UUID | None = Field(default=None, sa_type=sa.Uuid)
    removal_reason: str | None = None


class BaseChangeRecord(UUIDBase, TenantMixin, TimestampMixin, table=True):
    """One switch of the calculation base and the accrual delta it produced."""

    __tablename__ = "vacation_base_change"
    __table_args__ = (sa.Index("ix_base_change_employee", "company_id", "employee_id"),)

    employee_id: uuid.UUID = Field(sa_type=sa.Uuid)
    from_base: int
    to_base: int
    change_date: date
    accrued_at_change: float
    adjustment_applied: float
    reason: str
    is_reversal: bool = False
    changed_by: uuid.UUID = Field(sa_type=sa.Uuid)


class HireDateChangeRecord(UUIDBase, TenantMixin, TimestampMixin, table=True):
    """Correction of an employee's hire date and its effect on accrual."""

    __tablename__ = "vacation_hire_date_change"
    __table_args__ = (sa.Index("ix_hire_date_change_employee", "company_id", "employee_id"),)

    employee_id: uuid.UUID = Field(sa_type=sa.Uuid)
    previous_hire_date: date
    new_hire_date: date
    accrued_before: float
    accrued_after: float
    reason: str
    changed_by: uuid.UUID = Field(sa_type=sa.Uuid)
