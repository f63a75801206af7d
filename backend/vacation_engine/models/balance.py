# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from vacation_engine.models.base import now_utc


class VacationBalance(SQLModel, table=True):
    """Per-employee vacation counters.

    ``available_days`` is derived from the other three counters and is only
    ever written by ``services.balance.apply_counters``.
    """

    __tablename__ = "vacation_balance"
    __table_args__ = (
        sa.PrimaryKeyConstraint("company_id", "employee_id"),
        sa.CheckConstraint("calculation_base IN (360, 365)", name="ck_balance_calculation_base"),
        sa.CheckConstraint("work_time_factor > 0 AND work_time_factor <= 1", name="ck_balance_work_time_factor"),
    )

    company_id: uuid.UUID = Field(sa_type=sa.Uuid)
    employee_id: uuid.UUID = Field(index=True, sa_type=sa.Uuid)
    hire_date: date
    calculation_base: int = Field(default=365, sa_column_kwargs={"server_default": "365"})
    work_time_factor: float = Field(default=1.0, sa_column_kwargs={"server_default": "1"})
    accrued_days: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    enjoyed_days: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    historical_enjoyed_days: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    approved_pending_days: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    available_days: float = Field(default=0.0, sa_column_kwargs={"server_default": "0"})
    last_accrual_date: date | None = None
    leader_id: uuid.UUID | None = Field(default=None, index=True, sa_type=sa.Uuid)
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=now_utc,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now()},
    )
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
