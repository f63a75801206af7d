# ruff: noqa: TC003
from __future__ import annotations

import datetime

import sqlalchemy as sa
from sqlmodel import Field

from vacation_engine.models.base import TenantMixin, UUIDBase


class CompanyHoliday(UUIDBase, TenantMixin, table=True):
    """A non-working day for one company, excluded from business-day counts."""

    __tablename__ = "company_holiday"
    __table_args__ = (sa.UniqueConstraint("company_id", "date", name="uq_holiday_company_date"),)

    date: datetime.date
    name: str = Field(max_length=255)
