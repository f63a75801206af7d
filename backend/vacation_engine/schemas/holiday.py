# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field


class CreateHolidayRequest(BaseModel):
    """Request body for creating a company holiday."""

    date: date
    name: str = Field(min_length=1, max_length=255)


class HolidayResponse(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    date: date
    name: str


class HolidayListResponse(BaseModel):
    items: list[HolidayResponse]
    total: int


class BusinessDaysResponse(BaseModel):
    """Working days in an inclusive range, excluding weekends and holidays."""

    start_date: date
    end_date: date
    calendar_days: int
    business_days: int
    holidays_excluded: int
