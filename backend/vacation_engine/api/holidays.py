# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query

from vacation_engine.api.deps import AuthDep, HRDep, validate_company_scope
from vacation_engine.db import SessionDep
from vacation_engine.schemas.holiday import (
    BusinessDaysResponse,
    CreateHolidayRequest,
    HolidayListResponse,
    HolidayResponse,
)
from vacation_engine.services import holiday as holiday_service

holidays_router = APIRouter(
    prefix="/companies/{company_id}/holidays",
    tags=["holidays"],
    dependencies=[Depends(validate_company_scope)],
)

business_days_router = APIRouter(
    prefix="/companies/{company_id}/business-days",
    tags=["holidays"],
    dependencies=[Depends(validate_company_scope)],
)


@holidays_router.post(
    "",
    response_model=HolidayResponse,
    status_code=201,
)
async def create_holiday(
    payload: CreateHolidayRequest,
    session: SessionDep,
    auth: HRDep,
) -> HolidayResponse:
    """Create a company holiday (HR/admin only)."""
    return await holiday_service.create_holiday(session, auth, payload)


@holidays_router.get(
    "",
    response_model=HolidayListResponse,
)
async def list_holidays(
    company_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> HolidayListResponse:
    """List company holidays with optional year filter."""
    return await holiday_service.list_holidays(session, company_id, year, offset, limit)


@holidays_router.delete(
    "/{holiday_id}",
    status_code=204,
)
async def delete_holiday(
    holiday_id: uuid.UUID,
    session: SessionDep,
    auth: HRDep,
) -> None:
    """Delete a company holiday (HR/admin only)."""
    await holiday_service.delete_holiday(session, auth, holiday_id)


@business_days_router.get("", response_model=BusinessDaysResponse)
async def count_business_days(
    company_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    start_date: date = Query(),
    end_date: date = Query(),
) -> BusinessDaysResponse:
    """Working days in the inclusive range, skipping weekends and company holidays."""
    return await holiday_service.count_company_business_days(session, company_id, start_date, end_date)
