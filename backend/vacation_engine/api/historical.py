# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status

from vacation_engine.api.deps import AuthDep, HRDep, validate_company_scope
from vacation_engine.db import SessionDep
from vacation_engine.schemas.historical import (
    HistoricalRecordListResponse,
    HistoricalRecordResponse,
    RegisterHistoricalPayload,
)
from vacation_engine.services import historical as historical_service

employee_historical_router = APIRouter(
    prefix="/companies/{company_id}/employees/{employee_id}/historical",
    tags=["historical"],
    dependencies=[Depends(validate_company_scope)],
)

historical_router = APIRouter(
    prefix="/companies/{company_id}/historical",
    tags=["historical"],
    dependencies=[Depends(validate_company_scope)],
)


@employee_historical_router.post("", response_model=HistoricalRecordResponse, status_code=status.HTTP_201_CREATED)
async def register_historical_vacation(
    employee_id: uuid.UUID,
    payload: RegisterHistoricalPayload,
    session: SessionDep,
    auth: HRDep,
) -> HistoricalRecordResponse:
    """Register vacation enjoyed before go-live (HR/admin only)."""
    return await historical_service.register_historical_vacation(session, auth, employee_id, payload)


@employee_historical_router.get("", response_model=HistoricalRecordListResponse)
async def list_historical_records(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> HistoricalRecordListResponse:
    return await historical_service.list_historical_records(session, auth, employee_id)


@historical_router.post("/{record_id}/verify", response_model=HistoricalRecordResponse)
async def verify_historical_record(
    record_id: uuid.UUID,
    session: SessionDep,
    auth: HRDep,
) -> HistoricalRecordResponse:
    """Mark a historical record as verified. Cannot be undone."""
    return await historical_service.verify_historical_record(session, auth, record_id)
