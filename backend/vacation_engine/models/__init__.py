from sqlmodel import SQLModel

from vacation_engine.models.adjustment import BaseChangeRecord, HireDateChangeRecord, SuspensionPeriod
from vacation_engine.models.audit import AuditReport, VacationAuditLog
from vacation_engine.models.balance import VacationBalance
from vacation_engine.models.base import TenantMixin, TimestampMixin, UUIDBase
from vacation_engine.models.enums import (
    AuditAction,
    AuditStatus,
    CalculationBase,
    HistoricalVacationType,
    RejectionStage,
    RequestAction,
    RequestStatus,
    Role,
    Severity,
    SuspensionReason,
)
from vacation_engine.models.historical import HistoricalVacationRecord
from vacation_engine.models.holiday import CompanyHoliday
from vacation_engine.models.request import VacationRequest

__all__ = [
    "AuditAction",
    "AuditReport",
    "AuditStatus",
    "BaseChangeRecord",
    "CalculationBase",
    "CompanyHoliday",
    "HireDateChangeRecord",
    "HistoricalVacationRecord",
    "HistoricalVacationType",
    "RejectionStage",
    "RequestAction",
    "RequestStatus",
    "Role",
    "SQLModel",
    "Severity",
    "SuspensionPeriod",
    "SuspensionReason",
    "TenantMixin",
    "TimestampMixin",
    "UUIDBase",
    "VacationAuditLog",
    "VacationBalance",
    "VacationRequest",
]
