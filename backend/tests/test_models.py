from __future__ import annotations

import uuid
from datetime import date

from vacation_engine.models import (
    AuditReport,
    BaseChangeRecord,
    CompanyHoliday,
    HistoricalVacationRecord,
    SQLModel,
    SuspensionPeriod,
    VacationAuditLog,
    VacationBalance,
    VacationRequest,
)
from vacation_engine.models.enums import CalculationBase, HistoricalVacationType, RequestStatus

EXPECTED_TABLES = {
    "company_holiday",
    "historical_vacation",
    "vacation_audit_log",
    "vacation_audit_report",
    "vacation_balance",
    "vacation_base_change",
    "vacation_hire_date_change",
    "vacation_request",
    "vacation_suspension_period",
}


def test_all_tables_registered() -> None:
    table_names = set(SQLModel.metadata.tables.keys())
    assert EXPECTED_TABLES.issubset(table_names)


def test_balance_is_keyed_by_company_and_employee() -> None:
    table = SQLModel.metadata.tables["vacation_balance"]
    assert [c.name for c in table.primary_key.columns] == ["company_id", "employee_id"]


def test_balance_defaults() -> None:
    balance = VacationBalance(company_id=uuid.uuid4(), employee_id=uuid.uuid4(), hire_date=date(2024, 1, 1))
    assert balance.calculation_base == CalculationBase.CALENDAR
    assert balance.work_time_factor == 1.0
    assert balance.accrued_days == 0.0
    assert balance.available_days == 0.0
    assert balance.last_accrual_date is None
    assert balance.version == 1


def test_request_defaults() -> None:
    request = VacationRequest(
        company_id=uuid.uuid4(),
        employee_id=uuid.uuid4(),
        requested_days=3,
        start_date=date(2025, 2, 3),
        end_date=date(2025, 2, 5),
    )
    assert request.status == RequestStatus.REQUESTED
    assert request.version == 1
    assert request.id is not None
    assert request.created_at.tzinfo is not None


def test_suspension_instantiation() -> None:
    suspension = SuspensionPeriod(
        company_id=uuid.uuid4(),
        employee_id=uuid.uuid4(),
        start_date=date(2024, 3, 1),
        end_date=date(2024, 3, 30),
        reason="unpaid_leave",
        days_count=30,
        created_by=uuid.uuid4(),
    )
    assert suspension.removed_at is None


def test_base_change_instantiation() -> None:
    record = BaseChangeRecord(
        company_id=uuid.uuid4(),
        employee_id=uuid.uuid4(),
        from_base=365,
        to_base=360,
        change_date=date(2025, 1, 15),
        accrued_at_change=15.5753,
        adjustment_applied=0.258,
        reason="Contract amendment",
        changed_by=uuid.uuid4(),
    )
    assert record.is_reversal is False


def test_historical_record_defaults() -> None:
    record = HistoricalVacationRecord(
        company_id=uuid.uuid4(),
        employee_id=uuid.uuid4(),
        service_period_start=date(2023, 1, 1),
        service_period_end=date(2023, 12, 31),
        days_enjoyed=5,
        enjoyed_start_date=date(2023, 8, 7),
        enjoyed_end_date=date(2023, 8, 11),
        registered_by=uuid.uuid4(),
    )
    assert record.type == HistoricalVacationType.ENJOYED
    assert record.is_verified is False


def test_audit_models_instantiation() -> None:
    entry = VacationAuditLog(
        company_id=uuid.uuid4(),
        employee_id=uuid.uuid4(),
        action="accrue",
        performed_by=uuid.uuid4(),
    )
    report = AuditReport(company_id=uuid.uuid4(), status="PASSED")
    assert entry.previous_state is None
    assert entry.timestamp.tzinfo is not None
    assert report.findings == {}
    assert report.notification_sent is False


def test_holiday_instantiation() -> None:
    holiday = CompanyHoliday(company_id=uuid.uuid4(), date=date(2025, 1, 6), name="Reyes Magos")
    assert holiday.name == "Reyes Magos"
