"""Tests for suspensions, calculation-base changes and hire-date corrections."""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

import pytest

from tests.conftest import EMPLOYEE_AUTH, EMPLOYEE_ID, HR_AUTH
from vacation_engine.exceptions import (
    AppError,
    BusinessRuleViolation,
    DataIntegrityError,
    FutureDate,
    NotAuthorized,
    NotFound,
    ValidationError,
)
from vacation_engine.models.enums import HistoricalVacationType
from vacation_engine.schemas.adjustment import BaseChangePayload, RegisterSuspensionPayload
from vacation_engine.schemas.balance import InitializeBalancePayload, UpdateHireDatePayload
from vacation_engine.schemas.historical import RegisterHistoricalPayload
from vacation_engine.services import adjustment as adjustment_service
from vacation_engine.services import balance as balance_service
from vacation_engine.services import historical as historical_service

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vacation_engine.services.clock import FixedClock


@pytest.fixture(autouse=True)
async def opened(db_session: AsyncSession) -> None:
    """Employee hired 2024-01-01 holds 15.5753 accrued days on 2025-01-15."""
    await balance_service.initialize_balance(db_session, HR_AUTH, InitializeBalancePayload(employee_id=EMPLOYEE_ID))


def _suspension(start: date = date(2024, 3, 1), end: date = date(2024, 3, 30)) -> RegisterSuspensionPayload:
    return RegisterSuspensionPayload(start_date=start, end_date=end)


# ---------------------------------------------------------------------------
# Suspensions
# ---------------------------------------------------------------------------


async def test_register_suspension_reduces_accrual(db_session: AsyncSession) -> None:
    result = await adjustment_service.register_suspension(db_session, HR_AUTH, EMPLOYEE_ID, _suspension())

    assert result.suspension.days_count == 30
    # 336 days of 2024 at 15/366 plus 14 days of 2025 at 15/365
    assert result.balance.accrued_days == 14.3458
    assert result.balance.available_days == 14.3458


async def test_overlapping_suspension_conflicts(db_session: AsyncSession) -> None:
    await adjustment_service.register_suspension(db_session, HR_AUTH, EMPLOYEE_ID, _suspension())
    with pytest.raises(BusinessRuleViolation) as exc_info:
        await adjustment_service.register_suspension(
            db_session, HR_AUTH, EMPLOYEE_ID, _suspension(date(2024, 3, 25), date(2024, 4, 5))
        )
    assert exc_info.value.status_code == 409


async def test_suspension_before_hire_is_rejected(db_session: AsyncSession) -> None:
    with pytest.raises(BusinessRuleViolation):
        await adjustment_service.register_suspension(
            db_session, HR_AUTH, EMPLOYEE_ID, _suspension(date(2023, 6, 1), date(2023, 6, 30))
        )


async def test_suspension_requires_hr(db_session: AsyncSession) -> None:
    with pytest.raises(NotAuthorized):
        await adjustment_service.register_suspension(db_session, EMPLOYEE_AUTH, EMPLOYEE_ID, _suspension())


async def test_remove_suspension_restores_accrual(db_session: AsyncSession) -> None:
    registered = await adjustment_service.register_suspension(db_session, HR_AUTH, EMPLOYEE_ID, _suspension())
    removed = await adjustment_service.remove_suspension(
        db_session, HR_AUTH, EMPLOYEE_ID, registered.suspension.id, "Leave was paid after all"
    )

    assert removed.balance.accrued_days == 15.5753
    assert removed.suspension.removed_by == HR_AUTH.user_id
    assert removed.suspension.removal_reason == "Leave was paid after all"

    active = await adjustment_service.list_suspensions(db_session, HR_AUTH.company_id, EMPLOYEE_ID)
    everything = await adjustment_service.list_suspensions(
        db_session, HR_AUTH.company_id, EMPLOYEE_ID, include_removed=True
    )
    assert active.total == 0
    assert everything.total == 1


async def test_remove_suspension_twice_conflicts(db_session: AsyncSession) -> None:
    registered = await adjustment_service.register_suspension(db_session, HR_AUTH, EMPLOYEE_ID, _suspension())
    await adjustment_service.remove_suspension(db_session, HR_AUTH, EMPLOYEE_ID, registered.suspension.id, "typo")
    with pytest.raises(AppError) as exc_info:
        await adjustment_service.remove_suspension(
            db_session, HR_AUTH, EMPLOYEE_ID, registered.suspension.id, "typo"
        )
    assert exc_info.value.status_code == 409


async def test_remove_unknown_suspension_is_not_found(db_session: AsyncSession) -> None:
    with pytest.raises(NotFound):
        await adjustment_service.remove_suspension(db_session, HR_AUTH, EMPLOYEE_ID, uuid.uuid4(), "typo")


# ---------------------------------------------------------------------------
# Calculation base
# ---------------------------------------------------------------------------


async def test_change_to_commercial_base_applies_adjustment(db_session: AsyncSession) -> None:
    result = await adjustment_service.change_calculation_base(
        db_session, HR_AUTH, EMPLOYEE_ID, BaseChangePayload(new_base=360)
    )

    # 380 days at 15/360
    assert result.balance.accrued_days == 15.8333
    assert result.balance.calculation_base == 360
    assert result.adjustment.from_base == 365
    assert result.adjustment.accrued_at_change == 15.5753
    assert result.adjustment.adjustment_applied == 0.258
    assert result.adjustment.is_reversal is False


async def test_change_to_same_base_conflicts(db_session: AsyncSession) -> None:
    with pytest.raises(BusinessRuleViolation) as exc_info:
        await adjustment_service.change_calculation_base(
            db_session, HR_AUTH, EMPLOYEE_ID, BaseChangePayload(new_base=365)
        )
    assert exc_info.value.status_code == 409


async def test_reverting_base_change_requires_reason(db_session: AsyncSession, clock: FixedClock) -> None:
    await adjustment_service.change_calculation_base(
        db_session, HR_AUTH, EMPLOYEE_ID, BaseChangePayload(new_base=360)
    )
    clock.advance(hours=1)
    with pytest.raises(ValidationError):
        await adjustment_service.change_calculation_base(
            db_session, HR_AUTH, EMPLOYEE_ID, BaseChangePayload(new_base=365)
        )


async def test_reverting_base_change_restores_accrual(db_session: AsyncSession, clock: FixedClock) -> None:
    await adjustment_service.change_calculation_base(
        db_session, HR_AUTH, EMPLOYEE_ID, BaseChangePayload(new_base=360)
    )
    clock.advance(hours=1)
    reverted = await adjustment_service.change_calculation_base(
        db_session, HR_AUTH, EMPLOYEE_ID, BaseChangePayload(new_base=365, reason="Contract keeps calendar days")
    )

    assert reverted.adjustment.is_reversal is True
    assert reverted.adjustment.adjustment_applied == -0.258
    assert reverted.balance.accrued_days == 15.5753

    history = await adjustment_service.list_base_changes(db_session, HR_AUTH.company_id, EMPLOYEE_ID)
    assert history.total == 2
    assert [r.to_base for r in history.items] == [360, 365]


# ---------------------------------------------------------------------------
# Hire date
# ---------------------------------------------------------------------------


async def test_update_hire_date_recomputes_from_scratch(db_session: AsyncSession) -> None:
    result = await adjustment_service.update_hire_date(
        db_session,
        HR_AUTH,
        EMPLOYEE_ID,
        UpdateHireDatePayload(hire_date=date(2024, 7, 1), reason="Contract start was July"),
    )

    assert result.balance.hire_date == date(2024, 7, 1)
    assert result.balance.accrued_days == 8.1163
    assert result.change.accrued_before == 15.5753
    assert result.change.accrued_after == 8.1163
    assert result.change.previous_hire_date == date(2024, 1, 1)


async def test_future_hire_date_is_rejected(db_session: AsyncSession) -> None:
    with pytest.raises(FutureDate):
        await adjustment_service.update_hire_date(
            db_session, HR_AUTH, EMPLOYEE_ID, UpdateHireDatePayload(hire_date=date(2025, 2, 1), reason="typo")
        )


async def test_unchanged_hire_date_is_rejected(db_session: AsyncSession) -> None:
    with pytest.raises(BusinessRuleViolation):
        await adjustment_service.update_hire_date(
            db_session, HR_AUTH, EMPLOYEE_ID, UpdateHireDatePayload(hire_date=date(2024, 1, 1), reason="noop")
        )


async def test_hire_date_change_cannot_push_balance_negative(db_session: AsyncSession) -> None:
    await historical_service.register_historical_vacation(
        db_session,
        HR_AUTH,
        EMPLOYEE_ID,
        RegisterHistoricalPayload(
            service_period_start=date(2024, 1, 1),
            service_period_end=date(2024, 12, 31),
            days_enjoyed=10,
            enjoyed_start_date=date(2024, 8, 5),
            enjoyed_end_date=date(2024, 8, 16),
            type=HistoricalVacationType.ENJOYED,
        ),
    )

    with pytest.raises(DataIntegrityError):
        await adjustment_service.update_hire_date(
            db_session,
            HR_AUTH,
            EMPLOYEE_ID,
            UpdateHireDatePayload(hire_date=date(2024, 7, 1), reason="Contract start was July"),
        )
    await db_session.rollback()

    balance = await balance_service.get_balance(db_session, HR_AUTH, EMPLOYEE_ID)
    assert balance.hire_date == date(2024, 1, 1)
    assert balance.accrued_days == 15.5753
    assert balance.enjoyed_days == 10.0
