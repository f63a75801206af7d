"""Tests for the pure accrual calculator and working-day arithmetic."""

from __future__ import annotations

from datetime import date, timedelta
from fractions import Fraction
from typing import TYPE_CHECKING

import pytest

from vacation_engine.exceptions import FutureDate, InvalidDateOrder, InvalidDates, ValidationError
from vacation_engine.services.calculator import (
    Suspension,
    build_monthly_accrual_table,
    calculate_accrual,
    daily_rate,
    project_accrual,
    round_days,
    round_display,
)
from vacation_engine.services.calendar import (
    business_to_calendar_days,
    calendar_to_business_days,
    count_business_days,
    is_business_day,
)

if TYPE_CHECKING:
    from vacation_engine.services.clock import FixedClock

TODAY = date(2025, 1, 15)


# ---------------------------------------------------------------------------
# calculate_accrual
# ---------------------------------------------------------------------------


def test_full_leap_year_accrues_fifteen_days() -> None:
    result = calculate_accrual(date(2024, 1, 1), date(2025, 1, 1), today=TODAY)
    assert result.accrued_days == 15.0
    assert result.calendar_days == 366
    assert result.days_worked == 366


def test_full_common_year_accrues_fifteen_days() -> None:
    result = calculate_accrual(date(2023, 1, 1), date(2024, 1, 1), today=TODAY)
    assert result.accrued_days == 15.0
    assert result.years_of_service == 1.0


def test_commercial_base_prices_every_day_at_fifteen_over_360() -> None:
    result = calculate_accrual(date(2024, 1, 1), date(2025, 1, 1), base=360, today=TODAY)
    assert result.accrued_days == 15.25


def test_work_time_factor_scales_total() -> None:
    result = calculate_accrual(date(2024, 1, 1), date(2025, 1, 1), work_time_factor=0.5, today=TODAY)
    assert result.accrued_days == 7.5


def test_span_crossing_years_uses_each_years_rate() -> None:
    result = calculate_accrual(date(2023, 7, 1), date(2024, 7, 1), today=TODAY)
    # 184 days at 15/365 plus 182 days at 15/366
    assert result.accrued_days == 15.0207
    assert [s.year for s in result.segments] == [2023, 2024]
    assert result.segments[0].daily_rate == Fraction(15, 365)
    assert result.segments[1].daily_rate == Fraction(15, 366)
    assert result.segments[0].days_worked == 184
    assert result.segments[1].days_worked == 182


def test_partial_year() -> None:
    result = calculate_accrual(date(2024, 1, 1), date(2024, 7, 1), today=TODAY)
    assert result.accrued_days == 7.459
    assert result.display_days == 7.46


def test_as_of_equal_to_hire_date_accrues_nothing() -> None:
    result = calculate_accrual(date(2024, 3, 1), date(2024, 3, 1), today=TODAY)
    assert result.accrued_days == 0.0
    assert result.segments == ()


def test_as_of_before_hire_date_raises() -> None:
    with pytest.raises(InvalidDateOrder):
        calculate_accrual(date(2024, 3, 1), date(2024, 2, 1), today=TODAY)


def test_future_as_of_raises() -> None:
    with pytest.raises(FutureDate):
        calculate_accrual(date(2024, 1, 1), TODAY + timedelta(days=1), today=TODAY)


def test_future_as_of_uses_injected_clock_by_default(clock: FixedClock) -> None:
    with pytest.raises(FutureDate):
        calculate_accrual(date(2024, 1, 1), clock.today() + timedelta(days=1))


@pytest.mark.parametrize("base", [0, 300, 366])
def test_unsupported_base_raises(base: int) -> None:
    with pytest.raises(ValidationError):
        calculate_accrual(date(2024, 1, 1), date(2024, 6, 1), base=base, today=TODAY)


@pytest.mark.parametrize("factor", [0.0, -0.5, 1.5])
def test_work_time_factor_out_of_range_raises(factor: float) -> None:
    with pytest.raises(ValidationError):
        calculate_accrual(date(2024, 1, 1), date(2024, 6, 1), work_time_factor=factor, today=TODAY)


# ---------------------------------------------------------------------------
# Suspensions
# ---------------------------------------------------------------------------


def test_suspension_covering_whole_span_accrues_zero() -> None:
    result = calculate_accrual(
        date(2024, 1, 1),
        date(2025, 1, 1),
        suspensions=[Suspension(date(2024, 1, 1), date(2024, 12, 31))],
        today=TODAY,
    )
    assert result.accrued_days == 0.0
    assert result.suspension_days == 366
    assert result.days_worked == 0


def test_suspension_days_are_subtracted() -> None:
    result = calculate_accrual(
        date(2023, 1, 1),
        date(2024, 1, 1),
        suspensions=[Suspension(date(2023, 3, 1), date(2023, 3, 30))],
        today=TODAY,
    )
    # 335 worked days at 15/365
    assert result.suspension_days == 30
    assert result.accrued_days == 13.7671


def test_overlapping_suspensions_are_not_double_counted() -> None:
    result = calculate_accrual(
        date(2023, 1, 1),
        date(2024, 1, 1),
        suspensions=[
            Suspension(date(2023, 3, 1), date(2023, 3, 20)),
            Suspension(date(2023, 3, 11), date(2023, 3, 30)),
        ],
        today=TODAY,
    )
    assert result.suspension_days == 30
    assert result.accrued_days == 13.7671


def test_suspension_outside_span_is_ignored() -> None:
    result = calculate_accrual(
        date(2024, 1, 1),
        date(2025, 1, 1),
        suspensions=[Suspension(date(2023, 1, 1), date(2023, 12, 31))],
        today=TODAY,
    )
    assert result.accrued_days == 15.0


def test_suspension_with_inverted_dates_raises() -> None:
    with pytest.raises(InvalidDateOrder):
        Suspension(date(2024, 5, 10), date(2024, 5, 1))


def test_suspension_days_counts_both_ends() -> None:
    assert Suspension(date(2024, 5, 1), date(2024, 5, 1)).days == 1
    assert Suspension(date(2024, 5, 1), date(2024, 5, 31)).days == 31


def test_accrual_is_monotonic_in_as_of() -> None:
    hire = date(2023, 11, 20)
    suspensions = [Suspension(date(2024, 2, 1), date(2024, 2, 20))]
    previous = -1.0
    day = hire
    while day <= date(2025, 1, 1):
        accrued = calculate_accrual(hire, day, suspensions=suspensions, today=TODAY).accrued_days
        assert accrued >= previous
        previous = accrued
        day += timedelta(days=7)


# ---------------------------------------------------------------------------
# project_accrual
# ---------------------------------------------------------------------------


def test_projection_allows_future_dates() -> None:
    result = project_accrual(date(2024, 1, 1), date(2026, 1, 1))
    assert result.accrued_days == 30.0


def test_projection_matches_live_calculation_for_past_dates() -> None:
    live = calculate_accrual(date(2023, 7, 1), date(2024, 7, 1), today=TODAY)
    projected = project_accrual(date(2023, 7, 1), date(2024, 7, 1))
    assert projected == live


# ---------------------------------------------------------------------------
# Monthly table
# ---------------------------------------------------------------------------


def test_monthly_table_sums_to_yearly_accrual() -> None:
    rows = build_monthly_accrual_table(date(2024, 1, 1), 2024)
    assert len(rows) == 12
    assert rows[0].days_worked == 31
    assert rows[0].accrued_days == 1.2705
    assert rows[-1].cumulative_days == 15.0


def test_monthly_table_before_hire_is_empty() -> None:
    rows = build_monthly_accrual_table(date(2024, 7, 1), 2024)
    assert all(r.days_worked == 0 for r in rows[:6])
    assert rows[5].cumulative_days == 0.0
    assert rows[6].days_worked == 31


# ---------------------------------------------------------------------------
# Rounding and rates
# ---------------------------------------------------------------------------


def test_round_days_is_half_up() -> None:
    assert round_days(Fraction(1, 20000)) == 0.0001
    assert round_days(0.12345) == 0.1235
    assert round_days(2.00004) == 2.0


def test_round_display_two_places() -> None:
    assert round_display(7.459) == 7.46
    assert round_display(7.4549) == 7.45


def test_daily_rate() -> None:
    assert daily_rate(365, 2023) == Fraction(15, 365)
    assert daily_rate(365, 2024) == Fraction(15, 366)
    assert daily_rate(360, 2024) == Fraction(15, 360)


# ---------------------------------------------------------------------------
# Working days
# ---------------------------------------------------------------------------


def test_is_business_day() -> None:
    assert is_business_day(date(2025, 1, 13))
    assert not is_business_day(date(2025, 1, 18))
    assert not is_business_day(date(2025, 1, 13), {date(2025, 1, 13)})


def test_count_business_days_skips_weekends() -> None:
    assert count_business_days(date(2025, 1, 13), date(2025, 1, 19)) == 5


def test_count_business_days_skips_holidays() -> None:
    assert count_business_days(date(2025, 1, 13), date(2025, 1, 19), {date(2025, 1, 15)}) == 4


def test_count_business_days_single_weekend_day() -> None:
    assert count_business_days(date(2025, 1, 18), date(2025, 1, 18)) == 0


def test_count_business_days_inverted_range_raises() -> None:
    with pytest.raises(InvalidDates):
        count_business_days(date(2025, 1, 19), date(2025, 1, 13))


def test_business_to_calendar_days_rounds_up() -> None:
    assert business_to_calendar_days(15) == 21
    assert business_to_calendar_days(10) == 14
    assert business_to_calendar_days(1) == 2


def test_calendar_to_business_days() -> None:
    assert calendar_to_business_days(21) == 15.0
    assert calendar_to_business_days(10) == 7.1429
