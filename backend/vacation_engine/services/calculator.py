"""Vacation accrual calculator: pure functions, no I/O.

Colombian labor law grants 15 working days of paid vacation per year of
service. Accrual is prorated per calendar day over the half-open span
``[hire_date, as_of)``:

* base 365: the span is split at calendar-year boundaries and each piece is
  priced at its own year's rate (15/365, or 15/366 inside a leap year);
* base 360 (commercial): every worked day accrues 15/360.

Suspension periods (unpaid leave and similar) are removed from each piece's
worked days before pricing. The work-time factor scales the total. Sums are
kept as exact fractions and only the final total is rounded.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from fractions import Fraction
from typing import TYPE_CHECKING, Protocol

from vacation_engine.exceptions import FutureDate, InvalidDateOrder, ValidationError
from vacation_engine.models.enums import CalculationBase
from vacation_engine.services.clock import get_clock

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

LEGAL_DAYS_PER_YEAR = 15
DAYS_PER_SERVICE_YEAR = 365

_FOUR_PLACES = Decimal("0.0001")
_TWO_PLACES = Decimal("0.01")


class DateInterval(Protocol):
    """Anything with an inclusive ``start_date``/``end_date`` pair."""

    start_date: date
    end_date: date


@dataclass(frozen=True)
class Suspension:
    """Inclusive interval excluded from accrual."""

    start_date: date
    end_date: date

    def __post_init__(self) -> None:
        if self.end_date < self.start_date:
            msg = f"Suspension ends ({self.end_date}) before it starts ({self.start_date})"
            raise InvalidDateOrder(msg)

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1


@dataclass(frozen=True)
class YearSegment:
    """Accrual contributed by the part of the span inside one calendar year."""

    year: int
    start: date
    end: date  # exclusive
    calendar_days: int
    suspension_days: int
    days_worked: int
    daily_rate: Fraction
    accrued_days: float  # informational, rounded; totals use exact fractions


@dataclass(frozen=True)
class AccrualResult:
    hire_date: date
    as_of: date
    base: int
    work_time_factor: float
    accrued_days: float
    calendar_days: int
    suspension_days: int
    days_worked: int
    years_of_service: float
    segments: tuple[YearSegment, ...]

    @property
    def display_days(self) -> float:
        return round_display(self.accrued_days)


@dataclass(frozen=True)
class MonthlyAccrual:
    year: int
    month: int
    days_worked: int
    accrued_days: float
    cumulative_days: float


# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------


def _quantize(value: Decimal, places: Decimal) -> float:
    return float(value.quantize(places, rounding=ROUND_HALF_UP))


def round_days(value: Fraction | float) -> float:
    """Round to the 4-decimal public precision."""
    if isinstance(value, Fraction):
        return _quantize(Decimal(value.numerator) / Decimal(value.denominator), _FOUR_PLACES)
    return _quantize(Decimal(str(value)), _FOUR_PLACES)


def round_display(value: float) -> float:
    """Round to the 2-decimal precision shown to people."""
    return _quantize(Decimal(str(value)), _TWO_PLACES)


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


def daily_rate(base: int, year: int) -> Fraction:
    """Vacation days earned per worked day in ``year`` under ``base``."""
    if base == CalculationBase.COMMERCIAL:
        return Fraction(LEGAL_DAYS_PER_YEAR, 360)
    return Fraction(LEGAL_DAYS_PER_YEAR, 366 if calendar.isleap(year) else 365)


def _validate_parameters(base: int, work_time_factor: float) -> None:
    if base not in (CalculationBase.COMMERCIAL, CalculationBase.CALENDAR):
        msg = f"Calculation base must be 360 or 365, got {base}"
        raise ValidationError(msg)
    if not 0 < work_time_factor <= 1:
        msg = f"Work time factor must be in (0, 1], got {work_time_factor}"
        raise ValidationError(msg)


def _split_by_year(start: date, end: date) -> Iterator[tuple[int, date, date]]:
    """Yield ``(year, piece_start, piece_end)`` half-open pieces of ``[start, end)``."""
    cursor = start
    while cursor < end:
        boundary = min(date(cursor.year + 1, 1, 1), end)
        yield cursor.year, cursor, boundary
        cursor = boundary


def _merge_suspensions(suspensions: Iterable[DateInterval]) -> list[tuple[date, date]]:
    """Normalize inclusive intervals to merged half-open ``[start, end)`` spans."""
    spans = sorted((s.start_date, s.end_date + timedelta(days=1)) for s in suspensions)
    merged: list[tuple[date, date]] = []
    for start, end in spans:
        if end <= start:
            msg = f"Suspension ends before it starts ({start} .. {end - timedelta(days=1)})"
            raise InvalidDateOrder(msg)
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def _overlap_days(start: date, end: date, spans: list[tuple[date, date]]) -> int:
    total = 0
    for span_start, span_end in spans:
        days = (min(end, span_end) - max(start, span_start)).days
        if days > 0:
            total += days
    return total


def _accrue_span(
    start: date,
    end: date,
    base: int,
    spans: list[tuple[date, date]],
) -> tuple[Fraction, list[YearSegment]]:
    total = Fraction(0)
    segments: list[YearSegment] = []
    for year, piece_start, piece_end in _split_by_year(start, end):
        calendar_days = (piece_end - piece_start).days
        suspended = _overlap_days(piece_start, piece_end, spans)
        worked = calendar_days - suspended
        rate = daily_rate(base, year)
        amount = rate * worked
        total += amount
        segments.append(
            YearSegment(
                year=year,
                start=piece_start,
                end=piece_end,
                calendar_days=calendar_days,
                suspension_days=suspended,
                days_worked=worked,
                daily_rate=rate,
                accrued_days=round_days(amount),
            )
        )
    return total, segments


def _accrue(
    hire_date: date,
    as_of: date,
    base: int,
    work_time_factor: float,
    suspensions: Iterable[DateInterval],
) -> AccrualResult:
    base = int(base)
    _validate_parameters(base, work_time_factor)
    if as_of < hire_date:
        msg = f"Reference date {as_of} is before hire date {hire_date}"
        raise InvalidDateOrder(msg)

    spans = _merge_suspensions(suspensions)
    raw, segments = _accrue_span(hire_date, as_of, base, spans)
    factor = Fraction(str(work_time_factor))

    calendar_days = (as_of - hire_date).days
    suspension_days = sum(s.suspension_days for s in segments)
    days_worked = calendar_days - suspension_days

    return AccrualResult(
        hire_date=hire_date,
        as_of=as_of,
        base=base,
        work_time_factor=work_time_factor,
        accrued_days=round_days(raw * factor),
        calendar_days=calendar_days,
        suspension_days=suspension_days,
        days_worked=days_worked,
        years_of_service=round_days(Fraction(days_worked, DAYS_PER_SERVICE_YEAR)),
        segments=tuple(segments),
    )


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def calculate_accrual(
    hire_date: date,
    as_of: date,
    *,
    base: int = CalculationBase.CALENDAR,
    work_time_factor: float = 1.0,
    suspensions: Iterable[DateInterval] = (),
    today: date | None = None,
) -> AccrualResult:
    """Accrued vacation days from ``hire_date`` up to (not including) ``as_of``.

    Live computation: ``as_of`` may not lie after today's date as reported by
    the injected clock (or ``today`` when given). Use ``project_accrual`` for
    future dates.

    Raises:
        InvalidDateOrder: ``as_of`` precedes ``hire_date``.
        FutureDate: ``as_of`` is after today.
        ValidationError: unsupported base or work-time factor.
    """
    if today is None:
        today = get_clock().today()
    if as_of > today:
        msg = f"Reference date {as_of} is in the future (today is {today}); use a projection instead"
        raise FutureDate(msg)
    return _accrue(hire_date, as_of, base, work_time_factor, suspensions)


def project_accrual(
    hire_date: date,
    target_date: date,
    *,
    base: int = CalculationBase.CALENDAR,
    work_time_factor: float = 1.0,
    suspensions: Iterable[DateInterval] = (),
) -> AccrualResult:
    """Same computation as ``calculate_accrual`` but any target date is allowed."""
    return _accrue(hire_date, target_date, base, work_time_factor, suspensions)


def build_monthly_accrual_table(
    hire_date: date,
    year: int,
    *,
    base: int = CalculationBase.CALENDAR,
    work_time_factor: float = 1.0,
    suspensions: Iterable[DateInterval] = (),
) -> list[MonthlyAccrual]:
    """Accrual earned in each month of ``year`` with the running yearly total."""
    base = int(base)
    _validate_parameters(base, work_time_factor)
    spans = _merge_suspensions(suspensions)
    factor = Fraction(str(work_time_factor))

    rows: list[MonthlyAccrual] = []
    cumulative = Fraction(0)
    for month in range(1, 13):
        month_start = date(year, month, 1)
        month_end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        start = max(month_start, hire_date)
        if start >= month_end:
            rows.append(MonthlyAccrual(year, month, 0, 0.0, round_days(cumulative)))
            continue
        amount, segments = _accrue_span(start, month_end, base, spans)
        amount *= factor
        cumulative += amount
        rows.append(
            MonthlyAccrual(
                year=year,
                month=month,
                days_worked=sum(s.days_worked for s in segments),
                accrued_days=round_days(amount),
                cumulative_days=round_days(cumulative),
            )
        )
    return rows
