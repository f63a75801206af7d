"""Working-day arithmetic. Vacation is granted in working days (Mon-Fri)."""

from __future__ import annotations

import math
from datetime import date, timedelta
from fractions import Fraction
from typing import TYPE_CHECKING

from vacation_engine.exceptions import InvalidDates
from vacation_engine.services.calculator import round_days

if TYPE_CHECKING:
    from collections.abc import Collection

# Five working days per seven calendar days.
_CALENDAR_PER_BUSINESS = Fraction(7, 5)


def is_business_day(day: date, holidays: Collection[date] = ()) -> bool:
    return day.weekday() < 5 and day not in holidays


def count_business_days(start: date, end: date, holidays: Collection[date] = ()) -> int:
    """Working days in the inclusive range ``[start, end]``."""
    if end < start:
        msg = f"Range ends ({end}) before it starts ({start})"
        raise InvalidDates(msg)
    total = 0
    current = start
    one_day = timedelta(days=1)
    while current <= end:
        if is_business_day(current, holidays):
            total += 1
        current += one_day
    return total


def business_to_calendar_days(business_days: float) -> int:
    """Calendar days needed to take ``business_days`` working days, rounded up."""
    return math.ceil(Fraction(str(business_days)) * _CALENDAR_PER_BUSINESS)


def calendar_to_business_days(calendar_days: float) -> float:
    return round_days(Fraction(str(calendar_days)) / _CALENDAR_PER_BUSINESS)
