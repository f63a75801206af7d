from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of "now" for accrual reference dates and enjoyment checks."""

    def now(self) -> datetime:
        """Current instant, timezone-aware."""
        ...

    def today(self) -> date:
        """Current calendar date."""
        ...


class SystemClock:
    """Wall-clock implementation used in production."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock pinned to a given instant; advance it explicitly in tests."""

    def __init__(self, current: datetime | date) -> None:
        if not isinstance(current, datetime):
            current = datetime(current.year, current.month, current.day, 12, tzinfo=UTC)
        elif current.tzinfo is None:
            current = current.replace(tzinfo=UTC)
        self._current = current

    def now(self) -> datetime:
        return self._current

    def today(self) -> date:
        return self._current.date()

    def advance(self, *, days: int = 0, hours: int = 0) -> None:
        self._current += timedelta(days=days, hours=hours)

    def set(self, current: datetime | date) -> None:
        self._current = FixedClock(current).now()


_clock: Clock = SystemClock()


def get_clock() -> Clock:
    """Return the process-wide clock."""
    return _clock


def set_clock(clock: Clock) -> None:
    """Override the clock (for testing or production wiring)."""
    global _clock
    _clock = clock
