"""Weekly pay period arithmetic."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import IntEnum
from typing import Iterator

PERIOD_LENGTH_DAYS = 7


class Weekday(IntEnum):
    """Weekdays numbered like ``date.weekday()``."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def parse(cls, value: str | int | Weekday) -> Weekday:
        """Accept a name ("sunday"), a number (6), or a member."""
        if isinstance(value, Weekday):
            return value
        if isinstance(value, int):
            return cls(value)
        text = value.strip()
        if text.isdigit():
            return cls(int(text))
        try:
            return cls[text.upper()]
        except KeyError:
            raise ValueError(f"Unknown weekday: {value!r}") from None


@dataclass(frozen=True)
class PayPeriod:
    """A fixed 7-day pay window, inclusive on both ends."""

    start: date

    @property
    def end(self) -> date:
        return self.start + timedelta(days=PERIOD_LENGTH_DAYS - 1)

    @property
    def due_date(self) -> date:
        """Payment is due the day after the period closes."""
        return self.end + timedelta(days=1)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


def period_start_for(day: date, anchor: Weekday = Weekday.SUNDAY) -> date:
    """Normalize a date backward to the nearest anchor day at or before it."""
    offset = (day.weekday() - anchor) % PERIOD_LENGTH_DAYS
    return day - timedelta(days=offset)


def iter_periods(
    range_start: date,
    range_end: date,
    anchor: Weekday = Weekday.SUNDAY,
) -> Iterator[PayPeriod]:
    """Yield every period whose start falls in [normalized start, range_end].

    Yields nothing when ``range_start > range_end``.
    """
    if range_start > range_end:
        return
    current = period_start_for(range_start, anchor)
    step = timedelta(days=PERIOD_LENGTH_DAYS)
    while current <= range_end:
        yield PayPeriod(current)
        current += step


def year_range(year: int) -> tuple[date, date]:
    """Date range used by the "generate payments for year Y" action."""
    return date(year, 1, 1), date(year, 12, 31)
