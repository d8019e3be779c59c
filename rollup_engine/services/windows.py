"""
Day window and date range helpers for the rollup engine.

A day window covers one local calendar day from 00:00:00.000 to 23:59:59.999,
inclusive on both ends at millisecond granularity. Timestamps are naive, in the
process's local time, matching how the source tables store them.

Key Functions:
- get_day_window: Build the [start, end] window for a calendar day
- iter_days: Yield every day of an inclusive date range
- get_yesterday / get_last_n_days_range: Anchor dates for the scheduler
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional, Tuple


# Last representable millisecond of a day
DAY_END_TIME = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class DayWindow:
    """
    Inclusive time bounds of one calendar day.

    Attributes:
        day: The calendar day.
        start: 00:00:00.000 on that day.
        end: 23:59:59.999 on that day.
    """
    day: date
    start: datetime
    end: datetime

    def contains(self, value: Optional[datetime]) -> bool:
        """True when value falls inside the window; None is never inside."""
        if value is None:
            return False
        return self.start <= value <= self.end

    def is_on_or_before_end(self, value: Optional[datetime]) -> bool:
        """True when value is at or before the end of the window."""
        if value is None:
            return False
        return value <= self.end


def get_day_window(day: date) -> DayWindow:
    """
    Build the inclusive window for a calendar day.

    Args:
        day: Calendar day.

    Returns:
        DayWindow with start at midnight and end at 23:59:59.999.

    Example:
        >>> window = get_day_window(date(2026, 1, 12))
        >>> window.end
        datetime.datetime(2026, 1, 12, 23, 59, 59, 999000)
    """
    return DayWindow(
        day=day,
        start=datetime.combine(day, time.min),
        end=datetime.combine(day, DAY_END_TIME),
    )


def iter_days(start_day: date, end_day: date) -> Iterator[date]:
    """
    Yield every calendar day from start_day to end_day inclusive.

    Raises:
        ValueError: If start_day is after end_day.
    """
    if start_day > end_day:
        raise ValueError(
            f"start_day {start_day.isoformat()} is after end_day {end_day.isoformat()}"
        )

    current = start_day
    while current <= end_day:
        yield current
        current += timedelta(days=1)


def get_yesterday(today: Optional[date] = None) -> date:
    """Return the day before today (or before the given anchor)."""
    return (today or date.today()) - timedelta(days=1)


def get_last_n_days_range(n: int, today: Optional[date] = None) -> Tuple[date, date]:
    """
    Return the inclusive (today - n, today) range.

    n = 0 covers today only; n = 7 covers eight calendar days.

    Raises:
        ValueError: If n is negative.
    """
    if n < 0:
        raise ValueError(f"n must be zero or positive, got {n}")

    end_day = today or date.today()
    return end_day - timedelta(days=n), end_day
