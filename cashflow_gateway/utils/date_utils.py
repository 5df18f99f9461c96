"""Calendar-safe date arithmetic used by the projection engine"""

import calendar
from datetime import date, timedelta
from typing import List

SATURDAY = 5
SUNDAY = 6


def generate_date_range(start: date, end: date) -> List[date]:
    """Generate list of dates from start to end (inclusive)"""
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day_to_month(day: int, year: int, month: int) -> int:
    """Clamp a day number to the month's length (day 31 in February -> 28/29)"""
    return max(1, min(day, last_day_of_month(year, month)))


def month_date(year: int, month: int, day: int) -> date:
    """Build a date for (year, month), clamping day to the month's length"""
    return date(year, month, clamp_day_to_month(day, year, month))


def shift_month(year: int, month: int, months: int) -> tuple[int, int]:
    """Move a (year, month) pair by a number of months"""
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def add_months(from_date: date, months: int, day: int | None = None) -> date:
    """
    Add calendar months to a date.

    The day of month is kept (or replaced by `day`) and clamped to the target
    month, so Jan 31 + 1 month is Feb 28/29 rather than spilling into March.
    """
    year, month = shift_month(from_date.year, from_date.month, months)
    return month_date(year, month, day if day is not None else from_date.day)


def is_weekend(d: date) -> bool:
    return d.weekday() in (SATURDAY, SUNDAY)


def adjust_for_weekend(d: date, adjustment: str) -> date:
    """
    Move a weekend date to a business day.

    - "before": Saturday -> Friday (-1), Sunday -> Friday (-2)
    - "after":  Saturday -> Monday (+2), Sunday -> Monday (+1)
    - "none":   unchanged
    """
    if adjustment == "none":
        return d

    weekday = d.weekday()
    if weekday == SATURDAY:
        return d - timedelta(days=1) if adjustment == "before" else d + timedelta(days=2)
    if weekday == SUNDAY:
        return d - timedelta(days=2) if adjustment == "before" else d + timedelta(days=1)
    return d
