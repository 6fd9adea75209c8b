# fintrack/core/dates.py
"""Calendar-day arithmetic used by the recurrence engine.

Everything here works on whole days. Time-of-day components are dropped
before any comparison, so two timestamps on the same day are equal.
"""
from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, timedelta
from typing import Optional


def to_day(value) -> date:
    """Truncate *value* to a calendar ``date``.

    Accepts ``date``, ``datetime`` (time discarded) and ISO-8601 strings.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip()).date()
    raise ValueError(f"Unrecognized date value: {value!r}")


def add_months(original_date: date, months: int, anchor_day: Optional[int] = None) -> date:
    """Shift by calendar months, clamping to the last day of short months.

    ``anchor_day`` lets a schedule return to its original day-of-month after
    passing through a short month (Jan 31 -> Feb 29 -> Mar 31).
    """
    day = anchor_day or original_date.day
    month_index = original_date.month - 1 + months
    year = original_date.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day, monthrange(year, month)[1]))


def step(current_date, frequency: str, anchor_day: Optional[int] = None) -> date:
    """Return the next occurrence exactly one period after *current_date*."""
    current = to_day(current_date)
    if frequency == "daily":
        return current + timedelta(days=1)
    if frequency == "weekly":
        return current + timedelta(weeks=1)
    if frequency == "monthly":
        return add_months(current, 1, anchor_day)
    if frequency == "yearly":
        return add_months(current, 12, anchor_day)
    raise ValueError(f"Unsupported frequency '{frequency}'.")
