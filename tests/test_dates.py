from datetime import date, datetime

import pytest

from fintrack.core.dates import add_months, step, to_day


def test_to_day_truncates_time_of_day():
    assert to_day(datetime(2024, 2, 1, 23, 59, 59)) == date(2024, 2, 1)
    assert to_day(date(2024, 2, 1)) == date(2024, 2, 1)
    assert to_day("2024-02-01") == date(2024, 2, 1)
    assert to_day("2024-02-01T08:30:00") == date(2024, 2, 1)


def test_to_day_rejects_unknown_values():
    with pytest.raises(ValueError):
        to_day(20240201)
    with pytest.raises(ValueError):
        to_day("not a date")


def test_step_daily_weekly():
    assert step(date(2024, 12, 31), "daily") == date(2025, 1, 1)
    assert step(date(2024, 2, 28), "daily") == date(2024, 2, 29)
    assert step(date(2024, 12, 28), "weekly") == date(2025, 1, 4)


def test_step_monthly_clamps_short_months():
    assert step(date(2024, 1, 1), "monthly") == date(2024, 2, 1)
    assert step(date(2024, 12, 15), "monthly") == date(2025, 1, 15)
    assert step(date(2024, 1, 31), "monthly") == date(2024, 2, 29)
    assert step(date(2025, 1, 31), "monthly") == date(2025, 2, 28)


def test_step_monthly_returns_to_anchor_day():
    assert step(date(2024, 2, 29), "monthly", anchor_day=31) == date(2024, 3, 31)
    assert step(date(2024, 3, 31), "monthly", anchor_day=31) == date(2024, 4, 30)
    assert step(date(2024, 2, 29), "monthly") == date(2024, 3, 29)


def test_step_yearly_handles_leap_day():
    assert step(date(2024, 3, 15), "yearly") == date(2025, 3, 15)
    assert step(date(2024, 2, 29), "yearly") == date(2025, 2, 28)
    assert step(date(2027, 2, 28), "yearly", anchor_day=29) == date(2028, 2, 29)


def test_step_accepts_datetimes():
    assert step(datetime(2024, 1, 1, 18, 0), "daily") == date(2024, 1, 2)


@pytest.mark.parametrize("frequency", ["daily", "weekly", "monthly", "yearly"])
def test_step_is_strictly_increasing(frequency):
    current = date(2023, 1, 31)
    for _ in range(40):
        nxt = step(current, frequency, anchor_day=31)
        assert nxt > current
        current = nxt


def test_step_rejects_unknown_frequency():
    with pytest.raises(ValueError, match="Unsupported frequency"):
        step(date(2024, 1, 1), "fortnightly")


def test_add_months_across_years():
    assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)
    assert add_months(date(2024, 1, 15), 12) == date(2025, 1, 15)
