from __future__ import annotations

import calendar
from datetime import date, timedelta


def add_month(year: int, month: int, delta: int) -> tuple[int, int]:
    total = year * 12 + (month - 1) + delta
    new_year = total // 12
    new_month = total % 12 + 1
    return new_year, new_month


def clamp_day(year: int, month: int, day: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def shift_months(value: date, delta: int) -> date:
    """Same day ``delta`` months away, clamped to the target month's length."""
    year, month = add_month(value.year, value.month, delta)
    return clamp_day(year, month, value.day)


def month_start(value: date, delta: int = 0) -> date:
    year, month = add_month(value.year, value.month, delta)
    return date(year, month, 1)


def monday_of(value: date) -> date:
    return value - timedelta(days=value.weekday())
