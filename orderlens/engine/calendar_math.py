"""
Calendar helpers shared by range resolution, bucketing, and forecasting.

Weeks run Monday-Sunday. Quarters are fixed three-month blocks starting in
January. All functions are pure and operate on naive local datetimes/dates.
"""

import calendar
from datetime import date, datetime, time, timedelta
from typing import Union

DateLike = Union[date, datetime]


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def start_of_day(value: DateLike) -> datetime:
    return datetime.combine(_as_date(value), time.min)


def end_of_day(value: DateLike) -> datetime:
    return datetime.combine(_as_date(value), time.max)


def monday_of(value: DateLike) -> datetime:
    """Start-of-day Monday on or before the given date."""
    d = _as_date(value)
    return start_of_day(d - timedelta(days=d.weekday()))


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(value: DateLike, months: int) -> date:
    """First day of the month `months` away from value's month."""
    d = _as_date(value)
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def start_of_month(value: DateLike) -> date:
    d = _as_date(value)
    return date(d.year, d.month, 1)


def end_of_month(value: DateLike) -> date:
    d = _as_date(value)
    return date(d.year, d.month, days_in_month(d.year, d.month))


def quarter_index(value: DateLike) -> int:
    """Zero-based quarter: floor(month0 / 3)."""
    return (_as_date(value).month - 1) // 3


def start_of_quarter(value: DateLike) -> date:
    d = _as_date(value)
    return date(d.year, quarter_index(d) * 3 + 1, 1)


def end_of_quarter(value: DateLike) -> date:
    first = start_of_quarter(value)
    return end_of_month(add_months(first, 2))


def start_of_year(value: DateLike) -> date:
    return date(_as_date(value).year, 1, 1)


def end_of_year(value: DateLike) -> date:
    return date(_as_date(value).year, 12, 31)


def same_calendar_day(a: DateLike, b: DateLike) -> bool:
    """Year, month and day-of-month equality; time of day is ignored."""
    da, db = _as_date(a), _as_date(b)
    return (da.year, da.month, da.day) == (db.year, db.month, db.day)


def same_calendar_hour(a: datetime, b: datetime) -> bool:
    return same_calendar_day(a, b) and a.hour == b.hour


def month_label(value: DateLike) -> str:
    """'Jan 2024'."""
    d = _as_date(value)
    return f"{calendar.month_abbr[d.month]} {d.year}"


def day_label(value: DateLike) -> str:
    """'Jan 5'."""
    d = _as_date(value)
    return f"{calendar.month_abbr[d.month]} {d.day}"


def hour_label(hour: int) -> str:
    """'07:00'."""
    return f"{hour:02d}:00"


def day_of_week_sunday_first(value: DateLike) -> int:
    """0=Sunday ... 6=Saturday."""
    return (_as_date(value).weekday() + 1) % 7
