"""
CALENDAR PERIODS

Month is the single caching/query granularity. Every component derives
keys through this module so the format never drifts ("yyyy-MM").
"""

import calendar
from datetime import date, datetime, timezone
from typing import Tuple, Union

from .models import parse_iso

DateLike = Union[date, datetime, str]


def to_datetime(value: DateLike) -> datetime:
    """Coerce a date, datetime, ISO string or 'yyyy-MM' key to aware UTC."""
    if isinstance(value, str) and len(value) == 7 and value[4] == '-':
        value = f"{value}-01"
    dt = parse_iso(value)
    if dt is None:
        raise ValueError(f"Unrecognized period date: {value!r}")
    return dt


def period_key(value: DateLike) -> str:
    dt = to_datetime(value)
    return f"{dt.year:04d}-{dt.month:02d}"


def period_start(value: DateLike) -> datetime:
    dt = to_datetime(value)
    return datetime(dt.year, dt.month, 1, tzinfo=timezone.utc)


def period_end(value: DateLike) -> datetime:
    """Last representable second of the month."""
    dt = to_datetime(value)
    last_day = calendar.monthrange(dt.year, dt.month)[1]
    return datetime(dt.year, dt.month, last_day, 23, 59, 59, tzinfo=timezone.utc)


def period_bounds(value: DateLike) -> Tuple[datetime, datetime]:
    return period_start(value), period_end(value)


def shift_period(value: DateLike, months: int) -> datetime:
    """Start of the month `months` away (negative for the past)."""
    dt = to_datetime(value)
    index = dt.year * 12 + (dt.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1, tzinfo=timezone.utc)


def neighbors(value: DateLike) -> Tuple[datetime, datetime]:
    """(previous month start, next month start)."""
    return shift_period(value, -1), shift_period(value, 1)
