"""Date manipulation utilities working on the server's local calendar"""

import calendar
from datetime import date, datetime, timedelta
from typing import Union

DateLike = Union[date, datetime]


def to_local_date(value: DateLike) -> date:
    """Calendar day of a date or datetime in server-local time"""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    return value


def local_date_key(value: DateLike) -> str:
    """YYYY-MM-DD key used for every same-day comparison"""
    return to_local_date(value).isoformat()


def start_of_local_day(value: DateLike) -> datetime:
    """Naive local midnight of the given day"""
    day = to_local_date(value)
    return datetime(day.year, day.month, day.day)


def start_of_iso_week(value: DateLike) -> datetime:
    """Local midnight of the Monday starting the ISO week"""
    start = start_of_local_day(value)
    return start - timedelta(days=start.weekday())


def diff_local_days(start: DateLike, end: DateLike) -> int:
    """Whole calendar days from start to end (negative when end is earlier)"""
    return (to_local_date(end) - to_local_date(start)).days


def diff_months(start: DateLike, end: DateLike) -> int:
    """
    Whole months elapsed between two local days, floored at zero.

    A month only counts once the day-of-month of the start has been reached:
    Jan 15 -> Feb 14 is 0 months, Jan 15 -> Feb 15 is 1 month.
    """
    start_day = to_local_date(start)
    end_day = to_local_date(end)
    months = (end_day.year - start_day.year) * 12 + (end_day.month - start_day.month)
    if end_day.day < start_day.day:
        months -= 1
    return max(0, months)


def add_months(value: DateLike, months: int) -> date:
    """Same day-of-month N months later, clamped to the last day of short months"""
    day = to_local_date(value)
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))
