"""Date manipulation utilities"""

from datetime import date
from dateutil.relativedelta import relativedelta


def clamped_day(year: int, month: int, day: int) -> date:
    """Build a date, clamping the day to the month length (e.g. 31 -> 28 in February)"""
    return date(year, month, 1) + relativedelta(day=max(day, 1))


def add_months_keeping_day(from_date: date, months: int, day_of_month: int) -> date:
    """Move by whole months and pin the result to day_of_month, clamped to the target month"""
    return from_date + relativedelta(months=months, day=max(day_of_month, 1))


def month_key(value: date) -> str:
    """Format a date as a YYYY-MM month key"""
    return f"{value.year:04d}-{value.month:02d}"


def month_key_offset(offset: int, anchor: date) -> str:
    return month_key(add_months_keeping_day(anchor, offset, 1))


def days_between(start: date, end: date) -> int:
    """Signed whole days from start to end"""
    return (end - start).days
