"""
Period Boundaries and Range Filtering

There is exactly one filtering algorithm: a transaction is in range when
its date falls inside [start_of_day(start), end_of_day(end)]. Every
period summary (today, this week, this month, last month, a budget
period, a trend bucket) is that primitive applied to a boundary pair
computed here.

Weeks start on Monday.
"""

from datetime import date, datetime, time, timedelta
from typing import Iterable, Union

from dateutil.relativedelta import relativedelta

from moneytrack.models.finance import Transaction, to_naive_local


DateLike = Union[date, datetime]


def as_date(value: DateLike) -> date:
    """Calendar date of value; aware datetimes are read in local time first."""
    return to_naive_local(value).date() if isinstance(value, datetime) else value


def start_of_day(value: DateLike) -> datetime:
    return datetime.combine(as_date(value), time.min)


def end_of_day(value: DateLike) -> datetime:
    return datetime.combine(as_date(value), time.max)


def day_bounds(now: DateLike) -> tuple[datetime, datetime]:
    return start_of_day(now), end_of_day(now)


def week_bounds(now: DateLike) -> tuple[datetime, datetime]:
    """Monday 00:00 to Sunday 23:59:59.999999 of the week containing now."""
    day = as_date(now)
    monday = day - timedelta(days=day.weekday())
    return start_of_day(monday), end_of_day(monday + timedelta(days=6))


def month_bounds(now: DateLike) -> tuple[datetime, datetime]:
    """First to last day of the calendar month containing now."""
    first = as_date(now).replace(day=1)
    last = first + relativedelta(months=1, days=-1)
    return start_of_day(first), end_of_day(last)


def previous_month_bounds(now: DateLike) -> tuple[datetime, datetime]:
    return month_bounds(as_date(now).replace(day=1) - timedelta(days=1))


def days_in_month(now: DateLike) -> int:
    return month_bounds(now)[1].day


def is_in_range(
    transaction: Transaction,
    start: DateLike,
    end: DateLike,
) -> bool:
    return start_of_day(start) <= transaction.date <= end_of_day(end)


def transactions_in_range(
    transactions: Iterable[Transaction],
    start: DateLike,
    end: DateLike,
) -> list[Transaction]:
    """Transactions dated within the inclusive day-boundary interval [start, end]."""
    lower = start_of_day(start)
    upper = end_of_day(end)
    return [t for t in transactions if lower <= t.date <= upper]
