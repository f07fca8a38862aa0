"""
Sales Forecast Clock and Calendar Helpers
Every date window is anchored on an injectable clock
"""

from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Optional, Protocol, Union

from dateutil.relativedelta import relativedelta


class Clock(Protocol):
    """Source of the current instant"""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in UTC"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock frozen on a single instant, used by tests and replays"""

    def __init__(self, instant: datetime):
        self._instant = ensure_utc(instant)

    def now(self) -> datetime:
        return self._instant


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_month(value: datetime) -> datetime:
    return value.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def end_of_month(value: datetime) -> datetime:
    return start_of_month(value) + relativedelta(months=1) - timedelta(microseconds=1)


def end_of_quarter(value: datetime) -> datetime:
    last_month = ((value.month - 1) // 3 + 1) * 3
    return end_of_month(value.replace(month=last_month, day=1))


def end_of_year(value: datetime) -> datetime:
    return end_of_month(value.replace(month=12, day=1))


def add_months(value: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping to the last day of short months"""
    return value + relativedelta(months=months)


def iter_months(start: datetime, end: datetime) -> Iterator[datetime]:
    """Yield the first instant of every month from start through end.

    The month holding ``end`` is always included, even when ``end`` falls
    in the middle of it.
    """
    cursor = start_of_month(start)
    while cursor <= end:
        yield cursor
        cursor = cursor + relativedelta(months=1)


def month_key(value: Union[date, datetime]) -> str:
    return value.strftime("%Y-%m")


def month_label(value: Union[date, datetime]) -> str:
    return value.strftime("%B %Y")


def whole_days_between(earlier: Optional[datetime], later: datetime) -> Optional[int]:
    """Absolute number of whole days between two instants"""
    if earlier is None:
        return None
    return abs(ensure_utc(later) - ensure_utc(earlier)).days
