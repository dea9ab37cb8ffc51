"""
Market clock helpers.

Every date the caches reason about (bar dates, "today", staleness) is a
US/Eastern calendar date, whatever timezone the provider or the host uses.
"""

from datetime import date, datetime, time, timedelta
from typing import Iterator, Union

import pytz
from dateutil import parser as date_parser

EASTERN_TZ = pytz.timezone("US/Eastern")


def now_eastern() -> datetime:
    """Default clock for every cache and service."""
    return datetime.now(EASTERN_TZ)


def to_eastern(dt: datetime) -> datetime:
    # Naive values come from our own files and are Eastern wall time
    if dt.tzinfo is None:
        return EASTERN_TZ.localize(dt)
    return dt.astimezone(EASTERN_TZ)


def parse_datetime_eastern(value: str) -> datetime:
    """Parse an ISO-ish timestamp written by a cache file or a provider."""
    return to_eastern(date_parser.parse(value))


def eastern_date(dt: datetime) -> date:
    """Market date of an instant, e.g. 2024-01-03T02:00Z is 2024-01-02."""
    return to_eastern(dt).date()


def to_trading_date(value: Union[str, date, datetime]) -> date:
    """
    Reduce a bar timestamp to the US/Eastern calendar date it trades on.

    Plain dates and date-only strings are taken as-is. A timestamp at exactly
    midnight in its own timezone is a daily bar label (crypto bars come as
    00:00 UTC) and keeps its own date. Intraday timestamps such as
    "2024-01-03T14:30:00Z" are shifted to Eastern first.
    """
    if isinstance(value, datetime):
        return _bar_date(value)
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    return _bar_date(date_parser.parse(text))


def _bar_date(dt: datetime) -> date:
    if dt.time() == time.min:
        return dt.date()
    return eastern_date(dt)


def is_trading_day(day: date) -> bool:
    """Monday to Friday; exchange holidays are not modelled."""
    return day.weekday() < 5


def iter_trading_days(start: date, end: date) -> Iterator[date]:
    """Trading days in [start, end], oldest first."""
    day = start
    while day <= end:
        if is_trading_day(day):
            yield day
        day += timedelta(days=1)
