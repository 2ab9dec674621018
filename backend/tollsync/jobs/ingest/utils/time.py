import re
from datetime import date, datetime, time, timedelta
from typing import Iterator
from zoneinfo import ZoneInfo

from tollsync.core.errors import InvalidDateFormat

ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)


def today_in(tz_name: str) -> date:
    return datetime.now(ZoneInfo(tz_name)).date()


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD, raising InvalidDateFormat instead of ValueError/TypeError."""
    if not isinstance(value, str) or not ISO_DATE.fullmatch(value.strip()):
        raise InvalidDateFormat(value)
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise InvalidDateFormat(value) from None


def midnight(day: date) -> datetime:
    return datetime.combine(day, time.min)


def hour_offset_to_dt(day: date, hour_offset: int) -> datetime:
    """
    Upstream reports hour-of-day (0-23) separately from the requested date.
    Values outside 0-23 would roll into another calendar day, so reject them.
    """
    if not 0 <= hour_offset <= 23:
        raise ValueError(f"Bad hour offset: {hour_offset}")
    return midnight(day) + timedelta(hours=hour_offset)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open [midnight, next midnight) interval covering one calendar date."""
    start = midnight(day)
    return start, start + timedelta(days=1)


def iter_dates(start: date, end: date) -> Iterator[date]:
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)
