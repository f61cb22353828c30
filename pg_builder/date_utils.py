"""Month / year ranges and date-range parsing for date filters."""

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Mapping, NamedTuple
from .errors import InvalidRangeFormatError

_ONE_MS = timedelta(milliseconds=1)


class DateRange(NamedTuple):
    start: Any
    end: Any


def _iso(dt: datetime) -> str:
    return dt.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def _last_instant_before(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=timezone.utc) - _ONE_MS


@lru_cache(maxsize=None)
def get_month_range(year: int, month: int) -> DateRange:
    """Range for a month; the start is the last instant of the previous month."""
    if not 1 <= month <= 12:
        raise InvalidRangeFormatError(f'Invalid month: {month}')
    next_year, next_month = (year + 1, 1) if month == 12 else (year, month + 1)
    try:
        return DateRange(_iso(_last_instant_before(year, month)),
                         _iso(_last_instant_before(next_year, next_month)))
    except (ValueError, OverflowError) as e:
        raise InvalidRangeFormatError(f'Invalid month range {year}-{month}: {e}') from e


@lru_cache(maxsize=None)
def get_year_range(year: int) -> DateRange:
    """Range for a year; the start is the last instant of the previous year."""
    try:
        return DateRange(_iso(_last_instant_before(year, 1)), _iso(_last_instant_before(year + 1, 1)))
    except (ValueError, OverflowError) as e:
        raise InvalidRangeFormatError(f'Invalid year: {year}: {e}') from e


def parse_date_range(value: Any) -> DateRange:
    """Parse "start,end" or a {start, end} mapping into a DateRange."""
    if isinstance(value, DateRange):
        return value
    if isinstance(value, str):
        parts = value.split(',')
        if len(parts) == 2:
            return DateRange(parts[0].strip(), parts[1].strip())
    elif isinstance(value, Mapping) and 'start' in value and 'end' in value:
        return DateRange(value['start'], value['end'])
    raise InvalidRangeFormatError('Invalid date range format. Use "start,end" or {start, end}')


def parse_month_year(value: Any) -> DateRange:
    """Expand "YYYY-MM" into its month range."""
    try:
        year, month = (int(p) for p in str(value).split('-'))
    except ValueError as e:
        raise InvalidRangeFormatError(f'Invalid month-year value: {value!r}, expected "YYYY-MM"') from e
    return get_month_range(year, month)


def parse_year(value: Any) -> DateRange:
    """Expand an integer-like year into its year range."""
    try:
        year = int(value)
    except (TypeError, ValueError) as e:
        raise InvalidRangeFormatError(f'Invalid year value: {value!r}') from e
    return get_year_range(year)
