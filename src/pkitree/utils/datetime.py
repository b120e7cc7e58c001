# pkitree/utils/datetime.py

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

OutputFormat = Literal["openssl", "text", "compact"]

_FORMATS = {
    "openssl": "%Y%m%d%H%M%SZ",
    "text": "%b %d %H:%M:%S %Y UTC",
    "compact": "%H:%M %d %b %Y",
}


def _ensure_utc(dt: datetime) -> datetime:
    """
    Return a timezone-aware datetime in UTC.
    If `dt` is naive, treat it as UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

def _pattern(output_format: str) -> str:
    try:
        return _FORMATS[output_format]
    except KeyError:
        raise ValueError(f"Invalid date format: {output_format!r}") from None

def format_datetime(date: datetime, output_format: OutputFormat = "openssl") -> str:
    """
    Format a datetime in UTC using one of the canonical styles.

    Args:
        date: The datetime to format (naive treated as UTC).
        output_format: One of:
            - "openssl" → '%Y%m%d%H%M%SZ' (database friendly)
            - "text"    → '%b %d %H:%M:%S %Y UTC' (inspection output)
            - "compact" → '%H:%M %d %b %Y' (list output)

    Raises:
        ValueError: unknown output format
    """
    return _ensure_utc(date).strftime(_pattern(output_format))

def parse_datetime(value: str, input_format: OutputFormat = "openssl") -> datetime:
    """
    Parse a datetime string (e.g., from the database) into a UTC-aware datetime.
    """
    return datetime.strptime(value, _pattern(input_format)).replace(tzinfo=timezone.utc)

def now_utc() -> datetime:
    """Return current time as a timezone-aware UTC datetime, truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)

def add_years(date: datetime, years: int) -> datetime:
    """
    Add calendar years to a datetime. February 29th lands on February 28th
    when the target year is not a leap year.
    """
    try:
        return date.replace(year=date.year + years)
    except ValueError:
        return date.replace(year=date.year + years, day=28)
