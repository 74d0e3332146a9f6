"""Calendar-day keys: the unit of streak bookkeeping.

A key is ``YYYY-MM-DD`` in the user's local zone. Keys sort lexicographically
in calendar order. Offsets between keys are counted on calendar dates, so a
daylight-saving shift never changes the number of days between two keys.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, tzinfo

_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def date_key(instant: datetime | date, tz: tzinfo | None = None) -> str:
    """Key of the calendar day containing *instant*.

    Aware instants are converted to *tz* first when it is given.
    """
    if isinstance(instant, datetime):
        if tz is not None and instant.tzinfo is not None:
            instant = instant.astimezone(tz)
        instant = instant.date()
    return f"{instant.year:04d}-{instant.month:02d}-{instant.day:02d}"


def parse_date_key(key: str) -> date:
    """Parse a key into a date. Raises ValueError for anything malformed."""
    if not isinstance(key, str) or not _KEY_RE.match(key):
        raise ValueError(f"Invalid date key: {key!r}")
    return date.fromisoformat(key)


def is_date_key(value: object) -> bool:
    try:
        parse_date_key(value)  # type: ignore[arg-type]
    except ValueError:
        return False
    return True


def day_offset(start_key: str, end_key: str) -> int | None:
    """Whole calendar days from *start_key* to *end_key*, or None if either is invalid."""
    try:
        start = parse_date_key(start_key)
        end = parse_date_key(end_key)
    except ValueError:
        return None
    return (end - start).days


def add_days(key: str, days: int) -> str:
    return date_key(parse_date_key(key) + timedelta(days=days))


def next_date_key(instant: datetime | date, tz: tzinfo | None = None) -> str:
    return add_days(date_key(instant, tz), 1)


def day_number(run_start_date: str, key: str) -> int | None:
    """1-based cycle day of *key* (day 1 is the run start)."""
    offset = day_offset(run_start_date, key)
    return None if offset is None else offset + 1
