"""Calendar-date normalization and display helpers.

Everything in the pay-date engine works on ``datetime.date`` values. The
helpers here turn the shapes that reach the app (datetimes, pandas
timestamps, ``YYYY-MM-DD`` strings from forms or the document store) into
plain calendar dates, dropping any time of day.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Optional

ONE_DAY = timedelta(days=1)


def to_date(value: Any) -> date:
    """Normalize ``value`` to a calendar date (midnight, timezone-naive).

    Args:
        value: A ``date``, ``datetime`` (including ``pandas.Timestamp``) or ISO string

    Returns:
        The calendar date

    Raises:
        TypeError: If the value cannot be interpreted as a date
        ValueError: If a string is not an ISO date or datetime
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) > 10:
            return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
        return date.fromisoformat(text)
    raise TypeError(f"Cannot interpret {value!r} as a date")


def optional_date(value: Any) -> Optional[date]:
    """Like :func:`to_date` but passes ``None`` and empty strings through as ``None``."""
    if value is None or value == '':
        return None
    return to_date(value)


def format_date(value: Any) -> str:
    """Format a date for display, e.g. ``Jan 15, 2026``."""
    d = to_date(value)
    return f"{d.strftime('%b')} {d.day}, {d.year}"


def format_date_for_input(value: Any) -> str:
    """Format a date for input fields (``YYYY-MM-DD``)."""
    return to_date(value).isoformat()


def parse_date_from_input(text: str) -> date:
    """Parse a ``YYYY-MM-DD`` form value as a local calendar date."""
    year, month, day = (int(part) for part in text.strip().split('-'))
    return date(year, month, day)


def is_today(value: Any, today: Optional[date] = None) -> bool:
    return to_date(value) == (today or date.today())


def get_relative_date_string(value: Any, today: Optional[date] = None) -> str:
    """Describe a date relative to today ("tomorrow", "in 3 days", "2 days ago")."""
    diff_days = (to_date(value) - (today or date.today())).days
    if diff_days == 0:
        return 'today'
    if diff_days == 1:
        return 'tomorrow'
    if diff_days == -1:
        return 'yesterday'
    if diff_days > 0:
        return f"in {diff_days} days"
    return f"{abs(diff_days)} days ago"
