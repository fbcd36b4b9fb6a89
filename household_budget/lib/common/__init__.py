"""Common utilities shared by the engine, the app state and the dashboard.

This module provides currency formatting/parsing and calendar-date helpers.
"""

from .formatting import escape_dollar_for_markdown, format_currency, parse_currency
from .dates import (
    ONE_DAY,
    to_date,
    optional_date,
    format_date,
    format_date_for_input,
    parse_date_from_input,
    is_today,
    get_relative_date_string,
)

__all__ = [
    # Currency
    'escape_dollar_for_markdown',
    'format_currency',
    'parse_currency',
    # Dates
    'ONE_DAY',
    'to_date',
    'optional_date',
    'format_date',
    'format_date_for_input',
    'parse_date_from_input',
    'is_today',
    'get_relative_date_string',
]
