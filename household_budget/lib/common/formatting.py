"""Formatting utilities for currency parsing and display."""

from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Union

_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER_RE = re.compile(r"^-?(\d+\.?\d*|\.\d+)")
_CENT = Decimal("0.01")


def parse_currency(value: Any) -> float:
    """Parse a user-entered money string into a number.

    Numbers pass through untouched. Text is stripped of everything except
    digits, ``.`` and ``-`` and the leading numeric part is read, so stray
    separators after the number are ignored.

    Args:
        value: A number, or text such as ``"$1,234.56"`` or ``"-$12.00"``

    Returns:
        The parsed amount, or ``0`` when nothing numeric (or nothing finite) remains

    Example:
        >>> parse_currency("$1,234.56")
        1234.56
        >>> parse_currency("-$12.00")
        -12.0
        >>> parse_currency("abc")
        0.0
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    if value is None:
        return 0.0

    cleaned = _NON_NUMERIC_RE.sub("", str(value))
    match = _LEADING_NUMBER_RE.match(cleaned)
    if not match:
        return 0.0
    parsed = float(match.group(0))
    return parsed if math.isfinite(parsed) else 0.0


def format_currency(amount: Union[float, int], include_sign: bool = True) -> str:
    """Format an amount as US dollars with two decimals and thousands separators.

    Halves round away from zero, and negatives carry a leading ``-``
    rather than parentheses.

    Args:
        amount: The amount to format
        include_sign: Whether to include the dollar sign

    Returns:
        Formatted currency string (e.g., "$1,234.57" or "-$100.00")

    Example:
        >>> format_currency(1234.567)
        '$1,234.57'
        >>> format_currency(-100)
        '-$100.00'
        >>> format_currency(1234.56, include_sign=False)
        '1,234.56'
    """
    if not math.isfinite(amount):
        # same text a browser currency formatter produces
        text = "NaN" if math.isnan(amount) else "\u221e"
        formatted = f"${text}" if include_sign else text
        return f"-{formatted}" if amount < 0 else formatted
    rounded = Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)
    negative = rounded < 0
    formatted = f"{abs(rounded):,.2f}"
    if include_sign:
        formatted = f"${formatted}"
    return f"-{formatted}" if negative else formatted


def escape_dollar_for_markdown(amount: float) -> str:
    """Format a dollar amount and escape the dollar sign for markdown rendering.

    Streamlit markdown treats ``$`` as a LaTeX math delimiter, so the sign
    has to be escaped before the value is embedded in markdown text.

    Example:
        >>> escape_dollar_for_markdown(1234.56)
        '\\\\$1,234.56'
    """
    return format_currency(amount).replace("$", "\\$")
