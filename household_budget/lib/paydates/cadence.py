"""Next-pay-date algorithms, one per pay cadence.

All functions share one contract: given a reference anchor and a "from"
date, return the earliest qualifying pay date after "from". Inputs are
normalized to calendar dates first, so time of day never matters.

Weekly, biweekly and monthly cadences return the anchor itself when it is
on or after "from"; the anchor is treated as an already-valid upcoming date.

Monthly and semimonthly handle short months differently:

* monthly skips a month that lacks the anchor's day entirely
  (anchor Jan 31, from Feb 1 gives Mar 31, not Feb 28);
* semimonthly clamps each pay day to the month's last day
  (day 30 in February gives Feb 28).
"""

from __future__ import annotations

from calendar import monthrange
from datetime import date, timedelta
from typing import Any, Optional, Sequence, Tuple

from ...errors import UnknownCadenceError
from ...models import DEFAULT_SEMIMONTHLY_DAYS, IncomeSource
from ..common.dates import to_date

WEEKLY_PERIOD_DAYS = 7
BIWEEKLY_PERIOD_DAYS = 14


def _from_date(from_date: Any) -> date:
    return date.today() if from_date is None else to_date(from_date)


def _next_month(year: int, month: int) -> Tuple[int, int]:
    return (year + 1, 1) if month == 12 else (year, month + 1)


def _clamped_day(year: int, month: int, day: int) -> date:
    return date(year, month, min(day, monthrange(year, month)[1]))


def _next_cyclic_pay_date(reference_date: Any, from_date: Any, period_days: int) -> date:
    ref = to_date(reference_date)
    start = _from_date(from_date)

    if ref >= start:
        return ref

    cycles_passed = (start - ref).days // period_days
    next_pay = ref + timedelta(days=(cycles_passed + 1) * period_days)
    if next_pay <= start:
        next_pay += timedelta(days=period_days)
    return next_pay


def get_next_weekly_pay_date(reference_date: Any, from_date: Any = None) -> date:
    """Next date on a 7-day cycle from ``reference_date`` that falls after ``from_date``.

    Args:
        reference_date: Any known pay date of the source
        from_date: Date to calculate from; defaults to today

    Returns:
        ``reference_date`` if it is on or after ``from_date``; otherwise
        ``reference_date + k * 7`` for the smallest ``k`` landing after ``from_date``
    """
    return _next_cyclic_pay_date(reference_date, from_date, WEEKLY_PERIOD_DAYS)


def get_next_biweekly_pay_date(reference_date: Any, from_date: Any = None) -> date:
    """Same as :func:`get_next_weekly_pay_date` on a 14-day cycle."""
    return _next_cyclic_pay_date(reference_date, from_date, BIWEEKLY_PERIOD_DAYS)


def get_next_monthly_pay_date(reference_date: Any, from_date: Any = None) -> date:
    """Next date with the reference's day-of-month that falls after ``from_date``.

    Months without that day are skipped rather than clamped.

    Example:
        >>> get_next_monthly_pay_date(date(2026, 1, 31), date(2026, 2, 1))
        datetime.date(2026, 3, 31)
    """
    ref = to_date(reference_date)
    start = _from_date(from_date)

    if ref >= start:
        return ref

    day_of_month = ref.day
    year, month = start.year, start.month
    while True:
        if day_of_month <= monthrange(year, month)[1]:
            candidate = date(year, month, day_of_month)
            if candidate > start:
                return candidate
        year, month = _next_month(year, month)


def get_next_semimonthly_pay_date(semimonthly_days: Sequence[int], from_date: Any = None) -> date:
    """Next of two monthly pay days (e.g. the 1st and 15th) after ``from_date``.

    The days may be given in any order. Each is clamped to the last day of
    a shorter month.

    Example:
        >>> get_next_semimonthly_pay_date([15, 30], date(2026, 2, 20))
        datetime.date(2026, 2, 28)
    """
    start = _from_date(from_date)
    day1, day2 = sorted(semimonthly_days)
    year, month = start.year, start.month

    first = _clamped_day(year, month, day1)
    if first > start:
        return first

    second = _clamped_day(year, month, day2)
    if second > start:
        return second

    next_year, next_month = _next_month(year, month)
    return _clamped_day(next_year, next_month, day1)


def get_next_pay_date_by_cadence(source: IncomeSource, from_date: Optional[Any] = None) -> date:
    """Next pay date for an income source, dispatched on its cadence.

    Raises:
        UnknownCadenceError: If the cadence is not weekly, biweekly, semimonthly or monthly
    """
    cadence = source.cadence
    if cadence == 'weekly':
        return get_next_weekly_pay_date(source.next_pay_date, from_date)
    if cadence == 'biweekly':
        return get_next_biweekly_pay_date(source.next_pay_date, from_date)
    if cadence == 'semimonthly':
        return get_next_semimonthly_pay_date(source.semimonthly_days or DEFAULT_SEMIMONTHLY_DAYS, from_date)
    if cadence == 'monthly':
        return get_next_monthly_pay_date(source.next_pay_date, from_date)
    raise UnknownCadenceError(cadence)
