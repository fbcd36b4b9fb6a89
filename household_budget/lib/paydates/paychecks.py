"""Combine income sources into paycheck events and pay-period boundaries.

A pay period runs from its start date to the day before the next paycheck.
When several earners are paid within a week of each other, their checks are
treated as one combined paycheck that funds the same period.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable, Optional, Tuple

from ...models import IncomeSource
from ..common.dates import ONE_DAY, to_date
from .cadence import get_next_pay_date_by_cadence

SAME_WEEK_DAYS = 7
FALLBACK_PERIOD_DAYS = 14


@dataclass(frozen=True)
class NextPaycheck:
    sources: Tuple[IncomeSource, ...]
    source_names: str
    amount: float
    date: date
    is_combined: bool

    @property
    def source_ids(self) -> Tuple[str, ...]:
        return tuple(s.id for s in self.sources if s.id is not None)


@dataclass(frozen=True)
class PayPeriodEnd:
    end_date: date
    next_paycheck: Optional[NextPaycheck]


@dataclass(frozen=True)
class PayPeriodProgress:
    current_day: int
    total_days: int
    days_remaining: int


def get_next_paycheck_from_sources(
    income_sources: Iterable[IncomeSource],
    from_date: Any = None,
) -> Optional[NextPaycheck]:
    """Find the next paycheck across all active income sources.

    Every source paid within 7 days (inclusive) of the earliest upcoming pay
    date is folded into one combined paycheck dated on that earliest day.

    Args:
        income_sources: All configured sources; inactive ones are ignored
        from_date: Date to calculate from; defaults to today

    Returns:
        The next paycheck, or ``None`` when no source is active

    Example:
        >>> paycheck = get_next_paycheck_from_sources(sources, date(2025, 12, 30))
        >>> paycheck.source_names, paycheck.amount, paycheck.is_combined
        ('Alex + Sam', 5500.0, True)
    """
    active = [s for s in income_sources if s.is_active]
    if not active:
        return None

    dated = [(get_next_pay_date_by_cadence(s, from_date), s) for s in active]
    # stable sort keeps input order for equal dates
    dated.sort(key=lambda pair: pair[0])
    earliest_date, earliest_source = dated[0]

    same_week = [
        (pay_date, source)
        for pay_date, source in dated
        if abs((pay_date - earliest_date).days) <= SAME_WEEK_DAYS
    ]

    if len(same_week) > 1:
        return NextPaycheck(
            sources=tuple(source for _, source in same_week),
            source_names=' + '.join(source.name for _, source in same_week),
            amount=sum(source.pay_amount for _, source in same_week),
            date=earliest_date,
            is_combined=True,
        )

    return NextPaycheck(
        sources=(earliest_source,),
        source_names=earliest_source.name,
        amount=earliest_source.pay_amount,
        date=earliest_date,
        is_combined=False,
    )


def get_pay_period_end_date_from_sources(
    start_date: Any,
    income_sources: Iterable[IncomeSource],
) -> PayPeriodEnd:
    """End date for a period starting on ``start_date``: the day before the next paycheck.

    The search starts the day after ``start_date`` so a paycheck landing on
    the start date itself (the one that opened the period) is skipped. With
    no active sources the period falls back to 14 days.

    Example:
        >>> get_pay_period_end_date_from_sources(date(2026, 1, 1), []).end_date
        datetime.date(2026, 1, 14)
    """
    start = to_date(start_date)
    next_paycheck = get_next_paycheck_from_sources(income_sources, start + ONE_DAY)

    if next_paycheck is None:
        return PayPeriodEnd(
            end_date=start + timedelta(days=FALLBACK_PERIOD_DAYS - 1),
            next_paycheck=None,
        )

    return PayPeriodEnd(end_date=next_paycheck.date - ONE_DAY, next_paycheck=next_paycheck)


def get_pay_period_progress(start_date: Any, end_date: Any, today: Any = None) -> PayPeriodProgress:
    """Position of ``today`` within a pay period, counted in whole days.

    ``current_day`` is clamped into ``[1, total_days]``; ``days_remaining``
    counts today and never drops below zero.
    """
    start = to_date(start_date)
    end = to_date(end_date)
    now = date.today() if today is None else to_date(today)

    total_days = (end - start).days + 1
    current_day = (now - start).days + 1

    return PayPeriodProgress(
        current_day=max(1, min(current_day, total_days)),
        total_days=total_days,
        days_remaining=max(0, total_days - current_day + 1),
    )
