"""Two-earner pay schedule kept for households that predate income sources.

The legacy income record names exactly two earners: the first is paid
biweekly, the second monthly. These functions reproduce how that record
turned into paychecks and period boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from ...models import LegacyIncomeConfig
from ..common.dates import ONE_DAY, to_date
from .cadence import get_next_biweekly_pay_date, get_next_monthly_pay_date

COMBINED_LABEL = 'Both'


@dataclass(frozen=True)
class LegacyPaycheck:
    source: str
    amount: float
    date: date
    first_date: date
    second_date: date

    @property
    def is_combined(self) -> bool:
        return self.source == COMBINED_LABEL


@dataclass(frozen=True)
class LegacyPayPeriodEnd:
    end_date: date
    next_paycheck: LegacyPaycheck


def get_next_paycheck(
    first_date: Any,
    second_date: Any,
    first_amount: float,
    second_amount: float,
    first_name: str = 'First earner',
    second_name: str = 'Second earner',
) -> LegacyPaycheck:
    """Pick whichever of the two paychecks comes first, combining them within a week.

    Args:
        first_date: Next pay date of the first (biweekly) earner
        second_date: Next pay date of the second (monthly) earner
        first_amount: First earner's pay amount
        second_amount: Second earner's pay amount
        first_name: Label used when the first paycheck stands alone
        second_name: Label used when the second paycheck stands alone

    Returns:
        A paycheck labelled ``"Both"`` with the summed amount when the dates
        are at most 7 days apart; otherwise the earlier paycheck alone
    """
    first = to_date(first_date)
    second = to_date(second_date)

    if abs((first - second).days) <= 7:
        return LegacyPaycheck(
            source=COMBINED_LABEL,
            amount=first_amount + second_amount,
            date=min(first, second),
            first_date=first,
            second_date=second,
        )

    if first <= second:
        return LegacyPaycheck(first_name, first_amount, first, first, second)
    return LegacyPaycheck(second_name, second_amount, second, first, second)


def get_pay_period_end_date(start_date: Any, config: LegacyIncomeConfig) -> LegacyPayPeriodEnd:
    """End date for a period starting on ``start_date`` under the legacy schedule.

    A pay date that falls exactly on ``start_date`` opened the period, so it
    is replaced by the following occurrence before the two are compared.
    """
    start = to_date(start_date)

    first_pay = get_next_biweekly_pay_date(config.first_next_pay_date, start)
    second_pay = get_next_monthly_pay_date(config.second_next_pay_date, start)

    if first_pay == start:
        first_pay = get_next_biweekly_pay_date(config.first_next_pay_date, start + ONE_DAY)
    if second_pay == start:
        second_pay = get_next_monthly_pay_date(config.second_next_pay_date, start + ONE_DAY)

    paycheck = get_next_paycheck(
        first_pay,
        second_pay,
        config.first_pay_amount,
        config.second_pay_amount,
        config.first_name,
        config.second_name,
    )
    return LegacyPayPeriodEnd(end_date=paycheck.date - ONE_DAY, next_paycheck=paycheck)
