"""Resolve which income model is in force and answer paycheck questions for it.

A household is configured either with a list of income sources, with the
older two-earner record, or not at all. :func:`resolve_income_setup` picks
one variant; everything downstream calls :func:`next_paycheck_for` and
:func:`pay_period_end_for` and receives the same :class:`NextPaycheck` /
:class:`PayPeriodEnd` shapes whichever variant produced them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Optional, Sequence, Tuple, Union

from ...models import IncomeSource, LegacyIncomeConfig
from ..common.dates import to_date
from .cadence import get_next_biweekly_pay_date, get_next_monthly_pay_date
from .legacy import LegacyPaycheck, get_next_paycheck, get_pay_period_end_date
from .paychecks import (
    FALLBACK_PERIOD_DAYS,
    NextPaycheck,
    PayPeriodEnd,
    get_next_paycheck_from_sources,
    get_pay_period_end_date_from_sources,
)


@dataclass(frozen=True)
class SourcesIncome:
    sources: Tuple[IncomeSource, ...]


@dataclass(frozen=True)
class LegacyIncome:
    config: LegacyIncomeConfig


@dataclass(frozen=True)
class NoIncome:
    pass


IncomeSetup = Union[SourcesIncome, LegacyIncome, NoIncome]


def resolve_income_setup(
    sources: Sequence[IncomeSource],
    legacy: Optional[LegacyIncomeConfig] = None,
) -> IncomeSetup:
    """Income sources win whenever any exist, even if all are inactive.

    A legacy record is only usable when both earners have a pay date.
    """
    if sources:
        return SourcesIncome(tuple(sources))
    if legacy is not None and legacy.first_next_pay_date and legacy.second_next_pay_date:
        return LegacyIncome(legacy)
    return NoIncome()


def _from_legacy(paycheck: LegacyPaycheck, config: LegacyIncomeConfig) -> NextPaycheck:
    if paycheck.is_combined:
        sources = (config.first_source(), config.second_source())
    elif paycheck.first_date <= paycheck.second_date:
        sources = (config.first_source(),)
    else:
        sources = (config.second_source(),)
    return NextPaycheck(
        sources=sources,
        source_names=paycheck.source,
        amount=paycheck.amount,
        date=paycheck.date,
        is_combined=paycheck.is_combined,
    )


def next_paycheck_for(setup: IncomeSetup, from_date: Any = None) -> Optional[NextPaycheck]:
    """Next paycheck on or after ``from_date`` (today by default), or ``None``."""
    if isinstance(setup, SourcesIncome):
        return get_next_paycheck_from_sources(setup.sources, from_date)
    if isinstance(setup, LegacyIncome):
        config = setup.config
        paycheck = get_next_paycheck(
            get_next_biweekly_pay_date(config.first_next_pay_date, from_date),
            get_next_monthly_pay_date(config.second_next_pay_date, from_date),
            config.first_pay_amount,
            config.second_pay_amount,
            config.first_name,
            config.second_name,
        )
        return _from_legacy(paycheck, config)
    return None


def pay_period_end_for(setup: IncomeSetup, start_date: Any) -> PayPeriodEnd:
    """End of a period starting on ``start_date``; 14 days when there is no income."""
    if isinstance(setup, SourcesIncome):
        return get_pay_period_end_date_from_sources(start_date, setup.sources)
    if isinstance(setup, LegacyIncome):
        legacy_end = get_pay_period_end_date(start_date, setup.config)
        return PayPeriodEnd(
            end_date=legacy_end.end_date,
            next_paycheck=_from_legacy(legacy_end.next_paycheck, setup.config),
        )
    start: date = to_date(start_date)
    return PayPeriodEnd(end_date=start + timedelta(days=FALLBACK_PERIOD_DAYS - 1), next_paycheck=None)
