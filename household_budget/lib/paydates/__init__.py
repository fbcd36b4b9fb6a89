"""Pay-date engine.

This module computes next pay dates per cadence, combines income sources
into paycheck events, and derives pay-period boundaries and progress.
"""

from .cadence import (
    get_next_weekly_pay_date,
    get_next_biweekly_pay_date,
    get_next_monthly_pay_date,
    get_next_semimonthly_pay_date,
    get_next_pay_date_by_cadence,
)
from .paychecks import (
    NextPaycheck,
    PayPeriodEnd,
    PayPeriodProgress,
    get_next_paycheck_from_sources,
    get_pay_period_end_date_from_sources,
    get_pay_period_progress,
)
from .legacy import (
    LegacyPaycheck,
    LegacyPayPeriodEnd,
    get_next_paycheck,
    get_pay_period_end_date,
)
from .income import (
    IncomeSetup,
    SourcesIncome,
    LegacyIncome,
    NoIncome,
    resolve_income_setup,
    next_paycheck_for,
    pay_period_end_for,
)

__all__ = [
    # Cadence
    'get_next_weekly_pay_date',
    'get_next_biweekly_pay_date',
    'get_next_monthly_pay_date',
    'get_next_semimonthly_pay_date',
    'get_next_pay_date_by_cadence',
    # Paychecks
    'NextPaycheck',
    'PayPeriodEnd',
    'PayPeriodProgress',
    'get_next_paycheck_from_sources',
    'get_pay_period_end_date_from_sources',
    'get_pay_period_progress',
    # Legacy two-earner schedule
    'LegacyPaycheck',
    'LegacyPayPeriodEnd',
    'get_next_paycheck',
    'get_pay_period_end_date',
    # Income setup
    'IncomeSetup',
    'SourcesIncome',
    'LegacyIncome',
    'NoIncome',
    'resolve_income_setup',
    'next_paycheck_for',
    'pay_period_end_for',
]
