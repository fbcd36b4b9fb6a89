import math
from datetime import date

import pytest

from household_budget.errors import (
    BudgetError,
    InvalidAmountError,
    InvalidDescriptionError,
    InvalidIncomeSourceError,
    InvalidPaymentMethodError,
    UnknownCadenceError,
)
from household_budget.models import (
    AccountOverride,
    IncomeSource,
    LegacyIncomeConfig,
    PayPeriod,
    overrides_by_method,
    validate_income_source,
    validate_one_time_income,
    validate_override_total,
    validate_payment_method,
    validate_transaction_amount,
)


def test_pay_period_from_document():
    period = PayPeriod.from_document({
        'id': 'p1',
        'startDate': '2026-01-02',
        'endDate': '2026-01-15T00:00:00',
        'paycheckAmount': 5000,
        'incomeSourceIds': ['a', 'b'],
    })

    assert period.start_date == date(2026, 1, 2)
    assert period.end_date == date(2026, 1, 15)
    assert period.paycheck_amount == 5000.0
    assert period.mortgage_carveout == pytest.approx(566.67)
    assert period.income_source_ids == ('a', 'b')


def test_zero_carveout_is_kept():
    period = PayPeriod.from_document({'startDate': '2026-01-02', 'endDate': '2026-01-15', 'mortgageCarveout': 0})
    assert period.mortgage_carveout == 0


def test_income_source_semimonthly_days():
    semimonthly = IncomeSource.from_document({
        'name': 'Sam', 'cadence': 'semimonthly', 'payAmount': 3000, 'isActive': True,
    })
    assert semimonthly.semimonthly_days == (1, 15)
    assert semimonthly.is_active

    weekly = IncomeSource.from_document({
        'name': 'Alex', 'cadence': 'weekly', 'payAmount': 800,
        'nextPayDate': '2026-01-09', 'semimonthlyDays': [1, 15], 'isActive': False,
    })
    assert weekly.semimonthly_days is None
    assert not weekly.is_active


def test_overrides_by_method():
    overrides = [
        AccountOverride.from_document({'payPeriodId': 'p1', 'account': 'Amex', 'overrideTotal': 120}),
        AccountOverride.from_document({'payPeriodId': 'p1', 'account': 'Savor', 'overrideTotal': 0}),
    ]
    assert overrides_by_method(overrides) == {'Amex': 120.0, 'Savor': 0.0}
    assert AccountOverride.document_id('p1', 'Chase Amazon') == 'p1_Chase Amazon'


def test_legacy_config_to_income_sources():
    legacy = LegacyIncomeConfig.from_document({
        'firstPayAmount': 2500,
        'firstNextPayDate': '2026-01-02',
        'secondPayAmount': 0,
        'secondNextPayDate': '2026-01-15',
    })
    sources = legacy.to_income_sources()

    assert [(s.name, s.cadence) for s in sources] == [('First earner', 'biweekly')]
    assert LegacyIncomeConfig.from_document(None) is None


@pytest.mark.parametrize('amount', [0, -1, 'abc', None, True, math.nan, math.inf])
def test_invalid_transaction_amounts(amount):
    with pytest.raises(InvalidAmountError):
        validate_transaction_amount(amount)


def test_valid_transaction_amount():
    assert validate_transaction_amount(12) == 12.0


def test_payment_method():
    assert validate_payment_method('Chase Amazon') == 'Chase Amazon'
    with pytest.raises(InvalidPaymentMethodError):
        validate_payment_method('amex')


def test_override_total():
    assert validate_override_total(0) == 0.0
    with pytest.raises(InvalidAmountError):
        validate_override_total(-1)
    with pytest.raises(InvalidAmountError):
        validate_override_total('10')


def test_one_time_income():
    assert validate_one_time_income(-25, '  Refund correction ') == (-25.0, 'Refund correction')
    with pytest.raises(InvalidAmountError):
        validate_one_time_income(0, 'Gift')
    with pytest.raises(InvalidDescriptionError, match='description'):
        validate_one_time_income(25, '')
    with pytest.raises(BudgetError):
        validate_one_time_income(25, None)


def test_income_source_normalized():
    doc = validate_income_source({
        'name': ' Sam ',
        'payAmount': 3000,
        'cadence': 'semimonthly',
        'semimonthlyDays': [15, 1],
    })

    assert doc['name'] == 'Sam'
    assert doc['payAmount'] == 3000.0
    assert doc['semimonthlyDays'] == [1, 15]
    assert isinstance(doc['nextPayDate'], date)
    assert doc['isActive'] is True


def test_income_source_non_semimonthly_drops_days():
    doc = validate_income_source({
        'name': 'Alex', 'payAmount': 2500, 'cadence': 'biweekly',
        'nextPayDate': '2026-01-09', 'semimonthlyDays': [1, 15],
    })
    assert doc['semimonthlyDays'] is None
    assert doc['nextPayDate'] == date(2026, 1, 9)


def test_income_source_errors_per_field():
    with pytest.raises(InvalidIncomeSourceError) as excinfo:
        validate_income_source({'name': '', 'payAmount': 0, 'cadence': 'weekly'})
    assert set(excinfo.value.errors) == {'name', 'payAmount', 'nextPayDate'}

    with pytest.raises(InvalidIncomeSourceError) as excinfo:
        validate_income_source({'name': 'Sam', 'payAmount': 10, 'cadence': 'semimonthly', 'semimonthlyDays': [5, 5]})
    assert excinfo.value.errors == {'semimonthlyDays': 'Days must be different'}

    with pytest.raises(UnknownCadenceError):
        validate_income_source({'name': 'Sam', 'payAmount': 10, 'cadence': 'daily'})


def test_income_source_without_active_flag_is_inactive():
    source = IncomeSource.from_document({
        'name': 'Alex', 'cadence': 'biweekly', 'payAmount': 2500, 'nextPayDate': '2026-01-09',
    })
    assert not source.is_active
