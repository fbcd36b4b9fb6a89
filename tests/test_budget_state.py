from datetime import date

import pytest

from household_budget.budget_state import BudgetState
from household_budget.db import DocumentStore
from household_budget.errors import (
    DocumentNotFoundError,
    IncomeNotConfiguredError,
    InvalidAmountError,
    InvalidIncomeSourceError,
    InvalidPaymentMethodError,
    NoActivePayPeriodError,
)
from household_budget.lib.budgets import CheckingBudget, PaycheckBudget

TODAY = date(2026, 1, 5)


def _period_doc(start=date(2026, 1, 2), end=date(2026, 1, 15), **fields):
    doc = {
        'startDate': start,
        'endDate': end,
        'startingCheckingBalance': 6483.35,
        'paycheckAmount': 5000.0,
        'paycheckSource': 'Alex',
        'mortgageCarveout': 566.67,
        'savingsAmount': 1.0,
    }
    doc.update(fields)
    return doc


@pytest.fixture
def store(tmp_path):
    store = DocumentStore(tmp_path / 'budget.db')
    store.init_db()
    yield store
    store.close()


@pytest.fixture
def state(store):
    state = BudgetState(store, today=lambda: TODAY).start()
    yield state
    state.close()


@pytest.fixture
def active_state(state):
    state.create_pay_period(_period_doc())
    return state


def test_empty_state(state):
    view = state.view

    assert state.current_pay_period is None
    assert isinstance(view.budget, PaycheckBudget)
    assert view.remaining == 0
    assert view.next_paycheck is None
    assert (view.progress.current_day, view.progress.total_days) == (0, 0)
    assert view.checking_floor == 4700


def test_period_scoped_actions_need_a_period(state):
    with pytest.raises(NoActivePayPeriodError):
        state.add_transaction(10.0, 'Amex')
    with pytest.raises(NoActivePayPeriodError):
        state.set_override('Amex', 10.0)
    with pytest.raises(NoActivePayPeriodError):
        state.clear_override('Amex')
    with pytest.raises(NoActivePayPeriodError):
        state.add_one_time_income(100.0, 'Gift')
    with pytest.raises(NoActivePayPeriodError):
        state.update_current_pay_period({'savingsAmount': 5})


def test_new_period_requires_income(state):
    assert state.new_pay_period_defaults() is None
    with pytest.raises(IncomeNotConfiguredError):
        state.start_new_pay_period()


def test_view_recomputes_from_transactions(active_state):
    state = active_state
    state.add_transaction(3861.34, 'Amex')
    state.add_transaction(277.54, 'Chase Amazon')
    state.add_transaction(1194.66, 'Savor')

    view = state.view
    assert len(state.transactions) == 3
    assert view.budget.total_spending == pytest.approx(5333.54)
    assert view.remaining == pytest.approx(882.14)
    assert view.available == pytest.approx(6783.35)
    assert view.status.label == 'Low Budget'
    assert (view.progress.current_day, view.progress.days_remaining) == (4, 11)

    assert state.toggle_budget_view() == 'checking'
    view = state.view
    assert isinstance(view.budget, CheckingBudget)
    assert view.remaining == pytest.approx(5582.14)
    assert view.available == pytest.approx(5582.14 + 5333.54)


def test_listeners_receive_each_new_view(active_state):
    seen = []
    unsubscribe = active_state.subscribe(seen.append)
    assert len(seen) == 1

    active_state.add_transaction(25.0, 'Checking')
    assert seen[-1].budget.card_totals['Checking'] == pytest.approx(25.0)

    unsubscribe()
    count = len(seen)
    active_state.add_transaction(5.0, 'Checking')
    assert len(seen) == count


def test_invalid_view_is_rejected(state):
    with pytest.raises(ValueError):
        state.set_budget_view('weekly')


def test_transaction_validation(active_state):
    with pytest.raises(InvalidAmountError):
        active_state.add_transaction(0, 'Amex')
    with pytest.raises(InvalidAmountError):
        active_state.add_transaction(-5.0, 'Amex')
    with pytest.raises(InvalidPaymentMethodError):
        active_state.add_transaction(5.0, 'Visa')


def test_override_follows_transaction_changes(active_state):
    state = active_state
    state.set_override('Amex', 500.0)
    assert state.overrides == {'Amex': 500.0}

    txn_id = state.add_transaction(50.0, 'Amex')
    assert state.overrides['Amex'] == pytest.approx(550.0)

    state.update_transaction(txn_id, amount=80.0)
    assert state.overrides['Amex'] == pytest.approx(580.0)

    state.set_override('Savor', 100.0)
    state.update_transaction(txn_id, payment_method='Savor')
    assert state.overrides['Amex'] == pytest.approx(500.0)
    assert state.overrides['Savor'] == pytest.approx(180.0)

    state.delete_transaction(txn_id)
    assert state.overrides['Savor'] == pytest.approx(100.0)
    assert state.transactions == []


def test_override_adjustment_never_goes_negative(active_state):
    state = active_state
    txn_id = state.add_transaction(80.0, 'Amex')
    state.set_override('Amex', 10.0)

    state.delete_transaction(txn_id)
    assert state.overrides['Amex'] == 0


def test_accounts_without_override_are_left_alone(active_state):
    state = active_state
    txn_id = state.add_transaction(40.0, 'Chase Amazon')
    state.update_transaction(txn_id, amount=60.0, payment_method='Checking')

    assert state.overrides == {}
    assert state.view.budget.card_totals['Checking'] == pytest.approx(60.0)


def test_clear_override_restores_transaction_sum(active_state):
    state = active_state
    state.add_transaction(100.0, 'Amex')
    state.set_override('Amex', 0.0)
    assert state.view.budget.card_totals['Amex'] == 0

    state.clear_override('Amex')
    assert state.overrides == {}
    assert state.view.budget.card_totals['Amex'] == pytest.approx(100.0)


def test_transactions_fall_back_to_client_sort_without_index(tmp_path):
    store = DocumentStore(tmp_path / 'bare.db')
    store.init_db(create_indexes=False)
    state = BudgetState(store, today=lambda: TODAY).start()
    state.create_pay_period(_period_doc())

    state.add_transaction(1.0, 'Amex')
    state.add_transaction(2.0, 'Amex')
    state.add_transaction(3.0, 'Savor')
    state.add_one_time_income(10.0, 'Refund')
    state.add_one_time_income(20.0, 'Gift')

    assert [t.amount for t in state.transactions] == [3.0, 2.0, 1.0]
    assert [i.description for i in state.one_time_income_items] == ['Gift', 'Refund']
    state.close()
    store.close()


def test_selection_switches_period_scoped_data(active_state):
    state = active_state
    first_id = state.current_pay_period.id
    state.add_transaction(10.0, 'Amex')

    second_id = state.create_pay_period(_period_doc(start=date(2026, 1, 16), end=date(2026, 1, 29)))
    assert state.current_pay_period.id == second_id
    assert state.transactions == []

    state.select_pay_period(first_id)
    assert [t.amount for t in state.transactions] == [10.0]

    # an edit elsewhere keeps the selection
    state.update_pay_period(second_id, {'savingsAmount': 50.0})
    assert state.current_pay_period.id == first_id
    assert len(state.view.previous_periods) == 1


def test_period_update_keeps_dates_ordered(active_state):
    state = active_state
    period_id = state.current_pay_period.id

    with pytest.raises(ValueError):
        state.update_pay_period(period_id, {'endDate': date(2025, 12, 1)})
    with pytest.raises(ValueError):
        state.update_current_pay_period({'startDate': '2026-02-01'})
    assert state.current_pay_period.end_date == date(2026, 1, 15)
    assert state.view.progress.total_days == 14

    state.update_current_pay_period({'startDate': '2026-01-03', 'endDate': '2026-01-16'})
    assert state.current_pay_period.start_date == date(2026, 1, 3)
    assert state.current_pay_period.end_date == date(2026, 1, 16)

    with pytest.raises(DocumentNotFoundError):
        state.update_pay_period('missing', {'endDate': date(2026, 1, 20)})


def test_one_time_income(active_state):
    state = active_state
    state.add_one_time_income(500.0, 'Bonus')

    assert state.view.one_time_income_total == pytest.approx(500.0)
    assert state.view.budget.total_income == pytest.approx(5500.0)
    assert state.view.remaining == pytest.approx(6483.35 - 4700 + 5500.0 - 566.67 - 1.0)

    # a non-zero snapshot on the period wins over the items
    state.update_current_pay_period({'oneTimeIncome': 200.0})
    assert state.view.budget.one_time_income == pytest.approx(200.0)

    item_id = state.one_time_income_items[0].id
    state.update_current_pay_period({'oneTimeIncome': 0})
    state.delete_one_time_income(item_id)
    assert state.view.one_time_income_total == 0


def test_one_time_income_validation(active_state):
    with pytest.raises(InvalidAmountError):
        active_state.add_one_time_income(0, 'Nothing')
    with pytest.raises(ValueError):
        active_state.add_one_time_income(10.0, '   ')


def test_checking_floor_precedence(state, store):
    assert state.checking_floor == 4700

    state.save_legacy_income_config({'checkingFloor': 4200})
    assert state.checking_floor == 4200

    state.update_app_config({'checkingFloor': 5000})
    assert state.view.checking_floor == 5000

    state.update_app_config({'checkingFloor': 0})
    assert state.checking_floor == 4200


def test_income_sources_drive_new_period_defaults(state):
    source_id = state.add_income_source({
        'name': 'Alex',
        'payAmount': 2500.0,
        'cadence': 'biweekly',
        'nextPayDate': date(2026, 1, 9),
    })

    defaults = state.new_pay_period_defaults()
    assert defaults.start_date == TODAY
    assert defaults.end_date == date(2026, 1, 8)
    assert defaults.paycheck_source == 'Alex'
    assert defaults.paycheck_amount == 2500.0
    assert defaults.income_source_ids == (source_id,)
    assert defaults.starting_checking_balance == 0
    assert defaults.mortgage_carveout == pytest.approx(566.67)

    period_id = state.start_new_pay_period(starting_checking_balance=1234.0)
    assert state.current_pay_period.id == period_id
    assert state.current_pay_period.starting_checking_balance == 1234.0
    assert state.current_pay_period.income_source_ids == (source_id,)


def test_defaults_carry_projected_checking(active_state):
    state = active_state
    state.add_income_source({
        'name': 'Alex', 'payAmount': 2500.0, 'cadence': 'biweekly', 'nextPayDate': date(2026, 1, 9),
    })
    state.add_transaction(3861.34, 'Amex')
    state.add_transaction(277.54, 'Chase Amazon')
    state.add_transaction(1194.66, 'Savor')

    # paycheck view is selected, the carried balance is still the checking projection
    assert state.budget_view == 'paycheck'
    assert state.new_pay_period_defaults().starting_checking_balance == pytest.approx(5582.14)


def test_income_source_updates_and_toggle(state):
    source_id = state.add_income_source({
        'name': 'Sam', 'payAmount': 3000.0, 'cadence': 'semimonthly', 'semimonthlyDays': [15, 1],
    })
    assert state.income_sources[0].semimonthly_days == (1, 15)
    assert state.view.next_paycheck.date == date(2026, 1, 15)

    state.update_income_source(source_id, {'payAmount': 3200.0})
    assert state.income_sources[0].pay_amount == 3200.0

    with pytest.raises(InvalidIncomeSourceError):
        state.update_income_source(source_id, {'payAmount': -1})

    assert state.toggle_income_source_active(source_id) is False
    assert state.view.next_paycheck is None

    state.delete_income_source(source_id)
    assert state.income_sources == []


def test_legacy_record_is_migrated_on_start(store):
    store.set('incomeConfig', 'config', {
        'firstName': 'Alex',
        'firstPayAmount': 2500.0,
        'firstNextPayDate': '2026-01-02',
        'secondName': 'Sam',
        'secondPayAmount': 3000.0,
        'secondNextPayDate': '2026-01-15',
        'checkingFloor': 4200.0,
    })
    state = BudgetState(store, today=lambda: TODAY).start()

    assert state.migration_result.status == 'migrated'
    assert [s.name for s in state.income_sources] == ['Alex', 'Sam']
    assert [s.cadence for s in state.income_sources] == ['biweekly', 'monthly']
    assert state.app_config.checking_floor == 4200.0

    # deleting every source does not trigger a second migration
    for source in list(state.income_sources):
        state.delete_income_source(source.id)
    assert state.income_sources == []
    assert state.migration_result.status == 'migrated'
    state.close()


def test_legacy_schedule_is_used_until_sources_exist(store):
    store.set('incomeConfig', 'config', {
        'firstName': 'Alex',
        'firstPayAmount': 2500.0,
        'firstNextPayDate': '2026-01-02',
        'secondName': 'Sam',
        'secondPayAmount': 3000.0,
        'secondNextPayDate': '2026-01-28',
    })
    # completed marker prevents the migration from creating sources
    store.set('migrations', 'legacy-income-sources', {'completedAt': '2026-01-01T00:00:00'})
    state = BudgetState(store, today=lambda: TODAY).start()

    assert state.migration_result.status == 'skipped-completed'
    paycheck = state.view.next_paycheck
    assert paycheck.source_names == 'Alex'
    assert paycheck.date == date(2026, 1, 16)
    state.close()


def test_states_sharing_a_store_keep_their_own_selection(store):
    first = BudgetState(store, today=lambda: TODAY).start()
    second = BudgetState(store, today=lambda: TODAY).start()
    older_id = first.create_pay_period(_period_doc())
    newer_id = first.create_pay_period(_period_doc(start=date(2026, 1, 16), end=date(2026, 1, 29)))

    second.select_pay_period(older_id)
    second.set_budget_view('checking')

    assert first.current_pay_period.id == newer_id
    assert first.budget_view == 'paycheck'
    assert second.current_pay_period.id == older_id

    # writes from one state reach the other through the store
    first.select_pay_period(older_id)
    first.add_transaction(12.5, 'Savor')
    assert [t.amount for t in second.transactions] == [12.5]
    assert second.view.budget.card_totals['Savor'] == pytest.approx(12.5)

    first.close()
    second.close()
