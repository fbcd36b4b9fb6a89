"""Reactive app state: store subscriptions in, dashboard view out.

:class:`BudgetState` holds one snapshot per subscribed collection. Every
snapshot is replaced wholesale when the store pushes a change, and each
replacement rebuilds the :class:`DashboardView` from scratch and hands it to
every registered listener. The view is always a pure function of the
current snapshots.

Actions write to the store and return once the write is done; the resulting
change comes back through the subscriptions like any other update.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

import pandas as pd

from .db import DocumentStore
from .errors import (
    DocumentNotFoundError,
    IncomeNotConfiguredError,
    MissingIndexError,
    NoActivePayPeriodError,
)
from .lib.budgets import (
    BudgetStatus,
    CheckingBudget,
    PaycheckBudget,
    budget_percentage,
    budget_status,
    calculate_checking_budget,
    calculate_paycheck_budget,
    previous_periods_frame,
    spending_breakdown_frame,
)
from .lib.common.dates import to_date
from .lib.paydates import (
    IncomeSetup,
    NextPaycheck,
    PayPeriodProgress,
    get_pay_period_progress,
    next_paycheck_for,
    pay_period_end_for,
    resolve_income_setup,
)
from .migration import (
    APP_CONFIG,
    CONFIG_DOC_ID,
    INCOME_CONFIG,
    INCOME_SOURCES,
    MigrationResult,
    migrate_legacy_income,
)
from .models import (
    DEFAULT_CHECKING_FLOOR,
    DEFAULT_MORTGAGE_CARVEOUT,
    PAYMENT_METHODS,
    AccountOverride,
    AppConfig,
    IncomeSource,
    LegacyIncomeConfig,
    OneTimeIncomeItem,
    PayPeriod,
    Transaction,
    overrides_by_method,
    validate_income_source,
    validate_one_time_income,
    validate_override_total,
    validate_payment_method,
    validate_transaction_amount,
)

logger = logging.getLogger(__name__)

PAY_PERIODS = 'payPeriods'
TRANSACTIONS = 'transactions'
ACCOUNT_OVERRIDES = 'accountOverrides'
ONE_TIME_INCOME = 'oneTimeIncome'

PAYCHECK_VIEW = 'paycheck'
CHECKING_VIEW = 'checking'
BUDGET_VIEWS = (PAYCHECK_VIEW, CHECKING_VIEW)

Budget = Union[PaycheckBudget, CheckingBudget]
ViewListener = Callable[['DashboardView'], None]


@dataclass(frozen=True)
class PayPeriodDefaults:
    """Suggested values for the next pay period, before any user edits."""

    start_date: date
    end_date: date
    paycheck_source: str
    paycheck_amount: float
    income_source_ids: Tuple[str, ...]
    starting_checking_balance: float
    mortgage_carveout: float = DEFAULT_MORTGAGE_CARVEOUT
    savings_amount: float = 0.0
    one_time_income: float = 0.0

    def to_document(self) -> Dict[str, Any]:
        return {
            'startDate': self.start_date,
            'endDate': self.end_date,
            'paycheckSource': self.paycheck_source,
            'paycheckAmount': self.paycheck_amount,
            'incomeSourceIds': list(self.income_source_ids),
            'startingCheckingBalance': self.starting_checking_balance,
            'mortgageCarveout': self.mortgage_carveout,
            'savingsAmount': self.savings_amount,
            'oneTimeIncome': self.one_time_income,
        }


@dataclass(frozen=True, eq=False)
class DashboardView:
    budget_view: str
    budget: Budget
    remaining: float
    available: float
    percentage: float
    status: BudgetStatus
    next_paycheck: Optional[NextPaycheck]
    progress: PayPeriodProgress
    one_time_income_total: float
    checking_floor: float
    previous_periods: pd.DataFrame
    spending_breakdown: pd.DataFrame


def _newest_first(docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(docs, key=lambda d: str(d.get('createdAt') or ''), reverse=True)


class BudgetState:
    """Current pay period, its transactions and settings, and the derived view.

    Example:
        >>> state = BudgetState(store).start()
        >>> state.subscribe(lambda view: print(view.remaining))
        >>> state.add_transaction(42.5, 'Amex')
    """

    def __init__(self, store: DocumentStore, today: Optional[Callable[[], date]] = None):
        self.store = store
        self._today = today or date.today

        self.pay_periods: List[PayPeriod] = []
        self.current_pay_period: Optional[PayPeriod] = None
        self.transactions: List[Transaction] = []
        self.overrides: Dict[str, float] = {}
        self.income_sources: List[IncomeSource] = []
        self.one_time_income_items: List[OneTimeIncomeItem] = []
        self.app_config: Optional[AppConfig] = None
        self.legacy_income_config: Optional[LegacyIncomeConfig] = None
        self.budget_view = PAYCHECK_VIEW
        self.loading = True
        self.view: Optional[DashboardView] = None
        self.migration_result: Optional[MigrationResult] = None

        self._selected_id: Optional[str] = None
        self._listeners: List[ViewListener] = []
        self._unsubscribes: List[Callable[[], None]] = []
        self._period_unsubscribes: List[Callable[[], None]] = []
        self._migration_attempted = False
        # store callbacks arrive on whichever thread made the write
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> 'BudgetState':
        """Open the store subscriptions and run the legacy income migration if needed."""
        self._unsubscribes = [
            self.store.subscribe(PAY_PERIODS, self._on_pay_periods, order_by='startDate', descending=True),
            self.store.subscribe(INCOME_SOURCES, self._on_income_sources, order_by='createdAt'),
            self.store.subscribe_document(APP_CONFIG, CONFIG_DOC_ID, self._on_app_config),
            self.store.subscribe_document(INCOME_CONFIG, CONFIG_DOC_ID, self._on_legacy_income_config),
        ]
        with self._lock:
            self.loading = False
        self._maybe_migrate()
        self._recompute()
        logger.info("Budget state started with %d pay period(s)", len(self.pay_periods))
        return self

    def close(self) -> None:
        self._close_period_subscriptions()
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes = []
        self._listeners = []

    def subscribe(self, listener: ViewListener) -> Callable[[], None]:
        """Register ``listener`` for every new view; it gets the current one right away."""
        self._listeners.append(listener)
        if self.view is not None:
            listener(self.view)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _maybe_migrate(self) -> None:
        with self._lock:
            if self.loading or self._migration_attempted:
                return
            if self.income_sources or self.legacy_income_config is None:
                return
            self._migration_attempted = True
        # the migration's writes call back into this state
        result = migrate_legacy_income(self.store)
        self.migration_result = result
        logger.info("Legacy income migration: %s", result.status)

    # ------------------------------------------------------------------
    # Subscription callbacks
    # ------------------------------------------------------------------

    def _on_pay_periods(self, docs: List[Dict[str, Any]]) -> None:
        with self._lock:
            self.pay_periods = [PayPeriod.from_document(d) for d in docs]
            by_id = {p.id: p for p in self.pay_periods}

            if self._selected_id in by_id:
                self.current_pay_period = by_id[self._selected_id]
            else:
                newest = self.pay_periods[0] if self.pay_periods else None
                self._switch_period(newest)
            self._recompute()

    def _on_transactions(self, docs: List[Dict[str, Any]]) -> None:
        with self._lock:
            self.transactions = [Transaction.from_document(d) for d in docs]
            self._recompute()

    def _on_overrides(self, docs: List[Dict[str, Any]]) -> None:
        with self._lock:
            self.overrides = overrides_by_method([AccountOverride.from_document(d) for d in docs])
            self._recompute()

    def _on_one_time_income(self, docs: List[Dict[str, Any]]) -> None:
        with self._lock:
            self.one_time_income_items = [OneTimeIncomeItem.from_document(d) for d in docs]
            self._recompute()

    def _on_income_sources(self, docs: List[Dict[str, Any]]) -> None:
        with self._lock:
            self.income_sources = [IncomeSource.from_document(d) for d in docs]
            self._recompute()
        self._maybe_migrate()

    def _on_app_config(self, doc: Optional[Dict[str, Any]]) -> None:
        with self._lock:
            self.app_config = AppConfig.from_document(doc)
            self._recompute()

    def _on_legacy_income_config(self, doc: Optional[Dict[str, Any]]) -> None:
        with self._lock:
            self.legacy_income_config = LegacyIncomeConfig.from_document(doc)
            self._recompute()
        self._maybe_migrate()

    # ------------------------------------------------------------------
    # Pay period selection
    # ------------------------------------------------------------------

    def select_pay_period(self, pay_period_id: str) -> None:
        with self._lock:
            for period in self.pay_periods:
                if period.id == pay_period_id:
                    self._switch_period(period)
                    self._recompute()
                    return
        raise DocumentNotFoundError(PAY_PERIODS, pay_period_id)

    def _switch_period(self, period: Optional[PayPeriod]) -> None:
        self.current_pay_period = period
        new_id = period.id if period is not None else None
        if new_id == self._selected_id and self._period_unsubscribes:
            return

        self._close_period_subscriptions()
        self._selected_id = new_id
        self.transactions = []
        self.overrides = {}
        self.one_time_income_items = []
        if new_id is None:
            return

        logger.debug("Selected pay period %s", new_id)
        self._period_unsubscribes = [
            self._subscribe_newest_first(TRANSACTIONS, new_id, self._on_transactions),
            self.store.subscribe(ACCOUNT_OVERRIDES, self._on_overrides, where={'payPeriodId': new_id}),
            self._subscribe_newest_first(ONE_TIME_INCOME, new_id, self._on_one_time_income),
        ]

    def _subscribe_newest_first(
        self,
        collection: str,
        pay_period_id: str,
        callback: Callable[[List[Dict[str, Any]]], None],
    ) -> Callable[[], None]:
        """Ordered subscription, or an unordered one sorted here when the index is missing."""
        where = {'payPeriodId': pay_period_id}
        cancels: List[Callable[[], None]] = []

        def on_error(exc: Exception) -> None:
            if not isinstance(exc, MissingIndexError):
                raise exc
            logger.info("Falling back to unordered %s subscription: %s", collection, exc)
            cancels.append(self.store.subscribe(
                collection,
                lambda docs: callback(_newest_first(docs)),
                where=where,
            ))

        cancels.append(self.store.subscribe(
            collection, callback, where=where, order_by='createdAt', descending=True, on_error=on_error,
        ))

        def unsubscribe() -> None:
            for cancel in cancels:
                cancel()

        return unsubscribe

    def _close_period_subscriptions(self) -> None:
        for unsubscribe in self._period_unsubscribes:
            unsubscribe()
        self._period_unsubscribes = []

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def income_setup(self) -> IncomeSetup:
        return resolve_income_setup(self.income_sources, self.legacy_income_config)

    @property
    def one_time_income_total(self) -> float:
        return sum(item.amount or 0.0 for item in self.one_time_income_items)

    @property
    def checking_floor(self) -> float:
        app_floor = self.app_config.checking_floor if self.app_config else None
        legacy_floor = self.legacy_income_config.checking_floor if self.legacy_income_config else None
        return app_floor or legacy_floor or DEFAULT_CHECKING_FLOOR

    def calculate_budget(self, view: Optional[str] = None) -> Budget:
        """Budget for the current period in ``view`` (the selected view by default)."""
        view = view or self.budget_view
        period = self.current_pay_period
        if period is None:
            empty = {m: 0.0 for m in PAYMENT_METHODS}
            if view == CHECKING_VIEW:
                return CheckingBudget(0.0, 0.0, 0.0, 0.0, DEFAULT_MORTGAGE_CARVEOUT, 0.0, empty)
            return PaycheckBudget(0.0, 0.0, 0.0, 0.0, 0.0, DEFAULT_MORTGAGE_CARVEOUT, 0.0, empty)

        params = dict(
            starting_checking_balance=period.starting_checking_balance,
            paycheck_amount=period.paycheck_amount,
            transactions=self.transactions,
            overrides=self.overrides,
            mortgage_carveout=period.mortgage_carveout,
            savings_amount=period.savings_amount,
            one_time_income=period.one_time_income or self.one_time_income_total,
        )
        if view == CHECKING_VIEW:
            return calculate_checking_budget(**params)
        return calculate_paycheck_budget(checking_floor=self.checking_floor, **params)

    def next_paycheck(self) -> Optional[NextPaycheck]:
        return next_paycheck_for(self.income_setup, self._today())

    def progress(self) -> PayPeriodProgress:
        period = self.current_pay_period
        if period is None:
            return PayPeriodProgress(current_day=0, total_days=0, days_remaining=0)
        return get_pay_period_progress(period.start_date, period.end_date, self._today())

    def build_view(self) -> DashboardView:
        budget = self.calculate_budget()
        if isinstance(budget, CheckingBudget):
            remaining = budget.projected_checking
            available = budget.projected_checking + budget.total_spending
        else:
            remaining = budget.remaining_budget
            available = budget.available_budget

        return DashboardView(
            budget_view=self.budget_view,
            budget=budget,
            remaining=remaining,
            available=available,
            percentage=budget_percentage(remaining, available),
            status=budget_status(remaining, available),
            next_paycheck=self.next_paycheck(),
            progress=self.progress(),
            one_time_income_total=self.one_time_income_total,
            checking_floor=self.checking_floor,
            previous_periods=previous_periods_frame(self.pay_periods),
            spending_breakdown=spending_breakdown_frame(
                budget.card_totals, self.overrides, budget.mortgage_carveout, budget.savings_amount,
            ),
        )

    def _recompute(self) -> None:
        with self._lock:
            if self.loading:
                return
            self.view = self.build_view()
            for listener in list(self._listeners):
                listener(self.view)

    # ------------------------------------------------------------------
    # View flag
    # ------------------------------------------------------------------

    def set_budget_view(self, view: str) -> None:
        if view not in BUDGET_VIEWS:
            raise ValueError(f"Unknown budget view: {view}")
        with self._lock:
            self.budget_view = view
            self._recompute()

    def toggle_budget_view(self) -> str:
        self.set_budget_view(CHECKING_VIEW if self.budget_view == PAYCHECK_VIEW else PAYCHECK_VIEW)
        return self.budget_view

    # ------------------------------------------------------------------
    # Pay period actions
    # ------------------------------------------------------------------

    def _require_period(self) -> PayPeriod:
        if self.current_pay_period is None or self.current_pay_period.id is None:
            raise NoActivePayPeriodError()
        return self.current_pay_period

    def new_pay_period_defaults(self) -> Optional[PayPeriodDefaults]:
        """Defaults for a period starting today, or ``None`` without an upcoming paycheck.

        The starting balance carries over the current period's projected
        checking balance, whichever budget view is selected.
        """
        setup = self.income_setup
        today = self._today()
        paycheck = next_paycheck_for(setup, today)
        if paycheck is None:
            return None

        end = pay_period_end_for(setup, today)
        if self.current_pay_period is not None:
            starting_balance = self.calculate_budget(CHECKING_VIEW).projected_checking
        else:
            starting_balance = 0.0

        return PayPeriodDefaults(
            start_date=today,
            end_date=end.end_date,
            paycheck_source=paycheck.source_names,
            paycheck_amount=paycheck.amount,
            income_source_ids=paycheck.source_ids,
            starting_checking_balance=starting_balance,
        )

    def start_new_pay_period(self, **overrides: Any) -> str:
        """Create a period from :meth:`new_pay_period_defaults` with ``overrides`` applied.

        Raises:
            IncomeNotConfiguredError: If there is no income to derive a period from
        """
        defaults = self.new_pay_period_defaults()
        if defaults is None:
            raise IncomeNotConfiguredError()
        return self.create_pay_period(replace(defaults, **overrides).to_document())

    def create_pay_period(self, data: Mapping[str, Any]) -> str:
        """Create a pay period from a camelCase document and make it the current one."""
        doc = dict(data)
        start = to_date(doc['startDate'])
        end = to_date(doc['endDate'])
        if start > end:
            raise ValueError('Pay period cannot end before it starts')
        doc['startDate'] = start
        doc['endDate'] = end
        doc.setdefault('mortgageCarveout', DEFAULT_MORTGAGE_CARVEOUT)
        doc.setdefault('savingsAmount', 0.0)
        doc.setdefault('oneTimeIncome', 0.0)
        pay_period_id = self.store.create(PAY_PERIODS, doc)
        logger.info("Created pay period %s (%s to %s)", pay_period_id, start, end)
        if any(p.id == pay_period_id for p in self.pay_periods):
            self.select_pay_period(pay_period_id)
        return pay_period_id

    def update_pay_period(self, pay_period_id: str, updates: Mapping[str, Any]) -> None:
        """Merge ``updates`` into a pay period; the merged dates must still be ordered.

        Raises:
            DocumentNotFoundError: If the period does not exist
            ValueError: If the period would end before it starts
        """
        doc = dict(updates)
        if 'startDate' in doc or 'endDate' in doc:
            existing = self.store.get(PAY_PERIODS, pay_period_id)
            if existing is None:
                raise DocumentNotFoundError(PAY_PERIODS, pay_period_id)
            start = to_date(doc.get('startDate', existing['startDate']))
            end = to_date(doc.get('endDate', existing['endDate']))
            if start > end:
                raise ValueError('Pay period cannot end before it starts')
            if 'startDate' in doc:
                doc['startDate'] = start
            if 'endDate' in doc:
                doc['endDate'] = end
        self.store.update(PAY_PERIODS, pay_period_id, doc)

    def update_current_pay_period(self, updates: Mapping[str, Any]) -> None:
        period = self._require_period()
        self.update_pay_period(period.id, updates)

    # ------------------------------------------------------------------
    # Transaction actions
    # ------------------------------------------------------------------

    def _find_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return next((t for t in self.transactions if t.id == transaction_id), None)

    def add_transaction(self, amount: float, payment_method: str) -> str:
        """Record a purchase; an overridden account's total grows by ``amount``."""
        payment_method = validate_payment_method(payment_method)
        amount = validate_transaction_amount(amount)
        period = self._require_period()

        if payment_method in self.overrides:
            self.set_override(payment_method, self.overrides[payment_method] + amount)

        return self.store.create(TRANSACTIONS, {
            'payPeriodId': period.id,
            'amount': amount,
            'paymentMethod': payment_method,
        })

    def update_transaction(
        self,
        transaction_id: str,
        amount: Optional[float] = None,
        payment_method: Optional[str] = None,
    ) -> None:
        """Edit a transaction and shift any overrides on the accounts it touches."""
        updates: Dict[str, Any] = {}
        if amount is not None:
            updates['amount'] = validate_transaction_amount(amount)
        if payment_method is not None:
            updates['paymentMethod'] = validate_payment_method(payment_method)

        existing = self._find_transaction(transaction_id)
        if existing is not None:
            old_method = existing.payment_method
            new_method = updates.get('paymentMethod', old_method)
            old_amount = existing.amount
            new_amount = updates.get('amount', old_amount)

            if old_method == new_method:
                if old_method in self.overrides and 'amount' in updates:
                    adjusted = self.overrides[old_method] + (new_amount - old_amount)
                    self.set_override(old_method, max(0.0, adjusted))
            else:
                if old_method in self.overrides:
                    self.set_override(old_method, max(0.0, self.overrides[old_method] - old_amount))
                if new_method in self.overrides:
                    self.set_override(new_method, self.overrides[new_method] + new_amount)

        self.store.update(TRANSACTIONS, transaction_id, updates)

    def delete_transaction(self, transaction_id: str) -> None:
        existing = self._find_transaction(transaction_id)
        if existing is not None and existing.payment_method in self.overrides:
            method = existing.payment_method
            self.set_override(method, max(0.0, self.overrides[method] - existing.amount))
        self.store.delete(TRANSACTIONS, transaction_id)

    # ------------------------------------------------------------------
    # Override actions
    # ------------------------------------------------------------------

    def set_override(self, payment_method: str, override_total: float) -> None:
        payment_method = validate_payment_method(payment_method)
        override_total = validate_override_total(override_total)
        period = self._require_period()
        self.store.set(ACCOUNT_OVERRIDES, AccountOverride.document_id(period.id, payment_method), {
            'payPeriodId': period.id,
            'account': payment_method,
            'overrideTotal': override_total,
            'updatedAt': datetime.now(),
        })

    def clear_override(self, payment_method: str) -> None:
        period = self._require_period()
        self.store.delete(ACCOUNT_OVERRIDES, AccountOverride.document_id(period.id, payment_method))

    # ------------------------------------------------------------------
    # Income actions
    # ------------------------------------------------------------------

    def _find_income_source(self, source_id: str) -> IncomeSource:
        for source in self.income_sources:
            if source.id == source_id:
                return source
        raise DocumentNotFoundError(INCOME_SOURCES, source_id)

    def add_income_source(self, data: Mapping[str, Any]) -> str:
        return self.store.create(INCOME_SOURCES, validate_income_source(data))

    def update_income_source(self, source_id: str, updates: Mapping[str, Any]) -> None:
        """Validate the merged source and write it back."""
        existing = self._find_income_source(source_id)
        merged = validate_income_source({**existing.to_document(), **updates})
        self.store.update(INCOME_SOURCES, source_id, merged)

    def delete_income_source(self, source_id: str) -> None:
        self.store.delete(INCOME_SOURCES, source_id)

    def toggle_income_source_active(self, source_id: str) -> bool:
        source = self._find_income_source(source_id)
        self.store.update(INCOME_SOURCES, source_id, {'isActive': not source.is_active})
        return not source.is_active

    def add_one_time_income(self, amount: float, description: str, on_date: Any = None) -> str:
        amount, description = validate_one_time_income(amount, description)
        period = self._require_period()
        return self.store.create(ONE_TIME_INCOME, {
            'payPeriodId': period.id,
            'amount': amount,
            'description': description,
            'date': to_date(on_date) if on_date is not None else self._today(),
        })

    def delete_one_time_income(self, item_id: str) -> None:
        self.store.delete(ONE_TIME_INCOME, item_id)

    # ------------------------------------------------------------------
    # Settings actions
    # ------------------------------------------------------------------

    def update_app_config(self, config: Mapping[str, Any]) -> None:
        doc = dict(config)
        if 'checkingFloor' in doc:
            doc['checkingFloor'] = float(doc['checkingFloor'])
        self.store.set(APP_CONFIG, CONFIG_DOC_ID, {**doc, 'updatedAt': datetime.now()})

    def save_legacy_income_config(self, config: Union[LegacyIncomeConfig, Mapping[str, Any]]) -> None:
        doc = config.to_document() if isinstance(config, LegacyIncomeConfig) else dict(config)
        self.store.set(INCOME_CONFIG, CONFIG_DOC_ID, {**doc, 'updatedAt': datetime.now()})
