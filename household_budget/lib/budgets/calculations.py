"""Budget totals for a single pay period.

Spending is tracked per payment account. An account override, when present,
replaces the sum of that account's transactions in every total; an override
of ``0`` is a real value and differs from having no override at all.

Two views are derived from the same inputs:

* the paycheck view answers "how much can we still spend" and reserves the
  checking floor;
* the checking view answers "what will the checking account show" and
  ignores the floor.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional

from ...models import (
    DEFAULT_CHECKING_FLOOR,
    DEFAULT_MORTGAGE_CARVEOUT,
    PAYMENT_METHODS,
    Transaction,
)


@dataclass(frozen=True)
class PaycheckBudget:
    available_budget: float
    remaining_budget: float
    total_spending: float
    total_income: float
    one_time_income: float
    mortgage_carveout: float
    savings_amount: float
    card_totals: Dict[str, float]


@dataclass(frozen=True)
class CheckingBudget:
    projected_checking: float
    total_spending: float
    total_income: float
    one_time_income: float
    mortgage_carveout: float
    savings_amount: float
    card_totals: Dict[str, float]


def card_total(
    transactions: Iterable[Transaction],
    payment_method: str,
    override: Optional[float] = None,
) -> float:
    """Total spent on one account.

    Args:
        transactions: Transactions of the pay period
        payment_method: Account to total
        override: Manual total for the account, or ``None`` when not overridden

    Returns:
        ``override`` verbatim when given; otherwise the sum of the account's
        transaction amounts

    Example:
        >>> card_total(transactions, 'Amex')
        3861.34
        >>> card_total(transactions, 'Amex', override=0)
        0
    """
    if override is not None:
        return override
    return sum(t.amount or 0.0 for t in transactions if t.payment_method == payment_method)


def all_card_totals(
    transactions: Iterable[Transaction],
    overrides: Optional[Mapping[str, float]] = None,
) -> Dict[str, float]:
    """Totals for every payment method, including accounts with no spending."""
    overrides = overrides or {}
    transactions = list(transactions)
    return {
        method: card_total(transactions, method, overrides.get(method))
        for method in PAYMENT_METHODS
    }


def total_spending(
    transactions: Iterable[Transaction],
    overrides: Optional[Mapping[str, float]] = None,
) -> float:
    return sum(all_card_totals(transactions, overrides).values())


def calculate_paycheck_budget(
    starting_checking_balance: float,
    paycheck_amount: float,
    transactions: Iterable[Transaction],
    overrides: Optional[Mapping[str, float]] = None,
    checking_floor: float = DEFAULT_CHECKING_FLOOR,
    mortgage_carveout: float = DEFAULT_MORTGAGE_CARVEOUT,
    savings_amount: float = 0.0,
    one_time_income: float = 0.0,
) -> PaycheckBudget:
    """Paycheck-relative budget.

    ``available = (starting balance - checking floor) + paycheck + one-time income``;
    ``remaining = available - mortgage carveout - savings - spending``.
    Nothing is clamped, so ``remaining_budget`` goes negative when over budget.
    """
    card_totals = all_card_totals(transactions, overrides)
    spending = sum(card_totals.values())
    total_income = paycheck_amount + one_time_income

    available_budget = (starting_checking_balance - checking_floor) + total_income
    remaining_budget = available_budget - mortgage_carveout - savings_amount - spending

    return PaycheckBudget(
        available_budget=available_budget,
        remaining_budget=remaining_budget,
        total_spending=spending,
        total_income=total_income,
        one_time_income=one_time_income,
        mortgage_carveout=mortgage_carveout,
        savings_amount=savings_amount,
        card_totals=card_totals,
    )


def calculate_checking_budget(
    starting_checking_balance: float,
    paycheck_amount: float,
    transactions: Iterable[Transaction],
    overrides: Optional[Mapping[str, float]] = None,
    mortgage_carveout: float = DEFAULT_MORTGAGE_CARVEOUT,
    savings_amount: float = 0.0,
    one_time_income: float = 0.0,
) -> CheckingBudget:
    """Projected checking balance at the end of the period (no floor reserved)."""
    card_totals = all_card_totals(transactions, overrides)
    spending = sum(card_totals.values())
    total_income = paycheck_amount + one_time_income

    projected_checking = (
        starting_checking_balance + total_income - mortgage_carveout - savings_amount - spending
    )

    return CheckingBudget(
        projected_checking=projected_checking,
        total_spending=spending,
        total_income=total_income,
        one_time_income=one_time_income,
        mortgage_carveout=mortgage_carveout,
        savings_amount=savings_amount,
        card_totals=card_totals,
    )
