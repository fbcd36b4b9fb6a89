"""Budget calculation engine.

This module provides all budget-related functionality including:
- Per-account totals with manual overrides
- Paycheck and checking budget views
- Gauge percentage and status tiers
- Period history and spending breakdown tables
"""

from ...models import DEFAULT_CHECKING_FLOOR, DEFAULT_MORTGAGE_CARVEOUT, PAYMENT_METHODS
from .calculations import (
    PaycheckBudget,
    CheckingBudget,
    card_total,
    all_card_totals,
    total_spending,
    calculate_paycheck_budget,
    calculate_checking_budget,
)
from .status import (
    BudgetStatus,
    budget_percentage,
    budget_status,
)
from .history import (
    previous_periods_frame,
    spending_breakdown_frame,
)

__all__ = [
    # Defaults
    'DEFAULT_CHECKING_FLOOR',
    'DEFAULT_MORTGAGE_CARVEOUT',
    'PAYMENT_METHODS',
    # Calculations
    'PaycheckBudget',
    'CheckingBudget',
    'card_total',
    'all_card_totals',
    'total_spending',
    'calculate_paycheck_budget',
    'calculate_checking_budget',
    # Status
    'BudgetStatus',
    'budget_percentage',
    'budget_status',
    # History
    'previous_periods_frame',
    'spending_breakdown_frame',
]
