"""Tables for the dashboard: recent pay periods and the spending breakdown."""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Sequence

import pandas as pd

from ...models import PAYMENT_METHODS, PayPeriod

PREVIOUS_PERIOD_COLUMNS = ['Start', 'End', 'Paycheck Source', 'Paycheck Amount']
BREAKDOWN_COLUMNS = ['Account', 'Total', 'Overridden']


def previous_periods_frame(periods: Sequence[PayPeriod], limit: int = 4) -> pd.DataFrame:
    """Create DataFrame of the pay periods before the current one.

    Args:
        periods: All pay periods, in any order
        limit: Maximum number of previous periods to list

    Returns:
        DataFrame with columns: Start, End, Paycheck Source, Paycheck Amount,
        newest first. The newest period overall is the current one and is left out.
    """
    ordered = sorted(periods, key=lambda p: p.start_date, reverse=True)
    previous = ordered[1:1 + limit]
    if not previous:
        return pd.DataFrame(columns=PREVIOUS_PERIOD_COLUMNS)

    return pd.DataFrame({
        'Start': [p.start_date for p in previous],
        'End': [p.end_date for p in previous],
        'Paycheck Source': [p.paycheck_source for p in previous],
        'Paycheck Amount': [p.paycheck_amount for p in previous],
    })


def spending_breakdown_frame(
    card_totals: Mapping[str, float],
    overrides: Optional[Mapping[str, float]] = None,
    mortgage_carveout: float = 0.0,
    savings_amount: float = 0.0,
) -> pd.DataFrame:
    """Create DataFrame of where the period's money went.

    One row per payment account in the fixed account order, then a Mortgage
    and a Savings row. ``Overridden`` flags accounts whose total is a manual
    override rather than the sum of their transactions.
    """
    overrides = overrides or {}
    rows: Dict[str, list] = {column: [] for column in BREAKDOWN_COLUMNS}

    for method in PAYMENT_METHODS:
        rows['Account'].append(method)
        rows['Total'].append(float(card_totals.get(method, 0.0)))
        rows['Overridden'].append(method in overrides)

    for label, amount in (('Mortgage', mortgage_carveout), ('Savings', savings_amount)):
        rows['Account'].append(label)
        rows['Total'].append(float(amount))
        rows['Overridden'].append(False)

    return pd.DataFrame(rows, columns=BREAKDOWN_COLUMNS)
