"""Gauge percentage and status tier for a remaining/available pair."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BudgetStatus:
    status: str
    color: str
    label: str


OVER_BUDGET = BudgetStatus('warning', 'red', 'Over Budget')
ON_TRACK = BudgetStatus('good', 'green', 'On Track')
CAUTION = BudgetStatus('caution', 'yellow', 'Caution')
LOW_BUDGET = BudgetStatus('low', 'red', 'Low Budget')


def budget_percentage(remaining: float, available: float) -> float:
    """Share of the budget left, as a percentage clamped to ``[0, 100]``."""
    if available <= 0:
        return 0.0
    return min(100.0, max(0.0, remaining / available * 100))


def budget_status(remaining: float, available: float) -> BudgetStatus:
    """Status tier for the gauge.

    Overspending always reads "Over Budget". Otherwise more than 50% left is
    "On Track", more than 20% is "Caution", and anything at or below 20% is
    "Low Budget".
    """
    if remaining < 0:
        return OVER_BUDGET

    percentage = budget_percentage(remaining, available)
    if percentage > 50:
        return ON_TRACK
    if percentage > 20:
        return CAUTION
    return LOW_BUDGET
