"""Pure budget engine shared by the app state and the dashboard.

Nothing in this package touches storage, logging or the UI; every function
takes snapshots and returns derived values.

Structure:
    - common/: Currency and calendar-date helpers
    - paydates/: Next pay dates, paycheck combination and pay-period boundaries
    - budgets/: Account totals, budget views, status tiers and summary tables
"""

__all__ = ['common', 'paydates', 'budgets']
