"""Plotly visualisation helpers for the household budget dashboard.

Each function takes values produced by :class:`~household_budget.budget_state.DashboardView`
and returns a ``plotly.graph_objects.Figure`` that Streamlit renders via
``st.plotly_chart``.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .lib.budgets import BudgetStatus

STATUS_COLORS = {
    'green': '#2e7d32',
    'yellow': '#f9a825',
    'red': '#c62828',
}


def create_budget_gauge(
    remaining: float,
    available: float,
    percentage: float,
    status: BudgetStatus,
    title: str | None = None,
) -> go.Figure:
    """Gauge of how much of the period's budget is left.

    Parameters
    ----------
    remaining : float
        Remaining budget (paycheck view) or projected checking (checking view).
    available : float
        The amount ``remaining`` is measured against.
    percentage : float
        ``remaining / available`` as a percentage clamped to ``[0, 100]``.
    status : BudgetStatus
        Status tier; its colour paints the gauge bar.
    title : str, optional
        Chart title.  Defaults to the status label.

    Returns
    -------
    plotly.graph_objects.Figure
        Gauge indicator showing the remaining amount.
    """
    bar_color = STATUS_COLORS.get(status.color, status.color)
    fig = go.Figure(
        go.Indicator(
            mode="gauge+number",
            value=percentage,
            number={"suffix": "%", "valueformat": ".0f"},
            title={"text": title or status.label},
            gauge={
                "axis": {"range": [0, 100]},
                "bar": {"color": bar_color},
                "steps": [
                    {"range": [0, 20], "color": "#ffebee"},
                    {"range": [20, 50], "color": "#fffde7"},
                    {"range": [50, 100], "color": "#e8f5e9"},
                ],
            },
        )
    )
    fig.add_annotation(
        text=f"${remaining:,.2f} of ${max(available, 0):,.2f}",
        x=0.5,
        y=0,
        showarrow=False,
    )
    return fig


def create_spending_breakdown_chart(breakdown: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Bar chart of the spending breakdown table.

    Parameters
    ----------
    breakdown : pandas.DataFrame
        Output of :func:`~household_budget.lib.budgets.spending_breakdown_frame`
        with columns ``Account``, ``Total`` and ``Overridden``.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Bar chart with manually overridden accounts highlighted.
    """
    if breakdown.empty:
        fig = go.Figure()
        fig.update_layout(title="No data to display")
        return fig
    df = breakdown.copy()
    df["Source"] = np.where(df["Overridden"], "Manual override", "Transactions")
    fig = px.bar(
        df,
        x="Account",
        y="Total",
        color="Source",
        color_discrete_map={"Transactions": "#1565c0", "Manual override": "#ef6c00"},
        text_auto=".2f",
    )
    fig.update_layout(
        title=title or "Spending breakdown",
        xaxis_title="Account",
        yaxis_title="Amount ($)",
    )
    return fig
