"""Main entry point for the household budget Streamlit app.

A read-only dashboard over :class:`~household_budget.budget_state.BudgetState`:
the current pay period's gauge, spending breakdown, next paycheck and recent
periods. Data entry happens through the state's action methods.
"""

from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st

# Add project root to path for imports
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from household_budget.auth import AuthGate  # noqa: E402
from household_budget.budget_state import BUDGET_VIEWS, BudgetState  # noqa: E402
from household_budget.config import ALLOWED_EMAILS, configure_logging  # noqa: E402
from household_budget.db import DocumentStore  # noqa: E402
from household_budget.lib.common import (  # noqa: E402
    escape_dollar_for_markdown,
    format_currency,
    format_date,
    get_relative_date_string,
)
from household_budget.visualization import (  # noqa: E402
    create_budget_gauge,
    create_spending_breakdown_chart,
)

VIEW_LABELS = {'paycheck': 'Paycheck budget', 'checking': 'Checking projection'}


class StreamlitIdentityProvider:
    """Identity provider backed by Streamlit's built-in OIDC login."""

    def sign_in(self):
        st.login()
        return current_user()

    def sign_out(self) -> None:
        st.logout()


def current_user():
    if not st.user.is_logged_in:
        return None
    return {'email': st.user.email, 'name': st.user.get('name')}


@st.cache_resource
def get_store() -> DocumentStore:
    """One document store per server process, shared by every browser session."""
    store = DocumentStore()
    store.init_db()
    return store


def get_budget_state() -> BudgetState:
    """This session's state; selection and view never leak into other sessions."""
    if 'budget_state' not in st.session_state:
        st.session_state.budget_state = BudgetState(get_store()).start()
    return st.session_state.budget_state


def require_sign_in() -> None:
    """Stop the script run unless an allow-listed user is signed in."""
    if 'auth_gate' not in st.session_state:
        st.session_state.auth_gate = AuthGate(StreamlitIdentityProvider(), ALLOWED_EMAILS)
    gate: AuthGate = st.session_state.auth_gate
    gate.handle_auth_state(current_user())
    if gate.is_authenticated:
        return

    st.title("💵 Household Budget")
    if gate.auth_error:
        st.error(gate.auth_error)
    if not ALLOWED_EMAILS:
        st.warning("No one is allowed in yet. Set HOUSEHOLD_BUDGET_ALLOWED_EMAILS to grant access.")
    if st.button("Sign in"):
        st.login()
    st.stop()


def render_sidebar(state: BudgetState) -> None:
    st.sidebar.header("Pay period")
    periods = state.pay_periods
    if periods:
        ids = [p.id for p in periods]
        labels = {p.id: f"{format_date(p.start_date)} - {format_date(p.end_date)}" for p in periods}
        current_id = state.current_pay_period.id if state.current_pay_period else ids[0]
        chosen = st.sidebar.selectbox(
            "Select period",
            ids,
            index=ids.index(current_id) if current_id in ids else 0,
            format_func=labels.get,
        )
        if chosen != current_id:
            state.select_pay_period(chosen)

    if 'budget_view' not in st.session_state:
        st.session_state.budget_view = state.budget_view
    st.session_state.budget_view = st.sidebar.radio(
        "Budget view",
        BUDGET_VIEWS,
        index=BUDGET_VIEWS.index(st.session_state.budget_view),
        format_func=VIEW_LABELS.get,
    )
    if st.session_state.budget_view != state.budget_view:
        state.set_budget_view(st.session_state.budget_view)

    if st.sidebar.button("Sign out"):
        st.session_state.auth_gate.sign_out()


def render_dashboard(state: BudgetState) -> None:
    view = state.view or state.build_view()
    period = state.current_pay_period

    st.title("💵 Household Budget")
    if period is None:
        st.info("No pay period yet. Configure income and start a pay period to begin tracking.")
        return

    st.caption(
        f"{format_date(period.start_date)} - {format_date(period.end_date)} · "
        f"day {view.progress.current_day} of {view.progress.total_days} "
        f"({view.progress.days_remaining} days left)"
    )

    col1, col2, col3 = st.columns(3)
    col1.metric("Remaining" if view.budget_view == 'paycheck' else "Projected checking",
                format_currency(view.remaining))
    col2.metric("Spent", format_currency(view.budget.total_spending))
    col3.metric("Income this period", format_currency(view.budget.total_income))

    left, right = st.columns(2)
    with left:
        st.plotly_chart(
            create_budget_gauge(view.remaining, view.available, view.percentage, view.status),
            use_container_width=True,
        )
    with right:
        st.plotly_chart(create_spending_breakdown_chart(view.spending_breakdown), use_container_width=True)

    paycheck = view.next_paycheck
    if paycheck is not None:
        st.markdown(
            f"**Next paycheck:** {paycheck.source_names}, "
            f"{escape_dollar_for_markdown(paycheck.amount)} "
            f"on {format_date(paycheck.date)} ({get_relative_date_string(paycheck.date)})"
        )
    st.markdown(f"Checking floor: {escape_dollar_for_markdown(view.checking_floor)}")

    if not view.previous_periods.empty:
        st.subheader("Previous pay periods")
        st.dataframe(view.previous_periods, hide_index=True)


def main() -> None:
    st.set_page_config(page_title="Household Budget", page_icon="💵", layout="wide")
    configure_logging()
    require_sign_in()
    state = get_budget_state()
    render_sidebar(state)
    render_dashboard(state)


if __name__ == "__main__":
    main()
