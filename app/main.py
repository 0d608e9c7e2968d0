"""
Streamlit Frontend for Budget Planner

The dashboard users interact with:
1. Set a total budget and see the savings star rating
2. Add spending categories
3. Adjust amounts with +/- buttons or direct edits
4. Generate a budget split from the category names

All rules live in src/; this module only renders state and forwards
user actions to the BudgetSession.
"""

import asyncio

import streamlit as st

from src.config import get_settings
from src.engine import progress_percent
from src.models.budget import CategoryPatch, CurrentUser
from src.planner import BudgetSession, create_session
from src.stores import CreateError

ADD_FORM_DEFAULTS = {"add_name": "", "add_current_amount": 0, "add_is_fixed": False}


# Page configuration
st.set_page_config(
    page_title="Budget Dashboard",
    page_icon="🐷",
    layout="wide",
    initial_sidebar_state="collapsed",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_current_user() -> CurrentUser:
    """
    Authenticated user provider.

    Authentication is out of scope; the configured default user is used.
    """
    return CurrentUser(id=get_settings().app.default_user_id)


def get_session() -> BudgetSession:
    """Get or create this browser session's BudgetSession."""
    if "budget_session" not in st.session_state:
        session = create_session(use_storage=True)
        run_async(session.load(get_current_user()))
        st.session_state.budget_session = session
    return st.session_state.budget_session


def main():
    """Main application entry point."""
    session = get_session()
    if session.user is None:
        return

    st.title("🐷 Budget Dashboard")

    if session.has_stale_state:
        st.warning(
            "Some changes could not be saved. What you see may differ "
            "from what is stored."
        )

    render_total_budget(session)
    st.markdown("---")
    render_categories(session)


def render_total_budget(session: BudgetSession):
    """Total budget input with the savings stars next to it."""
    st.subheader("💰 Total Budget")
    summary = session.summary()

    col1, col2 = st.columns([3, 1])
    with col1:
        total = st.number_input(
            "Total budget",
            min_value=0,
            step=100,
            value=summary.total_amount,
            label_visibility="collapsed",
        )
        if int(total) != summary.total_amount and session.budget is not None:
            run_async(session.set_total(int(total)))
            st.rerun()
    with col2:
        st.markdown("⭐" * summary.savings_stars or "No stars yet")

    label = "Overspent by" if summary.is_overspent else "Remaining savings"
    st.caption(f"{label}: {abs(summary.remaining_savings)}")


def render_categories(session: BudgetSession):
    """Add form, one card per category, and the Generate Budget button."""
    st.subheader("Categories")

    # Reset only after a successful add; a rejected entry stays for correction
    if st.session_state.pop("add_category_done", False):
        for key, default in ADD_FORM_DEFAULTS.items():
            st.session_state[key] = default

    with st.form("add_category"):
        col1, col2, col3, col4 = st.columns(4)
        with col1:
            name = st.text_input("Category name", key="add_name")
        with col2:
            current_amount = st.number_input(
                "Current amount", min_value=0, step=100, key="add_current_amount",
            )
        with col3:
            is_fixed = st.checkbox("Fixed Expense", key="add_is_fixed")
        with col4:
            submitted = st.form_submit_button("➕ Add Category")

    if submitted:
        try:
            run_async(session.add_category(
                name=name,
                current_amount=int(current_amount),
                is_fixed=is_fixed,
            ))
            st.session_state.add_category_done = True
            st.rerun()
        except CreateError as e:
            st.error(f"Category not added: {e}")

    for category in session.categories:
        with st.container(border=True):
            header, delete = st.columns([5, 1])
            header.markdown(f"**{category.name}**" + (" · fixed" if category.is_fixed else ""))
            if delete.button("Delete", key=f"delete_{category.id}"):
                run_async(session.delete_category(category.id))
                st.rerun()

            minus, amount, plus, low, high = st.columns([1, 3, 1, 3, 3])
            if minus.button("➖", key=f"dec_{category.id}"):
                run_async(session.decrement_category(category.id))
                st.rerun()
            if plus.button("➕", key=f"inc_{category.id}"):
                run_async(session.increment_category(category.id))
                st.rerun()

            # Keys include the value so a store-side change rebuilds the widget
            new_current = amount.number_input(
                "Current Amount", min_value=0, value=category.current_amount,
                key=f"current_{category.id}_{category.current_amount}",
            )
            new_min = low.number_input(
                "Min Amount", min_value=0, value=category.min_amount,
                key=f"min_{category.id}_{category.min_amount}",
            )
            new_max = high.number_input(
                "Max Amount", min_value=0, value=category.max_amount,
                key=f"max_{category.id}_{category.max_amount}",
            )

            patch = CategoryPatch(**{
                field: int(value)
                for field, value, old in (
                    ("current_amount", new_current, category.current_amount),
                    ("min_amount", new_min, category.min_amount),
                    ("max_amount", new_max, category.max_amount),
                )
                if int(value) != old
            })
            if not patch.is_empty:
                run_async(session.update_category(category.id, patch))
                st.rerun()

            st.progress(progress_percent(category) / 100)

    if session.categories:
        if st.button("➡️ Generate Budget", type="primary"):
            run_async(session.generate_budget())
            st.rerun()


if __name__ == "__main__":
    main()
