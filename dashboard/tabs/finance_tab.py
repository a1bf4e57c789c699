import calendar

import requests
import streamlit as st

from dashboard.constants import CHART_COLORS, EXPENSE_CATEGORIES, INCOME_SOURCES
from dashboard.data import loaders, repositories
from dashboard.data.api_client import ApiError
from dashboard.tabs.log_forms import render_log_forms
from dashboard.visualizations import donut_chart, grouped_bar_chart

FINANCE_FORMS = {
    "expenses": (
        "Expense",
        [
            ("amount", "Amount", "float", {"min_value": 0.1, "value": 10.0, "step": 1.0}),
            ("category", "Category", "select", {"options": EXPENSE_CATEGORIES, "index": 0}),
            ("description", "Description", "text", {"value": ""}),
        ],
    ),
    "income": (
        "Income",
        [
            ("amount", "Amount", "float", {"min_value": 0.1, "value": 100.0, "step": 10.0}),
            ("source", "Source", "select", {"options": INCOME_SOURCES, "index": 0}),
            ("description", "Description", "text", {"value": ""}),
        ],
    ),
}


def _render_entries(kind, start, end):
    try:
        entries = repositories.list_logs("finance", kind, start=start, end=end)
    except (ApiError, requests.RequestException) as exc:
        st.warning(str(exc))
        return
    label_key = "category" if kind == "expenses" else "source"
    for entry in entries[:20]:
        cols = st.columns([1.2, 2, 3, 0.4])
        cols[0].markdown(f"{float(entry.get('amount') or 0):.2f}")
        cols[1].caption(entry.get(label_key) or "Other")
        cols[2].caption(f"{entry.get('log_date')} {entry.get('description') or ''}")
        if cols[3].button("✕", key=f"finance.{kind}.delete.{entry['id']}", type="tertiary"):
            repositories.delete_log("finance", kind, entry["id"])
            st.rerun()


def render_finance_tab(ctx):
    month_ref = st.date_input("Month", value=ctx.today.replace(day=1), key="finance.month_ref")
    year, month = month_ref.year, month_ref.month
    try:
        data = loaders.load_finance(ctx.user_id, year, month)
    except (ApiError, requests.RequestException) as exc:
        st.warning(f"Could not load finance data: {exc}")
        return

    monthly = data.get("monthly") or {}
    weekly = data.get("weekly") or {}

    cols = st.columns(3)
    cols[0].metric("Income", f"{monthly.get('total_income', 0):.2f}")
    cols[1].metric("Expenses", f"{monthly.get('total_expenses', 0):.2f}")
    cols[2].metric("Balance", f"{monthly.get('balance', 0):.2f}")

    if render_log_forms("finance", FINANCE_FORMS, ctx.today, columns=2):
        st.rerun()

    chart_cols = st.columns(2)
    with chart_cols[0]:
        by_category = monthly.get("expenses_by_category") or {}
        if by_category:
            st.plotly_chart(
                donut_chart(by_category, "Expenses by category"),
                use_container_width=True,
                config={"displayModeBar": False},
            )
        else:
            st.caption("No expenses this month.")
    with chart_cols[1]:
        frame = loaders.days_frame(weekly.get("days"))
        if not frame.empty:
            st.plotly_chart(
                grouped_bar_chart(
                    frame["date_str"],
                    {
                        "Expenses": (frame["expenses"], CHART_COLORS["expenses"]),
                        "Income": (frame["income"], CHART_COLORS["income"]),
                    },
                    "This week",
                ),
                use_container_width=True,
                config={"displayModeBar": False},
            )

    start = month_ref.replace(day=1)
    end = start.replace(day=calendar.monthrange(year, month)[1])
    entry_cols = st.columns(2)
    with entry_cols[0]:
        st.markdown("#### Expenses")
        _render_entries("expenses", start, end)
    with entry_cols[1]:
        st.markdown("#### Income")
        _render_entries("income", start, end)
