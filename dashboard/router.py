import streamlit as st

from dashboard.constants import TAB_OPTIONS
from dashboard.tabs.calendar_tab import render_calendar_tab
from dashboard.tabs.finance_tab import render_finance_tab
from dashboard.tabs.health_tab import render_health_tab
from dashboard.tabs.mental_tab import render_mental_tab
from dashboard.tabs.productivity_tab import render_productivity_tab
from dashboard.tabs.stats_tab import render_stats_tab
from dashboard.tabs.today_tab import render_today_tab


def render_router(ctx):
    active = st.session_state.get("ui.active_tab", TAB_OPTIONS[0])
    active = st.segmented_control(
        "Workspace",
        TAB_OPTIONS,
        key="ui.active_tab",
        default=active,
    )

    if active == "Calendar":
        return _render_calendar(ctx)

    if active == "Health":
        return _render_health(ctx)

    if active == "Mental":
        return _render_mental(ctx)

    if active == "Productivity":
        return _render_productivity(ctx)

    if active == "Finance":
        return _render_finance(ctx)

    if active == "Statistics":
        return _render_stats(ctx)

    return _render_today(ctx)


@st.fragment
def _render_today(ctx):
    render_today_tab(ctx)


@st.fragment
def _render_calendar(ctx):
    render_calendar_tab(ctx)


@st.fragment
def _render_health(ctx):
    render_health_tab(ctx)


@st.fragment
def _render_mental(ctx):
    render_mental_tab(ctx)


@st.fragment
def _render_productivity(ctx):
    render_productivity_tab(ctx)


@st.fragment
def _render_finance(ctx):
    render_finance_tab(ctx)


@st.fragment
def _render_stats(ctx):
    render_stats_tab(ctx)
