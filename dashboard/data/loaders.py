from __future__ import annotations

import logging

import pandas as pd
import streamlit as st

from dashboard.data import repositories

logger = logging.getLogger(__name__)

# The user id argument only scopes the cache entry; the API reads the user
# from the request headers.


@st.cache_data(ttl=60, show_spinner=False)
def load_bootstrap(user_id):
    return repositories.get_bootstrap()


@st.cache_data(ttl=30, show_spinner=False)
def load_day_view(user_id, day_iso):
    return repositories.get_day_view(day_iso)


@st.cache_data(ttl=120, show_spinner=False)
def load_range(user_id, start_iso, end_iso):
    return repositories.get_range(start_iso, end_iso)


@st.cache_data(ttl=30, show_spinner=False)
def load_today_summary(user_id, day_iso):
    return repositories.get_today_summary()


@st.cache_data(ttl=120, show_spinner=False)
def load_recent_summaries_frame(user_id, limit=14):
    items = repositories.get_recent_summaries(limit)
    frame = pd.DataFrame(items)
    if frame.empty:
        return frame
    frame["summary_date"] = pd.to_datetime(frame["summary_date"]).dt.date
    return frame.sort_values("summary_date").reset_index(drop=True)


@st.cache_data(ttl=60, show_spinner=False)
def load_mental(user_id, day_iso):
    return {"today": repositories.get_mental_today(), "weekly": repositories.get_mental_weekly()}


@st.cache_data(ttl=60, show_spinner=False)
def load_productivity(user_id, day_iso):
    return {"today": repositories.get_productivity_today(), "goals": repositories.list_goals()}


@st.cache_data(ttl=60, show_spinner=False)
def load_finance(user_id, year, month):
    return {"monthly": repositories.get_finance_monthly(year, month), "weekly": repositories.get_finance_weekly()}


@st.cache_data(ttl=120, show_spinner=False)
def load_statistics(user_id, day_iso):
    return repositories.get_statistics()


@st.cache_data(ttl=120, show_spinner=False)
def load_streaks_frame(user_id, day_iso):
    frame = pd.DataFrame(repositories.get_streaks())
    if frame.empty:
        return frame
    return frame[["title", "current_streak", "longest_streak", "total_completions", "last_completed_date"]]


def days_frame(days):
    """Per-day rows (``{"date": iso, ...}``) as a frame sorted by date."""
    frame = pd.DataFrame(days or [])
    if frame.empty:
        return frame
    frame["date"] = pd.to_datetime(frame["date"]).dt.date
    frame = frame.sort_values("date").reset_index(drop=True)
    frame["date_str"] = frame["date"].apply(lambda d: d.strftime("%b %d"))
    return frame


def invalidate_runtime_caches():
    load_bootstrap.clear()
    load_day_view.clear()
    load_range.clear()
    load_today_summary.clear()
    load_recent_summaries_frame.clear()
    load_mental.clear()
    load_productivity.clear()
    load_finance.clear()
    load_statistics.clear()
    load_streaks_frame.clear()
    logger.debug("Cleared dashboard caches")
