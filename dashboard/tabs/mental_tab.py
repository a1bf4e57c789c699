import requests
import streamlit as st

from dashboard.constants import CHART_COLORS, MENTAL_LOG_FORMS
from dashboard.data import loaders, repositories
from dashboard.data.api_client import ApiError
from dashboard.tabs.log_forms import render_log_forms
from dashboard.visualizations import bar_chart, dot_chart


def _render_journal(ctx):
    try:
        entries = repositories.list_logs("mental", "journal", start=ctx.today, end=ctx.today)
    except (ApiError, requests.RequestException) as exc:
        st.warning(str(exc))
        return
    for entry in entries:
        with st.expander(entry.get("title") or "Journal entry"):
            st.write(entry.get("content") or "")
            if st.button("Delete", key=f"mental.journal.delete.{entry['id']}", type="tertiary"):
                repositories.delete_log("mental", "journal", entry["id"])
                st.rerun()


def render_mental_tab(ctx):
    try:
        data = loaders.load_mental(ctx.user_id, ctx.today_iso)
    except (ApiError, requests.RequestException) as exc:
        st.warning(f"Could not load mental data: {exc}")
        return

    today = data.get("today") or {}
    weekly = data.get("weekly") or {}

    cols = st.columns(4)
    cols[0].metric("Mood", today.get("mood") or "–")
    cols[1].metric("Motivation", today.get("motivation") or "–")
    cols[2].metric("Meditation", f"{today.get('meditation_minutes', 0)} min")
    cols[3].metric("Journal", today.get("journal_count", 0))

    st.markdown("#### Log")
    if render_log_forms("mental", MENTAL_LOG_FORMS, ctx.today, columns=2):
        st.rerun()

    _render_journal(ctx)

    frame = loaders.days_frame(weekly.get("days"))
    if frame.empty:
        return
    st.markdown("#### This week")
    st.caption(
        f"Average mood {weekly.get('avg_mood') or '–'} • "
        f"average motivation {weekly.get('avg_motivation') or '–'} • "
        f"{weekly.get('total_meditation_minutes', 0)} min meditation"
    )
    chart_cols = st.columns(3)
    with chart_cols[0]:
        st.plotly_chart(
            dot_chart(frame["mood"], frame["date_str"], "Mood", CHART_COLORS["mood"]),
            use_container_width=True,
            config={"displayModeBar": False},
        )
    with chart_cols[1]:
        st.plotly_chart(
            dot_chart(frame["motivation"], frame["date_str"], "Motivation", CHART_COLORS["motivation"]),
            use_container_width=True,
            config={"displayModeBar": False},
        )
    with chart_cols[2]:
        st.plotly_chart(
            bar_chart(frame["date_str"], frame["meditation_minutes"], "Meditation (min)", CHART_COLORS["focus"]),
            use_container_width=True,
            config={"displayModeBar": False},
        )
