import logging

import requests
import streamlit as st

from dashboard.constants import CHART_COLORS, HEALTH_LOG_FORMS
from dashboard.data import loaders, repositories
from dashboard.data.api_client import ApiError
from dashboard.metrics import compute_wellness_score, indicator_percent
from dashboard.tabs.log_forms import render_log_forms
from dashboard.visualizations import dot_chart

logger = logging.getLogger(__name__)


def _decide(summary_id, accept):
    try:
        repositories.decide_carry_over(summary_id, accept)
    except (ApiError, requests.RequestException) as exc:
        logger.warning("Carry-over decision failed: %s", exc)
        st.warning(str(exc))
        return
    st.rerun()


@st.dialog("Still dealing with these?")
def _carry_over_dialog(summary):
    st.write("Yesterday you noted:")
    for condition in summary.get("carry_over_candidates") or []:
        st.markdown(f"- {condition}")
    st.write("Carry them over to today?")
    cols = st.columns(2)
    if cols[0].button("Yes, carry over", key="health.carry.yes", type="primary"):
        _decide(summary["id"], True)
    if cols[1].button("No", key="health.carry.no"):
        _decide(summary["id"], False)


def _render_summary(summary, completion):
    cols = st.columns(4)
    cols[0].metric("Water", f"{int(summary.get('total_water_ml') or 0)} ml")
    cols[1].metric("Steps", int(summary.get("total_steps") or 0))
    cols[2].metric("Sleep", f"{summary.get('sleep_hours') or 0} h")
    cols[3].metric("Exercise", f"{int(summary.get('total_exercise_minutes') or 0)} min")

    cols = st.columns(4)
    cols[0].metric("Heart rate", summary.get("avg_heart_rate") or "–")
    cols[1].metric("Energy", summary.get("avg_energy_level") or "–")
    cols[2].metric("Stress", summary.get("avg_stress_level") or "–")
    cols[3].metric("Wellness", compute_wellness_score(summary, completion))


def _render_conditions(summary):
    conditions = summary.get("ongoing_conditions") or []
    with st.form(key=f"health.conditions.{summary['id']}"):
        text = st.text_area(
            "Ongoing conditions (one per line)",
            value="\n".join(conditions),
            height=90,
        )
        notes = st.text_area("Notes", value=summary.get("notes") or "", height=70)
        saved = st.form_submit_button("Save")
    if not saved:
        return
    patch = {
        "ongoing_conditions": [line.strip() for line in text.splitlines() if line.strip()],
        "notes": notes.strip() or None,
    }
    try:
        repositories.update_summary(summary["id"], patch)
    except (ApiError, requests.RequestException) as exc:
        st.warning(str(exc))
        return
    st.rerun()


def _render_history(user_id):
    frame = loaders.load_recent_summaries_frame(user_id, 14)
    if frame.empty:
        st.caption("No history yet.")
        return
    dates = frame["summary_date"].apply(lambda d: d.strftime("%b %d"))
    cols = st.columns(3)
    charts = [
        ("sleep_hours", "Sleep (h)", CHART_COLORS["sleep"]),
        ("total_water_ml", "Water (ml)", CHART_COLORS["water"]),
        ("total_steps", "Steps", CHART_COLORS["steps"]),
    ]
    for col, (column, title, color) in zip(cols, charts):
        if column not in frame:
            continue
        with col:
            st.plotly_chart(
                dot_chart(frame[column].fillna(0), dates, title, color),
                use_container_width=True,
                config={"displayModeBar": False},
            )


def render_health_tab(ctx):
    try:
        summary = loaders.load_today_summary(ctx.user_id, ctx.today_iso)
    except (ApiError, requests.RequestException) as exc:
        st.warning(f"Could not load today's summary: {exc}")
        return

    if summary.get("carry_over_status") == "pending":
        _carry_over_dialog(summary)

    top = st.columns([3, 1])
    with top[0]:
        st.markdown("#### Today")
    with top[1]:
        if st.button("Recalculate", key="health.calculate", use_container_width=True):
            try:
                repositories.calculate_today_summary()
            except (ApiError, requests.RequestException) as exc:
                st.warning(str(exc))
            else:
                st.rerun()

    _render_summary(summary, indicator_percent(ctx.quick_indicators))
    _render_conditions(summary)

    st.markdown("#### Log")
    if render_log_forms("health", HEALTH_LOG_FORMS, ctx.today, columns=3):
        st.rerun()

    st.markdown("#### Last two weeks")
    _render_history(ctx.user_id)
