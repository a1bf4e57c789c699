import requests
import streamlit as st

from dashboard.constants import GOAL_TYPES
from dashboard.data import loaders, repositories
from dashboard.data.api_client import ApiError
from dashboard.tabs.log_forms import render_log_form

SESSION_FORMS = {
    "pomodoro": (
        "Pomodoro",
        [
            ("task_title", "Task", "text", {"value": ""}),
            ("duration_minutes", "Minutes", "int", {"min_value": 1, "max_value": 60, "value": 25}),
        ],
    ),
    "focus": (
        "Focus session",
        [
            ("duration_minutes", "Minutes", "int", {"min_value": 1, "max_value": 480, "value": 50, "step": 5}),
            ("distractions", "Distractions", "int", {"min_value": 0, "max_value": 100, "value": 0}),
        ],
    ),
}


def _save_goal_progress(goal_id, widget_key):
    try:
        repositories.update_goal(goal_id, {"progress_percentage": int(st.session_state.get(widget_key, 0))})
    except (ApiError, requests.RequestException) as exc:
        st.session_state["productivity.goal_error"] = str(exc)


def _render_goals(goals):
    st.markdown("#### Goals")
    error = st.session_state.pop("productivity.goal_error", None)
    if error:
        st.warning(error)
    if not goals:
        st.caption("No active goals.")
    for goal in goals:
        cols = st.columns([4, 3, 0.5])
        with cols[0]:
            st.markdown(f"**{goal['title']}**")
            st.caption(f"{goal.get('goal_type', '').title()} • due {goal.get('target_date') or '–'}")
        with cols[1]:
            widget_key = f"productivity.goal.{goal['id']}"
            st.slider(
                "Progress",
                min_value=0,
                max_value=100,
                value=int(goal.get("progress_percentage") or 0),
                step=5,
                key=widget_key,
                label_visibility="collapsed",
                on_change=_save_goal_progress,
                args=(goal["id"], widget_key),
            )
        with cols[2]:
            if st.button("✕", key=f"productivity.goal.delete.{goal['id']}", type="tertiary"):
                repositories.delete_goal(goal["id"])
                st.rerun()

    with st.form(key="productivity.goal.new", clear_on_submit=True):
        cols = st.columns([3, 1, 1])
        title = cols[0].text_input("New goal")
        goal_type = cols[1].selectbox("Type", GOAL_TYPES)
        target_date = cols[2].date_input("Target", value=None)
        submitted = st.form_submit_button("Add goal")
    if submitted and title.strip():
        payload = {"title": title.strip(), "goal_type": goal_type}
        if target_date:
            payload["target_date"] = target_date.isoformat()
        try:
            repositories.create_goal(payload)
        except (ApiError, requests.RequestException) as exc:
            st.warning(str(exc))
            return
        st.rerun()


def render_productivity_tab(ctx):
    try:
        data = loaders.load_productivity(ctx.user_id, ctx.today_iso)
    except (ApiError, requests.RequestException) as exc:
        st.warning(f"Could not load productivity data: {exc}")
        return

    today = data.get("today") or {}
    cols = st.columns(4)
    cols[0].metric("Pomodoros", today.get("completed_pomodoros", 0))
    cols[1].metric("Pomodoro time", f"{today.get('total_pomodoro_minutes', 0)} min")
    cols[2].metric("Focus time", f"{today.get('total_focus_minutes', 0)} min")
    cols[3].metric("Distractions", today.get("total_distractions", 0))

    form_cols = st.columns(2)
    saved = False
    for col, (kind, form_spec) in zip(form_cols, SESSION_FORMS.items()):
        with col:
            saved = render_log_form("productivity", kind, form_spec, ctx.today) or saved
    if saved:
        st.rerun()

    _render_goals(data.get("goals") or [])
