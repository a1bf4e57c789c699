import requests
import streamlit as st

from dashboard.data import loaders
from dashboard.data.api_client import ApiError
from dashboard.metrics import compute_wellness_score
from dashboard.visualizations import dot_chart

WINDOWS = {"Today": "today", "This week": "week", "This month": "month"}


def _render_area(title, figures, fields):
    st.markdown(f"**{title}**")
    cols = st.columns(len(fields))
    for col, (key, label) in zip(cols, fields):
        value = figures.get(key)
        col.metric(label, "–" if value is None else value)


def render_stats_tab(ctx):
    try:
        stats = loaders.load_statistics(ctx.user_id, ctx.today_iso)
    except (ApiError, requests.RequestException) as exc:
        st.warning(f"Could not load statistics: {exc}")
        return

    trackables = stats.get("trackables") or {}
    cols = st.columns(5)
    cols[0].metric("Items", trackables.get("total", 0))
    cols[1].metric("Habits", trackables.get("daily_habits", 0))
    cols[2].metric("Tasks", trackables.get("one_time_tasks", 0))
    cols[3].metric("Trackers", trackables.get("progress_trackers", 0))
    cols[4].metric("Done today", trackables.get("completed_today", 0))

    window_label = st.radio("Window", list(WINDOWS), horizontal=True, key="stats.window")
    window = WINDOWS[window_label]

    _render_area(
        "Health",
        (stats.get("health") or {}).get(window, {}),
        [
            ("total_sleep_hours", "Sleep (h)"),
            ("total_water_ml", "Water (ml)"),
            ("total_steps", "Steps"),
            ("total_exercise_minutes", "Exercise (min)"),
        ],
    )
    _render_area(
        "Mental",
        (stats.get("mental") or {}).get(window, {}),
        [
            ("avg_mood", "Mood"),
            ("avg_motivation", "Motivation"),
            ("total_meditation_minutes", "Meditation (min)"),
            ("journal_count", "Journal"),
        ],
    )
    _render_area(
        "Productivity",
        (stats.get("productivity") or {}).get(window, {}),
        [
            ("completed_pomodoros", "Pomodoros"),
            ("total_focus_minutes", "Focus (min)"),
            ("total_distractions", "Distractions"),
            ("active_goals", "Active goals"),
        ],
    )
    _render_area(
        "Finance",
        (stats.get("finance") or {}).get(window, {}),
        [
            ("total_income", "Income"),
            ("total_expenses", "Expenses"),
            ("balance", "Balance"),
        ],
    )

    st.markdown("#### Streaks")
    streaks = loaders.load_streaks_frame(ctx.user_id, ctx.today_iso)
    if streaks.empty:
        st.caption("No habits yet.")
    else:
        st.dataframe(
            streaks.rename(
                columns={
                    "title": "Habit",
                    "current_streak": "Current",
                    "longest_streak": "Longest",
                    "total_completions": "Total",
                    "last_completed_date": "Last done",
                }
            ),
            hide_index=True,
            use_container_width=True,
        )

    summaries = loaders.load_recent_summaries_frame(ctx.user_id, 30)
    if summaries.empty:
        return
    summaries = summaries.copy()
    summaries["wellness"] = summaries.apply(lambda row: compute_wellness_score(row.to_dict()), axis=1)
    st.plotly_chart(
        dot_chart(
            summaries["wellness"],
            summaries["summary_date"].apply(lambda d: d.strftime("%b %d")),
            "Wellness score",
            "#7b5ea7",
        ),
        use_container_width=True,
        config={"displayModeBar": False},
    )
