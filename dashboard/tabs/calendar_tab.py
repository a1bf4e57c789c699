import calendar
from datetime import date, timedelta

import requests
import streamlit as st

from dashboard.constants import DAY_LABELS, PRIORITY_LABELS, TYPE_LABELS
from dashboard.data import loaders, repositories
from dashboard.data.api_client import ApiError
from dashboard.visualizations import completion_heatmap


def range_from_view(selected_day, view_mode):
    """Week views start on Monday; month views cover the whole month."""
    if view_mode == "Week":
        start = selected_day - timedelta(days=selected_day.weekday())
        return start, start + timedelta(days=6)
    month_last_day = calendar.monthrange(selected_day.year, selected_day.month)[1]
    return selected_day.replace(day=1), selected_day.replace(day=month_last_day)


def day_counts(days_payload):
    counts = {}
    for day_iso, entries in (days_payload or {}).items():
        done = sum(1 for entry in entries if entry.get("is_completed"))
        counts[day_iso] = (done, len(entries))
    return counts


def _cell_html(day, entries, titles, in_range):
    if not in_range:
        return "<td></td>"
    lines = []
    for entry in entries[:4]:
        mark = "✔" if entry.get("is_completed") else "•"
        lines.append(f"{mark} {titles.get(entry['id'], '')}")
    if len(entries) > 4:
        lines.append(f"+{len(entries) - 4} more")
    body = "<br>".join(lines)
    return f"<td style='vertical-align:top;padding:4px'><b>{day.day}</b><br><small>{body}</small></td>"


def _render_grid(start, end, payload):
    titles = {item["id"]: item["title"] for item in payload.get("items", [])}
    days = payload.get("days", {})
    header = "".join(f"<th>{label}</th>" for label in DAY_LABELS)
    rows = []
    for week in calendar.Calendar(firstweekday=0).monthdatescalendar(start.year, start.month):
        if week[-1] < start or week[0] > end:
            continue
        cells = "".join(
            _cell_html(day, days.get(day.isoformat(), []), titles, start <= day <= end) for day in week
        )
        rows.append(f"<tr>{cells}</tr>")
    st.markdown(
        f"<table style='width:100%;table-layout:fixed'><tr>{header}</tr>{''.join(rows)}</table>",
        unsafe_allow_html=True,
    )


def _render_editor(items):
    if not items:
        return
    st.markdown("#### Edit item")
    by_id = {item["id"]: item for item in items}
    selected_id = st.selectbox(
        "Item",
        list(by_id),
        format_func=lambda item_id: by_id[item_id]["title"],
        key="calendar.edit.item",
    )
    item = by_id[selected_id]
    with st.form(key=f"calendar.edit.form.{selected_id}"):
        cols = st.columns(3)
        title = cols[0].text_input("Title", value=item.get("title") or "")
        scheduled_time = cols[1].text_input("Time (HH:MM)", value=item.get("scheduled_time") or "")
        priorities = [None, *PRIORITY_LABELS]
        priority = cols[2].selectbox(
            "Priority",
            priorities,
            index=priorities.index(item.get("priority")) if item.get("priority") in priorities else 0,
            format_func=lambda key: PRIORITY_LABELS.get(key, "None"),
        )
        status = st.radio(
            "Status",
            ["active", "archived"],
            index=1 if item.get("status") == "archived" else 0,
            horizontal=True,
        )
        st.caption(TYPE_LABELS.get(item.get("type"), item.get("type")))
        saved = st.form_submit_button("Save")

    if saved:
        patch = {"title": title.strip(), "scheduled_time": scheduled_time.strip() or None, "status": status}
        if priority:
            patch["priority"] = priority
        try:
            repositories.update_trackable(selected_id, patch)
        except (ApiError, requests.RequestException) as exc:
            st.warning(str(exc))
            return
        st.rerun()


def render_calendar_tab(ctx):
    top = st.columns([1.4, 0.9])
    with top[0]:
        selected_day = st.date_input("Day", key="calendar.selected_day", value=ctx.today)
    with top[1]:
        view_mode = st.selectbox("View", ["Week", "Month"], index=0, key="calendar.view_mode")
    if not isinstance(selected_day, date):
        selected_day = ctx.today

    start_day, end_day = range_from_view(selected_day, view_mode)
    try:
        payload = loaders.load_range(ctx.user_id, start_day.isoformat(), end_day.isoformat())
    except (ApiError, requests.RequestException) as exc:
        st.warning(f"Could not load the calendar: {exc}")
        return

    _render_grid(start_day, end_day, payload)
    counts = day_counts(payload.get("days"))
    if counts:
        st.plotly_chart(
            completion_heatmap(counts, "Completion"),
            use_container_width=True,
            config={"displayModeBar": False},
        )
    _render_editor(payload.get("items", []))
