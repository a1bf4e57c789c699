import logging
from datetime import date
from functools import partial

import requests
import streamlit as st

from dashboard.constants import (
    BUCKET_LABELS,
    PRIORITY_ICONS,
    PRIORITY_LABELS,
    RULE_DAY_INDEX,
    RULE_FREQUENCIES,
    SCHEDULE_MODES,
    TYPE_LABELS,
    WEEKDAY_OPTIONS,
)
from dashboard.data import loaders, repositories
from dashboard.data.api_client import ApiError
from dashboard.metrics import completion_percent, progress_label
from dashboard.state.optimistic import OptimisticLedger
from dashboard.state.session_slices import get_slice

logger = logging.getLogger(__name__)

STALE_AFTER_SECONDS = 20


def _ledger():
    return OptimisticLedger(get_slice("optimistic"))


def _done_key(item):
    return f"{item['id']}:done"


def _value_key(item):
    return f"{item['id']}:value"


def _server_values(items):
    values = {}
    for item in items:
        values[_done_key(item)] = bool(item.get("is_completed_today"))
        values[_value_key(item)] = int(item.get("current_value") or 0)
    return values


def _run(ledger, key, call, pick):
    try:
        result = call()
    except (ApiError, requests.RequestException) as exc:
        logger.warning("Update %s failed: %s", key, exc)
        ledger.fail(key, str(exc))
        return
    ledger.confirm(key, pick(result))


def _toggle(item):
    ledger = _ledger()
    key = _done_key(item)
    current = ledger.display_value(key, bool(item.get("is_completed_today")))
    ledger.begin(key, bool(item.get("is_completed_today")), not current)
    _run(ledger, key, lambda: repositories.toggle_trackable(item["id"]), lambda row: bool(row.get("is_completed_today")))


def _adjust(item, step):
    ledger = _ledger()
    key = _value_key(item)
    server_value = int(item.get("current_value") or 0)
    current = ledger.display_value(key, server_value)
    ledger.begin(key, server_value, max(0, current + step))
    if step > 0:
        call = partial(repositories.increment_trackable, item["id"], step)
    else:
        call = partial(repositories.decrement_trackable, item["id"], -step)
    _run(ledger, key, call, lambda row: int(row.get("current_value") or 0))


def _delete(item):
    try:
        repositories.delete_trackable(item["id"])
    except (ApiError, requests.RequestException) as exc:
        st.warning(str(exc))


def build_trackable_payload(
    title,
    item_type,
    priority=None,
    scheduled_time="",
    mode="Weekdays",
    weekday_labels=(),
    scheduled_date=None,
    frequency="daily",
    interval=1,
    rule_day_labels=(),
    target_value=None,
    end_date=None,
):
    """Form values -> create payload for ``POST /v1/trackables``."""
    payload = {
        "title": (title or "").strip(),
        "type": item_type,
        "priority": priority,
        "scheduled_time": (scheduled_time or "").strip(),
        "end_date": end_date.isoformat() if end_date else None,
    }
    if item_type == "PROGRESS":
        payload["target_value"] = int(target_value) if target_value else None
    if mode == "One date":
        payload["scheduled_date"] = scheduled_date.isoformat() if scheduled_date else None
        payload["is_recurring"] = False
    elif mode == "Repeat rule":
        rule = {"frequency": frequency, "interval": int(interval or 1)}
        if frequency == "weekly":
            rule["daysOfWeek"] = sorted(RULE_DAY_INDEX[label] for label in rule_day_labels)
        if scheduled_date:
            payload["scheduled_date"] = scheduled_date.isoformat()
        payload["recurrence_rule"] = rule
    else:
        payload["selected_days"] = [WEEKDAY_OPTIONS[label] for label in weekday_labels]
    return payload


def _render_item(item, ledger, readonly):
    done = ledger.display_value(_done_key(item), bool(item.get("is_completed_today")))
    icon = PRIORITY_ICONS.get(item.get("priority") or "", "")
    time_label = f"`{item['scheduled_time']}` " if item.get("scheduled_time") else ""
    cols = st.columns([0.5, 5.0, 1.6, 0.4])
    with cols[0]:
        st.button(
            "✅" if done else "⬜",
            key=f"today.toggle.{item['id']}",
            type="tertiary",
            on_click=_toggle,
            args=(item,),
            disabled=readonly,
        )
    with cols[1]:
        st.markdown(f"{time_label}{icon} {item['title']}")
        st.caption(TYPE_LABELS.get(item.get("type"), item.get("type")))
    with cols[2]:
        if item.get("type") == "PROGRESS":
            value = ledger.display_value(_value_key(item), int(item.get("current_value") or 0))
            minus, label, plus = st.columns(3)
            minus.button("−", key=f"today.dec.{item['id']}", on_click=_adjust, args=(item, -1), disabled=readonly)
            label.markdown(progress_label(item, value))
            plus.button("+", key=f"today.inc.{item['id']}", on_click=_adjust, args=(item, 1), disabled=readonly)
    with cols[3]:
        st.button("✕", key=f"today.delete.{item['id']}", type="tertiary", on_click=_delete, args=(item,))


def _render_add_form(selected_day):
    with st.expander("Add item"):
        title = st.text_input("Title", key="today.new.title")
        type_cols = st.columns(3)
        item_type = type_cols[0].selectbox(
            "Type", list(TYPE_LABELS), format_func=TYPE_LABELS.get, key="today.new.type"
        )
        priority = type_cols[1].selectbox(
            "Priority", [None, *PRIORITY_LABELS], format_func=lambda key: PRIORITY_LABELS.get(key, "None"), key="today.new.priority"
        )
        scheduled_time = type_cols[2].text_input("Time (HH:MM)", key="today.new.time")
        target_value = None
        if item_type == "PROGRESS":
            target_value = st.number_input("Target", min_value=1, value=8, key="today.new.target")

        mode = st.radio("Schedule", SCHEDULE_MODES, horizontal=True, key="today.new.mode")
        weekday_labels, rule_day_labels = [], []
        scheduled_date, frequency, interval = None, "daily", 1
        if mode == "Weekdays":
            weekday_labels = st.multiselect("Days", list(WEEKDAY_OPTIONS), key="today.new.days")
        elif mode == "One date":
            scheduled_date = st.date_input("Date", value=selected_day, key="today.new.date")
        else:
            rule_cols = st.columns(3)
            frequency = rule_cols[0].selectbox("Repeats", RULE_FREQUENCIES, key="today.new.frequency")
            interval = rule_cols[1].number_input("Every", min_value=1, max_value=52, value=1, key="today.new.interval")
            scheduled_date = rule_cols[2].date_input("Starting", value=selected_day, key="today.new.anchor")
            if frequency == "weekly":
                rule_day_labels = st.multiselect("On", list(RULE_DAY_INDEX), key="today.new.rule_days")
        end_date = st.date_input("Ends (optional)", value=None, key="today.new.end")

        if st.button("Add", key="today.new.submit", type="primary"):
            payload = build_trackable_payload(
                title,
                item_type,
                priority=priority,
                scheduled_time=scheduled_time,
                mode=mode,
                weekday_labels=weekday_labels,
                scheduled_date=scheduled_date,
                frequency=frequency,
                interval=interval,
                rule_day_labels=rule_day_labels,
                target_value=target_value,
                end_date=end_date,
            )
            try:
                repositories.create_trackable(payload)
            except (ApiError, requests.RequestException) as exc:
                st.warning(str(exc))
                return
            st.rerun()


def render_today_tab(ctx):
    selected_day = st.date_input("Day", value=ctx.today, key="today.selected_date")
    if not isinstance(selected_day, date):
        selected_day = ctx.today
    readonly = selected_day != ctx.today

    try:
        view = loaders.load_day_view(ctx.user_id, selected_day.isoformat())
    except (ApiError, requests.RequestException) as exc:
        st.warning(f"Could not load the day: {exc}")
        return

    ledger = _ledger()
    for key in ledger.stale(STALE_AFTER_SECONDS):
        ledger.fail(key, "no answer from the server")
    titles = {item["id"]: item["title"] for item in view.get("items", [])}
    for key, error in ledger.failures():
        item_id = key.split(":")[0]
        st.warning(f"Could not save {titles.get(item_id, item_id)}: {error}")
    ledger.reconcile(_server_values(view.get("items", [])))

    buckets = view.get("buckets", {})
    st.progress(completion_percent(buckets) / 100, text=f"{completion_percent(buckets):.0f}% done")
    if readonly:
        st.caption("Completion can only be changed for today.")

    for bucket in ("upcoming", "pending", "completed"):
        items = buckets.get(bucket, [])
        st.markdown(f"#### {BUCKET_LABELS[bucket]} ({len(items)})")
        if not items:
            st.caption("Nothing here.")
        for item in items:
            _render_item(item, ledger, readonly)

    _render_add_form(selected_day)
