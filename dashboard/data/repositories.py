"""
Thin wrappers over the backend endpoints.

Every mutation clears the cached loaders afterwards, so the next render reads
the server's view of the data.
"""
import logging
from datetime import date

from dashboard.data import api_client

logger = logging.getLogger(__name__)

_INVALIDATE_CALLBACK = None


def configure(invalidate_callback=None):
    global _INVALIDATE_CALLBACK
    _INVALIDATE_CALLBACK = invalidate_callback


def api_enabled():
    return api_client.is_enabled()


def _invalidate():
    if _INVALIDATE_CALLBACK is None:
        return
    _INVALIDATE_CALLBACK()


def _iso(day):
    if isinstance(day, date):
        return day.isoformat()
    return str(day)


def _mutate(method, path, json=None):
    payload = api_client.request(method, path, json=json)
    _invalidate()
    return payload


# Bootstrap


def get_bootstrap():
    return api_client.request("GET", "/v1/bootstrap")


# Trackables


def get_day_view(day):
    return api_client.request("GET", "/v1/trackables", params={"day": _iso(day)})


def get_range(start, end):
    return api_client.request("GET", "/v1/trackables/range", params={"start": _iso(start), "end": _iso(end)})


def get_streaks():
    return api_client.request("GET", "/v1/trackables/streaks").get("items", [])


def create_trackable(payload):
    clean = {key: value for key, value in payload.items() if value not in (None, "", [])}
    record = _mutate("POST", "/v1/trackables", json=clean)
    logger.info("Created trackable %s", record.get("id"))
    return record


def update_trackable(trackable_id, patch):
    return _mutate("PATCH", f"/v1/trackables/{trackable_id}", json=patch)


def delete_trackable(trackable_id):
    return _mutate("DELETE", f"/v1/trackables/{trackable_id}")


def toggle_trackable(trackable_id):
    return _mutate("POST", f"/v1/trackables/{trackable_id}/complete")


def increment_trackable(trackable_id, amount=1):
    return _mutate("POST", f"/v1/trackables/{trackable_id}/increment", json={"amount": int(amount)})


def decrement_trackable(trackable_id, amount=1):
    return _mutate("POST", f"/v1/trackables/{trackable_id}/decrement", json={"amount": int(amount)})


# Day logs


def add_log(area, kind, payload):
    path = f"/v1/health/logs/{kind}" if area == "health" else f"/v1/{area}/{kind}"
    return _mutate("POST", path, json=payload)


def list_logs(area, kind, start=None, end=None):
    path = f"/v1/health/logs/{kind}" if area == "health" else f"/v1/{area}/{kind}"
    params = {}
    if start:
        params["start"] = _iso(start)
    if end:
        params["end"] = _iso(end)
    return api_client.request("GET", path, params=params).get("items", [])


def delete_log(area, kind, log_id):
    path = f"/v1/health/logs/{kind}/{log_id}" if area == "health" else f"/v1/{area}/{kind}/{log_id}"
    return _mutate("DELETE", path)


# Daily health summary


def get_today_summary():
    return api_client.request("GET", "/v1/health/summary/today")


def calculate_today_summary():
    return _mutate("POST", "/v1/health/summary/today/calculate")


def get_recent_summaries(limit=7):
    return api_client.request("GET", "/v1/health/summaries", params={"limit": int(limit)}).get("items", [])


def decide_carry_over(summary_id, accept):
    return _mutate("POST", f"/v1/health/summary/{summary_id}/carry-over", json={"accept": bool(accept)})


def update_summary(summary_id, patch):
    return _mutate("PATCH", f"/v1/health/summary/{summary_id}", json=patch)


# Mental, productivity, finance


def get_mental_today():
    return api_client.request("GET", "/v1/mental/today")


def get_mental_weekly():
    return api_client.request("GET", "/v1/mental/weekly")


def get_productivity_today():
    return api_client.request("GET", "/v1/productivity/today")


def list_goals(status="active"):
    return api_client.request("GET", "/v1/goals", params={"status": status}).get("items", [])


def create_goal(payload):
    return _mutate("POST", "/v1/goals", json=payload)


def update_goal(goal_id, patch):
    return _mutate("PATCH", f"/v1/goals/{goal_id}", json=patch)


def delete_goal(goal_id):
    return _mutate("DELETE", f"/v1/goals/{goal_id}")


def get_finance_monthly(year=None, month=None):
    params = {}
    if year and month:
        params = {"year": int(year), "month": int(month)}
    return api_client.request("GET", "/v1/finance/monthly", params=params)


def get_finance_weekly():
    return api_client.request("GET", "/v1/finance/weekly")


def get_statistics():
    return api_client.request("GET", "/v1/statistics")
