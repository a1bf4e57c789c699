"""
Tests for the dashboard helpers that do not need a running Streamlit session.

Tests cover:
- Wellness score and completion percentages
- Trackable create payloads built from the add form
- Calendar week/month ranges
- API client headers and error mapping
- Repository mutations clearing cached loaders
- Session slices and clearing them on logout
"""
from datetime import date

import pytest
import streamlit as st

from dashboard.data import api_client, repositories
from dashboard.data.api_client import ApiError
from dashboard.metrics import completion_percent, compute_wellness_score, indicator_percent, progress_label
from dashboard.state.session_slices import clear_all_slices, get_slice
from dashboard.tabs.calendar_tab import day_counts, range_from_view
from dashboard.tabs.today_tab import build_trackable_payload
from dashboard.visualizations import completion_heatmap


class FakeResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json body")
        return self._payload


@pytest.fixture
def configured_client():
    secrets = {
        ("app", "API_BASE_URL"): "http://api.local/",
        ("app", "BACKEND_SESSION_SECRET"): "test-secret",
    }
    api_client.configure(lambda path, default=None: secrets.get(tuple(path), default), lambda: "ayse@example.com")
    yield
    api_client.configure(None, None)


class TestMetrics:
    """Tests for dashboard score helpers"""

    def test_perfect_day(self):
        summary = {"sleep_hours": 8, "total_water_ml": 2000, "total_steps": 8000, "avg_stress_level": 1}
        assert compute_wellness_score(summary, completion=100) == 100.0

    def test_empty_summary_only_counts_neutral_stress(self):
        assert compute_wellness_score({}) == 7.5

    def test_nan_cells_count_as_missing(self):
        summary = {"sleep_hours": float("nan"), "avg_stress_level": float("nan")}
        assert compute_wellness_score(summary) == 7.5

    def test_completion_percent(self):
        buckets = {"completed": [{}], "pending": [{}, {}], "upcoming": [{}]}
        assert completion_percent(buckets) == 25.0
        assert completion_percent({}) == 0.0

    def test_indicator_percent(self):
        assert indicator_percent({"completed": 1, "pending": 1, "upcoming": 0}) == 50.0
        assert indicator_percent(None) == 0.0

    def test_progress_label(self):
        assert progress_label({"current_value": 3, "target_value": 8}) == "3/8"
        assert progress_label({"current_value": 3, "target_value": 8}, value=4) == "4/8"
        assert progress_label({"current_value": 1}) == "1"


class TestTrackablePayload:
    """Tests for turning add-form values into API payloads"""

    def test_weekdays_mode(self):
        payload = build_trackable_payload("Read", "DAILY_HABIT", weekday_labels=["Mon", "Wed"], scheduled_time=" 7:30 ")

        assert payload["selected_days"] == ["monday", "wednesday"]
        assert payload["scheduled_time"] == "7:30"
        assert "recurrence_rule" not in payload

    def test_one_date_is_not_recurring(self):
        payload = build_trackable_payload("Dentist", "ONE_TIME", mode="One date", scheduled_date=date(2024, 5, 2))

        assert payload["scheduled_date"] == "2024-05-02"
        assert payload["is_recurring"] is False

    def test_weekly_rule_counts_from_sunday(self):
        payload = build_trackable_payload(
            "Long run",
            "DAILY_HABIT",
            mode="Repeat rule",
            frequency="weekly",
            interval=2,
            rule_day_labels=["Sat", "Sun"],
            scheduled_date=date(2024, 1, 6),
        )

        assert payload["recurrence_rule"] == {"frequency": "weekly", "interval": 2, "daysOfWeek": [0, 6]}
        assert payload["scheduled_date"] == "2024-01-06"

    def test_progress_target(self):
        payload = build_trackable_payload("Glasses", "PROGRESS", target_value=8.0, weekday_labels=["Fri"])
        assert payload["target_value"] == 8


class TestCalendarRanges:
    """Tests for calendar view ranges"""

    def test_week_starts_on_monday(self):
        assert range_from_view(date(2024, 2, 14), "Week") == (date(2024, 2, 12), date(2024, 2, 18))

    def test_month_covers_leap_february(self):
        assert range_from_view(date(2024, 2, 14), "Month") == (date(2024, 2, 1), date(2024, 2, 29))

    def test_day_counts(self):
        days = {"2024-02-12": [{"id": "a", "is_completed": True}, {"id": "b", "is_completed": False}]}
        assert day_counts(days) == {"2024-02-12": (1, 2)}

    def test_heatmap_orders_days(self):
        fig = completion_heatmap({"2024-02-13": (0, 0), "2024-02-12": (1, 2)}, "Completion")

        assert list(fig.data[0].x) == ["2024-02-12", "2024-02-13"]
        assert fig.data[0].z[0][0] == 0.5


class TestApiClient:
    """Tests for the backend HTTP client"""

    def test_sends_identity_headers(self, configured_client, monkeypatch):
        calls = []

        def fake_request(method, url, **kwargs):
            calls.append((method, url, kwargs))
            return FakeResponse(200, {"ok": True})

        monkeypatch.setattr(api_client._SESSION, "request", fake_request)

        assert api_client.request("GET", "/v1/bootstrap") == {"ok": True}
        method, url, kwargs = calls[0]
        assert (method, url) == ("GET", "http://api.local/v1/bootstrap")
        assert kwargs["headers"] == {"X-User-Id": "ayse@example.com", "X-Backend-Token": "test-secret"}

    def test_error_detail_is_raised(self, configured_client, monkeypatch):
        monkeypatch.setattr(
            api_client._SESSION,
            "request",
            lambda method, url, **kwargs: FakeResponse(404, {"detail": "Trackable not found: t9"}),
        )

        with pytest.raises(ApiError) as excinfo:
            api_client.request("POST", "/v1/trackables/t9/complete")

        assert excinfo.value.status_code == 404
        assert excinfo.value.detail == "Trackable not found: t9"

    def test_plain_text_errors(self, configured_client, monkeypatch):
        monkeypatch.setattr(
            api_client._SESSION,
            "request",
            lambda method, url, **kwargs: FakeResponse(502, text="Bad gateway"),
        )

        with pytest.raises(ApiError) as excinfo:
            api_client.request("GET", "/v1/bootstrap")

        assert excinfo.value.detail == "Bad gateway"

    def test_not_enabled_without_secret(self, monkeypatch):
        monkeypatch.delenv("API_BASE_URL", raising=False)
        monkeypatch.delenv("BACKEND_SESSION_SECRET", raising=False)
        api_client.configure(lambda path, default=None: default, lambda: "ayse@example.com")
        try:
            assert api_client.is_enabled() is False
        finally:
            api_client.configure(None, None)


class TestRepositories:
    """Tests for repository mutations"""

    def test_mutation_clears_caches(self, monkeypatch):
        sent = []
        cleared = []
        monkeypatch.setattr(
            api_client,
            "request",
            lambda method, path, params=None, json=None: sent.append((method, path, json)) or {"id": "t1"},
        )
        repositories.configure(invalidate_callback=lambda: cleared.append(True))
        try:
            record = repositories.create_trackable({"title": "Read", "type": "DAILY_HABIT", "priority": None, "selected_days": []})
        finally:
            repositories.configure()

        assert record == {"id": "t1"}
        assert sent == [("POST", "/v1/trackables", {"title": "Read", "type": "DAILY_HABIT"})]
        assert cleared == [True]

    def test_log_paths(self, monkeypatch):
        paths = []
        monkeypatch.setattr(
            api_client,
            "request",
            lambda method, path, params=None, json=None: paths.append(path) or {"items": []},
        )

        repositories.list_logs("health", "water")
        repositories.list_logs("finance", "expenses", start=date(2024, 3, 1))

        assert paths == ["/v1/health/logs/water", "/v1/finance/expenses"]


class TestSessionSlices:
    """Tests for per-feature session state"""

    def test_slice_is_created_once(self, monkeypatch):
        monkeypatch.setattr(st, "session_state", {})

        get_slice("optimistic")["t1:done"] = "pending"

        assert get_slice("optimistic") == {"t1:done": "pending"}

    def test_clear_all_keeps_unrelated_keys(self, monkeypatch):
        state = {"stats.window": "This week"}
        monkeypatch.setattr(st, "session_state", state)
        get_slice("optimistic")
        get_slice("health")

        clear_all_slices()

        assert state == {"stats.window": "This week"}
