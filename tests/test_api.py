"""
End-to-end tests for the HTTP API against a temporary SQLite database.

Tests cover:
1. Header authentication
2. Trackable CRUD, day view, completion toggles and value changes
3. Day logs, the daily health summary and its carry-over flow
4. Goals, statistics and finance summaries
"""
import logging
from datetime import timedelta

import pytest

from backend.services import trackables as trackables_service
from backend.services.clock import local_today

EVERY_DAY = ["Pazar", "Pazartesi", "Salı", "Çarşamba", "Perşembe", "Cuma", "Cumartesi"]


def _create(client, headers, **fields):
    body = {"title": "Read", "type": "DAILY_HABIT", "selected_days": EVERY_DAY}
    body.update(fields)
    response = client.post("/v1/trackables", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestAuth:
    """Tests for header authentication"""

    def test_missing_headers(self, client):
        response = client.get("/v1/trackables")
        assert response.status_code == 401

    def test_wrong_token(self, client, auth_headers):
        headers = {**auth_headers, "X-Backend-Token": "nope"}
        assert client.get("/v1/trackables", headers=headers).status_code == 401

    def test_missing_user(self, client, auth_headers):
        headers = {**auth_headers, "X-User-Id": "  "}
        assert client.get("/v1/trackables", headers=headers).status_code == 401

    def test_health_is_public(self, client):
        assert client.get("/health").json() == {"ok": True}


class TestTrackables:
    """Tests for trackable endpoints"""

    def test_create_canonicalizes_weekdays(self, client, auth_headers):
        record = _create(client, auth_headers, selected_days=["Salı", "monday", "Pazartesi"])

        assert record["selected_days"] == ["monday", "tuesday"]
        assert record["start_date"] == local_today().isoformat()
        assert record["current_value"] == 0

    def test_create_needs_a_schedule(self, client, auth_headers):
        response = client.post(
            "/v1/trackables",
            json={"title": "Nowhere", "type": "DAILY_HABIT"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_target_only_for_progress(self, client, auth_headers):
        response = client.post(
            "/v1/trackables",
            json={"title": "Read", "type": "DAILY_HABIT", "target_value": 3, "selected_days": ["monday"]},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_bad_time_is_rejected(self, client, auth_headers):
        response = client.post(
            "/v1/trackables",
            json={"title": "Read", "type": "DAILY_HABIT", "scheduled_time": "25:00", "selected_days": ["monday"]},
            headers=auth_headers,
        )
        assert response.status_code == 422

    def test_rule_marks_item_recurring(self, client, auth_headers):
        record = _create(client, auth_headers, selected_days=None, recurrence_rule={"frequency": "daily"})

        assert record["is_recurring"] is True
        assert record["recurrence_rule"] == {"frequency": "daily", "interval": 1, "daysOfWeek": []}

    def test_day_view_lists_due_items(self, client, auth_headers):
        due = _create(client, auth_headers, title="Due")
        _create(
            client,
            auth_headers,
            title="Elsewhere",
            type="ONE_TIME",
            selected_days=None,
            scheduled_date=(local_today() + timedelta(days=3)).isoformat(),
        )

        payload = client.get("/v1/trackables", headers=auth_headers).json()

        assert payload["date"] == local_today().isoformat()
        assert [item["id"] for item in payload["items"]] == [due["id"]]
        assert [item["id"] for item in payload["buckets"]["pending"]] == [due["id"]]

    def test_day_view_for_another_day(self, client, auth_headers):
        later = local_today() + timedelta(days=3)
        task = _create(client, auth_headers, type="ONE_TIME", selected_days=None, scheduled_date=later.isoformat())

        payload = client.get("/v1/trackables", params={"day": later.isoformat()}, headers=auth_headers).json()

        assert [item["id"] for item in payload["items"]] == [task["id"]]

    def test_complete_toggles(self, client, auth_headers):
        habit = _create(client, auth_headers)
        url = f"/v1/trackables/{habit['id']}/complete"

        first = client.post(url, headers=auth_headers).json()
        assert first["is_completed_today"] is True
        assert first["last_completed_at"] is not None

        second = client.post(url, headers=auth_headers).json()
        assert second["is_completed_today"] is False
        assert second["last_completed_at"] is None

    def test_completed_habit_moves_bucket(self, client, auth_headers):
        habit = _create(client, auth_headers)
        client.post(f"/v1/trackables/{habit['id']}/complete", headers=auth_headers)

        buckets = client.get("/v1/trackables", headers=auth_headers).json()["buckets"]

        assert [item["id"] for item in buckets["completed"]] == [habit["id"]]
        assert buckets["pending"] == []

    def test_progress_increment_reaches_target(self, client, auth_headers):
        tracker = _create(client, auth_headers, type="PROGRESS", target_value=2)
        url = f"/v1/trackables/{tracker['id']}"

        first = client.post(f"{url}/increment", headers=auth_headers).json()
        assert first["previous_value"] == 0
        assert first["current_value"] == 1
        assert first["is_completed_today"] is False

        second = client.post(f"{url}/increment", json={"amount": 1}, headers=auth_headers).json()
        assert second["current_value"] == 2
        assert second["is_completed_today"] is True

        dropped = client.post(f"{url}/decrement", json={"amount": 5}, headers=auth_headers).json()
        assert dropped["previous_value"] == 2
        assert dropped["current_value"] == 0
        assert dropped["is_completed_today"] is False
        assert dropped["last_completed_at"] is None

    def test_decrement_at_zero_stays_zero(self, client, auth_headers):
        tracker = _create(client, auth_headers, type="PROGRESS", target_value=3)

        response = client.post(f"/v1/trackables/{tracker['id']}/decrement", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["current_value"] == 0

    def test_progress_toggle_below_target(self, client, auth_headers):
        tracker = _create(client, auth_headers, type="PROGRESS", target_value=3)
        response = client.post(f"/v1/trackables/{tracker['id']}/complete", headers=auth_headers)
        assert response.status_code == 400

    def test_amount_must_be_positive(self, client, auth_headers):
        tracker = _create(client, auth_headers, type="PROGRESS", target_value=3)
        response = client.post(f"/v1/trackables/{tracker['id']}/increment", json={"amount": 0}, headers=auth_headers)
        assert response.status_code == 422

    def test_unknown_trackable(self, client, auth_headers):
        assert client.get("/v1/trackables/missing", headers=auth_headers).status_code == 404
        assert client.post("/v1/trackables/missing/complete", headers=auth_headers).status_code == 404
        assert client.post("/v1/trackables/missing/increment", headers=auth_headers).status_code == 404
        assert client.delete("/v1/trackables/missing", headers=auth_headers).status_code == 404

    @pytest.mark.parametrize(
        "service_name, method, suffix",
        [
            ("delete_trackable", "delete", ""),
            ("increment_trackable", "post", "/increment"),
            ("decrement_trackable", "post", "/decrement"),
        ],
    )
    def test_unexpected_failures_are_logged(self, client, auth_headers, monkeypatch, caplog, service_name, method, suffix):
        async def broken(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(trackables_service, service_name, broken)

        with caplog.at_level(logging.ERROR, logger="backend.routes.trackables"):
            response = getattr(client, method)(f"/v1/trackables/t1{suffix}", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal error"}
        assert "disk full" in caplog.text

    def test_other_users_cannot_see_items(self, client, auth_headers):
        habit = _create(client, auth_headers)
        other = {**auth_headers, "X-User-Id": "grace@example.com"}

        assert client.get(f"/v1/trackables/{habit['id']}", headers=other).status_code == 404

    def test_patch_and_delete(self, client, auth_headers):
        habit = _create(client, auth_headers)
        url = f"/v1/trackables/{habit['id']}"

        patched = client.patch(url, json={"title": "Read more", "scheduled_time": "7:30"}, headers=auth_headers)
        assert patched.status_code == 200
        assert patched.json()["title"] == "Read more"
        assert patched.json()["scheduled_time"] == "07:30"

        assert client.delete(url, headers=auth_headers).json() == {"ok": True}
        assert client.get(url, headers=auth_headers).status_code == 404

    def test_range_view(self, client, auth_headers):
        habit = _create(client, auth_headers, selected_days=["monday"])
        start = local_today()
        end = start + timedelta(days=6)

        payload = client.get(
            "/v1/trackables/range",
            params={"start": start.isoformat(), "end": end.isoformat()},
            headers=auth_headers,
        ).json()

        assert len(payload["days"]) == 7
        due_days = [day for day, items in payload["days"].items() if items]
        assert len(due_days) == 1
        assert payload["days"][due_days[0]] == [{"id": habit["id"], "is_completed": False}]

    def test_range_is_limited(self, client, auth_headers):
        start = local_today()
        response = client.get(
            "/v1/trackables/range",
            params={"start": start.isoformat(), "end": (start + timedelta(days=90)).isoformat()},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_streaks(self, client, auth_headers):
        habit = _create(client, auth_headers)
        client.post(f"/v1/trackables/{habit['id']}/complete", headers=auth_headers)

        items = client.get("/v1/trackables/streaks", headers=auth_headers).json()["items"]

        assert items[0]["trackable_id"] == habit["id"]
        assert items[0]["current_streak"] == 1


class TestDayLogs:
    """Tests for per-day log endpoints"""

    def test_water_log_round(self, client, auth_headers):
        created = client.post("/v1/health/logs/water", json={"amount_ml": 250}, headers=auth_headers)
        assert created.status_code == 201
        assert created.json()["log_date"] == local_today().isoformat()

        items = client.get("/v1/health/logs/water", headers=auth_headers).json()["items"]
        assert [item["amount_ml"] for item in items] == [250]

        deleted = client.delete(f"/v1/health/logs/water/{created.json()['id']}", headers=auth_headers)
        assert deleted.status_code == 200

    def test_unknown_kind(self, client, auth_headers):
        response = client.post("/v1/health/logs/teleport", json={}, headers=auth_headers)
        assert response.status_code == 404

    def test_invalid_body(self, client, auth_headers):
        response = client.post("/v1/health/logs/water", json={"amount_ml": -5}, headers=auth_headers)
        assert response.status_code == 422

    def test_body_measurement_bmi(self, client, auth_headers):
        response = client.post("/v1/health/logs/body", json={"weight_kg": 70, "height_cm": 175}, headers=auth_headers)
        assert response.json()["bmi"] == 22.9

    def test_mental_today(self, client, auth_headers):
        client.post("/v1/mental/mood", json={"mood_score": 7}, headers=auth_headers)
        client.post("/v1/mental/mood", json={"mood_score": 5}, headers=auth_headers)

        assert client.get("/v1/mental/today", headers=auth_headers).status_code == 200
        items = client.get("/v1/mental/mood", headers=auth_headers).json()["items"]
        assert len(items) == 2


class TestDailySummary:
    """Tests for the daily health summary"""

    def test_today_is_created_once(self, client, auth_headers):
        first = client.get("/v1/health/summary/today", headers=auth_headers).json()
        second = client.get("/v1/health/summary/today", headers=auth_headers).json()

        assert first["id"] == second["id"]
        assert first["carry_over_status"] == "none"

    def test_calculate_totals(self, client, auth_headers):
        client.post("/v1/health/logs/water", json={"amount_ml": 250}, headers=auth_headers)
        client.post("/v1/health/logs/water", json={"amount_ml": 500}, headers=auth_headers)
        client.post("/v1/health/logs/steps", json={"steps_count": 3000}, headers=auth_headers)

        summary = client.post("/v1/health/summary/today/calculate", headers=auth_headers).json()

        assert summary["total_water_ml"] == 750
        assert summary["total_steps"] == 3000

    def test_carry_over_needs_a_decision(self, client, auth_headers, monkeypatch):
        today = client.get("/v1/health/summary/today", headers=auth_headers).json()
        client.patch(
            f"/v1/health/summary/{today['id']}",
            json={"ongoing_conditions": ["headache"]},
            headers=auth_headers,
        )

        tomorrow = local_today() + timedelta(days=1)
        monkeypatch.setattr("backend.routes.daily_health.local_today", lambda: tomorrow)

        fresh = client.get("/v1/health/summary/today", headers=auth_headers).json()
        assert fresh["summary_date"] == tomorrow.isoformat()
        assert fresh["ongoing_conditions"] == []
        assert fresh["carry_over_candidates"] == ["headache"]
        assert fresh["carry_over_status"] == "pending"

        url = f"/v1/health/summary/{fresh['id']}/carry-over"
        accepted = client.post(url, json={"accept": True}, headers=auth_headers).json()
        assert accepted["ongoing_conditions"] == ["headache"]
        assert accepted["carried_over_conditions"] is True
        assert accepted["carry_over_status"] == "accepted"

        assert client.post(url, json={"accept": False}, headers=auth_headers).status_code == 400

    def test_declined_carry_over_starts_empty(self, client, auth_headers, monkeypatch):
        today = client.get("/v1/health/summary/today", headers=auth_headers).json()
        client.patch(
            f"/v1/health/summary/{today['id']}",
            json={"ongoing_conditions": ["cold"]},
            headers=auth_headers,
        )
        tomorrow = local_today() + timedelta(days=1)
        monkeypatch.setattr("backend.routes.daily_health.local_today", lambda: tomorrow)
        fresh = client.get("/v1/health/summary/today", headers=auth_headers).json()

        declined = client.post(
            f"/v1/health/summary/{fresh['id']}/carry-over",
            json={"accept": False},
            headers=auth_headers,
        ).json()

        assert declined["ongoing_conditions"] == []
        assert declined["carried_over_conditions"] is False

    def test_missing_summary(self, client, auth_headers):
        assert client.get("/v1/health/summary/1999-01-01", headers=auth_headers).status_code == 404
        assert client.delete("/v1/health/summary/missing", headers=auth_headers).status_code == 404


class TestGoalsAndSummaries:
    """Tests for goals, statistics, finance and bootstrap"""

    def test_goal_completes_at_full_progress(self, client, auth_headers):
        goal = client.post(
            "/v1/goals",
            json={"title": "Ship it", "goal_type": "weekly"},
            headers=auth_headers,
        ).json()

        patched = client.patch(f"/v1/goals/{goal['id']}", json={"progress_percentage": 100}, headers=auth_headers)

        assert patched.json()["status"] == "completed"
        assert client.get("/v1/goals", headers=auth_headers).json()["items"] == []

    def test_finance_monthly(self, client, auth_headers):
        client.post("/v1/finance/expenses", json={"amount": 12.5, "category": "Food"}, headers=auth_headers)
        client.post("/v1/finance/expenses", json={"amount": 7.5, "category": "Food"}, headers=auth_headers)
        client.post("/v1/finance/income", json={"amount": 100}, headers=auth_headers)

        summary = client.get("/v1/finance/monthly", headers=auth_headers).json()

        assert summary["total_expenses"] == 20.0
        assert summary["total_income"] == 100.0
        assert summary["balance"] == 80.0
        assert summary["expenses_by_category"] == {"Food": 20.0}
        assert summary["income_by_source"] == {"Other": 100.0}

    def test_statistics_shape(self, client, auth_headers):
        _create(client, auth_headers)
        client.post("/v1/productivity/pomodoro", json={"duration_minutes": 25}, headers=auth_headers)

        stats = client.get("/v1/statistics", headers=auth_headers).json()

        assert stats["date"] == local_today().isoformat()
        assert stats["trackables"]["total"] == 1
        assert stats["productivity"]["today"]["total_pomodoro_minutes"] == 25
        assert set(stats["health"]) == {"today", "week", "month"}

    def test_bootstrap(self, client, auth_headers):
        _create(client, auth_headers)

        payload = client.get("/v1/bootstrap", headers=auth_headers).json()

        assert payload["user_id"] == "ada@example.com"
        assert payload["timezone"] == "UTC"
        assert payload["quick_indicators"] == {"completed": 0, "upcoming": 0, "pending": 1}
