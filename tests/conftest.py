"""
Shared fixtures.

API tests run the real app against a throwaway SQLite file so the raw SQL in
the repositories is exercised end to end.
"""
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from backend.db import reset_engine
from backend.models import Trackable
from backend.settings import reset_settings

SECRET = "test-secret"
USER = "ada@example.com"


@pytest.fixture
def istanbul():
    return ZoneInfo("Europe/Istanbul")


@pytest.fixture
def make_trackable():
    """Factory building a Trackable from row-shaped keyword arguments."""

    def _make(**fields):
        row = {"id": "t1", "title": "Item", "type": "DAILY_HABIT"}
        row.update(fields)
        return Trackable.from_row(row)

    return _make


@pytest.fixture
def utc_noon():
    return datetime(2024, 3, 12, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'tracker.db'}")
    monkeypatch.setenv("BACKEND_SESSION_SECRET", SECRET)
    monkeypatch.setenv("CALENDAR_TIMEZONE", "UTC")
    monkeypatch.delenv("ALLOWED_USER_IDS", raising=False)
    reset_settings()
    reset_engine()

    from backend.main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client

    reset_engine()
    reset_settings()


@pytest.fixture
def auth_headers():
    return {"X-User-Id": USER, "X-Backend-Token": SECRET}
