from __future__ import annotations

from datetime import date, datetime

from backend.settings import get_settings


def local_now() -> datetime:
    """Current instant in the configured calendar timezone.

    Routes call this once per request and pass the value down.
    """
    return datetime.now(get_settings().timezone)


def local_today() -> date:
    return local_now().date()
