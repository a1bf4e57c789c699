from __future__ import annotations

from datetime import tzinfo
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from backend.services.calendar_math import resolve_timezone


class Settings(BaseSettings):
    database_url: str = Field(..., alias="DATABASE_URL")
    backend_session_secret: str = Field(..., alias="BACKEND_SESSION_SECRET")

    calendar_timezone: str = Field("Europe/Istanbul", alias="CALENDAR_TIMEZONE")

    allowed_user_ids_raw: str = Field("", alias="ALLOWED_USER_IDS")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def allowed_user_ids(self) -> List[str]:
        return [item.strip().lower() for item in self.allowed_user_ids_raw.split(",") if item.strip()]

    @property
    def timezone(self) -> tzinfo:
        return resolve_timezone(self.calendar_timezone)


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
