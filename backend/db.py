from __future__ import annotations

import logging
from urllib.parse import urlparse, urlunparse, parse_qsl, urlencode

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncEngine

from backend.settings import get_settings

logger = logging.getLogger(__name__)

_ASYNC_SCHEMES = {
    "sqlite": "sqlite+aiosqlite",
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "postgresql+psycopg2": "postgresql+asyncpg",
}
_DROPPED_PARAMS = {"channel_binding", "ssl"}
_LOCAL_HOSTS = {"", "localhost", "127.0.0.1"}

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker | None = None


def _normalize_database_url(database_url: str) -> str:
    """Rewrite sync driver URLs to their async drivers.

    libpq's ``sslmode`` is not understood by asyncpg, so it becomes ``ssl=true``.
    """
    url = str(database_url or "").strip()
    scheme, sep, rest = url.partition("://")
    if not sep:
        return url
    url = f"{_ASYNC_SCHEMES.get(scheme, scheme)}://{rest}"
    if url.startswith("sqlite"):
        return url
    try:
        parsed = urlparse(url)
        params = parse_qsl(parsed.query, keep_blank_values=True)
    except ValueError:
        return url
    wants_ssl = any(key == "sslmode" for key, _ in params)
    kept = [(key, value) for key, value in params if key != "sslmode" and key not in _DROPPED_PARAMS]
    if wants_ssl:
        kept.append(("ssl", "true"))
    return urlunparse(parsed._replace(query=urlencode(kept)))


def _engine_options(db_url: str) -> dict:
    options: dict = {"pool_pre_ping": True, "future": True}
    if db_url.startswith("sqlite"):
        return options
    options.update(pool_size=20, max_overflow=10)
    try:
        host = urlparse(db_url).hostname or ""
    except ValueError:
        logger.debug("Could not read host from database URL; skipping SSL.")
        return options
    if host not in _LOCAL_HOSTS:
        options["connect_args"] = {"ssl": True}
    return options


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        db_url = _normalize_database_url(get_settings().database_url)
        options = _engine_options(db_url)
        logger.info("Creating database engine (%s)", db_url.split("://", 1)[0])
        _engine = create_async_engine(db_url, **options)
    return _engine


def get_sessionmaker() -> async_sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


def reset_engine() -> None:
    """Forget the cached engine so the next call rebuilds it from settings."""
    global _engine, _session_factory
    _engine = None
    _session_factory = None


async def dispose_engine() -> None:
    if _engine is not None:
        await _engine.dispose()
