import logging
import os
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

_SECRET_GETTER = None
_USER_GETTER = None


class ApiError(RuntimeError):
    def __init__(self, status_code: int, detail):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"API error {status_code}: {detail}")


def _build_session():
    session = requests.Session()
    retry = Retry(
        total=2,
        backoff_factor=0.5,
        status_forcelist=(502, 503, 504),
        allowed_methods=("GET",),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=10)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


_SESSION = _build_session()


def configure(secret_getter, user_getter):
    global _SECRET_GETTER, _USER_GETTER
    _SECRET_GETTER = secret_getter
    _USER_GETTER = user_getter


def _setting(name):
    """Look ``name`` up under ``[app]`` in secrets, then top-level secrets, then the environment."""
    if _SECRET_GETTER is not None:
        for path in (("app", name), (name,)):
            value = _SECRET_GETTER(path, None)
            if value:
                return str(value)
    return os.getenv(name) or ""


def api_base_url():
    return _setting("API_BASE_URL").rstrip("/")


def backend_token():
    return _setting("BACKEND_SESSION_SECRET")


def is_enabled():
    return bool(api_base_url() and backend_token())


def _detail(response):
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict) and "detail" in payload:
        return payload["detail"]
    return payload


def _identity_headers():
    user_id = _USER_GETTER() if _USER_GETTER else None
    if not user_id:
        raise RuntimeError("No signed-in user for API request")
    token = backend_token()
    if not token:
        raise RuntimeError("BACKEND_SESSION_SECRET not configured")
    return {"X-User-Id": user_id, "X-Backend-Token": token}


def request(method: str, path: str, params: dict | None = None, json: dict | None = None, timeout: int = 10) -> Any:
    base = api_base_url()
    if not base:
        raise RuntimeError("API_BASE_URL not configured")
    response = _SESSION.request(
        method,
        base + path,
        params=params,
        json=json,
        headers=_identity_headers(),
        timeout=timeout,
    )
    if not response.ok:
        detail = _detail(response)
        logger.warning("%s %s -> %s %s", method, path, response.status_code, detail)
        raise ApiError(response.status_code, detail)
    if response.status_code == 204:
        return None
    return response.json()
