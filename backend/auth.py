from __future__ import annotations

from fastapi import Header, HTTPException

from backend.errors import UnauthorizedError
from backend.settings import get_settings


async def require_user_id(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    x_backend_token: str | None = Header(default=None, alias="X-Backend-Token"),
) -> str:
    settings = get_settings()
    if not x_backend_token or x_backend_token != settings.backend_session_secret:
        raise UnauthorizedError("Invalid backend token")
    user_id = (x_user_id or "").strip().lower()
    if not user_id:
        raise UnauthorizedError("Missing user id")
    if settings.allowed_user_ids and user_id not in settings.allowed_user_ids:
        raise HTTPException(status_code=403, detail="User not allowed")
    return user_id
