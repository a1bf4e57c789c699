from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from backend import repositories
from backend.auth import require_user_id
from backend.errors import StorageError
from backend.services import trackables
from backend.services.clock import local_now
from backend.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/bootstrap")
async def bootstrap(user_id: str = Depends(require_user_id)):
    settings = get_settings()
    now = local_now()
    today_iso = now.date().isoformat()
    quick_indicators = {"completed": 0, "upcoming": 0, "pending": 0}
    carry_over_status = None
    try:
        view = await trackables.day_view(user_id, now.date(), now, settings.timezone)
        quick_indicators = {name: len(items) for name, items in view["buckets"].items()}
        summary = await repositories.get_summary(user_id, today_iso)
        carry_over_status = summary.get("carry_over_status") if summary else None
    except StorageError as exc:
        logger.warning("Bootstrap degraded for %s: %s", user_id, exc)
    return {
        "user_id": user_id,
        "user_name": user_id.split("@")[0].replace(".", " ").title(),
        "today": today_iso,
        "timezone": settings.calendar_timezone,
        "quick_indicators": quick_indicators,
        "carry_over_status": carry_over_status,
    }
