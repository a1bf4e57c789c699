from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.auth import require_user_id
from backend.services import statistics
from backend.services.clock import local_now
from backend.settings import get_settings

router = APIRouter()


@router.get("/v1/statistics")
async def all_statistics(user_id: str = Depends(require_user_id)):
    return await statistics.all_statistics(user_id, local_now(), get_settings().timezone)
