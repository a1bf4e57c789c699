from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder

from backend import repositories
from backend.auth import require_user_id
from backend.errors import NotFoundError
from backend.schemas import CarryOverDecision, SummaryPatch
from backend.services import daily_health
from backend.services.clock import local_today

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/health/summary/today")
async def today_summary(user_id: str = Depends(require_user_id)):
    summary = await daily_health.get_or_create_summary(user_id, local_today())
    return jsonable_encoder(summary)


@router.post("/v1/health/summary/today/calculate")
async def calculate_today(user_id: str = Depends(require_user_id)):
    summary = await daily_health.calculate_summary(user_id, local_today())
    return jsonable_encoder(summary)


@router.get("/v1/health/summaries")
async def recent_summaries(
    limit: int = Query(7, ge=1, le=90),
    user_id: str = Depends(require_user_id),
):
    items = await repositories.list_recent_summaries(user_id, limit)
    return {"items": jsonable_encoder(items)}


@router.get("/v1/health/summary/{day}")
async def summary_for_date(day: date, user_id: str = Depends(require_user_id)):
    summary = await repositories.get_summary(user_id, day.isoformat())
    if not summary:
        raise NotFoundError("Daily summary", day.isoformat())
    return jsonable_encoder(summary)


@router.post("/v1/health/summary/{summary_id}/carry-over")
async def decide_carry_over(summary_id: str, payload: CarryOverDecision, user_id: str = Depends(require_user_id)):
    summary = await daily_health.resolve_carry_over(user_id, summary_id, payload.accept)
    return jsonable_encoder(summary)


@router.patch("/v1/health/summary/{summary_id}")
async def patch_summary(summary_id: str, payload: SummaryPatch, user_id: str = Depends(require_user_id)):
    summary = await daily_health.update_summary(user_id, summary_id, payload.model_dump(exclude_unset=True))
    return jsonable_encoder(summary)


@router.delete("/v1/health/summary/{summary_id}")
async def delete_summary(summary_id: str, user_id: str = Depends(require_user_id)):
    await daily_health.delete_summary(user_id, summary_id)
    return {"ok": True}
