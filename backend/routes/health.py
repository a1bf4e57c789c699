from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Body, Depends, Query
from fastapi.encoders import jsonable_encoder

from backend.auth import require_user_id
from backend.services import day_logs
from backend.services.clock import local_today

logger = logging.getLogger(__name__)

router = APIRouter()

AREA = "health"


@router.post("/v1/health/logs/{kind}", status_code=201)
async def add_health_log(kind: str, body: dict = Body(...), user_id: str = Depends(require_user_id)):
    record = await day_logs.record(AREA, kind, user_id, body, local_today())
    return jsonable_encoder(record)


@router.get("/v1/health/logs/{kind}")
async def list_health_logs(
    kind: str,
    start: date | None = Query(None),
    end: date | None = Query(None),
    user_id: str = Depends(require_user_id),
):
    today = local_today()
    items = await day_logs.list_entries(AREA, kind, user_id, start or today, end or start or today)
    return {"items": jsonable_encoder(items)}


@router.delete("/v1/health/logs/{kind}/{log_id}")
async def delete_health_log(kind: str, log_id: str, user_id: str = Depends(require_user_id)):
    await day_logs.delete_entry(AREA, kind, user_id, log_id)
    return {"ok": True}
