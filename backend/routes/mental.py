from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Body, Depends, Query
from fastapi.encoders import jsonable_encoder

from backend.auth import require_user_id
from backend.services import day_logs, statistics
from backend.services.clock import local_today

router = APIRouter()

AREA = "mental"


@router.post("/v1/mental/{kind}", status_code=201)
async def add_mental_log(kind: str, body: dict = Body(...), user_id: str = Depends(require_user_id)):
    record = await day_logs.record(AREA, kind, user_id, body, local_today())
    return jsonable_encoder(record)


@router.get("/v1/mental/today")
async def mental_today(user_id: str = Depends(require_user_id)):
    return await statistics.mental_today(user_id, local_today())


@router.get("/v1/mental/weekly")
async def mental_weekly(user_id: str = Depends(require_user_id)):
    return await statistics.mental_weekly(user_id, local_today())


@router.get("/v1/mental/{kind}")
async def list_mental_logs(
    kind: str,
    start: date | None = Query(None),
    end: date | None = Query(None),
    user_id: str = Depends(require_user_id),
):
    today = local_today()
    items = await day_logs.list_entries(AREA, kind, user_id, start or today, end or start or today)
    return {"items": jsonable_encoder(items)}


@router.delete("/v1/mental/{kind}/{log_id}")
async def delete_mental_log(kind: str, log_id: str, user_id: str = Depends(require_user_id)):
    await day_logs.delete_entry(AREA, kind, user_id, log_id)
    return {"ok": True}
