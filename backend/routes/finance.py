from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Body, Depends, Query
from fastapi.encoders import jsonable_encoder

from backend.auth import require_user_id
from backend.services import day_logs, statistics
from backend.services.clock import local_today

router = APIRouter()

AREA = "finance"


@router.get("/v1/finance/monthly")
async def monthly_summary(
    year: int | None = Query(None, ge=2000, le=2100),
    month: int | None = Query(None, ge=1, le=12),
    user_id: str = Depends(require_user_id),
):
    today = local_today()
    return await statistics.finance_monthly(user_id, year or today.year, month or today.month)


@router.get("/v1/finance/weekly")
async def weekly_summary(user_id: str = Depends(require_user_id)):
    return await statistics.finance_weekly(user_id, local_today())


@router.post("/v1/finance/{kind}", status_code=201)
async def add_transaction(kind: str, body: dict = Body(...), user_id: str = Depends(require_user_id)):
    record = await day_logs.record(AREA, kind, user_id, body, local_today())
    return jsonable_encoder(record)


@router.get("/v1/finance/{kind}")
async def list_transactions(
    kind: str,
    start: date | None = Query(None),
    end: date | None = Query(None),
    user_id: str = Depends(require_user_id),
):
    today = local_today()
    items = await day_logs.list_entries(AREA, kind, user_id, start or today.replace(day=1), end or today)
    return {"items": jsonable_encoder(items)}


@router.delete("/v1/finance/{kind}/{log_id}")
async def delete_transaction(kind: str, log_id: str, user_id: str = Depends(require_user_id)):
    await day_logs.delete_entry(AREA, kind, user_id, log_id)
    return {"ok": True}
