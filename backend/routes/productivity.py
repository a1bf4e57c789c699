from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Body, Depends, Query
from fastapi.encoders import jsonable_encoder

from backend import repositories
from backend.auth import require_user_id
from backend.errors import NotFoundError
from backend.schemas import GoalCreate, GoalPatch
from backend.services import day_logs, statistics
from backend.services.clock import local_today

logger = logging.getLogger(__name__)

router = APIRouter()

AREA = "productivity"


@router.get("/v1/productivity/today")
async def productivity_today(user_id: str = Depends(require_user_id)):
    return await statistics.productivity_today(user_id, local_today())


@router.get("/v1/goals")
async def list_goals(
    status: str | None = Query("active"),
    user_id: str = Depends(require_user_id),
):
    items = await repositories.list_goals(user_id, status)
    return {"items": jsonable_encoder(items)}


@router.post("/v1/goals", status_code=201)
async def create_goal(payload: GoalCreate, user_id: str = Depends(require_user_id)):
    record = await repositories.create_goal(user_id, payload.model_dump(mode="json"))
    logger.info("Created goal %s for %s", record["id"], user_id)
    return jsonable_encoder(record)


@router.patch("/v1/goals/{goal_id}")
async def patch_goal(goal_id: str, payload: GoalPatch, user_id: str = Depends(require_user_id)):
    if not await repositories.get_goal(user_id, goal_id):
        raise NotFoundError("Goal", goal_id)
    patch = payload.model_dump(mode="json", exclude_unset=True)
    if patch.get("progress_percentage") == 100 and "status" not in patch:
        patch["status"] = "completed"
    record = await repositories.update_goal(user_id, goal_id, patch)
    return jsonable_encoder(record)


@router.delete("/v1/goals/{goal_id}")
async def delete_goal(goal_id: str, user_id: str = Depends(require_user_id)):
    if not await repositories.delete_goal(user_id, goal_id):
        raise NotFoundError("Goal", goal_id)
    return {"ok": True}


@router.post("/v1/productivity/{kind}", status_code=201)
async def add_session(kind: str, body: dict = Body(...), user_id: str = Depends(require_user_id)):
    record = await day_logs.record(AREA, kind, user_id, body, local_today())
    return jsonable_encoder(record)


@router.get("/v1/productivity/{kind}")
async def list_sessions(
    kind: str,
    start: date | None = Query(None),
    end: date | None = Query(None),
    user_id: str = Depends(require_user_id),
):
    today = local_today()
    items = await day_logs.list_entries(AREA, kind, user_id, start or today, end or start or today)
    return {"items": jsonable_encoder(items)}


@router.delete("/v1/productivity/{kind}/{log_id}")
async def delete_session(kind: str, log_id: str, user_id: str = Depends(require_user_id)):
    await day_logs.delete_entry(AREA, kind, user_id, log_id)
    return {"ok": True}
