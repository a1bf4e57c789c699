from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder

from backend.auth import require_user_id
from backend.errors import TrackerError
from backend.schemas import AmountPayload, TrackableCreate, TrackablePatch
from backend.services import trackables
from backend.services.clock import local_now
from backend.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/v1/trackables")
async def day_view(
    day: date | None = Query(None),
    user_id: str = Depends(require_user_id),
):
    now = local_now()
    payload = await trackables.day_view(user_id, day or now.date(), now, get_settings().timezone)
    return jsonable_encoder(payload)


@router.get("/v1/trackables/range")
async def range_view(
    start: date = Query(...),
    end: date = Query(...),
    user_id: str = Depends(require_user_id),
):
    payload = await trackables.range_view(user_id, start, end, get_settings().timezone)
    return jsonable_encoder(payload)


@router.get("/v1/trackables/streaks")
async def streaks(user_id: str = Depends(require_user_id)):
    items = await trackables.streaks(user_id, local_now(), get_settings().timezone)
    return {"items": items}


@router.get("/v1/trackables/{trackable_id}")
async def get_trackable(trackable_id: str, user_id: str = Depends(require_user_id)):
    record = await trackables.get_trackable(user_id, trackable_id, local_now(), get_settings().timezone)
    return jsonable_encoder(record)


@router.post("/v1/trackables", status_code=201)
async def create_trackable(payload: TrackableCreate, user_id: str = Depends(require_user_id)):
    try:
        record = await trackables.create_trackable(user_id, payload.storage_payload(), local_now().date())
        return jsonable_encoder(record)
    except TrackerError:
        raise
    except Exception as exc:
        logger.exception("Failed to create trackable: %s", exc)
        raise HTTPException(status_code=500, detail="Internal error")


@router.patch("/v1/trackables/{trackable_id}")
async def patch_trackable(trackable_id: str, payload: TrackablePatch, user_id: str = Depends(require_user_id)):
    try:
        record = await trackables.update_trackable(user_id, trackable_id, payload.storage_payload(exclude_unset=True))
        return jsonable_encoder(record)
    except TrackerError:
        raise
    except Exception as exc:
        logger.exception("Failed to update trackable: %s", exc)
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/v1/trackables/{trackable_id}")
async def delete_trackable(trackable_id: str, user_id: str = Depends(require_user_id)):
    try:
        await trackables.delete_trackable(user_id, trackable_id)
        return {"ok": True}
    except TrackerError:
        raise
    except Exception as exc:
        logger.exception("Failed to delete trackable: %s", exc)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/v1/trackables/{trackable_id}/complete")
async def complete_trackable(trackable_id: str, user_id: str = Depends(require_user_id)):
    try:
        record = await trackables.toggle_trackable(user_id, trackable_id, local_now(), get_settings().timezone)
        return jsonable_encoder(record)
    except TrackerError:
        raise
    except Exception as exc:
        logger.exception("Failed to toggle trackable: %s", exc)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/v1/trackables/{trackable_id}/increment")
async def increment_trackable(
    trackable_id: str,
    payload: AmountPayload | None = None,
    user_id: str = Depends(require_user_id),
):
    amount = payload.amount if payload else 1
    try:
        record = await trackables.increment_trackable(user_id, trackable_id, amount, local_now(), get_settings().timezone)
        return jsonable_encoder(record)
    except TrackerError:
        raise
    except Exception as exc:
        logger.exception("Failed to increment trackable: %s", exc)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/v1/trackables/{trackable_id}/decrement")
async def decrement_trackable(
    trackable_id: str,
    payload: AmountPayload | None = None,
    user_id: str = Depends(require_user_id),
):
    amount = payload.amount if payload else 1
    try:
        record = await trackables.decrement_trackable(user_id, trackable_id, amount, local_now(), get_settings().timezone)
        return jsonable_encoder(record)
    except TrackerError:
        raise
    except Exception as exc:
        logger.exception("Failed to decrement trackable: %s", exc)
        raise HTTPException(status_code=500, detail="Internal error")
