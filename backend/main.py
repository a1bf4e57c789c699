from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.db import dispose_engine
from backend.db_init import init_db
from backend.errors import StorageError, TrackerError
from backend.routes import bootstrap, trackables, health, daily_health, mental, productivity, finance, statistics


def create_app() -> FastAPI:
    logging.basicConfig(
        level=os.getenv("BACKEND_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    app = FastAPI(title="Life Tracker API", version="0.1.0")

    app.include_router(bootstrap.router)
    app.include_router(trackables.router)
    app.include_router(daily_health.router)
    app.include_router(health.router)
    app.include_router(mental.router)
    app.include_router(productivity.router)
    app.include_router(finance.router)
    app.include_router(statistics.router)

    @app.on_event("startup")
    async def _startup():
        await init_db()

    @app.on_event("shutdown")
    async def _shutdown():
        await dispose_engine()

    @app.exception_handler(TrackerError)
    async def _tracker_error_handler(request: Request, exc: TrackerError):
        log = logging.getLogger("backend")
        if isinstance(exc, StorageError):
            log.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
        else:
            log.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logging.getLogger("backend").exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal error"})

    @app.get("/health")
    async def health_check():
        return {"ok": True}

    return app


app = create_app()
