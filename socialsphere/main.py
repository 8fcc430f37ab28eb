"""Application entry point for the FastAPI backend."""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .database import SessionLocal, init_db
from .routers import auth_router, friends_router, posts_router, realtime_router, saved_router
from .services import FeedStreamManager, build_services
from .store import SqlDocumentStore

logger = logging.getLogger(__name__)

settings = get_settings()
APP_NAME = settings.app_name
API_VERSION = settings.api_version

app = FastAPI(title=APP_NAME, version=API_VERSION)

if settings.cors_origins:
    origins: Iterable[str] = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
else:
    origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(friends_router)
app.include_router(posts_router)
app.include_router(saved_router)
app.include_router(realtime_router)


@app.on_event("startup")
async def _startup() -> None:
    """Ensure database schema and the live feed are ready before serving."""

    try:
        init_db()
    except Exception:
        logger.exception("Database initialisation failed")
        raise

    app.state.services = build_services(SqlDocumentStore(SessionLocal), settings)
    app.state.feed_stream = FeedStreamManager()
    app.state.feed_stream.start(app.state.services.feed, asyncio.get_running_loop())
    logger.info("%s %s ready", APP_NAME, API_VERSION)


@app.on_event("shutdown")
async def _shutdown() -> None:
    """Cancel live queries and drop cached engagement state."""

    feed_stream = getattr(app.state, "feed_stream", None)
    if feed_stream is not None:
        feed_stream.stop()
    services = getattr(app.state, "services", None)
    if services is not None:
        services.close()


@app.get("/api", tags=["system"])
def api_info() -> dict[str, str]:
    return {"service": APP_NAME, "version": API_VERSION}


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str | int]:
    """Report readiness and the number of open live queries."""

    services = getattr(app.state, "services", None)
    if services is None:
        return {"status": "starting", "live_queries": 0}
    return {"status": "ok", "live_queries": services.store.subscriptions.active_count()}
