# walrus/main.py
from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from walrus.domain.lifecycle.sweep import run_sweeper
from walrus.services.pitch_generator import PitchGenerator
from walrus.settings import Settings, get_settings
from walrus.store.memory_repo import MemoryRepo
from walrus.transport.admin import router as admin_router
from walrus.transport.api import router as api_router
from walrus.transport.timers import TimerRegistry

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=settings.APP_NAME)
    allowed_origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",") if o.strip()]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.repo = MemoryRepo(event_feed_max=settings.EVENT_FEED_MAX)
    app.state.timers = TimerRegistry()
    app.state.generator = None
    app.state.rng = None

    @app.on_event("startup")
    async def _startup() -> None:
        app.state.generator = PitchGenerator.from_settings(settings)
        app.state.sweeper = asyncio.create_task(run_sweeper(app))
        logger.info("%s started", settings.APP_NAME)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        app.state.timers.cancel_all()
        sweeper = getattr(app.state, "sweeper", None)
        if sweeper is not None:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
        if app.state.generator is not None:
            await app.state.generator.aclose()

    @app.get("/health")
    async def health():
        rooms = await app.state.repo.list_room_codes()
        return {"ok": True, "rooms": len(rooms)}

    app.include_router(api_router)
    app.include_router(admin_router)
    return app


app = create_app()
