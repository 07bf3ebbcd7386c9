from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quizboard.api.routes import router
from quizboard.broadcast_hub import BroadcastHub
from quizboard.core.registry import SessionRegistry
from quizboard.facade import SessionFacade
from quizboard.settings import Settings, settings_from_env

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API with its own registry, hub and facade.

    State lives on `app.state` for the lifetime of the process; nothing is a module global.
    """

    settings = settings or settings_from_env()
    logging.basicConfig(level=settings.log_level)

    registry = SessionRegistry()
    hub = BroadcastHub(keepalive_interval=settings.keepalive_interval_sec)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        logger.info("quizboard starting (keepalive=%ss)", settings.keepalive_interval_sec)
        yield
        await hub.aclose()
        logger.info("quizboard stopped")

    app = FastAPI(title="quizboard", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.facade = SessionFacade(registry=registry, hub=hub)

    # Open CORS for browser demos.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.include_router(router)

    @app.get("/info")
    async def info() -> dict[str, str]:
        return {"name": "quizboard", "version": "0.1.0"}

    return app


app = create_app()
