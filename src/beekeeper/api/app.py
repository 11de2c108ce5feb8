"""Beekeeper FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from beekeeper import __version__

from .routes import bees, confirmations, control, health, runs

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from beekeeper.app import Beekeeper
    from beekeeper.storage import Database

logger = logging.getLogger(__name__)


def create_app(
    *,
    beekeeper: Beekeeper,
    db: Database | None = None,
    manage_lifecycle: bool = False,
    enable_cors: bool = True,
    cors_origins: list[str] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        beekeeper: Application object the routes operate on.
        db: Run history database for the runs endpoints.
        manage_lifecycle: Start the scheduler when the server starts and
            stop it (rejecting open confirmations) on shutdown.
        enable_cors: Enable CORS middleware.
        cors_origins: List of allowed CORS origins.
            Defaults to ["*"] for development.

    Returns:
        Configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if not manage_lifecycle:
            yield
            return
        beekeeper.start()
        logger.info(f"Beekeeper started with {len(beekeeper.hive.bees)} bee(s)")
        try:
            yield
        finally:
            await beekeeper.stop()
            logger.info("Beekeeper stopped")

    app = FastAPI(
        title="Beekeeper API",
        description="Scheduled agent runs with human confirmation",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    app.state.beekeeper = beekeeper
    app.state.db = db

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins or ["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(bees.router, prefix="/api", tags=["bees"])
    app.include_router(confirmations.router, prefix="/api", tags=["confirmations"])
    app.include_router(control.router, prefix="/api", tags=["control"])
    app.include_router(runs.router, prefix="/api", tags=["runs"])

    return app
