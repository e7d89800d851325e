"""
Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures logging and global exception handling, and provides a test-friendly
application factory.

Design Goals
------------
- Deterministic startup
- Centralized router registration
- Global exception safety net
- Test-friendly via create_app()
"""

from __future__ import annotations

import contextlib
import logging
from typing import AsyncIterator

from fastapi import FastAPI

from .config import settings
from .core.errors import unhandled_exception_handler, generation_exception_handler
from .db import async_engine, init_models
from .llm.client import GenerationError

from .api import (
    document_routes,
    health_routes,
    stats_routes,
)


logger = logging.getLogger("mctx.app")


def configure_logging(level: str = settings.log_level) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------

@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Fail-fast validation at startup and engine disposal at shutdown.
    """
    logger.info("Starting media-context-server")

    # Touch critical secrets to force validation now (not at first use)
    _ = settings.gemini_api_key.get_secret_value()

    if settings.auto_create_tables:
        await init_models()
        logger.info("Database tables verified")

    yield

    logger.info("Shutting down media-context-server")
    await async_engine.dispose()


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    configure_logging()

    app = FastAPI(
        title="media-context-server",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(GenerationError, generation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(document_routes.router)
    app.include_router(stats_routes.router)

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
