"""FastAPI application entry point for lastkey.

The reconciliation scheduler starts and stops with the application
lifespan. Run with:

    uvicorn lastkey.api.main:app
"""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from lastkey import __version__
from lastkey.api.middleware.logging_middleware import LoggingMiddleware
from lastkey.api.routes import (
    health_router,
    inactivity_router,
    metrics_router,
    release_router,
)
from lastkey.bootstrap.database import close_database_engine
from lastkey.bootstrap.release_engine import get_release_engine
from lastkey.infrastructure.observability.logging import (
    configure_structlog,
    get_logger_for_service,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_structlog(environment=os.environ.get("ENVIRONMENT", "production"))
    log = get_logger_for_service("api")
    engine = get_release_engine()
    if app.state.start_scheduler:
        await engine.scheduler.start()
    log.info("api_started", scheduler_running=engine.scheduler.running)
    try:
        yield
    finally:
        await engine.scheduler.stop()
        await close_database_engine()
        log.info("api_stopped")


def create_app(*, start_scheduler: bool = True) -> FastAPI:
    """Build the application.

    Args:
        start_scheduler: Run the reconcilers inside the API process. Disable
            when scripts/run_release_engine.py runs them separately.
    """
    app = FastAPI(
        title="lastkey release engine",
        description="Dead-man's-switch release orchestration",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.start_scheduler = start_scheduler
    app.add_middleware(LoggingMiddleware)
    app.include_router(health_router)
    app.include_router(release_router)
    app.include_router(inactivity_router)
    app.include_router(metrics_router)
    return app


app = create_app(
    start_scheduler=os.environ.get("RUN_SCHEDULER_IN_API", "true").lower()
    in ("1", "true", "yes")
)
