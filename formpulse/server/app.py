"""FastAPI application factory for the reference forms server."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from formpulse import __version__
from formpulse.server.db import create_session_factory, get_engine, init_db
from formpulse.server.hub import Hub
from formpulse.server.routes.analytics import router as analytics_router
from formpulse.server.routes.forms import router as forms_router
from formpulse.server.routes.health import router as health_router
from formpulse.server.routes.live import router as live_router
from formpulse.server.routes.responses import router as responses_router

logger = logging.getLogger(__name__)


def create_app(
    db_url: str | None = None,
    cors_origin: str = "*",
    log_dir: Path | None = None,
    verbose: bool = False,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_url: Database URL.  Defaults to an in-memory SQLite database.
        cors_origin: Allowed origin for browser clients.
        log_dir: When given, logs are also written to ``<log_dir>/formpulse.log``.
        verbose: When True, terminal handler shows DEBUG-level messages.

    When uvicorn reloads it calls this factory with no arguments; the CLI
    stashes its options in ``_FORMPULSE_*`` env vars so they survive.
    """
    if db_url is None:
        db_url = os.environ.get("_FORMPULSE_DB_URL", "sqlite://")
    if log_dir is None and os.environ.get("_FORMPULSE_LOG_DIR"):
        log_dir = Path(os.environ["_FORMPULSE_LOG_DIR"])
    if not verbose and os.environ.get("_FORMPULSE_VERBOSE") == "1":
        verbose = True

    if log_dir is not None:
        from formpulse.logging import setup_logging

        setup_logging(log_dir=log_dir, verbose=verbose)

    app = FastAPI(title="Formpulse", version=__version__, docs_url="/api/docs", redoc_url=None)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[cors_origin],
        allow_headers=["*"],
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    )

    engine = get_engine(db_url)
    init_db(engine)

    # Store session factory, DB URL and hub in app state for the routes
    app.state.db_factory = create_session_factory(engine)
    app.state.db_url = db_url
    app.state.hub = Hub()

    app.include_router(health_router)
    app.include_router(forms_router)
    app.include_router(responses_router)
    app.include_router(analytics_router)
    app.include_router(live_router)

    logger.info("Formpulse server ready (db=%s)", db_url)
    return app
