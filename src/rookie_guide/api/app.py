"""
FastAPI application factory.

``create_app()`` is the one place the API is assembled: middleware,
exception handlers, routers and the lifespan. On startup the lifespan
configures structlog and brings the schema up to date; when a migration
fails the server does not start.
"""

from __future__ import annotations

import threading
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from rookie_guide.api.deps import get_settings
from rookie_guide.api.middleware.auth import AuthMiddleware
from rookie_guide.api.middleware.errors import (
    unhandled_exception_handler,
    validation_exception_handler,
)
from rookie_guide.api.middleware.request_id import RequestIDMiddleware
from rookie_guide.api.middleware.timing import TimingMiddleware
from rookie_guide.api.settings import GuideAPISettings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    from rookie_guide.core.connection import create_connection
    from rookie_guide.core.logging import configure_logging, get_logger

    settings: GuideAPISettings = app.state.settings
    configure_logging(level=settings.log_level, service="rookie-guide-api")
    log = get_logger("rookie_guide.api")
    log.info("api_starting", version=app.version)

    try:
        conn, info = create_connection(
            settings.database_url,
            init_schema=True,
            data_dir=settings.data_dir,
        )
    except Exception as exc:
        log.error("database_init_failed", error=str(exc))
        raise
    log.info("database_ready", backend=info.backend, path=info.resolved_path)

    if info.persistent:
        conn.close()
        app.state.shared_conn = None
    else:
        # an in-memory database lives only as long as its connection
        app.state.shared_conn = conn
        app.state.shared_conn_lock = threading.Lock()

    try:
        yield
    finally:
        if app.state.shared_conn is not None:
            app.state.shared_conn.close()
            app.state.shared_conn = None
        log.info("api_stopped")


def create_app(*, settings: GuideAPISettings | None = None) -> FastAPI:
    """Assemble the API.

    Parameters
    ----------
    settings : GuideAPISettings | None
        Settings to run with; tests pass their own. Defaults to the
        process-wide :func:`get_settings`.
    """
    settings = settings or get_settings()
    prefix = settings.api_prefix

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{prefix}/docs",
        redoc_url=f"{prefix}/redoc",
        openapi_url=f"{prefix}/openapi.json",
    )
    app.state.settings = settings
    # endpoints resolve settings through DI; point it at ours
    app.dependency_overrides[get_settings] = lambda: settings

    # added last = runs first
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(AuthMiddleware, api_key=settings.api_key)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    from rookie_guide.api.routers import checklists, health, templates

    # probes stay at the root, outside the API prefix
    app.include_router(health.router)
    app.include_router(templates.router, prefix=prefix, tags=["templates"])
    app.include_router(checklists.router, prefix=prefix, tags=["checklists"])

    return app
