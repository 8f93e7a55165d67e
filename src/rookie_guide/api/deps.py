"""
FastAPI dependency injection: shared singletons and per-request factories.

Usage in routers::

    from rookie_guide.api.deps import OpContext

    @router.get("/things")
    def list_things(ctx: OpContext):
        ...

The caller's identity arrives in the ``X-User-ID`` header and is copied
onto :attr:`OperationContext.user`; operations that need it answer
``UNAUTHORIZED`` when it is missing.
"""

from __future__ import annotations

import uuid
from collections.abc import Generator
from functools import lru_cache
from typing import Annotated, Any

from fastapi import Depends, Header, Request

from rookie_guide.api.settings import GuideAPISettings
from rookie_guide.core.connection import create_connection
from rookie_guide.ops.context import OperationContext

# ── Settings (singleton) ─────────────────────────────────────────────────


@lru_cache(maxsize=1)
def get_settings() -> GuideAPISettings:
    """Cached settings, loaded once per process."""
    return GuideAPISettings()


# ── Database connection (per-request) ────────────────────────────────────


def get_connection(
    request: Request,
    settings: Annotated[GuideAPISettings, Depends(get_settings)],
) -> Generator[Any, None, None]:
    """Yield a database connection for the request lifespan.

    An in-memory database has one connection, opened at startup; requests
    take turns on it and leave it open.
    """
    shared = getattr(request.app.state, "shared_conn", None)
    if shared is not None:
        with request.app.state.shared_conn_lock:
            yield shared
        return

    conn, _info = create_connection(
        settings.database_url,
        data_dir=settings.data_dir,
    )

    try:
        yield conn
    finally:
        conn.close()


# ── Operation context (per-request) ──────────────────────────────────────


def get_operation_context(
    request: Request,
    conn: Annotated[Any, Depends(get_connection)],
    settings: Annotated[GuideAPISettings, Depends(get_settings)],
    x_user_id: Annotated[str | None, Header(description="Acting user's id")] = None,
) -> OperationContext:
    """Build an :class:`OperationContext` from the current request."""
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))
    return OperationContext(
        conn=conn,
        request_id=request_id,
        caller="api",
        user=x_user_id.strip() if x_user_id and x_user_id.strip() else None,
        metadata={"update_retry_attempts": settings.update_retry_attempts},
    )


# ── Convenience type aliases ─────────────────────────────────────────────

Settings = Annotated[GuideAPISettings, Depends(get_settings)]
Conn = Annotated[Any, Depends(get_connection)]
OpContext = Annotated[OperationContext, Depends(get_operation_context)]
