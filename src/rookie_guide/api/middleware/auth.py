"""
API-key authentication middleware.

When ``GUIDE_API_KEY`` is set, every request must include a matching
``X-API-Key`` header (or ``?api_key=`` query param). Requests without it
receive a 401 problem response.

Bypass paths (no key required):
  - ``/health/*``
  - ``/docs``, ``/redoc``, ``/openapi.json``

This gate is separate from caller identity: ``X-User-ID`` says *who* is
acting, the API key says the client may talk to the service at all.
"""

from __future__ import annotations

import re

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

# Paths that never require the key
_BYPASS_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"^/health"),
    re.compile(r"/docs$"),
    re.compile(r"/redoc$"),
    re.compile(r"/openapi\.json$"),
]


def _is_bypass(path: str) -> bool:
    """Return True if *path* should skip the key check."""
    return any(p.search(path) for p in _BYPASS_PATTERNS)


class AuthMiddleware(BaseHTTPMiddleware):
    """Reject requests that lack a valid API key.

    If ``api_key`` is ``None`` (the default), the gate is disabled and all
    requests pass through.
    """

    def __init__(self, app: object, api_key: str | None = None) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._api_key = api_key

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self._api_key is None or _is_bypass(request.url.path):
            return await call_next(request)

        provided = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if provided != self._api_key:
            return JSONResponse(
                status_code=401,
                media_type="application/problem+json",
                content={
                    "type": "about:blank",
                    "title": "Unauthorized",
                    "status": 401,
                    "detail": "Missing or invalid API key. Provide X-API-Key header.",
                    "instance": request.url.path,
                    "errors": [],
                },
            )

        return await call_next(request)
