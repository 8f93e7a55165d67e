"""
Problem responses.

Every failed request is answered with an RFC 7807 body: ``title`` holds
the human-readable message, ``detail`` the machine error code and
``errors`` one entry per offending field.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from rookie_guide.api.schemas.common import ErrorDetail, ProblemDetail
from rookie_guide.core.logging import get_logger

logger = get_logger(__name__)

ERROR_CODE_TO_STATUS: dict[str, int] = {
    "NOT_FOUND": 404,
    "FORBIDDEN": 403,
    "UNAUTHORIZED": 401,
    "VALIDATION_FAILED": 400,
    "CONFLICT": 409,
    "UNAVAILABLE": 503,
    "CONFIG_INVALID": 500,
    "INTERNAL": 500,
}


def status_for_error_code(code: str) -> int:
    """HTTP status for an operation error code; unknown codes are 500."""
    return ERROR_CODE_TO_STATUS.get(code, 500)


def problem_response(
    *,
    status: int,
    title: str,
    detail: str = "",
    instance: str = "",
    errors: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    body = ProblemDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance,
        errors=[ErrorDetail(**entry) for entry in errors or ()],
    )
    return JSONResponse(
        status_code=status,
        content=body.model_dump(),
        media_type="application/problem+json",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """500 for anything that escaped a router; the message is shown only in debug mode."""
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
    return problem_response(
        status=500,
        title="Internal Server Error",
        detail=str(exc) if request.app.state.settings.debug else "An unexpected error occurred.",
        instance=str(request.url),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies and params as 400 ``VALIDATION_FAILED``."""
    errors = [
        {
            "code": "VALIDATION_FAILED",
            "message": err.get("msg", "Invalid value"),
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body") or None,
        }
        for err in exc.errors()
    ]
    return problem_response(
        status=400,
        title="Request validation failed",
        detail="VALIDATION_FAILED",
        instance=request.url.path,
        errors=errors,
    )
