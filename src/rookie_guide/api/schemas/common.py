"""
Common API schemas: success envelope and RFC 7807 errors.

Every endpoint returns either :class:`SuccessResponse` (200/201) or
:class:`ProblemDetail` (4xx/5xx); ``DELETE`` returns 204 with no body.

Response Envelope Conventions:
    - All 2xx bodies use ``SuccessResponse[T]``
    - All 4xx/5xx bodies use ``ProblemDetail`` (RFC 7807)
    - ``elapsed_ms`` tracks server-side processing time
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


# ── RFC 7807 Problem Detail ─────────────────────────────────────────────


class ErrorDetail(BaseModel):
    """Field-level error detail."""

    code: str = Field(description="Machine-readable error code (e.g. 'VALIDATION_FAILED')")
    message: str = Field(description="Human-readable error description")
    field: str | None = Field(default=None, description="Field path if error is field-specific")


class ProblemDetail(BaseModel):
    """RFC 7807 «Problem Details for HTTP APIs».

    Error Codes:
        - ``NOT_FOUND`` (404): template or checklist does not exist
        - ``FORBIDDEN`` (403): the checklist or template belongs to someone else
        - ``UNAUTHORIZED`` (401): no ``X-User-ID`` (or API key) supplied
        - ``VALIDATION_FAILED`` (400): invalid input data
        - ``CONFLICT`` (409): write conflict persisted after retries
        - ``UNAVAILABLE`` (503): storage failure, retry later
        - ``INTERNAL`` (500): unexpected server error

    Example:
        {
            "type": "about:blank",
            "title": "Checklist 'abc-123' not found",
            "status": 404,
            "detail": "NOT_FOUND",
            "instance": "/api/checklists/abc-123",
            "errors": []
        }
    """

    type: str = Field(default="about:blank", description="Error type URI (usually 'about:blank')")
    title: str = Field(description="Short human-readable error summary")
    status: int = Field(description="HTTP status code (e.g., 400, 404, 500)")
    detail: str = Field(default="", description="Error code or explanation")
    instance: str = Field(default="", description="URI of the failing request")
    errors: list[ErrorDetail] = Field(
        default_factory=list,
        description="List of field-level error details",
    )


# ── Success Envelope ─────────────────────────────────────────────────────


class SuccessResponse(BaseModel, Generic[T]):
    """Standard success envelope."""

    data: T = Field(description="Response payload (type varies by endpoint)")
    elapsed_ms: float = Field(default=0.0, description="Server-side processing time in milliseconds")
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-fatal warnings",
    )
