"""
Shared API router utilities.

- ``_dc()``: convert a dataclass or dict to a plain dict
- ``_ok()``: wrap a successful ``OperationResult`` in the success envelope
- ``_handle_error()``: convert a failed ``OperationResult`` to a ``problem_response``
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import Request

from rookie_guide.api.middleware.errors import problem_response, status_for_error_code


def _dc(obj: Any) -> dict[str, Any]:
    """Convert a dataclass (or dict) to a plain dict.

    Returns an empty dict for objects that are neither dataclasses nor dicts.
    """
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    return obj if isinstance(obj, dict) else {}


def _ok(result) -> dict[str, Any]:
    """Build the ``{"data", "elapsed_ms"}`` body for a successful result."""
    data = result.data
    payload = [_dc(item) for item in data] if isinstance(data, list) else _dc(data)
    body: dict[str, Any] = {"data": payload, "elapsed_ms": round(result.elapsed_ms, 2)}
    if result.warnings:
        body["warnings"] = result.warnings
    return body


def _handle_error(result, request: Request | None = None):
    """Convert a failed ``OperationResult`` into a Problem Details response.

    The error code picks the HTTP status; the message becomes the title.
    A field-specific validation error is reported in ``errors``.
    """
    error = result.error
    code = error.code if error else "INTERNAL"
    errors = None
    if error and error.details.get("field"):
        errors = [{"code": code, "message": error.message, "field": error.details["field"]}]
    return problem_response(
        status=status_for_error_code(code),
        title=error.message if error else "Operation failed",
        detail=code,
        instance=str(request.url.path) if request is not None else "",
        errors=errors,
    )
