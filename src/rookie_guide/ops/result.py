"""
Operation result envelope.

Operations never raise. Each returns an :class:`OperationResult` that is
either a success carrying ``data`` or a failure carrying an
:class:`OperationError` whose ``code`` the API maps to an HTTP status and
the CLI prints before exiting non-zero.

    OperationResult.ok(detail, elapsed_ms=timer.elapsed_ms)
    OperationResult.from_error(NotFoundError("Checklist 'c-1' not found"))
    OperationResult.internal("fork template", exc)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from rookie_guide.core.errors import ErrorCategory, GuideError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class OperationError:
    """Why an operation failed.

    Attributes:
        code: ``NOT_FOUND``, ``FORBIDDEN``, ``UNAUTHORIZED``,
            ``VALIDATION_FAILED``, ``CONFLICT``, ``UNAVAILABLE`` or ``INTERNAL``.
        message: Text shown to the caller.
        category: Category of the originating :class:`GuideError`, if any.
        details: Ids and the offending ``field`` for validation failures.
        retryable: Repeating the call may succeed.
    """

    code: str
    message: str
    category: ErrorCategory | None = None
    details: dict[str, Any] = field(default_factory=dict)
    retryable: bool = False


@dataclass
class OperationResult(Generic[T]):
    """Success/failure envelope returned by every operation function."""

    success: bool
    data: T | None = None
    error: OperationError | None = None
    warnings: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0

    @classmethod
    def ok(
        cls,
        data: T,
        *,
        warnings: list[str] | None = None,
        elapsed_ms: float = 0.0,
    ) -> OperationResult[T]:
        return cls(True, data=data, warnings=list(warnings or ()), elapsed_ms=elapsed_ms)

    @classmethod
    def fail(
        cls,
        code: str,
        message: str,
        *,
        category: ErrorCategory | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
        elapsed_ms: float = 0.0,
    ) -> OperationResult[T]:
        error = OperationError(code, message, category, dict(details or {}), retryable)
        return cls(False, error=error, elapsed_ms=elapsed_ms)

    @classmethod
    def from_error(cls, exc: GuideError, *, elapsed_ms: float = 0.0) -> OperationResult[T]:
        """Failure built from a domain exception; keeps its code and context."""
        details = exc.context.to_dict()
        if getattr(exc, "field", None):
            details["field"] = exc.field
        return cls.fail(
            exc.code,
            exc.message,
            category=exc.category,
            details=details,
            retryable=exc.retryable,
            elapsed_ms=elapsed_ms,
        )

    @classmethod
    def internal(cls, action: str, exc: Exception, *, elapsed_ms: float = 0.0) -> OperationResult[T]:
        """``INTERNAL`` failure for an exception outside the error hierarchy."""
        return cls.fail(
            "INTERNAL",
            f"Failed to {action}: {exc}",
            category=ErrorCategory.INTERNAL,
            elapsed_ms=elapsed_ms,
        )


class Stopwatch:
    """Wall-clock timer started on construction."""

    __slots__ = ("_started",)

    def __init__(self) -> None:
        self._started = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._started) * 1000


def start_timer() -> Stopwatch:
    return Stopwatch()
