"""
Structured error types for Rookie Guide.

Every failure the checklist core can produce is a :class:`GuideError`
subclass carrying a category, a stable ops-layer ``code``, an explicit
retry flag, structured context and an optional chained cause.

Architecture:
    ::

        ┌───────────────────────────────────────────────────────────┐
        │                        GuideError                          │
        │        (category, code, retryable, context, cause)         │
        ├───────────────────────────────────────────────────────────┤
        │  NotFoundError          NOT_FOUND          not retryable   │
        │  ForbiddenError         FORBIDDEN          not retryable   │
        │  UnauthenticatedError   UNAUTHORIZED       not retryable   │
        │  InvalidArgumentError   VALIDATION_FAILED  not retryable   │
        │  ConflictError          CONFLICT           retryable       │
        │  StorageUnavailableError UNAVAILABLE       retryable       │
        └───────────────────────────────────────────────────────────┘

Examples:
    >>> error = ConflictError("database is locked", retry_after=1)
    >>> error.retryable
    True
    >>> error.with_context(checklist_id="c-1", step_index=2).context.to_dict()
    {'checklist_id': 'c-1', 'step_index': 2}

Guardrails:
    ❌ DON'T: raise bare ``Exception`` from repositories or the engine
    ✅ DO: translate driver errors at the repository boundary, pass ``cause=``
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for routing and log filtering."""

    NOT_FOUND = "NOT_FOUND"
    AUTH = "AUTH"
    VALIDATION = "VALIDATION"
    CONFLICT = "CONFLICT"
    STORAGE = "STORAGE"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        user_id: Caller identity the operation ran as.
        checklist_id: Checklist being read or mutated.
        template_id: Template being read or forked.
        step_index: Step index of an update.
        metadata: Additional key-value pairs.
    """

    user_id: str | None = None
    checklist_id: str | None = None
    template_id: str | None = None
    step_index: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["user_id", "checklist_id", "template_id", "step_index"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class GuideError(Exception):
    """Base exception for all Rookie Guide errors.

    Subclasses set ``default_category``, ``default_retryable`` and ``code``.
    ``code`` is the machine-readable value surfaced by the ops layer and
    mapped to an HTTP status by the API.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False
    code: str = "INTERNAL"

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        retry_after: int | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = self.default_retryable if retryable is None else retryable
        self.retry_after = retry_after
        self.context = context or ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> GuideError:
        """Add context fields; unknown keys go into ``metadata``. Returns self."""
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialise for structured logging."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        context = self.context.to_dict()
        if context:
            result["context"] = context
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, code={self.code!r})"


class NotFoundError(GuideError):
    """A referenced template or checklist does not exist."""

    default_category = ErrorCategory.NOT_FOUND
    code = "NOT_FOUND"


class ForbiddenError(GuideError):
    """The caller does not own the target resource."""

    default_category = ErrorCategory.AUTH
    code = "FORBIDDEN"


class UnauthenticatedError(GuideError):
    """No caller identity was supplied for an operation that needs one."""

    default_category = ErrorCategory.AUTH
    code = "UNAUTHORIZED"


class InvalidArgumentError(GuideError):
    """Malformed input: step index out of range, bad template payload, ..."""

    default_category = ErrorCategory.VALIDATION
    code = "VALIDATION_FAILED"

    def __init__(self, message: str, *, field: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        return result


class ConflictError(GuideError):
    """Concurrent write conflict; the caller (or engine) should retry."""

    default_category = ErrorCategory.CONFLICT
    default_retryable = True
    code = "CONFLICT"


class ConfigError(GuideError):
    """Missing or unsupported configuration (for example a database URL)."""

    default_category = ErrorCategory.CONFIG
    code = "CONFIG_INVALID"


class StorageUnavailableError(GuideError):
    """The persistence collaborator failed. Propagated, never masked."""

    default_category = ErrorCategory.STORAGE
    default_retryable = True
    code = "UNAVAILABLE"


def is_retryable(error: BaseException) -> bool:
    """Return True if *error* is a :class:`GuideError` marked retryable."""
    return isinstance(error, GuideError) and error.retryable


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "GuideError",
    "NotFoundError",
    "ForbiddenError",
    "UnauthenticatedError",
    "InvalidArgumentError",
    "ConflictError",
    "StorageUnavailableError",
    "ConfigError",
    "is_retryable",
]
