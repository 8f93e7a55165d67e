"""Retrying step writes that lost a lock race.

Two users toggling steps of the same checklist at once can make SQLite
report ``database is locked``; the repository turns that into
:class:`ConflictError`. The progress engine runs its write through a
:class:`RetryContext` so that a short backoff and another attempt
usually succeed. Other errors are raised on the first failure.

    >>> ctx = RetryContext(ExponentialBackoff(max_retries=3, base_delay=0.05))
    >>> ctx.run(repo.update_step_progress, "c-1", 0, True, now)
"""

from __future__ import annotations

import random
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from rookie_guide.core.errors import ConflictError

T = TypeVar("T")


class RetryStrategy(ABC):
    """Decides whether a failed attempt is repeated and after what pause."""

    @abstractmethod
    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        """*attempt* is the 1-based number of the attempt that just failed."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Seconds to wait before retry number *attempt*, counted from 0."""


@dataclass
class ExponentialBackoff(RetryStrategy):
    """``base_delay * multiplier**n`` capped at ``max_delay``.

    With ``jitter`` on, the delay moves randomly by up to
    ``jitter_range`` of itself, so writers that collided once do not
    collide again on the next attempt. Only ``retryable_errors`` are
    retried, and at most ``max_retries`` times.
    """

    max_retries: int = 3
    base_delay: float = 0.05
    max_delay: float = 1.0
    multiplier: float = 2.0
    jitter: bool = True
    jitter_range: float = 0.25
    retryable_errors: tuple[type[Exception], ...] = (ConflictError,)

    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        within_budget = attempt <= self.max_retries
        return within_budget and (error is None or isinstance(error, self.retryable_errors))

    def next_delay(self, attempt: int) -> float:
        delay = min(self.base_delay * self.multiplier**attempt, self.max_delay)
        if not self.jitter:
            return delay
        spread = delay * self.jitter_range
        return max(0.0, delay + random.uniform(-spread, spread))


class NoRetry(RetryStrategy):
    """Every failure is final."""

    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        return False

    def next_delay(self, attempt: int) -> float:
        return 0.0


@dataclass
class RetryContext:
    """One retried call and the failures it went through.

    ``on_retry(attempt, error, delay)`` is called before each pause;
    ``sleep`` is swapped out by tests.
    """

    strategy: RetryStrategy
    on_retry: Callable[[int, Exception, float], None] | None = None
    sleep: Callable[[float], None] = time.sleep
    attempts: int = field(default=0, init=False)
    errors: list[tuple[int, Exception]] = field(default_factory=list, init=False)

    @property
    def last_error(self) -> Exception | None:
        return self.errors[-1][1] if self.errors else None

    def run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Return ``func(*args, **kwargs)``, retrying while the strategy allows.

        The error of the final attempt is re-raised unchanged.
        """
        while True:
            self.attempts += 1
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                self.errors.append((self.attempts, exc))
                if not self.strategy.should_retry(self.attempts, exc):
                    raise
                delay = self.strategy.next_delay(self.attempts - 1)
                if self.on_retry is not None:
                    self.on_retry(self.attempts, exc, delay)
                self.sleep(delay)


__all__ = ["RetryStrategy", "ExponentialBackoff", "NoRetry", "RetryContext"]
