"""
Test support utilities that don't fit as pytest fixtures.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

EPOCH = datetime(2026, 1, 1, 9, 0, tzinfo=UTC)


class FakeClock:
    """Returns ``EPOCH``, ``EPOCH + 1s``, ``EPOCH + 2s``, ... on each call."""

    def __init__(self, start: datetime = EPOCH) -> None:
        self.start = start
        self.calls = 0
        self.last: datetime | None = None

    def __call__(self) -> datetime:
        self.last = self.start + timedelta(seconds=self.calls)
        self.calls += 1
        return self.last
