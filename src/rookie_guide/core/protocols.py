"""
Protocol definitions for Rookie Guide.

The progress engine depends on shapes, not implementations: the SQLite
repositories satisfy these protocols in production, and any object with
the same methods (an in-memory fake in tests) can be injected instead.

Architecture:
    ::

        protocols.py
        ├── Connection          : sync DB-API-like connection
        ├── TemplateStore       : read-only template lookup
        └── PersistenceGateway  : durable checklist storage

    Implementations:
        Connection          → rookie_guide.core.sqlite_conn.SqliteConnection
        TemplateStore       → rookie_guide.core.repositories.TemplateRepository
        PersistenceGateway  → rookie_guide.core.repositories.ChecklistRepository
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from rookie_guide.core.models import Template, UserChecklist


@runtime_checkable
class Connection(Protocol):
    """
    Minimal synchronous connection interface for database operations.

    Examples:
        >>> conn.execute("SELECT * FROM templates WHERE id = ?", ("t-1",))
        >>> row = conn.fetchone()
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute SQL statement with optional parameters."""
        ...

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        """Execute SQL statement for multiple parameter sets."""
        ...

    def fetchone(self) -> Any:
        """Fetch one row from last query."""
        ...

    def fetchall(self) -> list:
        """Fetch all rows from last query."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction."""
        ...


@runtime_checkable
class TemplateStore(Protocol):
    """Read-only provider of template definitions."""

    def get_by_id(self, template_id: str) -> Template | None:
        """Return the template, or ``None`` if it does not exist.

        Steps must come back in a stable order.
        """
        ...


@runtime_checkable
class PersistenceGateway(Protocol):
    """Durable storage for checklists.

    Every method is atomic: it either applies fully or leaves the prior
    persisted state intact. Lock contention is raised as
    :class:`~rookie_guide.core.errors.ConflictError`, other storage failures
    as :class:`~rookie_guide.core.errors.StorageUnavailableError`.
    """

    def insert(self, checklist: UserChecklist) -> None:
        """Persist a freshly forked checklist (header, steps and progress)."""
        ...

    def get_by_id(self, checklist_id: str) -> UserChecklist | None:
        """Load a checklist, or ``None`` if it does not exist."""
        ...

    def update_step_progress(
        self,
        checklist_id: str,
        step_index: int,
        completed: bool,
        timestamp: datetime,
    ) -> bool:
        """Write the completion flag of one step.

        Only the ``(checklist_id, step_index)`` entry is touched, so
        concurrent writes to other indices are never lost. Completing an
        already-completed step keeps its original ``completed_at``.

        Returns ``True`` if the flag changed, ``False`` for a no-op.
        """
        ...

    def list_by_user(self, user_id: str) -> list[UserChecklist]:
        """All checklists owned by *user_id*, ``created_at`` descending."""
        ...

    def delete(self, checklist_id: str) -> bool:
        """Remove a checklist and its steps. Returns ``True`` if it existed."""
        ...


__all__ = [
    "Connection",
    "TemplateStore",
    "PersistenceGateway",
]
