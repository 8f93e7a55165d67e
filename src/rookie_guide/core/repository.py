"""Repository base class: SQL helpers and the storage error boundary.

Template and checklist repositories subclass :class:`BaseRepository`.
Rows come back as plain dicts, and ``sqlite3`` exceptions never leave a
repository: :func:`translate_storage_error` turns lock contention into
:class:`ConflictError` (retried by the progress engine) and every other
driver failure into :class:`StorageUnavailableError`.

Writes that span several statements go through ``transaction()``::

    with self.transaction():
        self._insert_row("user_checklists", header)
        self._insert_rows("user_checklist_steps", step_rows)
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from rookie_guide.core.errors import ConflictError, GuideError, StorageUnavailableError
from rookie_guide.core.logging import get_logger
from rookie_guide.core.protocols import Connection

logger = get_logger(__name__)

_LOCK_MARKERS = ("database is locked", "database table is locked", "busy")


def translate_storage_error(exc: sqlite3.Error) -> GuideError:
    """Map a driver exception onto the error hierarchy."""
    message = str(exc)
    if isinstance(exc, sqlite3.OperationalError) and any(
        marker in message.lower() for marker in _LOCK_MARKERS
    ):
        return ConflictError(f"Concurrent write conflict: {message}", cause=exc)
    return StorageUnavailableError(f"Storage failure: {message}", cause=exc)


class BaseRepository:
    """Base class for data-access repositories.

    Parameters:
        conn: Any object satisfying the :class:`Connection` protocol.
    """

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    # -- Error handling ----------------------------------------------------

    @contextmanager
    def storage_errors(self) -> Iterator[None]:
        """Re-raise driver errors as :class:`GuideError` subclasses."""
        try:
            yield
        except sqlite3.Error as exc:
            raise translate_storage_error(exc) from exc

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the block as one unit of work.

        Commits when the block finishes, rolls back and re-raises (translated)
        when it fails, so a failed write leaves no partial state behind.
        """
        try:
            yield
            self.conn.commit()
        except sqlite3.Error as exc:
            self._rollback_quietly()
            error = translate_storage_error(exc)
            logger.warning("transaction_rolled_back", **error.to_dict())
            raise error from exc
        except BaseException:
            self._rollback_quietly()
            raise

    def _rollback_quietly(self) -> None:
        try:
            self.conn.rollback()
        except sqlite3.Error as exc:
            logger.error("rollback_failed", error=str(exc))

    # -- Query helpers -----------------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> Any:
        return self.conn.execute(sql, params)

    def query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Rows of a SELECT as dicts keyed by column name."""
        cursor = self.conn.execute(sql, params)
        rows = cursor.fetchall()
        if rows and not hasattr(rows[0], "keys"):
            names = [column[0] for column in cursor.description]
            return [dict(zip(names, row, strict=True)) for row in rows]
        return [dict(row) for row in rows]

    def query_one(self, sql: str, params: tuple = ()) -> dict[str, Any] | None:
        rows = self.query(sql, params)
        return rows[0] if rows else None

    # -- Insert helpers ----------------------------------------------------

    @staticmethod
    def _insert_sql(table: str, columns: list[str]) -> str:
        marks = ", ".join("?" * len(columns))
        return f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({marks})"

    def _insert_row(self, table: str, data: dict[str, Any]) -> Any:
        """Insert one row; the dict keys are the column names."""
        return self.conn.execute(self._insert_sql(table, list(data)), tuple(data.values()))

    def _insert_rows(self, table: str, rows: list[dict[str, Any]]) -> int:
        """Insert rows sharing the first row's columns; returns how many."""
        if not rows:
            return 0
        columns = list(rows[0])
        self.conn.executemany(
            self._insert_sql(table, columns),
            [tuple(row[column] for column in columns) for row in rows],
        )
        return len(rows)


__all__ = [
    "BaseRepository",
    "translate_storage_error",
]
