"""Opening the guide database.

``create_connection`` accepts:

- ``None``, ``""``, ``"memory"`` or ``":memory:"``: a private in-memory
  database, gone when the connection closes;
- ``sqlite:///path/to/guide.db``: a file, parent directories created;
- a bare path such as ``./data/guide.db``, resolved against ``data_dir``
  when relative.

Any other ``scheme://`` raises :class:`~rookie_guide.core.errors.ConfigError`.
With ``init_schema=True`` pending migrations are applied first::

    conn, info = create_connection("sqlite:///guide.db", init_schema=True)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rookie_guide.core.errors import ConfigError, StorageUnavailableError
from rookie_guide.core.logging import get_logger
from rookie_guide.core.sqlite_conn import SqliteConnection

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConnectionInfo:
    """Where a connection points; ``resolved_path`` is set for files only."""

    backend: str
    persistent: bool
    url: str
    resolved_path: str | None = None


def _parse_url(db: str | None) -> tuple[str, str]:
    """Split *db* into ``(scheme, target)``; bare paths are ``sqlite``."""
    if db is None or db in ("", "memory", ":memory:"):
        return "memory", ":memory:"

    for prefix in ("sqlite:///", "sqlite://"):
        if db.startswith(prefix):
            path = db[len(prefix):]
            if not path or path == ":memory:":
                return "memory", ":memory:"
            return "sqlite", path

    if "://" in db:
        return db.split("://", 1)[0], db

    return "sqlite", db


def create_connection(
    db: str | None = None,
    *,
    init_schema: bool = False,
    data_dir: str | None = None,
) -> tuple[SqliteConnection, ConnectionInfo]:
    """Open *db* and describe it.

    Raises:
        ConfigError: *db* names a backend other than SQLite.
        StorageUnavailableError: ``init_schema`` is set and a migration failed.
    """
    scheme, target = _parse_url(db)

    if scheme == "memory":
        conn = SqliteConnection(":memory:")
        info = ConnectionInfo(backend="sqlite", persistent=False, url=":memory:")
    elif scheme == "sqlite":
        path = Path(target).expanduser()
        if data_dir and not path.is_absolute():
            path = Path(data_dir).expanduser() / path
        path.parent.mkdir(parents=True, exist_ok=True)
        resolved = str(path.resolve())
        conn = SqliteConnection(resolved)
        info = ConnectionInfo(
            backend="sqlite",
            persistent=True,
            url=db or "",
            resolved_path=resolved,
        )
    else:
        raise ConfigError(f"Unsupported database URL scheme {scheme!r}; use sqlite:///<path>")

    if init_schema:
        _init_schema(conn)

    return conn, info


def _init_schema(conn: SqliteConnection) -> list[str]:
    """Apply pending migrations, failing fast on the first error."""
    from rookie_guide.core.migrations import MigrationRunner

    result = MigrationRunner(conn).apply_pending()
    if not result.success:
        failed, message = next(iter(result.errors.items()))
        raise StorageUnavailableError(f"Migration {failed} failed: {message}")
    if result.applied:
        logger.info("schema_initialized", applied=result.applied)
    return result.applied


__all__ = [
    "ConnectionInfo",
    "create_connection",
]
