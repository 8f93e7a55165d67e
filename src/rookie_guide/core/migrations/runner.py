"""Schema migrations.

The schema lives in ``rookie_guide/core/schema`` as numbered ``.sql``
scripts (``001_templates.sql``, ``002_user_checklists.sql``, ...). Each
script runs once per database; the ``_migrations`` bookkeeping table
remembers which ones have. Scripts run in filename order and a failing
script stops the run, leaving it and everything after it pending.

The API lifespan refuses to start when a run fails; ``rookie-guide db
init`` reports the failure and exits non-zero.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from rookie_guide.core.logging import get_logger
from rookie_guide.core.sqlite_conn import SqliteConnection

logger = get_logger(__name__)

_SCHEMA_DIR = Path(__file__).resolve().parent.parent / "schema"

_BOOKKEEPING_DDL = """
CREATE TABLE IF NOT EXISTS _migrations (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    filename    TEXT NOT NULL UNIQUE,
    applied_at  TEXT NOT NULL DEFAULT (datetime('now'))
)
"""


@dataclass(frozen=True)
class MigrationRecord:
    """A row of ``_migrations``."""

    id: int
    filename: str
    applied_at: str


@dataclass
class MigrationResult:
    """Outcome of :meth:`MigrationRunner.apply_pending`.

    ``errors`` maps the failing script to the driver's message; it holds
    at most one entry because the run stops there.
    """

    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors


class MigrationRunner:
    """Brings a database up to the bundled schema.

    Args:
        conn: Target database. The bookkeeping table is created on
            construction.
        schema_dir: Alternative script directory (tests point this at a
            temp dir). A missing directory means nothing to apply.
    """

    def __init__(self, conn: SqliteConnection, schema_dir: Path | str | None = None) -> None:
        self._conn = conn
        self._schema_dir = Path(schema_dir) if schema_dir else _SCHEMA_DIR
        self._conn.execute(_BOOKKEEPING_DDL)
        self._conn.commit()

    def scripts(self) -> list[Path]:
        """All ``.sql`` scripts in run order."""
        if not self._schema_dir.is_dir():
            return []
        return sorted(self._schema_dir.glob("*.sql"), key=lambda p: p.name)

    def get_applied(self) -> list[MigrationRecord]:
        rows = self._conn.execute(
            "SELECT id, filename, applied_at FROM _migrations ORDER BY id"
        ).fetchall()
        return [MigrationRecord(*tuple(row)) for row in rows]

    def get_pending(self) -> list[str]:
        done = self._applied_names()
        return [script.name for script in self.scripts() if script.name not in done]

    def apply_pending(self) -> MigrationResult:
        """Run every script not yet recorded, stopping at the first failure."""
        result = MigrationResult()
        done = self._applied_names()

        for script in self.scripts():
            if script.name in done:
                result.skipped.append(script.name)
                continue
            try:
                # executescript commits whatever is open before running
                self._conn.executescript(script.read_text(encoding="utf-8"))
                self._conn.execute("INSERT INTO _migrations (filename) VALUES (?)", (script.name,))
                self._conn.commit()
            except Exception as exc:
                logger.error("migration_failed", migration=script.name, error=str(exc))
                result.errors[script.name] = str(exc)
                return result
            logger.info("migration_applied", migration=script.name)
            result.applied.append(script.name)

        return result

    def _applied_names(self) -> set[str]:
        return {record.filename for record in self.get_applied()}
