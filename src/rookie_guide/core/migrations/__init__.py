"""Schema migrations applied at startup and by ``rookie-guide db init``."""

from rookie_guide.core.migrations.runner import (
    MigrationRecord,
    MigrationResult,
    MigrationRunner,
)

__all__ = ["MigrationRecord", "MigrationResult", "MigrationRunner"]
