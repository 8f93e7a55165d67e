"""
Database operations.

Thin wrappers around :class:`~rookie_guide.core.migrations.MigrationRunner`
for schema creation and migration status.
"""

from __future__ import annotations

from rookie_guide.core.logging import get_logger
from rookie_guide.core.migrations import MigrationRunner
from rookie_guide.ops.context import OperationContext
from rookie_guide.ops.responses import DatabaseInitResult, MigrationStatus
from rookie_guide.ops.result import OperationResult, start_timer

logger = get_logger(__name__)


def initialize_database(ctx: OperationContext) -> OperationResult[DatabaseInitResult]:
    """Apply pending schema migrations (idempotent)."""
    timer = start_timer()

    try:
        runner = MigrationRunner(ctx.conn)
        if ctx.dry_run:
            return OperationResult.ok(
                DatabaseInitResult(applied=runner.get_pending(), dry_run=True),
                elapsed_ms=timer.elapsed_ms,
            )

        result = runner.apply_pending()
        if not result.success:
            failed, message = next(iter(result.errors.items()))
            return OperationResult.fail(
                "UNAVAILABLE",
                f"Migration {failed} failed: {message}",
                details={"applied": result.applied, "failed": failed},
                elapsed_ms=timer.elapsed_ms,
            )
        return OperationResult.ok(
            DatabaseInitResult(applied=result.applied, skipped=result.skipped),
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.internal("initialize database", exc, elapsed_ms=timer.elapsed_ms)


def migration_status(ctx: OperationContext) -> OperationResult[MigrationStatus]:
    """Report applied and pending migrations."""
    timer = start_timer()

    try:
        runner = MigrationRunner(ctx.conn)
        return OperationResult.ok(
            MigrationStatus(
                applied=[r.filename for r in runner.get_applied()],
                pending=runner.get_pending(),
            ),
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.internal("read migration status", exc, elapsed_ms=timer.elapsed_ms)
