"""Tests for rookie_guide.ops.database."""

from __future__ import annotations

from rookie_guide.core.sqlite_conn import SqliteConnection
from rookie_guide.ops.context import OperationContext
from rookie_guide.ops.database import initialize_database, migration_status


def _fresh_ctx(**kwargs) -> OperationContext:
    return OperationContext(conn=SqliteConnection(":memory:"), caller="test", **kwargs)


def test_initialize_applies_then_skips():
    ctx = _fresh_ctx()

    first = initialize_database(ctx)
    second = initialize_database(ctx)

    assert first.success
    assert first.data.applied == ["001_templates.sql", "002_user_checklists.sql"]
    assert second.data.applied == []
    assert second.data.skipped == first.data.applied


def test_initialize_dry_run_lists_pending():
    ctx = _fresh_ctx(dry_run=True)

    result = initialize_database(ctx)

    assert result.data.dry_run is True
    assert result.data.applied == ["001_templates.sql", "002_user_checklists.sql"]
    assert migration_status(ctx).data.applied == []


def test_status_after_init():
    ctx = _fresh_ctx()
    initialize_database(ctx)

    status = migration_status(ctx).data

    assert status.pending == []
    assert status.applied == ["001_templates.sql", "002_user_checklists.sql"]


def test_failed_migration_is_unavailable(tmp_path, monkeypatch):
    import rookie_guide.core.migrations.runner as runner_module

    (tmp_path / "001_broken.sql").write_text("CREATE TABLE (;")
    monkeypatch.setattr(runner_module, "_SCHEMA_DIR", tmp_path)

    result = initialize_database(_fresh_ctx())

    assert result.error.code == "UNAVAILABLE"
    assert result.error.details["failed"] == "001_broken.sql"
