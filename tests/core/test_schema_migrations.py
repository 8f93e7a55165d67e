"""Tests for MigrationRunner and create_connection."""

from __future__ import annotations

import pytest

from rookie_guide.core.connection import create_connection
from rookie_guide.core.errors import ConfigError, StorageUnavailableError
from rookie_guide.core.migrations import MigrationRunner
from rookie_guide.core.sqlite_conn import SqliteConnection

EXPECTED = ["001_templates.sql", "002_user_checklists.sql"]


def _tables(conn) -> set[str]:
    conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    return {row[0] for row in conn.fetchall()}


class TestMigrationRunner:
    def test_applies_bundled_migrations_in_order(self):
        conn = SqliteConnection(":memory:")
        runner = MigrationRunner(conn)

        result = runner.apply_pending()

        assert result.success
        assert result.applied == EXPECTED
        assert {"templates", "user_checklists", "user_checklist_steps"} <= _tables(conn)
        assert runner.get_pending() == []

    def test_second_run_skips_everything(self):
        conn = SqliteConnection(":memory:")
        MigrationRunner(conn).apply_pending()

        result = MigrationRunner(conn).apply_pending()

        assert result.applied == []
        assert result.skipped == EXPECTED
        assert [r.filename for r in MigrationRunner(conn).get_applied()] == EXPECTED

    def test_stops_at_first_failure(self, tmp_path):
        (tmp_path / "001_ok.sql").write_text("CREATE TABLE a (id INTEGER);")
        (tmp_path / "002_broken.sql").write_text("CREATE TABLE oops (;")
        (tmp_path / "003_later.sql").write_text("CREATE TABLE c (id INTEGER);")
        runner = MigrationRunner(SqliteConnection(":memory:"), schema_dir=tmp_path)

        result = runner.apply_pending()

        assert not result.success
        assert result.applied == ["001_ok.sql"]
        assert list(result.errors) == ["002_broken.sql"]
        assert runner.get_pending() == ["002_broken.sql", "003_later.sql"]

    def test_missing_schema_dir(self, tmp_path):
        runner = MigrationRunner(SqliteConnection(":memory:"), schema_dir=tmp_path / "absent")

        assert runner.apply_pending().applied == []


class TestCreateConnection:
    @pytest.mark.parametrize("url", [None, "", "memory", ":memory:", "sqlite:///:memory:"])
    def test_memory_forms(self, url):
        conn, info = create_connection(url)

        assert info.persistent is False
        conn.close()

    def test_sqlite_url_creates_parent_dirs(self, tmp_path):
        path = tmp_path / "nested" / "guide.db"

        conn, info = create_connection(f"sqlite:///{path}", init_schema=True)

        assert info.persistent is True
        assert info.resolved_path == str(path.resolve())
        assert path.exists()
        assert "templates" in _tables(conn)
        conn.close()

    def test_relative_path_uses_data_dir(self, tmp_path):
        conn, info = create_connection("guide.db", data_dir=str(tmp_path))

        assert info.resolved_path == str((tmp_path / "guide.db").resolve())
        conn.close()

    def test_schema_persists_between_connections(self, tmp_path):
        path = str(tmp_path / "guide.db")
        first, _ = create_connection(path, init_schema=True)
        first.close()

        second, _ = create_connection(path)

        assert MigrationRunner(second).get_pending() == []
        second.close()

    @pytest.mark.parametrize("url", ["postgresql://localhost/guide", "mysql://db/guide"])
    def test_unsupported_scheme(self, url):
        with pytest.raises(ConfigError):
            create_connection(url)

    def test_failed_migration_raises(self, tmp_path, monkeypatch):
        import rookie_guide.core.migrations.runner as runner_module

        (tmp_path / "001_broken.sql").write_text("NOT SQL AT ALL;")
        monkeypatch.setattr(runner_module, "_SCHEMA_DIR", tmp_path)

        with pytest.raises(StorageUnavailableError, match="001_broken.sql"):
            create_connection(":memory:", init_schema=True)
