"""Tests for TemplateRepository, ChecklistRepository and BaseRepository."""

from __future__ import annotations

import inspect
import sqlite3
from datetime import timedelta

import pytest

from rookie_guide.core.errors import ConflictError, NotFoundError, StorageUnavailableError
from rookie_guide.core.models import StepProgress, TemplateStep, UserChecklist
from rookie_guide.core.protocols import PersistenceGateway, TemplateStore
from rookie_guide.core.repositories import ChecklistRepository
from rookie_guide.core.repository import BaseRepository, translate_storage_error

from tests._support import EPOCH


def _checklist(template_id: str, *, id: str = "c-1", user_id: str = "alice", created_at=EPOCH):
    steps = (
        TemplateStep(title="Get a SIM card", description="China Mobile or Unicom", order=0),
        TemplateStep(title="Open a bank account", order=1),
    )
    return UserChecklist(
        id=id,
        user_id=user_id,
        source_template_id=template_id,
        title="Moving to Beijing",
        steps=steps,
        progress=tuple(StepProgress(step_index=i) for i in range(len(steps))),
        created_at=created_at,
        updated_at=created_at,
    )


def test_repositories_satisfy_protocols(template_repo, checklist_repo):
    assert isinstance(template_repo, TemplateStore)
    assert isinstance(checklist_repo, PersistenceGateway)


# ── Templates ─────────────────────────────────────────────────────────


class TestTemplateRepository:
    def test_create_and_get(self, make_template, template_repo):
        template = make_template("一", "二")

        stored = template_repo.get_by_id(template.id)

        assert stored == template
        assert stored.created_at.tzinfo is not None

    def test_get_missing(self, template_repo):
        assert template_repo.get_by_id("nope") is None

    def test_list_newest_first(self, make_template, template_repo):
        old = make_template("a", created_at=EPOCH)
        new = make_template("a", created_at=EPOCH + timedelta(days=1))

        assert [t.id for t in template_repo.list_templates()] == [new.id, old.id]

    def test_list_by_location(self, make_template, template_repo):
        make_template("a", location_tag="CN-SH")
        beijing = make_template("a", location_tag="CN-BJ")

        listed = template_repo.list_templates(location_tag="CN-BJ")

        assert [t.id for t in listed] == [beijing.id]

    def test_update_fields_and_steps(self, make_template, template_repo):
        template = make_template("a", "b")

        changed = template_repo.update(template.id, {
            "title": "Settling in Shanghai",
            "steps": (TemplateStep(title="only", order=0),),
            "updated_at": EPOCH + timedelta(hours=1),
        })

        stored = template_repo.get_by_id(template.id)
        assert changed is True
        assert stored.title == "Settling in Shanghai"
        assert stored.steps == (TemplateStep(title="only", order=0),)
        assert stored.updated_at == EPOCH + timedelta(hours=1)
        assert stored.created_at == template.created_at

    def test_update_missing_returns_false(self, template_repo):
        assert template_repo.update("nope", {"title": "x"}) is False

    def test_update_nothing(self, make_template, template_repo):
        assert template_repo.update(make_template("a").id, {}) is False


# ── Checklists ────────────────────────────────────────────────────────


class TestChecklistRepository:
    def test_insert_and_get_round_trip(self, make_template, checklist_repo):
        checklist = _checklist(make_template("a").id)

        checklist_repo.insert(checklist)

        assert checklist_repo.get_by_id("c-1") == checklist

    def test_get_missing(self, checklist_repo):
        assert checklist_repo.get_by_id("nope") is None

    def test_insert_duplicate_id_is_storage_error(self, make_template, checklist_repo):
        checklist = _checklist(make_template("a").id)
        checklist_repo.insert(checklist)

        with pytest.raises(StorageUnavailableError):
            checklist_repo.insert(checklist)

        assert checklist_repo.get_by_id("c-1") == checklist

    def test_insert_unknown_template_leaves_nothing(self, checklist_repo, conn):
        with pytest.raises(StorageUnavailableError):
            checklist_repo.insert(_checklist("no-such-template"))

        conn.execute("SELECT COUNT(*) FROM user_checklist_steps")
        assert conn.fetchone()[0] == 0
        assert checklist_repo.get_by_id("c-1") is None

    def test_list_by_user_order(self, make_template, checklist_repo):
        template_id = make_template("a").id
        checklist_repo.insert(_checklist(template_id, id="c-old", created_at=EPOCH))
        checklist_repo.insert(
            _checklist(template_id, id="c-new", created_at=EPOCH + timedelta(minutes=1))
        )
        checklist_repo.insert(_checklist(template_id, id="c-bob", user_id="bob"))

        listed = checklist_repo.list_by_user("alice")

        assert [c.id for c in listed] == ["c-new", "c-old"]
        assert all(len(c.steps) == len(c.progress) == 2 for c in listed)

    def test_update_step_progress_complete(self, make_template, checklist_repo):
        checklist_repo.insert(_checklist(make_template("a").id))
        ts = EPOCH + timedelta(minutes=5)

        changed = checklist_repo.update_step_progress("c-1", 1, True, ts)

        stored = checklist_repo.get_by_id("c-1")
        assert changed is True
        assert stored.progress[1] == StepProgress(step_index=1, completed=True, completed_at=ts)
        assert stored.progress[0].completed is False
        assert stored.updated_at == ts

    def test_recomplete_keeps_first_timestamp(self, make_template, checklist_repo):
        checklist_repo.insert(_checklist(make_template("a").id))
        first = EPOCH + timedelta(minutes=5)
        checklist_repo.update_step_progress("c-1", 0, True, first)

        changed = checklist_repo.update_step_progress("c-1", 0, True, first + timedelta(hours=1))

        stored = checklist_repo.get_by_id("c-1")
        assert changed is False
        assert stored.progress[0].completed_at == first
        assert stored.updated_at == first

    def test_uncheck_clears_timestamp(self, make_template, checklist_repo):
        checklist_repo.insert(_checklist(make_template("a").id))
        checklist_repo.update_step_progress("c-1", 0, True, EPOCH)

        changed = checklist_repo.update_step_progress("c-1", 0, False, EPOCH + timedelta(seconds=1))

        assert changed is True
        assert checklist_repo.get_by_id("c-1").progress[0] == StepProgress(step_index=0)

    def test_update_missing_step(self, make_template, checklist_repo):
        checklist_repo.insert(_checklist(make_template("a").id))

        with pytest.raises(NotFoundError) as exc_info:
            checklist_repo.update_step_progress("c-1", 7, True, EPOCH)

        assert exc_info.value.context.step_index == 7

    def test_update_missing_checklist(self, checklist_repo):
        with pytest.raises(NotFoundError):
            checklist_repo.update_step_progress("nope", 0, False, EPOCH)

    def test_delete(self, make_template, checklist_repo, conn):
        checklist_repo.insert(_checklist(make_template("a").id))

        assert checklist_repo.delete("c-1") is True
        assert checklist_repo.get_by_id("c-1") is None
        conn.execute("SELECT COUNT(*) FROM user_checklist_steps WHERE checklist_id = 'c-1'")
        assert conn.fetchone()[0] == 0

    def test_delete_missing(self, checklist_repo):
        assert checklist_repo.delete("nope") is False


# ── Base repository ───────────────────────────────────────────────────


class TestBaseRepository:
    def test_query_returns_dicts(self, conn):
        repo = BaseRepository(conn)

        assert repo.query("SELECT 1 AS one, 'x' AS two") == [{"one": 1, "two": "x"}]
        assert repo.query_one("SELECT 1 AS one WHERE 0") is None

    def test_row_insert_helpers(self, conn):
        repo = BaseRepository(conn)
        repo.execute("CREATE TABLE pairs (k TEXT PRIMARY KEY, v INTEGER)")

        with repo.transaction():
            repo._insert_row("pairs", {"k": "a", "v": 1})
            count = repo._insert_rows("pairs", [{"k": "b", "v": 2}, {"k": "c", "v": 3}])

        assert count == 2
        assert repo._insert_rows("pairs", []) == 0
        assert repo.query("SELECT k, v FROM pairs ORDER BY k") == [
            {"k": "a", "v": 1},
            {"k": "b", "v": 2},
            {"k": "c", "v": 3},
        ]

    def test_checklist_insert_does_not_shadow_row_helper(self):
        assert "insert" not in vars(BaseRepository)
        assert list(inspect.signature(ChecklistRepository.insert).parameters) == ["self", "checklist"]

    def test_transaction_rolls_back_on_error(self, conn, make_template):
        template = make_template("a")
        repo = BaseRepository(conn)

        with pytest.raises(RuntimeError):
            with repo.transaction():
                repo.execute("UPDATE templates SET title = 'changed' WHERE id = ?", (template.id,))
                raise RuntimeError("abort")

        assert repo.query_one("SELECT title FROM templates WHERE id = ?", (template.id,)) == {
            "title": template.title
        }

    def test_transaction_translates_driver_errors(self, conn):
        repo = BaseRepository(conn)

        with pytest.raises(StorageUnavailableError) as exc_info:
            with repo.transaction():
                repo.execute("INSERT INTO no_such_table VALUES (1)")

        assert isinstance(exc_info.value.__cause__, sqlite3.Error)

    def test_storage_errors_wraps_reads(self, conn):
        repo = BaseRepository(conn)

        with pytest.raises(StorageUnavailableError):
            with repo.storage_errors():
                repo.query("SELECT * FROM no_such_table")


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (sqlite3.OperationalError("database is locked"), ConflictError),
        (sqlite3.OperationalError("database table is locked"), ConflictError),
        (sqlite3.OperationalError("no such table: x"), StorageUnavailableError),
        (sqlite3.IntegrityError("UNIQUE constraint failed"), StorageUnavailableError),
        (sqlite3.DatabaseError("file is not a database"), StorageUnavailableError),
    ],
)
def test_translate_storage_error(exc, expected):
    error = translate_storage_error(exc)

    assert type(error) is expected
    assert error.cause is exc
