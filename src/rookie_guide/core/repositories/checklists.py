"""Checklist repository. Satisfies :class:`PersistenceGateway`.

A checklist is stored as one ``user_checklists`` header row plus one
``user_checklist_steps`` row per step. Progress writes touch only the
affected step row, so two requests toggling different steps of the same
checklist never overwrite each other.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from rookie_guide.core.errors import NotFoundError
from rookie_guide.core.models import StepProgress, TemplateStep, UserChecklist
from rookie_guide.core.repository import BaseRepository

from ._helpers import from_db_timestamp, to_db_timestamp

_SELECT_JOINED = """
    SELECT c.id, c.user_id, c.source_template_id, c.title,
           c.created_at, c.updated_at,
           s.step_index, s.title AS step_title, s.description AS step_description,
           s.step_order, s.completed, s.completed_at
    FROM user_checklists c
    LEFT JOIN user_checklist_steps s ON s.checklist_id = c.id
"""


class ChecklistRepository(BaseRepository):
    """CRUD and per-step progress updates for user checklists."""

    TABLE = "user_checklists"
    STEPS_TABLE = "user_checklist_steps"

    def insert(self, checklist: UserChecklist) -> None:
        """Persist a new checklist and all of its step rows atomically."""
        with self.transaction():
            self._insert_row(self.TABLE, {
                "id": checklist.id,
                "user_id": checklist.user_id,
                "source_template_id": checklist.source_template_id,
                "title": checklist.title,
                "created_at": to_db_timestamp(checklist.created_at),
                "updated_at": to_db_timestamp(checklist.updated_at),
            })
            self._insert_rows(self.STEPS_TABLE, [
                {
                    "checklist_id": checklist.id,
                    "step_index": index,
                    "title": step.title,
                    "description": step.description,
                    "step_order": step.order,
                    "completed": 1 if progress.completed else 0,
                    "completed_at": to_db_timestamp(progress.completed_at),
                }
                for index, (step, progress) in enumerate(zip(checklist.steps, checklist.progress, strict=True))
            ])

    def get_by_id(self, checklist_id: str) -> UserChecklist | None:
        """Load one checklist with its steps in index order."""
        with self.storage_errors():
            rows = self.query(
                _SELECT_JOINED + " WHERE c.id = ? ORDER BY s.step_index",
                (checklist_id,),
            )
        checklists = _assemble(rows)
        return checklists[0] if checklists else None

    def list_by_user(self, user_id: str) -> list[UserChecklist]:
        """All checklists owned by ``user_id``, newest first."""
        with self.storage_errors():
            rows = self.query(
                _SELECT_JOINED
                + " WHERE c.user_id = ? ORDER BY c.created_at DESC, c.id DESC, s.step_index",
                (user_id,),
            )
        return _assemble(rows)

    def update_step_progress(
        self,
        checklist_id: str,
        step_index: int,
        completed: bool,
        timestamp: datetime,
    ) -> bool:
        """Set one step's completion flag.

        Returns ``True`` when the stored flag changed. Re-completing a
        completed step keeps its original ``completed_at`` and leaves the
        checklist's ``updated_at`` alone.

        Raises:
            NotFoundError: no such checklist/step row.
            ConflictError: the database stayed locked past the busy timeout.
        """
        ts = to_db_timestamp(timestamp)
        with self.transaction():
            if completed:
                cursor = self.execute(
                    f"UPDATE {self.STEPS_TABLE} "
                    "SET completed = 1, completed_at = COALESCE(completed_at, ?) "
                    "WHERE checklist_id = ? AND step_index = ? AND completed = 0",
                    (ts, checklist_id, step_index),
                )
            else:
                cursor = self.execute(
                    f"UPDATE {self.STEPS_TABLE} "
                    "SET completed = 0, completed_at = NULL "
                    "WHERE checklist_id = ? AND step_index = ? AND completed = 1",
                    (checklist_id, step_index),
                )
            changed = cursor.rowcount > 0

            if changed:
                self.execute(
                    f"UPDATE {self.TABLE} SET updated_at = ? WHERE id = ?",
                    (ts, checklist_id),
                )
            elif self.query_one(
                f"SELECT 1 AS present FROM {self.STEPS_TABLE} "
                "WHERE checklist_id = ? AND step_index = ?",
                (checklist_id, step_index),
            ) is None:
                raise NotFoundError(
                    f"Step {step_index} of checklist {checklist_id} not found"
                ).with_context(checklist_id=checklist_id, step_index=step_index)
        return changed

    def delete(self, checklist_id: str) -> bool:
        """Delete a checklist and its step rows. Returns ``True`` if it existed."""
        with self.transaction():
            self.execute(
                f"DELETE FROM {self.STEPS_TABLE} WHERE checklist_id = ?",
                (checklist_id,),
            )
            cursor = self.execute(
                f"DELETE FROM {self.TABLE} WHERE id = ?",
                (checklist_id,),
            )
            deleted = cursor.rowcount > 0
        return deleted


def _assemble(rows: list[dict[str, Any]]) -> list[UserChecklist]:
    """Fold joined header/step rows into checklists, preserving row order."""
    grouped: dict[str, tuple[dict[str, Any], list[dict[str, Any]]]] = {}
    for row in rows:
        entry = grouped.setdefault(row["id"], (row, []))
        if row["step_index"] is not None:
            entry[1].append(row)

    checklists = []
    for header, step_rows in grouped.values():
        checklists.append(UserChecklist(
            id=header["id"],
            user_id=header["user_id"],
            source_template_id=header["source_template_id"],
            title=header["title"],
            steps=tuple(
                TemplateStep(
                    title=r["step_title"],
                    description=r["step_description"],
                    order=r["step_order"],
                )
                for r in step_rows
            ),
            progress=tuple(
                StepProgress(
                    step_index=r["step_index"],
                    completed=bool(r["completed"]),
                    completed_at=from_db_timestamp(r["completed_at"]),
                )
                for r in step_rows
            ),
            created_at=from_db_timestamp(header["created_at"]),
            updated_at=from_db_timestamp(header["updated_at"]),
        ))
    return checklists
