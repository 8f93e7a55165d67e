"""Template repository. Satisfies :class:`TemplateStore` for the engine."""

from __future__ import annotations

from typing import Any

from rookie_guide.core.models import Template
from rookie_guide.core.repository import BaseRepository

from ._helpers import from_db_timestamp, steps_from_json, steps_to_json, to_db_timestamp


class TemplateRepository(BaseRepository):
    """CRUD for the ``templates`` table."""

    TABLE = "templates"

    def get_by_id(self, template_id: str) -> Template | None:
        """Get a template by ID, steps in ``order``."""
        with self.storage_errors():
            row = self.query_one(
                f"SELECT * FROM {self.TABLE} WHERE id = ?",
                (template_id,),
            )
        return _row_to_template(row) if row else None

    def list_templates(self, *, location_tag: str | None = None) -> list[Template]:
        """List templates, newest first, optionally for one location."""
        sql = f"SELECT * FROM {self.TABLE}"
        params: tuple = ()
        if location_tag is not None:
            sql += " WHERE location_tag = ?"
            params = (location_tag,)
        sql += " ORDER BY created_at DESC, id DESC"
        with self.storage_errors():
            rows = self.query(sql, params)
        return [_row_to_template(r) for r in rows]

    def create(self, template: Template) -> None:
        """Insert a new template."""
        with self.transaction():
            self._insert_row(self.TABLE, {
                "id": template.id,
                "title": template.title,
                "description": template.description,
                "location_tag": template.location_tag,
                "steps_json": steps_to_json(template.steps),
                "parent_id": template.parent_id,
                "created_by": template.created_by,
                "is_official": 1 if template.is_official else 0,
                "created_at": to_db_timestamp(template.created_at),
                "updated_at": to_db_timestamp(template.updated_at),
            })

    def update(self, template_id: str, updates: dict[str, Any]) -> bool:
        """Update fields on a template. Returns ``True`` if a row changed.

        ``steps`` (a tuple of :class:`TemplateStep`) is encoded to
        ``steps_json``; datetimes are serialised.
        """
        if not updates:
            return False
        columns: dict[str, Any] = {}
        for key, value in updates.items():
            if key == "steps":
                columns["steps_json"] = steps_to_json(value)
            elif key in ("created_at", "updated_at"):
                columns[key] = to_db_timestamp(value)
            else:
                columns[key] = value
        sets = ", ".join(f"{k} = ?" for k in columns)
        with self.transaction():
            cursor = self.execute(
                f"UPDATE {self.TABLE} SET {sets} WHERE id = ?",
                (*columns.values(), template_id),
            )
            changed = cursor.rowcount > 0
        return changed


def _row_to_template(row: dict[str, Any]) -> Template:
    return Template(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        location_tag=row["location_tag"],
        steps=steps_from_json(row.get("steps_json")),
        parent_id=row.get("parent_id"),
        created_by=row["created_by"],
        is_official=bool(row.get("is_official")),
        created_at=from_db_timestamp(row["created_at"]),
        updated_at=from_db_timestamp(row["updated_at"]),
    )
