"""Shared helpers for repository classes."""

from __future__ import annotations

import json
from datetime import datetime

from rookie_guide.core.models import TemplateStep


def to_db_timestamp(value: datetime | None) -> str | None:
    """Serialise a datetime as ISO-8601 text (``None`` passes through)."""
    return value.isoformat() if value is not None else None


def from_db_timestamp(value: str | None) -> datetime | None:
    """Parse ISO-8601 text written by :func:`to_db_timestamp`."""
    return datetime.fromisoformat(value) if value else None


def steps_to_json(steps: tuple[TemplateStep, ...]) -> str:
    """Encode template steps for the ``templates.steps_json`` column."""
    return json.dumps(
        [{"title": s.title, "description": s.description, "order": s.order} for s in steps],
        ensure_ascii=False,
    )


def steps_from_json(raw: str | None) -> tuple[TemplateStep, ...]:
    """Decode ``templates.steps_json``, sorted by ``order``."""
    items = json.loads(raw) if raw else []
    steps = (
        TemplateStep(
            title=item["title"],
            description=item.get("description"),
            order=int(item.get("order", index)),
        )
        for index, item in enumerate(items)
    )
    return tuple(sorted(steps, key=lambda s: s.order))
