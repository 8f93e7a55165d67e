"""
Domain models for templates and forked checklists.

Templates are authored once and forked many times. A fork produces a
:class:`UserChecklist` holding a point-in-time copy of the template's
title and steps plus one :class:`StepProgress` entry per step.

Invariants of a UserChecklist:
    - ``len(progress) == len(steps)`` and ``progress[i].step_index == i``
    - ``steps`` and ``title`` never change after the fork
    - ``completed_at`` is set iff ``completed`` is true
    - ``user_id`` never changes

All models are frozen; an updated checklist is a new object re-read from
storage.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class LocationTag(str, Enum):
    """Region a guide applies to."""

    CHINA = "CN"
    BEIJING = "CN-BJ"
    SHANGHAI = "CN-SH"
    GUANGZHOU = "CN-GZ"
    SHENZHEN = "CN-SZ"


@dataclass(frozen=True, slots=True)
class TemplateStep:
    """One ordered step of a template (or of a checklist snapshot)."""

    title: str
    description: str | None = None
    order: int = 0


@dataclass(frozen=True, slots=True)
class Template:
    """A reusable guide. Read-only from the progress engine's point of view."""

    id: str
    title: str
    description: str
    location_tag: str
    steps: tuple[TemplateStep, ...]
    created_by: str
    created_at: datetime
    updated_at: datetime
    parent_id: str | None = None
    is_official: bool = False

    def ordered_steps(self) -> tuple[TemplateStep, ...]:
        """Steps sorted by ``order`` (execution order of the guide)."""
        return tuple(sorted(self.steps, key=lambda s: s.order))


@dataclass(frozen=True, slots=True)
class StepProgress:
    """Completion state of the step at ``step_index``."""

    step_index: int
    completed: bool = False
    completed_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class UserChecklist:
    """A user's fork of a template. Created only by the fork operation."""

    id: str
    user_id: str
    source_template_id: str
    title: str
    steps: tuple[TemplateStep, ...]
    progress: tuple[StepProgress, ...]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class ChecklistProgress:
    """Derived completion view. Always recomputed, never persisted."""

    completed_count: int
    total_count: int
    percentage: float


@dataclass(frozen=True, slots=True)
class ChecklistSummary:
    """A checklist paired with its computed progress."""

    checklist: UserChecklist
    progress: ChecklistProgress


__all__ = [
    "LocationTag",
    "TemplateStep",
    "Template",
    "StepProgress",
    "UserChecklist",
    "ChecklistProgress",
    "ChecklistSummary",
]
