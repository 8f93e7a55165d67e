"""
Typed response objects for operations.

Each dataclass represents the *output* of a single operation beyond the
generic :class:`OperationResult` envelope. Timestamps are ISO-8601 strings
so payloads serialise to JSON unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ------------------------------------------------------------------ #
# Template responses
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class StepView:
    """A template step as returned to clients."""

    title: str
    description: str | None
    order: int


@dataclass(frozen=True, slots=True)
class TemplateSummary:
    """Lightweight template view for list endpoints."""

    id: str
    title: str
    location_tag: str
    step_count: int
    is_official: bool
    created_by: str
    created_at: str | None = None


@dataclass(frozen=True, slots=True)
class TemplateDetail:
    """Full template view."""

    id: str
    title: str
    description: str
    location_tag: str
    steps: list[StepView]
    created_by: str
    is_official: bool = False
    parent_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    dry_run: bool = False


# ------------------------------------------------------------------ #
# Checklist responses
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class ProgressView:
    """Completion counters for a checklist."""

    completed_count: int
    total_count: int
    percentage: float


@dataclass(frozen=True, slots=True)
class ChecklistStepView:
    """One checklist step: the snapshot plus its progress."""

    step_index: int
    title: str
    description: str | None
    order: int
    completed: bool
    completed_at: str | None = None


@dataclass(frozen=True, slots=True)
class ChecklistDetail:
    """Full checklist view with steps and computed progress."""

    id: str
    user_id: str
    source_template_id: str
    title: str
    steps: list[ChecklistStepView]
    progress: ProgressView
    created_at: str | None = None
    updated_at: str | None = None
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class ChecklistSummaryView:
    """Checklist list entry with its progress."""

    id: str
    source_template_id: str
    title: str
    progress: ProgressView
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True, slots=True)
class DeleteResult:
    """Result payload for :func:`rookie_guide.ops.checklists.delete_checklist`."""

    checklist_id: str
    deleted: bool
    dry_run: bool = False


# ------------------------------------------------------------------ #
# Database responses
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class DatabaseInitResult:
    """Result payload for :func:`rookie_guide.ops.database.initialize_database`."""

    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class MigrationStatus:
    """Result payload for :func:`rookie_guide.ops.database.migration_status`."""

    applied: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)
