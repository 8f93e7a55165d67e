"""
Typed request objects for operations.

Each dataclass represents the *input* contract for a single operation
function. Requests carry only transport-agnostic data: no raw HTTP
bodies, no Typer params. Semantic validation happens in the operation.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ------------------------------------------------------------------ #
# Template operations
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class StepInput:
    """One step of a template being created or replaced.

    ``order`` defaults to the step's position in the submitted list.
    """

    title: str
    description: str | None = None
    order: int | None = None


@dataclass(frozen=True, slots=True)
class CreateTemplateRequest:
    """Request for :func:`rookie_guide.ops.templates.create_template`."""

    title: str
    description: str
    location_tag: str
    steps: list[StepInput] = field(default_factory=list)
    parent_id: str | None = None
    is_official: bool = False


@dataclass(frozen=True, slots=True)
class UpdateTemplateRequest:
    """Request for :func:`rookie_guide.ops.templates.update_template`.

    ``None`` fields are left unchanged.
    """

    title: str | None = None
    description: str | None = None
    location_tag: str | None = None
    steps: list[StepInput] | None = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.title, self.description, self.location_tag, self.steps)
        )


@dataclass(frozen=True, slots=True)
class ListTemplatesRequest:
    """Request for :func:`rookie_guide.ops.templates.list_templates`."""

    location_tag: str | None = None


# ------------------------------------------------------------------ #
# Checklist operations
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class ForkTemplateRequest:
    """Request for :func:`rookie_guide.ops.checklists.fork_template`."""

    template_id: str


@dataclass(frozen=True, slots=True)
class UpdateStepRequest:
    """Request for :func:`rookie_guide.ops.checklists.update_step`."""

    checklist_id: str
    step_index: int
    completed: bool
