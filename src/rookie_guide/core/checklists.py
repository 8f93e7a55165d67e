"""
Checklist progress engine: fork templates, toggle steps, compute progress.

The engine holds no state between calls. Each operation reads from the
injected :class:`~rookie_guide.core.protocols.PersistenceGateway`, applies
one transformation and writes back through the same gateway.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                 ChecklistProgressEngine                   │
        │                                                          │
        │   templates: TemplateStore      checklists: Gateway      │
        │                                                          │
        │   fork(user, template)          → UserChecklist          │
        │   update_step(user, id, i, on)  → UserChecklist          │
        │   preview_step(user, id, i, on) → UserChecklist          │
        │   get(user, id)                 → UserChecklist          │
        │   list_by_user(user)            → list[ChecklistSummary] │
        │   delete(user, id)              → None                   │
        └──────────────────────────────────────────────────────────┘

        compute_progress(checklist) → ChecklistProgress   (pure)

Step state machine:
    Incomplete ⇄ Complete. Both transitions are always permitted; there is
    no one-way lock on a completed step in this version.

Concurrency:
    Step writes go through ``update_step_progress``, which touches only the
    ``(checklist_id, step_index)`` row. Two callers toggling different
    steps of one checklist therefore never overwrite each other. Lock
    contention comes back as :class:`ConflictError` and is retried with
    exponential backoff before being surfaced.
"""

from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Callable
from datetime import UTC, datetime

from rookie_guide.core.errors import (
    ErrorContext,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
)
from rookie_guide.core.logging import get_logger
from rookie_guide.core.models import (
    ChecklistProgress,
    ChecklistSummary,
    StepProgress,
    TemplateStep,
    UserChecklist,
)
from rookie_guide.core.protocols import PersistenceGateway, TemplateStore
from rookie_guide.core.retry import ExponentialBackoff, RetryContext, RetryStrategy

logger = get_logger(__name__)


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


def compute_progress(checklist: UserChecklist) -> ChecklistProgress:
    """Derive completion counts from ``checklist.progress``.

    ``percentage`` is ``0.0`` for a checklist without steps.

    >>> compute_progress(checklist_with_2_of_4_done)
    ChecklistProgress(completed_count=2, total_count=4, percentage=50.0)
    """
    total = len(checklist.progress)
    completed = sum(1 for entry in checklist.progress if entry.completed)
    percentage = (completed / total) * 100.0 if total else 0.0
    return ChecklistProgress(
        completed_count=completed,
        total_count=total,
        percentage=percentage,
    )


class ChecklistProgressEngine:
    """Lifecycle of user checklists forked from templates.

    Parameters:
        templates: Template lookup used by :meth:`fork`.
        checklists: Durable checklist storage.
        clock: Returns the current time; defaults to UTC now.
        id_factory: Produces new checklist ids; defaults to UUID4 strings.
        retry: Strategy for retryable step-write conflicts.
    """

    def __init__(
        self,
        templates: TemplateStore,
        checklists: PersistenceGateway,
        *,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        retry: RetryStrategy | None = None,
    ) -> None:
        self.templates = templates
        self.checklists = checklists
        self._clock = clock
        self._id_factory = id_factory
        self._retry = retry or ExponentialBackoff()

    # -- fork ---------------------------------------------------------------

    def fork(self, user_id: str, template_id: str) -> UserChecklist:
        """Snapshot *template_id* into a new checklist owned by *user_id*."""
        template = self.templates.get_by_id(template_id)
        if template is None:
            raise NotFoundError(
                f"Template '{template_id}' not found",
                context=ErrorContext(user_id=user_id, template_id=template_id),
            )

        # Fresh step objects: the checklist shares nothing with the template.
        steps = tuple(
            TemplateStep(title=step.title, description=step.description, order=step.order)
            for step in template.ordered_steps()
        )
        now = self._clock()
        checklist = UserChecklist(
            id=self._id_factory(),
            user_id=user_id,
            source_template_id=template.id,
            title=template.title,
            steps=steps,
            progress=tuple(StepProgress(step_index=i) for i in range(len(steps))),
            created_at=now,
            updated_at=now,
        )
        self.checklists.insert(checklist)
        logger.info(
            "checklist_forked",
            checklist_id=checklist.id,
            template_id=template.id,
            user_id=user_id,
            steps=len(steps),
        )
        return checklist

    # -- reads --------------------------------------------------------------

    def get(self, user_id: str, checklist_id: str) -> UserChecklist:
        """Load a checklist the caller owns."""
        return self._load_owned(user_id, checklist_id)

    def list_by_user(self, user_id: str) -> list[ChecklistSummary]:
        """All of the caller's checklists, newest first, with progress."""
        return [
            ChecklistSummary(checklist=checklist, progress=compute_progress(checklist))
            for checklist in self.checklists.list_by_user(user_id)
        ]

    # -- mutations ----------------------------------------------------------

    def update_step(
        self,
        user_id: str,
        checklist_id: str,
        step_index: int,
        completed: bool,
    ) -> UserChecklist:
        """Set the completion flag of one step and return the new state.

        Raises:
            NotFoundError: the checklist does not exist.
            ForbiddenError: the caller does not own it.
            InvalidArgumentError: *step_index* out of range or *completed*
                not a bool.
            ConflictError: the write kept losing lock races.
        """
        checklist = self._load_owned(user_id, checklist_id)
        _check_step_update(checklist, step_index, completed)

        def _on_retry(attempt: int, error: Exception, delay: float) -> None:
            logger.warning(
                "step_update_conflict",
                checklist_id=checklist_id,
                step_index=step_index,
                attempt=attempt,
                delay=round(delay, 3),
                error=str(error),
            )

        changed = RetryContext(self._retry, on_retry=_on_retry).run(
            self.checklists.update_step_progress,
            checklist_id,
            step_index,
            completed,
            self._clock(),
        )
        logger.info(
            "step_updated",
            checklist_id=checklist_id,
            step_index=step_index,
            completed=completed,
            changed=changed,
        )

        updated = self.checklists.get_by_id(checklist_id)
        if updated is None:
            raise NotFoundError(
                f"Checklist '{checklist_id}' was deleted during update",
                context=ErrorContext(user_id=user_id, checklist_id=checklist_id, step_index=step_index),
            )
        return updated

    def preview_step(
        self,
        user_id: str,
        checklist_id: str,
        step_index: int,
        completed: bool,
    ) -> UserChecklist:
        """Return the state :meth:`update_step` would produce, without writing.

        Same checks and errors as :meth:`update_step`.
        """
        checklist = self._load_owned(user_id, checklist_id)
        _check_step_update(checklist, step_index, completed)

        current = checklist.progress[step_index]
        if current.completed == completed:
            return checklist
        now = self._clock()
        progress = list(checklist.progress)
        progress[step_index] = StepProgress(
            step_index=step_index,
            completed=completed,
            completed_at=now if completed else None,
        )
        return dataclasses.replace(checklist, progress=tuple(progress), updated_at=now)

    def delete(self, user_id: str, checklist_id: str) -> None:
        """Remove a checklist the caller owns."""
        self._load_owned(user_id, checklist_id)
        if not self.checklists.delete(checklist_id):
            raise NotFoundError(
                f"Checklist '{checklist_id}' not found",
                context=ErrorContext(user_id=user_id, checklist_id=checklist_id),
            )
        logger.info("checklist_deleted", checklist_id=checklist_id, user_id=user_id)

    # -- helpers ------------------------------------------------------------

    def _load_owned(self, user_id: str, checklist_id: str) -> UserChecklist:
        checklist = self.checklists.get_by_id(checklist_id)
        if checklist is None:
            raise NotFoundError(
                f"Checklist '{checklist_id}' not found",
                context=ErrorContext(user_id=user_id, checklist_id=checklist_id),
            )
        if checklist.user_id != user_id:
            raise ForbiddenError(
                f"Checklist '{checklist_id}' belongs to another user",
                context=ErrorContext(user_id=user_id, checklist_id=checklist_id),
            )
        return checklist


def _check_step_update(checklist: UserChecklist, step_index: int, completed: bool) -> None:
    context = ErrorContext(
        user_id=checklist.user_id,
        checklist_id=checklist.id,
        step_index=step_index if isinstance(step_index, int) else None,
    )
    if not isinstance(completed, bool):
        raise InvalidArgumentError(
            f"'completed' must be a boolean, got {type(completed).__name__}",
            field="completed",
            context=context,
        )
    # bool is an int subclass; True is not a step index.
    if isinstance(step_index, bool) or not isinstance(step_index, int):
        raise InvalidArgumentError(
            "'step_index' must be an integer",
            field="step_index",
            context=context,
        )
    if not 0 <= step_index < len(checklist.steps):
        raise InvalidArgumentError(
            f"Step index {step_index} out of range for checklist with "
            f"{len(checklist.steps)} steps",
            field="step_index",
            context=context,
        )


__all__ = [
    "ChecklistProgressEngine",
    "compute_progress",
    "utcnow",
]
