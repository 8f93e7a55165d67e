"""
Checklist operations.

Fork templates into personal checklists, toggle step completion, and
read or delete checklists. Every operation requires ``ctx.user`` and
delegates the lifecycle rules to
:class:`~rookie_guide.core.checklists.ChecklistProgressEngine`.

Each operation runs inside a :class:`LogContext` carrying the request id
and the caller, so engine and repository log lines can be correlated.
"""

from __future__ import annotations

from rookie_guide.core.checklists import ChecklistProgressEngine, compute_progress
from rookie_guide.core.errors import GuideError, NotFoundError, UnauthenticatedError
from rookie_guide.core.logging import LogContext, get_logger
from rookie_guide.core.models import ChecklistSummary, UserChecklist
from rookie_guide.core.repositories import ChecklistRepository, TemplateRepository
from rookie_guide.core.retry import ExponentialBackoff
from rookie_guide.ops.context import OperationContext
from rookie_guide.ops.requests import ForkTemplateRequest, UpdateStepRequest
from rookie_guide.ops.responses import (
    ChecklistDetail,
    ChecklistStepView,
    ChecklistSummaryView,
    DeleteResult,
    ProgressView,
)
from rookie_guide.ops.result import OperationResult, start_timer

logger = get_logger(__name__)


def _engine(ctx: OperationContext) -> ChecklistProgressEngine:
    attempts = ctx.metadata.get("update_retry_attempts")
    retry = ExponentialBackoff(max_retries=attempts) if attempts is not None else None
    return ChecklistProgressEngine(
        TemplateRepository(ctx.conn),
        ChecklistRepository(ctx.conn),
        retry=retry,
    )


def _require_user(ctx: OperationContext) -> str:
    if not ctx.user:
        raise UnauthenticatedError("A user identity is required for checklist operations")
    return ctx.user


def _log_context(ctx: OperationContext) -> LogContext:
    return LogContext(request_id=ctx.request_id, user_id=ctx.user)


def _log_rejected(exc: GuideError) -> None:
    if exc.code in ("UNAVAILABLE", "CONFLICT"):
        logger.error("op_failed", **exc.to_dict())
    else:
        logger.info("op_rejected", **exc.to_dict())


# ------------------------------------------------------------------ #
# Fork
# ------------------------------------------------------------------ #


def _fork_preview(ctx: OperationContext, user_id: str, template_id: str) -> ChecklistDetail:
    template = TemplateRepository(ctx.conn).get_by_id(template_id)
    if template is None:
        raise NotFoundError(f"Template '{template_id}' not found")
    steps = [
        ChecklistStepView(
            step_index=i,
            title=s.title,
            description=s.description,
            order=s.order,
            completed=False,
        )
        for i, s in enumerate(template.ordered_steps())
    ]
    return ChecklistDetail(
        id="",
        user_id=user_id,
        source_template_id=template.id,
        title=template.title,
        steps=steps,
        progress=ProgressView(0, len(steps), 0.0),
        dry_run=True,
    )


def fork_template(
    ctx: OperationContext,
    request: ForkTemplateRequest,
) -> OperationResult[ChecklistDetail]:
    """Create a checklist for the caller from a template snapshot."""
    timer = start_timer()

    with _log_context(ctx):
        try:
            user_id = _require_user(ctx)
            if ctx.dry_run:
                detail = _fork_preview(ctx, user_id, request.template_id)
            else:
                detail = _to_detail(_engine(ctx).fork(user_id, request.template_id))
            return OperationResult.ok(detail, elapsed_ms=timer.elapsed_ms)
        except GuideError as exc:
            _log_rejected(exc)
            return OperationResult.from_error(exc, elapsed_ms=timer.elapsed_ms)
        except Exception as exc:
            logger.exception("op_failed", error=str(exc))
            return OperationResult.internal("fork template", exc, elapsed_ms=timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Step progress
# ------------------------------------------------------------------ #


def update_step(
    ctx: OperationContext,
    request: UpdateStepRequest,
) -> OperationResult[ChecklistDetail]:
    """Mark one step of the caller's checklist complete or incomplete."""
    timer = start_timer()

    with _log_context(ctx):
        try:
            user_id = _require_user(ctx)
            engine = _engine(ctx)
            args = (user_id, request.checklist_id, request.step_index, request.completed)
            if ctx.dry_run:
                detail = _to_detail(engine.preview_step(*args), dry_run=True)
            else:
                detail = _to_detail(engine.update_step(*args))
            return OperationResult.ok(detail, elapsed_ms=timer.elapsed_ms)
        except GuideError as exc:
            _log_rejected(exc)
            return OperationResult.from_error(exc, elapsed_ms=timer.elapsed_ms)
        except Exception as exc:
            logger.exception("op_failed", error=str(exc))
            return OperationResult.internal("update step", exc, elapsed_ms=timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Reads
# ------------------------------------------------------------------ #


def get_checklist(
    ctx: OperationContext,
    checklist_id: str,
) -> OperationResult[ChecklistDetail]:
    """Return one of the caller's checklists with progress."""
    timer = start_timer()

    with _log_context(ctx):
        try:
            user_id = _require_user(ctx)
            checklist = _engine(ctx).get(user_id, checklist_id)
            return OperationResult.ok(_to_detail(checklist), elapsed_ms=timer.elapsed_ms)
        except GuideError as exc:
            _log_rejected(exc)
            return OperationResult.from_error(exc, elapsed_ms=timer.elapsed_ms)
        except Exception as exc:
            logger.exception("op_failed", error=str(exc))
            return OperationResult.internal("get checklist", exc, elapsed_ms=timer.elapsed_ms)


def list_checklists(ctx: OperationContext) -> OperationResult[list[ChecklistSummaryView]]:
    """List the caller's checklists, newest first."""
    timer = start_timer()

    with _log_context(ctx):
        try:
            user_id = _require_user(ctx)
            summaries = _engine(ctx).list_by_user(user_id)
            return OperationResult.ok(
                [_to_summary(s) for s in summaries],
                elapsed_ms=timer.elapsed_ms,
            )
        except GuideError as exc:
            _log_rejected(exc)
            return OperationResult.from_error(exc, elapsed_ms=timer.elapsed_ms)
        except Exception as exc:
            logger.exception("op_failed", error=str(exc))
            return OperationResult.internal("list checklists", exc, elapsed_ms=timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Delete
# ------------------------------------------------------------------ #


def delete_checklist(
    ctx: OperationContext,
    checklist_id: str,
) -> OperationResult[DeleteResult]:
    """Delete one of the caller's checklists."""
    timer = start_timer()

    with _log_context(ctx):
        try:
            user_id = _require_user(ctx)
            engine = _engine(ctx)
            if ctx.dry_run:
                engine.get(user_id, checklist_id)
                result = DeleteResult(checklist_id=checklist_id, deleted=False, dry_run=True)
            else:
                engine.delete(user_id, checklist_id)
                result = DeleteResult(checklist_id=checklist_id, deleted=True)
            return OperationResult.ok(result, elapsed_ms=timer.elapsed_ms)
        except GuideError as exc:
            _log_rejected(exc)
            return OperationResult.from_error(exc, elapsed_ms=timer.elapsed_ms)
        except Exception as exc:
            logger.exception("op_failed", error=str(exc))
            return OperationResult.internal("delete checklist", exc, elapsed_ms=timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Converters
# ------------------------------------------------------------------ #


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def _progress_view(checklist: UserChecklist) -> ProgressView:
    progress = compute_progress(checklist)
    return ProgressView(
        completed_count=progress.completed_count,
        total_count=progress.total_count,
        percentage=progress.percentage,
    )


def _to_detail(checklist: UserChecklist, *, dry_run: bool = False) -> ChecklistDetail:
    steps = [
        ChecklistStepView(
            step_index=entry.step_index,
            title=step.title,
            description=step.description,
            order=step.order,
            completed=entry.completed,
            completed_at=_iso(entry.completed_at),
        )
        for step, entry in zip(checklist.steps, checklist.progress, strict=True)
    ]
    return ChecklistDetail(
        id=checklist.id,
        user_id=checklist.user_id,
        source_template_id=checklist.source_template_id,
        title=checklist.title,
        steps=steps,
        progress=_progress_view(checklist),
        created_at=_iso(checklist.created_at),
        updated_at=_iso(checklist.updated_at),
        dry_run=dry_run,
    )


def _to_summary(summary: ChecklistSummary) -> ChecklistSummaryView:
    checklist = summary.checklist
    return ChecklistSummaryView(
        id=checklist.id,
        source_template_id=checklist.source_template_id,
        title=checklist.title,
        progress=ProgressView(
            completed_count=summary.progress.completed_count,
            total_count=summary.progress.total_count,
            percentage=summary.progress.percentage,
        ),
        created_at=_iso(checklist.created_at),
        updated_at=_iso(checklist.updated_at),
    )
