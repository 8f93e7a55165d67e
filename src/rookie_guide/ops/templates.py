"""
Template operations.

Create, read, list and update guide templates. Templates are validated
here before they reach the repository; the progress engine only ever
reads them.
"""

from __future__ import annotations

import dataclasses
import uuid
from typing import Any

from rookie_guide.core.checklists import utcnow
from rookie_guide.core.errors import (
    ForbiddenError,
    GuideError,
    InvalidArgumentError,
    NotFoundError,
    UnauthenticatedError,
)
from rookie_guide.core.logging import LogContext, get_logger
from rookie_guide.core.models import LocationTag, Template, TemplateStep
from rookie_guide.core.repositories import TemplateRepository
from rookie_guide.ops.context import OperationContext
from rookie_guide.ops.requests import (
    CreateTemplateRequest,
    ListTemplatesRequest,
    StepInput,
    UpdateTemplateRequest,
)
from rookie_guide.ops.responses import StepView, TemplateDetail, TemplateSummary
from rookie_guide.ops.result import OperationResult, start_timer

logger = get_logger(__name__)

TITLE_MAX = 200
DESCRIPTION_MAX = 2000
STEP_TITLE_MAX = 500

_LOCATION_TAGS = frozenset(tag.value for tag in LocationTag)


def _template_repo(ctx: OperationContext) -> TemplateRepository:
    return TemplateRepository(ctx.conn)


# ------------------------------------------------------------------ #
# Validation
# ------------------------------------------------------------------ #


def _check_length(field: str, value: str, maximum: int) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"'{field}' must not be empty", field=field)
    if len(value) > maximum:
        raise InvalidArgumentError(
            f"'{field}' must be at most {maximum} characters (got {len(value)})",
            field=field,
        )


def _check_location_tag(value: str) -> None:
    if value not in _LOCATION_TAGS:
        raise InvalidArgumentError(
            f"Unknown location_tag {value!r}; expected one of {sorted(_LOCATION_TAGS)}",
            field="location_tag",
        )


def _build_steps(steps: list[StepInput]) -> tuple[TemplateStep, ...]:
    """Validate step inputs and return them sorted by ``order``.

    Orders default to list position and must form ``0..n-1`` exactly once.
    """
    if not steps:
        raise InvalidArgumentError("A template needs at least one step", field="steps")

    built = []
    for position, step in enumerate(steps):
        _check_length(f"steps[{position}].title", step.title, STEP_TITLE_MAX)
        order = position if step.order is None else step.order
        built.append(TemplateStep(title=step.title, description=step.description, order=order))

    orders = sorted(s.order for s in built)
    if orders != list(range(len(built))):
        raise InvalidArgumentError(
            f"Step orders must be unique and contiguous from 0, got {orders}",
            field="steps",
        )
    return tuple(sorted(built, key=lambda s: s.order))


def _require_user(ctx: OperationContext) -> str:
    if not ctx.user:
        raise UnauthenticatedError("A user identity is required to modify templates")
    return ctx.user


# ------------------------------------------------------------------ #
# Create
# ------------------------------------------------------------------ #


def create_template(
    ctx: OperationContext,
    request: CreateTemplateRequest,
) -> OperationResult[TemplateDetail]:
    """Validate and store a new template authored by the caller."""
    timer = start_timer()

    try:
        user_id = _require_user(ctx)
        _check_length("title", request.title, TITLE_MAX)
        _check_length("description", request.description, DESCRIPTION_MAX)
        _check_location_tag(request.location_tag)
        steps = _build_steps(request.steps)

        repo = _template_repo(ctx)
        if request.parent_id is not None and repo.get_by_id(request.parent_id) is None:
            raise InvalidArgumentError(
                f"Parent template '{request.parent_id}' does not exist",
                field="parent_id",
            )

        now = utcnow()
        template = Template(
            id=str(uuid.uuid4()),
            title=request.title,
            description=request.description,
            location_tag=request.location_tag,
            steps=steps,
            created_by=user_id,
            created_at=now,
            updated_at=now,
            parent_id=request.parent_id,
            is_official=request.is_official,
        )

        if ctx.dry_run:
            return OperationResult.ok(
                _to_detail(template, dry_run=True),
                elapsed_ms=timer.elapsed_ms,
            )

        with LogContext(request_id=ctx.request_id, user_id=user_id):
            repo.create(template)
            logger.info(
                "template_created",
                template_id=template.id,
                location_tag=template.location_tag,
                steps=len(steps),
            )
        return OperationResult.ok(_to_detail(template), elapsed_ms=timer.elapsed_ms)
    except GuideError as exc:
        logger.info("op_rejected", **exc.to_dict())
        return OperationResult.from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.internal("create template", exc, elapsed_ms=timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Read
# ------------------------------------------------------------------ #


def get_template(
    ctx: OperationContext,
    template_id: str,
) -> OperationResult[TemplateDetail]:
    """Get a template with its ordered steps."""
    timer = start_timer()

    try:
        template = _template_repo(ctx).get_by_id(template_id)
        if template is None:
            raise NotFoundError(f"Template '{template_id}' not found")
        return OperationResult.ok(_to_detail(template), elapsed_ms=timer.elapsed_ms)
    except GuideError as exc:
        logger.info("op_rejected", **exc.to_dict())
        return OperationResult.from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.internal("get template", exc, elapsed_ms=timer.elapsed_ms)


def list_templates(
    ctx: OperationContext,
    request: ListTemplatesRequest | None = None,
) -> OperationResult[list[TemplateSummary]]:
    """List templates, newest first, optionally filtered by location."""
    request = request or ListTemplatesRequest()
    timer = start_timer()

    try:
        if request.location_tag is not None:
            _check_location_tag(request.location_tag)
        templates = _template_repo(ctx).list_templates(location_tag=request.location_tag)
        return OperationResult.ok(
            [_to_summary(t) for t in templates],
            elapsed_ms=timer.elapsed_ms,
        )
    except GuideError as exc:
        logger.info("op_rejected", **exc.to_dict())
        return OperationResult.from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.internal("list templates", exc, elapsed_ms=timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Update
# ------------------------------------------------------------------ #


def update_template(
    ctx: OperationContext,
    template_id: str,
    request: UpdateTemplateRequest,
) -> OperationResult[TemplateDetail]:
    """Update a template the caller created.

    Checklists already forked from the template keep their own snapshot.
    """
    timer = start_timer()

    try:
        user_id = _require_user(ctx)
        repo = _template_repo(ctx)
        template = repo.get_by_id(template_id)
        if template is None:
            raise NotFoundError(f"Template '{template_id}' not found")
        if template.created_by != user_id:
            raise ForbiddenError(f"Template '{template_id}' was created by another user")
        if request.is_empty():
            raise InvalidArgumentError("No fields to update")

        updates: dict[str, Any] = {}
        if request.title is not None:
            _check_length("title", request.title, TITLE_MAX)
            updates["title"] = request.title
        if request.description is not None:
            _check_length("description", request.description, DESCRIPTION_MAX)
            updates["description"] = request.description
        if request.location_tag is not None:
            _check_location_tag(request.location_tag)
            updates["location_tag"] = request.location_tag
        if request.steps is not None:
            updates["steps"] = _build_steps(request.steps)
        updates["updated_at"] = utcnow()

        if ctx.dry_run:
            preview = dataclasses.replace(template, **updates)
            return OperationResult.ok(
                _to_detail(preview, dry_run=True),
                elapsed_ms=timer.elapsed_ms,
            )

        with LogContext(request_id=ctx.request_id, user_id=user_id):
            repo.update(template_id, updates)
            logger.info("template_updated", template_id=template_id, fields=sorted(updates))

        updated = repo.get_by_id(template_id)
        if updated is None:
            raise NotFoundError(f"Template '{template_id}' was deleted during update")
        return OperationResult.ok(_to_detail(updated), elapsed_ms=timer.elapsed_ms)
    except GuideError as exc:
        logger.info("op_rejected", **exc.to_dict())
        return OperationResult.from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.internal("update template", exc, elapsed_ms=timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Converters
# ------------------------------------------------------------------ #


def _to_detail(template: Template, *, dry_run: bool = False) -> TemplateDetail:
    return TemplateDetail(
        id=template.id,
        title=template.title,
        description=template.description,
        location_tag=template.location_tag,
        steps=[
            StepView(title=s.title, description=s.description, order=s.order)
            for s in template.ordered_steps()
        ],
        created_by=template.created_by,
        is_official=template.is_official,
        parent_id=template.parent_id,
        created_at=template.created_at.isoformat() if template.created_at else None,
        updated_at=template.updated_at.isoformat() if template.updated_at else None,
        dry_run=dry_run,
    )


def _to_summary(template: Template) -> TemplateSummary:
    return TemplateSummary(
        id=template.id,
        title=template.title,
        location_tag=template.location_tag,
        step_count=len(template.steps),
        is_official=template.is_official,
        created_by=template.created_by,
        created_at=template.created_at.isoformat() if template.created_at else None,
    )
