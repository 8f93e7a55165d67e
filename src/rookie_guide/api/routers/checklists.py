"""
Checklists router: fork templates and track step progress.

Endpoints:
    GET    /checklists              List the caller's checklists
    POST   /checklists              Fork a template (201)
    GET    /checklists/{id}         Get one checklist with progress
    PUT    /checklists/{id}/steps   Mark a step complete / incomplete
    DELETE /checklists/{id}         Delete a checklist (204)

Every endpoint acts on behalf of the ``X-User-ID`` caller and answers
401 without it, 403 for someone else's checklist.
"""

from __future__ import annotations

from fastapi import APIRouter, Path, Query, Request, Response
from pydantic import BaseModel, Field, StrictBool, StrictInt

from rookie_guide.api.deps import OpContext
from rookie_guide.api.schemas.common import SuccessResponse
from rookie_guide.api.utils import _handle_error, _ok

router = APIRouter(prefix="/checklists")


# ------------------------------------------------------------------ #
# Pydantic Schemas
# ------------------------------------------------------------------ #


class ProgressSchema(BaseModel):
    """Completion counters."""

    completed_count: int
    total_count: int
    percentage: float


class ChecklistStepSchema(BaseModel):
    """A checklist step with its completion state."""

    step_index: int
    title: str
    description: str | None = None
    order: int
    completed: bool
    completed_at: str | None = None


class ChecklistSchema(BaseModel):
    """Full checklist representation."""

    id: str
    user_id: str
    source_template_id: str
    title: str
    steps: list[ChecklistStepSchema]
    progress: ProgressSchema
    created_at: str | None = None
    updated_at: str | None = None
    dry_run: bool = False


class ChecklistSummarySchema(BaseModel):
    """Checklist list entry."""

    id: str
    source_template_id: str
    title: str
    progress: ProgressSchema
    created_at: str | None = None
    updated_at: str | None = None


class ForkRequest(BaseModel):
    """Request body for forking a template."""

    template_id: str = Field(..., description="Template to copy")


class StepUpdateRequest(BaseModel):
    """Request body for updating one step."""

    step_index: StrictInt = Field(..., description="Zero-based step index")
    completed: StrictBool = Field(..., description="New completion state")


# ------------------------------------------------------------------ #
# Endpoints
# ------------------------------------------------------------------ #


@router.get("", response_model=SuccessResponse[list[ChecklistSummarySchema]])
def list_checklists(request: Request, ctx: OpContext):
    """List the caller's checklists, newest first, with progress."""
    from rookie_guide.ops.checklists import list_checklists as _list

    result = _list(ctx)
    if not result.success:
        return _handle_error(result, request)
    return _ok(result)


@router.post("", status_code=201, response_model=SuccessResponse[ChecklistSchema])
def fork_template(
    request: Request,
    ctx: OpContext,
    body: ForkRequest,
    dry_run: bool = Query(False, description="Preview without storing"),
):
    """Fork a template into a new checklist owned by the caller."""
    from rookie_guide.ops.checklists import fork_template as _fork
    from rookie_guide.ops.requests import ForkTemplateRequest

    ctx.dry_run = dry_run
    result = _fork(ctx, ForkTemplateRequest(template_id=body.template_id))
    if not result.success:
        return _handle_error(result, request)
    return _ok(result)


@router.get("/{checklist_id}", response_model=SuccessResponse[ChecklistSchema])
def get_checklist(
    request: Request,
    ctx: OpContext,
    checklist_id: str = Path(..., description="Checklist ID"),
):
    """Get one of the caller's checklists."""
    from rookie_guide.ops.checklists import get_checklist as _get

    result = _get(ctx, checklist_id)
    if not result.success:
        return _handle_error(result, request)
    return _ok(result)


@router.put("/{checklist_id}/steps", response_model=SuccessResponse[ChecklistSchema])
def update_step(
    request: Request,
    ctx: OpContext,
    body: StepUpdateRequest,
    checklist_id: str = Path(..., description="Checklist ID"),
    dry_run: bool = Query(False, description="Preview without storing"),
):
    """Mark a step complete or incomplete.

    Repeating the same update is a no-op and returns the unchanged state.
    """
    from rookie_guide.ops.checklists import update_step as _update
    from rookie_guide.ops.requests import UpdateStepRequest

    ctx.dry_run = dry_run
    result = _update(
        ctx,
        UpdateStepRequest(
            checklist_id=checklist_id,
            step_index=body.step_index,
            completed=body.completed,
        ),
    )
    if not result.success:
        return _handle_error(result, request)
    return _ok(result)


@router.delete("/{checklist_id}", status_code=204, response_class=Response)
def delete_checklist(
    request: Request,
    ctx: OpContext,
    checklist_id: str = Path(..., description="Checklist ID"),
):
    """Delete one of the caller's checklists."""
    from rookie_guide.ops.checklists import delete_checklist as _delete

    result = _delete(ctx, checklist_id)
    if not result.success:
        return _handle_error(result, request)
    return Response(status_code=204)
