"""
Templates router: browse and author guide templates.

Endpoints:
    GET   /templates        List templates (optional ?location_tag=)
    POST  /templates        Create a template (201, needs X-User-ID)
    GET   /templates/{id}   Get one template with its steps
    PATCH /templates/{id}   Update a template you created (needs X-User-ID)

Length, location and step-order rules are enforced by the operations
layer so the API and CLI reject the same inputs the same way.
"""

from __future__ import annotations

from fastapi import APIRouter, Path, Query, Request
from pydantic import BaseModel, Field

from rookie_guide.api.deps import OpContext
from rookie_guide.api.schemas.common import SuccessResponse
from rookie_guide.api.utils import _handle_error, _ok

router = APIRouter(prefix="/templates")


# ------------------------------------------------------------------ #
# Pydantic Schemas
# ------------------------------------------------------------------ #


class StepSchema(BaseModel):
    """A template step."""

    title: str
    description: str | None = None
    order: int


class TemplateSummarySchema(BaseModel):
    """Template list entry."""

    id: str
    title: str
    location_tag: str
    step_count: int
    is_official: bool = False
    created_by: str
    created_at: str | None = None


class TemplateSchema(BaseModel):
    """Full template representation."""

    id: str
    title: str
    description: str
    location_tag: str
    steps: list[StepSchema]
    created_by: str
    is_official: bool = False
    parent_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    dry_run: bool = False


class StepInputSchema(BaseModel):
    """A step in a create/update body. ``order`` defaults to list position."""

    title: str = Field(..., description="Step title (1-500 characters)")
    description: str | None = Field(default=None, description="Optional details")
    order: int | None = Field(default=None, description="Position, unique and contiguous from 0")


class TemplateCreateRequest(BaseModel):
    """Request body for creating a template."""

    title: str = Field(..., description="Title (1-200 characters)")
    description: str = Field(..., description="Description (1-2000 characters)")
    location_tag: str = Field(..., description="One of CN, CN-BJ, CN-SH, CN-GZ, CN-SZ")
    steps: list[StepInputSchema] = Field(..., description="At least one step")
    parent_id: str | None = Field(default=None, description="Template this one derives from")
    is_official: bool = Field(default=False, description="Curated by the service operators")


class TemplateUpdateRequest(BaseModel):
    """Request body for updating a template. Omitted fields stay unchanged."""

    title: str | None = None
    description: str | None = None
    location_tag: str | None = None
    steps: list[StepInputSchema] | None = None


def _step_inputs(steps: list[StepInputSchema] | None):
    from rookie_guide.ops.requests import StepInput

    if steps is None:
        return None
    return [StepInput(title=s.title, description=s.description, order=s.order) for s in steps]


# ------------------------------------------------------------------ #
# Endpoints
# ------------------------------------------------------------------ #


@router.get("", response_model=SuccessResponse[list[TemplateSummarySchema]])
def list_templates(
    request: Request,
    ctx: OpContext,
    location_tag: str | None = Query(None, description="Filter by location tag"),
):
    """List templates, newest first."""
    from rookie_guide.ops.requests import ListTemplatesRequest
    from rookie_guide.ops.templates import list_templates as _list

    result = _list(ctx, ListTemplatesRequest(location_tag=location_tag))
    if not result.success:
        return _handle_error(result, request)
    return _ok(result)


@router.post("", status_code=201, response_model=SuccessResponse[TemplateSchema])
def create_template(
    request: Request,
    ctx: OpContext,
    body: TemplateCreateRequest,
    dry_run: bool = Query(False, description="Validate without storing"),
):
    """Create a template authored by the caller."""
    from rookie_guide.ops.requests import CreateTemplateRequest
    from rookie_guide.ops.templates import create_template as _create

    ctx.dry_run = dry_run
    result = _create(
        ctx,
        CreateTemplateRequest(
            title=body.title,
            description=body.description,
            location_tag=body.location_tag,
            steps=_step_inputs(body.steps),
            parent_id=body.parent_id,
            is_official=body.is_official,
        ),
    )
    if not result.success:
        return _handle_error(result, request)
    return _ok(result)


@router.get("/{template_id}", response_model=SuccessResponse[TemplateSchema])
def get_template(
    request: Request,
    ctx: OpContext,
    template_id: str = Path(..., description="Template ID"),
):
    """Get one template with its ordered steps."""
    from rookie_guide.ops.templates import get_template as _get

    result = _get(ctx, template_id)
    if not result.success:
        return _handle_error(result, request)
    return _ok(result)


@router.patch("/{template_id}", response_model=SuccessResponse[TemplateSchema])
def update_template(
    request: Request,
    ctx: OpContext,
    body: TemplateUpdateRequest,
    template_id: str = Path(..., description="Template ID"),
    dry_run: bool = Query(False, description="Validate without storing"),
):
    """Update a template the caller created.

    Checklists already forked from it are not affected.
    """
    from rookie_guide.ops.requests import UpdateTemplateRequest
    from rookie_guide.ops.templates import update_template as _update

    ctx.dry_run = dry_run
    result = _update(
        ctx,
        template_id,
        UpdateTemplateRequest(
            title=body.title,
            description=body.description,
            location_tag=body.location_tag,
            steps=_step_inputs(body.steps),
        ),
    )
    if not result.success:
        return _handle_error(result, request)
    return _ok(result)
