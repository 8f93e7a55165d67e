"""
CLI: ``rookie-guide templates``: browse and author templates.
"""

from __future__ import annotations

import typer
from rich.markup import escape
from rich.table import Table

from rookie_guide.cli.utils import (
    DATABASE_OPTION_HELP,
    USER_OPTION_HELP,
    console,
    fail_if_error,
    make_context,
    output_result,
    print_json,
)

app = typer.Typer(no_args_is_help=True)


def _parse_step(raw: str, position: int):
    """``"Title"`` or ``"Title::Description"`` → :class:`StepInput`."""
    from rookie_guide.ops.requests import StepInput

    title, sep, description = raw.partition("::")
    return StepInput(
        title=title.strip(),
        description=description.strip() if sep and description.strip() else None,
        order=position,
    )


@app.command("list")
def list_cmd(
    location: str | None = typer.Option(None, "--location", "-l", help="Filter by location tag"),
    database: str | None = typer.Option(None, "--database", "-d", help=DATABASE_OPTION_HELP),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """List templates, newest first."""
    from rookie_guide.ops.requests import ListTemplatesRequest
    from rookie_guide.ops.templates import list_templates

    with make_context(database) as ctx:
        result = list_templates(ctx, ListTemplatesRequest(location_tag=location))
    output_result(result, as_json=json_out, title="Templates")


@app.command("show")
def show(
    template_id: str = typer.Argument(..., help="Template ID"),
    database: str | None = typer.Option(None, "--database", "-d", help=DATABASE_OPTION_HELP),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show a template and its steps."""
    from rookie_guide.ops.templates import get_template

    with make_context(database) as ctx:
        result = get_template(ctx, template_id)
    fail_if_error(result)
    detail = result.data

    if json_out:
        print_json(detail)
        return

    console.print(f"[bold]{escape(detail.title)}[/bold]  [dim]{detail.id}[/dim]")
    console.print(f"  [cyan]location[/cyan]: {detail.location_tag}")
    console.print(f"  [cyan]created_by[/cyan]: {escape(detail.created_by)}")
    console.print(f"  {escape(detail.description)}")
    table = Table(show_lines=False, pad_edge=False)
    table.add_column("order", justify="right")
    table.add_column("title", overflow="fold")
    table.add_column("description", overflow="fold")
    for step in detail.steps:
        table.add_row(str(step.order), escape(step.title), escape(step.description or ""))
    console.print(table)


@app.command("create")
def create(
    title: str = typer.Option(..., "--title", "-t", help="Template title"),
    description: str = typer.Option(..., "--description", help="Template description"),
    location: str = typer.Option(..., "--location", "-l", help="Location tag (CN, CN-BJ, ...)"),
    steps: list[str] = typer.Option(
        ..., "--step", "-s", help="Step as 'Title' or 'Title::Description'; repeat in order"
    ),
    official: bool = typer.Option(False, "--official", help="Mark as an official template"),
    user: str | None = typer.Option(None, "--user", "-u", envvar="GUIDE_USER", help=USER_OPTION_HELP),
    database: str | None = typer.Option(None, "--database", "-d", help=DATABASE_OPTION_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate without storing"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Create a template."""
    from rookie_guide.ops.requests import CreateTemplateRequest
    from rookie_guide.ops.templates import create_template

    request = CreateTemplateRequest(
        title=title,
        description=description,
        location_tag=location,
        steps=[_parse_step(raw, i) for i, raw in enumerate(steps)],
        is_official=official,
    )
    with make_context(database, user=user, dry_run=dry_run) as ctx:
        result = create_template(ctx, request)
    fail_if_error(result)
    if json_out:
        print_json(result.data)
        return
    prefix = "[yellow]Would create[/yellow]" if dry_run else "[green]Created[/green]"
    console.print(f"{prefix} template {result.data.id} ({len(result.data.steps)} steps)")
