"""
CLI: ``rookie-guide checklists``: fork templates and track progress.

All commands act as ``--user`` (or ``GUIDE_USER``).
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
    print_json,
)

app = typer.Typer(no_args_is_help=True)

_USER = typer.Option(None, "--user", "-u", envvar="GUIDE_USER", help=USER_OPTION_HELP)
_DATABASE = typer.Option(None, "--database", "-d", help=DATABASE_OPTION_HELP)
_JSON = typer.Option(False, "--json", help="JSON output")


def _print_checklist(detail) -> None:
    progress = detail.progress
    console.print(f"[bold]{escape(detail.title)}[/bold]  [dim]{detail.id}[/dim]")
    console.print(
        f"  {progress.completed_count}/{progress.total_count} done "
        f"({progress.percentage:.1f}%)"
    )
    table = Table(show_lines=False, pad_edge=False)
    table.add_column("#", justify="right")
    table.add_column("done")
    table.add_column("title", overflow="fold")
    table.add_column("completed_at")
    for step in detail.steps:
        table.add_row(
            str(step.step_index),
            "[green]x[/green]" if step.completed else " ",
            escape(step.title),
            step.completed_at or "",
        )
    console.print(table)


def _set_step(checklist_id, step_index, completed, user, database, dry_run, json_out) -> None:
    from rookie_guide.ops.checklists import update_step
    from rookie_guide.ops.requests import UpdateStepRequest

    request = UpdateStepRequest(checklist_id=checklist_id, step_index=step_index, completed=completed)
    with make_context(database, user=user, dry_run=dry_run) as ctx:
        result = update_step(ctx, request)
    fail_if_error(result)
    if json_out:
        print_json(result.data)
    else:
        _print_checklist(result.data)


@app.command("list")
def list_cmd(
    user: str | None = _USER,
    database: str | None = _DATABASE,
    json_out: bool = _JSON,
) -> None:
    """List your checklists, newest first."""
    from rookie_guide.ops.checklists import list_checklists

    with make_context(database, user=user) as ctx:
        result = list_checklists(ctx)
    fail_if_error(result)

    if json_out:
        print_json(result.data)
        return
    if not result.data:
        console.print("[dim]No items.[/dim]")
        return

    table = Table(title="Checklists", show_lines=False, pad_edge=False)
    table.add_column("id", overflow="fold")
    table.add_column("title", overflow="fold")
    table.add_column("progress", justify="right")
    table.add_column("created_at")
    for item in result.data:
        p = item.progress
        table.add_row(
            item.id,
            escape(item.title),
            f"{p.completed_count}/{p.total_count} ({p.percentage:.0f}%)",
            item.created_at or "",
        )
    console.print(table)


@app.command("show")
def show(
    checklist_id: str = typer.Argument(..., help="Checklist ID"),
    user: str | None = _USER,
    database: str | None = _DATABASE,
    json_out: bool = _JSON,
) -> None:
    """Show one checklist with step status."""
    from rookie_guide.ops.checklists import get_checklist

    with make_context(database, user=user) as ctx:
        result = get_checklist(ctx, checklist_id)
    fail_if_error(result)
    if json_out:
        print_json(result.data)
    else:
        _print_checklist(result.data)


@app.command("fork")
def fork(
    template_id: str = typer.Argument(..., help="Template to copy"),
    user: str | None = _USER,
    database: str | None = _DATABASE,
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without storing"),
    json_out: bool = _JSON,
) -> None:
    """Fork a template into a new checklist."""
    from rookie_guide.ops.checklists import fork_template
    from rookie_guide.ops.requests import ForkTemplateRequest

    with make_context(database, user=user, dry_run=dry_run) as ctx:
        result = fork_template(ctx, ForkTemplateRequest(template_id=template_id))
    fail_if_error(result)
    if json_out:
        print_json(result.data)
    else:
        _print_checklist(result.data)


@app.command("check")
def check(
    checklist_id: str = typer.Argument(..., help="Checklist ID"),
    step_index: int = typer.Argument(..., help="Zero-based step index"),
    user: str | None = _USER,
    database: str | None = _DATABASE,
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without storing"),
    json_out: bool = _JSON,
) -> None:
    """Mark a step complete."""
    _set_step(checklist_id, step_index, True, user, database, dry_run, json_out)


@app.command("uncheck")
def uncheck(
    checklist_id: str = typer.Argument(..., help="Checklist ID"),
    step_index: int = typer.Argument(..., help="Zero-based step index"),
    user: str | None = _USER,
    database: str | None = _DATABASE,
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without storing"),
    json_out: bool = _JSON,
) -> None:
    """Mark a step incomplete."""
    _set_step(checklist_id, step_index, False, user, database, dry_run, json_out)


@app.command("delete")
def delete(
    checklist_id: str = typer.Argument(..., help="Checklist ID"),
    user: str | None = _USER,
    database: str | None = _DATABASE,
    dry_run: bool = typer.Option(False, "--dry-run", help="Check ownership without deleting"),
) -> None:
    """Delete a checklist."""
    from rookie_guide.ops.checklists import delete_checklist

    with make_context(database, user=user, dry_run=dry_run) as ctx:
        result = delete_checklist(ctx, checklist_id)
    fail_if_error(result)
    verb = "[yellow]Would delete[/yellow]" if dry_run else "[green]Deleted[/green]"
    console.print(f"{verb} checklist {escape(checklist_id)}")
