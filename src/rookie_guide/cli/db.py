"""
CLI: ``rookie-guide db``: database management commands.
"""

from __future__ import annotations

import typer

from rookie_guide.cli.utils import DATABASE_OPTION_HELP, make_context, output_result

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help=DATABASE_OPTION_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help="List pending migrations only"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Apply pending schema migrations."""
    from rookie_guide.ops.database import initialize_database

    with make_context(database, dry_run=dry_run, init_schema=False) as ctx:
        result = initialize_database(ctx)
    output_result(result, as_json=json_out, title="Database Init")


@app.command()
def status(
    database: str | None = typer.Option(None, "--database", "-d", help=DATABASE_OPTION_HELP),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show applied and pending migrations."""
    from rookie_guide.ops.database import migration_status

    with make_context(database, init_schema=False) as ctx:
        result = migration_status(ctx)
    output_result(result, as_json=json_out, title="Migrations")
