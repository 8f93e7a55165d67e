"""
Shared CLI plumbing: opening the database, building the operation
context and printing results with rich.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, is_dataclass
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rookie_guide.api.settings import GuideAPISettings
from rookie_guide.core.connection import create_connection
from rookie_guide.ops.context import OperationContext
from rookie_guide.ops.result import OperationResult

console = Console()
err_console = Console(stderr=True)

DATABASE_OPTION_HELP = "Database path or sqlite:/// URL (default: GUIDE_DATABASE_URL)"
USER_OPTION_HELP = "Acting user id (or set GUIDE_USER)"


# ── Connection helper ────────────────────────────────────────────────────


def get_connection(database: str | None = None, *, init_schema: bool = True) -> Any:
    """Open a database connection, applying pending migrations by default.

    Falls back to the ``GUIDE_DATABASE_URL`` / ``GUIDE_DATA_DIR`` settings
    when *database* is not given.
    """
    settings = GuideAPISettings()
    conn, _info = create_connection(
        database or settings.database_url,
        init_schema=init_schema,
        data_dir=None if database else settings.data_dir,
    )
    return conn


@contextmanager
def make_context(
    database: str | None = None,
    *,
    user: str | None = None,
    dry_run: bool = False,
    init_schema: bool = True,
) -> Iterator[OperationContext]:
    """``OperationContext`` for one CLI command; the connection closes on exit.

        with make_context(database, user=user) as ctx:
            result = get_checklist(ctx, checklist_id)
    """
    conn = get_connection(database, init_schema=init_schema)
    try:
        yield OperationContext(conn=conn, caller="cli", user=user or None, dry_run=dry_run)
    finally:
        conn.close()


# ── Output helpers ───────────────────────────────────────────────────────


def as_plain(obj: Any) -> Any:
    """Dataclasses and pydantic models become dicts; anything else passes through."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    return obj


def fail_if_error(result: OperationResult) -> None:
    """Exit with status 1, printing ``Error (CODE): message``, unless *result* succeeded."""
    if result.success:
        return
    code, message = ("ERROR", "Unknown error") if result.error is None else (
        result.error.code,
        result.error.message,
    )
    err_console.print(f"[bold red]Error[/bold red] ({code}): {escape(message)}")
    raise typer.Exit(code=1)


def print_json(data: Any) -> None:
    if isinstance(data, list | tuple):
        payload = [as_plain(item) for item in data]
    else:
        payload = as_plain(data)
    console.print_json(json.dumps(payload, default=str, ensure_ascii=False))


def output_result(result: OperationResult, *, as_json: bool = False, title: str = "") -> None:
    """Print a successful result as JSON, a table (lists) or key/value lines."""
    fail_if_error(result)
    if as_json:
        print_json(result.data)
    elif isinstance(result.data, list):
        _print_rows([as_plain(item) for item in result.data], title)
    else:
        _print_fields(as_plain(result.data), title)


def _print_rows(rows: list[dict[str, Any]], title: str) -> None:
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, pad_edge=False)
    for column in rows[0]:
        table.add_column(column, overflow="fold")
    for row in rows:
        table.add_row(*(escape(str(value)) for value in row.values()))
    console.print(table)


def _print_fields(fields: Any, title: str) -> None:
    if title:
        console.print(f"[bold]{escape(title)}[/bold]")
    if not isinstance(fields, dict):
        console.print(f"  {escape(str(fields))}")
        return
    for key, value in fields.items():
        console.print(f"  [cyan]{key}[/cyan]: {escape(str(value))}")
