"""
Root Typer application for the ``rookie-guide`` CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

app = Typer(
    name="rookie-guide",
    help="rookie-guide: life-guide templates and personal checklists.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from rookie_guide import __version__

        typer.echo(f"rookie-guide {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option("WARNING", "--log-level", envvar="GUIDE_LOG_LEVEL", help="Log level"),
) -> None:
    """rookie-guide CLI: manage templates, checklists and the database."""
    from rookie_guide.core.logging import configure_logging

    configure_logging(level=log_level, json_format=False, service="rookie-guide-cli")


# ── Sub-command registration ─────────────────────────────────────────────

from rookie_guide.cli.checklists import app as checklists_app  # noqa: E402
from rookie_guide.cli.db import app as db_app  # noqa: E402
from rookie_guide.cli.serve import serve  # noqa: E402
from rookie_guide.cli.templates import app as templates_app  # noqa: E402

app.add_typer(db_app, name="db", help="Database operations.")
app.add_typer(templates_app, name="templates", help="Browse and author templates.")
app.add_typer(checklists_app, name="checklists", help="Fork templates and track progress.")
app.command("serve")(serve)
