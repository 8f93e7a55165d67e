"""
CLI: ``rookie-guide serve``: start the API server.
"""

from __future__ import annotations

import typer
import uvicorn

from rookie_guide.api.settings import GuideAPISettings
from rookie_guide.cli.utils import console


def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address (default: GUIDE_HOST)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port (default: GUIDE_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    workers: int = typer.Option(1, "--workers", "-w", help="Number of workers"),
    log_level: str | None = typer.Option(None, "--log-level", help="Log level (default: GUIDE_LOG_LEVEL)"),
) -> None:
    """Start the Rookie Guide REST API server."""
    settings = GuideAPISettings()
    host = host or settings.host
    port = port or settings.port
    log_level = (log_level or settings.log_level).lower()

    console.print(f"[bold green]Starting Rookie Guide API[/bold green] on {host}:{port}")
    uvicorn.run(
        "rookie_guide.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=workers,
        log_level=log_level,
    )
