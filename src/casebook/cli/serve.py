"""
CLI: ``casebook serve``: start the API server.
"""

from __future__ import annotations

import typer
import uvicorn

from casebook.cli.utils import console

app = typer.Typer(no_args_is_help=True)


@app.command("start")
def start(
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Bind address"),
    port: int = typer.Option(3001, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    log_level: str = typer.Option("info", "--log-level"),
) -> None:
    """Start the casebook REST API server (migrates on startup)."""
    console.print(f"[bold green]Starting casebook API[/bold green] on {host}:{port}")
    uvicorn.run(
        "casebook.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )
