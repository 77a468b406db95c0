"""
CLI utility helpers: output formatting, logging and connection management.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from casebook.core.connection import create_connection
from casebook.core.logging import configure_logging
from casebook.core.settings import CasebookBaseSettings
from casebook.ops.context import OperationContext
from casebook.ops.result import OperationResult

console = Console()
err_console = Console(stderr=True)


# ── Settings / logging ───────────────────────────────────────────────────


def load_settings() -> CasebookBaseSettings:
    return CasebookBaseSettings()


def setup_logging(*, verbose: bool = False) -> None:
    """Route logs to stderr so ``--json`` output on stdout stays parseable."""
    settings = load_settings()
    configure_logging(
        level="DEBUG" if verbose else "WARNING",
        json_format=settings.log_json,
        service="casebook-cli",
        stream=sys.stderr,
    )


# ── Connection helper ────────────────────────────────────────────────────


def make_context(
    database: str | None = None,
    *,
    dry_run: bool = False,
) -> tuple[OperationContext, Any]:
    """Create an ``OperationContext`` + connection pair for CLI commands.

    ``database`` defaults to ``CASEBOOK_DATABASE_URL``.
    """
    settings = load_settings()
    conn, _info = create_connection(database or settings.database_url, data_dir=settings.data_dir)
    ctx = OperationContext(conn=conn, caller="cli", dry_run=dry_run)
    return ctx, conn


def resolve_migrations_dir(directory: Path | None) -> Path:
    return directory if directory is not None else load_settings().migrations_dir


# ── Output helpers ───────────────────────────────────────────────────────


def fail(result: OperationResult) -> None:
    """Print a failed result's error to stderr and exit with code 1."""
    err = result.error
    msg = err.message if err else "Unknown error"
    code = err.code if err else "ERROR"
    err_console.print(f"[bold red]Error[/bold red] ({code}): {msg}")
    if err is not None:
        for name, message in err.details.get("failures", {}).items():
            err_console.print(f"  [red]✗[/red] {name}: {message}")
    raise typer.Exit(code=1)


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str), highlight=False)


def print_names(names: list[str], *, title: str, empty: str = "No items.") -> None:
    """Render a list of names as a one-column Rich table."""
    if not names:
        console.print(f"[dim]{empty}[/dim]")
        return
    table = Table(title=title, show_lines=False, pad_edge=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("migration", overflow="fold")
    for i, name in enumerate(names, 1):
        table.add_row(str(i), name)
    console.print(table)
