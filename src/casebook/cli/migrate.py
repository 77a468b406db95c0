"""
CLI: ``casebook migrate``: schema migration commands.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from casebook.cli.utils import (
    console,
    fail,
    load_settings,
    make_context,
    print_json,
    print_names,
    resolve_migrations_dir,
)
from casebook.ops.migrations import check_migration_status, run_migrations
from casebook.ops.requests import MigrationStatusRequest, RunMigrationsRequest

app = typer.Typer(no_args_is_help=True)

DatabaseOption = typer.Option(None, "--database", "-d", help="Database URL or SQLite path")
DirOption = typer.Option(None, "--dir", help="Directory holding *.sql migrations")
JsonOption = typer.Option(False, "--json", help="JSON output")


@app.command()
def status(
    database: str | None = DatabaseOption,
    directory: Path | None = DirOption,
    json_out: bool = JsonOption,
) -> None:
    """Show applied and pending migrations."""
    ctx, conn = make_context(database)
    try:
        result = check_migration_status(
            ctx,
            MigrationStatusRequest(
                migrations_dir=resolve_migrations_dir(directory),
                table=load_settings().migrations_table,
            ),
        )
    finally:
        conn.close()

    if not result.success:
        fail(result)

    data = result.data
    if json_out:
        print_json(data.to_dict())
        return

    table = Table(title="Migration Status", pad_edge=False)
    table.add_column("migration", overflow="fold")
    table.add_column("state")
    for name in data.applied:
        table.add_row(name, "[green]applied[/green]")
    for name in data.pending:
        table.add_row(name, "[yellow]pending[/yellow]")
    console.print(table)
    console.print(
        f"\n[bold]{data.total}[/bold] files, "
        f"[green]{data.applied_count}[/green] applied, "
        f"[yellow]{data.pending_count}[/yellow] pending"
    )


@app.command()
def pending(
    database: str | None = DatabaseOption,
    directory: Path | None = DirOption,
    json_out: bool = JsonOption,
) -> None:
    """List migrations not yet applied, in apply order."""
    ctx, conn = make_context(database)
    try:
        result = check_migration_status(
            ctx,
            MigrationStatusRequest(
                migrations_dir=resolve_migrations_dir(directory),
                table=load_settings().migrations_table,
            ),
        )
    finally:
        conn.close()

    if not result.success:
        fail(result)

    if json_out:
        print_json(result.data.pending)
        return
    print_names(result.data.pending, title="Pending Migrations", empty="Database is up to date.")


@app.command()
def run(
    database: str | None = DatabaseOption,
    directory: Path | None = DirOption,
    dry_run: bool = typer.Option(False, "--dry-run", help="List what would be applied"),
    json_out: bool = JsonOption,
) -> None:
    """Apply all pending migrations."""
    settings = load_settings()
    ctx, conn = make_context(database, dry_run=dry_run)
    try:
        result = run_migrations(
            ctx,
            RunMigrationsRequest(
                migrations_dir=resolve_migrations_dir(directory),
                table=settings.migrations_table,
                statement_timeout=settings.migration_statement_timeout,
                lock_timeout=settings.migration_lock_timeout,
            ),
        )
    finally:
        conn.close()

    if not result.success:
        fail(result)

    if dry_run:
        names = result.metadata.get("pending", [])
        if json_out:
            print_json({"dry_run": True, "pending": names})
            return
        print_names(names, title="Would Apply", empty="Nothing to apply.")
        return

    summary = result.data
    if json_out:
        print_json({"message": "Migrations completed", "result": summary.to_dict()})
        return
    for name in summary.applied:
        console.print(f"  [green]✓[/green] {name}")
    console.print(
        f"[bold green]Migrations completed[/bold green]: "
        f"{summary.applied_count} applied, {summary.failed_count} failed"
    )
