"""
Root Typer application for the casebook CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from casebook.cli.utils import setup_logging

app = Typer(
    name="casebook",
    help="casebook: schema migrations and API server for the test-case manager.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("casebook")
        except PackageNotFoundError:
            from casebook import __version__ as v
        typer.echo(f"casebook {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level to stderr."),
) -> None:
    """casebook CLI: apply and inspect database migrations."""
    setup_logging(verbose=verbose)


# ── Sub-command registration ─────────────────────────────────────────────

from casebook.cli.migrate import app as migrate_app  # noqa: E402
from casebook.cli.serve import app as serve_app  # noqa: E402

app.add_typer(migrate_app, name="migrate", help="Schema migrations.")
app.add_typer(serve_app, name="serve", help="API server.")
