"""
CLI layer for casebook.

Provides a Typer application whose sub-commands delegate to the operations
layer (``casebook.ops``). This package handles only terminal transport:
argument parsing, coloured output and table formatting.

Entry point::

    casebook --help
"""

from casebook.cli.app import app

__all__ = ["app"]
