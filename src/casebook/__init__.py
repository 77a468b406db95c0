"""
casebook: backend core of the test-case management application.

- casebook.core: errors, logging, settings, connections, migration runner
- casebook.ops: transport-agnostic operations
- casebook.api: FastAPI application
- casebook.cli: Typer command line
"""

__version__ = "0.1.0"
