"""
Operations layer: transport-agnostic entry points.

API routes, the startup hook and CLI commands call these functions instead of
driving ``casebook.core`` directly. Each takes an :class:`OperationContext`
and a typed request, and returns an :class:`OperationResult`.

Modules:
    context     Request-scoped context (connection, caller, dry_run)
    result      OperationResult envelope + timer
    requests    Input dataclasses
    migrations  check_migration_status / run_migrations
"""

from casebook.ops.context import OperationContext
from casebook.ops.result import OperationError, OperationResult

__all__ = ["OperationContext", "OperationError", "OperationResult"]
