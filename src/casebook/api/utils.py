"""
Shared API router utilities.

- ``_handle_error()``: convert a failed OperationResult to a ``problem_response``
"""

from __future__ import annotations

from fastapi.responses import JSONResponse

from casebook.api.middleware.errors import problem_response, status_for_error_code
from casebook.ops.result import OperationResult


def _handle_error(result: OperationResult, *, title: str, debug: bool = False, instance: str = "") -> JSONResponse:
    """Convert a failed ``OperationResult`` into a Problem Details response.

    The title is always the caller's generic message; the underlying error
    text is exposed in ``detail`` only when *debug* is set.
    """
    error = result.error
    code = error.code if error else "INTERNAL"
    errors = None
    if debug and error is not None:
        failures = error.details.get("failures", {})
        errors = [
            {"code": code, "message": message, "field": name}
            for name, message in failures.items()
        ]
    return problem_response(
        status=status_for_error_code(code),
        title=title,
        detail=error.message if (debug and error) else "",
        instance=instance,
        errors=errors,
    )
