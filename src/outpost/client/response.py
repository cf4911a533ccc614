"""Result formatting bridge -- maps check-in results to the output system.

After a check-in completes, :func:`format_result` writes a one-line summary
to stderr and routes the result body through
:meth:`~outpost.output.OutputManager.format_response` so that ``--json`` and
``--plain`` apply.

See Also:
    :mod:`outpost.output` -- the output manager that renders data.
"""

from __future__ import annotations

from typing import Any

from outpost.models import (
    CheckInRateLimited,
    CheckInResult,
    CheckInServerError,
    CheckInSuccess,
    CheckInValidationError,
)
from outpost.output import get_output


def describe_result(result: CheckInResult) -> str:
    """Return a short human-readable description of *result*."""
    if isinstance(result, CheckInSuccess):
        return "Check-in accepted"
    if isinstance(result, CheckInValidationError):
        return "Check-in rejected: the payload failed validation"
    if isinstance(result, CheckInRateLimited):
        return "Check-in rate limited by the endpoint"
    if isinstance(result, CheckInServerError):
        return "Check-in endpoint unavailable"
    raise TypeError(f"Unknown check-in result: {result!r}")


def result_data(result: CheckInResult) -> dict[str, Any]:
    """Serialise *result* for display, tagging errors with their code."""
    data = result.model_dump(mode="json")
    if result.is_error:
        data["error"] = result.error_code
    return data


def format_result(result: CheckInResult) -> None:
    """Format and print a check-in result using the global output system.

    Successful check-ins are reported with :meth:`success`, everything else
    with :meth:`warning`, and the serialised result goes to stdout.
    """
    output = get_output()
    if result.is_error:
        output.warning(describe_result(result))
    else:
        output.success(describe_result(result))
    output.format_response(result_data(result))
