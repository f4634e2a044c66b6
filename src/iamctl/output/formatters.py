"""Rich/JSON output helpers.

The CLI renders a Result for humans (Rich tables and fields) or machines
(--json). Hashed secrets never leave the process in either mode.
"""

from __future__ import annotations

import json as _json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from iamctl.services.result import Result

SECRET_FIELDS: frozenset[str] = frozenset({"password", "client_secret"})


@dataclass(frozen=True)
class OutputSettings:
    """Output mode flags taken from the global CLI options."""

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def scrub(value: Any) -> Any:
    """Drop secret fields from a dumped payload, recursively."""
    if isinstance(value, dict):
        return {k: scrub(v) for k, v in value.items() if k not in SECRET_FIELDS}
    if isinstance(value, list):
        return [scrub(v) for v in value]
    return value


def result_payload(result: Result[Any]) -> dict[str, Any]:
    """JSON-ready dict of *result* with secrets removed."""
    payload: dict[str, Any] = scrub(result.model_dump(mode="json"))
    payload["ok"] = result.ok
    payload["status"] = result.status
    return payload


def format_result(result: Result[Any], *, settings: OutputSettings | None = None) -> str:
    """Format a Result for display.

    Args:
        result: The service result to format.
        settings: Output mode; defaults to human-readable.
    """
    settings = settings or OutputSettings()
    if settings.json_output:
        return _json.dumps(result_payload(result), indent=2)

    from iamctl.output.renderers import render_quiet, render_result

    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
