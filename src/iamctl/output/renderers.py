"""Operation-specific Rich renderers for Result.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by the verb of ``result.op`` (``create``,
``list`` ...) in :func:`render_result`. Unknown ops fall through to a
generic key-value renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel
from rich.table import Table
from rich.text import Text

from iamctl.output.console import create_console, get_output
from iamctl.output.formatters import scrub

if TYPE_CHECKING:
    from rich.console import Console

    from iamctl.services.result import Result


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: Result[Any], *, verbose: bool = False) -> str:
    """Render a Result to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        verb = result.op.split("_", 1)[0]
        renderer = _OP_RENDERERS.get(result.op) or _VERB_RENDERERS.get(verb, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: Result[Any]) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        return "\n".join(f"ERROR: {e.code} — {e.message}" for e in result.errors)

    items = _items(result)
    if items is not None:
        return "\n".join(str(item.get("id", "")) for item in items)
    data = _data(result)
    return str(data.get("id", f"OK: {result.op}"))


# ── Helpers ───────────────────────────────────────────────────────────


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return scrub(value.model_dump(mode="json"))
    return scrub(value)


def _data(result: Result[Any]) -> dict[str, Any]:
    """The instance of a single-entity result as a scrubbed dict."""
    dumped = _dump(result.instance)
    return dumped if isinstance(dumped, dict) else {"value": dumped}


def _items(result: Result[Any]) -> list[dict[str, Any]] | None:
    """The instance of a list result as scrubbed dicts, else None."""
    if not isinstance(result.instance, list):
        return None
    return [_dump(item) for item in result.instance]


def _names(members: list[dict[str, Any]]) -> str:
    return ", ".join(str(m.get("name", m.get("id", ""))) for m in members)


def _status_line(console: Console, result: Result[Any]) -> None:
    """Print the OK status line."""
    label = Text("OK", style="iam.ok")
    op = Text(f"  {result.op}", style="iam.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="iam.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="iam.id")
    elif key in ("name", "username"):
        v = Text(str(value), style="iam.name")
    elif key == "locked" and value:
        v = Text(str(value), style="iam.locked")
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: Result[Any]) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    if span_data.get("annotations"):
        extras = [f"{ak}={av}" for ak, av in span_data["annotations"].items()]
        line += f"  ({', '.join(extras)})"

    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _entity_table(items: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    """Build a Rich Table whose columns fit the listed entity kind."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="iam.id", no_wrap=True)

    sample = items[0] if items else {}
    if "client_id" in sample:
        table.add_column("Client ID", style="iam.name")
        table.add_column("Grant Types")
        table.add_column("Scopes")
    elif "username" in sample:
        table.add_column("Username", style="iam.name")
        table.add_column("Locked")
        table.add_column("Roles")
    else:
        table.add_column("Name", style="iam.name")
        table.add_column("Description")
    if verbose:
        table.add_column("Updated", style="dim")

    for item in items:
        row: list[str] = [str(item.get("id", ""))]
        if "client_id" in item:
            row += [
                str(item.get("client_id", "")),
                _names(item.get("grant_types", [])),
                _names(item.get("scopes", [])),
            ]
        elif "username" in item:
            row += [
                str(item.get("username", "")),
                "yes" if item.get("locked") else "no",
                _names(item.get("roles", [])),
            ]
        else:
            row += [str(item.get("name", "")), str(item.get("description") or "")]
        if verbose:
            row.append(str(item.get("updated", "")))
        table.add_row(*row)

    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: Result[Any], console: Console, *, verbose: bool = False) -> None:
    label = Text("ERROR", style="iam.error")
    op = Text(f"  {result.op}", style="iam.op")
    console.print(label, op, Text(f"  ({result.status})", style="dim"))
    for err in result.errors:
        console.print(Text(f"  {err.code} ", style="iam.code"), err.message)
        if verbose and err.detail:
            for k, v in err.detail.items():
                console.print(f"      {k}: {v}")


# ── Success renderers ─────────────────────────────────────────────────

_SUMMARY_KEYS = (
    "id",
    "name",
    "username",
    "client_id",
    "description",
    "locked",
    "access_token_validity_seconds",
    "refresh_token_validity_seconds",
)
_EMBEDDED_KEYS = ("roles", "scopes", "grant_types", "authorities", "audiences")


def _render_entity(result: Result[Any], console: Console, *, verbose: bool = False) -> None:
    """Render create/update/delete/find results as key-value fields."""
    _status_line(console, result)
    data = _data(result)
    for key in _SUMMARY_KEYS:
        if data.get(key) is not None:
            _field(console, key, data[key])
    for key in _EMBEDDED_KEYS:
        if key in data:
            _field(console, key, _names(data[key]) or "-")
    if verbose:
        for key in ("created", "updated"):
            if data.get(key):
                _field(console, key, data[key])
    if verbose:
        _render_meta(console, result)


def _render_list(result: Result[Any], console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    items = _items(result) or []
    if not items:
        console.print(Text("  (none)", style="dim"))
    else:
        console.print(_entity_table(items, verbose=verbose))
    if verbose:
        _render_meta(console, result)


def _render_init(result: Result[Any], console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in _data(result).items():
        _field(console, key, value)


def _render_generic(result: Result[Any], console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    items = _items(result)
    if items is not None:
        console.print(_entity_table(items, verbose=verbose))
    else:
        for key, value in _data(result).items():
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


_VERB_RENDERERS: dict[str, Any] = {
    "create": _render_entity,
    "update": _render_entity,
    "delete": _render_entity,
    "find": _render_entity,
    "authenticate": _render_entity,
    "list": _render_list,
}

_OP_RENDERERS: dict[str, Any] = {
    "init": _render_init,
}
