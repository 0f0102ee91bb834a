"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from entityctl.output.console import create_console, get_output, style_for_field_type

if TYPE_CHECKING:
    from rich.console import Console

    from entityctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    # List results print one identifier per line
    items = result.data.get("items")
    if isinstance(items, list):
        return "\n".join(_extract_key(item) for item in items if _extract_key(item))

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_key(item: Any) -> str:
    """Records print their id, definitions their name."""
    if not isinstance(item, dict):
        return ""
    key = "name" if "table_name" in item else "id"
    val = item.get(key)
    return str(val) if val is not None else ""


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="ent.ok")
    op = Text(f"  {result.op}", style="ent.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="ent.key")
    if key == "id":
        v = Text(_cell(value), style="ent.id")
    elif key in ("name", "entity_type"):
        v = Text(_cell(value), style="ent.name")
    else:
        v = Text(_cell(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(Text(f"    {k}: {_cell(v)}"))


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

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {escape(str(name))}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        extras = ", ".join(f"{k}={_cell(v)}" for k, v in annotations.items())
        line += f"  ({escape(extras)})"

    console.print(line, markup=True)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _fields_table(fields: list[dict[str, Any]]) -> Table:
    """Build a Rich Table describing an entity's field list."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Field", style="ent.field", no_wrap=True)
    table.add_column("Type")
    table.add_column("Required")
    table.add_column("Constraints", style="dim")

    for f in fields:
        ftype = str(f.get("type", ""))
        constraints = [
            f"{key}={_cell(f[key])}"
            for key in ("minLength", "maxLength", "pattern", "min", "max", "defaultValue", "unique")
            if key in f
        ]
        table.add_row(
            Text(str(f.get("name", ""))),
            Text(ftype, style=style_for_field_type(ftype)),
            "yes" if f.get("required") else "",
            Text(", ".join(constraints)),
        )
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="ent.error")
    op = Text(f"  {result.op}", style="ent.op")
    sep = Text(" — ")
    console.print(label, op, sep, Text(msg))

    if err is None:
        return

    # Per-field validation errors are always shown; they are the actionable part.
    for item in err.detail.get("errors", []):
        console.print(
            Text("  "),
            Text(str(item.get("field", "")), style="ent.field"),
            Text(f": {item.get('message', '')}"),
        )

    if verbose and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {_cell(v)}"))


# ── Definition renderers ──────────────────────────────────────────────


def _render_definition(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render define/get/update entity results as a panel with a fields table."""
    _status_line(console, result)
    d = result.data
    for key in ("id", "name", "table_name", "scope_id"):
        if key in d:
            _field(console, key, d[key])
    if verbose:
        _field(console, "created_at", d.get("created_at"))
        _field(console, "updated_at", d.get("updated_at"))

    fields = d.get("fields", [])
    if fields:
        console.print(Panel(_fields_table(fields), title="fields", expand=False))
    if verbose:
        _render_meta(console, result)


def _render_definition_list(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Name", style="ent.name", no_wrap=True)
    table.add_column("Table")
    table.add_column("Fields", justify="right")
    if verbose:
        table.add_column("Updated", style="dim")

    for item in items:
        row = [
            Text(str(item.get("name", ""))),
            Text(str(item.get("table_name", ""))),
            str(len(item.get("fields", []))),
        ]
        if verbose:
            row.append(str(item.get("updated_at", "")))
        table.add_row(*row)

    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} entities")


# ── Record renderers ──────────────────────────────────────────────────


def _render_record(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a single record: identity lines followed by its data fields."""
    _status_line(console, result)
    d = result.data
    for key in ("id", "entity_type"):
        if key in d:
            _field(console, key, d[key])
    if "fields_changed" in d:
        _field(console, "fields_changed", ", ".join(d["fields_changed"]) or "(none)")
    if verbose:
        _field(console, "created_at", d.get("created_at"))
        _field(console, "updated_at", d.get("updated_at"))

    data = d.get("data") or {}
    if data:
        console.print()
        for key, value in data.items():
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


def _render_record_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render list_records as a table with one column per data key seen."""
    items: list[dict[str, Any]] = result.data.get("items", [])
    columns: list[str] = []
    for item in items:
        for key in item.get("data") or {}:
            if key not in columns:
                columns.append(key)

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="ent.id", no_wrap=True)
    for col in columns:
        table.add_column(Text(col))
    if verbose:
        table.add_column("Created", style="dim")

    for item in items:
        data = item.get("data") or {}
        row = [Text(str(item.get("id", "")))]
        row.extend(Text(_cell(data.get(col))) for col in columns)
        if verbose:
            row.append(Text(str(item.get("created_at", ""))))
        table.add_row(*row)

    console.print(table)
    console.print(_pagination_summary(result.meta or {}, len(items)))
    if verbose:
        _render_meta(console, result)


def _pagination_summary(meta: dict[str, Any], shown: int) -> str:
    total = meta.get("total", shown)
    if "page" in meta:
        return f"\n{shown} of {total} records (page {meta['page']} of {meta.get('totalPages', 0)})"
    return f"\n{total} records"


def _render_deleted(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key in ("id", "name", "entity_type", "records_deleted"):
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose:
        _render_meta(console, result)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Definitions
    "define_entity": _render_definition,
    "get_entity": _render_definition,
    "update_entity": _render_definition,
    "list_entities": _render_definition_list,
    "delete_entity": _render_deleted,
    # Records
    "create_record": _render_record,
    "get_record": _render_record,
    "update_record": _render_record,
    "list_records": _render_record_table,
    "delete_record": _render_deleted,
}
