"""Operation-specific Rich renderers for CommandResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from layergrid.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from layergrid.undo.result import CommandResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: CommandResult, *, verbose: bool = False) -> str:
    """Render a CommandResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)
    _render_warnings(result, console)

    return get_output(console).rstrip("\n")


def render_quiet(result: CommandResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    if result.op == "session":
        return " ".join(layer["id"] for layer in result.data["document"]["layers"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: CommandResult) -> None:
    label = Text("OK", style="lg.ok")
    op = Text(f"  {result.op}", style="lg.op")
    console.print(label, op, sep="")


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="lg.key")
    if key.endswith("_id") or key == "layer_ids":
        v = Text(str(value), style="lg.id")
    elif key.endswith("_count") or key == "cells":
        v = Text(str(value), style="lg.count")
    else:
        v = Text(str(value))
    console.print(k, v, sep="")


def _render_warnings(result: CommandResult, console: Console) -> None:
    for warning in result.warnings:
        console.print(Text("  WARNING ", style="lg.warning"), warning)


def _render_error(result: CommandResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="lg.error")
    op = Text(f"  {result.op}", style="lg.op")
    code = Text(f" [{err.code}]" if err else "", style="dim")
    console.print(label, op, code, Text(" — "), msg)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Command renderers ─────────────────────────────────────────────────


def _render_layer_op(result: CommandResult, console: Console, *, verbose: bool = False) -> None:
    """Render add/remove/reorder results."""
    _status_line(console, result)
    for key in ("layer_id", "index", "from_index", "to_index", "active_layer_id"):
        if key in result.data:
            _field(console, key, result.data[key])


def _render_resize(result: CommandResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    data = result.data
    if "old_width" in data:
        _field(console, "from", f"{data['old_width']}x{data['old_height']}")
    _field(console, "to", f"{data['new_width']}x{data['new_height']}")
    if "strategy" in data:
        _field(console, "strategy", data["strategy"])
    if verbose and "lost_cells" in data:
        _field(console, "lost_cells", data["lost_cells"])


def _render_history_op(result: CommandResult, console: Console, *, verbose: bool = False) -> None:
    """Render undo/redo/reset/merge results."""
    _status_line(console, result)
    for key, value in result.data.items():
        if value is not None:
            _field(console, key, value)


def _render_session(result: CommandResult, console: Console, *, verbose: bool = False) -> None:
    """Render the final document table and history status of a run."""
    data = result.data
    document = data["document"]
    active = document["active_layer_id"]

    console.print(
        Text("Document", style="lg.op"),
        Text(f"{document['width']}x{document['height']}"),
        Text(f"  {len(document['layers'])} layer(s)", style="dim"),
    )

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", justify="right")
    table.add_column("ID", style="lg.id", no_wrap=True)
    table.add_column("Name")
    table.add_column("Cells", style="lg.count", justify="right")
    table.add_column("Flags")
    # Top of the paint order first.
    for index in range(len(document["layers"]) - 1, -1, -1):
        layer = document["layers"][index]
        flags = []
        if layer["id"] == active:
            flags.append("active")
        if not layer["visible"]:
            flags.append("hidden")
        if layer["locked"]:
            flags.append("locked")
        table.add_row(
            str(index),
            layer["id"],
            layer["name"],
            str(layer["non_empty"]),
            ", ".join(flags),
            style="lg.active" if layer["id"] == active else None,
        )
    console.print(table)

    history = data["history"]
    console.print(
        Text("History", style="lg.op"),
        Text(f"undo {history['undo_count']} / redo {history['redo_count']}"),
    )
    if history["next_undo_description"]:
        _field(console, "next_undo", history["next_undo_description"])
    if history["next_redo_description"]:
        _field(console, "next_redo", history["next_redo_description"])

    rejected = data.get("rejected", 0)
    if rejected:
        console.print(Text(f"  {rejected} operation(s) rejected", style="lg.warning"))

    if verbose and data.get("events"):
        console.print(Text("Events", style="lg.op"))
        for event, count in sorted(data["events"].items()):
            _field(console, event, count)


def _render_generic(result: CommandResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, _json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "add_layer": _render_layer_op,
    "remove_layer": _render_layer_op,
    "reorder_layers": _render_layer_op,
    "resize": _render_resize,
    "undo": _render_history_op,
    "redo": _render_history_op,
    "reset": _render_history_op,
    "merge": _render_history_op,
    "session": _render_session,
}
