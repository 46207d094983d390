"""Command: script an editing session as a sequence of operations."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import click

from layergrid.commands._base import LgCommand
from layergrid.domain.cell import DEFAULT_BG, DEFAULT_FG, Cell
from layergrid.domain.errors import GridError
from layergrid.undo.result import CommandResult

if TYPE_CHECKING:
    from layergrid.commands._context import AppContext
    from layergrid.services.session import EditorSession

_SIZE_RE = re.compile(r"^(\d+)[xX](\d+)$")
_POINT_RE = re.compile(r"^(-?\d+),(-?\d+)$")


@dataclass(frozen=True)
class Op:
    """One parsed operation: ``name`` plus already-converted arguments."""

    name: str
    args: tuple[Any, ...]
    text: str


class OpType(click.ParamType):
    """Parse ``name[:arg...]`` strings into :class:`Op` values.

    Malformed ops are usage errors, raised before any operation runs.
    """

    name = "op"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Op:
        if isinstance(value, Op):
            return value
        text = str(value)
        name, *args = text.split(":")
        parser = _PARSERS.get(name)
        if parser is None:
            self.fail(f"unknown operation {name!r} in {text!r}", param, ctx)
        try:
            return Op(name, parser(args), text)
        except ValueError as exc:
            self.fail(f"{text!r}: {exc}", param, ctx)


# ── Argument parsers ──────────────────────────────────────────────────


def _arity(args: list[str], low: int, high: int | None = None) -> None:
    high = low if high is None else high
    if not low <= len(args) <= high:
        if low == high:
            msg = f"expected {low} argument(s), got {len(args)}"
        else:
            msg = f"expected {low} to {high} arguments, got {len(args)}"
        raise ValueError(msg)


def _int(text: str, label: str) -> int:
    try:
        return int(text)
    except ValueError:
        msg = f"{label} must be an integer, got {text!r}"
        raise ValueError(msg) from None


def _parse_add(args: list[str]) -> tuple[Any, ...]:
    _arity(args, 0, 3)
    purpose = args[0] if args and args[0] else "main"
    name = args[1] if len(args) > 1 and args[1] else None
    index = _int(args[2], "index") if len(args) > 2 and args[2] else None
    return purpose, name, index


def _parse_layer_id(args: list[str]) -> tuple[Any, ...]:
    _arity(args, 1)
    if not args[0]:
        msg = "layer id cannot be empty"
        raise ValueError(msg)
    return (args[0],)


def _parse_reorder(args: list[str]) -> tuple[Any, ...]:
    _arity(args, 2)
    return _parse_layer_id(args[:1]) + (_int(args[1], "target index"),)


def _parse_resize(args: list[str]) -> tuple[Any, ...]:
    _arity(args, 1, 2)
    match = _SIZE_RE.match(args[0])
    if match is None:
        msg = f"size must look like WIDTHxHEIGHT, got {args[0]!r}"
        raise ValueError(msg)
    strategy = args[1] if len(args) > 1 else "pad"
    return int(match.group(1)), int(match.group(2)), strategy


def _parse_clear(args: list[str]) -> tuple[Any, ...]:
    _arity(args, 0, 1)
    return (args[0] if args and args[0] else None,)


def _parse_point(text: str) -> tuple[int, int]:
    match = _POINT_RE.match(text)
    if match is None:
        msg = f"position must look like X,Y, got {text!r}"
        raise ValueError(msg)
    return int(match.group(1)), int(match.group(2))


def _parse_paint(args: list[str]) -> tuple[Any, ...]:
    _arity(args, 3, 5)
    (layer_id,) = _parse_layer_id(args[:1])
    x, y = _parse_point(args[1])
    glyph = args[2]
    if len(glyph) != 1:
        msg = f"glyph must be a single character, got {glyph!r}"
        raise ValueError(msg)
    fg = _int(args[3], "foreground") if len(args) > 3 else DEFAULT_FG
    bg = _int(args[4], "background") if len(args) > 4 else DEFAULT_BG
    return layer_id, x, y, Cell(glyph, fg, bg)


def _parse_erase(args: list[str]) -> tuple[Any, ...]:
    _arity(args, 2)
    (layer_id,) = _parse_layer_id(args[:1])
    return (layer_id, *_parse_point(args[1]))


def _parse_none(args: list[str]) -> tuple[Any, ...]:
    _arity(args, 0)
    return ()


def _parse_merge(args: list[str]) -> tuple[Any, ...]:
    _arity(args, 1)
    if args[0] not in ("on", "off"):
        msg = f"expected 'on' or 'off', got {args[0]!r}"
        raise ValueError(msg)
    return (args[0] == "on",)


_PARSERS = {
    "add": _parse_add,
    "remove": _parse_layer_id,
    "reorder": _parse_reorder,
    "up": _parse_layer_id,
    "down": _parse_layer_id,
    "top": _parse_layer_id,
    "bottom": _parse_layer_id,
    "resize": _parse_resize,
    "clear": _parse_clear,
    "paint": _parse_paint,
    "erase": _parse_erase,
    "undo": _parse_none,
    "redo": _parse_none,
    "reset": _parse_none,
    "merge": _parse_merge,
}


def apply_op(session: EditorSession, op: Op) -> CommandResult:
    """Run one parsed operation against *session*."""
    handlers = {
        "add": session.add_layer,
        "remove": session.remove_layer,
        "reorder": session.reorder_layer,
        "up": session.move_layer_up,
        "down": session.move_layer_down,
        "top": session.move_layer_to_top,
        "bottom": session.move_layer_to_bottom,
        "resize": session.resize,
        "clear": session.clear,
        "paint": session.paint,
        "erase": session.erase,
        "undo": session.undo,
        "redo": session.redo,
        "reset": session.reset_history,
        "merge": session.set_merging,
    }
    return handlers[op.name](*op.args)


# ── Command ───────────────────────────────────────────────────────────


@click.command(
    cls=LgCommand,
    examples="""\
  layergrid run add:detail paint:mid:3,4:@ undo redo
  layergrid run --width 10 --height 10 paint:fg:9,9:# resize:5x5:crop undo
  layergrid run up:bg up:bg undo
  layergrid --json run add:sketch:Draft:0 remove:mid
  layergrid run --strict remove:missing
  layergrid --no-plugins -q run remove:fg""",
)
@click.option("--width", type=click.IntRange(min=1), default=None, help="Grid width.")
@click.option("--height", type=click.IntRange(min=1), default=None, help="Grid height.")
@click.option("--strict", is_flag=True, help="Stop at the first rejected operation (exit 1).")
@click.argument("ops", nargs=-1, type=OpType())
@click.pass_obj
def run(
    app: AppContext,
    width: int | None,
    height: int | None,
    strict: bool,
    ops: tuple[Op, ...],
) -> None:
    """Apply OPS to a fresh document and print the result.

    \b
    OPS:
      add[:purpose[:name[:index]]]   remove:ID        reorder:ID:TO
      up:ID  down:ID  top:ID  bottom:ID               clear[:ID]
      resize:WxH[:pad|crop|center]   erase:ID:X,Y
      paint:ID:X,Y:GLYPH[:FG[:BG]]   undo  redo  reset  merge:on|off
    """
    session = app.new_session(width=width, height=height)
    steps: list[dict[str, Any]] = []
    rejected = 0

    for op in ops:
        try:
            result = apply_op(session, op)
        except GridError as exc:
            msg = f"{op.text}: {exc}"
            raise click.ClickException(msg) from exc

        steps.append(
            {
                "op": op.text,
                "ok": result.ok,
                "code": result.error.code if result.error else None,
            }
        )
        if not result.ok:
            rejected += 1
            if strict:
                app.emit(result)
        app.report(result)

    app.emit(
        CommandResult.success(
            "session",
            **session.summary(),
            steps=steps,
            rejected=rejected,
        )
    )
