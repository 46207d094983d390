"""CellCommand — undoable edits to individual cells.

Brush strokes arrive as many small commands; consecutive ones from the same
tool on the same layer merge into one undo step while the merge window is
open.  An overlapping cell only merges when the newer edit starts from the
state the older one left behind.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from layergrid.domain.cell import Cell
from layergrid.domain.errors import StructuralDriftError
from layergrid.undo.base import Command
from layergrid.undo.result import INVALID_INDEX, NOT_FOUND, CommandResult, ValidationResult

if TYPE_CHECKING:
    from layergrid.domain.document import Document
    from layergrid.plugins.event_bus import EventBus

CELL_MERGE_WINDOW_MS = 2000

_TOOL_VERBS = {"brush": "Paint", "eraser": "Erase"}


@dataclass(frozen=True, slots=True)
class CellChange:
    index: int
    before: Cell
    after: Cell


def describe_cells(tool: str, count: int) -> str:
    """Human label for *count* cell edits made with *tool*.

    Examples:
        >>> describe_cells("brush", 3)
        'Paint 3 cells'
        >>> describe_cells("picker", 1)
        'Modify 1 cell'
    """
    verb = _TOOL_VERBS.get(tool, "Modify")
    return f"{verb} {count} cell{'' if count == 1 else 's'}"


class CellCommand(Command):
    op = "cells"

    def __init__(
        self,
        document: Document,
        layer_id: str,
        changes: Iterable[CellChange],
        tool: str = "unknown",
        description: str | None = None,
        *,
        event_bus: EventBus | None = None,
        merge_window_ms: int = CELL_MERGE_WINDOW_MS,
    ) -> None:
        self.changes: list[CellChange] = list(changes)
        self.tool = tool or "unknown"
        super().__init__(
            description or describe_cells(self.tool, len(self.changes)),
            event_bus=event_bus,
        )
        self.document = document
        self.layer_id = layer_id
        self.merge_window_ms = merge_window_ms

    # -- factories ------------------------------------------------------

    @classmethod
    def from_single_cell(
        cls,
        document: Document,
        layer_id: str,
        index: int,
        before: Cell,
        after: Cell,
        tool: str = "unknown",
        **kwargs: Any,
    ) -> CellCommand:
        verb = _TOOL_VERBS.get(tool, "Modify")
        return cls(
            document,
            layer_id,
            [CellChange(index, before, after)],
            tool,
            f"{verb} cell",
            **kwargs,
        )

    @classmethod
    def from_changes(
        cls,
        document: Document,
        layer_id: str,
        changes: Iterable[CellChange],
        tool: str = "unknown",
        **kwargs: Any,
    ) -> CellCommand:
        return cls(document, layer_id, changes, tool, **kwargs)

    # -- contract -------------------------------------------------------

    @property
    def cell_count(self) -> int:
        return len(self.changes)

    def affected_indices(self) -> list[int]:
        return [change.index for change in self.changes]

    def validate(self) -> ValidationResult:
        layer = self.document.get_layer(self.layer_id)
        if layer is None:
            return ValidationResult.failed(NOT_FOUND, f"Layer {self.layer_id!r} not found")
        total = len(layer.cells)
        for change in self.changes:
            if not 0 <= change.index < total:
                return ValidationResult.failed(
                    INVALID_INDEX, f"Cell index {change.index} out of range 0..{total - 1}"
                )
        return ValidationResult.passed()

    def execute(self) -> CommandResult:
        check = self.validate()
        if not check.valid:
            if self.executed:
                raise StructuralDriftError(check.error or "", layer_id=self.layer_id)
            return check.to_result(self.op)
        self._apply((change.index, change.after) for change in self.changes)
        self.executed = True
        return CommandResult.success(self.op, layer_id=self.layer_id, cells=self.cell_count)

    def undo(self) -> CommandResult:
        self._require_executed()
        check = self.validate()
        if not check.valid:
            raise StructuralDriftError(check.error or "", layer_id=self.layer_id)
        self._apply((change.index, change.before) for change in reversed(self.changes))
        self.executed = False
        return CommandResult.success(self.op, layer_id=self.layer_id, cells=self.cell_count)

    def _apply(self, edits: Iterable[tuple[int, Cell]]) -> None:
        layer = self.document.get_layer(self.layer_id)
        assert layer is not None
        for index, cell in edits:
            layer.cells[index] = cell
            x, y = layer.coords(index)
            self._dispatch("cell:changed", layer_id=self.layer_id, x=x, y=y, cell=cell)

    def can_merge(self, other: Command) -> bool:
        if not isinstance(other, CellCommand):
            return False
        if other.document is not self.document:
            return False
        if other.layer_id != self.layer_id or other.tool != self.tool:
            return False
        elapsed_ms = (other.timestamp - self.timestamp) * 1000
        if not 0 <= elapsed_ms <= self.merge_window_ms:
            return False
        ours = {change.index: change for change in self.changes}
        for change in other.changes:
            mine = ours.get(change.index)
            if mine is not None and mine.after != change.before:
                return False
        return True

    def merge(self, other: Command) -> None:
        self._require_mergeable(other)
        assert isinstance(other, CellCommand)
        positions = {change.index: i for i, change in enumerate(self.changes)}
        for change in other.changes:
            if change.index in positions:
                i = positions[change.index]
                self.changes[i] = dataclasses.replace(self.changes[i], after=change.after)
            else:
                positions[change.index] = len(self.changes)
                self.changes.append(change)
        self.description = describe_cells(self.tool, len(self.changes))
        self.timestamp = max(self.timestamp, other.timestamp)

    def memory_usage(self) -> int:
        return super().memory_usage() + len(self.changes) * 64

    def get_details(self) -> dict[str, Any]:
        return {
            **super().get_details(),
            "layer_id": self.layer_id,
            "tool": self.tool,
            "cell_count": self.cell_count,
        }

    def __str__(self) -> str:
        return f"{super().__str__()} [{self.tool}]"
