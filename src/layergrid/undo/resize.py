"""ResizeCommand — change the grid size of every layer at once.

Crop and center are lossy, so undo always restores from the snapshot
taken during execute and never tries to re-derive the old content.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from layergrid.domain.cell import BLANK, Cell
from layergrid.domain.errors import StructuralDriftError
from layergrid.domain.resizer import (
    CELL_SIZE_ESTIMATE,
    ResizeStrategy,
    resize_layers,
    resize_preview,
    validate_resize,
)
from layergrid.undo.base import Command
from layergrid.undo.result import (
    INVALID_SIZE,
    INVALID_STRATEGY,
    NO_CHANGE,
    CommandResult,
    ValidationResult,
)

if TYPE_CHECKING:
    from layergrid.domain.document import Document, DocumentSnapshot
    from layergrid.plugins.event_bus import EventBus


class ResizeCommand(Command):
    op = "resize"

    def __init__(
        self,
        document: Document,
        new_width: int,
        new_height: int,
        strategy: str = ResizeStrategy.PAD,
        fill_cell: Cell | None = None,
        *,
        event_bus: EventBus | None = None,
        max_width: int = 200,
        max_height: int = 100,
    ) -> None:
        # Provisional until the first execute() captures the real size.
        self.old_width = document.width
        self.old_height = document.height
        super().__init__(
            _describe(self.old_width, self.old_height, new_width, new_height),
            event_bus=event_bus,
        )
        self.document = document
        self.new_width = new_width
        self.new_height = new_height
        self.strategy = str(strategy)
        self.fill_cell = fill_cell or BLANK
        self.max_width = max_width
        self.max_height = max_height
        self._before: DocumentSnapshot | None = None

    def validate(self) -> ValidationResult:
        errors = validate_resize(
            self.new_width,
            self.new_height,
            max_width=self.max_width,
            max_height=self.max_height,
        )
        if errors:
            return ValidationResult.failed(INVALID_SIZE, "; ".join(errors))
        if self.strategy not in {s.value for s in ResizeStrategy}:
            return ValidationResult.failed(
                INVALID_STRATEGY, f"Unknown resize strategy: {self.strategy!r}"
            )
        if (self.new_width, self.new_height) == (self.document.width, self.document.height):
            return ValidationResult.failed(NO_CHANGE, "Grid is already that size")
        return ValidationResult.passed()

    def execute(self) -> CommandResult:
        doc = self.document
        if self._before is None:
            check = self.validate()
            if not check.valid:
                return check.to_result(self.op)
            self.old_width, self.old_height = doc.width, doc.height
            self.description = _describe(
                self.old_width, self.old_height, self.new_width, self.new_height
            )
        elif (doc.width, doc.height) != (self.old_width, self.old_height):
            msg = (
                f"Grid is {doc.width}x{doc.height}, expected "
                f"{self.old_width}x{self.old_height} before resizing"
            )
            raise StructuralDriftError(msg)

        self._before = doc.snapshot()
        reports = resize_layers(
            doc.layers, self.new_width, self.new_height, self.strategy, self.fill_cell
        )
        doc.set_size(self.new_width, self.new_height)
        self.executed = True

        lost = sum(report["lost_cells"] for report in reports)
        self._dispatch(
            "document:resized",
            old_width=self.old_width,
            old_height=self.old_height,
            new_width=self.new_width,
            new_height=self.new_height,
            strategy=self.strategy,
        )
        result = CommandResult.success(
            self.op,
            old_width=self.old_width,
            old_height=self.old_height,
            new_width=self.new_width,
            new_height=self.new_height,
            strategy=self.strategy,
            lost_cells=lost,
        )
        if lost:
            result = result.model_copy(
                update={"warnings": [f"{lost} non-empty cell(s) fell outside the new bounds"]}
            )
        return result

    def undo(self) -> CommandResult:
        self._require_executed()
        assert self._before is not None
        doc = self.document
        expected = {snap.id for snap in self._before.layers}
        if set(doc.layer_ids) != expected:
            msg = "Layer set changed since the resize; cannot restore"
            raise StructuralDriftError(msg)

        for snap in self._before.layers:
            layer = doc.get_layer(snap.id)
            assert layer is not None
            layer.restore(snap)
        doc.set_size(self._before.width, self._before.height)
        self.executed = False
        self._dispatch(
            "document:resized",
            old_width=self.new_width,
            old_height=self.new_height,
            new_width=self.old_width,
            new_height=self.old_height,
            strategy=self.strategy,
        )
        return CommandResult.success(
            self.op, new_width=self.old_width, new_height=self.old_height
        )

    def memory_usage(self) -> int:
        cells = self.old_width * self.old_height + self.new_width * self.new_height
        return super().memory_usage() + cells * max(1, len(self.document)) * CELL_SIZE_ESTIMATE

    def get_details(self) -> dict[str, Any]:
        details: dict[str, Any] = {
            **super().get_details(),
            "old_size": f"{self.old_width}x{self.old_height}",
            "new_size": f"{self.new_width}x{self.new_height}",
            "strategy": self.strategy,
        }
        if self.validate().valid:
            details["preview"] = resize_preview(
                self.old_width, self.old_height, self.new_width, self.new_height, self.strategy
            )
        return details


def _describe(old_width: int, old_height: int, new_width: int, new_height: int) -> str:
    return f"Resize grid from {old_width}x{old_height} to {new_width}x{new_height}"
