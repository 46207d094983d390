"""ClearCommand — blank one layer or every layer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from layergrid.domain.cell import Cell
from layergrid.domain.errors import StructuralDriftError
from layergrid.domain.resizer import CELL_SIZE_ESTIMATE
from layergrid.undo.base import Command
from layergrid.undo.result import NOT_FOUND, CommandResult, ValidationResult

if TYPE_CHECKING:
    from layergrid.domain.document import Document
    from layergrid.plugins.event_bus import EventBus


class ClearCommand(Command):
    """Blank the cells of a layer (or all layers when ``layer_id`` is None)."""

    op = "clear"

    def __init__(
        self,
        document: Document,
        layer_id: str | None = None,
        *,
        event_bus: EventBus | None = None,
    ) -> None:
        if layer_id is None:
            description = "Clear all layers"
        else:
            layer = document.get_layer(layer_id)
            description = f"Clear {layer.name if layer else layer_id} Layer"
        super().__init__(description, event_bus=event_bus)
        self.document = document
        self.layer_id = layer_id
        self.affected_cell_count = 0
        self._saved: dict[str, tuple[Cell, ...]] = {}

    @classmethod
    def clear_layer(cls, document: Document, layer_id: str, **kwargs: Any) -> ClearCommand:
        return cls(document, layer_id, **kwargs)

    @classmethod
    def clear_all(cls, document: Document, **kwargs: Any) -> ClearCommand:
        return cls(document, None, **kwargs)

    def validate(self) -> ValidationResult:
        if self.layer_id is not None and not self.document.has_layer(self.layer_id):
            return ValidationResult.failed(NOT_FOUND, f"Layer {self.layer_id!r} not found")
        return ValidationResult.passed()

    def _targets(self) -> list[str]:
        if self.layer_id is None:
            return self.document.layer_ids
        return [self.layer_id]

    def execute(self) -> CommandResult:
        check = self.validate()
        if not check.valid:
            if self.executed or self._saved:
                raise StructuralDriftError(check.error or "", layer_id=self.layer_id)
            return check.to_result(self.op)

        self._saved = {}
        affected = 0
        for layer_id in self._targets():
            layer = self.document.get_layer(layer_id)
            assert layer is not None
            self._saved[layer_id] = tuple(layer.cells)
            affected += layer.non_empty_count()
            layer.clear()
            self._dispatch("layer:changed", layer_id=layer_id, reason="cleared")

        self.affected_cell_count = affected
        self.executed = True
        return CommandResult.success(
            self.op,
            layer_ids=list(self._saved),
            affected_cell_count=affected,
        )

    def undo(self) -> CommandResult:
        self._require_executed()
        for layer_id, cells in self._saved.items():
            layer = self.document.get_layer(layer_id)
            if layer is None:
                msg = f"Cleared layer {layer_id!r} is no longer in the document"
                raise StructuralDriftError(msg, layer_id=layer_id)
            if len(layer.cells) != len(cells):
                msg = (
                    f"Layer {layer_id!r} has {len(layer.cells)} cells, "
                    f"expected {len(cells)}"
                )
                raise StructuralDriftError(msg, layer_id=layer_id)

        for layer_id, cells in self._saved.items():
            layer = self.document.get_layer(layer_id)
            assert layer is not None
            layer.cells = list(cells)
            self._dispatch("layer:changed", layer_id=layer_id, reason="restored")

        self.executed = False
        return CommandResult.success(self.op, affected_cell_count=self.affected_cell_count)

    def memory_usage(self) -> int:
        saved = sum(len(cells) for cells in self._saved.values())
        return super().memory_usage() + saved * CELL_SIZE_ESTIMATE

    def get_details(self) -> dict[str, Any]:
        return {
            **super().get_details(),
            "layer_id": self.layer_id,
            "affected_cell_count": self.affected_cell_count,
        }
