"""Structural layer commands: add, remove, reorder.

Each command captures identity (layer id) and position (index) during its
first ``execute()``.  Undo and redo verify the layer is where the command
left it and raise :class:`StructuralDriftError` otherwise; out-of-order
replay is detected, never silently tolerated.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from layergrid.domain.errors import StructuralDriftError
from layergrid.domain.layer import Layer, LayerSnapshot
from layergrid.domain.resizer import CELL_SIZE_ESTIMATE
from layergrid.domain.templates import (
    DEFAULT_PURPOSE,
    mint_layer_id,
    suggest_layer_name,
    template_for,
)
from layergrid.undo.base import Command
from layergrid.undo.result import (
    INVALID_INDEX,
    INVALID_PURPOSE,
    LAST_LAYER,
    NO_CHANGE,
    NOT_FOUND,
    CommandResult,
    ValidationResult,
)

if TYPE_CHECKING:
    from layergrid.domain.document import Document
    from layergrid.plugins.event_bus import EventBus

REORDER_MERGE_WINDOW_MS = 2000


def _layer_name(document: Document, layer_id: str) -> str:
    layer = document.get_layer(layer_id)
    return layer.name if layer is not None else layer_id


# ---------------------------------------------------------------------------
# AddLayerCommand
# ---------------------------------------------------------------------------


class AddLayerCommand(Command):
    """Create a layer from a purpose template and make it active."""

    op = "add_layer"

    def __init__(
        self,
        document: Document,
        purpose: str = DEFAULT_PURPOSE,
        name: str | None = None,
        insert_at: int | None = None,
        *,
        event_bus: EventBus | None = None,
    ) -> None:
        label = name or (purpose[:1].upper() + purpose[1:] if purpose else "Unknown")
        if name is None:
            name = suggest_layer_name([layer.name for layer in document.layers], purpose)
        super().__init__(f"Add {label} Layer", event_bus=event_bus)
        self.document = document
        self.purpose = purpose
        self.name = name
        self.insert_at = insert_at

        self.layer_id: str | None = None
        self._index: int | None = None
        self._previous_active_id: str | None = None
        self._snapshot: LayerSnapshot | None = None

    def validate(self) -> ValidationResult:
        if not self.purpose:
            return ValidationResult.failed(INVALID_PURPOSE, "Layer purpose cannot be empty")
        if self.insert_at is not None and not 0 <= self.insert_at <= len(self.document):
            return ValidationResult.failed(
                INVALID_INDEX,
                f"Insert index {self.insert_at} out of range 0..{len(self.document)}",
            )
        return ValidationResult.passed()

    def execute(self) -> CommandResult:
        if self.layer_id is None:
            return self._first_execute()

        doc = self.document
        self._previous_active_id = doc.active_layer_id
        if not doc.has_layer(self.layer_id):
            assert self._snapshot is not None and self._index is not None
            if self._index > len(doc):
                msg = f"Cannot re-add layer {self.layer_id!r} at index {self._index}"
                raise StructuralDriftError(msg, layer_id=self.layer_id)
            if (self._snapshot.width, self._snapshot.height) != (doc.width, doc.height):
                msg = f"Layer {self.layer_id!r} no longer matches the document size"
                raise StructuralDriftError(msg, layer_id=self.layer_id)
            doc.insert_layer(Layer.from_snapshot(self._snapshot), self._index)
        doc.set_active_layer(self.layer_id)
        self.executed = True
        self._dispatch("structure:changed", reason="layer_added", layer_id=self.layer_id)
        return CommandResult.success(self.op, layer_id=self.layer_id, index=self._index)

    def _first_execute(self) -> CommandResult:
        check = self.validate()
        if not check.valid:
            return check.to_result(self.op)

        doc = self.document
        template = template_for(self.purpose)
        layer = Layer(
            mint_layer_id(self.purpose),
            self.name,
            doc.width,
            doc.height,
            visible=template.visible,
            locked=template.locked,
        )
        self._previous_active_id = doc.active_layer_id
        self._index = doc.insert_layer(layer, self.insert_at)
        doc.set_active_layer(layer.id)
        self.layer_id = layer.id
        self.executed = True
        self._dispatch("structure:changed", reason="layer_added", layer_id=layer.id)
        return CommandResult.success(self.op, layer_id=layer.id, index=self._index)

    def undo(self) -> CommandResult:
        self._require_executed()
        assert self.layer_id is not None
        doc = self.document
        layer = doc.get_layer(self.layer_id)
        if layer is None:
            msg = f"Added layer {self.layer_id!r} is no longer in the document"
            raise StructuralDriftError(msg, layer_id=self.layer_id)

        self._snapshot = layer.snapshot()
        doc.remove_layer(self.layer_id)
        if self._previous_active_id is not None and doc.has_layer(self._previous_active_id):
            doc.set_active_layer(self._previous_active_id)
        elif len(doc):
            doc.set_active_layer(doc.layers[0].id)
        self.executed = False
        self._dispatch("structure:changed", reason="layer_removed", layer_id=self.layer_id)
        return CommandResult.success(self.op, layer_id=self.layer_id)

    def get_details(self) -> dict[str, Any]:
        return {
            **super().get_details(),
            "purpose": self.purpose,
            "name": self.name,
            "layer_id": self.layer_id,
            "index": self._index,
        }


# ---------------------------------------------------------------------------
# RemoveLayerCommand
# ---------------------------------------------------------------------------


class RemoveLayerCommand(Command):
    """Remove a layer, keeping a full snapshot so undo is exact."""

    op = "remove_layer"

    def __init__(
        self,
        document: Document,
        layer_id: str,
        *,
        event_bus: EventBus | None = None,
    ) -> None:
        super().__init__(f"Remove {_layer_name(document, layer_id)} Layer", event_bus=event_bus)
        self.document = document
        self.layer_id = layer_id

        self._snapshot: LayerSnapshot | None = None
        self._index: int | None = None
        self._previous_active_id: str | None = None

    @property
    def was_active(self) -> bool:
        return self._previous_active_id == self.layer_id

    def validate(self) -> ValidationResult:
        if not self.document.has_layer(self.layer_id):
            return ValidationResult.failed(NOT_FOUND, f"Layer {self.layer_id!r} not found")
        if len(self.document) <= 1:
            return ValidationResult.failed(LAST_LAYER, "Cannot remove the last layer")
        return ValidationResult.passed()

    def execute(self) -> CommandResult:
        doc = self.document
        if self._snapshot is None:
            check = self.validate()
            if not check.valid:
                return check.to_result(self.op)
            layer = doc.get_layer(self.layer_id)
            assert layer is not None
            self._snapshot = layer.snapshot()
            self._index = doc.index_of(self.layer_id)
        elif doc.index_of(self.layer_id) != self._index or len(doc) <= 1:
            msg = f"Layer {self.layer_id!r} is not at index {self._index}"
            raise StructuralDriftError(msg, layer_id=self.layer_id)

        self._previous_active_id = doc.active_layer_id
        doc.remove_layer(self.layer_id)
        self.executed = True
        self._dispatch("structure:changed", reason="layer_removed", layer_id=self.layer_id)
        return CommandResult.success(
            self.op,
            layer_id=self.layer_id,
            index=self._index,
            active_layer_id=doc.active_layer_id,
        )

    def undo(self) -> CommandResult:
        self._require_executed()
        assert self._snapshot is not None and self._index is not None
        doc = self.document
        if doc.has_layer(self.layer_id) or self._index > len(doc):
            msg = f"Cannot restore layer {self.layer_id!r} at index {self._index}"
            raise StructuralDriftError(msg, layer_id=self.layer_id)
        previous = self._previous_active_id
        if previous is not None and previous != self.layer_id and not doc.has_layer(previous):
            msg = f"Previously active layer {previous!r} is missing"
            raise StructuralDriftError(msg, layer_id=previous)

        doc.insert_layer(Layer.from_snapshot(self._snapshot), self._index)
        if previous is not None:
            doc.set_active_layer(previous)
        self.executed = False
        self._dispatch("structure:changed", reason="layer_added", layer_id=self.layer_id)
        return CommandResult.success(self.op, layer_id=self.layer_id, index=self._index)

    def memory_usage(self) -> int:
        if self._snapshot is None:
            return super().memory_usage()
        return super().memory_usage() + len(self._snapshot.cells) * CELL_SIZE_ESTIMATE

    def get_details(self) -> dict[str, Any]:
        return {
            **super().get_details(),
            "layer_id": self.layer_id,
            "index": self._index,
            "was_active": self.was_active,
        }


# ---------------------------------------------------------------------------
# ReorderLayersCommand
# ---------------------------------------------------------------------------


class ReorderLayersCommand(Command):
    """Shift-move a layer from one index to another.

    Consecutive moves of the same layer within the merge window coalesce,
    so one undo returns the layer to where the gesture started.
    """

    op = "reorder_layers"

    def __init__(
        self,
        document: Document,
        layer_id: str,
        from_index: int,
        to_index: int,
        *,
        event_bus: EventBus | None = None,
        merge_window_ms: int = REORDER_MERGE_WINDOW_MS,
    ) -> None:
        self.layer_name = _layer_name(document, layer_id)
        super().__init__(
            f"Move {self.layer_name} Layer {_direction(from_index, to_index)}",
            event_bus=event_bus,
        )
        self.document = document
        self.layer_id = layer_id
        self.from_index = from_index
        self.to_index = to_index
        self.merge_window_ms = merge_window_ms
        self._applied = False

    # -- factories ------------------------------------------------------

    @classmethod
    def move_up(cls, document: Document, layer_id: str, **kwargs: Any) -> ReorderLayersCommand | None:
        index = _require_index(document, layer_id)
        if index >= len(document) - 1:
            return None
        return cls(document, layer_id, index, index + 1, **kwargs)

    @classmethod
    def move_down(
        cls, document: Document, layer_id: str, **kwargs: Any
    ) -> ReorderLayersCommand | None:
        index = _require_index(document, layer_id)
        if index <= 0:
            return None
        return cls(document, layer_id, index, index - 1, **kwargs)

    @classmethod
    def move_to_top(
        cls, document: Document, layer_id: str, **kwargs: Any
    ) -> ReorderLayersCommand | None:
        index = _require_index(document, layer_id)
        top = len(document) - 1
        if index == top:
            return None
        return cls(document, layer_id, index, top, **kwargs)

    @classmethod
    def move_to_bottom(
        cls, document: Document, layer_id: str, **kwargs: Any
    ) -> ReorderLayersCommand | None:
        index = _require_index(document, layer_id)
        if index == 0:
            return None
        return cls(document, layer_id, index, 0, **kwargs)

    # -- contract -------------------------------------------------------

    def validate(self) -> ValidationResult:
        count = len(self.document)
        if not self.document.has_layer(self.layer_id):
            return ValidationResult.failed(NOT_FOUND, f"Layer {self.layer_id!r} not found")
        for label, index in (("from", self.from_index), ("to", self.to_index)):
            if not 0 <= index < count:
                return ValidationResult.failed(
                    INVALID_INDEX, f"Invalid {label} index {index} (0..{count - 1})"
                )
        if self.from_index == self.to_index:
            return ValidationResult.failed(NO_CHANGE, "Layer is already at that position")
        return ValidationResult.passed()

    def execute(self) -> CommandResult:
        doc = self.document
        if not self._applied:
            check = self.validate()
            if not check.valid:
                return check.to_result(self.op)
            actual = doc.index_of(self.layer_id)
            if actual == self.to_index:
                return CommandResult.failure(
                    self.op, NO_CHANGE, "Layer is already at that position"
                )
            self.from_index = actual
            self._applied = True
        else:
            self._expect_at(self.from_index)

        doc.move_layer(self.from_index, self.to_index)
        self.executed = True
        self._dispatch("structure:changed", reason="layer_reordered", layer_id=self.layer_id)
        return CommandResult.success(
            self.op,
            layer_id=self.layer_id,
            from_index=self.from_index,
            to_index=self.to_index,
        )

    def undo(self) -> CommandResult:
        self._require_executed()
        self._expect_at(self.to_index)
        self.document.move_layer(self.to_index, self.from_index)
        self.executed = False
        self._dispatch("structure:changed", reason="layer_reordered", layer_id=self.layer_id)
        return CommandResult.success(
            self.op,
            layer_id=self.layer_id,
            from_index=self.to_index,
            to_index=self.from_index,
        )

    def can_merge(self, other: Command) -> bool:
        if not isinstance(other, ReorderLayersCommand):
            return False
        return (
            other.document is self.document
            and other.layer_id == self.layer_id
            and abs(other.timestamp - self.timestamp) * 1000 <= self.merge_window_ms
            and other.from_index == self.to_index
        )

    def merge(self, other: Command) -> None:
        self._require_mergeable(other)
        assert isinstance(other, ReorderLayersCommand)
        self.to_index = other.to_index
        self.timestamp = max(self.timestamp, other.timestamp)
        positions = abs(self.to_index - self.from_index)
        self.description = (
            f"Move {self.layer_name} Layer {_direction(self.from_index, self.to_index)} "
            f"({positions} positions)"
        )

    def get_details(self) -> dict[str, Any]:
        return {
            **super().get_details(),
            "layer_id": self.layer_id,
            "from_index": self.from_index,
            "to_index": self.to_index,
        }

    def _expect_at(self, index: int) -> None:
        if self.document.index_of(self.layer_id) != index:
            msg = f"Layer {self.layer_id!r} is not at index {index}"
            raise StructuralDriftError(msg, layer_id=self.layer_id)


def _direction(from_index: int, to_index: int) -> str:
    # Index 0 is the bottom of the paint order.
    return "up" if to_index > from_index else "down"


def _require_index(document: Document, layer_id: str) -> int:
    index = document.index_of(layer_id)
    if index == -1:
        raise KeyError(layer_id)
    return index
