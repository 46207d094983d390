"""Document — ordered layers plus the active-layer cursor.

Layer order is paint order: index 0 is painted first (bottom).

INVARIANT: When ``layers`` is non-empty, ``active_layer_id`` references a
member.  The cursor only changes through :meth:`Document.set_active_layer`
and the removal fallback in :meth:`Document.remove_layer`, so the
invariant is checkable in one place (:meth:`Document.cursor_valid`).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from layergrid.domain.errors import StructuralDriftError
from layergrid.domain.layer import Layer, LayerSnapshot
from layergrid.domain.templates import LAYER_BG, LAYER_FG, LAYER_MID, template_for

DEFAULT_WIDTH = 80
DEFAULT_HEIGHT = 25


@dataclass(frozen=True, slots=True)
class DocumentSnapshot:
    """Value copy of a whole document, used for equality checks."""

    width: int
    height: int
    active_layer_id: str | None
    layers: tuple[LayerSnapshot, ...]


class Document:
    """A multi-layer character grid."""

    def __init__(
        self,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        layers: Iterable[Layer] | None = None,
        *,
        active_layer_id: str | None = None,
    ) -> None:
        if width < 1 or height < 1:
            msg = f"Document dimensions must be at least 1x1, got {width}x{height}"
            raise ValueError(msg)
        self.width = width
        self.height = height
        self._layers: list[Layer] = []
        self._active_layer_id: str | None = None

        if layers is None:
            for layer_id in (LAYER_BG, LAYER_MID, LAYER_FG):
                self.insert_layer(Layer(layer_id, template_for(layer_id).name, width, height))
            active_layer_id = active_layer_id or LAYER_MID
        else:
            for layer in layers:
                self.insert_layer(layer)

        if active_layer_id is not None:
            self.set_active_layer(active_layer_id)
        elif self._layers:
            self._active_layer_id = self._layers[0].id

    def __repr__(self) -> str:
        ids = ", ".join(layer.id for layer in self._layers)
        return f"Document({self.width}x{self.height}, layers=[{ids}], active={self._active_layer_id!r})"

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def layers(self) -> tuple[Layer, ...]:
        return tuple(self._layers)

    @property
    def layer_ids(self) -> list[str]:
        return [layer.id for layer in self._layers]

    @property
    def active_layer_id(self) -> str | None:
        return self._active_layer_id

    @property
    def active_layer(self) -> Layer | None:
        if self._active_layer_id is None:
            return None
        return self.get_layer(self._active_layer_id)

    def __len__(self) -> int:
        return len(self._layers)

    def get_layer(self, layer_id: str) -> Layer | None:
        for layer in self._layers:
            if layer.id == layer_id:
                return layer
        return None

    def has_layer(self, layer_id: str) -> bool:
        return self.get_layer(layer_id) is not None

    def index_of(self, layer_id: str) -> int:
        """Position of *layer_id* in paint order, or -1 if absent."""
        for index, layer in enumerate(self._layers):
            if layer.id == layer_id:
                return index
        return -1

    def visible_layers(self) -> list[Layer]:
        return [layer for layer in self._layers if layer.visible]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def set_active_layer(self, layer_id: str | None) -> None:
        """Move the cursor. ``None`` is only legal on an empty document."""
        if layer_id is None:
            if self._layers:
                msg = "Active layer cannot be unset while layers exist"
                raise StructuralDriftError(msg)
            self._active_layer_id = None
            return
        if not self.has_layer(layer_id):
            msg = f"Cannot activate missing layer {layer_id!r}"
            raise StructuralDriftError(msg, layer_id=layer_id)
        self._active_layer_id = layer_id

    def cursor_valid(self) -> bool:
        """Check the active-layer invariant."""
        if not self._layers:
            return self._active_layer_id is None
        return self._active_layer_id is not None and self.has_layer(self._active_layer_id)

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def insert_layer(self, layer: Layer, index: int | None = None) -> int:
        """Insert *layer* at *index* (default: top). Returns the final index."""
        if self.has_layer(layer.id):
            msg = f"Layer {layer.id!r} already exists"
            raise ValueError(msg)
        if (layer.width, layer.height) != (self.width, self.height):
            msg = (
                f"Layer {layer.id!r} is {layer.width}x{layer.height}, "
                f"document is {self.width}x{self.height}"
            )
            raise ValueError(msg)
        if index is None:
            index = len(self._layers)
        if not 0 <= index <= len(self._layers):
            msg = f"Insert index {index} out of range 0..{len(self._layers)}"
            raise IndexError(msg)
        self._layers.insert(index, layer)
        if self._active_layer_id is None:
            self._active_layer_id = layer.id
        return index

    def remove_layer(self, layer_id: str) -> tuple[Layer, int]:
        """Remove *layer_id*; returns ``(layer, former_index)``.

        If the removed layer was active, the cursor moves to the layer that
        now occupies the vacated index, else the one before it, else None.
        """
        index = self.index_of(layer_id)
        if index == -1:
            msg = f"Layer {layer_id!r} not found"
            raise StructuralDriftError(msg, layer_id=layer_id)
        layer = self._layers.pop(index)
        if self._active_layer_id == layer_id:
            if index < len(self._layers):
                self._active_layer_id = self._layers[index].id
            elif index > 0:
                self._active_layer_id = self._layers[index - 1].id
            else:
                self._active_layer_id = None
        return layer, index

    def move_layer(self, from_index: int, to_index: int) -> None:
        """Shift-move: remove at *from_index*, then insert at *to_index*."""
        count = len(self._layers)
        if not (0 <= from_index < count and 0 <= to_index < count):
            msg = f"Move {from_index} -> {to_index} out of range 0..{count - 1}"
            raise IndexError(msg)
        layer = self._layers.pop(from_index)
        self._layers.insert(to_index, layer)

    def set_size(self, width: int, height: int) -> None:
        """Update document dimensions; callers resize the layers themselves."""
        self.width = width
        self.height = height

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> DocumentSnapshot:
        return DocumentSnapshot(
            width=self.width,
            height=self.height,
            active_layer_id=self._active_layer_id,
            layers=tuple(layer.snapshot() for layer in self._layers),
        )

    def summary(self) -> dict[str, Any]:
        """Plain-dict overview for output layers."""
        return {
            "width": self.width,
            "height": self.height,
            "active_layer_id": self._active_layer_id,
            "layers": [
                {
                    "id": layer.id,
                    "name": layer.name,
                    "visible": layer.visible,
                    "locked": layer.locked,
                    "non_empty": layer.non_empty_count(),
                }
                for layer in self._layers
            ],
        }
