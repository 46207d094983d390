"""Layer and LayerSnapshot.

A Layer owns a flat, row-major list of cells (``index = y * width + x``).
Cells are immutable, so a snapshot is a tuple copy of the list plus every
attribute: restoring one is exact by construction.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any

from layergrid.domain.cell import BLANK, Cell


@dataclass(frozen=True, slots=True)
class LayerSnapshot:
    """Full value copy of a layer, including identity and every cell."""

    id: str
    name: str
    visible: bool
    locked: bool
    width: int
    height: int
    cells: tuple[Cell, ...]

    def non_empty_count(self) -> int:
        return sum(1 for cell in self.cells if not cell.is_empty())


class Layer:
    """A named, ordered plane of cells inside a Document."""

    def __init__(
        self,
        layer_id: str,
        name: str,
        width: int,
        height: int,
        *,
        visible: bool = True,
        locked: bool = False,
        cells: list[Cell] | None = None,
    ) -> None:
        if width < 1 or height < 1:
            msg = f"Layer dimensions must be at least 1x1, got {width}x{height}"
            raise ValueError(msg)
        if cells is not None and len(cells) != width * height:
            msg = f"Expected {width * height} cells for {width}x{height}, got {len(cells)}"
            raise ValueError(msg)
        self.id = layer_id
        self.name = name
        self.width = width
        self.height = height
        self.visible = visible
        self.locked = locked
        self.cells: list[Cell] = list(cells) if cells is not None else [BLANK] * (width * height)

    def __repr__(self) -> str:
        return f"Layer(id={self.id!r}, name={self.name!r}, {self.width}x{self.height})"

    # ------------------------------------------------------------------
    # Coordinates
    # ------------------------------------------------------------------

    def cell_index(self, x: int, y: int) -> int:
        return y * self.width + x

    def coords(self, index: int) -> tuple[int, int]:
        """Inverse of :meth:`cell_index`."""
        return index % self.width, index // self.width

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    def get_cell(self, x: int, y: int) -> Cell | None:
        """Return the cell at (x, y), or None when out of bounds."""
        if not self.in_bounds(x, y):
            return None
        return self.cells[self.cell_index(x, y)]

    def set_cell(self, x: int, y: int, cell: Cell) -> bool:
        """Set the cell at (x, y). Returns False when out of bounds."""
        if not self.in_bounds(x, y):
            return False
        self.cells[self.cell_index(x, y)] = cell
        return True

    def clear(self) -> None:
        """Reset every cell to the blank default."""
        self.cells = [BLANK] * (self.width * self.height)

    def fill(self, cell: Cell) -> None:
        self.cells = [cell] * (self.width * self.height)

    def non_empty_count(self) -> int:
        return sum(1 for cell in self.cells if not cell.is_empty())

    def stats(self) -> dict[str, Any]:
        """Cell statistics: totals plus glyph frequency of non-empty cells."""
        glyphs = Counter(cell.glyph for cell in self.cells if not cell.is_empty())
        non_empty = sum(glyphs.values())
        return {
            "total_cells": len(self.cells),
            "empty_count": len(self.cells) - non_empty,
            "non_empty_count": non_empty,
            "glyph_frequency": dict(glyphs),
        }

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> LayerSnapshot:
        return LayerSnapshot(
            id=self.id,
            name=self.name,
            visible=self.visible,
            locked=self.locked,
            width=self.width,
            height=self.height,
            cells=tuple(self.cells),
        )

    def restore(self, snapshot: LayerSnapshot) -> None:
        """Overwrite every attribute except identity from *snapshot*."""
        self.name = snapshot.name
        self.visible = snapshot.visible
        self.locked = snapshot.locked
        self.width = snapshot.width
        self.height = snapshot.height
        self.cells = list(snapshot.cells)

    @classmethod
    def from_snapshot(cls, snapshot: LayerSnapshot) -> Layer:
        return cls(
            snapshot.id,
            snapshot.name,
            snapshot.width,
            snapshot.height,
            visible=snapshot.visible,
            locked=snapshot.locked,
            cells=list(snapshot.cells),
        )
