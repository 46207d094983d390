"""Grid resizing strategies.

- ``pad``: anchor top-left; new area takes the fill cell.
- ``crop``: anchor top-left; content outside the new bounds is dropped and
  any new area is blank.
- ``center``: re-anchor around the center; padding takes the fill cell and
  cropping removes content evenly from both sides.

Crop and center are lossy. Nothing here tries to invert a resize: callers
that need to go back must keep a snapshot.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from layergrid.domain.cell import BLANK, Cell
from layergrid.domain.layer import Layer

CELL_SIZE_ESTIMATE = 32  # bytes per cell, rough


class ResizeStrategy(StrEnum):
    """How existing content is anchored when the grid changes size."""

    PAD = "pad"
    CROP = "crop"
    CENTER = "center"


def resize_cells(
    cells: list[Cell],
    old_width: int,
    old_height: int,
    new_width: int,
    new_height: int,
    strategy: ResizeStrategy | str = ResizeStrategy.PAD,
    fill: Cell = BLANK,
) -> list[Cell]:
    """Return a new row-major cell list of ``new_width * new_height``."""
    strategy = ResizeStrategy(strategy)
    if new_width < 1 or new_height < 1:
        msg = f"New dimensions must be at least 1x1, got {new_width}x{new_height}"
        raise ValueError(msg)

    if strategy is ResizeStrategy.CENTER:
        offset_x = (new_width - old_width) // 2
        offset_y = (new_height - old_height) // 2
        outside = fill
    else:
        offset_x = offset_y = 0
        outside = fill if strategy is ResizeStrategy.PAD else BLANK

    result: list[Cell] = []
    for y in range(new_height):
        old_y = y - offset_y
        for x in range(new_width):
            old_x = x - offset_x
            if 0 <= old_x < old_width and 0 <= old_y < old_height:
                result.append(cells[old_y * old_width + old_x])
            else:
                result.append(outside)
    return result


def resize_layer(
    layer: Layer,
    new_width: int,
    new_height: int,
    strategy: ResizeStrategy | str = ResizeStrategy.PAD,
    fill: Cell = BLANK,
) -> dict[str, Any]:
    """Resize *layer* in place and report what changed."""
    old_width, old_height = layer.width, layer.height
    lost = 0
    if new_width < old_width or new_height < old_height:
        lost = _count_lost(layer, new_width, new_height, ResizeStrategy(strategy))
    layer.cells = resize_cells(
        layer.cells, old_width, old_height, new_width, new_height, strategy, fill
    )
    layer.width = new_width
    layer.height = new_height
    return {
        "layer_id": layer.id,
        "old_width": old_width,
        "old_height": old_height,
        "lost_cells": lost,
    }


def resize_layers(
    layers: list[Layer] | tuple[Layer, ...],
    new_width: int,
    new_height: int,
    strategy: ResizeStrategy | str = ResizeStrategy.PAD,
    fill: Cell = BLANK,
) -> list[dict[str, Any]]:
    return [resize_layer(layer, new_width, new_height, strategy, fill) for layer in layers]


def _count_lost(layer: Layer, new_width: int, new_height: int, strategy: ResizeStrategy) -> int:
    """Count non-empty cells that fall outside the resized grid."""
    if strategy is ResizeStrategy.CENTER:
        offset_x = (new_width - layer.width) // 2
        offset_y = (new_height - layer.height) // 2
    else:
        offset_x = offset_y = 0
    lost = 0
    for index, cell in enumerate(layer.cells):
        if cell.is_empty():
            continue
        x, y = layer.coords(index)
        if not (0 <= x + offset_x < new_width and 0 <= y + offset_y < new_height):
            lost += 1
    return lost


def validate_resize(
    new_width: Any,
    new_height: Any,
    *,
    max_width: int = 200,
    max_height: int = 100,
) -> list[str]:
    """Return a list of problems with the requested size (empty when valid)."""
    errors: list[str] = []
    for label, value, limit in (("Width", new_width, max_width), ("Height", new_height, max_height)):
        if isinstance(value, bool) or not isinstance(value, int):
            errors.append(f"{label} must be an integer")
        elif value < 1:
            errors.append(f"{label} must be at least 1")
        elif value > limit:
            errors.append(f"{label} cannot exceed {limit}")
    return errors


def memory_impact(
    old_width: int,
    old_height: int,
    new_width: int,
    new_height: int,
    layer_count: int = 3,
) -> dict[str, Any]:
    old_cells = old_width * old_height * layer_count
    new_cells = new_width * new_height * layer_count
    old_memory = old_cells * CELL_SIZE_ESTIMATE
    new_memory = new_cells * CELL_SIZE_ESTIMATE
    return {
        "old_cells": old_cells,
        "new_cells": new_cells,
        "cell_delta": new_cells - old_cells,
        "old_memory": old_memory,
        "new_memory": new_memory,
        "memory_delta": new_memory - old_memory,
        "percent_change": ((new_memory - old_memory) / old_memory * 100) if old_memory else 0.0,
    }


def resize_preview(
    old_width: int,
    old_height: int,
    new_width: int,
    new_height: int,
    strategy: ResizeStrategy | str,
) -> dict[str, Any]:
    """Describe a pending resize, warning when content may be lost."""
    strategy = ResizeStrategy(strategy)
    expanding = new_width > old_width or new_height > old_height
    shrinking = new_width < old_width or new_height < old_height
    lossy = strategy in (ResizeStrategy.CROP, ResizeStrategy.CENTER)
    size = f"{old_width}x{old_height} to {new_width}x{new_height}"

    warning: str | None = None
    if not (expanding or shrinking):
        description = "No change in dimensions"
    elif expanding and not shrinking:
        description = f"Expanding from {size}"
    elif shrinking and not expanding:
        description = f"Shrinking from {size}"
        if lossy:
            warning = "Content outside new bounds will be lost"
    else:
        description = f"Resizing from {size}"
        if lossy:
            warning = "Some content may be lost"

    return {
        "description": description,
        "warning": warning,
        "is_expanding": expanding,
        "is_shrinking": shrinking,
        "strategy": str(strategy),
        "memory_impact": memory_impact(old_width, old_height, new_width, new_height),
    }
