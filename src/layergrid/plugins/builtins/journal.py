"""Built-in journal plugin — keeps a bounded log of recent editor events.

Used by the CLI to report what a scripted session did, and handy when
debugging a plugin that reacts to the wrong event.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from layergrid.domain.cell import Cell
    from layergrid.undo.base import Command

hookimpl = pluggy.HookimplMarker("layergrid")

DEFAULT_CAPACITY = 500


class JournalPlugin:
    """Record structural and history events; cell events are only counted."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self.entries: deque[dict[str, Any]] = deque(maxlen=capacity)
        self.cell_writes = 0

    def _record(self, event: str, **fields: Any) -> None:
        self.entries.append({"event": event, **fields})

    @hookimpl
    def history_executed(self, command: Command) -> None:
        self._record("history:executed", command=command.description)

    @hookimpl
    def history_undone(self, command: Command) -> None:
        self._record("history:undone", command=command.description)

    @hookimpl
    def history_redone(self, command: Command) -> None:
        self._record("history:redone", command=command.description)

    @hookimpl
    def history_merged(self, command: Command, merged_with: Command) -> None:
        self._record("history:merged", command=command.description)

    @hookimpl
    def history_cleared(self) -> None:
        self._record("history:cleared")

    @hookimpl
    def cell_changed(self, layer_id: str, x: int, y: int, cell: Cell) -> None:
        self.cell_writes += 1

    @hookimpl
    def layer_changed(self, layer_id: str, reason: str) -> None:
        self._record("layer:changed", layer_id=layer_id, reason=reason)

    @hookimpl
    def structure_changed(self, reason: str, layer_id: str) -> None:
        self._record("structure:changed", layer_id=layer_id, reason=reason)

    @hookimpl
    def document_resized(
        self,
        old_width: int,
        old_height: int,
        new_width: int,
        new_height: int,
        strategy: str,
    ) -> None:
        self._record(
            "document:resized",
            size=f"{old_width}x{old_height} -> {new_width}x{new_height}",
            strategy=strategy,
        )

    def events(self, prefix: str | None = None) -> list[dict[str, Any]]:
        if prefix is None:
            return list(self.entries)
        return [entry for entry in self.entries if entry["event"].startswith(prefix)]
