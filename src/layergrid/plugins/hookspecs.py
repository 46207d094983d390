"""Pluggy hook specifications for layergrid editor events.

Event names use ``namespace:action`` (``history:undone``); the matching
hook is the same name with the colon replaced by an underscore
(``history_undone``).  Hooks are called synchronously.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from layergrid.domain.cell import Cell
    from layergrid.undo.base import Command
    from layergrid.undo.history import HistoryStatus

hookspec = pluggy.HookspecMarker("layergrid")


class LayergridHookSpec:
    """Hook specifications for the layergrid plugin system."""

    # -- history --------------------------------------------------------

    @hookspec
    def history_executed(self, command: Command) -> None:
        """Called after a command is pushed onto the undo stack."""

    @hookspec
    def history_undone(self, command: Command) -> None:
        """Called after a command is undone."""

    @hookspec
    def history_redone(self, command: Command) -> None:
        """Called after a command is redone."""

    @hookspec
    def history_merged(self, command: Command, merged_with: Command) -> None:
        """Called after *merged_with* was folded into *command*, the surviving undo entry."""

    @hookspec
    def history_cleared(self) -> None:
        """Called after a non-empty history is cleared."""

    @hookspec
    def history_changed(self, status: HistoryStatus) -> None:
        """Called after any change to the undo/redo stacks."""

    # -- document -------------------------------------------------------

    @hookspec
    def cell_changed(self, layer_id: str, x: int, y: int, cell: Cell) -> None:
        """Called for every cell written by a cell edit or its undo."""

    @hookspec
    def layer_changed(self, layer_id: str, reason: str) -> None:
        """Called when a layer's content changes wholesale (e.g. cleared)."""

    @hookspec
    def structure_changed(self, reason: str, layer_id: str) -> None:
        """Called when layers are added, removed or reordered."""

    @hookspec
    def document_resized(
        self,
        old_width: int,
        old_height: int,
        new_width: int,
        new_height: int,
        strategy: str,
    ) -> None:
        """Called after the grid changes size."""
