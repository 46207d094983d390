"""EditorSession — one document, its history, and the plugin event bus.

This is the composition root collaborators use: every editing operation
builds a command with captured parameters and hands it to the history.
The session never mutates the document directly.
"""

from __future__ import annotations

import logging
from typing import Any

from layergrid.config.settings import GridSettings
from layergrid.domain.cell import Cell
from layergrid.domain.document import Document
from layergrid.plugins.builtins.journal import JournalPlugin
from layergrid.plugins.event_bus import EventBus
from layergrid.plugins.manager import PluginManager
from layergrid.undo.base import Command
from layergrid.undo.cells import CellCommand
from layergrid.undo.clear import ClearCommand
from layergrid.undo.history import CommandHistory, HistoryStatus
from layergrid.undo.layers import AddLayerCommand, RemoveLayerCommand, ReorderLayersCommand
from layergrid.undo.resize import ResizeCommand
from layergrid.undo.result import INVALID_INDEX, NO_CHANGE, NOT_FOUND, CommandResult

logger = logging.getLogger(__name__)

EMPTY_HISTORY = "EMPTY_HISTORY"


class EditorSession:
    """Wires a Document, a CommandHistory and an EventBus from settings."""

    def __init__(
        self,
        settings: GridSettings | None = None,
        *,
        document: Document | None = None,
        plugin_manager: PluginManager | None = None,
        width: int | None = None,
        height: int | None = None,
    ) -> None:
        self.settings = settings or GridSettings()
        self.document = document or Document(
            width or self.settings.grid.default_width,
            height or self.settings.grid.default_height,
        )

        if plugin_manager is None:
            plugin_manager = PluginManager()
            if self.settings.plugins.enabled:
                plugin_manager.discover_and_load(local_dir=self.settings.local_plugin_dir)
        self.journal = JournalPlugin()
        plugin_manager.register_plugin(self.journal, name="journal-builtin")

        self.event_bus = EventBus(plugin_manager)
        self.history = CommandHistory.from_settings(self.settings, event_bus=self.event_bus)

    # ------------------------------------------------------------------
    # Layer structure
    # ------------------------------------------------------------------

    def add_layer(
        self,
        purpose: str = "main",
        name: str | None = None,
        index: int | None = None,
    ) -> CommandResult:
        return self.execute(
            AddLayerCommand(self.document, purpose, name, index, event_bus=self.event_bus)
        )

    def remove_layer(self, layer_id: str) -> CommandResult:
        return self.execute(RemoveLayerCommand(self.document, layer_id, event_bus=self.event_bus))

    def reorder_layer(self, layer_id: str, to_index: int) -> CommandResult:
        from_index = self.document.index_of(layer_id)
        return self.execute(
            ReorderLayersCommand(
                self.document,
                layer_id,
                from_index,
                to_index,
                event_bus=self.event_bus,
                merge_window_ms=self.settings.history.reorder_merge_window_ms,
            )
        )

    def move_layer_up(self, layer_id: str) -> CommandResult:
        return self._shortcut(ReorderLayersCommand.move_up, layer_id, "top")

    def move_layer_down(self, layer_id: str) -> CommandResult:
        return self._shortcut(ReorderLayersCommand.move_down, layer_id, "bottom")

    def move_layer_to_top(self, layer_id: str) -> CommandResult:
        return self._shortcut(ReorderLayersCommand.move_to_top, layer_id, "top")

    def move_layer_to_bottom(self, layer_id: str) -> CommandResult:
        return self._shortcut(ReorderLayersCommand.move_to_bottom, layer_id, "bottom")

    def _shortcut(self, factory: Any, layer_id: str, edge: str) -> CommandResult:
        op = ReorderLayersCommand.op
        try:
            command = factory(
                self.document,
                layer_id,
                event_bus=self.event_bus,
                merge_window_ms=self.settings.history.reorder_merge_window_ms,
            )
        except KeyError:
            return CommandResult.failure(op, NOT_FOUND, f"Layer {layer_id!r} not found")
        if command is None:
            return CommandResult.failure(
                op, NO_CHANGE, f"Layer {layer_id!r} is already at the {edge}"
            )
        return self.execute(command)

    # ------------------------------------------------------------------
    # Grid and content
    # ------------------------------------------------------------------

    def resize(
        self,
        width: int,
        height: int,
        strategy: str = "pad",
        fill: Cell | None = None,
    ) -> CommandResult:
        return self.execute(
            ResizeCommand(
                self.document,
                width,
                height,
                strategy,
                fill,
                event_bus=self.event_bus,
                max_width=self.settings.grid.max_width,
                max_height=self.settings.grid.max_height,
            )
        )

    def clear(self, layer_id: str | None = None) -> CommandResult:
        return self.execute(ClearCommand(self.document, layer_id, event_bus=self.event_bus))

    def paint(
        self,
        layer_id: str,
        x: int,
        y: int,
        cell: Cell,
        tool: str = "brush",
    ) -> CommandResult:
        """Write one cell; consecutive strokes merge into one undo step."""
        op = CellCommand.op
        layer = self.document.get_layer(layer_id)
        if layer is None:
            return CommandResult.failure(op, NOT_FOUND, f"Layer {layer_id!r} not found")
        before = layer.get_cell(x, y)
        if before is None:
            return CommandResult.failure(
                op, INVALID_INDEX, f"({x}, {y}) is outside the {layer.width}x{layer.height} grid"
            )
        if before == cell:
            return CommandResult.failure(op, NO_CHANGE, f"({x}, {y}) already holds that cell")
        return self.execute(
            CellCommand.from_single_cell(
                self.document,
                layer_id,
                layer.cell_index(x, y),
                before,
                cell,
                tool,
                event_bus=self.event_bus,
                merge_window_ms=self.settings.history.cell_merge_window_ms,
            )
        )

    def erase(self, layer_id: str, x: int, y: int) -> CommandResult:
        return self.paint(layer_id, x, y, Cell(), tool="eraser")

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def execute(self, command: Command) -> CommandResult:
        result = self.history.execute(command)
        if not result.ok and result.error is not None:
            logger.info("Rejected %s: %s", command.description, result.error.message)
        return result

    def undo(self) -> CommandResult:
        description = self.history.get_status().next_undo_description
        if not self.history.undo():
            return CommandResult.failure("undo", EMPTY_HISTORY, "Nothing to undo")
        return CommandResult.success("undo", description=description)

    def redo(self) -> CommandResult:
        description = self.history.get_status().next_redo_description
        if not self.history.redo():
            return CommandResult.failure("redo", EMPTY_HISTORY, "Nothing to redo")
        return CommandResult.success("redo", description=description)

    def reset_history(self) -> CommandResult:
        cleared = self.history.size()
        self.history.clear()
        return CommandResult.success("reset", cleared=cleared)

    def set_merging(self, enabled: bool) -> CommandResult:
        self.history.set_merging_enabled(enabled)
        return CommandResult.success("merge", enabled=enabled)

    def status(self) -> HistoryStatus:
        return self.history.get_status()

    def summary(self) -> dict[str, Any]:
        """Document, history and event overview for output layers."""
        return {
            "document": self.document.summary(),
            "history": self.status().model_dump(),
            "events": dict(self.event_bus.counts),
        }
