"""Undo layer — the Command contract, the history engine, and concrete commands.

Commands may import from domain and plugins.
They must never import from services, commands, output, or config.
"""

from layergrid.undo.base import Command
from layergrid.undo.cells import CellChange, CellCommand
from layergrid.undo.clear import ClearCommand
from layergrid.undo.history import CommandHistory, HistoryStatus
from layergrid.undo.layers import AddLayerCommand, RemoveLayerCommand, ReorderLayersCommand
from layergrid.undo.resize import ResizeCommand
from layergrid.undo.result import CommandError, CommandResult, ValidationResult

__all__ = [
    "AddLayerCommand",
    "CellChange",
    "CellCommand",
    "ClearCommand",
    "Command",
    "CommandError",
    "CommandHistory",
    "CommandResult",
    "HistoryStatus",
    "RemoveLayerCommand",
    "ReorderLayersCommand",
    "ResizeCommand",
    "ValidationResult",
]
