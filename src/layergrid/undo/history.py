"""CommandHistory — the undo/redo stack engine.

Owns two stacks of commands and never touches document state itself.
Every public method leaves both stacks and ``last_command`` mutually
consistent before returning, including when a command raises.

Notifications (``history:*``) go through an optional EventBus.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel

from layergrid.undo.base import Command
from layergrid.undo.result import CommandResult

if TYPE_CHECKING:
    from layergrid.config.settings import GridSettings
    from layergrid.plugins.event_bus import EventBus

log = structlog.get_logger(__name__)

DEFAULT_MAX_SIZE = 50


class HistoryStatus(BaseModel):
    """Snapshot of what undo/redo affordances should show."""

    model_config = {"frozen": True}

    can_undo: bool
    can_redo: bool
    undo_count: int
    redo_count: int
    next_undo_description: str | None = None
    next_redo_description: str | None = None


class CommandHistory:
    """Bounded undo/redo history with merging of continuous gestures."""

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        *,
        event_bus: EventBus | None = None,
        merging_enabled: bool = True,
    ) -> None:
        if max_size < 1:
            msg = f"max_size must be at least 1, got {max_size}"
            raise ValueError(msg)
        self.max_size = max_size
        self.merging_enabled = merging_enabled
        self.last_command: Command | None = None
        self._undo_stack: list[Command] = []
        self._redo_stack: list[Command] = []
        self._event_bus = event_bus

    @classmethod
    def from_settings(
        cls,
        settings: GridSettings,
        *,
        event_bus: EventBus | None = None,
    ) -> CommandHistory:
        return cls(
            settings.history.max_size,
            event_bus=event_bus,
            merging_enabled=settings.history.merging_enabled,
        )

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def execute(self, command: Command, *, allow_merge: bool = True) -> CommandResult:
        """Run *command*, merging it into the previous one when allowed.

        A rejected command (``ok`` False) is neither pushed nor merged, and
        the redo stack survives.  Exceptions from ``command.execute()``
        propagate with both stacks untouched.
        """
        if self._should_merge(command, allow_merge):
            assert self.last_command is not None
            target = self.last_command
            target.merge(command)
            result = command.execute()
            log.debug("history.merge", command=command.description, into=target.description)
            self._emit("history:merged", command=target, merged_with=command)
            self._emit_changed()
            return result

        result = command.execute()
        if not result.ok:
            log.debug(
                "history.rejected",
                command=command.description,
                code=result.error.code if result.error else None,
            )
            return result

        self._undo_stack.append(command)
        self.last_command = command
        self._redo_stack.clear()
        while len(self._undo_stack) > self.max_size:
            evicted = self._undo_stack.pop(0)
            log.debug("history.evict", command=evicted.description)

        log.debug("history.execute", command=command.description, size=self.size())
        self._emit("history:executed", command=command)
        self._emit_changed()
        return result

    def undo(self) -> bool:
        """Undo the newest command. Returns False when there is nothing to undo."""
        if not self._undo_stack:
            return False
        command = self._undo_stack.pop()
        try:
            command.undo()
        except Exception:
            self._undo_stack.append(command)
            raise
        self._redo_stack.append(command)
        self.last_command = self._undo_stack[-1] if self._undo_stack else None

        log.debug("history.undo", command=command.description)
        self._emit("history:undone", command=command)
        self._emit_changed()
        return True

    def redo(self) -> bool:
        """Re-execute the newest undone command. Returns False when there is none."""
        if not self._redo_stack:
            return False
        command = self._redo_stack.pop()
        try:
            command.execute()
        except Exception:
            self._redo_stack.append(command)
            raise
        self._undo_stack.append(command)
        self.last_command = command

        log.debug("history.redo", command=command.description)
        self._emit("history:redone", command=command)
        self._emit_changed()
        return True

    def clear(self) -> None:
        had_entries = bool(self._undo_stack or self._redo_stack)
        self._undo_stack.clear()
        self._redo_stack.clear()
        self.last_command = None
        if had_entries:
            log.debug("history.clear")
            self._emit("history:cleared")
            self._emit_changed()

    def set_merging_enabled(self, enabled: bool) -> None:
        """Toggle merging. Disabling also closes the current merge window."""
        self.merging_enabled = enabled
        if not enabled:
            self.last_command = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def size(self) -> int:
        return len(self._undo_stack) + len(self._redo_stack)

    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def get_status(self) -> HistoryStatus:
        return HistoryStatus(
            can_undo=self.can_undo(),
            can_redo=self.can_redo(),
            undo_count=len(self._undo_stack),
            redo_count=len(self._redo_stack),
            next_undo_description=(
                self._undo_stack[-1].description if self._undo_stack else None
            ),
            next_redo_description=(
                self._redo_stack[-1].description if self._redo_stack else None
            ),
        )

    def get_undo_stack(self) -> list[Command]:
        """Copy of the undo stack, oldest first."""
        return list(self._undo_stack)

    def get_redo_stack(self) -> list[Command]:
        """Copy of the redo stack, oldest first."""
        return list(self._redo_stack)

    def memory_usage(self) -> int:
        return sum(cmd.memory_usage() for cmd in (*self._undo_stack, *self._redo_stack))

    def debug_info(self) -> dict[str, Any]:
        def describe(stack: list[Command]) -> list[dict[str, Any]]:
            return [
                {
                    "description": cmd.description,
                    "timestamp": cmd.timestamp,
                    "age_ms": round(cmd.age_ms),
                }
                for cmd in stack
            ]

        return {
            "undo_stack": describe(self._undo_stack),
            "redo_stack": describe(self._redo_stack),
            "max_size": self.max_size,
            "merging_enabled": self.merging_enabled,
            "last_command": self.last_command.description if self.last_command else None,
            "memory_usage": self.memory_usage(),
        }

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _should_merge(self, command: Command, allow_merge: bool) -> bool:
        if not (allow_merge and self.merging_enabled and self.last_command is not None):
            return False
        if not command.validate().valid:
            return False
        return self.last_command.can_merge(command)

    def _emit(self, event: str, **payload: Any) -> None:
        if self._event_bus is not None:
            self._event_bus.dispatch(event, payload)

    def _emit_changed(self) -> None:
        self._emit("history:changed", status=self.get_status())
