"""Command — the abstract contract every undoable edit implements.

A command captures its parameters at construction and the state needed to
invert itself during its first ``execute()``.  Later ``execute()`` calls
(redo) reproduce the identical forward effect, reusing captured identities.

Lifecycle: constructed -> executed <-> undone.

The base class holds only ``description``, ``timestamp`` and ``executed``.
Everything else is subclass state.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from layergrid.domain.errors import ProgrammerMisuseError
from layergrid.undo.result import CommandResult, ValidationResult

if TYPE_CHECKING:
    from layergrid.plugins.event_bus import EventBus

DEFAULT_MEMORY_ESTIMATE = 1024  # bytes per command, rough


class Command(ABC):
    """Abstract base for every undoable command."""

    op: str = "command"

    def __init__(self, description: str, *, event_bus: EventBus | None = None) -> None:
        if not description:
            msg = "Command description cannot be empty"
            raise ValueError(msg)
        self.description = description
        self.timestamp = time.time()
        self.executed = False
        self._event_bus = event_bus

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    @abstractmethod
    def execute(self) -> CommandResult:
        """Apply the forward mutation. Repeat calls are redo."""

    @abstractmethod
    def undo(self) -> CommandResult:
        """Restore the exact state that preceded the last ``execute()``."""

    def can_merge(self, other: Command) -> bool:
        """Whether *other* can be folded into this command. Pure."""
        return False

    def merge(self, other: Command) -> None:
        """Absorb *other* so that undoing self undoes both."""
        msg = f"{type(self).__name__} does not support merging"
        raise ProgrammerMisuseError(msg)

    def validate(self) -> ValidationResult:
        return ValidationResult.passed()

    def get_details(self) -> dict[str, Any]:
        """Structured info for debugging and history views."""
        return {
            "type": type(self).__name__,
            "description": self.description,
            "timestamp": self.timestamp,
            "executed": self.executed,
        }

    def memory_usage(self) -> int:
        return DEFAULT_MEMORY_ESTIMATE

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def age_ms(self) -> float:
        return (time.time() - self.timestamp) * 1000

    def _require_executed(self) -> None:
        if not self.executed:
            msg = f"Cannot undo {type(self).__name__} before it has been executed"
            raise ProgrammerMisuseError(msg)

    def _require_mergeable(self, other: Command) -> None:
        if not self.can_merge(other):
            msg = f"Cannot merge {type(other).__name__} into {type(self).__name__}"
            raise ProgrammerMisuseError(msg)

    def _dispatch(self, event: str, **payload: Any) -> None:
        """Notify listeners. Listener failures never reach the caller."""
        if self._event_bus is not None:
            self._event_bus.dispatch(event, payload)

    def __str__(self) -> str:
        clock = time.strftime("%H:%M:%S", time.localtime(self.timestamp))
        return f"{self.description} ({clock})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(description={self.description!r}, executed={self.executed})"
