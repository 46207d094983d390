"""CommandResult and ValidationResult — the command outcome contract.

INVARIANT: Precondition failures are returned, never raised.
A failed CommandResult means nothing was mutated.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# Error codes for rejected commands
LAST_LAYER = "LAST_LAYER"
NOT_FOUND = "NOT_FOUND"
INVALID_INDEX = "INVALID_INDEX"
INVALID_SIZE = "INVALID_SIZE"
INVALID_STRATEGY = "INVALID_STRATEGY"
INVALID_PURPOSE = "INVALID_PURPOSE"
NO_CHANGE = "NO_CHANGE"


class CommandError(BaseModel):
    """Structured error payload within a CommandResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class CommandResult(BaseModel):
    """Outcome of ``Command.execute()`` / ``Command.undo()``.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"remove_layer"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: CommandError | None = None

    @classmethod
    def success(cls, op: str, **data: Any) -> CommandResult:
        return cls(ok=True, op=op, data=data)

    @classmethod
    def failure(cls, op: str, code: str, message: str, **detail: Any) -> CommandResult:
        return cls(ok=False, op=op, error=CommandError(code=code, message=message, detail=detail))


class ValidationResult(BaseModel):
    """Outcome of ``Command.validate()``."""

    model_config = {"frozen": True}

    valid: bool
    code: str | None = None
    error: str | None = None

    @classmethod
    def passed(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def failed(cls, code: str, error: str) -> ValidationResult:
        return cls(valid=False, code=code, error=error)

    def to_result(self, op: str) -> CommandResult:
        """Convert a failed validation into a rejected CommandResult."""
        return CommandResult.failure(op, self.code or "INVALID", self.error or "Invalid command")
