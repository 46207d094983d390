"""Exception taxonomy for the editing core.

Precondition failures are *not* exceptions: commands report them as a
failed ``CommandResult``.  The classes here cover the two cases that are
raised instead:

- ``ProgrammerMisuseError``: the caller broke the command contract
  (undo before execute, merge of incompatible commands).
- ``StructuralDriftError``: the entity a command expects to find at
  undo/redo time is missing or has moved.
"""

from __future__ import annotations


class GridError(Exception):
    """Base class for all layergrid errors."""


class ProgrammerMisuseError(GridError):
    """A command was driven outside its contract."""


class StructuralDriftError(GridError):
    """The document no longer matches what a command captured.

    Attributes:
        layer_id: Identity of the entity that was expected, if known.
    """

    def __init__(self, message: str, *, layer_id: str | None = None) -> None:
        super().__init__(message)
        self.layer_id = layer_id
