"""Cell — the immutable value stored at every grid position.

Colors are palette indices.  Foreground runs 0-7; background runs -1 to 7
where -1 means transparent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_GLYPH = " "
DEFAULT_FG = 7
DEFAULT_BG = -1


@dataclass(frozen=True, slots=True)
class Cell:
    """One character cell: glyph plus foreground/background color index."""

    glyph: str = DEFAULT_GLYPH
    foreground: int = DEFAULT_FG
    background: int = DEFAULT_BG

    def is_empty(self) -> bool:
        """A space on a transparent background (foreground is ignored)."""
        return self.glyph == DEFAULT_GLYPH and self.background == DEFAULT_BG

    def to_dict(self) -> dict[str, Any]:
        return {"glyph": self.glyph, "foreground": self.foreground, "background": self.background}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Cell:
        return cls(
            glyph=data.get("glyph", DEFAULT_GLYPH),
            foreground=data.get("foreground", DEFAULT_FG),
            background=data.get("background", DEFAULT_BG),
        )


BLANK = Cell()
