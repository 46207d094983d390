"""Buffered Rich consoles for rendering results to strings.

Renderers print into a console whose file is a ``StringIO`` and hand the
captured text back to Click.  Rich drops color codes on its own when the
buffer is not a terminal.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

DEFAULT_WIDTH = 120

# Style names used in markup by the renderers.
LG_THEME = Theme(
    {
        "lg.ok": "bold green",
        "lg.error": "bold red",
        "lg.warning": "bold yellow",
        "lg.op": "bold cyan",
        "lg.key": "dim",
        "lg.id": "bold blue",
        "lg.active": "bold magenta",
        "lg.hidden": "dim",
        "lg.count": "magenta",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Return a themed console writing to a fresh buffer.

    A fixed *width* keeps wrapping identical across terminals.
    """
    buffer = StringIO()
    return Console(
        file=buffer,
        theme=LG_THEME,
        no_color=no_color,
        highlight=False,
        width=DEFAULT_WIDTH if width is None else width,
    )


def get_output(console: Console) -> str:
    buffer = console.file
    if not isinstance(buffer, StringIO):
        msg = "console was not created by create_console()"
        raise TypeError(msg)
    return buffer.getvalue()
