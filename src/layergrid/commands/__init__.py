"""Subcommands of the layergrid CLI.

Command modules are imported inside :func:`register_commands`, keeping
them off the import path of ``layergrid --version``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Attach every subcommand to the root group."""
    from layergrid.commands.run import run

    for command in (run,):
        cli.add_command(command)
