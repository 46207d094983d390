"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides session construction and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from layergrid.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from layergrid.config.settings import GridSettings
    from layergrid.services.session import EditorSession
    from layergrid.undo.result import CommandResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: GridSettings) -> None:
        self.settings = settings

        from layergrid.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def output_settings(self) -> OutputSettings:
        return OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )

    def new_session(self, *, width: int | None = None, height: int | None = None) -> EditorSession:
        from layergrid.services.session import EditorSession

        return EditorSession(self.settings, width=width, height=height)

    def report(self, result: CommandResult) -> None:
        """Echo an intermediate step result (human modes only).

        Successful steps are shown only when verbose; rejections always go
        to stderr.
        """
        settings = self.output_settings
        if settings.json_output:
            return
        if not result.ok:
            click.echo(format_result(result, settings=settings), err=True)
        elif settings.verbose:
            click.echo(format_result(result, settings=settings))

    def emit(self, result: CommandResult) -> None:
        """Format and output a CommandResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = self.output_settings
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
