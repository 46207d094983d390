"""Root CLI group: global output/config flags and subcommand registration."""

from __future__ import annotations

from typing import Any

import click

from layergrid import __version__
from layergrid.commands import register_commands
from layergrid.commands._context import AppContext
from layergrid.config.settings import GridSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="layergrid")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Show every step and debug logs.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("--no-plugins", is_flag=True, help="Skip plugin discovery.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    no_plugins: bool,
    config_path: str | None,
) -> None:
    """layergrid: undoable editing of layered character grids.

    Settings come from layergrid.toml (found by walking up from the
    current directory), LAYERGRID_* environment variables, and these flags.
    """
    overrides: dict[str, Any] = {}
    if no_plugins:
        overrides["plugins"] = {"enabled": False}
    settings = GridSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        **overrides,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
