"""GridSettings: one object for CLI flags, env vars and ``layergrid.toml``.

Sources, strongest first:

1. keyword arguments (the CLI passes its flags here)
2. ``LAYERGRID_*`` environment variables, ``__`` between nesting levels,
   e.g. ``LAYERGRID_HISTORY__MAX_SIZE=10``
3. the TOML file found by :func:`~layergrid.config.discovery.find_config`
4. defaults on the section models
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from layergrid.config.discovery import find_config, read_toml
from layergrid.config.models import GridConfig, HistoryConfig, PluginsConfig

# Which TOML file the settings being built right now should read.
_active_toml: ContextVar[Path | None] = ContextVar("layergrid_active_toml", default=None)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by a parsed ``layergrid.toml``."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self.toml_path = toml_path
        self._sections = self._load(toml_path)

    @staticmethod
    def _load(toml_path: Path | None) -> dict[str, Any]:
        if toml_path is None or not toml_path.is_file():
            return {}
        try:
            return read_toml(toml_path)
        except ValueError as exc:
            raise click.ClickException(str(exc)) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        present = field_name in self._sections
        return self._sections.get(field_name), field_name, present

    def __call__(self) -> dict[str, Any]:
        return dict(self._sections)


class GridSettings(BaseSettings):
    """Settings shared by the CLI and :class:`EditorSession`.

    ``project_root`` is the directory of the loaded TOML file, or the
    working directory when there is none. Local plugins live under it.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        env_prefix="LAYERGRID_",
        env_nested_delimiter="__",
    )

    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    history: HistoryConfig = Field(default_factory=HistoryConfig)
    grid: GridConfig = Field(default_factory=GridConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # dotenv and secrets files are not consulted.
        return init_settings, env_settings, TomlSettingsSource(settings_cls, _active_toml.get())

    @property
    def local_plugin_dir(self) -> Path:
        return self.project_root / self.plugins.local_dir

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        project_root: Path | None = None,
        **cli_flags: Any,
    ) -> GridSettings:
        """Build settings for one CLI invocation.

        An explicit *config_path* that does not exist is ignored rather
        than searched for.
        """
        toml_path = _explicit_config(config_path) if config_path else find_config(project_root)
        if project_root is None:
            project_root = toml_path.parent if toml_path is not None else Path.cwd()

        token = _active_toml.set(toml_path)
        try:
            return cls(project_root=project_root, config_path=toml_path, **cli_flags)
        finally:
            _active_toml.reset(token)


def _explicit_config(config_path: str) -> Path | None:
    path = Path(config_path)
    return path if path.is_file() else None
