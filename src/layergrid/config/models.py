"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, layergrid.toml only contains
overrides.  An empty file (or none at all) gives a working editor.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class HistoryConfig(BaseModel):
    """[history] section."""

    model_config = {"frozen": True}

    max_size: int = Field(default=50, ge=1)
    merging_enabled: bool = True
    reorder_merge_window_ms: int = Field(default=2000, ge=0)
    cell_merge_window_ms: int = Field(default=2000, ge=0)


class GridConfig(BaseModel):
    """[grid] section."""

    model_config = {"frozen": True}

    default_width: int = Field(default=80, ge=1)
    default_height: int = Field(default=25, ge=1)
    max_width: int = Field(default=200, ge=1)
    max_height: int = Field(default=100, ge=1)

    @model_validator(mode="after")
    def _defaults_within_limits(self) -> GridConfig:
        if self.default_width > self.max_width or self.default_height > self.max_height:
            msg = (
                f"Default grid {self.default_width}x{self.default_height} exceeds "
                f"the maximum {self.max_width}x{self.max_height}"
            )
            raise ValueError(msg)
        return self


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    local_dir: str = ".layergrid/plugins"


class LayergridConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    history: HistoryConfig = Field(default_factory=HistoryConfig)
    grid: GridConfig = Field(default_factory=GridConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
