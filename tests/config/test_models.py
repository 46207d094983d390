"""Tests for the configuration section models."""

from __future__ import annotations

import pydantic
import pytest

from layergrid.config.models import GridConfig, HistoryConfig, LayergridConfig, PluginsConfig


class TestDefaults:
    def test_history(self) -> None:
        config = HistoryConfig()
        assert config.max_size == 50
        assert config.merging_enabled is True
        assert config.reorder_merge_window_ms == 2000
        assert config.cell_merge_window_ms == 2000

    def test_grid(self) -> None:
        config = GridConfig()
        assert (config.default_width, config.default_height) == (80, 25)
        assert (config.max_width, config.max_height) == (200, 100)

    def test_plugins(self) -> None:
        config = PluginsConfig()
        assert config.enabled is True
        assert config.local_dir == ".layergrid/plugins"

    def test_root_composes_sections(self) -> None:
        config = LayergridConfig()
        assert config.history == HistoryConfig()
        assert config.grid == GridConfig()


class TestValidation:
    def test_frozen(self) -> None:
        config = HistoryConfig()
        with pytest.raises(pydantic.ValidationError):
            config.max_size = 10  # type: ignore[misc]

    @pytest.mark.parametrize("size", [0, -5])
    def test_history_size_positive(self, size: int) -> None:
        with pytest.raises(pydantic.ValidationError):
            HistoryConfig(max_size=size)

    def test_negative_window_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            HistoryConfig(cell_merge_window_ms=-1)

    def test_default_size_must_fit_limits(self) -> None:
        with pytest.raises(pydantic.ValidationError, match="exceeds the maximum"):
            GridConfig(default_width=300)

    def test_raised_limits_allow_larger_defaults(self) -> None:
        config = GridConfig(default_width=300, max_width=400)
        assert config.default_width == 300

    def test_nested_dict(self) -> None:
        config = LayergridConfig.model_validate({"history": {"merging_enabled": False}})
        assert config.history.merging_enabled is False
        assert config.history.max_size == 50
