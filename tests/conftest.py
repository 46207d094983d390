"""Shared pytest fixtures and test helpers for layergrid tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pluggy
import pytest
from click.testing import CliRunner

from layergrid.config.models import PluginsConfig
from layergrid.config.settings import GridSettings
from layergrid.domain.cell import Cell
from layergrid.domain.document import Document
from layergrid.domain.layer import Layer
from layergrid.plugins.event_bus import EventBus
from layergrid.plugins.manager import PluginManager
from layergrid.services.session import EditorSession

hookimpl = pluggy.HookimplMarker("layergrid")


class RecordingPlugin:
    """Plugin that records every editor event it receives."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    @hookimpl
    def history_executed(self, command: Any) -> None:
        self.calls.append(("history:executed", {"command": command}))

    @hookimpl
    def history_undone(self, command: Any) -> None:
        self.calls.append(("history:undone", {"command": command}))

    @hookimpl
    def history_redone(self, command: Any) -> None:
        self.calls.append(("history:redone", {"command": command}))

    @hookimpl
    def history_merged(self, command: Any, merged_with: Any) -> None:
        self.calls.append(("history:merged", {"command": command, "merged_with": merged_with}))

    @hookimpl
    def history_cleared(self) -> None:
        self.calls.append(("history:cleared", {}))

    @hookimpl
    def history_changed(self, status: Any) -> None:
        self.calls.append(("history:changed", {"status": status}))

    @hookimpl
    def cell_changed(self, layer_id: str, x: int, y: int, cell: Cell) -> None:
        self.calls.append(("cell:changed", {"layer_id": layer_id, "x": x, "y": y, "cell": cell}))

    @hookimpl
    def layer_changed(self, layer_id: str, reason: str) -> None:
        self.calls.append(("layer:changed", {"layer_id": layer_id, "reason": reason}))

    @hookimpl
    def structure_changed(self, reason: str, layer_id: str) -> None:
        self.calls.append(("structure:changed", {"reason": reason, "layer_id": layer_id}))

    @hookimpl
    def document_resized(
        self,
        old_width: int,
        old_height: int,
        new_width: int,
        new_height: int,
        strategy: str,
    ) -> None:
        self.calls.append(
            (
                "document:resized",
                {
                    "old_width": old_width,
                    "old_height": old_height,
                    "new_width": new_width,
                    "new_height": new_height,
                    "strategy": strategy,
                },
            )
        )


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def recorder() -> RecordingPlugin:
    return RecordingPlugin()


@pytest.fixture
def plugin_manager(recorder: RecordingPlugin) -> PluginManager:
    pm = PluginManager()
    pm.register_plugin(recorder, name="recorder")
    return pm


@pytest.fixture
def event_bus(plugin_manager: PluginManager) -> EventBus:
    return EventBus(plugin_manager)


@pytest.fixture
def document() -> Document:
    """Default 80x25 document with bg/mid/fg layers, mid active."""
    return Document()


@pytest.fixture
def abc_document() -> Document:
    """Small 4x3 document with layers A, B, C and B active."""
    layers = [Layer(layer_id, f"Layer {layer_id}", 4, 3) for layer_id in ("A", "B", "C")]
    return Document(4, 3, layers, active_layer_id="B")


@pytest.fixture
def settings(tmp_path: Path) -> GridSettings:
    """Settings isolated from env plugins and on-disk config."""
    return GridSettings(project_root=tmp_path, plugins=PluginsConfig(enabled=False))


@pytest.fixture
def session(settings: GridSettings, plugin_manager: PluginManager) -> EditorSession:
    return EditorSession(settings, plugin_manager=plugin_manager, width=10, height=10)


@pytest.fixture
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run CLI tests from an empty directory with no config in reach."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LAYERGRID_CONFIG", str(tmp_path / "absent.toml"))


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def put(document: Document, layer_id: str, x: int, y: int, glyph: str, fg: int = 7) -> Cell:
    """Write a cell directly (bypassing history) for test setup."""
    layer = document.get_layer(layer_id)
    assert layer is not None
    cell = Cell(glyph, fg)
    assert layer.set_cell(x, y, cell)
    return cell
