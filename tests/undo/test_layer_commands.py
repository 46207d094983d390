"""Tests for AddLayerCommand, RemoveLayerCommand and ReorderLayersCommand."""

from __future__ import annotations

import re

import pytest

from layergrid.domain.cell import Cell
from layergrid.domain.document import Document
from layergrid.domain.errors import ProgrammerMisuseError, StructuralDriftError
from layergrid.domain.layer import Layer
from layergrid.plugins.event_bus import EventBus
from layergrid.undo.history import CommandHistory
from layergrid.undo.layers import AddLayerCommand, RemoveLayerCommand, ReorderLayersCommand
from tests.conftest import RecordingPlugin, put


# ---------------------------------------------------------------------------
# AddLayerCommand
# ---------------------------------------------------------------------------


class TestAddLayer:
    def test_adds_on_top_and_activates(self, document: Document) -> None:
        cmd = AddLayerCommand(document, "detail")
        result = cmd.execute()
        assert result.ok
        assert cmd.description == "Add Detail Layer"
        assert re.fullmatch(r"detail_[0-9a-f]{8}", cmd.layer_id or "")
        assert document.layer_ids[-1] == cmd.layer_id
        assert document.active_layer_id == cmd.layer_id
        assert document.active_layer.name == "Detail"  # type: ignore[union-attr]
        assert result.data == {"layer_id": cmd.layer_id, "index": 3}

    def test_insert_at(self, document: Document) -> None:
        cmd = AddLayerCommand(document, "sketch", "Draft", 0)
        cmd.execute()
        assert document.layer_ids[0] == cmd.layer_id
        assert document.layers[0].name == "Draft"
        assert cmd.description == "Add Draft Layer"

    def test_unknown_purpose_uses_main_template(self, document: Document) -> None:
        cmd = AddLayerCommand(document, "banana")
        cmd.execute()
        assert cmd.description == "Add Banana Layer"
        assert (cmd.layer_id or "").startswith("banana_")
        assert document.active_layer.name == "Main"  # type: ignore[union-attr]

    def test_name_is_numbered_when_taken(self, document: Document) -> None:
        AddLayerCommand(document, "detail").execute()
        second = AddLayerCommand(document, "detail")
        assert second.name == "Detail 2"

    def test_undo_restores_snapshot(self, document: Document) -> None:
        before = document.snapshot()
        cmd = AddLayerCommand(document, "effect")
        cmd.execute()
        cmd.undo()
        assert document.snapshot() == before

    def test_redo_reuses_identity_and_content(self, document: Document) -> None:
        cmd = AddLayerCommand(document, "effect")
        cmd.execute()
        put(document, cmd.layer_id or "", 1, 1, "*")
        after = document.snapshot()

        cmd.undo()
        cmd.execute()
        assert document.snapshot() == after

    def test_undo_falls_back_to_first_layer(self) -> None:
        doc = Document(4, 3, [Layer("a", "A", 4, 3), Layer("b", "B", 4, 3)])
        cmd = AddLayerCommand(doc)
        cmd.execute()
        # Previous active layer disappears behind the command's back.
        doc.remove_layer("a")
        cmd.undo()
        assert doc.active_layer_id == "b"

    @pytest.mark.parametrize("index", [-1, 4, 99])
    def test_rejects_bad_index(self, document: Document, index: int) -> None:
        before = document.snapshot()
        result = AddLayerCommand(document, "detail", insert_at=index).execute()
        assert not result.ok
        assert result.error is not None and result.error.code == "INVALID_INDEX"
        assert document.snapshot() == before

    def test_rejects_empty_purpose(self, document: Document) -> None:
        result = AddLayerCommand(document, "").execute()
        assert result.error is not None and result.error.code == "INVALID_PURPOSE"
        assert len(document) == 3

    def test_undo_before_execute(self, document: Document) -> None:
        with pytest.raises(ProgrammerMisuseError):
            AddLayerCommand(document).undo()

    def test_undo_detects_missing_layer(self, document: Document) -> None:
        cmd = AddLayerCommand(document)
        cmd.execute()
        document.remove_layer(cmd.layer_id or "")
        with pytest.raises(StructuralDriftError):
            cmd.undo()

    def test_dispatches_structure_changed(
        self, document: Document, event_bus: EventBus, recorder: RecordingPlugin
    ) -> None:
        cmd = AddLayerCommand(document, event_bus=event_bus)
        cmd.execute()
        cmd.undo()
        assert recorder.calls == [
            ("structure:changed", {"reason": "layer_added", "layer_id": cmd.layer_id}),
            ("structure:changed", {"reason": "layer_removed", "layer_id": cmd.layer_id}),
        ]


# ---------------------------------------------------------------------------
# RemoveLayerCommand
# ---------------------------------------------------------------------------


class TestRemoveLayer:
    def test_last_layer_is_rejected(self) -> None:
        doc = Document(4, 3, [Layer("only", "Only", 4, 3)])
        before = doc.snapshot()
        result = RemoveLayerCommand(doc, "only").execute()
        assert result.ok is False
        assert result.error is not None and result.error.code == "LAST_LAYER"
        assert doc.snapshot() == before

    def test_missing_layer_is_rejected(self, abc_document: Document) -> None:
        result = RemoveLayerCommand(abc_document, "Z").execute()
        assert result.error is not None and result.error.code == "NOT_FOUND"

    def test_remove_active_middle_layer(self, abc_document: Document) -> None:
        cmd = RemoveLayerCommand(abc_document, "B")
        cmd.execute()
        assert abc_document.layer_ids == ["A", "C"]
        assert abc_document.active_layer_id == "C"
        assert cmd.was_active

        cmd.undo()
        assert abc_document.layer_ids == ["A", "B", "C"]
        assert abc_document.active_layer_id == "B"

    def test_undo_restores_content_exactly(self, abc_document: Document) -> None:
        put(abc_document, "A", 0, 0, "x")
        put(abc_document, "A", 3, 2, "y", fg=2)
        abc_document.get_layer("A").locked = True  # type: ignore[union-attr]
        before = abc_document.snapshot()

        cmd = RemoveLayerCommand(abc_document, "A")
        cmd.execute()
        assert not cmd.was_active
        cmd.undo()
        assert abc_document.snapshot() == before

    def test_redo_matches_first_execute(self, abc_document: Document) -> None:
        cmd = RemoveLayerCommand(abc_document, "C")
        cmd.execute()
        after = abc_document.snapshot()
        cmd.undo()
        cmd.execute()
        assert abc_document.snapshot() == after

    def test_redo_detects_displaced_layer(self, abc_document: Document) -> None:
        cmd = RemoveLayerCommand(abc_document, "C")
        cmd.execute()
        cmd.undo()
        abc_document.move_layer(2, 0)
        with pytest.raises(StructuralDriftError):
            cmd.execute()

    def test_undo_detects_reappeared_layer(self, abc_document: Document) -> None:
        cmd = RemoveLayerCommand(abc_document, "A")
        cmd.execute()
        abc_document.insert_layer(Layer("A", "Impostor", 4, 3))
        with pytest.raises(StructuralDriftError):
            cmd.undo()

    def test_description_uses_layer_name(self, document: Document) -> None:
        assert RemoveLayerCommand(document, "fg").description == "Remove Foreground Layer"


# ---------------------------------------------------------------------------
# ReorderLayersCommand
# ---------------------------------------------------------------------------


class TestReorder:
    def test_move_and_undo(self, abc_document: Document) -> None:
        cmd = ReorderLayersCommand(abc_document, "A", 0, 2)
        assert cmd.execute().ok
        assert abc_document.layer_ids == ["B", "C", "A"]
        assert cmd.description == "Move Layer A Layer up"
        cmd.undo()
        assert abc_document.layer_ids == ["A", "B", "C"]

    def test_active_layer_is_unchanged(self, abc_document: Document) -> None:
        ReorderLayersCommand(abc_document, "B", 1, 0).execute()
        assert abc_document.active_layer_id == "B"

    def test_first_execute_resyncs_from_index(self, abc_document: Document) -> None:
        cmd = ReorderLayersCommand(abc_document, "B", 0, 2)
        cmd.execute()
        assert cmd.from_index == 1
        cmd.undo()
        assert abc_document.layer_ids == ["A", "B", "C"]

    @pytest.mark.parametrize(
        ("layer_id", "from_index", "to_index", "code"),
        [
            ("Z", 0, 1, "NOT_FOUND"),
            ("A", 0, 3, "INVALID_INDEX"),
            ("A", -1, 1, "INVALID_INDEX"),
            ("A", 1, 1, "NO_CHANGE"),
        ],
    )
    def test_validation(
        self,
        abc_document: Document,
        layer_id: str,
        from_index: int,
        to_index: int,
        code: str,
    ) -> None:
        result = ReorderLayersCommand(abc_document, layer_id, from_index, to_index).execute()
        assert result.error is not None and result.error.code == code
        assert abc_document.layer_ids == ["A", "B", "C"]

    def test_already_in_place_after_resync(self, abc_document: Document) -> None:
        result = ReorderLayersCommand(abc_document, "C", 0, 2).execute()
        assert result.error is not None and result.error.code == "NO_CHANGE"

    def test_undo_detects_drift(self, abc_document: Document) -> None:
        cmd = ReorderLayersCommand(abc_document, "A", 0, 2)
        cmd.execute()
        abc_document.move_layer(2, 1)
        with pytest.raises(StructuralDriftError):
            cmd.undo()


class TestReorderMerging:
    def test_gesture_merges_into_one_step(self, abc_document: Document) -> None:
        history = CommandHistory()
        first = ReorderLayersCommand(abc_document, "B", 1, 2)
        history.execute(first)
        second = ReorderLayersCommand(abc_document, "B", 2, 0)
        second.timestamp = first.timestamp + 0.5
        history.execute(second)

        assert abc_document.layer_ids == ["B", "A", "C"]
        assert history.size() == 1
        assert (first.from_index, first.to_index) == (1, 0)
        assert first.description == "Move Layer B Layer down (1 positions)"

        assert history.undo()
        assert abc_document.layer_ids == ["A", "B", "C"]
        assert not history.can_undo()

        assert history.redo()
        assert abc_document.layer_ids == ["B", "A", "C"]

    def test_merged_event_names_surviving_entry_first(
        self, abc_document: Document, event_bus: EventBus, recorder: RecordingPlugin
    ) -> None:
        history = CommandHistory(event_bus=event_bus)
        first = ReorderLayersCommand(abc_document, "B", 1, 2)
        history.execute(first)
        second = ReorderLayersCommand(abc_document, "B", 2, 0)
        second.timestamp = first.timestamp + 0.5
        history.execute(second)

        merged = [payload for name, payload in recorder.calls if name == "history:merged"]
        assert len(merged) == 1
        assert merged[0]["command"] is first
        assert merged[0]["merged_with"] is second
        assert history.get_undo_stack() == [first]

    def test_merge_keeps_later_timestamp(self, abc_document: Document) -> None:
        first = ReorderLayersCommand(abc_document, "A", 0, 1)
        first.execute()
        second = ReorderLayersCommand(abc_document, "A", 1, 2)
        second.timestamp = first.timestamp + 1.0
        first.merge(second)
        assert first.timestamp == second.timestamp

    def test_outside_window(self, abc_document: Document) -> None:
        first = ReorderLayersCommand(abc_document, "B", 1, 2)
        first.execute()
        second = ReorderLayersCommand(abc_document, "B", 2, 0)
        second.timestamp = first.timestamp + 2.5
        assert not first.can_merge(second)

    def test_custom_window(self, abc_document: Document) -> None:
        first = ReorderLayersCommand(abc_document, "B", 1, 2, merge_window_ms=100)
        second = ReorderLayersCommand(abc_document, "B", 2, 0)
        second.timestamp = first.timestamp + 0.2
        assert not first.can_merge(second)

    def test_other_layer_never_merges(self, abc_document: Document) -> None:
        first = ReorderLayersCommand(abc_document, "B", 1, 2)
        second = ReorderLayersCommand(abc_document, "A", 2, 0)
        assert not first.can_merge(second)

    def test_discontinuous_move_never_merges(self, abc_document: Document) -> None:
        first = ReorderLayersCommand(abc_document, "B", 1, 2)
        second = ReorderLayersCommand(abc_document, "B", 1, 0)
        assert not first.can_merge(second)
        with pytest.raises(ProgrammerMisuseError):
            first.merge(second)


class TestReorderFactories:
    def test_move_up_and_down(self, abc_document: Document) -> None:
        up = ReorderLayersCommand.move_up(abc_document, "A")
        assert up is not None and (up.from_index, up.to_index) == (0, 1)
        down = ReorderLayersCommand.move_down(abc_document, "C")
        assert down is not None and (down.from_index, down.to_index) == (2, 1)

    def test_top_and_bottom(self, abc_document: Document) -> None:
        top = ReorderLayersCommand.move_to_top(abc_document, "A")
        assert top is not None and top.to_index == 2
        bottom = ReorderLayersCommand.move_to_bottom(abc_document, "C")
        assert bottom is not None and bottom.to_index == 0

    def test_already_in_place_returns_none(self, abc_document: Document) -> None:
        assert ReorderLayersCommand.move_up(abc_document, "C") is None
        assert ReorderLayersCommand.move_to_top(abc_document, "C") is None
        assert ReorderLayersCommand.move_down(abc_document, "A") is None
        assert ReorderLayersCommand.move_to_bottom(abc_document, "A") is None

    def test_unknown_layer(self, abc_document: Document) -> None:
        with pytest.raises(KeyError):
            ReorderLayersCommand.move_up(abc_document, "Z")

    def test_factory_passes_options(self, abc_document: Document, event_bus: EventBus) -> None:
        cmd = ReorderLayersCommand.move_up(
            abc_document, "A", event_bus=event_bus, merge_window_ms=50
        )
        assert cmd is not None and cmd.merge_window_ms == 50


def test_cell_values_survive_reorder_round_trip(abc_document: Document) -> None:
    put(abc_document, "B", 2, 1, "@")
    before = abc_document.snapshot()
    cmd = ReorderLayersCommand(abc_document, "B", 1, 2)
    cmd.execute()
    assert abc_document.get_layer("B").get_cell(2, 1) == Cell("@")  # type: ignore[union-attr]
    cmd.undo()
    assert abc_document.snapshot() == before
