"""Tests for the ``run`` command and its operation parser."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import click
import pytest
from click.testing import CliRunner

from layergrid.cli import cli
from layergrid.commands.run import Op, OpType, apply_op
from layergrid.domain.cell import Cell
from layergrid.services.session import EditorSession


def _json_run(runner: CliRunner, *args: str) -> dict[str, Any]:
    result = runner.invoke(cli, ["--json", "run", *args])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["ok"] is True
    assert payload["op"] == "session"
    return payload["data"]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestOpType:
    @pytest.mark.parametrize(
        ("text", "name", "args"),
        [
            ("add", "add", ("main", None, None)),
            ("add:detail", "add", ("detail", None, None)),
            ("add:sketch:Draft:0", "add", ("sketch", "Draft", 0)),
            ("add::Named", "add", ("main", "Named", None)),
            ("remove:mid", "remove", ("mid",)),
            ("reorder:bg:2", "reorder", ("bg", 2)),
            ("up:bg", "up", ("bg",)),
            ("bottom:fg", "bottom", ("fg",)),
            ("resize:40x10", "resize", (40, 10, "pad")),
            ("resize:40X10:center", "resize", (40, 10, "center")),
            ("clear", "clear", (None,)),
            ("clear:fg", "clear", ("fg",)),
            ("paint:mid:3,4:@", "paint", ("mid", 3, 4, Cell("@"))),
            ("paint:mid:3,4:@:2:0", "paint", ("mid", 3, 4, Cell("@", 2, 0))),
            ("erase:mid:-1,0", "erase", ("mid", -1, 0)),
            ("undo", "undo", ()),
            ("merge:off", "merge", (False,)),
        ],
    )
    def test_parses(self, text: str, name: str, args: tuple[Any, ...]) -> None:
        op = OpType().convert(text, None, None)
        assert op == Op(name, args, text)

    @pytest.mark.parametrize(
        ("text", "message"),
        [
            ("bogus", "unknown operation"),
            ("remove", "expected 1 argument(s)"),
            ("remove:", "layer id cannot be empty"),
            ("reorder:bg:top", "target index must be an integer"),
            ("resize:40", "WIDTHxHEIGHT"),
            ("paint:mid:3-4:@", "X,Y"),
            ("paint:mid:3,4:ab", "single character"),
            ("undo:now", "expected 0 argument(s)"),
            ("merge:maybe", "'on' or 'off'"),
            ("add:a:b:c:d", "expected 0 to 3 arguments"),
        ],
    )
    def test_rejects(self, text: str, message: str) -> None:
        with pytest.raises(click.BadParameter, match=re.escape(message)):
            OpType().convert(text, None, None)

    def test_passes_op_through(self) -> None:
        op = Op("undo", (), "undo")
        assert OpType().convert(op, None, None) is op


class TestApplyOp:
    def test_dispatches_to_session(self, session: EditorSession) -> None:
        result = apply_op(session, OpType().convert("paint:fg:1,1:*", None, None))
        assert result.ok
        assert apply_op(session, OpType().convert("undo", None, None)).ok
        assert session.document.get_layer("fg").non_empty_count() == 0  # type: ignore[union-attr]


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@pytest.mark.usefixtures("_isolated_cwd")
class TestRunCommand:
    def test_empty_run_prints_document(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["run"])
        assert result.exit_code == 0
        assert "Document 80x25" in result.output
        assert "undo 0 / redo 0" in result.output

    def test_add_undo_redo(self, cli_runner: CliRunner) -> None:
        data = _json_run(cli_runner, "add:detail", "undo", "redo")
        layers = data["document"]["layers"]
        assert len(layers) == 4
        assert layers[-1]["name"] == "Detail"
        assert data["document"]["active_layer_id"] == layers[-1]["id"]
        assert data["history"]["undo_count"] == 1
        assert [step["ok"] for step in data["steps"]] == [True, True, True]

    def test_crop_and_undo(self, cli_runner: CliRunner) -> None:
        args = ["--width", "10", "--height", "10", "paint:fg:9,9:#", "resize:5x5:crop", "undo"]
        data = _json_run(cli_runner, *args)
        document = data["document"]
        assert (document["width"], document["height"]) == (10, 10)
        fg = next(layer for layer in document["layers"] if layer["id"] == "fg")
        assert fg["non_empty"] == 1

    def test_reorder_gesture_is_one_undo(self, cli_runner: CliRunner) -> None:
        data = _json_run(cli_runner, "reorder:mid:2", "reorder:mid:0", "undo")
        assert [layer["id"] for layer in data["document"]["layers"]] == ["bg", "mid", "fg"]
        assert data["history"]["redo_count"] == 1

    def test_rejection_is_reported_and_counted(self, cli_runner: CliRunner) -> None:
        data = _json_run(cli_runner, "remove:nope", "add")
        assert data["rejected"] == 1
        assert data["steps"][0] == {"op": "remove:nope", "ok": False, "code": "NOT_FOUND"}
        assert data["steps"][1]["ok"] is True

    def test_rejection_shown_in_human_mode(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["run", "undo"])
        assert result.exit_code == 0
        assert "EMPTY_HISTORY" in result.output
        assert "1 operation(s) rejected" in result.output

    def test_strict_stops_at_first_rejection(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["run", "--strict", "remove:missing", "add"])
        assert result.exit_code == 1
        assert "NOT_FOUND" in result.output
        assert "Document" not in result.output

    def test_strict_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "run", "--strict", "resize:0x4"])
        assert result.exit_code == 1
        payload = json.loads(result.output)
        assert payload["error"]["code"] == "INVALID_SIZE"

    def test_bad_op_is_usage_error(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["run", "add", "explode:now"])
        assert result.exit_code == 2
        assert "unknown operation" in result.output

    def test_quiet_prints_layer_ids(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "run", "remove:fg"])
        assert result.exit_code == 0
        assert result.output.strip() == "bg mid"

    def test_verbose_echoes_each_step(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-v", "run", "clear:mid"])
        assert result.exit_code == 0
        assert "OK  clear" in result.output
        assert "Events" in result.output

    def test_config_file_sets_defaults(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "grid.toml"
        config.write_text("[grid]\ndefault_width = 30\ndefault_height = 6\n")
        result = cli_runner.invoke(cli, ["-c", str(config), "--json", "run"])
        assert result.exit_code == 0, result.output
        document = json.loads(result.output)["data"]["document"]
        assert (document["width"], document["height"]) == (30, 6)

    def test_merge_off(self, cli_runner: CliRunner) -> None:
        data = _json_run(cli_runner, "merge:off", "paint:mid:0,0:a", "paint:mid:1,0:b")
        assert data["history"]["undo_count"] == 2

    def test_examples(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["run", "--examples"])
        assert result.exit_code == 0
        assert "layergrid run add:detail" in result.output

    def test_help_lists_ops(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["run", "--help"])
        assert result.exit_code == 0
        for word in ("--strict", "--width", "resize:WxH", "merge:on|off"):
            assert word in result.output
