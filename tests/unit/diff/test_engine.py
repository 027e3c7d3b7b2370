"""End-to-end tests for DiffEngine over in-memory snapshots."""

from __future__ import annotations

import json

from scratchdiff.config import DiffConfig
from scratchdiff.diff.engine import DiffEngine
from scratchdiff.models import (
    Block,
    BlockInput,
    InputKind,
    Script,
    ScriptSnapshot,
    ScriptStatus,
    SnapshotState,
)


class RecordingMetricsHook:
    def __init__(self) -> None:
        self.increments: list[tuple[str, dict | None]] = []
        self.timings: list[str] = []

    def increment(self, name, value=1, tags=None):
        self.increments.append((name, tags))

    def timing(self, name, ms, tags=None):
        self.timings.append(name)

    def gauge(self, name, value, tags=None):
        pass


def _lit(name, value):
    return BlockInput(name=name, kind=InputKind.LITERAL, value=value)


def _stack(*specs):
    below = None
    for block_id, opcode, inputs in reversed(specs):
        below = Block(id=block_id, opcode=opcode, inputs=tuple(inputs), next=below)
    return Script(below)


def _move_turn(prefix, degrees, top_id=None):
    return _stack(
        (top_id or f"{prefix}-m", "motion_movesteps", [_lit("STEPS", 10)]),
        (f"{prefix}-t", "motion_turnright", [_lit("DEGREES", degrees)]),
    )


def _snapshots(previous, current, sprite="Sprite1"):
    return (
        ScriptSnapshot(sprite, SnapshotState.PREVIOUS, tuple(previous)),
        ScriptSnapshot(sprite, SnapshotState.CURRENT, tuple(current)),
    )


class TestScenarios:
    def test_single_literal_change_is_modified(self, engine):
        """Changing one turn amount yields one modified record."""
        prev, cur = _snapshots(
            [_move_turn("a", 15, top_id="s1")],
            [_move_turn("b", 90, top_id="s1")],
        )

        [record] = engine.diff(prev, cur)

        assert record.status is ScriptStatus.MODIFIED
        assert record.diff_text == (
            "move (10) steps\n-turn right (15) degrees\n+turn right (90) degrees"
        )
        assert (record.added_line_count, record.removed_line_count) == (1, 1)
        assert record.block_id_map == {2: "b-t"}

    def test_new_script_is_added_with_block_ids(self, engine):
        """A script only in the current snapshot maps every line to a block."""
        prev, cur = _snapshots([], [_stack(
            ("h", "event_whenflagclicked", []),
            ("s", "looks_say", [_lit("MESSAGE", "hi")]),
        )])

        [record] = engine.diff(prev, cur)

        assert record.status is ScriptStatus.ADDED
        assert record.added_line_count == 2
        assert record.removed_line_count == 0
        assert record.block_id_map == {0: "h", 1: "s"}

    def test_broken_script_only_degrades_itself(self, exact_config):
        """One unserializable script becomes error; siblings are diffed normally."""
        engine = DiffEngine(exact_config)
        broken = _stack(("x", "motion_movesteps", [_lit("STEPS", None)]))
        prev, cur = _snapshots(
            [_move_turn("a", 15, top_id="s1"), _stack(("x", "looks_show", []))],
            [_move_turn("a", 90, top_id="s1"), broken],
        )

        records = engine.diff(prev, cur)

        assert [r.status for r in records] == [ScriptStatus.MODIFIED, ScriptStatus.ERROR]
        error = records[1]
        assert error.script_id == "x"
        assert (error.added_line_count, error.removed_line_count) == (0, 0)
        assert error.block_id_map == {}
        assert error.message

    def test_reordered_scripts_are_unmodified(self, engine):
        """Scripts that only moved in order are matched by id and unchanged."""
        one = _stack(("one", "looks_show", []))
        two = _stack(("two", "looks_hide", []))
        prev, cur = _snapshots([one, two], [two, one])

        records = engine.diff(prev, cur)

        assert len(records) == 2
        assert all(r.status is ScriptStatus.UNMODIFIED for r in records)
        assert [r.script_id for r in records] == ["two", "one"]


class TestOrderingAndTotality:
    def test_removed_scripts_come_last(self, exact_config):
        engine = DiffEngine(exact_config)
        prev, cur = _snapshots(
            [_stack(("gone", "looks_hide", [])), _stack(("kept", "looks_show", []))],
            [_stack(("kept", "looks_show", [])), _stack(("new", "looks_say", [_lit("MESSAGE", "x")]))],
        )

        records = engine.diff(prev, cur)

        assert [(r.script_id, r.status) for r in records] == [
            ("kept", ScriptStatus.UNMODIFIED),
            ("new", ScriptStatus.ADDED),
            ("gone", ScriptStatus.REMOVED),
        ]
        assert [r.script_index for r in records] == [0, 1, 2]

    def test_removed_record(self, engine):
        prev, cur = _snapshots([_stack(("gone", "looks_hide", []), ("g2", "looks_show", []))], [])

        [record] = engine.diff(prev, cur)

        assert record.status is ScriptStatus.REMOVED
        assert record.removed_line_count == 2
        assert record.diff_text == "-hide\n-show"
        assert record.block_id_map == {}

    def test_empty_snapshots(self, engine):
        prev, cur = _snapshots([], [])
        assert engine.diff(prev, cur) == []

    def test_identical_snapshots_all_unmodified(self, engine):
        scripts = [_move_turn("a", 15, top_id="s1"), _stack(("s2", "looks_show", []))]
        prev, cur = _snapshots(scripts, scripts)

        records = engine.diff(prev, cur)

        assert all(r.status is ScriptStatus.UNMODIFIED for r in records)
        assert all(r.added_line_count == r.removed_line_count == 0 for r in records)


class TestFallbackConfig:
    def test_reassigned_ids_are_unmodified_with_fallback(self, engine):
        prev, cur = _snapshots([_move_turn("a", 15)], [_move_turn("b", 15)])

        [record] = engine.diff(prev, cur)

        assert record.status is ScriptStatus.UNMODIFIED
        assert record.script_id == "b-m"

    def test_reassigned_ids_without_fallback(self, exact_config):
        prev, cur = _snapshots([_move_turn("a", 15)], [_move_turn("b", 15)])

        records = DiffEngine(exact_config).diff(prev, cur)

        assert [r.status for r in records] == [ScriptStatus.ADDED, ScriptStatus.REMOVED]

    def test_similar_script_under_new_id_is_modified(self):
        config = DiffConfig(fallback_matching="similar", similarity_threshold=0.5)
        prev, cur = _snapshots([_move_turn("a", 15)], [_move_turn("b", 90)])

        [record] = DiffEngine(config).diff(prev, cur)

        assert record.status is ScriptStatus.MODIFIED


class TestObservability:
    def test_metrics_emitted(self):
        hook = RecordingMetricsHook()
        engine = DiffEngine(DiffConfig(metrics=hook, fallback_matching="none"))
        broken = _stack(("x", "motion_movesteps", [_lit("STEPS", None)]))
        prev, cur = _snapshots([], [broken, _stack(("ok", "looks_show", []))])

        engine.diff(prev, cur)

        names = [name for name, _ in hook.increments]
        assert names.count("scratchdiff.scripts_total") == 2
        assert ("scratchdiff.serialization_errors_total", {"state": "current"}) in hook.increments
        assert ("scratchdiff.scripts_total", {"status": "added"}) in hook.increments
        assert "scratchdiff.diff_duration_ms" in hook.timings

    def test_debug_dump_to_stderr(self, capsys):
        engine = DiffEngine(DiffConfig(debug_dump_diff=True))
        prev, cur = _snapshots([_move_turn("a", 15, top_id="s1")], [_move_turn("a", 90, top_id="s1")])

        engine.diff(prev, cur)

        err = capsys.readouterr().err
        dump = json.loads(err[err.index("{\n"):])
        assert dump["sprite"] == "Sprite1"
        [script] = dump["scripts"]
        assert script["status"] == "modified"
        assert ["insert", "turn right (90) degrees"] in script["ops"]

    def test_no_dump_by_default(self, engine, capsys):
        prev, cur = _snapshots([], [_stack(("s", "looks_show", []))])
        engine.diff(prev, cur)
        assert '"ops"' not in capsys.readouterr().err
