"""Tests for diff/classifier.py and diff/builder.py."""

from __future__ import annotations

import pytest

from scratchdiff.diff.builder import SERIALIZATION_FAILED_MESSAGE, build_records
from scratchdiff.diff.classifier import classify
from scratchdiff.diff.lcs_matcher import diff_lines
from scratchdiff.errors import SerializationError
from scratchdiff.models import (
    Block,
    DiffLine,
    DiffRecord,
    EditOpType,
    MatchedPair,
    Script,
    ScriptStatus,
    SerializedScript,
)


def _script(script_id):
    return Script(Block(id=script_id, opcode="looks_show"))


def _ser(*pairs):
    """Build a SerializedScript from ``(line, block_id)`` pairs."""
    return SerializedScript(
        lines=tuple(line for line, _ in pairs),
        block_ids=tuple(block_id for _, block_id in pairs),
    )


_ERROR = SerializationError("Input 'STEPS' of block 'motion_movesteps' holds no value")


class TestClassify:
    def test_added(self):
        pair = MatchedPair(old=None, new=_script("A"), new_index=0)
        assert classify(pair, diff_lines([], ["show"])) is ScriptStatus.ADDED

    def test_removed(self):
        pair = MatchedPair(old=_script("A"), new=None, old_index=0)
        assert classify(pair, diff_lines(["show"], [])) is ScriptStatus.REMOVED

    def test_error(self):
        pair = MatchedPair(old=_script("A"), new=_script("A"), old_index=0, new_index=0)
        assert classify(pair, _ERROR) is ScriptStatus.ERROR

    def test_added_wins_over_error(self):
        pair = MatchedPair(old=None, new=_script("A"), new_index=0)
        assert classify(pair, _ERROR) is ScriptStatus.ADDED

    def test_modified(self):
        pair = MatchedPair(old=_script("A"), new=_script("A"), old_index=0, new_index=0)
        assert classify(pair, diff_lines(["show"], ["hide"])) is ScriptStatus.MODIFIED

    def test_unmodified(self):
        pair = MatchedPair(old=_script("A"), new=_script("A"), old_index=0, new_index=0)
        assert classify(pair, diff_lines(["show"], ["show"])) is ScriptStatus.UNMODIFIED


class TestBuildRecords:
    def test_modified_record(self):
        old = _ser(("move (10) steps", "m"), ("turn right (15) degrees", "t"))
        new = _ser(("move (10) steps", "m"), ("turn right (90) degrees", "t2"))
        pair = MatchedPair(old=_script("s"), new=_script("s"), old_index=0, new_index=0)
        edit = diff_lines(old.lines, new.lines)

        [record] = build_records([pair], [(old, new)], [edit])

        assert record.script_index == 0
        assert record.status is ScriptStatus.MODIFIED
        assert record.added_line_count == 1
        assert record.removed_line_count == 1
        assert record.diff_text == (
            "move (10) steps\n-turn right (15) degrees\n+turn right (90) degrees"
        )
        assert record.block_id_map == {2: "t2"}
        assert record.lines == (
            DiffLine(EditOpType.RETAIN, "move (10) steps", "m"),
            DiffLine(EditOpType.DELETE, "turn right (15) degrees", None),
            DiffLine(EditOpType.INSERT, "turn right (90) degrees", "t2"),
        )
        assert record.navigable

    def test_added_record_maps_every_line(self):
        new = _ser(("when green flag clicked", "h"), ("show", "s"))
        pair = MatchedPair(old=None, new=_script("h"), new_index=0)

        [record] = build_records([pair], [(None, new)], [diff_lines([], new.lines)])

        assert record.status is ScriptStatus.ADDED
        assert record.added_line_count == 2
        assert record.removed_line_count == 0
        assert record.block_id_map == {0: "h", 1: "s"}
        assert record.diff_text == "+when green flag clicked\n+show"

    def test_removed_record_has_no_block_ids(self):
        old = _ser(("show", "s"), ("hide", "h"))
        pair = MatchedPair(old=_script("s"), new=None, old_index=0)

        [record] = build_records([pair], [(old, None)], [diff_lines(old.lines, [])])

        assert record.status is ScriptStatus.REMOVED
        assert record.removed_line_count == 2
        assert record.block_id_map == {}
        assert all(line.block_id is None for line in record.lines)
        assert record.script_id == "s"
        assert not record.navigable

    def test_error_record(self):
        pair = MatchedPair(old=_script("s"), new=_script("s"), old_index=0, new_index=0)

        [record] = build_records([pair], [(None, None)], [_ERROR])

        assert record.status is ScriptStatus.ERROR
        assert record.added_line_count == 0
        assert record.removed_line_count == 0
        assert record.diff_text == ""
        assert record.block_id_map == {}
        assert record.message.startswith(SERIALIZATION_FAILED_MESSAGE)

    def test_script_index_matches_position(self):
        pairs = [
            MatchedPair(old=None, new=_script("a"), new_index=0),
            MatchedPair(old=None, new=_script("b"), new_index=1),
            MatchedPair(old=_script("c"), new=None, old_index=0),
        ]
        sers = [(None, _ser(("show", "a"))), (None, _ser(("show", "b"))), (_ser(("show", "c")), None)]
        edits = [diff_lines([], ["show"]), diff_lines([], ["show"]), diff_lines(["show"], [])]

        records = build_records(pairs, sers, edits)

        assert [r.script_index for r in records] == [0, 1, 2]
        assert [r.script_id for r in records] == ["a", "b", "c"]

    def test_counts_match_lines(self):
        old = _ser(("a", "1"), ("b", "2"), ("c", "3"))
        new = _ser(("a", "1"), ("x", "4"), ("y", "5"), ("c", "3"))
        pair = MatchedPair(old=_script("s"), new=_script("s"), old_index=0, new_index=0)

        [record] = build_records([pair], [(old, new)], [diff_lines(old.lines, new.lines)])

        inserted = sum(1 for line in record.lines if line.kind is EditOpType.INSERT)
        deleted = sum(1 for line in record.lines if line.kind is EditOpType.DELETE)
        assert (record.added_line_count, record.removed_line_count) == (inserted, deleted)
        assert len(record.diff_text.splitlines()) == len(record.lines)


class TestDiffRecordValueSemantics:
    def test_equal_by_value(self):
        a = DiffRecord(0, ScriptStatus.ADDED, 1, 0, "+show", {0: "a"}, "a")
        b = DiffRecord(0, ScriptStatus.ADDED, 1, 0, "+show", {0: "a"}, "a")
        assert a == b

    def test_unhashable(self):
        record = DiffRecord(0, ScriptStatus.UNMODIFIED)
        assert DiffRecord.__hash__ is None
        with pytest.raises(TypeError):
            hash(record)
