"""Diff record builder.

Pure aggregation of matcher, serializer and differencer output into the
:class:`DiffRecord` sequence handed to renderers and navigation.
"""

from __future__ import annotations

from collections.abc import Sequence

from scratchdiff.errors import SerializationError
from scratchdiff.models import (
    DiffLine,
    DiffRecord,
    EditOp,
    EditOpType,
    MatchedPair,
    ScriptStatus,
    SerializedScript,
)

from .classifier import classify
from .lcs_matcher import render_unified

SERIALIZATION_FAILED_MESSAGE = "Sorry, but we could not display blocks for this change."


def build_records(
    matches: Sequence[MatchedPair],
    serialized_pairs: Sequence[tuple[SerializedScript | None, SerializedScript | None]],
    edits: Sequence[list[EditOp] | SerializationError | None],
) -> list[DiffRecord]:
    """Assemble one :class:`DiffRecord` per matched pair.

    Parameters
    ----------
    matches:
        Matcher output, in display order.
    serialized_pairs:
        ``(old, new)`` serializer output per pair; ``None`` for an absent
        side or a side that failed to serialize.
    edits:
        Edit script per pair, or the :class:`SerializationError` that
        prevented computing one.

    Returns
    -------
    list[DiffRecord]
        ``script_index`` equals the position in this list.
    """
    records: list[DiffRecord] = []
    for index, (pair, (_, new), edit) in enumerate(zip(matches, serialized_pairs, edits)):
        status = classify(pair, edit)
        script_id = pair.new.id if pair.new is not None else pair.old.id  # type: ignore[union-attr]

        if isinstance(edit, SerializationError) or edit is None:
            records.append(DiffRecord(
                script_index=index,
                status=status,
                script_id=script_id,
                message=_failure_message(edit) if isinstance(edit, SerializationError) else None,
            ))
            continue

        records.append(_record_from_edit(index, status, script_id, new, edit))
    return records


def _record_from_edit(
    index: int,
    status: ScriptStatus,
    script_id: str,
    new: SerializedScript | None,
    edit: Sequence[EditOp],
) -> DiffRecord:
    lines: list[DiffLine] = []
    block_id_map: dict[int, str] = {}
    added = removed = 0

    for position, op in enumerate(edit):
        block_id: str | None = None
        if op.op is not EditOpType.DELETE and new is not None and op.new_index is not None:
            block_id = new.block_ids[op.new_index]

        if op.op is EditOpType.INSERT:
            added += 1
            if block_id is not None:
                block_id_map[position] = block_id
        elif op.op is EditOpType.DELETE:
            removed += 1

        lines.append(DiffLine(kind=op.op, text=op.line, block_id=block_id))

    return DiffRecord(
        script_index=index,
        status=status,
        added_line_count=added,
        removed_line_count=removed,
        diff_text=render_unified(edit),
        block_id_map=block_id_map,
        script_id=script_id,
        lines=tuple(lines),
    )


def _failure_message(error: SerializationError) -> str:
    return f"{SERIALIZATION_FAILED_MESSAGE} ({error.message})"
