"""Diff engine: the full previous/current comparison pipeline.

Serializes both snapshots, aligns their scripts, diffs every aligned pair
line by line, classifies the result and builds the ordered record list.
A script that cannot be serialized only degrades its own record to the
``error`` status; the rest of the run carries on.
"""

from __future__ import annotations

import json
import sys
import time
from collections.abc import Sequence

from scratchdiff.config import DiffConfig
from scratchdiff.errors import SerializationError
from scratchdiff.models import (
    DiffRecord,
    EditOp,
    MatchedPair,
    ScriptSnapshot,
    SerializedScript,
)
from scratchdiff.observability import get_logger, resolve_metrics
from scratchdiff.serializer.text import ScriptSerializer

from .builder import build_records
from .lcs_matcher import diff_lines
from .matcher import match_scripts

log = get_logger("scratchdiff.engine")

_Serialized = tuple[list[SerializedScript | None], list[SerializationError | None]]


class DiffEngine:
    """Computes diff records between two snapshots of a sprite.

    Parameters
    ----------
    config:
        Controls the serializer indent, fallback matching, metrics and
        debug output.
    """

    def __init__(self, config: DiffConfig | None = None) -> None:
        self._config = config or DiffConfig()
        self._serializer = ScriptSerializer(self._config)
        self._metrics = resolve_metrics(self._config.metrics)

    def diff(self, previous: ScriptSnapshot, current: ScriptSnapshot) -> list[DiffRecord]:
        """Compare *previous* with *current*.

        Returns
        -------
        list[DiffRecord]
            One record per distinguishable script: matched and added
            scripts in current order, then removed scripts in previous
            order.  Unmodified scripts are included.
        """
        t0 = time.monotonic()

        prev_ser, prev_err = self._serialize_all(previous)
        cur_ser, cur_err = self._serialize_all(current)

        matches = match_scripts(
            previous,
            current,
            previous_serialized=prev_ser,
            current_serialized=cur_ser,
            fallback=self._config.fallback_matching,
            threshold=self._config.similarity_threshold,
        )

        serialized_pairs: list[tuple[SerializedScript | None, SerializedScript | None]] = []
        edits: list[list[EditOp] | SerializationError | None] = []
        for pair in matches:
            old = prev_ser[pair.old_index] if pair.old_index is not None else None
            new = cur_ser[pair.new_index] if pair.new_index is not None else None
            serialized_pairs.append((old, new))
            edits.append(self._edit_for(pair, old, new, prev_err, cur_err))

        records = build_records(matches, serialized_pairs, edits)

        elapsed_ms = (time.monotonic() - t0) * 1000
        self._emit_metrics(records, elapsed_ms)
        log.info(
            "diff complete",
            extra={
                "extra_fields": {
                    "op": "diff",
                    "sprite": current.sprite or previous.sprite,
                    "scripts": len(records),
                    "duration_ms": round(elapsed_ms, 3),
                }
            },
        )
        if self._config.debug_dump_diff:
            _dump_diff(current.sprite or previous.sprite, records, edits)
        return records

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _serialize_all(self, snapshot: ScriptSnapshot) -> _Serialized:
        serialized: list[SerializedScript | None] = []
        errors: list[SerializationError | None] = []
        for index, script in enumerate(snapshot.scripts):
            try:
                serialized.append(self._serializer.serialize(script, index))
                errors.append(None)
            except SerializationError as exc:
                exc.context.setdefault("state", snapshot.state.value)
                log.warning(
                    "script could not be serialized",
                    extra={
                        "extra_fields": {
                            "op": "serialize",
                            "sprite": snapshot.sprite,
                            "state": snapshot.state.value,
                            "script_id": script.id,
                            "script_index": index,
                            "error": exc.message,
                        }
                    },
                )
                self._metrics.increment(
                    "scratchdiff.serialization_errors_total",
                    tags={"state": snapshot.state.value},
                )
                serialized.append(None)
                errors.append(exc)
        return serialized, errors

    @staticmethod
    def _edit_for(
        pair: MatchedPair,
        old: SerializedScript | None,
        new: SerializedScript | None,
        prev_err: Sequence[SerializationError | None],
        cur_err: Sequence[SerializationError | None],
    ) -> list[EditOp] | SerializationError:
        error = None
        if pair.old_index is not None:
            error = prev_err[pair.old_index]
        if error is None and pair.new_index is not None:
            error = cur_err[pair.new_index]
        if error is not None:
            return error

        old_lines = old.lines if old is not None else ()
        new_lines = new.lines if new is not None else ()
        return diff_lines(old_lines, new_lines)

    def _emit_metrics(self, records: Sequence[DiffRecord], elapsed_ms: float) -> None:
        for record in records:
            self._metrics.increment(
                "scratchdiff.scripts_total",
                tags={"status": record.status.value},
            )
        self._metrics.timing("scratchdiff.diff_duration_ms", elapsed_ms)


def _dump_diff(
    sprite: str,
    records: Sequence[DiffRecord],
    edits: Sequence[list[EditOp] | SerializationError | None],
) -> None:
    """Write the computed edit scripts to stderr."""
    dump = {
        "sprite": sprite,
        "scripts": [
            {
                "script_index": record.script_index,
                "script_id": record.script_id,
                "status": record.status.value,
                "ops": (
                    [[op.op.value, op.line] for op in edit]
                    if isinstance(edit, list)
                    else None
                ),
                "message": record.message,
            }
            for record, edit in zip(records, edits)
        ],
    }
    print(json.dumps(dump, indent=2, default=str), file=sys.stderr)
