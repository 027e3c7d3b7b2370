"""Script matcher: align previous scripts with current scripts.

Matching happens in up to three passes, each only over scripts the
previous passes left unpaired:

1. **id**: same top-level block id.  Position does not matter, so
   reordered scripts are never reported as added + removed.
2. **fingerprint**: identical serialized structure under different ids
   (the host editor reassigned ids across a save).
3. **similarity**: line similarity at or above a threshold, best ratio
   first.

Output order is the current snapshot's order (matched and added scripts),
followed by removed scripts in previous-snapshot order.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

from scratchdiff.models import MatchedPair, MatchKind, ScriptSnapshot, SerializedScript

from .lcs_matcher import similarity
from .signature import compute_identity


def match_scripts(
    previous: ScriptSnapshot,
    current: ScriptSnapshot,
    previous_serialized: Sequence[SerializedScript | None] | None = None,
    current_serialized: Sequence[SerializedScript | None] | None = None,
    fallback: Literal["none", "exact", "similar"] = "none",
    threshold: float = 0.6,
) -> list[MatchedPair]:
    """Align the scripts of two snapshots.

    Parameters
    ----------
    previous, current:
        The two snapshots.
    previous_serialized, current_serialized:
        Serializer output parallel to each snapshot's scripts (``None``
        entries for scripts that failed to serialize).  Required for the
        fallback passes; ignored when *fallback* is ``"none"``.
    fallback:
        Which fallback passes run after id matching.
    threshold:
        Minimum similarity for the ``"similar"`` pass.

    Returns
    -------
    list[MatchedPair]
        Every script of both snapshots appears in exactly one pair.
    """
    prev_scripts = previous.scripts
    cur_scripts = current.scripts

    prev_by_id = {script.id: i for i, script in enumerate(prev_scripts)}
    assigned: dict[int, tuple[int, MatchKind]] = {}
    matched_old: set[int] = set()

    for j, script in enumerate(cur_scripts):
        i = prev_by_id.get(script.id)
        if i is not None:
            assigned[j] = (i, MatchKind.ID)
            matched_old.add(i)

    if fallback != "none" and previous_serialized is not None and current_serialized is not None:
        _match_fingerprints(
            previous, current, previous_serialized, current_serialized, assigned, matched_old,
        )
        if fallback == "similar":
            _match_similar(
                previous_serialized, current_serialized, assigned, matched_old, threshold,
            )

    pairs: list[MatchedPair] = []
    for j, script in enumerate(cur_scripts):
        if j in assigned:
            i, kind = assigned[j]
            pairs.append(MatchedPair(
                old=prev_scripts[i], new=script, old_index=i, new_index=j, match_kind=kind,
            ))
        else:
            pairs.append(MatchedPair(old=None, new=script, new_index=j))

    pairs.extend(
        MatchedPair(old=script, new=None, old_index=i)
        for i, script in enumerate(prev_scripts)
        if i not in matched_old
    )
    return pairs


def _match_fingerprints(
    previous: ScriptSnapshot,
    current: ScriptSnapshot,
    previous_serialized: Sequence[SerializedScript | None],
    current_serialized: Sequence[SerializedScript | None],
    assigned: dict[int, tuple[int, MatchKind]],
    matched_old: set[int],
) -> None:
    """Pair unmatched scripts whose structure is identical."""
    by_fingerprint: dict[str, list[int]] = {}
    for i, script in enumerate(previous.scripts):
        if i in matched_old:
            continue
        identity = compute_identity(script, previous_serialized[i], i)
        if identity.fingerprint is not None:
            by_fingerprint.setdefault(identity.fingerprint, []).append(i)

    for j, script in enumerate(current.scripts):
        if j in assigned:
            continue
        identity = compute_identity(script, current_serialized[j], j)
        candidates = by_fingerprint.get(identity.fingerprint or "")
        if candidates:
            i = candidates.pop(0)
            assigned[j] = (i, MatchKind.FINGERPRINT)
            matched_old.add(i)


def _match_similar(
    previous_serialized: Sequence[SerializedScript | None],
    current_serialized: Sequence[SerializedScript | None],
    assigned: dict[int, tuple[int, MatchKind]],
    matched_old: set[int],
    threshold: float,
) -> None:
    """Greedily pair the most similar remaining scripts."""
    candidates: list[tuple[float, int, int]] = []
    for j, new in enumerate(current_serialized):
        if j in assigned or new is None:
            continue
        for i, old in enumerate(previous_serialized):
            if i in matched_old or old is None:
                continue
            ratio = similarity(old.lines, new.lines)
            if ratio >= threshold:
                candidates.append((ratio, j, i))

    candidates.sort(key=lambda c: (-c[0], c[1], c[2]))
    for _, j, i in candidates:
        if j in assigned or i in matched_old:
            continue
        assigned[j] = (i, MatchKind.SIMILARITY)
        matched_old.add(i)
