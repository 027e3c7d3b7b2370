"""Longest Common Subsequence diffing over serialized script lines.

Uses the standard dynamic-programming LCS algorithm to find the longest
sequence of lines shared by two versions of a script, and turns it into a
minimal edit script of RETAIN / INSERT / DELETE operations.

Tie-break rules keep the output deterministic:

* equal lines are always retained;
* inside a changed hunk, deletions come before insertions.
"""

from __future__ import annotations

from collections.abc import Sequence

from scratchdiff.models import EditOp, EditOpType

_PREFIX = {
    EditOpType.RETAIN: "",
    EditOpType.INSERT: "+",
    EditOpType.DELETE: "-",
}


def _lcs_table(old: Sequence[str], new: Sequence[str]) -> list[list[int]]:
    """Suffix LCS table: ``dp[i][j]`` is the LCS length of ``old[i:]`` and ``new[j:]``."""
    m = len(old)
    n = len(new)
    dp: list[list[int]] = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(m - 1, -1, -1):
        row, below = dp[i], dp[i + 1]
        for j in range(n - 1, -1, -1):
            if old[i] == new[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = max(below[j], row[j + 1])
    return dp


def diff_lines(old: Sequence[str], new: Sequence[str]) -> list[EditOp]:
    """Compute a minimal edit script transforming *old* into *new*.

    Parameters
    ----------
    old:
        Lines of the previous version.
    new:
        Lines of the current version.

    Returns
    -------
    list[EditOp]
        Operations in output order.  Applying RETAIN and DELETE lines in
        order yields *old*; applying RETAIN and INSERT lines yields *new*.

    Examples
    --------
    >>> [(op.op.value, op.line) for op in diff_lines(["a", "b"], ["a", "c"])]
    [('retain', 'a'), ('delete', 'b'), ('insert', 'c')]
    """
    m = len(old)
    n = len(new)

    # Common prefix and suffix never need the DP table.
    start = 0
    while start < m and start < n and old[start] == new[start]:
        start += 1
    end_old, end_new = m, n
    while end_old > start and end_new > start and old[end_old - 1] == new[end_new - 1]:
        end_old -= 1
        end_new -= 1

    ops: list[EditOp] = [
        EditOp(op=EditOpType.RETAIN, line=old[k], old_index=k, new_index=k)
        for k in range(start)
    ]

    mid_old = old[start:end_old]
    mid_new = new[start:end_new]
    dp = _lcs_table(mid_old, mid_new)

    i = j = 0
    while i < len(mid_old) and j < len(mid_new):
        if mid_old[i] == mid_new[j]:
            ops.append(EditOp(EditOpType.RETAIN, mid_old[i], start + i, start + j))
            i += 1
            j += 1
        elif dp[i + 1][j] >= dp[i][j + 1]:
            ops.append(EditOp(EditOpType.DELETE, mid_old[i], old_index=start + i))
            i += 1
        else:
            ops.append(EditOp(EditOpType.INSERT, mid_new[j], new_index=start + j))
            j += 1
    while i < len(mid_old):
        ops.append(EditOp(EditOpType.DELETE, mid_old[i], old_index=start + i))
        i += 1
    while j < len(mid_new):
        ops.append(EditOp(EditOpType.INSERT, mid_new[j], new_index=start + j))
        j += 1

    ops.extend(
        EditOp(EditOpType.RETAIN, old[end_old + k], end_old + k, end_new + k)
        for k in range(m - end_old)
    )
    return ops


def lcs_length(old: Sequence[str], new: Sequence[str]) -> int:
    """Return the number of lines retained by :func:`diff_lines`."""
    return sum(1 for op in diff_lines(old, new) if op.op is EditOpType.RETAIN)


def similarity(old: Sequence[str], new: Sequence[str]) -> float:
    """Return ``2 * lcs / (len(old) + len(new))``, or 1.0 for two empty inputs."""
    total = len(old) + len(new)
    if total == 0:
        return 1.0
    return 2 * lcs_length(old, new) / total


def apply_old(ops: Sequence[EditOp]) -> list[str]:
    """Rebuild the previous lines from RETAIN and DELETE operations."""
    return [op.line for op in ops if op.op is not EditOpType.INSERT]


def apply_new(ops: Sequence[EditOp]) -> list[str]:
    """Rebuild the current lines from RETAIN and INSERT operations."""
    return [op.line for op in ops if op.op is not EditOpType.DELETE]


def has_changes(ops: Sequence[EditOp]) -> bool:
    return any(op.op is not EditOpType.RETAIN for op in ops)


def render_unified(ops: Sequence[EditOp]) -> str:
    """Render an edit script as unified text.

    Retained lines are emitted unprefixed, inserted lines with ``+`` and
    deleted lines with ``-``, joined by newlines.

    >>> render_unified(diff_lines(["move 10 steps", "turn 15 degrees"],
    ...                           ["move 10 steps", "turn 90 degrees"]))
    'move 10 steps\\n-turn 15 degrees\\n+turn 90 degrees'
    """
    return "\n".join(_PREFIX[op.op] + op.line for op in ops)
