"""Per-script status classification.

Rules, first match wins:

============================================  ==============
Condition                                     Status
============================================  ==============
no previous script                            ``added``
no current script                             ``removed``
serialization failed for either side          ``error``
edit script has an insert or delete           ``modified``
edit script only retains                      ``unmodified``
============================================  ==============
"""

from __future__ import annotations

from collections.abc import Sequence

from scratchdiff.errors import SerializationError
from scratchdiff.models import EditOp, MatchedPair, ScriptStatus

from .lcs_matcher import has_changes


def classify(
    pair: MatchedPair,
    edit: Sequence[EditOp] | SerializationError | None,
) -> ScriptStatus:
    """Assign a status to one matched pair.

    Parameters
    ----------
    pair:
        The matched pair.
    edit:
        The pair's edit script, or the :class:`SerializationError` raised
        while serializing either side.  ``None`` is accepted for added and
        removed pairs, which have nothing to compare.
    """
    if pair.old is None:
        return ScriptStatus.ADDED
    if pair.new is None:
        return ScriptStatus.REMOVED
    if isinstance(edit, SerializationError):
        return ScriptStatus.ERROR
    if edit is not None and has_changes(edit):
        return ScriptStatus.MODIFIED
    return ScriptStatus.UNMODIFIED
