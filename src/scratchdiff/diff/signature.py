"""Script identity computation for matching.

Computes a :class:`ScriptIdentity` for each script: the host-assigned
top-level id, a structural fingerprint of its serialized lines, and its
position.  Two scripts with the same fingerprint have identical structure
regardless of their block ids.
"""

from __future__ import annotations

from scratchdiff.models import Script, ScriptIdentity, SerializedScript
from scratchdiff.utils.hashing import hash_lines


def compute_identity(
    script: Script,
    serialized: SerializedScript | None,
    position: int,
) -> ScriptIdentity:
    """Compute the identity of *script*.

    Parameters
    ----------
    script:
        The script.
    serialized:
        Its serializer output, or ``None`` if serialization failed.  Scripts
        without a fingerprint only ever match by id.
    position:
        Index of the script within its snapshot.

    Returns
    -------
    ScriptIdentity
    """
    fingerprint = hash_lines(serialized.lines) if serialized is not None else None
    return ScriptIdentity(script_id=script.id, fingerprint=fingerprint, position=position)
