"""scratchdiff: script-level diffs between two snapshots of a Scratch project.

Public re-exports
-----------------

* **Engine:** :class:`DiffEngine`
* **Sessions:** :class:`DiffSession`, :class:`AsyncDiffSession`, :class:`DiffView`
* **Configuration:** :class:`DiffConfig`
* **Errors:** Every :class:`ScratchDiffError` subclass and :class:`ErrorCode`
* **Models:** Block trees, snapshots, edit operations and diff records

Usage::

    from scratchdiff import DiffSession
    from scratchdiff.storage import ArchiveProjectStorage

    session = DiffSession(ArchiveProjectStorage("committed/", "live.sb3"))
    for record in session.diff("Sprite1"):
        print(record.script_index, record.status.value)
        print(record.diff_text)
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from scratchdiff.config import DiffConfig

# ── Engine ──────────────────────────────────────────────────────────────
from scratchdiff.diff import DiffEngine

# ── Errors ──────────────────────────────────────────────────────────────
from scratchdiff.errors import (
    ErrorCode,
    RenderError,
    ScratchDiffError,
    SerializationError,
    StorageUnavailableError,
)

# ── Models ──────────────────────────────────────────────────────────────
from scratchdiff.models import (
    Block,
    BlockInput,
    DiffLine,
    DiffRecord,
    EditOp,
    EditOpType,
    InputKind,
    MatchedPair,
    MatchKind,
    RenderStyle,
    Script,
    ScriptIdentity,
    ScriptSnapshot,
    ScriptStatus,
    SerializedScript,
    SnapshotState,
)

# ── Rendering ───────────────────────────────────────────────────────────
from scratchdiff.render import RenderOutcome, RenderRequest, Renderer

# ── Sessions ────────────────────────────────────────────────────────────
from scratchdiff.session import AsyncDiffSession, DiffSession, DiffView

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Engine and sessions
    "DiffEngine",
    "DiffSession",
    "AsyncDiffSession",
    "DiffView",
    # Configuration
    "DiffConfig",
    # Errors
    "ScratchDiffError",
    "ErrorCode",
    "StorageUnavailableError",
    "SerializationError",
    "RenderError",
    # Models: block trees
    "Block",
    "BlockInput",
    "InputKind",
    "Script",
    "ScriptSnapshot",
    "SnapshotState",
    # Models: diffing
    "SerializedScript",
    "ScriptIdentity",
    "MatchedPair",
    "MatchKind",
    "EditOp",
    "EditOpType",
    "ScriptStatus",
    "DiffLine",
    "DiffRecord",
    # Rendering
    "RenderStyle",
    "RenderRequest",
    "RenderOutcome",
    "Renderer",
]
