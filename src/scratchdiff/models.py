"""Public data models for scratchdiff.

Block trees, snapshots, edit operations and diff records.  All types are
plain frozen dataclasses so that snapshots stay immutable once captured
and records can be compared structurally in tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class InputKind(str, Enum):
    """What a block input slot holds."""

    LITERAL = "literal"
    """A number, string or boolean typed into the slot."""

    DROPDOWN = "dropdown"
    """The selected option of a dropdown menu or field."""

    BLOCK = "block"
    """A nested reporter block rendered inline."""

    BRANCH = "branch"
    """The command stack inside a C-block mouth.  May be empty."""


class SnapshotState(str, Enum):
    """Which point in time a snapshot was captured at."""

    PREVIOUS = "previous"
    """The last committed state."""

    CURRENT = "current"
    """The live editor state."""


class EditOpType(str, Enum):
    """Operations of a line-level edit script."""

    RETAIN = "retain"
    INSERT = "insert"
    DELETE = "delete"


class MatchKind(str, Enum):
    """How a previous/current script pair was aligned."""

    ID = "id"
    """Same top-level block id in both snapshots."""

    FINGERPRINT = "fingerprint"
    """Different ids, identical serialized structure."""

    SIMILARITY = "similarity"
    """Different ids, line similarity above the configured threshold."""


class ScriptStatus(str, Enum):
    """Per-script outcome of a diff run."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    UNMODIFIED = "unmodified"
    ERROR = "error"


class RenderStyle(str, Enum):
    """Visual style presets understood by block renderers."""

    SCRATCH3 = "scratch3"
    SCRATCH2 = "scratch2"
    SCRATCH3_HIGH_CONTRAST = "scratch3-high-contrast"


# ---------------------------------------------------------------------------
# Block trees
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BlockInput:
    """One input slot of a block.

    Attributes
    ----------
    name:
        Slot name as used by the host editor (``STEPS``, ``SUBSTACK``...).
    kind:
        What the slot holds.
    value:
        Literal value or dropdown option for ``LITERAL``/``DROPDOWN`` slots.
    block:
        Nested block for ``BLOCK`` slots, or the first block of the
        branch body for ``BRANCH`` slots (``None`` when the branch is empty).
    """

    name: str
    kind: InputKind
    value: Any = None
    block: Block | None = None


@dataclass(frozen=True)
class Block:
    """A block instance.

    ``next`` is the block stacked directly below this one.  ``label`` is a
    display template that overrides the opcode table; it is set for
    custom blocks whose text comes from the project itself.
    """

    id: str
    opcode: str
    inputs: tuple[BlockInput, ...] = ()
    next: Block | None = None
    label: str | None = None

    def input(self, name: str) -> BlockInput | None:
        for slot in self.inputs:
            if slot.name == name:
                return slot
        return None


@dataclass(frozen=True)
class Script:
    """One top-level block stack."""

    top: Block

    @property
    def id(self) -> str:
        return self.top.id


@dataclass(frozen=True)
class ScriptSnapshot:
    """All scripts of one sprite captured at one point in time.

    Raises
    ------
    ValueError
        If two scripts share a top-level block id.
    """

    sprite: str
    state: SnapshotState
    scripts: tuple[Script, ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for script in self.scripts:
            if script.id in seen:
                raise ValueError(
                    f"duplicate top-level block id {script.id!r} in {self.state.value} "
                    f"snapshot of sprite {self.sprite!r}"
                )
            seen.add(script.id)

    def __len__(self) -> int:
        return len(self.scripts)


# ---------------------------------------------------------------------------
# Serializer output and matching
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SerializedScript:
    """Lines of a serialized script with the producing block id per line."""

    lines: tuple[str, ...]
    block_ids: tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.lines) != len(self.block_ids):
            raise ValueError("lines and block_ids must have the same length")


@dataclass(frozen=True)
class ScriptIdentity:
    """Identity of a script computed by scratchdiff itself.

    Attributes
    ----------
    script_id:
        Top-level block id assigned by the host editor.
    fingerprint:
        MD5 of the serialized lines, or ``None`` if serialization failed.
    position:
        Index of the script within its snapshot.
    """

    script_id: str
    fingerprint: str | None
    position: int


@dataclass(frozen=True)
class MatchedPair:
    """A previous-snapshot script aligned with a current-snapshot script.

    Either side may be ``None`` (added or removed script) but never both.
    ``old_index``/``new_index`` are positions within the snapshots.
    """

    old: Script | None
    new: Script | None
    old_index: int | None = None
    new_index: int | None = None
    match_kind: MatchKind | None = None

    def __post_init__(self) -> None:
        if self.old is None and self.new is None:
            raise ValueError("a MatchedPair needs at least one script")


@dataclass(frozen=True)
class EditOp:
    """One operation of an edit script.

    ``old_index`` is set for RETAIN/DELETE, ``new_index`` for RETAIN/INSERT.
    """

    op: EditOpType
    line: str
    old_index: int | None = None
    new_index: int | None = None


# ---------------------------------------------------------------------------
# Diff records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DiffLine:
    """One line of a rendered diff with its classification.

    ``block_id`` is the current-snapshot block for RETAIN/INSERT lines and
    ``None`` for DELETE lines.
    """

    kind: EditOpType
    text: str
    block_id: str | None = None


@dataclass(frozen=True)
class DiffRecord:
    """The per-script diff artifact handed to presentation and navigation.

    Attributes
    ----------
    script_index:
        0-based position in the output sequence; used as a tab id.
    status:
        Outcome for this script.
    added_line_count / removed_line_count:
        Number of inserted / deleted lines.  Zero for error records.
    diff_text:
        Unified text: retained lines unprefixed, ``+`` inserted, ``-``
        deleted.
    block_id_map:
        Line index within ``diff_text`` to current-snapshot block id, for
        inserted lines only.
    script_id:
        Navigation key: current top-level id, or the previous one for
        removed scripts.
    lines:
        Per-line classification and block id.
    message:
        Caller-facing explanation when something went wrong.
    """

    script_index: int
    status: ScriptStatus
    added_line_count: int = 0
    removed_line_count: int = 0
    diff_text: str = ""
    block_id_map: dict[int, str] = field(default_factory=dict)
    script_id: str | None = None
    lines: tuple[DiffLine, ...] = ()
    message: str | None = None

    # Compared by value; ``block_id_map`` is a dict, so records are unhashable.
    __hash__ = None  # type: ignore[assignment]

    @property
    def navigable(self) -> bool:
        """Whether selecting this record can jump to a live block."""
        return self.status in (ScriptStatus.ADDED, ScriptStatus.MODIFIED)
