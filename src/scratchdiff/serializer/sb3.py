"""Scratch 3 ``project.json`` to block tree loader.

A Scratch 3 target stores its blocks as a flat dict keyed by block id,
linked through ``next``/``parent`` ids, with inputs encoded as
``[shadow_type, value, obscured_shadow]`` arrays.  This module rebuilds the
nested :class:`~scratchdiff.models.Block` trees the serializer consumes.

Malformed references (an input pointing at a block id that does not exist)
are kept as slots holding nothing, so the serializer reports that one
script as an error instead of the whole snapshot failing to load.  The same
happens to inputs nested deeper than ``MAX_NESTING_DEPTH``.
"""

from __future__ import annotations

import json
import re
from typing import Any

from scratchdiff.models import (
    Block,
    BlockInput,
    InputKind,
    Script,
    ScriptSnapshot,
    SnapshotState,
)
from scratchdiff.observability import get_logger
from scratchdiff.serializer.text import MAX_NESTING_DEPTH

log = get_logger("scratchdiff.sb3")

# Primitive array type tags used inside inputs and as loose top-level blocks.
_MATH_NUMBER = 4
_POSITIVE_NUMBER = 5
_WHOLE_NUMBER = 6
_INTEGER_NUMBER = 7
_ANGLE_NUMBER = 8
_COLOR_PICKER = 9
_TEXT = 10
_BROADCAST = 11
_VARIABLE = 12
_LIST = 13

_LITERAL_PRIMITIVES: frozenset[int] = frozenset({
    _MATH_NUMBER,
    _POSITIVE_NUMBER,
    _WHOLE_NUMBER,
    _INTEGER_NUMBER,
    _ANGLE_NUMBER,
    _COLOR_PICKER,
    _TEXT,
})

# C-blocks and how many branch mouths they have.  Empty mouths are not
# stored in project.json, so they are filled in here to keep the rendered
# ``end``/``else`` lines stable.
_BRANCH_COUNTS: dict[str, int] = {
    "control_forever": 1,
    "control_repeat": 1,
    "control_repeat_until": 1,
    "control_while": 1,
    "control_for_each": 1,
    "control_all_at_once": 1,
    "control_if": 1,
    "control_if_else": 2,
}

_ARG_TOKEN = re.compile(r"%[snb]")


def _branch_names(count: int) -> list[str]:
    return ["SUBSTACK" if n == 1 else f"SUBSTACK{n}" for n in range(1, count + 1)]


class _TargetLoader:
    """Rebuilds block trees for one target's ``blocks`` dict."""

    def __init__(self, blocks: dict[str, Any]) -> None:
        self._blocks = blocks

    # ------------------------------------------------------------------
    # Scripts
    # ------------------------------------------------------------------

    def scripts(self) -> list[Script]:
        tops: list[tuple[float, float, str, Block]] = []
        for block_id, raw in self._blocks.items():
            if isinstance(raw, list):
                block = self._loose_primitive(block_id, raw)
                if block is not None:
                    x, y = (raw[3], raw[4]) if len(raw) >= 5 else (0, 0)
                    tops.append((y, x, block_id, block))
                continue
            if not isinstance(raw, dict) or not raw.get("topLevel") or raw.get("shadow"):
                continue
            block = self._stack(block_id, set(), 0)
            if block is not None:
                tops.append((raw.get("y", 0) or 0, raw.get("x", 0) or 0, block_id, block))

        tops.sort(key=lambda item: (item[0], item[1], item[2]))
        return [Script(top=block) for _, _, _, block in tops]

    def _loose_primitive(self, block_id: str, raw: list) -> Block | None:
        if len(raw) < 2 or raw[0] not in (_VARIABLE, _LIST):
            return None
        return self._reporter_primitive(raw, block_id)

    # ------------------------------------------------------------------
    # Stacks and blocks
    # ------------------------------------------------------------------

    def _stack(self, block_id: str | None, seen: set[str], depth: int) -> Block | None:
        """Build the chain starting at *block_id* following ``next`` links."""
        chain: list[str] = []
        while block_id is not None:
            if block_id in seen:
                log.warning(
                    "Cycle in block chain, truncating",
                    extra={"extra_fields": {"block_id": block_id}},
                )
                break
            if not isinstance(self._blocks.get(block_id), dict):
                log.warning(
                    "Dangling next reference, truncating",
                    extra={"extra_fields": {"block_id": block_id}},
                )
                break
            seen.add(block_id)
            chain.append(block_id)
            block_id = self._blocks[block_id].get("next")

        # Link from the bottom up so each Block is built with its next.
        result: Block | None = None
        for chain_id in reversed(chain):
            result = self._block(chain_id, result, seen, depth)
        return result

    def _block(
        self, block_id: str, next_block: Block | None, seen: set[str], depth: int,
    ) -> Block:
        raw = self._blocks[block_id]
        opcode = raw.get("opcode", "")
        inputs: list[BlockInput] = []
        label: str | None = None

        mutation = raw.get("mutation") or {}
        arg_names: dict[str, str] = {}
        if opcode in ("procedures_call", "procedures_prototype") and "proccode" in mutation:
            label, arg_names = _procedure_label(mutation)

        raw_inputs: dict[str, Any] = raw.get("inputs") or {}
        for name, spec in raw_inputs.items():
            slot = self._input(arg_names.get(name, name), spec, seen, depth + 1)
            if slot is not None:
                inputs.append(slot)

        for name, spec in (raw.get("fields") or {}).items():
            value = spec[0] if isinstance(spec, list) and spec else spec
            inputs.append(BlockInput(name=name, kind=InputKind.DROPDOWN, value=value))

        present = {slot.name for slot in inputs}
        for name in _branch_names(_BRANCH_COUNTS.get(opcode, 0)):
            if name not in present:
                inputs.append(BlockInput(name=name, kind=InputKind.BRANCH))

        # Branches go last, in mouth order, so ``else`` lands between them.
        inputs.sort(key=lambda slot: (slot.kind is InputKind.BRANCH, _branch_order(slot)))

        return Block(
            id=block_id,
            opcode=opcode,
            inputs=tuple(inputs),
            next=next_block,
            label=label,
        )

    def _input(self, name: str, spec: Any, seen: set[str], depth: int) -> BlockInput | None:
        if not isinstance(spec, list) or len(spec) < 2:
            return None
        value = spec[1]

        if depth > MAX_NESTING_DEPTH and isinstance(value, str):
            log.warning(
                "Nesting depth exceeds %d levels, dropping input",
                MAX_NESTING_DEPTH,
                extra={"extra_fields": {"input": name, "block_id": value, "depth": depth}},
            )
            return BlockInput(name=name, kind=InputKind.BLOCK)

        if name.startswith("SUBSTACK"):
            if value is None:
                return BlockInput(name=name, kind=InputKind.BRANCH)
            if isinstance(value, str) and isinstance(self._blocks.get(value), dict):
                return BlockInput(
                    name=name, kind=InputKind.BRANCH, block=self._stack(value, seen, depth),
                )
            return BlockInput(name=name, kind=InputKind.BLOCK)

        if value is None:
            # An empty slot, e.g. an if block without a condition.
            return None

        if isinstance(value, list):
            return self._primitive_input(name, value)

        raw = self._blocks.get(value)
        if not isinstance(raw, dict) or value in seen:
            log.warning(
                "Input references a missing block",
                extra={"extra_fields": {"input": name, "block_id": value}},
            )
            return BlockInput(name=name, kind=InputKind.BLOCK)

        menu_value = _menu_value(raw)
        if menu_value is not None:
            return BlockInput(name=name, kind=InputKind.DROPDOWN, value=menu_value)

        seen.add(value)
        return BlockInput(
            name=name, kind=InputKind.BLOCK, block=self._block(value, None, seen, depth),
        )

    def _primitive_input(self, name: str, value: list) -> BlockInput:
        tag = value[0] if value else None
        if tag in _LITERAL_PRIMITIVES and len(value) >= 2:
            return BlockInput(name=name, kind=InputKind.LITERAL, value=value[1])
        if tag == _BROADCAST and len(value) >= 2:
            return BlockInput(name=name, kind=InputKind.DROPDOWN, value=value[1])
        if tag in (_VARIABLE, _LIST) and len(value) >= 2:
            block_id = value[2] if len(value) >= 3 and isinstance(value[2], str) else ""
            return BlockInput(
                name=name, kind=InputKind.BLOCK, block=self._reporter_primitive(value, block_id),
            )
        return BlockInput(name=name, kind=InputKind.LITERAL)

    @staticmethod
    def _reporter_primitive(value: list, block_id: str) -> Block:
        if value[0] == _VARIABLE:
            opcode, field = "data_variable", "VARIABLE"
        else:
            opcode, field = "data_listcontents", "LIST"
        return Block(
            id=block_id,
            opcode=opcode,
            inputs=(BlockInput(name=field, kind=InputKind.DROPDOWN, value=value[1]),),
        )


def _branch_order(slot: BlockInput) -> int:
    if slot.kind is not InputKind.BRANCH:
        return 0
    suffix = slot.name[len("SUBSTACK"):]
    return int(suffix) if suffix.isdigit() else 1


def _menu_value(raw: dict[str, Any]) -> Any | None:
    """Return the selected option if *raw* is a menu shadow block."""
    fields = raw.get("fields") or {}
    if not raw.get("shadow") or raw.get("inputs") or len(fields) != 1:
        return None
    spec = next(iter(fields.values()))
    return spec[0] if isinstance(spec, list) and spec else spec


def _procedure_label(mutation: dict[str, Any]) -> tuple[str, dict[str, str]]:
    """Build a display template from a custom block's ``proccode``.

    Returns the template and a mapping from argument id to the placeholder
    name used in the template (``ARG0``, ``ARG1``...).
    """
    proccode: str = mutation.get("proccode", "")
    raw_ids = mutation.get("argumentids", "[]")
    try:
        arg_ids = json.loads(raw_ids) if isinstance(raw_ids, str) else list(raw_ids)
    except ValueError:
        arg_ids = []

    names: dict[str, str] = {}
    counter = iter(range(len(arg_ids) + proccode.count("%")))

    def placeholder(match: re.Match[str]) -> str:
        n = next(counter)
        name = f"ARG{n}"
        if n < len(arg_ids):
            names[arg_ids[n]] = name
        if match.group(0) == "%b":
            return f"<{{{name}}}>"
        return f"({{{name}}})"

    escaped = proccode.replace("{", "{{").replace("}", "}}")
    return _ARG_TOKEN.sub(placeholder, escaped), names


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def load_target(project: dict[str, Any], sprite_name: str) -> dict[str, Any] | None:
    """Find the target named *sprite_name* in a parsed ``project.json``.

    ``"Stage"`` also matches the stage target whatever its stored name.
    Returns ``None`` if no target matches.
    """
    for target in project.get("targets", []):
        if target.get("name") == sprite_name:
            return target
    if sprite_name == "Stage":
        for target in project.get("targets", []):
            if target.get("isStage"):
                return target
    return None


def snapshot_from_target(
    target: dict[str, Any],
    state: SnapshotState | str,
    sprite_name: str | None = None,
) -> ScriptSnapshot:
    """Build a :class:`ScriptSnapshot` from one project target.

    Parameters
    ----------
    target:
        A target object from ``project.json`` (needs at least ``blocks``).
    state:
        Which snapshot this is.
    sprite_name:
        Overrides the target's ``name``.
    """
    scripts = _TargetLoader(target.get("blocks") or {}).scripts()
    return ScriptSnapshot(
        sprite=sprite_name or target.get("name", ""),
        state=SnapshotState(state),
        scripts=tuple(scripts),
    )
