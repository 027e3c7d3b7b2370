"""Block tree to line serializer.

Linearizes a :class:`~scratchdiff.models.Script` into scratchblocks-style
text, one block per line, so that the line differencer can compare two
versions of a script.  Block ids never appear in the text; they are kept in
a parallel side table so every line can be traced back to the block that
produced it.

Layout rules:

* Each command block is one line.  Reporters are rendered inline inside
  the slot of the block that holds them.
* C-block bodies are indented one unit per level and closed by an explicit
  ``end`` line.  Two-branch blocks emit ``else`` between the branches.
  Both terminator lines carry the C-block's id.

Usage::

    from scratchdiff.serializer import serialize

    serialized = serialize(script)
    for line, block_id in zip(serialized.lines, serialized.block_ids):
        print(block_id, line)
"""

from __future__ import annotations

import re
from typing import Any

from scratchdiff.config import DiffConfig
from scratchdiff.errors import SerializationError
from scratchdiff.models import Block, BlockInput, InputKind, Script, SerializedScript

# Display templates keyed by opcode.  ``{NAME}`` is replaced by the rendered
# value of input ``NAME``; the surrounding brackets give the slot shape.
_TEMPLATES: dict[str, str] = {
    # Motion
    "motion_movesteps": "move ({STEPS}) steps",
    "motion_turnright": "turn right ({DEGREES}) degrees",
    "motion_turnleft": "turn left ({DEGREES}) degrees",
    "motion_goto": "go to [{TO} v]",
    "motion_gotoxy": "go to x: ({X}) y: ({Y})",
    "motion_glideto": "glide ({SECS}) secs to [{TO} v]",
    "motion_glidesecstoxy": "glide ({SECS}) secs to x: ({X}) y: ({Y})",
    "motion_pointindirection": "point in direction ({DIRECTION})",
    "motion_pointtowards": "point towards [{TOWARDS} v]",
    "motion_changexby": "change x by ({DX})",
    "motion_setx": "set x to ({X})",
    "motion_changeyby": "change y by ({DY})",
    "motion_sety": "set y to ({Y})",
    "motion_ifonedgebounce": "if on edge, bounce",
    "motion_setrotationstyle": "set rotation style [{STYLE} v]",
    "motion_xposition": "x position",
    "motion_yposition": "y position",
    "motion_direction": "direction",
    # Looks
    "looks_sayforsecs": "say [{MESSAGE}] for ({SECS}) seconds",
    "looks_say": "say [{MESSAGE}]",
    "looks_thinkforsecs": "think [{MESSAGE}] for ({SECS}) seconds",
    "looks_think": "think [{MESSAGE}]",
    "looks_switchcostumeto": "switch costume to [{COSTUME} v]",
    "looks_nextcostume": "next costume",
    "looks_switchbackdropto": "switch backdrop to [{BACKDROP} v]",
    "looks_nextbackdrop": "next backdrop",
    "looks_changesizeby": "change size by ({CHANGE})",
    "looks_setsizeto": "set size to ({SIZE}) %",
    "looks_changeeffectby": "change [{EFFECT} v] effect by ({CHANGE})",
    "looks_seteffectto": "set [{EFFECT} v] effect to ({VALUE})",
    "looks_cleargraphiceffects": "clear graphic effects",
    "looks_show": "show",
    "looks_hide": "hide",
    "looks_gotofrontback": "go to [{FRONT_BACK} v] layer",
    "looks_goforwardbackwardlayers": "go [{FORWARD_BACKWARD} v] ({NUM}) layers",
    "looks_costumenumbername": "costume [{NUMBER_NAME} v]",
    "looks_backdropnumbername": "backdrop [{NUMBER_NAME} v]",
    "looks_size": "size",
    # Sound
    "sound_playuntildone": "play sound [{SOUND_MENU} v] until done",
    "sound_play": "start sound [{SOUND_MENU} v]",
    "sound_stopallsounds": "stop all sounds",
    "sound_changevolumeby": "change volume by ({VOLUME})",
    "sound_setvolumeto": "set volume to ({VOLUME}) %",
    "sound_volume": "volume",
    # Events
    "event_whenflagclicked": "when green flag clicked",
    "event_whenkeypressed": "when [{KEY_OPTION} v] key pressed",
    "event_whenthisspriteclicked": "when this sprite clicked",
    "event_whenstageclicked": "when stage clicked",
    "event_whenbroadcastreceived": "when I receive [{BROADCAST_OPTION} v]",
    "event_whenbackdropswitchesto": "when backdrop switches to [{BACKDROP} v]",
    "event_whengreaterthan": "when [{WHENGREATERTHANMENU} v] > ({VALUE})",
    "event_broadcast": "broadcast [{BROADCAST_INPUT} v]",
    "event_broadcastandwait": "broadcast [{BROADCAST_INPUT} v] and wait",
    # Control
    "control_wait": "wait ({DURATION}) seconds",
    "control_repeat": "repeat ({TIMES})",
    "control_forever": "forever",
    "control_if": "if <{CONDITION}> then",
    "control_if_else": "if <{CONDITION}> then",
    "control_wait_until": "wait until <{CONDITION}>",
    "control_repeat_until": "repeat until <{CONDITION}>",
    "control_while": "while <{CONDITION}>",
    "control_stop": "stop [{STOP_OPTION} v]",
    "control_start_as_clone": "when I start as a clone",
    "control_create_clone_of": "create clone of [{CLONE_OPTION} v]",
    "control_delete_this_clone": "delete this clone",
    # Sensing
    "sensing_touchingobject": "touching [{TOUCHINGOBJECTMENU} v]?",
    "sensing_touchingcolor": "touching ({COLOR})?",
    "sensing_coloristouchingcolor": "color ({COLOR}) is touching ({COLOR2})?",
    "sensing_distanceto": "distance to [{DISTANCETOMENU} v]",
    "sensing_askandwait": "ask [{QUESTION}] and wait",
    "sensing_answer": "answer",
    "sensing_keypressed": "key [{KEY_OPTION} v] pressed?",
    "sensing_mousedown": "mouse down?",
    "sensing_mousex": "mouse x",
    "sensing_mousey": "mouse y",
    "sensing_setdragmode": "set drag mode [{DRAG_MODE} v]",
    "sensing_loudness": "loudness",
    "sensing_timer": "timer",
    "sensing_resettimer": "reset timer",
    "sensing_of": "[{PROPERTY} v] of [{OBJECT} v]",
    "sensing_current": "current [{CURRENTMENU} v]",
    "sensing_dayssince2000": "days since 2000",
    "sensing_username": "username",
    # Operators
    "operator_add": "({NUM1}) + ({NUM2})",
    "operator_subtract": "({NUM1}) - ({NUM2})",
    "operator_multiply": "({NUM1}) * ({NUM2})",
    "operator_divide": "({NUM1}) / ({NUM2})",
    "operator_random": "pick random ({FROM}) to ({TO})",
    "operator_gt": "({OPERAND1}) > ({OPERAND2})",
    "operator_lt": "({OPERAND1}) < ({OPERAND2})",
    "operator_equals": "({OPERAND1}) = ({OPERAND2})",
    "operator_and": "<{OPERAND1}> and <{OPERAND2}>",
    "operator_or": "<{OPERAND1}> or <{OPERAND2}>",
    "operator_not": "not <{OPERAND}>",
    "operator_join": "join [{STRING1}] [{STRING2}]",
    "operator_letter_of": "letter ({LETTER}) of [{STRING}]",
    "operator_length": "length of [{STRING}]",
    "operator_contains": "[{STRING1}] contains [{STRING2}]?",
    "operator_mod": "({NUM1}) mod ({NUM2})",
    "operator_round": "round ({NUM})",
    "operator_mathop": "[{OPERATOR} v] of ({NUM})",
    # Variables and lists
    "data_variable": "{VARIABLE}",
    "data_setvariableto": "set [{VARIABLE} v] to [{VALUE}]",
    "data_changevariableby": "change [{VARIABLE} v] by ({VALUE})",
    "data_showvariable": "show variable [{VARIABLE} v]",
    "data_hidevariable": "hide variable [{VARIABLE} v]",
    "data_listcontents": "{LIST}",
    "data_addtolist": "add [{ITEM}] to [{LIST} v]",
    "data_deleteoflist": "delete ({INDEX}) of [{LIST} v]",
    "data_deletealloflist": "delete all of [{LIST} v]",
    "data_insertatlist": "insert [{ITEM}] at ({INDEX}) of [{LIST} v]",
    "data_replaceitemoflist": "replace item ({INDEX}) of [{LIST} v] with [{ITEM}]",
    "data_itemoflist": "item ({INDEX}) of [{LIST} v]",
    "data_itemnumoflist": "item # of [{ITEM}] in [{LIST} v]",
    "data_lengthoflist": "length of [{LIST} v]",
    "data_listcontainsitem": "[{LIST} v] contains [{ITEM}]?",
    "data_showlist": "show list [{LIST} v]",
    "data_hidelist": "hide list [{LIST} v]",
    # Custom blocks
    "procedures_definition": "define {custom_block}",
    "argument_reporter_string_number": "{VALUE}",
    "argument_reporter_boolean": "{VALUE}",
    # Pen
    "pen_clear": "erase all",
    "pen_stamp": "stamp",
    "pen_penDown": "pen down",
    "pen_penUp": "pen up",
    "pen_setPenColorToColor": "set pen color to ({COLOR})",
    "pen_changePenSizeBy": "change pen size by ({SIZE})",
    "pen_setPenSizeTo": "set pen size to ({SIZE})",
}

# Reporters with a hexagonal (boolean) shape; used when an opcode has no
# template and the slot shape must be inferred from the nested block.
_BOOLEAN_OPCODES: frozenset[str] = frozenset({
    "operator_gt",
    "operator_lt",
    "operator_equals",
    "operator_and",
    "operator_or",
    "operator_not",
    "operator_contains",
    "sensing_touchingobject",
    "sensing_touchingcolor",
    "sensing_coloristouchingcolor",
    "sensing_keypressed",
    "sensing_mousedown",
    "data_listcontainsitem",
    "argument_reporter_boolean",
})

# ``{{`` and ``}}`` stand for literal braces.
_PLACEHOLDER = re.compile(r"\{\{|\}\}|\{([A-Za-z0-9_%.-]+)\}")

BRANCH_SEPARATOR = "else"
BRANCH_TERMINATOR = "end"

MAX_NESTING_DEPTH = 100
"""Deepest block nesting (reporters plus C-block bodies) rendered before a
script is reported as unserializable."""


def format_literal(value: Any) -> str:
    """Return the textual form of a literal input value.

    >>> format_literal(True)
    'true'
    >>> format_literal(10.0)
    '10'
    >>> format_literal("hello")
    'hello'
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    try:
        float(value)
    except (TypeError, ValueError):
        return False
    return True


class ScriptSerializer:
    """Serializes scripts into deterministic lines.

    Parameters
    ----------
    config:
        Supplies the indent unit.  Defaults to :class:`DiffConfig`.
    """

    def __init__(self, config: DiffConfig | None = None) -> None:
        self._indent = (config or DiffConfig()).indent

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def serialize(self, script: Script, script_index: int | None = None) -> SerializedScript:
        """Linearize *script* into lines with a block-id side table.

        Parameters
        ----------
        script:
            The script to serialize.
        script_index:
            Position of the script in its snapshot, recorded on errors.

        Returns
        -------
        SerializedScript

        Raises
        ------
        SerializationError
            When an input slot that should hold a value holds nothing, or
            has an unknown kind, or when blocks nest deeper than
            ``MAX_NESTING_DEPTH``.
        """
        lines: list[str] = []
        block_ids: list[str] = []
        self._emit_stack(script.top, 0, lines, block_ids, script_index)
        return SerializedScript(lines=tuple(lines), block_ids=tuple(block_ids))

    def render_block(self, block: Block, script_index: int | None = None) -> str:
        """Render a single block (and its nested reporters) as one line."""
        return self._inline(block, script_index, 0)

    # ------------------------------------------------------------------
    # Stacks and branches
    # ------------------------------------------------------------------

    def _emit_stack(
        self,
        block: Block | None,
        depth: int,
        lines: list[str],
        block_ids: list[str],
        script_index: int | None,
    ) -> None:
        prefix = self._indent * depth
        while block is not None:
            lines.append(prefix + self._inline(block, script_index, depth))
            block_ids.append(block.id)

            branches = [slot for slot in block.inputs if slot.kind is InputKind.BRANCH]
            if branches:
                for n, branch in enumerate(branches):
                    if n:
                        lines.append(prefix + BRANCH_SEPARATOR)
                        block_ids.append(block.id)
                    self._emit_stack(branch.block, depth + 1, lines, block_ids, script_index)
                lines.append(prefix + BRANCH_TERMINATOR)
                block_ids.append(block.id)

            block = block.next

    # ------------------------------------------------------------------
    # Single-line rendering
    # ------------------------------------------------------------------

    def _inline(self, block: Block, script_index: int | None, nesting: int) -> str:
        if nesting > MAX_NESTING_DEPTH:
            raise SerializationError(
                message=f"Block {block.opcode!r} is nested deeper than {MAX_NESTING_DEPTH} levels",
                context={
                    "script_index": script_index,
                    "block_id": block.id,
                    "opcode": block.opcode,
                    "depth": nesting,
                },
            )

        template = block.label if block.label is not None else _TEMPLATES.get(block.opcode)
        if template is None:
            return self._render_fallback(block, script_index, nesting)

        used: set[str] = set()

        def substitute(match: re.Match[str]) -> str:
            name = match.group(1)
            if name is None:
                return match.group(0)[0]
            slot = block.input(name)
            if slot is None:
                # Empty slot, e.g. an if block without a condition.
                return ""
            used.add(name)
            return self._render_value(block, slot, script_index, nesting)

        text = _PLACEHOLDER.sub(substitute, template)

        # Inputs the template does not place are appended so that a change
        # to them still shows up in the diff.
        extras = [
            self._render_bracketed(block, slot, script_index, nesting)
            for slot in block.inputs
            if slot.kind is not InputKind.BRANCH and slot.name not in used
        ]
        if extras:
            text = " ".join([text, *extras])
        return text

    def _render_fallback(self, block: Block, script_index: int | None, nesting: int) -> str:
        parts = [block.opcode]
        parts.extend(
            self._render_bracketed(block, slot, script_index, nesting)
            for slot in block.inputs
            if slot.kind is not InputKind.BRANCH
        )
        return " ".join(parts)

    def _render_bracketed(
        self, block: Block, slot: BlockInput, script_index: int | None, nesting: int,
    ) -> str:
        text = self._render_value(block, slot, script_index, nesting)
        if slot.kind is InputKind.LITERAL:
            return f"({text})" if _is_numeric(slot.value) else f"[{text}]"
        if slot.kind is InputKind.DROPDOWN:
            return f"[{text} v]"
        if slot.block is not None and slot.block.opcode in _BOOLEAN_OPCODES:
            return f"<{text}>"
        return f"({text})"

    def _render_value(
        self, block: Block, slot: BlockInput, script_index: int | None, nesting: int,
    ) -> str:
        if slot.kind is InputKind.LITERAL or slot.kind is InputKind.DROPDOWN:
            if slot.value is None:
                raise self._empty_slot(block, slot, script_index)
            return format_literal(slot.value)

        if slot.kind is InputKind.BLOCK:
            if slot.block is None:
                raise self._empty_slot(block, slot, script_index)
            return self._inline(slot.block, script_index, nesting + 1)

        raise SerializationError(
            message=f"Input {slot.name!r} of block {block.opcode!r} has unsupported kind {slot.kind!r}",
            context={
                "script_index": script_index,
                "block_id": block.id,
                "opcode": block.opcode,
                "input": slot.name,
            },
        )

    @staticmethod
    def _empty_slot(block: Block, slot: BlockInput, script_index: int | None) -> SerializationError:
        return SerializationError(
            message=f"Input {slot.name!r} of block {block.opcode!r} holds no value",
            context={
                "script_index": script_index,
                "block_id": block.id,
                "opcode": block.opcode,
                "input": slot.name,
            },
        )


def serialize(script: Script, script_index: int | None = None) -> SerializedScript:
    """Serialize *script* with the default configuration."""
    return ScriptSerializer().serialize(script, script_index)
