"""Script serialization.

Exports
-------
ScriptSerializer
    Linearizes a block tree into lines with a block-id side table.
serialize
    Serialize a script with the default configuration.
snapshot_from_target
    Build a ScriptSnapshot from a Scratch 3 ``project.json`` target.
load_target
    Find a sprite or the stage in a parsed ``project.json``.
"""

from .sb3 import load_target, snapshot_from_target
from .text import ScriptSerializer, format_literal, serialize

__all__ = [
    "ScriptSerializer",
    "format_literal",
    "load_target",
    "serialize",
    "snapshot_from_target",
]
