"""Script diff engine.

Exports
-------
DiffEngine
    Runs the whole serialize / match / diff / classify / build pipeline.
match_scripts
    Aligns previous scripts with current scripts.
diff_lines
    Minimal LCS edit script between two line sequences.
render_unified
    Renders an edit script as ``+``/``-`` prefixed text.
classify
    Assigns a status to one matched pair.
build_records
    Aggregates per-pair results into DiffRecords.
compute_identity
    Computes a script's structural identity.
"""

from .builder import build_records
from .classifier import classify
from .engine import DiffEngine
from .lcs_matcher import apply_new, apply_old, diff_lines, render_unified, similarity
from .matcher import match_scripts
from .signature import compute_identity

__all__ = [
    "DiffEngine",
    "apply_new",
    "apply_old",
    "build_records",
    "classify",
    "compute_identity",
    "diff_lines",
    "match_scripts",
    "render_unified",
    "similarity",
]
