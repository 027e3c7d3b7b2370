"""Configuration for scratchdiff.

:class:`DiffConfig` is a dataclass that captures every tuneable knob of the
diff engine, the storage adapters and the sessions.  The same instance is
shared by :class:`~scratchdiff.diff.engine.DiffEngine`,
:class:`~scratchdiff.session.DiffSession` and
:class:`~scratchdiff.session.AsyncDiffSession`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from scratchdiff.models import RenderStyle

DEFAULT_REPORT_URL = "https://github.com/apple502j/parse-sb3-blocks/issues/9"
"""Where users are pointed when the block renderer fails on a script."""


@dataclass
class DiffConfig:
    """Complete configuration for a diff engine or session.

    Parameters
    ----------
    indent:
        Text prepended once per nesting level to lines inside C-block
        branches.
    fallback_matching:
        How scripts whose top-level ids have no counterpart are paired.

        * ``"none"``: only id matches; everything else is added/removed.
        * ``"exact"``: also pair scripts with identical serialized text.
        * ``"similar"``: additionally pair scripts whose line similarity
          reaches ``similarity_threshold``.
    similarity_threshold:
        Minimum ``2 * common / (len(old) + len(new))`` line ratio for a
        similarity match.  Must be in ``(0, 1]``.
    style:
        Default render style preset.
    highlight:
        Default for block-diff colouring in the renderer.
    plain_text:
        Default for plain-text rendering instead of blocks.
    storage_base_url:
        Root URL of the companion git server used by the HTTP storage.
    project_name:
        Project identifier sent to the companion server.
    timeout_seconds:
        HTTP request timeout in seconds.
    render_error_report_url:
        Link shown to users when the renderer fails on a script.
    metrics:
        Optional :class:`~scratchdiff.observability.MetricsHook`.
    debug_dump_diff:
        Write every computed edit script to *stderr*.
    """

    # ── Serializer ──────────────────────────────────────────────────────
    indent: str = "  "

    # ── Matching ────────────────────────────────────────────────────────
    fallback_matching: Literal["none", "exact", "similar"] = "similar"

    similarity_threshold: float = 0.6

    # ── Rendering ───────────────────────────────────────────────────────
    style: RenderStyle = RenderStyle.SCRATCH3

    highlight: bool = False

    plain_text: bool = False

    render_error_report_url: str = DEFAULT_REPORT_URL

    # ── Storage ─────────────────────────────────────────────────────────
    storage_base_url: str = "http://127.0.0.1:8000"

    project_name: str = ""

    timeout_seconds: float = 30.0

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_diff: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        parsed = urlparse(self.storage_base_url)
        if parsed.scheme not in ("http", "https"):
            raise ValueError(
                f"storage_base_url must be an http(s) URL, got {self.storage_base_url!r}"
            )
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"storage_base_url uses plain HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS, or target the local companion server."
            )

        if self.fallback_matching not in ("none", "exact", "similar"):
            raise ValueError(
                f"fallback_matching must be 'none', 'exact' or 'similar', "
                f"got {self.fallback_matching!r}"
            )
        if not 0 < self.similarity_threshold <= 1:
            raise ValueError(
                f"similarity_threshold must be in (0, 1], got {self.similarity_threshold}"
            )
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.indent and self.indent.strip():
            raise ValueError(f"indent must be whitespace only, got {self.indent!r}")

        # Accept plain strings for the style preset.
        self.style = RenderStyle(self.style)
