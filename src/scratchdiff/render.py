"""Render boundary.

scratchdiff does not paint anything itself.  It hands each
:class:`DiffRecord` to an external renderer together with presentation
parameters, and catches :class:`~scratchdiff.errors.RenderError` here: a
script the renderer cannot paint is degraded to the ``error`` status with a
user-facing explanation instead of failing the whole display.
"""

from __future__ import annotations

import dataclasses
import inspect
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from scratchdiff.config import DiffConfig
from scratchdiff.errors import RenderError
from scratchdiff.models import DiffRecord, RenderStyle, ScriptStatus
from scratchdiff.observability import get_logger, resolve_metrics

log = get_logger("scratchdiff.render")

RENDER_FAILED_MESSAGE = (
    "Sorry, but we could not display blocks for this change. "
    "However, this change can still be committed."
)


@dataclass(frozen=True)
class RenderRequest:
    """What the renderer is asked to paint.

    Attributes
    ----------
    record:
        The diff record, including the per-line side channel.
    style:
        Visual style preset.
    highlight:
        Colour inserted/deleted blocks instead of only marking them.
    plain_text:
        Show the ``+``/``-`` text instead of rendered blocks.
    """

    record: DiffRecord
    style: RenderStyle = RenderStyle.SCRATCH3
    highlight: bool = False
    plain_text: bool = False


@dataclass(frozen=True)
class RenderOutcome:
    """Result of sending one request across the render boundary.

    ``record`` is the request's record, or its degraded copy when the
    renderer failed; ``output`` is whatever the renderer returned.
    """

    record: DiffRecord
    output: Any = None
    error: RenderError | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@runtime_checkable
class Renderer(Protocol):
    """Paints one diff record.  May return an awaitable in async sessions."""

    def render(self, request: RenderRequest) -> Any:
        ...


def build_request(
    record: DiffRecord,
    config: DiffConfig,
    style: RenderStyle | str | None = None,
    highlight: bool | None = None,
    plain_text: bool | None = None,
) -> RenderRequest:
    """Build a request, falling back to the configured presentation defaults."""
    return RenderRequest(
        record=record,
        style=RenderStyle(style) if style is not None else config.style,
        highlight=config.highlight if highlight is None else highlight,
        plain_text=config.plain_text if plain_text is None else plain_text,
    )


def degrade_record(record: DiffRecord, error: RenderError, report_url: str) -> DiffRecord:
    """Return a copy of *record* marked as ``error`` after a render failure."""
    return dataclasses.replace(
        record,
        status=ScriptStatus.ERROR,
        added_line_count=0,
        removed_line_count=0,
        block_id_map={},
        message=f"{RENDER_FAILED_MESSAGE} ({error.message}) See {report_url}",
    )


def _on_render_error(request: RenderRequest, exc: RenderError, config: DiffConfig) -> RenderOutcome:
    exc.context.setdefault("script_index", request.record.script_index)
    exc.context.setdefault("style", request.style.value)
    log.warning(
        "renderer failed",
        extra={
            "extra_fields": {
                "op": "render",
                "script_index": request.record.script_index,
                "script_id": request.record.script_id,
                "style": request.style.value,
                "error": exc.message,
            }
        },
    )
    resolve_metrics(config.metrics).increment(
        "scratchdiff.render_errors_total",
        tags={"style": request.style.value},
    )
    return RenderOutcome(
        record=degrade_record(request.record, exc, config.render_error_report_url),
        error=exc,
    )


def render_record(renderer: Renderer, request: RenderRequest, config: DiffConfig) -> RenderOutcome:
    """Send *request* to a synchronous renderer."""
    try:
        output = renderer.render(request)
    except RenderError as exc:
        return _on_render_error(request, exc, config)
    return RenderOutcome(record=request.record, output=output)


async def async_render_record(
    renderer: Renderer, request: RenderRequest, config: DiffConfig,
) -> RenderOutcome:
    """Send *request* to a renderer whose ``render`` may be a coroutine."""
    try:
        output = renderer.render(request)
        if inspect.isawaitable(output):
            output = await output
    except RenderError as exc:
        return _on_render_error(request, exc, config)
    return RenderOutcome(record=request.record, output=output)
