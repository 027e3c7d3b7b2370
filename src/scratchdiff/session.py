"""Diff sessions: fetch, diff and render for one sprite at a time.

:class:`DiffSession` and :class:`AsyncDiffSession` drive the flow a diff
viewer needs:

1. fetch the previous and current snapshots from project storage (or reuse
   the last fetched pair when ``cached=True``);
2. run the :class:`~scratchdiff.diff.engine.DiffEngine`;
3. send the selected record across the render boundary;
4. apply the result to a :class:`DiffView`, unless the view was closed in
   the meantime.

Requests for the same sprite are serialized by a per-sprite lock; requests
for different sprites share nothing.

Usage::

    import asyncio
    from scratchdiff import AsyncDiffSession, DiffView
    from scratchdiff.storage import AsyncArchiveProjectStorage

    async def main():
        storage = AsyncArchiveProjectStorage("committed/", "live.sb3")
        session = AsyncDiffSession(storage, renderer=my_renderer)
        view = DiffView()
        records = await session.display("Sprite1", view)
        for record in records:
            print(record.script_index, record.status.value)

    asyncio.run(main())
"""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Any

from scratchdiff.config import DiffConfig
from scratchdiff.diff.engine import DiffEngine
from scratchdiff.errors import StorageUnavailableError
from scratchdiff.models import DiffRecord, RenderStyle, ScriptSnapshot, SnapshotState
from scratchdiff.observability import get_logger, resolve_metrics
from scratchdiff.render import (
    RenderOutcome,
    Renderer,
    async_render_record,
    build_request,
    render_record,
)
from scratchdiff.storage.base import AsyncProjectStorage, ProjectStorage

log = get_logger("scratchdiff.session")

_SnapshotPair = tuple[ScriptSnapshot, ScriptSnapshot]


class DiffView:
    """State of one open diff display.

    The view only ever receives results while it is open; anything that
    completes after :meth:`close` is discarded.
    """

    def __init__(self) -> None:
        self._closed = False
        self.sprite: str | None = None
        self.records: list[DiffRecord] = []
        self.active_index: int | None = None
        self.output: Any = None

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def apply(self, sprite: str, records: list[DiffRecord], active_index: int | None,
              outcome: RenderOutcome | None) -> bool:
        """Store a finished display.  Returns ``False`` if the view is closed."""
        if self._closed:
            return False
        self.sprite = sprite
        self.records = records
        self.active_index = active_index
        self.output = outcome.output if outcome is not None else None
        return True


def _replace_record(records: list[DiffRecord], outcome: RenderOutcome) -> list[DiffRecord]:
    index = outcome.record.script_index
    return [outcome.record if r.script_index == index else r for r in records]


def _log_storage_failure(sprite_name: str, exc: StorageUnavailableError) -> None:
    log.error(
        "snapshot fetch failed",
        extra={"extra_fields": {"op": "fetch", "sprite": sprite_name, **exc.context}},
    )


class _SessionBase:
    """State shared by the sync and async sessions."""

    def __init__(self, renderer: Renderer | None, config: DiffConfig | None) -> None:
        self._config = config or DiffConfig()
        self._engine = DiffEngine(self._config)
        self._renderer = renderer
        self._metrics = resolve_metrics(self._config.metrics)
        self._snapshots: dict[str, _SnapshotPair] = {}

    @property
    def config(self) -> DiffConfig:
        return self._config

    def invalidate(self, sprite_name: str | None = None) -> None:
        """Forget cached snapshots for one sprite, or for all of them."""
        if sprite_name is None:
            self._snapshots.clear()
        else:
            self._snapshots.pop(sprite_name, None)

    def _record_fetch(self, state: SnapshotState, t0: float) -> None:
        self._metrics.timing(
            "scratchdiff.storage_fetch_ms",
            (time.monotonic() - t0) * 1000,
            tags={"state": state.value},
        )

    @staticmethod
    def _select(records: list[DiffRecord], script_index: int) -> DiffRecord | None:
        if not records:
            return None
        if not 0 <= script_index < len(records):
            raise IndexError(
                f"script_index {script_index} out of range for {len(records)} scripts"
            )
        return records[script_index]


class DiffSession(_SessionBase):
    """Synchronous diff session.

    Parameters
    ----------
    storage:
        Source of previous/current snapshots.
    renderer:
        Optional renderer used by :meth:`display`.
    config:
        Engine and presentation configuration.
    """

    def __init__(
        self,
        storage: ProjectStorage,
        renderer: Renderer | None = None,
        config: DiffConfig | None = None,
    ) -> None:
        super().__init__(renderer, config)
        self._storage = storage
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, sprite_name: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(sprite_name, threading.Lock())

    def diff(self, sprite_name: str, cached: bool = False) -> list[DiffRecord]:
        """Diff the previous and current scripts of *sprite_name*.

        Parameters
        ----------
        sprite_name:
            Sprite (or ``"Stage"``) to diff.
        cached:
            Reuse the snapshots fetched by the last call for this sprite
            instead of asking storage again.

        Raises
        ------
        StorageUnavailableError
            If either snapshot cannot be fetched.
        """
        with self._lock_for(sprite_name):
            return self._diff_locked(sprite_name, cached)

    def display(
        self,
        sprite_name: str,
        view: DiffView,
        script_index: int = 0,
        cached: bool = False,
        style: RenderStyle | str | None = None,
        highlight: bool | None = None,
        plain_text: bool | None = None,
    ) -> list[DiffRecord]:
        """Diff *sprite_name* and render the record at *script_index* into *view*.

        Returns the records, with the rendered one degraded to ``error`` if
        the renderer failed on it.
        """
        with self._lock_for(sprite_name):
            records = self._diff_locked(sprite_name, cached)
            selected = self._select(records, script_index)

            outcome: RenderOutcome | None = None
            if selected is not None and self._renderer is not None:
                request = build_request(selected, self._config, style, highlight, plain_text)
                outcome = render_record(self._renderer, request, self._config)
                records = _replace_record(records, outcome)

            active = script_index if selected is not None else None
            if not view.apply(sprite_name, records, active, outcome):
                log.debug(
                    "view closed, discarding render result",
                    extra={"extra_fields": {"sprite": sprite_name, "script_index": script_index}},
                )
            return records

    def _diff_locked(self, sprite_name: str, cached: bool) -> list[DiffRecord]:
        previous, current = self._snapshots_for(sprite_name, cached)
        return self._engine.diff(previous, current)

    def _snapshots_for(self, sprite_name: str, cached: bool) -> _SnapshotPair:
        if cached and sprite_name in self._snapshots:
            return self._snapshots[sprite_name]
        try:
            t0 = time.monotonic()
            previous = self._storage.get_previous_scripts(sprite_name)
            self._record_fetch(SnapshotState.PREVIOUS, t0)
            t0 = time.monotonic()
            current = self._storage.get_current_scripts(sprite_name)
            self._record_fetch(SnapshotState.CURRENT, t0)
        except StorageUnavailableError as exc:
            _log_storage_failure(sprite_name, exc)
            raise
        self._snapshots[sprite_name] = (previous, current)
        return previous, current


class AsyncDiffSession(_SessionBase):
    """Asynchronous diff session.

    Same contract as :class:`DiffSession`; storage fetches and rendering
    are awaited, and the per-sprite guard is an :class:`asyncio.Lock`.
    """

    def __init__(
        self,
        storage: AsyncProjectStorage,
        renderer: Renderer | None = None,
        config: DiffConfig | None = None,
    ) -> None:
        super().__init__(renderer, config)
        self._storage = storage
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, sprite_name: str) -> asyncio.Lock:
        return self._locks.setdefault(sprite_name, asyncio.Lock())

    def in_flight(self, sprite_name: str) -> bool:
        """Whether a diff for *sprite_name* is currently running."""
        lock = self._locks.get(sprite_name)
        return lock is not None and lock.locked()

    async def diff(self, sprite_name: str, cached: bool = False) -> list[DiffRecord]:
        """Diff the previous and current scripts of *sprite_name*.

        A concurrent call for the same sprite waits for this one to finish.

        Raises
        ------
        StorageUnavailableError
            If either snapshot cannot be fetched.
        """
        async with self._lock_for(sprite_name):
            return await self._diff_locked(sprite_name, cached)

    async def display(
        self,
        sprite_name: str,
        view: DiffView,
        script_index: int = 0,
        cached: bool = False,
        style: RenderStyle | str | None = None,
        highlight: bool | None = None,
        plain_text: bool | None = None,
    ) -> list[DiffRecord]:
        """Diff *sprite_name* and render the record at *script_index* into *view*.

        If *view* is closed while the renderer is still working, the render
        call is allowed to finish and its result is dropped.
        """
        async with self._lock_for(sprite_name):
            records = await self._diff_locked(sprite_name, cached)
            selected = self._select(records, script_index)

            outcome: RenderOutcome | None = None
            if selected is not None and self._renderer is not None:
                request = build_request(selected, self._config, style, highlight, plain_text)
                outcome = await async_render_record(self._renderer, request, self._config)
                records = _replace_record(records, outcome)

            active = script_index if selected is not None else None
            if not view.apply(sprite_name, records, active, outcome):
                log.debug(
                    "view closed, discarding render result",
                    extra={"extra_fields": {"sprite": sprite_name, "script_index": script_index}},
                )
            return records

    async def _diff_locked(self, sprite_name: str, cached: bool) -> list[DiffRecord]:
        previous, current = await self._snapshots_for(sprite_name, cached)
        return self._engine.diff(previous, current)

    async def _snapshots_for(self, sprite_name: str, cached: bool) -> _SnapshotPair:
        if cached and sprite_name in self._snapshots:
            return self._snapshots[sprite_name]
        try:
            t0 = time.monotonic()
            previous = await self._storage.get_previous_scripts(sprite_name)
            self._record_fetch(SnapshotState.PREVIOUS, t0)
            t0 = time.monotonic()
            current = await self._storage.get_current_scripts(sprite_name)
            self._record_fetch(SnapshotState.CURRENT, t0)
        except StorageUnavailableError as exc:
            _log_storage_failure(sprite_name, exc)
            raise
        self._snapshots[sprite_name] = (previous, current)
        return previous, current
