"""Metrics hook protocol and no-op default implementation.

scratchdiff emits counters and timings at a handful of points (per-script
statuses, diff duration, serialization and render failures, storage
fetches).  By default a :class:`NoopMetricsHook` is used so there is zero
overhead.  Callers can supply any object satisfying :class:`MetricsHook`
through ``DiffConfig(metrics=...)`` to route data points to StatsD,
Prometheus or similar.

Emitted metric names:

* ``scratchdiff.scripts_total``               -- counter, tag ``status``
* ``scratchdiff.diff_duration_ms``            -- timing
* ``scratchdiff.serialization_errors_total``  -- counter
* ``scratchdiff.render_errors_total``         -- counter
* ``scratchdiff.storage_fetch_ms``            -- timing, tag ``state``
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict whose keys and values are
    strings.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that silently discards all data points.

    Lets call-sites skip ``if self._metrics is not None`` guards.
    """

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass


def resolve_metrics(hook: object | None) -> MetricsHook:
    """Return *hook* or a shared no-op hook when it is ``None``."""
    return hook if hook is not None else _NOOP  # type: ignore[return-value]


_NOOP = NoopMetricsHook()
