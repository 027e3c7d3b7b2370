"""HTTP project storage backed by the local companion git server.

The server exposes one endpoint per sprite::

    GET /projects/{project}/sprites/{sprite}/scripts?state=previous|current

which returns the sprite's target object from ``project.json`` (at least
its ``blocks`` dict).  Requests are never retried: any failure becomes a
:class:`~scratchdiff.errors.StorageUnavailableError` for the caller to
surface.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from scratchdiff.config import DiffConfig
from scratchdiff.errors import StorageUnavailableError
from scratchdiff.models import ScriptSnapshot, SnapshotState
from scratchdiff.serializer.sb3 import snapshot_from_target


def _scripts_path(project: str, sprite_name: str) -> str:
    return f"/projects/{quote(project, safe='')}/sprites/{quote(sprite_name, safe='')}/scripts"


def _network_error(
    exc: httpx.HTTPError, sprite_name: str, state: SnapshotState, url: str,
) -> StorageUnavailableError:
    return StorageUnavailableError(
        message=f"Could not reach project storage for sprite {sprite_name!r}: {exc}",
        context={"sprite": sprite_name, "state": state.value, "url": url, "reason": "network"},
        cause=exc,
    )


def _snapshot_from_response(
    response: httpx.Response, sprite_name: str, state: SnapshotState,
) -> ScriptSnapshot:
    """Validate a storage response and build the snapshot from it."""
    url = str(response.request.url)
    context: dict[str, Any] = {"sprite": sprite_name, "state": state.value, "url": url}

    if response.status_code == 404:
        raise StorageUnavailableError(
            message=f"Sprite {sprite_name!r} not found in {state.value} project",
            context={**context, "status_code": 404, "reason": "sprite_not_found"},
        )
    if not 200 <= response.status_code < 300:
        raise StorageUnavailableError(
            message=(
                f"Project storage returned {response.status_code} for sprite "
                f"{sprite_name!r}: {response.text[:500]}"
            ),
            context={**context, "status_code": response.status_code, "reason": "http_status"},
        )

    try:
        target = response.json()
    except ValueError as exc:
        raise StorageUnavailableError(
            message=f"Project storage sent invalid JSON for sprite {sprite_name!r}",
            context={**context, "reason": "invalid_json"},
            cause=exc,
        ) from exc
    if not isinstance(target, dict):
        raise StorageUnavailableError(
            message=f"Project storage sent a non-object body for sprite {sprite_name!r}",
            context={**context, "reason": "invalid_json"},
        )
    return snapshot_from_target(target, state, sprite_name=sprite_name)


class HttpProjectStorage:
    """Synchronous storage client for the companion git server.

    Parameters
    ----------
    config:
        Supplies ``storage_base_url``, ``project_name`` and
        ``timeout_seconds``.
    client:
        Optional pre-built :class:`httpx.Client`, mainly for tests.
    """

    def __init__(self, config: DiffConfig, client: httpx.Client | None = None) -> None:
        self._config = config
        self._client = client or httpx.Client(
            base_url=config.storage_base_url,
            headers={"Accept": "application/json"},
            timeout=httpx.Timeout(config.timeout_seconds),
        )

    def get_previous_scripts(self, sprite_name: str) -> ScriptSnapshot:
        return self._fetch(sprite_name, SnapshotState.PREVIOUS)

    def get_current_scripts(self, sprite_name: str) -> ScriptSnapshot:
        return self._fetch(sprite_name, SnapshotState.CURRENT)

    def _fetch(self, sprite_name: str, state: SnapshotState) -> ScriptSnapshot:
        path = _scripts_path(self._config.project_name, sprite_name)
        try:
            response = self._client.get(path, params={"state": state.value})
        except httpx.HTTPError as exc:
            raise _network_error(exc, sprite_name, state, path) from exc
        return _snapshot_from_response(response, sprite_name, state)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpProjectStorage:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class AsyncHttpProjectStorage:
    """Asynchronous storage client for the companion git server."""

    def __init__(self, config: DiffConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = client or httpx.AsyncClient(
            base_url=config.storage_base_url,
            headers={"Accept": "application/json"},
            timeout=httpx.Timeout(config.timeout_seconds),
        )

    async def get_previous_scripts(self, sprite_name: str) -> ScriptSnapshot:
        return await self._fetch(sprite_name, SnapshotState.PREVIOUS)

    async def get_current_scripts(self, sprite_name: str) -> ScriptSnapshot:
        return await self._fetch(sprite_name, SnapshotState.CURRENT)

    async def _fetch(self, sprite_name: str, state: SnapshotState) -> ScriptSnapshot:
        path = _scripts_path(self._config.project_name, sprite_name)
        try:
            response = await self._client.get(path, params={"state": state.value})
        except httpx.HTTPError as exc:
            raise _network_error(exc, sprite_name, state, path) from exc
        return _snapshot_from_response(response, sprite_name, state)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AsyncHttpProjectStorage:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
