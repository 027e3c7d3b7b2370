"""File-based project storage.

Each side (previous / current) is either a ``.sb3`` archive or a directory
holding an unzipped project (``project.json`` at its root), which is how
the companion git server keeps committed projects on disk.
"""

from __future__ import annotations

import asyncio
import json
import zipfile
from pathlib import Path
from typing import Any

from scratchdiff.errors import StorageUnavailableError
from scratchdiff.models import ScriptSnapshot, SnapshotState
from scratchdiff.observability import get_logger
from scratchdiff.serializer.sb3 import load_target, snapshot_from_target

log = get_logger("scratchdiff.storage")

PROJECT_JSON = "project.json"


def read_project(path: str | Path) -> dict[str, Any]:
    """Read and parse ``project.json`` from an archive or a directory.

    Raises
    ------
    StorageUnavailableError
        ``context["reason"]`` is one of ``not_found``, ``not_unzipped``,
        ``bad_archive``, ``missing_project_json`` or ``invalid_json``.
    """
    p = Path(path)
    try:
        if p.is_dir():
            project_file = p / PROJECT_JSON
            if not project_file.is_file():
                raise StorageUnavailableError(
                    message=f"Project directory {str(p)!r} has no {PROJECT_JSON}; is it unzipped?",
                    context={"path": str(p), "reason": "not_unzipped"},
                )
            raw = project_file.read_bytes()
        elif p.is_file():
            with zipfile.ZipFile(p) as archive:
                raw = archive.read(PROJECT_JSON)
        else:
            raise StorageUnavailableError(
                message=f"Project {str(p)!r} does not exist",
                context={"path": str(p), "reason": "not_found"},
            )
    except zipfile.BadZipFile as exc:
        raise StorageUnavailableError(
            message=f"Project {str(p)!r} is not a valid .sb3 archive",
            context={"path": str(p), "reason": "bad_archive"},
            cause=exc,
        ) from exc
    except KeyError as exc:
        raise StorageUnavailableError(
            message=f"Archive {str(p)!r} has no {PROJECT_JSON}",
            context={"path": str(p), "reason": "missing_project_json"},
            cause=exc,
        ) from exc
    except OSError as exc:
        raise StorageUnavailableError(
            message=f"Could not read project {str(p)!r}: {exc}",
            context={"path": str(p), "reason": "not_found"},
            cause=exc,
        ) from exc

    try:
        project = json.loads(raw)
    except ValueError as exc:
        raise StorageUnavailableError(
            message=f"{PROJECT_JSON} in {str(p)!r} is not valid JSON",
            context={"path": str(p), "reason": "invalid_json"},
            cause=exc,
        ) from exc
    if not isinstance(project, dict):
        raise StorageUnavailableError(
            message=f"{PROJECT_JSON} in {str(p)!r} is not a JSON object",
            context={"path": str(p), "reason": "invalid_json"},
        )
    return project


def snapshot_from_project(
    project: dict[str, Any],
    sprite_name: str,
    state: SnapshotState,
    source: str = "",
) -> ScriptSnapshot:
    """Extract one sprite's snapshot from a parsed project.

    Raises
    ------
    StorageUnavailableError
        With ``reason="sprite_not_found"`` if the sprite does not exist.
    """
    target = load_target(project, sprite_name)
    if target is None:
        raise StorageUnavailableError(
            message=f"Sprite {sprite_name!r} not found in {state.value} project",
            context={
                "sprite": sprite_name,
                "state": state.value,
                "path": source,
                "reason": "sprite_not_found",
            },
        )
    return snapshot_from_target(target, state, sprite_name=sprite_name)


class ArchiveProjectStorage:
    """Reads snapshots from two project files or directories.

    Parameters
    ----------
    previous:
        ``.sb3`` archive or unzipped project directory of the last commit.
    current:
        ``.sb3`` archive or unzipped project directory of the live project.
    """

    def __init__(self, previous: str | Path, current: str | Path) -> None:
        self._paths = {
            SnapshotState.PREVIOUS: Path(previous),
            SnapshotState.CURRENT: Path(current),
        }

    def get_previous_scripts(self, sprite_name: str) -> ScriptSnapshot:
        return self._load(sprite_name, SnapshotState.PREVIOUS)

    def get_current_scripts(self, sprite_name: str) -> ScriptSnapshot:
        return self._load(sprite_name, SnapshotState.CURRENT)

    def _load(self, sprite_name: str, state: SnapshotState) -> ScriptSnapshot:
        path = self._paths[state]
        try:
            project = read_project(path)
        except StorageUnavailableError as exc:
            exc.context.update({"sprite": sprite_name, "state": state.value})
            raise
        log.debug(
            "project read",
            extra={"extra_fields": {"op": "fetch", "path": str(path), "state": state.value}},
        )
        return snapshot_from_project(project, sprite_name, state, source=str(path))


class AsyncArchiveProjectStorage:
    """Async wrapper running :class:`ArchiveProjectStorage` in a worker thread.

    Reading and decompressing an archive blocks, so it is kept off the
    event loop.
    """

    def __init__(self, previous: str | Path, current: str | Path) -> None:
        self._sync = ArchiveProjectStorage(previous, current)

    async def get_previous_scripts(self, sprite_name: str) -> ScriptSnapshot:
        return await asyncio.to_thread(self._sync.get_previous_scripts, sprite_name)

    async def get_current_scripts(self, sprite_name: str) -> ScriptSnapshot:
        return await asyncio.to_thread(self._sync.get_current_scripts, sprite_name)
