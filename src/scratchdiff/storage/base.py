"""Project storage protocols.

Storage supplies the previous (last committed) and current (live) scripts
of a sprite.  Any failure to produce a snapshot is reported as
:class:`~scratchdiff.errors.StorageUnavailableError`; the caller surfaces it
before any diffing happens.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from scratchdiff.models import ScriptSnapshot


@runtime_checkable
class ProjectStorage(Protocol):
    """Synchronous snapshot source."""

    def get_previous_scripts(self, sprite_name: str) -> ScriptSnapshot:
        """Return the last committed scripts of *sprite_name*."""
        ...

    def get_current_scripts(self, sprite_name: str) -> ScriptSnapshot:
        """Return the live scripts of *sprite_name*."""
        ...


@runtime_checkable
class AsyncProjectStorage(Protocol):
    """Asynchronous snapshot source."""

    async def get_previous_scripts(self, sprite_name: str) -> ScriptSnapshot:
        """Return the last committed scripts of *sprite_name*."""
        ...

    async def get_current_scripts(self, sprite_name: str) -> ScriptSnapshot:
        """Return the live scripts of *sprite_name*."""
        ...
