"""Project storage adapters.

Exports
-------
ProjectStorage, AsyncProjectStorage
    Protocols every snapshot source satisfies.
ArchiveProjectStorage, AsyncArchiveProjectStorage
    Read ``.sb3`` archives or unzipped project directories.
HttpProjectStorage, AsyncHttpProjectStorage
    Fetch scripts from the local companion git server over HTTP.
"""

from .archive import (
    ArchiveProjectStorage,
    AsyncArchiveProjectStorage,
    read_project,
    snapshot_from_project,
)
from .base import AsyncProjectStorage, ProjectStorage
from .http import AsyncHttpProjectStorage, HttpProjectStorage

__all__ = [
    "ArchiveProjectStorage",
    "AsyncArchiveProjectStorage",
    "AsyncHttpProjectStorage",
    "AsyncProjectStorage",
    "HttpProjectStorage",
    "ProjectStorage",
    "read_project",
    "snapshot_from_project",
]
