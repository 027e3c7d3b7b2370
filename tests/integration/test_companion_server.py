"""Integration tests against a running companion git server.

These tests require the server to be running and a project with at least
one sprite.  Set SCRATCHDIFF_SERVER_URL, SCRATCHDIFF_PROJECT and
SCRATCHDIFF_SPRITE to run them.

Usage:
    SCRATCHDIFF_SERVER_URL=http://127.0.0.1:8000 SCRATCHDIFF_PROJECT=demo \
    SCRATCHDIFF_SPRITE=Sprite1 pytest tests/integration/ -v
"""
import os

import pytest

pytestmark = pytest.mark.skipif(
    not os.environ.get("SCRATCHDIFF_SERVER_URL"),
    reason="SCRATCHDIFF_SERVER_URL not set; skipping integration tests",
)


@pytest.fixture
def server_config():
    from scratchdiff import DiffConfig

    project = os.environ.get("SCRATCHDIFF_PROJECT")
    if not project:
        pytest.skip("SCRATCHDIFF_PROJECT not set")
    return DiffConfig(storage_base_url=os.environ["SCRATCHDIFF_SERVER_URL"], project_name=project)


@pytest.fixture
def sprite():
    return os.environ.get("SCRATCHDIFF_SPRITE", "Sprite1")


def test_sync_diff(server_config, sprite):
    from scratchdiff import DiffSession
    from scratchdiff.storage import HttpProjectStorage

    with HttpProjectStorage(server_config) as storage:
        records = DiffSession(storage, config=server_config).diff(sprite)
    assert [r.script_index for r in records] == list(range(len(records)))


async def test_async_diff_matches_sync(server_config, sprite):
    from scratchdiff import AsyncDiffSession, DiffSession
    from scratchdiff.storage import AsyncHttpProjectStorage, HttpProjectStorage

    async with AsyncHttpProjectStorage(server_config) as storage:
        async_records = await AsyncDiffSession(storage, config=server_config).diff(sprite)
    with HttpProjectStorage(server_config) as storage:
        sync_records = DiffSession(storage, config=server_config).diff(sprite)
    assert async_records == sync_records


def test_unknown_sprite_is_storage_error(server_config):
    from scratchdiff import DiffSession, StorageUnavailableError
    from scratchdiff.storage import HttpProjectStorage

    with HttpProjectStorage(server_config) as storage:
        with pytest.raises(StorageUnavailableError):
            DiffSession(storage, config=server_config).diff("no-such-sprite-3f9a")
