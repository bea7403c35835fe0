"""Pytest configuration and shared fixtures."""
from unittest.mock import Mock

import pytest

from drivepush.push import PushEngine, PushOptions
from tests.fixtures.mock_remote_client import MockRemoteClient, RecordingIndexStore, make_differ


@pytest.fixture
def sync_root(tmp_path):
    """An empty local sync root."""
    root = tmp_path / "root"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def remote():
    """A mock remote account with plenty of quota."""
    return MockRemoteClient(used=0, limit=10 ** 9)


@pytest.fixture
def make_engine(sync_root, remote):
    """Build a PushEngine over the mock remote; keyword args become PushOptions."""

    def factory(confirm=None, differ=None, **options):
        return PushEngine(
            remote,
            sync_root,
            differ or make_differ(remote),
            index_store=RecordingIndexStore(sync_root, remote),
            options=PushOptions(**options),
            confirm=confirm or Mock(return_value=True),
        )

    return factory
