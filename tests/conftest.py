"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from config import PollConfig
from plugins.base import RemoteSnapshot


def make_snapshot(**overrides) -> RemoteSnapshot:
    """Build a RemoteSnapshot with realistic defaults."""
    values = {
        "id": "snap-1",
        "name": "db-snap",
        "instance_id": "i-123",
        "state": "complete",
        "hostname": "db1",
        "template_id": "ubuntu-22.04",
        "region": "LON1",
        "size_gb": 20,
        "safe": 1,
        "cron_timing": "",
        "requested_at": datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        "completed_at": datetime(2024, 1, 15, 10, 42, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return RemoteSnapshot(**values)


@pytest.fixture
def sample_declaration():
    """Declared attributes of a one-shot snapshot."""
    return {
        "name": "db-snap",
        "instance_id": "i-123",
        "safe": True,
    }


@pytest.fixture
def recurring_declaration():
    """Declared attributes of a cron-scheduled snapshot."""
    return {
        "name": "nightly",
        "instance_id": "i-123",
        "cron_timing": "0 2 * * *",
    }


@pytest.fixture
def fast_poll_config():
    """Poll configuration with millisecond delays for quick tests."""
    return PollConfig(
        create_timeout=5,
        poll_interval=0.001,
        max_poll_interval=0.004,
        backoff_factor=2.0,
    )


@pytest.fixture
def mock_client():
    """Create a mock remote client."""
    client = AsyncMock()
    client.create_snapshot = AsyncMock(return_value=make_snapshot(state="pending"))
    client.find_snapshot = AsyncMock(return_value=make_snapshot())
    client.delete_snapshot = AsyncMock(return_value=None)
    return client


@pytest.fixture
def snapshot_factory():
    """Factory for RemoteSnapshot objects."""
    return make_snapshot
