"""Pytest configuration and fixtures."""

import shutil
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from runnotifier.notifications.config import ConfigurationStore, MemorySettings
from runnotifier.notifications.host import JobRecord, NodeInfo, RunRecord, StaticHost
from runnotifier.notifications.notifier import RunNotifier
from runnotifier.notifications.scheduler import DeliveryScheduler

TARGET = "http://example.test/hook"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test artifacts."""
    dirpath = tempfile.mkdtemp()
    yield Path(dirpath)
    shutil.rmtree(dirpath, ignore_errors=True)


@pytest.fixture
def host():
    """Two online nodes and one offline node."""
    return StaticHost(
        nodes=[
            NodeInfo(name="master", num_executors=2, busy_executors=1),
            NodeInfo(name="agent-1", num_executors=4, busy_executors=2),
            NodeInfo(name="agent-2", num_executors=8, busy_executors=8, online=False),
        ],
        root_url="http://ci.example.test/",
    )


@pytest.fixture
def job():
    return JobRecord(display_name="my-job", url="job/my-job/")


@pytest.fixture
def run(job):
    return RunRecord(
        display_name="build-42",
        parent=job,
        build_status_summary="stable",
        duration=4500,
        url="job/my-job/42/",
    )


@pytest.fixture
def store():
    return ConfigurationStore(MemorySettings(TARGET))


@pytest.fixture
def notifier(store, host):
    n = RunNotifier(store, host, scheduler=DeliveryScheduler(max_pending=10, workers=2))
    yield n
    n.close(timeout=5)


@pytest.fixture
def mock_client():
    """An httpx.AsyncClient stand-in whose POST succeeds."""
    mock_resp = MagicMock()
    mock_resp.raise_for_status = MagicMock()

    client = AsyncMock()
    client.post = AsyncMock(return_value=mock_resp)
    client.aclose = AsyncMock()
    return client
