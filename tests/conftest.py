"""Shared fixtures for flex_poller tests."""

from __future__ import annotations

import pytest

from flex_poller.models.config import PollerConfig, RetryConfig, StorageBackend
from flex_poller.poller.loop import EventPollLoop
from flex_poller.poller.retry import RetryPolicy
from flex_poller.storage.file import FileCursorStore
from flex_poller.storage.sqlite import SQLiteStateStore

from tests.mocks import (
    START_TIME,
    FakeSleep,
    MockCursorStore,
    MockFeed,
    MockListingStore,
    RecordingHandler,
)

POLL_WAIT = 0.25
POLL_IDLE_WAIT = 10.0


def make_test_config(**overrides) -> PollerConfig:
    """Build a PollerConfig suitable for testing."""
    defaults = dict(
        poll_wait=POLL_WAIT,
        poll_idle_wait=POLL_IDLE_WAIT,
        event_types=["user/updated"],
        handlers=["log"],
        retry=RetryConfig(max_backoff=60.0, max_consecutive_failures=0),
        client_id="test-client-id",
        client_secret="test-client-secret",
        base_url="https://flex-integ-api.example.com",
        storage=StorageBackend.SQLITE,
        db_path=":memory:",
    )
    defaults.update(overrides)
    return PollerConfig(**defaults)


def make_loop(feed, store, handlers=(), sleep=None, **kwargs) -> EventPollLoop:
    """EventPollLoop with a fixed clock and the test delays."""
    kwargs.setdefault("poll_wait", POLL_WAIT)
    kwargs.setdefault("poll_idle_wait", POLL_IDLE_WAIT)
    kwargs.setdefault("retry", RetryPolicy(base=POLL_IDLE_WAIT, max_backoff=60.0))
    return EventPollLoop(
        feed,
        store,
        handlers,
        clock=lambda: START_TIME,
        sleep=sleep or FakeSleep(),
        **kwargs,
    )


@pytest.fixture
def test_config():
    """Default PollerConfig for tests."""
    return make_test_config()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteStateStore."""
    s = SQLiteStateStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def file_store(tmp_path):
    return FileCursorStore(tmp_path / "poller.state")


@pytest.fixture
def mock_feed():
    return MockFeed(per_page=2)


@pytest.fixture
def mock_store():
    return MockCursorStore()


@pytest.fixture
def recorder():
    return RecordingHandler()


@pytest.fixture
def mock_listings():
    return MockListingStore()
