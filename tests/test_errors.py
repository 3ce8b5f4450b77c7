"""Fetch, persist and handler failures: the loop reports, backs off and keeps going."""

from __future__ import annotations

import pytest

from flex_poller.errors import FetchError, PersistError, ProcessingError
from flex_poller.poller.retry import RetryPolicy

from tests.conftest import POLL_IDLE_WAIT, POLL_WAIT, make_loop
from tests.factories import make_page
from tests.mocks import FakeSleep, MockCursorStore, RecordingHandler


# ── Fetch failures ─────────────────────────────────────────────────


async def test_fetch_error_keeps_cursor_and_backs_off(mock_feed, recorder):
    store = MockCursorStore(cursor=10)
    mock_feed.fail_next("502 Bad Gateway")
    loop = make_loop(mock_feed, store, [recorder])

    result = await loop.run_iteration(10)

    assert isinstance(result.error, FetchError)
    assert result.cursor == 10
    assert result.delay == POLL_IDLE_WAIT
    assert store.writes == []
    assert recorder.seen == []
    assert loop.consecutive_failures == 1


async def test_fetch_errors_back_off_exponentially_then_recover(mock_feed, recorder):
    store = MockCursorStore(cursor=10)
    mock_feed.fail_next()
    mock_feed.fail_next()
    mock_feed.fail_next()
    mock_feed.enqueue(make_page(11, 12, per_page=2))
    sleep = FakeSleep(stop_after=4)
    loop = make_loop(mock_feed, store, [recorder], sleep=sleep)

    final = await loop.start(10)

    assert sleep.delays == [10.0, 20.0, 40.0, POLL_WAIT]
    assert [q.start_after_sequence_id for q in mock_feed.queries] == [10, 10, 10, 10]
    assert recorder.seen == [11, 12]
    assert final == 12
    assert loop.consecutive_failures == 0


async def test_backoff_is_capped(mock_feed, mock_store):
    for _ in range(6):
        mock_feed.fail_next()
    sleep = FakeSleep(stop_after=6)
    loop = make_loop(
        mock_feed, mock_store, sleep=sleep,
        retry=RetryPolicy(base=POLL_IDLE_WAIT, max_backoff=45.0),
    )

    await loop.start(1)

    assert sleep.delays == [10.0, 20.0, 40.0, 45.0, 45.0, 45.0]


async def test_too_many_failures_is_fatal(mock_feed, mock_store):
    for _ in range(3):
        mock_feed.fail_next("feed down")
    loop = make_loop(
        mock_feed, mock_store, sleep=FakeSleep(stop_after=10),
        retry=RetryPolicy(base=1.0, max_backoff=5.0, max_consecutive_failures=2),
    )

    with pytest.raises(FetchError, match="feed down"):
        await loop.start(1)

    assert len(mock_feed.queries) == 3


async def test_fetch_error_recorded_in_activity_log(mock_feed, store):
    mock_feed.fail_next("timeout")
    loop = make_loop(mock_feed, store, activity=store)

    await loop.run_iteration(5)

    activity = await store.get_recent_activity(10)
    assert activity[0].kind == "fetch_error"
    assert "timeout" in activity[0].message
    assert activity[0].sequence_id == 5


# ── Persist failures ───────────────────────────────────────────────


async def test_persist_error_keeps_in_memory_cursor(mock_feed, recorder):
    """Write fails → events are not refetched, the write is retried next tick."""
    store = MockCursorStore(cursor=100, fail_writes=1)
    mock_feed.enqueue(make_page(101, 102, per_page=2))
    sleep = FakeSleep(stop_after=2)
    loop = make_loop(mock_feed, store, [recorder], sleep=sleep)

    final = await loop.start(100)

    # second query continues from the processed position
    assert mock_feed.queries[1].start_after_sequence_id == 102
    # the empty second page still flushes the pending cursor
    assert store.writes == [102]
    assert store.cursor == 102
    assert final == 102
    assert recorder.seen == [101, 102]
    # failure delay after the failed write, idle delay after the recovery
    assert sleep.delays == [POLL_IDLE_WAIT, POLL_IDLE_WAIT]


async def test_persist_error_reported_on_result(mock_feed):
    store = MockCursorStore(fail_writes=1)
    mock_feed.enqueue(make_page(1, 2, per_page=2))
    loop = make_loop(mock_feed, store)

    result = await loop.run_iteration(None)

    assert isinstance(result.error, PersistError)
    assert not result.persisted
    assert result.cursor == 2
    # full page, but a failed write uses the failure delay
    assert result.delay == POLL_IDLE_WAIT


# ── Handler failures ───────────────────────────────────────────────


async def test_handler_error_advances_cursor(mock_feed, mock_store):
    """A failing handler is reported; later events and the cursor still advance."""
    failing = RecordingHandler("flaky", fail_on={21})
    after = RecordingHandler("after")
    mock_feed.enqueue(make_page(20, 21, 22))
    loop = make_loop(mock_feed, mock_store, [failing, after])

    result = await loop.run_iteration(19)

    assert failing.seen == [20, 21, 22]
    assert after.seen == [20, 21, 22]
    assert mock_store.cursor == 22
    assert result.ok
    assert len(result.handler_errors) == 1
    err = result.handler_errors[0]
    assert isinstance(err, ProcessingError)
    assert err.sequence_id == 21
    assert err.handler == "flaky"
    assert isinstance(err.cause, RuntimeError)


async def test_handler_error_recorded_in_activity_log(mock_feed, store):
    mock_feed.enqueue(make_page(8))
    loop = make_loop(mock_feed, store, [RecordingHandler("flaky", fail_on={8})], activity=store)

    await loop.run_iteration(7)

    kinds = [a.kind for a in await store.get_recent_activity(10)]
    assert "handler_error" in kinds
    assert await store.get_cursor() == 8


# ── RetryPolicy ────────────────────────────────────────────────────


def test_retry_policy_delays():
    policy = RetryPolicy(base=2.0, max_backoff=10.0)
    assert [policy.delay_for(n) for n in range(1, 6)] == [2.0, 4.0, 8.0, 10.0, 10.0]
    assert policy.delay_for(10_000) == 10.0


def test_retry_policy_unlimited_by_default():
    policy = RetryPolicy()
    assert not policy.exhausted(1_000_000)


def test_retry_policy_exhausted_after_limit():
    policy = RetryPolicy(max_consecutive_failures=3)
    assert not policy.exhausted(3)
    assert policy.exhausted(4)
