"""Event poll loop - fetch one page, handle it, persist the cursor, wait."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Sequence

from flex_poller.errors import FetchError, PersistError, PollerError, ProcessingError
from flex_poller.interfaces.feed import EventFeed
from flex_poller.interfaces.handler import EventHandler
from flex_poller.interfaces.store import ActivityLog, CursorStore
from flex_poller.models.events import Event, EventQuery
from flex_poller.models.records import IterationResult
from flex_poller.poller.retry import RetryPolicy

log = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Sleep = Callable[[float, asyncio.Event], Awaitable[None]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


async def interruptible_sleep(delay: float, stop: asyncio.Event) -> None:
    """Wait for delay seconds, returning early as soon as stop is set."""
    try:
        await asyncio.wait_for(stop.wait(), timeout=delay)
    except asyncio.TimeoutError:
        pass


class EventPollLoop:
    """Sequential long-poll loop over an ordered event feed.

    Each iteration fetches one page after the current cursor, runs every
    handler on every new event in order, persists the last sequence ID and
    then sleeps: poll_wait after a full page, poll_idle_wait otherwise.
    Failed fetches and cursor writes back off via the RetryPolicy instead
    of stopping the loop. A handler that raises is logged and the cursor
    advances past the event anyway.
    """

    def __init__(
        self,
        feed: EventFeed,
        store: CursorStore,
        handlers: Sequence[EventHandler] = (),
        *,
        event_types: Sequence[str] = ("user/updated",),
        poll_wait: float = 0.25,
        poll_idle_wait: float = 10.0,
        per_page: int | None = None,
        retry: RetryPolicy | None = None,
        activity: ActivityLog | None = None,
        clock: Clock = _utc_now,
        sleep: Sleep = interruptible_sleep,
    ) -> None:
        self._feed = feed
        self._store = store
        self._handlers = tuple(handlers)
        self._event_types = tuple(event_types)
        self._poll_wait = poll_wait
        self._poll_idle_wait = poll_idle_wait
        self._per_page = per_page
        self._retry = retry or RetryPolicy(base=poll_idle_wait)
        self._activity = activity
        self._clock = clock
        self._sleep = sleep

        self._stop = asyncio.Event()
        self._started_at: datetime | None = None
        self._failures = 0
        # Cursor that was processed but could not be written yet
        self._unsaved: int | None = None

    @property
    def started_at(self) -> datetime | None:
        return self._started_at

    @property
    def consecutive_failures(self) -> int:
        return self._failures

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        """Ask the loop to exit; takes effect before the next fetch or during the wait."""
        self._stop.set()

    def build_query(self, cursor: int | None) -> EventQuery:
        if cursor is not None:
            return EventQuery(
                event_types=self._event_types,
                start_after_sequence_id=cursor,
                per_page=self._per_page,
            )
        if self._started_at is None:
            self._started_at = self._clock()
        return EventQuery(
            event_types=self._event_types,
            created_at_start=self._started_at,
            per_page=self._per_page,
        )

    async def start(self, initial_cursor: int | None = None) -> int | None:
        """Poll until stop() is called. Returns the last cursor reached.

        Only returns early by raising, when the retry policy gives up.
        """
        if self._started_at is None:
            self._started_at = self._clock()

        if initial_cursor is not None:
            log.info(
                "Resuming event polling from last seen event with sequence ID %d",
                initial_cursor,
            )
        else:
            log.info("No state found or failed to load state.")
            log.info(
                "Starting event polling from current time (%s).",
                self._started_at.isoformat(),
            )

        cursor = initial_cursor
        while not self._stop.is_set():
            result = await self.run_iteration(cursor)
            cursor = result.cursor
            if self._stop.is_set():
                break
            await self._sleep(result.delay, self._stop)

        log.info("Event polling stopped (cursor: %s)", cursor)
        return cursor

    async def run_iteration(self, cursor: int | None) -> IterationResult:
        """Run one fetch-process-persist cycle starting after cursor."""
        query = self.build_query(cursor)

        # 1. Fetch
        try:
            page = await self._feed.query(query)
        except FetchError as exc:
            return await self._fail(exc, "fetch_error", IterationResult(cursor=cursor, delay=0))

        fresh = [e for e in page.events if cursor is None or e.sequence_id > cursor]
        if len(fresh) < page.total_returned:
            log.warning(
                "Skipping %d events at or before cursor %s",
                page.total_returned - len(fresh), cursor,
            )

        result = IterationResult(
            cursor=cursor,
            delay=self._poll_idle_wait,
            events_fetched=page.total_returned,
            full_page=page.is_full,
        )

        # 2. Handle
        if fresh:
            log.info("%d new events detected", len(fresh))
        else:
            log.info("No new events")
        for event in fresh:
            await self._process(event, result)
            result.events_processed += 1

        # 3. Persist
        new_cursor = fresh[-1].sequence_id if fresh else cursor
        result.cursor = new_cursor
        if new_cursor is not None and (new_cursor != cursor or self._unsaved is not None):
            try:
                await self._store.set_cursor(new_cursor)
            except PersistError as exc:
                self._unsaved = new_cursor
                return await self._fail(exc, "persist_error", result)
            self._unsaved = None
            result.persisted = True
            log.debug("Cursor saved: %d", new_cursor)

        # 4. Pick the next delay
        self._failures = 0
        if page.is_full and fresh:
            result.delay = self._poll_wait
        return result

    async def _process(self, event: Event, result: IterationResult) -> None:
        for handler in self._handlers:
            try:
                await handler.handle(event)
            except Exception as exc:
                err = ProcessingError(event.sequence_id, handler.name, exc)
                log.exception(
                    "Handler %s failed on event %d (%s)",
                    handler.name, event.sequence_id, event.event_type,
                )
                result.handler_errors.append(err)
                await self._record("handler_error", str(err), event.sequence_id)

        await self._record(
            "event",
            f"{event.event_type} {event.resource_id or ''}".strip(),
            event.sequence_id,
        )

    async def _fail(
        self, exc: PollerError, kind: str, result: IterationResult
    ) -> IterationResult:
        self._failures += 1
        delay = self._retry.delay_for(self._failures)
        log.error(
            "%s (consecutive failures: %d, retrying in %.2fs)",
            exc, self._failures, delay,
        )
        await self._record(kind, str(exc), result.cursor)

        if self._retry.exhausted(self._failures):
            log.critical("Giving up after %d consecutive failures", self._failures)
            raise exc

        result.delay = delay
        result.error = exc
        return result

    async def _record(self, kind: str, message: str, sequence_id: int | None) -> None:
        if self._activity is None:
            return
        try:
            await self._activity.log_activity(kind, message, sequence_id=sequence_id)
        except Exception as exc:
            log.warning("Could not write activity log: %s", exc)
