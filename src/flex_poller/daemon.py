"""Main daemon - wires the Flex client, cursor store, handlers and poll loop."""

from __future__ import annotations

import asyncio
import logging
import signal

from flex_poller.flex.client import FlexIntegrationClient
from flex_poller.flex.feed import FlexEventFeed
from flex_poller.flex.listings import ListingLikesUpdater
from flex_poller.handlers.likes import WishlistLikesHandler
from flex_poller.handlers.reporting import LoggingHandler
from flex_poller.interfaces.handler import EventHandler
from flex_poller.interfaces.store import ActivityLog, CursorStore
from flex_poller.models.config import PollerConfig, StorageBackend
from flex_poller.poller.loop import EventPollLoop
from flex_poller.poller.retry import RetryPolicy
from flex_poller.storage.file import FileCursorStore
from flex_poller.storage.sqlite import SQLiteStateStore

log = logging.getLogger(__name__)


def build_store(cfg: PollerConfig) -> CursorStore:
    """Create (but do not initialize) the configured cursor store."""
    if cfg.storage == StorageBackend.SQLITE:
        return SQLiteStateStore(cfg.db_path)
    return FileCursorStore(cfg.state_file)


def build_handlers(names: list[str], updater: ListingLikesUpdater) -> list[EventHandler]:
    """Instantiate handlers by name, in the configured order."""
    handlers: list[EventHandler] = []
    for name in names:
        if name == LoggingHandler.name:
            handlers.append(LoggingHandler())
        elif name == WishlistLikesHandler.name:
            handlers.append(WishlistLikesHandler(updater))
        else:
            raise ValueError(f"unknown handler: {name}")
    return handlers


class PollerDaemon:
    """Long-running event poller.

    Restores the cursor, runs the poll loop until stopped and closes the
    HTTP client and store on the way out.
    """

    def __init__(self, cfg: PollerConfig) -> None:
        self._cfg = cfg

        # Core components
        self.client = FlexIntegrationClient(
            cfg.client_id, cfg.client_secret, cfg.base_url, cfg.request_timeout,
        )
        self.feed = FlexEventFeed(self.client)
        self.store = build_store(cfg)
        self.updater = ListingLikesUpdater(self.client)
        self.handlers = build_handlers(cfg.handlers, self.updater)

        self.loop: EventPollLoop | None = None
        self._stop_requested = False

    def build_loop(self) -> EventPollLoop:
        """Create the poll loop from the current components."""
        cfg = self._cfg
        activity = self.store if isinstance(self.store, ActivityLog) else None
        return EventPollLoop(
            self.feed,
            self.store,
            self.handlers,
            event_types=cfg.event_types,
            poll_wait=cfg.poll_wait,
            poll_idle_wait=cfg.poll_idle_wait,
            per_page=cfg.per_page,
            retry=RetryPolicy(
                base=cfg.poll_idle_wait,
                max_backoff=cfg.retry.max_backoff,
                max_consecutive_failures=cfg.retry.max_consecutive_failures,
            ),
            activity=activity,
        )

    async def start(self) -> int | None:
        """Initialize storage, restore the cursor and poll until stopped."""
        log.info("Starting flex_poller")
        log.info("  API: %s", self._cfg.base_url)
        log.info("  Event types: %s", ", ".join(self._cfg.event_types))
        log.info("  Handlers: %s", ", ".join(h.name for h in self.handlers) or "(none)")
        log.info("  Storage: %s", self._cfg.storage.value)

        self.loop = self.build_loop()
        if self._stop_requested:
            self.loop.stop()

        try:
            await self.store.initialize()
            cursor = await self.store.get_cursor()
            return await self.loop.start(cursor)
        finally:
            await self.client.close()
            await self.store.close()
            log.info("Poller shut down cleanly")

    async def stop(self) -> None:
        """Signal the poller to stop gracefully."""
        log.info("Stop requested")
        self._stop_requested = True
        if self.loop is not None:
            self.loop.stop()


async def run_daemon(cfg: PollerConfig) -> None:
    """Entry point for running the poller."""
    daemon = PollerDaemon(cfg)

    loop = asyncio.get_running_loop()

    def _signal_handler():
        asyncio.ensure_future(daemon.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await daemon.start()
