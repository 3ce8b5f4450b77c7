"""EventFeed protocol - the remote, ordered, paginated event source."""

from __future__ import annotations

from typing import Protocol

from flex_poller.models.events import EventQuery, Page


class EventFeed(Protocol):
    """Read-only view of the marketplace event feed."""

    async def query(self, query: EventQuery) -> Page:
        """Fetch one page of events matching the query.

        Raises FetchError on any network or remote failure.
        """
        ...
