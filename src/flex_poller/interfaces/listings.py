"""ListingStore protocol - the subset of the listings API the poller uses."""

from __future__ import annotations

from typing import Any, Protocol


class ListingStore(Protocol):
    """Remote listing entity store."""

    async def query_listings(self, ids: list[str]) -> list[dict[str, Any]]:
        """Return listing resources for the given IDs (may be fewer than asked)."""
        ...

    async def update_listing(
        self, listing_id: str, attributes: dict[str, Any], expand: bool = True
    ) -> dict[str, Any] | None:
        """Update a listing; returns the updated resource when expand is set."""
        ...
