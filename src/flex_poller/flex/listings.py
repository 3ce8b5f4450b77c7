"""Listing like counter - read-modify-write on publicData.likes."""

from __future__ import annotations

import logging

from flex_poller.errors import ListingNotFoundError
from flex_poller.interfaces.listings import ListingStore

log = logging.getLogger(__name__)

LIKES_KEY = "likes"


class ListingLikesUpdater:
    """Adds signed deltas to a listing's publicData like counter.

    The Integration API has no conditional update, so this is an unguarded
    read-modify-write: two writers racing on the same listing can lose an
    update. Within one poller the loop is sequential, so this only matters
    when something else also writes the counter.
    """

    def __init__(self, listings: ListingStore, key: str = LIKES_KEY) -> None:
        self._listings = listings
        self._key = key

    async def apply_delta(self, listing_id: str, delta: int) -> int:
        """Add delta to the current counter (missing counts as 0) and return the new value."""
        found = await self._listings.query_listings([listing_id])
        listing = next((item for item in found if item.get("id") == listing_id), None)
        if listing is None:
            raise ListingNotFoundError(listing_id)

        public_data = (listing.get("attributes") or {}).get("publicData") or {}
        current = public_data.get(self._key) or 0
        updated = int(current) + delta

        await self._listings.update_listing(
            listing_id,
            {"publicData": {self._key: updated}},
            expand=True,
        )
        log.info("Listing %s %s: %d -> %d", listing_id, self._key, current, updated)
        return updated
