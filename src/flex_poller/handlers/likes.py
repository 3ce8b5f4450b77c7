"""Wishlist like aggregation - keeps listing like counters in step with user wishlists."""

from __future__ import annotations

import logging
from typing import Any

from flex_poller.flex.listings import ListingLikesUpdater
from flex_poller.models.events import Event

log = logging.getLogger(__name__)

_MISSING = object()


def _private_data(doc: dict[str, Any]) -> Any:
    """Return attributes.profile.privateData, or _MISSING if the path is absent."""
    profile = (doc.get("attributes") or {}).get("profile")
    if not isinstance(profile, dict) or "privateData" not in profile:
        return _MISSING
    return profile["privateData"] or {}


def _dedupe(ids: list[Any]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in ids:
        key = str(item)
        if key not in seen:
            seen.add(key)
            out.append(key)
    return out


def wishlist_changes(event: Event) -> tuple[list[str], list[str]]:
    """Return (added, removed) listing IDs for a user/updated event.

    Both lists are empty when the event did not touch privateData.
    """
    before_data = _private_data(event.previous_values)
    if before_data is _MISSING:
        return [], []
    after_data = _private_data(event.resource)
    if after_data is _MISSING:
        after_data = {}

    before = _dedupe(before_data.get("wishlist") or [])
    after = _dedupe(after_data.get("wishlist") or [])

    before_set, after_set = set(before), set(after)
    added = [i for i in after if i not in before_set]
    removed = [i for i in before if i not in after_set]
    return added, removed


class WishlistLikesHandler:
    """Adds +1 for each listing that entered a wishlist and -1 for each that left."""

    name = "wishlist_likes"

    def __init__(self, updater: ListingLikesUpdater) -> None:
        self._updater = updater

    async def handle(self, event: Event) -> None:
        if event.event_type != "user/updated":
            return

        added, removed = wishlist_changes(event)
        if not added and not removed:
            return

        log.info(
            "User %s wishlist changed: +%d -%d",
            event.resource_id, len(added), len(removed),
        )
        for listing_id in added:
            await self._updater.apply_delta(listing_id, 1)
        for listing_id in removed:
            await self._updater.apply_delta(listing_id, -1)
