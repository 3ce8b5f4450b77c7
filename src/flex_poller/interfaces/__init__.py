"""Protocol interfaces for all flex_poller components."""

from flex_poller.interfaces.feed import EventFeed
from flex_poller.interfaces.handler import EventHandler
from flex_poller.interfaces.listings import ListingStore
from flex_poller.interfaces.store import ActivityLog, CursorStore

__all__ = [
    "EventFeed",
    "EventHandler",
    "ListingStore",
    "ActivityLog", "CursorStore",
]
