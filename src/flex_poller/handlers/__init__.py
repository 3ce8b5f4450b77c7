"""Event handlers run by the poll loop."""

from flex_poller.handlers.likes import WishlistLikesHandler
from flex_poller.handlers.reporting import LoggingHandler

__all__ = ["LoggingHandler", "WishlistLikesHandler"]
