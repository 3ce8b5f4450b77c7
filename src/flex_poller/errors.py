"""Exception types raised across the poller."""

from __future__ import annotations


class PollerError(Exception):
    """Base class for poller errors."""


class FetchError(PollerError):
    """The event feed could not be queried (network or remote failure)."""


class PersistError(PollerError):
    """The cursor could not be written to durable storage."""


class ProcessingError(PollerError):
    """An event handler raised while processing a single event."""

    def __init__(self, sequence_id: int, handler: str, cause: BaseException) -> None:
        super().__init__(f"handler {handler} failed on event {sequence_id}: {cause}")
        self.sequence_id = sequence_id
        self.handler = handler
        self.cause = cause


class FlexApiError(Exception):
    """Non-success response (or transport failure) from the Integration API."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ListingNotFoundError(FlexApiError):
    """listings/query returned no listing for the requested ID."""

    def __init__(self, listing_id: str) -> None:
        super().__init__(f"listing {listing_id} not found", status=404)
        self.listing_id = listing_id
