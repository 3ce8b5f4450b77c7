"""Flex event feed - adapts events/query responses into Page objects."""

from __future__ import annotations

import logging
from typing import Any

from flex_poller.errors import FetchError, FlexApiError
from flex_poller.flex.client import FlexIntegrationClient
from flex_poller.models.events import Event, EventQuery, Page

log = logging.getLogger(__name__)

# Page size the API uses when perPage is not given
DEFAULT_PER_PAGE = 100


def parse_event(raw: Any) -> Event:
    """Build an Event from one element of the response "data" array.

    Raises ValueError if the element has no usable sequence ID.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"event entry is not an object: {raw!r:.40}")
    attrs = raw.get("attributes")
    if not isinstance(attrs, dict):
        raise ValueError(f"event {raw.get('id')} has no attributes")
    seq = attrs.get("sequenceId")
    if isinstance(seq, bool) or not isinstance(seq, int):
        raise ValueError(f"event {raw.get('id')} has invalid sequenceId {seq!r}")
    return Event(
        sequence_id=seq,
        event_type=str(attrs.get("eventType", "")),
        attributes=attrs,
    )


def parse_page(body: dict[str, Any], requested_per_page: int | None = None) -> Page:
    """Build a Page from an events/query document.

    Raises ValueError on malformed payloads or out-of-order sequence IDs.
    """
    data = body.get("data")
    if not isinstance(data, list):
        raise ValueError("events response has no data array")

    events = tuple(parse_event(item) for item in data)
    for prev, cur in zip(events, events[1:]):
        if cur.sequence_id <= prev.sequence_id:
            raise ValueError(
                f"events out of order: {prev.sequence_id} followed by {cur.sequence_id}"
            )

    meta = body.get("meta")
    if not isinstance(meta, dict):
        meta = {}
    per_page = meta.get("perPage") or requested_per_page or DEFAULT_PER_PAGE
    return Page(events=events, per_page=int(per_page))


class FlexEventFeed:
    """EventFeed backed by the Integration API events/query endpoint."""

    def __init__(self, client: FlexIntegrationClient) -> None:
        self._client = client

    async def query(self, query: EventQuery) -> Page:
        params = query.to_params()
        log.debug("Querying events: %s", params)
        try:
            body = await self._client.query_events(params)
            return parse_page(body, query.per_page)
        except FlexApiError as exc:
            raise FetchError(f"events/query failed: {exc}") from exc
        except (ValueError, TypeError) as exc:
            raise FetchError(f"malformed events/query response: {exc}") from exc
