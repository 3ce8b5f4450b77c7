"""Logging handler - reports each detected event on the log channel."""

from __future__ import annotations

import logging

from flex_poller.models.events import Event

log = logging.getLogger(__name__)


class LoggingHandler:
    """Logs a one-line summary per event, and the full payload at DEBUG."""

    name = "log"

    async def handle(self, event: Event) -> None:
        resource_attrs = event.resource.get("attributes") or {}
        title = resource_attrs.get("title")
        state = resource_attrs.get("state")

        extra = ""
        if title:
            extra += f" title={title!r}"
        if state:
            extra += f" state={state}"

        log.info(
            "Event detected: #%d %s %s %s%s",
            event.sequence_id,
            event.event_type,
            event.resource_type or "-",
            event.resource_id or "-",
            extra,
        )
        log.debug("Event %d payload: %s", event.sequence_id, event.attributes)
