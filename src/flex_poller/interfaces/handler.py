"""EventHandler protocol - side effects run for each fetched event."""

from __future__ import annotations

from typing import Protocol

from flex_poller.models.events import Event


class EventHandler(Protocol):
    """Called once per event, in sequence ID order."""

    name: str

    async def handle(self, event: Event) -> None:
        ...
