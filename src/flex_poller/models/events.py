"""Event feed models deserialized from the Integration API events endpoint."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Event:
    """A single marketplace event, identified by its feed sequence ID."""

    sequence_id: int
    event_type: str  # e.g. "listing/created", "user/updated"
    attributes: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def created_at(self) -> str | None:
        return self.attributes.get("createdAt")

    @property
    def resource_id(self) -> str | None:
        return self.attributes.get("resourceId")

    @property
    def resource_type(self) -> str | None:
        return self.attributes.get("resourceType")

    @property
    def resource(self) -> dict[str, Any]:
        """The resource as it was after the event (empty for deletions)."""
        return self.attributes.get("resource") or {}

    @property
    def previous_values(self) -> dict[str, Any]:
        """Only the fields that changed, with their values before the event."""
        return self.attributes.get("previousValues") or {}


@dataclass(frozen=True)
class Page:
    """One page of events in ascending sequence ID order."""

    events: tuple[Event, ...]
    per_page: int

    @property
    def total_returned(self) -> int:
        return len(self.events)

    @property
    def is_full(self) -> bool:
        """A full page means more events are likely already waiting."""
        return self.total_returned == self.per_page

    @property
    def last_sequence_id(self) -> int | None:
        if not self.events:
            return None
        return self.events[-1].sequence_id


@dataclass(frozen=True)
class EventQuery:
    """Filter for one events/query call.

    Exactly one of start_after_sequence_id / created_at_start is set.
    """

    event_types: tuple[str, ...]
    start_after_sequence_id: int | None = None
    created_at_start: datetime | None = None
    per_page: int | None = None

    def __post_init__(self) -> None:
        if (self.start_after_sequence_id is None) == (self.created_at_start is None):
            raise ValueError(
                "EventQuery needs exactly one of start_after_sequence_id or created_at_start"
            )

    def to_params(self) -> dict[str, str | int]:
        params: dict[str, str | int] = {}
        if self.event_types:
            params["eventTypes"] = ",".join(self.event_types)
        if self.start_after_sequence_id is not None:
            params["startAfterSequenceId"] = self.start_after_sequence_id
        elif self.created_at_start is not None:
            params["createdAtStart"] = _iso(self.created_at_start)
        if self.per_page is not None:
            params["perPage"] = self.per_page
        return params


def _iso(ts: datetime) -> str:
    """Format as the API expects: UTC, millisecond precision, trailing Z."""
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")
