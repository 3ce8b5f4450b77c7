"""Data models for the flex_poller daemon."""

from flex_poller.models.events import Event, EventQuery, Page
from flex_poller.models.records import ActivityRecord, IterationResult
from flex_poller.models.config import PollerConfig, RetryConfig, StorageBackend

__all__ = [
    "Event", "EventQuery", "Page",
    "ActivityRecord", "IterationResult",
    "PollerConfig", "RetryConfig", "StorageBackend",
]
