"""Internal record types for loop results and the activity log."""

from __future__ import annotations

from dataclasses import dataclass, field

from flex_poller.errors import PollerError, ProcessingError


@dataclass
class IterationResult:
    """Outcome of one fetch-process-persist cycle."""

    cursor: int | None  # cursor to carry into the next iteration
    delay: float  # seconds to wait before the next fetch
    events_fetched: int = 0
    events_processed: int = 0
    full_page: bool = False
    persisted: bool = False
    handler_errors: list[ProcessingError] = field(default_factory=list)
    error: PollerError | None = None  # FetchError or PersistError

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ActivityRecord:
    """Row from the activity log."""

    id: int
    kind: str  # "event", "handler_error", "fetch_error", "persist_error", ...
    message: str
    sequence_id: int | None
    created_at: str
