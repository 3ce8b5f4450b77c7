"""Storage protocols - durable cursor and optional activity log."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from flex_poller.models.records import ActivityRecord


class CursorStore(Protocol):
    """Single-value store for the last processed sequence ID."""

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        ...

    async def close(self) -> None:
        ...

    # ── Cursor ─────────────────────────────────────────────

    async def get_cursor(self) -> int | None:
        """Return the stored cursor, or None if missing or unreadable. Never raises."""
        ...

    async def set_cursor(self, sequence_id: int) -> None:
        """Overwrite the stored cursor. Raises PersistError on failure."""
        ...

    async def clear_cursor(self) -> None:
        ...


@runtime_checkable
class ActivityLog(Protocol):
    """Append-only log of what the poller saw and did."""

    async def log_activity(
        self,
        kind: str,
        message: str,
        sequence_id: int | None = None,
    ) -> None:
        ...

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        ...
