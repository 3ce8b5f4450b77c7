"""SQLite implementation of the CursorStore and ActivityLog protocols."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from flex_poller.errors import PersistError
from flex_poller.models.records import ActivityRecord

log = logging.getLogger(__name__)

SCHEMA = """
-- Event cursor for resumption
CREATE TABLE IF NOT EXISTS cursor (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    last_sequence_id INTEGER NOT NULL CHECK (last_sequence_id >= 0),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Activity log
CREATE TABLE IF NOT EXISTS activity_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    kind TEXT NOT NULL,
    sequence_id INTEGER,
    message TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_activity_created ON activity_log(created_at);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteStateStore:
    """SQLite-backed cursor store with an activity log."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    # ── Cursor ─────────────────────────────────────────────

    async def get_cursor(self) -> int | None:
        try:
            async with self.db.execute(
                "SELECT last_sequence_id FROM cursor WHERE id=1"
            ) as cur:
                row = await cur.fetchone()
        except aiosqlite.Error as exc:
            log.warning("Could not read cursor from %s: %s", self._db_path, exc)
            return None
        return row["last_sequence_id"] if row else None

    async def set_cursor(self, sequence_id: int) -> None:
        try:
            await self.db.execute(
                "INSERT INTO cursor (id, last_sequence_id, updated_at) VALUES (1, ?, ?)"
                " ON CONFLICT(id) DO UPDATE SET last_sequence_id=excluded.last_sequence_id,"
                " updated_at=excluded.updated_at",
                (sequence_id, _now()),
            )
            await self.db.commit()
        except aiosqlite.Error as exc:
            raise PersistError(f"could not write cursor to {self._db_path}: {exc}") from exc

    async def clear_cursor(self) -> None:
        try:
            await self.db.execute("DELETE FROM cursor WHERE id=1")
            await self.db.commit()
        except aiosqlite.Error as exc:
            raise PersistError(f"could not clear cursor in {self._db_path}: {exc}") from exc

    # ── Activity log ───────────────────────────────────────

    async def log_activity(
        self,
        kind: str,
        message: str,
        sequence_id: int | None = None,
    ) -> None:
        await self.db.execute(
            "INSERT INTO activity_log (kind, sequence_id, message, created_at)"
            " VALUES (?, ?, ?, ?)",
            (kind, sequence_id, message, _now()),
        )
        await self.db.commit()

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        async with self.db.execute(
            "SELECT * FROM activity_log ORDER BY id DESC LIMIT ?", (limit,)
        ) as cur:
            return [
                ActivityRecord(
                    id=row["id"],
                    kind=row["kind"],
                    message=row["message"],
                    sequence_id=row["sequence_id"],
                    created_at=row["created_at"],
                )
                async for row in cur
            ]
