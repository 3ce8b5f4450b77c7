"""State-file implementation of the CursorStore protocol."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from flex_poller.errors import PersistError

log = logging.getLogger(__name__)


class FileCursorStore:
    """Keeps the cursor as a decimal integer in a small text file.

    Writes go to a sibling temp file that is fsynced and then renamed over
    the target, so a crash never leaves a half-written value behind.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()
        self._tmp_path = self._path.with_name(self._path.name + ".tmp")

    @property
    def path(self) -> Path:
        return self._path

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        pass

    # ── Cursor ─────────────────────────────────────────────

    async def get_cursor(self) -> int | None:
        return await asyncio.to_thread(self._read)

    async def set_cursor(self, sequence_id: int) -> None:
        if sequence_id < 0:
            raise PersistError(f"refusing to store negative cursor {sequence_id}")
        try:
            await asyncio.to_thread(self._write, str(sequence_id))
        except OSError as exc:
            raise PersistError(f"could not write state file {self._path}: {exc}") from exc

    async def clear_cursor(self) -> None:
        try:
            await asyncio.to_thread(self._path.unlink, missing_ok=True)
        except OSError as exc:
            raise PersistError(f"could not remove state file {self._path}: {exc}") from exc

    def _read(self) -> int | None:
        try:
            text = self._path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as exc:
            log.warning("Could not read state file %s: %s", self._path, exc)
            return None
        try:
            value = int(text)
        except ValueError:
            log.warning("Ignoring unparseable state file %s: %r", self._path, text[:40])
            return None
        if value < 0:
            log.warning("Ignoring negative cursor %d in %s", value, self._path)
            return None
        return value

    def _write(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._tmp_path, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(self._tmp_path, self._path)
