"""Cursor storage backends."""

from flex_poller.storage.file import FileCursorStore
from flex_poller.storage.sqlite import SQLiteStateStore

__all__ = ["FileCursorStore", "SQLiteStateStore"]
