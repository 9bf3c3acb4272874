"""Record store collaborators."""

from .base import RecordStore
from .memory import InMemoryRecordStore
from .sqlite import SQLiteRecordStore

__all__ = ["RecordStore", "InMemoryRecordStore", "SQLiteRecordStore"]
