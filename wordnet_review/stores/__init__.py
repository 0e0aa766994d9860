"""
Store backends for learnable items and schedule entries.

- base: ItemStore / ScheduleStore contracts
- memory: dict-backed stores for tests and embedding
- sql: SQLite stores built on SQLAlchemy
"""

from .base import ItemStore, ScheduleStore
from .memory import InMemoryItemStore, InMemoryScheduleStore
from .sql import Database, SqlItemStore, SqlScheduleStore

__all__ = [
    # Contracts
    "ItemStore",
    "ScheduleStore",
    # In-memory
    "InMemoryItemStore",
    "InMemoryScheduleStore",
    # SQLite
    "Database",
    "SqlItemStore",
    "SqlScheduleStore",
]
