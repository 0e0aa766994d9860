"""
Store contracts used by the review engine.

Both stores are keyed and treated as potentially blocking I/O. Lookups of
absent keys raise NotFoundError; backend failures raise StoreError.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ..models import LearnableItem, ScheduleEntry


class ItemStore(Protocol):
    """Durable keyed storage for LearnableItem records."""

    def get(self, item_id: str) -> LearnableItem: ...

    def get_all_active(self) -> list[LearnableItem]: ...

    def upsert(self, item: LearnableItem) -> None: ...

    def soft_delete(self, item_id: str) -> None: ...

    def delete(self, item_id: str) -> None: ...


class ScheduleStore(Protocol):
    """Durable keyed storage for ScheduleEntry records, one per item."""

    def get(self, item_id: str) -> ScheduleEntry: ...

    def upsert(self, entry: ScheduleEntry) -> None: ...

    def delete(self, item_id: str) -> None: ...

    def delete_all(self) -> None: ...

    def all_entries(self) -> list[ScheduleEntry]: ...

    def query_due(self, now: datetime, limit: int) -> list[ScheduleEntry]: ...

    def count_due(self, now: datetime) -> int: ...
