"""
In-memory store backends.

Used by tests and by callers that embed the engine without a database.
Records are copied on the way in and out so callers never share state
with the store.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from ..errors import NotFoundError
from ..models import LearnableItem, ScheduleEntry


def _copy_item(item: LearnableItem) -> LearnableItem:
    return replace(item, morphemes=list(item.morphemes))


class InMemoryItemStore:
    """Dict-backed ItemStore."""

    def __init__(self, items: list[LearnableItem] | None = None):
        self._items: dict[str, LearnableItem] = {}
        for item in items or []:
            self.upsert(item)

    def get(self, item_id: str) -> LearnableItem:
        try:
            return _copy_item(self._items[item_id])
        except KeyError:
            raise NotFoundError("item", item_id) from None

    def get_all_active(self) -> list[LearnableItem]:
        return [_copy_item(i) for _, i in sorted(self._items.items()) if i.active]

    def upsert(self, item: LearnableItem) -> None:
        self._items[item.id] = _copy_item(item)

    def soft_delete(self, item_id: str) -> None:
        item = self.get(item_id)
        item.active = False
        self._items[item_id] = item

    def delete(self, item_id: str) -> None:
        if self._items.pop(item_id, None) is None:
            raise NotFoundError("item", item_id)


class InMemoryScheduleStore:
    """Dict-backed ScheduleStore. Entries are immutable, so no copying."""

    def __init__(self, entries: list[ScheduleEntry] | None = None):
        self._entries: dict[str, ScheduleEntry] = {e.item_id: e for e in entries or []}

    def get(self, item_id: str) -> ScheduleEntry:
        try:
            return self._entries[item_id]
        except KeyError:
            raise NotFoundError("schedule entry", item_id) from None

    def upsert(self, entry: ScheduleEntry) -> None:
        self._entries[entry.item_id] = entry

    def delete(self, item_id: str) -> None:
        self._entries.pop(item_id, None)

    def delete_all(self) -> None:
        self._entries.clear()

    def all_entries(self) -> list[ScheduleEntry]:
        return sorted(self._entries.values(), key=lambda e: (e.due_at, e.item_id))

    def query_due(self, now: datetime, limit: int) -> list[ScheduleEntry]:
        due = [e for e in self.all_entries() if e.is_due(now)]
        return due[:limit]

    def count_due(self, now: datetime) -> int:
        return sum(1 for e in self._entries.values() if e.is_due(now))
