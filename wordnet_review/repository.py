"""
Review Repository - glue between the stores and the algorithms.

Single entry point for item lifecycle and schedule maintenance:
- Adding items (with their initial schedule entry)
- Archiving and removing items (dropping their schedule entry)
- Reconciling or rebuilding the schedule set
- Auxiliary queries: weakest items, morpheme search, root and overall statistics

Schedule maintenance and due queries share one lock, so a rebuild always
finishes before a due query is served from the same repository.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable

from loguru import logger

from .errors import NotFoundError, ValidationError
from .models import LearnableItem, ScheduleEntry
from .retention import RetentionModel
from .scheduler import SM2Scheduler
from .stores.base import ItemStore, ScheduleStore


@dataclass
class ReconcileResult:
    """Outcome of a schedule reconciliation."""

    created: int = 0
    removed: int = 0
    kept: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.created or self.removed)


@dataclass(frozen=True)
class RootStatistic:
    """Word count and average display strength for one morpheme."""

    root: str
    word_count: int
    avg_strength: float


class ReviewRepository:
    """
    Item and schedule operations over an injected pair of stores.

    Args:
        items: ItemStore holding LearnableItem records
        schedules: ScheduleStore holding ScheduleEntry records
        scheduler: SM2Scheduler (creates default if None)
        retention: RetentionModel (creates default if None)
        max_word_length: Upper bound for new item ids
        clock: Source of the current time
    """

    def __init__(
        self,
        items: ItemStore,
        schedules: ScheduleStore,
        scheduler: SM2Scheduler | None = None,
        retention: RetentionModel | None = None,
        max_word_length: int = 50,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.items = items
        self.schedules = schedules
        self.clock = clock
        self.scheduler = scheduler or SM2Scheduler(clock=clock)
        self.retention = retention or RetentionModel(clock=clock)
        self.max_word_length = max_word_length
        self._maintenance = threading.RLock()

    # =========================================================================
    # Item Lifecycle
    # =========================================================================

    def normalize_word(self, word: str) -> str:
        """Validate and normalise a new item id."""
        cleaned = (word or "").strip().lower()
        if not cleaned:
            raise ValidationError("Word must not be empty")
        if len(cleaned) > self.max_word_length:
            raise ValidationError(f"Word must be at most {self.max_word_length} characters")
        return cleaned

    def add_item(
        self,
        word: str,
        meaning: str | None = None,
        morphemes: list[str] | None = None,
    ) -> LearnableItem:
        """
        Add a new item and schedule it for immediate review.

        An archived item with the same id is reactivated with its strength
        history intact and a fresh schedule.

        Raises:
            ValidationError: Empty, too long, or already active
        """
        item_id = self.normalize_word(word)
        parts = [m.strip() for m in morphemes or [] if m and m.strip()] or [item_id]

        try:
            existing = self.items.get(item_id)
        except NotFoundError:
            existing = None

        if existing is not None and existing.active:
            raise ValidationError(f"Item already exists: {item_id}")

        if existing is not None:
            item = replace(existing, active=True, meaning=meaning or existing.meaning, morphemes=parts)
            logger.info(f"Reactivated archived item {item_id}")
        else:
            item = LearnableItem(
                id=item_id,
                last_reviewed_at=self.clock(),
                meaning=meaning,
                morphemes=parts,
            )

        # Item first, so an entry never points at a missing item
        self.items.upsert(item)
        self.schedules.upsert(self.scheduler.create_initial(item_id, now=self.clock()))

        logger.info(f"Added item {item_id}")
        return item

    def archive_item(self, item_id: str) -> None:
        """Soft-delete an item and drop its schedule entry."""
        self.items.soft_delete(item_id)
        self.schedules.delete(item_id)
        logger.info(f"Archived item {item_id}")

    def remove_item(self, item_id: str) -> None:
        """Physically remove an item and its schedule entry."""
        self.items.get(item_id)
        self.schedules.delete(item_id)
        self.items.delete(item_id)
        logger.info(f"Removed item {item_id}")

    # =========================================================================
    # Schedule Maintenance
    # =========================================================================

    def reconcile_schedule(self) -> ReconcileResult:
        """
        Ensure every active item has exactly one schedule entry.

        Existing entries of active items are kept as they are. Entries whose
        item is archived or unknown are removed.
        """
        with self._maintenance:
            result = ReconcileResult()
            now = self.clock()
            active_ids = {item.id for item in self.items.get_all_active()}

            scheduled: set[str] = set()
            for entry in self.schedules.all_entries():
                if entry.item_id in active_ids:
                    scheduled.add(entry.item_id)
                    result.kept += 1
                else:
                    self.schedules.delete(entry.item_id)
                    result.removed += 1

            for item_id in sorted(active_ids - scheduled):
                logger.warning(
                    f"Integrity repair: active item {item_id} had no schedule entry, "
                    f"created a default one"
                )
                self.schedules.upsert(self.scheduler.create_initial(item_id, now=now))
                result.created += 1

            if result.changed:
                logger.info(
                    f"Schedule reconciled: {result.created} created, "
                    f"{result.removed} removed, {result.kept} kept"
                )
            return result

    def rebuild_schedule(self) -> int:
        """
        Recreate the whole schedule set from active items.

        Discards all review progress. Recovery use only.

        Returns:
            Number of entries created
        """
        with self._maintenance:
            now = self.clock()
            self.schedules.delete_all()
            active = self.items.get_all_active()
            for item in active:
                self.schedules.upsert(self.scheduler.create_initial(item.id, now=now))

            logger.info(f"Schedule rebuilt: {len(active)} entries")
            return len(active)

    def reschedule_all(self, due_at: datetime) -> int:
        """Make every schedule entry due at the given time."""
        with self._maintenance:
            entries = self.schedules.all_entries()
            for entry in entries:
                self.schedules.upsert(replace(entry, due_at=due_at))
            logger.info(f"Rescheduled {len(entries)} entries to {due_at:%Y-%m-%d %H:%M}")
            return len(entries)

    def find_missing_entries(self) -> list[str]:
        """Active item ids that have no schedule entry."""
        with self._maintenance:
            scheduled = {entry.item_id for entry in self.schedules.all_entries()}
            return [item.id for item in self.items.get_all_active() if item.id not in scheduled]

    # =========================================================================
    # Queries
    # =========================================================================

    def query_due(self, now: datetime, limit: int) -> list[ScheduleEntry]:
        """Due entries ordered by due time, waiting for any running maintenance."""
        with self._maintenance:
            return self.schedules.query_due(now, limit)

    def count_due(self, now: datetime | None = None) -> int:
        """Count entries due at the given time."""
        with self._maintenance:
            return self.schedules.count_due(now or self.clock())

    def select_weakest(self, limit: int) -> list[LearnableItem]:
        """
        Get up to `limit` active items with the lowest display strength.

        Ties are broken by item id.
        """
        if limit <= 0:
            return []
        active = self.items.get_all_active()
        active.sort(key=lambda item: (item.display_strength, item.id))
        return active[:limit]

    def search_by_morpheme(self, root: str) -> list[LearnableItem]:
        """Active items whose morpheme list contains the given root."""
        needle = (root or "").strip().lower()
        if not needle:
            return []
        return [
            item
            for item in self.items.get_all_active()
            if any(needle in m.lower() for m in item.morphemes)
        ]

    def root_statistics(self) -> list[RootStatistic]:
        """
        Per-morpheme word count and average strength over active items.

        Morphemes are compared case-insensitively and counted once per item.
        Ordered by word count descending, then root.
        """
        strengths: dict[str, list[float]] = {}
        for item in self.items.get_all_active():
            for root in {m.strip().lower() for m in item.morphemes if m.strip()}:
                strengths.setdefault(root, []).append(item.display_strength)

        result = [
            RootStatistic(root=root, word_count=len(values), avg_strength=round(sum(values) / len(values), 3))
            for root, values in strengths.items()
        ]
        result.sort(key=lambda stat: (-stat.word_count, stat.root))
        return result

    def stats(self, now: datetime | None = None) -> dict:
        """
        Get overall learning statistics.

        Returns:
            Dictionary with aggregate stats
        """
        active = self.items.get_all_active()
        mastered = sum(1 for item in active if self.retention.is_mastered(item))
        avg_strength = sum(i.display_strength for i in active) / len(active) if active else 0.0

        return {
            "total_items": len(active),
            "mastered_items": mastered,
            "items_due": self.count_due(now),
            "avg_strength": round(avg_strength, 3),
            "total_reviews": sum(item.review_count for item in active),
        }
