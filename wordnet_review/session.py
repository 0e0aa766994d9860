"""
Review Session Controller.

Drives one review session through a four-state machine:

    IDLE --start--> RECALLING --reveal--> EVALUATING --grade--> RECALLING ...
                        |                                          |
                        +---------- no due entries ---------------> COMPLETED

On every grade the item's display strength (Retention Model) and its
schedule entry (SM-2) are updated and persisted, item first. Store errors
propagate to the caller with the session left as it was, so the call can be
retried. The controller never retries on its own.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from .errors import IntegrityError, NotFoundError
from .models import LearnableItem, ReviewState, ScheduleEntry
from .repository import ReviewRepository


class SessionEventType(str, Enum):
    """Notifications emitted by the controller."""

    ITEM_GRADED = "item_graded"
    SESSION_COMPLETED = "session_completed"


@dataclass(frozen=True)
class SessionEvent:
    """A single pending notification."""

    type: SessionEventType
    item_id: str | None = None
    quality: int | None = None


@dataclass
class ReviewSession:
    """Ephemeral session state, owned by one controller."""

    state: ReviewState = ReviewState.IDLE
    current_item_id: str | None = None
    graded_count: int = 0


@dataclass(frozen=True)
class GradeResult:
    """What a successful grade wrote."""

    item: LearnableItem
    entry: ScheduleEntry
    quality: int


class ReviewSessionController:
    """
    State machine for a review session over one repository.

    All public operations are serialised by a per-instance lock; the
    controller is not meant to be shared by concurrent sessions.

    Args:
        repository: ReviewRepository with the injected stores
        due_batch: Due entries fetched per query while looking for the next item
    """

    def __init__(self, repository: ReviewRepository, due_batch: int = 50):
        self.repository = repository
        self.due_batch = max(1, due_batch)
        self.session = ReviewSession()
        self._current_item: LearnableItem | None = None
        self._events: deque[SessionEvent] = deque()
        self._lock = threading.RLock()

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def state(self) -> ReviewState:
        return self.session.state

    @property
    def current_item(self) -> LearnableItem | None:
        return self._current_item

    @property
    def current_item_id(self) -> str | None:
        return self.session.current_item_id

    @property
    def graded_count(self) -> int:
        return self.session.graded_count

    def due_count(self) -> int:
        """Number of entries due right now."""
        return self.repository.count_due()

    def drain_events(self) -> list[SessionEvent]:
        """Hand all pending notifications to the caller and clear the queue."""
        with self._lock:
            events = list(self._events)
            self._events.clear()
            return events

    # =========================================================================
    # Transitions
    # =========================================================================

    def start_session(self) -> ReviewState:
        """
        Start a session from IDLE or COMPLETED and load the first due item.

        Returns:
            The resulting state (RECALLING or COMPLETED)
        """
        with self._lock:
            if self.session.state not in (ReviewState.IDLE, ReviewState.COMPLETED):
                logger.warning(f"start_session ignored in state {self.session.state.value}")
                return self.session.state

            next_item = self._find_next_item()
            self.session.graded_count = 0
            self._present(next_item)

            logger.info(f"Review session started: {self.session.state.value}")
            return self.session.state

    def load_next(self) -> ReviewState:
        """
        Re-run the due fetch while RECALLING with no item loaded.

        Used to retry after a fetch failed following a successful grade.
        """
        with self._lock:
            if self.session.state != ReviewState.RECALLING or self._current_item is not None:
                return self.session.state
            self._present(self._find_next_item())
            return self.session.state

    def reveal_answer(self) -> ReviewState:
        """Move from RECALLING to EVALUATING; ignored in any other state."""
        with self._lock:
            if self.session.state == ReviewState.RECALLING and self._current_item is not None:
                self.session.state = ReviewState.EVALUATING
            return self.session.state

    def submit_grade(self, quality: int) -> GradeResult | None:
        """
        Grade the current item and advance to the next due one.

        Args:
            quality: Recall quality 0-5 (clamped)

        Returns:
            GradeResult, or None when called outside EVALUATING

        Raises:
            IntegrityError: The current item has no schedule entry
            NotFoundError: The current item vanished from the item store
            StoreError: A store failed; the grade is not applied
        """
        with self._lock:
            if self.session.state != ReviewState.EVALUATING or self._current_item is None:
                logger.warning(
                    f"submit_grade({quality}) ignored in state {self.session.state.value}"
                )
                return None

            repo = self.repository
            item_id = self._current_item.id
            q = repo.scheduler.clamp_quality(quality)

            item = repo.items.get(item_id)
            try:
                entry = repo.schedules.get(item_id)
            except NotFoundError:
                logger.error(f"Integrity failure: active item {item_id} has no schedule entry")
                raise IntegrityError(item_id) from None

            now = repo.clock()
            updated_item = repo.retention.apply_outcome(
                item, was_correct=q >= repo.scheduler.config.passing_quality
            )
            updated_entry = repo.scheduler.advance(entry, q, now=now)

            # Item first, then schedule
            repo.items.upsert(updated_item)
            repo.schedules.upsert(updated_entry)

            self.session.graded_count += 1
            self.session.state = ReviewState.RECALLING
            self.session.current_item_id = None
            self._current_item = None
            self._events.append(SessionEvent(SessionEventType.ITEM_GRADED, item_id, q))

            logger.info(
                f"Graded {item_id}: q={q}, next due {updated_entry.due_at:%Y-%m-%d %H:%M} "
                f"({updated_entry.interval_days}d), strength={updated_item.display_strength:.2f}"
            )

            self._present(self._find_next_item())
            return GradeResult(item=updated_item, entry=updated_entry, quality=q)

    def reset(self) -> int:
        """
        Make every schedule entry due now. Administrative/testing use.

        Session counters are untouched; start a new session afterwards.

        Returns:
            Number of entries rescheduled
        """
        with self._lock:
            return self.repository.reschedule_all(self.repository.clock())

    # =========================================================================
    # Internals
    # =========================================================================

    def _find_next_item(self) -> LearnableItem | None:
        """Earliest due item among active items, or None when nothing is due."""
        repo = self.repository
        now = repo.clock()
        limit = self.due_batch
        skipped: set[str] = set()

        while True:
            entries = repo.query_due(now, limit)
            for entry in entries:
                if entry.item_id in skipped:
                    continue
                item = repo.items.get(entry.item_id)
                if item.active:
                    return item
                skipped.add(entry.item_id)
                logger.warning(f"Skipping stale schedule entry for archived item {item.id}")

            if len(entries) < limit:
                return None
            limit += self.due_batch

    def _present(self, item: LearnableItem | None) -> None:
        if item is None:
            self.session.state = ReviewState.COMPLETED
            self.session.current_item_id = None
            self._current_item = None
            self._events.append(SessionEvent(SessionEventType.SESSION_COMPLETED))
            logger.debug(f"No due items, session completed after {self.session.graded_count} grades")
            return

        self.session.state = ReviewState.RECALLING
        self.session.current_item_id = item.id
        self._current_item = item
        logger.debug(f"Presenting {item.id}")
