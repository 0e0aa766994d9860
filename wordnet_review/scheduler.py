"""
SM-2 Spaced Repetition Scheduler.

Computes the authoritative next-due schedule for an item from a quality grade.

SM-2 Grade Scale (canonical grades used by the review session):
0 - Complete blackout, forgot the word
3 - Correct, but with significant difficulty
4 - Correct, with some hesitation
5 - Correct, with perfect recall

Grades 1 and 2 are accepted and treated as failures.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from loguru import logger

from .models import ScheduleEntry, ScheduleState

QUALITY_DESCRIPTIONS = {
    0: "Forgot",
    3: "Hard",
    4: "Good",
    5: "Perfect",
}


@dataclass
class SM2Config:
    """Configuration for SM-2 algorithm."""

    initial_easiness: float = 2.5
    minimum_easiness: float = 1.3
    first_interval: int = 1  # Days after the first successful review
    second_interval: int = 6  # Days after the second successful review
    max_quality: int = 5
    passing_quality: int = 3


def quality_description(quality: int) -> str:
    """Get a short label for a quality grade."""
    return QUALITY_DESCRIPTIONS.get(quality, "Unknown")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class SM2Scheduler:
    """
    Implements the SM-2 spaced repetition algorithm.

    Each schedule entry has:
    - Easiness Factor (EF): How easy the item is (2.5 default, min 1.3)
    - Interval: Days until next review
    - Repetition streak: Consecutive successful recalls
    """

    def __init__(
        self,
        config: SM2Config | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize SM-2 scheduler.

        Args:
            config: Custom configuration (uses defaults if None)
            clock: Source of the current time
        """
        self.config = config or SM2Config()
        self.clock = clock

    def create_initial(self, item_id: str, now: datetime | None = None) -> ScheduleEntry:
        """Create the schedule for a new item, due immediately."""
        return ScheduleEntry(
            item_id=item_id,
            due_at=now or self.clock(),
            interval_days=self.config.first_interval,
            easiness_factor=self.config.initial_easiness,
            repetition_streak=0,
            state=ScheduleState.PENDING,
        )

    def clamp_quality(self, quality: int) -> int:
        """Clamp a grade into [0, max_quality]. NaN counts as a blackout."""
        if isinstance(quality, float) and math.isnan(quality):
            clamped = 0
        else:
            clamped = int(max(0, min(self.config.max_quality, quality)))
        if clamped != quality:
            logger.warning(f"Quality {quality} out of range, clamped to {clamped}")
        return clamped

    def next_easiness(self, easiness_factor: float, quality: int) -> float:
        """EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored."""
        miss = self.config.max_quality - quality
        delta = 0.1 - miss * (0.08 + miss * 0.02)
        return max(self.config.minimum_easiness, easiness_factor + delta)

    def advance(
        self,
        entry: ScheduleEntry,
        quality: int,
        now: datetime | None = None,
    ) -> ScheduleEntry:
        """
        Calculate the next schedule after a graded review.

        Args:
            entry: Current schedule entry
            quality: User grade (clamped into 0-5)
            now: Review time (defaults to the scheduler clock)

        Returns:
            New ScheduleEntry replacing the old one
        """
        q = self.clamp_quality(quality)
        new_ef = self.next_easiness(entry.easiness_factor, q)

        if q < self.config.passing_quality:
            # Failed - back to the start of the queue
            new_streak = 0
            new_interval = self.config.first_interval
        else:
            new_streak = entry.repetition_streak + 1

            if new_streak == 1:
                new_interval = self.config.first_interval
            elif new_streak == 2:
                new_interval = self.config.second_interval
            else:
                new_interval = max(1, _round_half_up(entry.interval_days * new_ef))

        reviewed_at = now or self.clock()
        updated = ScheduleEntry(
            item_id=entry.item_id,
            due_at=reviewed_at + timedelta(days=new_interval),
            interval_days=new_interval,
            easiness_factor=new_ef,
            repetition_streak=new_streak,
            state=ScheduleState.PENDING,
        )

        logger.debug(
            f"SM-2 advance {entry.item_id}: q={q}, ef {entry.easiness_factor:.2f} -> {new_ef:.2f}, "
            f"streak={new_streak}, interval={new_interval}d"
        )

        return updated
