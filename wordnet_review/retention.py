"""
Retention Model - heuristic display strength per item.

Maintains a coarse 0..1 recall confidence used for weak-item ranking and
coloring. It is independent of the SM-2 easiness factor and never decides
when an item is due.

Update rule for one graded review:
    base     = +0.3 if correct else -0.1
    early    = 1.5 for the first three reviews, else 1.0
    damping  = 1.0 - 0.5 * strength
    strength = clamp(strength + base * early * damping, 0, 1)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Callable

from loguru import logger

from .models import LearnableItem, clamp_strength


@dataclass
class RetentionConfig:
    """Constants for the display strength heuristic."""

    correct_gain: float = 0.3
    incorrect_loss: float = -0.1
    early_review_limit: int = 3  # Reviews that get the early multiplier
    early_multiplier: float = 1.5
    damping_factor: float = 0.5
    mastery_threshold: float = 0.8


def base_interval(review_count: int) -> int:
    """Base display interval in days: 1, 2, 4, 8, 16, then 15 flat."""
    if review_count < 5:
        return 2**review_count
    return 15


class RetentionModel:
    """Pure update rules for LearnableItem.display_strength."""

    def __init__(
        self,
        config: RetentionConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config or RetentionConfig()
        self.clock = clock

    def apply_outcome(self, item: LearnableItem, was_correct: bool) -> LearnableItem:
        """
        Apply one graded review to an item.

        Args:
            item: Item before the review
            was_correct: Whether the recall counted as a success

        Returns:
            New LearnableItem with updated strength, review count and timestamp
        """
        cfg = self.config
        new_count = item.review_count + 1

        base = cfg.correct_gain if was_correct else cfg.incorrect_loss
        early = cfg.early_multiplier if new_count <= cfg.early_review_limit else 1.0
        # Same damping for gains and losses
        damping = 1.0 - cfg.damping_factor * item.display_strength

        new_strength = clamp_strength(item.display_strength + base * early * damping)

        logger.debug(
            f"Strength update for {item.id}: correct={was_correct}, "
            f"{item.display_strength:.3f} -> {new_strength:.3f}"
        )

        return replace(
            item,
            display_strength=new_strength,
            review_count=new_count,
            last_reviewed_at=self.clock(),
        )

    def is_mastered(self, item: LearnableItem) -> bool:
        """Check if an item's display strength reaches the mastery threshold."""
        return item.display_strength >= self.config.mastery_threshold

    def estimate_next_review_time(self, item: LearnableItem) -> datetime:
        """
        Forgetting-curve estimate of the next review, for display only.

        The due queue is governed by ScheduleEntry.due_at; this value must not
        be used to decide due-ness.
        """
        modifier = 1.0 + 2.0 * item.display_strength
        days = base_interval(item.review_count) * modifier
        return item.last_reviewed_at + timedelta(days=days)
