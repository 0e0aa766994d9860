"""
Domain records for the review engine.

- LearnableItem: a word with its heuristic display strength
- ScheduleEntry: the authoritative SM-2 schedule for one item
- ReviewState: states of the review session machine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


def clamp_strength(value: float) -> float:
    """Clamp a strength value into [0, 1]."""
    return max(0.0, min(1.0, value))


class ScheduleState(str, Enum):
    """Persisted schedule entry state. Only PENDING is used today."""

    PENDING = "pending"


class ReviewState(str, Enum):
    """States of a review session."""

    IDLE = "idle"  # No item loaded
    RECALLING = "recalling"  # Prompt shown, answer hidden
    EVALUATING = "evaluating"  # Answer shown, waiting for a grade
    COMPLETED = "completed"  # No due entries left


@dataclass
class LearnableItem:
    """A learnable unit (a word) and its display strength."""

    id: str
    display_strength: float = 0.0
    review_count: int = 0
    last_reviewed_at: datetime = field(default_factory=datetime.now)
    active: bool = True
    meaning: str | None = None
    morphemes: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.display_strength = clamp_strength(self.display_strength)

    def __repr__(self) -> str:
        return (
            f"<LearnableItem id={self.id!r} strength={self.display_strength:.2f} "
            f"reviews={self.review_count} active={self.active}>"
        )


@dataclass(frozen=True)
class ScheduleEntry:
    """SM-2 schedule for a single item. Replaced wholesale on every review."""

    item_id: str
    due_at: datetime
    interval_days: int = 1
    easiness_factor: float = 2.5
    repetition_streak: int = 0
    state: ScheduleState = ScheduleState.PENDING

    def is_due(self, now: datetime) -> bool:
        """Check if this entry is due at the given time."""
        return now >= self.due_at
