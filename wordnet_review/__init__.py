"""
WordNet Review: spaced repetition scheduling for vocabulary.

Components:
- SM2Scheduler: Authoritative next-due schedule (SM-2)
- RetentionModel: Heuristic display strength for ranking
- ReviewRepository: Item lifecycle and schedule maintenance over injected stores
- ReviewSessionController: Review session state machine
- Stores: in-memory and SQLite backends
"""

from .errors import IntegrityError, NotFoundError, ReviewEngineError, StoreError, ValidationError
from .models import LearnableItem, ReviewState, ScheduleEntry, ScheduleState
from .repository import ReconcileResult, ReviewRepository, RootStatistic
from .retention import RetentionConfig, RetentionModel
from .scheduler import SM2Config, SM2Scheduler
from .session import GradeResult, ReviewSessionController, SessionEvent, SessionEventType

__all__ = [
    # Records
    "LearnableItem",
    "ScheduleEntry",
    "ScheduleState",
    "ReviewState",
    # Algorithms
    "SM2Config",
    "SM2Scheduler",
    "RetentionConfig",
    "RetentionModel",
    # Orchestration
    "ReviewRepository",
    "ReconcileResult",
    "RootStatistic",
    "ReviewSessionController",
    "GradeResult",
    "SessionEvent",
    "SessionEventType",
    # Errors
    "ReviewEngineError",
    "ValidationError",
    "NotFoundError",
    "StoreError",
    "IntegrityError",
]
