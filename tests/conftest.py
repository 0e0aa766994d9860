"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from wordnet_review.repository import ReviewRepository  # noqa: E402
from wordnet_review.retention import RetentionModel  # noqa: E402
from wordnet_review.scheduler import SM2Scheduler  # noqa: E402
from wordnet_review.session import ReviewSessionController  # noqa: E402
from wordnet_review.stores import InMemoryItemStore, InMemoryScheduleStore  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite on disk)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FakeClock:
    """Controllable clock; call it to get the current time."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    """Clock fixed at 2024-03-01 09:00."""
    return FakeClock(datetime(2024, 3, 1, 9, 0, 0))


@pytest.fixture
def scheduler(clock):
    return SM2Scheduler(clock=clock)


@pytest.fixture
def retention(clock):
    return RetentionModel(clock=clock)


@pytest.fixture
def item_store():
    return InMemoryItemStore()


@pytest.fixture
def schedule_store():
    return InMemoryScheduleStore()


@pytest.fixture
def repository(item_store, schedule_store, scheduler, retention, clock):
    """Repository over empty in-memory stores."""
    return ReviewRepository(
        items=item_store,
        schedules=schedule_store,
        scheduler=scheduler,
        retention=retention,
        clock=clock,
    )


@pytest.fixture
def controller(repository):
    return ReviewSessionController(repository, due_batch=2)


@pytest.fixture
def seed_file(tmp_path):
    """A small seed word list."""
    path = tmp_path / "default_words.json"
    path.write_text(
        """
        {
          "words": [
            {"word": "construct", "chinese": "to build", "morphemes": ["con", "struct"]},
            {"word": "Structure", "meaning": "arrangement", "morphemes": ["struct", "ure"]},
            {"word": "report", "morphemes": ["re", "port"]}
          ]
        }
        """,
        encoding="utf-8",
    )
    return path
