"""
Integration tests for the SQLite store backends.

Each test gets a fresh database file under tmp_path.
"""

from datetime import timedelta

import pytest

from wordnet_review.errors import NotFoundError, StoreError
from wordnet_review.models import LearnableItem, ReviewState, ScheduleEntry
from wordnet_review.repository import ReviewRepository
from wordnet_review.session import ReviewSessionController
from wordnet_review.stores import Database, SqlItemStore, SqlScheduleStore

pytestmark = pytest.mark.integration


@pytest.fixture
def db(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'nested' / 'review.db'}")
    database.init_schema()
    yield database
    database.close()


@pytest.fixture
def items(db):
    return SqlItemStore(db)


@pytest.fixture
def schedules(db):
    return SqlScheduleStore(db)


class TestSqlItemStore:
    """Test SqlItemStore."""

    def test_round_trips_all_fields(self, items, clock):
        item = LearnableItem(
            id="construct",
            display_strength=0.45,
            review_count=2,
            last_reviewed_at=clock.now,
            meaning="to build",
            morphemes=["con", "struct"],
        )

        items.upsert(item)

        assert items.get("construct") == item

    def test_upsert_replaces(self, items, clock):
        items.upsert(LearnableItem(id="port", last_reviewed_at=clock.now))
        items.upsert(LearnableItem(id="port", display_strength=0.3, review_count=1, last_reviewed_at=clock.now))

        assert items.get("port").review_count == 1
        assert len(items.get_all_active()) == 1

    def test_soft_delete_hides_from_active(self, items, clock):
        for word in ("report", "construct"):
            items.upsert(LearnableItem(id=word, last_reviewed_at=clock.now))

        items.soft_delete("report")

        assert [i.id for i in items.get_all_active()] == ["construct"]
        assert items.get("report").active is False

    def test_missing_items(self, items):
        with pytest.raises(NotFoundError):
            items.get("nope")
        with pytest.raises(NotFoundError):
            items.soft_delete("nope")
        with pytest.raises(NotFoundError):
            items.delete("nope")


class TestSqlScheduleStore:
    """Test SqlScheduleStore."""

    @pytest.fixture
    def seeded(self, items, schedules, clock):
        for offset, word in enumerate(["c", "a", "b"]):
            items.upsert(LearnableItem(id=word, last_reviewed_at=clock.now))
            schedules.upsert(ScheduleEntry(word, due_at=clock.now - timedelta(hours=offset)))
        items.upsert(LearnableItem(id="later", last_reviewed_at=clock.now))
        schedules.upsert(ScheduleEntry("later", due_at=clock.now + timedelta(days=1)))
        return schedules

    def test_query_due_orders_by_due_time(self, seeded, clock):
        assert [e.item_id for e in seeded.query_due(clock.now, 10)] == ["b", "a", "c"]
        assert [e.item_id for e in seeded.query_due(clock.now, 1)] == ["b"]

    def test_count_due(self, seeded, clock):
        assert seeded.count_due(clock.now) == 3
        assert seeded.count_due(clock.now + timedelta(days=1)) == 4

    def test_round_trip_and_replace(self, seeded, clock):
        entry = ScheduleEntry("a", due_at=clock.now, interval_days=6, easiness_factor=2.36, repetition_streak=2)

        seeded.upsert(entry)

        assert seeded.get("a") == entry

    def test_delete_and_delete_all(self, seeded):
        seeded.delete("a")
        seeded.delete("never-existed")
        with pytest.raises(NotFoundError):
            seeded.get("a")

        seeded.delete_all()

        assert seeded.all_entries() == []

    def test_missing_schema_surfaces_store_error(self, tmp_path, clock):
        path = tmp_path / "empty.db"
        database = Database(f"sqlite:///{path}")
        store = SqlScheduleStore(database)

        with pytest.raises(StoreError):
            store.count_due(clock.now)


class TestSqlReviewFlow:
    """Full review flow over the SQLite stores."""

    def test_grade_is_persisted_across_handles(self, tmp_path, clock):
        url = f"sqlite:///{tmp_path / 'review.db'}"
        db = Database(url)
        db.init_schema()
        repository = ReviewRepository(SqlItemStore(db), SqlScheduleStore(db), clock=clock)
        repository.add_item("construct", meaning="to build", morphemes=["con", "struct"])
        controller = ReviewSessionController(repository)

        controller.start_session()
        controller.reveal_answer()
        controller.submit_grade(5)
        assert controller.state == ReviewState.COMPLETED
        db.close()

        reopened = Database(url)
        entry = SqlScheduleStore(reopened).get("construct")
        item = SqlItemStore(reopened).get("construct")
        assert entry.repetition_streak == 1
        assert entry.easiness_factor == pytest.approx(2.6)
        assert entry.due_at == clock.now + timedelta(days=1)
        assert item.review_count == 1
        assert item.display_strength == pytest.approx(0.45)
        reopened.close()

    def test_in_memory_database(self, clock):
        db = Database("sqlite://")
        db.init_schema()
        repository = ReviewRepository(SqlItemStore(db), SqlScheduleStore(db), clock=clock)
        repository.add_item("report")

        assert repository.count_due() == 1
        assert [i.id for i in repository.select_weakest(5)] == ["report"]
