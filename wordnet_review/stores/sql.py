"""
SQLite store backends built on SQLAlchemy.

Tables:
- learnable_items: one row per word
- schedule_entries: one SM-2 schedule per word, indexed on due_at

Database location defaults to ~/.wordnet/review.db (see config).
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from loguru import logger
from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    func,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from ..errors import NotFoundError, StoreError
from ..models import LearnableItem, ScheduleEntry, ScheduleState

# =============================================================================
# ORM Models
# =============================================================================


class Base(DeclarativeBase):
    pass


class ItemRow(Base):
    """Persisted LearnableItem."""

    __tablename__ = "learnable_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    display_strength: Mapped[float] = mapped_column(Float, default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, default=0)
    last_reviewed_at: Mapped[datetime] = mapped_column(DateTime)
    active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    meaning: Mapped[str | None] = mapped_column(Text)
    morphemes: Mapped[list] = mapped_column(JSON, default=list)

    def to_item(self) -> LearnableItem:
        return LearnableItem(
            id=self.id,
            display_strength=self.display_strength,
            review_count=self.review_count,
            last_reviewed_at=self.last_reviewed_at,
            active=self.active,
            meaning=self.meaning,
            morphemes=list(self.morphemes or []),
        )


class ScheduleRow(Base):
    """Persisted ScheduleEntry."""

    __tablename__ = "schedule_entries"

    item_id: Mapped[str] = mapped_column(
        ForeignKey("learnable_items.id", ondelete="CASCADE"), primary_key=True
    )
    due_at: Mapped[datetime] = mapped_column(DateTime, index=True)
    interval_days: Mapped[int] = mapped_column(Integer, default=1)
    easiness_factor: Mapped[float] = mapped_column(Float, default=2.5)
    repetition_streak: Mapped[int] = mapped_column(Integer, default=0)
    state: Mapped[str] = mapped_column(String(16), default=ScheduleState.PENDING.value)

    def to_entry(self) -> ScheduleEntry:
        return ScheduleEntry(
            item_id=self.item_id,
            due_at=self.due_at,
            interval_days=self.interval_days,
            easiness_factor=self.easiness_factor,
            repetition_streak=self.repetition_streak,
            state=ScheduleState(self.state),
        )


# =============================================================================
# Database Handle
# =============================================================================


class Database:
    """
    Engine and session factory for one database URL.

    Each CLI process builds one handle and passes it to both stores.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        if url in ("sqlite://", "sqlite:///:memory:"):
            self.engine = create_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            if url.startswith("sqlite:///"):
                Path(url.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_engine(url, echo=echo, pool_pre_ping=True)

        self._session_factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    def init_schema(self) -> None:
        """Create tables if they do not exist."""
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to initialize schema: {e}") from e
        logger.info(f"Database initialized at {self.url}")

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Provide a transactional scope; SQLAlchemy failures become StoreError."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Dispose of the engine's connection pool."""
        self.engine.dispose()


# =============================================================================
# Stores
# =============================================================================


class SqlItemStore:
    """ItemStore backed by the learnable_items table."""

    def __init__(self, db: Database):
        self.db = db

    def get(self, item_id: str) -> LearnableItem:
        with self.db.session_scope() as session:
            row = session.get(ItemRow, item_id)
            if row is None:
                raise NotFoundError("item", item_id)
            return row.to_item()

    def get_all_active(self) -> list[LearnableItem]:
        with self.db.session_scope() as session:
            rows = session.scalars(
                select(ItemRow).where(ItemRow.active.is_(True)).order_by(ItemRow.id)
            )
            return [row.to_item() for row in rows]

    def upsert(self, item: LearnableItem) -> None:
        with self.db.session_scope() as session:
            session.merge(
                ItemRow(
                    id=item.id,
                    display_strength=item.display_strength,
                    review_count=item.review_count,
                    last_reviewed_at=item.last_reviewed_at,
                    active=item.active,
                    meaning=item.meaning,
                    morphemes=list(item.morphemes),
                )
            )

    def soft_delete(self, item_id: str) -> None:
        with self.db.session_scope() as session:
            row = session.get(ItemRow, item_id)
            if row is None:
                raise NotFoundError("item", item_id)
            row.active = False

    def delete(self, item_id: str) -> None:
        with self.db.session_scope() as session:
            row = session.get(ItemRow, item_id)
            if row is None:
                raise NotFoundError("item", item_id)
            session.delete(row)


class SqlScheduleStore:
    """ScheduleStore backed by the schedule_entries table."""

    def __init__(self, db: Database):
        self.db = db

    def get(self, item_id: str) -> ScheduleEntry:
        with self.db.session_scope() as session:
            row = session.get(ScheduleRow, item_id)
            if row is None:
                raise NotFoundError("schedule entry", item_id)
            return row.to_entry()

    def upsert(self, entry: ScheduleEntry) -> None:
        with self.db.session_scope() as session:
            session.merge(
                ScheduleRow(
                    item_id=entry.item_id,
                    due_at=entry.due_at,
                    interval_days=entry.interval_days,
                    easiness_factor=entry.easiness_factor,
                    repetition_streak=entry.repetition_streak,
                    state=entry.state.value,
                )
            )

    def delete(self, item_id: str) -> None:
        with self.db.session_scope() as session:
            session.execute(delete(ScheduleRow).where(ScheduleRow.item_id == item_id))

    def delete_all(self) -> None:
        with self.db.session_scope() as session:
            result = session.execute(delete(ScheduleRow))
            logger.debug(f"Deleted {result.rowcount} schedule entries")

    def all_entries(self) -> list[ScheduleEntry]:
        with self.db.session_scope() as session:
            rows = session.scalars(
                select(ScheduleRow).order_by(ScheduleRow.due_at, ScheduleRow.item_id)
            )
            return [row.to_entry() for row in rows]

    def query_due(self, now: datetime, limit: int) -> list[ScheduleEntry]:
        with self.db.session_scope() as session:
            rows = session.scalars(
                select(ScheduleRow)
                .where(ScheduleRow.due_at <= now)
                .order_by(ScheduleRow.due_at.asc(), ScheduleRow.item_id.asc())
                .limit(limit)
            )
            return [row.to_entry() for row in rows]

    def count_due(self, now: datetime) -> int:
        with self.db.session_scope() as session:
            return session.scalar(
                select(func.count()).select_from(ScheduleRow).where(ScheduleRow.due_at <= now)
            )
