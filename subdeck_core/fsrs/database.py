"""
Database - FSRS Database I/O Operations

Handles all database operations for card state and review logs.
Uses SQLAlchemy ORM with a SQLite (default) or Postgres backend.

This module handles ONLY database I/O and the conversion between ORM rows
and CardMemoryState values. Algorithm logic is handled by the scheduler.
"""

from __future__ import annotations
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional, Protocol

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from subdeck_core.config import Settings
from subdeck_core.errors import PersistenceFailure
from subdeck_core.fsrs.constants import RepetitionState
from subdeck_core.fsrs.memory_state import (
    CardMemoryState,
    ReviewLogEntry,
    ensure_utc,
    new_card,
)
from subdeck_core.fsrs.models import Base, CardRecord, ReviewLogRecord


logger = logging.getLogger(__name__)


class CardStore(Protocol):
    """
    Storage collaborator consumed by the session controller.
    """

    def load_candidate_cards(
        self,
        deck_id: str,
        card_type: Optional[str] = None
    ) -> list[CardMemoryState]:
        ...

    def save_card_state(
        self,
        card: CardMemoryState,
        log: Optional[ReviewLogEntry] = None,
        session_id: Optional[str] = None
    ) -> None:
        ...


# ---- Conversion at the storage boundary ----

def record_to_card(record: CardRecord) -> CardMemoryState:
    """
    Build a CardMemoryState from a database row.
    """
    return CardMemoryState(
        id=record.id,
        repetition_state=RepetitionState(record.state),
        stability=float(record.stability),
        difficulty=float(record.difficulty),
        due=ensure_utc(record.due),
        elapsed_days=int(record.elapsed_days),
        scheduled_days=int(record.scheduled_days),
        reps=int(record.reps),
        lapses=int(record.lapses),
        last_review=ensure_utc(record.last_review) if record.last_review else None,
        deck_id=record.deck_id,
        card_type=record.type,
    )


def card_to_record(card: CardMemoryState, record: CardRecord) -> CardRecord:
    """
    Copy the FSRS fields of a card onto a database row (in place).
    """
    record.state = int(card.repetition_state)
    record.due = ensure_utc(card.due)
    record.stability = card.stability
    record.difficulty = card.difficulty
    record.elapsed_days = card.elapsed_days
    record.scheduled_days = card.scheduled_days
    record.reps = card.reps
    record.lapses = card.lapses
    record.last_review = ensure_utc(card.last_review) if card.last_review else None
    return record


def log_to_record(log: ReviewLogEntry, session_id: Optional[str] = None) -> ReviewLogRecord:
    return ReviewLogRecord(
        card_id=log.card_id,
        rating=int(log.rating),
        state=int(log.state),
        elapsed_days=log.elapsed_days,
        scheduled_days=log.scheduled_days,
        stability=log.stability,
        difficulty=log.difficulty,
        reviewed_at=ensure_utc(log.reviewed_at),
        session_id=session_id,
    )


# ---- Engine ----

def get_engine(database_url: str) -> Engine:
    """
    Get SQLAlchemy engine for a database URL.

    In-memory SQLite shares one connection so every session sees the same
    database; server databases get a small connection pool.
    """
    if database_url.startswith("sqlite"):
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            return create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        pool_size=5,           # Keep 5 connections open
        max_overflow=10,       # Allow up to 10 extra connections
        pool_pre_ping=True,    # Verify connections before use
        echo=False
    )


class SqlCardStore:
    """
    SQLAlchemy-backed card store.

    Every public method runs in its own transaction and wraps database
    errors in PersistenceFailure.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Database error while %s: %s", action, exc)
            raise PersistenceFailure(f"Database error while {action}") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_db(self) -> None:
        """
        Create tables if they don't exist. Safe to call multiple times.
        """
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise PersistenceFailure("Could not initialize database schema") from exc

    def reset_db(self) -> None:
        """
        DANGEROUS: Delete all cards and review history and recreate tables.
        """
        try:
            Base.metadata.drop_all(self.engine)
        except SQLAlchemyError as exc:
            raise PersistenceFailure("Could not drop database schema") from exc
        logger.warning("All tables dropped")
        self.init_db()

    def import_cards(self, deck_id: str, cards: list[dict], now: datetime) -> int:
        """
        Replace a deck's cards with freshly imported NEW cards.

        Each dict needs "id", "type" and "front"; "back" is optional.
        Rows missing a required field are skipped.

        Returns:
            Number of cards stored
        """
        saved = 0
        with self._session("importing cards") as session:
            session.query(CardRecord).filter(CardRecord.deck_id == deck_id).delete()

            for position, raw in enumerate(cards):
                if not raw.get("id") or not raw.get("type") or not raw.get("front"):
                    logger.warning("Skipping invalid card in deck %s: %r", deck_id, raw)
                    continue

                state = new_card(raw["id"], now, deck_id=deck_id, card_type=raw["type"])
                record = CardRecord(
                    id=raw["id"],
                    deck_id=deck_id,
                    type=raw["type"],
                    front=raw["front"],
                    back=raw.get("back") or "",
                    position=position,
                )
                session.add(card_to_record(state, record))
                saved += 1

        logger.info("Saved %d cards for deck %s", saved, deck_id)
        return saved

    def get_cards(self, deck_id: str) -> list[CardMemoryState]:
        """
        All cards of a deck in import order.
        """
        with self._session("loading deck cards") as session:
            records = session.query(CardRecord).filter(
                CardRecord.deck_id == deck_id
            ).order_by(CardRecord.position).all()
            return [record_to_card(r) for r in records]

    def get_card(self, card_id: str) -> Optional[CardMemoryState]:
        with self._session("loading card") as session:
            record = session.get(CardRecord, card_id)
            return record_to_card(record) if record is not None else None

    def load_candidate_cards(
        self,
        deck_id: str,
        card_type: Optional[str] = None
    ) -> list[CardMemoryState]:
        """
        Cards of a deck, optionally restricted to one card type, in import order.

        Due filtering is left to the session builder so it can use the
        session's own clock.
        """
        with self._session("loading candidate cards") as session:
            query = session.query(CardRecord).filter(CardRecord.deck_id == deck_id)
            if card_type is not None:
                query = query.filter(CardRecord.type == card_type)
            records = query.order_by(CardRecord.position).all()
            return [record_to_card(r) for r in records]

    def save_card_state(
        self,
        card: CardMemoryState,
        log: Optional[ReviewLogEntry] = None,
        session_id: Optional[str] = None
    ) -> None:
        """
        Write a card's FSRS state (and its review log) in one transaction.

        Raises:
            PersistenceFailure: unknown card id or database error
        """
        with self._session("saving card state") as session:
            record = session.get(CardRecord, card.id)
            if record is None:
                raise PersistenceFailure(f"Card {card.id!r} does not exist")
            card_to_record(card, record)
            if log is not None:
                session.add(log_to_record(log, session_id))

    def get_recent_logs(self, limit: int = 10) -> list[dict]:
        """
        Recent review log rows (newest first).
        """
        with self._session("loading review logs") as session:
            rows = session.query(ReviewLogRecord).order_by(
                ReviewLogRecord.reviewed_at.desc(),
                ReviewLogRecord.id.desc()
            ).limit(limit).all()

            return [
                {
                    "id": row.id,
                    "card_id": row.card_id,
                    "rating": row.rating,
                    "state": row.state,
                    "elapsed_days": row.elapsed_days,
                    "scheduled_days": row.scheduled_days,
                    "stability": row.stability,
                    "difficulty": row.difficulty,
                    "reviewed_at": ensure_utc(row.reviewed_at),
                    "session_id": row.session_id,
                }
                for row in rows
            ]


def create_store(settings: Settings) -> SqlCardStore:
    """
    Build a store for the configured database and make sure its schema exists.
    """
    store = SqlCardStore(get_engine(settings.database_url))
    store.init_db()
    return store
