"""
SQLAlchemy ORM Models for FSRS Database

Defines the card and review-log tables. SQLite by default, Postgres via
DATABASE_URL.
"""

from sqlalchemy import Column, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CardRecord(Base):
    """
    A deck card with its persisted FSRS memory state.

    Content columns (front/back) belong to the import layer; the scheduler
    only reads and writes the FSRS columns.
    """
    __tablename__ = 'cards'

    id = Column(String(255), primary_key=True, nullable=False)
    deck_id = Column(String(255), nullable=False, index=True)
    type = Column(String(50), nullable=False)  # "word", "phrase", ...

    front = Column(Text, nullable=False)
    back = Column(Text, nullable=True)
    position = Column(Integer, nullable=False, default=0)  # Import order within the deck

    # FSRS columns
    state = Column(Integer, nullable=False, default=0)  # 0=New, 1=Learning, 2=Review, 3=Relearning
    due = Column(DateTime(timezone=True), nullable=False)
    stability = Column(Float, nullable=False, default=0.0)
    difficulty = Column(Float, nullable=False, default=0.0)
    elapsed_days = Column(Integer, nullable=False, default=0)
    scheduled_days = Column(Integer, nullable=False, default=0)
    reps = Column(Integer, nullable=False, default=0)
    lapses = Column(Integer, nullable=False, default=0)
    last_review = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('ix_cards_deck_type', 'deck_id', 'type'),
    )

    def __repr__(self):
        return f"<CardRecord({self.id}, deck={self.deck_id}, state={self.state})>"


class ReviewLogRecord(Base):
    """
    Log entry for a single review of a card.
    """
    __tablename__ = 'review_logs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    card_id = Column(String(255), nullable=False, index=True)

    rating = Column(Integer, nullable=False)  # 1=AGAIN, 2=HARD, 3=GOOD, 4=EASY
    state = Column(Integer, nullable=False)  # State before the review
    elapsed_days = Column(Integer, nullable=False)
    scheduled_days = Column(Integer, nullable=False)
    stability = Column(Float, nullable=False)
    difficulty = Column(Float, nullable=False)
    reviewed_at = Column(DateTime(timezone=True), nullable=False)

    session_id = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<ReviewLogRecord(id={self.id}, card={self.card_id}, rating={self.rating})>"
