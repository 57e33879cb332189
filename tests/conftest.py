from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from subdeck_core.errors import PersistenceFailure
from subdeck_core.fsrs import (
    CardMemoryState,
    RepetitionState,
    Scheduler,
    SchedulerParameters,
    new_card,
)
from subdeck_core.fsrs.database import SqlCardStore, get_engine


NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def reviewed_card(
    card_id: str,
    now: datetime = NOW,
    state: RepetitionState = RepetitionState.REVIEW,
    stability: float = 10.0,
    difficulty: float = 5.0,
    days_since_review: int = 10,
    scheduled_days: Optional[int] = None,
    reps: int = 3,
    lapses: int = 0,
    deck_id: str = "deck-1",
    card_type: str = "word",
) -> CardMemoryState:
    """A card last reviewed `days_since_review` days before `now`."""
    last_review = now - timedelta(days=days_since_review)
    if scheduled_days is None:
        scheduled_days = days_since_review
    return CardMemoryState(
        id=card_id,
        repetition_state=state,
        stability=stability,
        difficulty=difficulty,
        due=last_review + timedelta(days=scheduled_days),
        elapsed_days=0,
        scheduled_days=scheduled_days,
        reps=reps,
        lapses=lapses,
        last_review=last_review,
        deck_id=deck_id,
        card_type=card_type,
    )


class FakeStore:
    """In-memory storage collaborator."""

    def __init__(self, cards=()):
        self.cards = {c.id: c for c in cards}
        self.saved = []
        self.fail_next_save = False

    def load_candidate_cards(self, deck_id, card_type=None):
        return [
            c for c in self.cards.values()
            if c.deck_id == deck_id and (card_type is None or c.card_type == card_type)
        ]

    def save_card_state(self, card, log=None, session_id=None):
        if self.fail_next_save:
            self.fail_next_save = False
            raise PersistenceFailure("storage unavailable")
        self.cards[card.id] = card
        self.saved.append((card, log, session_id))


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def scheduler():
    return Scheduler(SchedulerParameters(enable_fuzz=False))


@pytest.fixture
def fuzzy_scheduler():
    return Scheduler(SchedulerParameters(enable_fuzz=True))


@pytest.fixture
def fresh_card(now):
    return new_card("card-1", now, deck_id="deck-1", card_type="word")


@pytest.fixture
def sql_store():
    store = SqlCardStore(get_engine("sqlite://"))
    store.init_db()
    return store
