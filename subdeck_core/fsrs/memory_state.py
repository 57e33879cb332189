"""
Memory State - Card State and Retrievability

Defines the per-card memory state the scheduler operates on and the
derived quantities computed from it.

Key concepts:
- Stability (S): days until recall probability decays to 90%
- Difficulty (D): intrinsic item hardness (1-10 scale)
- Retrievability (R): probability of successful recall at time t
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from subdeck_core.errors import InvalidCardState
from subdeck_core.fsrs.constants import (
    DECAY,
    FACTOR,
    Outcome,
    Rating,
    RepetitionState,
)


@dataclass(frozen=True)
class CardMemoryState:
    """
    Memory state for a single card.

    Updated only through scheduler output, one review at a time.
    """
    id: str
    repetition_state: RepetitionState
    stability: float  # S, in days (0 for new cards)
    difficulty: float  # D, range 1-10 once reviewed
    due: datetime
    elapsed_days: int = 0
    scheduled_days: int = 0
    reps: int = 0  # Successful reviews
    lapses: int = 0  # Review -> Relearning transitions
    last_review: Optional[datetime] = None

    # Opaque content tags used by the session layer
    deck_id: Optional[str] = None
    card_type: Optional[str] = None

    @property
    def is_new(self) -> bool:
        return self.repetition_state == RepetitionState.NEW

    def validate(self) -> None:
        """
        Raise InvalidCardState if the record cannot be scheduled.
        """
        try:
            RepetitionState(self.repetition_state)
        except ValueError:
            raise InvalidCardState(
                f"Card {self.id!r}: unrecognized repetition state {self.repetition_state!r}"
            ) from None

        if self.stability is None or not math.isfinite(self.stability) or self.stability < 0:
            raise InvalidCardState(f"Card {self.id!r}: invalid stability {self.stability!r}")
        if self.difficulty is None or not math.isfinite(self.difficulty) or self.difficulty < 0:
            raise InvalidCardState(f"Card {self.id!r}: invalid difficulty {self.difficulty!r}")
        if self.reps < 0 or self.lapses < 0:
            raise InvalidCardState(f"Card {self.id!r}: negative review counters")
        if self.due is None:
            raise InvalidCardState(f"Card {self.id!r}: missing due timestamp")
        if not self.is_new and self.stability <= 0:
            raise InvalidCardState(f"Card {self.id!r}: reviewed card has zero stability")


@dataclass(frozen=True)
class ReviewLogEntry:
    """
    Output of one scheduling computation.
    """
    card_id: str
    rating: Rating
    outcome: Optional[Outcome]
    state: RepetitionState  # State before the review
    scheduled_days: int
    elapsed_days: int
    stability: float  # After the review
    difficulty: float  # After the review
    reviewed_at: datetime


@dataclass(frozen=True)
class SchedulingResult:
    card: CardMemoryState
    log: ReviewLogEntry


def ensure_utc(value: datetime) -> datetime:
    """
    Treat naive datetimes as UTC and convert aware ones to UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def calculate_retrievability(stability: float, elapsed_days: float) -> float:
    """
    Calculate retrievability using the power forgetting curve.

    Formula: R = (1 + FACTOR * t / S) ^ DECAY

    Interpretation:
    - Immediately after review: R = 1.0
    - After t = S days: R = 0.9
    - R decays slowly afterwards (heavier tail than exponential decay)

    Args:
        stability: Current stability in days
        elapsed_days: Time since last review in days

    Returns:
        Retrievability between 0 and 1
    """
    if stability <= 0:
        return 0.0
    if elapsed_days <= 0:
        return 1.0
    return (1.0 + FACTOR * elapsed_days / stability) ** DECAY


def get_elapsed_days(card: CardMemoryState, now: datetime) -> int:
    """
    Whole days between the card's last review and now, clamped to >= 0.

    Never-reviewed cards count from their creation time (their initial due).
    """
    reference = card.last_review if card.last_review is not None else card.due
    delta = ensure_utc(now) - ensure_utc(reference)
    return max(0, delta.days)


def new_card(
    card_id: str,
    now: datetime,
    deck_id: Optional[str] = None,
    card_type: Optional[str] = None
) -> CardMemoryState:
    """
    Initialize state for a card that has never been reviewed.

    The card is due immediately so it can be picked up by the next session.
    """
    return CardMemoryState(
        id=card_id,
        repetition_state=RepetitionState.NEW,
        stability=0.0,
        difficulty=0.0,
        due=ensure_utc(now),
        deck_id=deck_id,
        card_type=card_type,
    )
