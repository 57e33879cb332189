"""
Pool utilities for session builders.

These helpers turn a one-shot snapshot of deck cards into an ordered
session queue without touching storage.
"""

from __future__ import annotations
import random
from collections import deque
from datetime import datetime
from typing import Iterable, Optional

from subdeck_core.fsrs.memory_state import CardMemoryState, ensure_utc
from subdeck_core.session_builders.pool_types import OrderMode, SessionFilters


def is_candidate(card: CardMemoryState, now: datetime) -> bool:
    """
    New cards are always eligible; others once their due time has passed.
    """
    return card.is_new or ensure_utc(card.due) <= ensure_utc(now)


def due_cards_from_snapshot(
    all_cards: Iterable[CardMemoryState],
    now: datetime,
    card_type: Optional[str] = None
) -> list[CardMemoryState]:
    """
    Filter candidates from a snapshot, keeping discovery order (no DB calls).
    """
    return [
        c for c in all_cards
        if (card_type is None or c.card_type == card_type) and is_candidate(c, now)
    ]


def order_cards(
    cards: list[CardMemoryState],
    order: OrderMode,
    rng: Optional[random.Random] = None
) -> list[CardMemoryState]:
    """
    Order session cards.

    CHRONOLOGICAL sorts by due ascending; sorted() is stable, so ties keep
    discovery order. RANDOMIZED is a Fisher-Yates shuffle.
    """
    if order == OrderMode.RANDOMIZED:
        shuffled = list(cards)
        (rng or random.Random()).shuffle(shuffled)
        return shuffled
    return sorted(cards, key=lambda c: ensure_utc(c.due))


def build_session_queue(
    all_cards: Iterable[CardMemoryState],
    filters: SessionFilters,
    now: datetime,
    rng: Optional[random.Random] = None
) -> deque[CardMemoryState]:
    """
    Build the double-ended session queue from a card snapshot.

    The queue is a fresh container, so mutating it never touches the
    caller's deck collection.
    """
    candidates = due_cards_from_snapshot(all_cards, now, filters.card_type)
    return deque(order_cards(candidates, filters.order, rng))
