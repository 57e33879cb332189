"""
Metric computations for deck dashboards.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

import pandas as pd

from subdeck_core.analytics.types import DeckSummary
from subdeck_core.fsrs.constants import RepetitionState
from subdeck_core.fsrs.memory_state import (
    CardMemoryState,
    calculate_retrievability,
    ensure_utc,
    get_elapsed_days,
)


CARD_COLUMNS = [
    "card_id",
    "card_type",
    "state",
    "due",
    "stability",
    "difficulty",
    "reps",
    "lapses",
    "retrievability",
    "is_due",
]


def cards_frame(cards: Iterable[CardMemoryState], now: datetime) -> pd.DataFrame:
    """
    One row per card with its state name and current retrievability.
    """
    now = ensure_utc(now)
    rows = []
    for card in cards:
        state = RepetitionState(card.repetition_state)
        is_new = state == RepetitionState.NEW
        rows.append({
            "card_id": card.id,
            "card_type": card.card_type,
            "state": state.name,
            "due": ensure_utc(card.due),
            "stability": card.stability,
            "difficulty": card.difficulty,
            "reps": card.reps,
            "lapses": card.lapses,
            "retrievability": (
                1.0 if is_new
                else calculate_retrievability(card.stability, get_elapsed_days(card, now))
            ),
            "is_due": (not is_new) and ensure_utc(card.due) <= now,
        })

    df = pd.DataFrame(rows, columns=CARD_COLUMNS)
    if not df.empty:
        df["due"] = pd.to_datetime(df["due"], utc=True)
    return df


def summarize_deck(cards: Iterable[CardMemoryState], now: datetime) -> DeckSummary:
    """
    State counts and study progress (share of cards that left NEW).
    """
    df = cards_frame(cards, now)
    total = int(len(df))
    counts = df["state"].value_counts() if total else pd.Series(dtype="int64")

    def count(state: RepetitionState) -> int:
        return int(counts.get(state.name, 0))

    studied = total - count(RepetitionState.NEW)
    return DeckSummary(
        total=total,
        new=count(RepetitionState.NEW),
        learning=count(RepetitionState.LEARNING),
        review=count(RepetitionState.REVIEW),
        relearning=count(RepetitionState.RELEARNING),
        studied=studied,
        due_now=int(df["is_due"].sum()) if total else 0,
        progress_percent=(studied / total * 100.0) if total else 0.0,
    )


def due_forecast(
    cards: Iterable[CardMemoryState],
    now: datetime,
    days: int = 7
) -> pd.Series:
    """
    Number of reviewed cards coming due on each of the next `days` days.

    Day 0 also collects overdue cards. New cards are not counted.
    """
    index = pd.RangeIndex(days, name="day")
    df = cards_frame(cards, now)
    if df.empty:
        return pd.Series(0, index=index, dtype="int64")

    reviewed = df[df["state"] != RepetitionState.NEW.name]
    offsets = (reviewed["due"] - pd.Timestamp(ensure_utc(now))).dt.days.clip(lower=0)
    counts = offsets[offsets < days].value_counts()
    return counts.reindex(index, fill_value=0).astype("int64")
