"""
Types for deck dashboards.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DeckSummary:
    """
    Precomputed progress figures for one deck.
    """
    total: int
    new: int
    learning: int
    review: int
    relearning: int
    studied: int  # Cards that left NEW
    due_now: int  # Reviewed cards whose due time has passed
    progress_percent: float
