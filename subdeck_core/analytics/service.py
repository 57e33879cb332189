"""
Service layer to assemble deck dashboards from storage.
"""

from __future__ import annotations

from datetime import datetime

import pandas as pd

from subdeck_core.analytics.metrics import due_forecast, summarize_deck
from subdeck_core.analytics.types import DeckSummary
from subdeck_core.fsrs.database import SqlCardStore


def build_deck_dashboard(
    store: SqlCardStore,
    deck_id: str,
    now: datetime,
    forecast_days: int = 7
) -> tuple[DeckSummary, pd.Series]:
    """
    Load a deck once and compute its summary and due forecast.
    """
    cards = store.get_cards(deck_id)
    return summarize_deck(cards, now), due_forecast(cards, now, forecast_days)
