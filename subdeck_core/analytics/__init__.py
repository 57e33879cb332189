"""
Analytics package exports.
"""

from subdeck_core.analytics.metrics import cards_frame, due_forecast, summarize_deck
from subdeck_core.analytics.service import build_deck_dashboard
from subdeck_core.analytics.types import DeckSummary

__all__ = [
    "cards_frame",
    "due_forecast",
    "summarize_deck",
    "build_deck_dashboard",
    "DeckSummary",
]
