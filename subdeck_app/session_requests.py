"""
Session filter requests coming from the setup screen.
"""

from __future__ import annotations

from typing import Optional

from subdeck_core.session_builders.pool_types import OrderMode, SessionFilters


CARD_TYPE_ALIASES = {
    "all": None,
    "word": "word",
    "words": "word",
    "phrase": "phrase",
    "phrases": "phrase",
}

ORDER_ALIASES = {
    "ordered": OrderMode.CHRONOLOGICAL,
    "chronological": OrderMode.CHRONOLOGICAL,
    "chronological-by-due": OrderMode.CHRONOLOGICAL,
    "shuffled": OrderMode.RANDOMIZED,
    "random": OrderMode.RANDOMIZED,
    "randomized": OrderMode.RANDOMIZED,
}


def _normalize_card_type(card_type: Optional[str]) -> Optional[str]:
    if card_type is None:
        return None
    key = str(card_type).strip().lower()
    if key not in CARD_TYPE_ALIASES:
        raise ValueError(f"Unknown card type filter: {card_type!r}")
    return CARD_TYPE_ALIASES[key]


def _normalize_order(order: object) -> OrderMode:
    if isinstance(order, OrderMode):
        return order
    if order is None:
        return OrderMode.CHRONOLOGICAL
    key = str(order).strip().lower()
    if key not in ORDER_ALIASES:
        raise ValueError(f"Unknown order mode: {order!r}")
    return ORDER_ALIASES[key]


def normalize_filters(
    card_type: Optional[str] = None,
    order: object = None
) -> SessionFilters:
    """
    Normalize loosely typed setup selections to SessionFilters.

    "words"/"phrases" map to the stored card types, "all" or None selects
    every type; "ordered" and "shuffled" map to the two order modes.
    """
    return SessionFilters(
        card_type=_normalize_card_type(card_type),
        order=_normalize_order(order),
    )
