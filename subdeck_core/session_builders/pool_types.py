"""
Typed session filter models shared by the session builders and controller.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OrderMode(str, Enum):
    CHRONOLOGICAL = "chronological"  # Ascending by due, stable
    RANDOMIZED = "randomized"        # Unbiased shuffle


@dataclass(frozen=True)
class SessionFilters:
    """
    Launch-time selection for a study session.

    card_type is an opaque tag from the content model ("word", "phrase");
    None selects every type.
    """
    card_type: Optional[str] = None
    order: OrderMode = OrderMode.CHRONOLOGICAL
