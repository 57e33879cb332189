"""
Session types used by the study session controller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from subdeck_core.session_builders.pool_types import SessionFilters


class SessionPhase(str, Enum):
    SETUP = "setup"        # Choosing filters
    ACTIVE = "active"      # Queue non-empty, head is the current card
    COMPLETE = "complete"  # Queue drained


@dataclass(frozen=True)
class SessionHandle:
    """
    Identifies a started study session.
    """
    session_id: str
    deck_id: str
    filters: SessionFilters
    started_at: datetime
    initial_size: int
