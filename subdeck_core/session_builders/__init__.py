"""Session queue building from deck card snapshots."""

from subdeck_core.session_builders.pool_types import OrderMode, SessionFilters
from subdeck_core.session_builders.pool_utils import (
    build_session_queue,
    due_cards_from_snapshot,
    is_candidate,
    order_cards,
)

__all__ = [
    "OrderMode",
    "SessionFilters",
    "build_session_queue",
    "due_cards_from_snapshot",
    "is_candidate",
    "order_cards",
]
