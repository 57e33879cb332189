"""
Short-Term Memory (STM) Updates

Implements the same-day stability update for cards still in learning or
relearning.

STM exists to:
- Repair same-day failures
- Let learning cards gain a little stability before graduating

Key principle:
Same-day reviews barely move retrievability, so the long-term equations
(which reward risky, well-spaced recall) would credit almost nothing.
STM scales stability by a rating-dependent factor instead.
"""

from __future__ import annotations
import math
from typing import Sequence

from subdeck_core.fsrs.constants import Rating, RepetitionState
from subdeck_core.fsrs.ltm_updates import clamp_stability


SHORT_TERM_STATES = (RepetitionState.LEARNING, RepetitionState.RELEARNING)


def is_stm_event(state: RepetitionState, elapsed_days: int) -> bool:
    """
    Determine if this review is a short-term (same-day) event.

    Logic:
    - New cards -> first review, never STM
    - Learning/relearning reviewed within the same day -> STM
    - Anything else -> LTM
    """
    return state in SHORT_TERM_STATES and elapsed_days < 1


def apply_stm_update(
    weights: Sequence[float],
    stability: float,
    rating: Rating
) -> float:
    """
    Update stability after a same-day review.

    Formula:
        S_new = S * exp(w[17] * (rating - 3 + w[18]))

    Interpretation:
    - Good/Easy multiply stability by a factor above 1
    - Again roughly halves it
    """
    factor = math.exp(weights[17] * (int(rating) - 3 + weights[18]))
    return clamp_stability(stability * factor)
