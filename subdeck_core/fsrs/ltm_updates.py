"""
Long-Term Memory (LTM) Updates

Implements the stability and difficulty equations applied when a card is
reviewed after at least one full day, and the first-review defaults.

Key principles:
- Spaced, effortful success produces the largest stability gains
- Stability gains shrink as stability grows and as difficulty rises
- Failures collapse stability, more so when recall was expected (high R)
- Difficulty reverts slowly toward the "Easy" first-review difficulty
"""

from __future__ import annotations
import math
from typing import Sequence

from subdeck_core.fsrs.constants import D_MAX, D_MIN, S_MIN, Rating


def clamp_difficulty(difficulty: float) -> float:
    return max(D_MIN, min(D_MAX, difficulty))


def clamp_stability(stability: float) -> float:
    return max(S_MIN, stability)


def initial_stability(weights: Sequence[float], rating: Rating) -> float:
    """
    Stability after the first review.

    Formula: S_0 = w[rating - 1]
    """
    return clamp_stability(weights[int(rating) - 1])


def initial_difficulty(weights: Sequence[float], rating: Rating) -> float:
    """
    Difficulty after the first review.

    Formula: D_0 = w[4] - exp(w[5] * (rating - 1)) + 1, clipped to [1, 10]
    """
    return clamp_difficulty(weights[4] - math.exp(weights[5] * (int(rating) - 1)) + 1.0)


def update_stability_on_success(
    weights: Sequence[float],
    stability: float,
    difficulty: float,
    retrievability: float,
    rating: Rating
) -> float:
    """
    Update stability after successful recall (Hard/Good/Easy).

    Formula:
        S_new = S * (1 + exp(w[8]) * (11 - D) * S^(-w[9])
                     * (exp(w[10] * (1 - R)) - 1) * hard_penalty * easy_bonus)

    Where:
        - (11 - D) makes hard items grow more slowly
        - S^(-w[9]) saturates growth for already stable items
        - (exp(w[10] * (1 - R)) - 1) rewards well-spaced (risky) success

    Args:
        weights: Model weights
        stability: Current stability (S)
        difficulty: Current difficulty (D)
        retrievability: Retrievability at review time (R)
        rating: HARD, GOOD or EASY

    Returns:
        New stability value (never below the current stability)
    """
    if rating == Rating.AGAIN:
        raise ValueError("Use update_stability_on_failure for AGAIN ratings")

    hard_penalty = weights[15] if rating == Rating.HARD else 1.0
    easy_bonus = weights[16] if rating == Rating.EASY else 1.0

    increase = (
        math.exp(weights[8])
        * (11.0 - difficulty)
        * stability ** (-weights[9])
        * (math.exp(weights[10] * (1.0 - retrievability)) - 1.0)
        * hard_penalty
        * easy_bonus
    )
    return clamp_stability(stability * (1.0 + increase))


def update_stability_on_failure(
    weights: Sequence[float],
    stability: float,
    difficulty: float,
    retrievability: float
) -> float:
    """
    Update stability after a failed recall (Again).

    Formula:
        S_f = w[11] * D^(-w[12]) * ((S + 1)^w[13] - 1) * exp(w[14] * (1 - R))
        S_new = min(S_f, S / exp(w[17] * w[18]))

    The cap guarantees a lapse never increases stability.
    """
    forget_stability = (
        weights[11]
        * difficulty ** (-weights[12])
        * ((stability + 1.0) ** weights[13] - 1.0)
        * math.exp(weights[14] * (1.0 - retrievability))
    )
    ceiling = stability / math.exp(weights[17] * weights[18])
    return clamp_stability(min(forget_stability, ceiling))


def update_difficulty(
    weights: Sequence[float],
    difficulty: float,
    rating: Rating
) -> float:
    """
    Update difficulty based on the rating.

    Formula:
        D' = D - w[6] * (rating - 3) * (10 - D) / 9
        D'' = w[7] * D_0(EASY) + (1 - w[7]) * D'
        clipped to [1, 10]

    Conceptually:
    - Again/Hard push difficulty up, Easy pulls it down
    - The (10 - D) / 9 damping shrinks changes near the ceiling
    - Mean reversion keeps D from drifting to the bounds
    """
    delta = -weights[6] * (int(rating) - 3)
    damped = difficulty + delta * (10.0 - difficulty) / 9.0
    target = initial_difficulty(weights, Rating.EASY)
    reverted = weights[7] * target + (1.0 - weights[7]) * damped
    return clamp_difficulty(reverted)


def apply_ltm_update(
    weights: Sequence[float],
    stability: float,
    difficulty: float,
    retrievability: float,
    rating: Rating
) -> tuple[float, float]:
    """
    Apply LTM update rules to get new S and D.

    This is the main entry point for long-term updates.

    Returns:
        (new_stability, new_difficulty)
    """
    if rating == Rating.AGAIN:
        new_stability = update_stability_on_failure(
            weights, stability, difficulty, retrievability
        )
    else:
        new_stability = update_stability_on_success(
            weights, stability, difficulty, retrievability, rating
        )

    new_difficulty = update_difficulty(weights, difficulty, rating)

    return new_stability, new_difficulty
