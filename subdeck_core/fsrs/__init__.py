"""
FSRS - Free Spaced Repetition Scheduler

Scheduling engine for deck flashcards.

This package implements a parametric forgetting-curve scheduler with:
- Power forgetting curve: R = (1 + FACTOR * t / S) ^ DECAY
- First-review defaults, long-term and same-day stability updates
- Review states: New -> Learning -> Review <-> Relearning
- Interval capping and seeded fuzz

Quick start:
    from subdeck_core import fsrs

    scheduler = fsrs.Scheduler(fsrs.SchedulerParameters(enable_fuzz=False))

    # Process a review (algorithm only, no DB calls)
    result = scheduler.compute_next_state(card, fsrs.Outcome.PASS, now)
    result.card, result.log
"""

# Core scheduler API (algorithm logic)
from subdeck_core.fsrs.scheduler import (
    Scheduler,
    SchedulerParameters,
    next_repetition_state,
)

# Constants and parameters
from subdeck_core.fsrs.constants import (
    Rating,
    Outcome,
    RepetitionState,
    DEFAULT_WEIGHTS,
    DECAY,
    FACTOR,
    S_MIN,
    D_MIN,
    D_MAX,
)

# Memory state
from subdeck_core.fsrs.memory_state import (
    CardMemoryState,
    ReviewLogEntry,
    SchedulingResult,
    calculate_retrievability,
    get_elapsed_days,
    new_card,
)


__all__ = [
    # Core algorithm
    "Scheduler",
    "SchedulerParameters",
    "next_repetition_state",

    # Enums
    "Rating",
    "Outcome",
    "RepetitionState",

    # Memory state
    "CardMemoryState",
    "ReviewLogEntry",
    "SchedulingResult",
    "calculate_retrievability",
    "get_elapsed_days",
    "new_card",

    # Parameters
    "DEFAULT_WEIGHTS",
    "DECAY",
    "FACTOR",
    "S_MIN",
    "D_MIN",
    "D_MAX",
]
