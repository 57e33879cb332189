"""
Scheduler - FSRS Algorithm Logic

Pure FSRS scheduling and state updates (no database calls, no clock reads).

Main workflow:
1. Validate the card and the outcome
2. Compute elapsed days since the last review
3. Initialize (new card), apply STM (same-day learning) or LTM updates
4. Pick the next review state and interval
5. Return the updated card + review log entry

Callers load the card, pass "now" explicitly and persist the result.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional, Sequence

from subdeck_core.errors import InvalidOutcome
from subdeck_core.fsrs import ltm_updates, scheduling, stm_updates
from subdeck_core.fsrs.constants import (
    DEFAULT_ENABLE_FUZZ,
    DEFAULT_MAXIMUM_INTERVAL,
    DEFAULT_REQUESTED_RETENTION,
    DEFAULT_SHORT_TERM_INTERVAL,
    DEFAULT_WEIGHTS,
    Outcome,
    Rating,
    RepetitionState,
)
from subdeck_core.fsrs.memory_state import (
    CardMemoryState,
    ReviewLogEntry,
    SchedulingResult,
    calculate_retrievability,
    ensure_utc,
    get_elapsed_days,
)

if TYPE_CHECKING:
    from subdeck_core.config import Settings


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchedulerParameters:
    """
    Fixed scheduler configuration.
    """
    requested_retention: float = DEFAULT_REQUESTED_RETENTION
    maximum_interval_days: int = DEFAULT_MAXIMUM_INTERVAL
    enable_fuzz: bool = DEFAULT_ENABLE_FUZZ
    weights: Sequence[float] = DEFAULT_WEIGHTS
    short_term_interval_days: int = DEFAULT_SHORT_TERM_INTERVAL

    def __post_init__(self):
        if not 0.0 < self.requested_retention < 1.0:
            raise ValueError(
                f"requested_retention must be in (0, 1), got {self.requested_retention}"
            )
        if self.maximum_interval_days < 1:
            raise ValueError(
                f"maximum_interval_days must be >= 1, got {self.maximum_interval_days}"
            )
        if self.short_term_interval_days < 1:
            raise ValueError(
                f"short_term_interval_days must be >= 1, got {self.short_term_interval_days}"
            )
        if len(self.weights) != len(DEFAULT_WEIGHTS):
            raise ValueError(
                f"Expected {len(DEFAULT_WEIGHTS)} weights, got {len(self.weights)}"
            )
        object.__setattr__(self, "weights", tuple(float(w) for w in self.weights))

    @classmethod
    def from_settings(cls, settings: Settings) -> SchedulerParameters:
        return cls(
            requested_retention=settings.requested_retention,
            maximum_interval_days=settings.maximum_interval_days,
            enable_fuzz=settings.enable_fuzz,
        )


def coerce_outcome(outcome: object) -> Outcome:
    if isinstance(outcome, Outcome):
        return outcome
    try:
        return Outcome(outcome)
    except (ValueError, TypeError):
        raise InvalidOutcome(f"Outcome must be 'pass' or 'fail', got {outcome!r}") from None


def coerce_rating(rating: object) -> Rating:
    if isinstance(rating, bool):
        raise InvalidOutcome(f"Rating must be 1-4, got {rating!r}")
    try:
        return Rating(rating)
    except (ValueError, TypeError):
        raise InvalidOutcome(f"Rating must be 1-4, got {rating!r}") from None


def next_repetition_state(state: RepetitionState, rating: Rating) -> RepetitionState:
    """
    Review-state transition table.

    NEW        -> LEARNING (EASY graduates straight to REVIEW)
    LEARNING   -> REVIEW on GOOD/EASY, stays on HARD, RELEARNING on AGAIN
    RELEARNING -> REVIEW on GOOD/EASY, stays on HARD and AGAIN
    REVIEW     -> REVIEW on success, RELEARNING on AGAIN (a lapse)
    """
    if state == RepetitionState.NEW:
        return RepetitionState.REVIEW if rating == Rating.EASY else RepetitionState.LEARNING

    if state in stm_updates.SHORT_TERM_STATES:
        if rating == Rating.AGAIN:
            return RepetitionState.RELEARNING
        if rating == Rating.HARD:
            return state
        return RepetitionState.REVIEW

    if rating == Rating.AGAIN:
        return RepetitionState.RELEARNING
    return RepetitionState.REVIEW


class Scheduler:
    """
    Stateless FSRS scheduler.

    Holds only immutable parameters, so one instance can be shared across
    sessions and threads.
    """

    def __init__(self, parameters: Optional[SchedulerParameters] = None):
        self.parameters = parameters or SchedulerParameters()

    def __repr__(self):
        p = self.parameters
        return (
            f"<Scheduler(retention={p.requested_retention}, "
            f"max_interval={p.maximum_interval_days}, fuzz={p.enable_fuzz})>"
        )

    def compute_next_state(
        self,
        card: CardMemoryState,
        outcome: Outcome,
        now: datetime
    ) -> SchedulingResult:
        """
        Process a binary review and return the updated card + log entry.

        PASS is scheduled as GOOD, FAIL as AGAIN.

        Args:
            card: Current card state (not modified)
            outcome: Outcome.PASS or Outcome.FAIL
            now: Review timestamp

        Returns:
            SchedulingResult with the new card state and its review log

        Raises:
            InvalidCardState: card violates its invariants
            InvalidOutcome: outcome is not PASS or FAIL
        """
        outcome = coerce_outcome(outcome)
        return self.schedule_rating(card, outcome.rating, now, outcome=outcome)

    def preview_all_outcomes(
        self,
        card: CardMemoryState,
        now: datetime
    ) -> dict[Rating, SchedulingResult]:
        """
        Scheduling result for every rating, without changing anything.
        """
        return {rating: self.schedule_rating(card, rating, now) for rating in Rating}

    def retrievability(self, card: CardMemoryState, now: datetime) -> float:
        """
        Current recall probability (1.0 for cards never reviewed).
        """
        if card.is_new:
            return 1.0
        return calculate_retrievability(card.stability, get_elapsed_days(card, now))

    def schedule_rating(
        self,
        card: CardMemoryState,
        rating: Rating,
        now: datetime,
        outcome: Optional[Outcome] = None
    ) -> SchedulingResult:
        """
        Schedule a card for any of the four model ratings.
        """
        card.validate()
        rating = coerce_rating(rating)
        now = ensure_utc(now)
        weights = self.parameters.weights

        state = RepetitionState(card.repetition_state)
        elapsed_days = get_elapsed_days(card, now)

        if state == RepetitionState.NEW:
            stability = ltm_updates.initial_stability(weights, rating)
            difficulty = ltm_updates.initial_difficulty(weights, rating)
        else:
            difficulty_before = ltm_updates.clamp_difficulty(card.difficulty)
            if stm_updates.is_stm_event(state, elapsed_days):
                stability = stm_updates.apply_stm_update(weights, card.stability, rating)
                difficulty = ltm_updates.update_difficulty(weights, difficulty_before, rating)
            else:
                retrievability = calculate_retrievability(card.stability, elapsed_days)
                stability, difficulty = ltm_updates.apply_ltm_update(
                    weights,
                    card.stability,
                    difficulty_before,
                    retrievability,
                    rating
                )

        next_state = next_repetition_state(state, rating)
        scheduled_days = self._interval(card, state, next_state, stability, elapsed_days, now)

        is_lapse = state == RepetitionState.REVIEW and rating == Rating.AGAIN
        updated = replace(
            card,
            repetition_state=next_state,
            stability=stability,
            difficulty=difficulty,
            due=now + timedelta(days=scheduled_days),
            elapsed_days=elapsed_days,
            scheduled_days=scheduled_days,
            reps=card.reps + (0 if rating == Rating.AGAIN else 1),
            lapses=card.lapses + (1 if is_lapse else 0),
            last_review=now,
        )

        log = ReviewLogEntry(
            card_id=card.id,
            rating=rating,
            outcome=outcome,
            state=state,
            scheduled_days=scheduled_days,
            elapsed_days=elapsed_days,
            stability=stability,
            difficulty=difficulty,
            reviewed_at=now,
        )

        logger.debug(
            "Scheduled card %s: %s %s -> %s, S=%.3f D=%.3f, %d days",
            card.id, state.name, rating.name, next_state.name,
            stability, difficulty, scheduled_days
        )
        return SchedulingResult(card=updated, log=log)

    def _interval(
        self,
        card: CardMemoryState,
        state: RepetitionState,
        next_state: RepetitionState,
        stability: float,
        elapsed_days: int,
        now: datetime
    ) -> int:
        p = self.parameters

        if next_state in stm_updates.SHORT_TERM_STATES:
            return min(p.short_term_interval_days, p.maximum_interval_days)

        interval = scheduling.next_interval(
            stability, p.requested_retention, p.maximum_interval_days
        )
        if p.enable_fuzz:
            interval = scheduling.apply_fuzz(
                interval,
                elapsed_days,
                p.maximum_interval_days,
                scheduling.fuzz_seed(card.id, now, card.reps)
            )

        # A successful review must always beat the relearning step
        if state == RepetitionState.REVIEW:
            interval = max(interval, p.short_term_interval_days + 1)

        return max(1, min(interval, p.maximum_interval_days))
