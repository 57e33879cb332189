"""Tests for the FSRS scheduler."""

import random
from dataclasses import replace
from datetime import timedelta

import pytest

from conftest import reviewed_card
from subdeck_core.errors import InvalidCardState, InvalidOutcome
from subdeck_core.fsrs import (
    D_MAX,
    D_MIN,
    Outcome,
    Rating,
    RepetitionState,
    Scheduler,
    SchedulerParameters,
    next_repetition_state,
)


class TestFirstReview:
    """New cards and the end-to-end learning path."""

    def test_new_card_pass_enters_learning(self, scheduler, fresh_card, now):
        result = scheduler.compute_next_state(fresh_card, Outcome.PASS, now)
        card = result.card

        assert card.repetition_state == RepetitionState.LEARNING
        assert card.reps == 1
        assert card.lapses == 0
        assert card.scheduled_days == 1
        assert card.due == now + timedelta(days=1)
        assert card.last_review == now
        assert card.stability == pytest.approx(3.173)
        assert D_MIN <= card.difficulty <= D_MAX

    def test_second_pass_at_due_graduates_with_longer_interval(self, scheduler, fresh_card, now):
        first = scheduler.compute_next_state(fresh_card, Outcome.PASS, now).card
        second = scheduler.compute_next_state(first, Outcome.PASS, first.due).card

        assert second.repetition_state == RepetitionState.REVIEW
        assert second.reps == 2
        assert second.elapsed_days == 1
        assert second.scheduled_days > first.scheduled_days
        assert second.due == first.due + timedelta(days=second.scheduled_days)

    def test_new_card_fail_does_not_crash(self, scheduler, fresh_card, now):
        result = scheduler.compute_next_state(fresh_card, Outcome.FAIL, now)

        assert result.card.repetition_state == RepetitionState.LEARNING
        assert result.card.reps == 0
        assert result.card.lapses == 0
        assert result.card.scheduled_days == 1
        assert result.card.stability > 0

    def test_log_entry(self, scheduler, fresh_card, now):
        result = scheduler.compute_next_state(fresh_card, Outcome.PASS, now)
        log = result.log

        assert log.card_id == fresh_card.id
        assert log.outcome == Outcome.PASS
        assert log.rating == Rating.GOOD
        assert log.state == RepetitionState.NEW
        assert log.scheduled_days == result.card.scheduled_days
        assert log.reviewed_at == now

    def test_input_card_is_not_modified(self, scheduler, fresh_card, now):
        before = replace(fresh_card)
        scheduler.compute_next_state(fresh_card, Outcome.PASS, now)
        assert fresh_card == before


class TestStateTransitions:
    """The transition table for binary outcomes."""

    @pytest.mark.parametrize("state, outcome, expected", [
        (RepetitionState.NEW, Outcome.PASS, RepetitionState.LEARNING),
        (RepetitionState.NEW, Outcome.FAIL, RepetitionState.LEARNING),
        (RepetitionState.LEARNING, Outcome.PASS, RepetitionState.REVIEW),
        (RepetitionState.LEARNING, Outcome.FAIL, RepetitionState.RELEARNING),
        (RepetitionState.REVIEW, Outcome.PASS, RepetitionState.REVIEW),
        (RepetitionState.REVIEW, Outcome.FAIL, RepetitionState.RELEARNING),
        (RepetitionState.RELEARNING, Outcome.PASS, RepetitionState.REVIEW),
        (RepetitionState.RELEARNING, Outcome.FAIL, RepetitionState.RELEARNING),
    ])
    def test_table(self, state, outcome, expected):
        assert next_repetition_state(state, outcome.rating) == expected

    @pytest.mark.parametrize("state, outcome, expected", [
        (RepetitionState.LEARNING, Outcome.PASS, RepetitionState.REVIEW),
        (RepetitionState.LEARNING, Outcome.FAIL, RepetitionState.RELEARNING),
        (RepetitionState.REVIEW, Outcome.PASS, RepetitionState.REVIEW),
        (RepetitionState.REVIEW, Outcome.FAIL, RepetitionState.RELEARNING),
        (RepetitionState.RELEARNING, Outcome.PASS, RepetitionState.REVIEW),
        (RepetitionState.RELEARNING, Outcome.FAIL, RepetitionState.RELEARNING),
    ])
    @pytest.mark.parametrize("days_since_review", [0, 3])
    def test_scheduled_cards(self, scheduler, now, state, outcome, expected, days_since_review):
        card = reviewed_card(
            "c1", now, state=state, stability=3.0, days_since_review=days_since_review,
            scheduled_days=1
        )
        result = scheduler.compute_next_state(card, outcome, now)
        assert result.card.repetition_state == expected

    def test_only_review_failures_count_as_lapses(self, scheduler, now):
        learning = reviewed_card("c1", now, state=RepetitionState.LEARNING, stability=3.0)
        relearning = reviewed_card("c2", now, state=RepetitionState.RELEARNING, stability=3.0, lapses=2)
        review = reviewed_card("c3", now, state=RepetitionState.REVIEW, lapses=2)

        assert scheduler.compute_next_state(learning, Outcome.FAIL, now).card.lapses == 0
        assert scheduler.compute_next_state(relearning, Outcome.FAIL, now).card.lapses == 2
        assert scheduler.compute_next_state(review, Outcome.FAIL, now).card.lapses == 3

    def test_reps_count_successes_only(self, scheduler, now):
        card = reviewed_card("c1", now, reps=4)
        assert scheduler.compute_next_state(card, Outcome.PASS, now).card.reps == 5
        assert scheduler.compute_next_state(card, Outcome.FAIL, now).card.reps == 4


class TestReviewFailure:

    def test_lapse_collapses_interval_and_stability(self, scheduler, now):
        card = reviewed_card("c1", now, stability=10.0, difficulty=5.0, days_since_review=10)
        result = scheduler.compute_next_state(card, Outcome.FAIL, now)

        assert result.card.repetition_state == RepetitionState.RELEARNING
        assert result.card.lapses == card.lapses + 1
        assert 1 <= result.card.scheduled_days <= 2
        assert 0 <= result.card.stability < card.stability / 2
        assert result.card.difficulty > card.difficulty

    def test_pass_makes_card_easier(self, scheduler, now):
        card = reviewed_card("c1", now, difficulty=5.0)
        result = scheduler.compute_next_state(card, Outcome.PASS, now)
        assert result.card.difficulty < card.difficulty

    @pytest.mark.parametrize("stability", [0.1, 0.5, 2.0, 10.0, 80.0, 400.0])
    @pytest.mark.parametrize("days_since_review", [0, 1, 7, 30, 365])
    def test_fail_interval_strictly_shorter_than_pass(self, now, stability, days_since_review):
        for enable_fuzz in (False, True):
            scheduler = Scheduler(SchedulerParameters(enable_fuzz=enable_fuzz))
            card = reviewed_card("c1", now, stability=stability, days_since_review=days_since_review)

            passed = scheduler.compute_next_state(card, Outcome.PASS, now)
            failed = scheduler.compute_next_state(card, Outcome.FAIL, now)

            assert failed.card.scheduled_days < passed.card.scheduled_days
            assert failed.card.lapses == card.lapses + 1


class TestReviewSuccess:

    @pytest.mark.parametrize("stability", [0.5, 1.0, 3.0, 10.0, 50.0])
    @pytest.mark.parametrize("difficulty", [1.0, 5.0, 10.0])
    def test_consecutive_passes_never_shrink_interval(self, scheduler, now, stability, difficulty):
        card = reviewed_card("c1", now, stability=stability, difficulty=difficulty,
                             days_since_review=max(1, round(stability)))

        first = scheduler.compute_next_state(card, Outcome.PASS, now).card
        second = scheduler.compute_next_state(first, Outcome.PASS, first.due).card

        assert second.scheduled_days >= first.scheduled_days
        assert second.stability >= first.stability

    def test_longer_gap_grows_stability_more(self, scheduler, now):
        early = reviewed_card("c1", now, stability=10.0, days_since_review=2)
        late = reviewed_card("c1", now, stability=10.0, days_since_review=20)

        early_s = scheduler.compute_next_state(early, Outcome.PASS, now).card.stability
        late_s = scheduler.compute_next_state(late, Outcome.PASS, now).card.stability

        assert late_s > early_s > 10.0


class TestBoundsAndDeterminism:

    def test_repeated_calls_are_identical(self, scheduler, now):
        card = reviewed_card("c1", now)
        results = [scheduler.compute_next_state(card, Outcome.PASS, now) for _ in range(3)]
        assert results[0] == results[1] == results[2]

    def test_fuzz_is_seeded_by_inputs(self, fuzzy_scheduler, now):
        card = reviewed_card("c1", now, stability=30.0, days_since_review=30)
        first = fuzzy_scheduler.compute_next_state(card, Outcome.PASS, now)
        second = fuzzy_scheduler.compute_next_state(card, Outcome.PASS, now)
        assert first == second

    @pytest.mark.parametrize("maximum_interval", [2, 30, 36500])
    @pytest.mark.parametrize("enable_fuzz", [False, True])
    def test_random_review_sequences_stay_in_bounds(self, fresh_card, now, maximum_interval, enable_fuzz):
        scheduler = Scheduler(SchedulerParameters(
            maximum_interval_days=maximum_interval, enable_fuzz=enable_fuzz
        ))
        rng = random.Random(42)
        card, at = fresh_card, now

        for _ in range(60):
            outcome = rng.choice([Outcome.PASS, Outcome.PASS, Outcome.FAIL])
            result = scheduler.compute_next_state(card, outcome, at)
            card = result.card

            assert 1 <= card.scheduled_days <= maximum_interval
            assert D_MIN <= card.difficulty <= D_MAX
            assert card.stability > 0
            assert card.due == at + timedelta(days=card.scheduled_days)

            # Review somewhere between early and late
            gap = min(card.scheduled_days * 2, 365)
            at = at + timedelta(days=rng.randint(0, gap))

    def test_interval_capped_at_maximum(self, now):
        scheduler = Scheduler(SchedulerParameters(maximum_interval_days=100, enable_fuzz=False))
        card = reviewed_card("c1", now, stability=5000.0, days_since_review=4000)
        result = scheduler.compute_next_state(card, Outcome.PASS, now)
        assert result.card.scheduled_days == 100

    def test_higher_retention_means_shorter_intervals(self, now):
        card = reviewed_card("c1", now)
        strict = Scheduler(SchedulerParameters(requested_retention=0.95, enable_fuzz=False))
        relaxed = Scheduler(SchedulerParameters(requested_retention=0.8, enable_fuzz=False))

        strict_days = strict.compute_next_state(card, Outcome.PASS, now).card.scheduled_days
        relaxed_days = relaxed.compute_next_state(card, Outcome.PASS, now).card.scheduled_days

        assert strict_days < relaxed_days

    def test_review_before_last_review_clamps_elapsed(self, scheduler, now):
        card = reviewed_card("c1", now + timedelta(days=5), days_since_review=1)
        result = scheduler.compute_next_state(card, Outcome.PASS, now)
        assert result.card.elapsed_days == 0


class TestErrors:

    def test_negative_stability(self, scheduler, now):
        card = replace(reviewed_card("c1", now), stability=-1.0)
        with pytest.raises(InvalidCardState):
            scheduler.compute_next_state(card, Outcome.PASS, now)

    def test_negative_difficulty(self, scheduler, now):
        card = replace(reviewed_card("c1", now), difficulty=-0.5)
        with pytest.raises(InvalidCardState):
            scheduler.compute_next_state(card, Outcome.PASS, now)

    @pytest.mark.parametrize("changes", [
        {"stability": float("nan")},
        {"stability": float("inf")},
        {"difficulty": float("nan")},
        {"difficulty": float("inf")},
    ])
    def test_non_finite_memory_state(self, scheduler, now, changes):
        card = replace(reviewed_card("c1", now), **changes)
        with pytest.raises(InvalidCardState):
            scheduler.compute_next_state(card, Outcome.PASS, now)

    def test_unknown_state(self, scheduler, now):
        card = replace(reviewed_card("c1", now), repetition_state=7)
        with pytest.raises(InvalidCardState):
            scheduler.compute_next_state(card, Outcome.PASS, now)

    @pytest.mark.parametrize("outcome", ["maybe", None, 3, True])
    def test_invalid_outcome(self, scheduler, fresh_card, now, outcome):
        with pytest.raises(InvalidOutcome):
            scheduler.compute_next_state(fresh_card, outcome, now)

    def test_outcome_value_strings_accepted(self, scheduler, fresh_card, now):
        result = scheduler.compute_next_state(fresh_card, "pass", now)
        assert result.log.outcome == Outcome.PASS

    @pytest.mark.parametrize("kwargs", [
        {"requested_retention": 0.0},
        {"requested_retention": 1.0},
        {"maximum_interval_days": 0},
        {"short_term_interval_days": 0},
        {"weights": (1.0, 2.0)},
    ])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            SchedulerParameters(**kwargs)


class TestPreview:

    def test_preview_covers_every_rating(self, scheduler, now):
        card = reviewed_card("c1", now)
        previews = scheduler.preview_all_outcomes(card, now)

        assert set(previews) == set(Rating)
        assert previews[Rating.GOOD].card == scheduler.compute_next_state(card, Outcome.PASS, now).card
        assert previews[Rating.AGAIN].card == scheduler.compute_next_state(card, Outcome.FAIL, now).card

    def test_review_intervals_ordered_by_rating(self, scheduler, now):
        card = reviewed_card("c1", now, stability=10.0, days_since_review=10)
        days = {r: res.card.scheduled_days for r, res in scheduler.preview_all_outcomes(card, now).items()}

        assert days[Rating.AGAIN] < days[Rating.HARD] <= days[Rating.GOOD] <= days[Rating.EASY]

    def test_new_card_easy_skips_learning(self, scheduler, fresh_card, now):
        previews = scheduler.preview_all_outcomes(fresh_card, now)
        assert previews[Rating.EASY].card.repetition_state == RepetitionState.REVIEW
        assert previews[Rating.EASY].card.scheduled_days > 1

    def test_retrievability(self, scheduler, fresh_card, now):
        assert scheduler.retrievability(fresh_card, now) == 1.0
        card = reviewed_card("c1", now, stability=10.0, days_since_review=10)
        assert scheduler.retrievability(card, now) == pytest.approx(0.9)
