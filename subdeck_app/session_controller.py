"""
Study session lifecycle: build a review queue, apply ratings, persist.
"""

from __future__ import annotations

import logging
import random
import threading
import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Optional

from subdeck_core.errors import NoCardsDueError, SessionBusyError, SessionStateError
from subdeck_core.fsrs import CardMemoryState, Outcome, Scheduler, SchedulingResult
from subdeck_core.fsrs.database import CardStore
from subdeck_core.session_builders import SessionFilters, build_session_queue
from subdeck_app.session_requests import normalize_filters
from subdeck_app.session_types import SessionHandle, SessionPhase


logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StudySessionController:
    """
    Drives one user's study session.

    SETUP -> ACTIVE on start_session(), ACTIVE -> COMPLETE when the queue
    drains, COMPLETE -> SETUP only through return_to_setup(). The current
    card is always the queue head.
    """

    def __init__(
        self,
        store: CardStore,
        scheduler: Scheduler,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None
    ):
        self.store = store
        self.scheduler = scheduler
        self._clock = clock or utc_now
        self._rng = rng or random.Random()
        self._rate_lock = threading.Lock()

        self._phase = SessionPhase.SETUP
        self._queue: deque[CardMemoryState] = deque()
        self._handle: Optional[SessionHandle] = None
        self.reviewed_count = 0
        self.passed_count = 0

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def handle(self) -> Optional[SessionHandle]:
        return self._handle

    @property
    def remaining(self) -> int:
        return len(self._queue)

    def queue_snapshot(self) -> list[CardMemoryState]:
        return list(self._queue)

    def start_session(
        self,
        deck_id: str,
        filters: Optional[SessionFilters] = None
    ) -> SessionHandle:
        """
        Start a new session from the deck's currently eligible cards.

        Raises:
            NoCardsDueError: nothing matched the filters; phase stays SETUP
            SessionStateError: called outside SETUP
        """
        if self._phase != SessionPhase.SETUP:
            raise SessionStateError(f"Cannot start a session while {self._phase.value}")

        filters = filters or SessionFilters()
        now = self._clock()

        snapshot = self.store.load_candidate_cards(deck_id, filters.card_type)
        queue = build_session_queue(snapshot, filters, now, self._rng)
        if not queue:
            logger.info("No cards due in deck %s (type=%s)", deck_id, filters.card_type)
            raise NoCardsDueError(deck_id, filters)

        self._queue = queue
        self._handle = SessionHandle(
            session_id=str(uuid.uuid4()),
            deck_id=deck_id,
            filters=filters,
            started_at=now,
            initial_size=len(queue),
        )
        self.reviewed_count = 0
        self.passed_count = 0
        self._phase = SessionPhase.ACTIVE

        logger.info(
            "Started session %s on deck %s with %d cards (order=%s)",
            self._handle.session_id, deck_id, len(queue), filters.order.value
        )
        return self._handle

    def start_from_selection(
        self,
        deck_id: str,
        card_type: Optional[str] = None,
        order: object = None
    ) -> SessionHandle:
        """
        Start a session from raw setup-screen selections ("words", "shuffled", ...).

        Raises:
            ValueError: unknown card type or order
        """
        return self.start_session(deck_id, normalize_filters(card_type, order))

    def current_card(self) -> Optional[CardMemoryState]:
        """
        The card under review, or None when no session is active.
        """
        if self._phase != SessionPhase.ACTIVE or not self._queue:
            return None
        return self._queue[0]

    def rate(self, outcome: Outcome) -> SchedulingResult:
        """
        Rate the current card, persist it, then advance the queue.

        FAIL re-queues the updated card at the tail; PASS removes it.
        If the store raises, the error propagates and the queue is left
        exactly as it was, so the same rating can be re-issued.

        Raises:
            SessionBusyError: another rate() call is in flight
            SessionStateError: no active session
            InvalidOutcome: outcome is not PASS or FAIL
        """
        if not self._rate_lock.acquire(blocking=False):
            raise SessionBusyError("A rating is already being processed")
        try:
            card = self.current_card()
            if card is None:
                raise SessionStateError(f"Cannot rate while {self._phase.value}")

            result = self.scheduler.compute_next_state(card, outcome, self._clock())

            try:
                self.store.save_card_state(
                    result.card, result.log, session_id=self._handle.session_id
                )
            except Exception:
                logger.warning(
                    "Could not persist card %s; queue not advanced", card.id
                )
                raise

            self._queue.popleft()
            self.reviewed_count += 1
            if result.log.outcome == Outcome.FAIL:
                self._queue.append(result.card)
            else:
                self.passed_count += 1

            if not self._queue:
                self._phase = SessionPhase.COMPLETE
                logger.info(
                    "Session %s complete: %d reviews, %d passed",
                    self._handle.session_id, self.reviewed_count, self.passed_count
                )
            return result
        finally:
            self._rate_lock.release()

    def return_to_setup(self) -> None:
        """
        Leave the session (complete or abandoned) and go back to setup.
        """
        if self._phase == SessionPhase.ACTIVE:
            logger.info(
                "Session %s abandoned with %d cards left",
                self._handle.session_id, len(self._queue)
            )
        self._queue = deque()
        self._handle = None
        self._phase = SessionPhase.SETUP
