"""
Error types shared by the scheduler, storage and session layers.
"""

from __future__ import annotations


class SubdeckError(Exception):
    """Base class for all subdeck errors."""


class InvalidCardState(SubdeckError, ValueError):
    """Card memory state violates its invariants (corrupted upstream)."""


class InvalidOutcome(SubdeckError, ValueError):
    """Review outcome is not a recognized value."""


class NoCardsDueError(SubdeckError):
    """
    No card matched the session filters.

    Recoverable: the caller shows a "nothing due" message and stays in setup.
    """

    def __init__(self, deck_id: str, filters=None):
        self.deck_id = deck_id
        self.filters = filters
        super().__init__(f"No cards due in deck {deck_id!r}")


class PersistenceFailure(SubdeckError):
    """The storage collaborator could not read or write card state."""


class SessionStateError(SubdeckError):
    """Operation is not valid in the session's current phase."""


class SessionBusyError(SessionStateError):
    """A rate() call is already in flight for this session."""
