"""
FSRS Constants and Parameters

All fixed parameters for the FSRS model in one place: rating scale,
review states, the default weight vector, forgetting-curve shape,
bounds and fuzz ranges.
"""

from enum import Enum, IntEnum


# ---- Ratings ----

class Rating(IntEnum):
    """Model grade for a retrieval attempt."""
    AGAIN = 1   # Retrieval failed
    HARD = 2    # Retrieved with high effort
    GOOD = 3    # Retrieved normally
    EASY = 4    # Retrieved fluently


class Outcome(str, Enum):
    """Binary feedback exposed to the app."""
    PASS = "pass"
    FAIL = "fail"

    @property
    def rating(self) -> Rating:
        return OUTCOME_RATING[self]


OUTCOME_RATING = {
    Outcome.PASS: Rating.GOOD,
    Outcome.FAIL: Rating.AGAIN,
}


# ---- Review States ----
# Integer values are what the cards table stores.

class RepetitionState(IntEnum):
    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3


# ---- Default Weights (FSRS-5) ----
# w[0]-w[3]   initial stability per rating
# w[4]-w[5]   initial difficulty
# w[6]-w[7]   difficulty delta / mean reversion
# w[8]-w[10]  stability after recall
# w[11]-w[14] stability after lapse
# w[15]-w[16] hard penalty / easy bonus
# w[17]-w[18] same-day (short-term) stability

DEFAULT_WEIGHTS = (
    0.40255, 1.18385, 3.173, 15.69105,
    7.1949, 0.5345,
    1.4604, 0.0046,
    1.54575, 0.1192, 1.01925,
    1.9395, 0.11, 0.29605, 2.2698,
    0.2315, 2.9898,
    0.51655, 0.6621,
)


# ---- Forgetting Curve ----
# R(t) = (1 + FACTOR * t / S) ^ DECAY, chosen so that R(S) = 0.9

DECAY = -0.5
FACTOR = 19.0 / 81.0


# ---- Bounds ----

S_MIN = 0.01     # Minimum stability (days)
D_MIN = 1.0      # Minimum difficulty
D_MAX = 10.0     # Maximum difficulty


# ---- Scheduler Defaults ----

DEFAULT_REQUESTED_RETENTION = 0.9
DEFAULT_MAXIMUM_INTERVAL = 36500
DEFAULT_ENABLE_FUZZ = True
DEFAULT_SHORT_TERM_INTERVAL = 1  # Learning/relearning step, in days


# ---- Fuzz Ranges ----
# (start_days, end_days, factor): each range widens the jitter window by
# factor * days of the interval falling inside it.

FUZZ_MIN_INTERVAL = 2.5

FUZZ_RANGES = (
    (2.5, 7.0, 0.15),
    (7.0, 20.0, 0.1),
    (20.0, float("inf"), 0.05),
)
