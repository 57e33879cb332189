"""
Scheduling - Interval and Fuzz Math

Turns a stability estimate into a whole-day interval and spreads intervals
with bounded, seeded jitter so cards learned together do not all come due
on the same day.
"""

from __future__ import annotations
import math
import random
from datetime import datetime

from subdeck_core.fsrs.constants import DECAY, FACTOR, FUZZ_MIN_INTERVAL, FUZZ_RANGES


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def next_interval(
    stability: float,
    requested_retention: float,
    maximum_interval: int
) -> int:
    """
    Invert the forgetting curve to get the interval for a target retention.

    Formula: I = S / FACTOR * (retention^(1 / DECAY) - 1)

    With retention = 0.9 the interval equals the stability.

    Returns:
        Interval in whole days, clamped to [1, maximum_interval]
    """
    raw = stability / FACTOR * (requested_retention ** (1.0 / DECAY) - 1.0)
    return max(1, min(round_half_up(raw), maximum_interval))


def get_fuzz_range(
    interval: float,
    elapsed_days: int,
    maximum_interval: int
) -> tuple[int, int]:
    """
    Compute the inclusive [min, max] window a fuzzed interval may land in.

    The window grows with the interval (15% of the part between 2.5 and 7
    days, 10% between 7 and 20, 5% beyond 20, plus one day), never drops
    below 2 days, never exceeds the maximum interval, and never schedules a
    card before elapsed_days + 1 when the interval is longer than the time
    already elapsed.
    """
    delta = 1.0
    for start, end, factor in FUZZ_RANGES:
        delta += factor * max(min(interval, end) - start, 0.0)

    interval = min(interval, maximum_interval)
    min_ivl = max(2, round_half_up(interval - delta))
    max_ivl = min(round_half_up(interval + delta), maximum_interval)
    if interval > elapsed_days:
        min_ivl = max(min_ivl, elapsed_days + 1)
    min_ivl = min(min_ivl, max_ivl)
    return min_ivl, max_ivl


def fuzz_seed(card_id: str, now: datetime, reps: int) -> str:
    """
    Seed for the fuzz draw: fixed for a given card, review time and count.
    """
    return f"{card_id}:{now.isoformat()}:{reps}"


def apply_fuzz(
    interval: int,
    elapsed_days: int,
    maximum_interval: int,
    seed: str
) -> int:
    """
    Apply seeded jitter to an interval.

    Intervals below 2.5 days are returned unchanged.
    """
    if interval < FUZZ_MIN_INTERVAL:
        return interval

    min_ivl, max_ivl = get_fuzz_range(interval, elapsed_days, maximum_interval)
    fuzz_factor = random.Random(seed).random()
    fuzzed = int(fuzz_factor * (max_ivl - min_ivl + 1) + min_ivl)
    return max(1, min(fuzzed, max_ivl))
