"""SuperMemo-2 scheduling.

Quality ratings run from 0 (total blackout) to 5 (perfect recall):

- quality < 3 is a failed recall: the interval resets to 0 (review again
  today) and the ease factor is left untouched.
- quality >= 3 is a successful recall: the interval grows 0 -> 1 -> 6 days,
  then by ``interval * ease_factor``; the ease factor moves by
  ``0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)`` and never drops below 1.3.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from recall.schemas.flashcards import MIN_EASE_FACTOR

MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3

FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6


@dataclass(frozen=True)
class SM2Result:
    interval: int
    ease_factor: float
    next_review_at: datetime


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def next_interval(current_interval: int, current_ease: float) -> int:
    if current_interval == 0:
        return FIRST_INTERVAL_DAYS
    if current_interval == 1:
        return SECOND_INTERVAL_DAYS
    return _round_half_up(current_interval * current_ease)


def next_ease_factor(current_ease: float, quality: int) -> float:
    miss = MAX_QUALITY - quality
    ease = current_ease + (0.1 - miss * (0.08 + miss * 0.02))
    # rounded to 2 decimals so repeated reviews do not accumulate float drift
    return round(max(MIN_EASE_FACTOR, ease), 2)


def compute(current_interval: int, current_ease: float, quality: int, now: datetime) -> SM2Result:
    """Compute the next interval, ease factor and due date for one review.

    :param current_interval: days since the previous review was scheduled (>= 0)
    :param current_ease: current ease factor
    :param quality: recall quality, 0..5
    :param now: review time; the due date is ``now + interval days``
    :raises ValueError: on a quality outside 0..5 or a negative interval
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise ValueError(f"quality must be an integer, got {quality!r}")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise ValueError(f"quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}")
    if current_interval < 0:
        raise ValueError(f"interval must be >= 0, got {current_interval}")

    if quality < PASSING_QUALITY:
        interval = 0
        ease = current_ease
    else:
        interval = next_interval(current_interval, current_ease)
        ease = next_ease_factor(current_ease, quality)

    return SM2Result(
        interval=interval,
        ease_factor=ease,
        next_review_at=now + timedelta(days=interval),
    )
