"""Spaced-repetition scheduling with a retention bonus for replayed history."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

MIN_EASE_FACTOR = 1.3


class _RandomSource(Protocol):
    def random(self) -> float: ...


@dataclass(frozen=True)
class ReviewInput:
    """State before a review and the grade given.

    ``actual_days`` is the real time since the previous attempt; it only
    matters when replaying history, where it can earn a retention bonus.
    """

    current_interval: int
    current_ef: float
    repetitions: int
    grade: int
    actual_days: float = 0.0


@dataclass(frozen=True)
class ReviewOutput:
    """State after a review."""

    next_review_at: datetime
    interval: int
    ease_factor: float
    repetitions: int


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def calculate_next_review(
    review: ReviewInput,
    now: datetime | None = None,
    rng: _RandomSource | None = None,
) -> ReviewOutput:
    """Schedule the next review. Grades: 0 again, 1 hard, 2 good, 3 easy."""
    now = now if now is not None else datetime.now()

    if review.grade == 0:
        return ReviewOutput(
            next_review_at=now + timedelta(days=1),
            interval=1,
            ease_factor=max(MIN_EASE_FACTOR, review.current_ef - 0.2),
            repetitions=0,
        )

    miss = float(3 - review.grade)
    new_ef = review.current_ef + (0.1 - miss * (0.08 + miss * 0.02))
    new_ef = max(new_ef, MIN_EASE_FACTOR)

    repetitions = review.repetitions + 1

    if repetitions == 1:
        interval = 1
    elif repetitions == 2:
        interval = {1: 3, 2: 5, 3: 7}.get(review.grade, 4)
    else:
        modifier = {1: 0.8, 3: 1.1}.get(review.grade, 1.0)
        days = review.current_interval * new_ef * modifier

        if (
            review.actual_days > 0
            and review.grade >= 2
            and review.current_interval > 0
            and review.actual_days > review.current_interval * 1.5
        ):
            days = max(days, review.actual_days * 1.5)
            new_ef += 0.15

        interval = _round_half_away(days)

    if interval > 10:
        draw = rng.random() if rng is not None else random.random()
        interval = _round_half_away(interval * (0.95 + draw * 0.1))

    interval = max(interval, 1)

    return ReviewOutput(
        next_review_at=now + timedelta(days=interval),
        interval=interval,
        ease_factor=new_ef,
        repetitions=repetitions,
    )