"""
SM-5 spaced repetition scheduler.

This is a pure computation module with no I/O. The caller owns the
Difficulty Matrix: every call returns an updated copy and never mutates the
one it was given.

Reference: https://www.supermemo.com/en/archives1990-2015/english/ol/sm5
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, NamedTuple

from reprise.domain.constants import (
    DEFAULT_EASINESS_FACTOR,
    HINT_QUALITIES,
    INITIAL_OPTIMAL_FACTOR,
    LEARNING_FRACTION,
    MAX_QUALITY,
    MIN_EASINESS_FACTOR,
    MIN_QUALITY,
    PASSING_QUALITY,
)
from reprise.domain.errors import InvalidArgument
from reprise.domain.matrix import DifficultyMatrix
from reprise.domain.models import CardProperties

logger = logging.getLogger(__name__)


class ScheduleResult(NamedTuple):
    next_interval: float
    next_repetitions: int
    next_easiness_factor: float
    next_matrix: DifficultyMatrix


@dataclass(frozen=True)
class ReviewOutcome:
    """Everything a Score action writes back, plus the matrix to commit."""

    properties: CardProperties
    matrix: DifficultyMatrix

    @property
    def updates(self) -> dict[str, Any]:
        return self.properties.to_mapping()


def round2(value: float) -> float:
    """Round to two decimals, halves rounding up."""
    return math.floor(value * 100 + 0.5) / 100


def validate_quality(quality: Any) -> int:
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidArgument(f"Quality must be an integer 0-5, got {quality!r}")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidArgument(f"Quality must be 0-5, got {quality}")
    return quality


def next_easiness_factor(easiness_factor: float, quality: int) -> float:
    # EF' = EF + (0.1 - (5-q) * (0.08 + (5-q) * 0.02)), floored at 1.3
    miss = MAX_QUALITY - quality
    ef = easiness_factor + (0.1 - miss * (0.08 + miss * 0.02))
    return max(ef, MIN_EASINESS_FACTOR)


def optimal_factor(matrix: DifficultyMatrix, repetitions: int, easiness_factor: float) -> float:
    """Matrix entry at (n, ef), else 4 for the first repetition and EF afterwards."""
    of = matrix.lookup(repetitions, easiness_factor)
    if of is not None:
        return of
    if repetitions <= 1:
        return INITIAL_OPTIMAL_FACTOR
    return easiness_factor


def next_matrix(
    matrix: DifficultyMatrix,
    repetitions: int,
    quality: int,
    easiness_factor: float,
    fraction: float = LEARNING_FRACTION,
) -> DifficultyMatrix:
    of = optimal_factor(matrix, repetitions, easiness_factor)
    adjusted = of * (0.72 + quality * 0.07)
    blended = (1 - fraction) * of + fraction * adjusted
    return matrix.with_entry(repetitions, easiness_factor, round2(blended))


def interval(repetitions: int, easiness_factor: float, matrix: DifficultyMatrix) -> float:
    """
    I(1) = OF(1, EF); I(n) = OF(n, EF) * I(n-1).

    Accumulated from n=1 upward. Each factor is multiplied in on the left so
    the float result matches the recursive definition exactly.
    """
    product = optimal_factor(matrix, 1, easiness_factor)
    for n in range(2, repetitions + 1):
        product = optimal_factor(matrix, n, easiness_factor) * product
    return product


def compute_next(
    last_interval: float | None,
    repetitions: int,
    easiness_factor: float | None,
    quality: int,
    matrix: DifficultyMatrix,
) -> ScheduleResult:
    """
    Compute the next schedule for an item.

    Args:
        last_interval: Previous interval in days; None or <= 0 counts as 1.
        repetitions: Consecutive successful reviews so far.
        easiness_factor: Current EF; None counts as 2.5.
        quality: Recall quality 0-5. Below 3 means the item was forgotten.
        matrix: Current Difficulty Matrix. Not modified.

    Returns:
        ScheduleResult(next_interval, next_repetitions, next_easiness_factor, next_matrix).
        A forgotten item gets interval -1 and repetitions 1.

    Raises:
        InvalidArgument: quality is not an integer in 0..5.
    """
    quality = validate_quality(quality)
    ef = DEFAULT_EASINESS_FACTOR if easiness_factor is None else easiness_factor
    # Only traced: intervals come from the optimal factor chain.
    last_interval = 1 if last_interval is None or last_interval <= 0 else last_interval

    new_ef = next_easiness_factor(ef, quality)
    new_matrix = next_matrix(matrix, repetitions, quality, ef)
    raw_interval = interval(repetitions, new_ef, new_matrix)

    logger.debug(
        f"[sm5] q={quality} n={repetitions} ef={ef} last={last_interval} "
        f"-> ef'={new_ef} raw_interval={raw_interval}"
    )

    if quality < PASSING_QUALITY:
        return ScheduleResult(-1, 1, new_ef, new_matrix)
    return ScheduleResult(round2(raw_interval), repetitions + 1, round2(new_ef), new_matrix)


def schedule_review(
    properties: CardProperties,
    quality: int,
    matrix: DifficultyMatrix,
    now: datetime,
) -> ReviewOutcome:
    """Run the scheduler for an item and build the property set to write back."""
    result = compute_next(
        properties.last_interval,
        properties.repetitions,
        properties.easiness_factor,
        quality,
        matrix,
    )
    clamped = max(result.next_interval, 0)
    updated = CardProperties(
        last_interval=result.next_interval,
        repetitions=result.next_repetitions,
        easiness_factor=result.next_easiness_factor,
        last_reviewed_at=now,
        next_scheduled_at=now + timedelta(days=clamped),
        last_score=quality,
    )
    return ReviewOutcome(properties=updated, matrix=result.next_matrix)


def preview_intervals(
    properties: CardProperties,
    matrix: DifficultyMatrix,
    qualities: tuple[int, ...] = HINT_QUALITIES,
) -> dict[int, int]:
    """Whole days until the next review for each candidate score. Never commits."""
    hints: dict[int, int] = {}
    for quality in qualities:
        result = compute_next(
            properties.last_interval,
            properties.repetitions,
            properties.easiness_factor,
            quality,
            matrix,
        )
        hints[quality] = math.floor(max(result.next_interval, 0) + 0.5)
    return hints
