"""Spaced-repetition scheduling for vocabulary card reviews."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from src.srs.errors import InvalidGrade
from src.srs.models import (
    DEFAULT_EASE_FACTOR,
    MIN_EASE_FACTOR,
    SUCCESS_THRESHOLD,
    ReviewButton,
    ReviewQuality,
    VocabularyCard,
    utcnow,
)


DEFAULT_MASTERY_REPETITIONS = 10
DEFAULT_MASTERY_ACCURACY = 0.95


@dataclass(slots=True)
class ReviewSchedule:
    """Calculated review data for a card after receiving a grade."""

    next_review_at: datetime
    easiness_factor: float
    interval: int
    repetition: int


def coerce_quality(value: object) -> ReviewQuality:
    """Return ``value`` as a ``ReviewQuality`` or raise ``InvalidGrade``."""
    if isinstance(value, ReviewQuality):
        return value
    if isinstance(value, ReviewButton):
        return value.quality
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidGrade(f"Review quality must be an integer between 0 and 5, got {value!r}.")
    try:
        return ReviewQuality(value)
    except ValueError as exc:
        raise InvalidGrade(f"Review quality must be between 0 and 5, got {value}.") from exc


def adjust_ease(easiness_factor: float, quality: int) -> float:
    """Apply the SM-2 ease update, never dropping below the floor."""
    penalty = 5 - quality
    easiness_factor += 0.1 - penalty * (0.08 + penalty * 0.02)
    return max(MIN_EASE_FACTOR, easiness_factor)


def calculate_next_schedule(
    *,
    quality: int,
    current_easiness: float,
    current_interval: int,
    current_repetition: int,
    now: datetime | None = None,
    max_interval_days: int | None = None,
) -> ReviewSchedule:
    """Return the next review schedule using the SM-2 algorithm."""
    if now is None:
        now = utcnow()

    easiness_factor = current_easiness or DEFAULT_EASE_FACTOR
    repetition = current_repetition or 0
    interval = max(0, current_interval or 0)

    if quality < SUCCESS_THRESHOLD:
        repetition = 0
        interval = 1
    else:
        repetition += 1
        if repetition == 1:
            interval = 1
        elif repetition == 2:
            interval = 6
        else:
            interval = max(1, round(interval * easiness_factor))

    easiness_factor = adjust_ease(easiness_factor, quality)

    if max_interval_days is not None and interval > max_interval_days:
        interval = max_interval_days

    return ReviewSchedule(
        next_review_at=now + timedelta(days=interval),
        easiness_factor=easiness_factor,
        interval=interval,
        repetition=repetition,
    )


class Scheduler:
    """Turns a graded review into the card's next scheduling state.

    ``update`` is pure: it returns a new card and never touches storage.
    Persisting the result is up to the caller.
    """

    def __init__(
        self,
        *,
        max_interval_days: Optional[int] = None,
        mastery_repetitions: int = DEFAULT_MASTERY_REPETITIONS,
        mastery_accuracy: float = DEFAULT_MASTERY_ACCURACY,
    ) -> None:
        if max_interval_days is not None and max_interval_days < 1:
            raise ValueError("max_interval_days must be a positive number of days.")
        self._max_interval_days = max_interval_days
        self._mastery_repetitions = mastery_repetitions
        self._mastery_accuracy = mastery_accuracy

    def update(
        self,
        card: VocabularyCard,
        quality: object,
        now: Optional[datetime] = None,
    ) -> VocabularyCard:
        grade = coerce_quality(quality)
        if now is None:
            now = utcnow()

        schedule = calculate_next_schedule(
            quality=int(grade),
            current_easiness=card.ease_factor,
            current_interval=card.interval_days,
            current_repetition=card.repetitions,
            now=now,
            max_interval_days=self._max_interval_days,
        )

        lapses = card.lapses
        successful_reviews = card.successful_reviews
        if grade.is_success:
            successful_reviews += 1
        else:
            lapses += 1

        updated = card.with_changes(
            ease_factor=schedule.easiness_factor,
            interval_days=schedule.interval,
            repetitions=schedule.repetition,
            lapses=lapses,
            due_at=schedule.next_review_at,
            last_reviewed_at=now,
            total_reviews=card.total_reviews + 1,
            successful_reviews=successful_reviews,
        )
        return updated.with_changes(mastered_at=self._mastery_stamp(updated, grade, now))

    def _mastery_stamp(
        self,
        card: VocabularyCard,
        grade: ReviewQuality,
        now: datetime,
    ) -> Optional[datetime]:
        if not grade.is_success:
            return None
        if card.mastered_at is not None:
            return card.mastered_at
        if card.repetitions >= self._mastery_repetitions and card.accuracy > self._mastery_accuracy:
            return now
        return None
