"""Value types shared by the spaced-repetition engine."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Optional


DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
SUCCESS_THRESHOLD = 3

SOURCE_DAILY = "daily"
SOURCE_SONG = "song"
SOURCE_LESSON = "lesson"


class Difficulty(str, Enum):
    """Difficulty tag attached to every card."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, value: "str | Difficulty") -> "Difficulty":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown difficulty: {value!r}") from exc


class ReviewQuality(IntEnum):
    """Recall grades on the 0..5 scale used by the scheduler."""

    COMPLETE_BLACKOUT = 0
    INCORRECT_BUT_REMEMBERED = 1
    CORRECT_WITH_DIFFICULTY = 2
    CORRECT_WITH_HESITATION = 3
    GOOD = 4
    PERFECT = 5

    @property
    def is_success(self) -> bool:
        return self.value >= SUCCESS_THRESHOLD


class ReviewButton(str, Enum):
    """The four grading buttons offered by the review screen."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @property
    def quality(self) -> ReviewQuality:
        return _BUTTON_QUALITY[self]


_BUTTON_QUALITY = {
    ReviewButton.AGAIN: ReviewQuality.COMPLETE_BLACKOUT,
    ReviewButton.HARD: ReviewQuality.CORRECT_WITH_HESITATION,
    ReviewButton.GOOD: ReviewQuality.GOOD,
    ReviewButton.EASY: ReviewQuality.PERFECT,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def content_key(front: str, back: str) -> tuple[str, str]:
    """Key used to detect two cards teaching the same word."""
    return front.strip().casefold(), back.strip().casefold()


@dataclass(frozen=True, slots=True)
class VocabularyCard:
    """A vocabulary item together with its scheduling state."""

    front: str
    back: str
    due_at: datetime
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    pronunciation: Optional[str] = None
    example: Optional[str] = None
    difficulty: Difficulty = Difficulty.MEDIUM
    source: str = SOURCE_DAILY
    topic: Optional[str] = None
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval_days: int = 0
    repetitions: int = 0
    lapses: int = 0
    last_reviewed_at: Optional[datetime] = None
    total_reviews: int = 0
    successful_reviews: int = 0
    mastered_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        front: str,
        back: str,
        *,
        now: Optional[datetime] = None,
        **details: object,
    ) -> "VocabularyCard":
        """Build a never-reviewed card that is due immediately."""
        if now is None:
            now = utcnow()
        return cls(front=front.strip(), back=back.strip(), due_at=now, **details)

    @property
    def accuracy(self) -> float:
        if not self.total_reviews:
            return 0.0
        return self.successful_reviews / self.total_reviews

    @property
    def is_new(self) -> bool:
        return self.last_reviewed_at is None

    @property
    def is_mastered(self) -> bool:
        return self.mastered_at is not None

    @property
    def content_key(self) -> tuple[str, str]:
        return content_key(self.front, self.back)

    @property
    def tags(self) -> frozenset[str]:
        tags = {self.source, self.difficulty.value}
        if self.topic:
            tags.add(self.topic)
        return frozenset(tags)

    def with_changes(self, **changes: object) -> "VocabularyCard":
        return replace(self, **changes)


@dataclass(slots=True)
class CardDraft:
    """Card content that has not been scheduled yet."""

    front: str
    back: str
    pronunciation: Optional[str] = None
    example: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Difficulty = Difficulty.MEDIUM
    source: str = SOURCE_DAILY

    @property
    def content_key(self) -> tuple[str, str]:
        return content_key(self.front, self.back)

    def to_card(self, now: Optional[datetime] = None) -> VocabularyCard:
        return VocabularyCard.create(
            self.front,
            self.back,
            now=now,
            pronunciation=self.pronunciation,
            example=self.example,
            topic=self.topic,
            difficulty=self.difficulty,
            source=self.source,
        )
