"""Aggregate learning statistics over a collection of cards."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

from src.srs.models import VocabularyCard, utcnow


VELOCITY_WINDOW_DAYS = 7
TOPIC_RANKING_SIZE = 3


@dataclass(slots=True)
class LearningStatistics:
    """Dashboard numbers describing the learner's whole collection."""

    total_cards: int
    active_cards: int
    mastered_cards: int
    due_now: int
    average_accuracy: float
    learning_velocity: float
    streak_days: int = 0
    weakest_topics: list[str] = field(default_factory=list)
    strongest_topics: list[str] = field(default_factory=list)


@dataclass(slots=True)
class TopicPerformance:
    """Review performance of the cards sharing one tag."""

    tag: str
    cards: int = 0
    reviews: int = 0
    lapses: int = 0
    ease_total: float = 0.0

    @property
    def lapse_rate(self) -> float:
        if not self.reviews:
            return 0.0
        return self.lapses / self.reviews

    @property
    def average_ease(self) -> float:
        if not self.cards:
            return 0.0
        return self.ease_total / self.cards


def topic_of(card: VocabularyCard) -> str:
    return card.topic or card.source


def topic_performance(cards: Iterable[VocabularyCard], tags: Iterable[str]) -> dict[str, TopicPerformance]:
    """Collect lapse and ease figures for each of ``tags``."""
    wanted = set(tags)
    performance = {tag: TopicPerformance(tag) for tag in wanted}
    for card in cards:
        for tag in card.tags & wanted:
            entry = performance[tag]
            entry.cards += 1
            entry.reviews += card.total_reviews
            entry.lapses += card.lapses
            entry.ease_total += card.ease_factor
    return performance


def rank_weak_topics(cards: Iterable[VocabularyCard], topics: Iterable[str]) -> list[str]:
    """Order ``topics`` from weakest to strongest.

    Topics without any card come first, then higher lapse rate, then lower
    average ease. Remaining ties keep alphabetical order.
    """
    performance = topic_performance(cards, topics)
    return sorted(
        performance,
        key=lambda tag: (
            performance[tag].cards > 0,
            -performance[tag].lapse_rate,
            performance[tag].average_ease,
            tag,
        ),
    )


def practice_streak(cards: Iterable[VocabularyCard], now: Optional[datetime] = None) -> int:
    """Count consecutive UTC days with at least one review, ending at ``now``.

    A streak without a review today still counts while yesterday was a
    practice day. Only each card's latest review is known, so older days
    are seen through the cards last reviewed on them.
    """
    if now is None:
        now = utcnow()
    practice_days: set[date] = {
        card.last_reviewed_at.astimezone(timezone.utc).date()
        for card in cards
        if card.last_reviewed_at is not None
    }
    day = now.astimezone(timezone.utc).date()
    if day not in practice_days:
        day -= timedelta(days=1)

    streak = 0
    while day in practice_days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def compute_statistics(
    cards: Iterable[VocabularyCard],
    now: Optional[datetime] = None,
) -> LearningStatistics:
    if now is None:
        now = utcnow()
    cards = list(cards)

    mastered = [card for card in cards if card.is_mastered]
    window_start = now - timedelta(days=VELOCITY_WINDOW_DAYS)
    recently_mastered = [card for card in mastered if card.mastered_at >= window_start]

    average_accuracy = 0.0
    if cards:
        average_accuracy = sum(card.accuracy for card in cards) / len(cards)

    accuracy_by_topic: dict[str, list[float]] = defaultdict(list)
    for card in cards:
        if card.total_reviews:
            accuracy_by_topic[topic_of(card)].append(card.accuracy)
    topic_means = {topic: sum(values) / len(values) for topic, values in accuracy_by_topic.items()}
    ascending = sorted(topic_means, key=lambda topic: (topic_means[topic], topic))
    descending = sorted(topic_means, key=lambda topic: (-topic_means[topic], topic))

    return LearningStatistics(
        total_cards=len(cards),
        active_cards=len(cards) - len(mastered),
        mastered_cards=len(mastered),
        due_now=sum(1 for card in cards if card.due_at <= now),
        average_accuracy=average_accuracy,
        learning_velocity=len(recently_mastered) / VELOCITY_WINDOW_DAYS,
        streak_days=practice_streak(cards, now),
        weakest_topics=ascending[:TOPIC_RANKING_SIZE],
        strongest_topics=descending[:TOPIC_RANKING_SIZE],
    )
