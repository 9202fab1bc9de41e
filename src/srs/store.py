"""Card store interface and the in-memory implementation."""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Optional

from src.srs.errors import InvariantViolation
from src.srs.models import MIN_EASE_FACTOR, Difficulty, VocabularyCard


LOGGER = logging.getLogger(__name__)


_COUNTER_FIELDS = ("interval_days", "repetitions", "lapses", "total_reviews", "successful_reviews")


def validate_card(card: VocabularyCard) -> None:
    """Raise ``InvariantViolation`` when ``card`` breaks a scheduling invariant."""
    problems: list[str] = []
    for name in _COUNTER_FIELDS:
        value = getattr(card, name)
        if isinstance(value, bool) or not isinstance(value, int):
            problems.append(f"{name} must be an integer, got {value!r}")
    if isinstance(card.ease_factor, bool) or not isinstance(card.ease_factor, (int, float)):
        problems.append(f"ease_factor must be a number, got {card.ease_factor!r}")
    if problems:
        raise InvariantViolation(f"Card {card.id!r} rejected: {'; '.join(problems)}.")

    if not card.id:
        problems.append("id is empty")
    if not card.front.strip() or not card.back.strip():
        problems.append("front and back text are required")
    if not isinstance(card.difficulty, Difficulty):
        problems.append(f"difficulty {card.difficulty!r} is not a Difficulty")
    if not math.isfinite(card.ease_factor) or card.ease_factor < MIN_EASE_FACTOR:
        problems.append(f"ease_factor {card.ease_factor} is below {MIN_EASE_FACTOR} or not finite")
    if card.interval_days < 0:
        problems.append(f"interval_days {card.interval_days} is negative")
    if card.repetitions < 0 or card.lapses < 0:
        problems.append("repetitions and lapses must not be negative")
    if card.repetitions >= 1 and card.interval_days < 1:
        problems.append("a card with repetitions must have an interval of at least one day")
    if card.total_reviews < 0 or not 0 <= card.successful_reviews <= card.total_reviews:
        problems.append("successful_reviews must be between 0 and total_reviews")
    if card.due_at.tzinfo is None:
        problems.append("due_at must be timezone-aware")
    if card.last_reviewed_at is not None:
        expected_due = card.last_reviewed_at + timedelta(days=card.interval_days)
        if card.due_at != expected_due:
            problems.append("due_at does not match last_reviewed_at + interval_days")

    if problems:
        raise InvariantViolation(f"Card {card.id!r} rejected: {'; '.join(problems)}.")


class CardStore(ABC):
    """
    Owner of every vocabulary card and its scheduling state.

    Implementations:
        - InMemoryCardStore: dictionary-backed, used by tests and short-lived tools.
        - SqlAlchemyCardStore: async SQLAlchemy persistence (``src.db.cards``).

    ``all`` and ``by_deck_tag`` return cards in insertion order. Re-inserting a
    known id keeps the card's original position.
    """

    @abstractmethod
    async def get(self, card_id: str) -> Optional[VocabularyCard]:
        """Return the card with ``card_id`` or ``None``."""

    @abstractmethod
    async def upsert(self, card: VocabularyCard) -> VocabularyCard:
        """Insert or replace ``card`` after validating it."""

    @abstractmethod
    async def all(self) -> list[VocabularyCard]:
        """Return every card in insertion order."""

    @abstractmethod
    async def by_deck_tag(self, tag: str) -> list[VocabularyCard]:
        """Return the cards whose source deck tag equals ``tag``."""

    @abstractmethod
    async def remove(self, card_id: str) -> bool:
        """Delete a card, returning whether it existed."""

    async def count(self) -> int:
        return len(await self.all())


class InMemoryCardStore(CardStore):
    """Card store keeping everything in a dictionary."""

    def __init__(self, cards: Optional[list[VocabularyCard]] = None) -> None:
        self._cards: dict[str, VocabularyCard] = {}
        for card in cards or []:
            validate_card(card)
            self._cards[card.id] = card

    async def get(self, card_id: str) -> Optional[VocabularyCard]:
        return self._cards.get(card_id)

    async def upsert(self, card: VocabularyCard) -> VocabularyCard:
        validate_card(card)
        if card.id not in self._cards:
            LOGGER.debug("Adding card %s (%s).", card.id, card.front)
        self._cards[card.id] = card
        return card

    async def all(self) -> list[VocabularyCard]:
        return list(self._cards.values())

    async def by_deck_tag(self, tag: str) -> list[VocabularyCard]:
        return [card for card in self._cards.values() if card.source == tag]

    async def remove(self, card_id: str) -> bool:
        return self._cards.pop(card_id, None) is not None

    async def count(self) -> int:
        return len(self._cards)
