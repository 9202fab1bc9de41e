"""Due queue: the ordered view of cards that need a review right now."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from src.srs.decks import DeckFilter, cards_in_deck, resolve_deck
from src.srs.models import VocabularyCard, utcnow
from src.srs.store import CardStore


class DueQueue:
    """Recomputes the due cards from the store on every query.

    Cards are ordered by ``due_at`` with the most overdue first. Cards due at
    the same instant keep the store's insertion order.
    """

    def __init__(self, store: CardStore, *, skip_mastered: bool = False) -> None:
        self._store = store
        self._skip_mastered = skip_mastered

    async def due_cards(
        self,
        at_time: Optional[datetime] = None,
        deck: DeckFilter = None,
    ) -> list[VocabularyCard]:
        if at_time is None:
            at_time = utcnow()

        cards = await cards_in_deck(self._store, resolve_deck(deck))
        due = [
            card
            for card in cards
            if card.due_at <= at_time and not (self._skip_mastered and card.is_mastered)
        ]
        # list.sort is stable, so equal due_at values stay in insertion order.
        due.sort(key=lambda card: card.due_at)
        return due

    async def due_now(
        self,
        at_time: Optional[datetime] = None,
        deck: DeckFilter = None,
    ) -> list[str]:
        """Return the ids of the cards due at ``at_time``."""
        return [card.id for card in await self.due_cards(at_time, deck)]

    async def next_due(
        self,
        at_time: Optional[datetime] = None,
        deck: DeckFilter = None,
    ) -> Optional[VocabularyCard]:
        due = await self.due_cards(at_time, deck)
        return due[0] if due else None
