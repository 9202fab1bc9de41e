"""Deck filters and per-deck aggregation over the card store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

from src.srs.errors import InvalidDeck
from src.srs.models import Difficulty, VocabularyCard, utcnow
from src.srs.store import CardStore


ALL_DECK = "all"
SOURCE_PREFIX = "source:"
DIFFICULTY_PREFIX = "difficulty:"


@dataclass(frozen=True)
class Deck:
    """A named predicate over card tags."""

    name: str
    predicate: Callable[[VocabularyCard], bool]
    source_tag: Optional[str] = None

    def matches(self, card: VocabularyCard) -> bool:
        return self.predicate(card)

    @classmethod
    def all(cls) -> "Deck":
        return cls(ALL_DECK, lambda card: True)

    @classmethod
    def by_source(cls, source: str) -> "Deck":
        return cls(f"{SOURCE_PREFIX}{source}", lambda card: card.source == source, source_tag=source)

    @classmethod
    def by_difficulty(cls, difficulty: "str | Difficulty") -> "Deck":
        try:
            level = Difficulty.parse(difficulty)
        except ValueError as exc:
            raise InvalidDeck(f"Unknown deck difficulty: {difficulty!r}") from exc
        return cls(f"{DIFFICULTY_PREFIX}{level.value}", lambda card: card.difficulty is level)


DeckFilter = Union[Deck, str, None]


def resolve_deck(deck: DeckFilter) -> Deck:
    """Turn a deck filter string from the UI into a ``Deck``.

    Accepted forms: ``"all"``, ``"source:<tag>"``, ``"difficulty:<level>"``.
    A bare difficulty name selects that difficulty, any other bare string is
    treated as a source tag.
    """
    if deck is None:
        return Deck.all()
    if isinstance(deck, Deck):
        return deck

    tag = deck.strip()
    if not tag or tag == ALL_DECK:
        return Deck.all()
    if tag.startswith(SOURCE_PREFIX):
        return Deck.by_source(tag[len(SOURCE_PREFIX):])
    if tag.startswith(DIFFICULTY_PREFIX):
        return Deck.by_difficulty(tag[len(DIFFICULTY_PREFIX):])
    if tag.lower() in {level.value for level in Difficulty}:
        return Deck.by_difficulty(tag)
    return Deck.by_source(tag)


async def cards_in_deck(store: CardStore, deck: Deck) -> list[VocabularyCard]:
    """Return the deck's cards in insertion order."""
    if deck.source_tag is not None:
        return await store.by_deck_tag(deck.source_tag)
    return [card for card in await store.all() if deck.matches(card)]


@dataclass(slots=True)
class DeckSummary:
    """Totals shown for one deck on the dashboard."""

    name: str
    total: int
    due: int


class DeckIndex:
    """Per-deck counts computed straight from the card store."""

    def __init__(self, store: CardStore) -> None:
        self._store = store

    async def count(self, deck: DeckFilter = None) -> int:
        return len(await cards_in_deck(self._store, resolve_deck(deck)))

    async def due_count(self, deck: DeckFilter = None, at_time: Optional[datetime] = None) -> int:
        if at_time is None:
            at_time = utcnow()
        cards = await cards_in_deck(self._store, resolve_deck(deck))
        return sum(1 for card in cards if card.due_at <= at_time)

    async def summary(self, at_time: Optional[datetime] = None) -> list[DeckSummary]:
        """Return totals for ``all``, every source and every difficulty in use."""
        if at_time is None:
            at_time = utcnow()
        cards = await self._store.all()

        decks = [Deck.all()]
        decks.extend(Deck.by_source(source) for source in sorted({card.source for card in cards}))
        decks.extend(
            Deck.by_difficulty(level)
            for level in Difficulty
            if any(card.difficulty is level for card in cards)
        )

        summaries: list[DeckSummary] = []
        for deck in decks:
            members = [card for card in cards if deck.matches(card)]
            summaries.append(
                DeckSummary(
                    name=deck.name,
                    total=len(members),
                    due=sum(1 for card in members if card.due_at <= at_time),
                )
            )
        return summaries
