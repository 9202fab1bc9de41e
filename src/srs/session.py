"""Review session state machine driving the scheduler and the card store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from src.srs.decks import DeckFilter, resolve_deck
from src.srs.errors import PersistenceFailure, SessionProtocolError
from src.srs.models import VocabularyCard, utcnow
from src.srs.queue import DueQueue
from src.srs.scheduler import Scheduler, coerce_quality
from src.srs.store import CardStore


LOGGER = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    PRESENTING = "presenting"
    REVEALED = "revealed"
    COMPLETE = "complete"


@dataclass(frozen=True, slots=True)
class SessionSummary:
    """Read-only statistics for the results screen."""

    reviewed: int
    correct: int

    @property
    def accuracy(self) -> float:
        if not self.reviewed:
            return 0.0
        return self.correct / self.reviewed


class ReviewSession:
    """One sitting over a snapshot of the cards due when it started.

    The session walks ``PRESENTING -> REVEALED`` for every card and ends in
    ``COMPLETE`` once the snapshot is exhausted. Calls made out of that order
    raise ``SessionProtocolError`` and leave the session untouched. Each grade
    is persisted on its own; abandoning a session keeps already graded cards.
    """

    def __init__(
        self,
        store: CardStore,
        scheduler: Scheduler,
        queue: Optional[DueQueue] = None,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._queue = queue or DueQueue(store)
        self._reset()

    def _reset(self) -> None:
        self._state = SessionState.IDLE
        self._deck_name: Optional[str] = None
        self._order: list[VocabularyCard] = []
        self._cursor = 0
        self._current: Optional[VocabularyCard] = None
        self._reviewed = 0
        self._correct = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def deck_name(self) -> Optional[str]:
        return self._deck_name

    @property
    def current_card(self) -> Optional[VocabularyCard]:
        return self._current

    @property
    def snapshot(self) -> tuple[str, ...]:
        return tuple(card.id for card in self._order)

    @property
    def remaining(self) -> int:
        """Cards left in the snapshot, including the one on screen."""
        return len(self._order) - self._cursor

    @property
    def reviewed(self) -> int:
        return self._reviewed

    @property
    def correct(self) -> int:
        return self._correct

    @property
    def summary(self) -> SessionSummary:
        return SessionSummary(reviewed=self._reviewed, correct=self._correct)

    async def start(self, deck: DeckFilter = None, now: Optional[datetime] = None) -> SessionState:
        """Snapshot the due cards of ``deck`` and present the first one."""
        if self._state in (SessionState.PRESENTING, SessionState.REVEALED):
            raise SessionProtocolError("A review session is already in progress; abandon it first.")
        if now is None:
            now = utcnow()

        resolved = resolve_deck(deck)
        order = await self._queue.due_cards(now, resolved)

        self._reset()
        self._deck_name = resolved.name
        self._order = order
        LOGGER.info("Starting review session on deck %s with %s due cards.", resolved.name, len(order))
        self._present_current()
        return self._state

    def reveal(self) -> VocabularyCard:
        """Disclose the back of the current card."""
        if self._state is not SessionState.PRESENTING or self._current is None:
            raise SessionProtocolError(f"Cannot reveal a card while the session is {self._state.value}.")
        self._state = SessionState.REVEALED
        return self._current

    async def grade(self, quality: object, now: Optional[datetime] = None) -> Optional[VocabularyCard]:
        """Schedule and persist the revealed card, then move to the next one.

        Returns the updated card, or ``None`` when the card disappeared from
        the store during the session. Invalid grades and persistence failures
        leave the session on the same revealed card.
        """
        if self._state is not SessionState.REVEALED or self._current is None:
            raise SessionProtocolError(f"Cannot grade a card while the session is {self._state.value}.")

        grade = coerce_quality(quality)
        if now is None:
            now = utcnow()

        card = await self._store.get(self._current.id)
        if card is None:
            LOGGER.warning("Card %s was removed during the session; skipping it.", self._current.id)
            self._advance()
            return None

        updated = self._scheduler.update(card, grade, now)
        try:
            await self._store.upsert(updated)
        except PersistenceFailure:
            LOGGER.warning("Could not persist the review of card %s; the session stays on it.", card.id)
            raise

        self._reviewed += 1
        if grade.is_success:
            self._correct += 1
        LOGGER.debug(
            "Card %s graded %s; next review in %s days.",
            updated.id,
            int(grade),
            updated.interval_days,
        )
        self._advance()
        return updated

    def abandon(self) -> SessionSummary:
        """Drop the session, returning the statistics it had gathered."""
        summary = self.summary
        if self._state is not SessionState.IDLE:
            LOGGER.info("Review session abandoned after %s reviews.", summary.reviewed)
        self._reset()
        return summary

    def _advance(self) -> None:
        self._cursor += 1
        self._present_current()

    def _present_current(self) -> None:
        if self._cursor < len(self._order):
            self._current = self._order[self._cursor]
            self._state = SessionState.PRESENTING
            return

        self._current = None
        self._state = SessionState.COMPLETE
        if self._order:
            LOGGER.info(
                "Review session complete: %s reviewed, %s correct.",
                self._reviewed,
                self._correct,
            )
