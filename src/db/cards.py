"""SQLAlchemy-backed card store."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.srs.errors import PersistenceFailure
from src.srs.models import Difficulty, VocabularyCard
from src.srs.store import CardStore, validate_card

from . import CardRecord


LOGGER = logging.getLogger(__name__)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _record_values(card: VocabularyCard) -> dict[str, object]:
    return {
        "front": card.front,
        "back": card.back,
        "pronunciation": card.pronunciation,
        "example": card.example,
        "difficulty": card.difficulty.value,
        "source": card.source,
        "topic": card.topic,
        "ease_factor": card.ease_factor,
        "interval_days": card.interval_days,
        "repetitions": card.repetitions,
        "lapses": card.lapses,
        "due_at": _as_utc(card.due_at),
        "last_reviewed_at": _as_utc(card.last_reviewed_at),
        "total_reviews": card.total_reviews,
        "successful_reviews": card.successful_reviews,
        "mastered_at": _as_utc(card.mastered_at),
    }


def _to_card(record: CardRecord) -> VocabularyCard:
    return VocabularyCard(
        id=record.card_id,
        front=record.front,
        back=record.back,
        pronunciation=record.pronunciation,
        example=record.example,
        difficulty=Difficulty(record.difficulty),
        source=record.source,
        topic=record.topic,
        ease_factor=record.ease_factor,
        interval_days=record.interval_days,
        repetitions=record.repetitions,
        lapses=record.lapses,
        due_at=_as_utc(record.due_at),
        last_reviewed_at=_as_utc(record.last_reviewed_at),
        total_reviews=record.total_reviews,
        successful_reviews=record.successful_reviews,
        mastered_at=_as_utc(record.mastered_at),
    )


class SqlAlchemyCardStore(CardStore):
    """Card store persisting to the ``vocabulary_cards`` table.

    Every call runs in its own transaction. Database errors surface as
    ``PersistenceFailure`` so callers never advance past an unsaved review.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, action: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as exc:
            LOGGER.exception("Card store failed to %s.", action)
            raise PersistenceFailure(f"Card store failed to {action}.") from exc

    async def get(self, card_id: str) -> Optional[VocabularyCard]:
        async with self._transaction(f"load card {card_id}") as session:
            record = await session.scalar(select(CardRecord).where(CardRecord.card_id == card_id))
            return _to_card(record) if record is not None else None

    async def upsert(self, card: VocabularyCard) -> VocabularyCard:
        validate_card(card)
        values = _record_values(card)
        async with self._transaction(f"save card {card.id}") as session:
            record = await session.scalar(select(CardRecord).where(CardRecord.card_id == card.id))
            if record is None:
                session.add(CardRecord(card_id=card.id, **values))
            else:
                for name, value in values.items():
                    setattr(record, name, value)
            await session.flush()
        return card

    async def all(self) -> list[VocabularyCard]:
        async with self._transaction("list cards") as session:
            result = await session.execute(select(CardRecord).order_by(CardRecord.id))
            return [_to_card(record) for record in result.scalars()]

    async def by_deck_tag(self, tag: str) -> list[VocabularyCard]:
        async with self._transaction(f"list deck {tag}") as session:
            result = await session.execute(
                select(CardRecord).where(CardRecord.source == tag).order_by(CardRecord.id)
            )
            return [_to_card(record) for record in result.scalars()]

    async def remove(self, card_id: str) -> bool:
        async with self._transaction(f"remove card {card_id}") as session:
            result = await session.execute(delete(CardRecord).where(CardRecord.card_id == card_id))
            return bool(result.rowcount)

    async def count(self) -> int:
        async with self._transaction("count cards") as session:
            total = await session.scalar(select(func.count()).select_from(CardRecord))
            return int(total or 0)
