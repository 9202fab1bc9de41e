from __future__ import annotations

from datetime import timedelta

import pytest

from src.srs import (
    InMemoryCardStore,
    InvalidGrade,
    PersistenceFailure,
    ReviewButton,
    ReviewQuality,
    ReviewSession,
    Scheduler,
    SessionProtocolError,
    SessionState,
    SwipeDirection,
    VocabularyCard,
    grade_from_button,
    grade_from_swipe,
)


class _FlakyStore(InMemoryCardStore):
    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False

    async def upsert(self, card: VocabularyCard) -> VocabularyCard:
        if self.fail_writes:
            raise PersistenceFailure("disk unavailable")
        return await super().upsert(card)


async def _seed(store, now, *fronts: str, source: str = "daily") -> list[VocabularyCard]:
    cards = []
    for offset, front in enumerate(fronts):
        card = VocabularyCard(
            front=front,
            back=f"{front} (en)",
            due_at=now - timedelta(minutes=len(fronts) - offset),
            source=source,
        )
        await store.upsert(card)
        cards.append(card)
    return cards


@pytest.mark.asyncio
async def test_empty_queue_completes_immediately(memory_store, now) -> None:
    session = ReviewSession(memory_store, Scheduler())

    state = await session.start(now=now)

    assert state is SessionState.COMPLETE
    assert session.reviewed == 0
    assert session.current_card is None
    assert session.summary.accuracy == 0.0


@pytest.mark.asyncio
async def test_session_walks_through_the_snapshot(memory_store, now) -> None:
    cards = await _seed(memory_store, now, "hola", "adiós", "gracias")
    session = ReviewSession(memory_store, Scheduler())

    assert session.state is SessionState.IDLE
    await session.start(now=now)
    assert session.snapshot == tuple(card.id for card in cards)

    grades = [ReviewQuality.GOOD, ReviewQuality.COMPLETE_BLACKOUT, ReviewQuality.PERFECT]
    for card, grade in zip(cards, grades):
        assert session.state is SessionState.PRESENTING
        assert session.current_card.id == card.id
        revealed = session.reveal()
        assert revealed.back == card.back
        assert session.state is SessionState.REVEALED
        updated = await session.grade(grade, now=now)
        assert updated.total_reviews == 1

    assert session.state is SessionState.COMPLETE
    assert session.summary.reviewed == 3
    assert session.summary.correct == 2
    assert session.summary.accuracy == pytest.approx(2 / 3)

    stored = await memory_store.get(cards[1].id)
    assert stored.lapses == 1
    assert stored.due_at == now + timedelta(days=1)


@pytest.mark.asyncio
async def test_grading_before_reveal_is_rejected(memory_store, now) -> None:
    await _seed(memory_store, now, "hola")
    session = ReviewSession(memory_store, Scheduler())
    await session.start(now=now)
    current = session.current_card

    with pytest.raises(SessionProtocolError):
        await session.grade(ReviewQuality.GOOD, now=now)

    assert session.state is SessionState.PRESENTING
    assert session.current_card == current
    assert session.reviewed == 0
    assert (await memory_store.get(current.id)).total_reviews == 0


@pytest.mark.asyncio
async def test_revealing_twice_is_rejected(memory_store, now) -> None:
    await _seed(memory_store, now, "hola")
    session = ReviewSession(memory_store, Scheduler())
    await session.start(now=now)
    session.reveal()

    with pytest.raises(SessionProtocolError):
        session.reveal()

    assert session.state is SessionState.REVEALED


@pytest.mark.asyncio
async def test_calls_outside_a_session_are_rejected(memory_store) -> None:
    session = ReviewSession(memory_store, Scheduler())

    with pytest.raises(SessionProtocolError):
        session.reveal()
    with pytest.raises(SessionProtocolError):
        await session.grade(ReviewQuality.GOOD)


@pytest.mark.asyncio
async def test_invalid_grade_leaves_card_revealed(memory_store, now) -> None:
    await _seed(memory_store, now, "hola")
    session = ReviewSession(memory_store, Scheduler())
    await session.start(now=now)
    session.reveal()

    with pytest.raises(InvalidGrade):
        await session.grade(9, now=now)

    assert session.state is SessionState.REVEALED
    assert session.reviewed == 0
    await session.grade(ReviewQuality.GOOD, now=now)
    assert session.state is SessionState.COMPLETE


@pytest.mark.asyncio
async def test_persistence_failure_does_not_advance(now) -> None:
    store = _FlakyStore()
    cards = await _seed(store, now, "hola", "adiós")
    session = ReviewSession(store, Scheduler())
    await session.start(now=now)
    session.reveal()

    store.fail_writes = True
    with pytest.raises(PersistenceFailure):
        await session.grade(ReviewQuality.GOOD, now=now)

    assert session.state is SessionState.REVEALED
    assert session.current_card.id == cards[0].id
    assert session.reviewed == 0
    assert (await store.get(cards[0].id)).repetitions == 0

    store.fail_writes = False
    await session.grade(ReviewQuality.GOOD, now=now)

    assert session.current_card.id == cards[1].id
    assert session.reviewed == 1
    assert (await store.get(cards[0].id)).repetitions == 1


@pytest.mark.asyncio
async def test_abandon_keeps_graded_cards(memory_store, now) -> None:
    cards = await _seed(memory_store, now, "hola", "adiós")
    session = ReviewSession(memory_store, Scheduler())
    await session.start(now=now)
    session.reveal()
    await session.grade(ReviewQuality.PERFECT, now=now)

    summary = session.abandon()

    assert summary.reviewed == 1
    assert session.state is SessionState.IDLE
    assert session.reviewed == 0
    assert (await memory_store.get(cards[0].id)).repetitions == 1
    assert (await memory_store.get(cards[1].id)).repetitions == 0


@pytest.mark.asyncio
async def test_start_requires_finishing_the_current_session(memory_store, now) -> None:
    await _seed(memory_store, now, "hola")
    session = ReviewSession(memory_store, Scheduler())
    await session.start(now=now)

    with pytest.raises(SessionProtocolError):
        await session.start(now=now)

    session.reveal()
    await session.grade(ReviewQuality.GOOD, now=now)
    assert await session.start(now=now) is SessionState.COMPLETE


@pytest.mark.asyncio
async def test_session_only_reviews_the_selected_deck(memory_store, now) -> None:
    await _seed(memory_store, now, "hola", source="daily")
    song_cards = await _seed(memory_store, now, "el corazón", "extrañar", source="song")
    session = ReviewSession(memory_store, Scheduler())

    await session.start("song", now=now)

    assert session.deck_name == "source:song"
    assert set(session.snapshot) == {card.id for card in song_cards}
    assert session.remaining == 2


@pytest.mark.asyncio
async def test_removed_cards_are_skipped(memory_store, now) -> None:
    cards = await _seed(memory_store, now, "hola", "adiós")
    session = ReviewSession(memory_store, Scheduler())
    await session.start(now=now)
    await memory_store.remove(cards[0].id)
    session.reveal()

    assert await session.grade(ReviewQuality.GOOD, now=now) is None
    assert session.current_card.id == cards[1].id
    assert session.reviewed == 0


@pytest.mark.asyncio
async def test_button_and_swipe_adapters_share_the_grading_path(memory_store, now) -> None:
    await _seed(memory_store, now, "hola", "adiós", "gracias")
    session = ReviewSession(memory_store, Scheduler())
    await session.start(now=now)

    session.reveal()
    first = await grade_from_button(session, ReviewButton.AGAIN, now=now)
    session.reveal()
    second = await grade_from_swipe(session, SwipeDirection.LEFT, now=now)
    session.reveal()
    third = await grade_from_swipe(session, "right", now=now)

    assert first.lapses == 1
    assert second.repetitions == 1
    assert second.ease_factor == pytest.approx(2.36)
    assert third.ease_factor == pytest.approx(2.6)
    assert session.summary.correct == 2
    assert session.state is SessionState.COMPLETE


@pytest.mark.asyncio
async def test_unknown_button_is_an_invalid_grade(memory_store, now) -> None:
    await _seed(memory_store, now, "hola")
    session = ReviewSession(memory_store, Scheduler())
    await session.start(now=now)
    session.reveal()

    with pytest.raises(InvalidGrade):
        await grade_from_button(session, "maybe", now=now)
    with pytest.raises(InvalidGrade):
        await grade_from_swipe(session, "up", now=now)

    assert session.state is SessionState.REVEALED
