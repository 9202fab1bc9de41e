from __future__ import annotations

import pytest

from src.srs import Difficulty
from src.srs.vocabulary import load_generator_catalog, load_starter_vocabulary, seed_starter_vocabulary


def test_starter_vocabulary_loads_shipped_csv() -> None:
    drafts = load_starter_vocabulary()

    assert len(drafts) >= 10
    first = drafts[0]
    assert (first.front, first.back) == ("hola", "hello")
    assert first.pronunciation == "OH-lah"
    assert first.topic == "greeting"
    assert first.difficulty is Difficulty.EASY
    assert {draft.source for draft in drafts} >= {"daily", "lesson", "song"}


def test_loader_skips_incomplete_rows(tmp_path) -> None:
    path = tmp_path / "words.csv"
    path.write_text(
        "front;back;pronunciation;example;topic;difficulty;source\n"
        "gato;cat\n"
        ";missing front\n"
        "perro;dog;;;animals;impossible;daily\n"
        "casa;house;;Mi casa es tu casa.;home;hard;lesson\n",
        encoding="utf-8",
    )

    drafts = load_starter_vocabulary(path)

    assert [draft.front for draft in drafts] == ["gato", "casa"]
    assert drafts[0].difficulty is Difficulty.MEDIUM
    assert drafts[0].source == "daily"
    assert drafts[1].example == "Mi casa es tu casa."
    assert drafts[1].difficulty is Difficulty.HARD


@pytest.mark.asyncio
async def test_seeding_is_idempotent(memory_store, now) -> None:
    total = len(load_starter_vocabulary())

    inserted_first = await seed_starter_vocabulary(memory_store, now=now)
    inserted_second = await seed_starter_vocabulary(memory_store, now=now)

    assert inserted_first == total
    assert inserted_second == 0
    cards = await memory_store.all()
    assert len(cards) == total
    assert all(card.due_at == now and card.repetitions == 0 for card in cards)


@pytest.mark.asyncio
async def test_seeding_into_the_database(sql_store, now) -> None:
    total = len(load_starter_vocabulary())

    assert await seed_starter_vocabulary(sql_store, now=now) == total
    assert await seed_starter_vocabulary(sql_store, now=now) == 0
    assert await sql_store.count() == total


def test_generator_catalog_holds_new_words_for_every_starter_topic() -> None:
    starter = load_starter_vocabulary()
    catalog = load_generator_catalog()

    assert {draft.content_key for draft in catalog}.isdisjoint(draft.content_key for draft in starter)
    assert {draft.topic for draft in catalog} >= {draft.topic for draft in starter}
    assert {draft.source for draft in catalog} >= {"daily", "lesson", "song"}
