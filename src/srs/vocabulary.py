"""Starter vocabulary shipped with the application."""

from __future__ import annotations

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from src.srs.models import SOURCE_DAILY, CardDraft, Difficulty, utcnow
from src.srs.store import CardStore


LOGGER = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parents[2] / "static"
STARTER_VOCABULARY_PATH = STATIC_DIR / "starter_vocabulary.csv"
GENERATOR_CATALOG_PATH = STATIC_DIR / "generator_catalog.csv"


def load_starter_vocabulary(path: Optional[Path] = None) -> List[CardDraft]:
    """Read card drafts from a ``;``-separated CSV file with a header row.

    Columns: front, back, pronunciation, example, topic, difficulty, source.
    Only front and back are required.
    """
    if path is None:
        path = STARTER_VOCABULARY_PATH

    drafts: List[CardDraft] = []
    with path.open("r", encoding="utf-8-sig", newline="") as csv_file:
        reader = csv.reader(csv_file, delimiter=";")
        next(reader, None)  # discard header
        for row_index, row in enumerate(reader, start=2):
            cells = [cell.strip() for cell in row] + [""] * 7
            front, back, pronunciation, example, topic, difficulty, source = cells[:7]
            if not front or not back:
                LOGGER.debug("Skipping incomplete vocabulary row %s: %s", row_index, row)
                continue
            try:
                level = Difficulty.parse(difficulty) if difficulty else Difficulty.MEDIUM
            except ValueError:
                LOGGER.debug("Skipping vocabulary row %s with unknown difficulty %r.", row_index, difficulty)
                continue
            drafts.append(
                CardDraft(
                    front=front,
                    back=back,
                    pronunciation=pronunciation or None,
                    example=example or None,
                    topic=topic or None,
                    difficulty=level,
                    source=source or SOURCE_DAILY,
                )
            )
    return drafts


def load_generator_catalog(path: Optional[Path] = None) -> List[CardDraft]:
    """Read the offline catalog the adaptive generator draws new cards from.

    It uses the starter CSV layout but holds words the starter set does not.
    """
    return load_starter_vocabulary(path or GENERATOR_CATALOG_PATH)


async def seed_starter_vocabulary(
    store: CardStore,
    drafts: Optional[List[CardDraft]] = None,
    now: Optional[datetime] = None,
) -> int:
    """Insert every draft whose content is not in the store yet."""
    if drafts is None:
        drafts = load_starter_vocabulary()
    if now is None:
        now = utcnow()

    known = {card.content_key for card in await store.all()}
    inserted = 0
    for draft in drafts:
        if draft.content_key in known:
            continue
        await store.upsert(draft.to_card(now))
        known.add(draft.content_key)
        inserted += 1

    if inserted:
        LOGGER.info("Seeded %s starter vocabulary cards.", inserted)
    return inserted
