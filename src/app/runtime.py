"""Bootstrap logic for the vocabulary review engine."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from src.app.settings import AppSettings
from src.db import get_session_factory, run_migrations_if_needed
from src.db.cards import SqlAlchemyCardStore
from src.services import build_openai_client
from src.srs import (
    AdaptiveGenerator,
    CardSource,
    CardStore,
    DeckIndex,
    DueQueue,
    OpenAICardSource,
    ReviewSession,
    Scheduler,
    StaticCardSource,
    compute_statistics,
)
from src.srs.models import utcnow
from src.srs.vocabulary import load_generator_catalog, seed_starter_vocabulary


LOGGER = logging.getLogger(__name__)


def _configure_logging(log_level: str) -> None:
    """Set up project-wide logging configuration."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=log_level,
    )


def build_scheduler(settings: AppSettings) -> Scheduler:
    return Scheduler(max_interval_days=settings.srs_max_interval_days)


def build_review_session(settings: AppSettings, store: CardStore) -> ReviewSession:
    """Wire a review session to ``store`` using the configured scheduling options."""
    queue = DueQueue(store, skip_mastered=settings.srs_skip_mastered)
    return ReviewSession(store, build_scheduler(settings), queue)


def build_card_source(settings: AppSettings) -> CardSource:
    """Use OpenAI when an API key is configured, the offline generator catalog otherwise."""
    if settings.openai_api_key:
        return OpenAICardSource(
            build_openai_client(settings.openai_api_key),
            settings.openai_model,
            source_language=settings.vocabulary_source_language,
            target_language=settings.vocabulary_target_language,
        )
    LOGGER.info("OPENAI_API_KEY is not set; generating cards from the offline catalog.")
    return StaticCardSource(load_generator_catalog())


def build_generator(
    settings: AppSettings,
    store: CardStore,
    source: Optional[CardSource] = None,
) -> AdaptiveGenerator:
    return AdaptiveGenerator(
        store,
        source or build_card_source(settings),
        cards_per_topic=settings.generator_cards_per_topic,
        max_cards=settings.generator_max_cards,
    )


async def refresh_vocabulary(
    settings: AppSettings,
    store: CardStore,
    source: Optional[CardSource] = None,
) -> list[str]:
    """Seed the starter vocabulary and render the deck dashboard.

    When generation is enabled, new cards for the weakest topics are added
    before the dashboard is built. Returns the dashboard lines.
    """
    now = utcnow()
    await seed_starter_vocabulary(store, now=now)

    statistics = compute_statistics(await store.all(), now)
    if settings.generator_enabled and statistics.weakest_topics:
        generator = build_generator(settings, store, source)
        for card in await generator.generate(statistics.weakest_topics, now=now):
            await store.upsert(card)
        statistics = compute_statistics(await store.all(), now)

    lines = [f"{'deck':<20} {'total':>6} {'due':>6}"]
    for summary in await DeckIndex(store).summary(now):
        lines.append(f"{summary.name:<20} {summary.total:>6} {summary.due:>6}")
    lines.append(
        f"mastered {statistics.mastered_cards} of {statistics.total_cards}, "
        f"average accuracy {statistics.average_accuracy:.0%}, "
        f"{statistics.streak_days}-day practice streak"
    )
    if statistics.weakest_topics:
        lines.append(f"weakest topics: {', '.join(statistics.weakest_topics)}")
    return lines


def run_dashboard(settings: AppSettings) -> None:
    """Prepare the database and print the per-deck review dashboard."""
    _configure_logging(settings.log_level)
    print(f"{settings.app_name} is running in {settings.app_env} mode.")

    try:
        run_migrations_if_needed()
    except Exception:
        LOGGER.exception("Database migrations failed. Aborting startup.")
        raise

    store = SqlAlchemyCardStore(get_session_factory())
    for line in asyncio.run(refresh_vocabulary(settings, store)):
        print(line)
