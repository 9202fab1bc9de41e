"""Adaptive generation of new vocabulary cards for a learner's weak topics."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from typing import Iterable, List, Optional

from openai import AsyncOpenAI

from src.services import extract_output_text
from src.srs.errors import GenerationError
from src.srs.models import SOURCE_LESSON, CardDraft, Difficulty, VocabularyCard, utcnow
from src.srs.statistics import rank_weak_topics
from src.srs.store import CardStore


LOGGER = logging.getLogger(__name__)


DEFAULT_CARDS_PER_TOPIC = 5
DEFAULT_MAX_CARDS = 20


class CardSource(ABC):
    """Supplies candidate card content for a topic."""

    @abstractmethod
    async def suggest(self, topic: str, count: int) -> List[CardDraft]:
        """Return up to ``count`` drafts about ``topic``."""


class StaticCardSource(CardSource):
    """Serves drafts from a fixed catalog, matched on topic, source or difficulty."""

    def __init__(self, drafts: Iterable[CardDraft]) -> None:
        self._by_tag: dict[str, List[CardDraft]] = defaultdict(list)
        for draft in drafts:
            tags = {draft.source, draft.difficulty.value}
            if draft.topic:
                tags.add(draft.topic)
            for tag in tags:
                self._by_tag[tag].append(draft)

    async def suggest(self, topic: str, count: int) -> List[CardDraft]:
        return list(self._by_tag.get(topic, [])[:count])


class OpenAICardSource(CardSource):
    """Asks an OpenAI model for new flashcards in a topic."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        source_language: str,
        target_language: str,
        difficulty: Difficulty = Difficulty.MEDIUM,
        source_tag: str = SOURCE_LESSON,
    ) -> None:
        self._client = client
        self._model = model
        self._source_language = source_language
        self._target_language = target_language
        self._difficulty = difficulty
        self._source_tag = source_tag

    def _build_system_prompt(self, count: int) -> str:
        return (
            "You write vocabulary flashcards for students learning {source_language}. "
            "The user names a topic the learner struggles with. "
            "Respond with JSON {{\"flashcards\": [...]}} holding at most {count} flashcards about that topic. "
            "Each flashcard must include: "
            "\"front\" (a word or short phrase in {source_language}), "
            "\"back\" (a natural translation into {target_language}), "
            "\"pronunciation\" (a simple phonetic spelling), and "
            "\"example\" (a short sentence in {source_language} using the word). "
            "Prefer common, everyday vocabulary and avoid repeating the same word in different forms. "
            "Always produce valid JSON without commentary, Markdown, or code fences."
        ).format(
            source_language=self._source_language,
            target_language=self._target_language,
            count=count,
        )

    async def suggest(self, topic: str, count: int) -> List[CardDraft]:
        try:
            response = await self._client.responses.create(
                model=self._model,
                input=[
                    {"role": "system", "content": self._build_system_prompt(count)},
                    {"role": "user", "content": f"Topic: {topic}"},
                ],
            )
        except Exception as exc:
            raise GenerationError(f"Card generation request failed for topic {topic!r}.") from exc

        cleaned = self._strip_code_fences(extract_output_text(response))
        try:
            payload = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            LOGGER.warning("Failed to parse card generation response: %s", cleaned)
            raise GenerationError("Card generation returned malformed JSON.") from exc

        raw_cards = payload.get("flashcards") if isinstance(payload, dict) else None
        drafts: List[CardDraft] = []
        for index, raw_card in enumerate(raw_cards or [], start=1):
            draft = self._convert_raw_card(raw_card, topic)
            if draft is None:
                LOGGER.debug("Skipping malformed generated card #%s for topic %s.", index, topic)
                continue
            drafts.append(draft)
        return drafts[:count]

    @staticmethod
    def _strip_code_fences(response_text: str) -> str:
        fenced = response_text.strip()
        if fenced.startswith("```") and fenced.endswith("```"):
            return fenced.split("\n", 1)[-1].rsplit("\n", 1)[0]
        return fenced

    def _convert_raw_card(self, raw_card: object, topic: str) -> Optional[CardDraft]:
        if not isinstance(raw_card, dict):
            return None
        front = self._sanitize_text(raw_card.get("front"))
        back = self._sanitize_text(raw_card.get("back"))
        if not front or not back:
            return None
        return CardDraft(
            front=front,
            back=back,
            pronunciation=self._sanitize_text(raw_card.get("pronunciation")),
            example=self._sanitize_text(raw_card.get("example")),
            topic=topic,
            difficulty=self._difficulty,
            source=self._source_tag,
        )

    @staticmethod
    def _sanitize_text(value: object) -> Optional[str]:
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return None


class AdaptiveGenerator:
    """Creates new cards for weak topics, skipping content the learner already has.

    Topics are served weakest first, so when ``max_cards`` runs out the
    strongest of the requested topics are the ones left without new cards.
    Generated cards are returned unsaved and due immediately.
    """

    def __init__(
        self,
        store: CardStore,
        source: CardSource,
        *,
        cards_per_topic: int = DEFAULT_CARDS_PER_TOPIC,
        max_cards: int = DEFAULT_MAX_CARDS,
    ) -> None:
        self._store = store
        self._source = source
        self._cards_per_topic = cards_per_topic
        self._max_cards = max_cards

    async def generate(
        self,
        weak_topics: Iterable[str],
        now: Optional[datetime] = None,
    ) -> List[VocabularyCard]:
        if now is None:
            now = utcnow()

        existing_cards = await self._store.all()
        seen = {card.content_key for card in existing_cards}
        ordered_topics = rank_weak_topics(existing_cards, weak_topics)

        generated: List[VocabularyCard] = []
        for topic in ordered_topics:
            if len(generated) >= self._max_cards:
                break
            try:
                drafts = await self._source.suggest(topic, self._cards_per_topic)
            except GenerationError:
                LOGGER.exception("Card generation failed for topic %s.", topic)
                continue

            for draft in drafts[: self._cards_per_topic]:
                if draft.content_key in seen:
                    LOGGER.debug("Skipping duplicate card %s / %s.", draft.front, draft.back)
                    continue
                seen.add(draft.content_key)
                if not draft.topic:
                    draft = replace(draft, topic=topic)
                generated.append(draft.to_card(now))
                if len(generated) >= self._max_cards:
                    break

        LOGGER.info("Generated %s new cards for topics %s.", len(generated), ", ".join(ordered_topics))
        return generated
