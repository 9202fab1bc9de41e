"""Configuration helpers for the vocabulary review runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_MODEL = "gpt-5-mini"
DEFAULT_CARDS_PER_TOPIC = 5
DEFAULT_MAX_GENERATED_CARDS = 20

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _read_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:  # pragma: no cover - defensive parsing
        raise RuntimeError(f"{name} must be an integer.") from exc


def _read_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class AppSettings:
    """Strongly typed application settings loaded from environment variables."""

    app_name: str
    app_env: str
    log_level: str
    openai_api_key: Optional[str]
    openai_model: str
    vocabulary_source_language: str
    vocabulary_target_language: str
    generator_enabled: bool
    generator_cards_per_topic: int
    generator_max_cards: int
    srs_max_interval_days: Optional[int]
    srs_skip_mastered: bool

    @classmethod
    def from_env(cls) -> AppSettings:
        """Construct settings directly from environment variables."""
        app_name = os.getenv("APP_NAME", "Vocabulary Trainer")
        app_env = os.getenv("APP_ENV", "development")
        log_level = os.getenv("LOG_LEVEL", "INFO")
        openai_api_key = os.getenv("OPENAI_API_KEY") or None
        openai_model = os.getenv("OPENAI_MODEL", DEFAULT_MODEL)

        cards_per_topic = _read_int("GENERATOR_CARDS_PER_TOPIC", DEFAULT_CARDS_PER_TOPIC)
        if cards_per_topic < 1 or cards_per_topic > 20:
            raise RuntimeError("GENERATOR_CARDS_PER_TOPIC must be between 1 and 20.")

        max_cards = _read_int("GENERATOR_MAX_CARDS", DEFAULT_MAX_GENERATED_CARDS)
        if max_cards < 1:
            raise RuntimeError("GENERATOR_MAX_CARDS must be a positive integer.")

        max_interval_days = _read_int("SRS_MAX_INTERVAL_DAYS", None)
        if max_interval_days is not None and max_interval_days < 1:
            raise RuntimeError("SRS_MAX_INTERVAL_DAYS must be a positive integer.")

        return cls(
            app_name=app_name,
            app_env=app_env,
            log_level=log_level,
            openai_api_key=openai_api_key,
            openai_model=openai_model,
            vocabulary_source_language=os.getenv("VOCABULARY_SOURCE_LANGUAGE", "Spanish"),
            vocabulary_target_language=os.getenv("VOCABULARY_TARGET_LANGUAGE", "English"),
            generator_enabled=_read_flag("GENERATOR_ENABLED", False),
            generator_cards_per_topic=cards_per_topic,
            generator_max_cards=max_cards,
            srs_max_interval_days=max_interval_days,
            srs_skip_mastered=_read_flag("SRS_SKIP_MASTERED", False),
        )
