"""Spaced-repetition engine for vocabulary cards."""

from .adapters import SwipeDirection, grade_from_button, grade_from_swipe
from .decks import Deck, DeckIndex, DeckSummary, resolve_deck
from .errors import (
    GenerationError,
    InvalidDeck,
    InvalidGrade,
    InvariantViolation,
    PersistenceFailure,
    SessionProtocolError,
    SRSError,
)
from .generator import AdaptiveGenerator, CardSource, OpenAICardSource, StaticCardSource
from .models import CardDraft, Difficulty, ReviewButton, ReviewQuality, VocabularyCard
from .queue import DueQueue
from .scheduler import Scheduler
from .session import ReviewSession, SessionState, SessionSummary
from .statistics import LearningStatistics, compute_statistics, practice_streak
from .store import CardStore, InMemoryCardStore

__all__ = [
    "AdaptiveGenerator",
    "CardDraft",
    "CardSource",
    "CardStore",
    "Deck",
    "DeckIndex",
    "DeckSummary",
    "Difficulty",
    "DueQueue",
    "GenerationError",
    "InMemoryCardStore",
    "InvalidDeck",
    "InvalidGrade",
    "InvariantViolation",
    "LearningStatistics",
    "OpenAICardSource",
    "PersistenceFailure",
    "ReviewButton",
    "ReviewQuality",
    "ReviewSession",
    "Scheduler",
    "SessionProtocolError",
    "SessionState",
    "SessionSummary",
    "SRSError",
    "StaticCardSource",
    "SwipeDirection",
    "VocabularyCard",
    "compute_statistics",
    "grade_from_button",
    "grade_from_swipe",
    "practice_streak",
    "resolve_deck",
]
