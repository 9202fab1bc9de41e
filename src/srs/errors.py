"""Error types raised by the spaced-repetition engine."""

from __future__ import annotations


class SRSError(Exception):
    """Base class for every error raised by the engine."""


class InvalidGrade(SRSError, ValueError):
    """A review quality outside the supported 0..5 scale."""


class InvariantViolation(SRSError):
    """A card that breaks the scheduling invariants reached the store."""


class SessionProtocolError(SRSError):
    """A review session operation was called out of sequence."""


class PersistenceFailure(SRSError):
    """The card store could not read or write its backing storage."""


class GenerationError(SRSError):
    """A content source failed to produce candidate cards."""


class InvalidDeck(SRSError, ValueError):
    """A deck filter that names an unknown difficulty level."""
