"""Input adapters that turn UI gestures into review grades."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from src.srs.errors import InvalidGrade
from src.srs.models import ReviewButton, VocabularyCard
from src.srs.session import ReviewSession


class SwipeDirection(str, Enum):
    LEFT = "left"
    RIGHT = "right"


_SWIPE_BUTTONS = {
    SwipeDirection.RIGHT: ReviewButton.EASY,
    SwipeDirection.LEFT: ReviewButton.HARD,
}


async def grade_from_button(
    session: ReviewSession,
    button: "ReviewButton | str",
    now: Optional[datetime] = None,
) -> Optional[VocabularyCard]:
    """Grade the revealed card with one of the four review buttons."""
    try:
        selected = ReviewButton(button)
    except ValueError as exc:
        raise InvalidGrade(f"Unknown review button: {button!r}.") from exc
    return await session.grade(selected.quality, now=now)


async def grade_from_swipe(
    session: ReviewSession,
    direction: "SwipeDirection | str",
    now: Optional[datetime] = None,
) -> Optional[VocabularyCard]:
    """Grade the revealed card from a swipe: right is easy, left is hard."""
    try:
        swipe = SwipeDirection(direction)
    except ValueError as exc:
        raise InvalidGrade(f"Unknown swipe direction: {direction!r}.") from exc
    return await grade_from_button(session, _SWIPE_BUTTONS[swipe], now=now)
