from __future__ import annotations

import itertools
from datetime import timedelta

import pytest

from src.srs import InvalidGrade, ReviewButton, ReviewQuality, Scheduler, VocabularyCard
from src.srs.scheduler import calculate_next_schedule, coerce_quality


def _new_card(now) -> VocabularyCard:
    return VocabularyCard.create("hola", "hello", now=now)


def test_new_card_is_due_immediately(now) -> None:
    card = _new_card(now)

    assert card.due_at == now
    assert card.repetitions == 0
    assert card.interval_days == 0
    assert card.ease_factor == 2.5
    assert card.last_reviewed_at is None


def test_three_successful_reviews_follow_sm2_intervals(now) -> None:
    scheduler = Scheduler()
    card = _new_card(now)

    first = scheduler.update(card, ReviewQuality.GOOD, now)
    assert (first.repetitions, first.interval_days) == (1, 1)
    assert first.due_at == now + timedelta(days=1)

    second_time = now + timedelta(days=1)
    second = scheduler.update(first, ReviewQuality.GOOD, second_time)
    assert (second.repetitions, second.interval_days) == (2, 6)
    ease_after_second = second.ease_factor

    third_time = second_time + timedelta(days=6)
    third = scheduler.update(second, ReviewQuality.PERFECT, third_time)
    assert third.repetitions == 3
    assert third.interval_days == round(6 * ease_after_second)
    assert third.interval_days == 15
    assert third.ease_factor == pytest.approx(2.6)
    assert third.last_reviewed_at == third_time
    assert third.due_at == third_time + timedelta(days=15)


def test_blackout_resets_a_mature_card_and_clamps_ease(now) -> None:
    card = VocabularyCard(
        front="gracias",
        back="thank you",
        due_at=now,
        repetitions=3,
        interval_days=15,
        ease_factor=2.0,
        lapses=2,
    )

    updated = Scheduler().update(card, ReviewQuality.COMPLETE_BLACKOUT, now)

    assert updated.repetitions == 0
    assert updated.interval_days == 1
    assert updated.lapses == 3
    assert updated.ease_factor == 1.3
    assert updated.due_at == now + timedelta(days=1)


def test_ease_never_drops_below_floor() -> None:
    scheduler = Scheduler()
    for grades in itertools.product(range(6), repeat=4):
        card = _new_card(None)
        for grade in grades:
            card = scheduler.update(card, grade)
            assert card.ease_factor >= 1.3


@pytest.mark.parametrize("quality", [0, 1, 2])
@pytest.mark.parametrize("repetitions,interval", [(0, 0), (1, 1), (5, 40)])
def test_lapse_always_resets_progress(now, quality, repetitions, interval) -> None:
    card = VocabularyCard(
        front="adiós",
        back="goodbye",
        due_at=now,
        repetitions=repetitions,
        interval_days=interval,
    )

    updated = Scheduler().update(card, quality, now)

    assert updated.repetitions == 0
    assert updated.interval_days == 1
    assert updated.lapses == card.lapses + 1


def test_success_streak_intervals_never_shrink(now) -> None:
    scheduler = Scheduler()
    card = _new_card(now)
    reviewed_at = now
    previous_interval = card.interval_days
    for grade in [4, 5, 4, 4, 5, 4, 4, 4]:
        card = scheduler.update(card, grade, reviewed_at)
        assert card.interval_days >= previous_interval
        assert card.interval_days >= 1
        previous_interval = card.interval_days
        reviewed_at = card.due_at


@pytest.mark.parametrize("value", [-1, 6, 2.5, "4", True, None])
def test_invalid_quality_is_rejected(now, value) -> None:
    with pytest.raises(InvalidGrade):
        Scheduler().update(_new_card(now), value, now)


def test_buttons_map_to_fixed_qualities() -> None:
    assert coerce_quality(ReviewButton.AGAIN) is ReviewQuality.COMPLETE_BLACKOUT
    assert coerce_quality(ReviewButton.HARD) is ReviewQuality.CORRECT_WITH_HESITATION
    assert coerce_quality(ReviewButton.GOOD) is ReviewQuality.GOOD
    assert coerce_quality(ReviewButton.EASY) is ReviewQuality.PERFECT
    assert coerce_quality(3) is ReviewQuality.CORRECT_WITH_HESITATION


def test_review_counters_track_successes(now) -> None:
    scheduler = Scheduler()
    card = _new_card(now)
    for grade in [5, 1, 4]:
        card = scheduler.update(card, grade, now)

    assert card.total_reviews == 3
    assert card.successful_reviews == 2
    assert card.accuracy == pytest.approx(2 / 3)


def test_max_interval_caps_growth(now) -> None:
    schedule = calculate_next_schedule(
        quality=5,
        current_easiness=2.5,
        current_interval=300,
        current_repetition=6,
        now=now,
        max_interval_days=365,
    )

    assert schedule.interval == 365
    assert schedule.next_review_at == now + timedelta(days=365)


def test_mastery_is_stamped_and_cleared_on_lapse(now) -> None:
    scheduler = Scheduler(mastery_repetitions=3, mastery_accuracy=0.9)
    card = _new_card(now)
    for _ in range(3):
        card = scheduler.update(card, ReviewQuality.PERFECT, now)

    assert card.mastered_at == now

    later = now + timedelta(days=30)
    card = scheduler.update(card, ReviewQuality.PERFECT, later)
    assert card.mastered_at == now

    card = scheduler.update(card, ReviewQuality.INCORRECT_BUT_REMEMBERED, later)
    assert card.mastered_at is None


def test_update_does_not_modify_the_original_card(now) -> None:
    card = _new_card(now)
    Scheduler().update(card, ReviewQuality.GOOD, now)

    assert card.repetitions == 0
    assert card.due_at == now
