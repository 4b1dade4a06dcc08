from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from flashai.models import Card, Rating
from flashai.srs import MIN_EASE, ease_delta, preview_points, schedule

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _card(**overrides) -> Card:
    fields = {"id": "card-1", "topic": "Biology", "question": "What is DNA?", "answer": "<b>Genes</b>"}
    fields.update(overrides)
    return Card(**fields)


def test_new_card_rated_good_gets_three_days_and_keeps_ease() -> None:
    card = _card()

    updated = schedule(card, Rating.GOOD, NOW)

    assert updated.interval == 3
    assert updated.repetition == 1
    assert updated.ease_factor == pytest.approx(2.5)
    assert updated.next_review == NOW + timedelta(days=3)


def test_easy_twice_uses_second_success_table_and_raises_ease() -> None:
    card = _card()

    first = schedule(card, Rating.EASY, NOW)
    second = schedule(first, Rating.EASY, NOW + timedelta(days=7))

    assert (first.interval, first.repetition) == (7, 1)
    assert (second.interval, second.repetition) == (14, 2)
    assert first.ease_factor == pytest.approx(2.6)
    assert second.ease_factor == pytest.approx(2.7)
    assert second.next_review == NOW + timedelta(days=7 + 14)


@pytest.mark.parametrize(
    ("rating", "expected"),
    [(Rating.HARD, 1), (Rating.GOOD, 3), (Rating.EASY, 7)],
)
def test_first_success_intervals(rating: Rating, expected: int) -> None:
    assert schedule(_card(), rating, NOW).interval == expected


@pytest.mark.parametrize(
    ("rating", "expected"),
    [(Rating.HARD, 3), (Rating.GOOD, 6), (Rating.EASY, 14)],
)
def test_second_success_intervals(rating: Rating, expected: int) -> None:
    card = _card(repetition=1, interval=1)

    assert schedule(card, rating, NOW).interval == expected


def test_third_success_multiplies_interval_by_ease() -> None:
    card = _card(repetition=2, interval=6, ease_factor=2.5)

    updated = schedule(card, Rating.GOOD, NOW)

    assert updated.interval == 15
    assert updated.repetition == 3


def test_later_success_uses_current_ease_before_adjusting_it() -> None:
    card = _card(repetition=3, interval=10, ease_factor=2.0)

    updated = schedule(card, Rating.HARD, NOW)

    assert updated.interval == 20
    assert updated.ease_factor == pytest.approx(2.0 - 0.14)


def test_interval_rounds_half_up() -> None:
    card = _card(repetition=2, interval=5, ease_factor=2.5)

    assert schedule(card, Rating.GOOD, NOW).interval == 13


def test_lapse_resets_streak_and_is_due_immediately() -> None:
    card = _card(repetition=2, interval=14, ease_factor=2.0, next_review=NOW)

    updated = schedule(card, Rating.AGAIN, NOW)

    assert updated.repetition == 0
    assert updated.interval == 0
    assert updated.ease_factor == pytest.approx(MIN_EASE)
    assert updated.next_review == NOW
    assert updated.is_due(NOW)


def test_lapse_decreases_ease_by_formula_above_floor() -> None:
    card = _card(repetition=4, interval=40, ease_factor=2.5)

    updated = schedule(card, Rating.AGAIN, NOW)

    assert updated.ease_factor == pytest.approx(1.7)


@pytest.mark.parametrize("rating", list(Rating))
@pytest.mark.parametrize("ease", [1.3, 1.35, 1.5, 2.5, 4.0])
def test_ease_never_drops_below_floor(rating: Rating, ease: float) -> None:
    card = _card(repetition=2, interval=8, ease_factor=ease)

    updated = schedule(card, rating, NOW)

    assert updated.ease_factor >= MIN_EASE
    assert updated.interval >= 0


def test_schedule_leaves_content_fields_and_input_untouched() -> None:
    card = _card(cloze_text="______ stores genes", is_inverse=True)

    updated = schedule(card, Rating.EASY, NOW)

    assert updated is not card
    assert card.interval == 0 and card.repetition == 0 and card.next_review is None
    assert updated.id == card.id
    assert updated.question == card.question
    assert updated.answer == card.answer
    assert updated.cloze_text == card.cloze_text
    assert updated.is_inverse is True


def test_naive_now_is_treated_as_utc() -> None:
    updated = schedule(_card(), Rating.HARD, datetime(2024, 1, 1, 12, 0))

    assert updated.next_review == NOW + timedelta(days=1)


def test_ease_delta_matches_quality_table() -> None:
    assert ease_delta(5) == pytest.approx(0.1)
    assert ease_delta(4) == pytest.approx(0.0)
    assert ease_delta(3) == pytest.approx(-0.14)
    assert ease_delta(0) == pytest.approx(-0.8)


def test_rating_quality_mapping_is_total() -> None:
    assert {rating: rating.quality for rating in Rating} == {
        Rating.AGAIN: 0,
        Rating.HARD: 3,
        Rating.GOOD: 4,
        Rating.EASY: 5,
    }
    assert [rating for rating in Rating if rating.is_lapse] == [Rating.AGAIN]


def test_preview_points_reflect_interval_after_rating() -> None:
    assert preview_points(_card(), Rating.GOOD, NOW) == 10
    assert preview_points(_card(), Rating.EASY, NOW) == 50
    assert preview_points(_card(repetition=2, interval=14), Rating.GOOD, NOW) == 150
    assert preview_points(_card(repetition=2, interval=14), Rating.AGAIN, NOW) == 0
