from __future__ import annotations

import math
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from .mastery import points_for_interval
from .models import Card, Rating

DEFAULT_EASE = 2.5
MIN_EASE = 1.3

FIRST_SUCCESS_INTERVALS: dict[Rating, int] = {
    Rating.HARD: 1,
    Rating.GOOD: 3,
    Rating.EASY: 7,
}
SECOND_SUCCESS_INTERVALS: dict[Rating, int] = {
    Rating.HARD: 3,
    Rating.GOOD: 6,
    Rating.EASY: 14,
}


def _normalize_datetime(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _round_half_up(value: float) -> int:
    # round() would round 12.5 down to 12
    return int(math.floor(value + 0.5))


def ease_delta(quality: int) -> float:
    """SM-2 ease adjustment: EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))."""
    miss = 5 - quality
    return 0.1 - miss * (0.08 + miss * 0.02)


def schedule(card: Card, rating: Rating, now: Optional[datetime] = None) -> Card:
    """Return ``card`` with its repetition, interval, ease and next review updated.

    A lapse leaves ``interval`` at 0, so the card is due again immediately;
    re-queueing it within the current session is up to the caller.
    """
    normalized_now = _normalize_datetime(now or datetime.now(timezone.utc))
    quality = rating.quality
    repetition = card.repetition
    interval = card.interval

    if rating.is_lapse:
        repetition = 0
        interval = 0
    else:
        if repetition == 0:
            interval = FIRST_SUCCESS_INTERVALS[rating]
        elif repetition == 1:
            interval = SECOND_SUCCESS_INTERVALS[rating]
        else:
            interval = _round_half_up(interval * card.ease_factor)
        repetition += 1

    ease_factor = max(MIN_EASE, card.ease_factor + ease_delta(quality))

    return replace(
        card,
        repetition=repetition,
        interval=interval,
        ease_factor=ease_factor,
        next_review=normalized_now + timedelta(days=interval),
    )


def preview_points(card: Card, rating: Rating, now: Optional[datetime] = None) -> int:
    """Points the card would be worth after ``rating``, without persisting anything."""
    return points_for_interval(schedule(card, rating, now).interval)


__all__ = [
    "DEFAULT_EASE",
    "FIRST_SUCCESS_INTERVALS",
    "MIN_EASE",
    "SECOND_SUCCESS_INTERVALS",
    "ease_delta",
    "preview_points",
    "schedule",
]
