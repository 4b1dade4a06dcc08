"""Gamified progression: points per card interval, score and level tiers."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from .models import UserLevelInfo

if TYPE_CHECKING:
    from .library import CardStore

# (title, min score inclusive, max score exclusive), ascending
LEVEL_TIERS: tuple[tuple[str, int, float], ...] = (
    ("Synaptic Beginner", 0, 500),
    ("Focused Student", 500, 2000),
    ("Memory Architect", 2000, 5000),
    ("Neuroplasticity Master", 5000, math.inf),
)
TERMINAL_LEVEL_TITLE = "Living Legend"


def points_for_interval(interval: int) -> int:
    """Points a card is worth given its current interval in days."""
    if interval <= 0:
        return 0
    if interval <= 6:
        return 10
    if interval <= 21:
        return 50
    return 150


def level_info_for_score(score: int) -> UserLevelInfo:
    index = len(LEVEL_TIERS) - 1
    for position, (_, minimum, maximum) in enumerate(LEVEL_TIERS):
        if minimum <= score < maximum:
            index = position
            break

    title, minimum, maximum = LEVEL_TIERS[index]
    has_next = index + 1 < len(LEVEL_TIERS)

    if has_next:
        fraction = (score - minimum) / (maximum - minimum)
        progress = min(1.0, max(0.0, fraction)) * 100
    else:
        progress = 100.0

    return UserLevelInfo(
        score=score,
        level_title=title,
        next_level_title=LEVEL_TIERS[index + 1][0] if has_next else TERMINAL_LEVEL_TITLE,
        min_score=minimum,
        next_level_score=int(maximum) if has_next else score,
        progress_percent=progress,
    )


class MasteryEngine:
    """Read-only view of the card library as a single progression score."""

    def __init__(self, cards: CardStore) -> None:
        self.cards = cards

    def score(self) -> int:
        return sum(points_for_interval(card.interval) for card in self.cards.load_all())

    def level_info(self) -> UserLevelInfo:
        return level_info_for_score(self.score())


__all__ = [
    "LEVEL_TIERS",
    "MasteryEngine",
    "TERMINAL_LEVEL_TITLE",
    "level_info_for_score",
    "points_for_interval",
]
