from __future__ import annotations

import random
from datetime import datetime, timezone

from .library import CardStore
from .models import Card

DEFAULT_SESSION_LIMIT = 20


class DueSelector:
    """Picks cards whose next review has come, optionally interleaved across topics."""

    def __init__(self, cards: CardStore, rng: random.Random | None = None) -> None:
        self.cards = cards
        self.rng = rng or random.Random()

    def get_due(self, now: datetime | None = None) -> list[Card]:
        moment = now or datetime.now(timezone.utc)
        return [card for card in self.cards.load_all() if card.is_due(moment)]

    def count_due(self, now: datetime | None = None) -> int:
        return len(self.get_due(now))

    def get_interleaved(self, limit: int = DEFAULT_SESSION_LIMIT, now: datetime | None = None) -> list[Card]:
        """Due cards from every topic in uniformly random order, at most ``limit`` of them."""
        if limit <= 0:
            return []
        due = self.get_due(now)
        # Fisher-Yates
        self.rng.shuffle(due)
        return due[:limit]


__all__ = ["DEFAULT_SESSION_LIMIT", "DueSelector"]
