"""Study sessions: wiring review events through scheduling, storage and stats."""

from __future__ import annotations

import random
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Sequence

from .db import RecordStore
from .generator import build_cards, generate_flashcards, invert_cards
from .library import CardStore
from .mastery import MasteryEngine, points_for_interval
from .models import (
    STUDY_MODES,
    Card,
    DifficultyLevel,
    GeneratedCard,
    Rating,
    ReviewOutcome,
    SessionStats,
    StudyMode,
)
from .selection import DEFAULT_SESSION_LIMIT, DueSelector
from .srs import schedule
from .stats import TopicStatsAggregator

Generate = Callable[[str, DifficultyLevel, int], Sequence[GeneratedCard]]


class NothingDueError(Exception):
    """No card in the library is due for review."""


@dataclass
class StudySession:
    cards: list[Card]
    mode: StudyMode = "flashcard"
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    index: int = 0
    stats: SessionStats = field(default_factory=SessionStats)
    started_at: float = field(default_factory=time.monotonic)

    @property
    def finished(self) -> bool:
        return self.index >= len(self.cards)

    @property
    def current(self) -> Card | None:
        if self.finished:
            return None
        return self.cards[self.index]

    @property
    def progress_percent(self) -> float:
        if not self.cards:
            return 100.0
        return min(self.index, len(self.cards)) / len(self.cards) * 100


class StudyEngine:
    """Owns the card library, topic stats, due selector and score engine for one store."""

    def __init__(self, store: RecordStore, rng: random.Random | None = None) -> None:
        self.store = store
        self.cards = CardStore(store)
        self.topic_stats = TopicStatsAggregator(store)
        self.selector = DueSelector(self.cards, rng=rng)
        self.mastery = MasteryEngine(self.cards)

    def review(self, card: Card, rating: Rating, now: datetime | None = None) -> Card:
        moment = now or datetime.now(timezone.utc)
        self.topic_stats.record_review(card.topic, rating, now=moment)
        updated = schedule(card, rating, moment)
        self.cards.upsert_many([updated])
        return updated

    def start_generated(
        self,
        topic: str,
        level: DifficultyLevel,
        count: int = 5,
        mode: StudyMode = "flashcard",
        bidirectional: bool = False,
        *,
        generate: Generate = generate_flashcards,
        now: datetime | None = None,
    ) -> StudySession:
        """Generate fresh cards, save them to the library and open a session on them.

        ``GenerationError`` from the generator propagates; nothing is saved in that case.
        """
        if mode not in STUDY_MODES:
            raise ValueError(f"Unsupported study mode: {mode}")
        generated = generate(topic, level, count)
        cards = build_cards(topic.strip(), generated, now=now)
        if bidirectional and mode == "flashcard":
            cards = invert_cards(cards)
        self.cards.upsert_many(cards)
        return StudySession(cards=cards, mode=mode)

    def start_interleaved(self, limit: int = DEFAULT_SESSION_LIMIT, now: datetime | None = None) -> StudySession:
        cards = self.selector.get_interleaved(limit, now=now)
        if not cards:
            raise NothingDueError("No cards are due for review right now")
        return StudySession(cards=cards, mode="flashcard")

    def rate(self, session: StudySession, rating: Rating, now: datetime | None = None) -> ReviewOutcome:
        card = session.current
        if card is None:
            raise ValueError("Session is already finished")

        session.stats.record(rating)
        updated = self.review(card, rating, now=now)
        session.cards[session.index] = updated
        session.index += 1
        if session.finished:
            session.stats.total_time = time.monotonic() - session.started_at

        return ReviewOutcome(
            card=updated,
            points=points_for_interval(updated.interval),
            finished=session.finished,
            stats=session.stats,
        )


__all__ = [
    "NothingDueError",
    "StudyEngine",
    "StudySession",
]
