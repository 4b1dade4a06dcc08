"""Per-topic rating counters, updated on every review."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from .db import TOPIC_STATS_NAMESPACE, PersistenceError, RecordStore
from .models import Rating, TopicStat

logger = logging.getLogger(__name__)


def normalize_topic(topic: str) -> str:
    return topic.strip().lower()


def display_topic(key: str) -> str:
    """'photosynthesis' -> 'Photosynthesis'."""
    return key[:1].upper() + key[1:]


class TopicStatsAggregator:
    def __init__(self, store: RecordStore, namespace: str = TOPIC_STATS_NAMESPACE) -> None:
        self.store = store
        self.namespace = namespace

    def get_all(self) -> dict[str, TopicStat]:
        result = self.store.read(self.namespace)
        raw = result.value_or({})
        if not result.ok:
            logger.warning("Topic stats unreadable, starting from empty: %s", result.error)
        if not isinstance(raw, dict):
            logger.warning("Topic stats have unexpected shape %s, ignoring", type(raw).__name__)
            return {}
        try:
            return {str(key): TopicStat.from_dict(value) for key, value in raw.items()}
        except (AttributeError, TypeError, ValueError, OverflowError, OSError) as exc:
            logger.warning("Topic stats could not be decoded, starting from empty: %s", exc)
            return {}

    def get_for_topic(self, topic: str) -> TopicStat:
        return self.get_all().get(normalize_topic(topic), TopicStat())

    def get_global(self) -> TopicStat:
        total = TopicStat()
        for stat in self.get_all().values():
            total.easy += stat.easy
            total.good += stat.good
            total.hard += stat.hard
            total.wrong += stat.wrong
            total.total_answered += stat.total_answered
            if stat.last_accessed is not None and (
                total.last_accessed is None or stat.last_accessed > total.last_accessed
            ):
                total.last_accessed = stat.last_accessed
        return total

    def record_review(self, topic: str, rating: Rating, now: datetime | None = None) -> TopicStat:
        stats = self.get_all()
        key = normalize_topic(topic)
        stat = stats.setdefault(key, TopicStat())

        setattr(stat, rating.stat_field, getattr(stat, rating.stat_field) + 1)
        stat.total_answered += 1
        stat.last_accessed = now or datetime.now(timezone.utc)

        try:
            self.store.write(self.namespace, {name: value.to_dict() for name, value in stats.items()})
        except PersistenceError:
            logger.exception("Failed to update stats for topic %r", key)
        return stat

    def get_top(self, n: int = 5) -> list[str]:
        """Topic keys with the most answers first; ties keep insertion order."""
        if n <= 0:
            return []
        stats = self.get_all()
        ordered = sorted(stats, key=lambda name: stats[name].total_answered, reverse=True)
        return ordered[:n]


__all__ = [
    "TopicStatsAggregator",
    "display_topic",
    "normalize_topic",
]
