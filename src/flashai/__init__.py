"""FlashAI: AI-generated flashcards with spaced-repetition review."""

from .db import RecordStore
from .library import CardStore
from .mastery import MasteryEngine, level_info_for_score, points_for_interval
from .models import Card, DifficultyLevel, Rating, TopicStat, UserLevelInfo
from .selection import DueSelector
from .session import StudyEngine, StudySession
from .srs import schedule
from .stats import TopicStatsAggregator

__all__ = [
    "Card",
    "CardStore",
    "DifficultyLevel",
    "DueSelector",
    "MasteryEngine",
    "Rating",
    "RecordStore",
    "StudyEngine",
    "StudySession",
    "TopicStat",
    "TopicStatsAggregator",
    "UserLevelInfo",
    "level_info_for_score",
    "points_for_interval",
    "schedule",
]
