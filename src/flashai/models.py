from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Mapping

StudyMode = Literal["flashcard", "cloze"]

STUDY_MODES: tuple[StudyMode, ...] = ("flashcard", "cloze")


class Rating(str, Enum):
    """Qualitative outcome of a single review, ordered from lapse to easy."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @property
    def quality(self) -> int:
        return _QUALITY[self]

    @property
    def stat_field(self) -> str:
        """Name of the TopicStat counter this rating increments."""
        return _STAT_FIELD[self]

    @property
    def is_lapse(self) -> bool:
        return self is Rating.AGAIN


_QUALITY: dict[Rating, int] = {
    Rating.AGAIN: 0,
    Rating.HARD: 3,
    Rating.GOOD: 4,
    Rating.EASY: 5,
}

_STAT_FIELD: dict[Rating, str] = {
    Rating.AGAIN: "wrong",
    Rating.HARD: "hard",
    Rating.GOOD: "good",
    Rating.EASY: "easy",
}


class DifficultyLevel(str, Enum):
    ELEMENTARY = "Elementary school"
    HIGH_SCHOOL = "High school"
    UNIVERSITY = "University / professional"
    EXPERT = "Expert / PhD"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _format_ts(value: datetime | None) -> str | None:
    if value is None:
        return None
    return _as_utc(value).isoformat(timespec="seconds")


def _parse_ts(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        # Epoch milliseconds, as written by older exports of the library.
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return _as_utc(datetime.fromisoformat(str(value)))


@dataclass(slots=True)
class Card:
    id: str
    topic: str
    question: str
    answer: str
    cloze_text: str | None = None
    is_inverse: bool = False
    repetition: int = 0
    interval: int = 0
    ease_factor: float = 2.5
    next_review: datetime | None = None

    def is_due(self, now: datetime) -> bool:
        if self.next_review is None:
            return True
        return self.next_review <= _as_utc(now)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["next_review"] = _format_ts(self.next_review)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Card:
        return cls(
            id=str(data["id"]),
            topic=str(data["topic"]),
            question=str(data["question"]),
            answer=str(data["answer"]),
            cloze_text=data.get("cloze_text"),
            is_inverse=bool(data.get("is_inverse", False)),
            repetition=int(data.get("repetition") or 0),
            interval=int(data.get("interval") or 0),
            ease_factor=float(data.get("ease_factor") or 2.5),
            next_review=_parse_ts(data.get("next_review")),
        )


@dataclass(slots=True)
class GeneratedCard:
    question: str
    answer: str
    cloze_text: str | None = None


@dataclass(slots=True)
class TopicStat:
    easy: int = 0
    good: int = 0
    hard: int = 0
    wrong: int = 0
    total_answered: int = 0
    last_accessed: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["last_accessed"] = _format_ts(self.last_accessed)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TopicStat:
        return cls(
            easy=int(data.get("easy") or 0),
            good=int(data.get("good") or 0),
            hard=int(data.get("hard") or 0),
            wrong=int(data.get("wrong") or 0),
            total_answered=int(data.get("total_answered") or 0),
            last_accessed=_parse_ts(data.get("last_accessed")),
        )


@dataclass(slots=True)
class UserLevelInfo:
    score: int
    level_title: str
    next_level_title: str
    min_score: int
    next_level_score: int
    progress_percent: float


@dataclass(slots=True)
class SessionStats:
    easy: int = 0
    good: int = 0
    hard: int = 0
    wrong: int = 0
    total_time: float = 0.0

    def record(self, rating: Rating) -> None:
        setattr(self, rating.stat_field, getattr(self, rating.stat_field) + 1)

    @property
    def answered(self) -> int:
        return self.easy + self.good + self.hard + self.wrong


@dataclass(slots=True)
class ReviewOutcome:
    card: Card
    points: int
    finished: bool
    stats: SessionStats = field(default_factory=SessionStats)


__all__ = [
    "Card",
    "DifficultyLevel",
    "GeneratedCard",
    "Rating",
    "ReviewOutcome",
    "STUDY_MODES",
    "SessionStats",
    "StudyMode",
    "TopicStat",
    "UserLevelInfo",
]
