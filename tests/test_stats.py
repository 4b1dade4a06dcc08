from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from flashai.db import TOPIC_STATS_NAMESPACE, RecordStore
from flashai.models import Rating, TopicStat
from flashai.stats import TopicStatsAggregator, display_topic, normalize_topic

NOW = datetime(2024, 5, 10, 18, 0, tzinfo=timezone.utc)


@pytest.fixture()
def store(tmp_path) -> RecordStore:
    record_store = RecordStore(tmp_path / "stats.db")
    record_store.init()
    return record_store


@pytest.fixture()
def stats(store: RecordStore) -> TopicStatsAggregator:
    return TopicStatsAggregator(store)


def test_normalize_topic_trims_and_lowercases() -> None:
    assert normalize_topic("  Cell Biology ") == "cell biology"


def test_display_topic_capitalises_first_letter() -> None:
    assert display_topic("cell biology") == "Cell biology"
    assert display_topic("") == ""


def test_record_review_creates_topic_lazily(stats: TopicStatsAggregator) -> None:
    assert stats.get_all() == {}

    stat = stats.record_review("Biology", Rating.GOOD, now=NOW)

    assert stat == TopicStat(good=1, total_answered=1, last_accessed=NOW)
    assert stats.get_all() == {"biology": stat}


def test_record_review_counts_each_rating(stats: TopicStatsAggregator) -> None:
    for rating in (Rating.AGAIN, Rating.AGAIN, Rating.HARD, Rating.GOOD, Rating.EASY, Rating.EASY):
        stats.record_review("Chemistry", rating, now=NOW)

    stat = stats.get_for_topic("chemistry")
    assert (stat.wrong, stat.hard, stat.good, stat.easy) == (2, 1, 1, 2)
    assert stat.total_answered == 6
    assert stat.total_answered == stat.wrong + stat.hard + stat.good + stat.easy


def test_topics_differing_in_case_and_spacing_share_a_key(stats: TopicStatsAggregator) -> None:
    stats.record_review("Physics", Rating.GOOD, now=NOW)
    stats.record_review("  physics ", Rating.HARD, now=NOW + timedelta(minutes=1))

    all_stats = stats.get_all()
    assert list(all_stats) == ["physics"]
    assert all_stats["physics"].total_answered == 2
    assert all_stats["physics"].last_accessed == NOW + timedelta(minutes=1)


def test_get_for_unknown_topic_is_zeroed(stats: TopicStatsAggregator) -> None:
    assert stats.get_for_topic("Astronomy") == TopicStat()


def test_global_stats_sum_every_topic(stats: TopicStatsAggregator) -> None:
    stats.record_review("a", Rating.EASY, now=NOW)
    stats.record_review("b", Rating.AGAIN, now=NOW + timedelta(hours=2))
    stats.record_review("b", Rating.GOOD, now=NOW + timedelta(hours=1))

    total = stats.get_global()

    assert (total.easy, total.good, total.hard, total.wrong) == (1, 1, 0, 1)
    assert total.total_answered == 3
    assert total.last_accessed == NOW + timedelta(hours=1)


def test_global_stats_empty(stats: TopicStatsAggregator) -> None:
    assert stats.get_global() == TopicStat()


def test_get_top_orders_by_answers_with_stable_ties(stats: TopicStatsAggregator) -> None:
    for topic, answers in [("art", 1), ("math", 3), ("music", 1), ("law", 2)]:
        for _ in range(answers):
            stats.record_review(topic, Rating.GOOD, now=NOW)

    assert stats.get_top(5) == ["math", "law", "art", "music"]
    assert stats.get_top(2) == ["math", "law"]
    assert stats.get_top(0) == []


def test_stats_persist_as_object_keyed_by_topic(stats: TopicStatsAggregator, store: RecordStore) -> None:
    stats.record_review(" Geography ", Rating.HARD, now=NOW)

    raw = store.read(TOPIC_STATS_NAMESPACE).value

    assert raw == {
        "geography": {
            "easy": 0,
            "good": 0,
            "hard": 1,
            "wrong": 0,
            "total_answered": 1,
            "last_accessed": "2024-05-10T18:00:00+00:00",
        }
    }
    assert TopicStatsAggregator(store).get_for_topic("geography").hard == 1


@pytest.mark.parametrize(
    "payload",
    [
        "[1, 2, 3]",
        "not json",
        '{"x": 5}',
        '{"x": {"easy": Infinity}}',
        '{"x": {"last_accessed": 1e300}}',
        '{"x": ' + "[" * 100_000 + "]" * 100_000 + "}",
    ],
)
def test_corrupt_stats_fail_open(stats: TopicStatsAggregator, store: RecordStore, payload: str) -> None:
    store.write_raw(TOPIC_STATS_NAMESPACE, payload)

    assert stats.get_all() == {}

    stats.record_review("fresh", Rating.EASY, now=NOW)
    assert list(stats.get_all()) == ["fresh"]


def test_write_failure_keeps_returning_updated_stat(tmp_path) -> None:
    # Schema never initialised, so the write fails.
    stats = TopicStatsAggregator(RecordStore(tmp_path / "missing.db"))

    stat = stats.record_review("topic", Rating.GOOD, now=NOW)

    assert stat.good == 1
    assert stats.get_all() == {}
