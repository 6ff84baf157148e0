"""
Unit tests for the topic taxonomy and schedule state records.
"""

from datetime import datetime, timedelta, timezone

import pytest

from adaptive_scheduler.core.errors import InvalidRecordError
from adaptive_scheduler.core.topics import MathTopic, TopicScheduleState


class TestMathTopic:
    def test_parse_normalizes(self):
        assert MathTopic.parse(" Word-Problems ") == MathTopic.WORD_PROBLEMS

    def test_parse_unknown_raises_value_error(self):
        with pytest.raises(ValueError):
            MathTopic.parse("topology")

    def test_display_name(self):
        assert MathTopic.SYSTEMS_OF_EQUATIONS.display_name == "Systems Of Equations"

    def test_taxonomy_size(self):
        assert len(MathTopic) == 15


class TestClamp:
    def test_out_of_range_values_repaired(self):
        state = TopicScheduleState(
            topic=MathTopic.GEOMETRY, strength=-0.2, review_count=-3, ease_factor=1.1, interval_days=0
        ).clamped()
        assert state.strength == 0.0
        assert state.review_count == 0
        assert state.ease_factor == 1.3
        assert state.interval_days == 1

    def test_strength_above_one(self):
        assert TopicScheduleState(topic=MathTopic.GEOMETRY, strength=1.4).clamped().strength == 1.0

    def test_idempotent(self):
        raw = TopicScheduleState(topic=MathTopic.GEOMETRY, strength=3.0, ease_factor=0.5)
        once = raw.clamped()
        assert once.clamped() == once

    def test_valid_state_unchanged(self):
        state = TopicScheduleState(topic=MathTopic.GEOMETRY, strength=0.4, ease_factor=2.1, interval_days=6)
        assert state.clamped() == state

    def test_naive_timestamps_become_utc(self):
        state = TopicScheduleState(
            topic=MathTopic.GEOMETRY,
            last_reviewed=datetime(2024, 3, 1, 12),
            next_review=datetime(2024, 3, 2, 12),
        ).clamped()
        assert state.last_reviewed == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)
        assert state.next_review.tzinfo is timezone.utc


class TestRecords:
    def test_round_trip(self, now):
        state = TopicScheduleState(
            topic=MathTopic.RADICALS,
            strength=0.65,
            review_count=2,
            ease_factor=2.7,
            interval_days=6,
            last_reviewed=now,
            next_review=now + timedelta(days=6),
        )
        record = state.to_record()
        assert record["topic"] == "radicals"
        assert record["next_review"] == (now + timedelta(days=6)).isoformat()
        assert TopicScheduleState.from_record(record) == state

    def test_from_record_clamps(self):
        state = TopicScheduleState.from_record({"topic": "geometry", "ease_factor": 1.0, "strength": 2})
        assert state.ease_factor == 1.3
        assert state.strength == 1.0

    def test_from_record_defaults(self):
        state = TopicScheduleState.from_record({"topic": "geometry", "strength": None})
        assert state.strength == 0.5
        assert state.review_count == 0
        assert state.next_review is None

    def test_zulu_and_naive_timestamps_are_utc(self):
        state = TopicScheduleState.from_record(
            {"topic": "geometry", "last_reviewed": "2024-03-01T12:00:00Z", "next_review": "2024-03-02T12:00:00"}
        )
        assert state.last_reviewed == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)
        assert state.next_review == datetime(2024, 3, 2, 12, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "record",
        [
            {},
            {"topic": "topology"},
            {"topic": "geometry", "next_review": "yesterday"},
            {"topic": "geometry", "interval_days": "six"},
        ],
    )
    def test_invalid_records_raise(self, record):
        with pytest.raises(InvalidRecordError):
            TopicScheduleState.from_record(record)

    def test_due(self, now):
        state = TopicScheduleState(topic=MathTopic.GEOMETRY, next_review=now - timedelta(hours=1))
        assert state.is_due(now)
        assert state.overdue_days(now) == pytest.approx(1 / 24)
        assert not TopicScheduleState(topic=MathTopic.GEOMETRY).is_due(now)

    def test_naive_and_aware_times_compare(self, now):
        naive_review = TopicScheduleState(topic=MathTopic.GEOMETRY, next_review=datetime(2024, 3, 1, 11))
        assert naive_review.is_due(now)
        assert naive_review.overdue_days(now) == pytest.approx(1 / 24)

        aware_review = TopicScheduleState(topic=MathTopic.GEOMETRY, next_review=now + timedelta(days=1))
        assert not aware_review.is_due(datetime(2024, 3, 1, 12))
        assert aware_review.overdue_days(datetime(2024, 3, 1, 12)) == pytest.approx(-1)
