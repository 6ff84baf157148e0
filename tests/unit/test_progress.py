"""
Unit tests for topic progress analytics.
"""

import math
import random
from datetime import timedelta

import pytest

from adaptive_scheduler.core.mastery import AttemptOutcome, MasteryLevel
from adaptive_scheduler.core.topics import MathTopic
from adaptive_scheduler.study.progress import (
    MasteryTrend,
    analyze_topic_progress,
    calculate_mastery_trend,
    calculate_topic_strength,
    identify_strong_topics,
    identify_weak_topics,
    recommend_next_topic,
)
from config import Settings


def history(levels, now, topic="geometry", turns=4):
    """Attempts oldest first, one hour apart."""
    return [
        AttemptOutcome(
            problem_text=f"problem {i}",
            turns_taken=turns,
            topic=topic,
            mastery_level=level,
            created_at=now + timedelta(hours=i),
        )
        for i, level in enumerate(levels)
    ]


class TestTopicStrength:
    def test_no_attempts_default(self):
        assert calculate_topic_strength([]) == 0.5

    def test_configured_default_and_decay(self, now):
        assert calculate_topic_strength([], default_strength=0.3) == 0.3
        attempts = history([MasteryLevel.STRUGGLING, MasteryLevel.MASTERED], now)
        # No decay: plain mean of 0.3 and 1.0
        assert calculate_topic_strength(attempts, decay_factor=0.0) == pytest.approx(0.65)

    def test_single_attempt_is_its_score(self, now):
        assert calculate_topic_strength(history([MasteryLevel.COMPETENT], now)) == pytest.approx(0.6)

    def test_recent_attempts_weigh_more(self, now):
        improving = history([MasteryLevel.STRUGGLING, MasteryLevel.MASTERED], now)
        declining = history([MasteryLevel.MASTERED, MasteryLevel.STRUGGLING], now)
        assert calculate_topic_strength(improving) > calculate_topic_strength(declining)

    def test_weighted_average(self, now):
        attempts = history([MasteryLevel.STRUGGLING, MasteryLevel.MASTERED], now)
        decay = math.exp(-0.2)
        expected = (1.0 + 0.3 * decay) / (1 + decay)
        assert calculate_topic_strength(attempts) == pytest.approx(expected)


class TestTrend:
    def test_fewer_than_three_is_stable(self, now):
        assert calculate_mastery_trend(history([MasteryLevel.MASTERED] * 2, now)) == MasteryTrend.STABLE

    def test_improving(self, now):
        levels = [MasteryLevel.STRUGGLING] * 3 + [MasteryLevel.MASTERED] * 2
        assert calculate_mastery_trend(history(levels, now)) == MasteryTrend.IMPROVING

    def test_declining(self, now):
        levels = [MasteryLevel.MASTERED] * 3 + [MasteryLevel.STRUGGLING] * 2
        assert calculate_mastery_trend(history(levels, now)) == MasteryTrend.DECLINING

    def test_stable(self, now):
        assert calculate_mastery_trend(history([MasteryLevel.COMPETENT] * 5, now)) == MasteryTrend.STABLE


class TestAnalyzeTopic:
    def test_summary_filters_by_topic(self, now, make_state):
        attempts = history([MasteryLevel.MASTERED] * 3, now, turns=4) + history(
            [MasteryLevel.STRUGGLING], now, topic="calculus", turns=12
        )
        state = make_state(MathTopic.GEOMETRY, due_in_days=2, review_count=3)
        summary = analyze_topic_progress("geometry", attempts, state)
        assert summary.topic == MathTopic.GEOMETRY
        assert summary.strength == pytest.approx(1.0)
        assert summary.average_turns == pytest.approx(4.0)
        assert summary.review_count == 3
        assert summary.next_review == state.next_review
        assert len(summary.recent_attempts) == 3

    def test_no_attempts(self):
        summary = analyze_topic_progress(MathTopic.CALCULUS, [])
        assert summary.strength == 0.5
        assert summary.average_turns == 0.0
        assert summary.trend == MasteryTrend.STABLE


class TestWeakStrong:
    def test_weak_sorted_and_capped(self, make_state):
        states = [make_state(topic, strength=0.1 * i) for i, topic in enumerate(list(MathTopic)[:7])]
        weak = identify_weak_topics(states)
        assert len(weak) == 5
        assert [s.strength for s in weak] == sorted(s.strength for s in weak)

    def test_strong(self, make_state):
        states = [
            make_state(MathTopic.GEOMETRY, strength=0.8),
            make_state(MathTopic.CALCULUS, strength=0.95),
            make_state(MathTopic.RADICALS, strength=0.79),
        ]
        assert [s.topic for s in identify_strong_topics(states)] == [MathTopic.CALCULUS, MathTopic.GEOMETRY]

    def test_settings_expose_progress_thresholds(self):
        config = Settings(strong_topic_threshold=0.9, strength_decay_factor=0.1).get_progress_config()
        assert config == {
            "weak_threshold": 0.6,
            "strong_threshold": 0.9,
            "decay_factor": 0.1,
            "default_strength": 0.5,
        }

    def test_thresholds_are_configurable(self, make_state):
        states = [make_state(MathTopic.GEOMETRY, strength=0.7), make_state(MathTopic.CALCULUS, strength=0.5)]
        assert [s.topic for s in identify_strong_topics(states, threshold=0.65)] == [MathTopic.GEOMETRY]
        assert [s.topic for s in identify_weak_topics(states, threshold=0.75)] == [
            MathTopic.CALCULUS,
            MathTopic.GEOMETRY,
        ]


class TestRecommendNextTopic:
    def test_nothing_tracked(self, now):
        assert recommend_next_topic([], now=now) is None

    def test_weakest_due_first(self, make_state, now):
        states = [
            make_state(MathTopic.GEOMETRY, strength=0.7, due_in_days=-1),
            make_state(MathTopic.CALCULUS, strength=0.4, due_in_days=-1),
            make_state(MathTopic.RADICALS, strength=0.1, due_in_days=3),
        ]
        assert recommend_next_topic(states, now=now) == MathTopic.CALCULUS

    def test_weak_when_nothing_due(self, make_state, now):
        states = [
            make_state(MathTopic.GEOMETRY, strength=0.7, due_in_days=2),
            make_state(MathTopic.RADICALS, strength=0.2, due_in_days=3),
        ]
        assert recommend_next_topic(states, now=now) == MathTopic.RADICALS

    def test_weak_threshold_is_configurable(self, make_state, now):
        states = [
            make_state(MathTopic.CALCULUS, strength=0.72, due_in_days=2),
            make_state(MathTopic.GEOMETRY, strength=0.7, due_in_days=2),
        ]
        # Neither is weak at the default 0.6
        assert recommend_next_topic(states, now=now, weak_threshold=0.75) == MathTopic.GEOMETRY

    def test_random_maintenance_is_seedable(self, make_state, now):
        states = [
            make_state(MathTopic.GEOMETRY, strength=0.9, due_in_days=2),
            make_state(MathTopic.CALCULUS, strength=0.9, due_in_days=2),
        ]
        first = recommend_next_topic(states, now=now, rng=random.Random(5))
        second = recommend_next_topic(states, now=now, rng=random.Random(5))
        assert first == second
        assert first in {MathTopic.GEOMETRY, MathTopic.CALCULUS}
