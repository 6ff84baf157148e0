"""
Topic progress analytics.

Strength history, mastery trend and topic recommendations derived from a
learner's attempts and stored topic states.
"""

from __future__ import annotations

import math
import random
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from loguru import logger

from adaptive_scheduler.core.mastery import AttemptOutcome, MasteryLevel, classify_attempt
from adaptive_scheduler.core.topics import (
    DEFAULT_STRENGTH,
    MathTopic,
    TopicScheduleState,
    clamp01,
    utc_now,
)

STRENGTH_DECAY_FACTOR = 0.2
WEAK_TOPIC_THRESHOLD = 0.6
STRONG_TOPIC_THRESHOLD = 0.8
TREND_THRESHOLD = 0.1
MAX_LISTED_TOPICS = 5


class MasteryTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


@dataclass
class TopicProgressSummary:
    """Learning progress for one topic."""

    topic: MathTopic
    strength: float
    review_count: int = 0
    last_reviewed: datetime | None = None
    next_review: datetime | None = None
    average_turns: float = 0.0
    trend: MasteryTrend = MasteryTrend.STABLE
    recent_attempts: list[AttemptOutcome] = field(default_factory=list)


def _newest_first(attempts: Sequence[AttemptOutcome]) -> list[AttemptOutcome]:
    """Most recent first; without timestamps the input is taken as oldest first."""
    ordered = list(attempts)
    if ordered and all(a.created_at is not None for a in ordered):
        return sorted(ordered, key=lambda a: a.created_at, reverse=True)
    return ordered[::-1]


def _score(attempt: AttemptOutcome) -> float:
    level = attempt.mastery_level if attempt.mastery_level is not None else classify_attempt(attempt)
    return MasteryLevel(level).strength_score


def calculate_topic_strength(
    attempts: Sequence[AttemptOutcome],
    decay_factor: float = STRENGTH_DECAY_FACTOR,
    default_strength: float = DEFAULT_STRENGTH,
) -> float:
    """
    Topic strength (0-1) from attempt history.

    Exponentially-decayed weighted average of mastery scores, the most recent
    attempt weighted 1 and each older one by exp(-index * decay_factor).
    """
    if not attempts:
        return clamp01(default_strength)

    weighted_sum = 0.0
    weight_sum = 0.0
    for index, attempt in enumerate(_newest_first(attempts)):
        weight = math.exp(-index * decay_factor)
        weighted_sum += _score(attempt) * weight
        weight_sum += weight

    strength = clamp01(weighted_sum / weight_sum)
    logger.debug(f"[Strength Calc] {len(attempts)} attempts -> strength {strength:.2f}")
    return strength


def calculate_mastery_trend(attempts: Sequence[AttemptOutcome]) -> MasteryTrend:
    """Compare the two newest attempts with the three before them."""
    if len(attempts) < 3:
        return MasteryTrend.STABLE

    ordered = _newest_first(attempts)
    recent = ordered[:2]
    older = ordered[2:5]

    recent_avg = sum(_score(a) for a in recent) / len(recent)
    older_avg = sum(_score(a) for a in older) / len(older)
    diff = recent_avg - older_avg

    if diff > TREND_THRESHOLD:
        return MasteryTrend.IMPROVING
    if diff < -TREND_THRESHOLD:
        return MasteryTrend.DECLINING
    return MasteryTrend.STABLE


def analyze_topic_progress(
    topic: MathTopic | str,
    attempts: Sequence[AttemptOutcome],
    state: TopicScheduleState | None = None,
    decay_factor: float = STRENGTH_DECAY_FACTOR,
    default_strength: float = DEFAULT_STRENGTH,
) -> TopicProgressSummary:
    """Summarize one topic from all of a learner's attempts."""
    topic = MathTopic.parse(topic)
    topic_attempts = [a for a in attempts if a.topic is not None and MathTopic.parse(a.topic) is topic]

    average_turns = (
        sum(a.turns_taken for a in topic_attempts) / len(topic_attempts) if topic_attempts else 0.0
    )

    return TopicProgressSummary(
        topic=topic,
        strength=calculate_topic_strength(topic_attempts, decay_factor, default_strength),
        review_count=state.review_count if state else 0,
        last_reviewed=state.last_reviewed if state else None,
        next_review=state.next_review if state else None,
        average_turns=average_turns,
        trend=calculate_mastery_trend(topic_attempts),
        recent_attempts=_newest_first(topic_attempts)[:MAX_LISTED_TOPICS],
    )


def identify_weak_topics(
    states: Sequence[TopicScheduleState],
    threshold: float = WEAK_TOPIC_THRESHOLD,
) -> list[TopicScheduleState]:
    """Up to five topics below the weak threshold, weakest first."""
    weak = sorted((s for s in states if s.strength < threshold), key=lambda s: s.strength)
    weak = weak[:MAX_LISTED_TOPICS]
    if weak:
        logger.debug(
            f"[Weak Topics] Found {len(weak)}: "
            + ", ".join(f"{s.topic.value} ({s.strength:.2f})" for s in weak)
        )
    return weak


def identify_strong_topics(
    states: Sequence[TopicScheduleState],
    threshold: float = STRONG_TOPIC_THRESHOLD,
) -> list[TopicScheduleState]:
    """Up to five topics at or above the strong threshold, strongest first."""
    strong = sorted((s for s in states if s.strength >= threshold), key=lambda s: -s.strength)
    return strong[:MAX_LISTED_TOPICS]


def recommend_next_topic(
    states: Sequence[TopicScheduleState],
    now: datetime | None = None,
    rng: random.Random | None = None,
    weak_threshold: float = WEAK_TOPIC_THRESHOLD,
) -> MathTopic | None:
    """
    Next single topic to study.

    The weakest due topic, else the weakest weak topic, else a random topic
    for maintenance. None when nothing is tracked.
    """
    if not states:
        return None

    now = now or utc_now()
    due = [s for s in states if s.is_due(now)]
    if due:
        return min(due, key=lambda s: s.strength).topic

    weak = identify_weak_topics(states, weak_threshold)
    if weak:
        return weak[0].topic

    rng = rng or random.Random()
    return states[rng.randrange(len(states))].topic
