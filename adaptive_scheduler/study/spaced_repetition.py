"""
Spaced Repetition Engine - SM-2 variant.

Given the previous scheduling state of a topic and the mastery of a new
attempt, computes the next ease factor, interval, strength and due date.
Nothing is persisted here: the caller stores the returned state.

Based on:
- Wozniak (SuperMemo 2 algorithm)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from loguru import logger

from adaptive_scheduler.core.mastery import MasteryLevel
from adaptive_scheduler.core.topics import (
    DEFAULT_STRENGTH,
    INITIAL_EASE_FACTOR,
    MIN_EASE_FACTOR,
    MathTopic,
    TopicScheduleState,
    as_utc,
    clamp01,
    utc_now,
)

# =============================================================================
# SM-2 CONSTANTS
# =============================================================================

SM2_PARAMS = {
    "minEaseFactor": MIN_EASE_FACTOR,
    "initialEaseFactor": INITIAL_EASE_FACTOR,
    "easeFactorModifier": 0.1,
    "successQuality": 3,      # quality >= 3 counts as recall
    "firstInterval": 1,       # days after first successful review
    "secondInterval": 6,      # days after second successful review
    "strengthCurrentWeight": 0.7,
    "strengthNewWeight": 0.3,
    "lapseMultiplier": 2.0,   # overdue by > 2x interval = lapsed
    "defaultStrength": DEFAULT_STRENGTH,
}

MAX_QUALITY = 5


@dataclass(frozen=True)
class ReviewSchedule:
    """Result of one SM-2 step."""

    next_review: datetime
    interval_days: int
    ease_factor: float
    review_count: int


@dataclass(frozen=True)
class InitialScheduleParams:
    """Starting interval and ease for a topic with no history."""

    interval_days: int = 1
    ease_factor: float = INITIAL_EASE_FACTOR


def round_half_up(value: float) -> int:
    """Round .5 upwards (15.6 -> 16, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def mastery_to_quality(mastery: MasteryLevel | str) -> int:
    """Map mastery to an SM-2 quality score (mastered=5, competent=3, struggling=1)."""
    return MasteryLevel(mastery).quality


class SM2Scheduler:
    """
    SM-2 Spaced Repetition Scheduler.

    The update:
        ease' = max(1.3, ease + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)))
        q < 3  -> interval 1, review count reset to 0
        q >= 3 -> 1 day, then 6 days, then round(interval * ease')
        strength' = clamp01(0.7 * strength + 0.3 * q / 5)
    """

    def __init__(self, params: dict | None = None):
        self.params = {**SM2_PARAMS, **(params or {})}
        self.min_ease = self.params["minEaseFactor"]
        self.initial_ease = self.params["initialEaseFactor"]
        self.success_quality = self.params["successQuality"]

    @classmethod
    def from_settings(cls) -> SM2Scheduler:
        """Build a scheduler from application settings."""
        from config import get_settings

        config = get_settings().get_sm2_config()
        return cls(
            {
                "minEaseFactor": config["min_ease_factor"],
                "initialEaseFactor": config["initial_ease_factor"],
                "firstInterval": config["first_interval"],
                "secondInterval": config["second_interval"],
                "defaultStrength": config["default_strength"],
            }
        )

    def next_ease_factor(self, ease_factor: float, quality: int) -> float:
        """Apply the SM-2 ease update with the 1.3 floor."""
        miss = MAX_QUALITY - quality
        delta = self.params["easeFactorModifier"] - miss * (0.08 + miss * 0.02)
        return max(self.min_ease, ease_factor + delta)

    def calculate_next_review(
        self,
        current_interval: int,
        current_ease_factor: float,
        quality: int,
        review_count: int,
        now: datetime | None = None,
        first_interval: int | None = None,
    ) -> ReviewSchedule:
        """
        Calculate the next review from raw SM-2 inputs.

        Args:
            current_interval: Current interval in days
            current_ease_factor: Current ease factor
            quality: Quality of recall (0-5, clamped)
            review_count: Completed successful reviews
            now: Reference time (defaults to current UTC time)
            first_interval: Override for the first successful interval

        Returns:
            ReviewSchedule with new interval, ease, review count and due date
        """
        quality = max(0, min(MAX_QUALITY, int(quality)))
        now = as_utc(now or utc_now())
        current_ease_factor = max(self.min_ease, current_ease_factor)

        ease_factor = self.next_ease_factor(current_ease_factor, quality)

        if quality < self.success_quality:
            interval = 1
            new_count = 0
        else:
            new_count = review_count + 1
            if review_count <= 0:
                interval = first_interval or self.params["firstInterval"]
            elif review_count == 1:
                interval = self.params["secondInterval"]
            else:
                interval = round_half_up(max(1, current_interval) * ease_factor)

        interval = max(1, interval)

        return ReviewSchedule(
            next_review=now + timedelta(days=interval),
            interval_days=interval,
            ease_factor=ease_factor,
            review_count=new_count,
        )

    def compute_next_schedule(
        self,
        previous: TopicScheduleState | None,
        mastery: MasteryLevel | str,
        topic: MathTopic | str | None = None,
        now: datetime | None = None,
        initial: InitialScheduleParams | None = None,
    ) -> TopicScheduleState:
        """
        Compute the next state of a topic after one attempt.

        Args:
            previous: Stored state, or None for a first-time topic
            mastery: Mastery of the new attempt
            topic: Topic label (required when previous is None)
            now: Reference time for last_reviewed / next_review
            initial: Adaptive starting parameters for a first-time topic

        Returns:
            New TopicScheduleState satisfying the engine invariants
        """
        now = as_utc(now or utc_now())
        mastery = MasteryLevel(mastery)
        quality = mastery.quality
        first_interval = None

        if previous is None:
            if topic is None:
                raise ValueError("topic is required when there is no previous state")
            start = initial or InitialScheduleParams(ease_factor=self.initial_ease)
            previous = TopicScheduleState(
                topic=MathTopic.parse(topic),
                strength=self.params["defaultStrength"],
                review_count=0,
                ease_factor=start.ease_factor,
                interval_days=start.interval_days,
            )
            first_interval = start.interval_days
        previous = previous.clamped()

        schedule = self.calculate_next_review(
            previous.interval_days,
            previous.ease_factor,
            quality,
            previous.review_count,
            now=now,
            first_interval=first_interval,
        )

        strength = clamp01(
            previous.strength * self.params["strengthCurrentWeight"]
            + (quality / MAX_QUALITY) * self.params["strengthNewWeight"]
        )

        logger.info(
            f"[SM-2 Update] {previous.topic.value}: {mastery.value} (q={quality}), "
            f"ease {previous.ease_factor:.2f} -> {schedule.ease_factor:.2f}, "
            f"interval {previous.interval_days}d -> {schedule.interval_days}d, "
            f"strength {previous.strength:.2f} -> {strength:.2f}, "
            f"next review {schedule.next_review.date().isoformat()}"
        )

        return TopicScheduleState(
            topic=previous.topic,
            strength=strength,
            review_count=schedule.review_count,
            ease_factor=schedule.ease_factor,
            interval_days=schedule.interval_days,
            last_reviewed=now,
            next_review=schedule.next_review,
        )

    def is_lapsed(self, state: TopicScheduleState, now: datetime | None = None) -> bool:
        """A topic is lapsed when overdue by more than 2x its interval."""
        if state.next_review is None:
            return False
        state = state.clamped()
        return state.overdue_days(now) > state.interval_days * self.params["lapseMultiplier"]


_default_scheduler = SM2Scheduler()


def calculate_next_review(
    current_interval: int,
    current_ease_factor: float,
    quality: int,
    review_count: int,
    now: datetime | None = None,
) -> ReviewSchedule:
    """SM-2 step with default parameters."""
    return _default_scheduler.calculate_next_review(
        current_interval, current_ease_factor, quality, review_count, now=now
    )


def compute_next_schedule(
    previous: TopicScheduleState | None,
    mastery: MasteryLevel | str,
    topic: MathTopic | str | None = None,
    now: datetime | None = None,
    initial: InitialScheduleParams | None = None,
) -> TopicScheduleState:
    """Next topic state with default SM-2 parameters."""
    return _default_scheduler.compute_next_schedule(
        previous, mastery, topic=topic, now=now, initial=initial
    )


# =============================================================================
# Review queries
# =============================================================================


def get_topics_due_for_review(
    states: list[TopicScheduleState],
    now: datetime | None = None,
) -> list[TopicScheduleState]:
    """Topics with next_review <= now, most overdue first."""
    now = now or utc_now()
    due = [s for s in states if s.is_due(now)]
    return sorted(due, key=lambda s: as_utc(s.next_review))


def get_upcoming_reviews(
    states: list[TopicScheduleState],
    days_ahead: int = 7,
    now: datetime | None = None,
) -> list[TopicScheduleState]:
    """Topics that become due within the next `days_ahead` days."""
    now = as_utc(now or utc_now())
    horizon = now + timedelta(days=days_ahead)
    upcoming = [
        s for s in states
        if s.next_review is not None and now < as_utc(s.next_review) <= horizon
    ]
    return sorted(upcoming, key=lambda s: as_utc(s.next_review))


def is_topic_lapsed(state: TopicScheduleState, now: datetime | None = None) -> bool:
    """Whether a topic is overdue by more than twice its interval."""
    return _default_scheduler.is_lapsed(state, now)


def calculate_optimal_session_length(
    due_count: int,
    average_session_length: float = 0.0,
) -> int:
    """
    Suggest how many problems to practice.

    Based on due reviews (capped at 10, 3 for a maintenance session when
    nothing is due), averaged with the learner's usual session length and
    clamped to 1-15.
    """
    session_length = min(due_count, 10)
    if session_length <= 0:
        session_length = 3

    if average_session_length > 0:
        session_length = round_half_up((session_length + average_session_length) / 2)

    return max(1, min(15, session_length))
