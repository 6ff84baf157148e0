"""
Adaptive Initial Intervals for Spaced Repetition.

Adjusts the starting interval and ease of a first-time topic based on the
learner's overall performance: high performers start with longer intervals,
struggling learners keep the frequent standard schedule.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

from loguru import logger

from adaptive_scheduler.core.mastery import AttemptOutcome, MasteryLevel, classify_attempt
from adaptive_scheduler.core.topics import DEFAULT_STRENGTH, INITIAL_EASE_FACTOR, TopicScheduleState
from adaptive_scheduler.study.spaced_repetition import InitialScheduleParams

MIN_ATTEMPTS_FOR_TIER = 5
MIN_TOPICS_FOR_ADAPTIVE = 2
RECENT_WINDOW = 20

HIGH_PERFORMER_MIN_STRENGTH = 0.75
HIGH_PERFORMER_MIN_MASTERY_RATE = 0.7
STRUGGLING_MAX_STRENGTH = 0.5
STRUGGLING_MIN_STRUGGLE_RATE = 0.5


class PerformanceTier(str, Enum):
    """Overall performance of a learner."""

    HIGH_PERFORMER = "high-performer"
    AVERAGE = "average"
    STRUGGLING = "struggling"


TIER_SCHEDULE_PARAMS: dict[PerformanceTier, InitialScheduleParams] = {
    PerformanceTier.HIGH_PERFORMER: InitialScheduleParams(interval_days=3, ease_factor=INITIAL_EASE_FACTOR + 0.3),
    PerformanceTier.AVERAGE: InitialScheduleParams(interval_days=1, ease_factor=INITIAL_EASE_FACTOR),
    PerformanceTier.STRUGGLING: InitialScheduleParams(interval_days=1, ease_factor=INITIAL_EASE_FACTOR - 0.2),
}


def _recent_attempts(attempts: Sequence[AttemptOutcome], window: int) -> list[AttemptOutcome]:
    """Last `window` attempts, ordered by created_at when every attempt has one."""
    ordered = list(attempts)
    if ordered and all(a.created_at is not None for a in ordered):
        ordered.sort(key=lambda a: a.created_at)
    return ordered[-window:] if window > 0 else ordered


def _attempt_mastery(attempt: AttemptOutcome) -> MasteryLevel:
    if attempt.mastery_level is not None:
        return MasteryLevel(attempt.mastery_level)
    return classify_attempt(attempt)


def compute_adaptive_tier(
    states: Sequence[TopicScheduleState],
    attempts: Sequence[AttemptOutcome],
    recent_window: int = RECENT_WINDOW,
    min_attempts: int = MIN_ATTEMPTS_FOR_TIER,
) -> PerformanceTier:
    """
    Classify the learner's performance tier.

    HIGH PERFORMER: average topic strength >= 0.75 and >= 70% of recent
    attempts mastered. STRUGGLING: average strength < 0.5 or > 50% of recent
    attempts struggling. Fewer than `min_attempts` attempts is AVERAGE.

    Args:
        states: All topic states of the learner
        attempts: Attempt history (oldest first unless created_at is set)
        recent_window: How many recent attempts to consider
        min_attempts: Minimum history before leaving the average tier

    Returns:
        PerformanceTier
    """
    recent = _recent_attempts(attempts, recent_window)
    if len(recent) < min_attempts:
        logger.info(
            f"[Adaptive Intervals] Insufficient data ({len(recent)} < {min_attempts} attempts), "
            f"using average tier"
        )
        return PerformanceTier.AVERAGE

    strengths = [s.clamped().strength for s in states]
    avg_strength = sum(strengths) / len(strengths) if strengths else DEFAULT_STRENGTH

    levels = [_attempt_mastery(a) for a in recent]
    mastery_rate = levels.count(MasteryLevel.MASTERED) / len(levels)
    struggling_rate = levels.count(MasteryLevel.STRUGGLING) / len(levels)

    if avg_strength >= HIGH_PERFORMER_MIN_STRENGTH and mastery_rate >= HIGH_PERFORMER_MIN_MASTERY_RATE:
        tier = PerformanceTier.HIGH_PERFORMER
    elif avg_strength < STRUGGLING_MAX_STRENGTH or struggling_rate > STRUGGLING_MIN_STRUGGLE_RATE:
        tier = PerformanceTier.STRUGGLING
    else:
        tier = PerformanceTier.AVERAGE

    logger.info(
        f"[Adaptive Intervals] {len(recent)} attempts, avg strength {avg_strength:.2f}, "
        f"mastery rate {mastery_rate:.0%}, struggling rate {struggling_rate:.0%} -> {tier.value}"
    )
    return tier


def initial_schedule_for_tier(tier: PerformanceTier | str) -> InitialScheduleParams:
    """Starting interval and ease for a first-time topic."""
    return TIER_SCHEDULE_PARAMS[PerformanceTier(tier)]


def get_adaptive_initial_interval(
    tier: PerformanceTier | str,
    topic_strength: float | None = None,
) -> int:
    """
    Initial interval in days, fine-tuned by topic strength.

    A strong topic (>= 0.8) on a 1-day tier is boosted to 2 days; a weak
    topic (< 0.4) on the 3-day tier is reduced to 2 days.
    """
    interval = initial_schedule_for_tier(tier).interval_days

    if topic_strength is not None:
        if topic_strength >= 0.8 and interval == 1:
            interval = 2
            logger.debug(f"[Adaptive Intervals] Topic strength {topic_strength:.2f} -> boosted to {interval} days")
        elif topic_strength < 0.4 and interval == 3:
            interval = 2
            logger.debug(f"[Adaptive Intervals] Topic strength {topic_strength:.2f} -> reduced to {interval} days")

    return interval


def get_adaptive_ease_factor(tier: PerformanceTier | str) -> float:
    """Initial ease: 2.8 high performer, 2.5 average, 2.3 struggling."""
    return initial_schedule_for_tier(tier).ease_factor


def get_adaptive_new_topic_schedule(
    tier: PerformanceTier | str,
    mastery: MasteryLevel | str,
    topic_strength: float | None = None,
) -> InitialScheduleParams:
    """
    Starting parameters for a new topic given the first attempt's mastery.

    Struggling on the first attempt cancels any boost (1 day); a mastered
    first attempt by a high performer gets at least 3 days.
    """
    tier = PerformanceTier(tier)
    mastery = MasteryLevel(mastery)
    interval = get_adaptive_initial_interval(tier, topic_strength)

    if mastery is MasteryLevel.STRUGGLING and interval > 1:
        interval = 1
        logger.debug("[Adaptive Intervals] Struggled on first attempt -> reset to 1 day")
    elif mastery is MasteryLevel.MASTERED and tier is PerformanceTier.HIGH_PERFORMER:
        interval = max(interval, 3)

    return InitialScheduleParams(interval_days=interval, ease_factor=get_adaptive_ease_factor(tier))


def should_use_adaptive_intervals(
    states: Sequence[TopicScheduleState],
    attempts: Sequence[AttemptOutcome],
) -> bool:
    """Adaptive intervals need at least 5 attempts across at least 2 topics."""
    enough = len(attempts) >= MIN_ATTEMPTS_FOR_TIER and len(states) >= MIN_TOPICS_FOR_ADAPTIVE
    if not enough:
        logger.debug(
            f"[Adaptive Intervals] Insufficient data ({len(attempts)} attempts, "
            f"{len(states)} topics), using standard intervals"
        )
    return enough
