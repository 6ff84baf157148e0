"""
Adaptive practice scheduler.

Decides the mastery of each solved problem, the topic of a problem, when a
topic is next reviewed (SM-2) and which topics make up a practice session.
"""

from adaptive_scheduler.classification import classify_topic
from adaptive_scheduler.core import (
    AttemptOutcome,
    MasteryLevel,
    MathTopic,
    StruggleData,
    TopicScheduleState,
    classify_mastery,
)
from adaptive_scheduler.study import (
    PerformanceTier,
    compute_adaptive_tier,
    compute_next_schedule,
    prioritize_topics,
)
from adaptive_scheduler.tutoring import (
    SolutionOutline,
    StruggleState,
    TurnEvent,
    advance_struggle_state,
)

__version__ = "1.0.0"

__all__ = [
    "AttemptOutcome",
    "MasteryLevel",
    "MathTopic",
    "PerformanceTier",
    "SolutionOutline",
    "StruggleData",
    "StruggleState",
    "TopicScheduleState",
    "TurnEvent",
    "advance_struggle_state",
    "classify_mastery",
    "classify_topic",
    "compute_adaptive_tier",
    "compute_next_schedule",
    "prioritize_topics",
]
