"""
Core Module - Shared domain models.

Components:
- topics: Topic taxonomy and TopicScheduleState
- mastery: Attempt mastery classification (MasteryLevel, MasteryClassifier)
- errors: Caller-level exceptions

Design Principle:
Domain modules (classification/, study/, tutoring/) import from core/
rather than redefining topics or mastery levels.
"""

from adaptive_scheduler.core.errors import (
    ClassifierUnavailableError,
    InvalidRecordError,
    SchedulerError,
)
from adaptive_scheduler.core.mastery import (
    DEFAULT_MASTERY,
    AttemptOutcome,
    MasteryClassifier,
    MasteryLevel,
    StruggleData,
    classify_attempt,
    classify_mastery,
    struggle_penalty,
)
from adaptive_scheduler.core.topics import (
    ALL_TOPICS,
    DEFAULT_TOPIC,
    MathTopic,
    TopicScheduleState,
    utc_now,
)

__all__ = [
    # Topics
    "ALL_TOPICS",
    "DEFAULT_TOPIC",
    "MathTopic",
    "TopicScheduleState",
    "utc_now",
    # Mastery
    "AttemptOutcome",
    "DEFAULT_MASTERY",
    "MasteryClassifier",
    "MasteryLevel",
    "StruggleData",
    "classify_attempt",
    "classify_mastery",
    "struggle_penalty",
    # Errors
    "ClassifierUnavailableError",
    "InvalidRecordError",
    "SchedulerError",
]
