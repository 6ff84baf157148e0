"""
Study Module - Scheduling and session composition.

Components:
- spaced_repetition: SM-2 scheduling of topic reviews
- interference: Interference groups and topic spacing
- prioritizer: Mixed practice session composition
- adaptive_intervals: Performance tiers and adaptive first intervals
- progress: Topic strength, trend and recommendations
"""

from adaptive_scheduler.study.adaptive_intervals import (
    PerformanceTier,
    compute_adaptive_tier,
    get_adaptive_ease_factor,
    get_adaptive_initial_interval,
    get_adaptive_new_topic_schedule,
    initial_schedule_for_tier,
    should_use_adaptive_intervals,
)
from adaptive_scheduler.study.interference import (
    INTERFERENCE_GROUPS,
    SequenceAnalysis,
    analyze_topic_sequence,
    are_in_same_group,
    filter_interfering_topics,
    get_interference_group,
    optimize_topic_spacing,
)
from adaptive_scheduler.study.prioritizer import (
    FOUNDATIONAL_TOPICS,
    PracticePlan,
    PracticePrioritizer,
    PrioritizationConfig,
    plan_for_new_learner,
    prioritize_topics,
    suggest_session_size,
)
from adaptive_scheduler.study.progress import (
    MasteryTrend,
    TopicProgressSummary,
    analyze_topic_progress,
    calculate_mastery_trend,
    calculate_topic_strength,
    identify_strong_topics,
    identify_weak_topics,
    recommend_next_topic,
)
from adaptive_scheduler.study.spaced_repetition import (
    SM2_PARAMS,
    InitialScheduleParams,
    ReviewSchedule,
    SM2Scheduler,
    calculate_next_review,
    calculate_optimal_session_length,
    compute_next_schedule,
    get_topics_due_for_review,
    get_upcoming_reviews,
    is_topic_lapsed,
    mastery_to_quality,
)

__all__ = [
    # Spaced repetition
    "SM2_PARAMS",
    "InitialScheduleParams",
    "ReviewSchedule",
    "SM2Scheduler",
    "calculate_next_review",
    "calculate_optimal_session_length",
    "compute_next_schedule",
    "get_topics_due_for_review",
    "get_upcoming_reviews",
    "is_topic_lapsed",
    "mastery_to_quality",
    # Interference
    "INTERFERENCE_GROUPS",
    "SequenceAnalysis",
    "analyze_topic_sequence",
    "are_in_same_group",
    "filter_interfering_topics",
    "get_interference_group",
    "optimize_topic_spacing",
    # Prioritizer
    "FOUNDATIONAL_TOPICS",
    "PracticePlan",
    "PracticePrioritizer",
    "PrioritizationConfig",
    "plan_for_new_learner",
    "prioritize_topics",
    "suggest_session_size",
    # Adaptive intervals
    "PerformanceTier",
    "compute_adaptive_tier",
    "get_adaptive_ease_factor",
    "get_adaptive_initial_interval",
    "get_adaptive_new_topic_schedule",
    "initial_schedule_for_tier",
    "should_use_adaptive_intervals",
    # Progress
    "MasteryTrend",
    "TopicProgressSummary",
    "analyze_topic_progress",
    "calculate_mastery_trend",
    "calculate_topic_strength",
    "identify_strong_topics",
    "identify_weak_topics",
    "recommend_next_topic",
]
