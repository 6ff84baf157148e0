"""
Tutoring Module - Multi-step problem tracking.

Components:
- solution_path: Solution outlines (approaches, steps, hints)
- struggle: Struggle/hint state machine driven by learner turns
"""

from adaptive_scheduler.tutoring.solution_path import (
    Approach,
    SolutionOutline,
    Step,
    StepHints,
)
from adaptive_scheduler.tutoring.struggle import (
    StruggleState,
    TurnEvent,
    advance_struggle_state,
    classify_mastery_from_outline,
    current_hint,
    current_step,
    detect_struggle_keywords,
    finalize_attempt,
    format_step_context,
    is_last_step,
    progress_percentage,
    start_struggle_state,
)

__all__ = [
    "Approach",
    "SolutionOutline",
    "Step",
    "StepHints",
    "StruggleState",
    "TurnEvent",
    "advance_struggle_state",
    "classify_mastery_from_outline",
    "current_hint",
    "current_step",
    "detect_struggle_keywords",
    "finalize_attempt",
    "format_step_context",
    "is_last_step",
    "progress_percentage",
    "start_struggle_state",
]
