"""
Struggle/Hint State Machine.

Tracks a learner's difficulty signals turn by turn against a solution
outline and decides the hint level and step advancement.

Each turn is a pure transition:

    new_state = advance_struggle_state(state, TurnEvent(...), outline)

Signals:
- Keyword detector: struggle phrases in the learner's message
- External assessment: 0-3 struggle level from the dialogue service

effective level = min(3, max(keyword count, external assessment)), reset to
zero whenever the cursor moves to a new step or approach.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

from loguru import logger

from adaptive_scheduler.core.mastery import MasteryLevel, StruggleData, classify_mastery
from adaptive_scheduler.tutoring.solution_path import SolutionOutline, Step

MAX_STRUGGLE_LEVEL = 3

# Boolean assessments ("student is struggling") map onto level 2
BOOLEAN_STRUGGLE_LEVEL = 2


# =============================================================================
# STRUGGLE PHRASES (re.VERBOSE for readability)
# =============================================================================

STRUGGLE_PATTERNS = [
    re.compile(r"""
        \b don'?t \s+ know \b
    """, re.VERBOSE | re.IGNORECASE),

    re.compile(r"""
        \b dont \s+ know \b
    """, re.VERBOSE | re.IGNORECASE),

    re.compile(r"""
        \b not \s+ sure \b
    """, re.VERBOSE | re.IGNORECASE),

    re.compile(r"""
        \b confused \b
    """, re.VERBOSE | re.IGNORECASE),

    re.compile(r"""
        \b lost \b
    """, re.VERBOSE | re.IGNORECASE),

    re.compile(r"""
        \b stuck \b
    """, re.VERBOSE | re.IGNORECASE),

    re.compile(r"""
        \b help \b
    """, re.VERBOSE | re.IGNORECASE),

    re.compile(r"""
        \b no \s+ (?:idea|clue) \b
    """, re.VERBOSE | re.IGNORECASE),

    re.compile(r"""
        \b what \s+ do \s+ i \s+ do \b
    """, re.VERBOSE | re.IGNORECASE),
]


def detect_struggle_keywords(message: str) -> bool:
    """Whether a learner message contains a struggle phrase."""
    if not isinstance(message, str) or not message:
        return False
    text = message.replace("’", "'")
    return any(pattern.search(text) for pattern in STRUGGLE_PATTERNS)


def normalize_assessment(value: int | float | bool | None) -> int | None:
    """Clamp an external assessment to 0-3 (True -> 2, False -> 0)."""
    if value is None:
        return None
    if isinstance(value, bool):
        return BOOLEAN_STRUGGLE_LEVEL if value else 0
    try:
        level = int(value)
    except (TypeError, ValueError):
        logger.warning(f"[Struggle] Ignoring invalid assessment {value!r}")
        return None
    return max(0, min(MAX_STRUGGLE_LEVEL, level))


@dataclass(frozen=True)
class TurnEvent:
    """One learner turn as reported by the dialogue service."""

    message: str
    ai_struggle_assessment: int | bool | None = None
    step_completed: bool = False
    alternative_approach_index: int | None = None
    problem_completed: bool = False
    incorrect_attempt: bool = False


@dataclass(frozen=True)
class StruggleState:
    """
    Struggle tracking and cursor for one active problem.

    Per-step counters (keyword, assessment, incorrect, effective level, highest
    hint level shown) reset on advancement; the totals survive for final
    mastery classification.

    A hint is counted when the level rises above the highest level already
    shown on the step. A struggle phrase that does not raise the level counts
    as a clarification request instead.
    """

    approach_index: int = 0
    step_index: int = 0
    keyword_struggle_count: int = 0
    ai_struggle_assessment: int = 0
    incorrect_attempt_count: int = 0
    effective_struggle_level: int = 0
    hint_level_shown: int = 0
    turns_taken: int = 0
    hints_shown: int = 0
    total_keyword_struggles: int = 0
    clarification_requests: int = 0
    total_incorrect_attempts: int = 0
    completed: bool = False

    def reset_step_counters(self) -> StruggleState:
        """Clear the per-step counters (used when the cursor moves)."""
        return replace(
            self,
            keyword_struggle_count=0,
            ai_struggle_assessment=0,
            incorrect_attempt_count=0,
            effective_struggle_level=0,
            hint_level_shown=0,
        )


def effective_struggle_level(keyword_count: int, ai_assessment: int) -> int:
    """Hybrid level: the larger of both signals, capped at 3."""
    return min(MAX_STRUGGLE_LEVEL, max(keyword_count, ai_assessment, 0))


def start_struggle_state(outline: SolutionOutline | None = None) -> StruggleState:
    """Initial state with the cursor on the recommended approach."""
    if outline is None:
        return StruggleState()
    return StruggleState(approach_index=outline.recommended_approach_index)


def advance_struggle_state(
    state: StruggleState,
    event: TurnEvent,
    outline: SolutionOutline | None = None,
) -> StruggleState:
    """
    Apply one learner turn.

    Args:
        state: Current state (not modified)
        event: The learner's turn and the dialogue service's signals
        outline: Solution outline, if one was generated for the problem

    Returns:
        New StruggleState; unchanged once the problem is completed
    """
    if state.completed:
        logger.debug("[Struggle] Problem already completed, ignoring turn")
        return state

    keyword_hit = detect_struggle_keywords(event.message)
    assessment = normalize_assessment(event.ai_struggle_assessment)

    keyword_count = state.keyword_struggle_count + (1 if keyword_hit else 0)
    ai_level = state.ai_struggle_assessment if assessment is None else assessment
    level = effective_struggle_level(keyword_count, ai_level)
    new_hint = level > state.hint_level_shown

    new_state = replace(
        state,
        turns_taken=state.turns_taken + 1,
        keyword_struggle_count=keyword_count,
        ai_struggle_assessment=ai_level,
        incorrect_attempt_count=state.incorrect_attempt_count + (1 if event.incorrect_attempt else 0),
        effective_struggle_level=level,
        hint_level_shown=max(state.hint_level_shown, level),
        hints_shown=state.hints_shown + (1 if new_hint else 0),
        total_keyword_struggles=state.total_keyword_struggles + (1 if keyword_hit else 0),
        clarification_requests=state.clarification_requests + (1 if keyword_hit and not new_hint else 0),
        total_incorrect_attempts=state.total_incorrect_attempts + (1 if event.incorrect_attempt else 0),
    )

    new_state = _move_cursor(new_state, event, outline)

    if event.problem_completed and not new_state.completed:
        new_state = replace(new_state, completed=True)

    logger.debug(
        f"[Struggle] Turn {new_state.turns_taken}: keyword {keyword_count}"
        f"{' (+1)' if keyword_hit else ''}, assessment {ai_level} -> level {level}, "
        f"cursor {new_state.approach_index}:{new_state.step_index}"
        f"{', completed' if new_state.completed else ''}"
    )
    return new_state


def _move_cursor(
    state: StruggleState,
    event: TurnEvent,
    outline: SolutionOutline | None,
) -> StruggleState:
    alternative = event.alternative_approach_index
    if alternative is not None and alternative != state.approach_index:
        valid = alternative >= 0 if outline is None else outline.approach(alternative) is not None
        if valid:
            logger.info(f"[Struggle] Switching to approach {alternative}")
            return replace(state.reset_step_counters(), approach_index=alternative, step_index=0)
        logger.warning(f"[Struggle] Ignoring unknown approach index {alternative}")

    if not event.step_completed:
        return state

    if outline is not None and state.step_index + 1 >= outline.step_count(state.approach_index):
        logger.info(f"[Struggle] Final step completed after {state.turns_taken} turns")
        return replace(state.reset_step_counters(), completed=True)

    return replace(state.reset_step_counters(), step_index=state.step_index + 1)


# =============================================================================
# Outline queries
# =============================================================================


def current_step(state: StruggleState, outline: SolutionOutline) -> Step | None:
    return outline.step(state.approach_index, state.step_index)


def current_hint(state: StruggleState, outline: SolutionOutline) -> str | None:
    """Hint for the current step at the effective level (None at level 0)."""
    step = current_step(state, outline)
    if step is None:
        return None
    return step.hints.for_level(state.effective_struggle_level)


def is_last_step(state: StruggleState, outline: SolutionOutline) -> bool:
    total = outline.step_count(state.approach_index)
    return total > 0 and state.step_index == total - 1


def progress_percentage(state: StruggleState, outline: SolutionOutline) -> int:
    """Completed steps of the current approach as a percentage."""
    if state.completed:
        return 100
    total = outline.step_count(state.approach_index)
    if total == 0:
        return 0
    return int(state.step_index * 100 / total + 0.5)


def format_step_context(outline: SolutionOutline, state: StruggleState) -> str:
    """
    Context block describing the current step for the dialogue service.

    Empty string when the cursor is outside the outline.
    """
    approach = outline.approach(state.approach_index)
    step = current_step(state, outline)
    if approach is None or step is None:
        return ""

    level = state.effective_struggle_level
    hint = step.hints.for_level(max(1, level))

    lines = [
        "SOLUTION PATH CONTEXT:",
        "",
        f"Current Approach: {approach.name}",
        f"Step {step.step_number} of {len(approach.steps)}: {step.action}",
        f"Reasoning: {step.reasoning}",
        "",
        f"Current Struggle Level: {level}",
        f'Suggested Hint (adapt naturally): "{hint}"',
    ]
    if step.key_concepts:
        lines.append(f"Key Concepts: {', '.join(step.key_concepts)}")
    if step.common_mistakes:
        lines.append(f"Common Mistakes to Watch For: {', '.join(step.common_mistakes)}")

    next_step = outline.step(state.approach_index, state.step_index + 1)
    if next_step is not None:
        lines.extend(["", f"Next Step Preview: {next_step.action}"])

    return "\n".join(lines)


# =============================================================================
# Completion
# =============================================================================


def struggle_data_from_state(state: StruggleState) -> StruggleData:
    """Struggle signals accumulated over the whole problem."""
    return StruggleData(
        hints_requested=state.hints_shown,
        incorrect_attempts=state.total_incorrect_attempts,
        clarification_requests=state.clarification_requests,
    )


def finalize_attempt(
    state: StruggleState,
    outline: SolutionOutline | None = None,
) -> MasteryLevel:
    """
    Mastery of a finished problem.

    Uses total turns, the step count of the approach the learner ended on
    and the accumulated struggle signals.
    """
    step_count = None
    problem_type = None
    if outline is not None:
        step_count = outline.step_count(state.approach_index) or None
        problem_type = outline.problem_type

    mastery = classify_mastery(
        state.turns_taken,
        step_count=step_count,
        struggle_data=struggle_data_from_state(state),
        problem_type=problem_type,
    )
    logger.info(
        f"[Struggle] Attempt finalized: {state.turns_taken} turns, "
        f"{state.hints_shown} hints -> {mastery.value}"
    )
    return mastery


def classify_mastery_from_outline(
    turns_taken: int,
    outline: SolutionOutline,
    approach_index: int | None = None,
    struggle_data: StruggleData | None = None,
) -> MasteryLevel:
    """Step-based mastery using an outline's approach step count."""
    step_count = outline.step_count(approach_index) or None
    return classify_mastery(
        turns_taken,
        step_count=step_count,
        struggle_data=struggle_data,
        problem_type=outline.problem_type,
    )
