"""
Core Mastery Module.

Classifies a single solved attempt into one of three mastery levels.

Variants, most informative first:
- Step-based: compares turns taken with the solution outline's step count
- Problem-type adjusted: scales the basic turn thresholds by difficulty
- Basic: fixed turn thresholds (5 / 10)

Struggle signals (hints, mistakes, clarifications) are applied on top of
whichever base variant was used.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from loguru import logger


class MasteryLevel(str, Enum):
    """Mastery of a single attempt."""

    MASTERED = "mastered"
    COMPETENT = "competent"
    STRUGGLING = "struggling"

    def downgrade(self) -> MasteryLevel:
        """One level lower; struggling stays struggling."""
        if self is MasteryLevel.MASTERED:
            return MasteryLevel.COMPETENT
        return MasteryLevel.STRUGGLING

    @property
    def quality(self) -> int:
        """SM-2 quality score (0-5)."""
        return MASTERY_QUALITY_SCORES[self]

    @property
    def strength_score(self) -> float:
        """Retention score used in strength history (0-1)."""
        return MASTERY_STRENGTH_SCORES[self]


# Returned when the attempt cannot be classified
DEFAULT_MASTERY = MasteryLevel.STRUGGLING

MASTERY_QUALITY_SCORES: dict[MasteryLevel, int] = {
    MasteryLevel.MASTERED: 5,    # Perfect response
    MasteryLevel.COMPETENT: 3,   # Correct with hesitation
    MasteryLevel.STRUGGLING: 1,  # Incorrect but remembered
}

MASTERY_STRENGTH_SCORES: dict[MasteryLevel, float] = {
    MasteryLevel.MASTERED: 1.0,
    MasteryLevel.COMPETENT: 0.6,
    MasteryLevel.STRUGGLING: 0.3,
}

# Multipliers on the basic turn thresholds, keyed by outline problem type
DIFFICULTY_MULTIPLIERS: dict[str, float] = {
    "Linear Equation": 1.0,
    "Quadratic Equation": 1.3,
    "System of Equations": 1.5,
    "System of Linear Equations": 1.5,
    "Polynomial": 1.4,
    "Rational Expression": 1.6,
    "Inequality": 1.2,
    "Absolute Value": 1.3,
    "Function": 1.4,
    "Graphing": 1.5,
    "Word Problem": 1.7,
    "Geometry": 1.6,
    "Trigonometry": 1.8,
    "Calculus": 2.0,
}


def get_difficulty_multiplier(problem_type: str) -> float:
    """Difficulty multiplier for a problem type (1.0 when unknown)."""
    return DIFFICULTY_MULTIPLIERS.get(problem_type, 1.0)


@dataclass(frozen=True)
class StruggleData:
    """Struggle signals collected while solving one problem."""

    hints_requested: int = 0
    incorrect_attempts: int = 0
    clarification_requests: int = 0
    time_spent_seconds: float | None = None  # recorded, not scored


@dataclass(frozen=True)
class AttemptOutcome:
    """
    One solved item as reported by the dialogue collaborator.

    topic, mastery_level and created_at are filled in once the attempt has
    been classified and stored; they feed tier classification and strength
    history.
    """

    problem_text: str
    turns_taken: int
    struggle_data: StruggleData | None = None
    step_count: int | None = None
    approach_index: int | None = None
    problem_type: str | None = None
    topic: str | None = None
    mastery_level: MasteryLevel | None = None
    created_at: datetime | None = None


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class MasteryClassifier:
    """
    Classifies attempt mastery from turn counts and struggle signals.

    Thresholds:
    - Step-based: efficiency = (steps * 2) / turns; >= 0.8 mastered, >= 0.5 competent
    - Basic: <= 5 turns mastered, <= 10 competent
    - Struggle penalty: >= 0.6 forces struggling, >= 0.3 downgrades one level
    """

    MASTERED_EFFICIENCY = 0.8
    COMPETENT_EFFICIENCY = 0.5

    HINT_PENALTY = 0.15
    MISTAKE_PENALTY = 0.20
    CLARIFICATION_PENALTY = 0.10

    HIGH_STRUGGLE = 0.6
    MODERATE_STRUGGLE = 0.3

    def __init__(
        self,
        mastered_turns: int = 5,
        competent_turns: int = 10,
        turns_per_step: int = 2,
    ):
        """
        Initialize classifier with configurable thresholds.

        Args:
            mastered_turns: Max turns for mastered in basic mode (default 5)
            competent_turns: Max turns for competent in basic mode (default 10)
            turns_per_step: Expected turns per outline step (default 2)
        """
        self.mastered_turns = mastered_turns
        self.competent_turns = competent_turns
        self.turns_per_step = turns_per_step

    @classmethod
    def from_settings(cls) -> MasteryClassifier:
        """Build a classifier from application settings."""
        from config import get_settings

        return cls(**get_settings().get_mastery_config())

    def classify(
        self,
        turns_taken: int,
        step_count: int | None = None,
        struggle_data: StruggleData | None = None,
        problem_type: str | None = None,
    ) -> MasteryLevel:
        """
        Classify one attempt.

        Args:
            turns_taken: Dialogue turns needed to solve the problem
            step_count: Steps in the approach used, if an outline exists
            struggle_data: Hints, mistakes and clarifications, if tracked
            problem_type: Outline problem type for threshold scaling

        Returns:
            MasteryLevel (DEFAULT_MASTERY when turns_taken is invalid)
        """
        if not _is_positive_int(turns_taken):
            logger.warning(
                f"[Mastery] Invalid turns_taken={turns_taken!r}, "
                f"using default {DEFAULT_MASTERY.value}"
            )
            return DEFAULT_MASTERY

        if step_count is not None and not _is_positive_int(step_count):
            logger.warning(f"[Mastery] Ignoring invalid step_count={step_count!r}")
            step_count = None

        if step_count is not None:
            base = self.classify_step_based(turns_taken, step_count)
        elif problem_type:
            base = self.classify_type_adjusted(turns_taken, problem_type)
        else:
            base = self.classify_basic(turns_taken)

        if struggle_data is None:
            return base
        return self.apply_struggle(base, struggle_data)

    def classify_step_based(self, turns_taken: int, step_count: int) -> MasteryLevel:
        """Compare turns taken against ~2 turns per outline step."""
        expected_turns = step_count * self.turns_per_step
        efficiency = expected_turns / turns_taken

        if efficiency >= self.MASTERED_EFFICIENCY:
            mastery = MasteryLevel.MASTERED
        elif efficiency >= self.COMPETENT_EFFICIENCY:
            mastery = MasteryLevel.COMPETENT
        else:
            mastery = MasteryLevel.STRUGGLING

        logger.debug(
            f"[Mastery - Step-Based] {step_count} steps, expected ~{expected_turns} turns, "
            f"actual {turns_taken} -> efficiency {efficiency:.0%} -> {mastery.value}"
        )
        return mastery

    def classify_type_adjusted(self, turns_taken: int, problem_type: str) -> MasteryLevel:
        """Basic thresholds scaled by the problem type's difficulty."""
        multiplier = get_difficulty_multiplier(problem_type)
        mastered = _round_half_up(self.mastered_turns * multiplier)
        competent = _round_half_up(self.competent_turns * multiplier)

        mastery = self._by_turns(turns_taken, mastered, competent)
        logger.debug(
            f"[Mastery - Type-Adjusted] {problem_type} (x{multiplier}), "
            f"thresholds {mastered}/{competent}, turns {turns_taken} -> {mastery.value}"
        )
        return mastery

    def classify_basic(self, turns_taken: int) -> MasteryLevel:
        """Fixed turn thresholds."""
        mastery = self._by_turns(turns_taken, self.mastered_turns, self.competent_turns)
        logger.debug(f"[Mastery - Basic] Turns: {turns_taken} -> {mastery.value}")
        return mastery

    def struggle_penalty(self, data: StruggleData) -> float:
        """
        Combined struggle penalty in [0, 1].

        Negative counts are treated as zero.
        """
        hints = max(0, data.hints_requested)
        mistakes = max(0, data.incorrect_attempts)
        clarifications = max(0, data.clarification_requests)

        penalty = (
            hints * self.HINT_PENALTY
            + mistakes * self.MISTAKE_PENALTY
            + clarifications * self.CLARIFICATION_PENALTY
        )
        # Rounded so 0.15 * 2 and friends land exactly on the thresholds
        return min(1.0, round(penalty, 6))

    def apply_struggle(self, base: MasteryLevel, data: StruggleData) -> MasteryLevel:
        """Downgrade a base mastery level according to struggle signals."""
        penalty = self.struggle_penalty(data)

        if penalty >= self.HIGH_STRUGGLE:
            adjusted = MasteryLevel.STRUGGLING
        elif penalty >= self.MODERATE_STRUGGLE:
            adjusted = base.downgrade()
        else:
            adjusted = base

        logger.debug(
            f"[Mastery - Struggle-Weighted] Base: {base.value}, struggle score {penalty:.0%} "
            f"(hints {data.hints_requested}, mistakes {data.incorrect_attempts}, "
            f"clarifications {data.clarification_requests}) -> {adjusted.value}"
        )
        return adjusted

    @staticmethod
    def _by_turns(turns_taken: int, mastered: int, competent: int) -> MasteryLevel:
        if turns_taken <= mastered:
            return MasteryLevel.MASTERED
        if turns_taken <= competent:
            return MasteryLevel.COMPETENT
        return MasteryLevel.STRUGGLING


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


_default_classifier = MasteryClassifier()


def classify_mastery(
    turns_taken: int,
    step_count: int | None = None,
    struggle_data: StruggleData | None = None,
    problem_type: str | None = None,
) -> MasteryLevel:
    """Classify one attempt with the default thresholds."""
    return _default_classifier.classify(
        turns_taken,
        step_count=step_count,
        struggle_data=struggle_data,
        problem_type=problem_type,
    )


def classify_attempt(outcome: AttemptOutcome) -> MasteryLevel:
    """Classify an AttemptOutcome record."""
    return classify_mastery(
        outcome.turns_taken,
        step_count=outcome.step_count,
        struggle_data=outcome.struggle_data,
        problem_type=outcome.problem_type,
    )


def struggle_penalty(data: StruggleData) -> float:
    """Struggle penalty with the default weights."""
    return _default_classifier.struggle_penalty(data)
