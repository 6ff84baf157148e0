"""
Solution outlines.

A solution outline decomposes one problem into one or more approaches, each
an ordered list of steps with three escalating hints. Outlines are produced
once per problem by the dialogue service and are read-only afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from adaptive_scheduler.core.errors import InvalidRecordError

HINT_LEVELS = (1, 2, 3)


@dataclass(frozen=True)
class StepHints:
    """Hints at three levels of specificity."""

    level1: str = ""  # General guidance referencing problem specifics
    level2: str = ""  # Points to the exact part, suggests an operation
    level3: str = ""  # Concrete guidance with actual numbers

    def for_level(self, level: int) -> str | None:
        """Hint for struggle level 1-3; None at level 0."""
        if level <= 0:
            return None
        return (self.level1, self.level2, self.level3)[min(level, 3) - 1]


@dataclass(frozen=True)
class Step:
    """A single step in a solution approach."""

    step_number: int
    action: str
    reasoning: str = ""
    hints: StepHints = field(default_factory=StepHints)
    key_concepts: tuple[str, ...] = ()
    common_mistakes: tuple[str, ...] = ()
    difficulty: str | None = None  # 'easy', 'medium', 'hard'

    @classmethod
    def from_dict(cls, data: dict[str, Any], index: int = 0) -> Step:
        hints = data.get("hints") or {}
        if isinstance(hints, (list, tuple)):
            hints = {f"level{i + 1}": h for i, h in enumerate(hints[:3])}
        return cls(
            step_number=int(data.get("stepNumber", index + 1)),
            action=data["action"],
            reasoning=data.get("reasoning", ""),
            hints=StepHints(
                level1=hints.get("level1", ""),
                level2=hints.get("level2", ""),
                level3=hints.get("level3", ""),
            ),
            key_concepts=tuple(data.get("keyConcepts") or ()),
            common_mistakes=tuple(data.get("commonMistakes") or ()),
            difficulty=data.get("difficulty"),
        )


@dataclass(frozen=True)
class Approach:
    """A complete solution approach (e.g. elimination vs substitution)."""

    name: str
    steps: tuple[Step, ...] = ()
    description: str = ""
    difficulty: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Approach:
        return cls(
            name=data.get("name", ""),
            steps=tuple(Step.from_dict(s, i) for i, s in enumerate(data.get("steps") or ())),
            description=data.get("description") or "",
            difficulty=data.get("difficulty"),
        )


@dataclass(frozen=True)
class SolutionOutline:
    """Complete solution path analysis for a problem."""

    approaches: tuple[Approach, ...]
    recommended_approach_index: int = 0
    problem_statement: str = ""
    problem_type: str | None = None
    required_concepts: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SolutionOutline:
        """
        Parse the dialogue service's JSON outline (camelCase keys).

        Raises:
            InvalidRecordError: If approaches or steps are missing or malformed
        """
        try:
            approaches = tuple(Approach.from_dict(a) for a in data["approaches"])
            recommended = int(data.get("recommendedApproachIndex", 0))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise InvalidRecordError(f"Malformed solution outline: {e}") from e

        if not approaches:
            raise InvalidRecordError("Solution outline has no approaches")
        if not 0 <= recommended < len(approaches):
            recommended = 0

        return cls(
            approaches=approaches,
            recommended_approach_index=recommended,
            problem_statement=data.get("problemStatement", ""),
            problem_type=data.get("problemType"),
            required_concepts=tuple(data.get("requiredConcepts") or ()),
        )

    def approach(self, approach_index: int) -> Approach | None:
        if 0 <= approach_index < len(self.approaches):
            return self.approaches[approach_index]
        return None

    def step(self, approach_index: int, step_index: int) -> Step | None:
        approach = self.approach(approach_index)
        if approach is None or not 0 <= step_index < len(approach.steps):
            return None
        return approach.steps[step_index]

    def step_count(self, approach_index: int | None = None) -> int:
        """Number of steps in an approach (recommended approach by default)."""
        if approach_index is None:
            approach_index = self.recommended_approach_index
        approach = self.approach(approach_index)
        return len(approach.steps) if approach else 0

    def describe_approaches(self) -> list[dict[str, Any]]:
        """Name, description and step count of every approach."""
        return [
            {"name": a.name, "description": a.description, "step_count": len(a.steps)}
            for a in self.approaches
        ]
