"""
Interference Groups for Topic Spacing.

Topics in the same group share procedures or concepts closely enough that
practicing them back-to-back hurts discrimination. Sequences should keep
same-group topics at least `min_spacing` positions apart.

Based on research from:
- Rohrer (interleaved practice)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from loguru import logger

from adaptive_scheduler.core.topics import MathTopic

DEFAULT_MIN_SPACING = 2

INTERFERENCE_GROUPS: dict[str, tuple[MathTopic, ...]] = {
    # Equation solving (similar procedural steps)
    "equation-solving": (
        MathTopic.LINEAR_EQUATIONS,
        MathTopic.QUADRATIC_EQUATIONS,
        MathTopic.SYSTEMS_OF_EQUATIONS,
        MathTopic.RATIONAL_EXPRESSIONS,
    ),
    # Comparison concepts
    "inequalities-group": (MathTopic.INEQUALITIES, MathTopic.ABSOLUTE_VALUE),
    # Algebraic manipulation
    "polynomial-operations": (MathTopic.POLYNOMIALS, MathTopic.EXPONENTS, MathTopic.RADICALS),
    # Graphing / evaluation
    "function-analysis": (MathTopic.FUNCTIONS, MathTopic.GRAPHING),
    # Distinct enough to stand alone
    "calculus-group": (MathTopic.CALCULUS,),
    "trigonometry-group": (MathTopic.TRIGONOMETRY,),
    "geometry-group": (MathTopic.GEOMETRY,),
    "word-problems-group": (MathTopic.WORD_PROBLEMS,),
}

_TOPIC_TO_GROUP: dict[MathTopic, str] = {
    topic: group for group, topics in INTERFERENCE_GROUPS.items() for topic in topics
}


@dataclass
class SequenceAnalysis:
    """Interference statistics of a topic sequence."""

    group_counts: dict[str, int] = field(default_factory=dict)
    min_spacing: int = -1  # -1 when no group repeats
    violations: int = 0


def get_interference_group(topic: MathTopic | str) -> str | None:
    """Group id of a topic, or None if it belongs to no group."""
    try:
        return _TOPIC_TO_GROUP.get(MathTopic(topic))
    except ValueError:
        return None


def are_in_same_group(a: MathTopic | str, b: MathTopic | str) -> bool:
    """Whether two topics belong to the same interference group."""
    group = get_interference_group(a)
    return group is not None and group == get_interference_group(b)


def filter_interfering_topics(
    candidates: Sequence[MathTopic],
    recent_topics: Sequence[MathTopic],
    min_spacing: int = DEFAULT_MIN_SPACING,
) -> list[MathTopic]:
    """
    Drop candidates that share a group with the last `min_spacing` recent topics.

    If every candidate would be dropped, the candidates are returned unchanged.

    Args:
        candidates: Topics to filter, in priority order
        recent_topics: Recently practiced topics, oldest first
        min_spacing: How many recent topics to look back over

    Returns:
        Filtered candidates in their original order
    """
    if not recent_topics or min_spacing <= 0:
        return list(candidates)

    recent_groups = {
        get_interference_group(topic) for topic in list(recent_topics)[-min_spacing:]
    }
    recent_groups.discard(None)

    filtered = [
        candidate for candidate in candidates
        if get_interference_group(candidate) not in recent_groups
    ]

    logger.debug(
        f"[Interference Filter] Filtered {len(candidates)} -> {len(filtered)} topics "
        f"({len(candidates) - len(filtered)} removed due to recent interference)"
    )

    return filtered if filtered else list(candidates)


def _distance_to_group(candidate: MathTopic, sequence: Sequence[MathTopic]) -> int | None:
    """Positions between the end of `sequence` and the last same-group topic."""
    if get_interference_group(candidate) is None:
        return None
    for index in range(len(sequence) - 1, -1, -1):
        if are_in_same_group(candidate, sequence[index]):
            return len(sequence) - index
    return None


def optimize_topic_spacing(
    topics: Sequence[MathTopic],
    min_spacing: int = DEFAULT_MIN_SPACING,
) -> list[MathTopic]:
    """
    Reorder topics so same-group topics are at least `min_spacing` apart.

    Greedy: at each position take the highest-priority remaining topic that
    keeps the spacing. When none does, take the one farthest from its last
    group member (earliest in priority order on ties), accepting a violation
    rather than dropping the topic.

    Args:
        topics: Topics in priority order

    Returns:
        Reordered topics (same elements)
    """
    remaining = list(topics)
    result: list[MathTopic] = []
    while remaining:
        chosen_index = None
        best_index = 0
        best_distance = -1

        for index, candidate in enumerate(remaining):
            distance = _distance_to_group(candidate, result)
            if distance is None or distance >= min_spacing:
                chosen_index = index
                break
            if distance > best_distance:
                best_distance = distance
                best_index = index

        if chosen_index is None:
            chosen_index = best_index
        result.append(remaining.pop(chosen_index))

    logger.debug(f"[Interference Spacing] Optimized {len(result)} topics for group spacing")
    return result


def analyze_topic_sequence(
    topics: Sequence[MathTopic],
    min_spacing: int = DEFAULT_MIN_SPACING,
) -> SequenceAnalysis:
    """Count group members, the tightest spacing and spacing violations."""
    analysis = SequenceAnalysis()
    last_seen: dict[str, int] = {}
    tightest: int | None = None

    for index, topic in enumerate(topics):
        group = get_interference_group(topic)
        if group is None:
            continue

        analysis.group_counts[group] = analysis.group_counts.get(group, 0) + 1

        if group in last_seen:
            spacing = index - last_seen[group]
            tightest = spacing if tightest is None else min(tightest, spacing)
            if spacing < min_spacing:
                analysis.violations += 1

        last_seen[group] = index

    analysis.min_spacing = -1 if tightest is None else tightest
    return analysis
