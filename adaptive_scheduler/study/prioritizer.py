"""
Practice Prioritizer for mixed practice sessions.

Composes an ordered topic list from:
1. Due reviews (most overdue first, up to half the session)
2. Weak topics (weakest first, strength below the weak threshold)
3. Random topics from the catalog for variety

Candidates that interfere with recently practiced topics are dropped before
any slot is filled, so the next candidate takes the slot. The selection is
then spaced by interference group and shuffled within the spacing constraints.
"""

from __future__ import annotations

import math
import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from adaptive_scheduler.core.topics import ALL_TOPICS, MathTopic, TopicScheduleState, as_utc, utc_now
from adaptive_scheduler.study.interference import (
    DEFAULT_MIN_SPACING,
    analyze_topic_sequence,
    filter_interfering_topics,
    optimize_topic_spacing,
)
from adaptive_scheduler.study.spaced_repetition import get_topics_due_for_review

# Starting set for a learner with no tracked topics
FOUNDATIONAL_TOPICS: tuple[MathTopic, ...] = (
    MathTopic.LINEAR_EQUATIONS,
    MathTopic.POLYNOMIALS,
    MathTopic.EXPONENTS,
    MathTopic.INEQUALITIES,
    MathTopic.FUNCTIONS,
)


@dataclass
class PrioritizationConfig:
    """Configuration for practice session composition."""

    due_fraction: float = 0.5
    weak_threshold: float = 0.6
    min_spacing: int = DEFAULT_MIN_SPACING
    shuffle_attempts: int = 25
    min_problems: int = 5
    max_problems: int = 8

    @classmethod
    def from_settings(cls) -> PrioritizationConfig:
        """Build configuration from application settings."""
        from config import get_settings

        return cls(**get_settings().get_practice_config())


@dataclass
class PracticePlan:
    """Ordered session topics with the reason each was chosen."""

    topics: list[MathTopic] = field(default_factory=list)
    sources: dict[MathTopic, str] = field(default_factory=dict)  # 'due', 'weak', 'variety'
    spacing_violations: int = 0

    @property
    def due_count(self) -> int:
        return sum(1 for t in self.topics if self.sources.get(t) == "due")

    @property
    def weak_count(self) -> int:
        return sum(1 for t in self.topics if self.sources.get(t) == "weak")

    def get_summary(self) -> dict:
        """Summary of plan composition."""
        return {
            "total_topics": len(self.topics),
            "due_reviews": self.due_count,
            "weak_topics": self.weak_count,
            "variety": len(self.topics) - self.due_count - self.weak_count,
            "spacing_violations": self.spacing_violations,
        }


class PracticePrioritizer:
    """
    Builds interleaved practice sessions.

    The algorithm:
    1. Drop candidates interfering with recent topics (all are kept only
       when every candidate interferes)
    2. Due topics, most overdue first, up to ceil(N * due_fraction)
    3. Weakest topics below the weak threshold
    4. Random catalog topics for variety
    5. Spacing by interference group (priority order kept when strict
       spacing is impossible)
    6. Seeded shuffle that never adds spacing violations
    """

    def __init__(
        self,
        config: PrioritizationConfig | None = None,
        rng: random.Random | None = None,
    ):
        """
        Initialize prioritizer.

        Args:
            config: PrioritizationConfig or None for defaults
            rng: Random source; pass a seeded instance for reproducible plans
        """
        self.config = config or PrioritizationConfig()
        self.rng = rng or random.Random()

    def plan(
        self,
        states: Sequence[TopicScheduleState],
        count: int,
        now: datetime | None = None,
        recent_topics: Sequence[MathTopic] = (),
        catalog: Iterable[MathTopic] | None = None,
    ) -> PracticePlan:
        """
        Compose a practice plan.

        Args:
            states: Scheduling state of every tracked topic
            count: Target number of topics (N)
            now: Reference time for due checks
            recent_topics: Topics practiced just before this session, oldest first
            catalog: Topics eligible for variety fill (defaults to tracked
                topics, or the full taxonomy when nothing is tracked)

        Returns:
            PracticePlan with at most `count` distinct topics
        """
        if count <= 0:
            return PracticePlan()

        now = as_utc(now or utc_now())
        states = [s.clamped() for s in states]
        selected: list[MathTopic] = []
        sources: dict[MathTopic, str] = {}

        def add(topic: MathTopic, source: str) -> None:
            if topic not in sources:
                selected.append(topic)
                sources[topic] = source

        due = get_topics_due_for_review(states, now)
        weak = sorted(
            (s for s in states if s.strength < self.config.weak_threshold),
            key=lambda s: s.strength,
        )
        if catalog is None:
            pool = [s.topic for s in states] if states else list(ALL_TOPICS)
        else:
            pool = list(catalog)

        # 1. Interference filter over every candidate
        candidates = list(dict.fromkeys([s.topic for s in due] + [s.topic for s in weak] + pool))
        eligible = set(filter_interfering_topics(candidates, recent_topics, self.config.min_spacing))
        excluded = len(candidates) - len(eligible)

        # 2. Due reviews
        due_limit = math.ceil(count * self.config.due_fraction)
        for state in [s for s in due if s.topic in eligible][:due_limit]:
            add(state.topic, "due")
        due_added = len(selected)

        # 3. Weak topics
        for state in weak:
            if len(selected) >= count:
                break
            if state.topic in eligible:
                add(state.topic, "weak")
        weak_added = len(selected) - due_added

        # 4. Variety
        pool = [t for t in dict.fromkeys(pool) if t in eligible and t not in sources]
        while len(selected) < count and pool:
            add(pool.pop(self.rng.randrange(len(pool))), "variety")
        variety_added = len(selected) - due_added - weak_added

        logger.info(
            f"[Practice Prioritization] {due_added} due, {weak_added} weak, "
            f"{variety_added} variety ({len(selected)}/{count}), "
            f"{excluded} excluded by recent interference"
        )

        # 5-6. Spacing and shuffle
        ordered = self.arrange(selected, recent_topics)
        analysis = analyze_topic_sequence(ordered, self.config.min_spacing)

        return PracticePlan(
            topics=ordered,
            sources={t: sources[t] for t in ordered},
            spacing_violations=analysis.violations,
        )

    def arrange(
        self,
        topics: Sequence[MathTopic],
        recent_topics: Sequence[MathTopic] = (),
    ) -> list[MathTopic]:
        """Deduplicate, space and shuffle (recent topics bound the shuffle)."""
        unique = list(dict.fromkeys(topics))
        spaced = optimize_topic_spacing(unique, self.config.min_spacing)
        return self.shuffle_within_spacing(spaced, recent_topics)

    def shuffle_within_spacing(
        self,
        topics: Sequence[MathTopic],
        recent_topics: Sequence[MathTopic] = (),
    ) -> list[MathTopic]:
        """
        Fisher-Yates shuffle that keeps spacing compliance.

        A shuffled order is accepted only if it has no more violations than
        the spaced order (counting the boundary with recent topics). After
        `shuffle_attempts` rejected tries the spaced order is kept.
        """
        spaced = list(topics)
        if len(spaced) <= 1:
            return spaced

        history = list(recent_topics)[-self.config.min_spacing:] if self.config.min_spacing > 0 else []

        def violations(sequence: list[MathTopic]) -> int:
            return analyze_topic_sequence(history + sequence, self.config.min_spacing).violations

        baseline = violations(spaced)
        for _ in range(self.config.shuffle_attempts):
            candidate = spaced[:]
            for i in range(len(candidate) - 1, 0, -1):
                j = self.rng.randint(0, i)
                candidate[i], candidate[j] = candidate[j], candidate[i]
            if violations(candidate) <= baseline:
                return candidate

        logger.debug("[Practice Prioritization] Kept spacing order (no compliant shuffle found)")
        return spaced


def suggest_session_size(tracked_topic_count: int, config: PrioritizationConfig | None = None) -> int:
    """Session size for a learner: half the tracked topics, clamped to 5-8."""
    config = config or PrioritizationConfig()
    return min(config.max_problems, max(config.min_problems, math.ceil(tracked_topic_count / 2)))


def plan_for_new_learner(count: int = len(FOUNDATIONAL_TOPICS)) -> list[MathTopic]:
    """Foundational topics for a learner with no history."""
    return list(FOUNDATIONAL_TOPICS[:max(0, count)])


def prioritize_topics(
    states: Sequence[TopicScheduleState],
    count: int,
    now: datetime | None = None,
    recent_topics: Sequence[MathTopic] = (),
    seed: int | None = None,
    catalog: Iterable[MathTopic] | None = None,
    config: PrioritizationConfig | None = None,
) -> list[MathTopic]:
    """
    Ordered practice topics for a session.

    Args:
        states: Scheduling state of every tracked topic
        count: Target number of topics
        now: Reference time for due checks
        recent_topics: Recently practiced topics, oldest first
        seed: Seed for the variety fill and shuffle (reproducible plans)
        catalog: Topics eligible for variety fill
        config: Composition parameters

    Returns:
        At most `count` distinct topics
    """
    prioritizer = PracticePrioritizer(config=config, rng=random.Random(seed))
    return prioritizer.plan(
        states, count, now=now, recent_topics=recent_topics, catalog=catalog
    ).topics
