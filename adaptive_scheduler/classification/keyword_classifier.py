"""
Weighted Keyword Topic Classifier.

Maps free-form problem text to one topic of the taxonomy using a
table-driven scoring system:

    score = (matched keywords) x weight x priority boost

Priority 1 topics are the most specific ("inequality" must beat "quadratic"
in "quadratic inequality") and get the largest boost. Ties fall back to the
lower priority number, then to table order.

Word-like keywords only match on letter boundaries so that "sin" does not
fire inside "using" and "angle" does not fire inside "rectangle". Symbolic
keywords ("<", "x^2", "f(x)") match as plain substrings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from loguru import logger

from adaptive_scheduler.core.topics import DEFAULT_TOPIC, MathTopic

# Confidence reported for the no-match default
DEFAULT_CONFIDENCE = 0.5

# Topics within this share of the best score are reported as alternatives
ALTERNATIVE_SCORE_RATIO = 0.7

PRIORITY_BOOST = {1: 3.0, 2: 2.0}

_WORDLIKE = re.compile(r"^[a-z][a-z '\-]*[a-z]$")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class TopicPattern:
    """Keyword table entry for one topic."""

    keywords: tuple[str, ...]
    weight: float
    priority: int  # 1 = most specific

    @property
    def priority_boost(self) -> float:
        return PRIORITY_BOOST.get(self.priority, 1.0)


@dataclass(frozen=True)
class TopicScore:
    """Score of one topic for one problem text."""

    topic: MathTopic
    score: float
    priority: int
    matched_keywords: tuple[str, ...]


@dataclass(frozen=True)
class TopicClassification:
    """Classification result with diagnostics."""

    topic: MathTopic
    confidence: float
    alternatives: list[MathTopic] = field(default_factory=list)
    scores: list[TopicScore] = field(default_factory=list)


# =============================================================================
# Keyword table (tuning artifact)
# =============================================================================

TOPIC_PATTERNS: dict[MathTopic, TopicPattern] = {
    # Priority 1: most specific
    MathTopic.INEQUALITIES: TopicPattern(
        keywords=(
            "<", ">", "≤", "≥", "inequality", "inequalities", "greater than",
            "less than", "at least", "at most", "no more than", "no less than",
        ),
        weight=2.5,
        priority=1,
    ),
    MathTopic.ABSOLUTE_VALUE: TopicPattern(
        keywords=("|", "absolute value", "absolute", "|x|", "abs("),
        weight=2.5,
        priority=1,
    ),
    MathTopic.CALCULUS: TopicPattern(
        keywords=(
            "derivative", "integral", "limit", "dx", "dy", "differentiate",
            "integrate", "tangent line", "rate of change", "area under curve",
        ),
        weight=3.0,
        priority=1,
    ),
    MathTopic.TRIGONOMETRY: TopicPattern(
        keywords=(
            "sin", "cos", "tan", "csc", "sec", "cot", "angle", "radian",
            "degree", "triangle sides", "hypotenuse", "opposite", "adjacent",
        ),
        weight=2.5,
        priority=1,
    ),
    # Priority 2: moderately specific
    MathTopic.SYSTEMS_OF_EQUATIONS: TopicPattern(
        keywords=(
            "system", "two equations", "solve for x and y", "elimination",
            "substitution", "multiple equations",
        ),
        weight=2.0,
        priority=2,
    ),
    MathTopic.QUADRATIC_EQUATIONS: TopicPattern(
        keywords=(
            "x²", "x^2", "quadratic", "parabola", "vertex", "factor",
            "completing the square", "complete the square", "quadratic formula",
            "discriminant",
        ),
        weight=2.0,
        priority=2,
    ),
    MathTopic.RATIONAL_EXPRESSIONS: TopicPattern(
        keywords=(
            "fraction", "rational", "numerator", "denominator", "lcd",
            "common denominator", "rational equation",
        ),
        weight=2.0,
        priority=2,
    ),
    MathTopic.RADICALS: TopicPattern(
        keywords=(
            "√", "radical", "square root", "cube root", "nth root", "radicand",
            "simplify radical",
        ),
        weight=2.0,
        priority=2,
    ),
    MathTopic.GEOMETRY: TopicPattern(
        keywords=(
            "triangle", "circle", "rectangle", "square", "polygon", "area",
            "perimeter", "volume", "surface area", "angle measure", "parallel",
            "perpendicular",
        ),
        weight=2.0,
        priority=2,
    ),
    # Priority 3: general algebra
    MathTopic.POLYNOMIALS: TopicPattern(
        keywords=(
            "polynomial", "factor", "expand", "binomial", "trinomial", "foil",
            "distribute", "monomial", "degree of polynomial",
        ),
        weight=1.5,
        priority=3,
    ),
    MathTopic.EXPONENTS: TopicPattern(
        keywords=(
            "^", "exponent", "power", "exponential", "base", "scientific notation",
            "x^3", "x^4", "x^5",
        ),
        weight=1.5,
        priority=3,
    ),
    MathTopic.FUNCTIONS: TopicPattern(
        keywords=(
            "f(x)", "g(x)", "function", "domain", "range", "composition",
            "inverse function", "evaluate", "f(2)",
        ),
        weight=1.5,
        priority=3,
    ),
    MathTopic.GRAPHING: TopicPattern(
        keywords=(
            "graph", "plot", "coordinate", "x-axis", "y-axis", "intercept",
            "slope", "line", "curve", "point",
        ),
        weight=1.5,
        priority=3,
    ),
    # Priority 4: very general
    MathTopic.LINEAR_EQUATIONS: TopicPattern(
        keywords=("solve for x", "solve for y", "isolate", "2x +", "3x -", "= ", "equation", "solve"),
        weight=1.0,
        priority=4,
    ),
    MathTopic.WORD_PROBLEMS: TopicPattern(
        keywords=(
            "if", "has", "costs", "years old", "how many", "how much", "total",
            "altogether", "combined", "less than", "more than",
        ),
        weight=1.2,
        priority=4,
    ),
}


def compile_keyword(keyword: str) -> re.Pattern[str]:
    """
    Compile a boundary-aware matcher for one keyword.

    Word-like keywords must not touch another letter on either side (an
    optional plural "s"/"es" is allowed). Symbolic keywords match anywhere.
    """
    keyword = keyword.lower()
    escaped = re.escape(keyword)
    if _WORDLIKE.match(keyword):
        return re.compile(rf"(?<![a-z]){escaped}(?:e?s)?(?![a-z])")
    return re.compile(escaped)


def normalize_text(text: str) -> str:
    """Lowercase and collapse whitespace."""
    return _WHITESPACE.sub(" ", text.lower()).strip()


class KeywordTopicClassifier:
    """
    Table-driven topic classifier.

    Example:
        classifier = KeywordTopicClassifier()
        classifier.classify("Solve the quadratic inequality x² - 5x + 6 > 0")
        # MathTopic.INEQUALITIES
    """

    def __init__(
        self,
        patterns: dict[MathTopic, TopicPattern] | None = None,
        default_topic: MathTopic = DEFAULT_TOPIC,
    ):
        self.patterns = patterns or TOPIC_PATTERNS
        self.default_topic = default_topic
        self._order = {topic: index for index, topic in enumerate(self.patterns)}
        self._matchers = {
            topic: [(kw, compile_keyword(kw)) for kw in pattern.keywords]
            for topic, pattern in self.patterns.items()
        }

    def score(self, problem_text: str) -> list[TopicScore]:
        """
        Score every topic with at least one keyword match.

        Returns:
            Scores sorted best first (score, then priority, then table order)
        """
        if not isinstance(problem_text, str):
            return []

        text = normalize_text(problem_text)
        if not text:
            return []

        scores: list[TopicScore] = []
        for topic, pattern in self.patterns.items():
            matched = tuple(kw for kw, matcher in self._matchers[topic] if matcher.search(text))
            if not matched:
                continue
            scores.append(
                TopicScore(
                    topic=topic,
                    score=len(matched) * pattern.weight * pattern.priority_boost,
                    priority=pattern.priority,
                    matched_keywords=matched,
                )
            )

        scores.sort(key=lambda s: (-s.score, s.priority, self._order[s.topic]))
        return scores

    def classify(self, problem_text: str) -> MathTopic:
        """Return the best-scoring topic, or the default topic."""
        scores = self.score(problem_text)
        preview = _preview(problem_text)

        if not scores:
            if not isinstance(problem_text, str) or not problem_text.strip():
                logger.warning(
                    f"[Topic - Weighted] Empty or invalid problem text, "
                    f"defaulting to {self.default_topic.value}"
                )
            else:
                logger.debug(
                    f"[Topic - Weighted] No keyword matches for \"{preview}...\", "
                    f"defaulting to {self.default_topic.value}"
                )
            return self.default_topic

        top_candidates = " | ".join(
            f"{s.topic.value} ({s.score:.1f}, keywords: {', '.join(s.matched_keywords[:2])}"
            f"{'...' if len(s.matched_keywords) > 2 else ''})"
            for s in scores[:3]
        )
        logger.debug(f"[Topic - Weighted] \"{preview}...\" top candidates: {top_candidates}")
        logger.info(f"[Topic - Weighted] Selected: {scores[0].topic.value}")

        return scores[0].topic

    def classify_with_confidence(self, problem_text: str) -> TopicClassification:
        """
        Classify and report how clear-cut the decision was.

        Confidence is 1.0 for a single matching topic, otherwise
        0.5 + (best - second) / best, capped at 1.0.
        """
        scores = self.score(problem_text)

        if not scores:
            return TopicClassification(topic=self.default_topic, confidence=DEFAULT_CONFIDENCE)

        best = scores[0]
        if len(scores) == 1:
            confidence = 1.0
        else:
            gap = (best.score - scores[1].score) / best.score
            confidence = min(1.0, DEFAULT_CONFIDENCE + gap)

        threshold = best.score * ALTERNATIVE_SCORE_RATIO
        alternatives = [s.topic for s in scores[1:] if s.score >= threshold]

        return TopicClassification(
            topic=best.topic,
            confidence=confidence,
            alternatives=alternatives,
            scores=scores,
        )

    def explain(self, problem_text: str) -> str:
        """Human-readable scoring breakdown (top 5)."""
        scores = self.score(problem_text)
        preview = _preview(problem_text, 100)

        if not scores:
            return (
                f"Problem: \"{preview}...\"\n"
                f"No keyword matches found. Defaulting to {self.default_topic.value}."
            )

        lines = [f"Problem: \"{preview}...\"", "", "Classification Results (top 5):"]
        for index, s in enumerate(scores[:5], start=1):
            pattern = self.patterns[s.topic]
            lines.append(f"{index}. {s.topic.value} (score: {s.score:.2f})")
            lines.append(f"   - Matched keywords: {', '.join(s.matched_keywords)}")
            lines.append(f"   - Weight: {pattern.weight}, Priority: {pattern.priority}")
        lines.append("")
        lines.append(f"Selected: {scores[0].topic.value}")
        return "\n".join(lines)


def _preview(text: object, length: int = 50) -> str:
    if not isinstance(text, str):
        return ""
    return text[:length].replace("\n", " ")


_default_classifier = KeywordTopicClassifier()


def classify_topic(problem_text: str) -> MathTopic:
    """Classify problem text with the default keyword table."""
    return _default_classifier.classify(problem_text)


def classify_topic_with_confidence(problem_text: str) -> TopicClassification:
    """Classify with confidence and alternatives."""
    return _default_classifier.classify_with_confidence(problem_text)


def explain_topic_classification(problem_text: str) -> str:
    """Scoring breakdown for debugging."""
    return _default_classifier.explain(problem_text)
