"""
Topic taxonomy and per-topic scheduling state.

Design:
- MathTopic: closed taxonomy of subject labels
- TopicScheduleState: SM-2 scheduling record for one learner and one topic
- Records are owned by the caller's storage layer. The engine only converts
  them (to_record/from_record) and returns new instances, never mutating them.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from loguru import logger

from adaptive_scheduler.core.errors import InvalidRecordError

# SM-2 floor and new-topic defaults
MIN_EASE_FACTOR = 1.3
INITIAL_EASE_FACTOR = 2.5
INITIAL_INTERVAL_DAYS = 1
DEFAULT_STRENGTH = 0.5


class MathTopic(str, Enum):
    """Fixed taxonomy of practice topics."""

    LINEAR_EQUATIONS = "linear-equations"
    QUADRATIC_EQUATIONS = "quadratic-equations"
    SYSTEMS_OF_EQUATIONS = "systems-of-equations"
    POLYNOMIALS = "polynomials"
    EXPONENTS = "exponents"
    RADICALS = "radicals"
    RATIONAL_EXPRESSIONS = "rational-expressions"
    INEQUALITIES = "inequalities"
    ABSOLUTE_VALUE = "absolute-value"
    FUNCTIONS = "functions"
    GRAPHING = "graphing"
    WORD_PROBLEMS = "word-problems"
    GEOMETRY = "geometry"
    TRIGONOMETRY = "trigonometry"
    CALCULUS = "calculus"

    @classmethod
    def parse(cls, value: str | MathTopic) -> MathTopic:
        """
        Convert a stored label to a topic.

        Raises:
            InvalidRecordError: If the label is not part of the taxonomy
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise InvalidRecordError(f"Unknown topic label: {value!r}") from e

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.value.replace("-", " ").title()


# Fallback topic when classification finds nothing
DEFAULT_TOPIC = MathTopic.LINEAR_EQUATIONS

ALL_TOPICS: tuple[MathTopic, ...] = tuple(MathTopic)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def clamp01(value: float) -> float:
    """Clamp a value to the [0, 1] range."""
    return max(0.0, min(1.0, value))


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise InvalidRecordError(f"Invalid timestamp: {value!r}") from e
    else:
        raise InvalidRecordError(f"Invalid timestamp: {value!r}")

    return as_utc(parsed)


@dataclass(frozen=True)
class TopicScheduleState:
    """
    Scheduling state for one topic.

    Invariants for every state produced by the engine:
    - ease_factor >= 1.3
    - strength in [0, 1]
    - next_review == last_reviewed + interval_days
    """

    topic: MathTopic
    strength: float = DEFAULT_STRENGTH
    review_count: int = 0
    ease_factor: float = INITIAL_EASE_FACTOR
    interval_days: int = INITIAL_INTERVAL_DAYS
    last_reviewed: datetime | None = None
    next_review: datetime | None = None

    def clamped(self) -> TopicScheduleState:
        """
        Normalize out-of-range values read from storage.

        Legacy or hand-edited records may carry an ease factor under the SM-2
        floor or a strength outside [0, 1]. They are repaired rather than
        rejected. Naive timestamps are taken as UTC.
        """
        strength = clamp01(float(self.strength))
        ease_factor = max(MIN_EASE_FACTOR, float(self.ease_factor))
        interval_days = max(1, int(self.interval_days))
        review_count = max(0, int(self.review_count))

        if (
            strength != self.strength
            or ease_factor != self.ease_factor
            or interval_days != self.interval_days
            or review_count != self.review_count
        ):
            logger.debug(
                f"[Schedule Clamp] {self.topic.value}: "
                f"strength {self.strength} -> {strength}, "
                f"ease {self.ease_factor} -> {ease_factor}, "
                f"interval {self.interval_days} -> {interval_days}, "
                f"reviews {self.review_count} -> {review_count}"
            )

        return replace(
            self,
            strength=strength,
            ease_factor=ease_factor,
            interval_days=interval_days,
            review_count=review_count,
            last_reviewed=as_utc(self.last_reviewed),
            next_review=as_utc(self.next_review),
        )

    def is_due(self, now: datetime | None = None) -> bool:
        """Whether the topic is due for review at `now`."""
        if self.next_review is None:
            return False
        return as_utc(self.next_review) <= as_utc(now or utc_now())

    def overdue_days(self, now: datetime | None = None) -> float:
        """Days past next_review (negative when not yet due, 0 when unscheduled)."""
        if self.next_review is None:
            return 0.0
        delta = as_utc(now or utc_now()) - as_utc(self.next_review)
        return delta / timedelta(days=1)

    def to_record(self) -> dict[str, Any]:
        """Convert to a storage row with ISO-8601 timestamps."""
        record = asdict(self)
        record["topic"] = self.topic.value
        record["last_reviewed"] = self.last_reviewed.isoformat() if self.last_reviewed else None
        record["next_review"] = self.next_review.isoformat() if self.next_review else None
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> TopicScheduleState:
        """
        Build a state from a storage row, clamping invalid numeric fields.

        Raises:
            InvalidRecordError: If the topic or timestamps cannot be parsed
        """
        if "topic" not in record:
            raise InvalidRecordError("Record has no topic")

        try:
            state = cls(
                topic=MathTopic.parse(record["topic"]),
                strength=float(_or_default(record.get("strength"), DEFAULT_STRENGTH)),
                review_count=int(_or_default(record.get("review_count"), 0)),
                ease_factor=float(_or_default(record.get("ease_factor"), INITIAL_EASE_FACTOR)),
                interval_days=int(_or_default(record.get("interval_days"), INITIAL_INTERVAL_DAYS)),
                last_reviewed=parse_timestamp(record.get("last_reviewed")),
                next_review=parse_timestamp(record.get("next_review")),
            )
        except (TypeError, ValueError) as e:
            if isinstance(e, InvalidRecordError):
                raise
            raise InvalidRecordError(f"Malformed schedule record: {record!r}") from e

        return state.clamped()


def _or_default(value: Any, default: Any) -> Any:
    return default if value is None else value
