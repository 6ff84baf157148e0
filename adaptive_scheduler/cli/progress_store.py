"""
Local progress persistence for the practice CLI.

Topic schedule states and attempt history are stored in a single JSON file
(default ~/.adaptive_scheduler/progress.json) so the CLI can be used without
a database. The scheduling engine itself never touches storage.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from adaptive_scheduler.core.errors import InvalidRecordError
from adaptive_scheduler.core.mastery import AttemptOutcome, MasteryLevel, StruggleData
from adaptive_scheduler.core.topics import MathTopic, TopicScheduleState, parse_timestamp

# Default progress file
PROGRESS_PATH = Path.home() / ".adaptive_scheduler" / "progress.json"

# Attempts kept on disk (oldest dropped first)
MAX_STORED_ATTEMPTS = 200


def attempt_to_record(attempt: AttemptOutcome) -> dict[str, Any]:
    return {
        "problem_text": attempt.problem_text,
        "turns_taken": attempt.turns_taken,
        "struggle_data": asdict(attempt.struggle_data) if attempt.struggle_data else None,
        "step_count": attempt.step_count,
        "approach_index": attempt.approach_index,
        "problem_type": attempt.problem_type,
        "topic": attempt.topic,
        "mastery_level": attempt.mastery_level.value if attempt.mastery_level else None,
        "created_at": attempt.created_at.isoformat() if attempt.created_at else None,
    }


def attempt_from_record(record: dict[str, Any]) -> AttemptOutcome:
    """
    Build an AttemptOutcome from a stored row.

    Raises:
        InvalidRecordError: If required fields are missing or malformed
    """
    try:
        mastery = record.get("mastery_level")
        struggle = record.get("struggle_data")
        return AttemptOutcome(
            problem_text=record.get("problem_text", ""),
            turns_taken=int(record["turns_taken"]),
            struggle_data=StruggleData(**struggle) if struggle else None,
            step_count=record.get("step_count"),
            approach_index=record.get("approach_index"),
            problem_type=record.get("problem_type"),
            topic=record.get("topic"),
            mastery_level=MasteryLevel(mastery) if mastery else None,
            created_at=parse_timestamp(record.get("created_at")),
        )
    except (KeyError, TypeError, ValueError) as e:
        if isinstance(e, InvalidRecordError):
            raise
        raise InvalidRecordError(f"Malformed attempt record: {record!r}") from e


@dataclass
class ProgressSnapshot:
    """Everything the CLI knows about one learner."""

    states: list[TopicScheduleState] = field(default_factory=list)
    attempts: list[AttemptOutcome] = field(default_factory=list)

    def state_for(self, topic: MathTopic) -> Optional[TopicScheduleState]:
        for state in self.states:
            if state.topic is topic:
                return state
        return None

    def recent_topics(self, limit: int = 2) -> list[MathTopic]:
        """Topics of the latest attempts, oldest first."""
        topics = []
        for attempt in self.attempts[-limit:] if limit > 0 else []:
            if attempt.topic:
                try:
                    topics.append(MathTopic.parse(attempt.topic))
                except InvalidRecordError:
                    continue
        return topics


class ProgressStore:
    """
    Manages progress persistence.

    Unreadable files or rows are skipped with a warning rather than aborting
    the command.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else PROGRESS_PATH

    def load(self) -> ProgressSnapshot:
        """Load states and attempts from disk."""
        if not self.path.exists():
            return ProgressSnapshot()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"[Progress Store] Could not read {self.path}: {e}")
            return ProgressSnapshot()

        snapshot = ProgressSnapshot()
        for record in data.get("topics", []):
            try:
                snapshot.states.append(TopicScheduleState.from_record(record))
            except InvalidRecordError as e:
                logger.warning(f"[Progress Store] Skipping topic record: {e}")

        for record in data.get("attempts", []):
            try:
                snapshot.attempts.append(attempt_from_record(record))
            except InvalidRecordError as e:
                logger.warning(f"[Progress Store] Skipping attempt record: {e}")

        return snapshot

    def save(self, snapshot: ProgressSnapshot) -> Path:
        """Write states and the most recent attempts to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "saved_at": datetime.now().isoformat(),
            "topics": [state.to_record() for state in snapshot.states],
            "attempts": [attempt_to_record(a) for a in snapshot.attempts[-MAX_STORED_ATTEMPTS:]],
        }
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        return self.path

    def record(self, state: TopicScheduleState, attempt: AttemptOutcome) -> ProgressSnapshot:
        """Replace a topic's state and append an attempt."""
        snapshot = self.load()
        snapshot.states = [s for s in snapshot.states if s.topic is not state.topic] + [state]
        snapshot.attempts.append(attempt)
        self.save(snapshot)
        logger.debug(f"[Progress Store] Saved {state.topic.value} to {self.path}")
        return snapshot

    def reset(self) -> bool:
        """Delete the progress file."""
        if self.path.exists():
            self.path.unlink()
            return True
        return False
