"""
Classification cache for the semantic topic classifier.

The cache is an optimization only: a miss simply re-runs the classifier.
It is injected into SemanticTopicClassifier so tests can substitute a no-op
or deterministic implementation.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from loguru import logger

from adaptive_scheduler.core.topics import MathTopic

# Cached classifications expire after 24 hours
DEFAULT_TTL_SECONDS = 24 * 60 * 60


class ClassificationCache(Protocol):
    """Key -> topic store used by the semantic classifier."""

    def get(self, key: str) -> MathTopic | None: ...

    def set(self, key: str, topic: MathTopic) -> None: ...

    def clear(self) -> None: ...


@dataclass
class _Entry:
    topic: MathTopic
    stored_at: float


class TTLClassificationCache:
    """
    In-process cache with a fixed time-to-live.

    Thread-safe; expired entries are evicted when read.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> MathTopic | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            if self._clock() - entry.stored_at > self.ttl_seconds:
                del self._entries[key]
                logger.debug("[Topic Cache] Entry expired")
                return None

            return entry.topic

    def set(self, key: str, topic: MathTopic) -> None:
        with self._lock:
            self._entries[key] = _Entry(topic=topic, stored_at=self._clock())

    def clear(self) -> None:
        with self._lock:
            size = len(self._entries)
            self._entries.clear()
        logger.info(f"[Topic Cache] Cleared {size} cached classifications")

    def stats(self) -> dict[str, float]:
        """Cache size and TTL."""
        with self._lock:
            return {"size": len(self._entries), "ttl_seconds": self.ttl_seconds}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class NullClassificationCache:
    """Cache that never stores anything."""

    def get(self, key: str) -> MathTopic | None:
        return None

    def set(self, key: str, topic: MathTopic) -> None:
        pass

    def clear(self) -> None:
        pass
