"""
Semantic Topic Classification with keyword fallback.

Flow:
1. Check the cache (key = normalized problem text)
2. On a miss, call the external classifier once, bounded by a timeout
3. Validate and cache the label
4. On any failure (error, timeout, unknown label) use the keyword classifier

classify() never raises.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Protocol

from loguru import logger

from adaptive_scheduler.classification.cache import (
    ClassificationCache,
    TTLClassificationCache,
)
from adaptive_scheduler.classification.keyword_classifier import (
    KeywordTopicClassifier,
    normalize_text,
)
from adaptive_scheduler.core.errors import ClassifierUnavailableError
from adaptive_scheduler.core.topics import ALL_TOPICS, MathTopic

DEFAULT_TIMEOUT_SECONDS = 5.0


class TopicLabelClient(Protocol):
    """External service returning a raw topic label for problem text."""

    def classify(self, problem_text: str, topics: Sequence[str]) -> str: ...


def cache_key(problem_text: str) -> str:
    """Normalize problem text into a cache key."""
    return normalize_text(problem_text)


def parse_topic_label(label: str) -> MathTopic:
    """
    Map a raw service label onto the taxonomy.

    Accepts an exact label or a reply that contains one (e.g. "Category:
    inequalities."). The longest contained label wins.

    Raises:
        ClassifierUnavailableError: If no taxonomy label is present
    """
    cleaned = (label or "").strip().lower()
    if not cleaned:
        raise ClassifierUnavailableError("Empty classification")

    for topic in ALL_TOPICS:
        if cleaned == topic.value:
            return topic

    contained = [topic for topic in ALL_TOPICS if topic.value in cleaned]
    if not contained:
        raise ClassifierUnavailableError(f"Invalid topic: {label!r}")
    return max(contained, key=lambda t: len(t.value))


class SemanticTopicClassifier:
    """
    Cached external classifier that degrades to keyword scoring.

    Example:
        classifier = SemanticTopicClassifier(client=OpenAITopicClient(api_key))
        topic = classifier.classify("A farmer has 40 m of fence...")
    """

    def __init__(
        self,
        client: TopicLabelClient,
        cache: ClassificationCache | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        fallback: KeywordTopicClassifier | None = None,
    ):
        self.client = client
        self.cache = cache if cache is not None else TTLClassificationCache()
        self.timeout_seconds = timeout_seconds
        self.fallback = fallback or KeywordTopicClassifier()
        # Long-lived so a timed-out call never blocks the caller on shutdown
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="topic-classifier")

    def classify(self, problem_text: str) -> MathTopic:
        """Classify problem text; never raises."""
        if not isinstance(problem_text, str) or not problem_text.strip():
            return self.fallback.classify(problem_text)

        key = cache_key(problem_text)

        try:
            cached = self.cache.get(key)
        except Exception as e:
            logger.warning(f"[Semantic Classification] Cache read failed: {e}")
            cached = None

        if cached is not None:
            logger.debug(f"[Semantic Classification] Cache hit: {cached.value}")
            return cached

        try:
            topic = self._classify_remote(problem_text)
        except Exception as e:
            logger.warning(
                f"[Semantic Classification] Failed ({type(e).__name__}: {e}), "
                f"using weighted keyword fallback"
            )
            return self.fallback.classify(problem_text)

        try:
            self.cache.set(key, topic)
        except Exception as e:
            logger.warning(f"[Semantic Classification] Cache write failed: {e}")

        logger.info(f"[Semantic Classification] Classified as: {topic.value}")
        return topic

    def _classify_remote(self, problem_text: str) -> MathTopic:
        topics = [topic.value for topic in ALL_TOPICS]
        future = self._executor.submit(self.client.classify, problem_text, topics)
        try:
            label = future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError as e:
            future.cancel()
            raise ClassifierUnavailableError(
                f"Classifier timed out after {self.timeout_seconds:.1f}s"
            ) from e
        return parse_topic_label(label)

    def clear_cache(self) -> None:
        """Drop all cached classifications."""
        self.cache.clear()

    def close(self) -> None:
        """Release the worker threads without waiting for pending calls."""
        self._executor.shutdown(wait=False, cancel_futures=True)
