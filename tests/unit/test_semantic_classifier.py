"""
Unit tests for the semantic topic classifier, its cache and fallback.

The external service is replaced by in-memory fakes; no network access.
"""

import threading

import httpx
import pytest

from adaptive_scheduler.classification.cache import (
    NullClassificationCache,
    TTLClassificationCache,
)
from adaptive_scheduler.classification.semantic_classifier import (
    SemanticTopicClassifier,
    cache_key,
    parse_topic_label,
)
from adaptive_scheduler.core.errors import ClassifierUnavailableError
from adaptive_scheduler.core.topics import MathTopic


class FakeClient:
    """Returns a fixed label and records every call."""

    def __init__(self, label="geometry", error=None):
        self.label = label
        self.error = error
        self.calls = []

    def classify(self, problem_text, topics):
        self.calls.append((problem_text, list(topics)))
        if self.error is not None:
            raise self.error
        return self.label


class BlockingClient:
    """Blocks until released, to exercise the timeout."""

    def __init__(self):
        self.release = threading.Event()

    def classify(self, problem_text, topics):
        self.release.wait(5)
        return "geometry"


class FakeClock:
    def __init__(self):
        self.value = 0.0

    def __call__(self):
        return self.value


@pytest.fixture
def make_classifier():
    created = []

    def _make(client, **kwargs):
        classifier = SemanticTopicClassifier(client=client, **kwargs)
        created.append(classifier)
        return classifier

    yield _make
    for classifier in created:
        classifier.close()


class TestParseTopicLabel:
    def test_exact_label(self):
        assert parse_topic_label("word-problems") == MathTopic.WORD_PROBLEMS

    def test_label_with_noise(self):
        assert parse_topic_label("  Category: Inequalities.\n") == MathTopic.INEQUALITIES

    def test_longest_contained_label_wins(self):
        label = "quadratic-equations (not linear-equations)"
        assert parse_topic_label(label) == MathTopic.QUADRATIC_EQUATIONS

    @pytest.mark.parametrize("label", ["", "   ", "topology", None])
    def test_invalid_label_raises(self, label):
        with pytest.raises(ClassifierUnavailableError):
            parse_topic_label(label)


class TestSemanticClassifier:
    def test_uses_remote_label(self, make_classifier):
        client = FakeClient(label="geometry")
        classifier = make_classifier(client)
        assert classifier.classify("A farmer has 40 m of fence") == MathTopic.GEOMETRY
        assert len(client.calls) == 1
        assert "linear-equations" in client.calls[0][1]

    def test_cache_hit_skips_remote_call(self, make_classifier):
        client = FakeClient(label="geometry")
        classifier = make_classifier(client)
        classifier.classify("A farmer has 40 m of fence")
        classifier.classify("  a FARMER has 40 m   of fence ")
        assert len(client.calls) == 1

    def test_no_cache_calls_every_time(self, make_classifier):
        client = FakeClient(label="geometry")
        classifier = make_classifier(client, cache=NullClassificationCache())
        classifier.classify("A farmer has 40 m of fence")
        classifier.classify("A farmer has 40 m of fence")
        assert len(client.calls) == 2

    def test_error_falls_back_to_keywords(self, make_classifier):
        client = FakeClient(error=httpx.ConnectError("connection refused"))
        classifier = make_classifier(client)
        assert classifier.classify("Find the derivative of x^3") == MathTopic.CALCULUS

    def test_invalid_label_falls_back_to_keywords(self, make_classifier):
        client = FakeClient(label="topology")
        classifier = make_classifier(client)
        assert classifier.classify("Find the derivative of x^3") == MathTopic.CALCULUS

    def test_fallback_result_is_not_cached(self, make_classifier):
        client = FakeClient(error=RuntimeError("boom"))
        cache = TTLClassificationCache()
        classifier = make_classifier(client, cache=cache)
        classifier.classify("Find the derivative of x^3")
        assert len(cache) == 0

    def test_timeout_falls_back_to_keywords(self, make_classifier):
        client = BlockingClient()
        classifier = make_classifier(client, timeout_seconds=0.05)
        try:
            assert classifier.classify("Find the derivative of x^3") == MathTopic.CALCULUS
        finally:
            client.release.set()

    def test_empty_text_skips_remote(self, make_classifier):
        client = FakeClient()
        classifier = make_classifier(client)
        assert classifier.classify("") == MathTopic.LINEAR_EQUATIONS
        assert client.calls == []

    def test_clear_cache(self, make_classifier):
        client = FakeClient(label="geometry")
        classifier = make_classifier(client)
        classifier.classify("A farmer has 40 m of fence")
        classifier.clear_cache()
        classifier.classify("A farmer has 40 m of fence")
        assert len(client.calls) == 2


class TestTTLCache:
    def test_entry_expires_after_ttl(self):
        clock = FakeClock()
        cache = TTLClassificationCache(ttl_seconds=10, clock=clock)
        cache.set("k", MathTopic.GEOMETRY)

        clock.value = 10
        assert cache.get("k") == MathTopic.GEOMETRY

        clock.value = 10.5
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_stats(self):
        cache = TTLClassificationCache(ttl_seconds=60)
        cache.set(cache_key("Solve x"), MathTopic.LINEAR_EQUATIONS)
        assert cache.stats() == {"size": 1, "ttl_seconds": 60}

    def test_cache_key_normalizes(self):
        assert cache_key("  Solve   X ") == cache_key("solve x")
