"""
Topic Classification Module.

Provides:
- Weighted keyword classification (table-driven, boundary-aware)
- Optional semantic classification with TTL cache and keyword fallback
"""

from __future__ import annotations

from adaptive_scheduler.classification.cache import (
    ClassificationCache,
    NullClassificationCache,
    TTLClassificationCache,
)
from adaptive_scheduler.classification.keyword_classifier import (
    TOPIC_PATTERNS,
    KeywordTopicClassifier,
    TopicClassification,
    TopicPattern,
    TopicScore,
    classify_topic,
    classify_topic_with_confidence,
    explain_topic_classification,
)
from adaptive_scheduler.classification.semantic_classifier import (
    SemanticTopicClassifier,
    TopicLabelClient,
    parse_topic_label,
)


def build_topic_classifier(settings=None) -> KeywordTopicClassifier | SemanticTopicClassifier:
    """
    Build the configured topic classifier.

    Returns the semantic classifier when an API key is configured and the
    feature is enabled, otherwise the keyword classifier.
    """
    if settings is None:
        from config import get_settings

        settings = get_settings()

    if not settings.has_semantic_classifier():
        return KeywordTopicClassifier()

    from adaptive_scheduler.integrations.openai_client import OpenAITopicClient

    config = settings.get_classifier_config()
    client = OpenAITopicClient(
        api_key=settings.openai_api_key,
        base_url=config["base_url"],
        model=config["model"],
        timeout_seconds=config["timeout_seconds"],
    )
    return SemanticTopicClassifier(
        client=client,
        cache=TTLClassificationCache(ttl_seconds=config["cache_ttl_seconds"]),
        timeout_seconds=config["timeout_seconds"],
    )


__all__ = [
    "ClassificationCache",
    "KeywordTopicClassifier",
    "NullClassificationCache",
    "SemanticTopicClassifier",
    "TOPIC_PATTERNS",
    "TTLClassificationCache",
    "TopicClassification",
    "TopicLabelClient",
    "TopicPattern",
    "TopicScore",
    "build_topic_classifier",
    "classify_topic",
    "classify_topic_with_confidence",
    "explain_topic_classification",
    "parse_topic_label",
]
