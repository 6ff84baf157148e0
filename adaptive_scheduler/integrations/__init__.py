"""External service clients."""

from adaptive_scheduler.integrations.openai_client import OpenAITopicClient

__all__ = ["OpenAITopicClient"]
