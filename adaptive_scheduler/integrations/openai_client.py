"""
OpenAI-compatible chat client for semantic topic classification.

Handles HTTP communication only. Errors are raised to the caller;
SemanticTopicClassifier catches them and falls back to keyword scoring.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx
from loguru import logger

from adaptive_scheduler.core.errors import ClassifierUnavailableError

CLASSIFIER_SYSTEM_PROMPT = (
    "You are a math education expert that classifies math problems into specific categories."
)

CLASSIFIER_USER_PROMPT = """You are a math education expert. Classify the following math problem into ONE of these categories:

{topics}

Problem: "{problem}"

Rules:
- Choose the MOST SPECIFIC category that fits
- If multiple categories apply, choose the PRIMARY focus
- Respond with ONLY the category name, no explanation

Category:"""


class OpenAITopicClient:
    """HTTP client for an OpenAI-compatible /chat/completions endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        timeout_seconds: float = 5.0,
        http_client: httpx.Client | None = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Bearer token for the API
            base_url: API root, without trailing /chat/completions
            model: Chat model name
            timeout_seconds: Request timeout
            http_client: Pre-built httpx client (tests inject a MockTransport)
        """
        if not api_key:
            raise ClassifierUnavailableError("No API key configured for topic classification")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.client = http_client or httpx.Client(timeout=httpx.Timeout(timeout_seconds))

    def build_payload(self, problem_text: str, topics: Sequence[str]) -> dict[str, Any]:
        """Chat completion request body."""
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": CLASSIFIER_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": CLASSIFIER_USER_PROMPT.format(
                        topics=", ".join(topics),
                        problem=problem_text,
                    ),
                },
            ],
            "temperature": 0.3,
            "max_tokens": 20,
        }

    def classify(self, problem_text: str, topics: Sequence[str]) -> str:
        """
        Ask the model for a topic label.

        Returns:
            Raw label text (lowercased, stripped)

        Raises:
            httpx.HTTPError: On transport or HTTP status failure
            ClassifierUnavailableError: On an empty or malformed reply
        """
        logger.debug(f"[OpenAI Classification] Calling {self.model} for: \"{problem_text[:100]}...\"")

        response = self.client.post(
            f"{self.base_url}/chat/completions",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json=self.build_payload(problem_text, topics),
        )
        response.raise_for_status()

        data = response.json()
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ClassifierUnavailableError(f"Malformed response: {data!r}") from e

        label = (content or "").strip().lower()
        if not label:
            raise ClassifierUnavailableError("Empty response from classifier")
        return label

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()
