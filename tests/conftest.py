"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from adaptive_scheduler.core.topics import MathTopic, TopicScheduleState  # noqa: E402
from adaptive_scheduler.tutoring.solution_path import SolutionOutline  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "property: Property-based tests")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)
        elif "property" in str(item.fspath):
            item.add_marker(pytest.mark.property)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """Fixed reference time."""
    return datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_state(now):
    """Factory for topic states relative to the reference time."""

    def _make(
        topic: MathTopic,
        strength: float = 0.5,
        due_in_days: float | None = None,
        interval_days: int = 1,
        review_count: int = 1,
        ease_factor: float = 2.5,
    ) -> TopicScheduleState:
        next_review = None if due_in_days is None else now + timedelta(days=due_in_days)
        last_reviewed = None if next_review is None else next_review - timedelta(days=interval_days)
        return TopicScheduleState(
            topic=topic,
            strength=strength,
            review_count=review_count,
            ease_factor=ease_factor,
            interval_days=interval_days,
            last_reviewed=last_reviewed,
            next_review=next_review,
        )

    return _make


@pytest.fixture
def outline_data():
    """Solution outline as returned by the dialogue service."""
    return {
        "problemStatement": "Solve 2x + 3 = 7",
        "problemType": "Linear Equation",
        "recommendedApproachIndex": 0,
        "approaches": [
            {
                "name": "Inverse operations",
                "steps": [
                    {
                        "stepNumber": 1,
                        "action": "Subtract 3 from both sides",
                        "reasoning": "Isolate the term with x",
                        "hints": {
                            "level1": "What is added to 2x?",
                            "level2": "Undo the +3 on the left side",
                            "level3": "2x + 3 - 3 = 7 - 3",
                        },
                        "keyConcepts": ["inverse operations"],
                        "commonMistakes": ["subtracting on one side only"],
                    },
                    {
                        "stepNumber": 2,
                        "action": "Divide both sides by 2",
                        "reasoning": "Get x alone",
                        "hints": {
                            "level1": "What multiplies x?",
                            "level2": "Undo the multiplication by 2",
                            "level3": "2x / 2 = 4 / 2",
                        },
                    },
                ],
            },
            {
                "name": "Guess and check",
                "steps": [
                    {
                        "stepNumber": 1,
                        "action": "Try x = 2",
                        "reasoning": "Substitute and verify",
                        "hints": {"level1": "a", "level2": "b", "level3": "c"},
                    },
                ],
            },
        ],
    }


@pytest.fixture
def outline(outline_data):
    return SolutionOutline.from_dict(outline_data)
