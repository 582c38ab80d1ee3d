# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from typing import Any

import pytest

from src.domains.content_loader.bundle import ContentBundle, parse_bundle


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires a database)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Bundle Fixtures
# =============================================================================


def make_question(
    text: str,
    options: list[str],
    correct_answer: str,
    order_index: int,
    question_type: str = "multiple_choice",
) -> dict[str, Any]:
    """Build quiz question data."""
    return {
        "question_text": text,
        "question_type": question_type,
        "options": options,
        "correct_answer": correct_answer,
        "explanation": f"Explanation for: {text}",
        "difficulty": "easy",
        "points": 10,
        "order_index": order_index,
    }


def make_example(title: str, order_index: int) -> dict[str, Any]:
    """Build code example data."""
    return {
        "title": title,
        "description": f"{title} in practice",
        "language": "javascript",
        "code": "const [count, setCount] = useState(0);",
        "explanation": "Declares a state variable.",
        "order_index": order_index,
    }


def make_bundle_data() -> dict[str, Any]:
    """Build a valid bundle: frontend/react-hooks with one lesson and two questions."""
    return {
        "category_slug": "frontend",
        "topic": {
            "slug": "react-hooks",
            "name": "React Hooks",
            "description": "State and effects in function components.",
            "difficulty_level": "intermediate",
            "estimated_time": 90,
            "order_index": 1,
        },
        "lessons": [
            {
                "slug": "usestate-useeffect",
                "title": "useState and useEffect",
                "summary": "The two hooks every component uses.",
                "content": "# useState and useEffect\n\nHooks let function components hold state.",
                "difficulty_level": "beginner",
                "estimated_time": 30,
                "order_index": 1,
                "key_points": [
                    "useState returns a value and a setter",
                    "useEffect runs after render",
                ],
                "examples": [],
                "questions": [
                    make_question(
                        "What does useState return?",
                        ["A value and a setter", "A promise", "A ref", "Nothing"],
                        "A value and a setter",
                        order_index=0,
                    ),
                    make_question(
                        "When does useEffect run by default?",
                        ["Before render", "After every render", "Only once", "Never"],
                        "After every render",
                        order_index=1,
                    ),
                ],
            }
        ],
    }


@pytest.fixture
def bundle_data() -> dict[str, Any]:
    """Provide fresh, mutable data of a valid bundle."""
    return make_bundle_data()


@pytest.fixture
def bundle(bundle_data: dict[str, Any]) -> ContentBundle:
    """Provide the parsed sample bundle."""
    return parse_bundle(bundle_data)


@pytest.fixture
def example_factory():
    """Provide the code example data builder."""
    return make_example


@pytest.fixture
def question_factory():
    """Provide the quiz question data builder."""
    return make_question
