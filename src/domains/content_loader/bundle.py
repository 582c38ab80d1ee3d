# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content bundle models.

A bundle is one topic's worth of curriculum: the topic, its lessons, and
each lesson's code examples and quiz questions. Bundles are immutable
pydantic models; enumerated and ranged fields are kept as plain values
here and checked by BundleValidator, so every violation of a bundle is
reported in one pass.

Example:
    >>> bundle = parse_bundle({
    ...     "category_slug": "frontend",
    ...     "topic": {"slug": "react-hooks", "name": "React Hooks"},
    ...     "lessons": [],
    ... })
    >>> bundle.bundle_id
    'frontend/react-hooks'
"""

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError

from src.domains.content_loader.errors import BundleValidationError
from src.domains.content_loader.validator import ValidationIssue, format_path


class _BundleModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class CodeExampleData(_BundleModel):
    """A code example of a lesson."""

    title: str
    description: str | None = None
    language: str
    code: str
    explanation: str | None = None
    is_interactive: bool = False
    order_index: int


class QuizQuestionData(_BundleModel):
    """A quiz question of a lesson.

    For multiple-choice questions ``correct_answer`` is the literal text of
    one of the ``options``.
    """

    question_text: str
    question_type: str
    options: tuple[str, ...] = ()
    correct_answer: str
    explanation: str | None = None
    difficulty: str
    points: int = 10
    order_index: int


class LessonData(_BundleModel):
    """A lesson and its ordered children."""

    slug: str
    title: str
    summary: str | None = None
    content: str
    difficulty_level: str
    estimated_time: int | None = None
    order_index: int
    key_points: tuple[str, ...] = ()
    examples: tuple[CodeExampleData, ...] = ()
    questions: tuple[QuizQuestionData, ...] = ()


class TopicData(_BundleModel):
    """The topic at the root of a bundle."""

    slug: str
    name: str
    description: str | None = None
    difficulty_level: str | None = None
    estimated_time: int | None = None
    order_index: int = 0
    icon: str | None = None


class ContentBundle(_BundleModel):
    """One topic with its lessons, addressed to a pre-seeded category."""

    category_slug: str
    topic: TopicData
    lessons: tuple[LessonData, ...] = ()

    @property
    def bundle_id(self) -> str:
        """Stable identifier of the bundle: ``<category_slug>/<topic slug>``."""
        return f"{self.category_slug}/{self.topic.slug}"


def parse_bundle(data: Mapping[str, Any]) -> ContentBundle:
    """Build a ContentBundle from plain data.

    Args:
        data: Bundle data, e.g. parsed from content files or JSON.

    Returns:
        The immutable bundle.

    Raises:
        BundleValidationError: If the data does not have the bundle's
            shape. Every problem is reported with its path.
    """
    try:
        return ContentBundle.model_validate(data)
    except ValidationError as e:
        issues = [
            ValidationIssue(path=format_path(error["loc"]) or "<bundle>", message=error["msg"])
            for error in e.errors()
        ]
        raise BundleValidationError(issues) from e
