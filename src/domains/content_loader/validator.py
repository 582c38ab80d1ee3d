# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structural validation of content bundles.

The validator runs before any database work and collects every problem
of a bundle instead of stopping at the first one. Each issue carries the
path of the offending value, e.g. ``lessons[2].questions[0].options``.

Rules:
- Required text fields are present and non-empty
- Enumerated fields use an allowed value
- Slugs are lowercase-kebab and distinct within their parent
- order_index values are distinct within their parent
- Numbers stay within their declared ranges
- Multiple-choice questions have at least two options and their
  correct_answer is one of them
- Text fits the column it is stored in
"""

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Union

from src.domains.content_loader.schema import (
    CODE_EXAMPLE,
    LESSON,
    QUIZ_QUESTION,
    TOPIC,
    EntitySchema,
)
from src.infrastructure.database.models import (
    DIFFICULTY_LEVELS,
    QUESTION_DIFFICULTIES,
    QUESTION_TYPES,
)

if TYPE_CHECKING:
    from src.domains.content_loader.bundle import (
        CodeExampleData,
        ContentBundle,
        LessonData,
        QuizQuestionData,
    )

SLUG_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*$")

MAX_ORDER_INDEX = 1_000_000
MAX_ESTIMATED_TIME = 10_000
MIN_POINTS = 1
MAX_POINTS = 1_000
MIN_MULTIPLE_CHOICE_OPTIONS = 2
DEFAULT_MAX_CONTENT_BYTES = 2 * 1024 * 1024


def format_path(loc: Iterable[Union[str, int]]) -> str:
    """Render a location tuple as a bundle path.

    Example:
        >>> format_path(("lessons", 2, "questions", 0, "options"))
        'lessons[2].questions[0].options'
    """
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path


@dataclass(frozen=True)
class ValidationIssue:
    """One structural problem of a bundle."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message}


class BundleValidator:
    """Checks content bundles before they are written.

    Attributes:
        max_content_bytes: Upper bound for a lesson's UTF-8 encoded content.
    """

    def __init__(self, max_content_bytes: int = DEFAULT_MAX_CONTENT_BYTES) -> None:
        self.max_content_bytes = max_content_bytes
        self._issues: list[ValidationIssue] = []

    def validate(self, bundle: "ContentBundle") -> list[ValidationIssue]:
        """Validate a bundle.

        Args:
            bundle: Bundle to check.

        Returns:
            All issues found, in bundle order. Empty when the bundle is valid.
        """
        self._issues = []

        self._check_required("", bundle, ("category_slug",))
        self._check_slug("category_slug", bundle.category_slug)

        topic = bundle.topic
        self._check_required("topic", topic, ("slug", "name"))
        self._check_slug("topic.slug", topic.slug)
        self._check_lengths("topic", topic, TOPIC)
        self._check_choice("topic.difficulty_level", topic.difficulty_level, DIFFICULTY_LEVELS)
        self._check_range("topic.estimated_time", topic.estimated_time, 0, MAX_ESTIMATED_TIME)
        self._check_range("topic.order_index", topic.order_index, 0, MAX_ORDER_INDEX)

        self._check_distinct("lessons", bundle.lessons, "slug")
        self._check_distinct("lessons", bundle.lessons, "order_index")
        for index, lesson in enumerate(bundle.lessons):
            self._check_lesson(f"lessons[{index}]", lesson)

        issues, self._issues = self._issues, []
        return issues

    def is_valid(self, bundle: "ContentBundle") -> bool:
        return not self.validate(bundle)

    def _add(self, path: str, message: str) -> None:
        self._issues.append(ValidationIssue(path=path, message=message))

    def _check_lesson(self, path: str, lesson: "LessonData") -> None:
        self._check_required(path, lesson, ("slug", "title", "content", "difficulty_level"))
        self._check_slug(f"{path}.slug", lesson.slug)
        self._check_lengths(path, lesson, LESSON)
        self._check_choice(f"{path}.difficulty_level", lesson.difficulty_level, DIFFICULTY_LEVELS)
        self._check_range(f"{path}.estimated_time", lesson.estimated_time, 0, MAX_ESTIMATED_TIME)
        self._check_range(f"{path}.order_index", lesson.order_index, 0, MAX_ORDER_INDEX)

        content_bytes = len(lesson.content.encode("utf-8"))
        if content_bytes > self.max_content_bytes:
            self._add(
                f"{path}.content",
                f"content is {content_bytes} bytes, limit is {self.max_content_bytes}",
            )

        for point_index, point in enumerate(lesson.key_points):
            if not point.strip():
                self._add(f"{path}.key_points[{point_index}]", "must not be empty")

        self._check_distinct(f"{path}.examples", lesson.examples, "order_index")
        for index, example in enumerate(lesson.examples):
            self._check_example(f"{path}.examples[{index}]", example)

        self._check_distinct(f"{path}.questions", lesson.questions, "order_index")
        for index, question in enumerate(lesson.questions):
            self._check_question(f"{path}.questions[{index}]", question)

    def _check_example(self, path: str, example: "CodeExampleData") -> None:
        self._check_required(path, example, ("title", "language", "code"))
        self._check_lengths(path, example, CODE_EXAMPLE)
        self._check_range(f"{path}.order_index", example.order_index, 0, MAX_ORDER_INDEX)

    def _check_question(self, path: str, question: "QuizQuestionData") -> None:
        self._check_required(
            path, question, ("question_text", "question_type", "correct_answer", "difficulty")
        )
        self._check_lengths(path, question, QUIZ_QUESTION)
        self._check_choice(f"{path}.question_type", question.question_type, QUESTION_TYPES)
        self._check_choice(f"{path}.difficulty", question.difficulty, QUESTION_DIFFICULTIES)
        self._check_range(f"{path}.points", question.points, MIN_POINTS, MAX_POINTS)
        self._check_range(f"{path}.order_index", question.order_index, 0, MAX_ORDER_INDEX)

        if question.question_type != "multiple_choice":
            return
        if len(question.options) < MIN_MULTIPLE_CHOICE_OPTIONS:
            self._add(
                f"{path}.options",
                f"multiple_choice questions need at least {MIN_MULTIPLE_CHOICE_OPTIONS} options",
            )
        elif question.correct_answer not in question.options:
            self._add(path, f"correct_answer {question.correct_answer!r} is not one of the options")

    def _check_required(self, path: str, item: Any, fields: Sequence[str]) -> None:
        for name in fields:
            value = getattr(item, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                self._add(f"{path}.{name}" if path else name, "must not be empty")

    def _check_slug(self, path: str, slug: str) -> None:
        # Empty slugs are reported by _check_required
        if slug.strip() and not SLUG_PATTERN.match(slug):
            self._add(path, f"slug {slug!r} must match {SLUG_PATTERN.pattern}")

    def _check_choice(self, path: str, value: Optional[str], allowed: Sequence[str]) -> None:
        if value and value not in allowed:
            self._add(path, f"{value!r} is not one of: {', '.join(allowed)}")

    def _check_range(self, path: str, value: Optional[int], low: int, high: int) -> None:
        if value is not None and not low <= value <= high:
            self._add(path, f"{value} is outside {low}..{high}")

    def _check_lengths(self, path: str, item: Any, entity: EntitySchema) -> None:
        for name, limit in entity.field_limits().items():
            value = getattr(item, name)
            if isinstance(value, str) and len(value) > limit:
                self._add(f"{path}.{name}", f"longer than {limit} characters")

    def _check_distinct(self, path: str, items: Sequence[Any], attribute: str) -> None:
        seen: dict[Any, int] = {}
        for index, item in enumerate(items):
            value = getattr(item, attribute)
            if value in seen:
                self._add(
                    f"{path}[{index}].{attribute}",
                    f"duplicate {attribute} {value!r} (also used by {path}[{seen[value]}])",
                )
            else:
                seen[value] = index
