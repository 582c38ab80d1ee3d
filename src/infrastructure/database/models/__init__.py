# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the content database."""

from src.infrastructure.database.models.base import Base, JSONSequence, TimestampMixin
from src.infrastructure.database.models.content import (
    DIFFICULTY_LEVELS,
    QUESTION_DIFFICULTIES,
    QUESTION_TYPES,
    Category,
    CodeExample,
    Lesson,
    QuizQuestion,
    Topic,
)

__all__ = [
    "Base",
    "JSONSequence",
    "TimestampMixin",
    "Category",
    "Topic",
    "Lesson",
    "CodeExample",
    "QuizQuestion",
    "DIFFICULTY_LEVELS",
    "QUESTION_TYPES",
    "QUESTION_DIFFICULTIES",
]
