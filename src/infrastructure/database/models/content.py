# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum content models.

Hierarchy (each level owns the next, deletes cascade downwards):
- Category: top-level curriculum area (architecture, backend, frontend)
- Topic: unit of study within a category, addressed by (category_id, slug)
- Lesson: markdown lesson within a topic, addressed by (topic_id, slug)
- CodeExample / QuizQuestion: ordered children of a lesson
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, JSONSequence, TimestampMixin

DIFFICULTY_LEVELS = ("beginner", "intermediate", "advanced", "expert")
QUESTION_TYPES = ("multiple_choice", "true_false", "code_challenge")
QUESTION_DIFFICULTIES = ("easy", "medium", "hard")


def _in_list(column: str, values: tuple[str, ...]) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


class Category(Base, TimestampMixin):
    """Top of the curriculum hierarchy. Pre-seeded, never created by the loader."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str | None] = mapped_column(String(100), nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    topics: Mapped[list["Topic"]] = relationship(
        back_populates="category",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Topic.order_index",
    )

    def __repr__(self) -> str:
        return f"<Category {self.slug}>"


class Topic(Base, TimestampMixin):
    """A topic within a category."""

    __tablename__ = "topics"
    __table_args__ = (
        UniqueConstraint("category_id", "slug", name="uq_topics_category_id_slug"),
        CheckConstraint("order_index >= 0", name="non_negative_order_index"),
        CheckConstraint(
            "estimated_time IS NULL OR estimated_time >= 0",
            name="non_negative_estimated_time",
        ),
        CheckConstraint(
            _in_list("difficulty_level", DIFFICULTY_LEVELS),
            name="valid_difficulty_level",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    difficulty_level: Mapped[str | None] = mapped_column(String(20), nullable=True)
    estimated_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    icon: Mapped[str | None] = mapped_column(String(100), nullable=True)

    category: Mapped[Category] = relationship(back_populates="topics")
    lessons: Mapped[list["Lesson"]] = relationship(
        back_populates="topic",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Lesson.order_index",
    )

    def __repr__(self) -> str:
        return f"<Topic {self.slug}>"


class Lesson(Base, TimestampMixin):
    """A markdown lesson within a topic."""

    __tablename__ = "lessons"
    __table_args__ = (
        UniqueConstraint("topic_id", "slug", name="uq_lessons_topic_id_slug"),
        CheckConstraint("order_index >= 0", name="non_negative_order_index"),
        CheckConstraint(
            "estimated_time IS NULL OR estimated_time >= 0",
            name="non_negative_estimated_time",
        ),
        CheckConstraint(
            _in_list("difficulty_level", DIFFICULTY_LEVELS),
            name="valid_difficulty_level",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("topics.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    slug: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    difficulty_level: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    estimated_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    key_points: Mapped[list[str]] = mapped_column(JSONSequence, nullable=False, default=list)

    topic: Mapped[Topic] = relationship(back_populates="lessons")
    code_examples: Mapped[list["CodeExample"]] = relationship(
        back_populates="lesson",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CodeExample.order_index",
    )
    quiz_questions: Mapped[list["QuizQuestion"]] = relationship(
        back_populates="lesson",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="QuizQuestion.order_index",
    )

    def __repr__(self) -> str:
        return f"<Lesson {self.slug}>"


class CodeExample(Base, TimestampMixin):
    """A code example attached to a lesson."""

    __tablename__ = "code_examples"
    __table_args__ = (
        CheckConstraint("order_index >= 0", name="non_negative_order_index"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lesson_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("lessons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    language: Mapped[str] = mapped_column(String(50), nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_interactive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    lesson: Mapped[Lesson] = relationship(back_populates="code_examples")


class QuizQuestion(Base, TimestampMixin):
    """A quiz question attached to a lesson.

    ``correct_answer`` holds the literal option text for multiple-choice
    questions, not an index into ``options``.
    """

    __tablename__ = "quiz_questions"
    __table_args__ = (
        CheckConstraint("order_index >= 0", name="non_negative_order_index"),
        CheckConstraint("points > 0", name="positive_points"),
        CheckConstraint(
            _in_list("question_type", QUESTION_TYPES),
            name="valid_question_type",
        ),
        CheckConstraint(
            _in_list("difficulty", QUESTION_DIFFICULTIES),
            name="valid_difficulty",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lesson_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("lessons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(String(20), nullable=False)
    options: Mapped[list[str]] = mapped_column(JSONSequence, nullable=False, default=list)
    correct_answer: Mapped[str] = mapped_column(Text, nullable=False)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    difficulty: Mapped[str] = mapped_column(String(20), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    lesson: Mapped[Lesson] = relationship(back_populates="quiz_questions")
