# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Read-only reports on what the content store holds."""

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import (
    Category,
    CodeExample,
    Lesson,
    QuizQuestion,
    Topic,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TopicStatus:
    """Content counts of one topic."""

    category_slug: str
    category_name: str
    topic_slug: str
    topic_name: str
    lesson_count: int
    example_count: int
    question_count: int

    @property
    def bundle_id(self) -> str:
        return f"{self.category_slug}/{self.topic_slug}"

    @property
    def has_lessons(self) -> bool:
        return self.lesson_count > 0


async def list_topic_status(session: AsyncSession) -> list[TopicStatus]:
    """Count lessons, examples and questions of every topic.

    Topics are ordered by category order, then topic order.
    """
    lesson_count = (
        select(func.count(Lesson.id))
        .where(Lesson.topic_id == Topic.id)
        .scalar_subquery()
    )
    example_count = (
        select(func.count(CodeExample.id))
        .join(Lesson, CodeExample.lesson_id == Lesson.id)
        .where(Lesson.topic_id == Topic.id)
        .scalar_subquery()
    )
    question_count = (
        select(func.count(QuizQuestion.id))
        .join(Lesson, QuizQuestion.lesson_id == Lesson.id)
        .where(Lesson.topic_id == Topic.id)
        .scalar_subquery()
    )

    stmt = (
        select(
            Category.slug,
            Category.name,
            Topic.slug,
            Topic.name,
            lesson_count,
            example_count,
            question_count,
        )
        .select_from(Topic)
        .join(Category, Topic.category_id == Category.id)
        .order_by(Category.order_index, Category.slug, Topic.order_index, Topic.slug)
    )
    result = await session.execute(stmt)

    statuses = [
        TopicStatus(
            category_slug=row[0],
            category_name=row[1],
            topic_slug=row[2],
            topic_name=row[3],
            lesson_count=row[4] or 0,
            example_count=row[5] or 0,
            question_count=row[6] or 0,
        )
        for row in result.all()
    ]
    logger.debug("Collected status of %d topics", len(statuses))
    return statuses


async def find_topics_without_lessons(session: AsyncSession) -> list[TopicStatus]:
    """Topics that exist in the store but have no lessons yet."""
    return [status for status in await list_topic_status(session) if not status.has_lessons]
