# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Explicit removal of loaded content.

Loads never delete topics or lessons, because a single bundle cannot tell
a removed entity from one it simply does not mention. Removing content is
an operator action done through these functions. Children go with their
parent through ON DELETE CASCADE.
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.content_loader.errors import MissingParentError
from src.infrastructure.database.models import Category, Lesson, Topic

logger = logging.getLogger(__name__)


async def _topic_id(session: AsyncSession, category_slug: str, topic_slug: str) -> int | None:
    category_id = await session.scalar(select(Category.id).where(Category.slug == category_slug))
    if category_id is None:
        raise MissingParentError(category_slug)
    return await session.scalar(
        select(Topic.id).where(Topic.category_id == category_id, Topic.slug == topic_slug)
    )


async def remove_topic(session: AsyncSession, category_slug: str, topic_slug: str) -> bool:
    """Delete a topic with all its lessons, examples and questions.

    Args:
        session: Database session. The caller commits.
        category_slug: Slug of the topic's category.
        topic_slug: Slug of the topic.

    Returns:
        True if the topic existed and was deleted.

    Raises:
        MissingParentError: If the category does not exist.
    """
    topic_id = await _topic_id(session, category_slug, topic_slug)
    if topic_id is None:
        logger.info("Topic %s/%s not found, nothing removed", category_slug, topic_slug)
        return False

    await session.execute(delete(Topic).where(Topic.id == topic_id))
    logger.info("Removed topic %s/%s (id=%d)", category_slug, topic_slug, topic_id)
    return True


async def remove_lesson(
    session: AsyncSession,
    category_slug: str,
    topic_slug: str,
    lesson_slug: str,
) -> bool:
    """Delete one lesson with its examples and questions.

    Returns:
        True if the lesson existed and was deleted.

    Raises:
        MissingParentError: If the category does not exist.
    """
    topic_id = await _topic_id(session, category_slug, topic_slug)
    if topic_id is None:
        logger.info("Topic %s/%s not found, nothing removed", category_slug, topic_slug)
        return False

    result = await session.execute(
        delete(Lesson).where(Lesson.topic_id == topic_id, Lesson.slug == lesson_slug)
    )
    removed = bool(result.rowcount)
    if removed:
        logger.info("Removed lesson %s/%s/%s", category_slug, topic_slug, lesson_slug)
    else:
        logger.info("Lesson %s/%s/%s not found, nothing removed", category_slug, topic_slug, lesson_slug)
    return removed
