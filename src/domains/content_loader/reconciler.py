# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Writes a validated bundle into the store.

The write order within a bundle is fixed:
1. Resolve the category (never created here)
2. Upsert the topic on (category_id, slug)
3. For each lesson in order_index order, upsert it on (topic_id, slug),
   then replace its code examples and quiz questions: delete the
   lesson's current children, insert the bundle's in order_index order

Children carry no natural key in the content format, so the bundle's
child lists are authoritative and surrogate IDs of children change on
every reload. Entities the bundle does not mention are left untouched.

Write errors are not handled here; they propagate to the transaction
boundary, which rolls back the whole bundle.
"""

import logging
from typing import Any, Optional

from sqlalchemy import delete, insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.content_loader.bundle import ContentBundle, LessonData
from src.domains.content_loader.resolver import IdentityResolver
from src.domains.content_loader.schema import CONTENT_SCHEMA, ChildSpec, EntitySchema
from src.domains.content_loader.summary import LoadSummary

logger = logging.getLogger(__name__)


class Reconciler:
    """Table-driven writer for one bundle inside one transaction.

    Attributes:
        resolver: Identity resolver of the same unit of work.
    """

    def __init__(
        self,
        session: AsyncSession,
        resolver: IdentityResolver,
        schema: Optional[dict[str, EntitySchema]] = None,
    ) -> None:
        self._session = session
        self.resolver = resolver
        self._schema = schema or CONTENT_SCHEMA

    async def reconcile(self, bundle: ContentBundle, summary: LoadSummary) -> LoadSummary:
        """Write one bundle and record the counts in ``summary``.

        Args:
            bundle: Validated bundle.
            summary: Summary of the running load, updated in place.

        Returns:
            The updated summary.

        Raises:
            MissingParentError: If the bundle's category is not seeded.
            sqlalchemy.exc.SQLAlchemyError: On any write failure.
        """
        category_id = await self.resolver.resolve_category(bundle.category_slug)
        summary.categories_referenced = 1

        topic = await self.resolver.resolve_or_create_topic(category_id, bundle.topic)
        summary.count_write("topics", topic.created)

        for lesson in sorted(bundle.lessons, key=lambda item: item.order_index):
            resolved = await self.resolver.resolve_or_create_lesson(topic.id, lesson)
            summary.count_write("lessons", resolved.created)
            await self.replace_children(resolved.id, lesson, summary)

        logger.info(
            "Reconciled %s: topic_id=%d, lessons=%d",
            bundle.bundle_id,
            topic.id,
            len(bundle.lessons),
        )
        return summary

    async def replace_children(
        self,
        lesson_id: int,
        lesson: LessonData,
        summary: LoadSummary,
    ) -> None:
        """Replace every child set of one lesson with the bundle's children."""
        for child in self._schema["lesson"].children:
            deleted = await self._delete_children(child.entity, lesson_id)
            rows = self._child_rows(child, lesson, lesson_id)
            await self._insert_children(child.entity, rows)

            summary.deleted_children[child.field] += deleted
            summary.inserted[child.field] += len(rows)

    def _child_rows(self, child: ChildSpec, lesson: LessonData, lesson_id: int) -> list[dict[str, Any]]:
        items = getattr(lesson, child.field)
        order_column = child.entity.order_column
        if order_column:
            items = sorted(items, key=lambda item: getattr(item, order_column))
        return [child.entity.row_for(item, lesson_id) for item in items]

    async def _delete_children(self, entity: EntitySchema, parent_id: int) -> int:
        table = entity.table
        result = await self._session.execute(
            delete(table).where(table.c[entity.parent_column] == parent_id)
        )
        return result.rowcount or 0

    async def _insert_children(self, entity: EntitySchema, rows: list[dict[str, Any]]) -> None:
        if not rows:
            return
        await self._session.execute(insert(entity.table), rows)
