# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Natural-key to surrogate-ID resolution.

The resolver is the only part of the loader that reads the store for
lookups. It lives for one unit of work: IDs it has seen are cached for
the rest of that transaction and dropped with the resolver.

Topics and lessons are written with a single
``INSERT ... ON CONFLICT (natural key) DO UPDATE ... RETURNING id``
statement, so the unique constraint on (parent_id, slug) decides between
insert and update even when another load writes the same row
concurrently. The lookup that precedes it only feeds the
inserted/updated counts.
"""

import logging
from typing import Any, Callable, NamedTuple, Optional

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.dml import Insert

from src.domains.content_loader.errors import FatalDatabaseError, MissingParentError
from src.domains.content_loader.schema import CONTENT_SCHEMA, EntitySchema

logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT DO UPDATE support
UPSERT_INSERTS: dict[str, Callable[..., Any]] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class ResolvedId(NamedTuple):
    """Surrogate ID of an upserted row and whether the row is new."""

    id: int
    created: bool


def build_upsert(entity: EntitySchema, row: dict[str, Any], dialect_name: str) -> Insert:
    """Build the natural-key upsert statement for one row.

    Args:
        entity: Schema entry of the row's table.
        row: Column values, including the natural key.
        dialect_name: Name of the database dialect.

    Returns:
        Insert statement returning the row's ``id``.

    Raises:
        FatalDatabaseError: If the dialect has no ON CONFLICT support.
    """
    insert_fn = UPSERT_INSERTS.get(dialect_name)
    if insert_fn is None:
        raise FatalDatabaseError(f"Dialect '{dialect_name}' does not support natural-key upserts")

    table = entity.table
    stmt = insert_fn(table).values(**row)
    assignments: dict[str, Any] = {name: stmt.excluded[name] for name in entity.update_columns}
    if entity.touched_column:
        assignments[entity.touched_column] = func.now()

    return stmt.on_conflict_do_update(
        index_elements=list(entity.natural_key),
        set_=assignments,
    ).returning(table.c.id)


class IdentityResolver:
    """Maps bundle slugs to row IDs inside one transaction.

    Example:
        >>> resolver = IdentityResolver(session)
        >>> category_id = await resolver.resolve_category("frontend")
        >>> topic = await resolver.resolve_or_create_topic(category_id, bundle.topic)
    """

    def __init__(
        self,
        session: AsyncSession,
        schema: Optional[dict[str, EntitySchema]] = None,
    ) -> None:
        schema = schema or CONTENT_SCHEMA
        self._session = session
        self._category = schema["category"]
        self._topic = schema["topic"]
        self._lesson = schema["lesson"]
        self._ids: dict[tuple[str, tuple[Any, ...]], int] = {}

    @property
    def dialect_name(self) -> str:
        return self._session.get_bind().dialect.name

    @property
    def cached_count(self) -> int:
        return len(self._ids)

    def clear(self) -> None:
        """Forget every ID seen in this unit of work."""
        self._ids.clear()

    async def resolve_category(self, slug: str) -> int:
        """Look up a category by slug. Categories are never created here.

        Raises:
            MissingParentError: If no category has this slug.
        """
        cache_key = (self._category.name, (slug,))
        if cache_key in self._ids:
            return self._ids[cache_key]

        category_id = await self._lookup(self._category, (slug,))
        if category_id is None:
            raise MissingParentError(slug)

        self._ids[cache_key] = category_id
        return category_id

    async def resolve_or_create_topic(self, category_id: int, topic: BaseModel) -> ResolvedId:
        """Upsert a topic on (category_id, slug)."""
        return await self._resolve_or_create(self._topic, topic, category_id)

    async def resolve_or_create_lesson(self, topic_id: int, lesson: BaseModel) -> ResolvedId:
        """Upsert a lesson on (topic_id, slug)."""
        return await self._resolve_or_create(self._lesson, lesson, topic_id)

    async def _resolve_or_create(
        self,
        entity: EntitySchema,
        item: BaseModel,
        parent_id: int,
    ) -> ResolvedId:
        key = entity.key_for(item, parent_id)
        cache_key = (entity.name, key)

        existing_id = self._ids.get(cache_key)
        if existing_id is None:
            existing_id = await self._lookup(entity, key)

        row = entity.row_for(item, parent_id)
        result = await self._session.execute(build_upsert(entity, row, self.dialect_name))
        row_id = result.scalar_one()

        self._ids[cache_key] = row_id
        logger.debug(
            "Upserted %s %s -> id=%d (%s)",
            entity.name,
            key,
            row_id,
            "updated" if existing_id is not None else "inserted",
        )
        return ResolvedId(id=row_id, created=existing_id is None)

    async def _lookup(self, entity: EntitySchema, key: tuple[Any, ...]) -> Optional[int]:
        table = entity.table
        conditions = [table.c[name] == value for name, value in zip(entity.natural_key, key)]
        result = await self._session.execute(select(table.c.id).where(*conditions))
        return result.scalar_one_or_none()
