# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Category seed data.

Categories are the parents every content bundle points at. The loader never
creates them, so they are seeded here ahead of any load.
"""

import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models.content import Category

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: list[dict[str, Any]] = [
    {
        "name": "Software Architecture",
        "slug": "architecture",
        "description": "System design, architectural patterns, and scalability",
        "icon": "🏗️",
        "order_index": 1,
    },
    {
        "name": "Backend Development",
        "slug": "backend",
        "description": "Server-side programming, APIs, and databases",
        "icon": "💻",
        "order_index": 2,
    },
    {
        "name": "Frontend Development",
        "slug": "frontend",
        "description": "User interfaces, browsers, and client-side frameworks",
        "icon": "🎨",
        "order_index": 3,
    },
]


async def seed_categories(
    session: AsyncSession,
    categories: Optional[list[dict[str, Any]]] = None,
) -> list[Category]:
    """Seed curriculum categories, keyed by slug.

    Existing categories are updated in place, so the seed can be re-run.

    Args:
        session: Database session. The caller commits.
        categories: Category definitions. Defaults to DEFAULT_CATEGORIES.

    Returns:
        List of seeded categories in definition order.
    """
    data = DEFAULT_CATEGORIES if categories is None else categories

    slugs = [item["slug"] for item in data]
    result = await session.execute(select(Category).where(Category.slug.in_(slugs)))
    existing = {category.slug: category for category in result.scalars().all()}

    seeded: list[Category] = []
    created = 0
    for item in data:
        category = existing.get(item["slug"])
        if category is None:
            category = Category(**item)
            session.add(category)
            created += 1
        else:
            for field, value in item.items():
                setattr(category, field, value)
        seeded.append(category)

    await session.flush()
    logger.info(
        "Seeded %d categories (%d created, %d updated)",
        len(seeded),
        created,
        len(seeded) - created,
    )
    return seeded
