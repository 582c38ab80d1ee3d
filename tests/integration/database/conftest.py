# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for database integration tests.

Tests run against a throwaway SQLite file by default. Set
TEST_DATABASE_URL to an async PostgreSQL URL to run them against a real
server instead; the tables are dropped and recreated for every test.
"""

import os
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.core.config.settings import ContentDatabaseSettings, LoaderSettings, Settings
from src.infrastructure.database.connection import create_engine_from_settings
from src.infrastructure.database.models import (
    Base,
    Category,
    CodeExample,
    Lesson,
    QuizQuestion,
    Topic,
)
from src.infrastructure.database.seeds import seed_categories


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    """Get database URL for tests."""
    return os.environ.get("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'content.db'}")


@pytest.fixture
def settings(db_url: str) -> Settings:
    """Settings pointing at the test database with fast retries."""
    return Settings(
        database=ContentDatabaseSettings(url_override=db_url),
        loader=LoaderSettings(max_attempts=5, retry_backoff_seconds=0.01),
    )


@pytest_asyncio.fixture(scope="function")
async def db_engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine with a fresh content schema."""
    engine = create_engine_from_settings(settings.database)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def db_sessionmaker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def seeded_engine(
    db_engine: AsyncEngine,
    db_sessionmaker: async_sessionmaker[AsyncSession],
) -> AsyncEngine:
    """Engine whose database holds the default categories."""
    async with db_sessionmaker() as session:
        await seed_categories(session)
        await session.commit()
    return db_engine


@pytest_asyncio.fixture(scope="function")
async def db_session(
    db_sessionmaker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create async session for database tests."""
    async with db_sessionmaker() as session:
        yield session


async def _count_rows(session: AsyncSession) -> dict[str, int]:
    """Count the rows of every content table."""
    counts = {}
    for name, model in [
        ("categories", Category),
        ("topics", Topic),
        ("lessons", Lesson),
        ("examples", CodeExample),
        ("questions", QuizQuestion),
    ]:
        counts[name] = await session.scalar(select(func.count()).select_from(model))
    return counts


async def _snapshot(session: AsyncSession) -> dict[str, list[tuple]]:
    """Business columns of every content row, in a stable order."""
    topics = await session.execute(
        select(Topic.category_id, Topic.slug, Topic.name, Topic.description, Topic.order_index)
        .order_by(Topic.category_id, Topic.slug)
    )
    lessons = await session.execute(
        select(Lesson.topic_id, Lesson.slug, Lesson.title, Lesson.content, Lesson.order_index)
        .order_by(Lesson.topic_id, Lesson.slug)
    )
    examples = await session.execute(
        select(CodeExample.lesson_id, CodeExample.order_index, CodeExample.title, CodeExample.code)
        .order_by(CodeExample.lesson_id, CodeExample.order_index)
    )
    questions = await session.execute(
        select(
            QuizQuestion.lesson_id,
            QuizQuestion.order_index,
            QuizQuestion.question_text,
            QuizQuestion.correct_answer,
        ).order_by(QuizQuestion.lesson_id, QuizQuestion.order_index)
    )
    return {
        "topics": [tuple(row) for row in topics],
        "lessons": [tuple(row) for row in lessons],
        "examples": [tuple(row) for row in examples],
        "questions": [tuple(row) for row in questions],
    }


@pytest.fixture
def count_rows():
    """Provide the row counter of the content tables."""
    return _count_rows


@pytest.fixture
def snapshot():
    """Provide the snapshot of stored content."""
    return _snapshot
