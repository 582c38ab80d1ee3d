# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Atomic unit of work around one bundle load.

TransactionBoundary.open() yields a session whose transaction commits when
the block returns and rolls back on any exception, timeout or
cancellation. The connection goes back to the pool on every exit path.

On PostgreSQL the transaction runs at the configured isolation level
(READ COMMITTED by default) with a per-statement timeout. SQLite has no
per-statement timeout or READ COMMITTED level, so both are left to the
driver there. The per-transaction timeout applies on every backend.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.core.config.settings import ContentDatabaseSettings
from src.domains.content_loader.errors import (
    ContentLoadError,
    TransientDatabaseError,
    classify_database_error,
)

logger = logging.getLogger(__name__)


class TransactionBoundary:
    """Opens one transaction per bundle load.

    Example:
        >>> boundary = TransactionBoundary(engine, settings.database)
        >>> async with boundary.open() as session:
        ...     await reconciler.reconcile(bundle, summary)
    """

    def __init__(
        self,
        engine: AsyncEngine,
        db_settings: ContentDatabaseSettings,
        sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None,
    ) -> None:
        self._engine = engine
        self._settings = db_settings
        self._sessionmaker = sessionmaker or async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @property
    def supports_session_settings(self) -> bool:
        return self._engine.dialect.name == "postgresql"

    @asynccontextmanager
    async def open(self) -> AsyncIterator[AsyncSession]:
        """Open a transaction and yield its session.

        Yields:
            AsyncSession bound to the open transaction.

        Raises:
            TransientDatabaseError: If the transaction exceeds its timeout or
                the database cannot be reached.
            ContentLoadError: For any database failure, classified by kind.
                ContentLoadErrors raised inside the block pass through
                unchanged after rollback.
        """
        timeout = self._settings.transaction_timeout_seconds or None

        try:
            async with self._sessionmaker() as session:
                async with asyncio.timeout(timeout):
                    async with session.begin():
                        await self._configure(session)
                        yield session
        except ContentLoadError:
            raise
        except TimeoutError as e:
            if timeout is None:
                raise classify_database_error(e) from e
            logger.warning("Transaction exceeded %.1fs, rolled back", timeout)
            raise TransientDatabaseError(
                f"Transaction exceeded its {timeout:g}s timeout", e
            ) from e
        except (SQLAlchemyError, OSError) as e:
            # Drivers raise socket errors unwrapped when a connection is refused or dropped
            raise classify_database_error(e) from e

    async def _configure(self, session: AsyncSession) -> None:
        if not self.supports_session_settings:
            return

        await session.connection(
            execution_options={"isolation_level": self._settings.isolation_level}
        )
        statement_timeout = int(self._settings.statement_timeout_ms)
        await session.execute(text(f"SET LOCAL statement_timeout = {statement_timeout}"))
