# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content loader: validates a bundle and reconciles it in one transaction.

A load walks RECEIVED -> VALIDATED -> WRITING -> COMMITTED. A bundle that
fails validation ends in VALIDATION_FAILED without a transaction being
opened; any error while writing ends in ROLLED_BACK with the store left
as it was before the load. Loads are idempotent, so a transient failure
can be retried with the same bundle.

Example:
    >>> loader = ContentLoader(engine, settings)
    >>> summary = await loader.load_with_retry(bundle)
    >>> summary.inserted["lessons"]
    3
"""

import asyncio
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from src.core.config.settings import Settings
from src.domains.content_loader.bundle import ContentBundle
from src.domains.content_loader.errors import (
    EXIT_OK,
    BundleValidationError,
    ContentLoadError,
)
from src.domains.content_loader.reconciler import Reconciler
from src.domains.content_loader.resolver import IdentityResolver
from src.domains.content_loader.schema import CONTENT_SCHEMA, EntitySchema
from src.domains.content_loader.summary import LoadState, LoadSummary
from src.domains.content_loader.transaction import TransactionBoundary
from src.domains.content_loader.validator import BundleValidator
from src.utils.logging import bind_context, clear_context, get_logger

logger = get_logger(__name__)


@dataclass
class BatchResult:
    """Outcome of loading several bundles one after another.

    Attributes:
        summaries: Summaries of committed bundles.
        failures: Bundle ID and error of every bundle that did not commit.
    """

    summaries: list[LoadSummary] = field(default_factory=list)
    failures: list[tuple[str, ContentLoadError]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def exit_code(self) -> int:
        """Most severe exit code among the failures, 0 if none."""
        return max((error.exit_code for _, error in self.failures), default=EXIT_OK)


class ContentLoader:
    """Loads content bundles into the content store.

    Attributes:
        validator: Structural checks run before any write.
        boundary: Transaction boundary used for every load.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        settings: Settings,
        validator: Optional[BundleValidator] = None,
        schema: Optional[dict[str, EntitySchema]] = None,
    ) -> None:
        self._settings = settings
        self._schema = schema or CONTENT_SCHEMA
        self.validator = validator or BundleValidator(
            max_content_bytes=settings.loader.max_content_bytes
        )
        self.boundary = TransactionBoundary(engine, settings.database)

    async def load(self, bundle: ContentBundle) -> LoadSummary:
        """Load one bundle.

        Args:
            bundle: Bundle to load.

        Returns:
            Summary of the committed load.

        Raises:
            BundleValidationError: If the bundle is malformed. No
                transaction is opened.
            ContentLoadError: If writing failed; the transaction was
                rolled back. ``error.transient`` tells whether a retry
                may succeed.
        """
        summary = LoadSummary(bundle_id=bundle.bundle_id)
        started = time.perf_counter()
        bind_context(bundle_id=bundle.bundle_id)

        try:
            issues = self.validator.validate(bundle)
            if issues:
                summary.state = LoadState.VALIDATION_FAILED
                logger.warning(
                    "bundle_validation_failed",
                    issue_count=len(issues),
                    first_issue=str(issues[0]),
                )
                error = BundleValidationError(issues)
                error.state = summary.state
                raise error

            summary.state = LoadState.VALIDATED
            logger.debug("bundle_validated", lessons=len(bundle.lessons))

            summary.state = LoadState.WRITING
            try:
                async with self.boundary.open() as session:
                    resolver = IdentityResolver(session, self._schema)
                    reconciler = Reconciler(session, resolver, self._schema)
                    await reconciler.reconcile(bundle, summary)
                    resolver.clear()
            except ContentLoadError as e:
                summary.state = LoadState.ROLLED_BACK
                e.state = summary.state
                logger.warning(
                    "bundle_rolled_back",
                    kind=e.kind,
                    transient=e.transient,
                    error=str(e),
                )
                raise
            except asyncio.CancelledError:
                summary.state = LoadState.ROLLED_BACK
                logger.warning("bundle_load_cancelled")
                raise

            summary.state = LoadState.COMMITTED
            summary.duration_ms = (time.perf_counter() - started) * 1000
            logger.info(
                "bundle_committed",
                inserted=summary.inserted,
                updated=summary.updated,
                deleted_children=summary.deleted_children,
                duration_ms=round(summary.duration_ms, 1),
            )
            return summary
        finally:
            clear_context()

    async def load_with_retry(
        self,
        bundle: ContentBundle,
        max_attempts: Optional[int] = None,
    ) -> LoadSummary:
        """Load one bundle, retrying transient failures with backoff.

        Args:
            bundle: Bundle to load.
            max_attempts: Attempts before giving up. Defaults to
                ``settings.loader.max_attempts``.

        Returns:
            Summary of the committed load; ``attempts`` tells how many
            attempts it took.

        Raises:
            ContentLoadError: The last error once attempts are exhausted,
                or the first non-transient error.
        """
        attempts = max_attempts or self._settings.loader.max_attempts
        backoff = self._settings.loader.retry_backoff_seconds

        attempt = 1
        while True:
            try:
                summary = await self.load(bundle)
            except ContentLoadError as e:
                if not e.transient or attempt >= attempts:
                    raise
                delay = backoff * (2 ** (attempt - 1))
                logger.warning(
                    "bundle_load_retrying",
                    bundle_id=bundle.bundle_id,
                    attempt=attempt,
                    kind=e.kind,
                    delay_seconds=delay,
                )
                await asyncio.sleep(delay)
                attempt += 1
            else:
                summary.attempts = attempt
                return summary

    async def load_many(
        self,
        bundles: Iterable[ContentBundle],
        retry: bool = True,
    ) -> BatchResult:
        """Load bundles one at a time, each in its own transaction.

        A failing bundle does not stop the batch; its error is collected.

        Args:
            bundles: Bundles to load, in order.
            retry: Retry transient failures of each bundle.

        Returns:
            BatchResult with per-bundle outcomes.
        """
        result = BatchResult()
        for bundle in bundles:
            try:
                if retry:
                    summary = await self.load_with_retry(bundle)
                else:
                    summary = await self.load(bundle)
            except ContentLoadError as e:
                result.failures.append((bundle.bundle_id, e))
            else:
                result.summaries.append(summary)

        logger.info(
            "bundle_batch_finished",
            committed=len(result.summaries),
            failed=len(result.failures),
        )
        return result
