# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum content loader.

This package reconciles content bundles into the content store:
- ContentBundle / parse_bundle: Immutable bundle models
- BundleValidator: Structural checks before any write
- IdentityResolver: Slug to surrogate-ID resolution with upserts
- Reconciler: Table-driven writer with full replacement of lesson children
- TransactionBoundary: One atomic transaction per bundle
- ContentLoader: Load state machine, retries and batches
- ingestion / inspection / cleanup: Content files, reports, removal

Example:
    >>> loader = ContentLoader(engine, settings)
    >>> summary = await loader.load(read_bundle(Path("content/frontend/intermediate/react-hooks")))
"""

from src.domains.content_loader.bundle import (
    CodeExampleData,
    ContentBundle,
    LessonData,
    QuizQuestionData,
    TopicData,
    parse_bundle,
)
from src.domains.content_loader.cleanup import remove_lesson, remove_topic
from src.domains.content_loader.errors import (
    BundleValidationError,
    ConstraintConflictError,
    ContentFileError,
    ContentLoadError,
    FatalDatabaseError,
    MissingParentError,
    TransientDatabaseError,
    classify_database_error,
)
from src.domains.content_loader.ingestion import (
    discover_bundle_dirs,
    load_bundle_data,
    read_bundle,
)
from src.domains.content_loader.inspection import (
    TopicStatus,
    find_topics_without_lessons,
    list_topic_status,
)
from src.domains.content_loader.loader import BatchResult, ContentLoader
from src.domains.content_loader.reconciler import Reconciler
from src.domains.content_loader.resolver import IdentityResolver, ResolvedId
from src.domains.content_loader.schema import CONTENT_SCHEMA, EntitySchema
from src.domains.content_loader.summary import LoadState, LoadSummary
from src.domains.content_loader.transaction import TransactionBoundary
from src.domains.content_loader.validator import BundleValidator, ValidationIssue

__all__ = [
    # Bundle
    "CodeExampleData",
    "ContentBundle",
    "LessonData",
    "QuizQuestionData",
    "TopicData",
    "parse_bundle",
    # Validation
    "BundleValidator",
    "ValidationIssue",
    # Schema
    "CONTENT_SCHEMA",
    "EntitySchema",
    # Writing
    "IdentityResolver",
    "ResolvedId",
    "Reconciler",
    "TransactionBoundary",
    # Loader
    "BatchResult",
    "ContentLoader",
    "LoadState",
    "LoadSummary",
    # Errors
    "BundleValidationError",
    "ConstraintConflictError",
    "ContentFileError",
    "ContentLoadError",
    "FatalDatabaseError",
    "MissingParentError",
    "TransientDatabaseError",
    "classify_database_error",
    # Files, reports, removal
    "discover_bundle_dirs",
    "load_bundle_data",
    "read_bundle",
    "TopicStatus",
    "find_topics_without_lessons",
    "list_topic_status",
    "remove_lesson",
    "remove_topic",
]
