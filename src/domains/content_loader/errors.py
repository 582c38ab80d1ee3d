# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error taxonomy of the content loader.

Every failure of a bundle load surfaces as exactly one ContentLoadError
subclass. The subclass fixes the error kind, whether the caller may retry
the same bundle, and the exit code of the standalone job.

Database exceptions are mapped onto the taxonomy by
classify_database_error():
- Uniqueness / foreign-key violations: ConstraintConflictError (retryable)
- Lost or refused connections (also raw socket errors from the driver),
  deadlocks, serialization failures, lock and statement timeouts:
  TransientDatabaseError (retryable)
- Anything else (privileges, schema mismatch, I/O): FatalDatabaseError
"""

import asyncio
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import exc as sa_exc

if TYPE_CHECKING:
    from src.domains.content_loader.validator import ValidationIssue

EXIT_OK = 0
EXIT_VALIDATION = 1
EXIT_TRANSIENT = 2
EXIT_FATAL = 3

# SQLSTATE codes after which the same transaction may succeed on retry
TRANSIENT_SQLSTATES = frozenset(
    {
        "40001",  # serialization_failure
        "40P01",  # deadlock_detected
        "55P03",  # lock_not_available
        "57014",  # query_canceled (statement_timeout)
        "57P01",  # admin_shutdown
        "57P02",  # crash_shutdown
        "57P03",  # cannot_connect_now
    }
)
TRANSIENT_SQLSTATE_CLASSES = frozenset({"08"})  # connection_exception

SQLITE_TRANSIENT_MESSAGES = ("database is locked", "database is busy", "database table is locked")


class ContentLoadError(Exception):
    """Base exception for a failed bundle load.

    Attributes:
        kind: Stable error kind identifier.
        message: Human-readable error description.
        transient: Whether retrying the same bundle may succeed.
        exit_code: Exit code of the standalone job for this error.
        original_error: The underlying exception, if any.
        state: Terminal load state, set by the loader when the error
            ends a load.
    """

    kind = "content_load"
    transient = False
    exit_code = EXIT_FATAL

    def __init__(self, message: str, original_error: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.state: Any = None

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for job output."""
        return {
            "kind": self.kind,
            "message": self.message,
            "transient": self.transient,
        }


class BundleValidationError(ContentLoadError):
    """The bundle violates one or more structural rules.

    All issues found are carried together; the loader raises this before
    any transaction is opened.
    """

    kind = "validation"
    exit_code = EXIT_VALIDATION

    def __init__(self, issues: list["ValidationIssue"]) -> None:
        self.issues = list(issues)
        noun = "issue" if len(self.issues) == 1 else "issues"
        super().__init__(f"Bundle failed validation with {len(self.issues)} {noun}")

    def __str__(self) -> str:
        lines = [self.message]
        lines.extend(f"  {issue}" for issue in self.issues)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["issues"] = [issue.to_dict() for issue in self.issues]
        return data


class ContentFileError(ContentLoadError):
    """Content files could not be turned into a bundle."""

    kind = "content_file"
    exit_code = EXIT_VALIDATION

    def __init__(self, message: str, path: Any = None, original_error: Optional[BaseException] = None) -> None:
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message, original_error)


class MissingParentError(ContentLoadError):
    """The bundle references a category that is not in the store."""

    kind = "missing_parent"
    exit_code = EXIT_FATAL

    def __init__(self, slug: str) -> None:
        self.slug = slug
        super().__init__(f"Category '{slug}' does not exist; seed it before loading")


class ConstraintConflictError(ContentLoadError):
    """A write hit a uniqueness or foreign-key constraint, usually a concurrent load."""

    kind = "constraint_conflict"
    transient = True
    exit_code = EXIT_TRANSIENT


class TransientDatabaseError(ContentLoadError):
    """Connection loss, deadlock, serialization failure or timeout."""

    kind = "transient_database"
    transient = True
    exit_code = EXIT_TRANSIENT


class FatalDatabaseError(ContentLoadError):
    """A database failure that needs operator attention before retrying."""

    kind = "fatal_database"
    exit_code = EXIT_FATAL


def _sqlstate(error: BaseException) -> Optional[str]:
    orig = getattr(error, "orig", None)
    for source in (orig, error):
        if source is None:
            continue
        code = getattr(source, "sqlstate", None) or getattr(source, "pgcode", None)
        if code:
            return str(code)
    return None


def is_transient_database_error(error: BaseException) -> bool:
    """Check whether a database exception is worth retrying."""
    if isinstance(error, (asyncio.TimeoutError, TimeoutError, sa_exc.TimeoutError)):
        return True
    if isinstance(error, (sa_exc.DisconnectionError, OSError)):
        return True
    if isinstance(error, sa_exc.DBAPIError) and error.connection_invalidated:
        return True

    sqlstate = _sqlstate(error)
    if sqlstate:
        return sqlstate in TRANSIENT_SQLSTATES or sqlstate[:2] in TRANSIENT_SQLSTATE_CLASSES

    if isinstance(error, sa_exc.OperationalError):
        text = str(getattr(error, "orig", None) or error).lower()
        return any(marker in text for marker in SQLITE_TRANSIENT_MESSAGES)

    return False


def classify_database_error(error: BaseException) -> ContentLoadError:
    """Map a database exception onto the loader's error taxonomy.

    Args:
        error: Exception raised while talking to the database.

    Returns:
        The matching ContentLoadError, wrapping the original exception.
        ContentLoadError inputs are returned unchanged.
    """
    if isinstance(error, ContentLoadError):
        return error
    if isinstance(error, sa_exc.IntegrityError):
        return ConstraintConflictError("Write violated a database constraint", error)
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return TransientDatabaseError("Database operation timed out", error)
    if isinstance(error, OSError):
        return TransientDatabaseError("Database connection failed", error)
    if is_transient_database_error(error):
        return TransientDatabaseError("Transient database failure", error)
    return FatalDatabaseError("Database operation failed", error)
