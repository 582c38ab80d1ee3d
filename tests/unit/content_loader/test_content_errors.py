# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the loader error taxonomy and database error classification."""

import asyncio

import pytest
from sqlalchemy import exc as sa_exc

from src.domains.content_loader.errors import (
    BundleValidationError,
    ConstraintConflictError,
    ContentFileError,
    FatalDatabaseError,
    MissingParentError,
    TransientDatabaseError,
    classify_database_error,
    is_transient_database_error,
)
from src.domains.content_loader.validator import ValidationIssue


class FakeDriverError(Exception):
    """Driver exception carrying a SQLSTATE code like asyncpg's."""

    def __init__(self, message: str, sqlstate: str | None = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


def _operational(message: str, sqlstate: str | None = None) -> sa_exc.OperationalError:
    return sa_exc.OperationalError("SELECT 1", {}, FakeDriverError(message, sqlstate))


class TestErrorKinds:
    """Tests for kinds, retryability and exit codes."""

    @pytest.mark.parametrize(
        ("error", "kind", "transient", "exit_code"),
        [
            (BundleValidationError([]), "validation", False, 1),
            (ContentFileError("bad yaml"), "content_file", False, 1),
            (MissingParentError("unknown"), "missing_parent", False, 3),
            (ConstraintConflictError("conflict"), "constraint_conflict", True, 2),
            (TransientDatabaseError("deadlock"), "transient_database", True, 2),
            (FatalDatabaseError("denied"), "fatal_database", False, 3),
        ],
    )
    def test_taxonomy(self, error, kind, transient, exit_code) -> None:
        assert error.kind == kind
        assert error.transient is transient
        assert error.exit_code == exit_code

    def test_missing_parent_names_slug(self) -> None:
        error = MissingParentError("unknown")

        assert error.slug == "unknown"
        assert "'unknown'" in str(error)

    def test_validation_error_lists_issues(self) -> None:
        issues = [
            ValidationIssue("lessons[0].slug", "must not be empty"),
            ValidationIssue("lessons[0].questions[1]", "correct_answer 'Z' is not one of the options"),
        ]
        error = BundleValidationError(issues)

        assert error.message == "Bundle failed validation with 2 issues"
        assert "lessons[0].questions[1]: correct_answer" in str(error)
        assert error.to_dict()["issues"][0] == {"path": "lessons[0].slug", "message": "must not be empty"}

    def test_content_file_error_prefixes_path(self) -> None:
        error = ContentFileError("Invalid YAML syntax", path="content/frontend/topic.yaml")

        assert str(error) == "content/frontend/topic.yaml: Invalid YAML syntax"

    def test_wrapped_error_in_string(self) -> None:
        error = FatalDatabaseError("Database operation failed", RuntimeError("disk I/O error"))

        assert str(error) == "Database operation failed: disk I/O error"
        assert error.to_dict() == {
            "kind": "fatal_database",
            "message": "Database operation failed",
            "transient": False,
        }


class TestClassifyDatabaseError:
    """Tests for classify_database_error."""

    def test_integrity_error_is_conflict(self) -> None:
        error = sa_exc.IntegrityError(
            "INSERT", {}, FakeDriverError("duplicate key value violates unique constraint", "23505")
        )

        result = classify_database_error(error)

        assert isinstance(result, ConstraintConflictError)
        assert result.transient is True
        assert result.original_error is error

    @pytest.mark.parametrize("sqlstate", ["40001", "40P01", "55P03", "57014", "57P01", "08006", "08001"])
    def test_transient_sqlstates(self, sqlstate) -> None:
        result = classify_database_error(_operational("server said no", sqlstate))

        assert isinstance(result, TransientDatabaseError)

    @pytest.mark.parametrize("sqlstate", ["42501", "42P01", "42703", "58030"])
    def test_fatal_sqlstates(self, sqlstate) -> None:
        result = classify_database_error(sa_exc.ProgrammingError("SELECT", {}, FakeDriverError("no", sqlstate)))

        assert isinstance(result, FatalDatabaseError)
        assert result.transient is False

    def test_pgcode_attribute_is_read(self) -> None:
        driver_error = Exception("could not serialize access")
        driver_error.pgcode = "40001"  # type: ignore[attr-defined]

        result = classify_database_error(sa_exc.OperationalError("UPDATE", {}, driver_error))

        assert isinstance(result, TransientDatabaseError)

    @pytest.mark.parametrize("message", ["database is locked", "database is busy"])
    def test_sqlite_lock_is_transient(self, message) -> None:
        result = classify_database_error(_operational(message))

        assert isinstance(result, TransientDatabaseError)

    def test_other_sqlite_operational_error_is_fatal(self) -> None:
        result = classify_database_error(_operational("no such table: lessons"))

        assert isinstance(result, FatalDatabaseError)

    def test_invalidated_connection_is_transient(self) -> None:
        error = sa_exc.DBAPIError("SELECT 1", {}, FakeDriverError("connection reset"), connection_invalidated=True)

        assert is_transient_database_error(error) is True
        assert isinstance(classify_database_error(error), TransientDatabaseError)

    def test_timeout_is_transient(self) -> None:
        assert isinstance(classify_database_error(asyncio.TimeoutError()), TransientDatabaseError)

    def test_pool_timeout_is_transient(self) -> None:
        assert isinstance(classify_database_error(sa_exc.TimeoutError("QueuePool limit")), TransientDatabaseError)

    @pytest.mark.parametrize(
        "error",
        [
            ConnectionRefusedError(111, "Connect call failed ('127.0.0.1', 1)"),
            ConnectionResetError(104, "Connection reset by peer"),
            OSError(101, "Network is unreachable"),
        ],
    )
    def test_socket_errors_are_transient(self, error) -> None:
        result = classify_database_error(error)

        assert is_transient_database_error(error) is True
        assert isinstance(result, TransientDatabaseError)
        assert result.exit_code == 2
        assert result.original_error is error

    def test_loader_errors_pass_through(self) -> None:
        error = MissingParentError("unknown")

        assert classify_database_error(error) is error

    def test_unknown_exception_is_fatal(self) -> None:
        assert isinstance(classify_database_error(RuntimeError("boom")), FatalDatabaseError)
