# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the content-loader command line."""

from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import yaml
from sqlalchemy import exc as sa_exc

from src import cli
from src.core.config.settings import Settings
from src.domains.content_loader.errors import (
    ConstraintConflictError,
    FatalDatabaseError,
    MissingParentError,
)
from src.domains.content_loader.loader import BatchResult, ContentLoader
from src.domains.content_loader.summary import LoadState, LoadSummary
from src.domains.content_loader.transaction import TransactionBoundary
from src.infrastructure.database.migrations.runner import MigrationError, MigrationStatus


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda settings: None)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    settings = Settings()
    settings.loader.content_dir = tmp_path / "content"
    return settings


@pytest.fixture
def bundle_dir(tmp_path: Path, bundle_data) -> Path:
    directory = tmp_path / "content" / "frontend" / "beginner" / "react-hooks"
    directory.mkdir(parents=True)
    document = {"topic": bundle_data["topic"], "lessons": bundle_data["lessons"]}
    (directory / "topic.yaml").write_text(yaml.safe_dump(document), encoding="utf-8")
    return directory


@asynccontextmanager
async def _fake_session():
    yield MagicMock(name="session")


class TestBuildParser:
    """Tests for argument parsing."""

    def test_load_defaults(self) -> None:
        args = cli.build_parser().parse_args(["load"])

        assert args.command == "load"
        assert args.paths == []
        assert args.no_retry is False

    def test_load_paths_and_no_retry(self) -> None:
        args = cli.build_parser().parse_args(["load", "content/frontend", "--no-retry"])

        assert args.paths == [Path("content/frontend")]
        assert args.no_retry is True

    def test_remove_lesson_arguments(self) -> None:
        args = cli.build_parser().parse_args(["remove-lesson", "frontend", "react-hooks", "usestate-useeffect"])

        assert (args.category, args.topic, args.lesson) == ("frontend", "react-hooks", "usestate-useeffect")

    def test_validate_requires_paths(self) -> None:
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["validate"])

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestExpandPaths:
    """Tests for expand_paths."""

    def test_bundle_directory(self, bundle_dir: Path) -> None:
        assert cli.expand_paths([bundle_dir]) == [bundle_dir]

    def test_topic_file(self, bundle_dir: Path) -> None:
        assert cli.expand_paths([bundle_dir / "topic.yaml"]) == [bundle_dir]

    def test_content_root(self, bundle_dir: Path, tmp_path: Path) -> None:
        assert cli.expand_paths([tmp_path / "content"]) == [bundle_dir]


class TestValidateCommand:
    """Tests for the validate command."""

    def test_valid_bundle_exits_zero(self, bundle_dir: Path) -> None:
        assert cli.main(["validate", str(bundle_dir)]) == 0

    def test_invalid_bundle_exits_one(self, bundle_dir: Path, bundle_data) -> None:
        bundle_data["lessons"][0]["questions"][1]["correct_answer"] = "Z"
        document = {"topic": bundle_data["topic"], "lessons": bundle_data["lessons"]}
        (bundle_dir / "topic.yaml").write_text(yaml.safe_dump(document), encoding="utf-8")

        assert cli.main(["validate", str(bundle_dir)]) == 1

    def test_unreadable_bundle_exits_one(self, bundle_dir: Path) -> None:
        (bundle_dir / "topic.yaml").write_text("topic: [unclosed", encoding="utf-8")

        assert cli.main(["validate", str(bundle_dir)]) == 1

    def test_missing_directory_exits_one(self, tmp_path: Path) -> None:
        assert cli.main(["validate", str(tmp_path / "missing")]) == 1


class TestRunCommand:
    """Tests for database-backed commands with the database mocked out."""

    @pytest.mark.asyncio
    async def test_migrate(self, settings: Settings) -> None:
        args = cli.build_parser().parse_args(["migrate"])

        with (
            patch.object(cli, "run_migrations", AsyncMock(return_value=["001_content_schema"])) as run,
            patch.object(cli, "close_database", AsyncMock()),
        ):
            code = await cli.run_command(args, settings)

        assert code == 0
        run.assert_awaited_once_with(settings.database.url)

    @pytest.mark.asyncio
    async def test_migrate_status_does_not_migrate(self, settings: Settings) -> None:
        args = cli.build_parser().parse_args(["migrate", "--status"])
        status = MigrationStatus(
            current_version=None,
            latest_version="001_content_schema",
            pending_migrations=["001_content_schema"],
            all_migrations=["001_content_schema"],
        )

        with (
            patch.object(cli, "get_migration_status", AsyncMock(return_value=status)),
            patch.object(cli, "run_migrations", AsyncMock()) as run,
            patch.object(cli, "close_database", AsyncMock()),
        ):
            code = await cli.run_command(args, settings)

        assert code == 0
        run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_migrate_broken_revision_chain(self, settings: Settings) -> None:
        args = cli.build_parser().parse_args(["migrate"])

        with (
            patch.object(cli, "run_migrations", AsyncMock(side_effect=MigrationError("broken chain"))),
            patch.object(cli, "close_database", AsyncMock()),
        ):
            code = await cli.run_command(args, settings)

        assert code == 3

    @pytest.mark.asyncio
    async def test_migrate_database_failure(self, settings: Settings) -> None:
        args = cli.build_parser().parse_args(["migrate"])
        failure = sa_exc.OperationalError("CREATE TABLE", {}, Exception("permission denied"))

        with (
            patch.object(cli, "run_migrations", AsyncMock(side_effect=failure)),
            patch.object(cli, "close_database", AsyncMock()),
        ):
            code = await cli.run_command(args, settings)

        assert code == 3

    @pytest.mark.asyncio
    async def test_seed_categories(self, settings: Settings) -> None:
        args = cli.build_parser().parse_args(["seed-categories"])

        with (
            patch.object(cli, "init_database", AsyncMock()) as init,
            patch.object(cli, "close_database", AsyncMock()) as close,
            patch.object(cli, "get_session", _fake_session),
            patch.object(cli, "seed_categories", AsyncMock(return_value=[1, 2, 3])) as seed,
        ):
            code = await cli.run_command(args, settings)

        assert code == 0
        init.assert_awaited_once_with(settings)
        seed.assert_awaited_once()
        close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_load_success(self, settings: Settings, bundle_dir: Path) -> None:
        args = cli.build_parser().parse_args(["load"])
        summary = LoadSummary(bundle_id="frontend/react-hooks", state=LoadState.COMMITTED)
        loader = MagicMock()
        loader.load_many = AsyncMock(return_value=BatchResult(summaries=[summary]))

        with (
            patch.object(cli, "init_database", AsyncMock()),
            patch.object(cli, "close_database", AsyncMock()),
            patch.object(cli, "get_engine", MagicMock()),
            patch.object(cli, "ContentLoader", MagicMock(return_value=loader)),
        ):
            code = await cli.run_command(args, settings)

        assert code == 0
        bundles = loader.load_many.await_args.args[0]
        assert [bundle.bundle_id for bundle in bundles] == ["frontend/react-hooks"]
        assert loader.load_many.await_args.kwargs == {"retry": True}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("failures", "expected"),
        [
            ([("frontend/react-hooks", ConstraintConflictError("conflict"))], 2),
            ([("frontend/react-hooks", MissingParentError("frontend"))], 3),
            (
                [
                    ("frontend/react-hooks", ConstraintConflictError("conflict")),
                    ("backend/api", FatalDatabaseError("denied")),
                ],
                3,
            ),
        ],
    )
    async def test_load_failures_map_to_exit_codes(
        self, settings: Settings, bundle_dir: Path, failures, expected
    ) -> None:
        args = cli.build_parser().parse_args(["load", "--no-retry"])
        loader = MagicMock()
        loader.load_many = AsyncMock(return_value=BatchResult(failures=failures))

        with (
            patch.object(cli, "init_database", AsyncMock()),
            patch.object(cli, "close_database", AsyncMock()),
            patch.object(cli, "get_engine", MagicMock()),
            patch.object(cli, "ContentLoader", MagicMock(return_value=loader)),
        ):
            code = await cli.run_command(args, settings)

        assert code == expected
        assert loader.load_many.await_args.kwargs == {"retry": False}

    @pytest.mark.asyncio
    async def test_remove_topic_missing_category(self, settings: Settings) -> None:
        args = cli.build_parser().parse_args(["remove-topic", "unknown", "react-hooks"])

        with (
            patch.object(cli, "init_database", AsyncMock()),
            patch.object(cli, "close_database", AsyncMock()),
            patch.object(cli, "get_session", _fake_session),
            patch.object(cli, "remove_topic", AsyncMock(side_effect=MissingParentError("unknown"))),
        ):
            code = await cli.run_command(args, settings)

        assert code == 3

    @pytest.mark.asyncio
    async def test_migrate_refused_connection(self, settings: Settings) -> None:
        args = cli.build_parser().parse_args(["migrate"])
        refused = ConnectionRefusedError(111, "Connect call failed ('127.0.0.1', 5432)")

        with (
            patch.object(cli, "run_migrations", AsyncMock(side_effect=refused)),
            patch.object(cli, "close_database", AsyncMock()),
        ):
            code = await cli.run_command(args, settings)

        assert code == 2

    @pytest.mark.asyncio
    async def test_load_refused_connection(self, settings: Settings, bundle_dir: Path) -> None:
        """A database that refuses connections fails the load with the transient exit code."""
        args = cli.build_parser().parse_args(["load", "--no-retry"])
        refused = ConnectionRefusedError(111, "Connect call failed ('127.0.0.1', 5432)")

        def refusing_loader(engine, settings):
            loader = ContentLoader(engine, settings)
            loader.boundary = TransactionBoundary(
                engine, settings.database, sessionmaker=MagicMock(side_effect=refused)
            )
            return loader

        with (
            patch.object(cli, "init_database", AsyncMock()),
            patch.object(cli, "close_database", AsyncMock()),
            patch.object(cli, "get_engine", MagicMock()),
            patch.object(cli, "ContentLoader", refusing_loader),
        ):
            code = await cli.run_command(args, settings)

        assert code == 2
