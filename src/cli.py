# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Command line entry point of the content loader job.

Commands:
- migrate: Apply pending schema migrations
- seed-categories: Create or update the default categories
- validate PATH...: Check bundles without touching the database
- load [PATH...]: Load bundles (default: every bundle under content_dir)
- status: Lesson counts per topic
- remove-lesson / remove-topic: Explicit removal of loaded content

Exit codes: 0 success, 1 validation failure, 2 transient database error,
3 fatal database error.

Example:
    $ content-loader seed-categories
    $ content-loader load content/frontend
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from src.core.config import Settings, get_settings
from src.domains.content_loader import (
    BundleValidator,
    ContentBundle,
    ContentLoader,
    ContentLoadError,
    classify_database_error,
    discover_bundle_dirs,
    list_topic_status,
    read_bundle,
    remove_lesson,
    remove_topic,
)
from src.domains.content_loader.errors import EXIT_FATAL, EXIT_OK, EXIT_VALIDATION
from src.domains.content_loader.ingestion import TOPIC_FILE
from src.infrastructure.database import (
    DatabaseError,
    close_database,
    get_engine,
    get_session,
    init_database,
)
from src.infrastructure.database.migrations.runner import (
    MigrationError,
    get_migration_status,
    run_migrations,
)
from src.infrastructure.database.seeds import seed_categories
from src.utils.logging import setup_logging

console = Console()
error_console = Console(stderr=True)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser of the job."""
    parser = argparse.ArgumentParser(
        prog="content-loader",
        description="Load curriculum content bundles into the content database.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    migrate = subparsers.add_parser("migrate", help="Apply pending schema migrations")
    migrate.add_argument(
        "--status",
        action="store_true",
        help="Only report applied and pending migrations",
    )
    subparsers.add_parser("seed-categories", help="Create or update the default categories")

    validate = subparsers.add_parser("validate", help="Validate bundles without writing")
    validate.add_argument("paths", nargs="+", type=Path, help="Bundle directories or content roots")

    load = subparsers.add_parser("load", help="Load bundles into the database")
    load.add_argument(
        "paths",
        nargs="*",
        type=Path,
        help="Bundle directories or content roots (default: LOADER_CONTENT_DIR)",
    )
    load.add_argument(
        "--no-retry",
        action="store_true",
        help="Do not retry bundles that failed with a transient error",
    )

    subparsers.add_parser("status", help="Show lesson counts per topic")

    remove_lesson_parser = subparsers.add_parser("remove-lesson", help="Delete one lesson")
    remove_lesson_parser.add_argument("category")
    remove_lesson_parser.add_argument("topic")
    remove_lesson_parser.add_argument("lesson")

    remove_topic_parser = subparsers.add_parser("remove-topic", help="Delete a topic and its lessons")
    remove_topic_parser.add_argument("category")
    remove_topic_parser.add_argument("topic")

    return parser


def expand_paths(paths: Sequence[Path]) -> list[Path]:
    """Turn CLI paths into bundle directories.

    A path holding a topic.yaml (or naming one) is a single bundle; any
    other directory is searched for bundles.
    """
    bundle_dirs: list[Path] = []
    for path in paths:
        if path.name == TOPIC_FILE:
            bundle_dirs.append(path.parent)
        elif (path / TOPIC_FILE).is_file():
            bundle_dirs.append(path)
        else:
            bundle_dirs.extend(discover_bundle_dirs(path))
    return bundle_dirs


def read_bundles(paths: Sequence[Path]) -> tuple[list[ContentBundle], list[tuple[str, ContentLoadError]]]:
    """Read every bundle, collecting the ones that cannot be read."""
    bundles: list[ContentBundle] = []
    failures: list[tuple[str, ContentLoadError]] = []
    for bundle_dir in expand_paths(paths):
        try:
            bundles.append(read_bundle(bundle_dir))
        except ContentLoadError as e:
            failures.append((str(bundle_dir), e))
    return bundles, failures


def _print_failures(failures: Sequence[tuple[str, ContentLoadError]]) -> None:
    for name, error in failures:
        error_console.print(f"[red]✗[/red] {name} [dim]({error.kind})[/dim]")
        for line in str(error).splitlines():
            error_console.print(f"    {line}")


def _exit_code(failures: Sequence[tuple[str, ContentLoadError]]) -> int:
    return max((error.exit_code for _, error in failures), default=EXIT_OK)


def cmd_validate(args: argparse.Namespace, settings: Settings) -> int:
    validator = BundleValidator(max_content_bytes=settings.loader.max_content_bytes)
    bundles, failures = read_bundles(args.paths)

    invalid = 0
    for bundle in bundles:
        issues = validator.validate(bundle)
        if issues:
            invalid += 1
            error_console.print(f"[red]✗[/red] {bundle.bundle_id}")
            for issue in issues:
                error_console.print(f"    {issue}")
        else:
            console.print(f"[green]✓[/green] {bundle.bundle_id}")

    _print_failures(failures)
    if failures or invalid:
        return max(_exit_code(failures), EXIT_VALIDATION)
    return EXIT_OK


async def cmd_migrate(args: argparse.Namespace, settings: Settings) -> int:
    if args.status:
        status = await get_migration_status(settings.database.url)
        console.print(f"Current version: {status.current_version or '-'}")
        console.print(f"Latest version:  {status.latest_version or '-'}")
        if status.is_up_to_date:
            console.print("[green]✓[/green] Schema is up to date")
        else:
            console.print(f"[yellow]![/yellow] {status.pending_count} pending: {', '.join(status.pending_migrations)}")
        return EXIT_OK

    applied = await run_migrations(settings.database.url)
    if applied:
        console.print(f"[green]✓[/green] Applied {len(applied)} migration(s): {', '.join(applied)}")
    else:
        console.print("[green]✓[/green] Schema is up to date")
    return EXIT_OK


async def cmd_seed_categories(args: argparse.Namespace, settings: Settings) -> int:
    async with get_session() as session:
        categories = await seed_categories(session)
    console.print(f"[green]✓[/green] Seeded {len(categories)} categories")
    return EXIT_OK


async def cmd_load(args: argparse.Namespace, settings: Settings) -> int:
    paths = args.paths or [settings.loader.content_dir]
    bundles, read_failures = read_bundles(paths)

    loader = ContentLoader(get_engine(), settings)
    result = await loader.load_many(bundles, retry=not args.no_retry)

    table = Table(title="Loaded bundles")
    table.add_column("Bundle", style="cyan")
    table.add_column("Topics +/~", justify="right")
    table.add_column("Lessons +/~", justify="right")
    table.add_column("Examples +/-", justify="right")
    table.add_column("Questions +/-", justify="right")
    table.add_column("ms", justify="right")
    for summary in result.summaries:
        table.add_row(
            summary.bundle_id,
            f"{summary.inserted['topics']}/{summary.updated['topics']}",
            f"{summary.inserted['lessons']}/{summary.updated['lessons']}",
            f"{summary.inserted['examples']}/{summary.deleted_children['examples']}",
            f"{summary.inserted['questions']}/{summary.deleted_children['questions']}",
            f"{summary.duration_ms:.0f}",
        )
    if result.summaries:
        console.print(table)

    failures = [*read_failures, *result.failures]
    _print_failures(failures)
    console.print(f"{len(result.summaries)} committed, {len(failures)} failed")
    return _exit_code(failures)


async def cmd_status(args: argparse.Namespace, settings: Settings) -> int:
    async with get_session() as session:
        statuses = await list_topic_status(session)

    table = Table(title="Topic & lesson status")
    table.add_column("")
    table.add_column("Category")
    table.add_column("Topic", style="cyan")
    table.add_column("Lessons", justify="right")
    table.add_column("Examples", justify="right")
    table.add_column("Questions", justify="right")
    for status in statuses:
        table.add_row(
            "[green]✓[/green]" if status.has_lessons else "[red]✗[/red]",
            status.category_name,
            f"{status.topic_name} ({status.topic_slug})",
            str(status.lesson_count),
            str(status.example_count),
            str(status.question_count),
        )
    console.print(table)

    without_lessons = [status for status in statuses if not status.has_lessons]
    console.print(f"Total topics: {len(statuses)}")
    console.print(f"Total lessons: {sum(status.lesson_count for status in statuses)}")
    console.print(f"Topics without lessons: {len(without_lessons)}")
    return EXIT_OK


async def cmd_remove_lesson(args: argparse.Namespace, settings: Settings) -> int:
    async with get_session() as session:
        removed = await remove_lesson(session, args.category, args.topic, args.lesson)
    name = f"{args.category}/{args.topic}/{args.lesson}"
    console.print(f"Removed lesson {name}" if removed else f"Lesson {name} not found")
    return EXIT_OK


async def cmd_remove_topic(args: argparse.Namespace, settings: Settings) -> int:
    async with get_session() as session:
        removed = await remove_topic(session, args.category, args.topic)
    name = f"{args.category}/{args.topic}"
    console.print(f"Removed topic {name}" if removed else f"Topic {name} not found")
    return EXIT_OK


DATABASE_COMMANDS = {
    "seed-categories": cmd_seed_categories,
    "load": cmd_load,
    "status": cmd_status,
    "remove-lesson": cmd_remove_lesson,
    "remove-topic": cmd_remove_topic,
}


async def run_command(args: argparse.Namespace, settings: Settings) -> int:
    """Run one database-backed command and map failures to exit codes."""
    try:
        if args.command == "migrate":
            return await cmd_migrate(args, settings)

        handler = DATABASE_COMMANDS[args.command]
        await init_database(settings)
        return await handler(args, settings)
    except ContentLoadError as e:
        _print_failures([(args.command, e)])
        return e.exit_code
    except (SQLAlchemyError, OSError) as e:
        error = classify_database_error(e)
        _print_failures([(args.command, error)])
        return error.exit_code
    except MigrationError as e:
        error_console.print(f"[red]✗[/red] {e}")
        return EXIT_FATAL
    except DatabaseError as e:
        error = classify_database_error(e.original_error) if e.original_error else None
        error_console.print(f"[red]✗[/red] {e}")
        return error.exit_code if error else EXIT_FATAL
    finally:
        await close_database()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point of the ``content-loader`` console script."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings)

    if args.command == "validate":
        try:
            return cmd_validate(args, settings)
        except ContentLoadError as e:
            _print_failures([(args.command, e)])
            return e.exit_code
    return asyncio.run(run_command(args, settings))


if __name__ == "__main__":
    sys.exit(main())
