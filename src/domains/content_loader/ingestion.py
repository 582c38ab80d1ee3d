# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Builds content bundles from content files.

Layout of one bundle directory::

    <content_dir>/<category>/<level>/<topic>/
        topic.yaml      # category_slug (optional), topic, lessons
        examples.yaml   # lesson slug -> list of code examples (optional)
        quiz.yaml       # lesson slug -> list of quiz questions (optional)
        *.md            # lesson bodies referenced by ``content_file``

When ``category_slug`` is omitted it is taken from the directory layout,
and a topic without ``difficulty_level`` takes the ``<level>`` directory
name when that is a known level.
Missing ``order_index`` values default to the item's position in its list.
Escaped template-literal sequences left in YAML text (backslash-backtick
and backslash-dollar-brace) are unwound before the bundle is built.
Markdown files are stored exactly as written.

Example:
    >>> for path in discover_bundle_dirs(Path("content")):
    ...     bundle = read_bundle(path)
"""

import json
from pathlib import Path
from typing import Any

import yaml

from src.domains.content_loader.bundle import ContentBundle, parse_bundle
from src.domains.content_loader.errors import BundleValidationError, ContentFileError
from src.infrastructure.database.models import DIFFICULTY_LEVELS
from src.utils.logging import get_logger

logger = get_logger(__name__)

TOPIC_FILE = "topic.yaml"
EXAMPLES_FILE = "examples.yaml"
QUIZ_FILE = "quiz.yaml"

ESCAPE_SEQUENCES = (("\\`", "`"), ("\\${", "${"))


def unescape_text(value: str) -> str:
    """Unwind escaped template-literal sequences in a text value."""
    for escaped, plain in ESCAPE_SEQUENCES:
        value = value.replace(escaped, plain)
    return value


def _unescape(value: Any) -> Any:
    if isinstance(value, str):
        return unescape_text(value)
    if isinstance(value, list):
        return [_unescape(item) for item in value]
    if isinstance(value, dict):
        return {key: _unescape(item) for key, item in value.items()}
    return value


def load_yaml_file(path: Path, required: bool = True) -> Any:
    """Load one YAML file.

    Args:
        path: File to load.
        required: Raise if the file is missing instead of returning None.

    Returns:
        Parsed YAML document, None for a missing optional or empty file.

    Raises:
        ContentFileError: If the file is missing, unreadable or not YAML.
    """
    if not path.exists():
        if required:
            raise ContentFileError("File does not exist", path=path)
        return None
    if not path.is_file():
        raise ContentFileError("Path is not a file", path=path)

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ContentFileError(f"Cannot read file: {e}", path=path, original_error=e) from e

    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ContentFileError(f"Invalid YAML syntax: {e}", path=path, original_error=e) from e


def discover_bundle_dirs(root: Path) -> list[Path]:
    """Find every bundle directory below ``root``, in sorted order.

    Raises:
        ContentFileError: If ``root`` is not a directory.
    """
    if not root.is_dir():
        raise ContentFileError("Content directory does not exist", path=root)
    return sorted(path.parent for path in root.rglob(TOPIC_FILE))


def _infer_category_slug(directory: Path) -> str:
    # <category>/<level>/<topic>
    parents = directory.resolve().parents
    if len(parents) < 2:
        raise ContentFileError("category_slug is missing and cannot be inferred", path=directory)
    return parents[1].name


def _infer_difficulty_level(directory: Path) -> str | None:
    level = directory.resolve().parent.name
    return level if level in DIFFICULTY_LEVELS else None


def _with_positions(items: list[Any], path: Path, what: str) -> list[dict[str, Any]]:
    result = []
    for position, item in enumerate(items):
        if not isinstance(item, dict):
            raise ContentFileError(f"{what}[{position}] must be a mapping", path=path)
        item = dict(item)
        item.setdefault("order_index", position)
        result.append(item)
    return result


def _decode_options(question: dict[str, Any], path: Path) -> dict[str, Any]:
    options = question.get("options")
    if isinstance(options, str):
        try:
            question["options"] = json.loads(options)
        except json.JSONDecodeError as e:
            raise ContentFileError(
                f"options of question {question.get('question_text', '')[:40]!r} is not a JSON array",
                path=path,
                original_error=e,
            ) from e
    elif options is None:
        question["options"] = []
    return question


def _read_lessons(directory: Path, entries: Any) -> list[dict[str, Any]]:
    topic_path = directory / TOPIC_FILE
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ContentFileError("lessons must be a list", path=topic_path)

    lessons = _with_positions(entries, topic_path, "lessons")
    for lesson in lessons:
        content_file = lesson.pop("content_file", None)
        if content_file is None:
            continue
        if "content" in lesson:
            raise ContentFileError(
                f"lesson {lesson.get('slug')!r} sets both content and content_file",
                path=topic_path,
            )
        content_path = directory / content_file
        try:
            lesson["content"] = content_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ContentFileError(f"Cannot read lesson content: {e}", path=content_path, original_error=e) from e
    return lessons


def _attach_children(
    directory: Path,
    filename: str,
    field: str,
    lessons_by_slug: dict[str, dict[str, Any]],
) -> None:
    path = directory / filename
    document = load_yaml_file(path, required=False)
    if document is None:
        return
    if not isinstance(document, dict):
        raise ContentFileError("Root must map lesson slugs to lists", path=path)
    document = _unescape(document)

    for slug, items in document.items():
        lesson = lessons_by_slug.get(slug)
        if lesson is None:
            raise ContentFileError(f"Unknown lesson slug {slug!r}", path=path)
        if not isinstance(items, list):
            raise ContentFileError(f"Children of lesson {slug!r} must be a list", path=path)
        children = _with_positions(items, path, str(slug))
        if field == "questions":
            children = [_decode_options(child, path) for child in children]
        lesson[field] = children


def load_bundle_data(directory: Path) -> dict[str, Any]:
    """Read the content files of one bundle directory into plain data.

    Args:
        directory: Bundle directory (or the path of its topic.yaml).

    Returns:
        Bundle data ready for parse_bundle().

    Raises:
        ContentFileError: If the files are missing or malformed.
    """
    if directory.name == TOPIC_FILE:
        directory = directory.parent

    topic_path = directory / TOPIC_FILE
    document = load_yaml_file(topic_path)
    if not isinstance(document, dict):
        raise ContentFileError("Root must be a mapping", path=topic_path)
    if "topic" not in document:
        raise ContentFileError("Missing 'topic' section", path=topic_path)
    # Before content files are read, so markdown bodies stay untouched
    document = _unescape(document)

    lessons = _read_lessons(directory, document.get("lessons"))
    lessons_by_slug = {lesson.get("slug"): lesson for lesson in lessons}

    _attach_children(directory, EXAMPLES_FILE, "examples", lessons_by_slug)
    _attach_children(directory, QUIZ_FILE, "questions", lessons_by_slug)

    topic = document["topic"]
    if isinstance(topic, dict) and topic.get("difficulty_level") is None:
        level = _infer_difficulty_level(directory)
        if level is not None:
            topic = {**topic, "difficulty_level": level}

    return {
        "category_slug": document.get("category_slug") or _infer_category_slug(directory),
        "topic": topic,
        "lessons": lessons,
    }


def read_bundle(directory: Path) -> ContentBundle:
    """Read and parse one bundle directory.

    Raises:
        ContentFileError: If the files are missing or malformed.
        BundleValidationError: If the data does not have the bundle shape.
    """
    data = load_bundle_data(directory)
    try:
        bundle = parse_bundle(data)
    except BundleValidationError:
        logger.warning("bundle_parse_failed", path=str(directory))
        raise

    logger.debug(
        "bundle_read",
        path=str(directory),
        bundle_id=bundle.bundle_id,
        lessons=len(bundle.lessons),
    )
    return bundle
