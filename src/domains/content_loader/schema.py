# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Declarative description of the tables the loader writes.

Each EntitySchema names, for one entity: its table, the natural-key
columns, the column referencing its parent, the order-index column, the
columns holding ordered sequences, and which bundle field feeds which
column. The reconciler and identity resolver build every statement from
these entries and never spell out column names themselves.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel
from sqlalchemy import String, Table

from src.infrastructure.database.models import (
    Base,
    Category,
    CodeExample,
    Lesson,
    QuizQuestion,
    Topic,
)


@dataclass(frozen=True)
class ColumnSpec:
    """A column written from a bundle field.

    Attributes:
        name: Column name.
        field: Bundle field the value comes from. Defaults to ``name``.
        sequence: The column stores an ordered sequence as a JSON array.
    """

    name: str
    field: str = ""
    sequence: bool = False

    @property
    def source(self) -> str:
        return self.field or self.name


@dataclass(frozen=True)
class ChildSpec:
    """A set of ordered children fully replaced under their parent."""

    field: str
    entity: "EntitySchema"


@dataclass(frozen=True)
class EntitySchema:
    """Relational shape of one curriculum entity."""

    name: str
    model: type[Base]
    natural_key: tuple[str, ...]
    columns: tuple[ColumnSpec, ...]
    parent_column: Optional[str] = None
    order_column: Optional[str] = "order_index"
    touched_column: Optional[str] = "updated_at"
    children: tuple[ChildSpec, ...] = field(default=())

    @property
    def table(self) -> Table:
        return self.model.__table__

    @property
    def table_name(self) -> str:
        return self.table.name

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    @property
    def sequence_columns(self) -> list[str]:
        return [column.name for column in self.columns if column.sequence]

    @property
    def update_columns(self) -> list[str]:
        """Columns overwritten when an existing row is updated."""
        key = set(self.natural_key)
        return [name for name in self.column_names if name not in key]

    def max_length(self, column: str) -> Optional[int]:
        """Length limit of a string column, None for unbounded columns."""
        column_type = self.table.c[column].type
        if isinstance(column_type, String):
            return column_type.length
        return None

    def field_limits(self) -> dict[str, int]:
        """Map bundle field name to the length limit of its column."""
        limits = {}
        for column in self.columns:
            limit = self.max_length(column.name)
            if limit is not None:
                limits[column.source] = limit
        return limits

    def row_for(self, item: BaseModel, parent_id: Optional[int] = None) -> dict[str, Any]:
        """Build the column values for one bundle item.

        Sequence values are stored as lists so their JSON form keeps the
        bundle's order.

        Args:
            item: Bundle model (topic, lesson, example or question).
            parent_id: Surrogate ID of the parent row.

        Returns:
            Mapping of column name to value.
        """
        row: dict[str, Any] = {}
        if self.parent_column is not None:
            if parent_id is None:
                raise ValueError(f"{self.name} rows need a parent id")
            row[self.parent_column] = parent_id
        for column in self.columns:
            value = getattr(item, column.source)
            if column.sequence:
                value = list(value)
            row[column.name] = value
        return row

    def key_for(self, item: BaseModel, parent_id: Optional[int] = None) -> tuple[Any, ...]:
        """Natural-key values of one bundle item, in natural_key order."""
        row = self.row_for(item, parent_id)
        return tuple(row[name] for name in self.natural_key)


CATEGORY = EntitySchema(
    name="category",
    model=Category,
    natural_key=("slug",),
    columns=(
        ColumnSpec("name"),
        ColumnSpec("slug"),
        ColumnSpec("description"),
        ColumnSpec("icon"),
        ColumnSpec("order_index"),
    ),
)

CODE_EXAMPLE = EntitySchema(
    name="code_example",
    model=CodeExample,
    natural_key=(),
    parent_column="lesson_id",
    columns=(
        ColumnSpec("title"),
        ColumnSpec("description"),
        ColumnSpec("language"),
        ColumnSpec("code"),
        ColumnSpec("explanation"),
        ColumnSpec("is_interactive"),
        ColumnSpec("order_index"),
    ),
)

QUIZ_QUESTION = EntitySchema(
    name="quiz_question",
    model=QuizQuestion,
    natural_key=(),
    parent_column="lesson_id",
    columns=(
        ColumnSpec("question_text"),
        ColumnSpec("question_type"),
        ColumnSpec("options", sequence=True),
        ColumnSpec("correct_answer"),
        ColumnSpec("explanation"),
        ColumnSpec("difficulty"),
        ColumnSpec("points"),
        ColumnSpec("order_index"),
    ),
)

LESSON = EntitySchema(
    name="lesson",
    model=Lesson,
    natural_key=("topic_id", "slug"),
    parent_column="topic_id",
    columns=(
        ColumnSpec("slug"),
        ColumnSpec("title"),
        ColumnSpec("content"),
        ColumnSpec("summary"),
        ColumnSpec("difficulty_level"),
        ColumnSpec("estimated_time"),
        ColumnSpec("order_index"),
        ColumnSpec("key_points", sequence=True),
    ),
    children=(
        ChildSpec(field="examples", entity=CODE_EXAMPLE),
        ChildSpec(field="questions", entity=QUIZ_QUESTION),
    ),
)

TOPIC = EntitySchema(
    name="topic",
    model=Topic,
    natural_key=("category_id", "slug"),
    parent_column="category_id",
    columns=(
        ColumnSpec("slug"),
        ColumnSpec("name"),
        ColumnSpec("description"),
        ColumnSpec("difficulty_level"),
        ColumnSpec("estimated_time"),
        ColumnSpec("order_index"),
        ColumnSpec("icon"),
    ),
)

CONTENT_SCHEMA: dict[str, EntitySchema] = {
    entity.name: entity
    for entity in (CATEGORY, TOPIC, LESSON, CODE_EXAMPLE, QUIZ_QUESTION)
}
