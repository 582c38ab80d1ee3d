# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial content database schema.

Revision ID: 001_content_schema
Revises: None
Create Date: 2025-01-15

Creates the curriculum tables based on the SQLAlchemy models in
src/infrastructure/database/models/content.py. Column types are chosen so
the revision applies to PostgreSQL and SQLite alike.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_content_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = ("content",)
depends_on: Union[str, Sequence[str], None] = None

JSON_SEQUENCE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    ]


def upgrade() -> None:
    """Create content tables."""
    # ==========================================================================
    # 1. categories table
    # ==========================================================================
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("icon", sa.String(100), nullable=True),
        sa.Column("order_index", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_categories_name"),
        sa.UniqueConstraint("slug", name="uq_categories_slug"),
    )

    # ==========================================================================
    # 2. topics table
    # ==========================================================================
    op.create_table(
        "topics",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "category_id",
            sa.Integer,
            sa.ForeignKey(
                "categories.id",
                ondelete="CASCADE",
                name="fk_topics_category_id_categories",
            ),
            nullable=False,
        ),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("difficulty_level", sa.String(20), nullable=True),
        sa.Column("estimated_time", sa.Integer, nullable=True),
        sa.Column("order_index", sa.Integer, nullable=False, server_default="0"),
        sa.Column("icon", sa.String(100), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("category_id", "slug", name="uq_topics_category_id_slug"),
        sa.CheckConstraint("order_index >= 0", name="ck_topics_non_negative_order_index"),
        sa.CheckConstraint(
            "estimated_time IS NULL OR estimated_time >= 0",
            name="ck_topics_non_negative_estimated_time",
        ),
        sa.CheckConstraint(
            "difficulty_level IN ('beginner', 'intermediate', 'advanced', 'expert')",
            name="ck_topics_valid_difficulty_level",
        ),
    )
    op.create_index("ix_topics_category_id", "topics", ["category_id"])

    # ==========================================================================
    # 3. lessons table
    # ==========================================================================
    op.create_table(
        "lessons",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "topic_id",
            sa.Integer,
            sa.ForeignKey("topics.id", ondelete="CASCADE", name="fk_lessons_topic_id_topics"),
            nullable=False,
        ),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("slug", sa.String(300), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("summary", sa.Text, nullable=True),
        sa.Column("difficulty_level", sa.String(20), nullable=False),
        sa.Column("estimated_time", sa.Integer, nullable=True),
        sa.Column("order_index", sa.Integer, nullable=False, server_default="0"),
        sa.Column("key_points", JSON_SEQUENCE, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("topic_id", "slug", name="uq_lessons_topic_id_slug"),
        sa.CheckConstraint("order_index >= 0", name="ck_lessons_non_negative_order_index"),
        sa.CheckConstraint(
            "estimated_time IS NULL OR estimated_time >= 0",
            name="ck_lessons_non_negative_estimated_time",
        ),
        sa.CheckConstraint(
            "difficulty_level IN ('beginner', 'intermediate', 'advanced', 'expert')",
            name="ck_lessons_valid_difficulty_level",
        ),
    )
    op.create_index("ix_lessons_topic_id", "lessons", ["topic_id"])
    op.create_index("ix_lessons_difficulty_level", "lessons", ["difficulty_level"])

    # ==========================================================================
    # 4. code_examples table
    # ==========================================================================
    op.create_table(
        "code_examples",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "lesson_id",
            sa.Integer,
            sa.ForeignKey(
                "lessons.id",
                ondelete="CASCADE",
                name="fk_code_examples_lesson_id_lessons",
            ),
            nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("language", sa.String(50), nullable=False),
        sa.Column("code", sa.Text, nullable=False),
        sa.Column("explanation", sa.Text, nullable=True),
        sa.Column("is_interactive", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("order_index", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint(
            "order_index >= 0", name="ck_code_examples_non_negative_order_index"
        ),
    )
    op.create_index("ix_code_examples_lesson_id", "code_examples", ["lesson_id"])

    # ==========================================================================
    # 5. quiz_questions table
    # ==========================================================================
    op.create_table(
        "quiz_questions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "lesson_id",
            sa.Integer,
            sa.ForeignKey(
                "lessons.id",
                ondelete="CASCADE",
                name="fk_quiz_questions_lesson_id_lessons",
            ),
            nullable=False,
        ),
        sa.Column("question_text", sa.Text, nullable=False),
        sa.Column("question_type", sa.String(20), nullable=False),
        sa.Column("options", JSON_SEQUENCE, nullable=False),
        sa.Column("correct_answer", sa.Text, nullable=False),
        sa.Column("explanation", sa.Text, nullable=True),
        sa.Column("difficulty", sa.String(20), nullable=False),
        sa.Column("points", sa.Integer, nullable=False, server_default="10"),
        sa.Column("order_index", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint(
            "order_index >= 0", name="ck_quiz_questions_non_negative_order_index"
        ),
        sa.CheckConstraint("points > 0", name="ck_quiz_questions_positive_points"),
        sa.CheckConstraint(
            "question_type IN ('multiple_choice', 'true_false', 'code_challenge')",
            name="ck_quiz_questions_valid_question_type",
        ),
        sa.CheckConstraint(
            "difficulty IN ('easy', 'medium', 'hard')",
            name="ck_quiz_questions_valid_difficulty",
        ),
    )
    op.create_index("ix_quiz_questions_lesson_id", "quiz_questions", ["lesson_id"])


def downgrade() -> None:
    """Drop content tables."""
    op.drop_table("quiz_questions")
    op.drop_table("code_examples")
    op.drop_table("lessons")
    op.drop_table("topics")
    op.drop_table("categories")
