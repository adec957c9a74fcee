# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial progress store schema.

Revision ID: 001_initial
Revises: None
Create Date: 2025-11-03

Creates the tables behind src/infrastructure/database/models/.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create progress store tables."""
    # ==========================================================================
    # 1. learning_interactions table
    # ==========================================================================
    op.create_table(
        "learning_interactions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("student_id", sa.String(255), nullable=False),
        sa.Column("subject_name", sa.String(255), nullable=False),
        sa.Column("grade", sa.Integer, nullable=False),
        sa.Column("topic_title", sa.String(500), nullable=False),
        sa.Column("textbook_id", sa.String(255), nullable=True),
        sa.Column("chapter_id", sa.String(255), nullable=True),
        sa.Column("topic_id", sa.String(255), nullable=True),
        sa.Column("conversation_id", sa.String(255), nullable=True),
        sa.Column("interaction_type", sa.String(32), nullable=False),
        sa.Column("is_correct", sa.Boolean, nullable=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index(
        "ix_learning_interactions_student_ts",
        "learning_interactions",
        ["student_id", "timestamp"],
    )
    op.create_index(
        "ix_learning_interactions_student_subject",
        "learning_interactions",
        ["student_id", "subject_name"],
    )

    # ==========================================================================
    # 2. topic_mastery table
    # ==========================================================================
    op.create_table(
        "topic_mastery",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("student_id", sa.String(255), nullable=False),
        sa.Column("subject_name", sa.String(255), nullable=False),
        sa.Column("grade", sa.Integer, nullable=False),
        sa.Column("topic_title", sa.String(500), nullable=False),
        sa.Column("mastery_level", sa.String(32), nullable=False, server_default="not_started"),
        sa.Column("total_interactions", sa.Integer, nullable=False, server_default="0"),
        sa.Column("correct_answers", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_quiz_attempts", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "last_interaction_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint(
            "student_id",
            "subject_name",
            "topic_title",
            name="uq_topic_mastery_student_topic",
        ),
        sa.CheckConstraint(
            "correct_answers <= total_interactions",
            name="ck_topic_mastery_correct_le_total",
        ),
        sa.CheckConstraint(
            "total_quiz_attempts <= total_interactions",
            name="ck_topic_mastery_quiz_le_total",
        ),
    )
    op.create_index(
        "ix_topic_mastery_student_level",
        "topic_mastery",
        ["student_id", "mastery_level"],
    )

    # ==========================================================================
    # 3. student_progress table
    # ==========================================================================
    op.create_table(
        "student_progress",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("student_id", sa.String(255), nullable=False, unique=True),
        sa.Column("total_interactions", sa.Integer, nullable=False, server_default="0"),
        sa.Column("average_accuracy", sa.Float, nullable=False, server_default="0"),
        sa.Column("topics_mastered", sa.Integer, nullable=False, server_default="0"),
        sa.Column("current_level", sa.String(32), nullable=False, server_default="beginner"),
        sa.Column("current_streak", sa.Integer, nullable=False, server_default="1"),
        sa.Column(
            "last_active_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index(
        "ix_student_progress_last_active",
        "student_progress",
        ["last_active_at"],
    )

    # ==========================================================================
    # 4. usage_events table
    # ==========================================================================
    op.create_table(
        "usage_events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("event_type", sa.String(32), nullable=False),
        sa.Column("model", sa.String(255), nullable=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_usage_events_timestamp", "usage_events", ["timestamp"])
    op.create_index("ix_usage_events_user_ts", "usage_events", ["user_id", "timestamp"])


def downgrade() -> None:
    """Drop progress store tables."""
    op.drop_table("usage_events")
    op.drop_table("student_progress")
    op.drop_table("topic_mastery")
    op.drop_table("learning_interactions")
