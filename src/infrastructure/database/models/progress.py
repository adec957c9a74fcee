# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learning progress models.

Tables:
    learning_interactions: Append-only log of learning interactions.
    topic_mastery: One row per (student, subject, topic).
    student_progress: One row per student, recomputed from topic_mastery.

Student ids are the subject ids issued by the external identity
provider, so they are stored as opaque strings rather than foreign keys.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, IdMixin
from src.utils.datetime import utc_now


class LearningInteraction(IdMixin, Base):
    """A single learning interaction. Never updated or deleted."""

    __tablename__ = "learning_interactions"

    student_id: Mapped[str] = mapped_column(String(255), nullable=False)
    subject_name: Mapped[str] = mapped_column(String(255), nullable=False)
    grade: Mapped[int] = mapped_column(Integer, nullable=False)
    topic_title: Mapped[str] = mapped_column(String(500), nullable=False)
    textbook_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    chapter_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    topic_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    conversation_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    interaction_type: Mapped[str] = mapped_column(String(32), nullable=False)
    is_correct: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        Index("ix_learning_interactions_student_ts", "student_id", "timestamp"),
        Index("ix_learning_interactions_student_subject", "student_id", "subject_name"),
    )

    def __repr__(self) -> str:
        return (
            f"<LearningInteraction(student_id={self.student_id!r}, "
            f"topic={self.topic_title!r}, type={self.interaction_type!r})>"
        )


class TopicMastery(IdMixin, Base):
    """Mastery counters and level for one student on one topic."""

    __tablename__ = "topic_mastery"

    student_id: Mapped[str] = mapped_column(String(255), nullable=False)
    subject_name: Mapped[str] = mapped_column(String(255), nullable=False)
    grade: Mapped[int] = mapped_column(Integer, nullable=False)
    topic_title: Mapped[str] = mapped_column(String(500), nullable=False)
    mastery_level: Mapped[str] = mapped_column(String(32), nullable=False, default="not_started")
    total_interactions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    correct_answers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_quiz_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_interaction_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        UniqueConstraint(
            "student_id", "subject_name", "topic_title", name="uq_topic_mastery_student_topic"
        ),
        CheckConstraint(
            "correct_answers <= total_interactions", name="ck_topic_mastery_correct_le_total"
        ),
        CheckConstraint(
            "total_quiz_attempts <= total_interactions", name="ck_topic_mastery_quiz_le_total"
        ),
        Index("ix_topic_mastery_student_level", "student_id", "mastery_level"),
    )

    @property
    def accuracy(self) -> float:
        """Correct answers over total interactions, 0.0 when empty."""
        if not self.total_interactions:
            return 0.0
        return self.correct_answers / self.total_interactions

    def __repr__(self) -> str:
        return (
            f"<TopicMastery(student_id={self.student_id!r}, topic={self.topic_title!r}, "
            f"level={self.mastery_level!r})>"
        )


class StudentProgress(IdMixin, Base):
    """Student-level rollup of all topic mastery rows."""

    __tablename__ = "student_progress"

    student_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    total_interactions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_accuracy: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    topics_mastered: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_level: Mapped[str] = mapped_column(String(32), nullable=False, default="beginner")
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_active_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        Index("ix_student_progress_last_active", "last_active_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<StudentProgress(student_id={self.student_id!r}, "
            f"level={self.current_level!r}, accuracy={self.average_accuracy:.2f})>"
        )
