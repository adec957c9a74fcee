# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student progress aggregation.

StudentProgress is never maintained incrementally. Every recompute reads
all of the student's TopicMastery rows and derives the rollup from
scratch, so the progress row cannot drift from the mastery rows. The
cost is one read of every topic the student has touched per write.

Usage:
    aggregator = ProgressAggregator(db)
    progress = await aggregator.recompute(student_id)
    await db.commit()
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models.progress import StudentProgress, TopicMastery
from src.models.progress import MasteryLevel, StudentLevel
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class MasteryRow(Protocol):
    """Fields of a topic mastery row the rollup depends on."""

    total_interactions: int
    correct_answers: int
    mastery_level: str


@dataclass(frozen=True)
class StudentLevelRule:
    """One row of the student level rule table."""

    level: StudentLevel
    min_accuracy: float
    min_topics_mastered: int

    def matches(self, average_accuracy: float, topics_mastered: int) -> bool:
        """Check whether both gates of the rule pass."""
        return (
            average_accuracy >= self.min_accuracy
            and topics_mastered >= self.min_topics_mastered
        )


# Evaluated in order, first match wins; no match means beginner.
STUDENT_LEVEL_RULES: tuple[StudentLevelRule, ...] = (
    StudentLevelRule(StudentLevel.ADVANCED, min_accuracy=0.80, min_topics_mastered=5),
    StudentLevelRule(StudentLevel.INTERMEDIATE, min_accuracy=0.60, min_topics_mastered=2),
)


@dataclass(frozen=True)
class ProgressSummary:
    """Rollup of a student's topic mastery rows.

    Attributes:
        total_interactions: Sum of interactions over all topics.
        total_correct: Sum of correct answers over all topics.
        average_accuracy: total_correct / total_interactions, 0.0 when empty.
        topics_mastered: Number of topics at the mastered level.
        current_level: Overall student level.
    """

    total_interactions: int
    total_correct: int
    average_accuracy: float
    topics_mastered: int
    current_level: StudentLevel


def classify_student_level(average_accuracy: float, topics_mastered: int) -> StudentLevel:
    """Classify a student from overall accuracy and mastered topic count."""
    for rule in STUDENT_LEVEL_RULES:
        if rule.matches(average_accuracy, topics_mastered):
            return rule.level
    return StudentLevel.BEGINNER


def summarize_mastery(rows: Iterable[MasteryRow]) -> ProgressSummary:
    """Derive a progress rollup from a student's mastery rows.

    Args:
        rows: All topic mastery rows of one student.

    Returns:
        ProgressSummary computed from the rows.
    """
    total_interactions = 0
    total_correct = 0
    topics_mastered = 0

    for row in rows:
        total_interactions += row.total_interactions
        total_correct += row.correct_answers
        if row.mastery_level == MasteryLevel.MASTERED.value:
            topics_mastered += 1

    average_accuracy = total_correct / total_interactions if total_interactions > 0 else 0.0

    return ProgressSummary(
        total_interactions=total_interactions,
        total_correct=total_correct,
        average_accuracy=average_accuracy,
        topics_mastered=topics_mastered,
        current_level=classify_student_level(average_accuracy, topics_mastered),
    )


class ProgressAggregator:
    """Recomputes StudentProgress rows from TopicMastery rows.

    The aggregator only flushes; the caller owns the transaction and
    commits or rolls back together with the rest of its unit of work.

    Attributes:
        _db: Async database session.
        _clock: Source of the current time.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._db = db
        self._clock = clock

    async def recompute(self, student_id: str) -> StudentProgress:
        """Recompute and write through the progress row of a student.

        The streak is set to 1 when the row is created and left alone
        afterwards.

        Args:
            student_id: Student whose progress to recompute.

        Returns:
            The created or updated StudentProgress row.
        """
        result = await self._db.execute(
            select(TopicMastery).where(TopicMastery.student_id == student_id)
        )
        summary = summarize_mastery(result.scalars().all())

        result = await self._db.execute(
            select(StudentProgress)
            .where(StudentProgress.student_id == student_id)
            .with_for_update()
        )
        progress = result.scalar_one_or_none()
        now = self._clock()

        if progress is None:
            progress = StudentProgress(
                student_id=student_id,
                total_interactions=summary.total_interactions,
                average_accuracy=summary.average_accuracy,
                topics_mastered=summary.topics_mastered,
                current_level=summary.current_level.value,
                current_streak=1,
                last_active_at=now,
            )
            self._db.add(progress)
        else:
            progress.total_interactions = summary.total_interactions
            progress.average_accuracy = summary.average_accuracy
            progress.topics_mastered = summary.topics_mastered
            progress.current_level = summary.current_level.value
            progress.last_active_at = now

        await self._db.flush()

        logger.debug(
            "Progress recomputed: student=%s interactions=%d accuracy=%.3f mastered=%d level=%s",
            student_id,
            summary.total_interactions,
            summary.average_accuracy,
            summary.topics_mastered,
            summary.current_level.value,
        )

        return progress
