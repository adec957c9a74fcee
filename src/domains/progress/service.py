# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learning progress service.

This service provides:
- Recording learning interactions (append, mastery upsert, progress recompute)
- Self-scoped reads: interaction history, topic mastery, weak/strong topics, progress
- Staff reads: class progress, students behind, per-student mastery and progress

Recording runs as one unit of work on the session: the interaction
insert, the TopicMastery upsert and the StudentProgress recompute are
committed together or rolled back together. Rows being updated are
selected FOR UPDATE so concurrent interactions from the same student
serialize on stores that support row locks.

Usage:
    service = LearningProgressService(db)
    await service.record_interaction(identity, request)
    weak = await service.get_weak_topics(identity)
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Sequence

from pydantic import ValidationError
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import AnalyticsSettings, get_settings
from src.domains.auth.identity import (
    STAFF_ROLES,
    Identity,
    require_identity,
    require_role,
    require_student_access,
)
from src.domains.exceptions import InvalidInputError
from src.domains.progress.aggregator import ProgressAggregator
from src.domains.progress.classifier import MasteryCounters, apply_interaction
from src.infrastructure.database.connection import DatabaseError
from src.infrastructure.database.models.progress import (
    LearningInteraction,
    StudentProgress,
    TopicMastery,
)
from src.models.progress import MasteryLevel, RecordInteractionRequest
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class LearningProgressService:
    """Service for recording interactions and reading learning progress.

    Attributes:
        _db: Async database session.
        _settings: Analytics thresholds.
        _clock: Source of the current time.

    Example:
        service = LearningProgressService(db)
        await service.record_interaction(identity, {"subject_name": "Math", ...})
        progress = await service.get_own_progress(identity)
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: AnalyticsSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the progress service.

        Args:
            db: Async database session.
            settings: Analytics thresholds (defaults to application settings).
            clock: Source of the current time.
        """
        self._db = db
        self._settings = settings or get_settings().analytics
        self._clock = clock

    # =========================================================================
    # Recording
    # =========================================================================

    async def record_interaction(
        self,
        identity: Identity | None,
        request: RecordInteractionRequest | Mapping[str, Any],
    ) -> None:
        """Record a learning interaction for the caller.

        Args:
            identity: Caller identity.
            request: Interaction fields, validated before anything is written.

        Raises:
            NotAuthenticatedError: If no identity was resolved.
            InvalidInputError: If the interaction fields are malformed.
            DatabaseError: If the store rejects the unit of work.
        """
        identity = require_identity(identity)
        request = self._validate_request(request)
        student_id = identity.subject_id
        now = self._clock()

        try:
            self._db.add(
                LearningInteraction(
                    student_id=student_id,
                    subject_name=request.subject_name,
                    grade=request.grade,
                    topic_title=request.topic_title,
                    textbook_id=request.textbook_id,
                    chapter_id=request.chapter_id,
                    topic_id=request.topic_id,
                    conversation_id=request.conversation_id,
                    interaction_type=request.interaction_type.value,
                    is_correct=request.is_correct,
                    timestamp=now,
                )
            )
            mastery = await self._upsert_mastery(student_id, request, now)
            await self._db.flush()

            progress = await ProgressAggregator(self._db, clock=self._clock).recompute(student_id)
            await self._db.commit()
        except SQLAlchemyError as e:
            await self._db.rollback()
            logger.error(
                "Failed to record interaction: student=%s topic=%s error=%s",
                student_id,
                request.topic_title,
                str(e),
            )
            raise DatabaseError("Failed to record learning interaction", e) from e

        logger.info(
            "Interaction recorded: student=%s subject=%s topic=%s type=%s level=%s overall=%s",
            student_id,
            request.subject_name,
            request.topic_title,
            request.interaction_type.value,
            mastery.mastery_level,
            progress.current_level,
        )

    async def _upsert_mastery(
        self,
        student_id: str,
        request: RecordInteractionRequest,
        now: datetime,
    ) -> TopicMastery:
        """Fold the interaction into the matching TopicMastery row.

        Args:
            student_id: Owning student.
            request: Validated interaction.
            now: Interaction time.

        Returns:
            The created or updated row.
        """
        result = await self._db.execute(
            select(TopicMastery)
            .where(
                TopicMastery.student_id == student_id,
                TopicMastery.subject_name == request.subject_name,
                TopicMastery.topic_title == request.topic_title,
            )
            .with_for_update()
        )
        mastery = result.scalar_one_or_none()

        prior = MasteryCounters()
        if mastery is not None:
            prior = MasteryCounters(
                total_interactions=mastery.total_interactions,
                correct_answers=mastery.correct_answers,
                total_quiz_attempts=mastery.total_quiz_attempts,
            )

        counters, level = apply_interaction(
            prior,
            is_correct=request.is_correct,
            interaction_type=request.interaction_type,
        )

        if mastery is None:
            mastery = TopicMastery(
                student_id=student_id,
                subject_name=request.subject_name,
                grade=request.grade,
                topic_title=request.topic_title,
            )
            self._db.add(mastery)

        mastery.total_interactions = counters.total_interactions
        mastery.correct_answers = counters.correct_answers
        mastery.total_quiz_attempts = counters.total_quiz_attempts
        mastery.mastery_level = level.value
        mastery.last_interaction_at = now

        return mastery

    @staticmethod
    def _validate_request(
        request: RecordInteractionRequest | Mapping[str, Any],
    ) -> RecordInteractionRequest:
        """Validate raw interaction fields into a request model.

        Raises:
            InvalidInputError: If validation fails.
        """
        if isinstance(request, RecordInteractionRequest):
            return request
        try:
            return RecordInteractionRequest.model_validate(request)
        except ValidationError as e:
            raise InvalidInputError(
                "Invalid learning interaction",
                errors=e.errors(include_url=False, include_context=False),
            ) from e

    # =========================================================================
    # Interaction History
    # =========================================================================

    async def get_own_interactions(
        self,
        identity: Identity | None,
        limit: int | None = None,
    ) -> Sequence[LearningInteraction]:
        """Get the caller's most recent interactions, newest first.

        Args:
            identity: Caller identity.
            limit: Maximum number of interactions (defaults to settings).

        Returns:
            List of LearningInteraction rows.
        """
        identity = require_identity(identity)
        return await self._interactions_for(identity.subject_id, limit)

    async def get_own_interactions_by_subject(
        self,
        identity: Identity | None,
        subject_name: str,
    ) -> Sequence[LearningInteraction]:
        """Get all of the caller's interactions in one subject, newest first."""
        identity = require_identity(identity)
        result = await self._db.execute(
            select(LearningInteraction)
            .where(
                LearningInteraction.student_id == identity.subject_id,
                LearningInteraction.subject_name == subject_name,
            )
            .order_by(LearningInteraction.timestamp.desc())
        )
        return result.scalars().all()

    async def get_student_interactions(
        self,
        identity: Identity | None,
        student_id: str,
        limit: int | None = None,
    ) -> Sequence[LearningInteraction]:
        """Get a student's most recent interactions, newest first.

        Raises:
            StudentNotFoundError: If a non-staff caller asks for another student.
        """
        require_student_access(identity, student_id)
        return await self._interactions_for(student_id, limit)

    async def _interactions_for(
        self,
        student_id: str,
        limit: int | None,
    ) -> Sequence[LearningInteraction]:
        limit = self._resolve_limit(limit, self._settings.default_interaction_limit)
        result = await self._db.execute(
            select(LearningInteraction)
            .where(LearningInteraction.student_id == student_id)
            .order_by(LearningInteraction.timestamp.desc())
            .limit(limit)
        )
        return result.scalars().all()

    # =========================================================================
    # Topic Mastery
    # =========================================================================

    async def get_own_mastery(self, identity: Identity | None) -> Sequence[TopicMastery]:
        """Get all of the caller's topic mastery rows."""
        identity = require_identity(identity)
        return await self._mastery_for(identity.subject_id)

    async def get_own_mastery_by_subject(
        self,
        identity: Identity | None,
        subject_name: str,
    ) -> Sequence[TopicMastery]:
        """Get the caller's topic mastery rows in one subject."""
        identity = require_identity(identity)
        result = await self._db.execute(
            select(TopicMastery)
            .where(
                TopicMastery.student_id == identity.subject_id,
                TopicMastery.subject_name == subject_name,
            )
            .order_by(TopicMastery.topic_title)
        )
        return result.scalars().all()

    async def get_weak_topics(self, identity: Identity | None) -> list[TopicMastery]:
        """Get the caller's weak topics, weakest first.

        A topic is weak when it has at least ``weak_min_interactions``
        interactions and its accuracy, recomputed from the counters, is
        below ``weak_accuracy_threshold``.

        Args:
            identity: Caller identity.

        Returns:
            Weak TopicMastery rows sorted by ascending accuracy.
        """
        identity = require_identity(identity)
        rows = await self._mastery_for(identity.subject_id)

        weak = [
            row
            for row in rows
            if row.total_interactions >= self._settings.weak_min_interactions
            and row.accuracy < self._settings.weak_accuracy_threshold
        ]
        weak.sort(key=lambda row: row.accuracy)

        logger.debug(
            "Weak topics for %s: %d of %d",
            identity.subject_id,
            len(weak),
            len(rows),
        )
        return weak

    async def get_strong_topics(self, identity: Identity | None) -> Sequence[TopicMastery]:
        """Get the caller's mastered topics."""
        identity = require_identity(identity)
        result = await self._db.execute(
            select(TopicMastery)
            .where(
                TopicMastery.student_id == identity.subject_id,
                TopicMastery.mastery_level == MasteryLevel.MASTERED.value,
            )
            .order_by(TopicMastery.subject_name, TopicMastery.topic_title)
        )
        return result.scalars().all()

    async def get_student_mastery(
        self,
        identity: Identity | None,
        student_id: str,
    ) -> Sequence[TopicMastery]:
        """Get all topic mastery rows of a student.

        Raises:
            StudentNotFoundError: If a non-staff caller asks for another student.
        """
        require_student_access(identity, student_id)
        return await self._mastery_for(student_id)

    async def _mastery_for(self, student_id: str) -> Sequence[TopicMastery]:
        result = await self._db.execute(
            select(TopicMastery)
            .where(TopicMastery.student_id == student_id)
            .order_by(TopicMastery.subject_name, TopicMastery.topic_title)
        )
        return result.scalars().all()

    # =========================================================================
    # Student Progress
    # =========================================================================

    async def get_own_progress(self, identity: Identity | None) -> StudentProgress | None:
        """Get the caller's progress row, or None before any interaction."""
        identity = require_identity(identity)
        return await self._progress_for(identity.subject_id)

    async def get_student_progress(
        self,
        identity: Identity | None,
        student_id: str,
    ) -> StudentProgress | None:
        """Get a student's progress row.

        Raises:
            StudentNotFoundError: If a non-staff caller asks for another student.
        """
        require_student_access(identity, student_id)
        return await self._progress_for(student_id)

    async def _progress_for(self, student_id: str) -> StudentProgress | None:
        result = await self._db.execute(
            select(StudentProgress).where(StudentProgress.student_id == student_id)
        )
        return result.scalar_one_or_none()

    async def get_class_progress(self, identity: Identity | None) -> Sequence[StudentProgress]:
        """Get every student's progress row, most recently active first.

        Raises:
            PermissionDeniedError: If the caller is not a teacher or admin.
        """
        require_role(identity, STAFF_ROLES)
        result = await self._db.execute(
            select(StudentProgress).order_by(StudentProgress.last_active_at.desc())
        )
        return result.scalars().all()

    async def get_students_behind(self, identity: Identity | None) -> Sequence[StudentProgress]:
        """Get students with low accuracy or long inactivity.

        A student is behind when their average accuracy is below
        ``behind_accuracy_threshold`` or they have not been active for
        more than ``inactivity_days``. Least recently active first.

        Raises:
            PermissionDeniedError: If the caller is not a teacher or admin.
        """
        require_role(identity, STAFF_ROLES)
        inactive_before = self._clock() - timedelta(days=self._settings.inactivity_days)

        result = await self._db.execute(
            select(StudentProgress)
            .where(
                or_(
                    StudentProgress.average_accuracy < self._settings.behind_accuracy_threshold,
                    StudentProgress.last_active_at < inactive_before,
                )
            )
            .order_by(StudentProgress.last_active_at.asc())
        )
        return result.scalars().all()

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _resolve_limit(limit: int | None, default: int) -> int:
        if limit is None:
            return default
        if limit < 1:
            raise InvalidInputError(f"limit must be positive, got {limit}")
        return limit
