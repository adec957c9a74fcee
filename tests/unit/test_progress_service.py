# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for LearningProgressService."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from src.core.config.settings import AnalyticsSettings
from src.domains.auth.identity import Identity, Role
from src.domains.exceptions import (
    InvalidInputError,
    NotAuthenticatedError,
    PermissionDeniedError,
    StudentNotFoundError,
)
from src.domains.progress import LearningProgressService
from src.infrastructure.database.connection import DatabaseError
from src.infrastructure.database.models.progress import LearningInteraction, TopicMastery
from src.models.progress import (
    InteractionType,
    MasteryLevel,
    RecordInteractionRequest,
    StudentLevel,
)


@pytest.fixture
def service(db_session, analytics_settings, clock) -> LearningProgressService:
    """Create progress service over the in-memory store."""
    return LearningProgressService(db_session, settings=analytics_settings, clock=clock)


async def record(
    service: LearningProgressService,
    identity: Identity,
    outcomes: list[bool | None],
    topic: str = "Fractions",
    subject: str = "Mathematics",
    interaction_type: str = "quiz_attempt",
) -> None:
    """Record one interaction per outcome on a single topic."""
    for is_correct in outcomes:
        await service.record_interaction(
            identity,
            {
                "subject_name": subject,
                "grade": 5,
                "topic_title": topic,
                "interaction_type": interaction_type,
                "is_correct": is_correct,
            },
        )


async def count_rows(db_session, model) -> int:
    result = await db_session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


@pytest.mark.unit
class TestRecordInteraction:
    """Tests for record_interaction."""

    @pytest.mark.asyncio
    async def test_requires_identity(self, service, interaction_data, db_session) -> None:
        """Test that an unauthenticated call is rejected before any write."""
        with pytest.raises(NotAuthenticatedError):
            await service.record_interaction(None, interaction_data)

        assert await count_rows(db_session, LearningInteraction) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"topic_title": "   "},
            {"subject_name": ""},
            {"grade": "fifth"},
            {"interaction_type": "guess"},
        ],
    )
    async def test_rejects_malformed_input(
        self, service, student, interaction_data, db_session, overrides
    ) -> None:
        """Test that malformed fields raise InvalidInputError and write nothing."""
        with pytest.raises(InvalidInputError) as exc_info:
            await service.record_interaction(student, {**interaction_data, **overrides})

        assert exc_info.value.code == "invalid_input"
        assert exc_info.value.errors
        assert await count_rows(db_session, LearningInteraction) == 0
        assert await count_rows(db_session, TopicMastery) == 0

    @pytest.mark.asyncio
    async def test_grade_has_no_upper_bound(self, service, student, interaction_data) -> None:
        """Test that any non-negative grade is accepted."""
        await service.record_interaction(student, {**interaction_data, "grade": 25})

        mastery = await service.get_own_mastery(student)
        assert mastery[0].grade == 25

    @pytest.mark.asyncio
    async def test_accepts_request_model(self, service, student) -> None:
        """Test that a validated request model is recorded as-is."""
        request = RecordInteractionRequest(
            subject_name="Science",
            grade=7,
            topic_title="Cells",
            interaction_type=InteractionType.EXPLANATION_REQUEST,
        )

        await service.record_interaction(student, request)

        mastery = await service.get_own_mastery(student)
        assert len(mastery) == 1
        assert mastery[0].total_interactions == 1
        assert mastery[0].correct_answers == 0
        assert mastery[0].total_quiz_attempts == 0

    @pytest.mark.asyncio
    async def test_counters_track_n_interactions_k_correct(
        self, service, student, db_session
    ) -> None:
        """Test that one topic row accumulates all interactions on it."""
        await record(service, student, [True, False, None, True, True, False, True])

        mastery = await service.get_own_mastery(student)
        assert len(mastery) == 1
        assert mastery[0].total_interactions == 7
        assert mastery[0].correct_answers == 4
        assert mastery[0].total_quiz_attempts == 7
        assert await count_rows(db_session, LearningInteraction) == 7

    @pytest.mark.asyncio
    async def test_topics_keyed_by_subject_and_title(self, service, student) -> None:
        """Test that the same title in another subject is a separate topic."""
        await record(service, student, [True], topic="Energy", subject="Physics")
        await record(service, student, [False], topic="Energy", subject="Biology")

        mastery = await service.get_own_mastery(student)

        assert [(row.subject_name, row.topic_title) for row in mastery] == [
            ("Biology", "Energy"),
            ("Physics", "Energy"),
        ]

    @pytest.mark.asyncio
    async def test_mastery_moves_both_directions(self, service, student) -> None:
        """Test that a mastered topic drops back after wrong answers."""
        await record(service, student, [True] * 10)
        mastery = await service.get_own_mastery(student)
        assert mastery[0].mastery_level == MasteryLevel.MASTERED.value

        await record(service, student, [False] * 3)
        mastery = await service.get_own_mastery(student)
        assert mastery[0].mastery_level == MasteryLevel.ADVANCED.value

    @pytest.mark.asyncio
    async def test_progress_average_after_interleaving(self, service, student) -> None:
        """Test that average accuracy equals total correct over total interactions."""
        await record(service, student, [True, True], topic="Fractions")
        await record(service, student, [False], topic="Decimals")
        await record(service, student, [True], topic="Cells", subject="Science")
        await record(service, student, [False, False], topic="Fractions")
        await record(service, student, [True], topic="Decimals")

        progress = await service.get_own_progress(student)

        assert progress.total_interactions == 7
        assert progress.average_accuracy == pytest.approx(4 / 7)
        assert progress.current_streak == 1

    @pytest.mark.asyncio
    async def test_progress_level_from_mastered_topics(self, service, student) -> None:
        """Test that two mastered topics at high accuracy make an intermediate student."""
        await record(service, student, [True] * 10, topic="Fractions")
        await record(service, student, [True] * 10, topic="Decimals")

        progress = await service.get_own_progress(student)

        assert progress.topics_mastered == 2
        assert progress.current_level == StudentLevel.INTERMEDIATE.value

    @pytest.mark.asyncio
    async def test_rolls_back_on_store_failure(self, student, interaction_data) -> None:
        """Test that a store failure rolls back and surfaces as DatabaseError."""
        db = AsyncMock()
        db.add = MagicMock()
        db.execute = AsyncMock(side_effect=SQLAlchemyError("connection lost"))
        db.commit = AsyncMock()
        db.rollback = AsyncMock()
        service = LearningProgressService(db)

        with pytest.raises(DatabaseError) as exc_info:
            await service.record_interaction(student, interaction_data)

        assert isinstance(exc_info.value.original_error, SQLAlchemyError)
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()


@pytest.mark.unit
class TestInteractionHistory:
    """Tests for interaction history reads."""

    @pytest.mark.asyncio
    async def test_own_interactions_newest_first(self, service, student, clock) -> None:
        """Test that history is ordered newest first and honours the limit."""
        for topic in ["First", "Second", "Third"]:
            await record(service, student, [True], topic=topic)
            clock.advance(minutes=1)

        interactions = await service.get_own_interactions(student, limit=2)

        assert [row.topic_title for row in interactions] == ["Third", "Second"]

    @pytest.mark.asyncio
    async def test_default_limit(self, db_session, student, clock) -> None:
        """Test that the configured default limit applies when none is given."""
        service = LearningProgressService(
            db_session,
            settings=AnalyticsSettings(default_interaction_limit=3),
            clock=clock,
        )
        await record(service, student, [True] * 5)

        assert len(await service.get_own_interactions(student)) == 3

    @pytest.mark.asyncio
    async def test_rejects_non_positive_limit(self, service, student) -> None:
        """Test that a zero limit is rejected."""
        with pytest.raises(InvalidInputError):
            await service.get_own_interactions(student, limit=0)

    @pytest.mark.asyncio
    async def test_interactions_by_subject(self, service, student) -> None:
        """Test that the subject filter only returns that subject."""
        await record(service, student, [True], topic="Cells", subject="Science")
        await record(service, student, [True], topic="Fractions")

        interactions = await service.get_own_interactions_by_subject(student, "Science")

        assert [row.topic_title for row in interactions] == ["Cells"]

    @pytest.mark.asyncio
    async def test_student_interactions_hidden_from_other_students(
        self, service, student, other_student, teacher
    ) -> None:
        """Test that another student's history reads as not found."""
        await record(service, student, [True])

        with pytest.raises(StudentNotFoundError):
            await service.get_student_interactions(other_student, student.subject_id)

        assert len(await service.get_student_interactions(teacher, student.subject_id)) == 1
        assert len(await service.get_student_interactions(student, student.subject_id)) == 1

    @pytest.mark.asyncio
    async def test_history_is_private(self, service, student, other_student) -> None:
        """Test that own-history reads never include other students."""
        await record(service, student, [True])

        assert await service.get_own_interactions(other_student) == []


@pytest.mark.unit
class TestTopicMasteryReads:
    """Tests for topic mastery reads."""

    @pytest.mark.asyncio
    async def test_weak_topics(self, service, student) -> None:
        """Test weak topic filtering and ordering."""
        await record(service, student, [False], topic="Single")
        await record(service, student, [False, False], topic="Zero")
        await record(service, student, [True, False, False, False], topic="Quarter")
        await record(service, student, [True, False], topic="Half")
        await record(service, student, [True, True, True], topic="Strong")

        weak = await service.get_weak_topics(student)

        assert [row.topic_title for row in weak] == ["Zero", "Quarter"]
        assert all(row.total_interactions >= 2 for row in weak)
        accuracies = [row.accuracy for row in weak]
        assert accuracies == sorted(accuracies)

    @pytest.mark.asyncio
    async def test_strong_topics(self, service, student) -> None:
        """Test that only mastered topics are returned."""
        await record(service, student, [True] * 10, topic="Fractions")
        await record(service, student, [True] * 9, topic="Decimals")

        strong = await service.get_strong_topics(student)

        assert [row.topic_title for row in strong] == ["Fractions"]

    @pytest.mark.asyncio
    async def test_mastery_by_subject(self, service, student) -> None:
        """Test that mastery can be filtered by subject."""
        await record(service, student, [True], topic="Cells", subject="Science")
        await record(service, student, [True], topic="Fractions")

        rows = await service.get_own_mastery_by_subject(student, "Mathematics")

        assert [row.topic_title for row in rows] == ["Fractions"]

    @pytest.mark.asyncio
    async def test_student_mastery_access(
        self, service, student, other_student, teacher, admin
    ) -> None:
        """Test per-student mastery access by role."""
        await record(service, student, [True])

        with pytest.raises(StudentNotFoundError):
            await service.get_student_mastery(other_student, student.subject_id)

        assert len(await service.get_student_mastery(teacher, student.subject_id)) == 1
        assert len(await service.get_student_mastery(admin, student.subject_id)) == 1
        assert len(await service.get_student_mastery(student, student.subject_id)) == 1


@pytest.mark.unit
class TestStudentProgressReads:
    """Tests for student progress reads."""

    @pytest.mark.asyncio
    async def test_own_progress_none_before_first_interaction(self, service, student) -> None:
        """Test that there is no progress row before any interaction."""
        assert await service.get_own_progress(student) is None

    @pytest.mark.asyncio
    async def test_own_progress_returns_own_row(self, service, student, other_student) -> None:
        """Test that each caller only sees their own row."""
        await record(service, student, [True])
        await record(service, other_student, [False])

        progress = await service.get_own_progress(student)

        assert progress.student_id == student.subject_id
        assert progress.average_accuracy == 1.0

    @pytest.mark.asyncio
    async def test_class_progress_requires_staff(self, service, student) -> None:
        """Test that a student calling class progress is rejected."""
        with pytest.raises(PermissionDeniedError) as exc_info:
            await service.get_class_progress(student)

        assert exc_info.value.required_roles == ["admin", "teacher"]

    @pytest.mark.asyncio
    async def test_class_progress_unauthenticated(self, service) -> None:
        """Test that class progress without identity is unauthenticated."""
        with pytest.raises(NotAuthenticatedError):
            await service.get_class_progress(None)

    @pytest.mark.asyncio
    async def test_class_progress_missing_role_is_denied(self, service) -> None:
        """Test that an identity without a role is treated as a student."""
        with pytest.raises(PermissionDeniedError):
            await service.get_class_progress(Identity(subject_id="anonymous"))

    @pytest.mark.asyncio
    async def test_class_progress_most_recent_first(
        self, service, student, other_student, teacher, clock
    ) -> None:
        """Test that class progress lists recently active students first."""
        await record(service, student, [True])
        clock.advance(hours=1)
        await record(service, other_student, [True])

        rows = await service.get_class_progress(teacher)

        assert [row.student_id for row in rows] == ["student-2", "student-1"]

    @pytest.mark.asyncio
    async def test_students_behind(self, db_session, analytics_settings, teacher, clock) -> None:
        """Test the low-accuracy-or-inactive predicate."""
        now = clock.now
        current = LearningProgressService(db_session, settings=analytics_settings, clock=clock)

        clock.now = now - timedelta(days=8)
        await record(
            current,
            Identity("strong-inactive", Role.STUDENT),
            [True] * 9 + [False],
        )
        clock.now = now
        await record(current, Identity("weak-active", Role.STUDENT), [True] * 3 + [False] * 7)
        await record(current, Identity("strong-active", Role.STUDENT), [True] * 9 + [False])

        behind = await current.get_students_behind(teacher)

        assert [row.student_id for row in behind] == ["strong-inactive", "weak-active"]

    @pytest.mark.asyncio
    async def test_students_behind_requires_staff(self, service, student) -> None:
        """Test that students cannot list students behind."""
        with pytest.raises(PermissionDeniedError):
            await service.get_students_behind(student)

    @pytest.mark.asyncio
    async def test_student_progress_access(self, service, student, other_student, teacher) -> None:
        """Test per-student progress access by role."""
        await record(service, student, [True])

        with pytest.raises(StudentNotFoundError):
            await service.get_student_progress(other_student, student.subject_id)

        progress = await service.get_student_progress(teacher, student.subject_id)
        assert progress.student_id == student.subject_id
        assert await service.get_student_progress(teacher, "unknown") is None
