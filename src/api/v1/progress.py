# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learning progress API endpoints.

This module provides endpoints for learning progress:
- POST /interactions - Record a learning interaction for the caller
- GET /interactions - Recent interactions of the caller
- GET /mastery - Topic mastery of the caller (plus weak/strong views)
- GET /me - Overall progress of the caller
- GET /class, /behind - Staff views over all students
- GET /students/{student_id}/... - Staff views of one student

Role checks happen in LearningProgressService; domain errors are mapped
to HTTP responses by the application exception handlers.

Example:
    POST /api/v1/progress/interactions
    {
        "subject_name": "Mathematics",
        "grade": 5,
        "topic_title": "Fractions",
        "interaction_type": "quiz_attempt",
        "is_correct": true
    }
"""

import logging

from fastapi import APIRouter, Depends, Query, Response, status

from src.api.dependencies import AuthenticatedIdentity, get_progress_service
from src.domains.exceptions import StudentNotFoundError
from src.domains.progress import LearningProgressService
from src.models.progress import (
    InteractionResponse,
    RecordInteractionRequest,
    StudentProgressResponse,
    TopicMasteryResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Interactions
# ============================================================================


@router.post(
    "/interactions",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Record learning interaction",
    description="Record an interaction and update the caller's mastery and progress.",
)
async def record_interaction(
    request: RecordInteractionRequest,
    identity: AuthenticatedIdentity,
    service: LearningProgressService = Depends(get_progress_service),
) -> Response:
    """Record a learning interaction for the caller."""
    await service.record_interaction(identity, request)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/interactions",
    response_model=list[InteractionResponse],
    summary="Get own interactions",
)
async def get_own_interactions(
    identity: AuthenticatedIdentity,
    limit: int | None = Query(default=None, ge=1, description="Maximum number of interactions"),
    service: LearningProgressService = Depends(get_progress_service),
) -> list[InteractionResponse]:
    """Get the caller's most recent interactions, newest first."""
    rows = await service.get_own_interactions(identity, limit=limit)
    return [InteractionResponse.model_validate(row) for row in rows]


@router.get(
    "/interactions/subject/{subject_name}",
    response_model=list[InteractionResponse],
    summary="Get own interactions in a subject",
)
async def get_own_interactions_by_subject(
    subject_name: str,
    identity: AuthenticatedIdentity,
    service: LearningProgressService = Depends(get_progress_service),
) -> list[InteractionResponse]:
    rows = await service.get_own_interactions_by_subject(identity, subject_name)
    return [InteractionResponse.model_validate(row) for row in rows]


@router.get(
    "/students/{student_id}/interactions",
    response_model=list[InteractionResponse],
    summary="Get a student's interactions",
    description="Teachers and admins only.",
)
async def get_student_interactions(
    student_id: str,
    identity: AuthenticatedIdentity,
    limit: int | None = Query(default=None, ge=1, description="Maximum number of interactions"),
    service: LearningProgressService = Depends(get_progress_service),
) -> list[InteractionResponse]:
    rows = await service.get_student_interactions(identity, student_id, limit=limit)
    return [InteractionResponse.model_validate(row) for row in rows]


# ============================================================================
# Topic Mastery
# ============================================================================


@router.get(
    "/mastery",
    response_model=list[TopicMasteryResponse],
    summary="Get own topic mastery",
)
async def get_own_mastery(
    identity: AuthenticatedIdentity,
    service: LearningProgressService = Depends(get_progress_service),
) -> list[TopicMasteryResponse]:
    """Get all of the caller's topic mastery rows."""
    rows = await service.get_own_mastery(identity)
    return [TopicMasteryResponse.model_validate(row) for row in rows]


@router.get(
    "/mastery/subject/{subject_name}",
    response_model=list[TopicMasteryResponse],
    summary="Get own topic mastery in a subject",
)
async def get_own_mastery_by_subject(
    subject_name: str,
    identity: AuthenticatedIdentity,
    service: LearningProgressService = Depends(get_progress_service),
) -> list[TopicMasteryResponse]:
    rows = await service.get_own_mastery_by_subject(identity, subject_name)
    return [TopicMasteryResponse.model_validate(row) for row in rows]


@router.get(
    "/mastery/weak",
    response_model=list[TopicMasteryResponse],
    summary="Get own weak topics",
    description="Topics with enough attempts and low accuracy, weakest first.",
)
async def get_weak_topics(
    identity: AuthenticatedIdentity,
    service: LearningProgressService = Depends(get_progress_service),
) -> list[TopicMasteryResponse]:
    rows = await service.get_weak_topics(identity)
    return [TopicMasteryResponse.model_validate(row) for row in rows]


@router.get(
    "/mastery/strong",
    response_model=list[TopicMasteryResponse],
    summary="Get own mastered topics",
)
async def get_strong_topics(
    identity: AuthenticatedIdentity,
    service: LearningProgressService = Depends(get_progress_service),
) -> list[TopicMasteryResponse]:
    rows = await service.get_strong_topics(identity)
    return [TopicMasteryResponse.model_validate(row) for row in rows]


@router.get(
    "/students/{student_id}/mastery",
    response_model=list[TopicMasteryResponse],
    summary="Get a student's topic mastery",
    description="Teachers and admins only.",
)
async def get_student_mastery(
    student_id: str,
    identity: AuthenticatedIdentity,
    service: LearningProgressService = Depends(get_progress_service),
) -> list[TopicMasteryResponse]:
    rows = await service.get_student_mastery(identity, student_id)
    return [TopicMasteryResponse.model_validate(row) for row in rows]


# ============================================================================
# Student Progress
# ============================================================================


@router.get(
    "/me",
    response_model=StudentProgressResponse | None,
    summary="Get own progress",
    description="Returns null before the caller's first interaction.",
)
async def get_own_progress(
    identity: AuthenticatedIdentity,
    service: LearningProgressService = Depends(get_progress_service),
) -> StudentProgressResponse | None:
    """Get the caller's overall progress."""
    progress = await service.get_own_progress(identity)
    if progress is None:
        return None
    return StudentProgressResponse.model_validate(progress)


@router.get(
    "/class",
    response_model=list[StudentProgressResponse],
    summary="Get class progress",
    description="Teachers and admins only. Most recently active first.",
)
async def get_class_progress(
    identity: AuthenticatedIdentity,
    service: LearningProgressService = Depends(get_progress_service),
) -> list[StudentProgressResponse]:
    rows = await service.get_class_progress(identity)
    return [StudentProgressResponse.model_validate(row) for row in rows]


@router.get(
    "/behind",
    response_model=list[StudentProgressResponse],
    summary="Get students falling behind",
    description="Teachers and admins only. Least recently active first.",
)
async def get_students_behind(
    identity: AuthenticatedIdentity,
    service: LearningProgressService = Depends(get_progress_service),
) -> list[StudentProgressResponse]:
    rows = await service.get_students_behind(identity)
    return [StudentProgressResponse.model_validate(row) for row in rows]


@router.get(
    "/students/{student_id}",
    response_model=StudentProgressResponse,
    summary="Get a student's progress",
    description="Teachers and admins only. 404 when the student has no progress yet.",
)
async def get_student_progress(
    student_id: str,
    identity: AuthenticatedIdentity,
    service: LearningProgressService = Depends(get_progress_service),
) -> StudentProgressResponse:
    progress = await service.get_student_progress(identity, student_id)
    if progress is None:
        raise StudentNotFoundError(student_id)
    return StudentProgressResponse.model_validate(progress)
