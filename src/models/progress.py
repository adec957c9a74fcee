# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learning progress request and response models.

This module defines the Pydantic models and enumerations shared by the
progress domain service and the progress API:
- InteractionType, MasteryLevel, StudentLevel: closed vocabularies
- RecordInteractionRequest: validated input for recording an interaction
- InteractionResponse, TopicMasteryResponse, StudentProgressResponse:
  read models built from store rows
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InteractionType(str, Enum):
    """Kind of learning interaction."""

    QUESTION = "question"
    QUIZ_ATTEMPT = "quiz_attempt"
    EXPLANATION_REQUEST = "explanation_request"
    PROBLEM_SOLVING = "problem_solving"


class MasteryLevel(str, Enum):
    """Mastery classification of one topic for one student."""

    NOT_STARTED = "not_started"
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    MASTERED = "mastered"


class StudentLevel(str, Enum):
    """Overall level of a student across all topics."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class RecordInteractionRequest(BaseModel):
    """Request model for recording a learning interaction.

    Attributes:
        subject_name: Subject the topic belongs to.
        grade: Grade level of the material.
        topic_title: Topic the interaction is about.
        interaction_type: Kind of interaction.
        is_correct: Outcome, only meaningful for gradable interactions.
        textbook_id: Optional textbook reference.
        chapter_id: Optional chapter reference.
        topic_id: Optional topic reference.
        conversation_id: Optional tutoring conversation reference.
    """

    model_config = ConfigDict(extra="forbid")

    subject_name: str = Field(..., min_length=1, max_length=255, description="Subject name")
    grade: int = Field(..., ge=0, description="Grade level")
    topic_title: str = Field(..., min_length=1, max_length=500, description="Topic title")
    interaction_type: InteractionType = Field(..., description="Kind of interaction")
    is_correct: bool | None = Field(default=None, description="Whether the answer was correct")
    textbook_id: str | None = Field(default=None, max_length=255)
    chapter_id: str | None = Field(default=None, max_length=255)
    topic_id: str | None = Field(default=None, max_length=255)
    conversation_id: str | None = Field(default=None, max_length=255)

    @field_validator("subject_name", "topic_title")
    @classmethod
    def strip_required_text(cls, value: str) -> str:
        """Reject whitespace-only names and trim surrounding whitespace."""
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class InteractionResponse(BaseModel):
    """A recorded learning interaction."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Interaction ID")
    student_id: str = Field(..., description="Owning student")
    subject_name: str
    grade: int
    topic_title: str
    interaction_type: InteractionType
    is_correct: bool | None = None
    textbook_id: str | None = None
    chapter_id: str | None = None
    topic_id: str | None = None
    conversation_id: str | None = None
    timestamp: datetime


class TopicMasteryResponse(BaseModel):
    """Mastery state of one topic."""

    model_config = ConfigDict(from_attributes=True)

    student_id: str
    subject_name: str
    grade: int
    topic_title: str
    mastery_level: MasteryLevel
    total_interactions: int
    correct_answers: int
    total_quiz_attempts: int
    accuracy: float = Field(..., description="Correct answers over total interactions")
    last_interaction_at: datetime


class StudentProgressResponse(BaseModel):
    """Aggregate progress of one student."""

    model_config = ConfigDict(from_attributes=True)

    student_id: str
    total_interactions: int
    average_accuracy: float
    topics_mastered: int
    current_level: StudentLevel
    current_streak: int
    last_active_at: datetime
