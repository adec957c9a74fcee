# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the progress store."""

from src.infrastructure.database.models.base import Base, IdMixin, generate_id
from src.infrastructure.database.models.progress import (
    LearningInteraction,
    StudentProgress,
    TopicMastery,
)
from src.infrastructure.database.models.usage import UsageEvent

__all__ = [
    "Base",
    "IdMixin",
    "generate_id",
    "LearningInteraction",
    "TopicMastery",
    "StudentProgress",
    "UsageEvent",
]
