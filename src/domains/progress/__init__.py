# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learning progress domain.

This package implements the write path and the learning read models:
- classifier: pure topic mastery classification
- aggregator: full recompute of a student's progress rollup
- service: recording interactions and role-gated progress queries

Usage:
    from src.domains.progress import LearningProgressService

    service = LearningProgressService(db)
    await service.record_interaction(identity, request)
    behind = await service.get_students_behind(teacher_identity)
"""

from src.domains.progress.aggregator import (
    STUDENT_LEVEL_RULES,
    ProgressAggregator,
    ProgressSummary,
    classify_student_level,
    summarize_mastery,
)
from src.domains.progress.classifier import (
    MASTERY_RULES,
    MasteryCounters,
    MasteryRule,
    apply_interaction,
    classify_mastery,
)
from src.domains.progress.service import LearningProgressService

__all__ = [
    # Classifier
    "MASTERY_RULES",
    "MasteryCounters",
    "MasteryRule",
    "apply_interaction",
    "classify_mastery",
    # Aggregator
    "STUDENT_LEVEL_RULES",
    "ProgressAggregator",
    "ProgressSummary",
    "classify_student_level",
    "summarize_mastery",
    # Service
    "LearningProgressService",
]
