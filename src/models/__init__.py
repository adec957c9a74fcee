# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic request/response models shared by domains and the API."""

from src.models.progress import (
    InteractionResponse,
    InteractionType,
    MasteryLevel,
    RecordInteractionRequest,
    StudentLevel,
    StudentProgressResponse,
    TopicMasteryResponse,
)
from src.models.usage import (
    RecordUsageEventRequest,
    UsageAnomaly,
    UsageEventResponse,
    UsageEventType,
    UsageStatsResponse,
    UserUsageStats,
)

__all__ = [
    # Progress
    "InteractionType",
    "MasteryLevel",
    "StudentLevel",
    "RecordInteractionRequest",
    "InteractionResponse",
    "TopicMasteryResponse",
    "StudentProgressResponse",
    # Usage
    "UsageEventType",
    "RecordUsageEventRequest",
    "UsageEventResponse",
    "UserUsageStats",
    "UsageStatsResponse",
    "UsageAnomaly",
]
