# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Usage analytics request and response models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class UsageEventType(str, Enum):
    """Kind of billable or observable action."""

    CHAT_MESSAGE = "chat_message"
    STT_REQUEST = "stt_request"
    PDF_EXTRACTION = "pdf_extraction"
    FILE_UPLOAD = "file_upload"
    IMAGE_ANALYSIS = "image_analysis"


class RecordUsageEventRequest(BaseModel):
    """Request model for recording a usage event.

    Attributes:
        event_type: Kind of action.
        model: Optional model name used to serve the action.
        user_id: Optional target user; only admins may record for others.
    """

    model_config = ConfigDict(extra="forbid")

    event_type: UsageEventType = Field(..., description="Kind of action")
    model: str | None = Field(default=None, max_length=255, description="Model used")
    user_id: str | None = Field(
        default=None,
        min_length=1,
        max_length=255,
        description="User the event belongs to (defaults to the caller)",
    )


class UsageEventResponse(BaseModel):
    """A recorded usage event."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    event_type: UsageEventType
    model: str | None = None
    timestamp: datetime


class UserUsageStats(BaseModel):
    """Usage counts for one user."""

    total: int = 0
    today: int = 0
    week: int = 0
    last_active: datetime | None = None


class UsageStatsResponse(BaseModel):
    """Usage counts across trailing windows.

    Attributes:
        total_events_today: Events in the last 24 hours.
        total_events_week: Events in the last 7 days.
        total_events_all_time: All events.
        user_stats: Per-user counts keyed by user id.
        type_stats: Per-event-type counts within the last 24 hours.
        generated_at: When the statistics were computed.
    """

    total_events_today: int = 0
    total_events_week: int = 0
    total_events_all_time: int = 0
    user_stats: dict[str, UserUsageStats] = Field(default_factory=dict)
    type_stats: dict[str, int] = Field(default_factory=dict)
    generated_at: datetime


class UsageAnomaly(BaseModel):
    """A user exceeding the event threshold inside the anomaly window."""

    user_id: str
    count: int
