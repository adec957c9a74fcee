# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Usage analytics API endpoints.

This module provides endpoints for the usage event log:
- POST /events - Record a usage event
- GET /stats - Usage statistics (admin)
- GET /anomalies - Users with bursts of activity (admin)
- GET /events - Most recent events across all users (admin)
- GET /users/{user_id}/events - Most recent events of one user (admin)

Example:
    POST /api/v1/usage/events
    {"event_type": "chat_message", "model": "gpt-4o-mini"}
"""

import logging

from fastapi import APIRouter, Depends, Query, Response, status

from src.api.dependencies import AuthenticatedIdentity, get_usage_service
from src.domains.usage import UsageService
from src.models.usage import (
    RecordUsageEventRequest,
    UsageAnomaly,
    UsageEventResponse,
    UsageStatsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/events",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Record usage event",
    description="Record an event for the caller. Admins may set user_id to record for others.",
)
async def record_event(
    request: RecordUsageEventRequest,
    identity: AuthenticatedIdentity,
    service: UsageService = Depends(get_usage_service),
) -> Response:
    await service.record_event(identity, request)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/stats",
    response_model=UsageStatsResponse,
    summary="Get usage statistics",
    description="Admins only. Counts for the last 24 hours, 7 days and all time.",
)
async def get_usage_stats(
    identity: AuthenticatedIdentity,
    service: UsageService = Depends(get_usage_service),
) -> UsageStatsResponse:
    return await service.get_usage_stats(identity)


@router.get(
    "/anomalies",
    response_model=list[UsageAnomaly],
    summary="Check usage anomalies",
    description="Admins only. Users above the event threshold in the anomaly window.",
)
async def check_anomalies(
    identity: AuthenticatedIdentity,
    service: UsageService = Depends(get_usage_service),
) -> list[UsageAnomaly]:
    return await service.check_anomalies(identity)


@router.get(
    "/events",
    response_model=list[UsageEventResponse],
    summary="List recent usage events",
    description="Admins only. Newest first.",
)
async def list_recent_events(
    identity: AuthenticatedIdentity,
    limit: int | None = Query(default=None, ge=1, description="Maximum number of events"),
    service: UsageService = Depends(get_usage_service),
) -> list[UsageEventResponse]:
    rows = await service.list_recent(identity, limit=limit)
    return [UsageEventResponse.model_validate(row) for row in rows]


@router.get(
    "/users/{user_id}/events",
    response_model=list[UsageEventResponse],
    summary="Get a user's usage events",
    description="Admins only. Newest first.",
)
async def get_user_events(
    user_id: str,
    identity: AuthenticatedIdentity,
    limit: int | None = Query(default=None, ge=1, description="Maximum number of events"),
    service: UsageService = Depends(get_usage_service),
) -> list[UsageEventResponse]:
    rows = await service.get_user_events(identity, user_id, limit=limit)
    return [UsageEventResponse.model_validate(row) for row in rows]
