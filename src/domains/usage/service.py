# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Usage analytics service.

Usage events are an operational log independent of the mastery pipeline.
This service records them and serves admin-only views:
- Usage statistics over trailing windows (24 hours, 7 days, all time)
- Anomaly detection over a short trailing window
- Raw event listings per user and across all users

All window starts are inclusive.

Usage:
    service = UsageService(db)
    await service.record_event(identity, {"event_type": "chat_message"})
    stats = await service.get_usage_stats(admin_identity)
    anomalies = await service.check_anomalies(admin_identity)
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Sequence

from pydantic import ValidationError
from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import AnalyticsSettings, get_settings
from src.domains.auth.identity import ADMIN_ROLES, Identity, require_identity, require_role
from src.domains.exceptions import InvalidInputError, OwnershipViolationError
from src.infrastructure.database.connection import DatabaseError
from src.infrastructure.database.models.usage import UsageEvent
from src.models.usage import (
    RecordUsageEventRequest,
    UsageAnomaly,
    UsageStatsResponse,
    UserUsageStats,
)
from src.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)

TODAY_WINDOW = timedelta(hours=24)
WEEK_WINDOW = timedelta(days=7)


class UsageService:
    """Service for recording usage events and serving usage analytics.

    Attributes:
        _db: Async database session.
        _settings: Analytics thresholds.
        _clock: Source of the current time.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: AnalyticsSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the usage service.

        Args:
            db: Async database session.
            settings: Analytics thresholds (defaults to application settings).
            clock: Source of the current time.
        """
        self._db = db
        self._settings = settings or get_settings().analytics
        self._clock = clock

    async def record_event(
        self,
        identity: Identity | None,
        request: RecordUsageEventRequest | Mapping[str, Any],
    ) -> None:
        """Record a usage event.

        Events are recorded for the caller. Admins may record on behalf
        of another user by setting ``user_id``; anyone else doing so is
        rejected.

        Args:
            identity: Caller identity.
            request: Event fields.

        Raises:
            NotAuthenticatedError: If no identity was resolved.
            InvalidInputError: If the event fields are malformed.
            OwnershipViolationError: If a non-admin records for someone else.
            DatabaseError: If the store rejects the write.
        """
        identity = require_identity(identity)
        request = self._validate_request(request)

        user_id = request.user_id or identity.subject_id
        if user_id != identity.subject_id and not identity.is_admin:
            logger.warning(
                "Usage event for another user rejected: subject=%s target=%s",
                identity.subject_id,
                user_id,
            )
            raise OwnershipViolationError(user_id)

        try:
            self._db.add(
                UsageEvent(
                    user_id=user_id,
                    event_type=request.event_type.value,
                    model=request.model,
                    timestamp=self._clock(),
                )
            )
            await self._db.commit()
        except SQLAlchemyError as e:
            await self._db.rollback()
            raise DatabaseError("Failed to record usage event", e) from e

        logger.debug("Usage event recorded: user=%s type=%s", user_id, request.event_type.value)

    @staticmethod
    def _validate_request(
        request: RecordUsageEventRequest | Mapping[str, Any],
    ) -> RecordUsageEventRequest:
        if isinstance(request, RecordUsageEventRequest):
            return request
        try:
            return RecordUsageEventRequest.model_validate(request)
        except ValidationError as e:
            raise InvalidInputError(
                "Invalid usage event",
                errors=e.errors(include_url=False, include_context=False),
            ) from e

    async def get_usage_stats(self, identity: Identity | None) -> UsageStatsResponse:
        """Count usage events over trailing windows.

        Returns totals for the last 24 hours, the last 7 days and all
        time, the same three counts per user (with each user's last
        event time), and per-event-type counts for the last 24 hours.

        Raises:
            PermissionDeniedError: If the caller is not an admin.
        """
        require_role(identity, ADMIN_ROLES)
        now = self._clock()
        today_start = now - TODAY_WINDOW
        week_start = now - WEEK_WINDOW

        today_count = func.sum(case((UsageEvent.timestamp >= today_start, 1), else_=0))
        week_count = func.sum(case((UsageEvent.timestamp >= week_start, 1), else_=0))

        result = await self._db.execute(
            select(
                UsageEvent.user_id,
                func.count(UsageEvent.id).label("total"),
                today_count.label("today"),
                week_count.label("week"),
                func.max(UsageEvent.timestamp).label("last_active"),
            ).group_by(UsageEvent.user_id)
        )

        stats = UsageStatsResponse(generated_at=now)
        for row in result.all():
            user_stats = UserUsageStats(
                total=int(row.total),
                today=int(row.today or 0),
                week=int(row.week or 0),
                last_active=ensure_utc(row.last_active),
            )
            stats.user_stats[row.user_id] = user_stats
            stats.total_events_all_time += user_stats.total
            stats.total_events_today += user_stats.today
            stats.total_events_week += user_stats.week

        result = await self._db.execute(
            select(UsageEvent.event_type, func.count(UsageEvent.id).label("count"))
            .where(UsageEvent.timestamp >= today_start)
            .group_by(UsageEvent.event_type)
        )
        stats.type_stats = {row.event_type: int(row.count) for row in result.all()}

        return stats

    async def check_anomalies(self, identity: Identity | None) -> list[UsageAnomaly]:
        """Flag users with too many events in the anomaly window.

        A user is flagged when they have strictly more than
        ``anomaly_event_threshold`` events in the last
        ``anomaly_window_minutes`` minutes. Highest counts first.

        Raises:
            PermissionDeniedError: If the caller is not an admin.
        """
        require_role(identity, ADMIN_ROLES)
        window_start = self._clock() - timedelta(minutes=self._settings.anomaly_window_minutes)
        event_count = func.count(UsageEvent.id)

        result = await self._db.execute(
            select(UsageEvent.user_id, event_count.label("count"))
            .where(UsageEvent.timestamp >= window_start)
            .group_by(UsageEvent.user_id)
            .having(event_count > self._settings.anomaly_event_threshold)
            .order_by(event_count.desc())
        )
        anomalies = [UsageAnomaly(user_id=row.user_id, count=int(row.count)) for row in result.all()]

        for anomaly in anomalies:
            logger.warning(
                "Usage anomaly: user=%s events=%d window_minutes=%d",
                anomaly.user_id,
                anomaly.count,
                self._settings.anomaly_window_minutes,
            )

        return anomalies

    async def get_user_events(
        self,
        identity: Identity | None,
        user_id: str,
        limit: int | None = None,
    ) -> Sequence[UsageEvent]:
        """Get a user's most recent usage events, newest first.

        Raises:
            PermissionDeniedError: If the caller is not an admin.
        """
        require_role(identity, ADMIN_ROLES)
        limit = self._resolve_limit(limit, self._settings.default_usage_event_limit)
        result = await self._db.execute(
            select(UsageEvent)
            .where(UsageEvent.user_id == user_id)
            .order_by(UsageEvent.timestamp.desc())
            .limit(limit)
        )
        return result.scalars().all()

    async def list_recent(
        self,
        identity: Identity | None,
        limit: int | None = None,
    ) -> Sequence[UsageEvent]:
        """Get the most recent usage events across all users.

        Raises:
            PermissionDeniedError: If the caller is not an admin.
        """
        require_role(identity, ADMIN_ROLES)
        limit = self._resolve_limit(limit, self._settings.default_recent_usage_limit)
        result = await self._db.execute(
            select(UsageEvent).order_by(UsageEvent.timestamp.desc()).limit(limit)
        )
        return result.scalars().all()

    @staticmethod
    def _resolve_limit(limit: int | None, default: int) -> int:
        if limit is None:
            return default
        if limit < 1:
            raise InvalidInputError(f"limit must be positive, got {limit}")
        return limit
