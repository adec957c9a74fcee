# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Usage event model used by operational analytics."""

from datetime import datetime

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, IdMixin
from src.utils.datetime import utc_now


class UsageEvent(IdMixin, Base):
    """A billable or observable action taken by a user. Append-only."""

    __tablename__ = "usage_events"

    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    event_type: Mapped[str] = mapped_column(String(32), nullable=False)
    model: Mapped[str | None] = mapped_column(String(255), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        Index("ix_usage_events_timestamp", "timestamp"),
        Index("ix_usage_events_user_ts", "user_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<UsageEvent(user_id={self.user_id!r}, type={self.event_type!r})>"
