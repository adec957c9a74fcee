# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package.

Settings are Pydantic models loaded from environment variables, each
subsettings group under its own prefix (DB_, JWT_, ANALYTICS_, CORS_).

Example:
    >>> from src.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.analytics.inactivity_days
    7
"""

from src.core.config.settings import (
    AnalyticsSettings,
    CORSSettings,
    DatabaseSettings,
    JWTSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "JWTSettings",
    "AnalyticsSettings",
    "CORSSettings",
]
