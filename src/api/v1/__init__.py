# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    progress: Learning interactions, topic mastery and student progress.
    usage: Usage event log, statistics and anomaly checks.
"""

from fastapi import APIRouter

from src.api.v1 import progress, usage

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(progress.router, prefix="/progress", tags=["Progress"])
router.include_router(usage.router, prefix="/usage", tags=["Usage"])

__all__ = ["router"]
