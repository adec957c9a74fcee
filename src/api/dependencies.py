# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

Dependencies are used to:
- Open the progress store session for a request
- Require the caller identity resolved by AuthMiddleware
- Build domain service instances

Example:
    @router.get("/me")
    async def get_own_progress(
        identity: AuthenticatedIdentity,
        service: LearningProgressService = Depends(get_progress_service),
    ):
        ...
"""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import get_identity
from src.core.config import get_settings
from src.domains.auth.identity import Identity, require_identity
from src.domains.progress import LearningProgressService
from src.domains.usage import UsageService
from src.infrastructure.database.connection import (
    close_database,
    get_session,
    init_database,
)

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """Initialize the progress store connection."""
    await init_database(get_settings())


async def close_db() -> None:
    """Close the progress store connection."""
    await close_database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a progress store session.

    Yields:
        AsyncSession for the progress store.
    """
    async with get_session() as session:
        yield session


def require_auth(request: Request) -> Identity:
    """Require an authenticated caller.

    Runs before request body and query validation, so an unauthenticated
    call is rejected with 401 whatever else is wrong with it.

    Args:
        request: HTTP request.

    Returns:
        Identity resolved by AuthMiddleware.

    Raises:
        NotAuthenticatedError: If no identity was resolved.
    """
    return require_identity(get_identity(request))


AuthenticatedIdentity = Annotated[Identity, Depends(require_auth)]


def get_progress_service(
    db: AsyncSession = Depends(get_db),
) -> LearningProgressService:
    """Get LearningProgressService instance."""
    return LearningProgressService(db, settings=get_settings().analytics)


def get_usage_service(
    db: AsyncSession = Depends(get_db),
) -> UsageService:
    """Get UsageService instance."""
    return UsageService(db, settings=get_settings().analytics)
