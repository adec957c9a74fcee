# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

Exports:
    AuthMiddleware: Resolves the caller identity from a bearer token.
    get_identity: Reads the resolved identity from the request.
"""

from src.api.middleware.auth import AuthMiddleware, get_identity

__all__ = [
    "AuthMiddleware",
    "get_identity",
]
