# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication and authorization helpers.

Identities are issued by an external provider. This package verifies
provider tokens and gates domain operations on the caller's role.

Exports:
    Identity: Authenticated caller (subject id and role).
    Role: Roles known to the role gate.
    JWTManager: Provider token verification.
    require_identity, require_role, require_student_access: Role gate checks.
"""

from src.domains.auth.identity import (
    ADMIN_ROLES,
    STAFF_ROLES,
    Identity,
    Role,
    require_identity,
    require_role,
    require_student_access,
)
from src.domains.auth.jwt import (
    InvalidTokenError,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)

__all__ = [
    "Identity",
    "Role",
    "STAFF_ROLES",
    "ADMIN_ROLES",
    "require_identity",
    "require_role",
    "require_student_access",
    "JWTManager",
    "TokenPayload",
    "TokenExpiredError",
    "InvalidTokenError",
]
