# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Caller identity and role gate.

The identity provider is external. Every domain operation receives the
resolved caller as an explicit Identity value (or None when the caller
could not be resolved) and checks it with the helpers below before
touching the store.

Example:
    >>> identity = Identity(subject_id="user_123", role=Role.TEACHER)
    >>> require_role(identity, STAFF_ROLES)
    Identity(subject_id='user_123', role=<Role.TEACHER: 'teacher'>)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from src.domains.exceptions import (
    NotAuthenticatedError,
    PermissionDeniedError,
    StudentNotFoundError,
)

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Role assigned to a subject by the identity provider."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"

    @classmethod
    def from_claim(cls, value: str | None) -> "Role | None":
        """Parse a role claim, returning None for missing or unknown roles."""
        if not value:
            return None
        try:
            return cls(value.lower())
        except ValueError:
            return None


STAFF_ROLES = frozenset({Role.TEACHER, Role.ADMIN})
ADMIN_ROLES = frozenset({Role.ADMIN})


@dataclass(frozen=True)
class Identity:
    """Authenticated caller.

    Attributes:
        subject_id: Subject id issued by the identity provider.
        role: Role of the subject, None when the provider assigned none.
    """

    subject_id: str
    role: Role | None = None

    @property
    def is_staff(self) -> bool:
        """Check if the caller may read other students' data."""
        return self.role in STAFF_ROLES

    @property
    def is_admin(self) -> bool:
        """Check if the caller is an admin."""
        return self.role == Role.ADMIN


def require_identity(identity: Identity | None) -> Identity:
    """Require a resolved identity.

    Args:
        identity: Caller identity or None.

    Returns:
        The identity.

    Raises:
        NotAuthenticatedError: If no identity was resolved.
    """
    if identity is None or not identity.subject_id:
        raise NotAuthenticatedError()
    return identity


def require_role(identity: Identity | None, roles: Iterable[Role]) -> Identity:
    """Require a resolved identity holding one of the given roles.

    Args:
        identity: Caller identity or None.
        roles: Allowed roles.

    Returns:
        The identity.

    Raises:
        NotAuthenticatedError: If no identity was resolved.
        PermissionDeniedError: If the role is not allowed.
    """
    identity = require_identity(identity)
    allowed = frozenset(roles)
    if identity.role not in allowed:
        logger.warning(
            "Permission denied: subject=%s role=%s required=%s",
            identity.subject_id,
            identity.role.value if identity.role else None,
            sorted(role.value for role in allowed),
        )
        raise PermissionDeniedError(sorted(role.value for role in allowed))
    return identity


def require_student_access(identity: Identity | None, student_id: str) -> Identity:
    """Require that the caller may read the given student's data.

    Staff may read any student. Everyone else may only read their own
    data; asking for someone else's is reported as not found.

    Args:
        identity: Caller identity or None.
        student_id: Student whose data is requested.

    Returns:
        The identity.

    Raises:
        NotAuthenticatedError: If no identity was resolved.
        StudentNotFoundError: If a non-staff caller asks for another student.
    """
    identity = require_identity(identity)
    if identity.is_staff or identity.subject_id == student_id:
        return identity
    logger.warning(
        "Cross-student lookup hidden: subject=%s requested=%s",
        identity.subject_id,
        student_id,
    )
    raise StudentNotFoundError(student_id)
