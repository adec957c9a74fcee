# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions raised by the progress and usage domain services.

This module defines the exception hierarchy shared by all domains:
- AnalyticsServiceError: Base exception carrying a machine-readable code
- NotAuthenticatedError: No resolvable identity
- PermissionDeniedError: Identity lacks a required role
- OwnershipViolationError: Mutation targets another subject's data
- StudentNotFoundError: Lookup by id found nothing the caller may see
- InvalidInputError: Input rejected at the service boundary

Store failures are reported as DatabaseError from
src.infrastructure.database.connection.
"""

from typing import Any


class AnalyticsServiceError(Exception):
    """Base exception for domain service operations.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code.
        details: Optional additional error context.
    """

    def __init__(
        self,
        message: str,
        code: str = "analytics_error",
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class NotAuthenticatedError(AnalyticsServiceError):
    """Raised when an operation is called without an identity."""

    def __init__(self) -> None:
        super().__init__(message="Not authenticated", code="not_authenticated")


class PermissionDeniedError(AnalyticsServiceError):
    """Raised when the caller's role is not allowed for an operation."""

    def __init__(self, required_roles: list[str]):
        super().__init__(
            message="Insufficient permissions",
            code="permission_denied",
            details={"required_roles": required_roles},
        )
        self.required_roles = required_roles


class OwnershipViolationError(AnalyticsServiceError):
    """Raised when a mutation targets data owned by another subject."""

    def __init__(self, subject_id: str):
        super().__init__(
            message="Cannot modify data owned by another user",
            code="ownership_violation",
        )
        self.subject_id = subject_id


class StudentNotFoundError(AnalyticsServiceError):
    """Raised when a student lookup finds nothing the caller may see.

    Also raised when a caller without an elevated role asks for another
    student's data, so existence is not revealed.
    """

    def __init__(self, student_id: str):
        super().__init__(
            message=f"Student not found: {student_id}",
            code="student_not_found",
        )
        self.student_id = student_id


class InvalidInputError(AnalyticsServiceError):
    """Raised when input fails validation before anything is written."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(
            message=message,
            code="invalid_input",
            details={"errors": errors or []},
        )
        self.errors = errors or []
