# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for caller identity and role checks."""

import pytest

from src.domains.auth.identity import (
    ADMIN_ROLES,
    STAFF_ROLES,
    Identity,
    Role,
    require_identity,
    require_role,
    require_student_access,
)
from src.domains.exceptions import (
    NotAuthenticatedError,
    PermissionDeniedError,
    StudentNotFoundError,
)


@pytest.mark.unit
class TestRole:
    """Tests for Role claim parsing."""

    @pytest.mark.parametrize(
        "claim,expected",
        [
            ("student", Role.STUDENT),
            ("Teacher", Role.TEACHER),
            ("ADMIN", Role.ADMIN),
            ("parent", None),
            ("", None),
            (None, None),
        ],
    )
    def test_from_claim(self, claim: str | None, expected: Role | None) -> None:
        """Test that unknown or missing claims map to None."""
        assert Role.from_claim(claim) == expected


@pytest.mark.unit
class TestRequireIdentity:
    """Tests for require_identity."""

    def test_none_is_unauthenticated(self) -> None:
        with pytest.raises(NotAuthenticatedError):
            require_identity(None)

    def test_empty_subject_is_unauthenticated(self) -> None:
        with pytest.raises(NotAuthenticatedError):
            require_identity(Identity(subject_id=""))

    def test_returns_identity(self, student: Identity) -> None:
        assert require_identity(student) is student


@pytest.mark.unit
class TestRequireRole:
    """Tests for require_role."""

    def test_staff_roles(self, teacher: Identity, admin: Identity) -> None:
        """Test that teachers and admins pass the staff gate."""
        assert require_role(teacher, STAFF_ROLES) is teacher
        assert require_role(admin, STAFF_ROLES) is admin

    def test_student_denied(self, student: Identity) -> None:
        """Test that students fail the staff gate with the required roles listed."""
        with pytest.raises(PermissionDeniedError) as exc_info:
            require_role(student, STAFF_ROLES)

        assert exc_info.value.code == "permission_denied"
        assert exc_info.value.details == {"required_roles": ["admin", "teacher"]}

    def test_teacher_denied_admin_gate(self, teacher: Identity) -> None:
        with pytest.raises(PermissionDeniedError):
            require_role(teacher, ADMIN_ROLES)

    def test_missing_role_denied(self) -> None:
        """Test that an identity without a role has no elevated access."""
        with pytest.raises(PermissionDeniedError):
            require_role(Identity(subject_id="someone"), STAFF_ROLES)

    def test_unauthenticated_before_role(self) -> None:
        with pytest.raises(NotAuthenticatedError):
            require_role(None, ADMIN_ROLES)


@pytest.mark.unit
class TestRequireStudentAccess:
    """Tests for require_student_access."""

    def test_own_data(self, student: Identity) -> None:
        assert require_student_access(student, student.subject_id) is student

    def test_other_student_is_not_found(self, student: Identity) -> None:
        """Test that another student's data is reported as not found."""
        with pytest.raises(StudentNotFoundError) as exc_info:
            require_student_access(student, "student-2")

        assert exc_info.value.student_id == "student-2"

    def test_staff_any_student(self, teacher: Identity) -> None:
        assert require_student_access(teacher, "student-2") is teacher

    def test_identity_flags(self, student: Identity, teacher: Identity, admin: Identity) -> None:
        assert not student.is_staff
        assert teacher.is_staff and not teacher.is_admin
        assert admin.is_staff and admin.is_admin
