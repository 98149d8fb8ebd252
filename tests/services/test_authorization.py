import pytest

from app.records.models.db_models import Role
from app.records.services.authorization import (
    POLICY, DenyReason, authorize, check, roles_for
)
from app.records.services.errors import AuthenticationError, AuthorizationError


class TestCheck:

    def test_allows_role_in_set(self, teacher_user):
        decision = check(teacher_user, {Role.ADMIN, Role.TEACHER})
        assert decision.allowed
        assert decision.reason is None

    def test_missing_subject_is_unauthenticated(self):
        decision = check(None, {Role.ADMIN})
        assert not decision
        assert decision.reason is DenyReason.UNAUTHENTICATED
        assert decision.message == "User not authenticated"

    def test_role_outside_set_is_forbidden(self, student_user):
        decision = check(student_user, {Role.ADMIN, Role.TEACHER})
        assert not decision
        assert decision.reason is DenyReason.FORBIDDEN
        assert decision.message == "Insufficient permissions"

    def test_empty_role_set_is_rejected(self, admin_user):
        with pytest.raises(ValueError):
            check(admin_user, set())

    @pytest.mark.parametrize("role", list(Role))
    def test_decision_depends_only_on_role(self, role, admin_user):
        """Two subjects with the same role always get the same answer."""
        first = admin_user.model_copy(update={"role": role})
        second = admin_user.model_copy(update={"role": role, "email": "other@school.test"})
        for allowed in POLICY.values():
            assert check(first, allowed) == check(second, allowed)


class TestPolicyTable:

    @pytest.mark.parametrize("operation", ["class:create", "class:update", "class:delete", "student:create", "student:delete"])
    def test_admin_only_operations(self, operation):
        assert roles_for(operation) == {Role.ADMIN}

    @pytest.mark.parametrize("operation", ["enrollment:create", "enrollment:delete", "attendance:mark", "student:update"])
    def test_staff_operations(self, operation):
        assert roles_for(operation) == {Role.ADMIN, Role.TEACHER}

    def test_students_cannot_mutate_anything(self):
        assert all(Role.STUDENT not in roles for roles in POLICY.values())

    def test_unknown_operation_raises(self):
        with pytest.raises(KeyError, match="attendance:erase"):
            roles_for("attendance:erase")


class TestAuthorize:

    def test_returns_subject_when_allowed(self, teacher_user):
        assert authorize(teacher_user, "attendance:mark") is teacher_user

    def test_raises_authentication_error_without_subject(self):
        with pytest.raises(AuthenticationError, match="User not authenticated"):
            authorize(None, "attendance:mark")

    def test_raises_authorization_error_for_student(self, student_user):
        with pytest.raises(AuthorizationError, match="Insufficient permissions"):
            authorize(student_user, "enrollment:create")

    def test_teacher_cannot_create_classes(self, teacher_user):
        with pytest.raises(AuthorizationError):
            authorize(teacher_user, "class:create")
