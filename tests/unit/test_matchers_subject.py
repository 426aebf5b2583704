"""
Unit tests for subject matching.

Tests cover:
- Role, functional role, user id and platform admin checks
- Empty lists and unset parts matching any subject
- Mismatch reasons
- Building subjects from membership records
"""

from types import SimpleNamespace

import pytest

from warden.matchers.subject import (
    SubjectConditionMatcher,
    create_subject_context_from_membership,
    get_subject_mismatch_reason,
    matches_all_subject_conditions,
    matches_any_subject_condition,
    matches_functional_roles,
    matches_subject_condition,
)
from warden.schema import BaseRole, FunctionalRole, SubjectCondition, SubjectContext


@pytest.fixture
def accountant() -> SubjectContext:
    return SubjectContext(
        user_id="user-7",
        role=BaseRole.MEMBER,
        functional_roles=[FunctionalRole.ACCOUNTANT],
    )


class TestMatchesSubjectCondition:
    """Tests for matches_subject_condition."""

    def test_empty_condition_matches(self, accountant) -> None:
        assert matches_subject_condition(SubjectCondition(), accountant)

    def test_empty_lists_match(self, accountant) -> None:
        condition = SubjectCondition(roles=[], functional_roles=[], user_ids=[])
        assert matches_subject_condition(condition, accountant)

    def test_role_match(self, accountant) -> None:
        condition = SubjectCondition(roles=[BaseRole.ADMIN, BaseRole.MEMBER])
        assert matches_subject_condition(condition, accountant)

    def test_role_mismatch(self, accountant) -> None:
        assert not matches_subject_condition(SubjectCondition(roles=[BaseRole.OWNER]), accountant)

    def test_functional_role_overlap(self, accountant) -> None:
        condition = SubjectCondition(
            functional_roles=[FunctionalRole.CONTROLLER, FunctionalRole.ACCOUNTANT]
        )
        assert matches_subject_condition(condition, accountant)

    def test_functional_role_none_held(self) -> None:
        subject = SubjectContext(user_id="u", role=BaseRole.MEMBER)
        condition = SubjectCondition(functional_roles=[FunctionalRole.CONTROLLER])
        assert not matches_subject_condition(condition, subject)

    def test_user_ids(self, accountant) -> None:
        assert matches_subject_condition(SubjectCondition(user_ids=["user-7"]), accountant)
        assert not matches_subject_condition(SubjectCondition(user_ids=["user-8"]), accountant)

    def test_platform_admin_flag(self, accountant) -> None:
        assert matches_subject_condition(SubjectCondition(is_platform_admin=False), accountant)
        assert not matches_subject_condition(SubjectCondition(is_platform_admin=True), accountant)

    def test_all_parts_anded(self, accountant) -> None:
        condition = SubjectCondition(roles=[BaseRole.MEMBER], user_ids=["someone-else"])
        assert not matches_subject_condition(condition, accountant)


class TestFunctionalRoleHelper:
    """Direct helper edge cases."""

    def test_empty_required_is_false(self) -> None:
        assert not matches_functional_roles([], [FunctionalRole.CONTROLLER])

    def test_overlap(self) -> None:
        assert matches_functional_roles(
            [FunctionalRole.PERIOD_ADMIN],
            [FunctionalRole.ACCOUNTANT, FunctionalRole.PERIOD_ADMIN],
        )


class TestSubjectConditionLists:
    """any/all helpers over several conditions."""

    def test_any(self, accountant) -> None:
        conditions = [SubjectCondition(roles=[BaseRole.OWNER]), SubjectCondition(user_ids=["user-7"])]
        assert matches_any_subject_condition(conditions, accountant)
        assert not matches_all_subject_conditions(conditions, accountant)

    def test_empty_lists(self, accountant) -> None:
        assert not matches_any_subject_condition([], accountant)
        assert matches_all_subject_conditions([], accountant)


class TestSubjectMismatchReason:
    """Tests for get_subject_mismatch_reason."""

    def test_none_when_matching(self, accountant) -> None:
        assert get_subject_mismatch_reason(SubjectCondition(), accountant) is None

    def test_role(self, accountant) -> None:
        condition = SubjectCondition(roles=[BaseRole.OWNER, BaseRole.ADMIN])
        assert get_subject_mismatch_reason(condition, accountant) == (
            "User role 'member' is not in allowed roles: [owner, admin]"
        )

    def test_functional_roles(self, accountant) -> None:
        condition = SubjectCondition(functional_roles=[FunctionalRole.CONTROLLER])
        assert get_subject_mismatch_reason(condition, accountant) == (
            "User functional roles [accountant] do not include any of: [controller]"
        )

    def test_functional_roles_none_held(self) -> None:
        subject = SubjectContext(user_id="u", role=BaseRole.MEMBER)
        condition = SubjectCondition(functional_roles=[FunctionalRole.CONTROLLER])
        assert get_subject_mismatch_reason(condition, subject) == (
            "User functional roles [none] do not include any of: [controller]"
        )

    def test_user_id_does_not_leak_allowed_ids(self, accountant) -> None:
        reason = get_subject_mismatch_reason(SubjectCondition(user_ids=["secret-id"]), accountant)
        assert reason == "User ID 'user-7' is not in allowed user IDs"
        assert "secret-id" not in reason

    def test_platform_admin(self, accountant) -> None:
        reason = get_subject_mismatch_reason(SubjectCondition(is_platform_admin=True), accountant)
        assert reason == "User is non-platform admin but condition requires platform admin"

    def test_matcher_delegates(self, accountant) -> None:
        matcher = SubjectConditionMatcher()
        condition = SubjectCondition(roles=[BaseRole.VIEWER])
        assert not matcher.matches(condition, accountant)
        assert matcher.mismatch_reason(condition, accountant).startswith("User role 'member'")


class TestSubjectFromMembership:
    """Tests for create_subject_context_from_membership."""

    def test_flags_become_functional_roles(self) -> None:
        membership = SimpleNamespace(
            user_id="user-1",
            role="admin",
            is_controller=True,
            is_finance_manager=False,
            is_accountant=True,
            is_period_admin=False,
            is_consolidation_manager=False,
        )

        subject = create_subject_context_from_membership(membership, is_platform_admin=False)

        assert subject.user_id == "user-1"
        assert subject.role == BaseRole.ADMIN
        assert subject.functional_roles == [FunctionalRole.CONTROLLER, FunctionalRole.ACCOUNTANT]
        assert subject.is_platform_admin is False

    def test_missing_flags_default_false(self) -> None:
        membership = SimpleNamespace(user_id=42, role="viewer")

        subject = create_subject_context_from_membership(membership, is_platform_admin=True)

        assert subject.user_id == "42"
        assert subject.functional_roles == []
        assert subject.is_platform_admin is True
