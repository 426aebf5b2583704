"""
Subject matching.

A SubjectCondition matches when every part that is set matches:
    - roles: the subject's base role is in the list
    - functional_roles: the subject holds at least one listed role
    - user_ids: the subject's user id is in the list
    - is_platform_admin: the subject's flag equals the condition's

Unset parts and empty lists match any subject.
"""

from typing import Any, Iterable

from warden.matchers.base import SubjectMatcher
from warden.schema import BaseRole, FunctionalRole, SubjectCondition, SubjectContext


# Membership flag -> functional role
_MEMBERSHIP_FLAGS = (
    ("is_controller", FunctionalRole.CONTROLLER),
    ("is_finance_manager", FunctionalRole.FINANCE_MANAGER),
    ("is_accountant", FunctionalRole.ACCOUNTANT),
    ("is_period_admin", FunctionalRole.PERIOD_ADMIN),
    ("is_consolidation_manager", FunctionalRole.CONSOLIDATION_MANAGER),
)


def matches_roles(allowed: Iterable[BaseRole], role: BaseRole) -> bool:
    return role in allowed


def matches_functional_roles(
    required: Iterable[FunctionalRole],
    held: Iterable[FunctionalRole],
) -> bool:
    """True if any held role is among the required ones."""
    held_set = set(held)
    return any(role in held_set for role in required)


def matches_user_ids(allowed: Iterable[str], user_id: str) -> bool:
    return user_id in allowed


def matches_platform_admin(required: bool, actual: bool) -> bool:
    return required == actual


def matches_subject_condition(condition: SubjectCondition, subject: SubjectContext) -> bool:
    if condition.roles and not matches_roles(condition.roles, subject.role):
        return False

    if condition.functional_roles and not matches_functional_roles(
        condition.functional_roles, subject.functional_roles
    ):
        return False

    if condition.user_ids and not matches_user_ids(condition.user_ids, subject.user_id):
        return False

    if condition.is_platform_admin is not None and not matches_platform_admin(
        condition.is_platform_admin, subject.is_platform_admin
    ):
        return False

    return True


def matches_any_subject_condition(
    conditions: Iterable[SubjectCondition],
    subject: SubjectContext,
) -> bool:
    """True if at least one condition matches (False for no conditions)."""
    return any(matches_subject_condition(c, subject) for c in conditions)


def matches_all_subject_conditions(
    conditions: Iterable[SubjectCondition],
    subject: SubjectContext,
) -> bool:
    """True if every condition matches (True for no conditions)."""
    return all(matches_subject_condition(c, subject) for c in conditions)


def get_subject_mismatch_reason(
    condition: SubjectCondition,
    subject: SubjectContext,
) -> str | None:
    """
    Describe why a subject does not match a condition.

    Allowed user ids are never included in the message.

    Returns:
        Description of the first failing part, or None if the subject matches
    """
    if condition.roles and not matches_roles(condition.roles, subject.role):
        allowed = ", ".join(r.value for r in condition.roles)
        return f"User role '{subject.role.value}' is not in allowed roles: [{allowed}]"

    if condition.functional_roles and not matches_functional_roles(
        condition.functional_roles, subject.functional_roles
    ):
        held = ", ".join(r.value for r in subject.functional_roles) or "none"
        required = ", ".join(r.value for r in condition.functional_roles)
        return f"User functional roles [{held}] do not include any of: [{required}]"

    if condition.user_ids and not matches_user_ids(condition.user_ids, subject.user_id):
        return f"User ID '{subject.user_id}' is not in allowed user IDs"

    if condition.is_platform_admin is not None and not matches_platform_admin(
        condition.is_platform_admin, subject.is_platform_admin
    ):
        expected = "platform admin" if condition.is_platform_admin else "non-platform admin"
        actual = "platform admin" if subject.is_platform_admin else "non-platform admin"
        return f"User is {actual} but condition requires {expected}"

    return None


def create_subject_context_from_membership(
    membership: Any,
    is_platform_admin: bool,
) -> SubjectContext:
    """
    Build a SubjectContext from an organization membership record.

    The membership must expose ``user_id``, ``role`` and the boolean
    ``is_controller`` / ``is_finance_manager`` / ``is_accountant`` /
    ``is_period_admin`` / ``is_consolidation_manager`` flags.
    """
    functional_roles = [
        role for flag, role in _MEMBERSHIP_FLAGS if getattr(membership, flag, False)
    ]
    return SubjectContext(
        user_id=str(membership.user_id),
        role=BaseRole(membership.role),
        functional_roles=functional_roles,
        is_platform_admin=is_platform_admin,
    )


class SubjectConditionMatcher(SubjectMatcher):
    """Default subject matcher: roles, functional roles, user ids, platform admin."""

    def matches(self, condition: SubjectCondition, subject: SubjectContext) -> bool:
        return matches_subject_condition(condition, subject)

    def mismatch_reason(
        self,
        condition: SubjectCondition,
        subject: SubjectContext,
    ) -> str | None:
        return get_subject_mismatch_reason(condition, subject)
