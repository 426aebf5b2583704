"""
Unit tests for the built-in system policies.

Tests cover:
- Shape of the system policy set
- Decisions the system policies produce for typical members
"""

import pytest

from warden.matchers.resource import (
    create_journal_entry_resource_context,
    create_resource_context,
)
from warden.policy import PolicyEngine
from warden.schema import (
    BaseRole,
    Decision,
    FunctionalRole,
    PeriodStatus,
    PolicyEffect,
    PolicyEvaluationContext,
    ResourceType,
    SubjectContext,
)
from warden.seeds import SYSTEM_POLICY_PRIORITIES, create_system_policies


@pytest.fixture
def policies():
    return create_system_policies("org-1")


def _context(role, action, resource, functional_roles=(), is_platform_admin=False):
    return PolicyEvaluationContext(
        subject=SubjectContext(
            user_id="u1",
            role=role,
            functional_roles=list(functional_roles),
            is_platform_admin=is_platform_admin,
        ),
        resource=resource,
        action=action,
    )


class TestSystemPolicySet:
    """Structure of the seeded policies."""

    def test_eight_policies(self, policies) -> None:
        assert len(policies) == 8

    def test_flags(self, policies) -> None:
        for policy in policies:
            assert policy.is_system_policy
            assert policy.is_active
            assert policy.organization_id == "org-1"
            assert not policy.can_modify()

    def test_unique_ids(self, policies) -> None:
        assert len({p.id for p in policies}) == 8

    def test_fresh_ids_per_call(self, policies) -> None:
        again = create_system_policies("org-1")
        assert {p.id for p in policies}.isdisjoint({p.id for p in again})

    def test_priorities_from_table(self, policies) -> None:
        assert {p.priority for p in policies} == set(SYSTEM_POLICY_PRIORITIES.values())

    def test_soft_close_allow_above_soft_close_deny(self) -> None:
        assert (
            SYSTEM_POLICY_PRIORITIES["SOFTCLOSE_CONTROLLER_ACCESS"]
            > SYSTEM_POLICY_PRIORITIES["SOFTCLOSE_DEFAULT_DENY"]
        )

    def test_effects(self, policies) -> None:
        denies = [p.name for p in policies if p.effect == PolicyEffect.DENY]
        assert denies == [
            "Prevent Modifications to Locked Periods",
            "Prevent Modifications to Closed Periods",
            "Prevent Entries in Future Periods",
            "Restrict SoftClose Period Access",
        ]


class TestSystemPolicyDecisions:
    """Decisions produced by the system set alone."""

    def test_owner_can_do_anything_in_open_period(self, policies) -> None:
        resource = create_journal_entry_resource_context(period_status=PeriodStatus.OPEN)
        result = PolicyEngine().evaluate_policies(
            policies, _context(BaseRole.OWNER, "journal_entry:post", resource)
        )
        assert result.decision == Decision.ALLOW
        assert result.matched_policies[0].name == "Organization Owner Full Access"

    def test_locked_period_blocks_owner(self, policies) -> None:
        resource = create_journal_entry_resource_context(period_status=PeriodStatus.LOCKED)
        result = PolicyEngine().evaluate_policies(
            policies, _context(BaseRole.OWNER, "journal_entry:update", resource)
        )
        assert result.denied_by_policy
        assert result.reason == "Denied by policy: Prevent Modifications to Locked Periods"

    def test_reading_locked_period_is_not_blocked(self, policies) -> None:
        resource = create_journal_entry_resource_context(period_status=PeriodStatus.LOCKED)
        result = PolicyEngine().evaluate_policies(
            policies, _context(BaseRole.VIEWER, "journal_entry:read", resource)
        )
        assert result.decision == Decision.ALLOW
        assert result.matched_policies[0].name == "Viewer Read-Only Access"

    def test_future_period_allows_reverse(self, policies) -> None:
        """The future-period deny covers create/update/post, not reverse."""
        resource = create_journal_entry_resource_context(period_status=PeriodStatus.FUTURE)
        engine = PolicyEngine()
        assert engine.would_deny(policies, _context(BaseRole.OWNER, "journal_entry:post", resource))
        assert not engine.would_deny(
            policies, _context(BaseRole.OWNER, "journal_entry:reverse", resource)
        )

    def test_viewer_cannot_write(self, policies) -> None:
        resource = create_resource_context(ResourceType.COMPANY)
        result = PolicyEngine().evaluate_policies(
            policies, _context(BaseRole.VIEWER, "company:update", resource)
        )
        assert result.default_deny

    def test_member_without_grants_default_denied(self, policies) -> None:
        resource = create_resource_context(ResourceType.REPORT)
        result = PolicyEngine().evaluate_policies(
            policies, _context(BaseRole.MEMBER, "report:read", resource)
        )
        assert result.default_deny

    def test_soft_close_deny_applies_to_controllers(self, policies) -> None:
        """Deny policies are scanned first, so the controller allow never decides."""
        resource = create_journal_entry_resource_context(period_status=PeriodStatus.SOFT_CLOSE)
        context = _context(
            BaseRole.MEMBER,
            "journal_entry:post",
            resource,
            functional_roles=[FunctionalRole.CONTROLLER],
        )

        result = PolicyEngine().evaluate_policies(policies, context)
        matching = PolicyEngine().find_matching_policies(policies, context)

        assert result.denied_by_policy
        assert "Allow SoftClose Period Access for Controllers" in [
            m.policy.name for m in matching
        ]

    def test_platform_admin(self, policies) -> None:
        resource = create_resource_context(ResourceType.ORGANIZATION)
        result = PolicyEngine().evaluate_policies(
            policies,
            _context(BaseRole.MEMBER, "organization:delete", resource, is_platform_admin=True),
        )
        assert result.allowed
        assert result.matched_policies[0].name == "Platform Admin Full Access"
