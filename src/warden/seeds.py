"""
Built-in system policies.

Every organization starts with the same set of system policies. They are
flagged is_system_policy=True (cannot be modified or deleted) and get fresh
ids on every call.

Note on evaluation order: deny policies are always scanned before allow
policies, so the period protection denies below apply to every subject whose
base role they list, including owners and platform admins who also hold one
of those roles.
"""

import uuid
from typing import Any

from warden.schema import (
    ActionCondition,
    AuthorizationPolicy,
    BaseRole,
    FunctionalRole,
    PeriodStatus,
    PolicyEffect,
    ResourceAttributes,
    ResourceCondition,
    ResourceType,
    SubjectCondition,
)


SYSTEM_POLICY_PRIORITIES = {
    "PLATFORM_ADMIN_OVERRIDE": 1000,
    "LOCKED_PERIOD_PROTECTION": 999,
    "CLOSED_PERIOD_PROTECTION": 998,
    "FUTURE_PERIOD_PROTECTION": 997,
    "SOFTCLOSE_CONTROLLER_ACCESS": 960,
    "SOFTCLOSE_DEFAULT_DENY": 940,
    "OWNER_FULL_ACCESS": 900,
    "VIEWER_READ_ONLY": 100,
}

ALL_BASE_ROLES = [BaseRole.OWNER, BaseRole.ADMIN, BaseRole.MEMBER, BaseRole.VIEWER]

JOURNAL_ENTRY_WRITE_ACTIONS = [
    "journal_entry:create",
    "journal_entry:update",
    "journal_entry:post",
    "journal_entry:reverse",
]

VIEWER_ACTIONS = [
    "company:read",
    "account:read",
    "journal_entry:read",
    "fiscal_period:read",
    "consolidation_group:read",
    "report:read",
    "report:export",
    "exchange_rate:read",
]


def _system_policy(organization_id: str, **fields: Any) -> AuthorizationPolicy:
    return AuthorizationPolicy(
        id=str(uuid.uuid4()),
        organization_id=organization_id,
        is_system_policy=True,
        is_active=True,
        **fields,
    )


def _period_resource(status: PeriodStatus) -> ResourceCondition:
    return ResourceCondition(
        type=ResourceType.JOURNAL_ENTRY,
        attributes=ResourceAttributes(period_status=[status]),
    )


def create_system_policies(organization_id: str) -> list[AuthorizationPolicy]:
    """
    Create the system policy set for an organization.

    Args:
        organization_id: The organization the policies belong to

    Returns:
        The eight system policies, highest-level grants first
    """
    return [
        _system_policy(
            organization_id,
            name="Platform Admin Full Access",
            description="Platform administrators have unrestricted access to all resources and actions",
            subject=SubjectCondition(is_platform_admin=True),
            resource=ResourceCondition(type="*"),
            action=ActionCondition(actions=["*"]),
            effect=PolicyEffect.ALLOW,
            priority=SYSTEM_POLICY_PRIORITIES["PLATFORM_ADMIN_OVERRIDE"],
        ),
        _system_policy(
            organization_id,
            name="Organization Owner Full Access",
            description="Organization owners have full access to all resources within their organization",
            subject=SubjectCondition(roles=[BaseRole.OWNER]),
            resource=ResourceCondition(type="*"),
            action=ActionCondition(actions=["*"]),
            effect=PolicyEffect.ALLOW,
            priority=SYSTEM_POLICY_PRIORITIES["OWNER_FULL_ACCESS"],
        ),
        _system_policy(
            organization_id,
            name="Viewer Read-Only Access",
            description="Viewers can only read data and view/export reports",
            subject=SubjectCondition(roles=[BaseRole.VIEWER]),
            resource=ResourceCondition(type="*"),
            action=ActionCondition(actions=VIEWER_ACTIONS),
            effect=PolicyEffect.ALLOW,
            priority=SYSTEM_POLICY_PRIORITIES["VIEWER_READ_ONLY"],
        ),
        _system_policy(
            organization_id,
            name="Prevent Modifications to Locked Periods",
            description=(
                "Prevents creating, updating, posting, or reversing journal entries "
                "in locked fiscal periods"
            ),
            subject=SubjectCondition(roles=ALL_BASE_ROLES),
            resource=_period_resource(PeriodStatus.LOCKED),
            action=ActionCondition(actions=JOURNAL_ENTRY_WRITE_ACTIONS),
            effect=PolicyEffect.DENY,
            priority=SYSTEM_POLICY_PRIORITIES["LOCKED_PERIOD_PROTECTION"],
        ),
        _system_policy(
            organization_id,
            name="Prevent Modifications to Closed Periods",
            description=(
                "Prevents creating, updating, posting, or reversing journal entries "
                "in closed fiscal periods"
            ),
            subject=SubjectCondition(roles=ALL_BASE_ROLES),
            resource=_period_resource(PeriodStatus.CLOSED),
            action=ActionCondition(actions=JOURNAL_ENTRY_WRITE_ACTIONS),
            effect=PolicyEffect.DENY,
            priority=SYSTEM_POLICY_PRIORITIES["CLOSED_PERIOD_PROTECTION"],
        ),
        _system_policy(
            organization_id,
            name="Prevent Entries in Future Periods",
            description=(
                "Prevents creating or posting journal entries in fiscal periods "
                "that haven't started yet"
            ),
            subject=SubjectCondition(roles=ALL_BASE_ROLES),
            resource=_period_resource(PeriodStatus.FUTURE),
            action=ActionCondition(actions=JOURNAL_ENTRY_WRITE_ACTIONS[:3]),
            effect=PolicyEffect.DENY,
            priority=SYSTEM_POLICY_PRIORITIES["FUTURE_PERIOD_PROTECTION"],
        ),
        _system_policy(
            organization_id,
            name="Allow SoftClose Period Access for Controllers",
            description=(
                "Users with controller or period_admin functional roles can create "
                "and post entries in soft-closed periods"
            ),
            subject=SubjectCondition(
                functional_roles=[FunctionalRole.CONTROLLER, FunctionalRole.PERIOD_ADMIN]
            ),
            resource=_period_resource(PeriodStatus.SOFT_CLOSE),
            action=ActionCondition(actions=JOURNAL_ENTRY_WRITE_ACTIONS[:3]),
            effect=PolicyEffect.ALLOW,
            priority=SYSTEM_POLICY_PRIORITIES["SOFTCLOSE_CONTROLLER_ACCESS"],
        ),
        _system_policy(
            organization_id,
            name="Restrict SoftClose Period Access",
            description=(
                "Prevents creating or posting entries in soft-closed periods "
                "for every base role"
            ),
            subject=SubjectCondition(roles=ALL_BASE_ROLES),
            resource=_period_resource(PeriodStatus.SOFT_CLOSE),
            action=ActionCondition(actions=JOURNAL_ENTRY_WRITE_ACTIONS[:3]),
            effect=PolicyEffect.DENY,
            priority=SYSTEM_POLICY_PRIORITIES["SOFTCLOSE_DEFAULT_DENY"],
        ),
    ]
