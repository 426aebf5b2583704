"""
Resource matching.

A ResourceCondition matches when:
    1. the resource type equals the condition type, or the condition type is "*"
    2. every attribute constraint that is set matches

An attribute constraint that is set requires the resource to carry the
attribute. A journal entry without a period status never matches a
period_status constraint.
"""

from typing import Iterable

from warden.matchers.base import ResourceMatcher
from warden.schema import (
    AccountNumberCondition,
    AccountType,
    JournalEntryType,
    PeriodStatus,
    ResourceAttributes,
    ResourceCondition,
    ResourceContext,
    ResourceType,
)


def matches_resource_type(condition_type: str, resource_type: ResourceType) -> bool:
    """
    Check a resource type against a condition type.

    Examples:
        matches_resource_type("*", ResourceType.ACCOUNT) -> True
        matches_resource_type("account", ResourceType.ACCOUNT) -> True
        matches_resource_type("company", ResourceType.ACCOUNT) -> False
    """
    if condition_type == "*":
        return True
    return condition_type == resource_type


def matches_account_number_condition(
    condition: AccountNumberCondition,
    account_number: int,
) -> bool:
    """
    Check an account number against range and list constraints.

    Examples:
        range [1000, 1999], 1500 -> True
        range [1000, 1999], 2000 -> False
        in [1000, 1100, 1200], 1100 -> True
    """
    if condition.range is not None:
        low, high = condition.range
        if account_number < low or account_number > high:
            return False

    if condition.in_ and account_number not in condition.in_:
        return False

    return True


def matches_account_type(allowed: Iterable[AccountType], account_type: AccountType) -> bool:
    return account_type in allowed


def matches_entry_type(allowed: Iterable[JournalEntryType], entry_type: JournalEntryType) -> bool:
    return entry_type in allowed


def matches_period_status(allowed: Iterable[PeriodStatus], period_status: PeriodStatus) -> bool:
    return period_status in allowed


def matches_boolean_attribute(required: bool, actual: bool) -> bool:
    return required == actual


def matches_resource_attributes(
    attributes: ResourceAttributes,
    resource: ResourceContext,
) -> bool:
    """True if the resource satisfies every attribute constraint that is set."""
    return _first_attribute_mismatch(attributes, resource) is None


def matches_resource_condition(condition: ResourceCondition, resource: ResourceContext) -> bool:
    if not matches_resource_type(condition.type, resource.type):
        return False

    if condition.attributes is not None:
        return matches_resource_attributes(condition.attributes, resource)

    return True


def matches_any_resource_condition(
    conditions: Iterable[ResourceCondition],
    resource: ResourceContext,
) -> bool:
    return any(matches_resource_condition(c, resource) for c in conditions)


def matches_all_resource_conditions(
    conditions: Iterable[ResourceCondition],
    resource: ResourceContext,
) -> bool:
    return all(matches_resource_condition(c, resource) for c in conditions)


def get_resource_mismatch_reason(
    condition: ResourceCondition,
    resource: ResourceContext,
) -> str | None:
    """
    Describe why a resource does not match a condition.

    Returns:
        Description of the first failing check, or None if the resource matches
    """
    if not matches_resource_type(condition.type, resource.type):
        condition_type = getattr(condition.type, "value", condition.type)
        return (
            f"Resource type '{resource.type.value}' does not match "
            f"condition type '{condition_type}'"
        )

    if condition.attributes is not None:
        return _first_attribute_mismatch(condition.attributes, resource)

    return None


def _first_attribute_mismatch(
    attrs: ResourceAttributes,
    resource: ResourceContext,
) -> str | None:
    """Check attribute constraints in a fixed order; return the first failure."""
    if attrs.account_number is not None:
        if resource.account_number is None:
            return "Condition requires account number but resource has none"
        if not matches_account_number_condition(attrs.account_number, resource.account_number):
            number = resource.account_number
            if attrs.account_number.range is not None and not (
                attrs.account_number.range[0] <= number <= attrs.account_number.range[1]
            ):
                low, high = attrs.account_number.range
                return f"Account number {number} is not in range [{low}, {high}]"
            allowed = ", ".join(str(n) for n in attrs.account_number.in_ or [])
            return f"Account number {number} is not in allowed list: [{allowed}]"

    if attrs.account_type:
        if resource.account_type is None:
            return "Condition requires account type but resource has none"
        if not matches_account_type(attrs.account_type, resource.account_type):
            allowed = ", ".join(t.value for t in attrs.account_type)
            return (
                f"Account type '{resource.account_type.value}' is not in allowed types: [{allowed}]"
            )

    if attrs.is_intercompany is not None:
        if resource.is_intercompany is None:
            return "Condition requires intercompany flag but resource has none"
        if not matches_boolean_attribute(attrs.is_intercompany, resource.is_intercompany):
            return _flag_mismatch(
                attrs.is_intercompany,
                resource.is_intercompany,
                "intercompany",
                "non-intercompany",
            )

    if attrs.entry_type:
        if resource.entry_type is None:
            return "Condition requires entry type but resource has none"
        if not matches_entry_type(attrs.entry_type, resource.entry_type):
            allowed = ", ".join(t.value for t in attrs.entry_type)
            return f"Entry type '{resource.entry_type.value}' is not in allowed types: [{allowed}]"

    if attrs.is_own_entry is not None:
        if resource.is_own_entry is None:
            return "Condition requires own entry check but resource has no creator info"
        if not matches_boolean_attribute(attrs.is_own_entry, resource.is_own_entry):
            return _flag_mismatch(
                attrs.is_own_entry,
                resource.is_own_entry,
                "own entry",
                "other's entry",
            )

    if attrs.period_status:
        if resource.period_status is None:
            return "Condition requires period status but resource has none"
        if not matches_period_status(attrs.period_status, resource.period_status):
            allowed = ", ".join(s.value for s in attrs.period_status)
            return (
                f"Period status '{resource.period_status.value}' "
                f"is not in allowed statuses: [{allowed}]"
            )

    if attrs.is_adjustment_period is not None:
        if resource.is_adjustment_period is None:
            return "Condition requires adjustment period flag but resource has none"
        if not matches_boolean_attribute(attrs.is_adjustment_period, resource.is_adjustment_period):
            return _flag_mismatch(
                attrs.is_adjustment_period,
                resource.is_adjustment_period,
                "adjustment period",
                "regular period",
            )

    return None


def _flag_mismatch(required: bool, actual: bool, when_true: str, when_false: str) -> str:
    expected = when_true if required else when_false
    found = when_true if actual else when_false
    return f"Resource is {found} but condition requires {expected}"


# =============================================================================
# Resource Context Helpers
# =============================================================================


def create_account_resource_context(
    id: str | None = None,
    account_number: int | None = None,
    account_type: AccountType | None = None,
    is_intercompany: bool | None = None,
) -> ResourceContext:
    return ResourceContext(
        type=ResourceType.ACCOUNT,
        id=id,
        account_number=account_number,
        account_type=account_type,
        is_intercompany=is_intercompany,
    )


def create_journal_entry_resource_context(
    id: str | None = None,
    entry_type: JournalEntryType | None = None,
    is_own_entry: bool | None = None,
    period_status: PeriodStatus | None = None,
) -> ResourceContext:
    return ResourceContext(
        type=ResourceType.JOURNAL_ENTRY,
        id=id,
        entry_type=entry_type,
        is_own_entry=is_own_entry,
        period_status=period_status,
    )


def create_fiscal_period_resource_context(
    id: str | None = None,
    period_status: PeriodStatus | None = None,
    is_adjustment_period: bool | None = None,
) -> ResourceContext:
    return ResourceContext(
        type=ResourceType.FISCAL_PERIOD,
        id=id,
        period_status=period_status,
        is_adjustment_period=is_adjustment_period,
    )


def create_resource_context(resource_type: ResourceType, id: str | None = None) -> ResourceContext:
    """Context for resources without matchable attributes (company, report, ...)."""
    return ResourceContext(type=resource_type, id=id)


class ResourceConditionMatcher(ResourceMatcher):
    """Default resource matcher: type wildcard plus accounting attributes."""

    def matches(self, condition: ResourceCondition, resource: ResourceContext) -> bool:
        return matches_resource_condition(condition, resource)

    def mismatch_reason(
        self,
        condition: ResourceCondition,
        resource: ResourceContext,
    ) -> str | None:
        return get_resource_mismatch_reason(condition, resource)
