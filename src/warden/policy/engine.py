"""
Policy Engine for Warden.

The Policy Engine decides whether a request is allowed. It is handed a flat
set of policies and one evaluation context per call and returns a decision
with an auditable reason.

Design Principles:
    - Deny-by-default: no matching allow policy means deny
    - Deny-overrides: a matching deny policy wins over any allow policy
    - Predictable: same inputs always produce same decisions
    - Stateless: no caches, no I/O, safe to call from any thread
    - Results, not exceptions: a mismatch is a negative result, never an error

How evaluate_policies works:
    1. Drop inactive policies (none left -> default deny)
    2. Sort by priority, highest first; deny before allow on equal priority
    3. Split into deny and allow groups, keeping that order
    4. First matching deny policy -> deny
    5. First matching allow policy -> allow
    6. Otherwise -> default deny

Security Note:
    This module is security-critical. Changes should be reviewed carefully.
"""

import logging
from typing import Iterable, Sequence

from warden.matchers.action import ActionListMatcher
from warden.matchers.base import (
    ActionMatcher,
    EnvironmentMatcher,
    ResourceMatcher,
    SubjectMatcher,
)
from warden.matchers.environment import EnvironmentConditionMatcher
from warden.matchers.resource import ResourceConditionMatcher
from warden.matchers.subject import SubjectConditionMatcher
from warden.schema import (
    AuthorizationPolicy,
    PolicyEffect,
    PolicyEvaluationContext,
    PolicyEvaluationResult,
    PolicyMatchResult,
)

logger = logging.getLogger(__name__)

REASON_NO_ACTIVE_POLICIES = "No active policies found - default deny"
REASON_NO_MATCHING_ALLOW = "No matching allow policy found - default deny"
REASON_MISSING_ENVIRONMENT = (
    "Policy has environment conditions but no environment context provided"
)


# =============================================================================
# Policy Set Helpers
# =============================================================================


def filter_active_policies(
    policies: Iterable[AuthorizationPolicy],
) -> list[AuthorizationPolicy]:
    """Keep active policies, in input order."""
    return [p for p in policies if p.is_active]


def sort_policies_by_priority(
    policies: Iterable[AuthorizationPolicy],
) -> list[AuthorizationPolicy]:
    """
    Order policies for evaluation.

    Highest priority first. On equal priority deny comes before allow.
    Full ties keep their input order (sorted() is stable).
    """
    return sorted(
        policies,
        key=lambda p: (-p.priority, 0 if p.effect == PolicyEffect.DENY else 1),
    )


def separate_policies(
    policies: Iterable[AuthorizationPolicy],
) -> tuple[list[AuthorizationPolicy], list[AuthorizationPolicy]]:
    """
    Split policies by effect, preserving order.

    Returns:
        (deny_policies, allow_policies)
    """
    deny: list[AuthorizationPolicy] = []
    allow: list[AuthorizationPolicy] = []
    for policy in policies:
        if policy.effect == PolicyEffect.DENY:
            deny.append(policy)
        else:
            allow.append(policy)
    return deny, allow


# =============================================================================
# Policy Engine
# =============================================================================


class PolicyEngine:
    """
    ABAC policy evaluator.

    The engine holds only its matchers. Policies and contexts are passed to
    every call, so one engine can serve any number of policy sets
    concurrently. The caller must not mutate a policy list while a call on
    it is in progress.

    Usage:
        engine = PolicyEngine()
        result = engine.evaluate_policies(policies, context)
        if result.allowed:
            # proceed
        else:
            # result.reason explains the denial

    Attributes:
        subject_matcher: Matches SubjectCondition
        resource_matcher: Matches ResourceCondition
        action_matcher: Matches ActionCondition
        environment_matcher: Matches EnvironmentCondition
    """

    def __init__(
        self,
        subject_matcher: SubjectMatcher | None = None,
        resource_matcher: ResourceMatcher | None = None,
        action_matcher: ActionMatcher | None = None,
        environment_matcher: EnvironmentMatcher | None = None,
    ) -> None:
        """
        Initialize the policy engine.

        Args:
            subject_matcher: Defaults to SubjectConditionMatcher
            resource_matcher: Defaults to ResourceConditionMatcher
            action_matcher: Defaults to ActionListMatcher
            environment_matcher: Defaults to EnvironmentConditionMatcher
        """
        self.subject_matcher = (
            subject_matcher if subject_matcher is not None else SubjectConditionMatcher()
        )
        self.resource_matcher = (
            resource_matcher if resource_matcher is not None else ResourceConditionMatcher()
        )
        self.action_matcher = action_matcher if action_matcher is not None else ActionListMatcher()
        self.environment_matcher = (
            environment_matcher
            if environment_matcher is not None
            else EnvironmentConditionMatcher()
        )

    def evaluate_policy(
        self,
        policy: AuthorizationPolicy,
        context: PolicyEvaluationContext,
    ) -> PolicyMatchResult:
        """
        Match a single policy against a context.

        Checks run in order subject, resource, action, environment and stop
        at the first failure, whose reason is reported. is_active and effect
        are not consulted here.

        Args:
            policy: The policy to check
            context: The request being evaluated

        Returns:
            PolicyMatchResult with matched flag and mismatch reason
        """
        if policy.subject is not None and not self.subject_matcher.matches(
            policy.subject, context.subject
        ):
            reason = self.subject_matcher.mismatch_reason(policy.subject, context.subject)
            return PolicyMatchResult.mismatch(policy, reason or "Subject condition did not match")

        if not self.resource_matcher.matches(policy.resource, context.resource):
            reason = self.resource_matcher.mismatch_reason(policy.resource, context.resource)
            return PolicyMatchResult.mismatch(policy, reason or "Resource condition did not match")

        if not self.action_matcher.matches(policy.action, context.action):
            actions = ", ".join(policy.action.actions)
            return PolicyMatchResult.mismatch(
                policy,
                f"Action '{context.action}' does not match condition actions: [{actions}]",
            )

        if policy.environment is not None:
            if context.environment is None:
                return PolicyMatchResult.mismatch(policy, REASON_MISSING_ENVIRONMENT)
            if not self.environment_matcher.matches(policy.environment, context.environment):
                reason = self.environment_matcher.mismatch_reason(
                    policy.environment, context.environment
                )
                return PolicyMatchResult.mismatch(
                    policy, reason or "Environment condition did not match"
                )

        return PolicyMatchResult.match(policy)

    def evaluate_policies(
        self,
        policies: Sequence[AuthorizationPolicy],
        context: PolicyEvaluationContext,
    ) -> PolicyEvaluationResult:
        """
        Decide a request against a policy set.

        This is the main entry point. Deny policies are scanned first and any
        match is final. Then allow policies are scanned in priority order and
        the first match allows. Anything else is a default deny.

        Args:
            policies: The policy set (inactive policies are ignored)
            context: The request being evaluated

        Returns:
            PolicyEvaluationResult with decision, deciding policy and reason
        """
        active = filter_active_policies(policies)
        if not active:
            logger.debug("No active policies for action %s - default deny", context.action)
            return PolicyEvaluationResult.default(REASON_NO_ACTIVE_POLICIES)

        deny_policies, allow_policies = separate_policies(sort_policies_by_priority(active))

        for policy in deny_policies:
            if self.evaluate_policy(policy, context).matched:
                logger.debug(
                    "Action %s denied by policy %s (priority %d)",
                    context.action,
                    policy.id,
                    policy.priority,
                )
                return PolicyEvaluationResult.denied_by(policy)

        for policy in allow_policies:
            if self.evaluate_policy(policy, context).matched:
                logger.debug(
                    "Action %s allowed by policy %s (priority %d)",
                    context.action,
                    policy.id,
                    policy.priority,
                )
                return PolicyEvaluationResult.allowed_by(policy)

        logger.debug(
            "No matching allow policy among %d active policies for action %s - default deny",
            len(active),
            context.action,
        )
        return PolicyEvaluationResult.default(REASON_NO_MATCHING_ALLOW)

    def would_deny(
        self,
        policies: Sequence[AuthorizationPolicy],
        context: PolicyEvaluationContext,
    ) -> bool:
        """
        Check whether an active deny policy matches.

        Equivalent to evaluate_policies(...).denied_by_policy without
        walking the allow policies. Order does not matter since any deny
        match is conclusive.
        """
        deny_policies, _ = separate_policies(filter_active_policies(policies))
        return any(self.evaluate_policy(p, context).matched for p in deny_policies)

    def find_matching_policies(
        self,
        policies: Sequence[AuthorizationPolicy],
        context: PolicyEvaluationContext,
    ) -> list[PolicyMatchResult]:
        """
        List every active policy that matches, regardless of effect.

        Results keep input order (not priority order). This is an audit view
        with no short-circuiting, not a decision.
        """
        results = []
        for policy in filter_active_policies(policies):
            result = self.evaluate_policy(policy, context)
            if result.matched:
                results.append(result)
        return results

    def explain(
        self,
        policies: Sequence[AuthorizationPolicy],
        context: PolicyEvaluationContext,
    ) -> list[PolicyMatchResult]:
        """
        Match every active policy, in the order evaluate_policies considers them.

        Deny policies come first, then allow policies, each group sorted by
        priority. Includes non-matching policies with their mismatch reasons.
        """
        deny_policies, allow_policies = separate_policies(
            sort_policies_by_priority(filter_active_policies(policies))
        )
        return [self.evaluate_policy(p, context) for p in deny_policies + allow_policies]
