"""
Policy Engine module for Warden.

This module implements the ABAC decision procedure: deny-overrides with a
default deny.

Key concepts:
    - Deny-by-default: Everything is denied unless an allow policy matches
    - Deny-overrides: Any matching deny policy beats every allow policy
    - PolicyEvaluationResult: The decision plus the deciding policy and reason
    - PolicyEngine: Stateless evaluator over a policy set handed in per call

The policy engine is the security boundary of Warden. It must be:
    - Fail-closed: No policy, no access
    - Predictable: Same inputs always produce same decisions
    - Auditable: All decisions carry a reason
"""

from warden.policy.engine import (
    PolicyEngine,
    filter_active_policies,
    separate_policies,
    sort_policies_by_priority,
)

__all__ = [
    "PolicyEngine",
    "filter_active_policies",
    "separate_policies",
    "sort_policies_by_priority",
]
