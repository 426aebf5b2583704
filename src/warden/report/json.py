"""
JSON report generator for Warden.

Generates structured JSON output for programmatic consumption.

Design Principles:
    - Complete data: the request, the decision and the deciding policies
    - Consistent schema: Same structure for every evaluation
    - ISO timestamps: Standard datetime format
"""

import json
from datetime import UTC, datetime
from typing import Any

from warden.schema import (
    AuthorizationPolicy,
    PolicyEvaluationContext,
    PolicyEvaluationResult,
    PolicyMatchResult,
    to_plain,
)


REPORT_VERSION = "1.0"


def generate_json_result(
    result: PolicyEvaluationResult,
    context: PolicyEvaluationContext,
    trace: list[PolicyMatchResult] | None = None,
    indent: int = 2,
) -> str:
    """
    Generate a JSON report for an evaluation.

    Args:
        result: The decision
        context: The request it was made for
        trace: Optional per-policy match results
        indent: JSON indentation level (default: 2)

    Returns:
        JSON string
    """
    return json.dumps(build_result_dict(result, context, trace), indent=indent)


def build_result_dict(
    result: PolicyEvaluationResult,
    context: PolicyEvaluationContext,
    trace: list[PolicyMatchResult] | None = None,
) -> dict[str, Any]:
    """Build a JSON-serializable report dictionary for an evaluation."""
    report: dict[str, Any] = {
        "report_version": REPORT_VERSION,
        "generated_at": datetime.now(UTC).isoformat(),
        "context": to_plain(context),
        "result": {
            "decision": result.decision.value,
            "allowed": result.allowed,
            "reason": result.reason,
            "denied_by_policy": result.denied_by_policy,
            "default_deny": result.default_deny,
            "matched_policies": [_policy_summary(p) for p in result.matched_policies],
        },
    }
    if trace is not None:
        report["trace"] = [serialize_match(m) for m in trace]
    return report


def serialize_match(match: PolicyMatchResult) -> dict[str, Any]:
    """Compact form of a match result."""
    return {
        **_policy_summary(match.policy),
        "matched": match.matched,
        "mismatch_reason": match.mismatch_reason,
    }


def _policy_summary(policy: AuthorizationPolicy) -> dict[str, Any]:
    return {
        "id": policy.id,
        "name": policy.name,
        "effect": policy.effect.value,
        "priority": policy.priority,
    }
