"""
Pytest configuration and fixtures for Warden tests.

This module provides shared fixtures used across unit, integration,
and security tests.
"""

import tempfile
from pathlib import Path
from typing import Any, Callable, Generator

import pytest

from warden.schema import (
    ActionCondition,
    AuthorizationPolicy,
    BaseRole,
    EnvironmentContext,
    PolicyEffect,
    PolicyEvaluationContext,
    ResourceCondition,
    ResourceContext,
    ResourceType,
    SubjectContext,
)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_policy() -> Callable[..., AuthorizationPolicy]:
    """
    Factory for policies that match any subject on any resource.

    Usage:
        policy = make_policy("p1", effect=PolicyEffect.DENY, priority=10)
    """

    def _make(
        policy_id: str,
        effect: PolicyEffect = PolicyEffect.ALLOW,
        priority: int = 10,
        actions: list[str] | None = None,
        **fields: Any,
    ) -> AuthorizationPolicy:
        fields.setdefault("resource", ResourceCondition(type="*"))
        fields.setdefault("name", f"Policy {policy_id}")
        return AuthorizationPolicy(
            id=policy_id,
            effect=effect,
            priority=priority,
            action=ActionCondition(actions=actions or ["read"]),
            **fields,
        )

    return _make


@pytest.fixture
def make_context() -> Callable[..., PolicyEvaluationContext]:
    """
    Factory for evaluation contexts.

    Defaults to a member reading a company, with no environment.
    """

    def _make(
        action: str = "read",
        role: BaseRole = BaseRole.MEMBER,
        resource: ResourceContext | None = None,
        environment: EnvironmentContext | None = None,
        **subject_fields: Any,
    ) -> PolicyEvaluationContext:
        subject_fields.setdefault("user_id", "user-1")
        return PolicyEvaluationContext(
            subject=SubjectContext(role=role, **subject_fields),
            resource=resource or ResourceContext(type=ResourceType.COMPANY, id="company-1"),
            action=action,
            environment=environment,
        )

    return _make


@pytest.fixture
def sample_policies_yaml() -> str:
    """Return a small policy set: members may read, locked entries are read-only."""
    return """
version: "1.0"
policies:
  - id: member-read
    name: Members can read
    effect: allow
    priority: 100
    subject:
      roles: [member]
    resource:
      type: "*"
    action:
      actions: ["journal_entry:read", "journal_entry:update"]
  - id: locked-deny
    name: No edits in locked periods
    effect: deny
    priority: 900
    resource:
      type: journal_entry
      attributes:
        period_status: [Locked]
    action:
      actions: ["journal_entry:update"]
"""


@pytest.fixture
def allowed_context_yaml() -> str:
    """Return a context the sample policy set allows."""
    return """
subject:
  user_id: user-1
  role: member
resource:
  type: journal_entry
  id: je-1
  period_status: Open
action: journal_entry:read
"""


@pytest.fixture
def denied_context_yaml() -> str:
    """Return a context the sample policy set denies through a deny policy."""
    return """
subject:
  user_id: user-1
  role: member
resource:
  type: journal_entry
  id: je-1
  period_status: Locked
action: journal_entry:update
"""


@pytest.fixture
def policy_file(temp_dir: Path, sample_policies_yaml: str) -> Path:
    """Write the sample policy set to disk."""
    path = temp_dir / "policies.yaml"
    path.write_text(sample_policies_yaml)
    return path


@pytest.fixture
def allowed_context_file(temp_dir: Path, allowed_context_yaml: str) -> Path:
    """Write the allowed context to disk."""
    path = temp_dir / "allowed.yaml"
    path.write_text(allowed_context_yaml)
    return path


@pytest.fixture
def denied_context_file(temp_dir: Path, denied_context_yaml: str) -> Path:
    """Write the denied context to disk."""
    path = temp_dir / "denied.yaml"
    path.write_text(denied_context_yaml)
    return path
