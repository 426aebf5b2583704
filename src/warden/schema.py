"""
Schema definitions for Warden.

This module defines all the Pydantic models used throughout Warden:
- Conditions: SubjectCondition, ResourceCondition, ActionCondition, EnvironmentCondition
- AuthorizationPolicy/PolicySet: The rules handed to the evaluator
- Contexts: SubjectContext, ResourceContext, EnvironmentContext, PolicyEvaluationContext
- Results: PolicyMatchResult, PolicyEvaluationResult

Design Decisions:
    - Models are frozen (frozen=True): fields cannot be reassigned. List fields
      are plain lists and are not deep-frozen; the engine never mutates them
    - Client IPs are validated on the context, so matchers only see parseable
      addresses
    - Unknown fields are rejected (extra="forbid")
    - Optional conditions are None, never a sentinel: "no condition" and
      "condition present but not matched" stay distinguishable
    - Required conditions (resource, action) are enforced here, at load time,
      so the evaluator never has to guard against them
"""

import ipaddress
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from warden.errors import ContextLoadError, DuplicatePolicyIdError, PolicyLoadError


# Default priority for user-created policies
DEFAULT_POLICY_PRIORITY = 500

MIN_POLICY_PRIORITY = 0
MAX_POLICY_PRIORITY = 1000

_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

TimeOfDay = Annotated[str, Field(pattern=_TIME_PATTERN)]
DayOfWeek = Annotated[int, Field(ge=0, le=6)]


# =============================================================================
# Enums
# =============================================================================


class PolicyEffect(str, Enum):
    """What happens when a policy matches."""

    ALLOW = "allow"
    DENY = "deny"


class Decision(str, Enum):
    """Outcome of a full policy evaluation."""

    ALLOW = "allow"
    DENY = "deny"


class BaseRole(str, Enum):
    """Membership role of a user within an organization."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


class FunctionalRole(str, Enum):
    """Finance-specific roles granted on top of the base role."""

    CONTROLLER = "controller"
    FINANCE_MANAGER = "finance_manager"
    ACCOUNTANT = "accountant"
    PERIOD_ADMIN = "period_admin"
    CONSOLIDATION_MANAGER = "consolidation_manager"


class ResourceType(str, Enum):
    """Kinds of resources a policy can target."""

    ORGANIZATION = "organization"
    COMPANY = "company"
    ACCOUNT = "account"
    JOURNAL_ENTRY = "journal_entry"
    FISCAL_PERIOD = "fiscal_period"
    CONSOLIDATION_GROUP = "consolidation_group"
    REPORT = "report"


class AccountType(str, Enum):
    """Chart-of-accounts classification."""

    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    EXPENSE = "Expense"


class JournalEntryType(str, Enum):
    """Journal entry classification."""

    STANDARD = "Standard"
    ADJUSTING = "Adjusting"
    CLOSING = "Closing"
    OPENING = "Opening"
    REVERSING = "Reversing"
    RECURRING = "Recurring"
    INTERCOMPANY = "Intercompany"
    REVALUATION = "Revaluation"
    ELIMINATION = "Elimination"
    SYSTEM = "System"


class PeriodStatus(str, Enum):
    """Lifecycle status of a fiscal period."""

    FUTURE = "Future"
    OPEN = "Open"
    SOFT_CLOSE = "SoftClose"
    CLOSED = "Closed"
    LOCKED = "Locked"


# =============================================================================
# Condition Models
# =============================================================================


class SubjectCondition(BaseModel):
    """
    Who a policy applies to.

    Every field is optional. Unset fields and empty lists match any subject;
    all set fields must match (AND).

    Attributes:
        roles: Base roles, the subject's role must be one of them
        functional_roles: The subject must hold at least one of these
        user_ids: The subject's user id must be one of these
        is_platform_admin: The subject's platform admin flag must equal this
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    roles: list[BaseRole] | None = None
    functional_roles: list[FunctionalRole] | None = None
    user_ids: list[str] | None = None
    is_platform_admin: bool | None = None


class AccountNumberCondition(BaseModel):
    """
    Account number constraint.

    Both parts are optional; when both are set the number must satisfy both.

    Attributes:
        range: Inclusive [min, max] bounds
        in_: Explicit list of allowed numbers (YAML key: ``in``)
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    range: tuple[int, int] | None = None
    in_: list[int] | None = Field(default=None, alias="in")

    @field_validator("range")
    @classmethod
    def validate_range_order(cls, v: tuple[int, int] | None) -> tuple[int, int] | None:
        """Reject ranges whose minimum is above their maximum."""
        if v is not None and v[0] > v[1]:
            msg = f"Account number range minimum {v[0]} is greater than maximum {v[1]}"
            raise ValueError(msg)
        return v


class ResourceAttributes(BaseModel):
    """
    Attribute constraints on the target resource.

    A set attribute requires the resource to carry that attribute; a resource
    without it does not match. Empty lists are treated as unset.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    account_number: AccountNumberCondition | None = None
    account_type: list[AccountType] | None = None
    is_intercompany: bool | None = None
    entry_type: list[JournalEntryType] | None = None
    is_own_entry: bool | None = None
    period_status: list[PeriodStatus] | None = None
    is_adjustment_period: bool | None = None


class ResourceCondition(BaseModel):
    """
    What resources a policy applies to.

    Attributes:
        type: Resource type, or "*" for any type
        attributes: Optional attribute constraints
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["*"] | ResourceType = Field(
        ...,
        description="Resource type or '*' for any",
    )
    attributes: ResourceAttributes | None = None


class ActionCondition(BaseModel):
    """
    What actions a policy applies to.

    Attributes:
        actions: Ordered, non-empty list of action ids ("journal_entry:post"),
            "*" for any action, or "journal_entry:*" style prefixes
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    actions: list[str] = Field(
        ...,
        description="Permitted action identifiers",
        min_length=1,
    )

    @field_validator("actions")
    @classmethod
    def validate_action_ids(cls, v: list[str]) -> list[str]:
        """Action ids must not be blank."""
        for action in v:
            if not action.strip():
                msg = "Action ids must not be blank"
                raise ValueError(msg)
        return v


class TimeRange(BaseModel):
    """Time-of-day window in HH:MM (24h). start > end spans midnight."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    start: TimeOfDay
    end: TimeOfDay


class EnvironmentCondition(BaseModel):
    """
    Contextual constraints (time, day, network).

    Attributes:
        time_of_day: Allowed time window
        days_of_week: Allowed days, 0=Sunday through 6=Saturday
        ip_allow_list: IPs/CIDRs, the request IP must match one
        ip_deny_list: IPs/CIDRs, the request IP must match none
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    time_of_day: TimeRange | None = None
    days_of_week: list[DayOfWeek] | None = None
    ip_allow_list: list[str] | None = None
    ip_deny_list: list[str] | None = None

    @field_validator("ip_allow_list", "ip_deny_list")
    @classmethod
    def validate_ip_patterns(cls, v: list[str] | None) -> list[str] | None:
        """Every entry must be an IP address or CIDR block."""
        if v is None:
            return v
        for pattern in v:
            try:
                ipaddress.ip_network(pattern, strict=False)
            except ValueError as e:
                msg = f"Invalid IP address or CIDR: {pattern!r}"
                raise ValueError(msg) from e
        return v


# =============================================================================
# Policy Models
# =============================================================================


class AuthorizationPolicy(BaseModel):
    """
    An ABAC policy.

    A policy matches a request when all of its conditions match. Matching
    policies are resolved by priority (higher first) with deny winning ties.

    Attributes:
        id: Unique identifier
        name: Human-readable name, used in decision reasons
        effect: allow or deny
        priority: 0-1000, higher is evaluated first
        is_active: Inactive policies are ignored by the evaluator
        subject: Who the policy applies to (None = anyone)
        resource: What resources it applies to (required)
        action: What actions it applies to (required)
        environment: Contextual constraints (None = any environment)
        description: Optional description
        organization_id: Owning organization
        is_system_policy: System policies cannot be modified or deleted
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    effect: PolicyEffect
    priority: int = Field(
        default=DEFAULT_POLICY_PRIORITY,
        ge=MIN_POLICY_PRIORITY,
        le=MAX_POLICY_PRIORITY,
    )
    is_active: bool = True
    subject: SubjectCondition | None = None
    resource: ResourceCondition
    action: ActionCondition
    environment: EnvironmentCondition | None = None
    description: str | None = None
    organization_id: str | None = None
    is_system_policy: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Names are trimmed and must not be blank."""
        v = v.strip()
        if not v:
            msg = "Policy name must not be blank"
            raise ValueError(msg)
        return v

    def is_allow(self) -> bool:
        """Check if this is an allow policy."""
        return self.effect == PolicyEffect.ALLOW

    def is_deny(self) -> bool:
        """Check if this is a deny policy."""
        return self.effect == PolicyEffect.DENY

    def can_modify(self) -> bool:
        """System policies cannot be modified."""
        return not self.is_system_policy

    def can_delete(self) -> bool:
        """System policies cannot be deleted."""
        return not self.is_system_policy


class PolicySet(BaseModel):
    """
    A flat collection of policies, as loaded from a YAML document.

    Attributes:
        version: Schema version for forward compatibility
        policies: The policies, in file order
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: str = Field(default="1.0")
    policies: list[AuthorizationPolicy] = Field(default_factory=list)

    def duplicate_ids(self) -> list[str]:
        """Return policy ids that occur more than once, in first-seen order."""
        seen: set[str] = set()
        duplicates: list[str] = []
        for policy in self.policies:
            if policy.id in seen and policy.id not in duplicates:
                duplicates.append(policy.id)
            seen.add(policy.id)
        return duplicates


# =============================================================================
# Context Models
# =============================================================================


class SubjectContext(BaseModel):
    """The acting principal."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_id: str = Field(..., min_length=1)
    role: BaseRole
    functional_roles: list[FunctionalRole] = Field(default_factory=list)
    is_platform_admin: bool = False


class ResourceContext(BaseModel):
    """
    The resource being accessed.

    Only the attributes relevant to the resource type need to be set.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: ResourceType
    id: str | None = None
    account_number: int | None = None
    account_type: AccountType | None = None
    is_intercompany: bool | None = None
    entry_type: JournalEntryType | None = None
    is_own_entry: bool | None = None
    period_status: PeriodStatus | None = None
    is_adjustment_period: bool | None = None


class EnvironmentContext(BaseModel):
    """
    Request-time attributes.

    Attributes:
        current_time: Time of day in HH:MM (24h)
        current_day_of_week: 0=Sunday through 6=Saturday
        ip_address: Client IP address
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    current_time: TimeOfDay | None = None
    current_day_of_week: DayOfWeek | None = None
    ip_address: str | None = None

    @field_validator("ip_address")
    @classmethod
    def validate_ip_address(cls, v: str | None) -> str | None:
        """Client IP must be a single IPv4 or IPv6 address."""
        if v is None:
            return v
        try:
            ipaddress.ip_address(v)
        except ValueError as e:
            msg = f"Invalid client IP address: {v!r}"
            raise ValueError(msg) from e
        return v


class PolicyEvaluationContext(BaseModel):
    """
    Everything the evaluator needs to know about one request.

    Attributes:
        subject: Who is acting
        resource: What is being accessed
        action: The single action id being checked
        environment: Request-time attributes, None when unknown
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    subject: SubjectContext
    resource: ResourceContext
    action: str = Field(..., min_length=1)
    environment: EnvironmentContext | None = None


# =============================================================================
# Result Models
# =============================================================================


class PolicyMatchResult(BaseModel):
    """
    Trace of whether one policy matched one context.

    Attributes:
        policy: The policy that was checked
        matched: Whether every condition matched
        mismatch_reason: Why the first failing condition failed (None if matched)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    policy: AuthorizationPolicy
    matched: bool
    mismatch_reason: str | None = None

    @classmethod
    def match(cls, policy: AuthorizationPolicy) -> "PolicyMatchResult":
        """Create a positive match result."""
        return cls(policy=policy, matched=True)

    @classmethod
    def mismatch(cls, policy: AuthorizationPolicy, reason: str) -> "PolicyMatchResult":
        """Create a negative match result."""
        return cls(policy=policy, matched=False, mismatch_reason=reason)


class PolicyEvaluationResult(BaseModel):
    """
    The authoritative outcome of one evaluation.

    denied_by_policy and default_deny are mutually exclusive on a deny and
    both false on an allow.

    Attributes:
        decision: allow or deny
        matched_policies: The deciding policy (empty on default deny)
        reason: Human-readable explanation
        denied_by_policy: A deny policy matched
        default_deny: No allow policy matched (or no active policies)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    decision: Decision
    matched_policies: list[AuthorizationPolicy] = Field(default_factory=list)
    reason: str
    denied_by_policy: bool = False
    default_deny: bool = False

    @model_validator(mode="after")
    def validate_flags(self) -> "PolicyEvaluationResult":
        """Enforce the decision/flag combinations."""
        if self.decision == Decision.ALLOW and (self.denied_by_policy or self.default_deny):
            msg = "An allow decision cannot be flagged as denied_by_policy or default_deny"
            raise ValueError(msg)
        if self.decision == Decision.DENY and self.denied_by_policy == self.default_deny:
            msg = "A deny decision must be exactly one of denied_by_policy or default_deny"
            raise ValueError(msg)
        return self

    @property
    def allowed(self) -> bool:
        """Whether access is granted."""
        return self.decision == Decision.ALLOW

    @classmethod
    def allowed_by(cls, policy: AuthorizationPolicy) -> "PolicyEvaluationResult":
        """Create an ALLOW result decided by a policy."""
        return cls(
            decision=Decision.ALLOW,
            matched_policies=[policy],
            reason=f"Allowed by policy: {policy.name}",
        )

    @classmethod
    def denied_by(cls, policy: AuthorizationPolicy) -> "PolicyEvaluationResult":
        """Create a DENY result decided by a policy."""
        return cls(
            decision=Decision.DENY,
            matched_policies=[policy],
            reason=f"Denied by policy: {policy.name}",
            denied_by_policy=True,
        )

    @classmethod
    def default(cls, reason: str) -> "PolicyEvaluationResult":
        """Create a default DENY result."""
        return cls(decision=Decision.DENY, reason=reason, default_deny=True)


# =============================================================================
# YAML Loading Helpers
# =============================================================================


def load_policy_set(path: Path | str) -> PolicySet:
    """
    Load a policy set from a YAML file.

    The document is either a mapping with a ``policies`` key or a bare list
    of policies.

    Args:
        path: Path to the YAML file

    Returns:
        Validated PolicySet

    Raises:
        PolicyLoadError: If the file can't be read or doesn't match the schema
        DuplicatePolicyIdError: If two policies share an id
    """
    path = Path(path)
    try:
        with path.open() as f:
            content = f.read()
    except OSError as e:
        raise PolicyLoadError(source=str(path), underlying_error=str(e)) from e

    return _parse_policy_set(content, str(path))


def load_policy_set_from_string(content: str) -> PolicySet:
    """Load a policy set from a YAML string."""
    return _parse_policy_set(content, "<string>")


def load_context(path: Path | str) -> PolicyEvaluationContext:
    """
    Load an evaluation context from a YAML file.

    Raises:
        ContextLoadError: If the file can't be read or doesn't match the schema
    """
    path = Path(path)
    try:
        with path.open() as f:
            content = f.read()
    except OSError as e:
        raise ContextLoadError(source=str(path), underlying_error=str(e)) from e

    return _parse_context(content, str(path))


def load_context_from_string(content: str) -> PolicyEvaluationContext:
    """Load an evaluation context from a YAML string."""
    return _parse_context(content, "<string>")


def dump_policy_set(policy_set: PolicySet) -> str:
    """Serialize a policy set to YAML that load_policy_set_from_string accepts."""
    data = policy_set.model_dump(mode="json", by_alias=True, exclude_none=True)
    return yaml.safe_dump(data, sort_keys=False)


def _parse_policy_set(content: str, source: str) -> PolicySet:
    """Parse and validate policy set YAML."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise PolicyLoadError(source=source, underlying_error=str(e)) from e

    if data is None:
        data = {}
    elif isinstance(data, list):
        data = {"policies": data}

    try:
        policy_set = PolicySet.model_validate(data)
    except ValidationError as e:
        raise PolicyLoadError(source=source, underlying_error=_format_validation_error(e)) from e

    duplicates = policy_set.duplicate_ids()
    if duplicates:
        raise DuplicatePolicyIdError(source=source, policy_id=duplicates[0])

    return policy_set


def _parse_context(content: str, source: str) -> PolicyEvaluationContext:
    """Parse and validate evaluation context YAML."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ContextLoadError(source=source, underlying_error=str(e)) from e

    try:
        return PolicyEvaluationContext.model_validate(data)
    except ValidationError as e:
        raise ContextLoadError(source=source, underlying_error=_format_validation_error(e)) from e


def _format_validation_error(error: ValidationError) -> str:
    """Flatten a ValidationError into one line per problem."""
    lines: list[str] = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "<root>"
        lines.append(f"{location}: {item['msg']}")
    return "; ".join(lines)


def to_plain(model: BaseModel) -> dict[str, Any]:
    """JSON-compatible dict of a model, without unset optionals."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)
