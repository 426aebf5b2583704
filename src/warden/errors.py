"""
Exception hierarchy for Warden.

All Warden exceptions inherit from WardenError, allowing callers to catch
all Warden-specific exceptions with a single except clause.

The policy evaluator itself never raises: "deny" is an expected outcome and
is returned as data. These errors cover loading and validating the inputs
that are handed to the evaluator.

Exception Categories:
    - PolicyLoadError: A policy set file could not be read or validated
    - DuplicatePolicyIdError: A policy set contains the same id twice
    - ContextLoadError: An evaluation context file could not be read or validated

Design Principles:
    - All errors have error codes for programmatic handling
    - All errors include context (file path, policy id where applicable)
    - All errors provide actionable suggestions where possible
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Policy set errors: 1xxx
ERROR_POLICY_LOAD = 1001
ERROR_POLICY_DUPLICATE_ID = 1002

# Context errors: 2xxx
ERROR_CONTEXT_LOAD = 2001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class WardenError(Exception):
    """
    Base exception for all Warden errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Policy Set Errors
# =============================================================================


@dataclass
class PolicyLoadError(WardenError):
    """
    Raised when a policy set cannot be loaded.

    Covers unreadable files, malformed YAML and schema violations such as a
    policy without a resource condition or an empty action list.

    Attributes:
        source: File path (or "<string>") the policy set was read from
        underlying_error: Text of the error that caused the failure
    """

    source: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to load policy set from {self.source}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_POLICY_LOAD
        if not self.suggestion:
            self.suggestion = "Check that every policy has a resource condition and a non-empty action list"
        self.context.update({
            "source": self.source,
            "underlying_error": self.underlying_error,
        })


@dataclass
class DuplicatePolicyIdError(PolicyLoadError):
    """Raised when two policies in one set share an id."""

    policy_id: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Duplicate policy id in {self.source}: {self.policy_id}"
        if self.code == 0:
            self.code = ERROR_POLICY_DUPLICATE_ID
        if not self.suggestion:
            self.suggestion = "Give each policy in the set a unique id"
        super().__post_init__()
        self.context["policy_id"] = self.policy_id


# =============================================================================
# Context Errors
# =============================================================================


@dataclass
class ContextLoadError(WardenError):
    """Raised when an evaluation context cannot be loaded."""

    source: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to load evaluation context from {self.source}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_CONTEXT_LOAD
        if not self.suggestion:
            self.suggestion = "An evaluation context needs a subject, a resource and an action"
        self.context.update({
            "source": self.source,
            "underlying_error": self.underlying_error,
        })
