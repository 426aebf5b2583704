"""
Base classes for condition matchers.

The policy evaluator does not know how conditions are represented. For each
condition kind it asks a matcher two things: does the condition match these
attributes, and if not, why not.

- SubjectMatcher: SubjectCondition vs SubjectContext
- ResourceMatcher: ResourceCondition vs ResourceContext
- ActionMatcher: ActionCondition vs a single action id
- EnvironmentMatcher: EnvironmentCondition vs EnvironmentContext

Matchers must be stateless and must not raise for attributes that simply
fail to match. New condition grammars (regex, hierarchies, ...) are added by
subclassing, without touching the evaluator.
"""

from abc import ABC, abstractmethod

from warden.schema import (
    ActionCondition,
    EnvironmentCondition,
    EnvironmentContext,
    ResourceCondition,
    ResourceContext,
    SubjectCondition,
    SubjectContext,
)


class SubjectMatcher(ABC):
    """Decides whether a principal satisfies a SubjectCondition."""

    @abstractmethod
    def matches(self, condition: SubjectCondition, subject: SubjectContext) -> bool:
        """Return True if the subject satisfies every part of the condition."""
        ...

    def mismatch_reason(
        self,
        condition: SubjectCondition,
        subject: SubjectContext,
    ) -> str | None:
        """
        Explain why the subject does not match.

        Returns None when the subject matches or no explanation is available;
        the evaluator then falls back to a generic message.
        """
        return None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class ResourceMatcher(ABC):
    """Decides whether a resource satisfies a ResourceCondition."""

    @abstractmethod
    def matches(self, condition: ResourceCondition, resource: ResourceContext) -> bool:
        """Return True if the resource satisfies the condition."""
        ...

    def mismatch_reason(
        self,
        condition: ResourceCondition,
        resource: ResourceContext,
    ) -> str | None:
        """Explain why the resource does not match (None if unknown or matched)."""
        return None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class ActionMatcher(ABC):
    """
    Decides whether an action id is covered by an ActionCondition.

    No mismatch explanation is needed: the evaluator builds one from the
    condition's action list.
    """

    @abstractmethod
    def matches(self, condition: ActionCondition, action: str) -> bool:
        """Return True if the action is permitted by the condition."""
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class EnvironmentMatcher(ABC):
    """Decides whether request-time attributes satisfy an EnvironmentCondition."""

    @abstractmethod
    def matches(
        self,
        condition: EnvironmentCondition,
        environment: EnvironmentContext,
    ) -> bool:
        """Return True if the environment satisfies the condition."""
        ...

    def mismatch_reason(
        self,
        condition: EnvironmentCondition,
        environment: EnvironmentContext,
    ) -> str | None:
        """Explain why the environment does not match (None if unknown or matched)."""
        return None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
