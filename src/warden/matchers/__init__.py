"""
Condition matchers for Warden.

The evaluator delegates each condition kind to a matcher:

    - SubjectMatcher / SubjectConditionMatcher
    - ResourceMatcher / ResourceConditionMatcher
    - ActionMatcher / ActionListMatcher, PatternActionMatcher
    - EnvironmentMatcher / EnvironmentConditionMatcher

The abstract classes define the contract; the concrete classes implement the
accounting domain's condition grammar. Swap in your own subclass to support
a different grammar without changing the evaluator.
"""

from warden.matchers.action import ActionListMatcher, PatternActionMatcher
from warden.matchers.base import (
    ActionMatcher,
    EnvironmentMatcher,
    ResourceMatcher,
    SubjectMatcher,
)
from warden.matchers.environment import (
    EnvironmentConditionMatcher,
    create_environment_context,
)
from warden.matchers.resource import ResourceConditionMatcher
from warden.matchers.subject import (
    SubjectConditionMatcher,
    create_subject_context_from_membership,
)

__all__ = [
    "ActionMatcher",
    "ActionListMatcher",
    "PatternActionMatcher",
    "EnvironmentMatcher",
    "EnvironmentConditionMatcher",
    "ResourceMatcher",
    "ResourceConditionMatcher",
    "SubjectMatcher",
    "SubjectConditionMatcher",
    "create_environment_context",
    "create_subject_context_from_membership",
]
