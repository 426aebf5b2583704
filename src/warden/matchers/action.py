"""
Action matching.

Action ids conventionally have the form ``resource:verb`` (``journal_entry:post``). An
ActionCondition lists the ids a policy covers; ``*`` covers every action.

Two matchers are provided:
    - ActionListMatcher: exact ids and ``*``
    - PatternActionMatcher: additionally ``resource:*`` prefix patterns
"""

from typing import Iterable

from warden.matchers.base import ActionMatcher
from warden.schema import ActionCondition


WILDCARD = "*"


def matches_action_pattern(pattern: str, action: str) -> bool:
    """
    Exact or full-wildcard match.

    Examples:
        matches_action_pattern("*", "account:read") -> True
        matches_action_pattern("account:read", "account:read") -> True
        matches_action_pattern("account:read", "account:update") -> False
    """
    return pattern == WILDCARD or pattern == action


def matches_action_pattern_string(pattern: str, action: str) -> bool:
    """
    Like matches_action_pattern, plus ``resource:*`` prefixes.

    Examples:
        matches_action_pattern_string("journal_entry:*", "journal_entry:post") -> True
        matches_action_pattern_string("journal_entry:*", "account:create") -> False
    """
    if matches_action_pattern(pattern, action):
        return True
    if pattern.endswith(":*"):
        return action.startswith(pattern[:-1])
    return False


def matches_action_condition(condition: ActionCondition, action: str) -> bool:
    return any(matches_action_pattern(p, action) for p in condition.actions)


def matches_action_patterns(patterns: Iterable[str], action: str) -> bool:
    return any(matches_action_pattern_string(p, action) for p in patterns)


def any_action_matches_condition(condition: ActionCondition, actions: Iterable[str]) -> bool:
    return any(matches_action_condition(condition, a) for a in actions)


def filter_matching_actions(condition: ActionCondition, actions: Iterable[str]) -> list[str]:
    """Keep the actions covered by the condition, in input order."""
    return [a for a in actions if matches_action_condition(condition, a)]


def filter_matching_actions_from_patterns(
    patterns: Iterable[str],
    actions: Iterable[str],
) -> list[str]:
    patterns = list(patterns)
    return [a for a in actions if matches_action_patterns(patterns, a)]


class ActionListMatcher(ActionMatcher):
    """Default action matcher: the action must be listed, or the list holds '*'."""

    def matches(self, condition: ActionCondition, action: str) -> bool:
        return matches_action_condition(condition, action)


class PatternActionMatcher(ActionMatcher):
    """Action matcher that also honours 'resource:*' prefix patterns."""

    def matches(self, condition: ActionCondition, action: str) -> bool:
        return matches_action_patterns(condition.actions, action)
