"""
Security tests for decision combining.

These tests verify that no combination of policies can turn a matching
deny into an allow, and that the four entry points agree with each other.

Properties tested:
- All-inactive sets always default deny
- Any matching active deny wins, whatever the allow priorities
- The reported policy is the highest-priority match, first in input order on ties
- would_deny agrees with denied_by_policy
- find_matching_policies covers the reported policy
- explain agrees with the decision
"""

import itertools

import pytest

from warden.policy import PolicyEngine
from warden.schema import Decision, PolicyEffect

# (effect, priority, matches, active) for each generated policy
POLICY_SHAPES = list(
    itertools.product(
        [PolicyEffect.ALLOW, PolicyEffect.DENY],
        [1, 5],
        [True, False],
        [True, False],
    )
)


def _build(make_policy, shapes):
    return [
        make_policy(
            f"p{i}",
            effect=effect,
            priority=priority,
            actions=["read"] if matches else ["write"],
            is_active=active,
        )
        for i, (effect, priority, matches, active) in enumerate(shapes)
    ]


def _expected(shapes):
    """Reference decision computed straight from the shapes."""
    candidates = [
        (i, effect, priority)
        for i, (effect, priority, matches, active) in enumerate(shapes)
        if active and matches
    ]
    for wanted in (PolicyEffect.DENY, PolicyEffect.ALLOW):
        group = [(i, priority) for i, effect, priority in candidates if effect == wanted]
        if group:
            top = max(priority for _, priority in group)
            winner = next(i for i, priority in group if priority == top)
            return wanted, f"p{winner}"
    return None, None


@pytest.fixture(scope="module")
def policy_sets():
    """Every ordered combination of two policy shapes."""
    return list(itertools.product(POLICY_SHAPES, repeat=2))


class TestCombiningProperties:
    """Exhaustive checks over small policy sets."""

    def test_matches_reference(self, make_policy, make_context, policy_sets) -> None:
        """Decision and reported policy agree with the reference for every set."""
        engine = PolicyEngine()
        context = make_context(action="read")

        for shapes in policy_sets:
            policies = _build(make_policy, shapes)
            result = engine.evaluate_policies(policies, context)
            effect, winner = _expected(shapes)

            if effect is None:
                assert result.decision == Decision.DENY, shapes
                assert result.default_deny, shapes
                assert result.matched_policies == [], shapes
            elif effect == PolicyEffect.DENY:
                assert result.decision == Decision.DENY, shapes
                assert result.denied_by_policy, shapes
                assert [p.id for p in result.matched_policies] == [winner], shapes
            else:
                assert result.decision == Decision.ALLOW, shapes
                assert [p.id for p in result.matched_policies] == [winner], shapes

    def test_would_deny_agrees(self, make_policy, make_context, policy_sets) -> None:
        """would_deny is true exactly when a deny policy decided."""
        engine = PolicyEngine()
        context = make_context(action="read")

        for shapes in policy_sets:
            policies = _build(make_policy, shapes)
            result = engine.evaluate_policies(policies, context)
            assert engine.would_deny(policies, context) == result.denied_by_policy, shapes

    def test_find_matching_covers_decision(self, make_policy, make_context, policy_sets) -> None:
        """The deciding policy is always among the matching policies."""
        engine = PolicyEngine()
        context = make_context(action="read")

        for shapes in policy_sets:
            policies = _build(make_policy, shapes)
            result = engine.evaluate_policies(policies, context)
            matching_ids = {m.policy.id for m in engine.find_matching_policies(policies, context)}
            assert {p.id for p in result.matched_policies} <= matching_ids, shapes

    def test_explain_first_match_decides(self, make_policy, make_context, policy_sets) -> None:
        """The first matching entry of the trace is the deciding policy."""
        engine = PolicyEngine()
        context = make_context(action="read")

        for shapes in policy_sets:
            policies = _build(make_policy, shapes)
            result = engine.evaluate_policies(policies, context)
            first = next((t.policy.id for t in engine.explain(policies, context) if t.matched), None)
            expected = result.matched_policies[0].id if result.matched_policies else None
            assert first == expected, shapes


class TestDenyCannotBeBypassed:
    """Targeted deny-overrides cases."""

    def test_all_inactive(self, make_policy, make_context) -> None:
        policies = [
            make_policy("a", is_active=False, priority=1000),
            make_policy("b", effect=PolicyEffect.DENY, is_active=False),
        ]
        result = PolicyEngine().evaluate_policies(policies, make_context())
        assert result.default_deny
        assert not result.denied_by_policy

    def test_many_allows_cannot_outvote_deny(self, make_policy, make_context) -> None:
        allows = [make_policy(f"allow-{i}", priority=1000) for i in range(20)]
        deny = make_policy("deny", effect=PolicyEffect.DENY, priority=0)

        result = PolicyEngine().evaluate_policies([*allows, deny], make_context())

        assert result.decision == Decision.DENY
        assert result.matched_policies == [deny]

    def test_wildcard_allow_does_not_beat_specific_deny(self, make_policy, make_context) -> None:
        allow_all = make_policy("allow-all", priority=1000, actions=["*"])
        deny_read = make_policy("deny-read", effect=PolicyEffect.DENY, priority=1, actions=["read"])

        result = PolicyEngine().evaluate_policies([allow_all, deny_read], make_context(action="read"))

        assert result.denied_by_policy

    def test_input_order_does_not_change_decision(self, make_policy, make_context) -> None:
        policies = [
            make_policy("allow", priority=9),
            make_policy("deny", effect=PolicyEffect.DENY, priority=3),
            make_policy("allow-2", priority=1),
        ]
        engine = PolicyEngine()
        context = make_context()

        decisions = {
            engine.evaluate_policies(list(order), context).matched_policies[0].id
            for order in itertools.permutations(policies)
        }

        assert decisions == {"deny"}

    def test_engine_is_stateless(self, make_policy, make_context) -> None:
        """The same engine gives independent answers for different sets."""
        engine = PolicyEngine()
        context = make_context()
        deny_set = [make_policy("deny", effect=PolicyEffect.DENY)]
        allow_set = [make_policy("allow")]

        assert engine.evaluate_policies(deny_set, context).decision == Decision.DENY
        assert engine.evaluate_policies(allow_set, context).decision == Decision.ALLOW
        assert engine.evaluate_policies(deny_set, context).decision == Decision.DENY
