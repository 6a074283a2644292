"""Tests for policy data models."""

import dataclasses

import pytest

from vibesafe.policy.models import Policy, PolicyDefaults, Rule
from vibesafe.scanner.models import Category, Severity


def test_rule_defaults():
    rule = Rule()
    assert rule.match == "*"
    assert rule.category is None
    assert rule.min_severity is Severity.NONE


def test_default_policy_is_not_a_threshold():
    assert not Policy(name="empty").is_threshold


def test_threshold_policy():
    policy = Policy(name="t", defaults=PolicyDefaults(min_severity=Severity.HIGH))
    assert policy.is_threshold
    assert Policy(name="x", defaults=PolicyDefaults(exit_severity=Severity.CRITICAL)).is_threshold


def test_policy_is_frozen():
    policy = Policy(name="frozen", exit_exempt=frozenset({Category.RATE_LIMIT}))
    with pytest.raises(dataclasses.FrozenInstanceError):
        policy.name = "changed"  # type: ignore[misc]
