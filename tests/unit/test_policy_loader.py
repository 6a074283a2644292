"""Tests for policy YAML loading, presets and inheritance."""

from pathlib import Path

import pytest

from vibesafe.policy.loader import load_policy, load_policy_from_string, load_preset, resolve_policy
from vibesafe.scanner.models import Category, Severity


def test_default_preset():
    policy = load_preset("default")
    assert policy.defaults.min_severity is Severity.NONE
    assert policy.defaults.exit_severity is None
    assert policy.rules == ()


def test_high_only_preset(high_only_policy):
    assert high_only_policy.defaults.min_severity is Severity.HIGH
    assert high_only_policy.defaults.exit_severity is Severity.HIGH
    categories = {r.category for r in high_only_policy.rules}
    assert {Category.UPLOAD, Category.ENDPOINT, Category.LOGGING} <= categories


def test_unknown_preset():
    with pytest.raises(ValueError, match="Unknown policy preset"):
        load_preset("paranoid")


def test_load_policy_with_inheritance(strict_policy_path: Path):
    policy = load_policy(strict_policy_path)
    assert policy.name == "strict"
    assert policy.defaults.min_severity is Severity.LOW
    assert policy.defaults.exit_severity is Severity.MEDIUM
    assert Category.RATE_LIMIT in policy.exit_exempt
    # Inherited from high-only
    assert any(r.category is Category.UPLOAD for r in policy.rules)


def test_load_policy_from_string():
    policy = load_policy_from_string(
        """
name: inline-test
rules:
  - match: "High Entropy*"
    category: secret
    min_severity: none
    reason: Noisy
defaults:
  min_severity: medium
  exit_severity: critical
"""
    )
    assert policy.name == "inline-test"
    assert len(policy.rules) == 1
    assert policy.rules[0].category is Category.SECRET
    assert policy.defaults.exit_severity is Severity.CRITICAL


def test_own_rules_before_inherited():
    policy = load_policy_from_string(
        """
name: priority-test
inherit:
  - preset:high-only
rules:
  - match: "*"
    category: Upload
    min_severity: high
"""
    )
    assert policy.rules[0].min_severity is Severity.HIGH
    assert policy.rules[1].category is Category.UPLOAD
    assert policy.rules[1].min_severity is Severity.MEDIUM


def test_defaults_fall_back_to_parent():
    policy = load_policy_from_string("name: child\ninherit: preset:high-only\n")
    assert policy.defaults.min_severity is Severity.HIGH
    assert policy.defaults.exit_severity is Severity.HIGH


def test_exit_severity_never_overrides_parent():
    policy = load_policy_from_string(
        "name: child\ninherit: [preset:high-only]\ndefaults:\n  exit_severity: never\n"
    )
    assert policy.defaults.exit_severity is None
    assert policy.defaults.min_severity is Severity.HIGH


def test_circular_inheritance(tmp_path: Path):
    a = tmp_path / "a.yaml"
    b = tmp_path / "b.yaml"
    a.write_text(f"name: a\ninherit: ['{b}']\n")
    b.write_text(f"name: b\ninherit: ['{a}']\n")
    with pytest.raises(ValueError, match="Circular"):
        load_policy(a)


def test_invalid_yaml(fixtures_dir: Path):
    with pytest.raises(ValueError, match="Invalid policy YAML"):
        load_policy(fixtures_dir / "policies" / "invalid.yaml")


def test_non_mapping_yaml():
    with pytest.raises(ValueError, match="mapping"):
        load_policy_from_string("- just\n- a list\n")


def test_null_list_fields_are_empty():
    policy = load_policy_from_string("name: sparse\nrules:\nexit_exempt:\ninherit:\ndefaults:\n")
    assert policy.rules == ()
    assert policy.exit_exempt == frozenset()
    assert policy.inherit == ()
    assert policy.defaults.min_severity is Severity.NONE


@pytest.mark.parametrize(
    "text",
    [
        "name: bad\nrules: 5\n",
        "name: bad\nexit_exempt: {RateLimit: true}\n",
        "name: bad\ndefaults: high\n",
    ],
)
def test_malformed_fields_raise_value_error(text: str):
    with pytest.raises(ValueError, match="Policy field"):
        load_policy_from_string(text)


def test_unknown_severity():
    with pytest.raises(ValueError, match="Unknown severity"):
        load_policy_from_string("name: bad\ndefaults:\n  min_severity: extreme\n")


class TestResolvePolicy:
    def test_preset_prefix(self):
        assert resolve_policy("preset:high-only").name == "high-only"

    def test_file_path(self, strict_policy_path: Path):
        assert resolve_policy(str(strict_policy_path)).name == "strict"

    def test_name_in_search_dir(self, fixtures_dir: Path):
        assert resolve_policy("strict", [fixtures_dir / "policies"]).name == "strict"

    def test_bare_preset_name(self):
        assert resolve_policy("default", []).name == "default"

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            resolve_policy("no-such-policy", [])
