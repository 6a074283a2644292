"""Load and resolve Policy objects from YAML files and built-in presets."""

from __future__ import annotations

import importlib.resources
from collections.abc import Iterable
from pathlib import Path

import yaml

from vibesafe.policy.models import Policy, PolicyDefaults, Rule
from vibesafe.scanner.models import Category, Severity

_PRESET_PREFIX = "preset:"

DEFAULT_PRESET = "default"
HIGH_ONLY_PRESET = "high-only"


def load_policy(path: str | Path, _resolved: set[str] | None = None) -> Policy:
    """Load a policy from a YAML file path."""
    text = Path(path).read_text(encoding="utf-8")
    return _parse(text, _resolved if _resolved is not None else set())


def load_policy_from_string(text: str) -> Policy:
    """Parse a YAML string into a Policy, resolving inheritance."""
    return _parse(text, set())


def load_preset(name: str) -> Policy:
    return _load_preset(name, set())


def resolve_policy(ref: str, search_dirs: Iterable[Path] = ()) -> Policy:
    """Resolve a policy reference: a file path, ``preset:<name>``, or a bare name.

    Bare names are looked up as ``<name>.yaml`` in the search directories
    before falling back to the built-in presets.
    """
    if ref.startswith(_PRESET_PREFIX):
        return load_preset(ref[len(_PRESET_PREFIX) :])
    path = Path(ref)
    if path.is_file():
        return load_policy(path)
    for directory in search_dirs:
        candidate = Path(directory) / f"{ref}.yaml"
        if candidate.is_file():
            return load_policy(candidate)
    return load_preset(ref)


def _parse(text: str, _resolved: set[str]) -> Policy:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid policy YAML: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Policy YAML must be a mapping")
    return _build_policy(data, _resolved)


def _build_policy(data: dict, _resolved: set[str]) -> Policy:
    name = data.get("name", "unnamed")

    # Circular inheritance detection
    if name in _resolved:
        raise ValueError(f"Circular policy inheritance detected: {name}")
    _resolved.add(name)

    own_rules = _parse_rules(_list_field(data, "rules"))

    inherited: list[Policy] = []
    inherit_list = _list_field(data, "inherit")
    for ref in inherit_list:
        inherited.append(_load_ref(ref, _resolved))

    # Own rules first (higher priority in first-match-wins)
    all_rules = tuple(own_rules)
    for parent in inherited:
        all_rules += parent.rules

    # Unset defaults fall back to the nearest parent
    parent_defaults = inherited[0].defaults if inherited else PolicyDefaults()
    defaults_data = data.get("defaults") or {}
    if not isinstance(defaults_data, dict):
        raise ValueError("Policy field 'defaults' must be a mapping")
    defaults = PolicyDefaults(
        min_severity=_severity(defaults_data.get("min_severity"), parent_defaults.min_severity),
        exit_severity=_exit_severity(defaults_data, parent_defaults.exit_severity),
    )

    exempt = {_category(c) for c in _list_field(data, "exit_exempt")}
    for parent in inherited:
        exempt |= parent.exit_exempt

    return Policy(
        name=name,
        rules=all_rules,
        defaults=defaults,
        description=data.get("description", ""),
        exit_exempt=frozenset(exempt),
        inherit=tuple(inherit_list),
    )


def _list_field(data: dict, key: str) -> list:
    """A list-valued policy field. Missing or null is empty; a lone string is one item."""
    value = data.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ValueError(f"Policy field '{key}' must be a list")
    return value


def _parse_rules(rules_data: list) -> list[Rule]:
    rules: list[Rule] = []
    for r in rules_data:
        if not isinstance(r, dict):
            continue
        category = r.get("category")
        rules.append(
            Rule(
                match=str(r.get("match", "*")),
                category=_category(category) if category else None,
                min_severity=_severity(r.get("min_severity"), Severity.NONE),
                reason=r.get("reason", ""),
            )
        )
    return rules


def _severity(value, default: Severity) -> Severity:
    if value is None:
        return default
    return Severity.from_label(str(value))


def _exit_severity(defaults_data: dict, default: Severity | None) -> Severity | None:
    if "exit_severity" not in defaults_data:
        return default
    value = defaults_data["exit_severity"]
    if value is None or str(value).lower() == "never":
        return None
    return Severity.from_label(str(value))


def _category(value) -> Category:
    return Category.from_label(str(value))


def _load_ref(ref: str, _resolved: set[str]) -> Policy:
    if ref.startswith(_PRESET_PREFIX):
        return _load_preset(ref[len(_PRESET_PREFIX) :], _resolved)
    # Treat as file path
    return load_policy(ref, _resolved=_resolved)


def _load_preset(name: str, _resolved: set[str]) -> Policy:
    pkg = importlib.resources.files("vibesafe.policy.presets")
    resource = pkg.joinpath(f"{name}.yaml")
    if not resource.is_file():
        raise ValueError(f"Unknown policy preset: {name}")
    return _parse(resource.read_text(encoding="utf-8"), _resolved)
