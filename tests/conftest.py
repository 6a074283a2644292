"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from vibesafe.policy.loader import HIGH_ONLY_PRESET, load_preset
from vibesafe.policy.models import Policy, PolicyDefaults, Rule
from vibesafe.scanner.models import Category, Severity
from vibesafe.scanner.technologies import DetectedTechnologies, detect_technologies


@pytest.fixture
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def strict_policy_path(fixtures_dir: Path) -> Path:
    return fixtures_dir / "policies" / "strict.yaml"


@pytest.fixture
def high_only_policy() -> Policy:
    return load_preset(HIGH_ONLY_PRESET)


@pytest.fixture
def upload_policy() -> Policy:
    return Policy(
        name="test",
        rules=(
            Rule(match="*", category=Category.UPLOAD, min_severity=Severity.MEDIUM, reason="Uploads"),
            Rule(match="High Entropy*", min_severity=Severity.NONE, reason="Entropy"),
        ),
        defaults=PolicyDefaults(min_severity=Severity.HIGH, exit_severity=Severity.HIGH),
    )


@pytest.fixture
def backend_tech() -> DetectedTechnologies:
    return detect_technologies(["express", "react"])


@pytest.fixture
def frontend_tech() -> DetectedTechnologies:
    return detect_technologies(["react", "react-dom"])


@pytest.fixture
def write_tree(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write a ``{relative path: content}`` mapping under tmp_path."""

    def _write(files: dict[str, str]) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _write
