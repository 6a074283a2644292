"""Tests for file discovery and ignore rules."""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

import pytest

from vibesafe.scanner.discovery import (
    IgnoreRuleSet,
    check_gitignore,
    discover_files,
)


def _rel(paths: list[Path], root: Path) -> list[str]:
    return [p.relative_to(root.resolve()).as_posix() for p in paths]


class TestIgnoreRuleSet:
    def test_default_patterns_skip_dependencies(self):
        rules = IgnoreRuleSet.for_root("/nonexistent")
        assert rules.is_ignored("node_modules/lodash/index.js")
        assert rules.is_ignored("yarn.lock")
        assert rules.is_ignored("web/package-lock.json")
        assert not rules.is_ignored("src/index.js")

    def test_env_files_are_not_ignored_by_default(self):
        rules = IgnoreRuleSet.for_root("/nonexistent")
        assert not rules.is_ignored(".env")

    def test_last_matching_rule_wins(self):
        rules = IgnoreRuleSet(["*.js", "!keep.js"])
        assert rules.matches("drop.js")
        assert not rules.matches("keep.js")

    def test_anchored_pattern(self):
        rules = IgnoreRuleSet(["/generated/*.ts"])
        assert rules.matches("generated/types.ts")
        assert not rules.matches("src/generated/types.ts")

    def test_double_star(self):
        rules = IgnoreRuleSet(["fixtures/**/*.json"])
        assert rules.matches("fixtures/a/b/data.json")
        assert rules.matches("fixtures/data.json")

    def test_dir_only_pattern(self):
        rules = IgnoreRuleSet(["logs/"])
        assert rules.matches("logs", is_dir=True)
        assert not rules.matches("logs", is_dir=False)


class TestDiscoverFiles:
    def test_prunes_ignored_directories(self, write_tree):
        root = write_tree(
            {
                "src/app.js": "",
                "node_modules/lodash/index.js": "",
                "dist/bundle.js": "",
            }
        )
        assert _rel(discover_files(root), root) == ["src/app.js"]

    def test_typed_file_wins_over_plain_duplicate(self, write_tree):
        root = write_tree({"a.ts": "", "a.js": "", "b.js": ""})
        assert _rel(discover_files(root), root) == ["a.ts", "b.js"]

    def test_vibesafeignore_is_honoured(self, write_tree):
        root = write_tree(
            {
                ".vibesafeignore": "# local\nfixtures/\n",
                "fixtures/sample.js": "",
                "app.js": "",
            }
        )
        assert _rel(discover_files(root), root) == [".vibesafeignore", "app.js"]

    def test_extra_patterns(self, write_tree):
        root = write_tree({"app.js": "", "legacy/old.js": ""})
        rules = IgnoreRuleSet.for_root(root, extra_patterns=["legacy"])
        assert _rel(discover_files(root, rules), root) == ["app.js"]

    def test_gitignore_only_when_enabled(self, write_tree):
        root = write_tree({".gitignore": "secret.txt\n", "secret.txt": "", "app.js": ""})
        assert "secret.txt" in _rel(discover_files(root), root)
        rules = IgnoreRuleSet.for_root(root, respect_gitignore=True)
        assert "secret.txt" not in _rel(discover_files(root, rules), root)

    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="root can read directories regardless of permissions",
    )
    def test_unreadable_directory_is_skipped(self, write_tree, caplog):
        root = write_tree({"app.js": "", "locked/secret.js": "", "src/index.js": ""})
        locked = root / "locked"
        locked.chmod(0)
        try:
            with caplog.at_level(logging.WARNING, logger="vibesafe.scanner.discovery"):
                found = _rel(discover_files(root), root)
        finally:
            locked.chmod(stat.S_IRWXU)
        assert found == ["app.js", "src/index.js"]
        assert "Cannot read directory" in caplog.text
        assert "locked" in caplog.text


class TestCheckGitignore:
    def test_missing_gitignore(self, tmp_path: Path):
        findings = check_gitignore(tmp_path)
        assert len(findings) == 1
        assert findings[0].type == "Missing .gitignore"

    def test_env_wildcard_covers_all_variants(self, write_tree):
        root = write_tree({".gitignore": ".env\n.env*\n"})
        assert check_gitignore(root) == []

    def test_uncovered_variants_reported(self, write_tree):
        root = write_tree({".gitignore": ".env\n"})
        keys = [f.key for f in check_gitignore(root)]
        assert ".env" not in keys
        assert ".env.local" in keys
        assert ".env.production" in keys
