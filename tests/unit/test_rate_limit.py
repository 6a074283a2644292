"""Tests for the project-level rate-limit advisory."""

from __future__ import annotations

from vibesafe.scanner.detectors.rate_limit import check_rate_limiting
from vibesafe.scanner.discovery import discover_files
from vibesafe.scanner.models import DependencyRecord, Severity
from vibesafe.scanner.technologies import detect_technologies


def _deps(*names: str) -> list[DependencyRecord]:
    return [DependencyRecord(n, "1.0.0", "npm", "package.json") for n in names]


def test_routes_without_rate_limit_package(write_tree):
    root = write_tree({"server.js": "app.get('/users', list);\n"})
    deps = _deps("express")
    findings = check_rate_limiting(deps, discover_files(root), detect_technologies(["express"]), root.resolve())
    assert len(findings) == 1
    assert findings[0].type == "Project-Level Rate Limit Advisory"
    assert findings[0].severity == Severity.LOW
    assert findings[0].location == "(project)"


def test_rate_limit_package_present(write_tree):
    root = write_tree({"server.js": "app.get('/users', list);\n"})
    deps = _deps("express", "express-rate-limit")
    tech = detect_technologies(d.name for d in deps)
    assert check_rate_limiting(deps, discover_files(root), tech, root.resolve()) == []


def test_conventional_api_directory(write_tree):
    root = write_tree({"pages/api/hello.js": "export default function handler() {}\n"})
    deps = _deps("next")
    tech = detect_technologies(["next"])
    assert len(check_rate_limiting(deps, discover_files(root), tech, root.resolve())) == 1


def test_no_routes(write_tree):
    root = write_tree({"lib.js": "module.exports = 1;\n"})
    deps = _deps("express")
    assert check_rate_limiting(deps, discover_files(root), detect_technologies(["express"]), root.resolve()) == []


def test_frontend_only_project(write_tree, frontend_tech):
    root = write_tree({"server.js": "app.get('/users', list);\n"})
    assert check_rate_limiting(_deps("react"), discover_files(root), frontend_tech, root.resolve()) == []
