"""Manifest detection and parsing — package.json, requirements.txt, pyproject.toml."""

from __future__ import annotations

import json
import logging
import re
import tomllib
from collections.abc import Iterable
from pathlib import Path

from vibesafe.scanner.models import DependencyRecord

logger = logging.getLogger(__name__)

# Manifest filename → default package manager
MANIFEST_FILES = {
    "package.json": "npm",
    "requirements.txt": "pip",
    "pyproject.toml": "pip",
    "pom.xml": "maven",
    "build.gradle": "gradle",
    "build.gradle.kts": "gradle",
}

# Lockfiles that refine the manager for a sibling package.json
NODE_LOCKFILES = (
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("package-lock.json", "npm"),
)

# Package manager → OSV ecosystem
ECOSYSTEMS = {
    "npm": "npm",
    "yarn": "npm",
    "pnpm": "npm",
    "pip": "PyPI",
    "poetry": "PyPI",
    "maven": "Maven",
    "gradle": "Maven",
}

_NODE_SECTIONS = ("dependencies", "devDependencies", "peerDependencies")

# name[extras] spec ; markers
_REQUIREMENT_REGEX = re.compile(
    r"^\s*([A-Za-z0-9][A-Za-z0-9._\-]*)\s*(?:\[[^\]]*\])?\s*\(?\s*([^;()]*?)\s*\)?\s*(?:;.*)?$"
)
_VERSION_PREFIX_REGEX = re.compile(r"^(?:\^|~=|~|===|==|=)\s*")
_VERSION_REGEX = re.compile(r"v?\d+(?:\.\d+)*(?:[-+.]?[0-9A-Za-z][0-9A-Za-z.\-+]*)?")


def find_manifests(files: Iterable[Path]) -> list[Path]:
    return [path for path in files if path.name in MANIFEST_FILES]


def parse_manifests(files: Iterable[Path], root: Path) -> list[DependencyRecord]:
    """Parse every supported manifest among the discovered files."""
    records: list[DependencyRecord] = []
    for path in find_manifests(files):
        records.extend(parse_manifest(path, root))
    return records


def parse_manifest(path: Path, root: Path) -> list[DependencyRecord]:
    source = path.relative_to(root).as_posix()
    try:
        if path.name == "package.json":
            return _parse_package_json(path, source)
        if path.name == "requirements.txt":
            return _parse_requirements(path, source)
        if path.name == "pyproject.toml":
            return _parse_pyproject(path, source)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read %s: %s", source, e)
        return []

    logger.info("Detected %s manifest %s; dependency parsing not supported", MANIFEST_FILES[path.name], source)
    return []


def normalize_version(spec: str) -> str | None:
    """Reduce a declared version spec to a concrete version, or None.

    ``^1.2.3``, ``~1.2.3`` and ``==1.2.3`` all become ``1.2.3``. Wildcards,
    tags, URLs and open ranges such as ``>=1.0`` cannot be resolved.
    """
    spec = spec.strip()
    if not spec:
        return None
    first = re.split(r"\s*\|\|\s*|\s*,\s*|\s+-\s+", spec)[0].strip()
    first = _VERSION_PREFIX_REGEX.sub("", first, count=1)
    if not _VERSION_REGEX.fullmatch(first):
        return None
    if any(part in ("x", "X", "*") for part in first.split(".")):
        return None
    return first.removeprefix("v")


def _node_manager(path: Path) -> str:
    for lockfile, manager in NODE_LOCKFILES:
        if (path.parent / lockfile).exists():
            return manager
    return "npm"


def _parse_package_json(path: Path, source: str) -> list[DependencyRecord]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.warning("Invalid JSON in %s: %s", source, e)
        return []
    if not isinstance(data, dict):
        return []

    manager = _node_manager(path)
    records = []
    for section in _NODE_SECTIONS:
        deps = data.get(section)
        if not isinstance(deps, dict):
            continue
        for name, version in deps.items():
            records.append(
                DependencyRecord(
                    name=name,
                    version=str(version),
                    package_manager=manager,
                    manifest_source=source,
                )
            )
    logger.debug("Parsed %d dependencies from %s", len(records), source)
    return records


def _parse_requirement(line: str) -> tuple[str, str] | None:
    match = _REQUIREMENT_REGEX.match(line)
    if not match:
        return None
    return match.group(1), match.group(2)


def _parse_requirements(path: Path, source: str) -> list[DependencyRecord]:
    records = []
    for raw in path.read_text(encoding="utf-8", errors="ignore").splitlines():
        line = raw.split(" #", 1)[0].strip()
        # Options, includes, editable installs and direct URLs
        if not line or line.startswith(("#", "-")) or "://" in line:
            continue
        parsed = _parse_requirement(line)
        if parsed is None:
            continue
        name, spec = parsed
        records.append(
            DependencyRecord(
                name=name,
                version=spec if spec.startswith("==") else "",
                package_manager="pip",
                manifest_source=source,
            )
        )
    return records


def _parse_pyproject(path: Path, source: str) -> list[DependencyRecord]:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        logger.warning("Invalid TOML in %s: %s", source, e)
        return []

    records = []
    for requirement in data.get("project", {}).get("dependencies", []):
        parsed = _parse_requirement(str(requirement))
        if parsed is None:
            continue
        name, spec = parsed
        records.append(
            DependencyRecord(
                name=name,
                version=spec if spec.startswith("==") else "",
                package_manager="pip",
                manifest_source=source,
            )
        )

    poetry = data.get("tool", {}).get("poetry", {})
    for name, spec in poetry.get("dependencies", {}).items():
        if name.lower() == "python":
            continue
        if isinstance(spec, dict):
            spec = spec.get("version", "")
        records.append(
            DependencyRecord(
                name=name,
                version=str(spec),
                package_manager="poetry",
                manifest_source=source,
            )
        )
    return records
