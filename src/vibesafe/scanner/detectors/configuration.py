"""Configuration detector — insecure settings in JSON and YAML files."""

from __future__ import annotations

import json
import logging
import posixpath
import re
from dataclasses import dataclass
from typing import Any

import yaml

from vibesafe.scanner.models import ConfigFinding, Severity
from vibesafe.scanner.technologies import DetectedTechnologies

logger = logging.getLogger(__name__)

CONFIG_EXTENSIONS = {".json", ".yaml", ".yml"}

PERMISSIVE_CORS_TYPE = "Permissive CORS"
PERMISSIVE_CORS_MESSAGE = "Permissive CORS policy found (allow all origins '*' detected)."


@dataclass(frozen=True)
class ConfigRule:
    """Key-name regex plus the exact value that makes the setting insecure."""

    key_pattern: re.Pattern[str]
    value: Any
    type: str
    severity: Severity
    message: str


CONFIG_RULES: tuple[ConfigRule, ...] = (
    ConfigRule(
        key_pattern=re.compile(r"^(DEBUG|devMode)$", re.IGNORECASE),
        value=True,
        type="Insecure Setting",
        severity=Severity.MEDIUM,
        message="Debugging or development mode flag might be enabled.",
    ),
    ConfigRule(
        key_pattern=re.compile(r"^origin$", re.IGNORECASE),
        value="*",
        type=PERMISSIVE_CORS_TYPE,
        severity=Severity.HIGH,
        message=PERMISSIVE_CORS_MESSAGE,
    ),
)


def scan_configuration(
    file_path: str,
    content: str,
    tech: DetectedTechnologies | None = None,
) -> list[ConfigFinding]:
    """Parse a JSON/YAML file and report insecure key/value settings."""
    ext = posixpath.splitext(file_path)[1].lower()
    if ext not in CONFIG_EXTENSIONS:
        return []

    try:
        if ext == ".json":
            documents = [json.loads(content)]
        else:
            documents = list(yaml.safe_load_all(content))
    except (json.JSONDecodeError, yaml.YAMLError, RecursionError) as e:
        logger.warning("Failed to parse config file %s: %s", file_path, e)
        return []

    lines = content.splitlines()
    findings: list[ConfigFinding] = []
    for document in documents:
        for key_path, value, rule in _walk(document):
            findings.append(
                ConfigFinding(
                    file_path=file_path,
                    line=_locate_key(lines, key_path.rsplit(".", 1)[-1]),
                    type=rule.type,
                    severity=rule.severity,
                    message=rule.message,
                    details=f"{key_path} = {value!r}",
                    key=key_path,
                    value=value,
                )
            )
    return findings


def _walk(document: Any):
    """Yield (key_path, value, rule) for every insecure setting in a parsed tree.

    Iterative, in document order; deeply nested input does not recurse.
    """
    # (key, value, path, suppressed): suppressed marks an origin already
    # reported by the structural CORS rule
    stack: list[tuple[str | None, Any, str, bool]] = [(None, document, "", False)]
    while stack:
        key, node, path, suppressed = stack.pop()

        cors = False
        if key is not None:
            cors = "cors" in key.lower() and isinstance(node, dict) and node.get("origin") == "*"
            if cors:
                yield f"{path}.origin", "*", _CORS_STRUCTURAL_RULE
            if not suppressed:
                for rule in CONFIG_RULES:
                    if rule.key_pattern.match(key) and _equals(node, rule.value):
                        yield path, node, rule

        if isinstance(node, dict):
            children = []
            for child_key, child in node.items():
                child_key = str(child_key)
                child_path = f"{path}.{child_key}" if path else child_key
                children.append((child_key, child, child_path, cors and child_key == "origin"))
            stack.extend(reversed(children))
        elif isinstance(node, list):
            stack.extend(
                reversed([(None, item, f"{path}[{index}]", False) for index, item in enumerate(node)])
            )


def _equals(actual: Any, expected: Any) -> bool:
    # bool is an int subclass; DEBUG: 1 must not match True
    return type(actual) is type(expected) and actual == expected


_CORS_STRUCTURAL_RULE = ConfigRule(
    key_pattern=re.compile(r"cors", re.IGNORECASE),
    value="*",
    type=PERMISSIVE_CORS_TYPE,
    severity=Severity.HIGH,
    message=PERMISSIVE_CORS_MESSAGE,
)


def _locate_key(lines: list[str], key: str) -> int | None:
    """Best-effort line number of the first line mentioning a key."""
    bare = re.sub(r"\[\d+\]$", "", key)
    needle = re.compile(rf"(^|[\s\"'{{,]){re.escape(bare)}[\"']?\s*:")
    for line_num, line in enumerate(lines, start=1):
        if needle.search(line):
            return line_num
    return None
