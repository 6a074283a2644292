"""Shared regex tables — secret rules, entropy candidates, route and keyword patterns."""

from __future__ import annotations

import math
import re
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass

from vibesafe.scanner.models import Severity


@dataclass(frozen=True)
class Pattern:
    """A secret rule with compiled regex, severity and optional match validator."""

    name: str
    regex: re.Pattern[str]
    severity: Severity
    validate: Callable[[str], bool] | None = None


# A 40-char string with few distinct characters is unlikely to be a real key
MIN_AWS_SECRET_UNIQUE_CHARS = 15


def _has_enough_unique_chars(value: str) -> bool:
    return len(set(value)) >= MIN_AWS_SECRET_UNIQUE_CHARS


SECRET_PATTERNS: tuple[Pattern, ...] = (
    Pattern(
        name="AWS Access Key ID",
        regex=re.compile(r"\b(?:AKIA|ASIA)[0-9A-Z]{16}\b"),
        severity=Severity.HIGH,
    ),
    Pattern(
        name="AWS Secret Access Key",
        regex=re.compile(r"(?<![A-Za-z0-9/+=])[A-Za-z0-9/+=]{40}(?![A-Za-z0-9/+=])"),
        severity=Severity.HIGH,
        validate=_has_enough_unique_chars,
    ),
    Pattern(
        name="Generic API Key",
        regex=re.compile(
            r"api_?key\s*[:=]\s*['\"]?[a-zA-Z0-9\-_]{16,}['\"]?",
            re.IGNORECASE,
        ),
        severity=Severity.MEDIUM,
    ),
    Pattern(
        name="Private Key",
        regex=re.compile(r"-----BEGIN (?:RSA |EC |DSA |OPENSSH |PGP )?PRIVATE KEY(?: BLOCK)?-----"),
        severity=Severity.HIGH,
    ),
    Pattern(
        name="GitHub Token",
        regex=re.compile(r"\bgh[pousr]_[A-Za-z0-9]{36,}\b"),
        severity=Severity.HIGH,
    ),
    Pattern(
        name="Slack Token",
        regex=re.compile(r"\bxox[baprs]-[A-Za-z0-9-]{10,}\b"),
        severity=Severity.HIGH,
    ),
    Pattern(
        name="Stripe Live Secret Key",
        regex=re.compile(r"\b(?:sk|rk)_live_[A-Za-z0-9]{16,}\b"),
        severity=Severity.HIGH,
    ),
)

# Largest runs of key-like characters; entropy is only computed on these
ENTROPY_CANDIDATE_REGEX = re.compile(r"[a-zA-Z0-9/+=]{20,}")

# .env, .env.local, production.env, ...
ENV_FILE_REGEX = re.compile(r"\.env($|\.)")

BINARY_FILE_EXTENSIONS = frozenset(
    {
        # Images
        ".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".bmp", ".ico",
        # Fonts
        ".otf", ".ttf", ".woff", ".woff2", ".eot",
        # Archives
        ".zip", ".tar", ".gz", ".bz2", ".rar", ".7z", ".whl", ".egg",
        # Documents
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
        # Executables and libraries
        ".exe", ".dll", ".so", ".dylib", ".app", ".msi", ".bin",
        # Media
        ".mp3", ".wav", ".ogg", ".mp4", ".mov", ".avi", ".wmv", ".mkv", ".flv",
        # Compiled and data
        ".class", ".jar", ".pyc", ".pyo", ".o", ".a", ".lib", ".obj",
        ".db", ".sqlite", ".sqlite3", ".dat",
    }
)

# Path keywords that suggest a debug or administrative surface
SENSITIVE_PATH_KEYWORDS: tuple[str, ...] = (
    "debug",
    "admin",
    "status",
    "info",
    "healthz",
    "health",
    "metrics",
    "console",
    "manage",
    "config",
)

_KEYWORD_ALTERNATION = "|".join(SENSITIVE_PATH_KEYWORDS)

SENSITIVE_ROUTE_REGEX = re.compile(
    r"\.(get|post|put|delete|patch|use|all|route)\s*\(\s*['\"`]"
    rf"(/(?:{_KEYWORD_ALTERNATION}))[\w\-:/]*['\"`]",
    re.IGNORECASE,
)

SENSITIVE_STRING_LITERAL_REGEX = re.compile(
    rf"['\"`](/(?:{_KEYWORD_ALTERNATION}))[\w\-:/]*['\"`]",
    re.IGNORECASE,
)

# Any route registration such as app.get('/users/:id')
ROUTE_DEFINITION_REGEX = re.compile(
    r"\.(get|post|put|delete|patch|all|use|route)\s*\(\s*['\"`]/[\w\-/:]*['\"`]",
    re.IGNORECASE,
)

# Conventional API directories (Next.js pages/ and app/ routers)
CONVENTIONAL_API_DIR_REGEX = re.compile(r"(?:^|/)(?:pages|app)/api/", re.IGNORECASE)

# Argument text that likely carries credentials or personal data
SENSITIVE_DATA_REGEX = re.compile(
    r"password|passwd|pwd|e-?mail|token|secret|api_?key|private_?key|credential"
    r"|ssn|social_?security|credit_?card|card_?number|cvv|session|\bkey\b",
    re.IGNORECASE,
)

ERROR_VARIABLE_NAMES = frozenset({"err", "error", "e", "ex", "exception"})


def shannon_entropy(value: str) -> float:
    """Shannon entropy of a string in bits per character."""
    if not value:
        return 0.0
    length = len(value)
    return -sum(
        (count / length) * math.log2(count / length) for count in Counter(value).values()
    )


def is_env_file(file_path: str) -> bool:
    """True for files named like .env, .env.local or prod.env."""
    return ENV_FILE_REGEX.search(file_path.rsplit("/", 1)[-1]) is not None
