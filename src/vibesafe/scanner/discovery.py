"""File discovery — layered ignore rules, pruned traversal and .gitignore coverage."""

from __future__ import annotations

import fnmatch
import logging
import os
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from vibesafe.scanner.models import ConfigFinding, Severity

logger = logging.getLogger(__name__)

IGNORE_FILE = ".vibesafeignore"
GITIGNORE_FILE = ".gitignore"

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    # Version control
    ".git",
    ".svn",
    ".hg",
    # Dependencies and build output
    "node_modules",
    "dist",
    "build",
    ".next",
    "coverage",
    "__pycache__",
    ".venv",
    "venv",
    # Lockfiles
    "*.lock",
    "package-lock.json",
    "pnpm-lock.yaml",
    # Logs, temp and OS files
    "*.log",
    "*.swp",
    "*.tmp",
    ".DS_Store",
    "Thumbs.db",
)

# Typed variants win over plain variants sharing a stem in the same directory
_TYPED_SUFFIXES = {".ts", ".tsx"}
_PLAIN_SUFFIXES = {".js", ".jsx"}

# Env-file variants that a .gitignore is expected to cover
SENSITIVE_ENV_FILES: tuple[str, ...] = (
    ".env",
    ".env.local",
    ".env.development.local",
    ".env.production.local",
    ".env.production",
)


@dataclass(frozen=True)
class IgnoreRule:
    """A single compiled gitignore-style pattern."""

    pattern: str
    negated: bool
    dir_only: bool
    regex: re.Pattern[str] | None = None

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.dir_only and not is_dir:
            return False
        if self.regex is not None:
            return self.regex.fullmatch(rel_path) is not None
        # Unanchored patterns match the entry name at any depth
        name = rel_path.rsplit("/", 1)[-1]
        return fnmatch.fnmatchcase(name, self.pattern)


class IgnoreRuleSet:
    """Ordered, immutable set of ignore rules. Last matching rule wins."""

    def __init__(self, patterns: Iterable[str] = ()) -> None:
        compiled: list[IgnoreRule] = []
        for raw in patterns:
            rule = _compile_pattern(raw)
            if rule is not None:
                compiled.append(rule)
        self._rules: tuple[IgnoreRule, ...] = tuple(compiled)

    @classmethod
    def for_root(
        cls,
        root: str | Path,
        extra_patterns: Iterable[str] = (),
        respect_gitignore: bool = False,
    ) -> IgnoreRuleSet:
        """Built-in defaults, then .vibesafeignore, then optional .gitignore and extras."""
        root = Path(root)
        patterns = list(DEFAULT_IGNORE_PATTERNS)
        patterns.extend(read_ignore_file(root / IGNORE_FILE))
        if respect_gitignore:
            patterns.extend(read_ignore_file(root / GITIGNORE_FILE))
        patterns.extend(extra_patterns)
        return cls(patterns)

    @property
    def rules(self) -> tuple[IgnoreRule, ...]:
        return self._rules

    def matches(self, rel_path: str, is_dir: bool = False) -> bool:
        """Check a single entry, assuming its parents are not ignored."""
        ignored = False
        for rule in self._rules:
            if rule.matches(rel_path, is_dir):
                ignored = not rule.negated
        return ignored

    def is_ignored(self, rel_path: str, is_dir: bool = False) -> bool:
        """Check an entry including every parent directory."""
        parts = [p for p in rel_path.strip("/").split("/") if p]
        for i in range(1, len(parts)):
            if self.matches("/".join(parts[:i]), is_dir=True):
                return True
        return self.matches("/".join(parts), is_dir=is_dir)


def _compile_pattern(raw: str) -> IgnoreRule | None:
    line = raw.rstrip("\n").rstrip()
    if not line or line.startswith("#"):
        return None

    negated = line.startswith("!")
    if negated:
        line = line[1:]
    if line.startswith("\\"):
        line = line[1:]

    dir_only = line.endswith("/")
    line = line.rstrip("/")
    if not line:
        return None

    if "/" in line:
        # Anchored to the root when the pattern contains a slash
        return IgnoreRule(
            pattern=line,
            negated=negated,
            dir_only=dir_only,
            regex=re.compile(_glob_to_regex(line.lstrip("/"))),
        )
    return IgnoreRule(pattern=line, negated=negated, dir_only=dir_only)


def _glob_to_regex(pattern: str) -> str:
    """Translate a slash-containing glob; ``*`` stays within a segment, ``**`` spans."""
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("/**", i) and i + 3 == n:
            out.append("/.*")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif c == "*":
            out.append("[^/]*")
            i += 1
        elif c == "?":
            out.append("[^/]")
            i += 1
        elif c == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                out.append(re.escape(c))
                i += 1
            else:
                body = pattern[i + 1 : end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = end + 1
        else:
            out.append(re.escape(c))
            i += 1
    return "".join(out)


def read_ignore_file(path: Path) -> list[str]:
    """Read gitignore-syntax lines, skipping blanks and comments."""
    if not path.is_file():
        return []
    try:
        text = path.read_text(encoding="utf-8", errors="ignore")
    except OSError as e:
        logger.warning("Error reading %s: %s", path, e)
        return []
    return [
        line
        for line in text.splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    ]


def discover_files(root: str | Path, rules: IgnoreRuleSet | None = None) -> list[Path]:
    """Return absolute paths of every scannable file under root, sorted."""
    root = Path(root).resolve()
    rules = rules if rules is not None else IgnoreRuleSet.for_root(root)
    results: list[Path] = []

    def _on_error(err: OSError) -> None:
        logger.warning("Cannot read directory %s: %s", err.filename, err.strerror)

    for dirpath, dirs, files in os.walk(root, onerror=_on_error):
        current = Path(dirpath)
        rel_dir = current.relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else rel_dir + "/"

        # Prune ignored directories in-place so they are never descended into
        dirs[:] = sorted(d for d in dirs if not rules.matches(prefix + d, is_dir=True))

        kept = [name for name in files if not rules.matches(prefix + name)]
        for name in sorted(_drop_plain_duplicates(kept)):
            results.append(current / name)

    logger.debug("Discovered %d files under %s", len(results), root)
    return results


def _drop_plain_duplicates(names: list[str]) -> list[str]:
    typed_stems = {
        os.path.splitext(n)[0] for n in names if os.path.splitext(n)[1] in _TYPED_SUFFIXES
    }
    return [
        n
        for n in names
        if not (
            os.path.splitext(n)[1] in _PLAIN_SUFFIXES
            and os.path.splitext(n)[0] in typed_stems
        )
    ]


def check_gitignore(root: str | Path) -> list[ConfigFinding]:
    """Advise when .gitignore is missing or does not cover env-file variants."""
    root = Path(root)
    gitignore = root / GITIGNORE_FILE
    if not gitignore.is_file():
        return [
            ConfigFinding(
                severity=Severity.LOW,
                type="Missing .gitignore",
                message="No .gitignore found; environment files may be committed.",
                details="Add a .gitignore that excludes .env and .env.* files.",
                key=GITIGNORE_FILE,
            )
        ]

    rules = IgnoreRuleSet(read_ignore_file(gitignore))
    findings: list[ConfigFinding] = []
    for env_name in SENSITIVE_ENV_FILES:
        if rules.is_ignored(env_name):
            continue
        findings.append(
            ConfigFinding(
                file_path=GITIGNORE_FILE,
                severity=Severity.LOW,
                type="Environment File Not Ignored",
                message=f"{env_name} is not covered by .gitignore.",
                details=f"Add '{env_name}' (or '.env*') to .gitignore to keep secrets out of version control.",
                key=env_name,
            )
        )
    return findings
