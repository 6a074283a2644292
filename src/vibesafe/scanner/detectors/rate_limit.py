"""Rate-limit advisory — project-level check for routes without a rate-limit package."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from vibesafe.scanner.models import DependencyRecord, RateLimitFinding, Severity
from vibesafe.scanner.patterns import CONVENTIONAL_API_DIR_REGEX, ROUTE_DEFINITION_REGEX
from vibesafe.scanner.technologies import DetectedTechnologies

logger = logging.getLogger(__name__)

KNOWN_RATE_LIMIT_PACKAGES = frozenset(
    {
        "express-rate-limit",
        "@upstash/ratelimit",
        "rate-limiter-flexible",
        "express-slow-down",
        "@fastify/rate-limit",
        "slowapi",
        "flask-limiter",
        "django-ratelimit",
    }
)

_ROUTE_SOURCE_SUFFIXES = {".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".py"}


def check_rate_limiting(
    dependencies: Iterable[DependencyRecord],
    files: Iterable[Path],
    tech: DetectedTechnologies,
    root: Path | None = None,
) -> list[RateLimitFinding]:
    """Return one advisory when routes exist but no rate-limit package is declared."""
    if tech.is_frontend_only:
        return []

    if any(dep.name.lower() in KNOWN_RATE_LIMIT_PACKAGES for dep in dependencies):
        return []

    if not _routes_exist(files, root):
        return []

    return [
        RateLimitFinding(
            type="Project-Level Rate Limit Advisory",
            severity=Severity.LOW,
            message=(
                "Did not detect a rate limit package; ensure your API endpoints "
                "have rate limiting to mitigate abuse and DoS."
            ),
            details=(
                "No known rate-limiting package "
                f"({', '.join(sorted(KNOWN_RATE_LIMIT_PACKAGES))}) found in dependencies, "
                "but API routes were detected. Verify rate limiting is implemented via "
                "a library, custom code, or infrastructure."
            ),
        )
    ]


def _routes_exist(files: Iterable[Path], root: Path | None) -> bool:
    """Stop at the first route found, reading file contents lazily."""
    for path in files:
        rel = path.relative_to(root).as_posix() if root else path.as_posix()
        if CONVENTIONAL_API_DIR_REGEX.search(rel):
            return True
        if path.suffix.lower() not in _ROUTE_SOURCE_SUFFIXES:
            continue
        try:
            content = path.read_text(encoding="utf-8", errors="ignore")
        except OSError as e:
            logger.debug("Skipping %s: %s", path, e)
            continue
        if ROUTE_DEFINITION_REGEX.search(content):
            return True
    return False
