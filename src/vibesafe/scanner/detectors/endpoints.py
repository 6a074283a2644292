"""Endpoint detector — debug/admin routes from route calls, literals and file layout."""

from __future__ import annotations

import posixpath

from vibesafe.scanner.models import EndpointFinding, Severity
from vibesafe.scanner.patterns import (
    SENSITIVE_PATH_KEYWORDS,
    SENSITIVE_ROUTE_REGEX,
    SENSITIVE_STRING_LITERAL_REGEX,
)
from vibesafe.scanner.technologies import DetectedTechnologies

ENDPOINT_SOURCE_EXTENSIONS = {".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".py"}

EXPOSED_ENDPOINT_TYPE = "Potentially Exposed Debug/Admin Endpoint"

# Router roots for file-system based routing
_ROUTER_DIRS = ("pages", "app")
_ROUTE_FILE_STEMS = {"index", "route", "page"}
# File-system routing is a JS/TS framework convention
_ROUTER_EXTENSIONS = {".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs"}


def scan_endpoints(
    file_path: str,
    content: str,
    tech: DetectedTechnologies | None = None,
) -> list[EndpointFinding]:
    """Scan a source file for potentially exposed debug or admin endpoints."""
    if tech is not None and tech.is_frontend_only:
        return []
    if posixpath.splitext(file_path)[1].lower() not in ENDPOINT_SOURCE_EXTENSIONS:
        return []

    findings = _scan_route_patterns(file_path, content)

    convention = _scan_path_convention(file_path)
    if convention is not None:
        reported = {f.path.strip("/").split("/")[0].lower() for f in findings}
        if convention.path.strip("/").split("/")[-1].lower() not in reported:
            findings.append(convention)

    return findings


def _scan_route_patterns(file_path: str, content: str) -> list[EndpointFinding]:
    findings: list[EndpointFinding] = []
    lines = content.splitlines()
    flagged_lines: set[int] = set()

    # Framework route registrations first, e.g. app.get('/admin')
    for match in SENSITIVE_ROUTE_REGEX.finditer(content):
        line = content.count("\n", 0, match.start()) + 1
        if line in flagged_lines:
            continue
        flagged_lines.add(line)
        endpoint = match.group(2)
        findings.append(
            EndpointFinding(
                file_path=file_path,
                line=line,
                type=EXPOSED_ENDPOINT_TYPE,
                severity=Severity.MEDIUM,
                message=f"Potential debug/admin endpoint found: {endpoint}",
                details=f"Found pattern: {_context(lines, line)}",
                path=endpoint,
            )
        )

    # Bare string literals as a lower-confidence fallback
    for match in SENSITIVE_STRING_LITERAL_REGEX.finditer(content):
        line = content.count("\n", 0, match.start()) + 1
        if line in flagged_lines:
            continue
        flagged_lines.add(line)
        endpoint = match.group(1)
        findings.append(
            EndpointFinding(
                file_path=file_path,
                line=line,
                type=EXPOSED_ENDPOINT_TYPE,
                severity=Severity.LOW,
                message=f"Potential debug/admin endpoint string found: {endpoint}",
                details=f"Found string literal: {_context(lines, line)}",
                path=endpoint,
            )
        )

    return findings


def _scan_path_convention(file_path: str) -> EndpointFinding | None:
    """Infer a route from file-system routing layout (pages/, app/)."""
    route = infer_route(file_path)
    if route is None:
        return None
    segments, is_api = route
    keyword = _last_static_segment(segments)
    if keyword is None or not _is_sensitive(keyword):
        return None

    route_path = "/" + "/".join(segments)
    return EndpointFinding(
        file_path=file_path,
        type=EXPOSED_ENDPOINT_TYPE,
        severity=Severity.MEDIUM if is_api else Severity.LOW,
        message=f"Potential debug/admin route inferred from file path: {route_path}",
        details=f"Sensitive segment '{keyword}' in {'API' if is_api else 'page'} route.",
        path=f"/{keyword}",
    )


def infer_route(file_path: str) -> tuple[list[str], bool] | None:
    """Route segments for a file under a pages/ or app/ router, plus an is-API flag.

    ``pages/api/status/[id].ts`` becomes ``(["api", "status", "[id]"], True)``,
    ``app/(dashboard)/metrics/page.js`` becomes ``(["metrics"], False)``.
    """
    if posixpath.splitext(file_path)[1].lower() not in _ROUTER_EXTENSIONS:
        return None
    parts = file_path.replace("\\", "/").split("/")
    root_index = None
    for index, part in enumerate(parts[:-1]):
        if part in _ROUTER_DIRS:
            root_index = index
    if root_index is None:
        return None

    segments = parts[root_index + 1 :]
    segments[-1] = posixpath.splitext(segments[-1])[0]
    if segments and segments[-1] in _ROUTE_FILE_STEMS:
        segments.pop()

    # Route groups like (dashboard) do not appear in the URL
    segments = [s for s in segments if not (s.startswith("(") and s.endswith(")"))]
    is_api = bool(segments) and segments[0] == "api"
    return segments, is_api


def _last_static_segment(segments: list[str]) -> str | None:
    for segment in reversed(segments):
        if segment.startswith("[") or segment == "api":
            continue
        return segment
    return None


def _is_sensitive(keyword: str) -> bool:
    keyword = keyword.lower()
    return any(keyword == k or keyword.startswith(k) for k in SENSITIVE_PATH_KEYWORDS)


def _context(lines: list[str], line: int, width: int = 100) -> str:
    text = lines[line - 1].strip() if 0 < line <= len(lines) else ""
    return text[:width] + ("..." if len(text) > width else "")
