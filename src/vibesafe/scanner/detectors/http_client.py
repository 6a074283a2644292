"""HTTP client detector — outbound requests made without a timeout or abort signal."""

from __future__ import annotations

import ast
import logging
import posixpath

from tree_sitter import Node

from vibesafe.scanner.languages.javascript import (
    JS_EXTENSIONS,
    call_arguments,
    line_of,
    member_parts,
    object_has_property,
    parse_source,
    same_node,
    text,
    walk,
)
from vibesafe.scanner.languages.python import dotted_name, has_keyword, parse_python
from vibesafe.scanner.models import HttpClientFinding, Severity
from vibesafe.scanner.technologies import DetectedTechnologies

logger = logging.getLogger(__name__)

MISSING_TIMEOUT_TYPE = "Potential Missing Timeout"

_HTTP_METHODS = {"get", "post", "put", "delete", "patch", "head", "options", "request"}
_TIMEOUT_KEYS = {"timeout", "signal"}

_PYTHON_REQUESTS_CALLS = {f"requests.{method}" for method in _HTTP_METHODS}
_PYTHON_URLOPEN_CALLS = {"urllib.request.urlopen", "request.urlopen", "urlopen"}


def scan_http_clients(
    file_path: str,
    content: str,
    tech: DetectedTechnologies | None = None,
) -> list[HttpClientFinding]:
    """Flag HTTP client calls that can hang forever on a slow server."""
    ext = posixpath.splitext(file_path)[1].lower()
    if ext in JS_EXTENSIONS:
        hits = _scan_javascript(file_path, content)
    elif ext == ".py":
        hits = _scan_python(file_path, content)
    else:
        return []

    findings: list[HttpClientFinding] = []
    seen: set[tuple[int, str]] = set()
    for line, library, call_text in hits:
        if (line, library) in seen:
            continue
        seen.add((line, library))
        findings.append(
            HttpClientFinding(
                file_path=file_path,
                line=line,
                type=MISSING_TIMEOUT_TYPE,
                severity=Severity.LOW,
                message=f"HTTP request using {library} might be missing a timeout configuration.",
                details=(
                    "Requests without timeouts can hang indefinitely, potentially leading "
                    f"to resource exhaustion. Call: {_shorten(call_text)}"
                ),
                library=library,
            )
        )
    return findings


# -- JavaScript / TypeScript --------------------------------------------------


def _scan_javascript(file_path: str, content: str) -> list[tuple[int, str, str]]:
    root = parse_source(content, file_path)
    if root is None:
        return []

    hits = []
    for node in walk(root):
        if node.type != "call_expression":
            continue
        library = _missing_timeout(node)
        if library:
            hits.append((line_of(node), library, text(node)))
    return hits


def _missing_timeout(call: Node) -> str | None:
    """Library name when this call lacks timeout configuration, else None."""
    func = call.child_by_field_name("function")
    args = call_arguments(call)
    if func is None:
        return None

    if func.type == "identifier":
        name = text(func)
        if name == "axios":
            return None if _axios_configured(args) else "axios"
        if name == "fetch":
            options = args[1] if len(args) > 1 else None
            return None if object_has_property(options, {"signal"}) else "fetch"
        if name == "got":
            options = args[1] if len(args) > 1 else None
            return None if object_has_property(options, _TIMEOUT_KEYS) else "got"
        if name == "request":
            return None if _request_configured(args) else "request"
        return None

    parts = member_parts(func)
    if parts is None:
        return None
    obj, method = parts

    if obj == "axios" and method in _HTTP_METHODS:
        options = next((a for a in reversed(args) if a.type == "object"), None)
        return None if object_has_property(options, _TIMEOUT_KEYS) else "axios"
    if obj == "got" and method in _HTTP_METHODS:
        options = args[1] if len(args) > 1 else None
        return None if object_has_property(options, _TIMEOUT_KEYS) else "got"
    if obj == "request" and method in _HTTP_METHODS:
        return None if _request_configured(args) else "request"
    if obj == "superagent" and method in _HTTP_METHODS:
        return None if _chained_timeout(call) else "superagent"
    return None


def _axios_configured(args: list[Node]) -> bool:
    # axios(config) or axios(url, config)
    if len(args) == 1 and args[0].type == "object":
        return object_has_property(args[0], _TIMEOUT_KEYS)
    if len(args) > 1:
        return object_has_property(args[1], _TIMEOUT_KEYS)
    return False


def _request_configured(args: list[Node]) -> bool:
    for arg in args[:2]:
        if arg.type == "object":
            return object_has_property(arg, {"timeout"})
    return False


def _chained_timeout(call: Node) -> bool:
    """True when ``.timeout(...)`` appears further along the call chain."""
    node = call
    while True:
        member = node.parent
        if member is None or member.type != "member_expression":
            return False
        if not same_node(member.child_by_field_name("object"), node):
            return False
        outer = member.parent
        if outer is None or outer.type != "call_expression":
            return False
        if text(member.child_by_field_name("property")) == "timeout":
            return True
        node = outer


# -- Python --------------------------------------------------------------------


def _scan_python(file_path: str, content: str) -> list[tuple[int, str, str]]:
    tree = parse_python(content, file_path)
    if tree is None:
        return []

    hits = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue
        name = dotted_name(node.func)
        if name in _PYTHON_REQUESTS_CALLS:
            if not has_keyword(node, "timeout"):
                hits.append((node.lineno, "requests", ast.get_source_segment(content, node) or name))
        elif name in _PYTHON_URLOPEN_CALLS:
            # urlopen(url, data, timeout)
            if not has_keyword(node, "timeout") and len(node.args) < 3:
                hits.append((node.lineno, "urllib", ast.get_source_segment(content, node) or name))
    return hits


def _shorten(call_text: str, width: int = 100) -> str:
    flat = " ".join(call_text.split())
    return flat[:width] + ("..." if len(flat) > width else "")
