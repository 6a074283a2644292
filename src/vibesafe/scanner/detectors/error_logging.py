"""Logging detector — raw error objects and personal data passed to loggers."""

from __future__ import annotations

import ast
import posixpath

from tree_sitter import Node

from vibesafe.scanner.languages.javascript import (
    JS_EXTENSIONS,
    call_arguments,
    line_of,
    member_parts,
    parse_source,
    text,
    walk,
)
from vibesafe.scanner.languages.python import dotted_name, parse_python, source_text
from vibesafe.scanner.models import LoggingFinding, Severity
from vibesafe.scanner.patterns import ERROR_VARIABLE_NAMES, SENSITIVE_DATA_REGEX
from vibesafe.scanner.technologies import DetectedTechnologies

UNSANITIZED_ERROR_TYPE = "Potential Unsanitized Error Logging"
PII_LOGGING_TYPE = "Potential PII Logging"

LOGGER_OBJECTS = frozenset({"console", "logger", "log", "winston", "pino"})
LOG_METHODS = frozenset({"log", "error", "warn", "debug", "info", "trace", "fatal"})

_PYTHON_LOGGER_OBJECTS = frozenset({"logging", "logger", "log", "_logger", "LOGGER"})
_PYTHON_LOG_METHODS = frozenset(
    {"debug", "info", "warning", "warn", "error", "exception", "critical", "fatal", "log"}
)


def scan_logging(
    file_path: str,
    content: str,
    tech: DetectedTechnologies | None = None,
) -> list[LoggingFinding]:
    """Flag logger calls that emit whole error objects or sensitive values."""
    if tech is not None and tech.is_frontend_only:
        return []

    ext = posixpath.splitext(file_path)[1].lower()
    if ext in JS_EXTENSIONS:
        hits = _scan_javascript(file_path, content)
    elif ext == ".py":
        hits = _scan_python(file_path, content)
    else:
        return []

    lines = content.splitlines()
    findings: list[LoggingFinding] = []
    seen: set[tuple[int, str]] = set()
    for line, finding_type, logger_call, subject in hits:
        if (line, finding_type) in seen:
            continue
        seen.add((line, finding_type))
        findings.append(_build(file_path, line, finding_type, logger_call, subject, lines))
    return findings


def _build(
    file_path: str,
    line: int,
    finding_type: str,
    logger_call: str,
    subject: str,
    lines: list[str],
) -> LoggingFinding:
    context = lines[line - 1].strip()[:100] if 0 < line <= len(lines) else ""
    if finding_type == UNSANITIZED_ERROR_TYPE:
        return LoggingFinding(
            file_path=file_path,
            line=line,
            type=finding_type,
            severity=Severity.LOW,
            message=(
                f"Potential logging of unsanitized error object/stack trace using '{subject}'."
            ),
            details=f"Found call to {logger_call}({subject}): {context}",
            logger_call=logger_call,
        )
    return LoggingFinding(
        file_path=file_path,
        line=line,
        type=finding_type,
        severity=Severity.MEDIUM,
        message=f"Potential logging of sensitive data via {logger_call}.",
        details=f"Argument references '{subject}': {context}",
        logger_call=logger_call,
    )


# -- JavaScript / TypeScript --------------------------------------------------


def _logger_call(func: Node | None) -> str | None:
    parts = member_parts(func)
    if parts is None:
        return None
    obj, method = parts
    if obj in LOGGER_OBJECTS and method in LOG_METHODS:
        return f"{obj}.{method}"
    return None


def _is_error_value(node: Node) -> bool:
    if node.type == "identifier":
        return text(node) in ERROR_VARIABLE_NAMES
    if node.type == "member_expression":
        return text(node.child_by_field_name("property")) == "stack"
    return False


def _scan_javascript(file_path: str, content: str) -> list[tuple[int, str, str, str]]:
    root = parse_source(content, file_path)
    if root is None:
        return []

    hits = []
    for node in walk(root):
        if node.type != "call_expression":
            continue
        func = node.child_by_field_name("function")
        args = call_arguments(node)

        logger_call = _logger_call(func)
        if logger_call is not None:
            if args and _is_error_value(args[0]):
                hits.append((line_of(node), UNSANITIZED_ERROR_TYPE, logger_call, text(args[0])))
            for arg in args:
                match = SENSITIVE_DATA_REGEX.search(text(arg))
                if match:
                    hits.append((line_of(node), PII_LOGGING_TYPE, logger_call, match.group(0)))
                    break
            continue

        # promise.catch(console.error) hands the raw error straight to the logger
        if (
            func is not None
            and func.type == "member_expression"
            and text(func.child_by_field_name("property")) == "catch"
            and args
        ):
            sink = _logger_call(args[0])
            if sink is not None:
                hits.append((line_of(args[0]), UNSANITIZED_ERROR_TYPE, sink, "error"))
    return hits


# -- Python --------------------------------------------------------------------


def _scan_python(file_path: str, content: str) -> list[tuple[int, str, str, str]]:
    tree = parse_python(content, file_path)
    if tree is None:
        return []

    hits = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call) or not isinstance(node.func, ast.Attribute):
            continue
        owner = dotted_name(node.func.value)
        method = node.func.attr
        if owner not in _PYTHON_LOGGER_OBJECTS or method not in _PYTHON_LOG_METHODS:
            continue
        logger_call = f"{owner}.{method}"
        # logger.log(level, msg, ...) carries the message second
        args = node.args[1:] if method == "log" else node.args

        if args and isinstance(args[0], ast.Name) and args[0].id in ERROR_VARIABLE_NAMES:
            hits.append((node.lineno, UNSANITIZED_ERROR_TYPE, logger_call, args[0].id))
        for arg in [*args, *(kw.value for kw in node.keywords)]:
            match = SENSITIVE_DATA_REGEX.search(source_text(content, arg))
            if match:
                hits.append((node.lineno, PII_LOGGING_TYPE, logger_call, match.group(0)))
                break
    return hits
