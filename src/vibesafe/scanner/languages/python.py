"""Python syntax trees via the stdlib ast module."""

from __future__ import annotations

import ast
import logging

logger = logging.getLogger(__name__)


def parse_python(content: str, file_path: str) -> ast.Module | None:
    """Parse Python source, returning None when it is not valid Python."""
    try:
        return ast.parse(content, filename=file_path)
    except (SyntaxError, ValueError):
        logger.debug("AST parse failed for %s", file_path)
        return None


def dotted_name(node: ast.AST) -> str:
    """``requests.get`` for an Attribute chain rooted at a Name, else ''."""
    parts: list[str] = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return ""
    parts.append(node.id)
    return ".".join(reversed(parts))


def has_keyword(call: ast.Call, name: str) -> bool:
    """True when the call passes ``name=`` or a ``**kwargs`` that may contain it."""
    return any(kw.arg == name or kw.arg is None for kw in call.keywords)


def source_text(content: str, node: ast.AST) -> str:
    return ast.get_source_segment(content, node) or ""
