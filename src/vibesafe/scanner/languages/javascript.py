"""JavaScript/TypeScript syntax trees via tree-sitter, with a generic node visitor."""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterator

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

logger = logging.getLogger(__name__)

JAVASCRIPT = Language(tree_sitter_javascript.language())
TYPESCRIPT = Language(tree_sitter_typescript.language_typescript())
TSX = Language(tree_sitter_typescript.language_tsx())

# File extension → grammar
_GRAMMARS = {
    ".js": JAVASCRIPT,
    ".jsx": JAVASCRIPT,
    ".mjs": JAVASCRIPT,
    ".cjs": JAVASCRIPT,
    ".ts": TYPESCRIPT,
    ".mts": TYPESCRIPT,
    ".cts": TYPESCRIPT,
    ".tsx": TSX,
}

JS_EXTENSIONS = frozenset(_GRAMMARS)


def grammar_for(file_path: str) -> Language | None:
    return _GRAMMARS.get(posixpath.splitext(file_path)[1].lower())


def parse_source(content: str, file_path: str) -> Node | None:
    """Parse JS/TS content and return the root node, or None on parse failure.

    A tree containing error nodes counts as a failure so that detectors
    never report on partially understood code.
    """
    grammar = grammar_for(file_path)
    if grammar is None:
        return None
    # Parsers are cheap and not shareable across threads
    parser = Parser(grammar)
    tree = parser.parse(content.encode("utf-8"))
    if tree.root_node.has_error:
        logger.debug("Syntax tree for %s contains errors, skipping", file_path)
        return None
    return tree.root_node


def walk(root: Node) -> Iterator[Node]:
    """Visit every node in document order, whatever its type."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def line_of(node: Node) -> int:
    return node.start_point[0] + 1


def call_arguments(call: Node) -> list[Node]:
    """Argument nodes of a call_expression, comments excluded."""
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return []
    return [child for child in arguments.named_children if child.type != "comment"]


def member_parts(node: Node | None) -> tuple[str, str] | None:
    """(object, property) names for ``obj.prop`` where obj is a plain identifier."""
    if node is None or node.type != "member_expression":
        return None
    obj = node.child_by_field_name("object")
    prop = node.child_by_field_name("property")
    if obj is None or prop is None or obj.type != "identifier":
        return None
    return text(obj), text(prop)


def object_has_property(node: Node | None, names: set[str]) -> bool:
    """True when an object literal defines any of the given keys.

    Spread elements may carry any key, so they count as a match.
    """
    if node is None or node.type != "object":
        return False
    for child in node.named_children:
        if child.type == "spread_element":
            return True
        if child.type == "shorthand_property_identifier" and text(child) in names:
            return True
        if child.type in ("pair", "method_definition"):
            key = child.child_by_field_name("key") or child.child_by_field_name("name")
            if key is not None and text(key).strip("'\"`") in names:
                return True
    return False


def same_node(a: Node | None, b: Node | None) -> bool:
    if a is None or b is None:
        return False
    return a.type == b.type and a.start_byte == b.start_byte and a.end_byte == b.end_byte
