"""
Thin helpers over tree-sitter syntax trees.

`.ts` files use the TypeScript grammar; `.js`/`.jsx`/`.tsx` files use the TSX
grammar (a superset of JavaScript that also accepts decorators and JSX).
"""

from typing import Optional

import tree_sitter_typescript as ts_typescript
from tree_sitter import Language, Node, Parser

from ..utils.config import DEFAULT_FILE_ENCODING

TYPESCRIPT_LANGUAGE = Language(ts_typescript.language_typescript())
TSX_LANGUAGE = Language(ts_typescript.language_tsx())


def language_for(path: str) -> Language:
    return TYPESCRIPT_LANGUAGE if path.endswith(".ts") else TSX_LANGUAGE


def make_parser(path: str) -> Parser:
    return Parser(language_for(path))


def node_text(node: Node, src: bytes) -> str:
    return src[node.start_byte:node.end_byte].decode(DEFAULT_FILE_ENCODING)


def string_value(node: Node, src: bytes) -> str:
    """Contents of a string literal node without its quotes."""
    text = node_text(node, src)
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        return text[1:-1]
    return text


def has_keyword(node: Node, keyword: str) -> bool:
    """True if `node` has an anonymous child token `keyword` (e.g. `type`, `get`, `async`)."""
    return any(not child.is_named and child.type == keyword for child in node.children)


def first_error_node(node: Node) -> Optional[Node]:
    """Depth-first search for the first ERROR or MISSING node."""
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = first_error_node(child)
            if found is not None:
                return found
    return None


def unwrap(node: Optional[Node]) -> Optional[Node]:
    """Strip parentheses and TS `as`/`satisfies`/non-null wrappers around an expression."""
    while node is not None and node.type in (
        "parenthesized_expression", "as_expression", "satisfies_expression", "non_null_expression",
    ):
        inner = [c for c in node.named_children if c.type != "comment"]
        if not inner:
            break
        node = inner[0]
    return node


def callee_identifier(call: Node, src: bytes) -> Optional[str]:
    """Name of a call's callee when it is a bare identifier (`attr(...)`), else None."""
    if call.type != "call_expression":
        return None
    function = unwrap(call.child_by_field_name("function"))
    if function is None or function.type != "identifier":
        return None
    return node_text(function, src)


def call_arguments(call: Node) -> list:
    args = call.child_by_field_name("arguments")
    if args is None:
        return []
    return [a for a in args.named_children if a.type != "comment"]


def member_call_parts(call: Node, src: bytes):
    """
    For `obj.method(...)` return `(object_node, method_name)`; otherwise
    `(None, None)`.
    """
    if call.type != "call_expression":
        return None, None
    function = unwrap(call.child_by_field_name("function"))
    if function is None or function.type != "member_expression":
        return None, None
    prop = function.child_by_field_name("property")
    obj = function.child_by_field_name("object")
    if prop is None or obj is None:
        return None, None
    return unwrap(obj), node_text(prop, src)


def leading_comment(node: Node, src: bytes) -> Optional[str]:
    """A `/** ... */` comment immediately preceding `node`, if any."""
    prev = node.prev_sibling
    if prev is not None and prev.type == "comment":
        text = node_text(prev, src)
        if text.startswith("/**"):
            return text
    return None
