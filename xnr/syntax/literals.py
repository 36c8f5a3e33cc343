"""Reading and writing string-like specifier nodes.

A specifier can be written three ways: a string literal ('./a'), a template
literal (`./a`) or a String.raw tagged template (String.raw`./a`). For
templates only the text before the first substitution is used.
"""

import re
from dataclasses import dataclass
from typing import Any

from .tree import SyntaxTree

_ESCAPE_RE = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|[0-7]{1,3}|\r\n|[\s\S])"
)

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "\n": "",
    "\r": "",
    "\r\n": "",
    "\u2028": "",
    "\u2029": "",
}


def _unescape_match(match: re.Match) -> str:
    escape = match.group(1)
    if escape in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[escape]
    if escape.startswith("u{"):
        return chr(int(escape[2:-1], 16))
    if escape.startswith("u") and len(escape) == 5:
        return chr(int(escape[1:], 16))
    if escape.startswith("x") and len(escape) == 3:
        return chr(int(escape[1:], 16))
    if escape[0] in "01234567":
        return chr(int(escape, 8))
    return escape


def unescape(raw: str) -> str:
    """Cook the escape sequences of a string or template body."""
    if "\\" not in raw:
        return raw
    return _ESCAPE_RE.sub(_unescape_match, raw)


def string_literal(value: str) -> str:
    """Quote a value, picking the quote character that needs no escaping."""
    quote = '"' if "'" in value and '"' not in value else "'"
    escaped = value.replace("\\", "\\\\").replace("\n", "\\n").replace("\r", "\\r")
    if quote in escaped:
        escaped = escaped.replace(quote, "\\" + quote)
    return quote + escaped + quote


def template_text(value: str) -> str:
    """Escape a value for use inside a template literal."""
    return value.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


def is_string_raw(tree: SyntaxTree, node: Any) -> bool:
    """Whether node is the member expression String.raw."""
    if node is None or node.type != "member_expression":
        return False
    obj = node.child_by_field_name("object")
    prop = node.child_by_field_name("property")
    return (
        obj is not None
        and prop is not None
        and obj.type == "identifier"
        and tree.text(obj) == "String"
        and tree.text(prop) == "raw"
    )


@dataclass
class SpecifierNode:
    """A specifier value and the byte range that holds its text."""

    value: str
    kind: str  # "string" | "template" | "raw"
    node: Any
    start: int
    end: int


def _template_segment(template: Any) -> tuple[int, int]:
    """Byte range of a template's first segment (after the backtick)."""
    start = template.start_byte + 1
    end = template.end_byte - 1
    for child in template.children:
        if child.type == "template_substitution":
            end = child.start_byte
            break
    return start, max(start, end)


def read_specifier(tree: SyntaxTree, node: Any) -> SpecifierNode | None:
    """Read a literal, template or String.raw specifier node.

    Returns None for anything else (computed specifiers cannot be resolved).
    """
    if node is None:
        return None

    if node.type == "string":
        start, end = node.start_byte + 1, node.end_byte - 1
        return SpecifierNode(unescape(tree.slice(start, end)), "string", node, start, end)

    if node.type == "template_string":
        start, end = _template_segment(node)
        return SpecifierNode(unescape(tree.slice(start, end)), "template", node, start, end)

    if node.type == "call_expression" and is_string_raw(tree, node.child_by_field_name("function")):
        template = node.child_by_field_name("arguments")
        if template is not None and template.type == "template_string":
            start, end = _template_segment(template)
            return SpecifierNode(tree.slice(start, end), "raw", node, start, end)

    return None


def first_argument(node: Any) -> Any | None:
    """First argument of a call expression, skipping comments."""
    arguments = node.child_by_field_name("arguments")
    if arguments is None or arguments.type != "arguments":
        return None
    for child in arguments.named_children:
        if child.type != "comment":
            return child
    return None


def write_specifier(tree: SyntaxTree, spec: SpecifierNode, value: str) -> tuple[Any, str]:
    """Build the replacement for a specifier node.

    Template forms keep everything after their first segment.

    Returns:
        (node to replace, replacement text)
    """
    if spec.kind == "string":
        return spec.node, string_literal(value)

    template = spec.node
    if spec.kind == "raw":
        template = spec.node.child_by_field_name("arguments")
        text = value
    else:
        text = template_text(value)
    rebuilt = "`" + text + tree.slice(spec.end, template.end_byte)

    if spec.kind == "raw":
        tag = spec.node.child_by_field_name("function")
        return spec.node, tree.slice(spec.node.start_byte, tag.end_byte) + rebuilt
    return spec.node, rebuilt
