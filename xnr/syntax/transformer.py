"""Source transformer: typed dialect and JSX to plain JavaScript.

The typed dialect is stripped by deleting type-only nodes from the
tree-sitter tree of the source (annotations, interfaces, casts, modifiers and
so on) and compiling the few constructs that carry runtime meaning (enums,
parameter properties, `import x = require()`, `export =`). JSX is compiled
to classic-runtime factory calls.

Everything else is left byte for byte as written, including module syntax:
the module format is decided later by the graph builder.
"""

import html
import json
import re
from pathlib import Path
from typing import Any

from xnr.errors import ParseError, TransformError
from xnr.utils.constants import TYPED_DIALECT_EXTENSIONS, TYPESCRIPT_EXTENSIONS

from .emitter import CodeEmitter
from .literals import string_literal, unescape
from .parser import JavaScriptParser
from .tree import EditSet, SyntaxTree
from .walker import SKIP, TreeWalker

# Removed wherever they appear
TYPE_ONLY_NODES = frozenset(
    [
        "type_annotation",
        "type_arguments",
        "type_parameters",
        "asserts_annotation",
        "type_predicate_annotation",
        "omitting_type_annotation",
        "opting_type_annotation",
        "adding_type_annotation",
        "accessibility_modifier",
        "override_modifier",
        "implements_clause",
    ]
)

# Statements with no runtime meaning
TYPE_ONLY_STATEMENTS = frozenset(
    [
        "interface_declaration",
        "type_alias_declaration",
        "ambient_declaration",
        "function_signature",
    ]
)

CLASS_MEMBER_SIGNATURES = frozenset(
    ["method_signature", "abstract_method_signature", "index_signature"]
)

NAMESPACE_NODES = frozenset(["internal_module", "module"])

JSX_ELEMENTS = frozenset(["jsx_element", "jsx_self_closing_element"])
JSX_CHILD_NODES = frozenset(["jsx_element", "jsx_self_closing_element", "jsx_expression"])

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$]*$")
_LINE_BREAK_RE = re.compile(r"\r\n|\n|\r")


def has_token(node: Any, *tokens: str) -> bool:
    """Whether node has a direct anonymous child of one of the given types."""
    return any(not child.is_named and child.type in tokens for child in node.children)


def named(node: Any) -> list[Any]:
    """Named children, without comments."""
    return [child for child in node.named_children if child.type != "comment"]


def clean_jsx_text(text: str) -> str:
    """Apply JSX whitespace rules to a run of text between children."""
    lines = _LINE_BREAK_RE.split(text)
    last_non_empty = -1
    for index, line in enumerate(lines):
        if line.strip(" \t"):
            last_non_empty = index

    result = ""
    for index, line in enumerate(lines):
        trimmed = line.replace("\t", " ")
        if index != 0:
            trimmed = trimmed.lstrip(" ")
        if index != len(lines) - 1:
            trimmed = trimmed.rstrip(" ")
        if trimmed:
            if index != last_non_empty:
                trimmed += " "
            result += trimmed
    return result


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def _parse_number(text: str) -> float | None:
    text = text.replace("_", "")
    try:
        return int(text, 0)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None


class SourceTransformer:
    """Converts typed-dialect and JSX source text into plain JavaScript."""

    def __init__(self, pragma: str = "React.createElement", fragment: str = "React.Fragment"):
        self.pragma = pragma
        self.fragment = fragment

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "SourceTransformer":
        jsx = config.get("jsx", {})
        return cls(
            pragma=jsx.get("pragma", "React.createElement"),
            fragment=jsx.get("fragment", "React.Fragment"),
        )

    def transform(self, text: str, path: Path | str | None = None) -> str:
        """Transform source text.

        Args:
            text: Source in any supported dialect
            path: File the source came from; its extension picks the grammar

        Raises:
            TransformError: If the source is malformed or uses an unsupported construct
        """
        path = Path(path) if path else None
        suffix = path.suffix.lower() if path else ""
        language = "typescript" if suffix in TYPESCRIPT_EXTENSIONS else "tsx"

        try:
            tree = JavaScriptParser(language).parse(text, path)
        except ParseError as e:
            raise TransformError(path, e.line, e.column, str(e).rsplit(": ", 1)[-1]) from e

        elide = suffix in TYPED_DIALECT_EXTENSIONS
        return _Transform(tree, self.pragma, self.fragment, elide).run()


class _Transform:
    """One transformation of one tree."""

    def __init__(self, tree: SyntaxTree, pragma: str, fragment: str, elide: bool):
        self.tree = tree
        self.pragma = pragma
        self.fragment = fragment
        self.elide = elide
        self.edits = EditSet()
        self.emitter = CodeEmitter()
        self.jsx_nodes: list[Any] = []
        self.imports: list[Any] = []

    def run(self) -> str:
        handlers = {node_type: self._remove for node_type in TYPE_ONLY_NODES}
        handlers.update({node_type: self._remove for node_type in TYPE_ONLY_STATEMENTS})
        handlers.update({node_type: self._remove for node_type in CLASS_MEMBER_SIGNATURES})
        handlers.update({node_type: self._namespace for node_type in NAMESPACE_NODES})
        handlers.update({node_type: self._collect_jsx for node_type in JSX_ELEMENTS})
        handlers.update(
            {
                "export_statement": self._export,
                "import_statement": self._import,
                "import_alias": self._import_alias,
                "enum_declaration": self._enum,
                "public_field_definition": self._field,
                "abstract_class_declaration": self._abstract_class,
                "method_definition": self._method,
                "required_parameter": self._parameter,
                "optional_parameter": self._parameter,
                "variable_declarator": self._declarator,
                "as_expression": self._cast,
                "satisfies_expression": self._cast,
                "non_null_expression": self._non_null,
            }
        )
        TreeWalker(handlers).walk(self.tree)

        # Innermost elements first, so outer elements render compiled children
        for node in reversed(self.jsx_nodes):
            self.edits.replace(node, self._jsx(node))

        used = self._value_identifiers() if self.elide else None
        for statement in self.imports:
            self._prune_import(statement, used)

        return self.emitter.emit(self.tree, self.edits)

    def _render(self, node: Any) -> str:
        return self.emitter.render(self.tree, self.edits, node)

    def _remove_tokens(self, node: Any, *tokens: str) -> None:
        for child in node.children:
            if not child.is_named and child.type in tokens:
                self.edits.remove(child)

    # ------------------------------------------------------------------
    # Typed dialect
    # ------------------------------------------------------------------

    def _remove(self, node: Any, index: int):
        self.edits.remove(node)
        return SKIP

    def _namespace(self, node: Any, index: int):
        line, column = node.start_point
        raise TransformError(
            self.tree.path, line + 1, column + 1, "namespaces are not supported; use modules instead"
        )

    def _export(self, node: Any, index: int):
        if has_token(node, "type"):
            self.edits.remove(node)
            return SKIP
        for child in named(node):
            if child.type in TYPE_ONLY_STATEMENTS:
                self.edits.remove(node)
                return SKIP
        children = node.children
        if len(children) > 1 and children[1].type == "=":
            # export = value
            self.edits.replace(children[0], "module.exports")
        clause = next((c for c in node.named_children if c.type == "export_clause"), None)
        if clause is not None:
            specifiers = [s for s in named(clause) if s.type == "export_specifier"]
            kept = [s for s in specifiers if not has_token(s, "type")]
            if len(kept) != len(specifiers):
                texts = ", ".join(self.tree.text(s) for s in kept)
                self.edits.replace(clause, "{ " + texts + " }" if texts else "{}")
        return None

    def _import(self, node: Any, index: int):
        if has_token(node, "type", "typeof"):
            self.edits.remove(node)
            return SKIP
        require_clause = next(
            (c for c in node.named_children if c.type == "import_require_clause"), None
        )
        if require_clause is not None:
            binding = next(c for c in require_clause.named_children if c.type == "identifier")
            source = require_clause.child_by_field_name("source")
            self.edits.replace(
                node,
                f"const {self.tree.text(binding)} = require({self.tree.text(source)});",
            )
            return SKIP
        self.imports.append(node)
        return SKIP

    def _import_alias(self, node: Any, index: int):
        parts = named(node)
        self.edits.replace(
            node, f"const {self.tree.text(parts[0])} = {self.tree.text(parts[-1])};"
        )
        return SKIP

    def _field(self, node: Any, index: int):
        if has_token(node, "declare", "abstract"):
            self.edits.remove(node)
            return SKIP
        self._remove_tokens(node, "readonly", "?", "!")
        return None

    def _abstract_class(self, node: Any, index: int):
        self._remove_tokens(node, "abstract")
        return None

    def _method(self, node: Any, index: int):
        self._remove_tokens(node, "?")
        name = node.child_by_field_name("name")
        if name is None or self.tree.text(name) != "constructor":
            return None

        parameters = node.child_by_field_name("parameters")
        body = node.child_by_field_name("body")
        if parameters is None or body is None:
            return None

        properties = []
        for parameter in named(parameters):
            if parameter.type not in ("required_parameter", "optional_parameter"):
                continue
            is_property = has_token(parameter, "readonly") or any(
                child.type == "accessibility_modifier" for child in parameter.children
            )
            pattern = parameter.child_by_field_name("pattern")
            if is_property and pattern is not None and pattern.type == "identifier":
                properties.append(self.tree.text(pattern))
        if not properties:
            return None

        # After super(...) in derived classes, else right after the opening brace
        offset = body.children[0].end_byte
        for statement in named(body):
            expression = named(statement)[0] if statement.type == "expression_statement" else None
            if expression is None or expression.type != "call_expression":
                continue
            function = expression.child_by_field_name("function")
            if function is not None and function.type == "super":
                offset = statement.end_byte
                break
        assignments = " ".join(f"this.{name} = {name};" for name in properties)
        self.edits.insert_at(offset, " " + assignments)
        return None

    def _parameter(self, node: Any, index: int):
        self._remove_tokens(node, "readonly", "?")
        return None

    def _declarator(self, node: Any, index: int):
        self._remove_tokens(node, "!")
        return None

    def _cast(self, node: Any, index: int):
        for child in node.children[1:]:
            self.edits.remove(child)
        return None

    def _non_null(self, node: Any, index: int):
        last = node.children[-1]
        if last.type == "!":
            self.edits.remove(last)
        return None

    def _enum(self, node: Any, index: int):
        name = self.tree.text(node.child_by_field_name("name"))
        body = node.child_by_field_name("body")

        assignments = []
        numeric: float | None = -1
        previous: str | None = None
        for member in named(body):
            if member.type == "enum_assignment":
                key_node = member.child_by_field_name("name")
                value_node = member.child_by_field_name("value")
            else:
                key_node, value_node = member, None

            key_text = self.tree.text(key_node)
            key = unescape(key_text[1:-1]) if key_node.type == "string" else key_text
            quoted = json.dumps(key)

            reverse = True
            if value_node is None:
                if numeric is not None:
                    numeric += 1
                    value = _format_number(numeric)
                else:
                    value = f"{previous} + 1"
            elif value_node.type in ("string", "template_string"):
                value = self._render(value_node)
                numeric = None
                reverse = False
            else:
                value = self._render(value_node)
                numeric = _parse_number(value) if value_node.type == "number" else None

            if reverse:
                assignments.append(f"{name}[{name}[{quoted}] = {value}] = {quoted};")
            else:
                assignments.append(f"{name}[{quoted}] = {value};")
            previous = f"{name}[{quoted}]"

        members = " ".join(assignments)
        self.edits.replace(
            node, f"var {name}; (function ({name}) {{ {members} }})({name} || ({name} = {{}}));"
        )
        return SKIP

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def _value_identifiers(self) -> set[str]:
        """Identifiers referenced outside type positions and import statements."""
        used: set[str] = set()
        has_jsx = False

        def add(node: Any, index: int):
            used.add(self.tree.text(node))

        def jsx(node: Any, index: int):
            nonlocal has_jsx
            has_jsx = True

        def skip(node: Any, index: int):
            return SKIP

        handlers = {
            node_type: skip
            for node_type in TYPE_ONLY_NODES | TYPE_ONLY_STATEMENTS | CLASS_MEMBER_SIGNATURES
        }
        handlers.update(
            {
                "import_statement": skip,
                "identifier": add,
                "shorthand_property_identifier": add,
                "jsx_opening_element": jsx,
                "jsx_self_closing_element": jsx,
            }
        )
        TreeWalker(handlers).walk(self.tree)

        if has_jsx:
            used.add(self.pragma.split(".")[0])
            used.add(self.fragment.split(".")[0])
        return used

    def _prune_import(self, node: Any, used: set[str] | None) -> None:
        """Drop inline type specifiers and, when eliding, unused bindings."""
        clause = next((c for c in node.named_children if c.type == "import_clause"), None)
        if clause is None:
            return

        def keep(identifier: Any) -> bool:
            return used is None or self.tree.text(identifier) in used

        parts = []
        changed = False
        named_seen = False
        kept_specifiers = []
        for child in named(clause):
            if child.type == "identifier":
                if keep(child):
                    parts.append(self.tree.text(child))
                else:
                    changed = True
            elif child.type == "namespace_import":
                local = next(c for c in child.named_children if c.type == "identifier")
                if keep(local):
                    parts.append(self.tree.text(child))
                else:
                    changed = True
            elif child.type == "named_imports":
                named_seen = True
                for specifier in named(child):
                    if specifier.type != "import_specifier":
                        continue
                    local = specifier.child_by_field_name("alias") or specifier.child_by_field_name("name")
                    if has_token(specifier, "type", "typeof") or not keep(local):
                        changed = True
                    else:
                        kept_specifiers.append(self.tree.text(specifier))

        if not changed:
            return
        if named_seen and kept_specifiers:
            parts.append("{ " + ", ".join(kept_specifiers) + " }")
        if not parts:
            self.edits.remove(node)
            return
        self.edits.replace(clause, ", ".join(parts))

    # ------------------------------------------------------------------
    # JSX
    # ------------------------------------------------------------------

    def _collect_jsx(self, node: Any, index: int):
        self.jsx_nodes.append(node)
        return None

    def _jsx(self, node: Any) -> str:
        if node.type == "jsx_self_closing_element":
            name = node.child_by_field_name("name")
            attributes = node.children_by_field_name("attribute")
            children: list[str] = []
        else:
            opening = node.child_by_field_name("open_tag")
            closing = node.child_by_field_name("close_tag")
            name = opening.child_by_field_name("name")
            attributes = opening.children_by_field_name("attribute")
            children = self._jsx_children(node, opening, closing)

        arguments = [self._jsx_tag(name), self._jsx_props(attributes), *children]
        text = f"{self.pragma}({', '.join(arguments)})"

        # Keep the line count so later line numbers still match the source
        missing = self.tree.text(node).count("\n") - text.count("\n")
        return text + "\n" * max(0, missing)

    def _jsx_tag(self, name: Any | None) -> str:
        if name is None:
            return self.fragment
        text = self.tree.text(name)
        if name.type == "jsx_namespace_name":
            return string_literal(text)
        if name.type == "identifier" and (text[:1].islower() or "-" in text):
            return string_literal(text)
        return text

    def _jsx_props(self, attributes: list[Any]) -> str:
        if not attributes:
            return "null"

        props = []
        for attribute in attributes:
            if attribute.type == "jsx_expression":
                inner = named(attribute)
                if inner:
                    props.append(self._render(inner[0]))
                continue

            parts = named(attribute)
            key = self.tree.text(parts[0])
            key = key if _IDENTIFIER_RE.match(key) else string_literal(key)
            if len(parts) < 2:
                value = "true"
            elif parts[1].type == "string":
                value = json.dumps(
                    html.unescape(self.tree.text(parts[1])[1:-1]), ensure_ascii=False
                )
            elif parts[1].type == "jsx_expression":
                inner = named(parts[1])
                value = self._render(inner[0]) if inner else "undefined"
            else:
                value = self._render(parts[1])
            props.append(f"{key}: {value}")
        return "{" + ", ".join(props) + "}"

    def _jsx_children(self, node: Any, opening: Any, closing: Any) -> list[str]:
        children = []
        cursor = opening.end_byte

        def text_until(end: int) -> None:
            cleaned = clean_jsx_text(self.tree.slice(cursor, end))
            if cleaned:
                children.append(json.dumps(html.unescape(cleaned), ensure_ascii=False))

        for child in node.children:
            if child.start_byte < opening.end_byte or child.end_byte > closing.start_byte:
                continue
            if child.type not in JSX_CHILD_NODES:
                continue
            text_until(child.start_byte)
            cursor = child.end_byte
            if child.type == "jsx_expression":
                inner = named(child)
                if inner:
                    children.append(self._render(inner[0]))
            else:
                children.append(self._render(child))
        text_until(closing.start_byte)
        return children
