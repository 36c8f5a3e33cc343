"""Dependency extraction from parsed syntax trees."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from xnr.syntax.literals import first_argument, read_specifier
from xnr.syntax.tree import SyntaxTree
from xnr.syntax.walker import SKIP, TreeWalker
from xnr.types import Mechanism

# node -e "console.log(require('module').builtinModules)"
BUILTIN_MODULES = frozenset(
    [
        "_http_agent", "_http_client", "_http_common", "_http_incoming", "_http_outgoing",
        "_http_server", "_stream_duplex", "_stream_passthrough", "_stream_readable",
        "_stream_transform", "_stream_wrap", "_stream_writable", "_tls_common", "_tls_wrap",
        "assert", "assert/strict", "async_hooks", "buffer", "child_process", "cluster",
        "console", "constants", "crypto", "dgram", "diagnostics_channel", "dns",
        "dns/promises", "domain", "events", "fs", "fs/promises", "http", "http2", "https",
        "inspector", "inspector/promises", "module", "net", "os", "path", "path/posix",
        "path/win32", "perf_hooks", "process", "punycode", "querystring", "readline",
        "readline/promises", "repl", "stream", "stream/consumers", "stream/promises",
        "stream/web", "string_decoder", "sys", "timers", "timers/promises", "tls",
        "trace_events", "tty", "url", "util", "util/types", "v8", "vm", "wasi",
        "worker_threads", "zlib",
    ]
)

# Only reachable with the node: prefix
PREFIX_ONLY_BUILTINS = frozenset(["test", "test/reporters", "sea", "sqlite"])


def is_builtin(specifier: str) -> bool:
    """Whether specifier names a host runtime builtin module."""
    if specifier.startswith("node:"):
        return True
    if specifier in PREFIX_ONLY_BUILTINS:
        return False
    return specifier in BUILTIN_MODULES


def is_internal(specifier: str) -> bool:
    """Whether specifier points into the project (relative or absolute path)."""
    return specifier.startswith(".") or specifier.startswith("/")


def dependency_path(directory: Path, specifier: str) -> Path:
    """Join an internal specifier onto the referencing file's directory."""
    return Path(os.path.normpath(os.path.join(directory, specifier)))


@dataclass(frozen=True)
class DependencyEdge:
    """A specifier and the mechanism used to reach it."""

    specifier: str
    mechanism: Mechanism

    @property
    def internal(self) -> bool:
        return is_internal(self.specifier)

    @property
    def builtin(self) -> bool:
        return is_builtin(self.specifier)


class DependencyExtractor:
    """Lists the specifiers a tree depends on, in traversal order.

    Recognized:
      - import declarations (type-only ones skipped) -> import
      - import() expressions -> import
      - re-exports with a source -> import
      - import x = require('y') -> import
      - require(...) with a literal, template or String.raw argument -> require
      - require.main.require('literal') -> require
    """

    def extract(self, tree: SyntaxTree, include_builtins: bool = False) -> list[DependencyEdge]:
        edges: list[DependencyEdge] = []

        def add(value: str | None, mechanism: Mechanism) -> None:
            if not value:
                return
            if not include_builtins and is_builtin(value):
                return
            edges.append(DependencyEdge(value, mechanism))

        def import_statement(node: Any, index: int):
            if any(not c.is_named and c.type in ("type", "typeof") for c in node.children):
                return SKIP
            source = node.child_by_field_name("source")
            if source is None:
                clause = next(
                    (c for c in node.named_children if c.type == "import_require_clause"), None
                )
                source = clause.child_by_field_name("source") if clause is not None else None
            spec = read_specifier(tree, source)
            add(spec.value if spec else None, Mechanism.IMPORT)
            return SKIP

        def export_statement(node: Any, index: int):
            if any(not c.is_named and c.type == "type" for c in node.children):
                return SKIP
            source = node.child_by_field_name("source")
            if source is not None:
                spec = read_specifier(tree, source)
                add(spec.value if spec else None, Mechanism.IMPORT)
            return None

        def call_expression(node: Any, index: int):
            function = node.child_by_field_name("function")
            if function is None:
                return None
            if function.type == "import":
                spec = read_specifier(tree, first_argument(node))
                add(spec.value if spec else None, Mechanism.IMPORT)
            elif function.type == "identifier" and tree.text(function) == "require":
                spec = read_specifier(tree, first_argument(node))
                add(spec.value if spec else None, Mechanism.REQUIRE)
            elif is_require_main_require(tree, function):
                argument = first_argument(node)
                if argument is not None and argument.type == "string":
                    add(read_specifier(tree, argument).value, Mechanism.REQUIRE)
            return None

        TreeWalker(
            {
                "import_statement": import_statement,
                "export_statement": export_statement,
                "call_expression": call_expression,
            }
        ).walk(tree)
        return edges


def is_require_main_require(tree: SyntaxTree, node: Any) -> bool:
    """Whether node is the member expression require.main.require."""
    if node is None or node.type != "member_expression":
        return False
    inner = node.child_by_field_name("object")
    prop = node.child_by_field_name("property")
    if inner is None or prop is None or inner.type != "member_expression":
        return False
    base = inner.child_by_field_name("object")
    main = inner.child_by_field_name("property")
    return (
        tree.text(prop) == "require"
        and base is not None
        and base.type == "identifier"
        and tree.text(base) == "require"
        and main is not None
        and tree.text(main) == "main"
    )
