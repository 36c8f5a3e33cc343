"""Syntax tree and edit-set data structures.

A SyntaxTree wraps an immutable tree-sitter tree together with the exact
bytes it was parsed from. Rewrites never touch the tree: they are recorded in
an EditSet and applied by the CodeEmitter, so the same tree can be rewritten
any number of times with identical results.

Top-level statements are exposed as an indexable list. Code that needs to
splice a new statement after an existing one records the statement's index
in that list rather than holding a back-reference to the parent node.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

NodeKey = tuple[int, int, str]


def node_key(node: Any) -> NodeKey:
    """Identity of a node within one tree: its byte range and type."""
    return (node.start_byte, node.end_byte, node.type)


@dataclass
class SyntaxTree:
    """A parsed source file."""

    source: bytes
    tree: Any
    path: Path | None = None
    language: str = "javascript"

    @property
    def root(self) -> Any:
        return self.tree.root_node

    @property
    def statements(self) -> list[Any]:
        """Top-level statements, in source order."""
        return [child for child in self.root.named_children if child.type != "comment"]

    def text(self, node: Any) -> str:
        """Source text of a node."""
        return self.source[node.start_byte : node.end_byte].decode("utf-8")

    def slice(self, start: int, end: int) -> str:
        return self.source[start:end].decode("utf-8")


@dataclass
class EditSet:
    """Pending rewrites for one SyntaxTree.

    Replacements are keyed by node identity. When a replaced node contains
    other replaced nodes, the outermost replacement wins.
    """

    replacements: dict[NodeKey, str] = field(default_factory=dict)
    insertions: dict[int, list[str]] = field(default_factory=dict)
    statement_insertions: dict[int, list[str]] = field(default_factory=dict)

    def replace(self, node: Any, text: str) -> None:
        self.replacements[node_key(node)] = text

    def remove(self, node: Any) -> None:
        self.replace(node, "")

    def insert_at(self, offset: int, text: str) -> None:
        """Insert text before the byte at offset."""
        self.insertions.setdefault(offset, []).append(text)

    def insert_after(self, statement_index: int, text: str) -> None:
        """Insert text right after the top-level statement at statement_index."""
        self.statement_insertions.setdefault(statement_index, []).append(text)

    def replacement_for(self, node: Any) -> str | None:
        return self.replacements.get(node_key(node))

    def __bool__(self) -> bool:
        return bool(self.replacements or self.insertions or self.statement_insertions)
