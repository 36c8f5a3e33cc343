"""Code emitter: renders a SyntaxTree with an EditSet applied.

Source outside the edited ranges is reproduced byte for byte, so formatting,
comments and line numbers survive every rewrite that does not add lines.
"""

from bisect import bisect_left
from typing import Any

from .tree import EditSet, SyntaxTree


class _Rendering:
    """One render pass over a tree with a fixed set of edits."""

    def __init__(self, tree: SyntaxTree, edits: EditSet):
        self.tree = tree
        self.edits = edits
        self.source_length = len(tree.source)

        self.insertions: dict[int, list[str]] = {
            offset: list(texts) for offset, texts in edits.insertions.items()
        }
        if edits.statement_insertions:
            statements = tree.statements
            for index in sorted(edits.statement_insertions):
                offset = statements[index].end_byte
                self.insertions.setdefault(offset, []).extend(edits.statement_insertions[index])

        self.offsets = sorted(
            {start for start, _, _ in edits.replacements} | set(self.insertions)
        )

    def touches(self, start: int, end: int) -> bool:
        index = bisect_left(self.offsets, start)
        return index < len(self.offsets) and self.offsets[index] <= end

    def inserted(self, offset: int) -> str:
        return "".join(self.insertions.get(offset, ()))

    def slice(self, start: int, end: int) -> str:
        """Source bytes [start, end) with insertions placed before their byte."""
        if start >= end:
            return ""
        if not self.touches(start, end):
            return self.tree.slice(start, end)

        parts = []
        cursor = start
        index = bisect_left(self.offsets, start)
        while index < len(self.offsets) and self.offsets[index] < end:
            offset = self.offsets[index]
            parts.append(self.tree.slice(cursor, offset))
            parts.append(self.inserted(offset))
            cursor = offset
            index += 1
        parts.append(self.tree.slice(cursor, end))
        return "".join(parts)

    def render(self, node: Any) -> str:
        replacement = self.edits.replacement_for(node)
        if replacement is not None:
            return self.inserted(node.start_byte) + replacement

        start, end = node.start_byte, node.end_byte
        if node.child_count == 0 or not self.touches(start, end):
            return self.slice(start, end)

        parts = []
        cursor = start
        for child in node.children:
            parts.append(self.slice(cursor, child.start_byte))
            parts.append(self.render(child))
            cursor = child.end_byte
        parts.append(self.slice(cursor, end))
        return "".join(parts)


class CodeEmitter:
    """Produces source text from a tree and its pending edits."""

    def emit(self, tree: SyntaxTree, edits: EditSet | None = None) -> str:
        """Render the whole file."""
        if not edits:
            return tree.source.decode("utf-8")

        rendering = _Rendering(tree, edits)
        root = tree.root
        return (
            rendering.slice(0, root.start_byte)
            + rendering.render(root)
            + rendering.slice(root.end_byte, rendering.source_length)
            + rendering.inserted(rendering.source_length)
        )

    def render(self, tree: SyntaxTree, edits: EditSet, node: Any) -> str:
        """Render a single node's range."""
        return _Rendering(tree, edits).render(node)
