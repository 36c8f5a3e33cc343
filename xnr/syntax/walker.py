"""Generic pre-order tree walk with a node-type handler table.

Dependency extraction, module-type classification, import rewriting and the
source transformer all walk trees the same way; they differ only in which
node types they care about. Each supplies a table mapping node type to a
handler, and a handler may return SKIP to leave the node's subtree unvisited
or STOP to end the walk.
"""

from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from .tree import SyntaxTree


class Visit(Enum):
    """What the walker should do after a handler returns."""

    CONTINUE = "continue"
    SKIP = "skip"
    STOP = "stop"


# (node, index of the top-level statement that contains it)
Handler = Callable[[Any, int], "Visit | None"]

SKIP = Visit.SKIP
STOP = Visit.STOP


class TreeWalker:
    """Walks a SyntaxTree in source order, dispatching on node type."""

    def __init__(self, handlers: Mapping[str, Handler]):
        self.handlers = dict(handlers)

    def walk(self, tree: SyntaxTree) -> bool:
        """Walk every statement of the tree.

        Returns:
            False if a handler stopped the walk early, True otherwise
        """
        for index, statement in enumerate(tree.statements):
            if not self.walk_node(statement, index):
                return False
        return True

    def walk_node(self, node: Any, statement_index: int = -1) -> bool:
        """Walk one subtree with an explicit stack (no recursion limit)."""
        stack = [node]
        while stack:
            current = stack.pop()
            handler = self.handlers.get(current.type)
            action = handler(current, statement_index) if handler else None
            if action is Visit.STOP:
                return False
            if action is Visit.SKIP:
                continue
            stack.extend(reversed(current.children))
        return True
