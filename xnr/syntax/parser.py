"""Tree-sitter parser service for JavaScript and its typed/JSX dialects."""

from pathlib import Path
from typing import Any

from tree_sitter_language_pack import get_parser

from xnr.errors import ParseError

from .tree import SyntaxTree

SUPPORTED_LANGUAGES = ("javascript", "typescript", "tsx")


def find_error_node(node: Any) -> Any | None:
    """Return the first ERROR or missing node in source order, if any."""
    if not node.has_error:
        return None
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current
        stack.extend(reversed([child for child in current.children if child.has_error]))
    return None


def describe_error(tree: SyntaxTree, node: Any) -> str:
    if node.is_missing:
        return f"expected '{node.type}'"
    snippet = tree.slice(node.start_byte, min(node.end_byte, node.start_byte + 40))
    snippet = snippet.splitlines()[0] if snippet.strip() else snippet
    return f"unexpected syntax near {snippet!r}"


class JavaScriptParser:
    """Parses source text into a SyntaxTree.

    A tree_sitter.Parser is not safe to share between threads, so each parse
    gets a fresh one.
    """

    def __init__(self, language: str = "javascript"):
        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {language}")
        self.language = language

    def parse(self, text: str, path: Path | None = None, strict: bool = True) -> SyntaxTree:
        """Parse text.

        Args:
            text: Source code
            path: File the source came from, used in error messages
            strict: Raise ParseError when the tree contains syntax errors

        Raises:
            ParseError: If strict and the source does not parse cleanly
        """
        source = text.encode("utf-8")
        parser = get_parser(self.language)
        tree = SyntaxTree(source=source, tree=parser.parse(source), path=path, language=self.language)

        if strict:
            error = find_error_node(tree.root)
            if error is not None:
                line, column = error.start_point
                raise ParseError(path, line + 1, column + 1, describe_error(tree, error))

        return tree
