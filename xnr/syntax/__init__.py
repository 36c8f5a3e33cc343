"""Syntax services: parsing, tree walking, emitting and source transformation."""

from .emitter import CodeEmitter
from .parser import JavaScriptParser
from .transformer import SourceTransformer
from .tree import EditSet, SyntaxTree, node_key
from .walker import SKIP, STOP, TreeWalker, Visit

__all__ = [
    "CodeEmitter",
    "EditSet",
    "JavaScriptParser",
    "SKIP",
    "STOP",
    "SourceTransformer",
    "SyntaxTree",
    "TreeWalker",
    "Visit",
    "node_key",
]
