"""Module graph construction - discovers every in-project file reachable from an entry."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from xnr.classifier import ModuleTypeClassifier, format_for_extension, has_module_syntax
from xnr.config import load_runtime_config
from xnr.dependencies import DependencyEdge, DependencyExtractor, dependency_path, is_builtin
from xnr.errors import ReadError
from xnr.packages import PackageResolver
from xnr.resolver import FileResolver
from xnr.syntax.parser import JavaScriptParser
from xnr.syntax.transformer import SourceTransformer
from xnr.syntax.tree import SyntaxTree
from xnr.types import Mechanism, ModuleFormat
from xnr.utils.logging import logger


@dataclass
class TraversalFrame:
    """One pending file on the traversal stack."""

    raw_path: Path
    hint: str
    mechanism: Mechanism
    specifier: str | None = None
    referrer: Path | None = None


@dataclass
class SourceFile:
    """A discovered file and the format chosen for its output."""

    path: Path  # resolved
    raw_path: Path
    hint: str
    mechanism: Mechanism
    format: ModuleFormat
    edges: list[DependencyEdge] = field(default_factory=list)

    @property
    def directory(self) -> Path:
        return self.path.parent


@dataclass
class FormatConflict:
    """A file reached by a mechanism that needs a different format than it got.

    The first mechanism to reach a file decides its format; later referrers
    that need the other format are recorded here.
    """

    path: Path
    format: ModuleFormat
    mechanism: Mechanism
    referrer: Path | None
    specifier: str | None


@dataclass
class ModuleGraph:
    """All files discovered from one entry, keyed by resolved path."""

    entry: Path | None = None
    files: dict[Path, SourceFile] = field(default_factory=dict)
    aliases: dict[Path, Path] = field(default_factory=dict)  # raw path -> resolved path
    conflicts: list[FormatConflict] = field(default_factory=list)

    def __contains__(self, path: Path) -> bool:
        return path in self.files

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self):
        return iter(self.files.values())

    def lookup(self, raw_path: Path) -> SourceFile | None:
        """Find the file a raw (as-referenced) path was resolved to."""
        resolved = self.aliases.get(raw_path, raw_path)
        return self.files.get(resolved)

    def dependency(self, importer: SourceFile, specifier: str) -> SourceFile | None:
        """Find the member an internal specifier of importer points at."""
        return self.lookup(dependency_path(importer.directory, specifier))


class BuildContext:
    """Services and caches owned by a single build invocation.

    Nothing here is shared between builds; parsed trees live exactly as long
    as the context that cached them.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or load_runtime_config()
        self.trees: dict[Path, SyntaxTree] = {}  # keyed by raw path
        self.parser = JavaScriptParser("javascript")
        self.transformer = SourceTransformer.from_config(self.config)
        self.resolver = FileResolver()
        self.extractor = DependencyExtractor()
        self.classifier = ModuleTypeClassifier()
        self.packages = PackageResolver(self.resolver)

    def tree_for(self, source: SourceFile) -> SyntaxTree:
        return self.trees[source.raw_path]


def strip_interpreter_directive(text: str) -> str:
    """Drop a leading #! line, keeping its newline so line numbers survive."""
    if not text.startswith("#!"):
        return text
    newline = text.find("\n")
    return "" if newline == -1 else text[newline:]


def normalize_entry(entry: Path | str) -> Path:
    """Absolute, normalized entry path (symlinks are kept as written)."""
    return Path(os.path.normpath(os.path.abspath(entry)))


class ModuleGraphBuilder:
    """Depth-first traversal from an entry file over relative and absolute specifiers."""

    def __init__(self, context: BuildContext):
        self.context = context

    def build(self, entry: Path | str) -> ModuleGraph:
        """Discover every file reachable from entry.

        Raises:
            ResolutionError: If any internal specifier does not resolve
            ReadError: If a discovered file cannot be read
            TransformError: If a file's source cannot be transformed
            ParseError: If transformed output does not parse
        """
        graph = ModuleGraph()
        entry_path = normalize_entry(entry)
        stack = [TraversalFrame(entry_path, entry_path.suffix, Mechanism.ENTRY)]

        while stack:
            frame = stack.pop()

            if frame.raw_path in graph.aliases:
                self._check_conflict(graph, graph.lookup(frame.raw_path), frame)
                continue

            resolved = self.context.resolver.resolve(
                frame.raw_path, frame.hint, frame.mechanism, frame.specifier
            )
            graph.aliases[frame.raw_path] = resolved
            if resolved in graph.files:
                self._check_conflict(graph, graph.files[resolved], frame)
                continue

            tree = self._load(frame.raw_path, resolved)
            all_edges = self.context.extractor.extract(tree, include_builtins=True)
            edges = [edge for edge in all_edges if not is_builtin(edge.specifier)]

            for edge in edges:
                if not edge.internal:
                    continue
                child = dependency_path(resolved.parent, edge.specifier)
                stack.append(
                    TraversalFrame(
                        raw_path=child,
                        hint=child.suffix or frame.hint,
                        mechanism=edge.mechanism,
                        specifier=edge.specifier,
                        referrer=resolved,
                    )
                )

            source = SourceFile(
                path=resolved,
                raw_path=frame.raw_path,
                hint=frame.hint,
                mechanism=frame.mechanism,
                format=self._choose_format(frame, resolved, tree, all_edges),
                edges=edges,
            )
            graph.files[resolved] = source
            if frame.mechanism is Mechanism.ENTRY:
                graph.entry = resolved
            logger.debug(f"Discovered {resolved} ({frame.mechanism.value}) as {source.format.extension}")

        logger.info(f"Discovered {len(graph)} file(s) from {entry_path}")
        return graph

    def _load(self, raw_path: Path, resolved: Path) -> SyntaxTree:
        """Read, transform and parse one file, caching its tree."""
        try:
            text = resolved.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(resolved, str(e)) from e

        plain = strip_interpreter_directive(self.context.transformer.transform(text, resolved))
        tree = self.context.parser.parse(plain, resolved)
        self.context.trees[raw_path] = tree
        return tree

    @staticmethod
    def _choose_format(
        frame: TraversalFrame, path: Path, tree: SyntaxTree, edges: list[DependencyEdge]
    ) -> ModuleFormat:
        """Pick the output format of one discovered file.

        Non-entry files take the format their mechanism needs. The entry is
        decided more broadly than by its internal import edges alone: a fixed
        extension wins, then any import edge (builtins included) or any
        module-only syntax makes it .mjs. An entry that imports only builtins
        still loads as a module that way.
        """
        if frame.mechanism is not Mechanism.ENTRY:
            return ModuleFormat.for_mechanism(frame.mechanism)

        fixed = format_for_extension(path)
        if fixed is not None:
            return fixed
        if any(edge.mechanism is Mechanism.IMPORT for edge in edges) or has_module_syntax(tree):
            return ModuleFormat.MODULE
        return ModuleFormat.COMMONJS

    @staticmethod
    def _check_conflict(graph: ModuleGraph, existing: SourceFile | None, frame: TraversalFrame) -> None:
        if existing is None or frame.mechanism is Mechanism.ENTRY:
            return
        if ModuleFormat.for_mechanism(frame.mechanism) is existing.format:
            return
        conflict = FormatConflict(
            path=existing.path,
            format=existing.format,
            mechanism=frame.mechanism,
            referrer=frame.referrer,
            specifier=frame.specifier,
        )
        graph.conflicts.append(conflict)
        logger.warning(
            f"{existing.path} is emitted as {existing.format.extension} but "
            f"{frame.referrer} reaches it via {frame.mechanism.value} '{frame.specifier}'"
        )
