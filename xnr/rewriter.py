"""Import and require specifier rewriting.

Every internal specifier is pointed at the file that will actually exist in
the output tree: static imports, dynamic imports and re-exports at the .mjs
output, require calls at the .cjs output. Named imports from an external
package that turns out to be CommonJS are routed through a default import
plus a destructuring declaration (the interop shim).
"""

import asyncio
import hashlib
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from xnr.classifier import ModuleTypeClassifier
from xnr.dependencies import is_builtin, is_internal, is_require_main_require
from xnr.packages import PackageResolver
from xnr.syntax.emitter import CodeEmitter
from xnr.syntax.literals import SpecifierNode, first_argument, read_specifier, write_specifier
from xnr.syntax.tree import EditSet, SyntaxTree
from xnr.syntax.walker import SKIP, TreeWalker
from xnr.types import Mechanism, ModuleFormat, SpecifierTargets
from xnr.utils.constants import INTEROP_BINDING_PREFIX
from xnr.utils.logging import logger


def ensure_extension(specifier: str, fmt: ModuleFormat) -> str:
    """Append the format's extension to an internal specifier that lacks it."""
    if not is_internal(specifier):
        return specifier
    if os.path.splitext(specifier)[1] == fmt.extension:
        return specifier
    return specifier + fmt.extension


def interop_binding(specifier: str, statement_index: int) -> str:
    """Stable local name for a synthesized default import."""
    digest = hashlib.sha256(f"{specifier}:{statement_index}".encode()).hexdigest()
    return INTEROP_BINDING_PREFIX + digest[:12]


@dataclass
class NamedImport:
    """An import statement that pulls named bindings from an external package."""

    statement: Any
    statement_index: int
    clause: Any
    specifier: str
    default_local: str | None
    bindings: list[tuple[str, str]]  # (imported name as written, local name)


class ImportRewriter:
    """Rewrites the specifiers of one tree into emitted text.

    The tree is never modified; each call builds a fresh EditSet, so
    rewriting the same tree twice gives identical text.
    """

    def __init__(
        self,
        classifier: ModuleTypeClassifier | None = None,
        packages: PackageResolver | None = None,
        emitter: CodeEmitter | None = None,
    ):
        self.classifier = classifier or ModuleTypeClassifier()
        self.packages = packages or PackageResolver()
        self.emitter = emitter or CodeEmitter()

    async def rewrite(self, tree: SyntaxTree, targets: SpecifierTargets | None = None) -> str:
        """Rewrite tree into output text.

        Args:
            tree: Parsed plain-syntax source
            targets: Emitted specifier for each (specifier, mechanism) pair;
                internal specifiers without an entry get the format's
                extension appended

        Raises:
            ResolutionError: If an external package with named imports is not installed
            ReadError: If an external package's entry file cannot be read
        """
        edits = EditSet()
        named_imports: list[NamedImport] = []

        def retarget(spec: SpecifierNode | None, mechanism: Mechanism) -> None:
            if spec is None or not is_internal(spec.value):
                return
            value = (targets or {}).get((spec.value, mechanism))
            if value is None:
                value = ensure_extension(spec.value, ModuleFormat.for_mechanism(mechanism))
            node, text = write_specifier(tree, spec, value)
            edits.replace(node, text)

        def import_statement(node: Any, index: int):
            if any(not c.is_named and c.type in ("type", "typeof") for c in node.children):
                return SKIP
            spec = read_specifier(tree, node.child_by_field_name("source"))
            if spec is None:
                return SKIP
            retarget(spec, Mechanism.IMPORT)
            named = self._named_import(tree, node, index, spec.value)
            if named is not None:
                named_imports.append(named)
            return SKIP

        def export_statement(node: Any, index: int):
            source = node.child_by_field_name("source")
            if source is not None:
                retarget(read_specifier(tree, source), Mechanism.IMPORT)
            return None

        def call_expression(node: Any, index: int):
            function = node.child_by_field_name("function")
            if function is None:
                return None
            if function.type == "import":
                retarget(read_specifier(tree, first_argument(node)), Mechanism.IMPORT)
            elif function.type == "identifier" and tree.text(function) == "require":
                retarget(read_specifier(tree, first_argument(node)), Mechanism.REQUIRE)
            elif is_require_main_require(tree, function):
                argument = first_argument(node)
                if argument is not None and argument.type == "string":
                    retarget(read_specifier(tree, argument), Mechanism.REQUIRE)
            return None

        TreeWalker(
            {
                "import_statement": import_statement,
                "export_statement": export_statement,
                "call_expression": call_expression,
            }
        ).walk(tree)

        if named_imports:
            await self._add_interop(tree, edits, named_imports)

        return self.emitter.emit(tree, edits)

    async def _add_interop(self, tree: SyntaxTree, edits: EditSet, named_imports: list[NamedImport]) -> None:
        importer_dir = tree.path.parent if tree.path else Path(os.getcwd())
        specifiers = list(dict.fromkeys(item.specifier for item in named_imports))
        formats = await asyncio.gather(
            *(asyncio.to_thread(self._external_format, specifier, importer_dir) for specifier in specifiers)
        )
        dynamic = {
            specifier for specifier, fmt in zip(specifiers, formats) if fmt is ModuleFormat.COMMONJS
        }

        for item in named_imports:
            if item.specifier not in dynamic:
                continue
            binding = item.default_local or interop_binding(item.specifier, item.statement_index)
            edits.replace(item.clause, binding)

            properties = ", ".join(
                local if imported == local else f"{imported}: {local}" for imported, local in item.bindings
            )
            separator = "" if tree.text(item.statement).rstrip().endswith(";") else ";"
            edits.insert_after(item.statement_index, f"{separator} const {{ {properties} }} = {binding};")
            logger.debug(f"Interop shim for '{item.specifier}' bound to {binding}")

    def _external_format(self, specifier: str, importer_dir: Path) -> ModuleFormat:
        entry = self.packages.resolve(specifier, importer_dir)
        return self.classifier.classify_path(entry)

    @staticmethod
    def _named_import(tree: SyntaxTree, statement: Any, index: int, specifier: str) -> NamedImport | None:
        """Describe statement if it imports named bindings from an external package."""
        if is_internal(specifier) or is_builtin(specifier):
            return None
        clause = next((c for c in statement.named_children if c.type == "import_clause"), None)
        if clause is None:
            return None

        default_local = None
        bindings: list[tuple[str, str]] = []
        for child in clause.named_children:
            if child.type == "identifier":
                default_local = tree.text(child)
            elif child.type == "named_imports":
                for item in child.named_children:
                    if item.type != "import_specifier":
                        continue
                    name = item.child_by_field_name("name")
                    alias = item.child_by_field_name("alias")
                    imported = tree.text(name)
                    local = tree.text(alias) if alias is not None else imported
                    if imported in ("default", "'default'", '"default"') and default_local is None:
                        default_local = local
                        continue
                    bindings.append((imported, local))
            else:
                # namespace imports already see module.exports as the default
                return None

        if not bindings:
            return None
        return NamedImport(statement, index, clause, specifier, default_local, bindings)
