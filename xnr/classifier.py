"""Module format classification (static import vs. dynamic require)."""

from pathlib import Path

from xnr.errors import ReadError
from xnr.syntax.parser import JavaScriptParser
from xnr.syntax.tree import SyntaxTree
from xnr.syntax.walker import STOP, TreeWalker
from xnr.types import ModuleFormat
from xnr.utils.constants import DYNAMIC_ONLY_EXTENSIONS, STATIC_ONLY_EXTENSIONS

# Constructs that only parse inside a static-format module. Dynamic import()
# is legal in both formats and deliberately absent.
MODULE_ONLY_NODE_TYPES = frozenset(
    [
        "import_statement",
        "export_statement",
        "import_clause",
        "import_specifier",
        "namespace_import",
        "named_imports",
        "export_specifier",
        "export_clause",
        "namespace_export",
        "import_attribute",
    ]
)


def format_for_extension(path: Path | str) -> ModuleFormat | None:
    """Format implied by the file extension alone, or None if ambiguous."""
    name = str(path).lower()
    if name.endswith(DYNAMIC_ONLY_EXTENSIONS):
        return ModuleFormat.COMMONJS
    if name.endswith(STATIC_ONLY_EXTENSIONS):
        return ModuleFormat.MODULE
    return None


def has_module_syntax(tree: SyntaxTree) -> bool:
    """Whether the tree contains any static-module-only construct."""

    def found(node, index):
        return STOP

    walker = TreeWalker({node_type: found for node_type in MODULE_ONLY_NODE_TYPES})
    return not walker.walk(tree)


class ModuleTypeClassifier:
    """Decides whether source is a static-format or dynamic-format module."""

    def __init__(self, parser: JavaScriptParser | None = None):
        self.parser = parser or JavaScriptParser("javascript")

    def classify_tree(self, tree: SyntaxTree) -> ModuleFormat:
        return ModuleFormat.MODULE if has_module_syntax(tree) else ModuleFormat.COMMONJS

    def classify_source(self, text: str) -> ModuleFormat:
        # Published packages are not always clean for one grammar; a
        # partial tree still shows whether module syntax is present.
        return self.classify_tree(self.parser.parse(text, strict=False))

    def classify_path(self, path: Path | str) -> ModuleFormat:
        """Classify a file by extension, reading it only when needed.

        Raises:
            ReadError: If the file has an ambiguous extension and cannot be read
        """
        fmt = format_for_extension(path)
        if fmt is not None:
            return fmt

        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(path, str(e)) from e
        return self.classify_source(text)
